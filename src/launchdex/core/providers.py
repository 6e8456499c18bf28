"""
Launchdex Search Providers

Independent candidate sources queried in parallel by the conductor:

1. **Installed programs** — OS program index hits scored by name match,
   with system/embedded helper noise filtered out for short queries
2. **Catalog** — linear scan of the offline package catalog
3. **History** — fuzzy matches from the command history, boosted by
   recency and re-resolved to the result each entry originally launched

Every provider is synchronous and side-effect free; the conductor owns the
threading.  Scores are only comparable within one provider.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional

from launchdex.core.catalog import CatalogStore
from launchdex.core.config import LaunchdexConfig
from launchdex.core.fuzzy import is_edit_distance_le_one, tokens, wildcard_pattern
from launchdex.core.history import HistoryStore
from launchdex.core.models import (
    CatalogEntry, FileSystemEntry, HistoryCommand, InstalledProgram,
    ProviderResult, Query, SearchResult, SearchSource, TargetRef, UrlTarget,
)
from launchdex.core.programs import ProgramIndex, ProgramRecord, record_from_bundle
from launchdex.exceptions import ProviderError

logger = logging.getLogger(__name__)


class SearchProvider(ABC):
    """A source of scored candidates for one query."""

    source: SearchSource

    @abstractmethod
    def search(self, query: Query) -> List[ProviderResult]:
        """Return candidates for *query*; an empty query yields ``[]``."""


# =============================================================================
# Shared helpers
# =============================================================================

def match_catalog(catalog: CatalogStore, name: str, path: Optional[str]) -> Optional[CatalogEntry]:
    """Cross-reference an installed program: name/token, then filename, then stem."""
    entry = catalog.lookup_by_name_or_token(name)
    if entry is not None or not path:
        return entry
    filename = os.path.basename(path.rstrip("/"))
    entry = catalog.lookup_by_provided_filename(filename)
    if entry is not None:
        return entry
    return catalog.lookup_by_name_or_token(os.path.splitext(filename)[0])


def apply_deprecation(score: int, deprecated: bool, penalty: int) -> int:
    return max(0, score - penalty) if deprecated else score


class TargetResolver:
    """
    Re-resolves a history entry's :class:`TargetRef` to a concrete result.

    Resolution happens on every search; nothing is cached, so a program
    uninstalled since it was recorded simply stops resolving.
    """

    def __init__(self, catalog: CatalogStore):
        self._catalog = catalog

    def resolve(self, ref: Optional[TargetRef]) -> Optional[SearchResult]:
        if ref is None or not ref.key:
            return None
        if ref.kind == "catalog":
            return self._catalog.lookup_by_token(ref.key)
        if ref.kind == "url":
            return UrlTarget(url=ref.key)
        if ref.kind == "file":
            if not os.path.exists(ref.key):
                return None
            return FileSystemEntry(path=ref.key, is_directory=os.path.isdir(ref.key))
        if ref.kind == "installed":
            if not os.path.exists(ref.key):
                return None
            return self._installed(ref.key)
        logger.debug(f"Unknown history target kind '{ref.kind}'")
        return None

    def _installed(self, path: str) -> InstalledProgram:
        if path.rstrip("/").endswith(".app"):
            record = record_from_bundle(path)
        else:
            stem = os.path.splitext(os.path.basename(path.rstrip("/")))[0]
            record = ProgramRecord(name=stem, path=path)
        cask = match_catalog(self._catalog, record.name, record.path)
        description = record.description or (cask.description if cask else None)
        return InstalledProgram(
            name=record.name,
            path=record.path,
            bundle_id=record.bundle_id,
            description=description,
            catalog=cask,
        )


# =============================================================================
# Installed programs
# =============================================================================

def installed_relevance(name_lower: str, query: str) -> int:
    """
    Score a program name against a lowercased query, first tier that applies:
    exact 1000, prefix 900, whole token 950, token prefix 880,
    substring 800, anything else the index returned 100.
    """
    if name_lower == query:
        return 1000
    if name_lower.startswith(query):
        return 900
    name_tokens = tokens(name_lower)
    if query in name_tokens:
        return 950
    if any(t.startswith(query) for t in name_tokens):
        return 880
    if query in name_lower:
        return 800
    return 100


_DATA_VOLUME_PREFIX = "/system/volumes/data"


def normalize_system_path(lower: str) -> str:
    """Collapse the ``/System/Volumes/Data`` firmlink alias onto ``/``."""
    if lower.startswith(_DATA_VOLUME_PREFIX):
        remainder = lower[len(_DATA_VOLUME_PREFIX):]
        if not remainder:
            return "/"
        return remainder if remainder.startswith("/") else "/" + remainder
    return lower


def is_system_or_embedded(path: str, home_dir: str) -> bool:
    """True for system/library locations and bundles nested inside another ``.app``."""
    normalized = normalize_system_path(path.lower())

    if normalized.startswith("/system/applications/"):
        return True
    if normalized.startswith("/system/library/"):
        return True
    if normalized.startswith("/system/") and not normalized.startswith("/system/volumes/"):
        return True
    if normalized.startswith("/library/"):
        return True

    home_library = normalize_system_path((home_dir.rstrip("/") + "/Library/").lower())
    if normalized.startswith(home_library):
        return True

    components = [c for c in normalized.split("/") if c]
    return any(c.endswith(".app") for c in components[:-1])


def should_include_installed(
    path: Optional[str],
    score: int,
    name_lower: str,
    query: str,
    home_dir: str,
    min_query_length: int = 5,
) -> bool:
    if not path:
        return True
    if not is_system_or_embedded(path, home_dir):
        return True
    if score >= 1000:
        return True
    if len(query) >= min_query_length and name_lower.startswith(query):
        return True
    if len(query) >= min_query_length and is_edit_distance_le_one(name_lower, query):
        return True
    return False


class InstalledProgramsProvider(SearchProvider):
    source = SearchSource.INSTALLED

    def __init__(self, program_index: ProgramIndex, catalog: CatalogStore,
                 config: LaunchdexConfig | None = None):
        self._index = program_index
        self._catalog = catalog
        self._config = config or LaunchdexConfig()
        self._home = str(self._config.get_home_dir())

    def search(self, query: Query) -> List[ProviderResult]:
        if query.is_empty:
            return []

        pattern = wildcard_pattern(query.lowercased)
        limit = self._config.installed_result_limit
        try:
            records = self._index.query(pattern, limit)
        except (ProviderError, OSError) as e:
            logger.warning(f"Program index query failed: {e}")
            return []

        results: List[ProviderResult] = []
        for record in records[:limit]:
            name_lower = record.name.lower()
            score = installed_relevance(name_lower, query.lowercased)
            if not should_include_installed(
                record.path, score, name_lower, query.lowercased, self._home,
                self._config.system_match_min_query_length,
            ):
                continue

            cask = match_catalog(self._catalog, record.name, record.path)
            description = record.description
            if not description and cask is not None and cask.description:
                description = cask.description

            program = InstalledProgram(
                name=record.name,
                path=record.path,
                bundle_id=record.bundle_id,
                description=description,
                catalog=cask,
            )
            results.append(ProviderResult(source=self.source, result=program, score=score))
        return results


# =============================================================================
# Catalog
# =============================================================================

def catalog_relevance(entry: CatalogEntry, query: str) -> int:
    """
    Best tier across the display name, token and full token
    (1000/900/800) and the remaining name variants (950/850/750);
    description-only matches score 500, anything else 100.
    """
    best = 0
    for term in (entry.display_name, entry.token, entry.full_token):
        term = term.lower()
        if term == query:
            best = max(best, 1000)
        elif term.startswith(query):
            best = max(best, 900)
        elif query in term:
            best = max(best, 800)

    for name in entry.names[1:]:
        name = name.lower()
        if name == query:
            best = max(best, 950)
        elif name.startswith(query):
            best = max(best, 850)
        elif query in name:
            best = max(best, 750)

    if best:
        return best
    if entry.description and query in entry.description.lower():
        return 500
    return 100


class CatalogProvider(SearchProvider):
    source = SearchSource.CATALOG

    def __init__(self, catalog: CatalogStore, deprecation_penalty: int = 200):
        self._catalog = catalog
        self._penalty = deprecation_penalty

    def search(self, query: Query) -> List[ProviderResult]:
        if query.is_empty:
            return []

        q = query.lowercased
        results = []
        for entry in self._catalog:
            if not any(q in term.lower() for term in entry.searchable_terms):
                continue
            score = apply_deprecation(catalog_relevance(entry, q), entry.deprecated, self._penalty)
            results.append(ProviderResult(source=self.source, result=entry, score=score))
        return results


# =============================================================================
# History
# =============================================================================

class HistoryProvider(SearchProvider):
    source = SearchSource.HISTORY

    def __init__(self, history: HistoryStore, resolver: TargetResolver,
                 config: LaunchdexConfig | None = None):
        self._history = history
        self._resolver = resolver
        self._config = config or LaunchdexConfig()

    def search(self, query: Query) -> List[ProviderResult]:
        if query.is_empty:
            return []

        cfg = self._config
        limit = cfg.history_match_limit
        matches = self._history.fuzzy_matches(query.trimmed, limit=limit)

        seen = set()
        results: List[ProviderResult] = []
        for rank, match in enumerate(matches):
            entry = match.entry
            command = entry.command.strip()
            if not command:
                continue
            lower = command.lower()
            if lower in seen:
                continue
            seen.add(lower)

            score = cfg.history_base_score + max(0, (limit - rank) * cfg.history_recency_step) + match.score
            if lower == query.lowercased:
                score = max(score, cfg.history_exact_floor)

            resolved = self._resolver.resolve(entry.target)
            if isinstance(resolved, CatalogEntry):
                score = apply_deprecation(score, resolved.deprecated, cfg.deprecation_penalty)

            result = HistoryCommand(
                command=command,
                display=entry.display,
                subtitle=entry.subtitle,
                target=entry.target,
                resolved=resolved,
            )
            results.append(ProviderResult(source=self.source, result=result, score=score))

        if not results:
            return results
        top = max(r.score for r in results)
        return [r for r in results if top - r.score <= cfg.history_prune_window]
