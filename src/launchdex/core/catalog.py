"""
Launchdex Catalog Module

In-memory store for the offline package catalog (a trimmed Homebrew cask
dump) plus the helpers that load it from JSON and build it from a raw
cask download.

The store is immutable after construction and safe to share between
provider threads without locking.  Three case-insensitive indices back the
lookups the providers need: display names, tokens, and the program bundle
filenames a package installs.  On collisions the last entry wins.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from tqdm import tqdm

from launchdex.core.models import CatalogEntry
from launchdex.exceptions import CatalogError

logger = logging.getLogger(__name__)


# =============================================================================
# Store
# =============================================================================

class CatalogStore:
    """Read-only, indexed collection of :class:`CatalogEntry` values."""

    def __init__(self, entries: Iterable[CatalogEntry] = ()):
        self._entries = tuple(entries)
        self._by_name: Dict[str, CatalogEntry] = {}
        self._by_token: Dict[str, CatalogEntry] = {}
        self._by_filename: Dict[str, CatalogEntry] = {}

        for entry in self._entries:
            self._by_token[entry.token.lower()] = entry
            self._by_name[entry.display_name.lower()] = entry
            for name in entry.names:
                self._by_name[name.lower()] = entry
            for filename in entry.app_filenames:
                self._by_filename[filename.lower()] = entry

    @property
    def entries(self) -> tuple:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    # ── Lookups ───────────────────────────────────────────────────

    def lookup_by_name_or_token(self, raw: str) -> Optional[CatalogEntry]:
        """Find an entry by any display name, falling back to its token."""
        key = raw.lower()
        return self._by_name.get(key) or self._by_token.get(key)

    def lookup_by_token(self, token: str) -> Optional[CatalogEntry]:
        return self._by_token.get(token.lower())

    def lookup_by_provided_filename(self, filename: str) -> Optional[CatalogEntry]:
        """Find the entry that installs a program bundle named *filename*."""
        return self._by_filename.get(filename.lower())

    def stats(self) -> Dict[str, int]:
        return {
            "entries": len(self._entries),
            "deprecated": sum(1 for e in self._entries if e.deprecated),
            "names_indexed": len(self._by_name),
            "tokens_indexed": len(self._by_token),
            "program_files_indexed": len(self._by_filename),
        }

    # ── Loading ───────────────────────────────────────────────────

    @classmethod
    def from_document(cls, document: Any) -> "CatalogStore":
        """
        Build a store from a parsed catalog document.

        Accepts ``{"data": [...]}`` or a bare list.  Objects without a token
        are skipped with a warning; anything else that is not a JSON object
        is ignored.
        """
        if isinstance(document, dict):
            items = document.get("data", [])
        else:
            items = document
        if not isinstance(items, list):
            raise CatalogError("Catalog document must be a list or an object with a 'data' list.")

        entries: List[CatalogEntry] = []
        skipped = 0
        for item in items:
            entry = parse_entry(item)
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)

        if skipped:
            logger.warning(f"Skipped {skipped} malformed catalog entr{'y' if skipped == 1 else 'ies'}")
        return cls(entries)

    @classmethod
    def from_file(cls, path, strict: bool = False) -> "CatalogStore":
        """
        Load the catalog JSON at *path*.

        A missing or unreadable file yields an empty store (logged) unless
        *strict* is set, in which case :class:`CatalogError` is raised.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
            store = cls.from_document(document)
        except FileNotFoundError:
            if strict:
                raise CatalogError(f"Catalog not found: {path}")
            logger.info(f"No catalog at {path}; catalog search disabled")
            return cls()
        except (OSError, ValueError, CatalogError) as e:
            if strict:
                raise CatalogError(f"Failed to read catalog {path}: {e}") from e
            logger.warning(f"Failed to read catalog {path}: {e}")
            return cls()

        logger.debug(f"Loaded {len(store)} catalog entries from {path}")
        return store


# =============================================================================
# Parsing & trimming
# =============================================================================

def _clean_string(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _string_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [s for s in (_clean_string(v) for v in value) if s]
    single = _clean_string(value)
    return [single] if single else []


def _app_artifacts(value: Any) -> List[Dict[str, List[str]]]:
    if not isinstance(value, list):
        return []
    artifacts = []
    for artifact in value:
        if not isinstance(artifact, dict):
            continue
        apps = _string_list(artifact.get("app"))
        if apps:
            artifacts.append({"app": apps})
    return artifacts


def parse_entry(item: Any) -> Optional[CatalogEntry]:
    """Convert one catalog JSON object into a :class:`CatalogEntry` (or None)."""
    if not isinstance(item, dict):
        return None
    token = _clean_string(item.get("token"))
    if not token:
        return None

    app_filenames: List[str] = []
    for artifact in _app_artifacts(item.get("artifacts")):
        app_filenames.extend(artifact["app"])

    return CatalogEntry(
        token=token,
        full_token=_clean_string(item.get("full_token")) or token,
        names=tuple(_string_list(item.get("name"))),
        description=_clean_string(item.get("desc")),
        homepage=_clean_string(item.get("homepage")),
        url=_clean_string(item.get("url")),
        version=_clean_string(item.get("version")),
        sha256=_clean_string(item.get("sha256")),
        deprecated=item.get("deprecated") is True,
        app_filenames=tuple(app_filenames),
    )


def trim_cask(raw: Any) -> Optional[Dict[str, Any]]:
    """
    Reduce a raw Homebrew cask object to the fields the catalog uses.

    Returns None for objects without a token.  ``name`` falls back to the
    token, ``deprecated`` is only emitted when true, and only ``app``
    artifacts are kept.
    """
    if not isinstance(raw, dict):
        return None
    token = _clean_string(raw.get("token"))
    if not token:
        return None

    trimmed: Dict[str, Any] = {
        "token": token,
        "full_token": _clean_string(raw.get("full_token")) or token,
        "name": _string_list(raw.get("name")) or [token],
    }
    desc = _clean_string(raw.get("desc"))
    if desc:
        trimmed["desc"] = desc
    homepage = _clean_string(raw.get("homepage"))
    if homepage:
        trimmed["homepage"] = homepage
    if raw.get("deprecated") is True:
        trimmed["deprecated"] = True
    artifacts = _app_artifacts(raw.get("artifacts"))
    if artifacts:
        trimmed["artifacts"] = artifacts
    return trimmed


def trim_casks(raw: Any, show_progress: bool = False) -> List[Dict[str, Any]]:
    """Trim every cask in a raw dump, dropping entries without a token."""
    items = raw if isinstance(raw, list) else []
    iterator = tqdm(items, desc="Trimming casks", unit="cask") if show_progress else items
    trimmed = []
    for item in iterator:
        cask = trim_cask(item)
        if cask is not None:
            trimmed.append(cask)
    return trimmed


def build_catalog(source, dest, show_progress: bool = False) -> int:
    """
    Read a raw cask dump from *source* and write the trimmed catalog
    document ``{"data": [...]}`` to *dest*.

    Returns the number of entries written.
    """
    source, dest = Path(source), Path(dest)
    try:
        with open(source, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        raise CatalogError(f"Failed to read cask dump {source}: {e}") from e

    if isinstance(raw, dict) and isinstance(raw.get("data"), list):
        raw = raw["data"]
    if not isinstance(raw, list):
        raise CatalogError(f"Cask dump {source} is not a JSON list")

    trimmed = trim_casks(raw, show_progress=show_progress)
    dest.parent.mkdir(parents=True, exist_ok=True)
    with open(dest, "w", encoding="utf-8") as f:
        json.dump({"data": trimmed}, f, indent=2)
        f.write("\n")

    logger.info(f"Wrote {len(trimmed)} catalog entries to {dest} ({len(raw) - len(trimmed)} skipped)")
    return len(trimmed)
