"""
Launchdex Data Models

The query value, the five search result variants, and the provider-scored
candidate that flows from providers into the conductor.

``SearchResult`` is a closed union of frozen dataclasses.  Behaviour that
differs per variant (display name, identity key, subtitle, primary action)
lives in plain functions below that dispatch on the variant type, so the
full set of cases stays visible in one place.
"""

from __future__ import annotations

import enum
import os
from dataclasses import asdict, dataclass, field, replace
from typing import ClassVar, Optional, Tuple, Union


# =============================================================================
# Query
# =============================================================================

@dataclass(frozen=True)
class Query:
    """Immutable view of the user's input shared with every provider."""
    raw: str
    trimmed: str
    lowercased: str

    @classmethod
    def from_raw(cls, raw: str | None) -> "Query":
        raw = raw or ""
        trimmed = raw.strip()
        return cls(raw=raw, trimmed=trimmed, lowercased=trimmed.lower())

    @property
    def is_empty(self) -> bool:
        return not self.trimmed


class SearchSource(str, enum.Enum):
    """Which provider produced a candidate."""
    INSTALLED = "installed"
    CATALOG = "catalog"
    HISTORY = "history"


# =============================================================================
# Result variants
# =============================================================================

@dataclass(frozen=True)
class CatalogEntry:
    """One installable package from the offline catalog."""
    kind: ClassVar[str] = "catalog"

    token: str
    full_token: str
    names: Tuple[str, ...] = ()
    description: Optional[str] = None
    homepage: Optional[str] = None
    url: Optional[str] = None
    version: Optional[str] = None
    sha256: Optional[str] = None
    deprecated: bool = False
    app_filenames: Tuple[str, ...] = ()
    """Program bundle filenames the package installs (e.g. ``Foo.app``)."""

    @property
    def display_name(self) -> str:
        return self.names[0] if self.names else self.token

    @property
    def searchable_terms(self) -> Tuple[str, ...]:
        terms = list(self.names) + [self.token, self.full_token]
        if self.description:
            terms.append(self.description)
        return tuple(terms)


@dataclass(frozen=True)
class InstalledProgram:
    """A program found by the OS program index."""
    kind: ClassVar[str] = "installed"

    name: str
    path: Optional[str] = None
    bundle_id: Optional[str] = None
    description: Optional[str] = None
    catalog: Optional[CatalogEntry] = None
    """Matching catalog entry, if any (used for deprecation and dedup)."""


@dataclass(frozen=True)
class TargetRef:
    """Persisted pointer from a history entry to the result it launched.

    ``kind`` is one of ``catalog`` (key = token), ``installed`` (key =
    program path), ``url`` (key = URL) or ``file`` (key = path).
    """
    kind: str
    key: str

    KINDS: ClassVar[Tuple[str, ...]] = ("catalog", "installed", "url", "file")


@dataclass(frozen=True)
class HistoryCommand:
    """A previously successful command, optionally re-resolved to its target."""
    kind: ClassVar[str] = "history"

    command: str
    display: Optional[str] = None
    subtitle: Optional[str] = None
    is_recent: bool = False
    target: Optional[TargetRef] = None
    resolved: Optional["SearchResult"] = None
    """Concrete result the target resolved to for this search (never cached)."""


@dataclass(frozen=True)
class UrlTarget:
    kind: ClassVar[str] = "url"

    url: str


@dataclass(frozen=True)
class FileSystemEntry:
    kind: ClassVar[str] = "file"

    path: str
    is_directory: bool = False
    display_override: Optional[str] = None


SearchResult = Union[InstalledProgram, CatalogEntry, HistoryCommand, UrlTarget, FileSystemEntry]


@dataclass(frozen=True)
class ProviderResult:
    """Provider-scored candidate prior to conductor re-ranking.

    Scores are source-local: they only become comparable across sources
    once the conductor applies its priority tiers.
    """
    source: SearchSource
    result: SearchResult
    score: int


@dataclass
class HistoryEntry:
    """One stored history record, most-recent-first in the store."""
    command: str
    display: Optional[str] = None
    subtitle: Optional[str] = None
    target: Optional[TargetRef] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class HistoryMatch:
    """A history entry together with its fuzzy match score."""
    entry: HistoryEntry = field(compare=False)
    score: int = 0


# =============================================================================
# Per-variant behaviour
# =============================================================================

def display_name(result: SearchResult) -> str:
    """Human-readable title for a result."""
    if isinstance(result, InstalledProgram):
        return result.name
    if isinstance(result, CatalogEntry):
        return result.display_name
    if isinstance(result, HistoryCommand):
        return result.display or result.command
    if isinstance(result, UrlTarget):
        return result.url
    if isinstance(result, FileSystemEntry):
        if result.display_override:
            return result.display_override
        name = os.path.basename(result.path.rstrip("/")) or result.path
        if result.is_directory and not name.endswith("/"):
            return name + "/"
        return name
    raise TypeError(f"Unknown search result variant: {type(result).__name__}")


def identity_key(result: SearchResult) -> str:
    """Canonical key deciding whether two results are the same entity."""
    if isinstance(result, InstalledProgram):
        if result.bundle_id:
            return result.bundle_id.lower()
        if result.path:
            return result.path.lower()
        return result.name.lower()
    if isinstance(result, CatalogEntry):
        return result.display_name.lower()
    if isinstance(result, HistoryCommand):
        return result.command.lower()
    if isinstance(result, UrlTarget):
        return result.url.lower()
    if isinstance(result, FileSystemEntry):
        return result.path.lower()
    raise TypeError(f"Unknown search result variant: {type(result).__name__}")


def is_history(result: SearchResult) -> bool:
    return isinstance(result, HistoryCommand)


def effective_result(result: SearchResult) -> SearchResult:
    """The result a row should behave as: history entries defer to their target."""
    if isinstance(result, HistoryCommand) and result.resolved is not None:
        return result.resolved
    return result


def with_resolution(command: HistoryCommand, resolved: Optional[SearchResult]) -> HistoryCommand:
    return replace(command, resolved=resolved)


def target_ref(result: SearchResult) -> Optional[TargetRef]:
    """The persistable reference a history entry should keep for *result*."""
    if isinstance(result, CatalogEntry):
        return TargetRef(kind="catalog", key=result.token)
    if isinstance(result, InstalledProgram):
        return TargetRef(kind="installed", key=result.path) if result.path else None
    if isinstance(result, UrlTarget):
        return TargetRef(kind="url", key=result.url)
    if isinstance(result, FileSystemEntry):
        return TargetRef(kind="file", key=result.path)
    if isinstance(result, HistoryCommand):
        return result.target
    return None


def _clean(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    text = text.strip()
    return text.replace("\n", " ") if text else None


def _abbreviate_home(text: str, home: Optional[str]) -> str:
    if home and home != "/":
        return text.replace(home, "~")
    return text


def subtitle(result: SearchResult, home: Optional[str] = None) -> Optional[str]:
    """Secondary line for a result row (path, description, hint)."""
    if isinstance(result, InstalledProgram):
        path = _clean(result.path)
        desc = _clean(result.description)
        if path:
            path = _abbreviate_home(path, home)
        if path and desc:
            return f"{path} - {desc}"
        return path or desc
    if isinstance(result, CatalogEntry):
        return _clean(result.description) or _clean(result.homepage)
    if isinstance(result, HistoryCommand):
        if result.resolved is not None:
            return subtitle(result.resolved, home)
        stored = _clean(result.subtitle)
        if stored:
            return _abbreviate_home(stored, home)
        display = _clean(result.display)
        command = result.command.strip()
        if display and command and display.lower() != command.lower():
            return _abbreviate_home(command, home)
        return None
    if isinstance(result, UrlTarget):
        return "Opens in default browser"
    if isinstance(result, FileSystemEntry):
        return "Opens in file manager"
    raise TypeError(f"Unknown search result variant: {type(result).__name__}")


def primary_action(result: SearchResult) -> str:
    """Label of the action Enter performs on this result."""
    if isinstance(result, HistoryCommand):
        if result.resolved is not None:
            return primary_action(result.resolved)
        return "Open"
    if isinstance(result, CatalogEntry):
        return "Homepage"
    if isinstance(result, FileSystemEntry) and result.is_directory:
        return "Activate"
    return "Open"


def result_to_dict(result: SearchResult, home: Optional[str] = None) -> dict:
    """JSON-serializable summary of a result for API/agent pipelines."""
    data = {
        "kind": result.kind,
        "title": display_name(result),
        "subtitle": subtitle(result, home),
        "identity": identity_key(result),
        "action": primary_action(result),
    }
    if isinstance(result, InstalledProgram):
        data.update(path=result.path, bundle_id=result.bundle_id,
                    catalog_token=result.catalog.token if result.catalog else None)
    elif isinstance(result, CatalogEntry):
        data.update(token=result.token, homepage=result.homepage,
                    deprecated=result.deprecated)
    elif isinstance(result, HistoryCommand):
        data.update(command=result.command, is_recent=result.is_recent,
                    target=asdict(result.target) if result.target else None,
                    resolved_kind=result.resolved.kind if result.resolved else None)
    elif isinstance(result, UrlTarget):
        data.update(url=result.url)
    elif isinstance(result, FileSystemEntry):
        data.update(path=result.path, is_directory=result.is_directory)
    return data
