"""
Launchdex Client Facade

Single entry point for programmatic use of Launchdex.  Composes the
catalog, history, program index, providers and conductor from one
config object and exposes search and history operations, with async
variants.

Usage::

    from launchdex import Launchdex

    # From environment variables
    launcher = Launchdex()

    # With explicit configuration
    from launchdex.core.config import LaunchdexConfig
    launcher = Launchdex(config=LaunchdexConfig(data_dir="/tmp/launchdex"))

    # Blocking search
    from launchdex.core.models import display_name
    for result in launcher.search("code"):
        print(display_name(result))

    # Keystroke-driven search: only the latest call's callback fires
    launcher.search_async("vis", on_results)
    launcher.search_async("visual", on_results)

    # Async variant (asyncio applications)
    hits = await launcher.asearch("visual studio")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Union

from launchdex.core.catalog import CatalogStore
from launchdex.core.conductor import (
    Deliver, ResultCallback, ScoreObserver, ScoreRecorder, SearchConductor,
)
from launchdex.core.config import LaunchdexConfig
from launchdex.core.history import HistoryStorage, HistoryStore, SQLiteHistoryStorage
from launchdex.core.models import (
    HistoryEntry, SearchResult, TargetRef, display_name, effective_result, target_ref,
)
from launchdex.core.programs import ProgramIndex, create_program_index
from launchdex.core.providers import (
    CatalogProvider, HistoryProvider, InstalledProgramsProvider, TargetResolver,
)
from launchdex.exceptions import SearchError

logger = logging.getLogger(__name__)


class Launchdex:
    """
    High-level launcher search client.

    Each instance owns its stores, thread pools and config and never
    touches global state, so several launchers (or test fixtures) can
    coexist in one process.

    Args:
        config: Explicit configuration object.  When *None*, a config
            is built from environment variables or keyword overrides.
        catalog: Pre-built catalog store.  Defaults to loading
            ``config.get_catalog_path()`` (missing file = empty catalog).
        history_storage: History persistence backend.  Defaults to SQLite
            at ``config.get_history_path()``.
        program_backend: Installed-program backend.  Defaults to
            :func:`~launchdex.core.programs.create_program_index`.
        score_observer: Receives ``{identity_key: score}`` after every
            rerank.  Defaults to a :class:`ScoreRecorder`.
        validate_on_init: Call :meth:`LaunchdexConfig.validate` first.
        **kwargs: Forwarded to :class:`LaunchdexConfig` when *config* is
            ``None`` (e.g. ``program_index="none"``).
    """

    def __init__(
        self,
        config: LaunchdexConfig | None = None,
        *,
        catalog: CatalogStore | None = None,
        history_storage: HistoryStorage | None = None,
        program_backend: ProgramIndex | None = None,
        score_observer: ScoreObserver | None = None,
        validate_on_init: bool = True,
        **kwargs,
    ):
        if config is not None:
            self._config = config
        elif kwargs:
            # Build a config from env, then overlay keyword overrides
            base = LaunchdexConfig.from_env()
            merged = {
                f.name: kwargs.get(f.name, getattr(base, f.name))
                for f in base.__dataclass_fields__.values()
            }
            self._config = LaunchdexConfig(**merged)
        else:
            self._config = LaunchdexConfig.from_env()

        if validate_on_init:
            self._config.validate()

        cfg = self._config
        self._catalog = catalog if catalog is not None else CatalogStore.from_file(cfg.get_catalog_path())
        self._history = HistoryStore(
            history_storage if history_storage is not None else SQLiteHistoryStorage(cfg.get_history_path()),
            max_entries=cfg.history_max_entries,
        )
        self._program_index = program_backend if program_backend is not None else create_program_index(cfg)
        self._resolver = TargetResolver(self._catalog)
        self._observer = score_observer if score_observer is not None else ScoreRecorder()

        providers = [
            InstalledProgramsProvider(self._program_index, self._catalog, cfg),
            HistoryProvider(self._history, self._resolver, cfg),
            CatalogProvider(self._catalog, cfg.deprecation_penalty),
        ]
        self._conductor = SearchConductor(
            providers, self._history, self._resolver, cfg, score_observer=self._observer,
        )
        logger.debug(
            f"Launchdex ready: {len(self._catalog)} catalog entries, "
            f"{len(self._history)} history entries, program index '{self._program_index.name}'"
        )

    # ── Configuration & collaborators ─────────────────────────────

    @property
    def config(self) -> LaunchdexConfig:
        """The active configuration for this client."""
        return self._config

    @property
    def catalog(self) -> CatalogStore:
        return self._catalog

    @property
    def history(self) -> HistoryStore:
        return self._history

    @property
    def conductor(self) -> SearchConductor:
        return self._conductor

    @property
    def last_scores(self) -> Dict[str, int]:
        """Scores from the most recent rerank (empty without a :class:`ScoreRecorder`)."""
        if isinstance(self._observer, ScoreRecorder):
            return self._observer.scores
        return {}

    # ── Search ────────────────────────────────────────────────────

    def search(self, query: str, *, max_results: int | None = None) -> List[SearchResult]:
        """
        Run the full search pipeline and return ranked results.

        An empty query returns the most recent history entries.  Provider
        failures never raise; they only shrink the result list.

        Raises:
            SearchError: If *max_results* is not positive.
        """
        if max_results is not None and max_results <= 0:
            raise SearchError(f"max_results must be positive (got {max_results}).")
        limit = max_results or self._config.max_search_results
        return self._conductor.collect(query or "")[:limit]

    def search_async(self, query: str, callback: ResultCallback,
                     deliver: Deliver | None = None) -> int:
        """
        Start a generation-gated background search and return its id.

        Only the most recent call's *callback* ever fires.  See
        :meth:`SearchConductor.search` for *deliver*.
        """
        return self._conductor.search(query or "", callback, deliver)

    def recent(self, limit: int | None = None) -> List[SearchResult]:
        """Most recent history entries, resolved to their targets."""
        if limit is not None and limit <= 0:
            raise SearchError(f"limit must be positive (got {limit}).")
        return self._conductor.recent_results(limit)

    # ── History ───────────────────────────────────────────────────

    def record_success(
        self,
        command: str,
        display: str | None = None,
        subtitle: str | None = None,
        target: Union[TargetRef, SearchResult, None] = None,
    ) -> Optional[HistoryEntry]:
        """
        Record a command the user launched successfully.

        *target* may be a :class:`TargetRef` or the result that was
        launched; in the latter case *display* defaults to its title.
        Blank commands are ignored.
        """
        ref = target
        if target is not None and not isinstance(target, TargetRef):
            launched = effective_result(target)
            ref = target_ref(launched)
            if display is None:
                display = display_name(launched)
        return self._history.record(command, display=display, subtitle=subtitle, target=ref)

    def remove_history_entry(self, command: str) -> bool:
        """Forget *command*. Returns True when an entry was removed."""
        return self._history.remove(command)

    def complete(self, prefix: str, limit: int = 10) -> List[str]:
        """History commands starting with *prefix*, most recent first."""
        return self._history.completions(prefix, limit=limit)

    def best_completion(self, prefix: str) -> Optional[str]:
        return self._history.best_completion(prefix)

    # ── Statistics ────────────────────────────────────────────────

    def stats(self) -> Dict[str, object]:
        """Catalog and history sizes plus the active program index backend."""
        return {
            "catalog": self._catalog.stats(),
            "history_entries": len(self._history),
            "history_path": str(self._config.get_history_path()),
            "catalog_path": str(self._config.get_catalog_path()),
            "program_index": self._program_index.name,
            "searches": self._conductor.current_generation,
        }

    # ── Async variants ────────────────────────────────────────────
    # These use asyncio.to_thread() to run sync operations off the
    # event loop. They raise the same exceptions as the sync methods.

    async def asearch(self, query: str, *, max_results: int | None = None) -> List[SearchResult]:
        """Async variant of :meth:`search`. Raises same exceptions as sync."""
        return await asyncio.to_thread(self.search, query, max_results=max_results)

    async def arecord_success(
        self,
        command: str,
        display: str | None = None,
        subtitle: str | None = None,
        target: Union[TargetRef, SearchResult, None] = None,
    ) -> Optional[HistoryEntry]:
        """Async variant of :meth:`record_success`."""
        return await asyncio.to_thread(self.record_success, command, display, subtitle, target)

    async def astats(self) -> Dict[str, object]:
        """Async variant of :meth:`stats`."""
        return await asyncio.to_thread(self.stats)

    # ── Health (for agents / status endpoints) ─────────────────────

    def health(self) -> Dict[str, object]:
        """
        Return a small status dict for agents or health checks.

        Does not run a search or touch the network.
        """
        return {
            "version": __import__("launchdex", fromlist=["__version__"]).__version__,
            "program_index": self._program_index.name,
            "catalog_entries": len(self._catalog),
            "history_entries": len(self._history),
        }

    # ── Lifecycle ─────────────────────────────────────────────────

    def close(self) -> None:
        """Shut down worker pools and release storage handles. Idempotent."""
        self._conductor.close()
        self._program_index.close()
        self._history.close()

    def __enter__(self) -> "Launchdex":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
