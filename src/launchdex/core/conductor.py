"""
Launchdex Search Conductor

Orchestrates one search end to end:

1. **Generation** — every call takes a new, monotonically increasing id
2. **Fan-out** — all providers run concurrently on a shared pool
3. **Join** — a dedicated aggregation pool waits for every provider
   (never the caller's thread)
4. **Rerank** — partition, suppress installed catalog entries, merge
   history into installed rows, sort by tier/score/name, deduplicate
5. **Inject** — URL/path results for the raw input go first
6. **Deliver** — only if the generation is still current, checked after
   the join and again right before the callback runs

A superseded search is not an error: its results are dropped and its
callback never fires.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from launchdex.core.classify import classify
from launchdex.core.config import LaunchdexConfig
from launchdex.core.history import HistoryStore
from launchdex.core.models import (
    CatalogEntry, HistoryCommand, InstalledProgram, ProviderResult, Query,
    SearchResult, display_name, identity_key, is_history,
)
from launchdex.core.providers import SearchProvider, TargetResolver

logger = logging.getLogger(__name__)

ResultCallback = Callable[[List[SearchResult]], None]
Deliver = Callable[[Callable[[], None]], None]
ScoreObserver = Callable[[Dict[str, int]], None]


class ScoreRecorder:
    """
    Score observer that keeps the last ``{identity_key: score}`` mapping.

    Used for debug annotation (``launchdex search --explain``); the
    conductor works the same with or without one attached.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._scores: Dict[str, int] = {}

    def __call__(self, scores: Dict[str, int]) -> None:
        with self._lock:
            self._scores = dict(scores)

    def score_for(self, result: SearchResult) -> Optional[int]:
        with self._lock:
            return self._scores.get(identity_key(result))

    @property
    def scores(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._scores)


# =============================================================================
# Ranking
# =============================================================================

def _catalog_exact(entry: CatalogEntry, query: str) -> bool:
    return query in (entry.display_name.lower(), entry.token.lower(), entry.full_token.lower())


def priority(result: SearchResult, query: Query) -> int:
    """Coarse tier applied before score comparison (higher sorts first)."""
    q = query.lowercased
    if isinstance(result, InstalledProgram):
        return 5 if result.name.lower() == q else 3
    if isinstance(result, HistoryCommand):
        return 4 if result.command.lower() == q else 3
    if isinstance(result, CatalogEntry):
        return 3 if _catalog_exact(result, q) else 1
    return 1


def rerank(results: Sequence[ProviderResult], query: Query) -> Tuple[List[SearchResult], Dict[str, int]]:
    """
    Merge provider candidates into one ordered, deduplicated list.

    Returns the results and the ``{identity_key: score}`` of every
    result kept.
    """
    installed: List[ProviderResult] = []
    catalog: List[ProviderResult] = []
    history: List[ProviderResult] = []
    installed_filenames = set()
    installed_by_display: Dict[str, int] = {}

    for candidate in results:
        result = candidate.result
        if isinstance(result, InstalledProgram):
            if result.path:
                installed_filenames.add(result.path.rstrip("/").rsplit("/", 1)[-1].lower())
            installed_by_display[display_name(result).lower()] = len(installed)
            installed.append(candidate)
        elif isinstance(result, CatalogEntry):
            catalog.append(candidate)
        elif isinstance(result, HistoryCommand):
            history.append(candidate)

    # Packages that are already installed are not offered again
    catalog = [
        c for c in catalog
        if not any(f.lower() in installed_filenames for f in c.result.app_filenames)
    ]

    remaining_history: List[ProviderResult] = []
    for candidate in history:
        display = candidate.result.display
        if display:
            idx = installed_by_display.get(display.lower())
            if idx is not None:
                existing = installed[idx]
                installed[idx] = ProviderResult(
                    source=existing.source,
                    result=existing.result,
                    score=existing.score + candidate.score,
                )
                continue
        remaining_history.append(candidate)

    ordered = installed + remaining_history + catalog
    ordered.sort(key=lambda c: (
        -priority(c.result, query),
        -c.score,
        display_name(c.result).casefold(),
    ))

    seen_ids = set()
    seen_names = set()
    final: List[SearchResult] = []
    scores: Dict[str, int] = {}
    for candidate in ordered:
        key = identity_key(candidate.result)
        if key in seen_ids:
            continue
        seen_ids.add(key)
        name = display_name(candidate.result).lower()
        # History rows may share a title with the result they launched
        if name in seen_names and not is_history(candidate.result):
            continue
        seen_names.add(name)
        final.append(candidate.result)
        scores[key] = candidate.score
    return final, scores


def inject_synthetic(synthetic: Sequence[SearchResult], ranked: Sequence[SearchResult]) -> List[SearchResult]:
    """Put URL/path results first and drop provider results with the same identity."""
    merged: List[SearchResult] = []
    seen = set()
    for result in list(synthetic) + list(ranked):
        key = identity_key(result)
        if key in seen:
            continue
        seen.add(key)
        merged.append(result)
    return merged


# =============================================================================
# Conductor
# =============================================================================

class SearchConductor:
    """
    Fans a query out to every provider and delivers one ranked list.

    Args:
        providers: Candidate sources, queried concurrently.
        history: Store used for the empty-query "recents" view.
        resolver: Re-resolves history targets for recents.
        config: Tuning knobs (timeouts, pool sizes, limits).
        score_observer: Optional callable receiving the score map after
            every rerank.
    """

    def __init__(
        self,
        providers: Sequence[SearchProvider],
        history: HistoryStore,
        resolver: TargetResolver,
        config: LaunchdexConfig | None = None,
        score_observer: ScoreObserver | None = None,
    ):
        self._providers = list(providers)
        self._history = history
        self._resolver = resolver
        self._config = config or LaunchdexConfig()
        self._observer = score_observer
        self._home = str(self._config.get_home_dir())

        self._generation = 0
        self._generation_lock = threading.Lock()
        self._provider_pool = ThreadPoolExecutor(
            max_workers=self._config.max_provider_workers,
            thread_name_prefix="launchdex-provider",
        )
        self._aggregation_pool = ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="launchdex-aggregate",
        )

    # ── Generations ───────────────────────────────────────────────

    def _next_generation(self) -> int:
        with self._generation_lock:
            self._generation += 1
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._generation_lock:
            return generation == self._generation

    @property
    def current_generation(self) -> int:
        with self._generation_lock:
            return self._generation

    # ── Public API ────────────────────────────────────────────────

    def search(self, raw: str, callback: ResultCallback, deliver: Deliver | None = None) -> int:
        """
        Start an asynchronous search and return its generation id.

        *callback* receives the final list, at most once, and only if no
        newer search has started.  When *deliver* is given the callback is
        scheduled through it (e.g. ``loop.call_soon_threadsafe``);
        otherwise it runs on the aggregation thread.
        """
        query = Query.from_raw(raw)
        generation = self._next_generation()
        self._aggregation_pool.submit(self._run, generation, query, callback, deliver)
        return generation

    def collect(self, raw: str) -> List[SearchResult]:
        """Run the full pipeline and return the results, without generation gating."""
        return self._execute(Query.from_raw(raw))

    def recent_results(self, limit: int | None = None) -> List[SearchResult]:
        """Most recent history entries, re-resolved, tagged as recents."""
        if limit is None:
            limit = self._config.recent_history_limit
        recents = []
        for entry in self._history.recent_entries(limit):
            recents.append(HistoryCommand(
                command=entry.command,
                display=entry.display,
                subtitle=entry.subtitle,
                is_recent=True,
                target=entry.target,
                resolved=self._resolver.resolve(entry.target),
            ))
        return recents

    def close(self) -> None:
        self._provider_pool.shutdown(wait=False, cancel_futures=True)
        self._aggregation_pool.shutdown(wait=False, cancel_futures=True)

    # ── Pipeline ──────────────────────────────────────────────────

    def _run(self, generation: int, query: Query, callback: ResultCallback,
             deliver: Deliver | None) -> None:
        try:
            if not self.is_current(generation):
                logger.debug(f"Search {generation} superseded before dispatch")
                return
            results = self._execute(query)
        except Exception as e:
            logger.error(f"Search {generation} for '{query.trimmed}' failed: {e}", exc_info=True)
            return

        if not self.is_current(generation):
            logger.debug(f"Search {generation} superseded; discarding {len(results)} results")
            return

        def _deliver_now():
            if self.is_current(generation):
                callback(results)

        if deliver is None:
            _deliver_now()
        else:
            deliver(_deliver_now)

    def _execute(self, query: Query) -> List[SearchResult]:
        if query.is_empty:
            self._publish_scores({})
            return self.recent_results()

        synthetic = classify(query.trimmed, self._home, self._config.max_directory_entries)
        candidates = self._gather(query)
        ranked, scores = rerank(candidates, query)
        self._publish_scores(scores)
        return inject_synthetic(synthetic, ranked)

    def _gather(self, query: Query) -> List[ProviderResult]:
        """Run every provider concurrently; failures and stragglers contribute nothing."""
        futures = {
            self._provider_pool.submit(provider.search, query): index
            for index, provider in enumerate(self._providers)
        }
        per_provider: Dict[int, List[ProviderResult]] = {}

        try:
            for future in as_completed(futures, timeout=self._config.provider_timeout_seconds):
                index = futures[future]
                try:
                    per_provider[index] = list(future.result())
                except Exception as e:
                    name = type(self._providers[index]).__name__
                    logger.error(f"Provider {name} failed for '{query.trimmed}': {e}")
        except FuturesTimeoutError:
            late = [type(self._providers[i]).__name__ for f, i in futures.items() if not f.done()]
            logger.warning(f"Providers timed out for '{query.trimmed}': {', '.join(late)}")

        # Provider order, not completion order, so ties rank deterministically
        collected: List[ProviderResult] = []
        for index in range(len(self._providers)):
            collected.extend(per_provider.get(index, ()))
        return collected

    def _publish_scores(self, scores: Dict[str, int]) -> None:
        if self._observer is None:
            return
        try:
            self._observer(scores)
        except Exception as e:
            logger.warning(f"Score observer failed: {e}")
