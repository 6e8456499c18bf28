"""
Launchdex History Module

Recency-ordered store of commands the user launched successfully, with
prefix completion and the tiered fuzzy matcher the history provider ranks
with.

Fuzzy tiers (case-insensitive, bands never overlap):

    exact match            300
    prefix                 260
    substring              220 + max(0, 40 - start)        (221..259)
    subsequence            100 + sum(max(1, 15 - gap))     (capped at 219)

Persistence is delegated to a :class:`HistoryStorage` backend.  A single
lock serializes every read and write of the entry list; writes are rare
and reads are short list scans.
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional

from launchdex.core.models import HistoryEntry, HistoryMatch, TargetRef
from launchdex.exceptions import HistoryError

logger = logging.getLogger(__name__)

EXACT_SCORE = 300
PREFIX_SCORE = 260
SUBSTRING_BASE = 220
SUBSTRING_PROXIMITY = 40
SUBSEQUENCE_BASE = 100
SUBSEQUENCE_CAP = 219
ADJACENCY_BONUS = 15


def fuzzy_score(candidate: str, query: str) -> Optional[int]:
    """
    Score *candidate* against a lowercased *query*; None means no match.

    Pure function of its inputs.  See the module docstring for the tiers.
    """
    text = candidate.lower()
    if not query:
        return None
    if text == query:
        return EXACT_SCORE
    if text.startswith(query):
        return PREFIX_SCORE

    start = text.find(query)
    if start >= 0:
        return SUBSTRING_BASE + max(0, SUBSTRING_PROXIMITY - start)

    score = 0
    position = 0
    for ch in query:
        found = text.find(ch, position)
        if found < 0:
            return None
        gap = found - position
        score += max(1, ADJACENCY_BONUS - gap)
        position = found + 1
    return min(SUBSEQUENCE_CAP, SUBSEQUENCE_BASE + score)


# =============================================================================
# Storage backends
# =============================================================================

class HistoryStorage(ABC):
    """Durable home of the ordered entry list (most recent first)."""

    @abstractmethod
    def load(self) -> List[HistoryEntry]:
        """Return stored entries; raise :class:`HistoryError` when unreadable."""

    @abstractmethod
    def save(self, entries: List[HistoryEntry]) -> None:
        """Replace the stored list with *entries*."""

    def close(self) -> None:
        pass


class MemoryHistoryStorage(HistoryStorage):
    """Process-local storage, used by tests and ephemeral launchers."""

    def __init__(self, entries: Iterable[HistoryEntry] = ()):
        self._entries = list(entries)

    def load(self) -> List[HistoryEntry]:
        return list(self._entries)

    def save(self, entries: List[HistoryEntry]) -> None:
        self._entries = list(entries)


class SQLiteHistoryStorage(HistoryStorage):
    """SQLite-backed storage.

    Uses thread-local connections so each thread reuses its own connection;
    the schema is created on a connection's first use.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._local = threading.local()

    def _get_connection(self) -> sqlite3.Connection:
        """Return a thread-local SQLite connection, creating it on first use."""
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS history_entries (
                        position INTEGER PRIMARY KEY,
                        command TEXT NOT NULL,
                        display TEXT,
                        subtitle TEXT,
                        target_kind TEXT,
                        target_key TEXT
                    )
                """)
                conn.commit()
            except sqlite3.Error:
                conn.close()
                raise
            self._local.conn = conn
        return self._local.conn

    def close(self) -> None:
        """Close the thread-local connection for the current thread. Idempotent."""
        if hasattr(self._local, "conn") and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None

    @staticmethod
    def _row_to_entry(row) -> Optional[HistoryEntry]:
        command, display, subtitle, target_kind, target_key = row
        if not isinstance(command, str) or not command.strip():
            return None
        target = None
        if target_kind in TargetRef.KINDS and isinstance(target_key, str) and target_key:
            target = TargetRef(kind=target_kind, key=target_key)
        return HistoryEntry(
            command=command.strip(),
            display=display if isinstance(display, str) else None,
            subtitle=subtitle if isinstance(subtitle, str) else None,
            target=target,
        )

    def load(self) -> List[HistoryEntry]:
        try:
            conn = self._get_connection()
            rows = conn.execute("""
                SELECT command, display, subtitle, target_kind, target_key
                FROM history_entries ORDER BY position
            """).fetchall()
        except (OSError, sqlite3.Error) as e:
            self.close()
            raise HistoryError(f"Failed to load history from {self.db_path}: {e}") from e

        entries = []
        for row in rows:
            entry = self._row_to_entry(row)
            if entry is None:
                logger.debug(f"Skipping malformed history row: {row!r}")
                continue
            entries.append(entry)
        return entries

    def save(self, entries: List[HistoryEntry]) -> None:
        try:
            conn = self._get_connection()
            with conn:
                conn.execute("DELETE FROM history_entries")
                conn.executemany(
                    """
                    INSERT INTO history_entries
                    (position, command, display, subtitle, target_kind, target_key)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            i, e.command, e.display, e.subtitle,
                            e.target.kind if e.target else None,
                            e.target.key if e.target else None,
                        )
                        for i, e in enumerate(entries)
                    ],
                )
        except (OSError, sqlite3.Error) as e:
            raise HistoryError(f"Failed to save history to {self.db_path}: {e}") from e


# =============================================================================
# Store
# =============================================================================

class HistoryStore:
    """
    Most-recent-first list of successful commands, capped at *max_entries*.

    Re-recording a command (case-insensitively) moves it to the front
    instead of adding a duplicate.  Storage failures are logged and never
    propagate to callers: a corrupt store loads as empty history and a
    failed save keeps the in-memory list.
    """

    def __init__(self, storage: HistoryStorage | None = None, max_entries: int = 200):
        self._storage = storage or MemoryHistoryStorage()
        self._max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: List[HistoryEntry] = self._load()

    def _load(self) -> List[HistoryEntry]:
        try:
            entries = self._storage.load()
        except HistoryError as e:
            logger.warning(f"{e}; starting with empty history")
            return []

        deduped: List[HistoryEntry] = []
        seen = set()
        for entry in entries:
            key = entry.command.lower()
            if key in seen:
                continue
            seen.add(key)
            deduped.append(entry)
        return deduped[: self._max_entries]

    def _persist(self) -> None:
        try:
            self._storage.save(list(self._entries))
        except HistoryError as e:
            logger.warning(f"{e}; history kept in memory only")

    # ── Mutation ──────────────────────────────────────────────────

    def record(
        self,
        command: str,
        display: Optional[str] = None,
        subtitle: Optional[str] = None,
        target: Optional[TargetRef] = None,
    ) -> Optional[HistoryEntry]:
        """Record a successful command. Blank commands are ignored (returns None)."""
        trimmed = (command or "").strip()
        if not trimmed:
            return None

        entry = HistoryEntry(
            command=trimmed,
            display=(display or "").strip() or None,
            subtitle=(subtitle or "").strip() or None,
            target=target,
        )
        lowered = trimmed.lower()
        with self._lock:
            self._entries = [e for e in self._entries if e.command.lower() != lowered]
            self._entries.insert(0, entry)
            del self._entries[self._max_entries:]
            self._persist()
        logger.debug(f"Recorded history entry '{trimmed}'")
        return replace(entry)

    def remove(self, command: str) -> bool:
        """Remove *command* (case-insensitive). Returns True when something was removed."""
        lowered = (command or "").strip().lower()
        if not lowered:
            return False
        with self._lock:
            remaining = [e for e in self._entries if e.command.lower() != lowered]
            if len(remaining) == len(self._entries):
                return False
            self._entries = remaining
            self._persist()
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            self._persist()

    # ── Queries ───────────────────────────────────────────────────

    def entries(self) -> List[HistoryEntry]:
        """Snapshot of all entries, most recent first."""
        with self._lock:
            return [replace(e) for e in self._entries]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def recent_entries(self, limit: int) -> List[HistoryEntry]:
        if limit <= 0:
            return []
        with self._lock:
            return [replace(e) for e in self._entries[:limit]]

    def best_completion(self, prefix: str) -> Optional[str]:
        """First (most recent) stored command that starts with *prefix*."""
        lowered = (prefix or "").strip().lower()
        if not lowered:
            return None
        with self._lock:
            for entry in self._entries:
                if entry.command.lower().startswith(lowered):
                    return entry.command
        return None

    def completions(self, prefix: str, limit: int = 10) -> List[str]:
        """Stored commands starting with *prefix*, in recency order."""
        lowered = (prefix or "").strip().lower()
        if not lowered or limit <= 0:
            return []
        matches: List[str] = []
        with self._lock:
            for entry in self._entries:
                if entry.command.lower().startswith(lowered):
                    matches.append(entry.command)
                    if len(matches) == limit:
                        break
        return matches

    def fuzzy_matches(self, query: str, limit: int = 5) -> List[HistoryMatch]:
        """
        Score every stored command against *query*.

        Sorted by score descending, ties broken by recency, truncated to
        *limit*.
        """
        lowered = (query or "").strip().lower()
        if not lowered or limit <= 0:
            return []

        with self._lock:
            snapshot = list(self._entries)

        scored = []
        for index, entry in enumerate(snapshot):
            score = fuzzy_score(entry.command, lowered)
            if score is None:
                continue
            scored.append((score, index, entry))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [HistoryMatch(entry=replace(entry), score=score) for score, _, entry in scored[:limit]]

    def close(self) -> None:
        self._storage.close()
