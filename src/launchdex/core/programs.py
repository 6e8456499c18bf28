"""
Launchdex Program Index Module

Backends that answer "which installed programs have a display name
matching this ``*``-glob?".  The installed-programs provider only depends
on :class:`ProgramIndex`; concrete backends are picked by
:func:`create_program_index` from the config.

Backends:

- :class:`StaticProgramIndex`: fixed records (embedding and tests).
- :class:`BundleScanProgramIndex`: walks application directories for
  ``.app`` bundles (``Contents/Info.plist``) and freedesktop ``.desktop``
  files, caching the scan for a configurable TTL.
- :class:`MdfindProgramIndex`: macOS metadata search via ``mdfind``.
"""

import configparser
import logging
import os
import plistlib
import shutil
import subprocess
import sys
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence
from xml.parsers.expat import ExpatError

from launchdex.core.config import LaunchdexConfig
from launchdex.core.fuzzy import wildcard_match
from launchdex.exceptions import ConfigError, ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgramRecord:
    """One hit from a program index."""
    name: str
    path: Optional[str] = None
    bundle_id: Optional[str] = None
    description: Optional[str] = None


class ProgramIndex(ABC):
    """Wildcard name lookup over installed programs."""

    name = "base"

    @abstractmethod
    def query(self, pattern: str, limit: int) -> List[ProgramRecord]:
        """
        Return up to *limit* records whose display name matches *pattern*
        (case-insensitive, ``*`` is the only wildcard).

        Raises :class:`ProviderError` when the backend itself fails.
        """

    def close(self) -> None:
        pass


# =============================================================================
# Static
# =============================================================================

class StaticProgramIndex(ProgramIndex):
    name = "static"

    def __init__(self, records: Iterable[ProgramRecord] = ()):
        self._records = tuple(records)

    def query(self, pattern: str, limit: int) -> List[ProgramRecord]:
        hits = []
        for record in self._records:
            if wildcard_match(pattern, record.name):
                hits.append(record)
                if len(hits) >= limit:
                    break
        return hits


# =============================================================================
# Bundle / desktop-file scanner
# =============================================================================

def read_bundle_info(bundle_path: str) -> Dict[str, str]:
    """
    Read ``Contents/Info.plist`` of an ``.app`` bundle.

    Returns ``{}`` when the plist is missing or unreadable.
    """
    plist_path = os.path.join(bundle_path, "Contents", "Info.plist")
    try:
        with open(plist_path, "rb") as f:
            info = plistlib.load(f)
    except (OSError, ValueError, ExpatError):
        return {}
    return info if isinstance(info, dict) else {}


def record_from_bundle(bundle_path: str) -> ProgramRecord:
    info = read_bundle_info(bundle_path)
    stem = os.path.splitext(os.path.basename(bundle_path.rstrip("/")))[0]
    name = info.get("CFBundleDisplayName") or info.get("CFBundleName") or stem
    bundle_id = info.get("CFBundleIdentifier")
    return ProgramRecord(
        name=name if isinstance(name, str) else stem,
        path=bundle_path,
        bundle_id=bundle_id if isinstance(bundle_id, str) else None,
        description=None,
    )


def record_from_desktop_file(path: str) -> Optional[ProgramRecord]:
    """Parse a freedesktop ``.desktop`` entry; hidden or nameless entries yield None."""
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            parser.read_file(f)
    except (OSError, configparser.Error):
        return None

    if not parser.has_section("Desktop Entry"):
        return None
    entry = parser["Desktop Entry"]
    if entry.get("Type", "Application") != "Application":
        return None
    if entry.get("Hidden", "false").lower() == "true" or entry.get("NoDisplay", "false").lower() == "true":
        return None
    name = (entry.get("Name") or "").strip()
    if not name:
        return None
    comment = (entry.get("Comment") or "").strip() or None
    return ProgramRecord(
        name=name,
        path=path,
        bundle_id=os.path.splitext(os.path.basename(path))[0],
        description=comment,
    )


class BundleScanProgramIndex(ProgramIndex):
    """
    Filesystem scanner over application directories.

    Finds ``.app`` bundles, including helper bundles nested inside other
    bundles (the installed-programs provider filters those), and
    ``.desktop`` files.  The full scan is cached for *ttl_seconds*.
    """

    name = "scan"

    # Bundle internals that never contain launchable programs
    _PRUNED_DIRS = frozenset({"Resources", "_CodeSignature", "MacOS", "Headers", "Modules"})

    def __init__(self, directories: Sequence[str], ttl_seconds: float = 60.0, max_depth: int = 6):
        self._directories = tuple(directories)
        self._ttl = ttl_seconds
        self._max_depth = max_depth
        self._lock = threading.Lock()
        self._records: Optional[List[ProgramRecord]] = None
        self._scanned_at = 0.0

    def _scan_directory(self, root: str) -> List[ProgramRecord]:
        records: List[ProgramRecord] = []
        root_depth = root.rstrip(os.sep).count(os.sep)
        for dirpath, dirnames, filenames in os.walk(root):
            depth = dirpath.rstrip(os.sep).count(os.sep) - root_depth
            kept = []
            for d in dirnames:
                if d in self._PRUNED_DIRS or d.startswith("."):
                    continue
                if d.endswith(".app"):
                    records.append(record_from_bundle(os.path.join(dirpath, d)))
                kept.append(d)
            # Prune IN-PLACE so os.walk stops descending past max_depth
            dirnames[:] = kept if depth < self._max_depth else []

            for fname in filenames:
                if fname.endswith(".desktop"):
                    record = record_from_desktop_file(os.path.join(dirpath, fname))
                    if record is not None:
                        records.append(record)
        return records

    def _all_records(self) -> List[ProgramRecord]:
        with self._lock:
            now = time.monotonic()
            if self._records is not None and now - self._scanned_at < self._ttl:
                return self._records

            records: List[ProgramRecord] = []
            for directory in self._directories:
                if os.path.isdir(directory):
                    records.extend(self._scan_directory(directory))
            records.sort(key=lambda r: (r.name.lower(), r.path or ""))
            self._records = records
            self._scanned_at = now
            logger.debug(f"Scanned {len(records)} programs in {len(self._directories)} directories")
            return records

    def invalidate(self) -> None:
        with self._lock:
            self._records = None

    def query(self, pattern: str, limit: int) -> List[ProgramRecord]:
        hits = []
        for record in self._all_records():
            if wildcard_match(pattern, record.name):
                hits.append(record)
                if len(hits) >= limit:
                    break
        return hits


# =============================================================================
# mdfind (macOS metadata index)
# =============================================================================

class MdfindProgramIndex(ProgramIndex):
    """Query the macOS metadata index for applications by display name."""

    name = "mdfind"

    def __init__(self, executable: str = "mdfind", timeout_seconds: float = 5.0):
        self._executable = executable
        self._timeout = timeout_seconds

    @staticmethod
    def available(executable: str = "mdfind") -> bool:
        return sys.platform == "darwin" and shutil.which(executable) is not None

    @staticmethod
    def build_query(pattern: str) -> str:
        escaped = pattern.replace("\\", "\\\\").replace('"', '\\"')
        return f'kMDItemKind == "Application" && kMDItemDisplayName == "{escaped}"cd'

    def query(self, pattern: str, limit: int) -> List[ProgramRecord]:
        try:
            proc = subprocess.run(
                [self._executable, self.build_query(pattern)],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise ProviderError(f"mdfind failed: {e}") from e
        if proc.returncode != 0:
            raise ProviderError(f"mdfind exited with {proc.returncode}: {proc.stderr.strip()}")

        records = []
        for line in proc.stdout.splitlines():
            path = line.strip()
            if not path:
                continue
            records.append(record_from_bundle(path))
            if len(records) >= limit:
                break
        return records


# =============================================================================
# Factory
# =============================================================================

def create_program_index(config: LaunchdexConfig) -> ProgramIndex:
    """Build the program index backend named by ``config.program_index``."""
    backend = config.program_index
    home = str(config.get_home_dir())

    def _expand(directory: str) -> str:
        if directory == "~" or directory.startswith("~/"):
            return home + directory[1:]
        return directory

    if backend == "none":
        return StaticProgramIndex()
    if backend == "mdfind" or (backend == "auto" and MdfindProgramIndex.available()):
        return MdfindProgramIndex()
    if backend in ("scan", "auto"):
        return BundleScanProgramIndex(
            [_expand(d) for d in config.application_dirs],
            ttl_seconds=config.program_scan_ttl_seconds,
        )
    raise ConfigError(f"Unknown program index '{backend}'")
