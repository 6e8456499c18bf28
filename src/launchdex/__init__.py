"""
Launchdex — search and ranking engine for a desktop application launcher.

Given whatever the user typed, Launchdex gathers candidates from installed
programs, an offline package catalog, command history and URL/path
detection, ranks them into one list, and only ever delivers the results of
the latest keystroke.

Quick start (programmatic API)::

    from launchdex import Launchdex

    launcher = Launchdex()                       # reads env vars
    results = launcher.search("visual studio")   # ranked results
    launcher.record_success("visual studio", target=results[0])

Quick start (CLI)::

    launchdex search "visual studio"
    launchdex recent

Configuration override::

    from launchdex import Launchdex, LaunchdexConfig

    config = LaunchdexConfig(data_dir="/tmp/launchdex", program_index="scan")
    launcher = Launchdex(config=config)
"""

__version__ = "1.0.0"

# Primary public API: the Launchdex facade
from launchdex.client import Launchdex

# Configuration
from launchdex.core.config import LaunchdexConfig

# Core data types that callers interact with
from launchdex.core.models import (
    CatalogEntry,
    FileSystemEntry,
    HistoryCommand,
    InstalledProgram,
    Query,
    SearchResult,
    TargetRef,
    UrlTarget,
)

# Exception hierarchy
from launchdex.exceptions import (
    CatalogError,
    ConfigError,
    HistoryError,
    LaunchdexError,
    ProviderError,
    SearchError,
)


def health(config: LaunchdexConfig | None = None) -> dict:
    """
    Return a small status dict for agents or health checks (no I/O).

    When *config* is None, uses :meth:`LaunchdexConfig.from_env()` for the snapshot.
    """
    cfg = config or LaunchdexConfig.from_env()
    return {
        "version": __version__,
        "program_index": cfg.program_index,
        "data_dir": str(cfg.get_data_dir()),
        "catalog_path": str(cfg.get_catalog_path()),
    }


__all__ = [
    "__version__",
    # Facade
    "Launchdex",
    # Config
    "LaunchdexConfig",
    # Data types
    "Query",
    "SearchResult",
    "InstalledProgram",
    "CatalogEntry",
    "HistoryCommand",
    "UrlTarget",
    "FileSystemEntry",
    "TargetRef",
    # Exceptions
    "LaunchdexError",
    "ConfigError",
    "CatalogError",
    "HistoryError",
    "ProviderError",
    "SearchError",
    # Status
    "health",
]
