"""
Launchdex Configuration Module

Centralized configuration for the launcher search engine: where the
history database and package catalog live, which program index backend to
query, and the tuning knobs of the cross-source ranking.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

PROGRAM_INDEX_BACKENDS = ("auto", "mdfind", "scan", "none")


def _default_application_dirs() -> tuple:
    return (
        "/Applications",
        "/System/Applications",
        "~/Applications",
        "/usr/share/applications",
        "~/.local/share/applications",
    )


@dataclass
class LaunchdexConfig:
    """
    Instance-based configuration for Launchdex.

    Each ``LaunchdexConfig`` is self-contained and passed explicitly to the
    stores, providers and conductor, so several independent launchers (or
    test fixtures) can coexist in one process.

    Create from environment variables::

        config = LaunchdexConfig.from_env()

    Or with explicit values::

        config = LaunchdexConfig(data_dir="/tmp/launchdex", program_index="none")
    """

    # ── Storage ───────────────────────────────────────────────────
    data_dir: str = "~/.launchdex"
    history_db_name: str = "history.db"
    catalog_path: Optional[str] = None
    """Offline catalog JSON. Defaults to ``<data_dir>/catalog.json``."""

    # ── History ───────────────────────────────────────────────────
    history_max_entries: int = 200
    recent_history_limit: int = 8
    history_match_limit: int = 8
    history_base_score: int = 200
    history_recency_step: int = 10
    history_exact_floor: int = 1000
    history_prune_window: int = 120

    # ── Catalog ───────────────────────────────────────────────────
    deprecation_penalty: int = 200

    # ── Installed programs ────────────────────────────────────────
    program_index: str = "auto"
    application_dirs: tuple = field(default_factory=_default_application_dirs)
    program_scan_ttl_seconds: float = 60.0
    installed_result_limit: int = 300
    system_match_min_query_length: int = 5
    home_dir: Optional[str] = None
    """Home directory used for ``~/Library`` filtering and ``~`` paths."""

    # ── Conductor ─────────────────────────────────────────────────
    provider_timeout_seconds: Optional[float] = 5.0
    max_provider_workers: int = 6
    max_directory_entries: int = 200
    max_search_results: int = 50

    # ── Logging ───────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ── Factory ───────────────────────────────────────────────────

    @classmethod
    def from_env(cls) -> "LaunchdexConfig":
        """
        Build a config snapshot from current environment variables.

        Raises :class:`~launchdex.exceptions.ConfigError` when a numeric
        variable does not parse.
        """
        from launchdex.exceptions import ConfigError

        timeout_raw = os.getenv("LAUNCHDEX_PROVIDER_TIMEOUT", "5.0").strip().lower()
        history_raw = os.getenv("LAUNCHDEX_HISTORY_MAX", "200").strip()
        try:
            timeout = None if timeout_raw in ("", "none", "0", "off") else float(timeout_raw)
        except ValueError:
            raise ConfigError(
                f"LAUNCHDEX_PROVIDER_TIMEOUT must be a number of seconds or 'off', got '{timeout_raw}'"
            ) from None
        try:
            history_max = int(history_raw)
        except ValueError:
            raise ConfigError(f"LAUNCHDEX_HISTORY_MAX must be an integer, got '{history_raw}'") from None
        return cls(
            data_dir=os.getenv("LAUNCHDEX_DATA_DIR", "~/.launchdex"),
            catalog_path=os.getenv("LAUNCHDEX_CATALOG") or None,
            program_index=os.getenv("LAUNCHDEX_PROGRAM_INDEX", "auto").lower(),
            provider_timeout_seconds=timeout,
            history_max_entries=history_max,
            log_level=os.getenv("LAUNCHDEX_LOG_LEVEL", "INFO"),
        )

    # ── Validation & Accessors ────────────────────────────────────

    def validate(self) -> bool:
        """
        Check that limits are positive and the program index backend is known.

        Raises :class:`~launchdex.exceptions.ConfigError` on failure.
        """
        from launchdex.exceptions import ConfigError

        if self.program_index not in PROGRAM_INDEX_BACKENDS:
            raise ConfigError(
                f"Unknown program index '{self.program_index}'. "
                f"Supported: {', '.join(PROGRAM_INDEX_BACKENDS)}.\n"
                "  Set via: export LAUNCHDEX_PROGRAM_INDEX=auto"
            )

        positive = {
            "history_max_entries": self.history_max_entries,
            "recent_history_limit": self.recent_history_limit,
            "history_match_limit": self.history_match_limit,
            "installed_result_limit": self.installed_result_limit,
            "max_provider_workers": self.max_provider_workers,
            "max_directory_entries": self.max_directory_entries,
            "max_search_results": self.max_search_results,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ConfigError(f"{name} must be positive (got {value}).")

        if self.deprecation_penalty < 0 or self.history_prune_window < 0:
            raise ConfigError("deprecation_penalty and history_prune_window must not be negative.")

        if self.provider_timeout_seconds is not None and self.provider_timeout_seconds <= 0:
            raise ConfigError(
                "provider_timeout_seconds must be positive, or None to wait indefinitely."
            )
        return True

    def get_data_dir(self) -> Path:
        """Return the expanded data directory (not created)."""
        return Path(self.data_dir).expanduser()

    def get_history_path(self) -> Path:
        """Get the path to the history database."""
        return self.get_data_dir() / self.history_db_name

    def get_catalog_path(self) -> Path:
        """Get the path to the offline catalog JSON document."""
        if self.catalog_path:
            return Path(self.catalog_path).expanduser()
        return self.get_data_dir() / "catalog.json"

    def get_home_dir(self) -> Path:
        """Home directory used for path expansion and user-library filtering."""
        return Path(self.home_dir).expanduser() if self.home_dir else Path.home()
