"""
Launchdex Core — models, scoring, stores, providers and the conductor.

Re-exports the primary classes for convenience::

    from launchdex.core import CatalogStore, HistoryStore, SearchConductor
"""

from launchdex.core.catalog import CatalogStore
from launchdex.core.conductor import ScoreRecorder, SearchConductor, rerank
from launchdex.core.config import LaunchdexConfig
from launchdex.core.formatter import ResultFormatter
from launchdex.core.history import (
    HistoryStore,
    MemoryHistoryStorage,
    SQLiteHistoryStorage,
    fuzzy_score,
)
from launchdex.core.models import (
    ProviderResult,
    Query,
    SearchSource,
    display_name,
    identity_key,
    primary_action,
    subtitle,
)
from launchdex.core.programs import (
    BundleScanProgramIndex,
    MdfindProgramIndex,
    ProgramRecord,
    StaticProgramIndex,
    create_program_index,
)
from launchdex.core.providers import (
    CatalogProvider,
    HistoryProvider,
    InstalledProgramsProvider,
    TargetResolver,
)

__all__ = [
    "CatalogStore",
    "ScoreRecorder",
    "SearchConductor",
    "rerank",
    "LaunchdexConfig",
    "ResultFormatter",
    "HistoryStore",
    "MemoryHistoryStorage",
    "SQLiteHistoryStorage",
    "fuzzy_score",
    "ProviderResult",
    "Query",
    "SearchSource",
    "display_name",
    "identity_key",
    "primary_action",
    "subtitle",
    "BundleScanProgramIndex",
    "MdfindProgramIndex",
    "ProgramRecord",
    "StaticProgramIndex",
    "create_program_index",
    "CatalogProvider",
    "HistoryProvider",
    "InstalledProgramsProvider",
    "TargetResolver",
]
