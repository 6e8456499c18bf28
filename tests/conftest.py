"""
Shared fixtures for the Launchdex test suite.
"""

import sys
import warnings
from pathlib import Path

import pytest

# Filter deprecation warnings from pytest-asyncio; we cannot fix the library.
warnings.filterwarnings(
    "ignore",
    category=DeprecationWarning,
    module="pytest_asyncio",
)

# Ensure the src/ directory is on the import path so that
# launchdex.core.* can be imported without installing the package.
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_ROOT))

from launchdex.core.catalog import CatalogStore  # noqa: E402
from launchdex.core.config import LaunchdexConfig  # noqa: E402
from launchdex.core.history import HistoryStore, MemoryHistoryStorage  # noqa: E402
from launchdex.core.models import CatalogEntry  # noqa: E402
from launchdex.core.programs import ProgramRecord, StaticProgramIndex  # noqa: E402


# =============================================================================
# Environment isolation
# =============================================================================

@pytest.fixture(autouse=True)
def _clean_launchdex_env(monkeypatch):
    """Keep the developer's LAUNCHDEX_* variables out of every test."""
    for name in (
        "LAUNCHDEX_DATA_DIR", "LAUNCHDEX_CATALOG", "LAUNCHDEX_PROGRAM_INDEX",
        "LAUNCHDEX_PROVIDER_TIMEOUT", "LAUNCHDEX_HISTORY_MAX", "LAUNCHDEX_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Fixtures: configuration
# =============================================================================

@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def config(tmp_path: Path, home_dir: Path) -> LaunchdexConfig:
    """Config rooted in a temp directory with no OS program index."""
    return LaunchdexConfig(
        data_dir=str(tmp_path / "data"),
        program_index="none",
        home_dir=str(home_dir),
        provider_timeout_seconds=5.0,
    )


# =============================================================================
# Fixtures: catalog, programs, history
# =============================================================================

@pytest.fixture
def catalog_entries():
    return [
        CatalogEntry(
            token="visual-studio-code",
            full_token="homebrew/cask/visual-studio-code",
            names=("Microsoft Visual Studio Code", "VS Code"),
            description="Open-source code editor",
            homepage="https://code.visualstudio.com/",
            app_filenames=("Visual Studio Code.app",),
        ),
        CatalogEntry(
            token="firefox",
            full_token="firefox",
            names=("Mozilla Firefox",),
            description="Web browser",
            homepage="https://www.mozilla.org/firefox/",
            app_filenames=("Firefox.app",),
        ),
        CatalogEntry(
            token="iterm2",
            full_token="iterm2",
            names=("iTerm2",),
            description="Terminal emulator as alternative to Apple's Terminal app",
            homepage="https://iterm2.com/",
            app_filenames=("iTerm.app",),
        ),
        CatalogEntry(
            token="oldtool",
            full_token="oldtool",
            names=("OldTool",),
            description="Legacy utility",
            homepage="https://oldtool.example.com/",
            deprecated=True,
        ),
    ]


@pytest.fixture
def catalog(catalog_entries) -> CatalogStore:
    return CatalogStore(catalog_entries)


@pytest.fixture
def program_records():
    return [
        ProgramRecord("Visual Studio Code", "/Applications/Visual Studio Code.app", "com.microsoft.VSCode"),
        ProgramRecord("Safari", "/Applications/Safari.app", "com.apple.Safari", "Web browser by Apple"),
        ProgramRecord("Calculator", "/System/Applications/Calculator.app", "com.apple.calculator"),
        ProgramRecord(
            "Code Helper",
            "/Applications/Visual Studio Code.app/Contents/Frameworks/Code Helper.app",
            "com.microsoft.VSCode.helper",
        ),
        ProgramRecord("Firefox", "/Applications/Firefox.app", "org.mozilla.firefox"),
    ]


@pytest.fixture
def program_index(program_records) -> StaticProgramIndex:
    return StaticProgramIndex(program_records)


@pytest.fixture
def history() -> HistoryStore:
    return HistoryStore(MemoryHistoryStorage(), max_entries=200)


@pytest.fixture
def launcher(config, catalog, program_index):
    """Launchdex facade wired to in-memory collaborators."""
    from launchdex.client import Launchdex

    client = Launchdex(
        config=config,
        catalog=catalog,
        history_storage=MemoryHistoryStorage(),
        program_backend=program_index,
    )
    yield client
    client.close()
