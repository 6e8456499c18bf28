"""
Tests for launchdex.client — Launchdex facade, sync and async APIs.
"""

import threading

import pytest

from launchdex import Launchdex, LaunchdexConfig, health
from launchdex.core.conductor import ScoreRecorder
from launchdex.core.history import MemoryHistoryStorage
from launchdex.core.models import (
    HistoryCommand, InstalledProgram, TargetRef, UrlTarget,
)
from launchdex.core.programs import StaticProgramIndex
from launchdex.exceptions import ConfigError, SearchError


# =============================================================================
# Construction
# =============================================================================

class TestConstruction:

    def test_explicit_config(self, launcher, config):
        assert launcher.config is config
        assert len(launcher.catalog) == 4
        assert isinstance(launcher.history.entries(), list)

    def test_kwargs_overlay_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LAUNCHDEX_HISTORY_MAX", "42")
        with Launchdex(data_dir=str(tmp_path), program_index="none") as client:
            assert client.config.data_dir == str(tmp_path)
            assert client.config.program_index == "none"
            assert client.config.history_max_entries == 42

    def test_invalid_config_raises(self, tmp_path):
        with pytest.raises(ConfigError):
            Launchdex(config=LaunchdexConfig(data_dir=str(tmp_path), program_index="bogus"))

    def test_missing_catalog_is_empty(self, config):
        with Launchdex(config=config) as client:
            assert len(client.catalog) == 0
            assert client.stats()["program_index"] == "static"

    def test_default_history_is_sqlite(self, config):
        with Launchdex(config=config) as client:
            client.record_success("safari")
        assert config.get_history_path().exists()

        with Launchdex(config=config) as reopened:
            assert [e.command for e in reopened.history.entries()] == ["safari"]


# =============================================================================
# Search
# =============================================================================

class TestSearch:

    def test_search_ranks_installed(self, launcher):
        results = launcher.search("code")
        assert [type(r) for r in results] == [InstalledProgram]
        assert results[0].name == "Visual Studio Code"
        assert launcher.last_scores == {"com.microsoft.vscode": 950}

    def test_history_boosts_installed_result(self, launcher):
        first = launcher.search("code")[0]
        launcher.record_success("code", target=first)

        results = launcher.search("code")
        assert [type(r) for r in results] == [InstalledProgram]
        assert launcher.last_scores == {"com.microsoft.vscode": 1950}

    def test_catalog_result_for_uninstalled_package(self, launcher):
        results = launcher.search("iterm")
        assert [r.token for r in results] == ["iterm2"]

    def test_max_results(self, launcher):
        for cmd in ("tool1", "tool2", "tool3"):
            launcher.record_success(cmd)
        assert len(launcher.search("tool", max_results=2)) == 2

    def test_invalid_max_results(self, launcher):
        with pytest.raises(SearchError):
            launcher.search("code", max_results=0)

    def test_empty_query_returns_recents(self, launcher):
        launcher.record_success("safari")
        launcher.record_success("code")
        results = launcher.search("")
        assert [r.command for r in results] == ["code", "safari"]
        assert all(isinstance(r, HistoryCommand) and r.is_recent for r in results)

    def test_url_query(self, launcher):
        assert launcher.search("example.com")[0] == UrlTarget(url="https://example.com")

    def test_search_async_callback(self, launcher):
        done = threading.Event()
        delivered = []

        def callback(results):
            delivered.append(results)
            done.set()

        generation = launcher.search_async("safari", callback)
        assert done.wait(5.0)
        assert generation == launcher.conductor.current_generation
        assert [r.name for r in delivered[0]] == ["Safari"]

    def test_custom_observer(self, config, catalog, program_index):
        seen = []
        with Launchdex(config=config, catalog=catalog, history_storage=MemoryHistoryStorage(),
                       program_backend=program_index, score_observer=seen.append) as client:
            client.search("safari")
            assert seen == [{"com.apple.safari": 1000}]
            assert client.last_scores == {}


# =============================================================================
# History operations
# =============================================================================

class TestHistoryOperations:

    def test_record_with_result_target(self, launcher):
        entry = launcher.record_success("example.com", target=UrlTarget(url="https://example.com"))
        assert entry.target == TargetRef(kind="url", key="https://example.com")
        assert entry.display == "https://example.com"

    def test_record_with_history_result_uses_its_target(self, launcher):
        ref = TargetRef(kind="catalog", key="firefox")
        launcher.record_success("ff", target=ref)
        recent = launcher.recent(1)[0]
        entry = launcher.record_success("firefox", target=recent)
        assert entry.target == ref
        assert entry.display == "Mozilla Firefox"

    def test_explicit_display_wins(self, launcher):
        entry = launcher.record_success("ff", display="Fox", target=launcher.catalog.lookup_by_token("firefox"))
        assert entry.display == "Fox"
        assert entry.target == TargetRef(kind="catalog", key="firefox")

    def test_blank_command(self, launcher):
        assert launcher.record_success("  ") is None

    def test_remove_and_complete(self, launcher):
        launcher.record_success("firefox")
        launcher.record_success("fish")
        assert launcher.complete("fi") == ["fish", "firefox"]
        assert launcher.best_completion("fir") == "firefox"
        assert launcher.remove_history_entry("FISH") is True
        assert launcher.remove_history_entry("fish") is False
        assert launcher.complete("fi") == ["firefox"]

    def test_recent(self, launcher):
        launcher.record_success("a")
        launcher.record_success("b")
        assert [r.command for r in launcher.recent()] == ["b", "a"]
        with pytest.raises(SearchError):
            launcher.recent(0)


# =============================================================================
# Stats & health
# =============================================================================

class TestStatsAndHealth:

    def test_stats(self, launcher, config):
        launcher.record_success("code")
        launcher.search_async("code", lambda results: None)
        stats = launcher.stats()
        assert stats["catalog"]["entries"] == 4
        assert stats["history_entries"] == 1
        assert stats["history_path"] == str(config.get_history_path())
        assert stats["catalog_path"] == str(config.get_catalog_path())
        assert stats["program_index"] == "static"
        assert stats["searches"] >= 1

    def test_health(self, launcher):
        info = launcher.health()
        assert info["version"] == "1.0.0"
        assert info["catalog_entries"] == 4
        assert info["history_entries"] == 0

    def test_module_health(self, config):
        info = health(config)
        assert info["version"] == "1.0.0"
        assert info["program_index"] == "none"
        assert info["catalog_path"].endswith("catalog.json")


# =============================================================================
# Async API
# =============================================================================

class TestAsyncAPI:

    @pytest.mark.asyncio
    async def test_asearch(self, launcher):
        results = await launcher.asearch("safari")
        assert [r.name for r in results] == ["Safari"]

    @pytest.mark.asyncio
    async def test_arecord_success_and_astats(self, launcher):
        entry = await launcher.arecord_success("safari", display="Safari")
        assert entry.command == "safari"
        stats = await launcher.astats()
        assert stats["history_entries"] == 1

    @pytest.mark.asyncio
    async def test_asearch_raises_same_errors(self, launcher):
        with pytest.raises(SearchError):
            await launcher.asearch("x", max_results=-1)


class TestLifecycle:

    def test_context_manager_closes(self, config, catalog):
        with Launchdex(config=config, catalog=catalog,
                       program_backend=StaticProgramIndex()) as client:
            client.record_success("code")
        client.close()

    def test_score_recorder_is_default(self, launcher):
        launcher.search("safari")
        assert launcher.last_scores == {"com.apple.safari": 1000}
        assert isinstance(launcher._observer, ScoreRecorder)
