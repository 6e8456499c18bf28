"""
Tests for launchdex.cli.main — click commands via CliRunner.
"""

import json
import re

import pytest
from click.testing import CliRunner

from launchdex.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def base_args(tmp_path):
    return ["--data-dir", str(tmp_path / "data"), "--program-index", "none"]


@pytest.fixture
def cask_dump(tmp_path):
    path = tmp_path / "cask.json"
    path.write_text(json.dumps([
        {"token": "iterm2", "name": ["iTerm2"], "desc": "Terminal emulator",
         "artifacts": [{"app": ["iTerm.app"]}]},
        {"token": "oldtool", "deprecated": True},
        {"name": ["tokenless"]},
    ]), encoding="utf-8")
    return path


class TestSearchCommand:

    def test_no_results(self, runner, base_args):
        result = runner.invoke(cli, base_args + ["search", "zzz"])
        assert result.exit_code == 0
        assert "No results found." in result.output

    def test_url_json(self, runner, base_args):
        result = runner.invoke(cli, base_args + ["search", "example.com", "-f", "json"])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload[0]["kind"] == "url"
        assert payload[0]["url"] == "https://example.com"

    def test_catalog_results_with_explain(self, runner, base_args, cask_dump):
        assert runner.invoke(cli, base_args + ["catalog", "build", str(cask_dump), "--no-progress"]).exit_code == 0
        result = runner.invoke(cli, base_args + ["search", "iterm", "--explain"])
        assert result.exit_code == 0
        assert "iTerm2  [Catalog]  (score 900)" in result.output

    def test_invalid_max_results(self, runner, base_args):
        result = runner.invoke(cli, base_args + ["search", "x", "-n", "0"])
        assert result.exit_code == 1
        assert "--max-results must be positive" in result.output

    def test_invalid_env_config(self, runner, base_args, monkeypatch):
        monkeypatch.setenv("LAUNCHDEX_HISTORY_MAX", "0")
        result = runner.invoke(cli, base_args + ["search", "x"])
        assert result.exit_code == 1
        assert "history_max_entries" in result.output

    def test_unparseable_env_number(self, runner, base_args, monkeypatch):
        monkeypatch.setenv("LAUNCHDEX_PROVIDER_TIMEOUT", "soon")
        result = runner.invoke(cli, base_args + ["search", "x"])
        assert result.exit_code == 1
        assert "LAUNCHDEX_PROVIDER_TIMEOUT" in result.output


class TestHistoryCommands:

    def test_record_recent_complete_forget(self, runner, base_args):
        result = runner.invoke(cli, base_args + ["record", "safari", "--display", "Safari"])
        assert result.exit_code == 0
        assert "Recorded 'safari'" in result.output
        runner.invoke(cli, base_args + ["record", "firefox"])

        result = runner.invoke(cli, base_args + ["recent", "-f", "compact"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].startswith("history   firefox")
        assert lines[1].startswith("history   Safari")

        result = runner.invoke(cli, base_args + ["complete", "f"])
        assert result.output.splitlines() == ["firefox"]

        assert runner.invoke(cli, base_args + ["forget", "FIREFOX"]).exit_code == 0
        result = runner.invoke(cli, base_args + ["forget", "firefox"])
        assert result.exit_code == 1
        assert "No history entry" in result.output

    def test_empty_search_shows_recents(self, runner, base_args):
        runner.invoke(cli, base_args + ["record", "code"])
        result = runner.invoke(cli, base_args + ["search", "-f", "json"])
        payload = json.loads(result.output)
        assert [(p["command"], p["is_recent"]) for p in payload] == [("code", True)]

    def test_record_with_target(self, runner, base_args):
        result = runner.invoke(cli, base_args + [
            "record", "ex", "--target-kind", "url", "--target-key", "https://example.com",
        ])
        assert result.exit_code == 0
        payload = json.loads(runner.invoke(cli, base_args + ["recent", "-f", "json"]).output)
        assert payload[0]["target"] == {"kind": "url", "key": "https://example.com"}
        assert payload[0]["resolved_kind"] == "url"

    def test_record_target_requires_both(self, runner, base_args):
        result = runner.invoke(cli, base_args + ["record", "ex", "--target-kind", "url"])
        assert result.exit_code == 1
        assert "must be given together" in result.output

    def test_record_blank(self, runner, base_args):
        result = runner.invoke(cli, base_args + ["record", "   "])
        assert result.exit_code == 1
        assert "must not be blank" in result.output

    def test_recent_invalid_limit(self, runner, base_args):
        assert runner.invoke(cli, base_args + ["recent", "-n", "0"]).exit_code == 1


class TestCatalogCommands:

    def test_build_and_stats(self, runner, base_args, cask_dump, tmp_path):
        result = runner.invoke(cli, base_args + ["catalog", "build", str(cask_dump), "--no-progress"])
        assert result.exit_code == 0
        assert "Wrote 2 catalog entries" in result.output
        assert (tmp_path / "data" / "catalog.json").exists()

        result = runner.invoke(cli, base_args + ["catalog", "stats"])
        assert result.exit_code == 0
        assert "Deprecated" in result.output
        assert re.search(r"Entries\s+2\b", result.output)

    def test_build_to_explicit_dest(self, runner, base_args, cask_dump, tmp_path):
        dest = tmp_path / "elsewhere" / "catalog.json"
        result = runner.invoke(cli, base_args + ["catalog", "build", str(cask_dump), str(dest), "--no-progress"])
        assert result.exit_code == 0
        assert dest.exists()

    def test_catalog_option(self, runner, base_args, cask_dump, tmp_path):
        dest = tmp_path / "custom.json"
        runner.invoke(cli, base_args + ["catalog", "build", str(cask_dump), str(dest), "--no-progress"])
        result = runner.invoke(cli, base_args + ["--catalog", str(dest), "search", "iterm", "-f", "compact"])
        assert result.exit_code == 0
        assert result.output.startswith("catalog   iTerm2")

    def test_build_rejects_bad_dump(self, runner, base_args, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text('{"casks": []}', encoding="utf-8")
        result = runner.invoke(cli, base_args + ["catalog", "build", str(bad), "--no-progress"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_stats_without_catalog(self, runner, base_args):
        result = runner.invoke(cli, base_args + ["catalog", "stats"])
        assert result.exit_code == 1
        assert "launchdex catalog build" in result.output
