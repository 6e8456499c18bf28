"""
Tests for launchdex.core.formatter — console, JSON and compact output.
"""

import json

from launchdex.core.formatter import ResultFormatter
from launchdex.core.models import (
    CatalogEntry, FileSystemEntry, HistoryCommand, InstalledProgram, UrlTarget,
)

RESULTS = [
    InstalledProgram(name="Safari", path="/Applications/Safari.app", bundle_id="com.apple.Safari"),
    HistoryCommand(command="ff", display="Firefox", is_recent=True),
    CatalogEntry(token="iterm2", full_token="iterm2", names=("iTerm2",), description="Terminal\x07 emulator"),
    UrlTarget(url="https://example.com"),
    FileSystemEntry(path="/tmp/docs", is_directory=True),
]


class TestConsole:

    def test_empty(self):
        assert "No results found." in ResultFormatter.format_console([])

    def test_rows(self):
        out = ResultFormatter.format_console(RESULTS, scores={"com.apple.safari": 1000}, elapsed_time=0.01)
        assert "5 results in 0.0100 seconds" in out
        assert "#1   Safari  [App]  (score 1000)" in out
        assert "Firefox  [Recent]" in out
        assert "iTerm2  [Catalog]" in out
        assert "docs/  [File]" in out
        assert "↵ Homepage" in out
        assert "↵ Activate" in out
        assert "Opens in default browser" in out

    def test_single_result_header(self):
        out = ResultFormatter.format_console(RESULTS[:1], title="RECENT")
        assert "RECENT — 1 result" in out
        assert "results" not in out


class TestJson:

    def test_payload(self):
        payload = json.loads(ResultFormatter.format_json(RESULTS, scores={"com.apple.safari": 1000}))
        assert [p["rank"] for p in payload] == [1, 2, 3, 4, 5]
        assert [p["kind"] for p in payload] == ["installed", "history", "catalog", "url", "file"]
        assert payload[0]["score"] == 1000
        assert payload[1]["score"] is None
        assert payload[2]["subtitle"] == "Terminal emulator"

    def test_without_scores(self):
        payload = json.loads(ResultFormatter.format_json(RESULTS[:1]))
        assert "score" not in payload[0]

    def test_empty(self):
        assert json.loads(ResultFormatter.format_json([])) == []


class TestCompact:

    def test_lines(self):
        out = ResultFormatter.format_compact(RESULTS, home="/Users/alice")
        lines = out.splitlines()
        assert len(lines) == 5
        assert lines[0].startswith("installed Safari")
        assert lines[3] == f"{'url':<9} https://example.com  Opens in default browser"

    def test_empty(self):
        assert ResultFormatter.format_compact([]) == "No results found."
