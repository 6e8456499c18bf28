"""
Tests for launchdex.core.catalog — CatalogStore lookups, loading, trimming.
"""

import json

import pytest

from launchdex.core.catalog import (
    CatalogStore, build_catalog, parse_entry, trim_cask, trim_casks,
)
from launchdex.core.models import CatalogEntry
from launchdex.exceptions import CatalogError


RAW_CASKS = [
    {
        "token": "visual-studio-code",
        "full_token": "visual-studio-code",
        "name": ["Microsoft Visual Studio Code", "VS Code"],
        "desc": "Open-source code editor",
        "homepage": "https://code.visualstudio.com/",
        "url": "https://update.code.visualstudio.com/latest/darwin/stable",
        "version": "1.90.0",
        "sha256": "abc123",
        "deprecated": False,
        "artifacts": [
            {"app": ["Visual Studio Code.app"]},
            {"binary": ["code"]},
            {"zap": [{"trash": "~/Library/Caches/vscode"}]},
        ],
    },
    {
        "token": "oldtool",
        "name": [],
        "deprecated": True,
    },
    {"name": ["No Token"]},
    "not-an-object",
]


class TestCatalogStoreLookups:
    """Name, token and filename indices are case-insensitive."""

    def test_lookup_by_any_name(self, catalog):
        assert catalog.lookup_by_name_or_token("VS CODE").token == "visual-studio-code"
        assert catalog.lookup_by_name_or_token("microsoft visual studio code").token == "visual-studio-code"

    def test_lookup_falls_back_to_token(self, catalog):
        assert catalog.lookup_by_name_or_token("ITERM2").token == "iterm2"
        assert catalog.lookup_by_name_or_token("visual-studio-code").token == "visual-studio-code"

    def test_lookup_by_token(self, catalog):
        assert catalog.lookup_by_token("Firefox").display_name == "Mozilla Firefox"
        assert catalog.lookup_by_token("Mozilla Firefox") is None

    def test_lookup_by_provided_filename(self, catalog):
        assert catalog.lookup_by_provided_filename("iterm.app").token == "iterm2"
        assert catalog.lookup_by_provided_filename("Safari.app") is None

    def test_last_entry_wins_on_collision(self):
        store = CatalogStore([
            CatalogEntry(token="a", full_token="a", names=("Same",)),
            CatalogEntry(token="b", full_token="b", names=("Same",)),
        ])
        assert store.lookup_by_name_or_token("same").token == "b"

    def test_len_iter_stats(self, catalog):
        assert len(catalog) == 4
        assert [e.token for e in catalog][0] == "visual-studio-code"
        stats = catalog.stats()
        assert stats["entries"] == 4
        assert stats["deprecated"] == 1
        assert stats["tokens_indexed"] == 4
        assert stats["program_files_indexed"] == 3


class TestCatalogEntry:

    def test_display_name_falls_back_to_token(self):
        assert CatalogEntry(token="warp", full_token="warp").display_name == "warp"

    def test_searchable_terms(self, catalog):
        entry = catalog.lookup_by_token("firefox")
        assert entry.searchable_terms == ("Mozilla Firefox", "firefox", "firefox", "Web browser")


class TestParseEntry:

    def test_parses_fields_and_app_artifacts(self):
        entry = parse_entry(RAW_CASKS[0])
        assert entry.token == "visual-studio-code"
        assert entry.names == ("Microsoft Visual Studio Code", "VS Code")
        assert entry.version == "1.90.0"
        assert entry.deprecated is False
        assert entry.app_filenames == ("Visual Studio Code.app",)

    def test_full_token_defaults_to_token(self):
        assert parse_entry({"token": "warp"}).full_token == "warp"

    def test_string_name_is_accepted(self):
        assert parse_entry({"token": "warp", "name": "Warp"}).names == ("Warp",)

    def test_rejects_malformed(self):
        assert parse_entry({"name": ["x"]}) is None
        assert parse_entry({"token": "   "}) is None
        assert parse_entry(["token"]) is None

    def test_only_literal_true_is_deprecated(self):
        assert parse_entry({"token": "a", "deprecated": "yes"}).deprecated is False
        assert parse_entry({"token": "a", "deprecated": True}).deprecated is True


class TestLoading:
    """from_document / from_file tolerate bad input unless strict."""

    def test_from_document_object(self):
        store = CatalogStore.from_document({"data": RAW_CASKS})
        assert [e.token for e in store] == ["visual-studio-code", "oldtool"]

    def test_from_document_list(self):
        assert len(CatalogStore.from_document(RAW_CASKS)) == 2

    def test_from_document_rejects_non_list(self):
        with pytest.raises(CatalogError):
            CatalogStore.from_document({"data": "nope"})

    def test_from_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"data": RAW_CASKS}), encoding="utf-8")
        store = CatalogStore.from_file(path)
        assert store.lookup_by_token("oldtool").deprecated is True

    def test_missing_file_is_empty(self, tmp_path):
        assert len(CatalogStore.from_file(tmp_path / "missing.json")) == 0

    def test_invalid_json_is_empty(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("{not json", encoding="utf-8")
        assert len(CatalogStore.from_file(path)) == 0

    def test_wrong_shape_is_empty(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"data": 42}), encoding="utf-8")
        assert len(CatalogStore.from_file(path)) == 0

    def test_strict_missing_raises(self, tmp_path):
        with pytest.raises(CatalogError, match="not found"):
            CatalogStore.from_file(tmp_path / "missing.json", strict=True)

    def test_strict_invalid_raises(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(CatalogError):
            CatalogStore.from_file(path, strict=True)


class TestTrimming:
    """trim_cask keeps the catalog fields and app artifacts only."""

    def test_trim_keeps_catalog_fields(self):
        trimmed = trim_cask(RAW_CASKS[0])
        assert trimmed == {
            "token": "visual-studio-code",
            "full_token": "visual-studio-code",
            "name": ["Microsoft Visual Studio Code", "VS Code"],
            "desc": "Open-source code editor",
            "homepage": "https://code.visualstudio.com/",
            "artifacts": [{"app": ["Visual Studio Code.app"]}],
        }

    def test_trim_name_falls_back_to_token(self):
        trimmed = trim_cask(RAW_CASKS[1])
        assert trimmed == {
            "token": "oldtool",
            "full_token": "oldtool",
            "name": ["oldtool"],
            "deprecated": True,
        }

    def test_trim_drops_tokenless(self):
        assert trim_cask(RAW_CASKS[2]) is None
        assert trim_cask("x") is None

    def test_trim_casks(self):
        assert [c["token"] for c in trim_casks(RAW_CASKS)] == ["visual-studio-code", "oldtool"]
        assert trim_casks({"not": "a list"}) == []

    def test_trim_casks_with_progress(self):
        assert len(trim_casks(RAW_CASKS, show_progress=True)) == 2


class TestBuildCatalog:

    def test_build_writes_loadable_catalog(self, tmp_path):
        source = tmp_path / "cask.json"
        dest = tmp_path / "out" / "catalog.json"
        source.write_text(json.dumps(RAW_CASKS), encoding="utf-8")

        assert build_catalog(source, dest) == 2
        document = json.loads(dest.read_text(encoding="utf-8"))
        assert list(document) == ["data"]

        store = CatalogStore.from_file(dest, strict=True)
        assert store.lookup_by_provided_filename("Visual Studio Code.app").token == "visual-studio-code"
        assert store.lookup_by_token("oldtool").names == ("oldtool",)

    def test_build_accepts_wrapped_dump(self, tmp_path):
        source = tmp_path / "cask.json"
        source.write_text(json.dumps({"data": RAW_CASKS}), encoding="utf-8")
        assert build_catalog(source, tmp_path / "catalog.json") == 2

    def test_build_rejects_bad_source(self, tmp_path):
        source = tmp_path / "cask.json"
        source.write_text(json.dumps({"casks": []}), encoding="utf-8")
        with pytest.raises(CatalogError):
            build_catalog(source, tmp_path / "catalog.json")

    def test_build_missing_source(self, tmp_path):
        with pytest.raises(CatalogError):
            build_catalog(tmp_path / "missing.json", tmp_path / "catalog.json")
