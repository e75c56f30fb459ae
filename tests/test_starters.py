"""Tests for starter discovery and filtering (starterkit.starters).

Covers:
- discover_starters: ordering, broken and missing metadata, missing root
- filter_starters: category, chapter, case-insensitive tags, no criteria
"""

from __future__ import annotations

from pathlib import Path

import pytest

from starterkit.starters import StarterEntry, discover_starters, filter_starters


pytestmark = pytest.mark.unit


class TestDiscoverStarters:
    def test_sorted_folders_only(self, starters_dir):
        slugs = [e.slug for e in discover_starters(starters_dir)]
        assert slugs == ["broken-starter", "fhe-counter", "no-metadata", "simple-voting"]

    def test_valid_metadata(self, starters_dir):
        entry = {e.slug: e for e in discover_starters(starters_dir)}["fhe-counter"]
        assert entry.has_metadata
        assert entry.error is None
        assert entry.label == "FHE Counter"
        assert entry.metadata["chapter"] == "basics"

    def test_broken_metadata(self, starters_dir):
        entry = {e.slug: e for e in discover_starters(starters_dir)}["broken-starter"]
        assert not entry.has_metadata
        assert entry.error.startswith("metadata.json:")

    def test_missing_metadata(self, starters_dir):
        entry = {e.slug: e for e in discover_starters(starters_dir)}["no-metadata"]
        assert entry.metadata is None
        assert entry.error is None
        assert entry.label == "no-metadata"

    def test_non_object_metadata(self, tmp_path: Path):
        folder = tmp_path / "listy"
        folder.mkdir()
        (folder / "metadata.json").write_text("[]", encoding="utf-8")
        entry = discover_starters(tmp_path)[0]
        assert entry.metadata is None
        assert "top level must be a JSON object" in entry.error

    def test_object_with_root_key_is_metadata(self, tmp_path: Path):
        folder = tmp_path / "rooted"
        folder.mkdir()
        (folder / "metadata.json").write_text('{"_root": "value"}', encoding="utf-8")
        entry = discover_starters(tmp_path)[0]
        assert entry.error is None
        assert entry.metadata == {"_root": "value"}

    def test_custom_metadata_file(self, tmp_path: Path):
        folder = tmp_path / "custom"
        folder.mkdir()
        (folder / "starter.json").write_text('{"label": "Custom"}', encoding="utf-8")
        assert discover_starters(tmp_path, "starter.json")[0].label == "Custom"

    def test_missing_root(self, tmp_path: Path):
        assert discover_starters(tmp_path / "nope") == []


class TestFilterStarters:
    def test_no_criteria_keeps_everything(self, starters_dir):
        entries = discover_starters(starters_dir)
        assert filter_starters(entries) == entries

    def test_category(self, starters_dir):
        kept = filter_starters(discover_starters(starters_dir), category="applied")
        assert [e.slug for e in kept] == ["simple-voting"]

    def test_chapter(self, starters_dir):
        kept = filter_starters(discover_starters(starters_dir), chapter="basics")
        assert [e.slug for e in kept] == ["fhe-counter"]

    def test_tag_case_insensitive(self, starters_dir):
        kept = filter_starters(discover_starters(starters_dir), tag="gaming")
        assert [e.slug for e in kept] == ["fhe-counter"]

    def test_combined_criteria(self, starters_dir):
        kept = filter_starters(discover_starters(starters_dir), category="fundamental", tag="Governance")
        assert kept == []

    def test_entries_without_metadata_dropped(self):
        entries = [StarterEntry(slug="x", path=Path("x"))]
        assert filter_starters(entries, category="fundamental") == []
