"""Tests for the author group resolver (starterkit.natspec.authors).

Covers:
- Inline "Name <email> (url)" parsing
- One record per @author anchor, in order
- Dependent tags attaching to the most recent group only
- Dependent tags before any anchor being discarded with a warning
"""

from __future__ import annotations

import pytest

from starterkit.natspec.authors import AuthorGroupResolver, parse_author_text, resolve_authors
from starterkit.natspec.models import Tag, WarningKind


pytestmark = pytest.mark.unit


def _tags(*pairs: tuple[str, str]) -> list[Tag]:
    return [Tag(name=name, raw_value=value) for name, value in pairs]


class TestParseAuthorText:
    def test_name_only(self):
        record = parse_author_text("Alice")
        assert (record.name, record.email, record.url) == ("Alice", None, None)

    def test_inline_email(self):
        record = parse_author_text("Alice <alice@example.com>")
        assert record.name == "Alice"
        assert record.email == "alice@example.com"

    def test_inline_email_and_url(self):
        record = parse_author_text("Alice Example <a@x.io> (https://a.dev)")
        assert record.name == "Alice Example"
        assert record.email == "a@x.io"
        assert record.url == "https://a.dev"


class TestAuthorGrouping:
    def test_two_authors_dependents_attach_to_nearest(self):
        records, warnings = resolve_authors(_tags(
            ("author", "Alice"),
            ("custom:author-email", "alice@example.com"),
            ("custom:author-url", "https://alice.dev"),
            ("author", "Bob"),
            ("custom:author-email", "bob@example.com"),
        ))
        assert len(records) == 2
        assert records[0].email == "alice@example.com"
        assert records[0].url == "https://alice.dev"
        assert records[1].email == "bob@example.com"
        assert records[1].url is None
        assert warnings == []

    def test_anchor_without_dependents(self):
        records, _ = resolve_authors(_tags(("author", "Alice"), ("author", "Bob")))
        assert [r.name for r in records] == ["Alice", "Bob"]
        assert all(r.email is None for r in records)

    def test_last_dependent_wins_within_group(self):
        records, _ = resolve_authors(_tags(
            ("author", "Alice <old@example.com>"),
            ("custom:author-email", "mid@example.com"),
            ("custom:author-email", "new@example.com"),
        ))
        assert records[0].email == "new@example.com"

    def test_dependent_before_anchor_is_discarded(self):
        records, warnings = resolve_authors(_tags(
            ("custom:author-email", "orphan@example.com"),
            ("author", "Alice"),
        ))
        assert len(records) == 1
        assert records[0].email is None
        assert len(warnings) == 1
        assert warnings[0].kind == WarningKind.DISCARDED_TAG

    def test_other_tags_are_ignored(self):
        records, _ = resolve_authors(_tags(
            ("author", "Alice"),
            ("notice", "unrelated"),
            ("custom:author-url", "https://alice.dev"),
        ))
        assert records[0].url == "https://alice.dev"

    def test_no_authors(self):
        assert resolve_authors(_tags(("title", "T"))) == ([], [])

    @pytest.mark.parametrize("sequence", [
        ["author", "custom:author-email", "author", "author", "custom:author-url"],
        ["custom:author-url", "author", "author", "custom:author-email"],
        ["author"] * 5,
    ])
    def test_record_count_equals_anchor_count(self, sequence):
        tags = [Tag(name=name, raw_value=f"v{i}") for i, name in enumerate(sequence)]
        records, _ = resolve_authors(tags)
        assert len(records) == sequence.count("author")

    def test_feed_reports_author_tags(self):
        resolver = AuthorGroupResolver()
        assert resolver.feed(Tag(name="author", raw_value="A")) is True
        assert resolver.feed(Tag(name="title", raw_value="T")) is False
        assert resolver.finish()[0].name == "A"
