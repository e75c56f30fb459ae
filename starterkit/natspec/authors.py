"""Author group resolver.

Folds a contract-level tag stream into :class:`AuthorRecord` entries. Each
``@author`` tag opens a new group; ``@custom:author-email`` and
``@custom:author-url`` attach to the most recently opened group (last wins
within a group). A dependent tag seen before any ``@author`` has no group to
attach to and is discarded with a warning.
"""

from __future__ import annotations

import re

from .interpreter import clean_text
from .models import AuthorRecord, CompileWarning, Tag, WarningKind


ANCHOR_TAG = "author"
DEPENDENT_TAGS: dict[str, str] = {
    "custom:author-email": "email",
    "custom:author-url": "url",
}

_INLINE_EMAIL = re.compile(r"<([^>]+)>")
_INLINE_URL = re.compile(r"\(([^)]+)\)")


def parse_author_text(text: str) -> AuthorRecord:
    """Parse ``"Name <email> (url)"``; email and url are optional.

    Examples:
        'Alice <alice@example.com>' -> name='Alice', email='alice@example.com'
        'Bob (https://bob.dev)'     -> name='Bob', url='https://bob.dev'
    """
    text = clean_text(text)
    email = _INLINE_EMAIL.search(text)
    url = _INLINE_URL.search(text)
    name = _INLINE_URL.sub("", _INLINE_EMAIL.sub("", text, count=1), count=1).strip()
    return AuthorRecord(
        name=name,
        email=email.group(1).strip() if email else None,
        url=url.group(1).strip() if url else None,
    )


class AuthorGroupResolver:
    """Order-sensitive fold over tags: (open group, finalized groups).

    Usage::

        resolver = AuthorGroupResolver()
        for tag in tags:
            resolver.feed(tag)
        authors = resolver.finish()
    """

    def __init__(self) -> None:
        self.open_group: AuthorRecord | None = None
        self.records: list[AuthorRecord] = []
        self.warnings: list[CompileWarning] = []

    def _flush(self) -> None:
        if self.open_group is not None:
            self.records.append(self.open_group)
            self.open_group = None

    def feed(self, tag: Tag) -> bool:
        """Consume one tag. Returns ``True`` if the tag was an author tag."""
        if tag.name == ANCHOR_TAG:
            self._flush()
            self.open_group = parse_author_text(tag.raw_value)
            return True

        attribute = DEPENDENT_TAGS.get(tag.name)
        if attribute is None:
            return False

        value = clean_text(tag.raw_value)
        if self.open_group is None:
            self.warnings.append(CompileWarning(
                kind=WarningKind.DISCARDED_TAG,
                subject=f"@{tag.name}",
                message=f"@{tag.name} {value!r} appears before any @author and was discarded",
            ))
            return True

        setattr(self.open_group, attribute, value or None)
        return True

    def finish(self) -> list[AuthorRecord]:
        """Flush the final open group and return all records in tag order."""
        self._flush()
        return list(self.records)


def resolve_authors(tags: list[Tag]) -> tuple[list[AuthorRecord], list[CompileWarning]]:
    """Group author tags into records. Non-author tags are ignored."""
    resolver = AuthorGroupResolver()
    for tag in tags:
        resolver.feed(tag)
    return resolver.finish(), resolver.warnings
