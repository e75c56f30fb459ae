"""Tag lexer for NatSpec documentation blocks.

Splits one documentation block into an ordered list of :class:`Tag` entries.
Each ``@name ...`` line opens a new entry; following lines that do not start a
tag are appended, newline-joined, to the open entry. A ``@dev`` note whose value
starts with a section keyword (``Details:``, ``Usage summary:``,
``Prerequisites:``) is lexed as its own logical tag, e.g. ``dev:details``.
"""

from __future__ import annotations

import re

from .models import DocumentationBlock, Tag


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_BLOCK_PATTERN = re.compile(r"/\*\*(.*?)\*/", re.DOTALL)
_BLOCK_LINE_PREFIX = re.compile(r"^\s*\*(?!/)\s?")
_LINE_DOC_PREFIX = re.compile(r"^\s*///\s?")
# A tag name ends at whitespace, end of line or opening punctuation such as
# ``@return(uint)``; ``@scope/pkg`` and ``@host.tld`` are not tag starts.
_TAG_START = re.compile(
    r"^@(?P<name>[A-Za-z_]\w*(?::[\w-]+)?)(?=$|\s|[(\[{,;])\s*(?P<value>.*)$"
)

# Sub-tag keywords that split a tag into a distinct logical tag.
_SUBTAGS: dict[str, list[tuple[re.Pattern[str], str]]] = {
    "dev": [
        (re.compile(r"^details\s*:\s*(.*)$", re.IGNORECASE | re.DOTALL), "details"),
        (re.compile(r"^usage(?:\s+summary)?\s*:\s*(.*)$", re.IGNORECASE | re.DOTALL), "usage"),
        (re.compile(r"^prerequisites?\s*:\s*(.*)$", re.IGNORECASE | re.DOTALL), "prerequisites"),
    ],
}


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

def normalize_block(raw: str) -> list[str]:
    """Strip comment delimiters from a raw block and return its content lines.

    Handles ``/** ... */`` blocks (leading ``*`` removed from every line) and
    runs of ``///`` lines. Blank lines are dropped.
    """
    match = _BLOCK_PATTERN.search(raw)
    if match:
        lines = [_BLOCK_LINE_PREFIX.sub("", line) for line in match.group(1).split("\n")]
    else:
        lines = [_LINE_DOC_PREFIX.sub("", line) for line in raw.split("\n")]
    return [line.strip() for line in lines if line.strip()]


# ---------------------------------------------------------------------------
# Lexing
# ---------------------------------------------------------------------------

def _logical_name(name: str, value: str) -> tuple[str, str]:
    """Resolve sub-tag keywords, returning ``(logical_name, value)``."""
    for pattern, suffix in _SUBTAGS.get(name, []):
        m = pattern.match(value)
        if m:
            return f"{name}:{suffix}", m.group(1).strip()
    return name, value


def lex_lines(lines: list[str]) -> list[Tag]:
    """Lex already-normalised block lines into tags.

    Lines before the first tag-start belong to no tag and are ignored, so a
    block without any tag-start yields an empty list.
    """
    tags: list[Tag] = []
    current: Tag | None = None
    value_lines: list[str] = []

    def _flush() -> None:
        nonlocal current, value_lines
        if current is not None:
            current.raw_value = "\n".join(value_lines).strip()
            name, value = _logical_name(current.name, current.raw_value)
            current.name = name
            current.raw_value = value
            tags.append(current)
        current = None
        value_lines = []

    for index, line in enumerate(lines):
        m = _TAG_START.match(line)
        if m:
            _flush()
            current = Tag(name=m.group("name"), line=index)
            value_lines = [m.group("value") or ""]
        elif current is not None:
            value_lines.append(line)

    _flush()
    return tags


def lex_block(block: DocumentationBlock | str | None) -> list[Tag]:
    """Lex one documentation block (or its raw text) into an ordered tag list."""
    if block is None:
        return []
    if isinstance(block, DocumentationBlock):
        lines = block.lines or normalize_block(block.text)
    else:
        lines = normalize_block(block)
    return lex_lines(lines)
