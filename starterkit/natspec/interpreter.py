"""Tag interpreter: raw tag values -> typed values.

Every interpretation returns a :class:`TagValue`. Format problems are recorded
as :class:`FieldFailure` entries on that value and never raised, so one bad tag
cannot abort extraction of the rest of a document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import FieldFailure, Multiplicity, PackageRef, Tag, TagType, TagValue


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TagRule:
    """How one contract-level tag is typed, combined and stored."""

    type: TagType
    multiplicity: Multiplicity
    field: str


CONTRACT_TAG_RULES: dict[str, TagRule] = {
    "title": TagRule(TagType.STRING, Multiplicity.SINGULAR, "label"),
    "notice": TagRule(TagType.STRING, Multiplicity.SINGULAR, "description"),
    "dev": TagRule(TagType.PASSTHROUGH, Multiplicity.MULTI, "notes"),
    "dev:details": TagRule(TagType.PASSTHROUGH, Multiplicity.SINGULAR, "details"),
    "dev:usage": TagRule(TagType.PASSTHROUGH, Multiplicity.MULTI, "usage"),
    "dev:prerequisites": TagRule(TagType.PASSTHROUGH, Multiplicity.MULTI, "prerequisites"),
    "author": TagRule(TagType.STRING, Multiplicity.ANCHOR, "authors"),
    "custom:author-email": TagRule(TagType.STRING, Multiplicity.DEPENDENT, "email"),
    "custom:author-url": TagRule(TagType.STRING, Multiplicity.DEPENDENT, "url"),
    "custom:name": TagRule(TagType.STRING, Multiplicity.SINGULAR, "name"),
    "custom:category": TagRule(TagType.STRING, Multiplicity.SINGULAR, "category"),
    "custom:chapter": TagRule(TagType.STRING, Multiplicity.SINGULAR, "chapter"),
    "custom:tags": TagRule(TagType.CSV, Multiplicity.MULTI, "tags"),
    "custom:concepts": TagRule(TagType.CSV, Multiplicity.MULTI, "concepts"),
    "custom:ui": TagRule(TagType.BOOLEAN, Multiplicity.SINGULAR, "has_ui"),
    "custom:version": TagRule(TagType.STRING, Multiplicity.SINGULAR, "version"),
    "custom:fhevm-version": TagRule(TagType.STRING, Multiplicity.SINGULAR, "fhevm_version"),
    "custom:packages": TagRule(TagType.PACKAGES, Multiplicity.MULTI, "additional_packages"),
    "custom:files": TagRule(TagType.CSV, Multiplicity.MULTI, "additional_files"),
    "custom:security": TagRule(TagType.STRING, Multiplicity.MULTI, "security"),
    "custom:limitations": TagRule(TagType.STRING, Multiplicity.MULTI, "limitations"),
}

# Any other ``custom:*`` tag lands in the document's ``custom`` mapping.
CUSTOM_FALLBACK_RULE = TagRule(TagType.STRING, Multiplicity.MULTI, "custom")

_CONTINUATION_MARKER = re.compile(r"^\s*///\s?")
_BULLET = re.compile(r"^[-*+]\s+")


def rule_for(name: str) -> TagRule | None:
    """Return the contract-level rule for a tag name, or ``None`` if unknown."""
    rule = CONTRACT_TAG_RULES.get(name)
    if rule is None and name.startswith("custom:"):
        return CUSTOM_FALLBACK_RULE
    return rule


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def clean_text(raw: str) -> str:
    """Trim stray ``///`` markers and whitespace, collapsing to one paragraph."""
    parts = [_CONTINUATION_MARKER.sub("", line).strip() for line in raw.split("\n")]
    return re.sub(r"\s+", " ", " ".join(p for p in parts if p)).strip()


def bullet_items(raw: str) -> list[str]:
    """Split a passthrough value into items.

    A line starting with ``-``/``*``/``+`` starts a new item; other lines extend
    the current item. A value without bullets is a single item.
    """
    items: list[str] = []
    for line in raw.split("\n"):
        text = _CONTINUATION_MARKER.sub("", line).strip()
        if not text:
            continue
        if _BULLET.match(text) or not items:
            items.append(_BULLET.sub("", text).strip())
        else:
            items[-1] = f"{items[-1]} {text}"
    return [item for item in items if item]


def split_name(raw: str) -> tuple[str, str]:
    """Split ``"name rest of text"`` into ``(name, rest)``; name may be empty."""
    text = clean_text(raw)
    m = re.match(r"^([A-Za-z_]\w*)\s*(.*)$", text)
    if not m:
        return "", text
    return m.group(1), m.group(2).strip()


# ---------------------------------------------------------------------------
# Typed interpretation
# ---------------------------------------------------------------------------

def _interpret_boolean(tag: Tag, field: str) -> TagValue:
    text = clean_text(tag.raw_value).lower()
    if text in ("true", "false"):
        return TagValue(name=tag.name, value=text == "true")
    return TagValue(
        name=tag.name,
        failures=[FieldFailure(
            field=field,
            rule="boolean",
            message=f"@{tag.name} must be 'true' or 'false', got {clean_text(tag.raw_value)!r}",
            tag=tag.name,
        )],
    )


def _interpret_csv(tag: Tag) -> TagValue:
    items = [part.strip() for part in clean_text(tag.raw_value).split(",")]
    return TagValue(name=tag.name, value=[item for item in items if item])


def _interpret_packages(tag: Tag, field: str) -> TagValue:
    packages: list[PackageRef] = []
    failures: list[FieldFailure] = []
    for entry in _interpret_csv(tag).value:
        name, sep, version = entry.rpartition("@")
        # No separator, or only a scope prefix ("@scope/pkg"), means no version.
        if not sep or not name or not version.strip():
            failures.append(FieldFailure(
                field=field,
                rule="package_version",
                message=f"package {entry!r} has no version (expected name@version)",
                tag=tag.name,
            ))
            continue
        packages.append(PackageRef(name=name.strip(), version=version.strip()))
    return TagValue(name=tag.name, value=packages, failures=failures)


def interpret(tag: Tag, tag_type: TagType, field: str | None = None) -> TagValue:
    """Convert one tag's raw value according to *tag_type*.

    Args:
        tag: The lexed tag.
        tag_type: Declared type of the tag.
        field: Document field name used in failure records (defaults to the
            tag name).

    Returns:
        A ``TagValue``; ``value`` is ``None`` when interpretation failed
        outright.
    """
    field = field or tag.name
    if tag_type == TagType.BOOLEAN:
        return _interpret_boolean(tag, field)
    if tag_type == TagType.CSV:
        return _interpret_csv(tag)
    if tag_type == TagType.PACKAGES:
        return _interpret_packages(tag, field)
    if tag_type == TagType.PASSTHROUGH:
        lines = [_CONTINUATION_MARKER.sub("", line).rstrip() for line in tag.raw_value.split("\n")]
        return TagValue(name=tag.name, value="\n".join(lines).strip())
    return TagValue(name=tag.name, value=clean_text(tag.raw_value))


def interpret_contract_tag(tag: Tag) -> tuple[TagRule | None, TagValue]:
    """Interpret a contract-level tag using :data:`CONTRACT_TAG_RULES`.

    Unknown non-custom tags are passed through as plain strings with no rule.
    """
    rule = rule_for(tag.name)
    if rule is None:
        return None, interpret(tag, TagType.STRING)
    return rule, interpret(tag, rule.type, rule.field)
