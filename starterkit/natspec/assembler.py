"""Metadata assembler.

Merges the contract-level tags, the member records and the detected concepts
into one :class:`StarterMetadataDocument`. Every field follows the same
fallback order: an in-source tag wins over an external override, which wins
over a derived default. The assembler is a pure transform; it never raises for
data-quality problems and hands back warnings and field failures instead.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from starterkit.config import MetadataDefaults
from starterkit.utils import to_dash_case

from .authors import AuthorGroupResolver
from .interpreter import CUSTOM_FALLBACK_RULE, bullet_items, interpret_contract_tag
from .lexer import lex_block
from .models import (
    CompileWarning,
    ConstructorRecord,
    Declaration,
    DeclarationKind,
    FieldFailure,
    MemberRecord,
    MetadataOverrides,
    Multiplicity,
    StarterMetadataDocument,
    Tag,
    TagType,
    WarningKind,
)


_CONTRACT_NAME = re.compile(r"^(?:abstract\s+)?contract\s+([A-Za-z_$][\w$]*)")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _first(*candidates: Any) -> Any:
    """Return the first candidate that is not ``None``, empty string or empty list."""
    for candidate in candidates:
        if candidate is None or candidate == "" or candidate == []:
            continue
        return candidate
    return None


def _unique(items: list[str]) -> list[str]:
    seen: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return seen


def contract_name_of(contract: Declaration | None) -> str:
    """Read the declared contract name, or ``""`` when it cannot be read."""
    if contract is None:
        return ""
    m = _CONTRACT_NAME.match(contract.text)
    return m.group(1) if m else ""


class _ContractFields:
    """Accumulator for one pass over the contract-level tag stream."""

    def __init__(self) -> None:
        self.singular: dict[str, Any] = {}
        self.multi: dict[str, list[Any]] = {}
        self.custom: dict[str, list[str]] = {}
        self.failures: list[FieldFailure] = []
        self.warnings: list[CompileWarning] = []
        self.authors = AuthorGroupResolver()

    def feed(self, tag: Tag) -> None:
        if self.authors.feed(tag):
            return
        rule, value = interpret_contract_tag(tag)
        self.failures.extend(value.failures)
        if rule is None:
            return

        if rule.multiplicity == Multiplicity.SINGULAR:
            if rule.field in self.singular:
                self.warnings.append(CompileWarning(
                    kind=WarningKind.DUPLICATE_TAG,
                    subject=f"@{tag.name}",
                    message=f"duplicate @{tag.name} ignored; the first occurrence wins",
                ))
                return
            self.singular[rule.field] = value.value
        elif rule is CUSTOM_FALLBACK_RULE:
            self.custom.setdefault(tag.name[len("custom:"):], []).append(value.value)
        elif rule.type in (TagType.CSV, TagType.PACKAGES):
            self.multi.setdefault(rule.field, []).extend(value.value or [])
        elif rule.type == TagType.PASSTHROUGH:
            self.multi.setdefault(rule.field, []).extend(bullet_items(value.value or ""))
        elif value.value:
            self.multi.setdefault(rule.field, []).append(value.value)

    def get(self, field: str) -> Any:
        return self.singular.get(field)

    def many(self, field: str) -> list[Any]:
        return list(self.multi.get(field, []))


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def assemble_document(
    contract: Declaration | None,
    members: dict[DeclarationKind, list[MemberRecord]],
    concepts: list[str],
    filename: str = "",
    overrides: Optional[MetadataOverrides] = None,
    defaults: Optional[MetadataDefaults] = None,
) -> tuple[StarterMetadataDocument, list[CompileWarning], list[FieldFailure]]:
    """Build the metadata document for one contract.

    Args:
        contract: The contract declaration (with its block) or ``None``.
        members: Member records keyed by declaration kind, in source order.
        concepts: Concept labels detected in the source.
        filename: Source filename recorded as ``contract_filename``.
        overrides: External values used when no tag supplies a field.
        defaults: Derived defaults for version fields.

    Returns:
        ``(document, warnings, field_failures)``.
    """
    overrides = overrides or MetadataOverrides()
    defaults = defaults or MetadataDefaults()
    warnings: list[CompileWarning] = []

    if contract is None:
        warnings.append(CompileWarning(
            kind=WarningKind.MISSING_CONTRACT_BLOCK,
            subject=filename,
            message="no contract declaration found",
        ))
    elif contract.block is None:
        warnings.append(CompileWarning(
            kind=WarningKind.MISSING_CONTRACT_BLOCK,
            subject=contract_name_of(contract) or filename,
            message="contract declaration has no documentation block",
        ))

    fields = _ContractFields()
    for tag in lex_block(contract.block if contract else None):
        fields.feed(tag)
    authors = fields.authors.finish()
    warnings.extend(fields.authors.warnings)
    warnings.extend(fields.warnings)

    contract_name = contract_name_of(contract)
    notes = fields.many("notes")
    constructors = members.get(DeclarationKind.CONSTRUCTOR, [])
    constructor = constructors[0] if constructors else None
    has_ui = fields.get("has_ui")

    document = StarterMetadataDocument(
        name=_first(fields.get("name"), overrides.name,
                    to_dash_case(contract_name) if contract_name else None) or "",
        contract_name=contract_name,
        contract_filename=filename,
        label=_first(fields.get("label"), overrides.label,
                     f"{contract_name} Starter" if contract_name else None) or "",
        description=_first(fields.get("description"), overrides.description,
                           notes[0] if notes else None) or "",
        details=_first(fields.get("details")),
        version=_first(fields.get("version"), overrides.version, defaults.version) or "",
        fhevm_version=_first(fields.get("fhevm_version"), overrides.fhevm_version,
                             defaults.fhevm_version) or "",
        category=_first(fields.get("category"), overrides.category) or "",
        chapter=_first(fields.get("chapter"), overrides.chapter) or "",
        tags=_unique(_first(fields.many("tags"), overrides.tags) or []),
        concepts=_unique(list(concepts) + fields.many("concepts")),
        authors=authors,
        has_ui=has_ui if has_ui is not None else bool(overrides.has_ui),
        usage=fields.many("usage"),
        prerequisites=fields.many("prerequisites"),
        notes=notes,
        security=fields.many("security"),
        limitations=fields.many("limitations"),
        custom=fields.custom,
        additional_files=_unique(fields.many("additional_files")),
        additional_packages=fields.many("additional_packages"),
        constructor_args=(
            [p.name for p in constructor.params]
            if isinstance(constructor, ConstructorRecord) else []
        ),
        constructor=constructor,
        state_variables=members.get(DeclarationKind.STATE_VARIABLE, []),
        functions=members.get(DeclarationKind.FUNCTION, []),
        structs=members.get(DeclarationKind.STRUCT, []),
        enums=members.get(DeclarationKind.ENUM, []),
        events=members.get(DeclarationKind.EVENT, []),
    )
    return document, warnings, fields.failures
