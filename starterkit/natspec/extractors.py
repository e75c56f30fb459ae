"""Member extractors, one per declaration kind.

Each extractor takes the declarations found by the locator and returns typed
member records in source order plus any warnings. A member whose name cannot
be read from its declaration text is dropped with a warning; a member without a
documentation block is kept with empty docs and a warning.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from .interpreter import bullet_items, clean_text, split_name
from .lexer import lex_block
from .locator import DeclarationLocator
from .models import (
    CompileWarning,
    ConstructorRecord,
    Declaration,
    DeclarationKind,
    DocumentationBlock,
    EnumRecord,
    EnumValue,
    EventRecord,
    FunctionRecord,
    MemberRecord,
    Parameter,
    ReturnValue,
    StateVariableRecord,
    StructRecord,
    WarningKind,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_IDENT = re.compile(r"[A-Za-z_$][\w$]*")
_FUNCTION_HEAD = re.compile(r"^function\s+([A-Za-z_$][\w$]*)\s*\(")
_EVENT_HEAD = re.compile(r"^event\s+([A-Za-z_$][\w$]*)\s*\(")
_STRUCT_HEAD = re.compile(r"^struct\s+([A-Za-z_$][\w$]*)\s*$")
_ENUM_HEAD = re.compile(r"^enum\s+([A-Za-z_$][\w$]*)\s*$")
_RETURNS = re.compile(r"\breturns\s*\(")
_QUALIFIER = re.compile(r"([A-Za-z_$][\w$.]*)(\s*\([^()]*\))?")
# A lone "=" that is not part of "==", "=>", "<=", ">=" or "!=".
_ASSIGN = re.compile(r"(?<![=!<>])=(?![=>])")

_VISIBILITY = {"public", "external", "internal", "private"}
_MUTABILITY = {"pure", "view", "payable"}
_VARIABLE_MUTABILITY = {"constant", "immutable"}
_IGNORED_QUALIFIERS = {"virtual", "override", "transient"}
_PARAM_QUALIFIERS = {"memory", "storage", "calldata", "indexed"}


# ---------------------------------------------------------------------------
# Member documentation
# ---------------------------------------------------------------------------

@dataclass
class MemberDocs:
    """Interpreted member-level tags."""

    notice: str = ""
    dev: list[str] = field(default_factory=list)
    params: dict[str, str] = field(default_factory=dict)
    returns: list[str] = field(default_factory=list)
    fields: dict[str, str] = field(default_factory=dict)
    values: dict[str, str] = field(default_factory=dict)
    custom: dict[str, list[str]] = field(default_factory=dict)


def read_member_docs(block: DocumentationBlock | None) -> MemberDocs:
    """Interpret a member block's tags into :class:`MemberDocs`.

    ``@notice`` is singular (first wins); ``@dev`` notes, ``@return`` entries and
    ``@custom:*`` values accumulate. ``@param``/``@field``/``@value`` are keyed by
    their leading name.
    """
    docs = MemberDocs()
    for tag in lex_block(block):
        name = tag.name
        if name == "notice":
            if not docs.notice:
                docs.notice = clean_text(tag.raw_value)
        elif name == "dev" or name.startswith("dev:"):
            docs.dev.extend(bullet_items(tag.raw_value))
        elif name in ("param", "field", "value"):
            key, rest = split_name(tag.raw_value)
            if not key:
                continue
            target = {"param": docs.params, "field": docs.fields, "value": docs.values}[name]
            target.setdefault(key, rest)
        elif name in ("return", "returns"):
            docs.returns.append(clean_text(tag.raw_value))
        elif name.startswith("custom:"):
            docs.custom.setdefault(name[len("custom:"):], []).append(clean_text(tag.raw_value))
    return docs


# ---------------------------------------------------------------------------
# Declaration text helpers
# ---------------------------------------------------------------------------

def _paren_group(text: str, open_idx: int) -> tuple[str, int]:
    """Return the text inside the parentheses opening at *open_idx* and the close index."""
    depth = 0
    for i in range(open_idx, len(text)):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return text[open_idx + 1:i], i
    return text[open_idx + 1:], len(text)


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split *text* on *separator* outside any parentheses or brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        if ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def parse_parameters(text: str) -> list[Parameter]:
    """Parse a parameter list such as ``"uint256 a, address indexed to"``."""
    params: list[Parameter] = []
    for part in split_top_level(text):
        tokens = part.split()
        indexed = "indexed" in tokens
        tokens = [t for t in tokens if t not in _PARAM_QUALIFIERS]
        name = ""
        if len(tokens) > 1 and _IDENT.fullmatch(tokens[-1]) and tokens[-1] != "payable":
            name = tokens.pop()
        params.append(Parameter(name=name, type=" ".join(tokens), indexed=indexed))
    return params


def _describe(params: list[Parameter], descriptions: dict[str, str], subject: str,
              warnings: list[CompileWarning]) -> None:
    """Attach ``@param`` descriptions by name, warning on unknown names."""
    known = {p.name for p in params if p.name}
    for p in params:
        if p.name in descriptions:
            p.description = descriptions[p.name] or None
    for name in descriptions:
        if name not in known:
            warnings.append(CompileWarning(
                kind=WarningKind.UNKNOWN_PARAM,
                subject=subject,
                message=f"@param {name} does not match any parameter of {subject}",
            ))


def _split_type(tokens: list[str]) -> tuple[str, list[str]]:
    """Split ``address payable public owner`` into ``("address payable", rest)``."""
    if not tokens:
        return "", []
    type_tokens = [tokens[0]]
    rest = tokens[1:]
    if type_tokens[0] == "address" and rest and rest[0] == "payable":
        type_tokens.append(rest.pop(0))
    return " ".join(type_tokens), rest


# ---------------------------------------------------------------------------
# Per-kind builders
# ---------------------------------------------------------------------------

def _build_function(decl: Declaration, docs: MemberDocs,
                    warnings: list[CompileWarning]) -> Optional[FunctionRecord]:
    m = _FUNCTION_HEAD.match(decl.text)
    if not m:
        return None
    name = m.group(1)
    params_text, close = _paren_group(decl.text, m.end() - 1)
    tail = decl.text[close + 1:]

    returns: list[ReturnValue] = []
    rm = _RETURNS.search(tail)
    if rm:
        returns_text, rclose = _paren_group(tail, rm.end() - 1)
        returns = [ReturnValue(name=p.name, type=p.type) for p in parse_parameters(returns_text)]
        tail = tail[:rm.start()] + " " + tail[rclose + 1:]

    visibility = ""
    mutability = "nonpayable"
    modifiers: list[str] = []
    for q in _QUALIFIER.finditer(tail):
        word = q.group(1)
        if word in _VISIBILITY:
            visibility = word
        elif word in _MUTABILITY:
            mutability = word
        elif word not in _IGNORED_QUALIFIERS:
            modifiers.append(re.sub(r"\s+", "", q.group(0)) if q.group(2) else word)

    params = parse_parameters(params_text)
    _describe(params, docs.params, name, warnings)

    for index, description in enumerate(docs.returns[:len(returns)]):
        ret = returns[index]
        # "@return count the new count" names the variable first.
        if ret.name:
            head, rest = split_name(description)
            if head == ret.name:
                description = rest
        ret.description = description or None

    return FunctionRecord(
        name=name,
        visibility=visibility,
        mutability=mutability,
        modifiers=modifiers,
        params=params,
        returns=returns,
    )


def _build_constructor(decl: Declaration, docs: MemberDocs,
                       warnings: list[CompileWarning]) -> Optional[ConstructorRecord]:
    open_idx = decl.text.find("(")
    if open_idx < 0:
        return None
    params_text, close = _paren_group(decl.text, open_idx)
    params = parse_parameters(params_text)
    _describe(params, docs.params, "constructor", warnings)
    payable = any(q.group(1) == "payable" for q in _QUALIFIER.finditer(decl.text[close + 1:]))
    return ConstructorRecord(params=params, payable=payable)


def _build_event(decl: Declaration, docs: MemberDocs,
                 warnings: list[CompileWarning]) -> Optional[EventRecord]:
    m = _EVENT_HEAD.match(decl.text)
    if not m:
        return None
    params_text, close = _paren_group(decl.text, m.end() - 1)
    params = parse_parameters(params_text)
    _describe(params, docs.params, m.group(1), warnings)
    return EventRecord(
        name=m.group(1),
        params=params,
        anonymous="anonymous" in decl.text[close + 1:].split(),
    )


def _build_struct(decl: Declaration, docs: MemberDocs,
                  warnings: list[CompileWarning]) -> Optional[StructRecord]:
    m = _STRUCT_HEAD.match(decl.text)
    if not m:
        return None
    fields = parse_parameters(", ".join(
        part for part in (p.strip() for p in decl.body.split(";")) if part
    ))
    # Struct fields may be documented with either @field or @param.
    _describe(fields, {**docs.params, **docs.fields}, m.group(1), warnings)
    return StructRecord(name=m.group(1), fields=fields)


def _build_enum(decl: Declaration, docs: MemberDocs,
                warnings: list[CompileWarning]) -> Optional[EnumRecord]:
    m = _ENUM_HEAD.match(decl.text)
    if not m:
        return None
    values = [
        EnumValue(name=value, description=docs.values.get(value) or None)
        for value in (v.strip() for v in decl.body.split(","))
        if _IDENT.fullmatch(value)
    ]
    return EnumRecord(name=m.group(1), values=values)


def _build_state_variable(decl: Declaration, docs: MemberDocs,
                          warnings: list[CompileWarning]) -> Optional[StateVariableRecord]:
    text = decl.text
    value: Optional[str] = None
    assign = _ASSIGN.search(text)
    if assign:
        value = text[assign.end():].strip() or None
        text = text[:assign.start()].strip()

    if text.startswith("mapping"):
        open_idx = text.find("(")
        if open_idx < 0:
            return None
        _, close = _paren_group(text, open_idx)
        var_type = re.sub(r"\s+", " ", text[:close + 1])
        rest = text[close + 1:].split()
    else:
        var_type, rest = _split_type(text.split())

    if not rest or not _IDENT.fullmatch(rest[-1]):
        return None
    name = rest[-1]
    visibility = "internal"
    mutability = ""
    for word in rest[:-1]:
        if word in _VISIBILITY:
            visibility = word
        elif word in _VARIABLE_MUTABILITY:
            mutability = word

    return StateVariableRecord(
        name=name,
        type=var_type,
        visibility=visibility,
        mutability=mutability,
        value=value,
    )


_Builder = Callable[[Declaration, MemberDocs, list[CompileWarning]], Optional[MemberRecord]]

_BUILDERS: dict[DeclarationKind, _Builder] = {
    DeclarationKind.STATE_VARIABLE: _build_state_variable,
    DeclarationKind.FUNCTION: _build_function,
    DeclarationKind.CONSTRUCTOR: _build_constructor,
    DeclarationKind.STRUCT: _build_struct,
    DeclarationKind.ENUM: _build_enum,
    DeclarationKind.EVENT: _build_event,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_members(
    kind: DeclarationKind,
    declarations: list[Declaration],
) -> tuple[list[MemberRecord], list[CompileWarning]]:
    """Build member records of one kind, preserving source order.

    Raises:
        KeyError: If *kind* has no member extractor (e.g. ``contract``).
    """
    builder = _BUILDERS[kind]
    records: list[MemberRecord] = []
    warnings: list[CompileWarning] = []

    for decl in declarations:
        docs = read_member_docs(decl.block)
        record = builder(decl, docs, warnings)
        if record is None:
            warnings.append(CompileWarning(
                kind=WarningKind.DROPPED_MEMBER,
                subject=decl.text[:80],
                message=f"could not read a {kind.value} name from {decl.text[:80]!r}; member dropped",
            ))
            continue
        if decl.block is None:
            warnings.append(CompileWarning(
                kind=WarningKind.MISSING_BLOCK,
                subject=record.name,
                message=f"{kind.value} {record.name} has no documentation block",
            ))
        record.signature = decl.text
        record.notice = docs.notice
        record.dev = docs.dev
        record.custom = docs.custom
        records.append(record)

    return records, warnings


def extract_all_members(
    locator: DeclarationLocator,
) -> tuple[dict[DeclarationKind, list[MemberRecord]], list[CompileWarning]]:
    """Run every member extractor against one locator.

    Returns:
        ``(records_by_kind, warnings)``; warnings are grouped by kind in the
        order of :data:`_BUILDERS`.
    """
    records: dict[DeclarationKind, list[MemberRecord]] = {}
    warnings: list[CompileWarning] = []
    for kind in _BUILDERS:
        kind_records, kind_warnings = extract_members(kind, locator.locate(kind))
        records[kind] = kind_records
        warnings.extend(kind_warnings)
    return records, warnings
