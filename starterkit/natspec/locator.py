"""Declaration locator for Solidity sources.

Finds declaration anchors (contract, constructor, function, state variable,
struct, enum, event) by structural scanning and pairs each with the
documentation block that immediately precedes it. Uses pure regex and brace
counting -- no syntax tree.

Two invariants keep pairing honest:

* Anchors are matched against a masked copy of the source where comments and
  string literals are blanked out (offsets preserved), so keywords inside
  comments never anchor a declaration.
* A block is only paired when nothing but whitespace separates it from the
  anchor and it starts inside the kind's lookback window. The contract-level
  block is never paired with a member.
"""

from __future__ import annotations

import re

from starterkit.config import LocatorConfig

from .lexer import normalize_block
from .models import Declaration, DeclarationKind, DocumentationBlock


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_LEXICAL_PATTERN = re.compile(
    r"(?P<comment>//[^\n]*|/\*.*?(?:\*/|\Z))"
    r"|(?P<string>\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*')",
    re.DOTALL,
)

_ANCHOR_PATTERNS: dict[DeclarationKind, re.Pattern[str]] = {
    DeclarationKind.CONTRACT: re.compile(r"\b(?:abstract\s+)?contract\b"),
    DeclarationKind.CONSTRUCTOR: re.compile(r"\bconstructor\s*\("),
    DeclarationKind.FUNCTION: re.compile(r"\bfunction\b"),
    DeclarationKind.STRUCT: re.compile(r"\bstruct\b"),
    DeclarationKind.ENUM: re.compile(r"\benum\b"),
    DeclarationKind.EVENT: re.compile(r"\bevent\b"),
}

# Statements at contract-body level that are never state variables.
_NON_VARIABLE_KEYWORDS = frozenset({
    "function", "event", "error", "modifier", "struct", "enum", "using",
    "constructor", "receive", "fallback", "import", "pragma", "type",
    "contract", "interface", "library", "abstract",
})

_BRACED_KINDS = (DeclarationKind.STRUCT, DeclarationKind.ENUM)


# ---------------------------------------------------------------------------
# Masking
# ---------------------------------------------------------------------------

def _blank(text: str) -> str:
    return re.sub(r"[^\n]", " ", text)


def mask_source(source: str, strings: bool = True) -> str:
    """Blank out comments (and, by default, string literals) preserving offsets."""

    def _replace(match: re.Match[str]) -> str:
        if match.group("comment") is not None or strings:
            return _blank(match.group(0))
        return match.group(0)

    return _LEXICAL_PATTERN.sub(_replace, source)


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


# ---------------------------------------------------------------------------
# Block lookback
# ---------------------------------------------------------------------------

def find_preceding_block(
    source: str,
    anchor: int,
    window: int,
    kind: DeclarationKind | None = None,
) -> DocumentationBlock | None:
    """Return the documentation block touching *anchor*, if any.

    The block must end with only whitespace before the anchor and must start
    no more than *window* characters before it. Plain ``/* */`` comments are
    not documentation blocks.
    """
    head = source[:anchor]
    end = len(head.rstrip())
    if end == 0:
        return None
    limit = max(0, anchor - window)
    before = head[:end]

    if before.endswith("*/"):
        open_idx = before.rfind("/*", 0, end - 2)
        if open_idx < limit or not before.startswith("/**", open_idx):
            return None
        raw = before[open_idx:end]
        return DocumentationBlock(
            lines=normalize_block(raw), start=open_idx, end=end, text=raw, anchor=kind
        )

    line_start = before.rfind("\n", 0, end) + 1
    if not before[line_start:end].lstrip().startswith("///"):
        return None

    start = line_start
    while start > 0:
        prev_start = before.rfind("\n", 0, start - 1) + 1
        if not before[prev_start:start - 1].strip().startswith("///"):
            break
        start = prev_start
    start += len(before[start:]) - len(before[start:].lstrip())
    if start < limit:
        return None

    raw = before[start:end]
    return DocumentationBlock(
        lines=normalize_block(raw), start=start, end=end, text=raw, anchor=kind
    )


# ---------------------------------------------------------------------------
# Locator
# ---------------------------------------------------------------------------

class DeclarationLocator:
    """Locate declarations of every kind within one source text.

    The locator is cheap to build and holds no state beyond the source and its
    masked copies; create one per compiler run.
    """

    def __init__(self, source: str, windows: LocatorConfig | None = None) -> None:
        self.source = source
        self.windows = windows or LocatorConfig()
        # Comments and strings blanked: for structure.
        self.masked = mask_source(source)
        # Comments blanked only: for declaration text.
        self.readable = mask_source(source, strings=False)
        self._contract: Declaration | None = None
        self._contract_done = False

    # -- Structural helpers ----------------------------------------------

    def _depth_at(self, pos: int) -> int:
        prefix = self.masked[:pos]
        return prefix.count("{") - prefix.count("}")

    def _header_end(self, start: int) -> tuple[int, str]:
        """Scan to the first ``{`` or ``;`` outside parentheses."""
        depth = 0
        for i in range(start, len(self.masked)):
            ch = self.masked[i]
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth = max(0, depth - 1)
            elif depth == 0 and ch in "{;":
                return i, ch
        return len(self.masked), ""

    def _matching_brace(self, open_idx: int) -> int:
        depth = 0
        for i in range(open_idx, len(self.masked)):
            ch = self.masked[i]
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return i
        return len(self.masked)

    def _block_for(self, kind: DeclarationKind, anchor: int) -> DocumentationBlock | None:
        block = find_preceding_block(
            self.source, anchor, self.windows.window_for(kind.value), kind
        )
        if block is None or kind == DeclarationKind.CONTRACT:
            return block
        contract = self.contract()
        if contract is not None and contract.block is not None and block.start == contract.block.start:
            return None
        return block

    def _declaration(self, kind: DeclarationKind, start: int) -> Declaration:
        end, terminator = self._header_end(start)
        body = ""
        stop = end
        if kind in _BRACED_KINDS and terminator == "{":
            close = self._matching_brace(end)
            body = self.readable[end + 1:close]
            stop = close + 1
        return Declaration(
            kind=kind,
            text=_collapse(self.readable[start:end]),
            start=start,
            end=stop,
            body=body,
            block=self._block_for(kind, start),
        )

    # -- Contract --------------------------------------------------------

    def contract(self) -> Declaration | None:
        """The outermost contract declaration and its block.

        A top-level non-abstract contract is preferred; otherwise the first
        top-level contract anchor is used.
        """
        if self._contract_done:
            return self._contract
        self._contract_done = True

        candidates = [
            m for m in _ANCHOR_PATTERNS[DeclarationKind.CONTRACT].finditer(self.masked)
            if self._depth_at(m.start()) == 0
        ]
        if not candidates:
            return None
        concrete = [m for m in candidates if not m.group(0).startswith("abstract")]
        chosen = (concrete or candidates)[0]
        self._contract = self._declaration(DeclarationKind.CONTRACT, chosen.start())
        return self._contract

    # -- Members ---------------------------------------------------------

    def _body_span(self) -> tuple[int, int] | None:
        """Offsets of the main contract's ``{`` and its matching ``}``."""
        contract = self.contract()
        if contract is None or self.masked[contract.end:contract.end + 1] != "{":
            return None
        return contract.end, self._matching_brace(contract.end)

    def _state_variable_starts(self) -> list[int]:
        """Start offsets of ``;``-terminated statements directly in the contract body."""
        span = self._body_span()
        if span is None:
            return []
        open_idx, close_idx = span

        starts: list[int] = []
        depth = 1
        parens = 0
        seg_start: int | None = open_idx + 1

        for i in range(open_idx + 1, close_idx):
            ch = self.masked[i]
            if ch == "(":
                parens += 1
            elif ch == ")":
                parens = max(0, parens - 1)
            elif parens:
                continue
            elif ch == "{":
                depth += 1
                seg_start = None
            elif ch == "}":
                depth = max(1, depth - 1)
                seg_start = i + 1 if depth == 1 else None
            elif ch == ";" and depth == 1 and seg_start is not None:
                segment = self.masked[seg_start:i]
                stripped = segment.lstrip()
                if stripped:
                    first_word = re.match(r"\w*", stripped).group(0)
                    if first_word not in _NON_VARIABLE_KEYWORDS:
                        starts.append(seg_start + len(segment) - len(stripped))
                seg_start = i + 1
        return starts

    def locate(self, kind: DeclarationKind) -> list[Declaration]:
        """Return every declaration of *kind* in source order.

        Members are only looked for inside the main contract's body; file-level
        structs, enums, free functions and sibling interfaces or libraries are
        not the contract's members.
        """
        if kind == DeclarationKind.CONTRACT:
            contract = self.contract()
            return [contract] if contract is not None else []
        if kind == DeclarationKind.STATE_VARIABLE:
            starts = self._state_variable_starts()
        else:
            span = self._body_span()
            if span is None:
                return []
            starts = [
                m.start()
                for m in _ANCHOR_PATTERNS[kind].finditer(self.masked, span[0] + 1, span[1])
            ]
        return [self._declaration(kind, start) for start in starts]

    def locate_all(self) -> dict[DeclarationKind, list[Declaration]]:
        """Locate every kind at once."""
        return {kind: self.locate(kind) for kind in DeclarationKind}


def locate_declarations(
    source: str,
    kind: DeclarationKind,
    windows: LocatorConfig | None = None,
) -> list[Declaration]:
    """Convenience wrapper: locate one declaration kind in *source*."""
    return DeclarationLocator(source, windows).locate(kind)
