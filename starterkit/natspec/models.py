"""Pydantic v2 models for the NatSpec metadata compiler.

Defines the complete data model hierarchy: lexed tags and documentation blocks,
author records, per-declaration member records, the assembled starter metadata
document, and the warning/failure records returned alongside it.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class DeclarationKind(str, Enum):
    """Declaration kinds the locator can anchor on."""
    CONTRACT = "contract"
    CONSTRUCTOR = "constructor"
    FUNCTION = "function"
    STATE_VARIABLE = "state_variable"
    STRUCT = "struct"
    ENUM = "enum"
    EVENT = "event"


class TagType(str, Enum):
    """How a tag's raw value is interpreted."""
    STRING = "string"
    BOOLEAN = "boolean"
    CSV = "csv"
    PACKAGES = "packages"
    PASSTHROUGH = "passthrough"


class Multiplicity(str, Enum):
    """How repeated occurrences of a tag combine."""
    SINGULAR = "singular"    # first occurrence wins
    MULTI = "multi"          # every occurrence accumulates
    ANCHOR = "anchor"        # opens a new repeating group
    DEPENDENT = "dependent"  # attaches to the most recently opened group


class WarningKind(str, Enum):
    """Recoverable, per-item problems found during extraction."""
    MISSING_CONTRACT_BLOCK = "missing_contract_block"
    MISSING_BLOCK = "missing_block"
    DROPPED_MEMBER = "dropped_member"
    DISCARDED_TAG = "discarded_tag"
    DUPLICATE_TAG = "duplicate_tag"
    UNKNOWN_PARAM = "unknown_param"


class CompilerState(str, Enum):
    """States of a single compiler run."""
    EXTRACTING = "extracting"
    ASSEMBLED = "assembled"
    VALIDATED_OK = "validated_ok"
    VALIDATED_FAILED = "validated_failed"


# ---------------------------------------------------------------------------
# Lexing
# ---------------------------------------------------------------------------

class Tag(BaseModel):
    """One ``@name value`` entry lexed from a documentation block."""
    name: str = Field(..., description="Logical tag name, e.g. 'notice' or 'dev:details'")
    raw_value: str = Field(default="", description="Newline-joined raw value")
    line: int = Field(default=0, description="Index of the tag-start line within the block")


class DocumentationBlock(BaseModel):
    """A contiguous ``/** */`` or ``///`` comment paired with one declaration."""
    lines: list[str] = Field(default_factory=list, description="Normalised content lines")
    start: int = Field(..., description="Offset of the block's first character")
    end: int = Field(..., description="Offset just past the block's last character")
    text: str = Field(default="", description="Raw block text as found in the source")
    anchor: Optional[DeclarationKind] = Field(
        default=None, description="Kind of declaration the block precedes"
    )


class Declaration(BaseModel):
    """A located declaration with its preceding documentation block, if any."""
    kind: DeclarationKind
    text: str = Field(..., description="Whitespace-collapsed declaration header")
    start: int
    end: int
    body: str = Field(default="", description="Text between braces for structs/enums")
    block: Optional[DocumentationBlock] = None


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

class CompileWarning(BaseModel):
    """A non-fatal problem; extraction continued."""
    kind: WarningKind
    subject: str = Field(default="", description="Declaration or tag concerned")
    message: str


class FieldFailure(BaseModel):
    """A violated field rule, naming the field and the rule."""
    field: str = Field(..., description="Document field, e.g. 'has_ui' or 'authors[0].name'")
    rule: str = Field(..., description="Short rule identifier, e.g. 'boolean' or 'required'")
    message: str
    tag: Optional[str] = Field(default=None, description="Source tag, when one is involved")

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class TagValue(BaseModel):
    """Result of interpreting one tag: a typed value and/or failures."""
    name: str
    value: Any = None
    failures: list[FieldFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


# ---------------------------------------------------------------------------
# Contract-level records
# ---------------------------------------------------------------------------

class AuthorRecord(BaseModel):
    """One declared author."""
    name: str
    email: Optional[str] = None
    url: Optional[str] = None


class PackageRef(BaseModel):
    """An additional npm package required by a starter."""
    name: str
    version: str


# ---------------------------------------------------------------------------
# Member records
# ---------------------------------------------------------------------------

class Parameter(BaseModel):
    """A function/constructor/event parameter or a struct field."""
    name: str = Field(default="")
    type: str = Field(default="")
    description: Optional[str] = None
    indexed: bool = Field(default=False, description="Event parameters only")


class ReturnValue(BaseModel):
    """A declared function return value."""
    name: str = Field(default="")
    type: str = Field(default="")
    description: Optional[str] = None


class EnumValue(BaseModel):
    """A single enum member."""
    name: str
    description: Optional[str] = None


class MemberRecord(BaseModel):
    """Fields shared by every member record."""
    name: str
    signature: str = Field(default="", description="Declaration header, whitespace-collapsed")
    notice: str = Field(default="", description="Short description from @notice")
    dev: list[str] = Field(default_factory=list, description="Long description items from @dev")
    custom: dict[str, list[str]] = Field(default_factory=dict)


class StateVariableRecord(MemberRecord):
    type: str = Field(default="")
    visibility: str = Field(default="internal")
    mutability: str = Field(default="", description="'constant', 'immutable' or ''")
    value: Optional[str] = Field(default=None, description="Initialiser expression")


class FunctionRecord(MemberRecord):
    visibility: str = Field(default="")
    mutability: str = Field(default="nonpayable")
    modifiers: list[str] = Field(default_factory=list)
    params: list[Parameter] = Field(default_factory=list)
    returns: list[ReturnValue] = Field(default_factory=list)


class StructRecord(MemberRecord):
    fields: list[Parameter] = Field(default_factory=list)


class EnumRecord(MemberRecord):
    values: list[EnumValue] = Field(default_factory=list)


class EventRecord(MemberRecord):
    params: list[Parameter] = Field(default_factory=list)
    anonymous: bool = False


class ConstructorRecord(MemberRecord):
    name: str = "constructor"
    params: list[Parameter] = Field(default_factory=list)
    payable: bool = False


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------

class MetadataOverrides(BaseModel):
    """Externally supplied values; an in-source tag always wins over these."""
    name: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    chapter: Optional[str] = None
    tags: Optional[list[str]] = None
    has_ui: Optional[bool] = None
    version: Optional[str] = None
    fhevm_version: Optional[str] = None


# ---------------------------------------------------------------------------
# Root document
# ---------------------------------------------------------------------------

class StarterMetadataDocument(BaseModel):
    """The assembled metadata for one starter contract."""
    # Identity
    name: str = Field(default="", description="Dash-case starter identifier, e.g. 'fhe-counter'")
    contract_name: str = Field(default="", description="Declared contract name, e.g. 'FHECounter'")
    contract_filename: str = Field(default="", description="Source filename, e.g. 'FHECounter.sol'")

    # Descriptive
    label: str = Field(default="")
    description: str = Field(default="")
    details: Optional[str] = None
    version: str = Field(default="")
    fhevm_version: str = Field(default="")

    # Classification
    category: str = Field(default="")
    chapter: str = Field(default="")
    tags: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    authors: list[AuthorRecord] = Field(default_factory=list)
    has_ui: bool = False

    # Long-form notes
    usage: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    security: list[str] = Field(default_factory=list)
    limitations: list[str] = Field(default_factory=list)
    custom: dict[str, list[str]] = Field(default_factory=dict)

    # Packaging
    additional_files: list[str] = Field(default_factory=list)
    additional_packages: list[PackageRef] = Field(default_factory=list)
    constructor_args: list[str] = Field(default_factory=list)

    # Members
    constructor: Optional[ConstructorRecord] = None
    state_variables: list[StateVariableRecord] = Field(default_factory=list)
    functions: list[FunctionRecord] = Field(default_factory=list)
    structs: list[StructRecord] = Field(default_factory=list)
    enums: list[EnumRecord] = Field(default_factory=list)
    events: list[EventRecord] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible dict with unset optional fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self) -> str:
        """Deterministic JSON serialisation."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Validator verdict: ``ok`` exactly when there are no failures."""
    failures: list[FieldFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def messages(self) -> list[str]:
        return [str(f) for f in self.failures]


class CompileResult(BaseModel):
    """Everything a compiler run hands back to its caller."""
    document: StarterMetadataDocument
    warnings: list[CompileWarning] = Field(default_factory=list)
    validation: ValidationResult = Field(default_factory=ValidationResult)
    state: CompilerState = CompilerState.EXTRACTING

    @property
    def ok(self) -> bool:
        return self.state == CompilerState.VALIDATED_OK
