"""NatSpec metadata compiler.

Reads an annotated Solidity contract, extracts a typed starter metadata
document from its documentation blocks, detects FHE concepts via the taxonomy,
and validates the result before it is handed to the documentation renderer.

Usage::

    from starterkit.config import Config
    from starterkit.natspec import MetadataCompiler, compile_file

    result = await compile_file("contracts/FHECounter.sol", Config())
    print(result.document.to_json())
    print(result.warnings)
    print(result.validation.failures)

    compiler = MetadataCompiler(Config().taxonomy)
    result = compiler.compile(source, filename="FHECounter.sol")
"""

from starterkit.natspec.models import (
    AuthorRecord,
    CompileResult,
    CompileWarning,
    CompilerState,
    FieldFailure,
    MetadataOverrides,
    StarterMetadataDocument,
    ValidationResult,
    WarningKind,
)
from starterkit.natspec.concepts import ConceptDetector, TaxonomyError
from starterkit.natspec.compiler import (
    CompilerStateError,
    MetadataCompiler,
    compile_file,
    compile_source,
)
from starterkit.natspec.validator import validate_document

__all__ = [
    "compile_file",
    "compile_source",
    "validate_document",
    "MetadataCompiler",
    "ConceptDetector",
    "CompileResult",
    "CompileWarning",
    "CompilerState",
    "FieldFailure",
    "MetadataOverrides",
    "StarterMetadataDocument",
    "AuthorRecord",
    "ValidationResult",
    "WarningKind",
    "TaxonomyError",
    "CompilerStateError",
]
