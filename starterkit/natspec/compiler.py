"""Metadata compiler: one source text in, one validated document out.

Drives the locator, extractors, concept detector, assembler and validator
through the run states::

    extracting -> assembled -> validated_ok | validated_failed

Each :meth:`MetadataCompiler.compile` call is an independent run; the only
shared input is the taxonomy, snapshotted when the compiler is built.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from starterkit.config import Config, LocatorConfig, MetadataDefaults, TaxonomyConfig

from .assembler import assemble_document
from .concepts import ConceptDetector, TaxonomyError
from .extractors import extract_all_members
from .locator import DeclarationLocator
from .models import CompileResult, CompilerState, MetadataOverrides
from .validator import validate_document


class CompilerStateError(RuntimeError):
    """Raised on an illegal run-state transition."""


_TRANSITIONS: dict[CompilerState, set[CompilerState]] = {
    CompilerState.EXTRACTING: {CompilerState.ASSEMBLED},
    CompilerState.ASSEMBLED: {CompilerState.VALIDATED_OK, CompilerState.VALIDATED_FAILED},
    CompilerState.VALIDATED_OK: set(),
    CompilerState.VALIDATED_FAILED: set(),
}


class _Run:
    """State of one compiler run."""

    def __init__(self) -> None:
        self.state = CompilerState.EXTRACTING

    def advance(self, target: CompilerState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise CompilerStateError(
                f"illegal transition {self.state.value} -> {target.value}"
            )
        self.state = target


class MetadataCompiler:
    """Compile annotated Solidity source into a validated metadata document.

    Usage::

        compiler = MetadataCompiler(config.taxonomy)
        result = compiler.compile(source, filename="FHECounter.sol")
        if not result.ok:
            for failure in result.validation.failures:
                ...
    """

    def __init__(
        self,
        taxonomy: TaxonomyConfig | None,
        locator: LocatorConfig | None = None,
        defaults: MetadataDefaults | None = None,
    ) -> None:
        if taxonomy is None:
            raise TaxonomyError("a taxonomy is required to compile metadata")
        if not isinstance(taxonomy, TaxonomyConfig):
            raise TaxonomyError(
                f"taxonomy must be a TaxonomyConfig, got {type(taxonomy).__name__}"
            )
        self.taxonomy = taxonomy.model_copy(deep=True)
        self.detector = ConceptDetector(self.taxonomy.concepts)
        self.locator_config = locator or LocatorConfig()
        self.defaults = defaults or MetadataDefaults()

    def compile(
        self,
        source: str,
        filename: str = "",
        overrides: Optional[MetadataOverrides] = None,
    ) -> CompileResult:
        """Run one full compilation. Never raises for data-quality problems."""
        run = _Run()

        locator = DeclarationLocator(source, self.locator_config)
        contract = locator.contract()
        members, warnings = extract_all_members(locator)
        concepts = self.detector.detect(source)

        document, assembly_warnings, field_failures = assemble_document(
            contract,
            members,
            concepts,
            filename=filename,
            overrides=overrides,
            defaults=self.defaults,
        )
        # Contract-level warnings lead, then member warnings by kind.
        warnings = assembly_warnings + warnings
        run.advance(CompilerState.ASSEMBLED)

        validation = validate_document(document, self.taxonomy, field_failures)
        run.advance(
            CompilerState.VALIDATED_OK if validation.ok else CompilerState.VALIDATED_FAILED
        )

        return CompileResult(
            document=document,
            warnings=warnings,
            validation=validation,
            state=run.state,
        )


def compile_source(
    source: str,
    taxonomy: TaxonomyConfig | None = None,
    filename: str = "",
    overrides: Optional[MetadataOverrides] = None,
    locator: LocatorConfig | None = None,
    defaults: MetadataDefaults | None = None,
) -> CompileResult:
    """Compile *source* with a one-off compiler.

    ``taxonomy`` defaults to the built-in ``TaxonomyConfig()``.
    """
    compiler = MetadataCompiler(taxonomy or TaxonomyConfig(), locator, defaults)
    return compiler.compile(source, filename=filename, overrides=overrides)


async def compile_file(
    path: str | Path,
    config: Config | None = None,
    overrides: Optional[MetadataOverrides] = None,
) -> CompileResult:
    """Read a ``.sol`` file and compile it.

    The read runs in a worker thread so the event loop is never blocked.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If *path* is not a ``.sol`` file.
    """
    file_path = Path(path)
    if file_path.suffix != ".sol":
        raise ValueError(f"Expected a .sol file, got: {file_path.name}")
    if not file_path.is_file():
        raise FileNotFoundError(f"Contract file not found: {file_path}")

    config = config or Config()
    source = await asyncio.to_thread(file_path.read_text, "utf-8")
    compiler = MetadataCompiler(config.taxonomy, config.locator, config.defaults)
    return compiler.compile(source, filename=file_path.name, overrides=overrides)
