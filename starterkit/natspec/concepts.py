"""Concept detector.

Scans full source text for literal operation tokens and reports the concept
labels whose tokens appear. The scan is an unscoped, case-sensitive substring
search: it cannot tell a token in a comment from one in executable code.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class TaxonomyError(ValueError):
    """Raised when no usable concept taxonomy is supplied."""


class ConceptDetector:
    """Detect concept labels from a label -> tokens taxonomy.

    The mapping is copied into immutable tuples at construction, so later
    changes to the caller's mapping never affect a detector in use.
    """

    def __init__(self, taxonomy: Mapping[str, Any] | None) -> None:
        if taxonomy is None:
            raise TaxonomyError("a concept taxonomy mapping is required")
        if not isinstance(taxonomy, Mapping):
            raise TaxonomyError(
                f"concept taxonomy must be a mapping, got {type(taxonomy).__name__}"
            )
        entries: list[tuple[str, tuple[str, ...]]] = []
        for label, tokens in taxonomy.items():
            if isinstance(tokens, str):
                tokens = [tokens]
            entries.append((str(label), tuple(t for t in tokens if t)))
        self.entries: tuple[tuple[str, tuple[str, ...]], ...] = tuple(entries)

    @property
    def labels(self) -> list[str]:
        return [label for label, _ in self.entries]

    def detect(self, source: str) -> list[str]:
        """Return matched labels, each once, in taxonomy order."""
        found: list[str] = []
        for label, tokens in self.entries:
            if label not in found and any(token in source for token in tokens):
                found.append(label)
        return found


def detect_concepts(source: str, taxonomy: Mapping[str, Any] | None) -> list[str]:
    """One-off convenience wrapper around :class:`ConceptDetector`."""
    return ConceptDetector(taxonomy).detect(source)
