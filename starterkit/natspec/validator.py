"""Validator for assembled metadata documents.

A pure predicate over a :class:`StarterMetadataDocument`: no I/O, no mutation.
Checks run in a fixed order so the failure list is stable for identical input.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from starterkit.config import TaxonomyConfig

from .models import FieldFailure, StarterMetadataDocument, ValidationResult


_DASH_CASE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_SEMVER = re.compile(r"^\d+\.\d+\.\d+$")
_EMAIL = re.compile(r"^[^@\s<>]+@[^@\s<>]+\.[^@\s<>]+$")
_URL = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)

MAX_NAME = 100
MAX_LABEL = 100
MAX_DESCRIPTION = 300
MAX_DETAILS = 1000


class _Checks:
    """Collects failures in check order."""

    def __init__(self) -> None:
        self.failures: list[FieldFailure] = []

    def fail(self, field: str, rule: str, message: str) -> None:
        self.failures.append(FieldFailure(field=field, rule=rule, message=message))

    def required(self, field: str, value: str) -> bool:
        if not value or not value.strip():
            self.fail(field, "required", "is required")
            return False
        return True

    def max_length(self, field: str, value: str | None, limit: int) -> None:
        if value and len(value) > limit:
            self.fail(field, "max_length", f"must be at most {limit} characters (got {len(value)})")

    def one_of(self, field: str, value: str, allowed: list[str]) -> None:
        if not self.required(field, value):
            return
        if value not in allowed:
            self.fail(field, "enum", f"{value!r} is not one of: {', '.join(allowed)}")


def validate_document(
    document: StarterMetadataDocument,
    taxonomy: TaxonomyConfig | None = None,
    field_failures: Iterable[FieldFailure] = (),
) -> ValidationResult:
    """Check *document* against required-field and format rules.

    Args:
        document: The assembled document.
        taxonomy: Closed enumerations for ``category`` and ``chapter``.
        field_failures: Interpreter failures collected during assembly; they
            are reported first, in tag order.

    Returns:
        A ``ValidationResult`` whose ``ok`` is true exactly when no rule failed.
    """
    taxonomy = taxonomy or TaxonomyConfig()
    checks = _Checks()
    checks.failures.extend(field_failures)

    # Identity
    if checks.required("name", document.name) and not _DASH_CASE.match(document.name):
        checks.fail("name", "dash_case", f"{document.name!r} must be lowercase dash-case, e.g. 'fhe-counter'")
    if checks.required("contract_name", document.contract_name):
        checks.max_length("contract_name", document.contract_name, MAX_NAME)
    checks.max_length("contract_filename", document.contract_filename, MAX_NAME)

    # Descriptive
    if checks.required("label", document.label):
        checks.max_length("label", document.label, MAX_LABEL)
    checks.max_length("description", document.description, MAX_DESCRIPTION)
    checks.max_length("details", document.details, MAX_DETAILS)
    if not _SEMVER.match(document.version):
        checks.fail("version", "semver", f"{document.version!r} must look like 1.2.3")

    # Classification
    checks.one_of("category", document.category, taxonomy.categories)
    checks.one_of("chapter", document.chapter, taxonomy.chapters)

    # Authors
    if not document.authors:
        checks.fail("authors", "required", "at least one @author is required")
    for index, author in enumerate(document.authors):
        prefix = f"authors[{index}]"
        if checks.required(f"{prefix}.name", author.name):
            checks.max_length(f"{prefix}.name", author.name, MAX_NAME)
        if author.email is not None and not _EMAIL.match(author.email):
            checks.fail(f"{prefix}.email", "email", f"{author.email!r} is not a valid email address")
        if author.url is not None and not _URL.match(author.url):
            checks.fail(f"{prefix}.url", "url", f"{author.url!r} is not an http(s) URL")

    # Packages
    for index, package in enumerate(document.additional_packages):
        prefix = f"additional_packages[{index}]"
        checks.required(f"{prefix}.name", package.name)
        checks.required(f"{prefix}.version", package.version)

    return ValidationResult(failures=checks.failures)
