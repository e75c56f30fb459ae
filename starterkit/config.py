"""Starter kit configuration.

Centralised, typed configuration for the metadata compiler and the tooling around
it. All settings use Pydantic v2 models so they can be validated at construction
time and serialised to/from JSON, YAML or environment variables without
boiler-plate.

The taxonomy held here is handed to the compiler explicitly; the concept
detector only sees the table it is constructed with.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Default taxonomy
# ---------------------------------------------------------------------------

DEFAULT_CATEGORIES: list[str] = ["fundamental", "patterns", "applied", "advanced"]

DEFAULT_CHAPTERS: list[str] = [
    "basics",
    "encryption",
    "decryption",
    "access-control",
    "inputproof",
    "anti-patterns",
    "handles",
    "openzeppelin",
    "advanced",
    "fhe-operations",
]

DEFAULT_COMMON_TAGS: list[str] = [
    "DeFi", "InfoFi", "DeSci", "Infra", "Gaming", "Social",
    "Governance", "NFT", "Identity", "Storage", "Science",
]

# Concepts auto-populate from the FHE operations used in a contract.
DEFAULT_CONCEPTS: dict[str, list[str]] = {
    "arithmetic-operations": [
        "FHE.add", "FHE.sub", "FHE.mul", "FHE.div",
        "FHE.rem", "FHE.neg", "FHE.min", "FHE.max",
    ],
    "bitwise-operations": [
        "FHE.and", "FHE.or", "FHE.xor", "FHE.not",
        "FHE.shr", "FHE.shl", "FHE.rotr", "FHE.rotl",
    ],
    "comparison-operations": [
        "FHE.eq", "FHE.ne", "FHE.ge", "FHE.gt", "FHE.le", "FHE.lt",
    ],
    "ternary-operations": ["FHE.select"],
    "random-operations": [
        "FHE.randEuint256", "FHE.randEuint64", "FHE.randEuint32",
        "FHE.randEuint16", "FHE.randEuint8", "FHE.randEbool",
    ],
    "trivial-encryption": [
        "FHE.asEbool", "FHE.asEuint8", "FHE.asEuint16", "FHE.asEuint32",
        "FHE.asEuint64", "FHE.asEuint128", "FHE.asEuint256", "FHE.asEaddress",
    ],
    "access-control": [
        "FHE.allow", "FHE.allowThis", "FHE.allowTransient",
        "FHE.makePubliclyDecryptable", "FHE.isSenderAllowed",
    ],
}


# ---------------------------------------------------------------------------
# Nested models
# ---------------------------------------------------------------------------


class TaxonomyConfig(BaseModel):
    """Closed enumerations and the concept-label -> token table.

    ``categories`` and ``chapters`` are closed: the validator rejects any value
    outside them. ``common_tags`` is advisory only; tags stay an open set.
    """

    categories: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    chapters: list[str] = Field(default_factory=lambda: list(DEFAULT_CHAPTERS))
    common_tags: list[str] = Field(default_factory=lambda: list(DEFAULT_COMMON_TAGS))
    concepts: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_CONCEPTS.items()},
        description="Concept label -> literal source tokens that reveal it",
    )

    def concept_labels(self) -> list[str]:
        """Return every concept label in declaration order."""
        return list(self.concepts.keys())


class LocatorConfig(BaseModel):
    """Backward lookback windows (in characters) per declaration kind.

    A documentation block is only paired with a declaration when the block
    starts within this many characters before the declaration anchor.
    """

    contract: int = Field(default=4000, ge=0)
    constructor: int = Field(default=3000, ge=0)
    function: int = Field(default=2000, ge=0)
    event: int = Field(default=1200, ge=0)
    state_variable: int = Field(default=1200, ge=0)
    struct: int = Field(default=800, ge=0)
    enum: int = Field(default=800, ge=0)

    def window_for(self, kind: str) -> int:
        """Return the window for a declaration kind name (e.g. ``"struct"``)."""
        value = getattr(self, str(kind), None)
        if not isinstance(value, int):
            raise KeyError(f"Unknown declaration kind: {kind}")
        return value


class MetadataDefaults(BaseModel):
    """Derived defaults used when neither a tag nor an override supplies a value."""

    version: str = Field(default="1.0.0")
    fhevm_version: str = Field(default="0.9.1")


# ---------------------------------------------------------------------------
# Root configuration
# ---------------------------------------------------------------------------


class Config(BaseModel):
    """Global starter kit configuration.

    Instances are typically created once by the CLI entry point and then passed
    through the rest of the system.
    """

    starters_dir: Path = Field(default=Path("starters"))
    docs_dir: Path = Field(default=Path("docs"))
    metadata_file: str = Field(default="metadata.json")
    template_path: Path | None = Field(
        default=None, description="Custom documentation template (.j2)"
    )
    taxonomy: TaxonomyConfig = Field(default_factory=TaxonomyConfig)
    locator: LocatorConfig = Field(default_factory=LocatorConfig)
    defaults: MetadataDefaults = Field(default_factory=MetadataDefaults)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def starters_path(self) -> Path:
        """Resolved root of the starters directory."""
        return self.starters_dir.resolve()

    @property
    def docs_path(self) -> Path:
        """Resolved root of the generated documentation directory."""
        return self.docs_dir.resolve()

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a configuration from JSON or YAML.

        The format is chosen by suffix: ``.yaml`` / ``.yml`` are parsed with
        PyYAML, anything else as JSON.

        Raises:
            FileNotFoundError: If the file does not exist.
            pydantic.ValidationError: If the content does not describe a valid
                configuration.
        """
        file_path = Path(path)
        raw = file_path.read_text(encoding="utf-8")
        if file_path.suffix.lower() in (".yaml", ".yml"):
            data: Any = yaml.safe_load(raw) or {}
        else:
            data = json.loads(raw)
        return cls.model_validate(data)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            STARTERKIT_CONFIG, STARTERKIT_STARTERS_DIR, STARTERKIT_DOCS_DIR,
            STARTERKIT_METADATA_FILE, STARTERKIT_DEFAULT_VERSION,
            STARTERKIT_FHEVM_VERSION.

        ``STARTERKIT_CONFIG`` names a file loaded first; the remaining variables
        override its values.
        """
        config_file = os.environ.get("STARTERKIT_CONFIG")
        base = cls.load(Path(config_file)) if config_file else cls()

        updates: dict[str, Any] = {}
        if os.environ.get("STARTERKIT_STARTERS_DIR"):
            updates["starters_dir"] = Path(os.environ["STARTERKIT_STARTERS_DIR"])
        if os.environ.get("STARTERKIT_DOCS_DIR"):
            updates["docs_dir"] = Path(os.environ["STARTERKIT_DOCS_DIR"])
        if os.environ.get("STARTERKIT_METADATA_FILE"):
            updates["metadata_file"] = os.environ["STARTERKIT_METADATA_FILE"]

        defaults_kwargs: dict[str, Any] = base.defaults.model_dump()
        if os.environ.get("STARTERKIT_DEFAULT_VERSION"):
            defaults_kwargs["version"] = os.environ["STARTERKIT_DEFAULT_VERSION"]
        if os.environ.get("STARTERKIT_FHEVM_VERSION"):
            defaults_kwargs["fhevm_version"] = os.environ["STARTERKIT_FHEVM_VERSION"]
        updates["defaults"] = MetadataDefaults(**defaults_kwargs)

        return base.model_copy(update=updates)
