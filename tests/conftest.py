"""Shared pytest fixtures for the starter kit test suite.

Provides reusable fixtures for:
- Fixture contract paths and their source text
- Inline Solidity snippets for the compiler scenarios
- Default taxonomy and configuration objects
- A temporary starters directory with metadata files
"""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from starterkit.config import Config, TaxonomyConfig


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Fixture files
# ---------------------------------------------------------------------------

@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def counter_path() -> Path:
    """Path to the fully annotated FHECounter.sol fixture."""
    path = FIXTURES_DIR / "FHECounter.sol"
    assert path.exists(), f"Counter fixture not found at {path}"
    return path


@pytest.fixture
def counter_source(counter_path: Path) -> str:
    return counter_path.read_text(encoding="utf-8")


@pytest.fixture
def adjacent_source() -> str:
    """Tightly packed declarations used to check block pairing."""
    return (FIXTURES_DIR / "adjacent_declarations.sol").read_text(encoding="utf-8")


@pytest.fixture
def multi_author_source() -> str:
    return (FIXTURES_DIR / "MultiAuthor.sol").read_text(encoding="utf-8")


@pytest.fixture
def outside_source() -> str:
    """Main contract surrounded by file-level structs, functions and interfaces."""
    return (FIXTURES_DIR / "outside_declarations.sol").read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Inline sources
# ---------------------------------------------------------------------------

@pytest.fixture
def widget_source() -> str:
    """Minimal valid contract with one documented function."""
    return textwrap.dedent("""\
        pragma solidity ^0.8.24;

        /**
         * @title Widget
         * @notice Demonstrates X
         * @author Alice <alice@example.com>
         * @custom:category fundamental
         * @custom:chapter basics
         * @custom:ui false
         */
        contract Widget {
            uint256 private a;

            /**
             * @notice Sets A
             * @param newA The new value of A
             */
            function setA(uint256 newA) external {
                a = newA;
            }
        }
    """)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def taxonomy() -> TaxonomyConfig:
    return TaxonomyConfig()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config rooted in a temporary directory."""
    return Config(
        starters_dir=tmp_path / "starters",
        docs_dir=tmp_path / "docs",
    )


@pytest.fixture
def starters_dir(tmp_path: Path) -> Path:
    """A starters directory with valid, broken and metadata-less starters."""
    root = tmp_path / "starters"
    counter = root / "fhe-counter"
    counter.mkdir(parents=True)
    (counter / "metadata.json").write_text(json.dumps({
        "name": "fhe-counter",
        "label": "FHE Counter",
        "category": "fundamental",
        "chapter": "basics",
        "tags": ["Infra", "Gaming"],
    }), encoding="utf-8")

    voting = root / "simple-voting"
    voting.mkdir()
    (voting / "metadata.json").write_text(json.dumps({
        "name": "simple-voting",
        "label": "Simple Voting",
        "category": "applied",
        "chapter": "decryption",
        "tags": ["Governance"],
    }), encoding="utf-8")

    broken = root / "broken-starter"
    broken.mkdir()
    (broken / "metadata.json").write_text("{not json", encoding="utf-8")

    (root / "no-metadata").mkdir()
    (root / "README.md").write_text("not a starter\n", encoding="utf-8")
    return root
