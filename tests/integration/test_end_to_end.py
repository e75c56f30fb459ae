"""End-to-end test: annotated contract -> metadata.json -> Markdown page.

Runs the async file compiler on the fixture contract, writes the metadata,
reloads and re-validates it, renders documentation and finally discovers the
starter through the listing API.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from starterkit.config import Config
from starterkit.docs import DocsRenderer, docs_output_path
from starterkit.natspec import StarterMetadataDocument, compile_file, validate_document
from starterkit.starters import discover_starters, filter_starters
from starterkit.utils import load_json, save_json


@pytest.mark.integration
@pytest.mark.asyncio
async def test_contract_to_docs(counter_path: Path, config: Config):
    result = await compile_file(counter_path, config)
    assert result.ok, result.validation.messages()

    metadata_path = config.starters_dir / result.document.name / config.metadata_file
    await save_json(result.document.to_dict(), metadata_path)

    reloaded = StarterMetadataDocument.model_validate(load_json(metadata_path))
    assert reloaded.to_json() == result.document.to_json()
    assert validate_document(reloaded, config.taxonomy).ok

    page_path = docs_output_path(reloaded, config.docs_path)
    await DocsRenderer().render_to_file(reloaded, page_path)
    page = page_path.read_text(encoding="utf-8")
    assert "### increment" in page
    assert "FHE.add" not in page

    entries = filter_starters(
        discover_starters(config.starters_path, config.metadata_file),
        chapter="basics",
    )
    assert [e.slug for e in entries] == ["fhe-counter"]
    assert entries[0].metadata["concepts"] == result.document.concepts


@pytest.mark.integration
@pytest.mark.asyncio
async def test_metadata_file_is_stable(counter_path: Path, config: Config, tmp_path: Path):
    first = await compile_file(counter_path, config)
    second = await compile_file(counter_path, config)
    a = await save_json(first.document.to_dict(), tmp_path / "a.json")
    b = await save_json(second.document.to_dict(), tmp_path / "b.json")
    assert a.read_bytes() == b.read_bytes()
    assert json.loads(a.read_text(encoding="utf-8"))["authors"][1] == {
        "name": "Bob Builder",
        "email": "bob@example.com",
    }
