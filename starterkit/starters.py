"""Starter discovery and taxonomy filtering.

Lists the starter folders under the starters directory, reads each one's
metadata JSON and filters the result by category, chapter or tag. Read-only:
nothing on disk is modified.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field


class StarterEntry(BaseModel):
    """One starter folder and its (possibly missing or broken) metadata."""

    slug: str = Field(..., description="Folder name, e.g. 'fhe-counter'")
    path: Path
    metadata: Optional[dict[str, Any]] = None
    error: Optional[str] = Field(default=None, description="Why the metadata could not be read")

    @property
    def has_metadata(self) -> bool:
        return self.metadata is not None

    @property
    def label(self) -> str:
        if self.metadata:
            return str(self.metadata.get("label") or self.metadata.get("name") or self.slug)
        return self.slug


def discover_starters(starters_dir: str | Path, metadata_file: str = "metadata.json") -> list[StarterEntry]:
    """Return one entry per sub-directory of *starters_dir*, sorted by name.

    A missing directory yields an empty list. A metadata file that cannot be
    parsed, or whose top level is not an object, sets ``error`` on its entry
    instead of raising.
    """
    root = Path(starters_dir)
    if not root.is_dir():
        return []

    entries: list[StarterEntry] = []
    for folder in sorted((p for p in root.iterdir() if p.is_dir()), key=lambda p: p.name):
        entry = StarterEntry(slug=folder.name, path=folder)
        metadata_path = folder / metadata_file
        if metadata_path.is_file():
            try:
                data = json.loads(metadata_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                entry.error = f"{metadata_path.name}: {exc}"
            else:
                if isinstance(data, dict):
                    entry.metadata = data
                else:
                    entry.error = f"{metadata_path.name}: top level must be a JSON object"
        entries.append(entry)
    return entries


def filter_starters(
    entries: list[StarterEntry],
    category: Optional[str] = None,
    chapter: Optional[str] = None,
    tag: Optional[str] = None,
) -> list[StarterEntry]:
    """Keep entries whose metadata matches every given field.

    Tag matching is case-insensitive. With no criteria every entry is kept;
    with any criterion, entries without metadata are dropped.
    """
    if category is None and chapter is None and tag is None:
        return list(entries)

    kept: list[StarterEntry] = []
    for entry in entries:
        meta = entry.metadata
        if not meta:
            continue
        if category is not None and meta.get("category") != category:
            continue
        if chapter is not None and meta.get("chapter") != chapter:
            continue
        if tag is not None:
            tags = [str(t).lower() for t in meta.get("tags") or []]
            if tag.lower() not in tags:
                continue
        kept.append(entry)
    return kept
