"""Jinja2 rendering of starter documentation pages.

Provides the DocsRenderer class which loads Jinja2 templates from the
``starterkit/docs/templates/`` directory (or a custom template file) and renders
them with a metadata document as context.  Supports file-template rendering,
string-based rendering for inline templates, and async writes to disk.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from starterkit.natspec.models import StarterMetadataDocument
from starterkit.utils import to_dash_case


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
DEFAULT_TEMPLATE = "CONTRACT_DOCUMENTATION.md.j2"


# ---------------------------------------------------------------------------
# DocsRenderer
# ---------------------------------------------------------------------------


class DocsRenderer:
    """Renders Markdown documentation for one starter contract.

    With no arguments the bundled ``CONTRACT_DOCUMENTATION.md.j2`` is used.
    Passing *template_path* (a ``.j2`` file anywhere on disk) replaces it; the
    file's directory becomes the loader root so it may include siblings.
    """

    def __init__(self, template_path: str | Path | None = None) -> None:
        if template_path is None:
            self.template_dir = _DEFAULT_TEMPLATE_DIR
            self.template_name = DEFAULT_TEMPLATE
        else:
            template_file = Path(template_path)
            if not template_file.is_file():
                raise FileNotFoundError(f"Template not found: {template_file}")
            self.template_dir = template_file.parent
            self.template_name = template_file.name

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([], default_for_string=False),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["dash_case"] = _dash_case_filter
        self.env.filters["md_cell"] = _md_cell_filter

    # -- Rendering ---------------------------------------------------------

    @staticmethod
    def context_for(document: StarterMetadataDocument) -> dict[str, Any]:
        """Template context: every document field at top level plus ``document``."""
        data = document.model_dump(mode="json")
        return {**data, "document": data}

    def render_document(self, document: StarterMetadataDocument) -> str:
        """Render the configured template for *document*."""
        template = self.env.get_template(self.template_name)
        return template.render(**self.context_for(document))

    def render_string(self, template_string: str, document: StarterMetadataDocument) -> str:
        """Render an inline template string against *document*.

        Useful for one-line summaries (e.g. ``"{{ label }} ({{ category }})"``).
        """
        template = self.env.from_string(template_string)
        return template.render(**self.context_for(document))

    async def render_to_file(
        self,
        document: StarterMetadataDocument,
        output_path: str | Path,
    ) -> Path:
        """Render *document* and write the result to *output_path*.

        Parent directories are created automatically.  Returns the output path.
        """
        content = self.render_document(document)
        out = Path(output_path)
        await asyncio.to_thread(_write_file, out, content)
        return out


def docs_output_path(document: StarterMetadataDocument, docs_dir: str | Path) -> Path:
    """Where a starter's page lives: ``<docs_dir>/<category>/<name>-<stem>.md``."""
    stem = Path(document.contract_filename).stem or document.contract_name
    category = document.category or "uncategorized"
    filename = f"{document.name}-{stem}.md" if stem else f"{document.name}.md"
    return Path(docs_dir) / category / filename


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _dash_case_filter(value: str) -> str:
    """``FHECounter`` -> ``fhe-counter``."""
    return to_dash_case(str(value or ""))


def _md_cell_filter(value: Any) -> str:
    """Make a value safe inside a Markdown table cell."""
    if value is None:
        return ""
    text = re.sub(r"\s*\n\s*", " ", str(value))
    return text.replace("|", "\\|").strip()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
