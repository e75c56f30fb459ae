"""Starter documentation generator.

Renders a validated ``StarterMetadataDocument`` into a Markdown page using
Jinja2 templates stored in ``starterkit/docs/templates/``.

Quick usage::

    from starterkit.docs import DocsRenderer, docs_output_path

    renderer = DocsRenderer()
    markdown = renderer.render_document(result.document)
    await renderer.render_to_file(
        result.document, docs_output_path(result.document, config.docs_path)
    )
"""

from starterkit.docs.renderer import DEFAULT_TEMPLATE, DocsRenderer, docs_output_path

__all__ = [
    "DEFAULT_TEMPLATE",
    "DocsRenderer",
    "docs_output_path",
]
