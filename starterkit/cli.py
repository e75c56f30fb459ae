"""Starter kit command-line interface.

Commands:

    build-metadata  -- Compile an annotated contract into metadata.json.
    validate        -- Check an existing metadata.json against the rules.
    generate-docs   -- Render a metadata.json into a Markdown page.
    list            -- List starters, optionally filtered by taxonomy.

Usage::

    starterkit build-metadata contracts/FHECounter.sol -o starters/fhe-counter/metadata.json
    starterkit validate starters/fhe-counter/metadata.json
    starterkit generate-docs starters/fhe-counter/metadata.json
    starterkit list --category fundamental --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from starterkit.config import Config
from starterkit.docs import DocsRenderer, docs_output_path
from starterkit.natspec import (
    CompileResult,
    CompilerStateError,
    FieldFailure,
    MetadataOverrides,
    StarterMetadataDocument,
    compile_file,
    validate_document,
)
from starterkit.starters import discover_starters, filter_starters
from starterkit.utils import (
    console,
    load_json,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    save_json,
)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

def _print_failures(failures: list[FieldFailure]) -> None:
    for failure in failures:
        console.print(f"  [red]x[/red] [bold]{escape(failure.field)}[/bold]: {escape(failure.message)}")


def _report(result: CompileResult, verbose: bool) -> None:
    """Print warnings, an optional summary and the validation verdict."""
    doc = result.document
    if verbose:
        console.print(Panel(
            f"[bold]{escape(doc.contract_name or doc.contract_filename or '?')}[/bold]",
            title="build-metadata",
            border_style="cyan",
        ))
        print_summary_table(
            {
                "Name": doc.name,
                "Label": doc.label,
                "Category / chapter": f"{doc.category or '-'} / {doc.chapter or '-'}",
                "Authors": str(len(doc.authors)),
                "Concepts": ", ".join(doc.concepts) or "-",
                "State variables": str(len(doc.state_variables)),
                "Functions": str(len(doc.functions)),
                "Structs / enums / events": f"{len(doc.structs)} / {len(doc.enums)} / {len(doc.events)}",
                "Constructor": "yes" if doc.constructor else "no",
            },
            title="Extraction summary",
        )

    for warning in result.warnings:
        print_warning(escape(f"warning [{warning.kind.value}] {warning.message}"))

    if result.validation.ok:
        print_success("Metadata is valid.")
    else:
        print_error(f"Metadata is invalid ({len(result.validation.failures)} problem(s)):")
        _print_failures(result.validation.failures)


def _load_config(path: Optional[str]) -> Config:
    return Config.load(Path(path)) if path else Config.from_env()


def _load_document(path: str) -> StarterMetadataDocument:
    return StarterMetadataDocument.model_validate(load_json(path))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def _build_metadata(args: argparse.Namespace, config: Config) -> int:
    overrides = MetadataOverrides(
        name=args.name,
        category=args.category,
        chapter=args.chapter,
        tags=[t.strip() for t in args.tags.split(",") if t.strip()] if args.tags else None,
        has_ui=args.ui,
    )
    result = await compile_file(args.contract, config, overrides)
    _report(result, args.verbose)

    if args.json:
        console.print_json(result.document.to_json())

    if not result.ok and not args.allow_invalid:
        print_error("Nothing written; fix the annotations or pass --allow-invalid.")
        return 1

    output = Path(args.output) if args.output else Path.cwd() / config.metadata_file
    await save_json(result.document.to_dict(), output)
    print_success(f"Metadata written to {escape(str(output))}")
    return 0


async def _validate(args: argparse.Namespace, config: Config) -> int:
    try:
        document = _load_document(args.metadata)
    except ValidationError as exc:
        print_error(f"{escape(args.metadata)} does not match the metadata schema:")
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "<root>"
            console.print(f"  [red]x[/red] [bold]{escape(field)}[/bold]: {escape(error['msg'])}")
        return 1

    result = validate_document(document, config.taxonomy)
    if result.ok:
        print_success(f"{escape(args.metadata)} is valid.")
        return 0
    print_error(f"{escape(args.metadata)} is invalid ({len(result.failures)} problem(s)):")
    _print_failures(result.failures)
    return 1


async def _generate_docs(args: argparse.Namespace, config: Config) -> int:
    document = _load_document(args.metadata)
    result = validate_document(document, config.taxonomy)
    if not result.ok:
        print_error("Refusing to render invalid metadata:")
        _print_failures(result.failures)
        return 1

    renderer = DocsRenderer(args.template or config.template_path)
    output = Path(args.output) if args.output else docs_output_path(document, config.docs_path)
    await renderer.render_to_file(document, output)
    print_success(f"Documentation written to {escape(str(output))}")
    return 0


async def _list(args: argparse.Namespace, config: Config) -> int:
    entries = discover_starters(config.starters_path, config.metadata_file)
    entries = filter_starters(entries, args.category, args.chapter, args.tag)

    if args.json:
        rows: list[dict[str, Any]] = [
            {
                "slug": e.slug,
                "path": str(e.path),
                "metadata": e.metadata,
                "error": e.error,
            }
            for e in entries
        ]
        console.print_json(json.dumps(rows))
        return 0

    if not entries:
        print_warning("No starters found.")
        return 0

    table = Table(title="Starters", show_header=True, header_style="bold cyan")
    table.add_column("Slug", style="bold")
    table.add_column("Label")
    table.add_column("Category")
    table.add_column("Chapter")
    table.add_column("Tags", style="dim")
    for entry in entries:
        meta = entry.metadata or {}
        table.add_row(
            escape(entry.slug),
            escape(entry.label),
            escape(str(meta.get("category") or "-")),
            escape(str(meta.get("chapter") or "-")),
            escape(", ".join(meta.get("tags") or [])),
        )
    console.print(table)

    for entry in entries:
        if entry.error:
            print_warning(f"{escape(entry.slug)}: {escape(entry.error)}")
    return 0


_COMMANDS = {
    "build-metadata": _build_metadata,
    "validate": _validate,
    "generate-docs": _generate_docs,
    "list": _list,
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="starterkit",
        description="Starter kit tooling -- NatSpec metadata compiler and docs generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  starterkit build-metadata contracts/FHECounter.sol --verbose\n"
            "  starterkit validate starters/fhe-counter/metadata.json\n"
            "  starterkit list --chapter basics\n"
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build-metadata", help="Compile a contract's NatSpec into metadata.json")
    build.add_argument("contract", help="Path to the annotated .sol file")
    build.add_argument("--output", "-o", default=None,
                       help="Output file (default: ./<metadata_file>)")
    build.add_argument("--name", default=None, help="Starter name when @custom:name is absent")
    build.add_argument("--category", default=None, help="Category when @custom:category is absent")
    build.add_argument("--chapter", default=None, help="Chapter when @custom:chapter is absent")
    build.add_argument("--tags", default=None, help="Comma-separated tags when @custom:tags is absent")
    build.add_argument("--ui", action=argparse.BooleanOptionalAction, default=None,
                       help="UI flag when @custom:ui is absent")
    build.add_argument("--config", default=None, help="Config file (.json/.yaml)")
    build.add_argument("--json", action="store_true", help="Print the metadata JSON")
    build.add_argument("--verbose", action="store_true", help="Print an extraction summary")
    build.add_argument("--allow-invalid", action="store_true",
                       help="Write the metadata even when validation fails")

    validate = sub.add_parser("validate", help="Validate an existing metadata.json")
    validate.add_argument("metadata", help="Path to metadata.json")
    validate.add_argument("--config", default=None, help="Config file (.json/.yaml)")

    docs = sub.add_parser("generate-docs", help="Render metadata.json to Markdown")
    docs.add_argument("metadata", help="Path to metadata.json")
    docs.add_argument("--output", "-o", default=None,
                      help="Output file (default: <docs_dir>/<category>/<name>-<Contract>.md)")
    docs.add_argument("--template", default=None, help="Custom Jinja2 template (.j2)")
    docs.add_argument("--config", default=None, help="Config file (.json/.yaml)")

    lister = sub.add_parser("list", help="List available starters")
    lister.add_argument("--category", default=None)
    lister.add_argument("--chapter", default=None)
    lister.add_argument("--tag", default=None)
    lister.add_argument("--json", action="store_true", help="Machine-readable output")
    lister.add_argument("--config", default=None, help="Config file (.json/.yaml)")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``starterkit`` / ``python -m starterkit.cli``."""
    args = build_parser().parse_args(argv)

    try:
        config = _load_config(args.config)
        code = asyncio.run(_COMMANDS[args.command](args, config))
    except (OSError, ValueError, yaml.YAMLError, CompilerStateError) as exc:
        # ValueError covers TaxonomyError, JSON decode and schema errors.
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
