"""SchemaBridge CLI application -- Typer-based developer interface.

Provides commands for parsing DDL into a schema document, generating DDL
from a document, validating a document, and importing SQL into a document.
Human-readable output goes to *stderr* via Rich; machine-readable output
(SQL, JSON) goes to *stdout* so that pipelines can compose cleanly.

Exit codes: 0 success, 1 validation errors or blocked import, 2 unreadable
input (bad SQL, bad document, missing file).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
from rich.console import Console

from cli.display import (
    display_findings,
    display_import_result,
    display_table_list,
    display_validation_summary,
)

if TYPE_CHECKING:
    from schema_engine.config import Settings
    from schema_engine.models.document import SchemaDocument

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="schemabridge",
    help="SchemaBridge - SQL DDL <-> schema model bridge and validator",
    no_args_is_help=True,
)
console = Console(stderr=True)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_INPUT_ERROR = 2

# Mutable global options populated by the Typer callback.
_json_output: bool = False
_settings: Settings | None = None


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging on stderr.",
        envvar="SCHEMABRIDGE_DEBUG",
    ),
) -> None:
    """Global options applied to every command."""
    from schema_engine.config import load_settings
    from schema_engine.logging_setup import configure_logging

    global _json_output, _settings  # noqa: PLW0603
    _json_output = json_mode
    overrides: dict[str, Any] = {"debug": True} if debug else {}
    _settings = load_settings(**overrides)
    configure_logging(_settings)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_settings() -> Settings:
    from schema_engine.config import load_settings

    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def _write_json(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")


def _read_sql(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Failed to read {path}: {exc}[/red]")
        raise typer.Exit(code=EXIT_INPUT_ERROR) from exc


def _load_document(path: Path) -> SchemaDocument:
    """Read a schema document, exiting with code 2 when it is unusable."""
    from schema_engine.models.document import SchemaDocument

    try:
        return SchemaDocument.load(path)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Failed to read schema document {path}: {exc}[/red]")
        raise typer.Exit(code=EXIT_INPUT_ERROR) from exc


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------


@app.command()
def parse(
    sql_file: Path = typer.Argument(
        ...,
        help="Path to a .sql file with CREATE TABLE statements.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    out: Path | None = typer.Option(
        None,
        "--out",
        "-o",
        help="Also write the result as a schema document to this path.",
    ),
) -> None:
    """Parse SQL DDL into the canonical schema model."""
    from schema_engine.converter import convert_parsed_tables
    from schema_engine.models.document import SchemaDocument
    from schema_engine.parser import LexError, ParseError, parse_create_table_statements

    sql = _read_sql(sql_file)
    try:
        parsed = parse_create_table_statements(sql)
    except (LexError, ParseError) as exc:
        console.print(f"[red]Failed to parse {sql_file.name}: {exc}[/red]")
        raise typer.Exit(code=EXIT_INPUT_ERROR) from exc

    conversion = convert_parsed_tables(parsed)
    document = SchemaDocument(tables=conversion.tables)
    if out is not None:
        document.save(out)
        console.print(f"[green]Schema document written to {out}[/green]")

    if _json_output:
        _write_json(
            {
                "tables": [t.model_dump(mode="json", by_alias=True, exclude_none=True) for t in conversion.tables],
                "warnings": [w.model_dump(mode="json", by_alias=True, exclude_none=True) for w in conversion.warnings],
            }
        )
    else:
        display_table_list(console, conversion.tables)
        if conversion.warnings:
            display_findings(console, conversion.warnings, title="Conversion warnings")


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


@app.command()
def generate(
    document_path: Path = typer.Argument(
        ...,
        help="Path to a schema document (JSON).",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    full: bool = typer.Option(
        False,
        "--full",
        help="Include indexes and row-level-security policies.",
    ),
    comments: bool = typer.Option(
        True,
        "--comments/--no-comments",
        help="Emit COMMENT ON statements for table and column comments.",
    ),
) -> None:
    """Generate PostgreSQL DDL from a schema document."""
    from schema_engine.generator import ExportOptions, generate_all_tables_sql, generate_schema_export

    document = _load_document(document_path)
    options = ExportOptions.from_settings(_get_settings()).model_copy(update={"include_comments": comments})

    if full:
        sql = generate_schema_export(document.tables, document.indexes, document.policies, options)
    else:
        sql = generate_all_tables_sql(document.tables, options) + "\n"

    if _json_output:
        _write_json({"sql": sql})
    else:
        sys.stdout.write(sql)


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@app.command()
def validate(
    document_path: Path = typer.Argument(
        ...,
        help="Path to a schema document (JSON).",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    naming: bool | None = typer.Option(
        None,
        "--naming/--no-naming",
        help="Run the naming-convention lint (default from SCHEMABRIDGE_NAMING_LINT_ENABLED).",
    ),
) -> None:
    """Validate a schema document.  Exits 1 when any error is found."""
    from schema_engine.validation import ValidationContext, create_default_engine

    document = _load_document(document_path)
    naming_lint = _get_settings().naming_lint_enabled if naming is None else naming
    engine = create_default_engine(naming_lint=naming_lint)
    summary = engine.run(
        ValidationContext(tables=document.tables, indexes=document.indexes, policies=document.policies)
    )

    if _json_output:
        payload = summary.model_dump(mode="json", by_alias=True, exclude_none=True)
        payload["is_valid"] = summary.is_valid
        _write_json(payload)
    else:
        display_validation_summary(console, summary)

    if not summary.is_valid:
        raise typer.Exit(code=EXIT_INVALID)


# ---------------------------------------------------------------------------
# import
# ---------------------------------------------------------------------------


@app.command("import")
def import_command(
    sql_file: Path = typer.Argument(
        ...,
        help="Path to a .sql file with CREATE TABLE statements.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    into: Path = typer.Option(
        ...,
        "--into",
        help="Schema document to import into.  Created when missing.",
    ),
    replace: bool = typer.Option(
        False,
        "--replace",
        help="Replace all existing tables instead of merging.",
    ),
) -> None:
    """Import SQL tables into a schema document."""
    from schema_engine.importer import DuplicateNameError, ImportMode, SchemaImportError, import_sql
    from schema_engine.models.document import SchemaDocument

    sql = _read_sql(sql_file)
    document = _load_document(into) if into.exists() else SchemaDocument()
    mode = ImportMode.REPLACE if replace else ImportMode.MERGE

    try:
        result = import_sql(sql, document.tables, mode)
    except DuplicateNameError as exc:
        if _json_output:
            _write_json(
                {
                    "imported": False,
                    "errors": [f.model_dump(mode="json", by_alias=True, exclude_none=True) for f in exc.findings],
                }
            )
        else:
            console.print("[red]Import blocked by duplicate names; nothing was changed.[/red]")
            display_findings(console, exc.findings, title="Duplicate names")
        raise typer.Exit(code=EXIT_INVALID) from exc
    except SchemaImportError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=EXIT_INPUT_ERROR) from exc

    updated = document.model_copy(update={"tables": result.tables})
    updated.save(into)

    if _json_output:
        _write_json(
            {
                "imported": True,
                "mode": mode.value,
                "tables": [t.name for t in result.imported_tables],
                "warnings": [w.model_dump(mode="json", by_alias=True, exclude_none=True) for w in result.warnings],
            }
        )
    else:
        display_import_result(console, result, into)
