"""Rich output formatting for the SchemaBridge CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from schema_engine.importer import ImportResult
    from schema_engine.models.schema import DatabaseField, DatabaseTable
    from schema_engine.models.validation import ValidationError, ValidationSummary


# ---------------------------------------------------------------------------
# Severity styling
# ---------------------------------------------------------------------------

_SEVERITY_ICONS: dict[str, str] = {
    "error": "✗",
    "warning": "⚠",
    "info": "ℹ",
}

_SEVERITY_COLOURS: dict[str, str] = {
    "error": "red",
    "warning": "yellow",
    "info": "dim",
}


def _field_flags(field: DatabaseField) -> str:
    flags: list[str] = []
    if field.primary_key:
        flags.append("PK")
    if field.unique:
        flags.append("UQ")
    if not field.nullable:
        flags.append("NN")
    if field.foreign_key is not None:
        flags.append(f"FK -> {field.foreign_key.table}.{field.foreign_key.field}")
    return " ".join(flags) or "-"


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def display_table_list(console: Console, tables: list[DatabaseTable]) -> None:
    """Render one Rich table per schema table.

    Parameters
    ----------
    console:
        Rich console to write to.
    tables:
        Tables in project order.
    """
    if not tables:
        console.print("[dim]No tables found.[/dim]")
        return

    for t in tables:
        table = Table(
            title=f"{t.name} ({len(t.fields)} field(s))",
            show_lines=False,
            pad_edge=True,
            expand=False,
        )
        table.add_column("Field", style="bold")
        table.add_column("Type")
        table.add_column("Flags")
        table.add_column("Default")

        for f in t.fields:
            type_text = f.data_type.value
            if f.type_parameters:
                type_text += f" ({f.type_parameters})"
            table.add_row(f.name, f"[cyan]{type_text}[/cyan]", _field_flags(f), f.default_value or "-")

        console.print(table)


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


def display_findings(console: Console, findings: list[ValidationError], *, title: str = "Findings") -> None:
    """Render findings, one line each, with suggestions underneath."""
    console.print(f"\n  [bold]{title}[/bold]")
    for finding in findings:
        severity = finding.severity.value
        icon = _SEVERITY_ICONS.get(severity, "?")
        colour = _SEVERITY_COLOURS.get(severity, "white")
        console.print(
            f"    [{colour}]{icon} {finding.rule.value}[/{colour}] "
            f"[dim]{finding.affected_element.name}[/dim]  {finding.message}"
        )
        if finding.suggestion:
            console.print(f"      [dim]→ {finding.suggestion}[/dim]")


def display_validation_summary(console: Console, summary: ValidationSummary) -> None:
    """Render a validation run: status header, findings, counts."""
    status = "[green]VALID[/green]" if summary.is_valid else "[red]INVALID[/red]"
    console.print(f"\nSchema validation: {status}  ({summary.duration_ms}ms)")

    if not summary.errors:
        console.print("\n  [green]✓ No issues found.[/green]\n")
        return

    display_findings(console, summary.errors)
    console.print(
        f"\n── {summary.error_count} error(s), "
        f"{summary.warning_count} warning(s), "
        f"{summary.info_count} info(s)\n"
    )


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def display_import_result(console: Console, result: ImportResult, document_path: Path) -> None:
    """Render a summary panel for a completed import."""
    names = ", ".join(t.name for t in result.imported_tables) or "-"
    body = (
        f"[bold]Imported:[/bold] {len(result.imported_tables)} table(s)\n"
        f"[bold]Tables:[/bold]   {names}\n"
        f"[bold]Total:[/bold]    {len(result.tables)} table(s) in {document_path}"
    )
    console.print(Panel(body, title="Import complete", border_style="green"))
    if result.warnings:
        display_findings(console, result.warnings, title="Conversion warnings")
