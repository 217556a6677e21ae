"""Parsed-table intermediate representation -> canonical schema model.

Conversion is pure and deterministic.  Identifiers are derived from the id
namespace, the table ordinal and the names involved, so converting the same
parsed input twice yields identical tables.  Callers that need ids distinct
from an earlier import pass a fresh ``id_namespace``.

Foreign keys are resolved in a second pass over the complete table set so
that forward references (a table referencing one declared later) resolve
the same as backward ones.
"""

from __future__ import annotations

import hashlib
import logging

from pydantic import BaseModel, Field

from schema_engine.converter.type_normalizer import normalize_type
from schema_engine.models.schema import DatabaseField, DatabaseTable, DataType, ForeignKey, Position
from schema_engine.models.validation import (
    AffectedElement,
    ElementType,
    Severity,
    ValidationError,
    ValidationRule,
    finding,
)
from schema_engine.parser.ddl_parser import ParsedForeignKey, ParsedTable

logger = logging.getLogger(__name__)

# Grid layout for freshly imported tables.
_GRID_COLUMNS = 3
_GRID_ORIGIN = 100.0
_GRID_DX = 300.0
_GRID_DY = 200.0


class ConversionResult(BaseModel):
    """Converted tables plus non-fatal converter findings."""

    tables: list[DatabaseTable] = Field(default_factory=list)
    warnings: list[ValidationError] = Field(
        default_factory=list,
        description="Converter findings such as unrecognized column types.",
    )


def _compute_element_id(prefix: str, namespace: str, *parts: str) -> str:
    """Derive a short deterministic id from the namespace and *parts*."""
    payload = ":".join([namespace, *parts])
    return f"{prefix}_{hashlib.sha256(payload.encode('utf-8')).hexdigest()[:12]}"


def grid_position(ordinal: int) -> Position:
    """Canvas position of the *ordinal*-th table in a three-wide grid."""
    return Position(
        x=_GRID_ORIGIN + (ordinal % _GRID_COLUMNS) * _GRID_DX,
        y=_GRID_ORIGIN + (ordinal // _GRID_COLUMNS) * _GRID_DY,
    )


def _find_by_name(candidates: dict[str, DatabaseTable], name: str) -> DatabaseTable | None:
    found = candidates.get(name)
    if found is not None:
        return found
    folded = name.casefold()
    for candidate_name, candidate in candidates.items():
        if candidate_name.casefold() == folded:
            return candidate
    return None


def _resolve_field_name(target: DatabaseTable, requested: str | None) -> str:
    """Pick the referenced field on *target* for a parsed reference."""
    if requested is None:
        pks = target.primary_key_fields
        return pks[0].name if len(pks) == 1 else "id"
    exact = target.get_field(requested)
    if exact is not None:
        return exact.name
    folded = requested.casefold()
    for f in target.fields:
        if f.name.casefold() == folded:
            return f.name
    return requested


def _resolve_foreign_key(parsed: ParsedForeignKey, tables_by_name: dict[str, DatabaseTable]) -> ForeignKey:
    target = _find_by_name(tables_by_name, parsed.table)
    if target is None:
        logger.debug("Foreign key target table %r not found; reference kept as written", parsed.table)
        return ForeignKey(
            table=parsed.table,
            field=parsed.field or "id",
            on_delete=parsed.on_delete,
            on_update=parsed.on_update,
        )
    return ForeignKey(
        table=target.name,
        field=_resolve_field_name(target, parsed.field),
        on_delete=parsed.on_delete,
        on_update=parsed.on_update,
    )


def convert_parsed_tables(
    parsed_tables: list[ParsedTable],
    *,
    id_namespace: str = "import",
) -> ConversionResult:
    """Convert parsed tables into canonical :class:`DatabaseTable` records.

    Parameters
    ----------
    parsed_tables:
        Parser output in declaration order.
    id_namespace:
        Seed mixed into every generated id.

    Returns
    -------
    ConversionResult
        Tables in input order with fields in declaration order, and a
        ``field-type-unknown`` warning for every column whose type text was
        not recognized (stored as ``TEXT``, or as an ``ARRAY`` keeping the
        element text when only the element type is unknown).
    """
    tables: list[DatabaseTable] = []
    warnings: list[ValidationError] = []
    pending: list[tuple[DatabaseField, ParsedForeignKey]] = []

    for i, parsed in enumerate(parsed_tables):
        table_id = _compute_element_id("tbl", id_namespace, str(i), parsed.name)
        fields: list[DatabaseField] = []
        for j, column in enumerate(parsed.columns):
            resolution = normalize_type(column.raw_type)
            field = DatabaseField(
                id=_compute_element_id("fld", id_namespace, str(i), parsed.name, str(j), column.name),
                name=column.name,
                data_type=resolution.data_type,
                type_parameters=resolution.parameters,
                nullable=column.nullable,
                primary_key=column.primary_key,
                unique=column.unique,
                default_value=column.default_value,
                comment=column.comment,
            )
            fields.append(field)

            if not resolution.recognized:
                shown = column.raw_type or "(none)"
                stored = "an array of unknown elements" if resolution.data_type == DataType.ARRAY else "TEXT"
                logger.warning("Unknown type %r on %s.%s; stored as %s", shown, parsed.name, column.name, stored)
                warnings.append(
                    finding(
                        ValidationRule.FIELD_TYPE_UNKNOWN,
                        Severity.WARNING,
                        f"Column '{parsed.name}.{column.name}' has unrecognized type '{shown}'; stored as {stored}.",
                        AffectedElement(type=ElementType.FIELD, id=field.id, name=f"{parsed.name}.{column.name}"),
                        suggestion="Choose one of the supported column types.",
                    )
                )
            if column.foreign_key is not None:
                pending.append((field, column.foreign_key))

        tables.append(
            DatabaseTable(
                id=table_id,
                name=parsed.name,
                fields=fields,
                position=grid_position(i),
                comment=parsed.comment,
            )
        )

    tables_by_name: dict[str, DatabaseTable] = {}
    for table in tables:
        tables_by_name.setdefault(table.name, table)

    for field, parsed_fk in pending:
        field.foreign_key = _resolve_foreign_key(parsed_fk, tables_by_name)

    return ConversionResult(tables=tables, warnings=warnings)


def convert_parsed_tables_to_database(parsed_tables: list[ParsedTable]) -> list[DatabaseTable]:
    """Convert parsed tables to canonical tables.  Never fails.

    Converter warnings are logged; use :func:`convert_parsed_tables` to
    receive them as findings.
    """
    return convert_parsed_tables(parsed_tables).tables
