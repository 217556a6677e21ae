"""SQL import: parse + convert + duplicate-name policy + merge/replace.

The parser and converter are permissive and never reject a schema for
duplicate names.  The importer is where that policy lives: duplicate table
names (within the imported SQL, and in merge mode against the existing
tables) and duplicate field names block the import, and nothing is merged.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, Field

from schema_engine.converter.schema_converter import convert_parsed_tables, grid_position
from schema_engine.models.schema import DatabaseTable
from schema_engine.models.validation import ValidationError
from schema_engine.parser.ddl_parser import ParseError, parse_create_table_statements
from schema_engine.parser.tokenizer import LexError
from schema_engine.validation.builtin.structural import duplicate_field_findings, duplicate_table_findings

logger = logging.getLogger(__name__)


class ImportMode(str, Enum):
    """How imported tables combine with the existing ones."""

    MERGE = "merge"
    REPLACE = "replace"


class SchemaImportError(Exception):
    """Raised when SQL cannot be imported."""


class DuplicateNameError(SchemaImportError):
    """Raised when the import would produce duplicate table or field names.

    ``findings`` holds one ``table-name-duplicate`` / ``field-name-duplicate``
    error per offending occurrence.
    """

    def __init__(self, findings: list[ValidationError]) -> None:
        self.findings = findings
        names = sorted({f.affected_element.name for f in findings})
        super().__init__(f"Import blocked by duplicate names: {', '.join(names)}")


class ImportResult(BaseModel):
    """Outcome of a successful import."""

    tables: list[DatabaseTable] = Field(
        default_factory=list,
        description="The full table list after the import (existing + imported in merge mode).",
    )
    imported_tables: list[DatabaseTable] = Field(default_factory=list)
    warnings: list[ValidationError] = Field(
        default_factory=list,
        description="Converter findings such as unrecognized column types.",
    )


def import_sql(
    sql: str,
    existing_tables: Sequence[DatabaseTable] = (),
    mode: ImportMode = ImportMode.MERGE,
) -> ImportResult:
    """Import the ``CREATE TABLE`` statements in *sql*.

    Parameters
    ----------
    sql:
        DDL text.
    existing_tables:
        Tables already in the project.  Checked for name clashes and kept
        in merge mode; ignored in replace mode.
    mode:
        ``MERGE`` appends imported tables after the existing ones,
        ``REPLACE`` returns only the imported tables.

    Returns
    -------
    ImportResult
        The combined table list, the imported tables and converter warnings.

    Raises
    ------
    SchemaImportError
        If the SQL cannot be tokenized or contains no ``CREATE TABLE``.
    DuplicateNameError
        If the import would introduce duplicate table or field names.
    """
    try:
        parsed = parse_create_table_statements(sql)
    except LexError as exc:
        raise SchemaImportError(f"Could not read the SQL: {exc}") from exc
    except ParseError as exc:
        raise SchemaImportError(f"No tables found to import: {exc.reason}") from exc

    namespace = "import" if mode == ImportMode.REPLACE else uuid.uuid4().hex
    conversion = convert_parsed_tables(parsed, id_namespace=namespace)
    imported = conversion.tables

    existing = list(existing_tables) if mode == ImportMode.MERGE else []
    if existing:
        # Continue the grid after the existing tables.
        for offset, table in enumerate(imported):
            table.position = grid_position(len(existing) + offset)

    candidate = existing + imported
    findings = duplicate_table_findings(candidate)
    for table in imported:
        findings.extend(duplicate_field_findings(table))
    if findings:
        logger.info("Import blocked: %d duplicate name finding(s)", len(findings))
        raise DuplicateNameError(findings)

    logger.info(
        "Imported %d table(s) (%s mode, %d warning(s))",
        len(imported),
        mode.value,
        len(conversion.warnings),
    )
    return ImportResult(tables=candidate, imported_tables=imported, warnings=conversion.warnings)
