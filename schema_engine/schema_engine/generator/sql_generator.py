"""Canonical schema model -> deterministic PostgreSQL DDL text.

Output depends only on the input: tables in list order, fields in stored
order, fixed clause order per column.  The generated text re-parses through
:mod:`schema_engine.parser` to the same model (names, field order, canonical
types, nullability, key markers, defaults and comments).

Foreign keys are written inline when the referenced table has already been
emitted (or is the table itself).  Forward references are emitted after all
``CREATE TABLE`` statements as ``ALTER TABLE ... ADD CONSTRAINT``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from pydantic import BaseModel, Field

from schema_engine.config import Settings
from schema_engine.converter.type_normalizer import PARAMETERIZED_TYPES
from schema_engine.models.schema import (
    DatabaseField,
    DatabaseTable,
    DataType,
    ForeignKey,
    Index,
    IndexType,
    RLSPolicy,
)
from schema_engine.parser.tokenizer import KEYWORDS

logger = logging.getLogger(__name__)

EMPTY_SCHEMA_PLACEHOLDER = "-- No tables defined"

# Words that must be quoted when used as identifiers.
RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "ALL", "AND", "ANY", "AS", "ASC", "CASE", "CHECK", "COLUMN", "CONSTRAINT",
        "CREATE", "DEFAULT", "DESC", "DISTINCT", "ELSE", "END", "FOREIGN", "FROM",
        "GRANT", "GROUP", "HAVING", "IN", "INDEX", "IS", "JOIN", "KEY", "LIMIT",
        "NOT", "NULL", "OFFSET", "ON", "OR", "ORDER", "PRIMARY", "REFERENCES",
        "SELECT", "TABLE", "THEN", "TO", "UNION", "UNIQUE", "USER", "USING",
        "WHEN", "WHERE", "WITH",
    }
)  # fmt: skip

_PLAIN_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ExportOptions(BaseModel):
    """Formatting switches for generated SQL."""

    indent: int = Field(default=2, ge=0, description="Spaces before each column definition.")
    include_comments: bool = Field(default=True, description="Emit COMMENT ON TABLE/COLUMN statements.")
    include_indexes: bool = True
    include_policies: bool = True
    if_not_exists: bool = Field(default=False, description="Add IF NOT EXISTS to CREATE TABLE/INDEX.")

    @classmethod
    def from_settings(cls, settings: Settings) -> ExportOptions:
        return cls(indent=settings.sql_indent, include_comments=settings.include_comments)


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def quote_identifier(name: str) -> str:
    """Double-quote *name* unless it is a plain identifier.

    Reserved words and anything the DDL tokenizer reads as a keyword are
    quoted so the column re-parses as a name rather than a clause.
    """
    upper = name.upper()
    if _PLAIN_IDENTIFIER_RE.match(name) and upper not in RESERVED_WORDS and upper not in KEYWORDS:
        return name
    return '"' + name.replace('"', '""') + '"'


def quote_literal(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def render_type(field: DatabaseField) -> str:
    """Type text for *field*, parameters included."""
    if field.data_type == DataType.ARRAY:
        return f"{field.type_parameters or 'TEXT'}[]"
    if field.type_parameters and field.data_type in PARAMETERIZED_TYPES:
        return f"{field.data_type.value}({field.type_parameters})"
    return field.data_type.value


def _render_reference(fk: ForeignKey) -> str:
    clause = f"REFERENCES {quote_identifier(fk.table)} ({quote_identifier(fk.field)})"
    if fk.on_delete is not None:
        clause += f" ON DELETE {fk.on_delete.value}"
    if fk.on_update is not None:
        clause += f" ON UPDATE {fk.on_update.value}"
    return clause


def _render_column(field: DatabaseField, *, inline_primary_key: bool, inline_reference: bool) -> str:
    parts = [quote_identifier(field.name), render_type(field)]
    if not field.nullable:
        parts.append("NOT NULL")
    elif field.primary_key:
        # Without an explicit NULL the parser would infer NOT NULL from the key.
        parts.append("NULL")
    if field.default_value is not None and field.default_value != "":
        parts.append(f"DEFAULT {field.default_value}")
    if field.primary_key and inline_primary_key:
        parts.append("PRIMARY KEY")
    if field.unique:
        parts.append("UNIQUE")
    if field.foreign_key is not None and inline_reference:
        parts.append(_render_reference(field.foreign_key))
    return " ".join(parts)


def _constraint_name(table: DatabaseTable, field: DatabaseField) -> str:
    return quote_identifier(f"fk_{table.name}_{field.name}")


def generate_table_sql(
    table: DatabaseTable,
    *,
    emitted: set[str] | None = None,
    options: ExportOptions | None = None,
) -> tuple[str, list[str]]:
    """Render one ``CREATE TABLE`` statement.

    Parameters
    ----------
    table:
        The table to render.
    emitted:
        Names of tables already written.  References to these (or to
        *table* itself) are rendered inline.  ``None`` means none.
    options:
        Formatting options.

    Returns
    -------
    tuple[str, list[str]]
        The statement and the deferred ``ALTER TABLE`` statements for
        references that could not be written inline.
    """
    options = options or ExportOptions()
    emitted = emitted or set()
    pad = " " * options.indent
    pk_fields = table.primary_key_fields
    single_pk = len(pk_fields) == 1

    elements: list[str] = []
    deferred: list[str] = []
    for field in table.fields:
        fk = field.foreign_key
        inline = fk is not None and (fk.table == table.name or fk.table in emitted)
        elements.append(_render_column(field, inline_primary_key=single_pk, inline_reference=inline))
        if fk is not None and not inline:
            deferred.append(
                f"ALTER TABLE {quote_identifier(table.name)} ADD CONSTRAINT {_constraint_name(table, field)} "
                f"FOREIGN KEY ({quote_identifier(field.name)}) {_render_reference(fk)};"
            )

    if len(pk_fields) > 1:
        columns = ", ".join(quote_identifier(f.name) for f in pk_fields)
        elements.append(f"PRIMARY KEY ({columns})")

    head = "CREATE TABLE IF NOT EXISTS" if options.if_not_exists else "CREATE TABLE"
    lines = [f"{head} {quote_identifier(table.name)} ("]
    lines.extend(f"{pad}{element}," for element in elements[:-1])
    if elements:
        lines.append(f"{pad}{elements[-1]}")
    lines.append(");")
    return "\n".join(lines), deferred


def _comment_statements(table: DatabaseTable) -> list[str]:
    statements: list[str] = []
    table_name = quote_identifier(table.name)
    if table.comment:
        statements.append(f"COMMENT ON TABLE {table_name} IS {quote_literal(table.comment)};")
    for field in table.fields:
        if field.comment:
            statements.append(
                f"COMMENT ON COLUMN {table_name}.{quote_identifier(field.name)} IS {quote_literal(field.comment)};"
            )
    return statements


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def generate_all_tables_sql(tables: Sequence[DatabaseTable], options: ExportOptions | None = None) -> str:
    """Render DDL for *tables* in order.

    Returns ``-- No tables defined`` for an empty sequence.
    """
    if not tables:
        return EMPTY_SCHEMA_PLACEHOLDER

    options = options or ExportOptions()
    statements: list[str] = []
    deferred: list[str] = []
    emitted: set[str] = set()

    for table in tables:
        create, table_deferred = generate_table_sql(table, emitted=emitted, options=options)
        statements.append(create)
        if options.include_comments:
            statements.extend(_comment_statements(table))
        deferred.extend(table_deferred)
        emitted.add(table.name)

    if deferred:
        logger.debug("Deferring %d forward foreign key(s) to ALTER TABLE", len(deferred))
    statements.extend(deferred)
    return "\n\n".join(statements)


def generate_index_sql(index: Index, options: ExportOptions | None = None) -> str:
    """Render ``CREATE [UNIQUE] INDEX`` for *index*."""
    options = options or ExportOptions()
    unique = "UNIQUE " if index.is_unique else ""
    exists = "IF NOT EXISTS " if options.if_not_exists else ""
    using = f" USING {index.index_type.value}" if index.index_type != IndexType.BTREE else ""
    columns = ", ".join(quote_identifier(c) for c in index.column_names)
    return (
        f"CREATE {unique}INDEX {exists}{quote_identifier(index.name)} "
        f"ON {quote_identifier(index.table_name)}{using} ({columns});"
    )


def generate_policy_sql(policy: RLSPolicy, options: ExportOptions | None = None) -> str:
    """Render one ``CREATE POLICY`` statement."""
    pad = " " * (options or ExportOptions()).indent
    name = '"' + policy.name.replace('"', '""') + '"'
    lines = [f"CREATE POLICY {name} ON {quote_identifier(policy.table_name)}"]
    lines.append(f"{pad}AS {'PERMISSIVE' if policy.is_permissive else 'RESTRICTIVE'}")
    lines.append(f"{pad}FOR {policy.command.value}")
    if policy.roles:
        lines.append(f"{pad}TO {', '.join(quote_identifier(r) for r in policy.roles)}")
    if policy.using_expression:
        lines.append(f"{pad}USING ({policy.using_expression})")
    if policy.with_check_expression:
        lines.append(f"{pad}WITH CHECK ({policy.with_check_expression})")
    return "\n".join(lines) + ";"


def generate_policies_sql(policies: Sequence[RLSPolicy], options: ExportOptions | None = None) -> str:
    """Enable RLS on each referenced table, then create its policies.

    Tables appear in order of first mention; policies keep their order.
    """
    by_table: dict[str, list[RLSPolicy]] = {}
    for policy in policies:
        by_table.setdefault(policy.table_name, []).append(policy)

    statements: list[str] = []
    for table_name, table_policies in by_table.items():
        statements.append(f"ALTER TABLE {quote_identifier(table_name)} ENABLE ROW LEVEL SECURITY;")
        statements.extend(generate_policy_sql(p, options) for p in table_policies)
    return "\n\n".join(statements)


def generate_schema_export(
    tables: Sequence[DatabaseTable],
    indexes: Sequence[Index] = (),
    policies: Sequence[RLSPolicy] = (),
    options: ExportOptions | None = None,
) -> str:
    """Full export: tables, then indexes, then row-level security."""
    options = options or ExportOptions()
    sections = ["-- Tables\n\n" + generate_all_tables_sql(tables, options)]
    if options.include_indexes and indexes:
        body = "\n".join(generate_index_sql(i, options) for i in indexes)
        sections.append("-- Indexes\n\n" + body)
    if options.include_policies and policies:
        sections.append("-- Row level security\n\n" + generate_policies_sql(policies, options))
    return "\n\n".join(sections) + "\n"
