"""SQL generation from the canonical schema model."""

from schema_engine.generator.sql_generator import (
    ExportOptions,
    generate_all_tables_sql,
    generate_index_sql,
    generate_policies_sql,
    generate_schema_export,
    quote_identifier,
)

__all__ = [
    "ExportOptions",
    "generate_all_tables_sql",
    "generate_index_sql",
    "generate_policies_sql",
    "generate_schema_export",
    "quote_identifier",
]
