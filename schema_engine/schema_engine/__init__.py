"""SchemaBridge core: SQL DDL <-> canonical schema model, plus validation.

Quick start::

    from schema_engine import parse_create_table_statements, convert_parsed_tables_to_database
    from schema_engine import generate_all_tables_sql, validate_schema

    tables = convert_parsed_tables_to_database(parse_create_table_statements(sql))
    print(generate_all_tables_sql(tables))
    for finding in validate_schema(tables, [], []):
        print(finding.severity.value, finding.message)
"""

from schema_engine.converter import convert_parsed_tables_to_database
from schema_engine.generator import generate_all_tables_sql
from schema_engine.parser import parse_create_table_statements
from schema_engine.validation import validate_schema

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "convert_parsed_tables_to_database",
    "generate_all_tables_sql",
    "parse_create_table_statements",
    "validate_schema",
]
