"""SQL import into a project's table list."""

from schema_engine.importer.schema_importer import (
    DuplicateNameError,
    ImportMode,
    ImportResult,
    SchemaImportError,
    import_sql,
)

__all__ = [
    "DuplicateNameError",
    "ImportMode",
    "ImportResult",
    "SchemaImportError",
    "import_sql",
]
