"""Conversion from parsed DDL to the canonical schema model."""

from schema_engine.converter.schema_converter import (
    ConversionResult,
    convert_parsed_tables,
    convert_parsed_tables_to_database,
)
from schema_engine.converter.type_normalizer import TypeResolution, normalize_type

__all__ = [
    "ConversionResult",
    "TypeResolution",
    "convert_parsed_tables",
    "convert_parsed_tables_to_database",
    "normalize_type",
]
