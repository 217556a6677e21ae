"""Schema validation engine.

Provides a single interface for running structural, index, RLS and naming
checks over a schema.

Quick start::

    from schema_engine.validation import create_default_engine, ValidationContext

    engine = create_default_engine()
    summary = engine.run(ValidationContext(tables=tables, indexes=indexes, policies=policies))
    print(summary.total, summary.error_count, summary.is_valid)
"""

from schema_engine.validation.base import BaseValidator
from schema_engine.validation.engine import ValidationEngine, create_default_engine, validate_schema
from schema_engine.validation.models import ValidationContext, ValidatorKind
from schema_engine.validation.registry import ValidatorRegistry
from schema_engine.validation.scheduler import DebouncedValidator

__all__ = [
    "BaseValidator",
    "DebouncedValidator",
    "ValidationContext",
    "ValidationEngine",
    "ValidatorKind",
    "ValidatorRegistry",
    "create_default_engine",
    "validate_schema",
]
