"""Canonical schema and validation models."""

from schema_engine.models.document import SchemaDocument
from schema_engine.models.schema import (
    DatabaseField,
    DatabaseTable,
    DataType,
    ForeignKey,
    Index,
    IndexType,
    PolicyCommand,
    Position,
    ReferentialAction,
    RLSPolicy,
)
from schema_engine.models.validation import (
    AffectedElement,
    ElementType,
    Severity,
    ValidationError,
    ValidationRule,
    ValidationSummary,
)

__all__ = [
    "AffectedElement",
    "DataType",
    "DatabaseField",
    "DatabaseTable",
    "ElementType",
    "ForeignKey",
    "Index",
    "IndexType",
    "PolicyCommand",
    "Position",
    "RLSPolicy",
    "ReferentialAction",
    "SchemaDocument",
    "Severity",
    "ValidationError",
    "ValidationRule",
    "ValidationSummary",
]
