"""Validation finding models.

Every finding produced by the converter or a validator is a
:class:`ValidationError` record.  Finding ids are derived from the rule and
the affected element's identifiers only, so that repeated runs over the same
schema produce identical ids and an edit to one table never reshuffles the
ids of findings on another.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """How serious a finding is."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ElementType(str, Enum):
    """Kind of schema element a finding points at."""

    TABLE = "table"
    FIELD = "field"
    INDEX = "index"
    POLICY = "policy"


class ValidationRule(str, Enum):
    """Catalogue of rule codes emitted by the converter and validators."""

    # Converter
    FIELD_TYPE_UNKNOWN = "field-type-unknown"

    # Structural
    TABLE_NAME_EMPTY = "table-name-empty"
    TABLE_NAME_INVALID = "table-name-invalid"
    TABLE_NAME_DUPLICATE = "table-name-duplicate"
    TABLE_NO_FIELDS = "table-no-fields"
    TABLE_NO_PRIMARY_KEY = "table-no-primary-key"
    FIELD_NAME_EMPTY = "field-name-empty"
    FIELD_NAME_INVALID = "field-name-invalid"
    FIELD_NAME_DUPLICATE = "field-name-duplicate"
    FIELD_PRIMARY_KEY_NULLABLE = "field-primary-key-nullable"
    FIELD_BOOLEAN_DEFAULT = "field-boolean-default"
    FIELD_SERIAL_NULLABLE = "field-serial-nullable"
    FK_TABLE_NOT_FOUND = "fk-table-not-found"
    FK_FIELD_NOT_FOUND = "fk-field-not-found"
    FK_TYPE_MISMATCH = "fk-type-mismatch"
    FK_TARGET_NOT_UNIQUE = "fk-target-not-unique"

    # Index
    INDEX_NAME_EMPTY = "index-name-empty"
    INDEX_NAME_INVALID = "index-name-invalid"
    INDEX_TABLE_NOT_FOUND = "index-table-not-found"
    INDEX_NO_COLUMNS = "index-no-columns"
    INDEX_COLUMN_NOT_FOUND = "index-column-not-found"
    INDEX_TYPE_INCOMPATIBLE = "index-type-incompatible"
    INDEX_HASH_MULTI_COLUMN = "index-hash-multi-column"
    INDEX_UNIQUE_UNSUPPORTED = "index-unique-unsupported"
    INDEX_DUPLICATE = "index-duplicate"

    # Row-level security
    POLICY_NAME_EMPTY = "policy-name-empty"
    POLICY_TABLE_NOT_FOUND = "policy-table-not-found"
    RLS_UNTERMINATED_QUOTE = "rls-unterminated-quote"
    RLS_UNBALANCED_PARENTHESES = "rls-unbalanced-parentheses"
    RLS_MULTIPLE_STATEMENTS = "rls-multiple-statements"
    RLS_UNPARSEABLE = "rls-unparseable"
    RLS_UNKNOWN_COLUMN = "rls-unknown-column"
    RLS_AUTH_UID_COMPARISON = "rls-auth-uid-comparison"
    RLS_ALWAYS_TRUE = "rls-always-true"
    RLS_INSERT_USING = "rls-insert-using"
    RLS_WITH_CHECK_IGNORED = "rls-with-check-ignored"

    # Naming lint
    NAMING_NOT_SNAKE_CASE = "naming-not-snake-case"
    NAMING_RESERVED_WORD = "naming-reserved-word"

    # Engine
    VALIDATOR_FAILED = "validator-failed"


class AffectedElement(BaseModel):
    """Pointer back to the element a finding is about."""

    type: ElementType
    id: str
    name: str


class ValidationError(BaseModel):
    """A single non-fatal finding about the schema."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Deterministic id: '<rule>:<element id>[:<detail>]'.")
    rule: ValidationRule
    severity: Severity
    message: str
    suggestion: str | None = None
    affected_element: AffectedElement = Field(..., alias="affectedElement")


def make_error_id(rule: ValidationRule, element_id: str, *detail: str) -> str:
    """Build a finding id from the rule code and element identifiers."""
    return ":".join([rule.value, element_id, *detail])


def finding(
    rule: ValidationRule,
    severity: Severity,
    message: str,
    element: AffectedElement,
    *detail: str,
    suggestion: str | None = None,
) -> ValidationError:
    """Construct a :class:`ValidationError` with a derived id."""
    return ValidationError(
        id=make_error_id(rule, element.id, *detail),
        rule=rule,
        severity=severity,
        message=message,
        suggestion=suggestion,
        affected_element=element,
    )


class ValidationSummary(BaseModel):
    """Aggregated findings of one validation run."""

    total: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    errors: list[ValidationError] = Field(
        default_factory=list,
        description="All findings in validator order.",
    )
    duration_ms: int = 0

    @property
    def is_valid(self) -> bool:
        """Return True when no finding has error severity."""
        return self.error_count == 0

    def for_element(self, element_id: str) -> list[ValidationError]:
        """Return findings pointing at *element_id*."""
        return [e for e in self.errors if e.affected_element.id == element_id]

    @staticmethod
    def from_errors(errors: list[ValidationError], duration_ms: int = 0) -> ValidationSummary:
        return ValidationSummary(
            total=len(errors),
            error_count=sum(1 for e in errors if e.severity == Severity.ERROR),
            warning_count=sum(1 for e in errors if e.severity == Severity.WARNING),
            info_count=sum(1 for e in errors if e.severity == Severity.INFO),
            errors=list(errors),
            duration_ms=duration_ms,
        )
