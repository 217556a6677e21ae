"""Opt-in naming-convention lint for tables, fields and indexes."""

from __future__ import annotations

import re

from schema_engine.generator.sql_generator import RESERVED_WORDS
from schema_engine.models.validation import (
    AffectedElement,
    ElementType,
    Severity,
    ValidationError,
    ValidationRule,
    finding,
)
from schema_engine.validation.base import BaseValidator
from schema_engine.validation.builtin.structural import field_element, table_element
from schema_engine.validation.models import ValidationContext, ValidatorKind

SNAKE_CASE_RE = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$")


def _lint_name(name: str, what: str, element: AffectedElement) -> list[ValidationError]:
    if not name.strip():
        return []
    results: list[ValidationError] = []
    if not SNAKE_CASE_RE.match(name):
        results.append(
            finding(
                ValidationRule.NAMING_NOT_SNAKE_CASE,
                Severity.INFO,
                f"{what} name '{name}' is not snake_case.",
                element,
            )
        )
    if name.upper() in RESERVED_WORDS:
        results.append(
            finding(
                ValidationRule.NAMING_RESERVED_WORD,
                Severity.WARNING,
                f"{what} name '{name}' is a reserved SQL word and must always be quoted.",
                element,
                suggestion=f"Rename to something like '{name.lower()}_{what.lower()}'.",
            )
        )
    return results


class NamingValidator(BaseValidator):
    """snake_case and reserved-word checks."""

    @property
    def kind(self) -> ValidatorKind:
        return ValidatorKind.NAMING

    def validate(self, context: ValidationContext) -> list[ValidationError]:
        results: list[ValidationError] = []
        for table in context.tables:
            results.extend(_lint_name(table.name, "Table", table_element(table)))
            for field in table.fields:
                results.extend(_lint_name(field.name, "Column", field_element(table, field)))
        for index in context.indexes:
            element = AffectedElement(type=ElementType.INDEX, id=index.element_id, name=index.name)
            results.extend(_lint_name(index.name, "Index", element))
        return results
