"""Structural and referential checks on tables and fields.

Rules
-----
* **table-name-empty** (error), **table-name-invalid** (warning),
  **table-name-duplicate** (error, one finding per occurrence).
* **table-no-fields** (warning), **table-no-primary-key** (info).
* **field-name-empty** (error), **field-name-invalid** (warning),
  **field-name-duplicate** (error, one finding per occurrence).
* **field-primary-key-nullable**, **field-boolean-default**,
  **field-serial-nullable** (warnings).
* **fk-table-not-found**, **fk-field-not-found** (errors).  A dangling
  reference produces exactly one of these and nothing else.
* **fk-type-mismatch**, **fk-target-not-unique** (warnings).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from schema_engine.models.schema import DatabaseField, DatabaseTable, DataType, ForeignKey
from schema_engine.models.validation import (
    AffectedElement,
    ElementType,
    Severity,
    ValidationError,
    ValidationRule,
    finding,
)
from schema_engine.validation.base import BaseValidator
from schema_engine.validation.models import ValidationContext, ValidatorKind

logger = logging.getLogger(__name__)

NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

# Auto-increment types store as their underlying integer type.
_STORAGE_TYPES: dict[DataType, DataType] = {
    DataType.SERIAL: DataType.INTEGER,
    DataType.BIGSERIAL: DataType.BIGINT,
}

_BOOLEAN_DEFAULTS = frozenset({"true", "false", "null"})


def table_element(table: DatabaseTable) -> AffectedElement:
    return AffectedElement(type=ElementType.TABLE, id=table.id, name=table.name)


def field_element(table: DatabaseTable, field: DatabaseField) -> AffectedElement:
    return AffectedElement(type=ElementType.FIELD, id=field.id, name=f"{table.name}.{field.name}")


def _group_by_name(elements: Sequence[DatabaseTable] | Sequence[DatabaseField]) -> dict[str, list]:
    groups: dict[str, list] = {}
    for element in elements:
        if element.name.strip():
            groups.setdefault(element.name, []).append(element)
    return groups


def _duplicate_table(table: DatabaseTable, groups: dict[str, list]) -> ValidationError | None:
    group = groups.get(table.name, [])
    if len(group) < 2:
        return None
    others = ", ".join(t.id for t in group if t is not table)
    return finding(
        ValidationRule.TABLE_NAME_DUPLICATE,
        Severity.ERROR,
        f"Table name '{table.name}' is used by {len(group)} tables (other ids: {others}).",
        table_element(table),
        suggestion="Rename or remove the duplicate table.",
    )


def _duplicate_field(table: DatabaseTable, field: DatabaseField, groups: dict[str, list]) -> ValidationError | None:
    group = groups.get(field.name, [])
    if len(group) < 2:
        return None
    others = ", ".join(f.id for f in group if f is not field)
    return finding(
        ValidationRule.FIELD_NAME_DUPLICATE,
        Severity.ERROR,
        f"Field name '{field.name}' appears {len(group)} times in table '{table.name}' (other ids: {others}).",
        field_element(table, field),
        suggestion="Rename or remove the duplicate field.",
    )


def duplicate_table_findings(tables: Sequence[DatabaseTable]) -> list[ValidationError]:
    """One ``table-name-duplicate`` error per occurrence of a repeated name."""
    groups = _group_by_name(tables)
    results: list[ValidationError] = []
    for table in tables:
        dup = _duplicate_table(table, groups)
        if dup is not None:
            results.append(dup)
    return results


def duplicate_field_findings(table: DatabaseTable) -> list[ValidationError]:
    """One ``field-name-duplicate`` error per occurrence within *table*."""
    groups = _group_by_name(table.fields)
    results: list[ValidationError] = []
    for field in table.fields:
        dup = _duplicate_field(table, field, groups)
        if dup is not None:
            results.append(dup)
    return results


class StructuralValidator(BaseValidator):
    """Table, field and foreign-key checks."""

    @property
    def kind(self) -> ValidatorKind:
        return ValidatorKind.STRUCTURAL

    def validate(self, context: ValidationContext) -> list[ValidationError]:
        results: list[ValidationError] = []
        table_groups = _group_by_name(context.tables)
        for table in context.tables:
            results.extend(self._check_table(table, table_groups))
            field_groups = _group_by_name(table.fields)
            for field in table.fields:
                results.extend(self._check_field(table, field, field_groups))
                if field.foreign_key is not None:
                    results.extend(self._check_foreign_key(table, field, field.foreign_key, context))
        return results

    # -- tables ------------------------------------------------------------

    def _check_table(self, table: DatabaseTable, groups: dict[str, list]) -> list[ValidationError]:
        results: list[ValidationError] = []
        element = table_element(table)

        if not table.name.strip():
            results.append(
                finding(ValidationRule.TABLE_NAME_EMPTY, Severity.ERROR, "Table name cannot be empty.", element)
            )
        elif not NAME_RE.match(table.name):
            results.append(
                finding(
                    ValidationRule.TABLE_NAME_INVALID,
                    Severity.WARNING,
                    f"Table name '{table.name}' should start with a letter and contain only "
                    "letters, digits and underscores.",
                    element,
                    suggestion="Use snake_case names.",
                )
            )

        dup = _duplicate_table(table, groups)
        if dup is not None:
            results.append(dup)

        if not table.fields:
            results.append(
                finding(
                    ValidationRule.TABLE_NO_FIELDS,
                    Severity.WARNING,
                    f"Table '{table.name}' has no fields.",
                    element,
                )
            )
        elif not table.primary_key_fields:
            results.append(
                finding(
                    ValidationRule.TABLE_NO_PRIMARY_KEY,
                    Severity.INFO,
                    f"Table '{table.name}' has no primary key.",
                    element,
                    suggestion="Add a primary key for row identity and faster lookups.",
                )
            )
        return results

    # -- fields ------------------------------------------------------------

    def _check_field(
        self,
        table: DatabaseTable,
        field: DatabaseField,
        groups: dict[str, list],
    ) -> list[ValidationError]:
        results: list[ValidationError] = []
        element = field_element(table, field)

        if not field.name.strip():
            results.append(
                finding(
                    ValidationRule.FIELD_NAME_EMPTY,
                    Severity.ERROR,
                    f"A field in table '{table.name}' has an empty name.",
                    element,
                )
            )
        elif not NAME_RE.match(field.name):
            results.append(
                finding(
                    ValidationRule.FIELD_NAME_INVALID,
                    Severity.WARNING,
                    f"Field name '{field.name}' should start with a letter and contain only "
                    "letters, digits and underscores.",
                    element,
                    suggestion="Use snake_case names.",
                )
            )

        dup = _duplicate_field(table, field, groups)
        if dup is not None:
            results.append(dup)

        if field.primary_key and field.nullable:
            results.append(
                finding(
                    ValidationRule.FIELD_PRIMARY_KEY_NULLABLE,
                    Severity.WARNING,
                    f"Primary key field '{table.name}.{field.name}' is nullable.",
                    element,
                    suggestion="Mark the field NOT NULL.",
                )
            )

        if (
            field.data_type == DataType.BOOLEAN
            and field.default_value
            and field.default_value.strip().lower() not in _BOOLEAN_DEFAULTS
        ):
            results.append(
                finding(
                    ValidationRule.FIELD_BOOLEAN_DEFAULT,
                    Severity.WARNING,
                    f"Boolean field '{table.name}.{field.name}' has default '{field.default_value}'.",
                    element,
                    suggestion="Use true or false as the default.",
                )
            )

        if field.data_type in (DataType.SERIAL, DataType.BIGSERIAL) and field.nullable:
            results.append(
                finding(
                    ValidationRule.FIELD_SERIAL_NULLABLE,
                    Severity.WARNING,
                    f"{field.data_type.value} field '{table.name}.{field.name}' is nullable.",
                    element,
                    suggestion="Auto-increment fields are normally NOT NULL.",
                )
            )
        return results

    # -- foreign keys ------------------------------------------------------

    def _check_foreign_key(
        self,
        table: DatabaseTable,
        field: DatabaseField,
        fk: ForeignKey,
        context: ValidationContext,
    ) -> list[ValidationError]:
        element = field_element(table, field)
        target_text = f"{fk.table}.{fk.field}"

        target = context.table_by_name(fk.table)
        if target is None:
            return [
                finding(
                    ValidationRule.FK_TABLE_NOT_FOUND,
                    Severity.ERROR,
                    f"Field '{table.name}.{field.name}' references missing table '{fk.table}'.",
                    element,
                    suggestion="Create the table or remove the foreign key.",
                )
            ]

        ref = target.get_field(fk.field)
        if ref is None:
            return [
                finding(
                    ValidationRule.FK_FIELD_NOT_FOUND,
                    Severity.ERROR,
                    f"Field '{table.name}.{field.name}' references missing field '{target_text}'.",
                    element,
                    suggestion=f"Reference an existing field of '{fk.table}'.",
                )
            ]

        results: list[ValidationError] = []
        own = _STORAGE_TYPES.get(field.data_type, field.data_type)
        other = _STORAGE_TYPES.get(ref.data_type, ref.data_type)
        if own != other:
            results.append(
                finding(
                    ValidationRule.FK_TYPE_MISMATCH,
                    Severity.WARNING,
                    f"Field '{table.name}.{field.name}' is {field.data_type.value} but references "
                    f"'{target_text}' of type {ref.data_type.value}.",
                    element,
                    suggestion="Use the referenced field's type.",
                )
            )
        if not (ref.primary_key or ref.unique):
            results.append(
                finding(
                    ValidationRule.FK_TARGET_NOT_UNIQUE,
                    Severity.WARNING,
                    f"Referenced field '{target_text}' is neither a primary key nor unique.",
                    element,
                    suggestion="Reference a primary key or unique field.",
                )
            )
        return results
