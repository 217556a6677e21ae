"""Index definition checks.

Every index must name an existing table and existing columns of that
table, and its access method must suit the column types:

* GIN: JSON, JSONB, ARRAY, TSVECTOR
* GiST: TSVECTOR, INET, CIDR, ARRAY
* BRIN: orderable scalar types
* btree and hash: anything except JSON
"""

from __future__ import annotations

import logging

from schema_engine.models.schema import DataType, Index, IndexType
from schema_engine.models.validation import (
    AffectedElement,
    ElementType,
    Severity,
    ValidationError,
    ValidationRule,
    finding,
)
from schema_engine.validation.base import BaseValidator
from schema_engine.validation.builtin.structural import NAME_RE
from schema_engine.validation.models import ValidationContext, ValidatorKind

logger = logging.getLogger(__name__)

_BRIN_TYPES = frozenset(
    {
        DataType.SMALLINT,
        DataType.INTEGER,
        DataType.BIGINT,
        DataType.SERIAL,
        DataType.BIGSERIAL,
        DataType.DECIMAL,
        DataType.NUMERIC,
        DataType.REAL,
        DataType.DOUBLE_PRECISION,
        DataType.DATE,
        DataType.TIME,
        DataType.TIMESTAMP,
        DataType.TIMESTAMPTZ,
        DataType.INTERVAL,
        DataType.UUID,
        DataType.TEXT,
        DataType.VARCHAR,
        DataType.CHAR,
        DataType.EMAIL,
        DataType.INET,
        DataType.CIDR,
        DataType.MACADDR,
    }
)

_ALL_EXCEPT_JSON = frozenset(DataType) - {DataType.JSON}

# Access method -> column types it can index.
SUPPORTED_TYPES: dict[IndexType, frozenset[DataType]] = {
    IndexType.GIN: frozenset({DataType.JSON, DataType.JSONB, DataType.ARRAY, DataType.TSVECTOR}),
    IndexType.GIST: frozenset({DataType.TSVECTOR, DataType.INET, DataType.CIDR, DataType.ARRAY}),
    IndexType.BRIN: _BRIN_TYPES,
    IndexType.BTREE: _ALL_EXCEPT_JSON,
    IndexType.HASH: _ALL_EXCEPT_JSON,
}


def _index_element(index: Index) -> AffectedElement:
    return AffectedElement(type=ElementType.INDEX, id=index.element_id, name=index.name)


class IndexValidator(BaseValidator):
    """Checks names, table/column references and access-method fit of indexes."""

    @property
    def kind(self) -> ValidatorKind:
        return ValidatorKind.INDEX

    def validate(self, context: ValidationContext) -> list[ValidationError]:
        results: list[ValidationError] = []
        seen: dict[tuple[str, tuple[str, ...]], Index] = {}
        for index in context.indexes:
            results.extend(self._check_index(index, context))

            if index.column_names:
                key = (index.table_name, tuple(index.column_names))
                earlier = seen.get(key)
                if earlier is None:
                    seen[key] = index
                else:
                    results.append(
                        finding(
                            ValidationRule.INDEX_DUPLICATE,
                            Severity.WARNING,
                            f"Index '{index.name}' duplicates '{earlier.name}' "
                            f"on {index.table_name} ({', '.join(index.column_names)}).",
                            _index_element(index),
                            suggestion=f"Drop '{index.name}' or change its columns.",
                        )
                    )
        return results

    def _check_index(self, index: Index, context: ValidationContext) -> list[ValidationError]:
        results: list[ValidationError] = []
        element = _index_element(index)

        if not index.name.strip():
            results.append(
                finding(ValidationRule.INDEX_NAME_EMPTY, Severity.ERROR, "Index name cannot be empty.", element)
            )
        elif not NAME_RE.match(index.name):
            results.append(
                finding(
                    ValidationRule.INDEX_NAME_INVALID,
                    Severity.WARNING,
                    f"Index name '{index.name}' should start with a letter and contain only "
                    "letters, digits and underscores.",
                    element,
                )
            )

        table = context.table_by_name(index.table_name)
        if table is None:
            results.append(
                finding(
                    ValidationRule.INDEX_TABLE_NOT_FOUND,
                    Severity.ERROR,
                    f"Index '{index.name}' is on missing table '{index.table_name}'.",
                    element,
                )
            )
            return results

        if not index.column_names:
            results.append(
                finding(
                    ValidationRule.INDEX_NO_COLUMNS,
                    Severity.ERROR,
                    f"Index '{index.name}' has no columns.",
                    element,
                )
            )

        supported = SUPPORTED_TYPES[index.index_type]
        for column_name in index.column_names:
            field = table.get_field(column_name)
            if field is None:
                results.append(
                    finding(
                        ValidationRule.INDEX_COLUMN_NOT_FOUND,
                        Severity.ERROR,
                        f"Index '{index.name}' names column '{column_name}', "
                        f"which does not exist in '{table.name}'.",
                        element,
                        column_name,
                    )
                )
            elif field.data_type not in supported:
                results.append(
                    finding(
                        ValidationRule.INDEX_TYPE_INCOMPATIBLE,
                        Severity.ERROR,
                        f"A {index.index_type.value} index cannot be used on "
                        f"'{table.name}.{column_name}' of type {field.data_type.value}.",
                        element,
                        column_name,
                        suggestion=_suggest_index_type(field.data_type),
                    )
                )

        if index.index_type == IndexType.HASH and len(index.column_names) > 1:
            results.append(
                finding(
                    ValidationRule.INDEX_HASH_MULTI_COLUMN,
                    Severity.ERROR,
                    f"Hash index '{index.name}' has {len(index.column_names)} columns; hash indexes take one.",
                    element,
                    suggestion="Use a btree index for multi-column keys.",
                )
            )

        if index.is_unique and index.index_type != IndexType.BTREE:
            results.append(
                finding(
                    ValidationRule.INDEX_UNIQUE_UNSUPPORTED,
                    Severity.ERROR,
                    f"Unique index '{index.name}' uses {index.index_type.value}; only btree supports UNIQUE.",
                    element,
                    suggestion="Use a btree index.",
                )
            )
        return results


def _suggest_index_type(data_type: DataType) -> str:
    candidates = [t.value for t, types in SUPPORTED_TYPES.items() if data_type in types]
    if not candidates:
        return "No index type supports this column type."
    return f"Use one of: {', '.join(candidates)}."
