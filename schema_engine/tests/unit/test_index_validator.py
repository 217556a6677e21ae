"""Unit tests for the index validator."""

from __future__ import annotations

import pytest

from schema_engine.models.schema import DatabaseField, DatabaseTable, DataType, Index, IndexType
from schema_engine.models.validation import ElementType, Severity, ValidationRule
from schema_engine.validation.builtin.indexes import IndexValidator
from schema_engine.validation.models import ValidationContext


def _docs_table() -> DatabaseTable:
    fields = [
        DatabaseField(id="f-id", name="id", data_type=DataType.INTEGER, primary_key=True, nullable=False),
        DatabaseField(id="f-body", name="body", data_type=DataType.JSONB),
        DatabaseField(id="f-meta", name="meta", data_type=DataType.JSON),
        DatabaseField(id="f-tags", name="tags", data_type=DataType.ARRAY, type_parameters="TEXT"),
        DatabaseField(id="f-title", name="title", data_type=DataType.TEXT),
        DatabaseField(id="f-at", name="created_at", data_type=DataType.TIMESTAMPTZ),
    ]
    return DatabaseTable(id="t-docs", name="docs", fields=fields)


def _run(*indexes: Index):
    return IndexValidator().validate(ValidationContext(tables=[_docs_table()], indexes=list(indexes)))


def _rules(findings) -> list[ValidationRule]:
    return [f.rule for f in findings]


class TestReferences:
    def test_valid_btree_index(self):
        assert _run(Index(name="idx_docs_title", table_name="docs", column_names=["title"])) == []

    def test_missing_table_stops_further_checks(self):
        findings = _run(Index(name="idx", table_name="nope", column_names=["ghost"], index_type="hash"))
        assert _rules(findings) == [ValidationRule.INDEX_TABLE_NOT_FOUND]
        assert findings[0].severity == Severity.ERROR
        assert findings[0].affected_element.type == ElementType.INDEX

    def test_missing_column(self):
        findings = _run(Index(name="idx", table_name="docs", column_names=["title", "ghost"]))
        assert _rules(findings) == [ValidationRule.INDEX_COLUMN_NOT_FOUND]
        assert findings[0].id == "index-column-not-found:index:idx:ghost"

    def test_no_columns(self):
        assert _rules(_run(Index(name="idx", table_name="docs"))) == [ValidationRule.INDEX_NO_COLUMNS]

    def test_element_id_prefers_explicit_id(self):
        findings = _run(Index(id="ix-1", name="idx", table_name="docs"))
        assert findings[0].affected_element.id == "ix-1"


class TestNames:
    def test_empty_name(self):
        findings = _run(Index(name=" ", table_name="docs", column_names=["title"]))
        assert _rules(findings) == [ValidationRule.INDEX_NAME_EMPTY]

    def test_invalid_name_is_warning(self):
        findings = _run(Index(name="idx-title", table_name="docs", column_names=["title"]))
        assert _rules(findings) == [ValidationRule.INDEX_NAME_INVALID]
        assert findings[0].severity == Severity.WARNING


class TestAccessMethods:
    @pytest.mark.parametrize("column", ["body", "meta", "tags"])
    def test_gin_accepts_documents_and_arrays(self, column: str):
        assert _run(Index(name="idx", table_name="docs", column_names=[column], index_type=IndexType.GIN)) == []

    def test_gin_on_integer_is_error(self):
        findings = _run(Index(name="idx", table_name="docs", column_names=["id"], index_type=IndexType.GIN))
        assert _rules(findings) == [ValidationRule.INDEX_TYPE_INCOMPATIBLE]
        assert findings[0].severity == Severity.ERROR
        assert "btree" in findings[0].suggestion

    def test_btree_rejects_json(self):
        findings = _run(Index(name="idx", table_name="docs", column_names=["meta"]))
        assert _rules(findings) == [ValidationRule.INDEX_TYPE_INCOMPATIBLE]
        assert findings[0].suggestion == "Use one of: gin."

    def test_brin_on_timestamp(self):
        assert _run(Index(name="idx", table_name="docs", column_names=["created_at"], index_type="BRIN")) == []

    def test_hash_with_many_columns(self):
        findings = _run(Index(name="idx", table_name="docs", column_names=["id", "title"], index_type="hash"))
        assert _rules(findings) == [ValidationRule.INDEX_HASH_MULTI_COLUMN]

    def test_unique_requires_btree(self):
        findings = _run(
            Index(name="idx", table_name="docs", column_names=["body"], index_type="gin", is_unique=True)
        )
        assert _rules(findings) == [ValidationRule.INDEX_UNIQUE_UNSUPPORTED]


class TestDuplicates:
    def test_same_table_and_columns(self):
        findings = _run(
            Index(name="idx_a", table_name="docs", column_names=["title", "id"]),
            Index(name="idx_b", table_name="docs", column_names=["title", "id"]),
        )
        assert _rules(findings) == [ValidationRule.INDEX_DUPLICATE]
        assert findings[0].affected_element.name == "idx_b"
        assert "idx_a" in findings[0].message

    def test_column_order_matters(self):
        findings = _run(
            Index(name="idx_a", table_name="docs", column_names=["title", "id"]),
            Index(name="idx_b", table_name="docs", column_names=["id", "title"]),
        )
        assert findings == []
