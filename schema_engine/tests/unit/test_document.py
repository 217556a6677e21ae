"""Unit tests for the schema document model."""

from __future__ import annotations

import json
from pathlib import Path

from schema_engine.models.document import SchemaDocument
from schema_engine.models.schema import (
    DatabaseField,
    DatabaseTable,
    DataType,
    ForeignKey,
    Index,
    IndexType,
    ReferentialAction,
    RLSPolicy,
)


def _document() -> SchemaDocument:
    users = DatabaseTable(
        id="t1",
        name="users",
        fields=[
            DatabaseField(id="f1", name="id", data_type=DataType.UUID, primary_key=True, nullable=False),
            DatabaseField(
                id="f2",
                name="team_id",
                data_type=DataType.INTEGER,
                foreign_key=ForeignKey(table="teams", field="id", on_delete=ReferentialAction.SET_NULL),
            ),
        ],
    )
    return SchemaDocument(
        tables=[users],
        indexes=[Index(name="idx_team", table_name="users", column_names=["team_id"])],
        policies=[RLSPolicy(name="own", table_name="users", using_expression="auth.uid() = id")],
    )


class TestSchemaDocument:
    def test_json_uses_persisted_field_names(self):
        data = json.loads(_document().to_json())
        field = data["tables"][0]["fields"][1]
        assert field["type"] == "INTEGER"
        assert field["foreignKey"] == {"table": "teams", "field": "id", "onDelete": "SET NULL"}
        assert data["tables"][0]["fields"][0]["primaryKey"] is True
        assert data["indexes"][0]["index_type"] == "btree"

    def test_json_round_trip(self):
        doc = _document()
        assert SchemaDocument.from_json(doc.to_json()) == doc

    def test_accepts_python_names_on_input(self):
        field = DatabaseField.model_validate({"id": "f", "name": "n", "data_type": "TEXT", "primary_key": True})
        assert field.primary_key is True

    def test_index_type_case_insensitive(self):
        index = Index.model_validate({"name": "i", "table_name": "t", "index_type": "GIN"})
        assert index.index_type == IndexType.GIN

    def test_save_and_load(self, tmp_path: Path):
        path = tmp_path / "schema.json"
        _document().save(path)
        assert path.read_text(encoding="utf-8").endswith("}\n")
        assert SchemaDocument.load(path) == _document()

    def test_empty_document(self):
        doc = SchemaDocument.from_json("{}")
        assert doc.tables == [] and doc.indexes == [] and doc.policies == []
