"""Unit tests for schema_engine.importer."""

from __future__ import annotations

import pytest

from schema_engine.importer import DuplicateNameError, ImportMode, SchemaImportError, import_sql
from schema_engine.models.schema import DatabaseField, DatabaseTable, DataType, Position
from schema_engine.models.validation import ValidationRule


def _existing(name: str = "accounts", x: float = 100.0) -> DatabaseTable:
    return DatabaseTable(
        id=f"existing-{name}",
        name=name,
        fields=[DatabaseField(id=f"existing-{name}-id", name="id", data_type=DataType.UUID, primary_key=True)],
        position=Position(x=x, y=100.0),
    )


class TestImportSQL:
    def test_merge_appends_after_existing(self):
        result = import_sql("CREATE TABLE users (id UUID PRIMARY KEY);", [_existing()])
        assert [t.name for t in result.tables] == ["accounts", "users"]
        assert [t.name for t in result.imported_tables] == ["users"]
        # Grid continues after the existing table.
        assert (result.imported_tables[0].position.x, result.imported_tables[0].position.y) == (400.0, 100.0)

    def test_merge_is_default(self):
        result = import_sql("CREATE TABLE users (id INT);", [_existing()])
        assert len(result.tables) == 2

    def test_replace_drops_existing(self):
        result = import_sql("CREATE TABLE users (id INT);", [_existing()], mode=ImportMode.REPLACE)
        assert [t.name for t in result.tables] == ["users"]
        assert result.imported_tables[0].position.x == 100.0

    def test_replace_allows_reusing_existing_name(self):
        result = import_sql("CREATE TABLE accounts (id INT);", [_existing()], mode=ImportMode.REPLACE)
        assert [t.id for t in result.tables] != ["existing-accounts"]

    def test_replace_ids_are_deterministic(self):
        first = import_sql("CREATE TABLE users (id INT);", mode=ImportMode.REPLACE)
        second = import_sql("CREATE TABLE users (id INT);", mode=ImportMode.REPLACE)
        assert first.tables[0].id == second.tables[0].id

    def test_merge_ids_do_not_collide_across_imports(self):
        first = import_sql("CREATE TABLE users (id INT);")
        second = import_sql("CREATE TABLE posts (id INT);", first.tables)
        ids = [t.id for t in second.tables]
        assert len(ids) == len(set(ids))

    def test_warnings_are_returned(self):
        result = import_sql("CREATE TABLE t (x FOOBAR);")
        assert [w.rule for w in result.warnings] == [ValidationRule.FIELD_TYPE_UNKNOWN]


class TestDuplicateNames:
    def test_duplicate_tables_in_sql(self):
        sql = "CREATE TABLE users (id INT); CREATE TABLE users (id UUID);"
        with pytest.raises(DuplicateNameError) as excinfo:
            import_sql(sql)
        findings = excinfo.value.findings
        assert len(findings) == 2
        assert all(f.rule == ValidationRule.TABLE_NAME_DUPLICATE for f in findings)
        ids = [f.affected_element.id for f in findings]
        assert ids[0] != ids[1]
        assert ids[1] in findings[0].message
        assert ids[0] in findings[1].message
        assert "users" in str(excinfo.value)

    def test_clash_with_existing_table(self):
        with pytest.raises(DuplicateNameError) as excinfo:
            import_sql("CREATE TABLE accounts (id INT);", [_existing()])
        assert "existing-accounts" in {f.affected_element.id for f in excinfo.value.findings}

    def test_duplicate_fields(self):
        with pytest.raises(DuplicateNameError) as excinfo:
            import_sql("CREATE TABLE t (a INT, a TEXT);")
        assert [f.rule for f in excinfo.value.findings] == [ValidationRule.FIELD_NAME_DUPLICATE] * 2

    def test_existing_duplicate_fields_do_not_block(self):
        broken = _existing()
        broken.fields.append(DatabaseField(id="dup", name="id"))
        result = import_sql("CREATE TABLE users (id INT);", [broken])
        assert len(result.tables) == 2

    def test_is_a_schema_import_error(self):
        with pytest.raises(SchemaImportError):
            import_sql("CREATE TABLE t (id INT); CREATE TABLE t (id INT);")


class TestUnreadableInput:
    def test_no_create_table(self):
        with pytest.raises(SchemaImportError, match="No tables found"):
            import_sql("SELECT 1;")

    def test_unterminated_quote(self):
        with pytest.raises(SchemaImportError, match="Could not read the SQL"):
            import_sql("CREATE TABLE t (a TEXT DEFAULT 'x);")

    def test_empty_input_imports_nothing(self):
        result = import_sql("", [_existing()])
        assert result.imported_tables == []
        assert [t.name for t in result.tables] == ["accounts"]
