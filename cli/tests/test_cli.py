"""Tests for cli/cli/app.py -- the SchemaBridge CLI application.

Uses typer.testing.CliRunner to invoke each command against real SQL files
and schema documents written to ``tmp_path``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cli.app import app
from schema_engine.models.document import SchemaDocument
from schema_engine.models.schema import DatabaseField, DatabaseTable, DataType, ForeignKey, Index, RLSPolicy

runner = CliRunner()

BLOG_SQL = """
CREATE TABLE users (
  id UUID PRIMARY KEY,
  email VARCHAR(255) NOT NULL UNIQUE
);
CREATE TABLE posts (
  id SERIAL PRIMARY KEY,
  author_id UUID REFERENCES users(id) ON DELETE CASCADE
);
"""

# ---------------------------------------------------------------------------
# Helpers -- reusable fixtures / factories
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """The CLI callback reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _write_sql(tmp_path: Path, sql: str = BLOG_SQL, name: str = "schema.sql") -> Path:
    path = tmp_path / name
    path.write_text(sql, encoding="utf-8")
    return path


def _write_document(tmp_path: Path, document: SchemaDocument, name: str = "schema.json") -> Path:
    path = tmp_path / name
    document.save(path)
    return path


def _valid_document() -> SchemaDocument:
    users = DatabaseTable(
        id="t-users",
        name="users",
        fields=[
            DatabaseField(id="u-id", name="id", data_type=DataType.UUID, primary_key=True, nullable=False),
            DatabaseField(id="u-email", name="email", data_type=DataType.TEXT, unique=True, comment="Login"),
        ],
    )
    return SchemaDocument(
        tables=[users],
        indexes=[Index(name="idx_users_email", table_name="users", column_names=["email"])],
        policies=[RLSPolicy(name="self", table_name="users", using_expression="auth.uid() = id")],
    )


def _invalid_document() -> SchemaDocument:
    posts = DatabaseTable(
        id="t-posts",
        name="posts",
        fields=[
            DatabaseField(id="p-id", name="id", data_type=DataType.INTEGER, primary_key=True, nullable=False),
            DatabaseField(
                id="p-author",
                name="author_id",
                data_type=DataType.INTEGER,
                foreign_key=ForeignKey(table="ghosts", field="id"),
            ),
        ],
    )
    return SchemaDocument(tables=[posts])


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------


class TestParseCommand:
    def test_parse_human_output(self, tmp_path: Path):
        result = runner.invoke(app, ["parse", str(_write_sql(tmp_path))])
        assert result.exit_code == 0
        assert "users" in result.output
        assert "posts" in result.output

    def test_parse_json_output(self, tmp_path: Path):
        result = runner.invoke(app, ["--json", "parse", str(_write_sql(tmp_path))])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert [t["name"] for t in payload["tables"]] == ["users", "posts"]
        author = payload["tables"][1]["fields"][1]
        assert author["foreignKey"] == {"table": "users", "field": "id", "onDelete": "CASCADE"}
        assert payload["warnings"] == []

    def test_parse_writes_document(self, tmp_path: Path):
        out = tmp_path / "out.json"
        result = runner.invoke(app, ["parse", str(_write_sql(tmp_path)), "--out", str(out)])
        assert result.exit_code == 0
        document = SchemaDocument.load(out)
        assert [t.name for t in document.tables] == ["users", "posts"]

    def test_parse_reports_unknown_types(self, tmp_path: Path):
        result = runner.invoke(app, ["parse", str(_write_sql(tmp_path, "CREATE TABLE t (x FOOBAR);"))])
        assert result.exit_code == 0
        assert "field-type-unknown" in result.output

    def test_parse_without_create_table_exits_2(self, tmp_path: Path):
        result = runner.invoke(app, ["parse", str(_write_sql(tmp_path, "SELECT 1;"))])
        assert result.exit_code == 2
        assert "Failed to parse" in result.output

    def test_parse_unterminated_quote_exits_2(self, tmp_path: Path):
        result = runner.invoke(app, ["parse", str(_write_sql(tmp_path, "CREATE TABLE t (a TEXT DEFAULT 'x);"))])
        assert result.exit_code == 2

    def test_parse_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["parse", str(tmp_path / "missing.sql")])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerateCommand:
    def test_generate_tables(self, tmp_path: Path):
        path = _write_document(tmp_path, _valid_document())
        result = runner.invoke(app, ["generate", str(path)])
        assert result.exit_code == 0
        assert result.stdout.startswith("CREATE TABLE users (")
        assert "COMMENT ON COLUMN users.email IS 'Login';" in result.stdout
        assert "CREATE INDEX" not in result.stdout

    def test_generate_without_comments(self, tmp_path: Path):
        path = _write_document(tmp_path, _valid_document())
        result = runner.invoke(app, ["generate", str(path), "--no-comments"])
        assert result.exit_code == 0
        assert "COMMENT ON" not in result.stdout

    def test_generate_full_export(self, tmp_path: Path):
        path = _write_document(tmp_path, _valid_document())
        result = runner.invoke(app, ["generate", str(path), "--full"])
        assert result.exit_code == 0
        assert "CREATE INDEX idx_users_email ON users (email);" in result.stdout
        assert "ALTER TABLE users ENABLE ROW LEVEL SECURITY;" in result.stdout

    def test_generate_empty_document(self, tmp_path: Path):
        path = _write_document(tmp_path, SchemaDocument())
        result = runner.invoke(app, ["--json", "generate", str(path)])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"sql": "-- No tables defined\n"}

    def test_generate_bad_document_exits_2(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(app, ["generate", str(path)])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


class TestValidateCommand:
    def test_valid_document(self, tmp_path: Path):
        path = _write_document(tmp_path, _valid_document())
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 0
        assert "VALID" in result.output

    def test_invalid_document_exits_1(self, tmp_path: Path):
        path = _write_document(tmp_path, _invalid_document())
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "fk-table-not-found" in result.output

    def test_validate_json(self, tmp_path: Path):
        path = _write_document(tmp_path, _invalid_document())
        result = runner.invoke(app, ["--json", "validate", str(path)])
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["is_valid"] is False
        assert payload["error_count"] == 1
        assert payload["errors"][0]["affectedElement"]["id"] == "p-author"

    def test_naming_lint_flag(self, tmp_path: Path):
        document = _valid_document()
        document.tables[0].name = "Users"
        document.indexes = []
        document.policies = []
        path = _write_document(tmp_path, document)

        plain = json.loads(runner.invoke(app, ["--json", "validate", str(path)]).stdout)
        linted = json.loads(runner.invoke(app, ["--json", "validate", str(path), "--naming"]).stdout)
        assert plain["total"] == 0
        assert [e["rule"] for e in linted["errors"]] == ["naming-not-snake-case"]


# ---------------------------------------------------------------------------
# import
# ---------------------------------------------------------------------------


class TestImportCommand:
    def test_import_creates_document(self, tmp_path: Path):
        target = tmp_path / "project.json"
        result = runner.invoke(app, ["import", str(_write_sql(tmp_path)), "--into", str(target)])
        assert result.exit_code == 0
        assert "Import complete" in result.output
        assert [t.name for t in SchemaDocument.load(target).tables] == ["users", "posts"]

    def test_import_merges_and_keeps_indexes(self, tmp_path: Path):
        target = _write_document(tmp_path, _valid_document(), name="project.json")
        sql = _write_sql(tmp_path, "CREATE TABLE teams (id INT PRIMARY KEY);", name="teams.sql")
        result = runner.invoke(app, ["--json", "import", str(sql), "--into", str(target)])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"imported": True, "mode": "merge", "tables": ["teams"], "warnings": []}
        document = SchemaDocument.load(target)
        assert [t.name for t in document.tables] == ["users", "teams"]
        assert len(document.indexes) == 1

    def test_import_replace(self, tmp_path: Path):
        target = _write_document(tmp_path, _valid_document(), name="project.json")
        sql = _write_sql(tmp_path, "CREATE TABLE users (id INT PRIMARY KEY);", name="users.sql")
        result = runner.invoke(app, ["import", str(sql), "--into", str(target), "--replace"])
        assert result.exit_code == 0
        tables = SchemaDocument.load(target).tables
        assert [t.name for t in tables] == ["users"]
        assert tables[0].fields[0].data_type == DataType.INTEGER

    def test_duplicate_names_block_import(self, tmp_path: Path):
        target = _write_document(tmp_path, _valid_document(), name="project.json")
        before = target.read_text(encoding="utf-8")
        sql = _write_sql(tmp_path, "CREATE TABLE users (id INT PRIMARY KEY);", name="users.sql")
        result = runner.invoke(app, ["--json", "import", str(sql), "--into", str(target)])
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["imported"] is False
        assert {e["rule"] for e in payload["errors"]} == {"table-name-duplicate"}
        assert target.read_text(encoding="utf-8") == before

    def test_import_without_tables_exits_2(self, tmp_path: Path):
        sql = _write_sql(tmp_path, "DROP TABLE users;", name="drop.sql")
        result = runner.invoke(app, ["import", str(sql), "--into", str(tmp_path / "p.json")])
        assert result.exit_code == 2
        assert not (tmp_path / "p.json").exists()
