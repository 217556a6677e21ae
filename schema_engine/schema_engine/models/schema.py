"""Canonical schema model: tables, fields, indexes and RLS policies.

Relationships between elements are name-based weak references.  A
:class:`ForeignKey` names its target table and field; an :class:`Index`
names its table and columns; an :class:`RLSPolicy` names its table.  None of
them hold object pointers, so renaming or deleting a table can only leave a
broken lookup behind, which the validation engine reports.

Persisted field names follow the schema document shape used by the designer
(camelCase for tables and fields, snake_case for indexes and policies).
Python attribute names are always snake_case; populate-by-name is enabled so
both spellings are accepted on input.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DataType(str, Enum):
    """Closed set of canonical column types."""

    UUID = "UUID"
    TEXT = "TEXT"
    VARCHAR = "VARCHAR"
    CHAR = "CHAR"
    SMALLINT = "SMALLINT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    SERIAL = "SERIAL"
    BIGSERIAL = "BIGSERIAL"
    DECIMAL = "DECIMAL"
    NUMERIC = "NUMERIC"
    REAL = "REAL"
    DOUBLE_PRECISION = "DOUBLE PRECISION"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    TIMESTAMPTZ = "TIMESTAMPTZ"
    INTERVAL = "INTERVAL"
    JSON = "JSON"
    JSONB = "JSONB"
    ARRAY = "ARRAY"
    BYTEA = "BYTEA"
    INET = "INET"
    CIDR = "CIDR"
    MACADDR = "MACADDR"
    TSVECTOR = "TSVECTOR"
    EMAIL = "EMAIL"
    ENUM = "ENUM"


class ReferentialAction(str, Enum):
    """Action taken on dependent rows when a referenced row changes."""

    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"


class IndexType(str, Enum):
    """PostgreSQL index access methods."""

    BTREE = "btree"
    HASH = "hash"
    GIST = "gist"
    GIN = "gin"
    BRIN = "brin"


class PolicyCommand(str, Enum):
    """SQL command an RLS policy applies to."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ALL = "ALL"


# ---------------------------------------------------------------------------
# Tables and fields
# ---------------------------------------------------------------------------


class ForeignKey(BaseModel):
    """Name-based reference from a field to ``table.field``."""

    model_config = ConfigDict(populate_by_name=True)

    table: str = Field(..., description="Name of the referenced table.")
    field: str = Field(..., description="Name of the referenced field.")
    on_delete: ReferentialAction | None = Field(default=None, alias="onDelete")
    on_update: ReferentialAction | None = Field(default=None, alias="onUpdate")


class DatabaseField(BaseModel):
    """A single column of a :class:`DatabaseTable`."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Identifier generated once at creation, never reused.")
    name: str = Field(..., description="Column name, unique within the owning table.")
    data_type: DataType = Field(default=DataType.TEXT, alias="type")
    type_parameters: str | None = Field(
        default=None,
        alias="typeParameters",
        description="Parameter text such as '255' or '10, 2'; element type for ARRAY.",
    )
    nullable: bool = True
    primary_key: bool = Field(default=False, alias="primaryKey")
    unique: bool = False
    default_value: str | None = Field(default=None, alias="defaultValue")
    comment: str | None = None
    foreign_key: ForeignKey | None = Field(default=None, alias="foreignKey")


class Position(BaseModel):
    """Canvas coordinates.  Layout only; ignored by the core."""

    x: float = 0.0
    y: float = 0.0


class DatabaseTable(BaseModel):
    """A table owning an ordered sequence of fields."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Identifier generated once at creation, never reused.")
    name: str = Field(..., description="Table name, unique within the project.")
    fields: list[DatabaseField] = Field(default_factory=list)
    position: Position = Field(default_factory=Position)
    comment: str | None = None

    def get_field(self, name: str) -> DatabaseField | None:
        """Return the first field called *name*, or ``None``."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def primary_key_fields(self) -> list[DatabaseField]:
        return [f for f in self.fields if f.primary_key]


# ---------------------------------------------------------------------------
# Indexes and policies
# ---------------------------------------------------------------------------


class Index(BaseModel):
    """An index definition referencing its table and columns by name."""

    id: str | None = None
    name: str
    table_name: str
    column_names: list[str] = Field(default_factory=list)
    index_type: IndexType = IndexType.BTREE
    is_unique: bool = False

    @field_validator("index_type", mode="before")
    @classmethod
    def _lowercase_index_type(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def element_id(self) -> str:
        """Identifier used when reporting findings against this index."""
        return self.id or f"index:{self.name}"


class RLSPolicy(BaseModel):
    """A row-level-security policy attached to a table by name."""

    id: str | None = None
    name: str
    table_name: str
    command: PolicyCommand = PolicyCommand.ALL
    using_expression: str | None = None
    with_check_expression: str | None = None
    is_permissive: bool = True
    roles: list[str] = Field(default_factory=list)

    @field_validator("command", mode="before")
    @classmethod
    def _uppercase_command(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def element_id(self) -> str:
        """Identifier used when reporting findings against this policy."""
        return self.id or f"policy:{self.table_name}:{self.name}"
