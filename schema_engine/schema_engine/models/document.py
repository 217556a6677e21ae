"""Schema document: the persisted shape of a project's schema.

The core neither defines nor depends on a storage transport.  This model is
just the in-memory structure plus JSON (de)serialization so that callers and
the CLI can hand schemas around as files.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from schema_engine.models.schema import DatabaseTable, Index, RLSPolicy


class SchemaDocument(BaseModel):
    """Tables, indexes and RLS policies of one project."""

    tables: list[DatabaseTable] = Field(default_factory=list)
    indexes: list[Index] = Field(default_factory=list)
    policies: list[RLSPolicy] = Field(default_factory=list)

    def to_json(self, *, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)

    @classmethod
    def from_json(cls, text: str) -> SchemaDocument:
        return cls.model_validate_json(text)

    @classmethod
    def load(cls, path: Path) -> SchemaDocument:
        """Read a document from *path*."""
        return cls.from_json(path.read_text(encoding="utf-8"))

    def save(self, path: Path) -> None:
        """Write the document to *path* as pretty-printed JSON."""
        path.write_text(self.to_json() + "\n", encoding="utf-8")
