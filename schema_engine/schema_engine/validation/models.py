"""Models shared by the validation engine and its validators."""

from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, Field

from schema_engine.models.schema import DatabaseTable, Index, RLSPolicy


class ValidatorKind(str, Enum):
    """Category of validator.  One validator per kind may be registered."""

    STRUCTURAL = "structural"
    INDEX = "index"
    RLS = "rls"
    NAMING = "naming"


class ValidationContext(BaseModel):
    """Everything a validator may look at.  Validators never mutate it."""

    tables: list[DatabaseTable] = Field(
        default_factory=list,
        description="Tables to validate, in project order.",
    )
    indexes: list[Index] = Field(default_factory=list)
    policies: list[RLSPolicy] = Field(default_factory=list)
    kinds: list[ValidatorKind] | None = Field(
        default=None,
        description="When set, only run validators of these kinds. None means run all.",
    )

    def table_by_name(self, name: str) -> DatabaseTable | None:
        """Return the first table called *name* (exact match)."""
        for table in self.tables:
            if table.name == name:
                return table
        return None


class Timer:
    """Simple monotonic timer for measuring validation duration."""

    def __init__(self) -> None:
        self._start: float = 0.0

    def start(self) -> None:
        self._start = time.monotonic()

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start) * 1000)
