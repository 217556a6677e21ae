"""Contract shared by the structural, index, RLS and naming validators."""

from __future__ import annotations

import abc

from schema_engine.models.validation import ValidationError
from schema_engine.validation.models import ValidationContext, ValidatorKind


class BaseValidator(abc.ABC):
    """One family of schema findings.

    A validator reads tables, indexes and policies from the context and
    returns findings without touching the schema.  It may raise; the engine
    turns that into ``validator-failed`` findings for every table.
    """

    @property
    @abc.abstractmethod
    def kind(self) -> ValidatorKind:
        """Family name used in logs and in ``validator-failed`` findings."""

    @abc.abstractmethod
    def validate(self, context: ValidationContext) -> list[ValidationError]:
        """Return findings ordered by the position of the offending elements in *context*."""
