"""Ordered set of schema validators, one per :class:`ValidatorKind`.

Structural checks must report before index and policy checks that lean on
the same tables, so the order validators are added in is the order the
engine runs them and the order their findings appear.
"""

from __future__ import annotations

import logging

from schema_engine.validation.base import BaseValidator
from schema_engine.validation.models import ValidatorKind

logger = logging.getLogger(__name__)


class ValidatorRegistry:
    """Validators keyed by kind, kept in the order they were added."""

    def __init__(self) -> None:
        self._validators: dict[ValidatorKind, BaseValidator] = {}

    def register(self, validator: BaseValidator) -> None:
        """Add *validator* after those already present.

        Raises
        ------
        ValueError
            If a validator for the same kind is present; two structural
            validators would report every dangling key twice.
        """
        if validator.kind in self._validators:
            raise ValueError(f"A {validator.kind.value} validator is already registered.")
        self._validators[validator.kind] = validator
        logger.debug("Registered %s validator (%d total)", validator.kind.value, len(self._validators))

    def get_all(self) -> list[BaseValidator]:
        return list(self._validators.values())

    def get_kinds(self) -> list[ValidatorKind]:
        return list(self._validators)
