"""Validation engine: runs registered validators over a schema.

The :class:`ValidationEngine` executes each registered validator
independently, in registration order, and concatenates their findings into
a :class:`ValidationSummary`.  The engine is pure and synchronous: the same
context always produces the same findings with the same ids.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from schema_engine.models.schema import DatabaseTable, Index, RLSPolicy
from schema_engine.models.validation import (
    AffectedElement,
    ElementType,
    Severity,
    ValidationError,
    ValidationRule,
    ValidationSummary,
    finding,
)
from schema_engine.validation.base import BaseValidator
from schema_engine.validation.models import Timer, ValidationContext, ValidatorKind
from schema_engine.validation.registry import ValidatorRegistry

logger = logging.getLogger(__name__)


class ValidationEngine:
    """Runs each registered validator over a context and merges the findings.

    Parameters
    ----------
    registry:
        Validators to run, in order.  ``None`` starts with none.
    """

    def __init__(self, registry: ValidatorRegistry | None = None) -> None:
        self._registry = ValidatorRegistry() if registry is None else registry

    def register(self, validator: BaseValidator) -> None:
        """Append *validator* to the run order."""
        self._registry.register(validator)

    def get_available_kinds(self) -> list[ValidatorKind]:
        return self._registry.get_kinds()

    def run(self, context: ValidationContext) -> ValidationSummary:
        """Run validators and return an aggregated summary.

        A validator that raises is logged and reported as one
        ``validator-failed`` error per table; the remaining validators still
        run.  This method never raises.
        """
        timer = Timer()
        timer.start()

        validators = self._registry.get_all()
        if context.kinds is not None:
            requested = set(context.kinds)
            validators = [v for v in validators if v.kind in requested]

        if not validators:
            logger.info("No validators to run (none registered or all filtered out).")
            return ValidationSummary.from_errors([], duration_ms=timer.elapsed_ms())

        all_errors: list[ValidationError] = []
        for validator in validators:
            logger.debug("Running validator: %s", validator.kind.value)
            try:
                all_errors.extend(validator.validate(context))
            except Exception as exc:
                logger.error(
                    "Validator %s raised an unhandled exception: %s",
                    validator.kind.value,
                    exc,
                    exc_info=True,
                )
                for table in context.tables:
                    all_errors.append(
                        finding(
                            ValidationRule.VALIDATOR_FAILED,
                            Severity.ERROR,
                            f"Unhandled error in {validator.kind.value} validator: {exc}",
                            AffectedElement(type=ElementType.TABLE, id=table.id, name=table.name),
                            validator.kind.value,
                        )
                    )

        return ValidationSummary.from_errors(all_errors, duration_ms=timer.elapsed_ms())


def create_default_engine(*, naming_lint: bool = False) -> ValidationEngine:
    """Create a :class:`ValidationEngine` with the built-in validators registered.

    Parameters
    ----------
    naming_lint:
        Also register the naming-convention lint.

    Returns
    -------
    ValidationEngine
        Engine running structural, index and RLS validators (in that order),
        followed by the naming lint when requested.
    """
    from schema_engine.validation.builtin.indexes import IndexValidator
    from schema_engine.validation.builtin.naming import NamingValidator
    from schema_engine.validation.builtin.rls import RLSPolicyValidator
    from schema_engine.validation.builtin.structural import StructuralValidator

    engine = ValidationEngine()
    engine.register(StructuralValidator())
    engine.register(IndexValidator())
    engine.register(RLSPolicyValidator())
    if naming_lint:
        engine.register(NamingValidator())
    return engine


def validate_schema(
    tables: Sequence[DatabaseTable],
    policies: Sequence[RLSPolicy] = (),
    indexes: Sequence[Index] = (),
) -> list[ValidationError]:
    """Validate a schema with the default validators and return all findings.

    Findings are ordered structural, then index, then RLS.  Calling this
    twice on the same input returns equal lists.
    """
    context = ValidationContext(tables=list(tables), indexes=list(indexes), policies=list(policies))
    return create_default_engine().run(context).errors
