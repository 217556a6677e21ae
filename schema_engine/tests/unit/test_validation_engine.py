"""Unit tests for the validation engine and validator registry."""

from __future__ import annotations

import logging

import pytest

from schema_engine.models.schema import DatabaseField, DatabaseTable, DataType, ForeignKey, Index, RLSPolicy
from schema_engine.models.validation import Severity, ValidationError, ValidationRule
from schema_engine.validation.base import BaseValidator
from schema_engine.validation.engine import ValidationEngine, create_default_engine, validate_schema
from schema_engine.validation.models import ValidationContext, ValidatorKind
from schema_engine.validation.registry import ValidatorRegistry

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _StubValidator(BaseValidator):
    def __init__(self, kind: ValidatorKind, results: list[ValidationError] | None = None) -> None:
        self._kind = kind
        self._results = results or []
        self.calls = 0

    @property
    def kind(self) -> ValidatorKind:
        return self._kind

    def validate(self, context: ValidationContext) -> list[ValidationError]:
        self.calls += 1
        return list(self._results)


class _ExplodingValidator(BaseValidator):
    @property
    def kind(self) -> ValidatorKind:
        return ValidatorKind.INDEX

    def validate(self, context: ValidationContext) -> list[ValidationError]:
        raise RuntimeError("boom")


def _schema() -> list[DatabaseTable]:
    users = DatabaseTable(
        id="t-users",
        name="users",
        fields=[DatabaseField(id="u-id", name="id", data_type=DataType.UUID, primary_key=True, nullable=False)],
    )
    posts = DatabaseTable(
        id="t-posts",
        name="posts",
        fields=[
            DatabaseField(id="p-id", name="id", data_type=DataType.UUID, primary_key=True, nullable=False),
            DatabaseField(
                id="p-author",
                name="author_id",
                data_type=DataType.UUID,
                foreign_key=ForeignKey(table="authors", field="id"),
            ),
        ],
    )
    return [users, posts]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestValidatorRegistry:
    def test_register_keeps_order(self):
        registry = ValidatorRegistry()
        kinds = [ValidatorKind.RLS, ValidatorKind.STRUCTURAL, ValidatorKind.INDEX]
        validators = [_StubValidator(kind) for kind in kinds]
        for validator in validators:
            registry.register(validator)
        assert registry.get_all() == validators
        assert registry.get_kinds() == kinds

    def test_second_validator_of_a_kind_rejected(self):
        registry = ValidatorRegistry()
        registry.register(_StubValidator(ValidatorKind.RLS))
        with pytest.raises(ValueError, match="rls validator is already registered"):
            registry.register(_StubValidator(ValidatorKind.RLS))
        assert len(registry.get_all()) == 1

    def test_engine_uses_supplied_empty_registry(self):
        registry = ValidatorRegistry()
        engine = ValidationEngine(registry)
        registry.register(_StubValidator(ValidatorKind.NAMING))
        assert engine.get_available_kinds() == [ValidatorKind.NAMING]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TestValidationEngine:
    def test_empty_engine_returns_valid_summary(self):
        summary = ValidationEngine().run(ValidationContext(tables=_schema()))
        assert summary.total == 0
        assert summary.is_valid

    def test_default_engine_order(self):
        engine = create_default_engine()
        assert engine.get_available_kinds() == [ValidatorKind.STRUCTURAL, ValidatorKind.INDEX, ValidatorKind.RLS]

    def test_naming_lint_opt_in(self):
        assert ValidatorKind.NAMING in create_default_engine(naming_lint=True).get_available_kinds()

    def test_summary_counts(self):
        summary = create_default_engine().run(ValidationContext(tables=_schema()))
        assert summary.error_count == 1
        assert summary.errors[0].rule == ValidationRule.FK_TABLE_NOT_FOUND
        assert not summary.is_valid
        assert summary.total == summary.error_count + summary.warning_count + summary.info_count
        assert summary.for_element("p-author") == summary.errors

    def test_results_are_idempotent(self):
        context = ValidationContext(
            tables=_schema(),
            indexes=[Index(name="idx", table_name="ghosts", column_names=["x"])],
            policies=[RLSPolicy(name="p", table_name="posts", using_expression="true")],
        )
        engine = create_default_engine()
        first = engine.run(context).errors
        second = engine.run(context).errors
        assert [e.model_dump() for e in first] == [e.model_dump() for e in second]

    def test_validator_order_in_findings(self):
        context = ValidationContext(
            tables=_schema(),
            indexes=[Index(name="idx", table_name="ghosts", column_names=["x"])],
            policies=[RLSPolicy(name="p", table_name="ghosts")],
        )
        rules = [e.rule for e in create_default_engine().run(context).errors]
        assert rules == [
            ValidationRule.FK_TABLE_NOT_FOUND,
            ValidationRule.INDEX_TABLE_NOT_FOUND,
            ValidationRule.POLICY_TABLE_NOT_FOUND,
        ]

    def test_kinds_filter(self):
        structural = _StubValidator(ValidatorKind.STRUCTURAL)
        rls = _StubValidator(ValidatorKind.RLS)
        engine = ValidationEngine()
        engine.register(structural)
        engine.register(rls)
        engine.run(ValidationContext(kinds=[ValidatorKind.RLS]))
        assert (structural.calls, rls.calls) == (0, 1)

    def test_failing_validator_is_reported_per_table(self, caplog: pytest.LogCaptureFixture):
        engine = ValidationEngine()
        engine.register(_ExplodingValidator())
        survivor = _StubValidator(ValidatorKind.RLS)
        engine.register(survivor)

        with caplog.at_level(logging.ERROR):
            summary = engine.run(ValidationContext(tables=_schema()))

        assert survivor.calls == 1
        assert [e.id for e in summary.errors] == [
            "validator-failed:t-users:index",
            "validator-failed:t-posts:index",
        ]
        assert all(e.severity == Severity.ERROR for e in summary.errors)
        assert "boom" in summary.errors[0].message
        assert "raised an unhandled exception" in caplog.text

    def test_failing_validator_without_tables(self):
        engine = ValidationEngine()
        engine.register(_ExplodingValidator())
        assert engine.run(ValidationContext()).errors == []


class TestValidateSchema:
    def test_returns_findings_list(self):
        errors = validate_schema(_schema())
        assert [e.rule for e in errors] == [ValidationRule.FK_TABLE_NOT_FOUND]

    def test_clean_schema(self):
        assert validate_schema(_schema()[:1]) == []

    def test_policies_and_indexes_checked(self):
        errors = validate_schema(
            _schema()[:1],
            policies=[RLSPolicy(name="p", table_name="users", using_expression="auth.uid()")],
            indexes=[Index(name="idx", table_name="users", column_names=["nope"])],
        )
        assert [e.rule for e in errors] == [
            ValidationRule.INDEX_COLUMN_NOT_FOUND,
            ValidationRule.RLS_AUTH_UID_COMPARISON,
        ]

    def test_naming_lint_not_run(self):
        field = DatabaseField(id="f", name="id", primary_key=True, nullable=False)
        tables = [DatabaseTable(id="t", name="BadName", fields=[field])]
        assert validate_schema(tables) == []
