"""Row-level-security policy checks.

Findings from this validator are warnings or info only; a policy that the
database would reject is still worth saving while it is being edited.

Each expression is first scanned with the DDL tokenizer (quotes,
parentheses, statement separators).  Expressions that pass are parsed with
sqlglot's PostgreSQL dialect, and table-qualified column references to known
tables are checked against those tables' fields.
"""

from __future__ import annotations

import logging

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from schema_engine.models.schema import PolicyCommand, RLSPolicy
from schema_engine.models.validation import (
    AffectedElement,
    ElementType,
    Severity,
    ValidationError,
    ValidationRule,
    finding,
)
from schema_engine.parser.tokenizer import LexError, Token, TokenType, tokenize
from schema_engine.validation.base import BaseValidator
from schema_engine.validation.models import ValidationContext, ValidatorKind

logger = logging.getLogger(__name__)

_ALWAYS_TRUE = frozenset({"true", "(true)", "1=1", "(1=1)"})
_COMPARISON_TOKENS = frozenset({"=", "<>", "!=", "<", ">", "<=", ">="})


def _policy_element(policy: RLSPolicy) -> AffectedElement:
    return AffectedElement(type=ElementType.POLICY, id=policy.element_id, name=policy.name)


def _parentheses_balanced(tokens: list[Token]) -> bool:
    depth = 0
    for tok in tokens:
        if tok.is_punct("("):
            depth += 1
        elif tok.is_punct(")"):
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


class RLSPolicyValidator(BaseValidator):
    """Lint RLS policies and their USING / WITH CHECK expressions."""

    @property
    def kind(self) -> ValidatorKind:
        return ValidatorKind.RLS

    def validate(self, context: ValidationContext) -> list[ValidationError]:
        results: list[ValidationError] = []
        for policy in context.policies:
            results.extend(self._check_policy(policy, context))
        return results

    def _check_policy(self, policy: RLSPolicy, context: ValidationContext) -> list[ValidationError]:
        results: list[ValidationError] = []
        element = _policy_element(policy)

        if not policy.name.strip():
            results.append(
                finding(ValidationRule.POLICY_NAME_EMPTY, Severity.WARNING, "Policy name is empty.", element)
            )

        if context.table_by_name(policy.table_name) is None:
            results.append(
                finding(
                    ValidationRule.POLICY_TABLE_NOT_FOUND,
                    Severity.WARNING,
                    f"Policy '{policy.name}' is attached to missing table '{policy.table_name}'.",
                    element,
                )
            )

        if policy.command == PolicyCommand.INSERT and policy.using_expression:
            results.append(
                finding(
                    ValidationRule.RLS_INSERT_USING,
                    Severity.WARNING,
                    f"INSERT policy '{policy.name}' has a USING expression; INSERT only evaluates WITH CHECK.",
                    element,
                    suggestion="Move the condition to WITH CHECK.",
                )
            )
        if policy.command in (PolicyCommand.SELECT, PolicyCommand.DELETE) and policy.with_check_expression:
            results.append(
                finding(
                    ValidationRule.RLS_WITH_CHECK_IGNORED,
                    Severity.WARNING,
                    f"{policy.command.value} policy '{policy.name}' has a WITH CHECK expression, "
                    "which is never evaluated.",
                    element,
                    suggestion="Move the condition to USING.",
                )
            )

        for label, expression in (("using", policy.using_expression), ("with_check", policy.with_check_expression)):
            if expression and expression.strip():
                results.extend(self._check_expression(policy, label, expression, context))
        return results

    def _check_expression(
        self,
        policy: RLSPolicy,
        label: str,
        expression: str,
        context: ValidationContext,
    ) -> list[ValidationError]:
        element = _policy_element(policy)
        clause = "USING" if label == "using" else "WITH CHECK"

        try:
            tokens = tokenize(expression)
        except LexError as exc:
            return [
                finding(
                    ValidationRule.RLS_UNTERMINATED_QUOTE,
                    Severity.WARNING,
                    f"{clause} expression of policy '{policy.name}' has an unterminated quote ({exc}).",
                    element,
                    label,
                )
            ]

        if not _parentheses_balanced(tokens):
            return [
                finding(
                    ValidationRule.RLS_UNBALANCED_PARENTHESES,
                    Severity.WARNING,
                    f"{clause} expression of policy '{policy.name}' has unbalanced parentheses.",
                    element,
                    label,
                )
            ]

        if any(tok.is_punct(";") for tok in tokens):
            return [
                finding(
                    ValidationRule.RLS_MULTIPLE_STATEMENTS,
                    Severity.WARNING,
                    f"{clause} expression of policy '{policy.name}' contains ';'. "
                    "A policy expression must be a single boolean expression.",
                    element,
                    label,
                    suggestion="Remove the statement separator and anything after it.",
                )
            ]

        results: list[ValidationError] = []
        try:
            tree = sqlglot.parse_one(expression, read="postgres")
        except SqlglotError as exc:
            logger.debug("sqlglot could not parse RLS expression %r: %s", expression, exc)
            results.append(
                finding(
                    ValidationRule.RLS_UNPARSEABLE,
                    Severity.WARNING,
                    f"{clause} expression of policy '{policy.name}' could not be parsed.",
                    element,
                    label,
                )
            )
        else:
            results.extend(self._check_columns(policy, label, tree, context))

        compact = "".join(expression.lower().split())
        compared = any(
            tok.is_punct(*_COMPARISON_TOKENS)
            or tok.is_keyword("IS")
            or (tok.type == TokenType.IDENTIFIER and tok.value.upper() == "IN")
            for tok in tokens
        )
        if "auth.uid()" in compact and not compared:
            results.append(
                finding(
                    ValidationRule.RLS_AUTH_UID_COMPARISON,
                    Severity.WARNING,
                    f"{clause} expression of policy '{policy.name}' uses auth.uid() without comparing it.",
                    element,
                    label,
                    suggestion="Compare it to an owner column, e.g. auth.uid() = user_id.",
                )
            )

        if compact in _ALWAYS_TRUE:
            results.append(
                finding(
                    ValidationRule.RLS_ALWAYS_TRUE,
                    Severity.INFO,
                    f"{clause} expression of policy '{policy.name}' is always true.",
                    element,
                    label,
                    suggestion="Restrict access unless the table holds public data.",
                )
            )
        return results

    def _check_columns(
        self,
        policy: RLSPolicy,
        label: str,
        tree: exp.Expression,
        context: ValidationContext,
    ) -> list[ValidationError]:
        results: list[ValidationError] = []
        reported: set[tuple[str, str]] = set()
        for column in tree.find_all(exp.Column):
            qualifier = column.table
            if not qualifier or not column.name:
                continue
            table = context.table_by_name(qualifier)
            if table is None or table.get_field(column.name) is not None:
                continue
            key = (qualifier, column.name)
            if key in reported:
                continue
            reported.add(key)
            results.append(
                finding(
                    ValidationRule.RLS_UNKNOWN_COLUMN,
                    Severity.WARNING,
                    f"Policy '{policy.name}' references '{qualifier}.{column.name}', "
                    f"which is not a field of '{qualifier}'.",
                    _policy_element(policy),
                    label,
                    f"{qualifier}.{column.name}",
                )
            )
        return results
