"""Rule expression evaluator.

Evaluates the closed Expr AST from ``taxcompare.models.rules`` against an
``EvaluationContext``. Evaluation never raises for rule content problems:
missing facts, non-numeric values and unsupported ops score zero and are
recorded on ``warnings`` / ``missing_inputs`` instead.
"""

import logging
from decimal import Decimal, InvalidOperation

from taxcompare.engines.calculator import ZERO, clamp0
from taxcompare.models.enums import RuleStatus
from taxcompare.models.results import RuleOutcome
from taxcompare.models.rules import (
    CaseExpr,
    CompareExpr,
    ConstantExpr,
    EvaluationContext,
    MaxExpr,
    MinExpr,
    MulExpr,
    Rule,
    UnsupportedExpr,
    ValueExpr,
)

logger = logging.getLogger(__name__)

RESERVED_PATHS = ("federalAGI", "federalTaxableIncome", "stateAGI", "filingStatus")


def _to_decimal(value: object) -> Decimal | None:
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int | float):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


class RuleEvaluator:
    """Evaluates rule expressions, accumulating soft issues as it goes.

    One evaluator is used per pipeline stage so its ``warnings`` and
    ``missing_inputs`` describe that stage only.
    """

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.missing_inputs: list[str] = []

    def _warn(self, token: str) -> None:
        if token not in self.warnings:
            self.warnings.append(token)

    def _missing(self, path: str) -> None:
        if path not in self.missing_inputs:
            self.missing_inputs.append(path)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @staticmethod
    def resolve_path(path: str, ctx: EvaluationContext) -> Decimal | int | bool | str | None:
        """Look up a reserved context value or a named fact. None means unresolved."""
        name = (path or "").strip()
        if not name:
            return None
        if name == "federalAGI":
            return ctx.federal_agi
        if name == "federalTaxableIncome":
            return ctx.federal_taxable_income
        if name == "stateAGI":
            return ctx.state_agi
        if name == "filingStatus":
            return str(ctx.filing_status)
        return ctx.facts.lookup(name)

    def _number_at(self, path: str, ctx: EvaluationContext) -> Decimal:
        raw = self.resolve_path(path, ctx)
        if raw is None:
            self._missing(path)
            return ZERO
        number = _to_decimal(raw)
        if number is None:
            self._warn(f"non_numeric_value:{path}")
            return ZERO
        return number

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def evaluate(self, expr, ctx: EvaluationContext) -> Decimal | bool:
        """Evaluate one expression node. Only the chosen ``case`` branch runs."""
        if isinstance(expr, ConstantExpr):
            return expr.value

        if isinstance(expr, ValueExpr):
            return self._number_at(expr.path, ctx)

        if isinstance(expr, CompareExpr):
            return self._compare(expr, ctx)

        if isinstance(expr, MulExpr):
            product = Decimal("1")
            for arg in expr.args:
                product *= self._as_number(self.evaluate(arg, ctx))
            return product

        if isinstance(expr, MinExpr | MaxExpr):
            values = [self._as_number(self.evaluate(arg, ctx)) for arg in expr.args]
            if not values:
                return ZERO
            return min(values) if isinstance(expr, MinExpr) else max(values)

        if isinstance(expr, CaseExpr):
            for branch in expr.cases:
                if self._as_bool(self.evaluate(branch.when, ctx)):
                    return self.evaluate(branch.then, ctx)
            return self.evaluate(expr.default, ctx)

        if isinstance(expr, UnsupportedExpr):
            self._warn(f"unsupported_op:{expr.name}")
            return ZERO

        self._warn(f"unsupported_op:{getattr(expr, 'op', type(expr).__name__)}")
        return ZERO

    def _compare(self, expr: CompareExpr, ctx: EvaluationContext) -> bool:
        raw = self.resolve_path(expr.path, ctx)
        if raw is None:
            self._missing(expr.path)

        # String equality, e.g. filingStatus == "mfj"
        if isinstance(raw, str) and isinstance(expr.value, str) and expr.op in ("==", "!="):
            return (raw == expr.value) == (expr.op == "==")

        left = ZERO if raw is None else _to_decimal(raw)
        right = _to_decimal(expr.value)
        if left is None:
            self._warn(f"non_numeric_value:{expr.path}")
            left = ZERO
        if right is None:
            self._warn(f"non_numeric_value:{expr.path}")
            right = ZERO

        match expr.op:
            case ">":
                return left > right
            case ">=":
                return left >= right
            case "<":
                return left < right
            case "<=":
                return left <= right
            case "==":
                return left == right
            case "!=":
                return left != right
        return False

    @staticmethod
    def _as_number(value: Decimal | bool) -> Decimal:
        if isinstance(value, bool):
            return Decimal(int(value))
        return value

    @staticmethod
    def _as_bool(value: Decimal | bool) -> bool:
        return bool(value)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def apply_rule(self, rule: Rule, ctx: EvaluationContext) -> RuleOutcome:
        """Evaluate one rule; the amount is clamped to zero or more."""
        if not rule.enabled:
            logger.debug("Skipping disabled rule %s", rule.id)
            return RuleOutcome(applied=False)
        if rule.status == RuleStatus.NEEDS_DETAIL:
            logger.debug("Skipping rule %s: needs detail", rule.id)
            self._warn(f"rule_needs_detail:{rule.id}")
            return RuleOutcome(applied=False)

        for required in rule.requires:
            if self.resolve_path(required, ctx) is None:
                self._missing(required)

        applies = True if rule.when is None else self._as_bool(self.evaluate(rule.when, ctx))
        if not applies or rule.amount is None:
            return RuleOutcome(applied=False)

        amount = clamp0(self._as_number(self.evaluate(rule.amount, ctx)))
        return RuleOutcome(applied=True, amount=amount)
