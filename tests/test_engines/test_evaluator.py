"""Tests for the rule expression evaluator."""

from decimal import Decimal

import pytest

from taxcompare.engines.evaluator import RuleEvaluator
from taxcompare.models.enums import RuleKind, RuleStatus
from taxcompare.models.rules import (
    CaseBranch,
    CaseExpr,
    CompareExpr,
    ConstantExpr,
    MaxExpr,
    MinExpr,
    MulExpr,
    Rule,
    UnsupportedExpr,
    ValueExpr,
)


@pytest.fixture
def evaluator() -> RuleEvaluator:
    return RuleEvaluator()


class TestLeaves:
    def test_constant(self, evaluator, ca_context):
        assert evaluator.evaluate(ConstantExpr(value=Decimal("42")), ca_context) == Decimal("42")

    def test_value_from_facts(self, evaluator, ca_context):
        assert evaluator.evaluate(ValueExpr(path="hsaContribution"), ca_context) == Decimal("3000")

    def test_value_snake_case_path(self, evaluator, ca_context):
        assert evaluator.evaluate(ValueExpr(path="hsa_contribution"), ca_context) == Decimal("3000")

    def test_reserved_paths(self, evaluator, ca_context):
        ctx = ca_context.model_copy(update={"state_agi": Decimal("90000")})
        assert evaluator.evaluate(ValueExpr(path="federalAGI"), ctx) == Decimal("100000")
        assert evaluator.evaluate(ValueExpr(path="stateAGI"), ctx) == Decimal("90000")

    def test_missing_value_is_zero_and_recorded(self, evaluator, ca_context):
        assert evaluator.evaluate(ValueExpr(path="itemizedCharity"), ca_context) == Decimal("0")
        assert evaluator.missing_inputs == ["itemizedCharity"]

    def test_missing_inputs_deduplicated(self, evaluator, ca_context):
        evaluator.evaluate(ValueExpr(path="itemizedCharity"), ca_context)
        evaluator.evaluate(ValueExpr(path="itemizedCharity"), ca_context)
        assert evaluator.missing_inputs == ["itemizedCharity"]

    def test_unknown_fact_name_is_missing(self, evaluator, ca_context):
        assert evaluator.evaluate(ValueExpr(path="noSuchFact"), ca_context) == Decimal("0")
        assert "noSuchFact" in evaluator.missing_inputs

    def test_non_numeric_value_warns(self, evaluator, ca_context):
        assert evaluator.evaluate(ValueExpr(path="filingStatus"), ca_context) == Decimal("0")
        assert evaluator.warnings == ["non_numeric_value:filingStatus"]


class TestCompare:
    @pytest.mark.parametrize(
        "op,value,expected",
        [
            (">", "99999", True),
            (">", "100000", False),
            (">=", "100000", True),
            ("<", "100000", False),
            ("<=", "100000", True),
            ("==", "100000", True),
            ("!=", "100000", False),
        ],
    )
    def test_numeric_ops(self, evaluator, ca_context, op, value, expected):
        expr = CompareExpr(op=op, path="federalAGI", value=Decimal(value))
        assert evaluator.evaluate(expr, ca_context) is expected

    def test_filing_status_equality(self, evaluator, ca_context):
        assert evaluator.evaluate(
            CompareExpr(op="==", path="filingStatus", value="single"), ca_context
        )
        assert not evaluator.evaluate(
            CompareExpr(op="==", path="filingStatus", value="mfj"), ca_context
        )

    def test_boolean_fact(self, evaluator, ca_context):
        ctx = ca_context.model_copy(
            update={"facts": ca_context.facts.model_copy(update={"renter": True})}
        )
        assert evaluator.evaluate(CompareExpr(op="==", path="renter", value=True), ctx)

    def test_missing_path_recorded(self, evaluator, ca_context):
        assert not evaluator.evaluate(CompareExpr(op="==", path="renter", value=True), ca_context)
        assert evaluator.missing_inputs == ["renter"]


class TestCombinators:
    def test_mul(self, evaluator, ca_context):
        expr = MulExpr(args=[ValueExpr(path="federalAGI"), ConstantExpr(value=Decimal("0.5"))])
        assert evaluator.evaluate(expr, ca_context) == Decimal("50000")

    def test_empty_mul_is_one(self, evaluator, ca_context):
        assert evaluator.evaluate(MulExpr(), ca_context) == Decimal("1")

    def test_min_max(self, evaluator, ca_context):
        args = [ValueExpr(path="hsaContribution"), ValueExpr(path="usTreasuryInterest")]
        assert evaluator.evaluate(MinExpr(args=args), ca_context) == Decimal("1000")
        assert evaluator.evaluate(MaxExpr(args=args), ca_context) == Decimal("3000")

    def test_empty_min_max_are_zero(self, evaluator, ca_context):
        assert evaluator.evaluate(MinExpr(), ca_context) == Decimal("0")
        assert evaluator.evaluate(MaxExpr(), ca_context) == Decimal("0")

    def test_case_first_truthy_branch(self, evaluator, ca_context):
        expr = CaseExpr(
            cases=[
                CaseBranch(
                    when=CompareExpr(op=">", path="federalAGI", value=Decimal("200000")),
                    then=ConstantExpr(value=Decimal("1")),
                ),
                CaseBranch(
                    when=CompareExpr(op=">", path="federalAGI", value=Decimal("50000")),
                    then=ConstantExpr(value=Decimal("2")),
                ),
            ],
            default=ConstantExpr(value=Decimal("3")),
        )
        assert evaluator.evaluate(expr, ca_context) == Decimal("2")

    def test_case_default(self, evaluator, ca_context):
        expr = CaseExpr(
            cases=[
                CaseBranch(
                    when=CompareExpr(op="<", path="federalAGI", value=Decimal("1")),
                    then=ConstantExpr(value=Decimal("1")),
                )
            ],
            default=ConstantExpr(value=Decimal("3")),
        )
        assert evaluator.evaluate(expr, ca_context) == Decimal("3")

    def test_case_skips_unchosen_branches(self, evaluator, ca_context):
        expr = CaseExpr(
            cases=[
                CaseBranch(
                    when=CompareExpr(op=">", path="federalAGI", value=Decimal("0")),
                    then=ConstantExpr(value=Decimal("10")),
                ),
                CaseBranch(
                    when=CompareExpr(op=">", path="itemizedOther", value=Decimal("0")),
                    then=ValueExpr(path="itemizedCharity"),
                ),
            ],
            default=ValueExpr(path="itemizedMortgageInterest"),
        )
        assert evaluator.evaluate(expr, ca_context) == Decimal("10")
        assert evaluator.missing_inputs == []

    def test_unsupported_node(self, evaluator, ca_context):
        assert evaluator.evaluate(UnsupportedExpr(name="pow"), ca_context) == Decimal("0")
        assert evaluator.warnings == ["unsupported_op:pow"]


class TestApplyRule:
    def test_applies_amount(self, evaluator, ca_context):
        rule = Rule(id="R1", kind=RuleKind.ADDITION, amount=ValueExpr(path="hsaContribution"))
        outcome = evaluator.apply_rule(rule, ca_context)
        assert outcome.applied
        assert outcome.amount == Decimal("3000")

    def test_disabled_rule(self, evaluator, ca_context):
        rule = Rule(
            id="R1",
            kind=RuleKind.ADDITION,
            enabled=False,
            amount=ConstantExpr(value=Decimal("10")),
        )
        outcome = evaluator.apply_rule(rule, ca_context)
        assert not outcome.applied
        assert outcome.amount == Decimal("0")
        assert evaluator.warnings == []

    def test_needs_detail_rule_warns(self, evaluator, ca_context):
        rule = Rule(
            id="NY_529",
            kind=RuleKind.SUBTRACTION,
            status=RuleStatus.NEEDS_DETAIL,
            amount=ConstantExpr(value=Decimal("10")),
        )
        outcome = evaluator.apply_rule(rule, ca_context)
        assert not outcome.applied
        assert evaluator.warnings == ["rule_needs_detail:NY_529"]

    def test_false_when_skips(self, evaluator, ca_context):
        rule = Rule(
            id="R1",
            kind=RuleKind.CREDIT,
            when=CompareExpr(op="<", path="federalAGI", value=Decimal("1000")),
            amount=ConstantExpr(value=Decimal("60")),
        )
        assert not evaluator.apply_rule(rule, ca_context).applied

    def test_rule_without_amount_does_not_apply(self, evaluator, ca_context):
        rule = Rule(id="R1", kind=RuleKind.ADDITION)
        assert not evaluator.apply_rule(rule, ca_context).applied

    def test_requires_is_informational(self, evaluator, ca_context):
        rule = Rule(
            id="R1",
            kind=RuleKind.ADDITION,
            amount=ConstantExpr(value=Decimal("5")),
            requires=["iraContribution"],
        )
        outcome = evaluator.apply_rule(rule, ca_context)
        assert outcome.applied
        assert outcome.amount == Decimal("5")
        assert evaluator.missing_inputs == ["iraContribution"]

    def test_negative_amount_clamped(self, evaluator, ca_context):
        rule = Rule(id="R1", kind=RuleKind.ADDITION, amount=ConstantExpr(value=Decimal("-5")))
        outcome = evaluator.apply_rule(rule, ca_context)
        assert outcome.applied
        assert outcome.amount == Decimal("0")
