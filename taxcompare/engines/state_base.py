"""State tax-base pipeline.

federal AGI -> state AGI (conformity additions/subtractions)
state AGI   -> taxable state income (standard deduction, exemption, itemized)
state tax   -> state tax after credit rules

Each stage returns an ``AdjustmentResult`` carrying the audit trail of
applied rules plus de-duplicated warnings and missing inputs.
"""

import logging
from decimal import Decimal

from taxcompare.engines.calculator import ZERO, clamp0, compute_tax, effective_rate, round2
from taxcompare.engines.evaluator import RuleEvaluator
from taxcompare.exceptions import MissingBracketsError
from taxcompare.models.enums import FilingStatus, RuleKind, StartingPointType
from taxcompare.models.results import AdjustmentResult, AppliedAdjustment, StateTaxResult
from taxcompare.models.rules import EvaluationContext, Rule, StateRuleSet
from taxcompare.models.scenario import ScenarioFacts, normalize_state

logger = logging.getLogger(__name__)

NO_INCOME_TAX_STATES = frozenset({"AK", "FL", "NV", "SD", "TN", "TX", "WA", "WY", "NH"})


def _run_rules(
    rules: list[Rule],
    ctx: EvaluationContext,
    evaluator: RuleEvaluator,
    applied: list[AppliedAdjustment],
    kind: RuleKind | None = None,
) -> Decimal:
    total = ZERO
    for rule in rules:
        outcome = evaluator.apply_rule(rule, ctx)
        if not outcome.applied:
            continue
        total += outcome.amount
        applied.append(
            AppliedAdjustment(
                id=rule.id,
                kind=kind or rule.kind,
                amount=outcome.amount,
                description=rule.description,
            )
        )
    return total


def apply_conformity(
    federal_agi: Decimal, ruleset: StateRuleSet, ctx: EvaluationContext
) -> AdjustmentResult:
    """Compute state AGI from federal AGI.

    Additions are evaluated first; subtractions then see ``stateAGI`` as
    ``base + additions``.
    """
    evaluator = RuleEvaluator()
    applied: list[AppliedAdjustment] = []
    federal_agi = clamp0(Decimal(federal_agi))

    base = federal_agi
    start = ruleset.starting_point.type
    if start == StartingPointType.FEDERAL_TAXABLE_INCOME:
        if ctx.federal_taxable_income is None:
            evaluator.warnings.append("startingPoint.federalTaxableIncome_missing_using_federalAGI")
        else:
            base = clamp0(ctx.federal_taxable_income)
    elif start == StartingPointType.STATE_DEFINED:
        evaluator.warnings.append("startingPoint.stateDefined_fallback_to_federalAGI")

    eval_ctx = ctx.model_copy(update={"federal_agi": federal_agi, "state_agi": base})
    total_add = _run_rules(ruleset.additions, eval_ctx, evaluator, applied)

    eval_ctx = eval_ctx.model_copy(update={"state_agi": base + total_add})
    total_sub = _run_rules(ruleset.subtractions, eval_ctx, evaluator, applied)

    return AdjustmentResult(
        value=clamp0(base + total_add - total_sub),
        applied=applied,
        warnings=evaluator.warnings,
        missing_inputs=evaluator.missing_inputs,
    )


def apply_deductions(
    state_agi: Decimal,
    ruleset: StateRuleSet,
    ctx: EvaluationContext,
    use_itemized: bool = False,
) -> AdjustmentResult:
    """Reduce state AGI by standard deduction, exemption and (opt-in) itemized rules."""
    evaluator = RuleEvaluator()
    applied: list[AppliedAdjustment] = []
    state_agi = clamp0(Decimal(state_agi))

    standard = clamp0(ruleset.standard_deduction.resolve(ctx.filing_status))
    exemption = clamp0(ruleset.personal_exemption.resolve(ctx.filing_status))
    if standard:
        applied.append(
            AppliedAdjustment(
                id="STD_DEDUCTION",
                kind=RuleKind.DEDUCTION,
                amount=standard,
                description="Standard deduction",
            )
        )
    if exemption:
        applied.append(
            AppliedAdjustment(
                id="PERSONAL_EXEMPTION",
                kind=RuleKind.DEDUCTION,
                amount=exemption,
                description="Personal exemption",
            )
        )

    itemized = ZERO
    if use_itemized:
        eval_ctx = ctx.model_copy(update={"state_agi": state_agi})
        deduction_rules = [r for r in ruleset.itemized_rules if r.kind == RuleKind.DEDUCTION]
        itemized = _run_rules(deduction_rules, eval_ctx, evaluator, applied, RuleKind.DEDUCTION)

    return AdjustmentResult(
        value=clamp0(state_agi - standard - exemption - itemized),
        applied=applied,
        warnings=evaluator.warnings,
        missing_inputs=evaluator.missing_inputs,
    )


def apply_credits(
    state_tax: Decimal, ruleset: StateRuleSet, ctx: EvaluationContext
) -> AdjustmentResult:
    """Apply the ruleset's credit rules in order. Tax never drops below zero."""
    evaluator = RuleEvaluator()
    applied: list[AppliedAdjustment] = []
    credits = _run_rules(ruleset.credits, ctx, evaluator, applied, RuleKind.CREDIT)
    return AdjustmentResult(
        value=clamp0(Decimal(state_tax) - credits),
        applied=applied,
        warnings=evaluator.warnings,
        missing_inputs=evaluator.missing_inputs,
    )


def _merge(*lists: list[str]) -> list[str]:
    return list(dict.fromkeys(item for items in lists for item in items))


def compute_state_tax(
    federal_agi: Decimal,
    ruleset: StateRuleSet,
    filing_status: FilingStatus,
    facts: ScenarioFacts | None = None,
    federal_taxable_income: Decimal | None = None,
    use_itemized: bool = False,
) -> StateTaxResult:
    """Run conformity, deductions, the bracket table and credit rules for one state."""
    state = normalize_state(ruleset.state)

    if state in NO_INCOME_TAX_STATES or not ruleset.has_income_tax:
        logger.debug("%s has no state income tax", state)
        return StateTaxResult(
            state=state,
            tax_year=ruleset.year,
            has_income_tax=False,
            notes=[f"{state} has no state income tax."],
        )

    ctx = EvaluationContext(
        year=ruleset.year,
        state=state,
        filing_status=filing_status,
        federal_agi=clamp0(Decimal(federal_agi)),
        federal_taxable_income=federal_taxable_income,
        facts=facts or ScenarioFacts(),
    )

    conformity = apply_conformity(ctx.federal_agi, ruleset, ctx)
    deductions = apply_deductions(conformity.value, ruleset, ctx, use_itemized=use_itemized)

    if ruleset.tax is None:
        raise MissingBracketsError(state, ruleset.year, filing_status)
    schedule = ruleset.tax.schedule_for(filing_status, state, ruleset.year)
    bracket_result = compute_tax(deductions.value, schedule)

    credit_ctx = ctx.model_copy(update={"state_agi": conformity.value})
    credits = apply_credits(bracket_result.tax, ruleset, credit_ctx)
    tax = round2(credits.value)

    return StateTaxResult(
        state=state,
        tax_year=ruleset.year,
        has_income_tax=True,
        state_agi=round2(conformity.value),
        taxable_base=round2(deductions.value),
        tax_before_credits=bracket_result.tax,
        credits=round2(bracket_result.tax - tax),
        tax=tax,
        effective_rate=effective_rate(tax, deductions.value),
        breakdown=bracket_result.breakdown,
        applied=conformity.applied + deductions.applied + credits.applied,
        warnings=_merge(conformity.warnings, deductions.warnings, credits.warnings),
        missing_inputs=_merge(
            conformity.missing_inputs, deductions.missing_inputs, credits.missing_inputs
        ),
        notes=[ruleset.notes] if ruleset.notes else [],
    )
