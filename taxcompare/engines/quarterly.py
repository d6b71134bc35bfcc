"""Quarterly estimated-tax planner for self-employed income.

Computes a full-year federal + state + SE tax projection and splits what is
left after withholding into the four estimated-tax installments. Premium
callers also get itemized deductions, the QBI deduction, NIIT, CTC/ODC,
EITC, state credits, a safe-harbor payment strategy and a penalty-risk
report.
"""

import logging
from decimal import Decimal

from taxcompare.engines import premium
from taxcompare.engines.calculator import ZERO, clamp0, compute_tax, round2
from taxcompare.engines.safe_harbor import (
    DUE_DATE_LABELS,
    QUARTER_LABELS,
    compute_quarterly_penalty_risk,
    compute_safe_harbor_requirement,
)
from taxcompare.engines.se_tax import compute_se_tax
from taxcompare.engines.state_base import NO_INCOME_TAX_STATES, compute_state_tax
from taxcompare.exceptions import PremiumRequiredError
from taxcompare.models.enums import PaymentStrategy
from taxcompare.models.results import (
    AnnualBreakdown,
    ChildCreditResult,
    CreditResult,
    QuarterlyEstimate,
    QuarterlyPayment,
)
from taxcompare.models.scenario import QuarterlyInput
from taxcompare.repository import TaxRuleRepository

logger = logging.getLogger(__name__)

# Prior-year facts feed the free safe-harbor preview
FREE_FACTS = frozenset({"prior_year_total_tax", "prior_year_agi"})

# Input fields (beyond facts) that only premium callers may set
PREMIUM_FIELDS = (
    "strategy",
    "business_type",
    "use_itemized",
    "estimated_payments_by_quarter",
    "estimated_payments_ytd",
    "as_of",
)


def premium_fields_used(data: QuarterlyInput) -> list[str]:
    """Names of premium-only inputs present on ``data``."""
    used = [name for name in PREMIUM_FIELDS if name in data.model_fields_set]
    used += sorted(data.facts.provided() - FREE_FACTS)
    return used


def _installments(remaining: Decimal) -> list[QuarterlyPayment]:
    per = round2(remaining / 4)
    return [
        QuarterlyPayment(label=label, due_date_label=due, amount=per)
        for label, due in zip(QUARTER_LABELS, DUE_DATE_LABELS)
    ]


class QuarterlyEstimator:
    """Plans estimated-tax installments for one tax year."""

    def __init__(self, repository: TaxRuleRepository | None = None) -> None:
        self.repository = repository or TaxRuleRepository.builtin()

    def estimate(self, data: QuarterlyInput, is_premium: bool = False) -> QuarterlyEstimate:
        if not is_premium:
            used = premium_fields_used(data)
            if used:
                raise PremiumRequiredError(used)

        constants = self.repository.constants(data.tax_year)
        facts = data.facts
        fs = data.filing_status
        strategy = data.strategy or PaymentStrategy.CURRENT_YEAR
        notes: list[str] = []

        # --- Income ---
        w2_wages = facts.amount("w2_wages")
        investment_income = clamp0(
            facts.amount("interest_income")
            + facts.amount("dividend_income")
            + facts.amount("capital_gains")
        )
        # Investment adjustments reduce only the NIIT base, never AGI
        niit_base = clamp0(investment_income - facts.amount("net_investment_income_adjustments"))
        earned_income = clamp0(data.net_profit + w2_wages)
        gross_income = clamp0(data.net_profit + w2_wages + data.other_income + investment_income)

        # --- SE tax and above-the-line deductions ---
        se = compute_se_tax(data.net_profit, w2_wages, fs, constants.se_tax)
        above_the_line = round2(se.deductible_half + facts.above_the_line())
        agi = round2(clamp0(gross_income - above_the_line))

        # --- Deductions ---
        standard = constants.standard_deduction_for(fs)
        deduction = standard
        if is_premium and data.use_itemized:
            itemized = premium.compute_itemized_deduction(facts, constants.itemized)
            notes.extend(itemized.notes)
            deduction = max(itemized.amount, standard)
        taxable_before_qbi = round2(clamp0(agi - deduction))

        # --- QBI ---
        qbi = CreditResult()
        if is_premium:
            qbi_base = clamp0(
                data.net_profit
                - se.deductible_half
                - facts.amount("solo401k_employee")
                - facts.amount("solo401k_employer")
                - facts.amount("hsa_contribution")
                - facts.amount("ira_contribution")
            )
            qbi = premium.compute_qbi_deduction(
                qbi_base,
                taxable_before_qbi,
                facts.amount("capital_gains"),
                fs,
                constants.qbi,
                business_type=data.business_type,
                w2_wages=facts.amount("qbi_w2_wages"),
                ubia=facts.amount("qbi_ubia"),
            )
            notes.extend(qbi.notes)
        taxable_income = round2(clamp0(taxable_before_qbi - qbi.amount))

        # --- Federal tax and credits ---
        federal_before_credits = compute_tax(taxable_income, constants.brackets_for(fs)).tax
        niit = CreditResult()
        ctc = ChildCreditResult()
        eitc = CreditResult()
        if is_premium:
            children = int(facts.amount("qualifying_children"))
            niit = premium.compute_niit(agi, niit_base, fs, constants.niit)
            ctc = premium.compute_child_credits(
                agi,
                federal_before_credits,
                children,
                int(facts.amount("other_dependents")),
                fs,
                constants.ctc,
            )
            eitc = premium.compute_eitc(
                earned_income, agi, children, investment_income, fs, constants.eitc
            )
            notes.extend(niit.notes + ctc.notes + eitc.notes)

        after_non_refundable = round2(clamp0(federal_before_credits - ctc.non_refundable_used))
        refundable = round2(eitc.amount + ctc.refundable)
        federal_after_credits = round2(clamp0(after_non_refundable - refundable))
        federal_total = round2(federal_after_credits + niit.amount)

        # --- State tax ---
        warnings: list[str] = []
        state_tax = ZERO
        if data.state not in NO_INCOME_TAX_STATES:
            ruleset = self.repository.state_rules(data.tax_year, data.state)
            state = compute_state_tax(
                agi,
                ruleset,
                fs,
                facts=facts,
                federal_taxable_income=taxable_income,
                use_itemized=is_premium and data.use_itemized,
            )
            state_tax = state.tax
            warnings = state.warnings

        state_credits = CreditResult()
        if is_premium:
            state_credits = premium.compute_state_credits(
                data.state,
                earned_income,
                int(facts.amount("qualifying_children")),
                bool(facts.lookup("has_young_child")),
                constants.state_credits,
            )
            notes.extend(state_credits.notes)
            state_tax = round2(clamp0(state_tax - state_credits.amount))

        # --- Totals and installments ---
        total_tax = round2(se.total + federal_total + state_tax)
        remaining = round2(clamp0(total_tax - data.withholding))
        quarterly = _installments(remaining)

        # --- Safe harbor ---
        safe_harbor = None
        prior_tax = facts.lookup("prior_year_total_tax")
        if prior_tax is not None and prior_tax > ZERO:
            safe_harbor = compute_safe_harbor_requirement(
                fs, prior_tax, facts.lookup("prior_year_agi")
            )
            if is_premium and strategy == PaymentStrategy.SAFE_HARBOR:
                quarterly = _installments(round2(clamp0(safe_harbor.annual - data.withholding)))
        elif is_premium and strategy == PaymentStrategy.SAFE_HARBOR:
            notes.append("Safe harbor needs prior-year total tax; using current-year estimate.")
            strategy = PaymentStrategy.CURRENT_YEAR

        # --- Penalty risk ---
        penalty_risk = None
        if is_premium:
            required = (
                safe_harbor.annual
                if strategy == PaymentStrategy.SAFE_HARBOR and safe_harbor is not None
                else total_tax
            )
            penalty_risk = compute_quarterly_penalty_risk(
                required,
                data.withholding,
                data.tax_year,
                payments_by_quarter=data.estimated_payments_by_quarter,
                payments_ytd=data.estimated_payments_ytd,
                as_of=data.as_of,
            )

        net_take_home = round2(clamp0(gross_income - total_tax))

        if is_premium:
            chart_labels = ["Federal (after credits)", "NIIT", "State", "FICA/SE", "Net"]
            chart_values = [federal_after_credits, niit.amount, state_tax, se.total, net_take_home]
            summary_notes = [
                "Premium: includes federal brackets and constants, plus QBI and NIIT when applicable."
            ]
        else:
            chart_labels = ["Federal", "State", "FICA/SE", "Net"]
            chart_values = [federal_total, state_tax, se.total, net_take_home]
            summary_notes = ["Free: uses standard deduction + federal brackets and basic SE tax."]
        summary_notes.append(
            "SE tax accounts for the Social Security wage base and Additional Medicare threshold."
        )
        if qbi.amount > ZERO:
            summary_notes.append(f"QBI deduction applied: ${qbi.amount:,.2f}.")
        if niit.amount > ZERO:
            summary_notes.append(f"NIIT (3.8%) applied: ${niit.amount:,.2f}.")

        logger.debug(
            "Quarterly estimate %s %s: total=%s remaining=%s",
            data.tax_year,
            data.state,
            total_tax,
            remaining,
        )

        return QuarterlyEstimate(
            tier="premium" if is_premium else "free",
            tax_year=data.tax_year,
            strategy=strategy,
            annual=AnnualBreakdown(
                gross_income=gross_income,
                agi=agi,
                deduction=deduction,
                taxable_income_federal=taxable_income,
                se_tax=se.total,
                qbi_deduction=qbi.amount,
                federal_income_tax_before_credits=federal_before_credits,
                federal_income_tax_after_credits=federal_after_credits,
                niit_tax=niit.amount,
                federal_total=federal_total,
                state_income_tax=state_tax,
                state_credits=state_credits.amount,
                total_tax=total_tax,
                remaining_after_withholding=remaining,
                net_take_home=net_take_home,
            ),
            quarterly=quarterly,
            safe_harbor=safe_harbor,
            penalty_risk=penalty_risk,
            chart_labels=chart_labels,
            chart_values=chart_values,
            notes=summary_notes + list(dict.fromkeys(notes)),
            warnings=warnings,
        )
