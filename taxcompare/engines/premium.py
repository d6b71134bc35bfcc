"""Premium adjustment calculators.

QBI deduction (IRC 199A), Net Investment Income Tax (IRC 1411), Child Tax
Credit / Credit for Other Dependents, EITC, state earned-income credits and
the SALT-capped itemized deduction.

These are optional enhancements to a baseline result: when the year's
constants block is absent each calculator returns zero with a note instead of
raising. Every returned amount is rounded to cents and is never negative.
"""

from decimal import ROUND_CEILING, Decimal

from taxcompare.engines.calculator import ZERO, clamp0, round2
from taxcompare.models.constants import (
    CtcConstants,
    EitcConstants,
    EitcRow,
    ItemizedConstants,
    NiitConstants,
    QbiConstants,
    StateCreditConstants,
)
from taxcompare.models.enums import BusinessType, FilingStatus
from taxcompare.models.results import ChildCreditResult, CreditResult
from taxcompare.models.scenario import ScenarioFacts

# IRS phase-in range when a year's file does not configure one
DEFAULT_QBI_PHASEOUT = {FilingStatus.MFJ: Decimal("100000")}
DEFAULT_QBI_PHASEOUT_OTHER = Decimal("50000")


def _wage_ubia_limit(w2_wages: Decimal, ubia: Decimal) -> Decimal:
    return round2(
        max(Decimal("0.5") * w2_wages, Decimal("0.25") * w2_wages + Decimal("0.025") * ubia)
    )


# ---------------------------------------------------------------------------
# QBI
# ---------------------------------------------------------------------------


def compute_qbi_deduction(
    qbi_base: Decimal,
    taxable_before_qbi: Decimal,
    net_capital_gains: Decimal,
    filing_status: FilingStatus,
    constants: QbiConstants | None,
    business_type: BusinessType = BusinessType.NON_SSTB,
    w2_wages: Decimal = ZERO,
    ubia: Decimal = ZERO,
) -> CreditResult:
    """Section 199A deduction with the taxable-income cap and wage/UBIA phase-in.

    At or below the threshold the deduction is ``min(rate * QBI, rate *
    (taxable - capital gains))``. Across the phase-in range the wage/UBIA limit
    (or, for an SSTB, the loss of the deduction itself) scales in linearly.
    """
    if constants is None:
        return CreditResult(notes=["QBI constants missing."])

    threshold = constants.threshold.get(filing_status)
    if threshold is None:
        return CreditResult(notes=[f"QBI threshold missing for {filing_status}."])

    if constants.phaseout_range is None:
        phaseout_range = DEFAULT_QBI_PHASEOUT.get(filing_status, DEFAULT_QBI_PHASEOUT_OTHER)
    else:
        phaseout_range = constants.phaseout_range.get(
            filing_status,
            DEFAULT_QBI_PHASEOUT.get(filing_status, DEFAULT_QBI_PHASEOUT_OTHER),
        )

    rate = constants.rate
    base_qbi = clamp0(qbi_base)
    taxable = clamp0(taxable_before_qbi)
    taxable_limit = round2(clamp0(taxable - clamp0(net_capital_gains)) * rate)
    tentative = round2(base_qbi * rate)

    if taxable <= threshold or phaseout_range <= ZERO:
        return CreditResult(amount=round2(min(tentative, taxable_limit)))

    upper = threshold + phaseout_range
    within_phaseout = taxable < upper
    ratio = (taxable - threshold) / phaseout_range if within_phaseout else Decimal("1")

    w2 = clamp0(w2_wages)
    basis = clamp0(ubia)

    if business_type == BusinessType.SSTB:
        if not within_phaseout:
            return CreditResult(notes=["SSTB income above the QBI phase-out range."])
        factor = Decimal("1") - ratio
        adj_tentative = round2(round2(base_qbi * factor) * rate)
        adj_wage_limit = _wage_ubia_limit(round2(w2 * factor), round2(basis * factor))
        return CreditResult(amount=round2(min(adj_tentative, adj_wage_limit, taxable_limit)))

    wage_limit = _wage_ubia_limit(w2, basis)
    phased = round2(min(tentative, wage_limit))
    if wage_limit < tentative and within_phaseout:
        phased = round2(tentative - ratio * (tentative - wage_limit))

    return CreditResult(amount=round2(min(phased, taxable_limit)))


# ---------------------------------------------------------------------------
# NIIT
# ---------------------------------------------------------------------------


def compute_niit(
    magi: Decimal,
    net_investment_income: Decimal,
    filing_status: FilingStatus,
    constants: NiitConstants | None,
) -> CreditResult:
    """3.8% on the lesser of net investment income or MAGI over the threshold."""
    if constants is None:
        return CreditResult(notes=["NIIT constants missing."])
    threshold = constants.threshold.get(filing_status)
    if threshold is None:
        return CreditResult(notes=[f"NIIT threshold missing for {filing_status}."])

    excess = clamp0(magi - threshold)
    base = min(clamp0(net_investment_income), excess)
    return CreditResult(amount=round2(base * constants.rate))


# ---------------------------------------------------------------------------
# CTC / ODC
# ---------------------------------------------------------------------------


def compute_child_credits(
    magi: Decimal,
    federal_tax_before_credits: Decimal,
    qualifying_children: int,
    other_dependents: int,
    filing_status: FilingStatus,
    constants: CtcConstants | None,
) -> ChildCreditResult:
    """Child Tax Credit and Credit for Other Dependents.

    The phase-out removes ``amount_per_step`` for every started ``step`` of MAGI
    over the threshold. What is left is used against federal tax first; any
    remainder is refundable up to ``max_refundable_per_child`` per child.
    """
    if constants is None:
        return ChildCreditResult(notes=["CTC constants missing."])

    children = Decimal(max(0, qualifying_children))
    others = Decimal(max(0, other_dependents))
    base_credit = (
        children * constants.per_qualifying_child + others * constants.per_other_dependent
    )

    phase_start = constants.phaseout_start.get(filing_status, ZERO)
    over = clamp0(magi - phase_start)
    steps = ZERO
    if constants.phaseout_step > ZERO:
        steps = (over / constants.phaseout_step).to_integral_value(rounding=ROUND_CEILING)
    after_phaseout = clamp0(base_credit - steps * constants.phaseout_amount_per_step)

    non_refundable = min(after_phaseout, clamp0(federal_tax_before_credits))
    remaining = clamp0(after_phaseout - non_refundable)
    refundable = min(remaining, children * constants.max_refundable_per_child)

    return ChildCreditResult(
        non_refundable_used=round2(non_refundable),
        refundable=round2(refundable),
        total_applied=round2(non_refundable + refundable),
        notes=["CTC/ODC computed with simplified refundable logic (ACTC cap)."],
    )


# ---------------------------------------------------------------------------
# EITC and state earned-income credits
# ---------------------------------------------------------------------------


def _phased_credit(income: Decimal, row: EitcRow, start_at_max: bool = False) -> Decimal:
    """Phase in to the max credit, then phase out above the start point.

    A row without a phase-in rate phases in at 0 (no credit), unless
    ``start_at_max`` is set, in which case it starts at the max credit.
    """
    income = clamp0(income)
    if row.phase_in_rate is None:
        credit = row.max_credit if start_at_max else ZERO
    else:
        credit = min(row.max_credit, income * row.phase_in_rate)
    phase_out = clamp0(income - row.phase_out_start) * row.phase_out_rate
    return round2(clamp0(credit - phase_out))


def compute_eitc(
    earned_income: Decimal,
    agi: Decimal,
    children: int,
    investment_income: Decimal,
    filing_status: FilingStatus,
    constants: EitcConstants | None,
) -> CreditResult:
    if constants is None:
        return CreditResult(notes=["EITC constants missing."])
    if investment_income > constants.investment_income_limit:
        return CreditResult(notes=["Investment income too high for EITC."])

    row = constants.row(filing_status, children)
    if row is None:
        return CreditResult(notes=["EITC table row missing."])

    base_income = min(earned_income, agi)
    return CreditResult(amount=_phased_credit(base_income, row), notes=["EITC computed from table."])


def compute_state_credits(
    state: str,
    earned_income: Decimal,
    qualifying_children: int,
    has_young_child: bool,
    credits: dict[str, StateCreditConstants],
) -> CreditResult:
    """State earned-income credit plus young-child credit for the matching state."""
    table = credits.get(state)
    if table is None:
        return CreditResult()

    eitc = ZERO
    row = table.row(qualifying_children)
    if row is not None:
        eitc = _phased_credit(earned_income, row, start_at_max=True)

    young_child = ZERO
    ycc = table.young_child_credit
    if has_young_child and ycc is not None:
        if ycc.income_limit <= ZERO or earned_income <= ycc.income_limit:
            young_child = ycc.amount

    return CreditResult(
        amount=round2(eitc + young_child),
        notes=[f"{state} credits computed using simplified earned-income and young-child credits."],
    )


# ---------------------------------------------------------------------------
# Itemized deduction
# ---------------------------------------------------------------------------


def compute_itemized_deduction(
    facts: ScenarioFacts, constants: ItemizedConstants | None
) -> CreditResult:
    """SALT (capped) + mortgage interest + charity + other."""
    notes = []
    salt_cap = ZERO
    if constants is None:
        notes.append("Itemized constants missing; SALT deduction capped at 0.")
    else:
        salt_cap = constants.salt_cap

    salt = min(facts.amount("itemized_salt_paid"), salt_cap)
    total = (
        clamp0(salt)
        + facts.amount("itemized_mortgage_interest")
        + facts.amount("itemized_charity")
        + facts.amount("itemized_other")
    )
    return CreditResult(amount=round2(total), notes=notes)
