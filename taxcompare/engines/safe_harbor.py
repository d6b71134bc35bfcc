"""Safe-harbor requirement and quarterly penalty-risk tracking."""

from datetime import date
from decimal import Decimal

from taxcompare.engines.calculator import ZERO, clamp0, round2
from taxcompare.models.enums import FilingStatus
from taxcompare.models.results import PenaltyRiskResult, QuarterRisk, SafeHarborResult

# Prior-year AGI above which 110% of prior-year tax is required
HIGH_INCOME_AGI = Decimal("150000")
HIGH_INCOME_AGI_MFS = Decimal("75000")

PAID_EPSILON = Decimal("0.01")
QUARTER_LABELS = ("Q1", "Q2", "Q3", "Q4")
DUE_DATE_LABELS = ("Apr 15", "Jun 15", "Sep 15", "Jan 15")


def quarterly_due_dates(tax_year: int) -> list[date]:
    """Standard estimated-tax due dates; Q4 falls in January of the next year."""
    return [
        date(tax_year, 4, 15),
        date(tax_year, 6, 15),
        date(tax_year, 9, 15),
        date(tax_year + 1, 1, 15),
    ]


def safe_harbor_multiplier(
    filing_status: FilingStatus, prior_year_agi: Decimal | None
) -> Decimal:
    """1.0 normally; 1.1 when prior-year AGI is over 150k (75k for MFS)."""
    if prior_year_agi is None or prior_year_agi <= ZERO:
        return Decimal("1.0")
    threshold = HIGH_INCOME_AGI_MFS if filing_status == FilingStatus.MFS else HIGH_INCOME_AGI
    return Decimal("1.1") if prior_year_agi > threshold else Decimal("1.0")


def compute_safe_harbor_requirement(
    filing_status: FilingStatus,
    prior_year_total_tax: Decimal,
    prior_year_agi: Decimal | None = None,
) -> SafeHarborResult:
    multiplier = safe_harbor_multiplier(filing_status, prior_year_agi)
    annual = round2(clamp0(prior_year_total_tax) * multiplier)
    return SafeHarborResult(
        prior_year_total_tax=prior_year_total_tax,
        prior_year_agi=prior_year_agi,
        multiplier=multiplier,
        annual=annual,
        quarterly=round2(annual / 4),
    )


def compute_quarterly_penalty_risk(
    annual_required: Decimal,
    withholding: Decimal,
    tax_year: int,
    payments_by_quarter: list[Decimal] | None = None,
    payments_ytd: Decimal | None = None,
    as_of: date | None = None,
) -> PenaltyRiskResult:
    """Compare cumulative paid vs. cumulative required at each due date.

    Required amounts are 25/50/75/100% of ``annual_required``. Withholding is
    treated as paid evenly through the year. Estimated payments come from
    ``payments_by_quarter`` when given; otherwise a ``payments_ytd`` total is
    spread evenly over the quarters already due, which approximates payment
    timing that is not actually known.

    ``as_of=None`` treats every quarter as due.
    """
    annual_required = clamp0(annual_required)
    withholding = clamp0(withholding)
    due_dates = quarterly_due_dates(tax_year)
    is_due = [as_of is None or due <= as_of for due in due_dates]
    notes: list[str] = []

    per_quarter_payments = [ZERO, ZERO, ZERO, ZERO]
    if payments_by_quarter is not None:
        for i, amount in enumerate(payments_by_quarter[:4]):
            per_quarter_payments[i] = clamp0(amount)
    elif payments_ytd is not None and payments_ytd > ZERO:
        due_count = sum(is_due)
        if due_count:
            share = clamp0(payments_ytd) / due_count
            for i in range(due_count):
                per_quarter_payments[i] = share
            notes.append(
                "Year-to-date payments were spread evenly across quarters already due."
            )
        else:
            notes.append("No quarter is due yet; year-to-date payments were not allocated.")

    withholding_share = withholding / 4
    quarters: list[QuarterRisk] = []
    protected = True
    cumulative_payments = ZERO

    for i, label in enumerate(QUARTER_LABELS):
        fraction = Decimal(i + 1) / 4
        cumulative_payments += per_quarter_payments[i]
        required = round2(annual_required * fraction)
        withheld = round2(withholding_share * (i + 1))
        paid_payments = round2(cumulative_payments)
        paid = withheld + paid_payments
        shortfall = clamp0(required - paid)
        underpaid = is_due[i] and paid < required - PAID_EPSILON
        if underpaid:
            protected = False

        quarters.append(
            QuarterRisk(
                label=label,
                due_date=due_dates[i],
                is_due=is_due[i],
                cumulative_required=required,
                cumulative_withholding=withheld,
                cumulative_payments=paid_payments,
                cumulative_paid=paid,
                shortfall=shortfall,
                underpaid=underpaid,
            )
        )

    return PenaltyRiskResult(
        annual_required=round2(annual_required),
        withholding=round2(withholding),
        quarters=quarters,
        protected=protected,
        notes=notes,
    )
