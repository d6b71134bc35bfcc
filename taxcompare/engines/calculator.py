"""Generic flat/progressive tax calculator shared by federal and state paths."""

from decimal import ROUND_HALF_UP, Decimal

from taxcompare.models.constants import TaxSchedule
from taxcompare.models.enums import TaxType
from taxcompare.models.results import BracketSlice, BracketTaxResult

ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")
RATE_PLACES = Decimal("0.0001")


def round2(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round_rate(value: Decimal) -> Decimal:
    return Decimal(value).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def clamp0(value: Decimal) -> Decimal:
    return value if value > ZERO else ZERO


def effective_rate(tax: Decimal, base: Decimal) -> Decimal:
    if base <= ZERO:
        return ZERO
    return round_rate(tax / base)


def compute_tax(taxable_base: Decimal, schedule: TaxSchedule) -> BracketTaxResult:
    """Compute tax on ``taxable_base`` with a flat rate or progressive brackets.

    Brackets are walked in order; each slice is
    ``clamp0(min(base, up_to or inf) - prev_cap)``. Iteration stops once the
    base fits under the current bracket, and ``prev_cap`` only advances on a
    finite upper bound.
    """
    base = clamp0(Decimal(taxable_base))

    if schedule.tax_type == TaxType.NONE:
        return BracketTaxResult(taxable_base=base, tax=ZERO, effective_rate=ZERO)

    if schedule.tax_type == TaxType.FLAT:
        rate = schedule.rate or ZERO
        tax = round2(base * rate)
        flat_slices = []
        if base > ZERO:
            flat_slices.append(
                BracketSlice(up_to=None, rate=rate, taxed_amount=base, tax=tax)
            )
        return BracketTaxResult(
            taxable_base=base,
            tax=tax,
            effective_rate=effective_rate(tax, base),
            breakdown=flat_slices,
        )

    tax = ZERO
    prev_cap = ZERO
    breakdown: list[BracketSlice] = []

    for bracket in schedule.brackets:
        capped = base if bracket.up_to is None else min(base, bracket.up_to)
        taxed = clamp0(capped - prev_cap)
        slice_tax = taxed * bracket.rate
        if taxed > ZERO:
            breakdown.append(
                BracketSlice(
                    up_to=bracket.up_to,
                    rate=bracket.rate,
                    taxed_amount=taxed,
                    tax=round2(slice_tax),
                )
            )
        tax += slice_tax
        if bracket.up_to is None or base <= bracket.up_to:
            break
        prev_cap = bracket.up_to

    tax = round2(tax)
    return BracketTaxResult(
        taxable_base=base,
        tax=tax,
        effective_rate=effective_rate(tax, base),
        breakdown=breakdown,
    )
