"""Self-employment tax and employee FICA.

SE tax is wage-base aware: W-2 wages earned elsewhere use up the Social
Security wage base first, and Additional Medicare applies to combined W-2 and
self-employment earnings.
"""

from decimal import Decimal

from taxcompare.engines.calculator import clamp0, round2
from taxcompare.models.constants import FicaConstants, SeTaxConstants
from taxcompare.models.enums import FilingStatus
from taxcompare.models.results import FicaResult, SeTaxResult

HALF = Decimal("0.5")


def compute_se_tax(
    net_profit: Decimal,
    w2_wages: Decimal,
    filing_status: FilingStatus,
    constants: SeTaxConstants,
) -> SeTaxResult:
    """Compute Social Security, Medicare and Additional Medicare on SE earnings.

    The deductible half is ``(ss_tax + medicare_tax) / 2`` and leaves out the
    Additional Medicare tax.
    """
    net_profit = clamp0(Decimal(net_profit))
    w2_wages = clamp0(Decimal(w2_wages))
    threshold = constants.threshold_for(filing_status)

    net_earnings = net_profit * constants.se_net_earnings_factor

    ss_cap_remaining = clamp0(constants.ss_wage_base - w2_wages)
    ss_taxable = clamp0(min(net_earnings, ss_cap_remaining))
    ss_tax = round2(ss_taxable * constants.ss_rate)

    medicare_tax = round2(net_earnings * constants.medicare_rate)

    combined_earned = w2_wages + net_earnings
    additional_taxable = clamp0(combined_earned - threshold)
    additional_medicare_tax = round2(additional_taxable * constants.additional_medicare_rate)

    return SeTaxResult(
        net_profit=net_profit,
        w2_wages=w2_wages,
        net_earnings=round2(net_earnings),
        ss_wage_base=constants.ss_wage_base,
        ss_cap_remaining=ss_cap_remaining,
        ss_taxable=round2(ss_taxable),
        ss_tax=ss_tax,
        medicare_tax=medicare_tax,
        additional_medicare_threshold=threshold,
        additional_medicare_tax=additional_medicare_tax,
        total=round2(
            ss_taxable * constants.ss_rate
            + net_earnings * constants.medicare_rate
            + additional_taxable * constants.additional_medicare_rate
        ),
        deductible_half=round2((ss_tax + medicare_tax) * HALF),
    )


def compute_fica(
    wages: Decimal,
    filing_status: FilingStatus,
    se_constants: SeTaxConstants,
    fica: FicaConstants,
) -> FicaResult:
    """Employee-side FICA on W-2 wages, capped at the Social Security wage base."""
    wages = clamp0(Decimal(wages))
    threshold = se_constants.threshold_for(filing_status)

    social_security = round2(min(wages, se_constants.ss_wage_base) * fica.ss_rate)
    medicare = round2(wages * fica.medicare_rate)
    additional = round2(
        clamp0(wages - threshold) * se_constants.additional_medicare_rate
    )

    return FicaResult(
        wages=wages,
        social_security=social_security,
        medicare=medicare,
        additional_medicare=additional,
        total=social_security + medicare + additional,
    )

