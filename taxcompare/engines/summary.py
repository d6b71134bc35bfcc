"""Plain-language summaries and free/premium result shaping for a comparison."""

from decimal import ROUND_HALF_UP, Decimal

from taxcompare.models.enums import Winner
from taxcompare.models.results import (
    ContractorPathResult,
    FreeSummary,
    PremiumSummary,
    ScenarioResult,
    W2PathResult,
)

UPGRADE_PROMPT = "Upgrade to view a detailed tax breakdown and download a PDF report."


def _dollars(value: Decimal) -> str:
    whole = abs(Decimal(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"${whole:,.0f}"


def scenario_summary(
    w2: W2PathResult,
    contractor: ContractorPathResult,
    annual_difference: Decimal,
    monthly_difference: Decimal,
) -> list[str]:
    if annual_difference >= 0:
        winner = (
            f"The 1099 contract yields {_dollars(annual_difference)} more per year "
            f"({_dollars(monthly_difference)} per month)."
        )
    else:
        winner = (
            f"The W-2 employment yields {_dollars(annual_difference)} more per year "
            f"({_dollars(monthly_difference)} per month)."
        )

    return [
        f"Your W-2 net income is {_dollars(w2.net_income)}, after paying "
        f"{_dollars(w2.total_tax)} in federal, state and FICA taxes.",
        f"Your 1099 net income is {_dollars(contractor.net_income)}, after expenses and paying "
        f"{_dollars(contractor.total_tax)} in federal, state and self-employment taxes.",
        winner,
    ]


def build_free_result(result: ScenarioResult) -> FreeSummary:
    """Headline numbers only: winner, differences, break-even and a net-income chart."""
    return FreeSummary(
        winner=result.winner,
        annual_difference=result.annual_difference,
        monthly_difference=result.monthly_difference,
        break_even_1099_income=result.break_even_1099_income,
        chart_labels=["W2 net", "1099 net"],
        chart_values=[result.w2.net_income, result.contractor.net_income],
        upgrade_prompt=UPGRADE_PROMPT,
        summary=result.summary,
    )


def build_premium_result(result: ScenarioResult) -> PremiumSummary:
    """Per-path taxes, deductions, rates, assumptions and a recommendation."""
    w2 = result.w2
    contractor = result.contractor
    break_even = _dollars(result.break_even_1099_income)

    if result.winner == Winner.CONTRACTOR:
        recommendation = (
            "Even though 1099 pays more in this scenario, your 1099 earnings would need "
            f"to be at least {break_even} per year (before expenses) to yield the same "
            "net income as a W-2 salary after taxes."
        )
    else:
        recommendation = (
            f"In this scenario W-2 pays more. 1099 earnings would need to exceed {break_even} "
            "per year (before expenses) to match the net income of a W-2 salary."
        )

    return PremiumSummary(
        winner=result.winner,
        annual_difference=result.annual_difference,
        monthly_difference=result.monthly_difference,
        break_even_1099_income=result.break_even_1099_income,
        federal_tax_w2=w2.federal_tax,
        state_tax_w2=w2.state_tax,
        fica_tax_w2=w2.fica_tax,
        federal_tax_1099=contractor.federal_tax,
        state_tax_1099=contractor.state_tax,
        self_employment_tax_1099=contractor.se_tax,
        deductions_applied={
            "standard_deduction": result.standard_deduction,
            "half_self_employment_tax_deduction": contractor.deductible_half,
        },
        effective_tax_rate_w2=w2.effective_tax_rate,
        effective_tax_rate_1099=contractor.effective_tax_rate,
        assumptions=[
            f"Tax year {result.tax_year}",
            f"State: {result.state.upper()}",
            f"Filing status: {result.filing_status}",
            "Simplified deductions only",
            f"Federal standard deduction of {_dollars(result.standard_deduction)} applied.",
            "Half of self-employment tax deducted from AGI for 1099, "
            "then standard deduction applied",
            "State tax computed via declarative state rules "
            "(not a substitute for professional advice).",
        ],
        recommendations=[recommendation],
        chart_labels=["Federal", "State", "FICA/SE", "Net"],
        chart_values_w2=[w2.federal_tax, w2.state_tax, w2.fica_tax, w2.net_income],
        chart_values_1099=[
            contractor.federal_tax,
            contractor.state_tax,
            contractor.se_tax,
            contractor.net_income,
        ],
        summary=result.summary,
    )
