"""Built-in federal tax tables.

Federal brackets, standard deductions, payroll constants and premium
constants. Keyed by tax year and filing status. Never hardcode brackets in
computation functions: engines read these through ``TaxRuleRepository``.

Sources:
  - 2025: IRS Rev. Proc. 2024-40 as amended by P.L. 119-21, SSA 2025 COLA fact sheet
  - 2026: IRS Rev. Proc. 2025-32, SSA 2026 COLA fact sheet
"""

from decimal import Decimal

from taxcompare.models.enums import FilingStatus

# ---------------------------------------------------------------------------
# Federal ordinary income brackets: {year: {filing_status: [(upper_bound, rate), ...]}}
# Upper bound is Decimal or None for the top bracket.
# ---------------------------------------------------------------------------
FEDERAL_BRACKETS: dict[int, dict[FilingStatus, list[tuple[Decimal | None, Decimal]]]] = {
    2025: {
        FilingStatus.SINGLE: [
            (Decimal("11925"), Decimal("0.10")),
            (Decimal("48475"), Decimal("0.12")),
            (Decimal("103350"), Decimal("0.22")),
            (Decimal("197300"), Decimal("0.24")),
            (Decimal("250525"), Decimal("0.32")),
            (Decimal("626350"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFJ: [
            (Decimal("23850"), Decimal("0.10")),
            (Decimal("96950"), Decimal("0.12")),
            (Decimal("206700"), Decimal("0.22")),
            (Decimal("394600"), Decimal("0.24")),
            (Decimal("501050"), Decimal("0.32")),
            (Decimal("751600"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFS: [
            (Decimal("11925"), Decimal("0.10")),
            (Decimal("48475"), Decimal("0.12")),
            (Decimal("103350"), Decimal("0.22")),
            (Decimal("197300"), Decimal("0.24")),
            (Decimal("250525"), Decimal("0.32")),
            (Decimal("375800"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.HOH: [
            (Decimal("17000"), Decimal("0.10")),
            (Decimal("64850"), Decimal("0.12")),
            (Decimal("103350"), Decimal("0.22")),
            (Decimal("197300"), Decimal("0.24")),
            (Decimal("250500"), Decimal("0.32")),
            (Decimal("626350"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
    },
    2026: {
        FilingStatus.SINGLE: [
            (Decimal("12400"), Decimal("0.10")),
            (Decimal("50400"), Decimal("0.12")),
            (Decimal("105700"), Decimal("0.22")),
            (Decimal("201775"), Decimal("0.24")),
            (Decimal("256225"), Decimal("0.32")),
            (Decimal("640600"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFJ: [
            (Decimal("24800"), Decimal("0.10")),
            (Decimal("100800"), Decimal("0.12")),
            (Decimal("211400"), Decimal("0.22")),
            (Decimal("403550"), Decimal("0.24")),
            (Decimal("512450"), Decimal("0.32")),
            (Decimal("768700"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFS: [
            (Decimal("12400"), Decimal("0.10")),
            (Decimal("50400"), Decimal("0.12")),
            (Decimal("105700"), Decimal("0.22")),
            (Decimal("201775"), Decimal("0.24")),
            (Decimal("256225"), Decimal("0.32")),
            (Decimal("384350"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.HOH: [
            (Decimal("17700"), Decimal("0.10")),
            (Decimal("67450"), Decimal("0.12")),
            (Decimal("105700"), Decimal("0.22")),
            (Decimal("201750"), Decimal("0.24")),
            (Decimal("256200"), Decimal("0.32")),
            (Decimal("640600"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
    },
}

# ---------------------------------------------------------------------------
# Federal standard deduction
# ---------------------------------------------------------------------------
FEDERAL_STANDARD_DEDUCTION: dict[int, dict[FilingStatus, Decimal]] = {
    2025: {
        FilingStatus.SINGLE: Decimal("15750"),
        FilingStatus.MFJ: Decimal("31500"),
        FilingStatus.MFS: Decimal("15750"),
        FilingStatus.HOH: Decimal("23625"),
    },
    2026: {
        FilingStatus.SINGLE: Decimal("16100"),
        FilingStatus.MFJ: Decimal("32200"),
        FilingStatus.MFS: Decimal("16100"),
        FilingStatus.HOH: Decimal("24150"),
    },
}

# ---------------------------------------------------------------------------
# Self-employment tax (IRC Section 1401) and Social Security wage base
# ---------------------------------------------------------------------------
SS_WAGE_BASE: dict[int, Decimal] = {
    2025: Decimal("176100"),
    2026: Decimal("184500"),
}
SE_NET_EARNINGS_FACTOR = Decimal("0.9235")
SE_SS_RATE = Decimal("0.124")
SE_MEDICARE_RATE = Decimal("0.029")

# Employee share of FICA
FICA_SS_RATE = Decimal("0.062")
FICA_MEDICARE_RATE = Decimal("0.0145")

# ---------------------------------------------------------------------------
# Additional Medicare Tax (IRC Section 3101(b)(2)): 0.9% over threshold
# Thresholds are NOT inflation-adjusted; statutory amounts.
# ---------------------------------------------------------------------------
ADDITIONAL_MEDICARE_TAX_RATE = Decimal("0.009")
ADDITIONAL_MEDICARE_TAX_THRESHOLD: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("200000"),
    FilingStatus.MFJ: Decimal("250000"),
    FilingStatus.MFS: Decimal("125000"),
    FilingStatus.HOH: Decimal("200000"),
}

# ---------------------------------------------------------------------------
# NIIT (IRC Section 1411). Thresholds are statutory.
# ---------------------------------------------------------------------------
NIIT_RATE = Decimal("0.038")
NIIT_THRESHOLD: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("200000"),
    FilingStatus.MFJ: Decimal("250000"),
    FilingStatus.MFS: Decimal("125000"),
    FilingStatus.HOH: Decimal("200000"),
}

# ---------------------------------------------------------------------------
# QBI deduction (IRC Section 199A): threshold and phase-in range
# ---------------------------------------------------------------------------
QBI_RATE = Decimal("0.20")
QBI_THRESHOLD: dict[int, dict[FilingStatus, Decimal]] = {
    2025: {
        FilingStatus.SINGLE: Decimal("197300"),
        FilingStatus.MFJ: Decimal("394600"),
        FilingStatus.MFS: Decimal("197300"),
        FilingStatus.HOH: Decimal("197300"),
    },
    2026: {
        FilingStatus.SINGLE: Decimal("201775"),
        FilingStatus.MFJ: Decimal("403550"),
        FilingStatus.MFS: Decimal("201775"),
        FilingStatus.HOH: Decimal("201775"),
    },
}
# P.L. 119-21 widens the phase-in range starting 2026
QBI_PHASEOUT_RANGE: dict[int, dict[FilingStatus, Decimal]] = {
    2025: {
        FilingStatus.SINGLE: Decimal("50000"),
        FilingStatus.MFJ: Decimal("100000"),
        FilingStatus.MFS: Decimal("50000"),
        FilingStatus.HOH: Decimal("50000"),
    },
    2026: {
        FilingStatus.SINGLE: Decimal("75000"),
        FilingStatus.MFJ: Decimal("150000"),
        FilingStatus.MFS: Decimal("75000"),
        FilingStatus.HOH: Decimal("75000"),
    },
}

# ---------------------------------------------------------------------------
# Child Tax Credit / Credit for Other Dependents (IRC Section 24)
# ---------------------------------------------------------------------------
CTC_PER_CHILD = Decimal("2200")
CTC_PER_OTHER_DEPENDENT = Decimal("500")
CTC_MAX_REFUNDABLE_PER_CHILD = Decimal("1700")
CTC_PHASEOUT_START: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("200000"),
    FilingStatus.MFJ: Decimal("400000"),
    FilingStatus.MFS: Decimal("200000"),
    FilingStatus.HOH: Decimal("200000"),
}
CTC_PHASEOUT_STEP = Decimal("1000")
CTC_PHASEOUT_AMOUNT_PER_STEP = Decimal("50")

# ---------------------------------------------------------------------------
# EITC (IRC Section 32): rows by number of qualifying children (0-3)
# (max_credit, phase_out_start_single, phase_out_start_mfj)
# ---------------------------------------------------------------------------
EITC_PHASE_IN_RATE = (Decimal("0.0765"), Decimal("0.34"), Decimal("0.40"), Decimal("0.45"))
EITC_PHASE_OUT_RATE = (Decimal("0.0765"), Decimal("0.1598"), Decimal("0.2106"), Decimal("0.2106"))
EITC_INVESTMENT_INCOME_LIMIT: dict[int, Decimal] = {
    2025: Decimal("11950"),
    2026: Decimal("12200"),
}
EITC_ROWS: dict[int, list[tuple[Decimal, Decimal, Decimal]]] = {
    2025: [
        (Decimal("649"), Decimal("10620"), Decimal("17730")),
        (Decimal("4328"), Decimal("23350"), Decimal("30470")),
        (Decimal("7152"), Decimal("23350"), Decimal("30470")),
        (Decimal("8046"), Decimal("23350"), Decimal("30470")),
    ],
    2026: [
        (Decimal("664"), Decimal("10860"), Decimal("18140")),
        (Decimal("4427"), Decimal("23890"), Decimal("31160")),
        (Decimal("7316"), Decimal("23890"), Decimal("31160")),
        (Decimal("8231"), Decimal("23890"), Decimal("31160")),
    ],
}

# ---------------------------------------------------------------------------
# SALT cap per IRC Section 164(b)(6) as amended by P.L. 119-21
# ---------------------------------------------------------------------------
FEDERAL_SALT_CAP: dict[int, Decimal] = {
    2025: Decimal("40000"),
    2026: Decimal("40400"),
}

# ---------------------------------------------------------------------------
# California credits (FTB 3514): CalEITC rows by kids and Young Child Tax Credit
# (phase_in_rate, max_credit, phase_out_start, phase_out_rate)
# ---------------------------------------------------------------------------
CA_EITC_ROWS: list[tuple[Decimal, Decimal, Decimal, Decimal]] = [
    (Decimal("0.0765"), Decimal("302"), Decimal("3948"), Decimal("0.0108")),
    (Decimal("0.34"), Decimal("2016"), Decimal("5929"), Decimal("0.0775")),
    (Decimal("0.40"), Decimal("3339"), Decimal("8348"), Decimal("0.1415")),
    (Decimal("0.45"), Decimal("3756"), Decimal("8347"), Decimal("0.1591")),
]
CA_YOUNG_CHILD_CREDIT = Decimal("1189")
CA_YOUNG_CHILD_INCOME_LIMIT = Decimal("31950")


def _status_map(values: dict[FilingStatus, Decimal]) -> dict[str, Decimal]:
    return {str(status): amount for status, amount in values.items()}


def _bracket_rows(rows: list[tuple[Decimal | None, Decimal]]) -> list[dict]:
    return [{"upTo": upper, "rate": rate} for upper, rate in rows]


def _eitc_table(year: int) -> dict[str, dict]:
    table = {}
    for kids, (max_credit, start_single, start_mfj) in enumerate(EITC_ROWS[year]):
        for status in FilingStatus:
            start = start_mfj if status == FilingStatus.MFJ else start_single
            table[f"{status}_{kids}"] = {
                "phaseInRate": EITC_PHASE_IN_RATE[kids],
                "maxCredit": max_credit,
                "phaseOutStart": start,
                "phaseOutRate": EITC_PHASE_OUT_RATE[kids],
            }
    return table


def builtin_years() -> list[int]:
    return sorted(FEDERAL_BRACKETS)


def federal_year_data(year: int) -> dict | None:
    """Assemble one year's tables in the same shape as ``federal_<year>.json``."""
    if year not in FEDERAL_BRACKETS:
        return None

    return {
        "year": year,
        "brackets": {
            str(status): _bracket_rows(rows) for status, rows in FEDERAL_BRACKETS[year].items()
        },
        "standardDeduction": _status_map(FEDERAL_STANDARD_DEDUCTION[year]),
        "seTax": {
            "ssWageBase": SS_WAGE_BASE[year],
            "seNetEarningsFactor": SE_NET_EARNINGS_FACTOR,
            "ssRate": SE_SS_RATE,
            "medicareRate": SE_MEDICARE_RATE,
            "additionalMedicareRate": ADDITIONAL_MEDICARE_TAX_RATE,
            "additionalMedicareThreshold": _status_map(ADDITIONAL_MEDICARE_TAX_THRESHOLD),
        },
        "fica": {"ssRate": FICA_SS_RATE, "medicareRate": FICA_MEDICARE_RATE},
        "qbi": {
            "rate": QBI_RATE,
            "threshold": _status_map(QBI_THRESHOLD[year]),
            "phaseoutRange": _status_map(QBI_PHASEOUT_RANGE[year]),
        },
        "niit": {"rate": NIIT_RATE, "threshold": _status_map(NIIT_THRESHOLD)},
        "ctc": {
            "perQualifyingChild": CTC_PER_CHILD,
            "perOtherDependent": CTC_PER_OTHER_DEPENDENT,
            "maxRefundablePerChild": CTC_MAX_REFUNDABLE_PER_CHILD,
            "phaseoutStart": _status_map(CTC_PHASEOUT_START),
            "phaseoutStep": CTC_PHASEOUT_STEP,
            "phaseoutAmountPerStep": CTC_PHASEOUT_AMOUNT_PER_STEP,
        },
        "eitc": {
            "investmentIncomeLimit": EITC_INVESTMENT_INCOME_LIMIT[year],
            "table": _eitc_table(year),
        },
        "itemized": {"saltCap": FEDERAL_SALT_CAP[year]},
        "stateCredits": {
            "CA": {
                "eitcTable": {
                    str(kids): {
                        "phaseInRate": phase_in,
                        "maxCredit": max_credit,
                        "phaseOutStart": start,
                        "phaseOutRate": phase_out,
                    }
                    for kids, (phase_in, max_credit, start, phase_out) in enumerate(CA_EITC_ROWS)
                },
                "youngChildCredit": {
                    "amount": CA_YOUNG_CHILD_CREDIT,
                    "incomeLimit": CA_YOUNG_CHILD_INCOME_LIMIT,
                },
            }
        },
    }
