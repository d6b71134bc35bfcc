"""Built-in state rulesets.

Each entry is in the same shape as one state in ``states_<year>.json``:
starting point, conformity additions/subtractions, deductions, credit rules
and the state's bracket table. The 2025 tables are carried forward to 2026
until the states publish indexed amounts.

Sources:
  - CA: FTB Publication 1001 and 2025 tax rate schedules
  - NY: IT-201 instructions (2025)
  - IL, PA, CO, MA: 2025 Form instructions (flat-rate states)
"""

from decimal import Decimal

from taxcompare.models.enums import FilingStatus

CARRY_FORWARD_YEARS: dict[int, int] = {2026: 2025}


def _const(value: str) -> dict:
    return {"op": "constant", "value": Decimal(value)}


def _value(path: str) -> dict:
    return {"op": "value", "path": path}


def _brackets(rows: list[tuple[str | None, str]]) -> list[dict]:
    return [
        {"upTo": Decimal(upper) if upper is not None else None, "rate": Decimal(rate)}
        for upper, rate in rows
    ]


# ---------------------------------------------------------------------------
# California (R&TC Section 17041), 2025 rate schedules
# ---------------------------------------------------------------------------
_CA_SINGLE = [
    ("11079", "0.01"),
    ("26264", "0.02"),
    ("41452", "0.04"),
    ("57542", "0.06"),
    ("72724", "0.08"),
    ("371479", "0.093"),
    ("445771", "0.103"),
    ("742953", "0.113"),
    (None, "0.123"),
]
_CA_MFJ = [
    ("22158", "0.01"),
    ("52528", "0.02"),
    ("82904", "0.04"),
    ("115084", "0.06"),
    ("145448", "0.08"),
    ("742958", "0.093"),
    ("891542", "0.103"),
    ("1485906", "0.113"),
    (None, "0.123"),
]
_CA_HOH = [
    ("22173", "0.01"),
    ("52530", "0.02"),
    ("67716", "0.04"),
    ("83805", "0.06"),
    ("98990", "0.08"),
    ("505208", "0.093"),
    ("606251", "0.103"),
    ("1010417", "0.113"),
    (None, "0.123"),
]

CALIFORNIA = {
    "hasIncomeTax": True,
    "startingPoint": {"type": "federalAGI"},
    "additions": [
        {
            "id": "CA_HSA_ADDBACK",
            "kind": "addition",
            "affects": "stateAGI",
            "description": "California does not conform to the federal HSA deduction",
            "amount": _value("hsaContribution"),
            "requires": ["hsaContribution"],
        },
    ],
    "subtractions": [
        {
            "id": "CA_US_TREASURY_INTEREST",
            "kind": "subtraction",
            "affects": "stateAGI",
            "description": "U.S. Treasury interest is exempt from state tax",
            "amount": _value("usTreasuryInterest"),
        },
    ],
    "standardDeduction": {
        "default": Decimal("5706"),
        "byStatus": {
            FilingStatus.MFJ: Decimal("11412"),
            FilingStatus.HOH: Decimal("11412"),
        },
    },
    "itemizedRules": [
        {
            "id": "CA_MORTGAGE_INTEREST",
            "kind": "deduction",
            "affects": "taxableStateIncome",
            "description": "Home mortgage interest",
            "amount": _value("itemizedMortgageInterest"),
        },
        {
            "id": "CA_CHARITY",
            "kind": "deduction",
            "affects": "taxableStateIncome",
            "description": "Charitable contributions, limited to 50% of state AGI",
            "amount": {
                "op": "min",
                "args": [
                    _value("itemizedCharity"),
                    {"op": "mul", "args": [_value("stateAGI"), _const("0.5")]},
                ],
            },
        },
    ],
    "credits": [
        {
            "id": "CA_RENTERS_CREDIT",
            "kind": "credit",
            "affects": "totalTax",
            "description": "Nonrefundable renter's credit",
            "when": {"op": "==", "path": "renter", "value": True},
            "amount": {
                "op": "case",
                "cases": [
                    {
                        "when": {"op": "<=", "path": "stateAGI", "value": Decimal("53994")},
                        "then": _const("60"),
                    },
                ],
                "default": _const("0"),
            },
        },
    ],
    "tax": {
        "taxType": "progressive",
        "brackets": {
            FilingStatus.SINGLE: _brackets(_CA_SINGLE),
            FilingStatus.MFS: _brackets(_CA_SINGLE),
            FilingStatus.MFJ: _brackets(_CA_MFJ),
            FilingStatus.HOH: _brackets(_CA_HOH),
        },
    },
    "requiredInputs": ["hsaContribution"],
    "notes": "Mental Health Services Tax on income over $1M is not modeled.",
}

# ---------------------------------------------------------------------------
# New York (Tax Law Section 601), 2025 rate schedules
# ---------------------------------------------------------------------------
_NY_SINGLE = [
    ("8500", "0.04"),
    ("11700", "0.045"),
    ("13900", "0.0525"),
    ("80650", "0.055"),
    ("215400", "0.06"),
    ("1077550", "0.0685"),
    ("5000000", "0.0965"),
    ("25000000", "0.103"),
    (None, "0.109"),
]
_NY_MFJ = [
    ("17150", "0.04"),
    ("23600", "0.045"),
    ("27900", "0.0525"),
    ("161550", "0.055"),
    ("323200", "0.06"),
    ("2155350", "0.0685"),
    ("5000000", "0.0965"),
    ("25000000", "0.103"),
    (None, "0.109"),
]
_NY_HOH = [
    ("12800", "0.04"),
    ("17650", "0.045"),
    ("20900", "0.0525"),
    ("107650", "0.055"),
    ("269300", "0.06"),
    ("1616450", "0.0685"),
    ("5000000", "0.0965"),
    ("25000000", "0.103"),
    (None, "0.109"),
]

NEW_YORK = {
    "hasIncomeTax": True,
    "startingPoint": {"type": "federalAGI"},
    "subtractions": [
        {
            "id": "NY_US_TREASURY_INTEREST",
            "kind": "subtraction",
            "affects": "stateAGI",
            "description": "U.S. Treasury interest is exempt from state tax",
            "amount": _value("usTreasuryInterest"),
        },
        {
            "id": "NY_529_CONTRIBUTION",
            "kind": "subtraction",
            "affects": "stateAGI",
            "description": "NY 529 plan contributions (up to $5,000 / $10,000)",
            "status": "needs_detail",
        },
    ],
    "standardDeduction": {
        "default": Decimal("8000"),
        "byStatus": {
            FilingStatus.MFJ: Decimal("16050"),
            FilingStatus.HOH: Decimal("11200"),
        },
    },
    "tax": {
        "taxType": "progressive",
        "brackets": {
            FilingStatus.SINGLE: _brackets(_NY_SINGLE),
            FilingStatus.MFS: _brackets(_NY_SINGLE),
            FilingStatus.MFJ: _brackets(_NY_MFJ),
            FilingStatus.HOH: _brackets(_NY_HOH),
        },
    },
    "notes": "NYC and Yonkers resident taxes are not modeled.",
}

# ---------------------------------------------------------------------------
# Flat-rate states
# ---------------------------------------------------------------------------
ILLINOIS = {
    "hasIncomeTax": True,
    "startingPoint": {"type": "federalAGI"},
    "subtractions": [
        {
            "id": "IL_US_TREASURY_INTEREST",
            "kind": "subtraction",
            "affects": "stateAGI",
            "description": "U.S. Treasury interest is exempt from state tax",
            "amount": _value("usTreasuryInterest"),
        },
    ],
    "personalExemption": {
        "default": Decimal("2850"),
        "byStatus": {FilingStatus.MFJ: Decimal("5700")},
    },
    "tax": {"taxType": "flat", "flatRate": Decimal("0.0495")},
}

PENNSYLVANIA = {
    "hasIncomeTax": True,
    "startingPoint": {"type": "stateDefined"},
    "additions": [
        {
            "id": "PA_EMPLOYEE_401K_ADDBACK",
            "kind": "addition",
            "affects": "stateAGI",
            "description": "PA taxes elective 401(k) deferrals",
            "enabled": False,
            "amount": _value("solo401kEmployee"),
        },
    ],
    "tax": {"taxType": "flat", "flatRate": Decimal("0.0307")},
    "notes": "PA classes of income are approximated from federal AGI.",
}

COLORADO = {
    "hasIncomeTax": True,
    "startingPoint": {"type": "federalTaxableIncome"},
    "subtractions": [
        {
            "id": "CO_US_TREASURY_INTEREST",
            "kind": "subtraction",
            "affects": "stateAGI",
            "description": "U.S. Treasury interest is exempt from state tax",
            "amount": _value("usTreasuryInterest"),
        },
    ],
    "tax": {"taxType": "flat", "flatRate": Decimal("0.044")},
}

MASSACHUSETTS = {
    "hasIncomeTax": True,
    "startingPoint": {"type": "federalAGI"},
    "additions": [
        {
            "id": "MA_HSA_ADDBACK",
            "kind": "addition",
            "affects": "stateAGI",
            "description": "Massachusetts does not conform to the federal HSA deduction",
            "amount": _value("hsaContribution"),
        },
    ],
    "personalExemption": {
        "default": Decimal("4400"),
        "byStatus": {
            FilingStatus.MFJ: Decimal("8800"),
            FilingStatus.HOH: Decimal("6800"),
        },
    },
    "tax": {"taxType": "flat", "flatRate": Decimal("0.05")},
    "notes": "The 4% surtax on income over $1M is not modeled.",
}

# ---------------------------------------------------------------------------
# No wage income tax
# ---------------------------------------------------------------------------
_NO_TAX = {"hasIncomeTax": False, "tax": {"taxType": "none"}}

STATE_RULES_2025: dict[str, dict] = {
    "CA": CALIFORNIA,
    "NY": NEW_YORK,
    "IL": ILLINOIS,
    "PA": PENNSYLVANIA,
    "CO": COLORADO,
    "MA": MASSACHUSETTS,
    "TX": _NO_TAX,
    "FL": _NO_TAX,
    "WA": _NO_TAX,
}

BUILTIN_STATE_RULES: dict[int, dict[str, dict]] = {2025: STATE_RULES_2025}


def builtin_state_codes(year: int) -> list[str]:
    source_year = CARRY_FORWARD_YEARS.get(year, year)
    return sorted(BUILTIN_STATE_RULES.get(source_year, {}))


def state_year_data(year: int, state: str) -> dict | None:
    """One state's ruleset for ``year``, tagged with its state and year."""
    source_year = CARRY_FORWARD_YEARS.get(year, year)
    rules = BUILTIN_STATE_RULES.get(source_year, {}).get(state)
    if rules is None:
        return None
    return {**rules, "state": state, "year": year}
