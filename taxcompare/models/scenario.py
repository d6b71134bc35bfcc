"""Scenario input models and the typed fact schema."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from taxcompare.models.enums import BusinessType, FilingStatus, PaymentStrategy


def normalize_state(value: str) -> str:
    """Upper-case and strip a two-letter state code."""
    return str(value or "").strip().upper()


def _validate_state(value: str) -> str:
    state = normalize_state(value)
    if len(state) != 2 or not state.isalpha():
        raise ValueError("State must be a 2-letter code (e.g., CA, TX, NY)")
    return state


class ScenarioFacts(BaseModel):
    """Named facts a rule expression or premium calculator may read.

    Every field is optional: ``None`` means "not supplied", which lets the
    rule evaluator report it as a missing input instead of silently
    assuming zero. Rule paths may use either the snake_case field name or
    its camelCase alias (``hsa_contribution`` / ``hsaContribution``).
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    # --- Income ---
    w2_wages: Decimal | None = Field(default=None, ge=0)
    interest_income: Decimal | None = Field(default=None, ge=0)
    dividend_income: Decimal | None = Field(default=None, ge=0)
    capital_gains: Decimal | None = Field(default=None, ge=0)
    us_treasury_interest: Decimal | None = Field(default=None, ge=0)
    net_investment_income_adjustments: Decimal | None = Field(default=None, ge=0)

    # --- QBI (Section 199A) ---
    qbi_w2_wages: Decimal | None = Field(default=None, ge=0)
    qbi_ubia: Decimal | None = Field(default=None, ge=0)

    # --- Above-the-line adjustments ---
    hsa_contribution: Decimal | None = Field(default=None, ge=0)
    ira_contribution: Decimal | None = Field(default=None, ge=0)
    solo401k_employee: Decimal | None = Field(default=None, ge=0)
    solo401k_employer: Decimal | None = Field(default=None, ge=0)
    other_adjustments: Decimal | None = Field(default=None, ge=0)

    # --- Itemized deductions ---
    itemized_salt_paid: Decimal | None = Field(default=None, ge=0)
    itemized_mortgage_interest: Decimal | None = Field(default=None, ge=0)
    itemized_charity: Decimal | None = Field(default=None, ge=0)
    itemized_other: Decimal | None = Field(default=None, ge=0)

    # --- Household ---
    qualifying_children: int | None = Field(default=None, ge=0)
    other_dependents: int | None = Field(default=None, ge=0)
    has_young_child: bool | None = None
    renter: bool | None = None

    # --- Prior year (safe harbor) ---
    prior_year_total_tax: Decimal | None = Field(default=None, ge=0)
    prior_year_agi: Decimal | None = Field(default=None, ge=0)

    def lookup(self, name: str) -> Decimal | int | bool | None:
        """Return the fact named ``name`` or None when unknown/unset."""
        field_name = _FACT_NAMES.get(name)
        if field_name is None:
            return None
        return getattr(self, field_name)

    def amount(self, name: str) -> Decimal:
        """Numeric value of a fact, zero when unset."""
        value = self.lookup(name)
        if value is None:
            return Decimal("0")
        return Decimal(value)

    def above_the_line(self) -> Decimal:
        """Adjustments that reduce AGI: HSA, IRA, solo 401(k) and other."""
        return (
            self.amount("hsa_contribution")
            + self.amount("ira_contribution")
            + self.amount("solo401k_employee")
            + self.amount("solo401k_employer")
            + self.amount("other_adjustments")
        )

    def provided(self) -> set[str]:
        """Field names the caller explicitly supplied."""
        return {name for name in self.model_fields_set if getattr(self, name) is not None}


_FACT_NAMES: dict[str, str] = {}
for _name in ScenarioFacts.model_fields:
    _FACT_NAMES[_name] = _name
    _FACT_NAMES[to_camel(_name)] = _name


class ScenarioInput(BaseModel):
    """A W-2 vs 1099 comparison request."""

    w2_salary: Decimal = Field(ge=0)
    income_1099: Decimal = Field(ge=0)
    expenses: Decimal = Field(default=Decimal("0"), ge=0)
    state: str
    filing_status: FilingStatus = FilingStatus.SINGLE
    tax_year: int = 2026
    use_itemized: bool = False
    facts: ScenarioFacts = Field(default_factory=ScenarioFacts)

    @field_validator("state", mode="before")
    @classmethod
    def _check_state(cls, value: str) -> str:
        return _validate_state(value)


class QuarterlyInput(BaseModel):
    """Inputs for the quarterly estimated-tax planner."""

    filing_status: FilingStatus
    state: str
    tax_year: int = 2026
    net_profit: Decimal = Field(ge=0)
    other_income: Decimal = Field(default=Decimal("0"), ge=0)
    withholding: Decimal = Field(default=Decimal("0"), ge=0)

    # Premium-only
    strategy: PaymentStrategy | None = None
    business_type: BusinessType = BusinessType.NON_SSTB
    use_itemized: bool = False
    estimated_payments_by_quarter: list[Decimal] | None = Field(default=None, max_length=4)
    estimated_payments_ytd: Decimal | None = Field(default=None, ge=0)
    as_of: date | None = None

    facts: ScenarioFacts = Field(default_factory=ScenarioFacts)

    @field_validator("state", mode="before")
    @classmethod
    def _check_state(cls, value: str) -> str:
        return _validate_state(value)

    @field_validator("estimated_payments_by_quarter")
    @classmethod
    def _check_payments(cls, value: list[Decimal] | None) -> list[Decimal] | None:
        if value is not None and any(p < 0 for p in value):
            raise ValueError("Quarterly payments must be non-negative")
        return value
