"""Result models returned by the engines."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from taxcompare.models.enums import FilingStatus, PaymentStrategy, RuleKind, Winner


class BracketSlice(BaseModel):
    up_to: Decimal | None
    rate: Decimal
    taxed_amount: Decimal
    tax: Decimal


class BracketTaxResult(BaseModel):
    taxable_base: Decimal
    tax: Decimal
    effective_rate: Decimal
    breakdown: list[BracketSlice] = Field(default_factory=list)


class AppliedAdjustment(BaseModel):
    id: str
    kind: RuleKind
    amount: Decimal
    description: str | None = None


class RuleOutcome(BaseModel):
    applied: bool
    amount: Decimal = Decimal("0")


class AdjustmentResult(BaseModel):
    """Output of one state pipeline stage."""

    value: Decimal
    applied: list[AppliedAdjustment] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    missing_inputs: list[str] = Field(default_factory=list)


class StateTaxResult(BaseModel):
    state: str
    tax_year: int
    has_income_tax: bool
    state_agi: Decimal = Decimal("0")
    taxable_base: Decimal = Decimal("0")
    tax_before_credits: Decimal = Decimal("0")
    credits: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    effective_rate: Decimal = Decimal("0")
    breakdown: list[BracketSlice] = Field(default_factory=list)
    applied: list[AppliedAdjustment] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    missing_inputs: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class FederalTaxResult(BaseModel):
    income_base: Decimal
    standard_deduction: Decimal
    taxable_income: Decimal
    tax: Decimal
    effective_rate: Decimal
    breakdown: list[BracketSlice] = Field(default_factory=list)


class SeTaxResult(BaseModel):
    net_profit: Decimal
    w2_wages: Decimal
    net_earnings: Decimal
    ss_wage_base: Decimal
    ss_cap_remaining: Decimal
    ss_taxable: Decimal
    ss_tax: Decimal
    medicare_tax: Decimal
    additional_medicare_threshold: Decimal
    additional_medicare_tax: Decimal
    total: Decimal
    deductible_half: Decimal


class FicaResult(BaseModel):
    wages: Decimal
    social_security: Decimal
    medicare: Decimal
    additional_medicare: Decimal
    total: Decimal


class ChildCreditResult(BaseModel):
    non_refundable_used: Decimal = Decimal("0")
    refundable: Decimal = Decimal("0")
    total_applied: Decimal = Decimal("0")
    notes: list[str] = Field(default_factory=list)


class CreditResult(BaseModel):
    """A single credit or deduction amount with an explanatory note."""

    amount: Decimal = Decimal("0")
    notes: list[str] = Field(default_factory=list)


class SafeHarborResult(BaseModel):
    prior_year_total_tax: Decimal
    prior_year_agi: Decimal | None
    multiplier: Decimal
    annual: Decimal
    quarterly: Decimal


class QuarterRisk(BaseModel):
    label: str
    due_date: date
    is_due: bool
    cumulative_required: Decimal
    cumulative_withholding: Decimal
    cumulative_payments: Decimal
    cumulative_paid: Decimal
    shortfall: Decimal
    underpaid: bool


class PenaltyRiskResult(BaseModel):
    annual_required: Decimal
    withholding: Decimal
    quarters: list[QuarterRisk]
    protected: bool
    notes: list[str] = Field(default_factory=list)


class W2PathResult(BaseModel):
    gross: Decimal
    federal_tax: Decimal
    state_tax: Decimal
    fica_tax: Decimal
    total_tax: Decimal
    net_income: Decimal
    effective_tax_rate: Decimal


class ContractorPathResult(BaseModel):
    gross: Decimal
    expenses: Decimal
    net_profit: Decimal
    se_tax: Decimal
    deductible_half: Decimal
    agi: Decimal
    federal_tax: Decimal
    state_tax: Decimal
    total_tax: Decimal
    net_income: Decimal
    effective_tax_rate: Decimal


class ScenarioResult(BaseModel):
    tax_year: int
    state: str
    filing_status: FilingStatus
    standard_deduction: Decimal
    w2: W2PathResult
    contractor: ContractorPathResult
    annual_difference: Decimal
    monthly_difference: Decimal
    break_even_1099_income: Decimal
    winner: Winner
    summary: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class QuarterlyPayment(BaseModel):
    label: str
    due_date_label: str
    amount: Decimal


class AnnualBreakdown(BaseModel):
    gross_income: Decimal
    agi: Decimal
    deduction: Decimal
    taxable_income_federal: Decimal
    se_tax: Decimal
    qbi_deduction: Decimal
    federal_income_tax_before_credits: Decimal
    federal_income_tax_after_credits: Decimal
    niit_tax: Decimal
    federal_total: Decimal
    state_income_tax: Decimal
    state_credits: Decimal
    total_tax: Decimal
    remaining_after_withholding: Decimal
    net_take_home: Decimal


class QuarterlyEstimate(BaseModel):
    tier: str
    tax_year: int
    strategy: PaymentStrategy
    annual: AnnualBreakdown
    quarterly: list[QuarterlyPayment]
    safe_harbor: SafeHarborResult | None = None
    penalty_risk: PenaltyRiskResult | None = None
    chart_labels: list[str] = Field(default_factory=list)
    chart_values: list[Decimal] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class FreeSummary(BaseModel):
    winner: Winner
    annual_difference: Decimal
    monthly_difference: Decimal
    break_even_1099_income: Decimal
    chart_labels: list[str]
    chart_values: list[Decimal]
    upgrade_prompt: str
    summary: list[str]


class PremiumSummary(BaseModel):
    winner: Winner
    annual_difference: Decimal
    monthly_difference: Decimal
    break_even_1099_income: Decimal
    federal_tax_w2: Decimal
    state_tax_w2: Decimal
    fica_tax_w2: Decimal
    federal_tax_1099: Decimal
    state_tax_1099: Decimal
    self_employment_tax_1099: Decimal
    deductions_applied: dict[str, Decimal]
    effective_tax_rate_w2: Decimal
    effective_tax_rate_1099: Decimal
    assumptions: list[str]
    recommendations: list[str]
    chart_labels: list[str]
    chart_values_w2: list[Decimal]
    chart_values_1099: list[Decimal]
    summary: list[str]
