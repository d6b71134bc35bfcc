"""Data models for taxcompare."""

from taxcompare.models.constants import (
    Bracket,
    TaxSchedule,
    TaxTable,
    TaxYearConstants,
)
from taxcompare.models.enums import (
    BusinessType,
    FilingStatus,
    PaymentStrategy,
    RuleKind,
    RuleStatus,
    StartingPointType,
    TaxType,
    Winner,
)
from taxcompare.models.results import (
    AdjustmentResult,
    BracketTaxResult,
    PenaltyRiskResult,
    QuarterlyEstimate,
    ScenarioResult,
    SeTaxResult,
    StateTaxResult,
)
from taxcompare.models.rules import EvaluationContext, Rule, StateRuleSet
from taxcompare.models.scenario import QuarterlyInput, ScenarioFacts, ScenarioInput

__all__ = [
    "AdjustmentResult",
    "Bracket",
    "BracketTaxResult",
    "BusinessType",
    "EvaluationContext",
    "FilingStatus",
    "PaymentStrategy",
    "PenaltyRiskResult",
    "QuarterlyEstimate",
    "QuarterlyInput",
    "Rule",
    "RuleKind",
    "RuleStatus",
    "ScenarioFacts",
    "ScenarioInput",
    "ScenarioResult",
    "SeTaxResult",
    "StartingPointType",
    "StateRuleSet",
    "StateTaxResult",
    "TaxSchedule",
    "TaxTable",
    "TaxType",
    "TaxYearConstants",
    "Winner",
]
