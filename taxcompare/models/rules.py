"""Declarative state rule models.

Rule expressions form a small closed AST keyed by ``op``:

    constant(value) | value(path) | compare(op, path, value)
    | mul(args) | min(args) | max(args) | case(cases, default)

Unknown ops are rejected when a ruleset is validated. Validation with
``context={"strict_ops": False}`` keeps them instead as ``UnsupportedExpr``
nodes, which the evaluator scores as zero with a warning.
"""

from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from taxcompare.models.constants import TaxTable
from taxcompare.models.enums import FilingStatus, RuleKind, RuleStatus, StartingPointType
from taxcompare.models.scenario import ScenarioFacts

COMPARE_OPS = (">", ">=", "<", "<=", "==", "!=")
KNOWN_OPS = frozenset({"constant", "value", "mul", "min", "max", "case", *COMPARE_OPS})


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)


class ConstantExpr(_Node):
    op: Literal["constant"] = "constant"
    value: Decimal = Decimal("0")


class ValueExpr(_Node):
    op: Literal["value"] = "value"
    path: str


class CompareExpr(_Node):
    op: Literal[">", ">=", "<", "<=", "==", "!="]
    path: str
    value: bool | Decimal | str = Decimal("0")


class MulExpr(_Node):
    op: Literal["mul"] = "mul"
    args: list["Expr"] = Field(default_factory=list)


class MinExpr(_Node):
    op: Literal["min"] = "min"
    args: list["Expr"] = Field(default_factory=list)


class MaxExpr(_Node):
    op: Literal["max"] = "max"
    args: list["Expr"] = Field(default_factory=list)


class CaseBranch(_Node):
    when: "Expr"
    then: "Expr"


class CaseExpr(_Node):
    op: Literal["case"] = "case"
    cases: list[CaseBranch] = Field(default_factory=list)
    default: "Expr" = Field(default_factory=ConstantExpr)


class UnsupportedExpr(_Node):
    """Placeholder for an op this engine does not understand."""

    op: Literal["unsupported"] = "unsupported"
    name: str


Expr = Annotated[
    Union[
        ConstantExpr,
        ValueExpr,
        CompareExpr,
        MulExpr,
        MinExpr,
        MaxExpr,
        CaseExpr,
        UnsupportedExpr,
    ],
    Field(discriminator="op"),
]

for _model in (MulExpr, MinExpr, MaxExpr, CaseBranch, CaseExpr):
    _model.model_rebuild()


def normalize_expr(raw: Any, strict: bool = True) -> Any:
    """Walk a raw (JSON-shaped) expression and deal with unknown ops.

    Strict mode raises ValueError on the first unknown op; lenient mode
    rewrites the node to ``{"op": "unsupported", "name": <op>}``.
    """
    if not isinstance(raw, dict):
        return raw

    op = raw.get("op")
    if op not in KNOWN_OPS:
        if strict:
            raise ValueError(f"unsupported expression op {op!r}")
        return {"op": "unsupported", "name": str(op)}

    node = dict(raw)
    if "args" in node:
        node["args"] = [normalize_expr(a, strict) for a in node["args"] or []]
    if op == "case":
        node["cases"] = [
            {
                **branch,
                "when": normalize_expr(branch.get("when"), strict),
                "then": normalize_expr(branch.get("then"), strict),
            }
            for branch in node.get("cases") or []
        ]
        if "default" in node:
            node["default"] = normalize_expr(node["default"], strict)
    return node


def _strict_from(info: ValidationInfo) -> bool:
    context = info.context or {}
    return bool(context.get("strict_ops", True))


class Rule(BaseModel):
    """One conformity adjustment, deduction, or credit."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: RuleKind
    affects: Literal["stateAGI", "taxableStateIncome", "totalTax"] = "stateAGI"
    description: str | None = None
    enabled: bool = True
    status: RuleStatus = RuleStatus.OK
    when: Expr | None = None
    amount: Expr | None = None
    requires: list[str] = Field(default_factory=list)

    @field_validator("when", "amount", mode="before")
    @classmethod
    def _normalize(cls, value: Any, info: ValidationInfo) -> Any:
        return normalize_expr(value, strict=_strict_from(info))


class DeductionAmount(BaseModel):
    """A deduction given as a flat default and/or per filing status."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    default: Decimal | None = None
    by_status: dict[FilingStatus, Decimal] = Field(default_factory=dict)

    def resolve(self, filing_status: FilingStatus) -> Decimal:
        """Per-status override, then default, then zero."""
        if filing_status in self.by_status:
            return self.by_status[filing_status]
        if self.default is not None:
            return self.default
        return Decimal("0")


class StartingPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: StartingPointType = StartingPointType.FEDERAL_AGI


class StateRuleSet(BaseModel):
    """Everything needed to take federal AGI to a state tax amount."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    state: str
    year: int
    has_income_tax: bool = True
    starting_point: StartingPoint = Field(default_factory=StartingPoint)
    additions: list[Rule] = Field(default_factory=list)
    subtractions: list[Rule] = Field(default_factory=list)
    standard_deduction: DeductionAmount = Field(default_factory=DeductionAmount)
    personal_exemption: DeductionAmount = Field(default_factory=DeductionAmount)
    itemized_rules: list[Rule] = Field(default_factory=list)
    credits: list[Rule] = Field(default_factory=list)
    tax: TaxTable | None = None
    required_inputs: list[str] = Field(default_factory=list)
    notes: str | None = None


class EvaluationContext(BaseModel):
    """Values visible to rule expressions during one evaluation."""

    model_config = ConfigDict(frozen=True)

    year: int
    state: str
    filing_status: FilingStatus
    federal_agi: Decimal = Decimal("0")
    federal_taxable_income: Decimal | None = None
    state_agi: Decimal | None = None
    facts: ScenarioFacts = Field(default_factory=ScenarioFacts)
