"""Tax computation engines.

``TaxEstimator`` and ``QuarterlyEstimator`` depend on the rule repository and
are imported from their own modules.
"""

from taxcompare.engines.calculator import compute_tax
from taxcompare.engines.evaluator import RuleEvaluator
from taxcompare.engines.safe_harbor import (
    compute_quarterly_penalty_risk,
    compute_safe_harbor_requirement,
)
from taxcompare.engines.se_tax import compute_fica, compute_se_tax
from taxcompare.engines.state_base import apply_conformity, apply_credits, apply_deductions

__all__ = [
    "RuleEvaluator",
    "apply_conformity",
    "apply_credits",
    "apply_deductions",
    "compute_fica",
    "compute_quarterly_penalty_risk",
    "compute_safe_harbor_requirement",
    "compute_se_tax",
    "compute_tax",
]
