"""Shared test fixtures for taxcompare."""

from decimal import Decimal

import pytest

from taxcompare.engines.estimator import TaxEstimator
from taxcompare.models.constants import TaxYearConstants
from taxcompare.models.enums import FilingStatus
from taxcompare.models.rules import EvaluationContext
from taxcompare.models.scenario import ScenarioFacts
from taxcompare.repository import TaxRuleRepository


@pytest.fixture
def repository() -> TaxRuleRepository:
    return TaxRuleRepository.builtin()


@pytest.fixture
def estimator(repository: TaxRuleRepository) -> TaxEstimator:
    return TaxEstimator(repository)


@pytest.fixture
def constants_2026(repository: TaxRuleRepository) -> TaxYearConstants:
    return repository.constants(2026)


@pytest.fixture
def sample_facts() -> ScenarioFacts:
    return ScenarioFacts(
        hsa_contribution=Decimal("3000"),
        us_treasury_interest=Decimal("1000"),
    )


@pytest.fixture
def ca_context(sample_facts: ScenarioFacts) -> EvaluationContext:
    return EvaluationContext(
        year=2026,
        state="CA",
        filing_status=FilingStatus.SINGLE,
        federal_agi=Decimal("100000"),
        facts=sample_facts,
    )
