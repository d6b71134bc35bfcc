"""Tests for the state tax-base pipeline (conformity, deductions, credits)."""

from decimal import Decimal

import pytest

from taxcompare.engines.state_base import (
    apply_conformity,
    apply_credits,
    apply_deductions,
    compute_state_tax,
)
from taxcompare.exceptions import MissingBracketsError
from taxcompare.models.enums import FilingStatus, RuleKind
from taxcompare.models.rules import EvaluationContext, StateRuleSet
from taxcompare.models.scenario import ScenarioFacts


def _ctx(
    state: str,
    facts: ScenarioFacts | None = None,
    filing_status: FilingStatus = FilingStatus.SINGLE,
    federal_taxable_income: Decimal | None = None,
) -> EvaluationContext:
    return EvaluationContext(
        year=2026,
        state=state,
        filing_status=filing_status,
        federal_taxable_income=federal_taxable_income,
        facts=facts or ScenarioFacts(),
    )


@pytest.fixture
def custom_rules() -> StateRuleSet:
    return StateRuleSet.model_validate(
        {
            "state": "ZZ",
            "year": 2026,
            "additions": [
                {"id": "ADD", "kind": "addition", "amount": {"op": "constant", "value": 1000}},
            ],
            "subtractions": [
                {
                    "id": "SUB_TENTH",
                    "kind": "subtraction",
                    "amount": {
                        "op": "mul",
                        "args": [
                            {"op": "value", "path": "stateAGI"},
                            {"op": "constant", "value": "0.1"},
                        ],
                    },
                },
            ],
            "credits": [
                {"id": "BIG", "kind": "credit", "amount": {"op": "constant", "value": 999999}},
            ],
            "tax": {"taxType": "flat", "flatRate": "0.05"},
        }
    )


class TestConformity:
    def test_subtractions_see_post_addition_base(self, custom_rules):
        result = apply_conformity(Decimal("10000"), custom_rules, _ctx("ZZ"))
        # 10000 + 1000 - 0.1 * 11000
        assert result.value == Decimal("9900")
        assert [a.id for a in result.applied] == ["ADD", "SUB_TENTH"]
        assert result.applied[1].amount == Decimal("1100")

    def test_ca_hsa_addback_and_treasury_subtraction(self, repository, sample_facts):
        rules = repository.state_rules(2026, "CA")
        result = apply_conformity(Decimal("100000"), rules, _ctx("CA", sample_facts))
        assert result.value == Decimal("102000")
        assert result.missing_inputs == []

    def test_ca_missing_hsa_reported(self, repository):
        rules = repository.state_rules(2026, "CA")
        result = apply_conformity(Decimal("100000"), rules, _ctx("CA"))
        assert result.value == Decimal("100000")
        assert "hsaContribution" in result.missing_inputs

    def test_federal_taxable_income_start(self, repository):
        rules = repository.state_rules(2026, "CO")
        ctx = _ctx("CO", federal_taxable_income=Decimal("80000"))
        result = apply_conformity(Decimal("100000"), rules, ctx)
        assert result.value == Decimal("80000")
        assert result.warnings == []

    def test_federal_taxable_income_fallback(self, repository):
        rules = repository.state_rules(2026, "CO")
        result = apply_conformity(Decimal("100000"), rules, _ctx("CO"))
        assert result.value == Decimal("100000")
        assert result.warnings == ["startingPoint.federalTaxableIncome_missing_using_federalAGI"]

    def test_state_defined_fallback(self, repository):
        rules = repository.state_rules(2026, "PA")
        result = apply_conformity(Decimal("100000"), rules, _ctx("PA"))
        assert result.value == Decimal("100000")
        assert result.warnings == ["startingPoint.stateDefined_fallback_to_federalAGI"]
        # Disabled 401(k) add-back never applies
        assert result.applied == []

    def test_never_negative(self, repository):
        rules = repository.state_rules(2026, "IL")
        facts = ScenarioFacts(us_treasury_interest=Decimal("50000"))
        result = apply_conformity(Decimal("10000"), rules, _ctx("IL", facts))
        assert result.value == Decimal("0")


class TestDeductions:
    def test_standard_deduction_by_status(self, repository):
        rules = repository.state_rules(2026, "CA")
        single = apply_deductions(Decimal("50000"), rules, _ctx("CA"))
        mfj = apply_deductions(
            Decimal("50000"), rules, _ctx("CA", filing_status=FilingStatus.MFJ)
        )
        assert single.value == Decimal("44294")
        assert mfj.value == Decimal("38588")
        assert single.applied[0].id == "STD_DEDUCTION"

    def test_personal_exemption(self, repository):
        rules = repository.state_rules(2026, "IL")
        result = apply_deductions(Decimal("100000"), rules, _ctx("IL"))
        assert result.value == Decimal("97150")
        assert [a.id for a in result.applied] == ["PERSONAL_EXEMPTION"]

    def test_itemized_only_when_opted_in(self, repository):
        rules = repository.state_rules(2026, "CA")
        facts = ScenarioFacts(
            itemized_mortgage_interest=Decimal("10000"),
            itemized_charity=Decimal("80000"),
        )
        ctx = _ctx("CA", facts)
        without = apply_deductions(Decimal("100000"), rules, ctx)
        with_itemized = apply_deductions(Decimal("100000"), rules, ctx, use_itemized=True)

        assert without.value == Decimal("94294")
        # Charity capped at 50% of state AGI
        assert with_itemized.value == Decimal("34294")
        charity = next(a for a in with_itemized.applied if a.id == "CA_CHARITY")
        assert charity.amount == Decimal("50000")
        assert charity.kind == RuleKind.DEDUCTION

    def test_no_deductions_configured(self, custom_rules):
        result = apply_deductions(Decimal("1234"), custom_rules, _ctx("ZZ"))
        assert result.value == Decimal("1234")
        assert result.applied == []


class TestCredits:
    def test_credits_never_below_zero(self, custom_rules):
        result = apply_credits(Decimal("500"), custom_rules, _ctx("ZZ"))
        assert result.value == Decimal("0")
        assert result.applied[0].kind == RuleKind.CREDIT


class TestComputeStateTax:
    def test_california(self, repository, sample_facts):
        rules = repository.state_rules(2026, "CA")
        result = compute_state_tax(
            Decimal("100000"), rules, FilingStatus.SINGLE, facts=sample_facts
        )
        assert result.state_agi == Decimal("102000.00")
        assert result.taxable_base == Decimal("96294.00")
        assert result.tax == Decimal("5393.98")
        assert "renter" in result.missing_inputs
        assert result.notes

    def test_california_renter_credit(self, repository):
        rules = repository.state_rules(2026, "CA")
        facts = ScenarioFacts(renter=True)
        result = compute_state_tax(Decimal("50000"), rules, FilingStatus.SINGLE, facts=facts)
        assert result.tax_before_credits == Decimal("1192.53")
        assert result.credits == Decimal("60.00")
        assert result.tax == Decimal("1132.53")

    def test_renter_credit_income_limit(self, repository):
        rules = repository.state_rules(2026, "CA")
        facts = ScenarioFacts(renter=True)
        result = compute_state_tax(Decimal("60000"), rules, FilingStatus.SINGLE, facts=facts)
        assert result.credits == Decimal("0.00")

    def test_new_york_needs_detail(self, repository):
        rules = repository.state_rules(2026, "NY")
        result = compute_state_tax(Decimal("100000"), rules, FilingStatus.SINGLE)
        assert "rule_needs_detail:NY_529_CONTRIBUTION" in result.warnings
        assert result.tax > Decimal("0")

    def test_illinois_flat(self, repository):
        rules = repository.state_rules(2026, "IL")
        single = compute_state_tax(Decimal("100000"), rules, FilingStatus.SINGLE)
        mfj = compute_state_tax(Decimal("100000"), rules, FilingStatus.MFJ)
        assert single.tax == Decimal("4808.93")
        assert mfj.tax == Decimal("4667.85")

    def test_pennsylvania(self, repository):
        rules = repository.state_rules(2026, "PA")
        result = compute_state_tax(Decimal("100000"), rules, FilingStatus.SINGLE)
        assert result.tax == Decimal("3070.00")
        assert "startingPoint.stateDefined_fallback_to_federalAGI" in result.warnings

    def test_colorado_uses_federal_taxable_income(self, repository):
        rules = repository.state_rules(2026, "CO")
        result = compute_state_tax(
            Decimal("100000"),
            rules,
            FilingStatus.SINGLE,
            federal_taxable_income=Decimal("80000"),
        )
        assert result.tax == Decimal("3520.00")

    def test_massachusetts_hsa_addback(self, repository):
        rules = repository.state_rules(2026, "MA")
        facts = ScenarioFacts(hsa_contribution=Decimal("2000"))
        result = compute_state_tax(Decimal("100000"), rules, FilingStatus.SINGLE, facts=facts)
        assert result.tax == Decimal("4880.00")

    def test_texas_no_income_tax(self, repository):
        rules = repository.state_rules(2026, "TX")
        result = compute_state_tax(Decimal("100000"), rules, FilingStatus.SINGLE)
        assert result.has_income_tax is False
        assert result.tax == Decimal("0")
        assert result.notes == ["TX has no state income tax."]

    def test_missing_tax_table_raises(self):
        rules = StateRuleSet(state="ZZ", year=2026)
        with pytest.raises(MissingBracketsError):
            compute_state_tax(Decimal("100000"), rules, FilingStatus.SINGLE)

    def test_missing_status_brackets_raises(self):
        rules = StateRuleSet.model_validate(
            {
                "state": "ZZ",
                "year": 2026,
                "tax": {
                    "taxType": "progressive",
                    "brackets": {"single": [{"upTo": None, "rate": "0.05"}]},
                },
            }
        )
        with pytest.raises(MissingBracketsError):
            compute_state_tax(Decimal("100000"), rules, FilingStatus.HOH)
