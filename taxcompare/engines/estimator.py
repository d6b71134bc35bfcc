"""W-2 vs 1099 scenario estimation.

Composes the bracket calculator, SE tax, FICA and the state pipeline into
two income paths for the same person:
  - W-2: AGI = salary less above-the-line adjustments, federal tax on AGI
    less the standard deduction, employee FICA on salary, state tax on AGI
  - 1099: SE tax on net profit, AGI = net profit less half of SE tax and
    the above-the-line adjustments, federal tax on AGI less the standard
    deduction, state tax on AGI
and searches for the 1099 gross income that matches the W-2 net income.
"""

import logging
from datetime import date
from decimal import Decimal

from taxcompare.engines import premium
from taxcompare.engines.calculator import ZERO, clamp0, compute_tax, effective_rate, round2
from taxcompare.engines.safe_harbor import (
    compute_quarterly_penalty_risk,
    compute_safe_harbor_requirement,
)
from taxcompare.engines.se_tax import compute_fica, compute_se_tax
from taxcompare.engines.state_base import NO_INCOME_TAX_STATES, compute_state_tax
from taxcompare.engines.summary import scenario_summary
from taxcompare.models.enums import BusinessType, FilingStatus, Winner
from taxcompare.models.results import (
    ChildCreditResult,
    ContractorPathResult,
    CreditResult,
    FederalTaxResult,
    FicaResult,
    PenaltyRiskResult,
    SafeHarborResult,
    ScenarioResult,
    SeTaxResult,
    StateTaxResult,
    W2PathResult,
)
from taxcompare.models.scenario import ScenarioFacts, ScenarioInput, normalize_state
from taxcompare.repository import TaxRuleRepository

logger = logging.getLogger(__name__)

BREAK_EVEN_MAX_DOUBLINGS = 12
BREAK_EVEN_ITERATIONS = 30
MONTHS = Decimal("12")


class TaxEstimator:
    """Estimates federal, state and payroll/SE tax for W-2 and 1099 income."""

    def __init__(self, repository: TaxRuleRepository | None = None) -> None:
        self.repository = repository or TaxRuleRepository.builtin()
        self.warnings: list[str] = []

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def compute_federal_tax(
        self, income_base: Decimal, filing_status: FilingStatus, tax_year: int
    ) -> FederalTaxResult:
        """Federal income tax on ``income_base`` less the standard deduction."""
        constants = self.repository.constants(tax_year)
        standard = constants.standard_deduction_for(filing_status)
        income_base = clamp0(Decimal(income_base))
        taxable = clamp0(income_base - standard)
        result = compute_tax(taxable, constants.brackets_for(filing_status))
        return FederalTaxResult(
            income_base=income_base,
            standard_deduction=standard,
            taxable_income=taxable,
            tax=result.tax,
            effective_rate=effective_rate(result.tax, income_base),
            breakdown=result.breakdown,
        )

    def compute_state_tax(
        self,
        federal_agi: Decimal,
        state: str,
        filing_status: FilingStatus,
        tax_year: int,
        facts: ScenarioFacts | None = None,
        federal_taxable_income: Decimal | None = None,
        use_itemized: bool = False,
    ) -> StateTaxResult:
        code = normalize_state(state)
        if code in NO_INCOME_TAX_STATES:
            return StateTaxResult(
                state=code,
                tax_year=tax_year,
                has_income_tax=False,
                notes=[f"{code} has no state income tax."],
            )

        ruleset = self.repository.state_rules(tax_year, code)
        return compute_state_tax(
            federal_agi,
            ruleset,
            filing_status,
            facts=facts,
            federal_taxable_income=federal_taxable_income,
            use_itemized=use_itemized,
        )

    def compute_self_employment_tax(
        self,
        net_profit: Decimal,
        w2_wages: Decimal,
        filing_status: FilingStatus,
        tax_year: int,
    ) -> SeTaxResult:
        constants = self.repository.constants(tax_year)
        return compute_se_tax(net_profit, w2_wages, filing_status, constants.se_tax)

    def compute_fica(
        self, wages: Decimal, filing_status: FilingStatus, tax_year: int
    ) -> FicaResult:
        constants = self.repository.constants(tax_year)
        return compute_fica(wages, filing_status, constants.se_tax, constants.fica)

    # ------------------------------------------------------------------
    # Premium calculators bound to a tax year
    # ------------------------------------------------------------------

    def compute_qbi_deduction(
        self,
        qbi_base: Decimal,
        taxable_before_qbi: Decimal,
        filing_status: FilingStatus,
        tax_year: int,
        net_capital_gains: Decimal = ZERO,
        business_type: BusinessType = BusinessType.NON_SSTB,
        w2_wages: Decimal = ZERO,
        ubia: Decimal = ZERO,
    ) -> CreditResult:
        return premium.compute_qbi_deduction(
            qbi_base,
            taxable_before_qbi,
            net_capital_gains,
            filing_status,
            self.repository.constants(tax_year).qbi,
            business_type=business_type,
            w2_wages=w2_wages,
            ubia=ubia,
        )

    def compute_niit(
        self,
        magi: Decimal,
        net_investment_income: Decimal,
        filing_status: FilingStatus,
        tax_year: int,
    ) -> CreditResult:
        return premium.compute_niit(
            magi, net_investment_income, filing_status, self.repository.constants(tax_year).niit
        )

    def compute_child_credits(
        self,
        magi: Decimal,
        federal_tax_before_credits: Decimal,
        qualifying_children: int,
        other_dependents: int,
        filing_status: FilingStatus,
        tax_year: int,
    ) -> ChildCreditResult:
        return premium.compute_child_credits(
            magi,
            federal_tax_before_credits,
            qualifying_children,
            other_dependents,
            filing_status,
            self.repository.constants(tax_year).ctc,
        )

    def compute_eitc(
        self,
        earned_income: Decimal,
        agi: Decimal,
        children: int,
        investment_income: Decimal,
        filing_status: FilingStatus,
        tax_year: int,
    ) -> CreditResult:
        return premium.compute_eitc(
            earned_income,
            agi,
            children,
            investment_income,
            filing_status,
            self.repository.constants(tax_year).eitc,
        )

    def compute_safe_harbor_requirement(
        self,
        filing_status: FilingStatus,
        prior_year_total_tax: Decimal,
        prior_year_agi: Decimal | None = None,
    ) -> SafeHarborResult:
        return compute_safe_harbor_requirement(filing_status, prior_year_total_tax, prior_year_agi)

    def compute_quarterly_penalty_risk(
        self,
        annual_required: Decimal,
        withholding: Decimal,
        tax_year: int,
        payments_by_quarter: list[Decimal] | None = None,
        payments_ytd: Decimal | None = None,
        as_of: date | None = None,
    ) -> PenaltyRiskResult:
        return compute_quarterly_penalty_risk(
            annual_required,
            withholding,
            tax_year,
            payments_by_quarter=payments_by_quarter,
            payments_ytd=payments_ytd,
            as_of=as_of,
        )

    # ------------------------------------------------------------------
    # Scenario comparison
    # ------------------------------------------------------------------

    def _w2_path(self, scenario: ScenarioInput) -> tuple[W2PathResult, list[str]]:
        salary = clamp0(scenario.w2_salary)
        agi = clamp0(salary - scenario.facts.above_the_line())
        federal = self.compute_federal_tax(agi, scenario.filing_status, scenario.tax_year)
        fica = self.compute_fica(salary, scenario.filing_status, scenario.tax_year)
        state = self.compute_state_tax(
            agi,
            scenario.state,
            scenario.filing_status,
            scenario.tax_year,
            facts=scenario.facts,
            federal_taxable_income=federal.taxable_income,
            use_itemized=scenario.use_itemized,
        )

        total = federal.tax + state.tax + fica.total
        path = W2PathResult(
            gross=salary,
            federal_tax=federal.tax,
            state_tax=state.tax,
            fica_tax=fica.total,
            total_tax=round2(total),
            net_income=round2(clamp0(salary - total)),
            effective_tax_rate=effective_rate(total, salary),
        )
        return path, state.warnings

    def _contractor_path(
        self, scenario: ScenarioInput, income_1099: Decimal
    ) -> tuple[ContractorPathResult, list[str]]:
        gross = clamp0(Decimal(income_1099))
        expenses = clamp0(scenario.expenses)
        net_profit = clamp0(gross - expenses)

        se = self.compute_self_employment_tax(
            net_profit, ZERO, scenario.filing_status, scenario.tax_year
        )
        agi = clamp0(net_profit - se.deductible_half - scenario.facts.above_the_line())
        federal = self.compute_federal_tax(agi, scenario.filing_status, scenario.tax_year)
        state = self.compute_state_tax(
            agi,
            scenario.state,
            scenario.filing_status,
            scenario.tax_year,
            facts=scenario.facts,
            federal_taxable_income=federal.taxable_income,
            use_itemized=scenario.use_itemized,
        )

        total = federal.tax + state.tax + se.total
        path = ContractorPathResult(
            gross=gross,
            expenses=expenses,
            net_profit=net_profit,
            se_tax=se.total,
            deductible_half=se.deductible_half,
            agi=round2(agi),
            federal_tax=federal.tax,
            state_tax=state.tax,
            total_tax=round2(total),
            net_income=round2(clamp0(net_profit - total)),
            effective_tax_rate=effective_rate(total, net_profit),
        )
        return path, state.warnings

    def find_break_even(self, scenario: ScenarioInput) -> Decimal:
        """1099 gross income whose net matches the W-2 net at the same salary.

        Doubles the upper bound (at most 12 times) until the 1099 net reaches
        the target, then bisects 30 times. 1099 net income is non-decreasing in
        gross income, so the midpoint converges to the crossover.
        """
        target, _ = self._w2_path(scenario)
        target_net = target.net_income

        def net_at(gross: Decimal) -> Decimal:
            path, _ = self._contractor_path(scenario, gross)
            return path.net_income

        low = ZERO
        high = max(Decimal("1"), scenario.w2_salary * 5)
        for _ in range(BREAK_EVEN_MAX_DOUBLINGS):
            if net_at(high) >= target_net:
                break
            high *= 2

        mid = ZERO
        for _ in range(BREAK_EVEN_ITERATIONS):
            mid = (low + high) / 2
            if net_at(mid) >= target_net:
                high = mid
            else:
                low = mid

        logger.debug(
            "Break-even for W-2 %s in %s: %s (bracket %s-%s)",
            scenario.w2_salary,
            scenario.state,
            mid,
            low,
            high,
        )
        return round2(mid)

    def compare_scenarios(self, scenario: ScenarioInput) -> ScenarioResult:
        """Full W-2 vs 1099 comparison, including the break-even 1099 income."""
        self.warnings = []
        w2, w2_warnings = self._w2_path(scenario)
        contractor, contractor_warnings = self._contractor_path(scenario, scenario.income_1099)

        annual_difference = round2(contractor.net_income - w2.net_income)
        monthly_difference = round2(annual_difference / MONTHS)
        break_even = self.find_break_even(scenario)

        self.warnings = list(dict.fromkeys(w2_warnings + contractor_warnings))
        constants = self.repository.constants(scenario.tax_year)

        return ScenarioResult(
            tax_year=scenario.tax_year,
            state=scenario.state,
            filing_status=scenario.filing_status,
            standard_deduction=constants.standard_deduction_for(scenario.filing_status),
            w2=w2,
            contractor=contractor,
            annual_difference=annual_difference,
            monthly_difference=monthly_difference,
            break_even_1099_income=break_even,
            winner=Winner.CONTRACTOR if annual_difference >= ZERO else Winner.W2,
            summary=scenario_summary(w2, contractor, annual_difference, monthly_difference),
            warnings=self.warnings,
        )
