"""Tests for built-in federal and state table completeness and consistency."""

from decimal import Decimal

import pytest

from taxcompare.engines.brackets import (
    FEDERAL_BRACKETS,
    FEDERAL_STANDARD_DEDUCTION,
    SS_WAGE_BASE,
    builtin_years,
    federal_year_data,
)
from taxcompare.engines.state_rules import builtin_state_codes, state_year_data
from taxcompare.models.constants import TaxYearConstants
from taxcompare.models.enums import FilingStatus

ALL_STATUSES = [FilingStatus.SINGLE, FilingStatus.MFJ, FilingStatus.MFS, FilingStatus.HOH]


class TestFederalBrackets:
    @pytest.mark.parametrize("year", [2025, 2026])
    def test_all_statuses_present(self, year):
        for status in ALL_STATUSES:
            assert status in FEDERAL_BRACKETS[year], f"Missing {status}"
            assert status in FEDERAL_STANDARD_DEDUCTION[year], f"Missing {status}"

    @pytest.mark.parametrize("year", [2025, 2026])
    def test_bracket_monotonicity(self, year):
        for status in ALL_STATUSES:
            prev = Decimal("0")
            for upper, _rate in FEDERAL_BRACKETS[year][status]:
                if upper is not None:
                    assert upper > prev, f"Non-monotonic bracket for {status}: {upper} <= {prev}"
                    prev = upper

    @pytest.mark.parametrize("year", [2025, 2026])
    def test_top_bracket_is_unbounded(self, year):
        for status in ALL_STATUSES:
            assert FEDERAL_BRACKETS[year][status][-1] == (None, Decimal("0.37"))

    def test_known_values(self):
        assert FEDERAL_BRACKETS[2026][FilingStatus.SINGLE][0] == (
            Decimal("12400"),
            Decimal("0.10"),
        )
        assert FEDERAL_STANDARD_DEDUCTION[2026][FilingStatus.MFJ] == Decimal("32200")
        assert SS_WAGE_BASE[2026] == Decimal("184500")


class TestFederalYearData:
    def test_years(self):
        assert builtin_years() == [2025, 2026]
        assert federal_year_data(2019) is None

    @pytest.mark.parametrize("year", [2025, 2026])
    def test_validates(self, year):
        constants = TaxYearConstants.model_validate(federal_year_data(year))
        assert constants.year == year
        assert constants.qbi is not None
        assert constants.eitc.row(FilingStatus.MFJ, 2) is not None
        assert "CA" in constants.state_credits


class TestStateRules:
    def test_carried_forward_to_2026(self):
        assert builtin_state_codes(2026) == builtin_state_codes(2025)
        data = state_year_data(2026, "CA")
        assert data["year"] == 2026
        assert data["state"] == "CA"

    def test_unknown_state(self):
        assert state_year_data(2026, "OR") is None
        assert builtin_state_codes(2019) == []
