"""Tests for self-employment tax and employee FICA."""

from decimal import Decimal

import pytest

from taxcompare.engines.se_tax import compute_fica, compute_se_tax
from taxcompare.exceptions import ConfigurationError
from taxcompare.models.constants import SeTaxConstants
from taxcompare.models.enums import FilingStatus


@pytest.fixture
def se_constants() -> SeTaxConstants:
    return SeTaxConstants(
        ss_wage_base=Decimal("168600"),
        additional_medicare_threshold={FilingStatus.SINGLE: Decimal("200000")},
    )


class TestSeTax:
    def test_basic_example(self, se_constants):
        result = compute_se_tax(Decimal("100000"), Decimal("0"), FilingStatus.SINGLE, se_constants)
        assert result.net_earnings == Decimal("92350.00")
        assert result.ss_tax == Decimal("11451.40")
        assert result.medicare_tax == Decimal("2678.15")
        assert result.additional_medicare_tax == Decimal("0.00")
        assert result.total == Decimal("14129.55")

    def test_total_rounds_unrounded_sum(self, se_constants):
        result = compute_se_tax(Decimal("10"), Decimal("0"), FilingStatus.SINGLE, se_constants)
        assert result.ss_tax == Decimal("1.15")
        assert result.medicare_tax == Decimal("0.27")
        # 9.235 * 0.153 = 1.412955
        assert result.total == Decimal("1.41")

    def test_deductible_half_excludes_additional_medicare(self, se_constants):
        result = compute_se_tax(Decimal("100000"), Decimal("0"), FilingStatus.SINGLE, se_constants)
        assert result.deductible_half == Decimal("7064.78")

        high = compute_se_tax(
            Decimal("100000"), Decimal("160000"), FilingStatus.SINGLE, se_constants
        )
        assert high.additional_medicare_tax > Decimal("0")
        # (1066.40 + 2678.15) / 2
        assert high.deductible_half == Decimal("1872.28")

    def test_w2_wages_use_wage_base_first(self, se_constants):
        result = compute_se_tax(
            Decimal("100000"), Decimal("160000"), FilingStatus.SINGLE, se_constants
        )
        assert result.ss_cap_remaining == Decimal("8600")
        assert result.ss_taxable == Decimal("8600.00")
        assert result.ss_tax == Decimal("1066.40")

    def test_additional_medicare_on_combined_earnings(self, se_constants):
        result = compute_se_tax(
            Decimal("100000"), Decimal("160000"), FilingStatus.SINGLE, se_constants
        )
        # (160000 + 92350 - 200000) * 0.009
        assert result.additional_medicare_tax == Decimal("471.15")

    def test_wages_over_wage_base(self, se_constants):
        result = compute_se_tax(
            Decimal("50000"), Decimal("300000"), FilingStatus.SINGLE, se_constants
        )
        assert result.ss_cap_remaining == Decimal("0")
        assert result.ss_tax == Decimal("0.00")

    @pytest.mark.parametrize("wages", ["0", "100000", "168600", "400000"])
    def test_ss_taxable_within_cap(self, se_constants, wages):
        w2 = Decimal(wages)
        result = compute_se_tax(Decimal("250000"), w2, FilingStatus.SINGLE, se_constants)
        assert result.ss_taxable <= max(Decimal("0"), Decimal("168600") - w2)

    def test_zero_profit(self, se_constants):
        result = compute_se_tax(Decimal("0"), Decimal("0"), FilingStatus.SINGLE, se_constants)
        assert result.total == Decimal("0")
        assert result.deductible_half == Decimal("0")

    def test_missing_threshold_raises(self, se_constants):
        with pytest.raises(ConfigurationError):
            compute_se_tax(Decimal("1000"), Decimal("0"), FilingStatus.MFJ, se_constants)


class TestFica:
    def test_below_wage_base(self, constants_2026):
        result = compute_fica(
            Decimal("100000"), FilingStatus.SINGLE, constants_2026.se_tax, constants_2026.fica
        )
        assert result.social_security == Decimal("6200.00")
        assert result.medicare == Decimal("1450.00")
        assert result.total == Decimal("7650.00")

    def test_above_wage_base_and_threshold(self, constants_2026):
        result = compute_fica(
            Decimal("250000"), FilingStatus.SINGLE, constants_2026.se_tax, constants_2026.fica
        )
        assert result.social_security == Decimal("11439.00")
        assert result.medicare == Decimal("3625.00")
        assert result.additional_medicare == Decimal("450.00")
        assert result.total == Decimal("15514.00")
