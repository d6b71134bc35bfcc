"""Tests for the shared flat/progressive bracket calculator."""

from decimal import Decimal

import pytest

from taxcompare.engines.calculator import compute_tax, effective_rate, round2
from taxcompare.exceptions import MissingBracketsError
from taxcompare.models.constants import Bracket, TaxSchedule, TaxTable
from taxcompare.models.enums import FilingStatus, TaxType


@pytest.fixture
def schedule() -> TaxSchedule:
    return TaxSchedule(
        tax_type=TaxType.PROGRESSIVE,
        brackets=[
            Bracket(up_to=Decimal("11600"), rate=Decimal("0.10")),
            Bracket(up_to=Decimal("47150"), rate=Decimal("0.12")),
            Bracket(up_to=None, rate=Decimal("0.22")),
        ],
    )


class TestProgressive:
    def test_three_bracket_example(self, schedule):
        # 11600*0.10 + 35550*0.12 + 2850*0.22
        result = compute_tax(Decimal("50000"), schedule)
        assert result.tax == Decimal("6053.00")
        assert [s.taxed_amount for s in result.breakdown] == [
            Decimal("11600"),
            Decimal("35550"),
            Decimal("2850"),
        ]

    def test_stops_inside_first_bracket(self, schedule):
        result = compute_tax(Decimal("5000"), schedule)
        assert result.tax == Decimal("500.00")
        assert len(result.breakdown) == 1

    def test_zero_base(self, schedule):
        result = compute_tax(Decimal("0"), schedule)
        assert result.tax == Decimal("0")
        assert result.breakdown == []
        assert result.effective_rate == Decimal("0")

    def test_negative_base_is_clamped(self, schedule):
        result = compute_tax(Decimal("-1000"), schedule)
        assert result.taxable_base == Decimal("0")
        assert result.tax == Decimal("0")

    def test_monotonic(self, schedule):
        previous = Decimal("0")
        for amount in range(0, 120000, 2500):
            tax = compute_tax(Decimal(amount), schedule).tax
            assert tax >= previous
            previous = tax

    def test_continuous_at_boundaries(self, schedule):
        for boundary in (Decimal("11600"), Decimal("47150")):
            below = compute_tax(boundary - Decimal("0.01"), schedule).tax
            at = compute_tax(boundary, schedule).tax
            above = compute_tax(boundary + Decimal("0.01"), schedule).tax
            assert at - below <= Decimal("0.01")
            assert above - at <= Decimal("0.01")

    def test_effective_rate(self, schedule):
        result = compute_tax(Decimal("50000"), schedule)
        assert result.effective_rate == Decimal("0.1211")


class TestFlatAndNone:
    def test_flat(self):
        schedule = TaxSchedule(tax_type=TaxType.FLAT, rate=Decimal("0.0495"))
        result = compute_tax(Decimal("97150"), schedule)
        assert result.tax == Decimal("4808.93")
        assert len(result.breakdown) == 1

    def test_none(self):
        result = compute_tax(Decimal("97150"), TaxSchedule(tax_type=TaxType.NONE))
        assert result.tax == Decimal("0")
        assert result.breakdown == []


class TestTaxTable:
    def test_missing_status_brackets_raises(self):
        table = TaxTable(
            brackets={FilingStatus.SINGLE: [Bracket(up_to=None, rate=Decimal("0.05"))]}
        )
        with pytest.raises(MissingBracketsError) as exc:
            table.schedule_for(FilingStatus.MFJ, "ZZ", 2026)
        assert exc.value.jurisdiction == "ZZ"

    def test_flat_without_rate_raises(self):
        table = TaxTable(tax_type=TaxType.FLAT)
        with pytest.raises(MissingBracketsError):
            table.schedule_for(FilingStatus.SINGLE, "ZZ", 2026)

    def test_camel_case_input(self):
        table = TaxTable.model_validate({"taxType": "flat", "flatRate": "0.03"})
        schedule = table.schedule_for(FilingStatus.SINGLE, "ZZ", 2026)
        assert schedule.rate == Decimal("0.03")


class TestHelpers:
    def test_round_half_up(self):
        assert round2(Decimal("7064.775")) == Decimal("7064.78")
        assert round2(Decimal("0.005")) == Decimal("0.01")

    def test_effective_rate_zero_base(self):
        assert effective_rate(Decimal("100"), Decimal("0")) == Decimal("0")
