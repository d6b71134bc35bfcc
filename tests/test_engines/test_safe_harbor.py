"""Tests for the safe-harbor requirement and quarterly penalty-risk tracker."""

from datetime import date
from decimal import Decimal

from taxcompare.engines.safe_harbor import (
    compute_quarterly_penalty_risk,
    compute_safe_harbor_requirement,
    quarterly_due_dates,
    safe_harbor_multiplier,
)
from taxcompare.models.enums import FilingStatus


class TestSafeHarbor:
    def test_high_income_example(self):
        result = compute_safe_harbor_requirement(
            FilingStatus.SINGLE, Decimal("20000"), Decimal("160000")
        )
        assert result.multiplier == Decimal("1.1")
        assert result.annual == Decimal("22000.00")
        assert result.quarterly == Decimal("5500.00")

    def test_standard_multiplier(self):
        assert safe_harbor_multiplier(FilingStatus.SINGLE, Decimal("150000")) == Decimal("1.0")
        assert safe_harbor_multiplier(FilingStatus.MFJ, Decimal("80000")) == Decimal("1.0")

    def test_mfs_lower_threshold(self):
        assert safe_harbor_multiplier(FilingStatus.MFS, Decimal("80000")) == Decimal("1.1")

    def test_unknown_prior_agi(self):
        result = compute_safe_harbor_requirement(FilingStatus.SINGLE, Decimal("20000"))
        assert result.multiplier == Decimal("1.0")
        assert result.annual == Decimal("20000.00")


class TestDueDates:
    def test_q4_in_following_january(self):
        dates = quarterly_due_dates(2026)
        assert dates[0] == date(2026, 4, 15)
        assert dates[3] == date(2027, 1, 15)


class TestPenaltyRisk:
    def test_per_quarter_payments_on_track(self):
        result = compute_quarterly_penalty_risk(
            Decimal("20000"),
            Decimal("4000"),
            2026,
            payments_by_quarter=[Decimal("4000"), Decimal("4000")],
            as_of=date(2026, 7, 1),
        )
        q1, q2, q3, q4 = result.quarters
        assert q1.cumulative_required == Decimal("5000.00")
        assert q1.cumulative_paid == Decimal("5000.00")
        assert q2.cumulative_paid == Decimal("10000.00")
        assert not q1.underpaid and not q2.underpaid
        # Not yet due, so a shortfall is not underpayment
        assert not q3.is_due
        assert q3.shortfall == Decimal("4000.00")
        assert not q3.underpaid
        assert result.protected

    def test_nothing_paid(self):
        result = compute_quarterly_penalty_risk(Decimal("20000"), Decimal("0"), 2026)
        assert not result.protected
        assert result.quarters[0].shortfall == Decimal("5000.00")
        assert all(q.underpaid for q in result.quarters)

    def test_withholding_spread_evenly(self):
        result = compute_quarterly_penalty_risk(Decimal("20000"), Decimal("20000"), 2026)
        assert [q.cumulative_withholding for q in result.quarters] == [
            Decimal("5000.00"),
            Decimal("10000.00"),
            Decimal("15000.00"),
            Decimal("20000.00"),
        ]
        assert result.protected

    def test_ytd_spread_over_due_quarters(self):
        result = compute_quarterly_penalty_risk(
            Decimal("20000"),
            Decimal("0"),
            2026,
            payments_ytd=Decimal("9000"),
            as_of=date(2026, 6, 20),
        )
        q1, q2, q3, _ = result.quarters
        assert q1.cumulative_payments == Decimal("4500.00")
        assert q2.cumulative_payments == Decimal("9000.00")
        assert q3.cumulative_payments == Decimal("9000.00")
        assert q2.underpaid
        assert not result.protected
        assert result.notes == [
            "Year-to-date payments were spread evenly across quarters already due."
        ]

    def test_ytd_before_first_due_date(self):
        result = compute_quarterly_penalty_risk(
            Decimal("20000"),
            Decimal("0"),
            2026,
            payments_ytd=Decimal("9000"),
            as_of=date(2026, 1, 1),
        )
        assert result.protected
        assert all(q.cumulative_payments == Decimal("0") for q in result.quarters)
        assert "not allocated" in result.notes[0]

    def test_within_epsilon_is_protected(self):
        result = compute_quarterly_penalty_risk(
            Decimal("20000"),
            Decimal("0"),
            2026,
            payments_by_quarter=[Decimal("4999.99"), Decimal("5000"), Decimal("5000"), Decimal("5000")],
        )
        assert result.protected
