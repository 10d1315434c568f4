"""
Tests for the ledger reconciliation engine.

Every figure is checked against hand-computed values; see the
site_snapshot fixture for the numbers.
"""

import pytest
from datetime import date
from decimal import Decimal

from sitebook.ledger import (
    fund_totals,
    labour_earnings,
    labour_stats,
    partner_breakdown,
    summarize,
)
from sitebook.models import (
    Attendance,
    AttendanceStatus,
    Expense,
    FundingPool,
    Income,
    LabourPayment,
    LabourProfile,
    Partner,
    ProjectSettings,
    Snapshot,
)


def _worker(wage="800", labour_id="lab_1"):
    return LabourProfile(id=labour_id, name="Worker", daily_wage=Decimal(wage))


def _mark(status, labour_id="lab_1", overtime="0", day=1):
    return Attendance(
        labour_id=labour_id,
        date=date(2024, 3, day),
        status=status,
        overtime_hours=Decimal(overtime),
    )


def _pay(amount, labour_id="lab_1", paid_by=FundingPool.PROJECT_BALANCE):
    return LabourPayment(
        labour_id=labour_id,
        date=date(2024, 3, 1),
        amount=Decimal(amount),
        paid_by=paid_by,
    )


class TestLabourEarnings:
    """Tests for the per-labourer wage balance."""

    def test_overtime_is_paid_at_one_eighth_of_daily_wage(self):
        """800/day, one Present day with 4 OT hours earns 1200."""
        stats = labour_earnings(
            _worker("800"),
            [_mark(AttendanceStatus.PRESENT, overtime="4")],
            [],
        )
        assert stats.present_days == Decimal("1")
        assert stats.overtime_hours == Decimal("4")
        assert stats.earned == Decimal("1200")

    def test_two_half_days_equal_one_full_day(self):
        stats = labour_earnings(
            _worker("800"),
            [_mark(AttendanceStatus.HALF_DAY, day=1), _mark(AttendanceStatus.HALF_DAY, day=2)],
            [],
        )
        assert stats.present_days == Decimal("1")
        assert stats.earned == Decimal("800")

    def test_absent_earns_nothing_but_overtime_still_counts(self):
        stats = labour_earnings(
            _worker("800"),
            [_mark(AttendanceStatus.ABSENT, overtime="2")],
            [],
        )
        assert stats.present_days == Decimal("0")
        assert stats.earned == Decimal("200")

    def test_overpayment_gives_negative_outstanding(self):
        """Outstanding is not clamped at zero."""
        stats = labour_earnings(
            _worker("800"),
            [_mark(AttendanceStatus.PRESENT)],
            [_pay("1000")],
        )
        assert stats.outstanding == Decimal("-200")

    def test_duplicate_attendance_for_same_day_is_summed(self):
        stats = labour_earnings(
            _worker("500"),
            [_mark(AttendanceStatus.PRESENT, day=1), _mark(AttendanceStatus.PRESENT, day=1)],
            [],
        )
        assert stats.present_days == Decimal("2")
        assert stats.earned == Decimal("1000")

    def test_ids_match_as_text(self):
        """A numeric labour id in old data still matches its profile."""
        profile = LabourProfile(id=7, name="Old record", daily_wage=Decimal("400"))
        attendance = Attendance(labour_id=7, date=date(2024, 1, 1))
        assert profile.id == "7"
        assert labour_earnings(profile, [attendance], []).earned == Decimal("400")

    def test_records_for_other_workers_are_ignored(self):
        stats = labour_earnings(
            _worker("800", "lab_1"),
            [_mark(AttendanceStatus.PRESENT, labour_id="lab_2")],
            [_pay("300", labour_id="lab_2")],
        )
        assert stats.earned == Decimal("0")
        assert stats.paid == Decimal("0")

    def test_labour_stats_keeps_profile_order(self, site_snapshot):
        stats = labour_stats(site_snapshot.labours, site_snapshot.attendance, site_snapshot.payments)
        assert [s.name for s in stats] == ["Ramesh", "Suresh"]

        ramesh, suresh = stats
        assert ramesh.present_days == Decimal("2.5")
        assert ramesh.earned == Decimal("2400")
        assert ramesh.paid == Decimal("1000")
        assert ramesh.outstanding == Decimal("1400")
        assert suresh.outstanding == Decimal("0")

    def test_orphan_payment_counts_for_nobody(self):
        """A payment for a deleted labourer never raises or leaks."""
        stats = labour_stats(
            [_worker("800", "lab_1")],
            [_mark(AttendanceStatus.PRESENT)],
            [_pay("5000", labour_id="lab_deleted")],
        )
        assert len(stats) == 1
        assert stats[0].paid == Decimal("0")
        assert stats[0].outstanding == Decimal("800")


class TestFundTotals:
    """Tests for project-wide totals and the implicit income rule."""

    def test_zero_state(self):
        totals = fund_totals([], [], [], [], [])
        assert totals.total_income == 0
        assert totals.total_expense == 0
        assert totals.net_balance == 0
        assert totals.labour_outstanding_total == 0

    def test_partner_spending_is_income_and_expense(self):
        incomes = [Income(date=date(2024, 3, 1), amount=Decimal("10000"))]
        expenses = [
            Expense(date=date(2024, 3, 1), amount=Decimal("2000"), paid_by=Partner.DR_SALIK),
            Expense(date=date(2024, 3, 1), amount=Decimal("3000"), paid_by=FundingPool.PROJECT_BALANCE),
        ]
        payments = [_pay("500", paid_by=Partner.MASTER_MUJAHIR)]

        totals = fund_totals(incomes, expenses, [], [], payments)

        assert totals.total_income == Decimal("12500")
        assert totals.total_expense == Decimal("5500")
        assert totals.net_balance == Decimal("7000")
        assert totals.direct_income_total == Decimal("10000")
        assert totals.partner_spend_total == Decimal("2500")

    def test_partner_paid_outflow_does_not_move_net_balance(self):
        """Personal spending adds to both sides, so net balance is unchanged."""
        incomes = [Income(date=date(2024, 3, 1), amount=Decimal("1000"))]
        before = fund_totals(incomes, [], [], [], [])
        after = fund_totals(
            incomes,
            [Expense(date=date(2024, 3, 2), amount=Decimal("400"), paid_by=Partner.MASTER_MUJAHIR)],
            [],
            [],
            [],
        )
        assert after.net_balance == before.net_balance

    def test_other_pool_is_not_a_partner(self):
        expenses = [Expense(date=date(2024, 3, 1), amount=Decimal("100"), paid_by="Other")]
        totals = fund_totals([], expenses, [], [], [])
        assert totals.total_income == 0
        assert totals.net_balance == Decimal("-100")

    def test_orphan_payment_still_counts_as_expense(self):
        totals = fund_totals([], [], [], [], [_pay("700", labour_id="lab_gone")])
        assert totals.total_expense == Decimal("700")

    def test_labour_figures_are_computed_from_the_records(self, site_snapshot):
        totals = fund_totals(
            site_snapshot.incomes,
            site_snapshot.expenses,
            site_snapshot.labours,
            site_snapshot.attendance,
            site_snapshot.payments,
        )
        assert totals.labour_outstanding_total == Decimal("1400")
        assert totals.labour_earned_total == Decimal("3000")
        assert totals.labour_paid_total == Decimal("1600")

    def test_precomputed_stats_give_the_same_totals(self, site_snapshot):
        s = site_snapshot
        stats = labour_stats(s.labours, s.attendance, s.payments)
        with_stats = fund_totals(s.incomes, s.expenses, s.labours, s.attendance, s.payments, stats=stats)
        assert with_stats == fund_totals(s.incomes, s.expenses, s.labours, s.attendance, s.payments)


class TestPartnerBreakdown:
    """Tests for per-partner direct vs out-of-pocket contributions."""

    def test_every_named_partner_is_listed_in_order(self):
        breakdown = partner_breakdown([], [], [])
        assert [c.partner for c in breakdown] == [Partner.MASTER_MUJAHIR, Partner.DR_SALIK]

    def test_zero_grand_total_gives_zero_share(self):
        """No NaN when nobody has contributed."""
        expenses = [Expense(date=date(2024, 3, 1), amount=Decimal("900"))]
        for contribution in partner_breakdown([], expenses, []):
            assert contribution.total == 0
            assert contribution.share_percent == 0.0

    def test_partner_totals_sum_to_total_income(self, site_snapshot):
        breakdown = partner_breakdown(site_snapshot.incomes, site_snapshot.expenses, site_snapshot.payments)
        totals = fund_totals(site_snapshot.incomes, site_snapshot.expenses, [], [], site_snapshot.payments)

        assert sum(c.total for c in breakdown) == totals.total_income
        assert sum(c.share_percent for c in breakdown) == pytest.approx(100.0)

    def test_direct_and_spent_are_split(self, site_snapshot):
        mujahir, salik = partner_breakdown(
            site_snapshot.incomes, site_snapshot.expenses, site_snapshot.payments
        )
        assert mujahir.direct == Decimal("100000")
        assert mujahir.spent == Decimal("1000")
        assert mujahir.total == Decimal("101000")
        assert salik.direct == Decimal("50000")
        assert salik.spent == Decimal("2000")
        assert mujahir.share_percent == pytest.approx(101000 / 153000 * 100)

    def test_pool_funded_income_is_not_attributed(self):
        incomes = [Income(date=date(2024, 3, 1), amount=Decimal("500"), paid_by=FundingPool.OTHER)]
        breakdown = partner_breakdown(incomes, [], [])
        assert all(c.total == 0 for c in breakdown)


class TestSummarize:
    """Tests for the single aggregate every view reads."""

    def test_zero_state(self):
        summary = summarize(Snapshot())
        assert summary.labour_stats == []
        assert summary.totals.total_income == 0
        assert summary.totals.net_balance == 0
        assert all(c.share_percent == 0.0 for c in summary.partners)

    def test_site_snapshot(self, site_snapshot):
        summary = summarize(site_snapshot)
        assert summary.totals.total_income == Decimal("153000")
        assert summary.totals.total_expense == Decimal("33600")
        assert summary.totals.net_balance == Decimal("119400")
        assert summary.totals.labour_outstanding_total == Decimal("1400")
        assert summary.partner(Partner.DR_SALIK).total == Decimal("52000")

    def test_budget_remaining(self, site_snapshot):
        site_snapshot.settings = ProjectSettings(budget=Decimal("500000"))
        summary = summarize(site_snapshot)
        assert summary.budget == Decimal("500000")
        assert summary.budget_remaining == Decimal("466400")

    def test_summary_json_uses_plain_numbers(self, site_snapshot):
        dumped = summarize(site_snapshot).model_dump(mode="json")
        assert dumped["totals"]["total_income"] == 153000
        assert isinstance(dumped["totals"]["total_income"], int)
