"""
Ledger Reconciliation Engine

Reconciles three independently entered record types (direct incomes,
general expenses and labour payments) into one cash position, a
per-labourer wage balance and a per-partner contribution breakdown.

THE CENTRAL RULE: money a named partner pays personally is recorded on
both sides. It is an expense because it was spent, and it is income
because it entered the project. Net balance is therefore the pooled
cash position, independent of who funded what.

Every function here is pure. Nothing is cached; callers recompute from
the full record set on every read.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from sitebook.models.ledger import (
    ZERO,
    FundTotals,
    LabourStats,
    LedgerSummary,
    PartnerContribution,
)
from sitebook.models.records import (
    HALF_DAY_WEIGHT,
    NAMED_PARTNERS,
    STANDARD_DAY_HOURS,
    Attendance,
    AttendanceStatus,
    Expense,
    Income,
    LabourPayment,
    LabourProfile,
    Snapshot,
    as_partner,
    is_partner_funded,
)


def _day_weight(status: AttendanceStatus) -> Decimal:
    if status == AttendanceStatus.PRESENT:
        return Decimal("1")
    if status == AttendanceStatus.HALF_DAY:
        return HALF_DAY_WEIGHT
    return ZERO


def _labour_key(labour_id) -> str:
    # Ids are compared as text so "7" and 7 match
    return str(labour_id)


def _partner_funded_total(records: Iterable) -> Decimal:
    return sum(
        (record.amount for record in records if is_partner_funded(record.paid_by)),
        ZERO,
    )


def group_by_labour(records: Iterable) -> dict[str, list]:
    """Group attendance or payment records by stringified labour id."""
    grouped: dict[str, list] = defaultdict(list)
    for record in records:
        grouped[_labour_key(record.labour_id)].append(record)
    return grouped


def earnings_for(
    profile: LabourProfile,
    attendance: Sequence[Attendance],
    payments: Sequence[LabourPayment],
) -> LabourStats:
    """
    Fold one labourer's own attendance and payments into a balance.

    `attendance` and `payments` must already be filtered to this
    labourer; see `labour_earnings` for the unfiltered form.
    Duplicate attendance for the same day is summed, not deduplicated.
    """
    present_days = sum((_day_weight(a.status) for a in attendance), ZERO)
    overtime_hours = sum((a.overtime_hours for a in attendance), ZERO)

    wage = profile.daily_wage
    earned = present_days * wage + overtime_hours * (wage / STANDARD_DAY_HOURS)
    paid = sum((p.amount for p in payments), ZERO)

    return LabourStats(
        labour_id=_labour_key(profile.id),
        name=profile.name,
        work_type=profile.work_type,
        daily_wage=wage,
        present_days=present_days,
        overtime_hours=overtime_hours,
        earned=earned,
        paid=paid,
        outstanding=earned - paid,
    )


def labour_earnings(
    profile: LabourProfile,
    attendance: Iterable[Attendance],
    payments: Iterable[LabourPayment],
) -> LabourStats:
    """Compute one labourer's stats from the full collections."""
    key = _labour_key(profile.id)
    return earnings_for(
        profile,
        [a for a in attendance if _labour_key(a.labour_id) == key],
        [p for p in payments if _labour_key(p.labour_id) == key],
    )


def labour_stats(
    labours: Iterable[LabourProfile],
    attendance: Iterable[Attendance],
    payments: Iterable[LabourPayment],
) -> list[LabourStats]:
    """
    Stats for every labourer, in profile order.

    Attendance and payments are grouped once, so this runs in
    O(labours + records). Records pointing at a deleted or unknown
    labourer belong to no group that is read, and count for nobody.
    """
    attendance_by_labour = group_by_labour(attendance)
    payments_by_labour = group_by_labour(payments)

    return [
        earnings_for(
            profile,
            attendance_by_labour.get(_labour_key(profile.id), []),
            payments_by_labour.get(_labour_key(profile.id), []),
        )
        for profile in labours
    ]


def fund_totals(
    incomes: Sequence[Income],
    expenses: Sequence[Expense],
    labours: Sequence[LabourProfile],
    attendance: Sequence[Attendance],
    payments: Sequence[LabourPayment],
    stats: Optional[Sequence[LabourStats]] = None,
) -> FundTotals:
    """
    Project-wide totals.

    total_income  = direct incomes + partner-funded expenses
                    + partner-funded labour payments
    total_expense = all expenses + all labour payments
    net_balance   = total_income - total_expense

    The labour figures come from `labour_stats` over the given labours;
    pass `stats` when they have already been computed for the same
    collections.
    """
    if stats is None:
        stats = labour_stats(labours, attendance, payments)

    direct_income = sum((i.amount for i in incomes), ZERO)
    partner_spend = _partner_funded_total(expenses) + _partner_funded_total(payments)

    total_income = direct_income + partner_spend
    total_expense = (
        sum((e.amount for e in expenses), ZERO)
        + sum((p.amount for p in payments), ZERO)
    )

    return FundTotals(
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
        labour_outstanding_total=sum((s.outstanding for s in stats), ZERO),
        direct_income_total=direct_income,
        partner_spend_total=partner_spend,
        labour_earned_total=sum((s.earned for s in stats), ZERO),
        labour_paid_total=sum((s.paid for s in stats), ZERO),
    )


def partner_breakdown(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    payments: Iterable[LabourPayment],
) -> list[PartnerContribution]:
    """
    Direct vs out-of-pocket contribution for each named partner.

    Uses the same predicate as `fund_totals`, so the partners' totals
    add up to total income whenever every income was paid by a partner.
    """
    direct = {partner: ZERO for partner in NAMED_PARTNERS}
    spent = {partner: ZERO for partner in NAMED_PARTNERS}

    for income in incomes:
        partner = as_partner(income.paid_by)
        if partner is not None:
            direct[partner] += income.amount

    for outflow in [*expenses, *payments]:
        partner = as_partner(outflow.paid_by)
        if partner is not None:
            spent[partner] += outflow.amount

    totals = {partner: direct[partner] + spent[partner] for partner in NAMED_PARTNERS}
    grand_total = sum(totals.values(), ZERO)

    return [
        PartnerContribution(
            partner=partner,
            direct=direct[partner],
            spent=spent[partner],
            total=totals[partner],
            share_percent=(
                float(totals[partner] / grand_total * 100) if grand_total else 0.0
            ),
        )
        for partner in NAMED_PARTNERS
    ]


def summarize(snapshot: Snapshot) -> LedgerSummary:
    """
    The single aggregator every view and exporter reads from.

    Computes labour stats once and feeds them into the totals, then
    adds the partner breakdown and the remaining budget.
    """
    stats = labour_stats(snapshot.labours, snapshot.attendance, snapshot.payments)
    totals = fund_totals(
        snapshot.incomes,
        snapshot.expenses,
        snapshot.labours,
        snapshot.attendance,
        snapshot.payments,
        stats=stats,
    )
    partners = partner_breakdown(
        snapshot.incomes,
        snapshot.expenses,
        snapshot.payments,
    )
    budget = snapshot.settings.budget

    return LedgerSummary(
        labour_stats=stats,
        totals=totals,
        partners=partners,
        budget=budget,
        budget_remaining=budget - totals.total_expense,
    )
