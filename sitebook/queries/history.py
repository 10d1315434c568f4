"""
Merged Transaction History

The income view shows one feed built from three collections:
- Direct incomes ("Direct Fund")
- Expenses a partner paid personally ("Personal Spend")
- Labour payments a partner paid personally ("Personal Spend")

DESIGN DECISION: The feed is derived, never stored. Only the direct
entries are Income records. Editing or deleting a derived entry from
here is refused with guidance to the tab that owns it, so the feed
can never drift from its sources.
"""

from decimal import Decimal
from typing import Iterable, Optional

from sitebook.models.ledger import ZERO, HistoryEntry, HistoryEntryKind
from sitebook.models.records import (
    Expense,
    Income,
    LabourPayment,
    is_partner_funded,
)
from sitebook.services.export.exporter import format_amount


DIRECT_LABEL = "Direct Fund"
PERSONAL_SPEND_LABEL = "Personal Spend"
OUT_OF_POCKET_SOURCE = "Out-of-pocket"

EDIT_REFUSED_MESSAGE = (
    "Note: This transaction was recorded via Expenses/Labour "
    "and must be edited there."
)
DELETE_REFUSED_MESSAGE = (
    "Please delete personal spending from the Expenses/Labour tab."
)


class DerivedEntryError(Exception):
    """An edit or delete was attempted on a derived history entry."""

    def __init__(self, entry: HistoryEntry, message: str):
        self.entry = entry
        super().__init__(message)


def _direct_entry(income: Income) -> HistoryEntry:
    return HistoryEntry(
        id=income.id,
        date=income.date,
        amount=income.amount,
        source=income.source.value,
        paid_by=income.paid_by,
        mode=income.mode,
        remarks=income.remarks,
        kind=HistoryEntryKind.DIRECT,
        label=DIRECT_LABEL,
        origin_id=income.id,
    )


def _expense_entry(expense: Expense) -> HistoryEntry:
    return HistoryEntry(
        id=expense.id,
        date=expense.date,
        amount=expense.amount,
        source=OUT_OF_POCKET_SOURCE,
        paid_by=expense.paid_by,
        mode=expense.mode,
        remarks=f"Spent on: {expense.paid_to} ({expense.category.value})",
        kind=HistoryEntryKind.SPENT_EXPENSE,
        label=PERSONAL_SPEND_LABEL,
        origin_id=expense.id,
    )


def _payment_entry(payment: LabourPayment) -> HistoryEntry:
    return HistoryEntry(
        id=payment.id,
        date=payment.date,
        amount=payment.amount,
        source=OUT_OF_POCKET_SOURCE,
        paid_by=payment.paid_by,
        mode=payment.mode,
        remarks=f"Labour Payment ({payment.payment_type.value})",
        kind=HistoryEntryKind.SPENT_LABOUR,
        label=PERSONAL_SPEND_LABEL,
        origin_id=payment.id,
    )


def merged_history(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    payments: Iterable[LabourPayment],
) -> list[HistoryEntry]:
    """
    Build the feed, newest first.

    Entries on the same date keep their build order: direct incomes,
    then expenses, then labour payments, each in source order.
    """
    entries = [_direct_entry(i) for i in incomes]
    entries += [_expense_entry(e) for e in expenses if is_partner_funded(e.paid_by)]
    entries += [_payment_entry(p) for p in payments if is_partner_funded(p.paid_by)]

    # sort() is stable, so ties keep the order above
    entries.sort(key=lambda entry: entry.date, reverse=True)
    return entries


def search_history(
    entries: Iterable[HistoryEntry],
    term: Optional[str],
) -> list[HistoryEntry]:
    """
    Filter the feed by a free-text term.

    Matches paid-by and remarks case-insensitively, and the amount as
    a substring of its plain rendering ("5000" matches "500").
    """
    entries = list(entries)
    if not term or not term.strip():
        return entries

    needle = term.strip().lower()
    return [
        entry for entry in entries
        if needle in entry.paid_by.value.lower()
        or needle in entry.remarks.lower()
        or needle in format_amount(entry.amount)
    ]


def history_totals(entries: Iterable[HistoryEntry]) -> tuple[Decimal, Decimal]:
    """Return (direct_total, personal_spend_total) for the given entries."""
    direct = ZERO
    spent = ZERO
    for entry in entries:
        if entry.editable:
            direct += entry.amount
        else:
            spent += entry.amount
    return direct, spent


def ensure_editable(entry: HistoryEntry, action: str = "edit") -> None:
    """
    Refuse to edit or delete a derived entry.

    Raises:
        DerivedEntryError: If the entry is not a direct income
    """
    if entry.editable:
        return
    message = DELETE_REFUSED_MESSAGE if action == "delete" else EDIT_REFUSED_MESSAGE
    raise DerivedEntryError(entry, message)
