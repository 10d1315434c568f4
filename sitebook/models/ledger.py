"""
Derived Ledger Models

Shapes produced by the ledger engine for the view and export layers.
None of these are stored; they are recomputed from records on every read.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from sitebook.models.records import Money, PaidBy, Partner, PaymentMode


ZERO = Decimal("0")


class LabourStats(BaseModel):
    """Earned/paid/outstanding balance for one labourer."""

    labour_id: str
    name: str
    work_type: str = ""
    daily_wage: Money
    present_days: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    earned: Money = ZERO
    paid: Money = ZERO
    outstanding: Money = Field(
        default=ZERO,
        description="earned - paid; negative means overpaid"
    )


class FundTotals(BaseModel):
    """Project-wide cash position."""

    total_income: Money = ZERO
    total_expense: Money = ZERO
    net_balance: Money = ZERO
    labour_outstanding_total: Money = ZERO

    # Breakdown of the numbers above
    direct_income_total: Money = ZERO
    partner_spend_total: Money = ZERO
    labour_earned_total: Money = ZERO
    labour_paid_total: Money = Field(
        default=ZERO,
        description="Payments matched to a known labourer"
    )


class PartnerContribution(BaseModel):
    """How much one partner has put into the project, and how."""

    partner: Partner
    direct: Money = ZERO
    spent: Money = Field(
        default=ZERO,
        description="Expenses and labour payments paid out of pocket"
    )
    total: Money = ZERO
    share_percent: float = 0.0


class LedgerSummary(BaseModel):
    """Everything the dashboard shows, computed in one pass."""

    labour_stats: list[LabourStats] = Field(default_factory=list)
    totals: FundTotals = Field(default_factory=FundTotals)
    partners: list[PartnerContribution] = Field(default_factory=list)
    budget: Money = ZERO
    budget_remaining: Money = ZERO

    def partner(self, partner: Partner) -> PartnerContribution:
        """Look up one partner's contribution."""
        for contribution in self.partners:
            if contribution.partner == partner:
                return contribution
        raise KeyError(partner)


class HistoryEntryKind(str, Enum):
    """Where a history feed item came from."""
    DIRECT = "direct"
    SPENT_EXPENSE = "spent_expense"
    SPENT_LABOUR = "spent_labour"


class HistoryEntry(BaseModel):
    """
    One line in the merged income feed.

    Only DIRECT entries are Income records; the others point back at an
    Expense or LabourPayment and must be changed there.
    """

    id: str
    date: date
    amount: Money
    source: str
    paid_by: PaidBy
    mode: PaymentMode
    remarks: str = ""
    kind: HistoryEntryKind
    label: str
    origin_id: Optional[str] = None

    @property
    def editable(self) -> bool:
        return self.kind == HistoryEntryKind.DIRECT
