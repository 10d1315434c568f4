"""Ledger reconciliation package."""

from sitebook.ledger.engine import (
    earnings_for,
    fund_totals,
    group_by_labour,
    labour_earnings,
    labour_stats,
    partner_breakdown,
    summarize,
)

__all__ = [
    "earnings_for",
    "fund_totals",
    "group_by_labour",
    "labour_earnings",
    "labour_stats",
    "partner_breakdown",
    "summarize",
]
