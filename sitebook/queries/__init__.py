"""Read-side queries over the record store."""

from sitebook.queries.history import (
    DELETE_REFUSED_MESSAGE,
    EDIT_REFUSED_MESSAGE,
    DerivedEntryError,
    ensure_editable,
    history_totals,
    merged_history,
    search_history,
)

__all__ = [
    "DELETE_REFUSED_MESSAGE",
    "EDIT_REFUSED_MESSAGE",
    "DerivedEntryError",
    "ensure_editable",
    "history_totals",
    "merged_history",
    "search_history",
]
