"""Query package."""

from budget_tracker.queries.budgets import budget_status, load_budget_status
from budget_tracker.queries.summary import (
    CategoryTotal,
    TransactionSummary,
    fetch_all_transactions,
    load_summary,
    summarize_transactions,
)

__all__ = [
    "CategoryTotal",
    "TransactionSummary",
    "budget_status",
    "fetch_all_transactions",
    "load_budget_status",
    "load_summary",
    "summarize_transactions",
]
