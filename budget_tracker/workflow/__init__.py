"""Workflows that act on the signed-in user's transactions and budgets."""

from budget_tracker.workflow.budgets import BudgetManager
from budget_tracker.workflow.transaction_edit import TransactionEditor
from budget_tracker.workflow.transaction_entry import TransactionEntryWorkflow

__all__ = [
    "BudgetManager",
    "TransactionEditor",
    "TransactionEntryWorkflow",
]
