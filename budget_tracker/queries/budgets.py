"""
Budget progress.

Spending against a budget counts the user's expense transactions in the
budget's category whose date falls inside the current period window.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from budget_tracker.models.budget import Budget, BudgetStatus
from budget_tracker.models.transaction import StoredTransaction, TransactionType
from budget_tracker.queries.summary import fetch_all_transactions
from budget_tracker.services.storage import (
    BudgetStoreInterface,
    TransactionStoreInterface,
)


def budget_status(
    budgets: Iterable[Budget],
    transactions: Iterable[StoredTransaction],
    today: date,
) -> list[BudgetStatus]:
    """Spending per budget for the period containing today, by category id."""
    expenses: dict[str, list[StoredTransaction]] = defaultdict(list)
    for tx in transactions:
        if tx.type == TransactionType.EXPENSE:
            expenses[tx.category_id].append(tx)

    statuses = []
    for budget in budgets:
        start, end = budget.period.window(today)
        spent = sum(
            (tx.amount for tx in expenses[budget.category_id] if start <= tx.date <= end),
            Decimal("0"),
        )
        statuses.append(BudgetStatus(
            budget=budget,
            spent=spent,
            period_start=start,
            period_end=end,
        ))

    statuses.sort(key=lambda s: s.budget.category_id)
    return statuses


async def load_budget_status(
    budget_store: BudgetStoreInterface,
    transaction_store: TransactionStoreInterface,
    user_id: str,
    today: date,
) -> list[BudgetStatus]:
    budgets = await budget_store.list_budgets(user_id)
    if not budgets:
        return []

    # Widest window any budget needs
    windows = [b.period.window(today) for b in budgets]
    transactions = await fetch_all_transactions(
        transaction_store,
        user_id=user_id,
        transaction_type=TransactionType.EXPENSE,
        date_from=min(start for start, _ in windows),
        date_to=max(end for _, end in windows),
    )
    return budget_status(budgets, transactions, today)
