"""
Transaction Summaries

DESIGN DECISION: Totals are computed from stored transactions only.
Nothing is estimated or carried over; an empty list gives zero totals.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from budget_tracker.models.transaction import StoredTransaction, TransactionType
from budget_tracker.services.storage import TransactionStoreInterface


class CategoryTotal(BaseModel):
    category_id: str
    total: Decimal
    count: int = 0


class TransactionSummary(BaseModel):
    """Totals shown above the transaction list."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    transaction_count: int = 0
    expenses_by_category: list[CategoryTotal] = Field(
        default_factory=list,
        description="Expense totals per category, largest first"
    )

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses


def summarize_transactions(
    transactions: Iterable[StoredTransaction],
) -> TransactionSummary:
    income = Decimal("0")
    expenses = Decimal("0")
    count = 0
    per_category: dict[str, Decimal] = defaultdict(Decimal)
    per_category_count: dict[str, int] = defaultdict(int)

    for tx in transactions:
        count += 1
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        else:
            expenses += tx.amount
            per_category[tx.category_id] += tx.amount
            per_category_count[tx.category_id] += 1

    by_category = [
        CategoryTotal(
            category_id=category_id,
            total=total,
            count=per_category_count[category_id],
        )
        for category_id, total in per_category.items()
    ]
    # Largest first, ties by id so the order is stable
    by_category.sort(key=lambda c: (-c.total, c.category_id))

    return TransactionSummary(
        total_income=income,
        total_expenses=expenses,
        transaction_count=count,
        expenses_by_category=by_category,
    )


async def fetch_all_transactions(
    store: TransactionStoreInterface,
    user_id: str,
    transaction_type: Optional[TransactionType] = None,
    category_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page_size: int = 500,
) -> list[StoredTransaction]:
    """Fetch every matching transaction, one page at a time."""
    transactions: list[StoredTransaction] = []
    offset = 0
    while True:
        page = await store.list_transactions(
            user_id=user_id,
            transaction_type=transaction_type,
            category_id=category_id,
            date_from=date_from,
            date_to=date_to,
            limit=page_size,
            offset=offset,
        )
        transactions.extend(page)
        if len(page) < page_size:
            return transactions
        offset += page_size


async def load_summary(
    store: TransactionStoreInterface,
    user_id: str,
    transaction_type: Optional[TransactionType] = None,
    category_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page_size: int = 500,
) -> TransactionSummary:
    """Summarize all of a user's transactions matching the filters."""
    transactions = await fetch_all_transactions(
        store,
        user_id=user_id,
        transaction_type=transaction_type,
        category_id=category_id,
        date_from=date_from,
        date_to=date_to,
        page_size=page_size,
    )
    return summarize_transactions(transactions)
