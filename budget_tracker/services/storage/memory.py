"""
In-Memory Storage Implementation

Used by the test suite and by the front end when no hosted backend is
configured. Data lives only as long as the process.
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from budget_tracker.models.audit import AuditEvent
from budget_tracker.models.budget import Budget
from budget_tracker.models.transaction import (
    DEFAULT_CATEGORIES,
    Category,
    StoredTransaction,
    TransactionRecord,
    TransactionType,
)
from budget_tracker.services.storage.interface import (
    AuditStorageInterface,
    BudgetStoreInterface,
    NotFoundError,
    StorageError,
    TransactionStoreInterface,
)


def filter_transactions(
    transactions: Iterable[StoredTransaction],
    user_id: str,
    transaction_type: Optional[TransactionType] = None,
    category_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = 100,
    offset: int = 0,
) -> list[StoredTransaction]:
    """Apply the list_transactions filters, ordering and pagination."""
    matches = []
    for tx in transactions:
        if tx.user_id != user_id:
            continue
        if transaction_type and tx.type != transaction_type:
            continue
        if category_id and tx.category_id != category_id:
            continue
        if date_from and tx.date < date_from:
            continue
        if date_to and tx.date > date_to:
            continue
        matches.append(tx)

    # Newest first; created_at breaks ties between same-day entries
    matches.sort(key=lambda t: (t.date, t.created_at), reverse=True)

    return matches[offset:offset + limit]


class InMemoryTransactionStore(TransactionStoreInterface):
    """
    Dict-backed transaction store.

    Set `fail_with` to make the next inserts raise, which is how tests
    exercise the storage-error path.
    """

    def __init__(
        self,
        categories: Optional[Iterable[Category]] = None,
        fail_with: Optional[Exception] = None,
    ):
        self._transactions: dict[UUID, StoredTransaction] = {}
        self._categories: list[Category] = list(
            DEFAULT_CATEGORIES if categories is None else categories
        )
        self.fail_with = fail_with
        self.insert_calls: list[TransactionRecord] = []

    async def insert(self, record: TransactionRecord) -> StoredTransaction:
        self.insert_calls.append(record)
        if self.fail_with is not None:
            raise self.fail_with

        stored = StoredTransaction.from_record(record)
        self._transactions[stored.id] = stored
        return stored

    async def list_transactions(
        self,
        user_id: str,
        transaction_type: Optional[TransactionType] = None,
        category_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StoredTransaction]:
        return filter_transactions(
            self._transactions.values(),
            user_id=user_id,
            transaction_type=transaction_type,
            category_id=category_id,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
            offset=offset,
        )

    async def list_categories(
        self,
        user_id: Optional[str] = None,
    ) -> list[Category]:
        return [
            cat for cat in self._categories
            if cat.user_id is None or cat.user_id == user_id
        ]

    def _owned(self, transaction_id: UUID, user_id: str) -> StoredTransaction:
        tx = self._transactions.get(transaction_id)
        if tx is None or tx.user_id != user_id:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return tx

    async def update(
        self,
        transaction_id: UUID,
        record: TransactionRecord,
    ) -> StoredTransaction:
        if self.fail_with is not None:
            raise self.fail_with
        existing = self._owned(transaction_id, record.user_id)
        updated = StoredTransaction.from_record(
            record,
            id=existing.id,
            created_at=existing.created_at,
        )
        self._transactions[transaction_id] = updated
        return updated

    async def delete(self, transaction_id: UUID, user_id: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self._owned(transaction_id, user_id)
        del self._transactions[transaction_id]

    def add_category(self, category: Category) -> None:
        if any(cat.id == category.id for cat in self._categories):
            raise StorageError(f"Category already exists: {category.id}")
        self._categories.append(category)

    def __len__(self) -> int:
        return len(self._transactions)


class InMemoryBudgetStore(BudgetStoreInterface):
    """Dict-backed budget store."""

    def __init__(self):
        self._budgets: dict[UUID, Budget] = {}

    async def list_budgets(self, user_id: str) -> list[Budget]:
        return [b for b in self._budgets.values() if b.user_id == user_id]

    async def save_budget(self, budget: Budget) -> Budget:
        existing = next(
            (
                b for b in self._budgets.values()
                if b.user_id == budget.user_id and b.category_id == budget.category_id
            ),
            None,
        )
        if existing is not None:
            del self._budgets[existing.id]
            budget = budget.model_copy(
                update={"id": existing.id, "created_at": existing.created_at}
            )
        self._budgets[budget.id] = budget
        return budget

    async def delete_budget(self, budget_id: UUID, user_id: str) -> None:
        budget = self._budgets.get(budget_id)
        if budget is None or budget.user_id != user_id:
            raise NotFoundError(f"Budget not found: {budget_id}")
        del self._budgets[budget_id]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
