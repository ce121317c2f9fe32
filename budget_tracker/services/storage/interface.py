"""
Abstract Storage Interface

DESIGN DECISION: The transaction store is a hosted service we talk to
through a narrow interface. This allows us to:
1. Use Google Sheets (or any hosted backend) in production
2. Use in-memory storage for testing
3. Keep the entry workflow decoupled from storage implementation

The interface is intentionally simple. Each insert is exactly one write
attempt: no batching, no idempotency key, no automatic retry.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from budget_tracker.models.audit import AuditEvent
from budget_tracker.models.budget import Budget
from budget_tracker.models.transaction import (
    Category,
    StoredTransaction,
    TransactionRecord,
    TransactionType,
)


class TransactionStoreInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def insert(self, record: TransactionRecord) -> StoredTransaction:
        """
        Persist one transaction.

        Args:
            record: The validated transaction to insert

        Returns:
            The stored transaction with its assigned id

        Raises:
            StorageError: If the write fails. The message is shown to the user.
        """
        pass

    @abstractmethod
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
        """
        List a user's transactions with optional filters.

        Args:
            user_id: Owner of the transactions
            transaction_type: Filter by income/expense
            category_id: Filter by category
            date_from: Filter transactions on or after this date
            date_to: Filter transactions on or before this date
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Matching transactions, newest date first
        """
        pass

    @abstractmethod
    async def list_categories(
        self,
        user_id: Optional[str] = None,
    ) -> list[Category]:
        """
        List categories available to a user.

        Shared categories (no owner) are always included.
        """
        pass

    @abstractmethod
    async def update(
        self,
        transaction_id: UUID,
        record: TransactionRecord,
    ) -> StoredTransaction:
        """
        Replace the fields of an existing transaction.

        The transaction must belong to record.user_id. Its id and
        created_at are kept.

        Raises:
            NotFoundError: If the user has no transaction with this id
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, transaction_id: UUID, user_id: str) -> None:
        """
        Delete one of a user's transactions.

        Raises:
            NotFoundError: If the user has no transaction with this id
            StorageError: If the write fails
        """
        pass


class BudgetStoreInterface(ABC):
    """
    Abstract interface for budget storage.

    A user has at most one budget per category.
    """

    @abstractmethod
    async def list_budgets(self, user_id: str) -> list[Budget]:
        """List a user's budgets."""
        pass

    @abstractmethod
    async def save_budget(self, budget: Budget) -> Budget:
        """
        Create a budget, or replace the user's budget for the same category.

        A replaced budget keeps its id and created_at.

        Returns:
            The budget as stored
        """
        pass

    @abstractmethod
    async def delete_budget(self, budget_id: UUID, user_id: str) -> None:
        """
        Delete one of a user's budgets.

        Raises:
            NotFoundError: If the user has no budget with this id
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for one submission, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
