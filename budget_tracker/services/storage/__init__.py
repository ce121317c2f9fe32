"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the hosted backend; the in-memory store backs tests and
local runs without credentials.
"""

from budget_tracker.services.storage.interface import (
    AuditStorageInterface,
    BudgetStoreInterface,
    ConnectionError,
    NotFoundError,
    StorageError,
    TransactionStoreInterface,
)
from budget_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryBudgetStore,
    InMemoryTransactionStore,
)
from budget_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStore,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BudgetStoreInterface",
    "TransactionStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryBudgetStore",
    "InMemoryTransactionStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsBudgetStore",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStore",
]
