"""Services package."""

from budget_tracker.services.identity import (
    IdentityError,
    IdentityProviderInterface,
    SessionIdentityProvider,
)
from budget_tracker.services.preferences import PreferencesStore
from budget_tracker.services.storage import (
    AuditStorageInterface,
    BudgetStoreInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStore,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
    InMemoryAuditStorage,
    InMemoryBudgetStore,
    InMemoryTransactionStore,
    NotFoundError,
    StorageError,
    TransactionStoreInterface,
)

__all__ = [
    # Identity
    "IdentityError",
    "IdentityProviderInterface",
    "SessionIdentityProvider",
    # Preferences
    "PreferencesStore",
    # Storage services
    "AuditStorageInterface",
    "BudgetStoreInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsBudgetStore",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStore",
    "InMemoryAuditStorage",
    "InMemoryBudgetStore",
    "InMemoryTransactionStore",
    "NotFoundError",
    "StorageError",
    "TransactionStoreInterface",
]
