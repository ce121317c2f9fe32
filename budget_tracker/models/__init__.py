"""
Data Models Package

This package contains all Pydantic models used in the Budget Tracker.
All data flowing through the system must conform to these schemas.
"""

from budget_tracker.models.transaction import (
    DEFAULT_CATEGORIES,
    MAX_AMOUNT,
    AuthenticatedUser,
    Category,
    CategoryType,
    StoredTransaction,
    SubmissionResult,
    SubmissionStatus,
    TransactionDraft,
    TransactionRecord,
    TransactionType,
    WorkflowState,
    today_iso,
)
from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from budget_tracker.models.budget import (
    Budget,
    BudgetPeriod,
    BudgetStatus,
)
from budget_tracker.models.preferences import (
    Theme,
    UserPreferences,
    resolve_dark_mode,
)

__all__ = [
    # Transaction models
    "DEFAULT_CATEGORIES",
    "MAX_AMOUNT",
    "AuthenticatedUser",
    "Category",
    "CategoryType",
    "StoredTransaction",
    "SubmissionResult",
    "SubmissionStatus",
    "TransactionDraft",
    "TransactionRecord",
    "TransactionType",
    "WorkflowState",
    "today_iso",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Budgets
    "Budget",
    "BudgetPeriod",
    "BudgetStatus",
    # Preferences
    "Theme",
    "UserPreferences",
    "resolve_dark_mode",
]
