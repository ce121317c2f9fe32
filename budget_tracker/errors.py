"""
Errors raised while saving, editing or deleting user data.

Each maps onto one SubmissionStatus. Storage failures use StorageError
from the storage package, which the workflow maps the same way.
"""

from typing import Optional

from budget_tracker.models.transaction import SubmissionResult, SubmissionStatus


AUTH_REQUIRED_MESSAGE = "You must be logged in to add transactions."
STORAGE_FALLBACK_MESSAGE = "Failed to add transaction"
STORAGE_TIMEOUT_MESSAGE = "Timed out while saving the transaction."

UPDATE_FALLBACK_MESSAGE = "Failed to update transaction"
DELETE_FALLBACK_MESSAGE = "Failed to delete transaction"
NOT_FOUND_MESSAGE = "Transaction not found. It may already have been deleted."

BUDGET_AUTH_MESSAGE = "You must be logged in to manage budgets."
BUDGET_FALLBACK_MESSAGE = "Failed to save budget"
BUDGET_DELETE_FALLBACK_MESSAGE = "Failed to delete budget"
BUDGET_NOT_FOUND_MESSAGE = "Budget not found. It may already have been deleted."
BUDGET_TIMEOUT_MESSAGE = "Timed out while saving the budget."


class TransactionEntryError(Exception):
    """Base class for recoverable submission failures."""

    status: SubmissionStatus

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_result(self) -> SubmissionResult:
        return SubmissionResult(status=self.status, message=self.message)


class DraftValidationError(TransactionEntryError):
    """User input failed a validation rule."""

    status = SubmissionStatus.VALIDATION_ERROR

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class AuthError(TransactionEntryError):
    """No authenticated user is available."""

    status = SubmissionStatus.AUTH_ERROR

    def __init__(
        self,
        message: str = AUTH_REQUIRED_MESSAGE,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.reason = reason


class SaveFailedError(TransactionEntryError):
    """A store did not accept a write."""

    status = SubmissionStatus.STORAGE_ERROR

    def __init__(self, message: str, error_type: Optional[str] = None):
        super().__init__(message or STORAGE_FALLBACK_MESSAGE)
        self.error_type = error_type
