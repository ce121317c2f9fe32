"""
Core Data Models for Budget Tracker

These models define the schemas for all data flowing through the
transaction-entry workflow. They are designed to:
1. Keep user input (the draft) separate from validated data (the record)
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: The draft is deliberately loose (amount is the raw text
the user typed). Only a TransactionRecord, built after every rule has
passed, is ever handed to a store.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money for a transaction."""
    EXPENSE = "expense"
    INCOME = "income"


class CategoryType(str, Enum):
    """
    Which transaction types a category can be used with.

    BOTH categories show up for income and expense alike.
    """
    EXPENSE = "expense"
    INCOME = "income"
    BOTH = "both"


class SubmissionStatus(str, Enum):
    """Outcome of a single submission attempt."""
    OK = "ok"
    VALIDATION_ERROR = "validation_error"
    AUTH_ERROR = "auth_error"
    STORAGE_ERROR = "storage_error"


class WorkflowState(str, Enum):
    """
    Observable state of the transaction-entry form.

    IDLE after a successful submission means the draft was reset.
    """
    IDLE = "idle"
    SUBMITTING = "submitting"
    ERROR = "error"


# Largest amount a single transaction or budget may carry
MAX_AMOUNT = Decimal("999999999999.99")


def today_iso() -> str:
    """Today's date as an ISO calendar date string."""
    return dt.date.today().isoformat()


# =============================================================================
# DRAFT - what the user is typing
# =============================================================================

class TransactionDraft(BaseModel):
    """
    The not-yet-persisted transaction being composed by the user.

    All fields hold raw form values. Nothing here is trusted until the
    workflow validates it and builds a TransactionRecord.
    """
    model_config = ConfigDict(validate_assignment=True)

    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="Expense or income"
    )
    category_id: str = Field(
        default="",
        description="Selected category identifier (empty until chosen)"
    )
    amount: str = Field(
        default="",
        description="Amount exactly as typed by the user"
    )
    description: str = Field(
        default="",
        description="What the transaction was for"
    )
    date: str = Field(
        default_factory=today_iso,
        description="ISO calendar date of the transaction"
    )

    @field_validator('amount', 'category_id', 'description', 'date', mode='before')
    @classmethod
    def coerce_to_text(cls, v: Any) -> Any:
        """Form widgets may hand back numbers or dates; keep them as text."""
        if v is None:
            return ""
        if isinstance(v, dt.date):
            return v.isoformat()
        if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
            return str(v)
        return v


# =============================================================================
# RECORDS - what the store receives and returns
# =============================================================================

class TransactionRecord(BaseModel):
    """
    A validated transaction ready to be inserted.

    CRITICAL: Only records are passed to a TransactionStore.
    Field set is exactly what the store expects, nothing more.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    user_id: str = Field(
        ...,
        min_length=1,
        description="Identifier of the authenticated owner"
    )
    type: TransactionType
    category_id: str = Field(
        ...,
        min_length=1,
        description="Category identifier"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        le=MAX_AMOUNT,
        description="Positive amount in the user's currency"
    )
    description: str = Field(
        default="",
        description="Free-text description"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )

    def to_payload(self) -> dict[str, Any]:
        """
        Insert payload as sent to a hosted backend.

        Amount goes out as a number and date as an ISO string.
        """
        return {
            "user_id": self.user_id,
            "type": self.type.value,
            "category_id": self.category_id,
            "amount": float(self.amount),
            "description": self.description,
            "date": self.date.isoformat(),
        }


class StoredTransaction(TransactionRecord):
    """A transaction as returned by a store after it was persisted."""

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    created_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc),
        description="When the store accepted the transaction (UTC)"
    )

    @classmethod
    def from_record(cls, record: TransactionRecord, **extra: Any) -> "StoredTransaction":
        return cls(**record.model_dump(), **extra)

    @property
    def signed_amount(self) -> Decimal:
        """Amount with expenses negative, for running balances."""
        if self.type == TransactionType.EXPENSE:
            return -self.amount
        return self.amount


# =============================================================================
# SUPPORTING MODELS
# =============================================================================

class Category(BaseModel):
    """
    A transaction category.

    Categories without a user_id are shared defaults.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    type: CategoryType = CategoryType.BOTH
    icon: Optional[str] = None
    user_id: Optional[str] = None

    def applies_to(self, transaction_type: TransactionType) -> bool:
        """Whether this category can be picked for the given transaction type."""
        return self.type == CategoryType.BOTH or self.type.value == transaction_type.value


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="groceries", name="Groceries", type=CategoryType.EXPENSE, icon="🛒"),
    Category(id="utilities", name="Utilities", type=CategoryType.EXPENSE, icon="💡"),
    Category(id="entertainment", name="Entertainment", type=CategoryType.EXPENSE, icon="🎬"),
    Category(id="rent", name="Rent", type=CategoryType.EXPENSE, icon="🏠"),
    Category(id="transport", name="Transport", type=CategoryType.EXPENSE, icon="🚌"),
    Category(id="salary", name="Salary", type=CategoryType.INCOME, icon="💼"),
    Category(id="freelance", name="Freelance", type=CategoryType.INCOME, icon="🧾"),
    Category(id="other", name="Other", type=CategoryType.BOTH, icon="📦"),
)


class AuthenticatedUser(BaseModel):
    """The user an identity provider vouches for."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    email: Optional[str] = None
    name: Optional[str] = None


class SubmissionResult(BaseModel):
    """
    Result of submitting a draft.

    Exactly one of ok / validation_error / auth_error / storage_error.
    Failures always carry a user-facing message.
    """
    model_config = ConfigDict(frozen=True)

    status: SubmissionStatus
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "SubmissionResult":
        return cls(status=SubmissionStatus.OK)

    @classmethod
    def validation_error(cls, message: str) -> "SubmissionResult":
        return cls(status=SubmissionStatus.VALIDATION_ERROR, message=message)

    @classmethod
    def auth_error(cls, message: str) -> "SubmissionResult":
        return cls(status=SubmissionStatus.AUTH_ERROR, message=message)

    @classmethod
    def storage_error(cls, message: str) -> "SubmissionResult":
        return cls(status=SubmissionStatus.STORAGE_ERROR, message=message)

    @property
    def is_ok(self) -> bool:
        return self.status == SubmissionStatus.OK
