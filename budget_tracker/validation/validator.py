"""
Transaction Draft Validation

DESIGN DECISION: Rules run in a fixed order and the first failure wins.
The user sees one message at a time, always the earliest problem:

1. Amount parses to a positive, finite decimal no larger than MAX_AMOUNT
2. A category is selected
3. A description is given (and fits the store's limit)
4. The date is an ISO calendar date

The identity check comes before all of these but needs the identity
provider, so the workflow runs it.

IMPORTANT: Validation NEVER silently fixes issues. The draft is only
read here, never modified.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from budget_tracker.errors import DraftValidationError
from budget_tracker.models.transaction import (
    MAX_AMOUNT,
    AuthenticatedUser,
    TransactionDraft,
    TransactionRecord,
)


AMOUNT_MESSAGE = "Please enter a valid amount."
CATEGORY_MESSAGE = "Please select a category."
DESCRIPTION_MESSAGE = "Please enter a description."
DATE_MESSAGE = "Please enter a valid date."


def parse_amount(raw: str) -> Optional[Decimal]:
    """
    Parse user-typed amount text.

    Returns None unless the text is a finite decimal greater than zero
    and no larger than MAX_AMOUNT.
    """
    try:
        value = Decimal(raw.strip())
    except (InvalidOperation, AttributeError):
        return None

    if not value.is_finite() or value <= 0 or value > MAX_AMOUNT:
        return None
    return value


def parse_date(raw: str) -> Optional[date]:
    """Parse an ISO calendar date, or None if it isn't one."""
    try:
        return date.fromisoformat(raw.strip())
    except (ValueError, AttributeError):
        return None


class TransactionDraftValidator:
    """
    Turns a draft into a TransactionRecord or raises on the first bad field.
    """

    def __init__(self, max_description_length: Optional[int] = None):
        self._max_description_length = max_description_length

    def _check_amount(self, draft: TransactionDraft) -> Decimal:
        amount = parse_amount(draft.amount)
        if amount is None:
            raise DraftValidationError(AMOUNT_MESSAGE, field="amount")
        return amount

    def _check_category(self, draft: TransactionDraft) -> str:
        category_id = draft.category_id.strip()
        if not category_id:
            raise DraftValidationError(CATEGORY_MESSAGE, field="category_id")
        return category_id

    def _check_description(self, draft: TransactionDraft) -> str:
        description = draft.description.strip()
        if not description:
            raise DraftValidationError(DESCRIPTION_MESSAGE, field="description")
        limit = self._max_description_length
        if limit is not None and len(description) > limit:
            raise DraftValidationError(
                f"Description must be {limit} characters or fewer.",
                field="description",
            )
        return description

    def _check_date(self, draft: TransactionDraft) -> date:
        parsed = parse_date(draft.date)
        if parsed is None:
            raise DraftValidationError(DATE_MESSAGE, field="date")
        return parsed

    def validate(
        self,
        draft: TransactionDraft,
        user: AuthenticatedUser,
    ) -> TransactionRecord:
        """
        Validate a draft for the given user.

        Raises:
            DraftValidationError: On the first rule that fails
        """
        amount = self._check_amount(draft)
        category_id = self._check_category(draft)
        description = self._check_description(draft)
        transaction_date = self._check_date(draft)

        return TransactionRecord(
            user_id=user.id,
            type=draft.type,
            category_id=category_id,
            amount=amount,
            description=description,
            date=transaction_date,
        )
