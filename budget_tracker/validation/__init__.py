"""Validation package."""

from budget_tracker.validation.validator import (
    AMOUNT_MESSAGE,
    CATEGORY_MESSAGE,
    DATE_MESSAGE,
    DESCRIPTION_MESSAGE,
    TransactionDraftValidator,
    parse_amount,
    parse_date,
)

__all__ = [
    "AMOUNT_MESSAGE",
    "CATEGORY_MESSAGE",
    "DATE_MESSAGE",
    "DESCRIPTION_MESSAGE",
    "TransactionDraftValidator",
    "parse_amount",
    "parse_date",
]
