"""
Budget management: create, replace and delete per-category spending limits.

Rules run in order, first failure wins: signed in, category selected,
amount valid, period known. Saving a budget for a category that already
has one replaces it.
"""

from typing import Optional, Union
from uuid import UUID

import structlog

from budget_tracker.audit import AuditLogger, create_correlation_id
from budget_tracker.errors import (
    BUDGET_AUTH_MESSAGE,
    BUDGET_DELETE_FALLBACK_MESSAGE,
    BUDGET_FALLBACK_MESSAGE,
    BUDGET_NOT_FOUND_MESSAGE,
    BUDGET_TIMEOUT_MESSAGE,
    DraftValidationError,
    TransactionEntryError,
)
from budget_tracker.models.budget import Budget, BudgetPeriod
from budget_tracker.models.transaction import SubmissionResult
from budget_tracker.services.identity import IdentityProviderInterface
from budget_tracker.services.storage import BudgetStoreInterface
from budget_tracker.validation.validator import (
    AMOUNT_MESSAGE,
    CATEGORY_MESSAGE,
    parse_amount,
)
from budget_tracker.workflow.base import AuthenticatedOperation


logger = structlog.get_logger(__name__)

PERIOD_MESSAGE = "Please select a budget period."


class BudgetManager(AuthenticatedOperation):
    """Saves and deletes the signed-in user's budgets."""

    def __init__(
        self,
        identity_provider: IdentityProviderInterface,
        budget_store: BudgetStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(identity_provider, audit_logger, timeout_seconds)
        self._store = budget_store

    async def save(
        self,
        category_id: str,
        amount: str,
        period: Union[BudgetPeriod, str] = BudgetPeriod.MONTHLY,
    ) -> SubmissionResult:
        """
        Create or replace the budget for a category.

        Args:
            category_id: Category the limit applies to
            amount: Limit as typed by the user
            period: weekly, monthly or yearly
        """
        correlation_id = create_correlation_id()

        try:
            user = await self._current_user(correlation_id, message=BUDGET_AUTH_MESSAGE)

            category_id = (category_id or "").strip()
            if not category_id:
                raise DraftValidationError(CATEGORY_MESSAGE, field="category_id")
            limit = parse_amount(amount)
            if limit is None:
                raise DraftValidationError(AMOUNT_MESSAGE, field="amount")

            try:
                budget_period = BudgetPeriod(period)
            except ValueError:
                raise DraftValidationError(PERIOD_MESSAGE, field="period")

            budget = Budget(
                user_id=user.id,
                category_id=category_id,
                amount=limit,
                period=budget_period,
            )
            saved = await self._call_store(
                self._store.save_budget(budget),
                correlation_id=correlation_id,
                user_id=user.id,
                fallback=BUDGET_FALLBACK_MESSAGE,
                operation="save",
                entity_type="budget",
                timeout_message=BUDGET_TIMEOUT_MESSAGE,
            )
        except DraftValidationError as e:
            await self._audit_logger.log_validation_failed(
                message=e.message,
                field=e.field,
                correlation_id=correlation_id,
                user_id=user.id,
            )
            return e.to_result()
        except TransactionEntryError as e:
            return e.to_result()

        logger.info(
            "budget_saved",
            budget_id=str(saved.id),
            category_id=saved.category_id,
            correlation_id=str(correlation_id),
        )
        await self._audit_logger.log_budget_saved(
            budget_id=saved.id,
            user_id=user.id,
            category_id=saved.category_id,
            amount=str(saved.amount),
            period=saved.period.value,
            correlation_id=correlation_id,
        )
        return SubmissionResult.ok()

    async def delete(self, budget_id: UUID) -> SubmissionResult:
        """Delete one of the signed-in user's budgets."""
        correlation_id = create_correlation_id()

        try:
            user = await self._current_user(correlation_id, message=BUDGET_AUTH_MESSAGE)
            await self._call_store(
                self._store.delete_budget(budget_id, user.id),
                correlation_id=correlation_id,
                user_id=user.id,
                fallback=BUDGET_DELETE_FALLBACK_MESSAGE,
                operation="delete",
                entity_type="budget",
                not_found_message=BUDGET_NOT_FOUND_MESSAGE,
                timeout_message=BUDGET_TIMEOUT_MESSAGE,
            )
        except TransactionEntryError as e:
            return e.to_result()

        logger.info(
            "budget_deleted",
            budget_id=str(budget_id),
            correlation_id=str(correlation_id),
        )
        await self._audit_logger.log_budget_deleted(
            budget_id=budget_id,
            user_id=user.id,
            correlation_id=correlation_id,
        )
        return SubmissionResult.ok()
