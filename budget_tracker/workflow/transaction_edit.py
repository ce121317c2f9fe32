"""
Editing and deleting stored transactions.

Same rules as adding one: identity first, then the draft rules, then a
single store call that is never retried. A transaction that is gone, or
that belongs to someone else, is reported as a storage error.
"""

from typing import Optional
from uuid import UUID

import structlog

from budget_tracker.audit import AuditLogger, create_correlation_id
from budget_tracker.errors import (
    DELETE_FALLBACK_MESSAGE,
    NOT_FOUND_MESSAGE,
    UPDATE_FALLBACK_MESSAGE,
    DraftValidationError,
    TransactionEntryError,
)
from budget_tracker.models.audit import AuditEventType
from budget_tracker.models.transaction import SubmissionResult, TransactionDraft
from budget_tracker.services.identity import IdentityProviderInterface
from budget_tracker.services.storage import TransactionStoreInterface
from budget_tracker.validation import TransactionDraftValidator
from budget_tracker.workflow.base import AuthenticatedOperation


logger = structlog.get_logger(__name__)


class TransactionEditor(AuthenticatedOperation):
    """Updates and deletes the signed-in user's transactions."""

    def __init__(
        self,
        identity_provider: IdentityProviderInterface,
        transaction_store: TransactionStoreInterface,
        validator: Optional[TransactionDraftValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(identity_provider, audit_logger, timeout_seconds)
        self._store = transaction_store
        self._validator = validator or TransactionDraftValidator()

    async def update(
        self,
        transaction_id: UUID,
        draft: TransactionDraft,
    ) -> SubmissionResult:
        """Replace a transaction's fields with the validated draft."""
        correlation_id = create_correlation_id()
        snapshot = draft.model_copy()

        try:
            user = await self._current_user(correlation_id)
            try:
                record = self._validator.validate(snapshot, user)
            except DraftValidationError as e:
                await self._audit_logger.log_validation_failed(
                    message=e.message,
                    field=e.field,
                    correlation_id=correlation_id,
                    user_id=user.id,
                )
                raise
            await self._call_store(
                self._store.update(transaction_id, record),
                correlation_id=correlation_id,
                user_id=user.id,
                fallback=UPDATE_FALLBACK_MESSAGE,
                operation="update",
                not_found_message=NOT_FOUND_MESSAGE,
            )
        except TransactionEntryError as e:
            return e.to_result()

        logger.info(
            "transaction_updated",
            transaction_id=str(transaction_id),
            correlation_id=str(correlation_id),
        )
        await self._audit_logger.log_transaction_changed(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            transaction_id=transaction_id,
            user_id=user.id,
            correlation_id=correlation_id,
        )
        return SubmissionResult.ok()

    async def delete(self, transaction_id: UUID) -> SubmissionResult:
        """Delete one of the signed-in user's transactions."""
        correlation_id = create_correlation_id()

        try:
            user = await self._current_user(correlation_id)
            await self._call_store(
                self._store.delete(transaction_id, user.id),
                correlation_id=correlation_id,
                user_id=user.id,
                fallback=DELETE_FALLBACK_MESSAGE,
                operation="delete",
                not_found_message=NOT_FOUND_MESSAGE,
            )
        except TransactionEntryError as e:
            return e.to_result()

        logger.info(
            "transaction_deleted",
            transaction_id=str(transaction_id),
            correlation_id=str(correlation_id),
        )
        await self._audit_logger.log_transaction_changed(
            event_type=AuditEventType.TRANSACTION_DELETED,
            transaction_id=transaction_id,
            user_id=user.id,
            correlation_id=correlation_id,
        )
        return SubmissionResult.ok()
