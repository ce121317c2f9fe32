"""
Transaction Entry Workflow

Owns the draft behind the "Add Transaction" form and turns a submit into
exactly one insert, or into a message the user can act on.

Flow:
1. Submit → refuse if a submission is already in flight
2. Identity → ask the provider who is logged in (fresh every time)
3. Validate → amount, category, description, date; first failure wins
4. Insert → one write to the transaction store, never retried
5. Success → reset the draft, notify the parent, trigger a refresh

On any failure the draft is kept exactly as it was so the user can fix
it and submit again.
"""

import inspect
from datetime import date
from typing import Any, Awaitable, Callable, Iterable, Optional, Union
from uuid import UUID

import structlog

from budget_tracker.audit import AuditLogger, create_correlation_id
from budget_tracker.errors import (
    STORAGE_FALLBACK_MESSAGE,
    DraftValidationError,
    TransactionEntryError,
)
from budget_tracker.models.transaction import (
    Category,
    StoredTransaction,
    SubmissionResult,
    TransactionDraft,
    TransactionRecord,
    WorkflowState,
)
from budget_tracker.services.identity import IdentityProviderInterface
from budget_tracker.services.storage import TransactionStoreInterface
from budget_tracker.validation import TransactionDraftValidator
from budget_tracker.workflow.base import AuthenticatedOperation


Callback = Callable[[], Union[None, Awaitable[None]]]

logger = structlog.get_logger(__name__)


class TransactionEntryWorkflow(AuthenticatedOperation):
    """
    State holder for one transaction-entry form.

    States: IDLE → SUBMITTING → IDLE (saved, draft reset)
                              → ERROR (failed, draft kept) → SUBMITTING ...

    Only one submission may be in flight. A submit() while SUBMITTING
    returns None and touches nothing, and reset() while SUBMITTING is
    ignored. Only the submission in flight moves the form out of
    SUBMITTING.

    The draft stays editable while a submission is in flight. The
    submission works on a copy taken when submit() was called, so later
    edits never leak into it.
    """

    def __init__(
        self,
        identity_provider: IdentityProviderInterface,
        transaction_store: TransactionStoreInterface,
        on_transaction_added: Optional[Callback] = None,
        on_refresh: Optional[Callback] = None,
        validator: Optional[TransactionDraftValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        timeout_seconds: Optional[float] = None,
        today: Callable[[], date] = date.today,
    ):
        """
        Args:
            identity_provider: Who is logged in
            transaction_store: Where inserts go
            on_transaction_added: Called once per successful submission
            on_refresh: Called after on_transaction_added so the page can
                        reload its transaction list
            validator: Draft rules (defaults to no description length cap)
            audit_logger: Audit trail (defaults to local structured logs only)
            timeout_seconds: Bound for the identity lookup and for the insert;
                             None waits indefinitely
            today: Source of the default draft date
        """
        super().__init__(identity_provider, audit_logger, timeout_seconds)
        self._store = transaction_store
        self._on_transaction_added = on_transaction_added
        self._on_refresh = on_refresh
        self._validator = validator or TransactionDraftValidator()
        self._today = today

        self._draft = self._new_draft()
        self._state = WorkflowState.IDLE
        self._last_error: Optional[SubmissionResult] = None

    # ------------------------------------------------------------------
    # Form state
    # ------------------------------------------------------------------

    @property
    def draft(self) -> TransactionDraft:
        return self._draft

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def is_submitting(self) -> bool:
        return self._state == WorkflowState.SUBMITTING

    @property
    def last_error(self) -> Optional[SubmissionResult]:
        """The failure shown inline, cleared by the next submit or reset."""
        return self._last_error

    def _new_draft(self) -> TransactionDraft:
        return TransactionDraft(date=self._today().isoformat())

    def update_field(self, name: str, value: Any) -> None:
        """Set one draft field from user input."""
        if name not in TransactionDraft.model_fields:
            raise ValueError(f"Unknown draft field: {name}")
        setattr(self._draft, name, value)

    def update(self, **fields: Any) -> None:
        for name, value in fields.items():
            self.update_field(name, value)

    def reset(self) -> None:
        """
        Discard the draft and any error, back to a fresh form.

        Ignored while a submission is in flight.
        """
        if self._state == WorkflowState.SUBMITTING:
            logger.warning("reset_ignored", reason="submission_in_flight")
            return
        self._clear()

    def _clear(self) -> None:
        self._draft = self._new_draft()
        self._state = WorkflowState.IDLE
        self._last_error = None

    def categories_for_type(self, categories: Iterable[Category]) -> list[Category]:
        """Categories that can be picked for the draft's current type."""
        return [cat for cat in categories if cat.applies_to(self._draft.type)]

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(
        self,
        draft: Optional[TransactionDraft] = None,
    ) -> Optional[SubmissionResult]:
        """
        Submit the draft.

        Args:
            draft: Replaces the owned draft before submitting, if given

        Returns:
            The outcome, or None if another submission was still in flight
        """
        correlation_id = create_correlation_id()

        # Checked and set before the first await, so concurrent callers on
        # the same event loop can't both get past it
        if self._state == WorkflowState.SUBMITTING:
            logger.info("submission_ignored", correlation_id=str(correlation_id))
            await self._audit_logger.log_submission_ignored(correlation_id)
            return None

        if draft is not None:
            self._draft = draft
        snapshot = self._draft.model_copy()
        self._state = WorkflowState.SUBMITTING
        self._last_error = None

        try:
            stored = await self._run(snapshot, correlation_id)
        except TransactionEntryError as e:
            result = e.to_result()
            self._state = WorkflowState.ERROR
            self._last_error = result
            return result
        except BaseException:
            # Never leave the form stuck in SUBMITTING
            self._state = WorkflowState.ERROR
            raise

        logger.info(
            "transaction_added",
            transaction_id=str(stored.id),
            correlation_id=str(correlation_id),
        )
        self._clear()
        await self._notify(self._on_transaction_added)
        await self._notify(self._on_refresh)
        return SubmissionResult.ok()

    async def _run(
        self,
        draft: TransactionDraft,
        correlation_id: UUID,
    ) -> StoredTransaction:
        await self._audit_logger.log_transaction_submitted(
            correlation_id=correlation_id,
            transaction_type=draft.type.value,
            category_id=draft.category_id,
        )

        user = await self._current_user(correlation_id)

        try:
            record = self._validator.validate(draft, user)
        except DraftValidationError as e:
            await self._audit_logger.log_validation_failed(
                message=e.message,
                field=e.field,
                correlation_id=correlation_id,
                user_id=user.id,
            )
            raise

        return await self._insert(record, correlation_id)

    async def _insert(
        self,
        record: TransactionRecord,
        correlation_id: UUID,
    ) -> StoredTransaction:
        stored = await self._call_store(
            self._store.insert(record),
            correlation_id=correlation_id,
            user_id=record.user_id,
            fallback=STORAGE_FALLBACK_MESSAGE,
            operation="insert",
        )
        await self._audit_logger.log_transaction_saved(
            transaction_id=stored.id,
            user_id=record.user_id,
            amount=str(record.amount),
            category_id=record.category_id,
            correlation_id=correlation_id,
        )
        return stored

    @staticmethod
    async def _notify(callback: Optional[Callback]) -> None:
        if callback is None:
            return
        result = callback()
        if inspect.isawaitable(result):
            await result
