"""
Tests for the transaction-entry workflow.

Async code is driven with asyncio.run so the suite needs nothing beyond pytest.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from budget_tracker.errors import (
    AUTH_REQUIRED_MESSAGE,
    STORAGE_FALLBACK_MESSAGE,
    STORAGE_TIMEOUT_MESSAGE,
)
from budget_tracker.models.audit import AuditEventType
from budget_tracker.models.transaction import (
    DEFAULT_CATEGORIES,
    SubmissionResult,
    SubmissionStatus,
    TransactionDraft,
    TransactionRecord,
    TransactionType,
    WorkflowState,
)
from budget_tracker.services.identity import IdentityError
from budget_tracker.services.storage import (
    ConnectionError,
    InMemoryTransactionStore,
    StorageError,
)
from budget_tracker.validation import (
    AMOUNT_MESSAGE,
    CATEGORY_MESSAGE,
    DATE_MESSAGE,
    DESCRIPTION_MESSAGE,
)
from budget_tracker.workflow import TransactionEntryWorkflow

from conftest import TODAY, FakeIdentityProvider


class SlowStore(InMemoryTransactionStore):
    """Store whose inserts take longer than any sensible timeout."""

    async def insert(self, record):
        await asyncio.sleep(5)
        return await super().insert(record)


class TestSuccessfulSubmission:
    """A valid draft with a logged-in user is saved once."""

    def test_store_receives_exact_record(self, workflow, store, valid_fields):
        """Test the weekly-shop scenario end to end."""
        workflow.update(**valid_fields)

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.ok()
        assert store.insert_calls == [
            TransactionRecord(
                user_id="u1",
                type=TransactionType.EXPENSE,
                category_id="groceries",
                amount=Decimal("45.00"),
                description="Weekly shop",
                date=date(2024, 1, 15),
            )
        ]
        assert store.insert_calls[0].to_payload() == {
            "user_id": "u1",
            "type": "expense",
            "category_id": "groceries",
            "amount": 45.0,
            "description": "Weekly shop",
            "date": "2024-01-15",
        }

    def test_draft_resets_to_defaults(self, workflow, valid_fields):
        """Test that the form is cleared after a save."""
        workflow.update(**valid_fields)
        workflow.update_field("type", "income")
        workflow.update_field("category_id", "salary")

        asyncio.run(workflow.submit())

        assert workflow.draft == TransactionDraft(date=TODAY.isoformat())
        assert workflow.draft.type == TransactionType.EXPENSE
        assert workflow.state == WorkflowState.IDLE
        assert workflow.last_error is None

    def test_notification_fires_once_then_refresh(self, workflow, valid_fields, notifications):
        """Test callback order and count."""
        workflow.update(**valid_fields)

        asyncio.run(workflow.submit())

        assert notifications == ["added", "refresh"]

    def test_async_callbacks_are_awaited(self, identity, store, valid_fields):
        """Test that coroutine callbacks run to completion."""
        calls = []

        async def on_added():
            await asyncio.sleep(0)
            calls.append("added")

        wf = TransactionEntryWorkflow(identity, store, on_transaction_added=on_added)
        wf.update(**valid_fields)

        asyncio.run(wf.submit())

        assert calls == ["added"]

    def test_submit_with_explicit_draft(self, workflow, store):
        """Test passing a draft directly instead of editing fields."""
        draft = TransactionDraft(
            type=TransactionType.INCOME,
            category_id="salary",
            amount="2500",
            description="March pay",
            date="2024-03-31",
        )

        result = asyncio.run(workflow.submit(draft))

        assert result.is_ok
        assert store.insert_calls[0].type == TransactionType.INCOME
        assert store.insert_calls[0].amount == Decimal("2500")

    def test_whitespace_is_trimmed(self, workflow, store, valid_fields):
        """Test that surrounding whitespace does not reach the store."""
        valid_fields.update(category_id="  groceries ", description="  Weekly shop  ")
        workflow.update(**valid_fields)

        asyncio.run(workflow.submit())

        assert store.insert_calls[0].category_id == "groceries"
        assert store.insert_calls[0].description == "Weekly shop"

    def test_identity_is_fetched_on_every_submit(self, workflow, identity, valid_fields):
        """Test that the user is never cached between submissions."""
        workflow.update(**valid_fields)
        asyncio.run(workflow.submit())
        workflow.update(**valid_fields)
        asyncio.run(workflow.submit())

        assert identity.calls == 2

    def test_audit_trail_records_save(self, workflow, audit_storage, valid_fields):
        """Test that submit and save events share a correlation id."""
        workflow.update(**valid_fields)
        asyncio.run(workflow.submit())

        events = asyncio.run(audit_storage.get_recent_events())
        types = {e.event_type for e in events}
        assert types == {
            AuditEventType.TRANSACTION_SUBMITTED,
            AuditEventType.TRANSACTION_SAVED,
        }
        assert len({e.correlation_id for e in events}) == 1


class TestValidationFailures:
    """Invalid drafts are rejected before any store call."""

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "", "NaN", "Infinity", "   "])
    def test_invalid_amount(self, workflow, store, valid_fields, notifications, amount):
        """Test every kind of bad amount gets the amount message."""
        valid_fields["amount"] = amount
        workflow.update(**valid_fields)
        before = workflow.draft.model_dump()

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.validation_error(AMOUNT_MESSAGE)
        assert workflow.draft.model_dump() == before
        assert store.insert_calls == []
        assert notifications == []

    def test_missing_category(self, workflow, store, valid_fields):
        """Test the category rule."""
        valid_fields["category_id"] = ""
        workflow.update(**valid_fields)

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.validation_error(CATEGORY_MESSAGE)
        assert store.insert_calls == []

    def test_amount_is_checked_before_category(self, workflow, valid_fields):
        """Test that with both invalid, the amount message wins."""
        valid_fields.update(amount="abc", category_id="")
        workflow.update(**valid_fields)

        result = asyncio.run(workflow.submit())

        assert result.message == AMOUNT_MESSAGE

    def test_missing_description(self, workflow, valid_fields):
        valid_fields["description"] = "   "
        workflow.update(**valid_fields)

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.validation_error(DESCRIPTION_MESSAGE)

    def test_invalid_date(self, workflow, valid_fields):
        valid_fields["date"] = "15/01/2024"
        workflow.update(**valid_fields)

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.validation_error(DATE_MESSAGE)

    def test_state_moves_to_error_and_back(self, workflow, valid_fields):
        """Test error → submitting → idle on a corrected retry."""
        valid_fields["amount"] = "0"
        workflow.update(**valid_fields)

        failed = asyncio.run(workflow.submit())
        assert workflow.state == WorkflowState.ERROR
        assert workflow.last_error == failed

        workflow.update_field("amount", "12.50")
        result = asyncio.run(workflow.submit())

        assert result.is_ok
        assert workflow.state == WorkflowState.IDLE
        assert workflow.last_error is None


class TestAuthFailures:
    """No user means no insert, whatever the draft looks like."""

    def test_absent_identity(self, workflow, identity, store, valid_fields, notifications):
        identity.user = None
        workflow.update(**valid_fields)
        before = workflow.draft.model_dump()

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.auth_error(AUTH_REQUIRED_MESSAGE)
        assert result.status == SubmissionStatus.AUTH_ERROR
        assert store.insert_calls == []
        assert workflow.draft.model_dump() == before
        assert notifications == []

    def test_identity_checked_before_validation(self, workflow, identity):
        """Test that an empty draft still reports the login problem first."""
        identity.user = None

        result = asyncio.run(workflow.submit())

        assert result.status == SubmissionStatus.AUTH_ERROR

    def test_provider_failure_is_auth_error(self, workflow, identity, store, valid_fields):
        identity.error = IdentityError("session service down")
        workflow.update(**valid_fields)

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.auth_error(AUTH_REQUIRED_MESSAGE)
        assert store.insert_calls == []

    def test_identity_timeout(self, user, store, valid_fields):
        identity = FakeIdentityProvider(user, delay=5)
        wf = TransactionEntryWorkflow(identity, store, timeout_seconds=0.01)
        wf.update(**valid_fields)

        result = asyncio.run(wf.submit())

        assert result.status == SubmissionStatus.AUTH_ERROR
        assert store.insert_calls == []


class TestStorageFailures:
    """Store errors are reported, never raised, and the draft is kept."""

    def test_store_message_is_surfaced(self, workflow, store, valid_fields, notifications):
        store.fail_with = StorageError("duplicate key value")
        workflow.update(**valid_fields)
        before = workflow.draft.model_dump()

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.storage_error("duplicate key value")
        assert workflow.draft.model_dump() == before
        assert workflow.state == WorkflowState.ERROR
        assert notifications == []

    def test_empty_message_uses_fallback(self, workflow, store, valid_fields):
        store.fail_with = ConnectionError()
        workflow.update(**valid_fields)

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.storage_error(STORAGE_FALLBACK_MESSAGE)

    def test_unexpected_exception_is_normalized(self, workflow, store, valid_fields):
        store.fail_with = RuntimeError("socket closed")
        workflow.update(**valid_fields)

        result = asyncio.run(workflow.submit())

        assert result == SubmissionResult.storage_error("socket closed")

    def test_unexpected_exception_without_message(self, workflow, store, valid_fields):
        store.fail_with = KeyError()
        workflow.update(**valid_fields)

        result = asyncio.run(workflow.submit())

        assert result.status == SubmissionStatus.STORAGE_ERROR
        assert result.message

    def test_unexpected_exception_is_logged_as_system_error(
        self, workflow, store, audit_storage, valid_fields
    ):
        store.fail_with = RuntimeError("socket closed")
        workflow.update(**valid_fields)

        asyncio.run(workflow.submit())

        events = asyncio.run(audit_storage.get_recent_events())
        [error_event] = [e for e in events if e.event_type == AuditEventType.SYSTEM_ERROR]
        assert error_event.error_message == "socket closed"
        assert error_event.details["operation"] == "insert"
        types = {e.event_type for e in events}
        assert AuditEventType.SAVE_FAILED in types

    def test_storage_error_is_not_a_system_error(
        self, workflow, store, audit_storage, valid_fields
    ):
        store.fail_with = StorageError("Sheet unavailable")
        workflow.update(**valid_fields)

        asyncio.run(workflow.submit())

        events = asyncio.run(audit_storage.get_recent_events())
        assert AuditEventType.SYSTEM_ERROR not in {e.event_type for e in events}

    def test_no_automatic_retry(self, workflow, store, valid_fields):
        store.fail_with = StorageError("quota exceeded")
        workflow.update(**valid_fields)

        asyncio.run(workflow.submit())

        assert len(store.insert_calls) == 1

    def test_manual_retry_succeeds(self, workflow, store, valid_fields, notifications):
        """Test resubmitting the retained draft once the store recovers."""
        store.fail_with = StorageError("temporarily unavailable")
        workflow.update(**valid_fields)
        asyncio.run(workflow.submit())

        store.fail_with = None
        result = asyncio.run(workflow.submit())

        assert result.is_ok
        assert len(store.insert_calls) == 2
        assert len(store) == 1
        assert notifications == ["added", "refresh"]

    def test_insert_timeout(self, identity, valid_fields):
        store = SlowStore()
        wf = TransactionEntryWorkflow(identity, store, timeout_seconds=0.01)
        wf.update(**valid_fields)

        result = asyncio.run(wf.submit())

        assert result == SubmissionResult.storage_error(STORAGE_TIMEOUT_MESSAGE)
        assert len(store) == 0

    def test_failure_is_audited(self, workflow, store, audit_storage, valid_fields):
        store.fail_with = StorageError("quota exceeded")
        workflow.update(**valid_fields)

        asyncio.run(workflow.submit())

        events = asyncio.run(audit_storage.get_recent_events())
        failed = [e for e in events if e.event_type == AuditEventType.SAVE_FAILED]
        assert len(failed) == 1
        assert failed[0].error_message == "quota exceeded"
        assert failed[0].user_id == "u1"


class TestSingleFlight:
    """Only one submission may be in flight per workflow."""

    def test_double_submit_inserts_once(self, workflow, identity, store, valid_fields):
        workflow.update(**valid_fields)

        async def scenario():
            identity.gate = asyncio.Event()
            first = asyncio.create_task(workflow.submit())
            await asyncio.sleep(0)
            assert workflow.state == WorkflowState.SUBMITTING
            assert workflow.is_submitting

            second = await workflow.submit()

            identity.gate.set()
            return await first, second

        first, second = asyncio.run(scenario())

        assert first.is_ok
        assert second is None
        assert len(store.insert_calls) == 1
        assert identity.calls == 1

    def test_ignored_submit_is_audited(self, workflow, identity, audit_storage, valid_fields):
        workflow.update(**valid_fields)

        async def scenario():
            identity.gate = asyncio.Event()
            first = asyncio.create_task(workflow.submit())
            await asyncio.sleep(0)
            await workflow.submit()
            identity.gate.set()
            await first

        asyncio.run(scenario())

        events = asyncio.run(audit_storage.get_recent_events())
        assert AuditEventType.SUBMISSION_IGNORED in {e.event_type for e in events}

    def test_can_submit_again_after_resolution(self, workflow, store, valid_fields):
        workflow.update(**valid_fields)
        asyncio.run(workflow.submit())
        workflow.update(**valid_fields)
        asyncio.run(workflow.submit())

        assert len(store.insert_calls) == 2

    def test_reset_while_submitting_is_ignored(self, workflow, identity, store, valid_fields):
        """reset() cannot reopen the form while an insert is in flight."""
        workflow.update(**valid_fields)

        async def scenario():
            identity.gate = asyncio.Event()
            first = asyncio.create_task(workflow.submit())
            await asyncio.sleep(0)

            workflow.reset()
            state_after_reset = workflow.state
            second = await workflow.submit()

            identity.gate.set()
            return await first, second, state_after_reset

        first, second, state_after_reset = asyncio.run(scenario())

        assert state_after_reset == WorkflowState.SUBMITTING
        assert second is None
        assert first.is_ok
        assert len(store.insert_calls) == 1
        assert workflow.state == WorkflowState.IDLE

    def test_reset_keeps_draft_while_submitting(self, workflow, identity, valid_fields):
        workflow.update(**valid_fields)

        async def scenario():
            identity.gate = asyncio.Event()
            identity.user = None
            first = asyncio.create_task(workflow.submit())
            await asyncio.sleep(0)
            workflow.reset()
            identity.gate.set()
            return await first

        result = asyncio.run(scenario())

        assert result.status == SubmissionStatus.AUTH_ERROR
        assert workflow.draft.amount == "45.00"
        assert workflow.state == WorkflowState.ERROR


class TestDraftSnapshot:
    """A submission works on the draft as it was when submit() was called."""

    def test_edits_during_identity_lookup_are_not_submitted(
        self, workflow, identity, store, valid_fields
    ):
        workflow.update(**valid_fields)

        async def scenario():
            identity.gate = asyncio.Event()
            task = asyncio.create_task(workflow.submit())
            await asyncio.sleep(0)

            workflow.update(amount="999.00", description="Edited while waiting")

            identity.gate.set()
            return await task

        result = asyncio.run(scenario())

        assert result.is_ok
        [record] = store.insert_calls
        assert record.amount == Decimal("45.00")
        assert record.description == "Weekly shop"

    def test_invalid_edit_during_lookup_does_not_fail_submission(
        self, workflow, identity, store, valid_fields
    ):
        workflow.update(**valid_fields)

        async def scenario():
            identity.gate = asyncio.Event()
            task = asyncio.create_task(workflow.submit())
            await asyncio.sleep(0)
            workflow.update(amount="abc")
            identity.gate.set()
            return await task

        result = asyncio.run(scenario())

        assert result.is_ok
        assert len(store.insert_calls) == 1

    def test_failed_submission_keeps_latest_edits(
        self, workflow, identity, store, valid_fields
    ):
        """The user's newer edits survive a failure."""
        workflow.update(**valid_fields)
        store.fail_with = StorageError("Sheet unavailable")

        async def scenario():
            identity.gate = asyncio.Event()
            task = asyncio.create_task(workflow.submit())
            await asyncio.sleep(0)
            workflow.update(description="Corrected")
            identity.gate.set()
            return await task

        result = asyncio.run(scenario())

        assert result == SubmissionResult.storage_error("Sheet unavailable")
        assert store.insert_calls[0].description == "Weekly shop"
        assert workflow.draft.description == "Corrected"


class TestDraftEditing:
    """Field updates and category filtering."""

    def test_default_draft(self, workflow):
        draft = workflow.draft
        assert draft.type == TransactionType.EXPENSE
        assert draft.category_id == ""
        assert draft.amount == ""
        assert draft.description == ""
        assert draft.date == "2024-02-01"

    def test_update_field_coerces_type(self, workflow):
        workflow.update_field("type", "income")
        assert workflow.draft.type == TransactionType.INCOME

    def test_update_field_accepts_date_objects(self, workflow):
        workflow.update_field("date", date(2024, 5, 6))
        assert workflow.draft.date == "2024-05-06"

    def test_unknown_field_rejected(self, workflow):
        with pytest.raises(ValueError, match="Unknown draft field"):
            workflow.update_field("currency", "EUR")

    def test_reset_clears_error(self, workflow, valid_fields):
        valid_fields["amount"] = "0"
        workflow.update(**valid_fields)
        asyncio.run(workflow.submit())

        workflow.reset()

        assert workflow.last_error is None
        assert workflow.state == WorkflowState.IDLE
        assert workflow.draft.amount == ""

    def test_categories_for_type(self, workflow):
        expense_ids = {c.id for c in workflow.categories_for_type(DEFAULT_CATEGORIES)}
        assert "groceries" in expense_ids
        assert "salary" not in expense_ids
        assert "other" in expense_ids

        workflow.update_field("type", "income")
        income_ids = {c.id for c in workflow.categories_for_type(DEFAULT_CATEGORIES)}
        assert "salary" in income_ids
        assert "groceries" not in income_ids
        assert "other" in income_ids
