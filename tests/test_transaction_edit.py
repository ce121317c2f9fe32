"""
Tests for editing and deleting stored transactions.
"""

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_tracker.audit import AuditLogger
from budget_tracker.errors import AUTH_REQUIRED_MESSAGE, NOT_FOUND_MESSAGE
from budget_tracker.models.audit import AuditEventType
from budget_tracker.models.transaction import (
    AuthenticatedUser,
    SubmissionResult,
    SubmissionStatus,
    TransactionDraft,
    TransactionRecord,
    TransactionType,
)
from budget_tracker.services.storage import StorageError
from budget_tracker.validation import AMOUNT_MESSAGE
from budget_tracker.workflow import TransactionEditor

from conftest import TODAY, FakeIdentityProvider


@pytest.fixture
def editor(identity, store, audit_storage):
    return TransactionEditor(
        identity_provider=identity,
        transaction_store=store,
        audit_logger=AuditLogger(audit_storage),
    )


@pytest.fixture
def saved(store):
    return asyncio.run(store.insert(TransactionRecord(
        user_id="u1",
        type=TransactionType.EXPENSE,
        category_id="groceries",
        amount=Decimal("45.00"),
        description="Weekly shop",
        date=TODAY,
    )))


def edited_draft(**overrides) -> TransactionDraft:
    data = {
        "type": "expense",
        "category_id": "groceries",
        "amount": "52.10",
        "description": "Weekly shop, corrected",
        "date": "2024-01-31",
    }
    data.update(overrides)
    return TransactionDraft(**data)


class TestUpdate:

    def test_update_replaces_fields(self, editor, store, saved):
        result = asyncio.run(editor.update(saved.id, edited_draft()))

        assert result.is_ok
        [tx] = asyncio.run(store.list_transactions("u1"))
        assert tx.id == saved.id
        assert tx.amount == Decimal("52.10")
        assert tx.description == "Weekly shop, corrected"

    def test_invalid_draft_leaves_transaction_alone(self, editor, store, saved):
        result = asyncio.run(editor.update(saved.id, edited_draft(amount="-1")))

        assert result == SubmissionResult.validation_error(AMOUNT_MESSAGE)
        [tx] = asyncio.run(store.list_transactions("u1"))
        assert tx.amount == Decimal("45.00")

    def test_signed_out_user_cannot_update(self, editor, identity, store, saved):
        identity.user = None

        result = asyncio.run(editor.update(saved.id, edited_draft()))

        assert result == SubmissionResult.auth_error(AUTH_REQUIRED_MESSAGE)

    def test_missing_transaction(self, editor):
        result = asyncio.run(editor.update(uuid4(), edited_draft()))

        assert result == SubmissionResult.storage_error(NOT_FOUND_MESSAGE)

    def test_store_failure_surfaces_message(self, editor, store, saved):
        store.fail_with = StorageError("Sheet unavailable")

        result = asyncio.run(editor.update(saved.id, edited_draft()))

        assert result == SubmissionResult.storage_error("Sheet unavailable")

    def test_update_is_audited(self, editor, audit_storage, saved):
        asyncio.run(editor.update(saved.id, edited_draft()))

        events = asyncio.run(audit_storage.get_recent_events())
        [event] = [e for e in events if e.event_type == AuditEventType.TRANSACTION_UPDATED]
        assert event.entity_id == saved.id
        assert event.user_id == "u1"


class TestDelete:

    def test_delete(self, editor, store, saved):
        result = asyncio.run(editor.delete(saved.id))

        assert result.is_ok
        assert len(store) == 0

    def test_delete_twice_reports_not_found(self, editor, audit_storage, saved):
        asyncio.run(editor.delete(saved.id))

        result = asyncio.run(editor.delete(saved.id))

        assert result.status == SubmissionStatus.STORAGE_ERROR
        assert result.message == NOT_FOUND_MESSAGE
        events = asyncio.run(audit_storage.get_recent_events())
        assert AuditEventType.SAVE_FAILED in {e.event_type for e in events}

    def test_cannot_delete_another_users_transaction(
        self, store, audit_storage, saved
    ):
        other = TransactionEditor(
            identity_provider=FakeIdentityProvider(AuthenticatedUser(id="u2")),
            transaction_store=store,
            audit_logger=AuditLogger(audit_storage),
        )

        result = asyncio.run(other.delete(saved.id))

        assert result == SubmissionResult.storage_error(NOT_FOUND_MESSAGE)
        assert len(store) == 1

    def test_unexpected_failure_is_logged_as_system_error(
        self, editor, store, audit_storage, saved
    ):
        store.fail_with = RuntimeError("socket closed")

        result = asyncio.run(editor.delete(saved.id))

        assert result == SubmissionResult.storage_error("socket closed")
        events = asyncio.run(audit_storage.get_recent_events())
        [error_event] = [e for e in events if e.event_type == AuditEventType.SYSTEM_ERROR]
        assert error_event.details == {"operation": "delete", "entity_type": "transaction"}

    def test_delete_is_audited(self, editor, audit_storage, saved):
        asyncio.run(editor.delete(saved.id))

        events = asyncio.run(audit_storage.get_recent_events())
        assert AuditEventType.TRANSACTION_DELETED in {e.event_type for e in events}
