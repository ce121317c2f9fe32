"""
Tests for the audit logger.
"""

import asyncio
from uuid import uuid4

from budget_tracker.audit import AuditLogger, create_correlation_id
from budget_tracker.models.audit import AuditEventBuilder, AuditEventType
from budget_tracker.services.storage import InMemoryAuditStorage, StorageError


class FailingAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise StorageError("audit sheet unavailable")


class TestAuditLogger:

    def test_without_storage_succeeds(self):
        logger = AuditLogger()
        assert asyncio.run(logger.log_error("RuntimeError", "boom")) is None

    def test_persists_events(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        async def scenario():
            await logger.log_transaction_submitted(correlation_id, "expense", "groceries")
            await logger.log_validation_failed(
                message="Please enter a valid amount.",
                field="amount",
                correlation_id=correlation_id,
                user_id="u1",
            )
            return await storage.get_events_by_correlation_id(correlation_id)

        events = asyncio.run(scenario())
        assert [e.event_type for e in events] == [
            AuditEventType.TRANSACTION_SUBMITTED,
            AuditEventType.VALIDATION_FAILED,
        ]
        assert events[1].error_message == "Please enter a valid amount."

    def test_storage_failure_does_not_raise(self):
        logger = AuditLogger(FailingAuditStorage())
        event = AuditEventBuilder.submission_ignored(uuid4())

        assert asyncio.run(logger.log(event)) is False

    def test_preferences_updated(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        asyncio.run(logger.log_preferences_updated("u1", {"theme": "dark"}))

        events = asyncio.run(storage.get_recent_events())
        assert events[0].event_type == AuditEventType.PREFERENCES_UPDATED
        assert events[0].user_id == "u1"

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()
