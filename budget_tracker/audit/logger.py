"""
Audit Logger

DESIGN DECISION: Every submission of the entry form is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. User can see history of their interactions

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't break a submission if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from budget_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("budget_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_submitted(
        self,
        correlation_id: UUID,
        transaction_type: str,
        category_id: str,
    ) -> None:
        """Log the start of a submission."""
        event = AuditEventBuilder.transaction_submitted(
            correlation_id=correlation_id,
            transaction_type=transaction_type,
            category_id=category_id,
        )
        await self.log(event)

    async def log_transaction_saved(
        self,
        transaction_id: UUID,
        user_id: str,
        amount: str,
        category_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log a successful insert."""
        event = AuditEventBuilder.transaction_saved(
            transaction_id=transaction_id,
            user_id=user_id,
            amount=amount,
            category_id=category_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_changed(
        self,
        event_type: AuditEventType,
        transaction_id: UUID,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log an edit or deletion of a stored transaction."""
        event = AuditEventBuilder.transaction_changed(
            event_type=event_type,
            transaction_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_saved(
        self,
        budget_id: UUID,
        user_id: str,
        category_id: str,
        amount: str,
        period: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.budget_saved(
            budget_id=budget_id,
            user_id=user_id,
            category_id=category_id,
            amount=amount,
            period=period,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_deleted(
        self,
        budget_id: UUID,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.budget_deleted(
            budget_id=budget_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_submission_ignored(self, correlation_id: UUID) -> None:
        event = AuditEventBuilder.submission_ignored(correlation_id=correlation_id)
        await self.log(event)

    async def log_validation_failed(
        self,
        message: str,
        field: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.validation_failed(
            message=message,
            field=field,
            correlation_id=correlation_id,
            user_id=user_id,
        )
        await self.log(event)

    async def log_auth_failed(
        self,
        message: str,
        correlation_id: UUID,
        reason: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.auth_failed(
            message=message,
            correlation_id=correlation_id,
            reason=reason,
        )
        await self.log(event)

    async def log_save_failed(
        self,
        message: str,
        user_id: str,
        correlation_id: UUID,
        error_type: Optional[str] = None,
        operation: str = "insert",
        entity_type: str = "transaction",
    ) -> None:
        event = AuditEventBuilder.save_failed(
            message=message,
            user_id=user_id,
            correlation_id=correlation_id,
            error_type=error_type,
            operation=operation,
            entity_type=entity_type,
        )
        await self.log(event)

    async def log_preferences_updated(
        self,
        user_id: Optional[str],
        changes: dict[str, Any],
    ) -> None:
        event = AuditEventBuilder.preferences_updated(
            user_id=user_id,
            changes=changes,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., one submission).
    Pass it through all subsequent operations.
    """
    return uuid4()
