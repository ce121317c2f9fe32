"""
Audit Models for Budget Tracker

Every submission of the transaction-entry form leaves a trail:
what was attempted, by whom, and how it ended.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import datetime as dt
import json
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Submission lifecycle
    TRANSACTION_SUBMITTED = "transaction_submitted"
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    SUBMISSION_IGNORED = "submission_ignored"

    # Failures the user can recover from
    VALIDATION_FAILED = "validation_failed"
    AUTH_FAILED = "auth_failed"
    SAVE_FAILED = "save_failed"

    # Budgets
    BUDGET_SAVED = "budget_saved"
    BUDGET_DELETED = "budget_deleted"

    # Preferences
    PREFERENCES_UPDATED = "preferences_updated"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every submission creates at least two of these: one when it starts
    and one when it resolves.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'preferences')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Authenticated user, when one was known"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one submission"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         user_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            self.user_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_submitted(correlation_id)
        event = AuditEventBuilder.transaction_saved(transaction_id, ...)
    """

    @staticmethod
    def transaction_submitted(
        correlation_id: UUID,
        transaction_type: str,
        category_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SUBMITTED,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction submitted ({transaction_type})",
            details={
                "type": transaction_type,
                "category_id": category_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_saved(
        transaction_id: UUID,
        user_id: str,
        amount: str,
        category_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction saved: {category_id} - {amount}",
            details={
                "amount": amount,
                "category_id": category_id,
            },
        )

    @staticmethod
    def transaction_changed(
        event_type: AuditEventType,
        transaction_id: UUID,
        user_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        """TRANSACTION_UPDATED or TRANSACTION_DELETED."""
        action = "updated" if event_type == AuditEventType.TRANSACTION_UPDATED else "deleted"
        return AuditEvent(
            event_type=event_type,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction {action}",
            is_user_action=True,
        )

    @staticmethod
    def budget_saved(
        budget_id: UUID,
        user_id: str,
        category_id: str,
        amount: str,
        period: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SAVED,
            entity_type="budget",
            entity_id=budget_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Budget saved: {category_id} - {amount} {period}",
            details={
                "category_id": category_id,
                "amount": amount,
                "period": period,
            },
            is_user_action=True,
        )

    @staticmethod
    def budget_deleted(
        budget_id: UUID,
        user_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_DELETED,
            entity_type="budget",
            entity_id=budget_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Budget deleted",
            is_user_action=True,
        )

    @staticmethod
    def submission_ignored(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBMISSION_IGNORED,
            severity=AuditSeverity.DEBUG,
            entity_type="transaction",
            correlation_id=correlation_id,
            description="Submit ignored while another submission is in flight",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        message: str,
        field: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Validation failed on {field}",
            details={"field": field},
            error_message=message,
        )

    @staticmethod
    def auth_failed(
        message: str,
        correlation_id: UUID,
        reason: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description="Submission rejected: no authenticated user",
            details={"reason": reason or "no_user"},
            error_message=message,
        )

    @staticmethod
    def save_failed(
        message: str,
        user_id: str,
        correlation_id: UUID,
        error_type: Optional[str] = None,
        operation: str = "insert",
        entity_type: str = "transaction",
    ) -> AuditEvent:
        details = {"operation": operation}
        if error_type:
            details["error_type"] = error_type
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Store rejected the {entity_type} {operation}",
            details=details,
            error_message=message,
        )

    @staticmethod
    def preferences_updated(
        user_id: Optional[str],
        changes: dict[str, Any],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREFERENCES_UPDATED,
            entity_type="preferences",
            user_id=user_id,
            description=f"Preferences updated: {', '.join(sorted(changes))}",
            details={key: str(value) for key, value in changes.items()},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
