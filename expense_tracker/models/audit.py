"""
Audit Models for Expense Tracker

Every user action and every failed side effect is recorded as an
AuditEvent. This provides:
1. Traceability of how the ledger and reminders reached their state
2. Debugging information when persistence or notifications fail
3. A history the user can inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger
    EXPENSE_ADDED = "expense_added"
    INCOME_ADDED = "income_added"
    INCOME_REMOVED = "income_removed"

    # Categories
    CATEGORY_CREATED = "category_created"

    # Income reminders
    REMINDER_CREATED = "reminder_created"
    REMINDER_UPDATED = "reminder_updated"
    REMINDER_CONFIRMED = "reminder_confirmed"
    REMINDER_SKIPPED = "reminder_skipped"
    REMINDER_REMOVED = "reminder_removed"

    # Profile
    PREFERENCES_UPDATED = "preferences_updated"
    PROFILE_RESET = "profile_reset"
    PROFILE_EXPORTED = "profile_exported"

    # Input validation
    VALIDATION_FAILED = "validation_failed"

    # Persistence
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_LOAD_FAILED = "snapshot_load_failed"
    SNAPSHOT_SAVE_FAILED = "snapshot_save_failed"

    # Notifications
    NOTIFICATION_FAILED = "notification_failed"

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

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
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
        description="Type of entity (e.g., 'expense', 'income', 'reminder')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a confirm and its income)"
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

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, category_id, amount, correlation_id)
        event = AuditEventBuilder.reminder_confirmed(reminder_id, income_id, amount, next_trigger, correlation_id)
    """

    @staticmethod
    def expense_added(
        expense_id: str,
        category_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: {amount}",
            details={
                "category_id": category_id,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def income_added(
        income_id: str,
        source: str,
        amount: str,
        reminder_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_ADDED,
            entity_type="income",
            entity_id=income_id,
            correlation_id=correlation_id,
            description=f"Income added: {source} - {amount}",
            details={
                "source": source,
                "amount": amount,
                "reminder_id": reminder_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def income_removed(
        income_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_REMOVED,
            entity_type="income",
            entity_id=income_id,
            correlation_id=correlation_id,
            description="Income removed",
            is_user_action=True,
        )

    @staticmethod
    def category_created(
        category_id: str,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_CREATED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Custom category created: {name}",
            is_user_action=True,
        )

    @staticmethod
    def reminder_event(
        event_type: AuditEventType,
        reminder_id: str,
        description: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="reminder",
            entity_id=reminder_id,
            correlation_id=correlation_id,
            description=description,
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def reminder_confirmed(
        reminder_id: str,
        income_id: str,
        amount: str,
        next_trigger: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEventBuilder.reminder_event(
            AuditEventType.REMINDER_CONFIRMED,
            reminder_id,
            f"Reminder confirmed with {amount}, next on {next_trigger}",
            details={
                "income_id": income_id,
                "amount": amount,
                "next_trigger": next_trigger,
            },
            correlation_id=correlation_id,
        )

    @staticmethod
    def reminder_skipped(
        reminder_id: str,
        next_trigger: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEventBuilder.reminder_event(
            AuditEventType.REMINDER_SKIPPED,
            reminder_id,
            f"Reminder skipped, next on {next_trigger}",
            details={"next_trigger": next_trigger},
            correlation_id=correlation_id,
        )

    @staticmethod
    def validation_failed(
        action: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Input for {action} rejected with {len(issues)} issues",
            details={
                "action": action,
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def preferences_updated(
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREFERENCES_UPDATED,
            entity_type="profile",
            correlation_id=correlation_id,
            description=f"Preferences updated: {', '.join(sorted(changes))}",
            details=changes,
            is_user_action=True,
        )

    @staticmethod
    def snapshot_failed(
        event_type: AuditEventType,
        storage_key: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            entity_id=storage_key,
            description=f"Snapshot {event_type.value.replace('_', ' ')}",
            error_message=error_message,
        )

    @staticmethod
    def notification_failed(
        key: str,
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="notification",
            entity_id=key,
            description=f"Notification {operation} failed for {key}",
            error_message=error_message,
            details={"operation": operation},
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
