"""
Audit Logger

Every user action and every failed side effect is logged. This provides:
1. Complete traceability of ledger and reminder changes
2. Debugging capability for persistence and notification failures
3. A history the user can inspect

The audit logger:
- Is async so it can sit next to the other side effects
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from expense_tracker.services.storage import AuditStorageInterface


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
    2. Audit storage (for persistence and user visibility), when configured
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
        self._logger = structlog.get_logger("expense_tracker.audit")

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
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_added(
        self,
        expense_id: str,
        category_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new expense."""
        await self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            category_id=category_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_income_added(
        self,
        income_id: str,
        source: str,
        amount: str,
        reminder_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new income, manual or from a confirmed reminder."""
        await self.log(AuditEventBuilder.income_added(
            income_id=income_id,
            source=source,
            amount=amount,
            reminder_id=reminder_id,
            correlation_id=correlation_id,
        ))

    async def log_income_removed(
        self,
        income_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.income_removed(
            income_id=income_id,
            correlation_id=correlation_id,
        ))

    async def log_category_created(
        self,
        category_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.category_created(
            category_id=category_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_reminder_changed(
        self,
        event_type: AuditEventType,
        reminder_id: str,
        description: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log creation, update or removal of a reminder."""
        await self.log(AuditEventBuilder.reminder_event(
            event_type=event_type,
            reminder_id=reminder_id,
            description=description,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_reminder_confirmed(
        self,
        reminder_id: str,
        income_id: str,
        amount: str,
        next_trigger: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.reminder_confirmed(
            reminder_id=reminder_id,
            income_id=income_id,
            amount=amount,
            next_trigger=next_trigger,
            correlation_id=correlation_id,
        ))

    async def log_reminder_skipped(
        self,
        reminder_id: str,
        next_trigger: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.reminder_skipped(
            reminder_id=reminder_id,
            next_trigger=next_trigger,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        action: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log rejected user input."""
        await self.log(AuditEventBuilder.validation_failed(
            action=action,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_preferences_updated(
        self,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.preferences_updated(
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_profile_event(
        self,
        event_type: AuditEventType,
        description: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a profile-wide event such as a reset or an export."""
        await self.log(AuditEvent(
            event_type=event_type,
            entity_type="profile",
            correlation_id=correlation_id,
            description=description,
            is_user_action=True,
        ))

    async def log_snapshot_failed(
        self,
        event_type: AuditEventType,
        storage_key: str,
        error_message: str,
    ) -> None:
        """Log a snapshot load or save failure."""
        await self.log(AuditEventBuilder.snapshot_failed(
            event_type=event_type,
            storage_key=storage_key,
            error_message=error_message,
        ))

    async def log_notification_failed(
        self,
        key: str,
        operation: str,
        error_message: str,
    ) -> None:
        """Log a failed schedule or cancel call."""
        await self.log(AuditEventBuilder.notification_failed(
            key=key,
            operation=operation,
            error_message=error_message,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., confirming a
    reminder). Pass it through all subsequent operations.
    """
    return uuid4()
