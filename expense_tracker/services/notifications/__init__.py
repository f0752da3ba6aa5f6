"""Notification services: platform adapter interface and the scheduler."""

from expense_tracker.services.notifications.interface import (
    NotificationAdapter,
    NotificationContent,
    NotificationError,
)
from expense_tracker.services.notifications.memory import (
    InMemoryNotificationAdapter,
    ScheduledNotification,
)
from expense_tracker.services.notifications.scheduler import (
    BUDGET_WARNING_KEY,
    DAILY_SUMMARY_KEY,
    NotificationScheduler,
)

__all__ = [
    # Interface
    "NotificationAdapter",
    "NotificationContent",
    "NotificationError",
    # Implementations
    "InMemoryNotificationAdapter",
    "ScheduledNotification",
    # Scheduling
    "BUDGET_WARNING_KEY",
    "DAILY_SUMMARY_KEY",
    "NotificationScheduler",
]
