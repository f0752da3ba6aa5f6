"""Services package."""

from expense_tracker.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
    JsonLinesAuditStorage,
    LocalFileSnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
)
from expense_tracker.services.notifications import (
    InMemoryNotificationAdapter,
    NotificationAdapter,
    NotificationContent,
    NotificationError,
    NotificationScheduler,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemorySnapshotStorage",
    "JsonLinesAuditStorage",
    "LocalFileSnapshotStorage",
    "SnapshotStorageInterface",
    "StorageError",
    # Notification services
    "InMemoryNotificationAdapter",
    "NotificationAdapter",
    "NotificationContent",
    "NotificationError",
    "NotificationScheduler",
]
