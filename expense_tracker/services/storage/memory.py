"""In-memory storage implementations, for tests and throwaway sessions."""

from typing import Optional

from expense_tracker.models.audit import AuditEvent
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
)


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """Keeps snapshots in a dict keyed by storage key."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.items: dict[str, str] = dict(initial or {})
        self.save_count = 0

    async def load_snapshot(self, key: str) -> Optional[str]:
        return self.items.get(key)

    async def save_snapshot(self, key: str, payload: str) -> bool:
        self.items[key] = payload
        self.save_count += 1
        return True

    async def delete_snapshot(self, key: str) -> bool:
        return self.items.pop(key, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps audit events in a list, oldest first."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
