"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
The tracker persists exactly one thing, a serialized snapshot under a
fixed key, plus an append-only audit trail. Implementations only move
text in and out; serialization stays with the profile store.

Implementations:
- LocalFileSnapshotStorage / JsonLinesAuditStorage (local_file.py)
- InMemorySnapshotStorage / InMemoryAuditStorage (memory.py), for tests
"""

from abc import ABC, abstractmethod
from typing import Optional

from expense_tracker.models.audit import AuditEvent


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for snapshot storage.

    A snapshot is always read and written whole.
    """

    @abstractmethod
    async def load_snapshot(self, key: str) -> Optional[str]:
        """
        Read the serialized snapshot stored under a key.

        Returns:
            The stored text, or None if nothing is stored

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save_snapshot(self, key: str, payload: str) -> bool:
        """
        Overwrite the snapshot stored under a key.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_snapshot(self, key: str) -> bool:
        """
        Remove the snapshot stored under a key.

        Returns:
            True if something was deleted, False if nothing was stored
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
