"""
Storage Services Package

Provides abstract interfaces and concrete implementations for persisting
the profile snapshot and the audit trail. Local files are the default
backend; in-memory implementations back the tests.
"""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)
from expense_tracker.services.storage.local_file import (
    JsonLinesAuditStorage,
    LocalFileSnapshotStorage,
    key_to_filename,
)
from expense_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "StorageError",
    # Local file implementation
    "JsonLinesAuditStorage",
    "LocalFileSnapshotStorage",
    "key_to_filename",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemorySnapshotStorage",
]
