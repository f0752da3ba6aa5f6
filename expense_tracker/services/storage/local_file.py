"""
Local File Storage Implementation

Snapshots are stored as one JSON file per storage key inside the
configured data directory; audit events are appended to a JSON-lines file.

Snapshot writes go to a temporary file first and are moved into place
with os.replace(), so a crash mid-write leaves the previous snapshot
intact.
"""

import os
import re
from pathlib import Path
from typing import Optional

from expense_tracker.config import get_settings
from expense_tracker.models.audit import AuditEvent
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)


_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def key_to_filename(key: str) -> str:
    """Map a storage key such as 'expense-tracker/profile-state-v1' to a file name."""
    safe = _UNSAFE_KEY_CHARS.sub("_", key).strip("._")
    if not safe:
        raise StorageError(f"Unusable storage key: {key!r}")
    return f"{safe}.json"


class LocalFileSnapshotStorage(SnapshotStorageInterface):
    """Snapshot storage backed by JSON files in a directory."""

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir) if data_dir else get_settings().storage.data_path

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        return self._data_dir / key_to_filename(key)

    async def load_snapshot(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot {path}: {e}")

    async def save_snapshot(self, key: str, payload: str) -> bool:
        path = self.path_for(key)
        tmp = path.with_suffix(".tmp")
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"Failed to save snapshot {path}: {e}")
        return True

    async def delete_snapshot(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            if not path.exists():
                return False
            path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete snapshot {path}: {e}")
        return True


class JsonLinesAuditStorage(AuditStorageInterface):
    """Append-only audit log, one JSON object per line."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else get_settings().storage.audit_log_path

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(event.model_dump_json() + "\n")
        except OSError as e:
            raise StorageError(f"Failed to append audit event: {e}")
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}")

        events = []
        for line in reversed(lines):
            if len(events) >= limit:
                break
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate_json(line))
            except ValueError:
                # Skip malformed lines
                continue
        return events
