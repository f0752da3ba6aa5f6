"""In-memory notification adapter that records what would be delivered."""

from datetime import datetime
from itertools import count
from typing import NamedTuple

from expense_tracker.services.notifications.interface import (
    NotificationAdapter,
    NotificationContent,
)


class ScheduledNotification(NamedTuple):
    handle: str
    key: str
    when: datetime
    content: NotificationContent


class InMemoryNotificationAdapter(NotificationAdapter):
    """
    Notification adapter for local runs and tests.

    `active` holds alerts that are scheduled and not yet cancelled;
    `history` keeps every alert ever scheduled.
    """

    def __init__(self, supported: bool = True, grant_permission: bool = True):
        self._supported = supported
        self._grant_permission = grant_permission
        self._counter = count(1)
        self.active: dict[str, ScheduledNotification] = {}
        self.history: list[ScheduledNotification] = []
        self.cancelled: list[str] = []

    @property
    def supported(self) -> bool:
        return self._supported

    async def request_permission(self) -> bool:
        return self._grant_permission

    async def schedule_at(
        self,
        key: str,
        when: datetime,
        content: NotificationContent,
    ) -> str:
        handle = f"notification-{next(self._counter)}"
        scheduled = ScheduledNotification(handle, key, when, content)
        self.active[handle] = scheduled
        self.history.append(scheduled)
        return handle

    async def cancel(self, handle: str) -> None:
        self.active.pop(handle, None)
        self.cancelled.append(handle)

    def active_for(self, key: str) -> list[ScheduledNotification]:
        return [n for n in self.active.values() if n.key == key]
