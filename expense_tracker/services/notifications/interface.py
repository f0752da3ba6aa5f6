"""
Notification Adapter Interface

The tracker never delivers notifications itself. It talks to a platform
adapter that can schedule a point-in-time alert and cancel it again.
Everything else (which alerts exist, when they fire, replacing stale
ones) lives in NotificationScheduler.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class NotificationContent(BaseModel):
    """What the user sees when an alert fires."""

    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(default="", max_length=1000)
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque payload handed back by the platform on tap"
    )


class NotificationAdapter(ABC):
    """
    Abstract interface to a platform notification service.

    Handles returned by schedule_at are opaque to the tracker.
    """

    @property
    @abstractmethod
    def supported(self) -> bool:
        """Can this platform deliver notifications at all?"""
        pass

    @abstractmethod
    async def request_permission(self) -> bool:
        """
        Ask the user for permission to send notifications.

        Returns:
            True if permission is (or already was) granted
        """
        pass

    @abstractmethod
    async def schedule_at(
        self,
        key: str,
        when: datetime,
        content: NotificationContent,
    ) -> str:
        """
        Schedule an alert for a local point in time.

        Args:
            key: What the alert is about (a reminder id or a fixed key)
            when: Local time to fire at
            content: Title and body

        Returns:
            Handle that can be passed to cancel()

        Raises:
            NotificationError: If the platform refuses
        """
        pass

    @abstractmethod
    async def cancel(self, handle: str) -> None:
        """
        Cancel a scheduled alert.

        Raises:
            NotificationError: If the platform refuses
        """
        pass


class NotificationError(Exception):
    """Platform notification call failed."""
    pass
