"""
Side-Effect Intents

Mutations never perform I/O themselves. Instead they return a
MutationResult: the mutated value plus a list of intents describing the
side effects the caller should run (persist the snapshot, reschedule or
cancel a notification, ...). The orchestrator's IntentDispatcher executes
them.
"""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


class IntentType(str, Enum):
    """Side effects a mutation can request."""
    PERSIST = "persist"
    CLEAR_PERSISTED = "clear_persisted"
    SCHEDULE_REMINDER = "schedule_reminder"
    CANCEL_REMINDER = "cancel_reminder"
    CANCEL_ALL_NOTIFICATIONS = "cancel_all_notifications"
    RESYNC_NOTIFICATIONS = "resync_notifications"
    REFRESH_EXPENSE_ALERTS = "refresh_expense_alerts"


class Intent(BaseModel):
    """A single requested side effect."""
    model_config = ConfigDict(frozen=True)

    intent_type: IntentType
    reminder_id: Optional[str] = Field(
        default=None,
        description="Reminder the intent is about, for reminder intents"
    )

    @classmethod
    def persist(cls) -> "Intent":
        return cls(intent_type=IntentType.PERSIST)

    @classmethod
    def clear_persisted(cls) -> "Intent":
        return cls(intent_type=IntentType.CLEAR_PERSISTED)

    @classmethod
    def schedule_reminder(cls, reminder_id: str) -> "Intent":
        return cls(intent_type=IntentType.SCHEDULE_REMINDER, reminder_id=reminder_id)

    @classmethod
    def cancel_reminder(cls, reminder_id: str) -> "Intent":
        return cls(intent_type=IntentType.CANCEL_REMINDER, reminder_id=reminder_id)

    @classmethod
    def cancel_all_notifications(cls) -> "Intent":
        return cls(intent_type=IntentType.CANCEL_ALL_NOTIFICATIONS)

    @classmethod
    def resync_notifications(cls) -> "Intent":
        return cls(intent_type=IntentType.RESYNC_NOTIFICATIONS)

    @classmethod
    def refresh_expense_alerts(cls) -> "Intent":
        return cls(intent_type=IntentType.REFRESH_EXPENSE_ALERTS)


class MutationResult(BaseModel, Generic[T]):
    """
    Outcome of a mutating call.

    `applied` is False for lookup misses (unknown ids), which are silent
    no-ops: value is None and no intents are requested.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    value: Optional[T] = None
    applied: bool = True
    intents: list[Intent] = Field(default_factory=list)

    @classmethod
    def noop(cls) -> "MutationResult[Any]":
        return cls(value=None, applied=False, intents=[])

