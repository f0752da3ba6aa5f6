"""
Income Reminder Engine

Owns the lifecycle of recurring income reminders:

    Scheduled --confirm--> Scheduled (next period)   [+ one Income]
    Scheduled --skip-----> Scheduled (next period)
    Scheduled --remove---> Removed

There is no overdue state. A missed reminder stays Scheduled with a past
next_trigger until the user confirms or skips it.

The engine mutates only in-memory state (its reminder list and, on
confirm, the ledger it was built with). Every mutator returns a
MutationResult whose intents ask the caller to persist the snapshot and
reschedule or cancel the reminder's notification.

Lookup misses (unknown reminder ids) are silent no-ops.
"""

from datetime import date, datetime, time
from typing import Any, Iterable, Optional

from expense_tracker.config import ReminderSettings, get_settings
from expense_tracker.dates import normalize_timestamp, normalize_trigger_date
from expense_tracker.ledger import Ledger
from expense_tracker.models.intents import Intent, MutationResult
from expense_tracker.models.profile import (
    Income,
    IncomeFrequency,
    IncomeReminder,
    IncomeSourceType,
    to_money,
    weekday_index,
)
from expense_tracker.reminders.schedule import clamp_day, compute_next_trigger


# Fields update_reminder accepts; id and history fields are engine-owned.
UPDATABLE_FIELDS = frozenset({
    "source_type",
    "label",
    "frequency",
    "day_of_month",
    "weekday",
    "next_trigger",
    "auto_add_on_confirm",
    "window_start_day",
    "window_end_day",
    "auto_renew",
    "default_amount",
    "remind_hour",
    "remind_minute",
    "notes",
})


class ReminderEngine:
    """
    Recurring income reminders for one profile.

    Args:
        ledger: Ledger that confirmed reminders record their income in.
        reminders: Reminders restored from a snapshot.
        settings: Reminder settings; defaults to the application settings.
    """

    def __init__(
        self,
        ledger: Ledger,
        reminders: Optional[Iterable[IncomeReminder]] = None,
        settings: Optional[ReminderSettings] = None,
    ):
        self._ledger = ledger
        self._reminders: list[IncomeReminder] = list(reminders or [])
        self._settings = settings or get_settings().reminders

    @property
    def reminders(self) -> list[IncomeReminder]:
        return list(self._reminders)

    def get(self, reminder_id: str) -> Optional[IncomeReminder]:
        for reminder in self._reminders:
            if reminder.id == reminder_id:
                return reminder
        return None

    def _replace(self, updated: IncomeReminder) -> None:
        self._reminders = [
            updated if r.id == updated.id else r for r in self._reminders
        ]

    @staticmethod
    def _rebuild(reminder: IncomeReminder, **changes: Any) -> IncomeReminder:
        """Copy a reminder with changes, re-running model validation."""
        data = reminder.model_dump()
        data.update(changes)
        return IncomeReminder.model_validate(data)

    def _next_trigger(self, reminder: IncomeReminder, from_date: Any = None) -> date:
        return compute_next_trigger(
            reminder,
            from_date=from_date,
            irregular_horizon_days=self._settings.irregular_horizon_days,
        )

    @staticmethod
    def _reschedule_intents(reminder_id: str) -> list[Intent]:
        return [Intent.schedule_reminder(reminder_id), Intent.persist()]

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def add_reminder(
        self,
        source_type: IncomeSourceType,
        label: str,
        frequency: IncomeFrequency,
        next_trigger_seed: Any,
        auto_add_on_confirm: bool,
        window_start_day: Optional[int] = None,
        window_end_day: Optional[int] = None,
        auto_renew: bool = False,
        default_amount: Any = None,
        remind_hour: Optional[int] = None,
        remind_minute: Optional[int] = None,
        notes: Optional[str] = None,
        day_of_month: Optional[int] = None,
        weekday: Optional[int] = None,
        today: Optional[date] = None,
    ) -> MutationResult[IncomeReminder]:
        """
        Create a reminder and request its notification.

        The seed is normalized to a calendar date (invalid or missing input
        becomes today). Monthly reminders take day_of_month from the input
        or from the seed; a given day_of_month is clamped to [1, 28] for
        every frequency. Weekly reminders take weekday from the input or
        from the seed.

        Raises ValueError (pydantic ValidationError) when the resulting
        reminder breaks a model invariant, e.g. window start after end.
        """
        frequency = IncomeFrequency(frequency)
        seed = normalize_trigger_date(next_trigger_seed, today=today)

        if frequency == IncomeFrequency.MONTHLY and day_of_month is None:
            day_of_month = seed.day
        if day_of_month is not None:
            day_of_month = clamp_day(day_of_month, upper=self._settings.max_day_of_month)
        if frequency == IncomeFrequency.WEEKLY and weekday is None:
            weekday = weekday_index(seed)

        reminder = IncomeReminder(
            source_type=source_type,
            label=label,
            frequency=frequency,
            day_of_month=day_of_month,
            weekday=weekday,
            next_trigger=seed,
            auto_add_on_confirm=auto_add_on_confirm,
            window_start_day=window_start_day,
            window_end_day=window_end_day,
            auto_renew=auto_renew,
            default_amount=default_amount,
            remind_hour=(
                remind_hour if remind_hour is not None
                else self._settings.default_remind_hour
            ),
            remind_minute=(
                remind_minute if remind_minute is not None
                else self._settings.default_remind_minute
            ),
            last_triggered_at=None,
            last_received_at=None,
            notes=notes,
        )
        self._reminders.append(reminder)
        return MutationResult(
            value=reminder,
            intents=self._reschedule_intents(reminder.id),
        )

    def update_reminder(self, reminder_id: str, **updates: Any) -> MutationResult[IncomeReminder]:
        """
        Apply a partial update to a reminder.

        next_trigger is normalized, default_amount is made absolute and
        rounded. Unknown field names raise ValueError; unknown ids are a
        no-op.
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update reminder fields: {', '.join(sorted(unknown))}")

        reminder = self.get(reminder_id)
        if reminder is None:
            return MutationResult.noop()

        if "next_trigger" in updates:
            updates["next_trigger"] = normalize_trigger_date(updates["next_trigger"])
        if updates.get("default_amount") is not None:
            updates["default_amount"] = abs(to_money(updates["default_amount"]))
        if updates.get("day_of_month") is not None:
            updates["day_of_month"] = clamp_day(
                updates["day_of_month"], upper=self._settings.max_day_of_month
            )

        # Switching frequency derives the missing field from next_trigger
        frequency = IncomeFrequency(updates.get("frequency", reminder.frequency))
        anchor = updates.get("next_trigger", reminder.next_trigger)
        if frequency == IncomeFrequency.MONTHLY and updates.get("day_of_month", reminder.day_of_month) is None:
            updates["day_of_month"] = clamp_day(anchor.day, upper=self._settings.max_day_of_month)
        if frequency == IncomeFrequency.WEEKLY and updates.get("weekday", reminder.weekday) is None:
            updates["weekday"] = weekday_index(anchor)

        updated = self._rebuild(reminder, **updates)
        self._replace(updated)
        return MutationResult(value=updated, intents=self._reschedule_intents(updated.id))

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def confirm_reminder(
        self,
        reminder_id: str,
        amount: Any,
        received_at: Any = None,
    ) -> MutationResult[IncomeReminder]:
        """
        Log the income for the current period and advance the reminder.

        Records exactly one Income (source = label, reminder_id = id) with
        the absolute, rounded amount. received_at defaults to midnight of
        the reminder's current next_trigger.
        """
        reminder = self.get(reminder_id)
        if reminder is None:
            return MutationResult.noop()

        confirmed_amount = abs(to_money(amount))
        due_date = reminder.next_trigger
        receipt = normalize_timestamp(
            received_at,
            fallback=datetime.combine(due_date, time.min),
        )

        updated = self._rebuild(
            reminder,
            default_amount=confirmed_amount,
            next_trigger=self._next_trigger(reminder, from_date=due_date),
            last_triggered_at=due_date,
            last_received_at=receipt,
        )

        income_result = self._ledger.add_income(
            source=reminder.label,
            amount=confirmed_amount,
            received_at=receipt,
            reminder_id=reminder.id,
        )
        self._replace(updated)

        return MutationResult(
            value=updated,
            intents=[*income_result.intents, *self._reschedule_intents(updated.id)],
        )

    def skip_reminder(
        self,
        reminder_id: str,
        next_trigger_override: Any = None,
    ) -> MutationResult[IncomeReminder]:
        """
        Advance a reminder without logging an income.

        An override (normalized) replaces the computed next occurrence.
        """
        reminder = self.get(reminder_id)
        if reminder is None:
            return MutationResult.noop()

        if next_trigger_override:
            upcoming = normalize_trigger_date(next_trigger_override)
        else:
            upcoming = self._next_trigger(reminder)

        updated = self._rebuild(
            reminder,
            next_trigger=upcoming,
            last_triggered_at=reminder.next_trigger,
        )
        self._replace(updated)
        return MutationResult(value=updated, intents=self._reschedule_intents(updated.id))

    def remove_reminder(self, reminder_id: str) -> MutationResult[IncomeReminder]:
        """
        Delete a reminder and cancel its notification.

        Incomes that reference it are left untouched.
        """
        reminder = self.get(reminder_id)
        if reminder is None:
            return MutationResult.noop()

        self._reminders = [r for r in self._reminders if r.id != reminder_id]
        return MutationResult(
            value=reminder,
            intents=[Intent.cancel_reminder(reminder_id), Intent.persist()],
        )

    def clear(self) -> None:
        self._reminders.clear()

    # -------------------------------------------------------------------------
    # Auto-detection
    # -------------------------------------------------------------------------

    def window_for(self, reminder: IncomeReminder) -> tuple[int, int]:
        """
        Inclusive day-of-month window for a monthly reminder.

        Explicit bounds win; otherwise the window is the few days leading
        up to day_of_month.
        """
        day = reminder.day_of_month or self._settings.max_day_of_month
        start = (
            reminder.window_start_day if reminder.window_start_day is not None
            else max(1, day - self._settings.window_lead_days)
        )
        end = reminder.window_end_day if reminder.window_end_day is not None else day
        return start, end

    @staticmethod
    def logged_in_month(reminder_id: str, incomes: Iterable[Income], today: date) -> bool:
        """Has an income for this reminder been received in today's calendar month?"""
        return any(
            income.reminder_id == reminder_id
            and income.received_at.year == today.year
            and income.received_at.month == today.month
            for income in incomes
        )

    def is_pending(
        self,
        reminder: IncomeReminder,
        incomes: Iterable[Income],
        today: date,
    ) -> bool:
        if not reminder.auto_renew:
            return False

        if self.logged_in_month(reminder.id, incomes, today):
            return False

        if reminder.frequency == IncomeFrequency.MONTHLY:
            start, end = self.window_for(reminder)
            return start <= today.day <= end

        if reminder.frequency == IncomeFrequency.IRREGULAR:
            return reminder.next_trigger == today

        # Weekly reminders rely on notifications only.
        return False

    def pending_reminders(
        self,
        incomes: Optional[Iterable[Income]] = None,
        today: Optional[date] = None,
    ) -> list[IncomeReminder]:
        """
        Reminders that should be surfaced for confirmation today.

        Defaults to the engine's own ledger incomes and today's date.
        """
        today = today or date.today()
        income_list = list(incomes) if incomes is not None else self._ledger.incomes
        return [r for r in self._reminders if self.is_pending(r, income_list, today)]

    def next_reminder(self) -> Optional[IncomeReminder]:
        """The reminder with the earliest next_trigger, if any."""
        if not self._reminders:
            return None
        return min(self._reminders, key=lambda r: r.next_trigger)
