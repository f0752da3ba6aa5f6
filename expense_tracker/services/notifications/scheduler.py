"""
Notification Scheduler

Decides which alerts exist and when they fire, and keeps at most one
scheduled alert per key (a reminder id, the daily summary). Scheduling a
key always cancels its previous handle first.

Alerts:
- Income reminders fire on next_trigger at remind_hour:remind_minute.
  If that moment has already passed the alert fires shortly from now.
- The budget warning fires once when spending reaches the warning ratio
  of the budget, and re-arms when spending drops back below it.
- The daily summary fires at the next local midnight.

DESIGN DECISION: Notification failures never propagate. They are
logged (and audited when an AuditLogger is attached) and the in-memory
state stays as the mutation left it.
"""

from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Optional

import structlog

from expense_tracker.config import NotificationSettings, get_settings
from expense_tracker.formatting import format_currency, format_date
from expense_tracker.models.profile import CurrencyCode, IncomeReminder
from expense_tracker.services.notifications.interface import (
    NotificationAdapter,
    NotificationContent,
)

if TYPE_CHECKING:
    from expense_tracker.audit import AuditLogger


DAILY_SUMMARY_KEY = "daily-summary"
BUDGET_WARNING_KEY = "budget-warning"

logger = structlog.get_logger(__name__)


class NotificationScheduler:
    """
    Keeps platform alerts in sync with the profile.

    Args:
        adapter: Platform notification adapter.
        audit_logger: Optional audit logger for failed platform calls.
        settings: Notification settings; defaults to the application settings.
    """

    def __init__(
        self,
        adapter: NotificationAdapter,
        audit_logger: Optional["AuditLogger"] = None,
        settings: Optional[NotificationSettings] = None,
    ):
        self._adapter = adapter
        self._audit = audit_logger
        self._settings = settings or get_settings().notifications
        self._handles: dict[str, str] = {}
        self._budget_warning_sent = False
        self.enabled = False

    @property
    def supported(self) -> bool:
        return self._settings.platform_supported and self._adapter.supported

    @property
    def can_schedule(self) -> bool:
        return self.enabled and self.supported

    @property
    def scheduled_keys(self) -> list[str]:
        return list(self._handles)

    def handle_for(self, key: str) -> Optional[str]:
        return self._handles.get(key)

    async def request_permission(self) -> bool:
        """Ask the platform for permission. Unsupported platforms say no."""
        if not self.supported:
            return False
        try:
            return await self._adapter.request_permission()
        except Exception as e:
            await self._report_failure("permission", "request_permission", e)
            return False

    # -------------------------------------------------------------------------
    # Income reminders
    # -------------------------------------------------------------------------

    def reminder_fire_time(self, reminder: IncomeReminder, now: Optional[datetime] = None) -> datetime:
        """When a reminder's alert should fire, relative to now."""
        now = now or datetime.now()
        when = datetime.combine(
            reminder.next_trigger,
            time(reminder.remind_hour, reminder.remind_minute),
        )
        if when <= now:
            when = now + timedelta(seconds=self._settings.past_due_delay_seconds)
        return when

    @staticmethod
    def reminder_content(reminder: IncomeReminder, currency: CurrencyCode) -> NotificationContent:
        if reminder.default_amount is not None:
            body = (
                f"Expected {format_currency(reminder.default_amount, currency)} "
                f"on {format_date(reminder.next_trigger)}. "
                "Confirm it once the money arrives."
            )
        else:
            body = "Confirm the income once the money arrives."
        return NotificationContent(
            title=f"Income reminder • {reminder.label}",
            body=body,
            data={"reminder_id": reminder.id},
        )

    async def schedule_reminder(
        self,
        reminder: IncomeReminder,
        currency: CurrencyCode,
        now: Optional[datetime] = None,
    ) -> Optional[str]:
        """
        (Re)schedule the alert for one reminder.

        Returns the new handle, or None when notifications are off or the
        platform call failed.
        """
        if not self.can_schedule:
            return None
        await self.cancel(reminder.id)
        return await self._schedule(
            reminder.id,
            self.reminder_fire_time(reminder, now=now),
            self.reminder_content(reminder, currency),
        )

    async def cancel_reminder(self, reminder_id: str) -> bool:
        return await self.cancel(reminder_id)

    async def resync(
        self,
        reminders: Iterable[IncomeReminder],
        currency: CurrencyCode,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Rebuild reminder alerts from scratch.

        Alerts for reminders that no longer exist are cancelled. With
        notifications off everything is cancelled.
        """
        if not self.can_schedule:
            await self.cancel_all()
            return

        reminders = list(reminders)
        live_ids = {r.id for r in reminders}
        for key in list(self._handles):
            if key not in live_ids and key != DAILY_SUMMARY_KEY:
                await self.cancel(key)
        for reminder in reminders:
            await self.schedule_reminder(reminder, currency, now=now)

    # -------------------------------------------------------------------------
    # Expense alerts
    # -------------------------------------------------------------------------

    async def check_budget(
        self,
        total_expenses: Decimal,
        budget: Optional[Decimal],
        currency: CurrencyCode,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Fire the budget warning if spending just crossed the threshold.

        Returns True when a warning was issued by this call.
        """
        if not self.enabled or not budget or budget <= 0:
            self._budget_warning_sent = False
            return False

        threshold = Decimal(str(self._settings.budget_warning_ratio))
        if total_expenses / budget < threshold:
            self._budget_warning_sent = False
            return False

        if self._budget_warning_sent:
            return False

        self._budget_warning_sent = True
        if self.supported:
            percent = int(threshold * 100)
            content = NotificationContent(
                title="Budget warning",
                body=(
                    f"You have spent {format_currency(total_expenses, currency)} "
                    f"of your {format_currency(budget, currency)} budget "
                    f"({percent}% or more)."
                ),
                data={"kind": BUDGET_WARNING_KEY},
            )
            # One-shot alert, so the handle is not tracked.
            try:
                await self._adapter.schedule_at(BUDGET_WARNING_KEY, now or datetime.now(), content)
            except Exception as e:
                await self._report_failure(BUDGET_WARNING_KEY, "schedule", e)
        return True

    @staticmethod
    def next_midnight(now: datetime) -> datetime:
        return datetime.combine(now.date() + timedelta(days=1), time.min)

    async def schedule_daily_summary(
        self,
        todays_total: Decimal,
        currency: CurrencyCode,
        now: Optional[datetime] = None,
    ) -> Optional[str]:
        """Replace the daily summary alert with today's spending total."""
        if not self.can_schedule:
            return None
        now = now or datetime.now()
        await self.cancel(DAILY_SUMMARY_KEY)
        content = NotificationContent(
            title="Daily summary",
            body=f"Today you spent {format_currency(todays_total, currency)}.",
            data={"kind": DAILY_SUMMARY_KEY, "date": now.date().isoformat()},
        )
        return await self._schedule(DAILY_SUMMARY_KEY, self.next_midnight(now), content)

    # -------------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------------

    async def cancel(self, key: str) -> bool:
        """Cancel the alert for a key. Returns False if none was scheduled."""
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        try:
            await self._adapter.cancel(handle)
        except Exception as e:
            await self._report_failure(key, "cancel", e)
            return False
        return True

    async def cancel_all(self) -> None:
        for key in list(self._handles):
            await self.cancel(key)
        self._budget_warning_sent = False

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _schedule(self, key: str, when: datetime, content: NotificationContent) -> Optional[str]:
        try:
            handle = await self._adapter.schedule_at(key, when, content)
        except Exception as e:
            await self._report_failure(key, "schedule", e)
            return None
        self._handles[key] = handle
        logger.debug("notification_scheduled", key=key, when=when.isoformat())
        return handle

    async def _report_failure(self, key: str, operation: str, error: Exception) -> None:
        logger.warning(
            "notification_failed",
            key=key,
            operation=operation,
            error=str(error),
        )
        if self._audit:
            await self._audit.log_notification_failed(
                key=key,
                operation=operation,
                error_message=str(error),
            )
