"""
Reminder Schedule Math

Pure date arithmetic for income reminders: normalizing user-supplied
dates and computing the next expected occurrence for each frequency.

All results are calendar dates (no time component). Anything that cannot
be parsed falls back to today rather than producing an invalid date.
"""

import calendar
from datetime import date, timedelta
from typing import Any, Optional, Protocol

from expense_tracker.dates import normalize_trigger_date
from expense_tracker.models.profile import IncomeFrequency, weekday_index


IRREGULAR_HORIZON_DAYS = 30
MAX_DAY_OF_MONTH = 28


class SchedulableReminder(Protocol):
    """The subset of a reminder the schedule math reads."""
    frequency: IncomeFrequency
    day_of_month: Optional[int]
    weekday: Optional[int]
    next_trigger: date


def to_iso_date(value: date) -> str:
    """Canonical YYYY-MM-DD form."""
    return value.isoformat()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(value: int, upper: int = MAX_DAY_OF_MONTH) -> int:
    """Clamp a day-of-month into [1, upper]."""
    return max(1, min(upper, int(value)))


def add_months(d: date, n: int, day: Optional[int] = None) -> date:
    """
    Move n months from d, landing on `day` (default: d's day).

    The day is clamped to the target month's length, so day 31 in a
    30-day month becomes day 30 instead of rolling into the next month.
    """
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    target_day = d.day if day is None else day
    return date(year, month, min(target_day, days_in_month(year, month)))


def compute_next_trigger(
    reminder: SchedulableReminder,
    from_date: Any = None,
    irregular_horizon_days: int = IRREGULAR_HORIZON_DAYS,
) -> date:
    """
    Compute the occurrence after `from_date` (default: reminder.next_trigger).

    - monthly: one calendar month later, on day_of_month clamped to the
      length of that month
    - weekly: the next date on reminder.weekday, strictly after from_date
      (a full week when from_date already falls on it)
    - irregular: from_date plus the irregular horizon
    """
    base = normalize_trigger_date(
        from_date if from_date is not None else reminder.next_trigger
    )

    if reminder.frequency == IncomeFrequency.MONTHLY:
        desired = reminder.day_of_month
        if desired is None:
            desired = clamp_day(base.day)
        return add_months(base, 1, day=desired)

    if reminder.frequency == IncomeFrequency.WEEKLY:
        target = reminder.weekday if reminder.weekday is not None else weekday_index(base)
        diff = (target - weekday_index(base)) % 7 or 7
        return base + timedelta(days=diff)

    return base + timedelta(days=irregular_horizon_days)


def monthly_trigger_on_or_after(day: int, today: Optional[date] = None) -> date:
    """
    First date on `day` that is strictly after today.

    Used to seed a new monthly reminder: if this month's payday has
    already passed (or is today), the seed moves to next month.
    """
    today = today or date.today()
    candidate = date(today.year, today.month, min(clamp_day(day), days_in_month(today.year, today.month)))
    if candidate <= today:
        candidate = add_months(candidate, 1, day=clamp_day(day))
    return candidate
