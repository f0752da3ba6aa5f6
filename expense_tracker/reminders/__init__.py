"""Income reminder scheduling package."""

from expense_tracker.dates import normalize_timestamp, normalize_trigger_date, parse_date
from expense_tracker.reminders.engine import ReminderEngine
from expense_tracker.reminders.schedule import (
    IRREGULAR_HORIZON_DAYS,
    add_months,
    clamp_day,
    compute_next_trigger,
    days_in_month,
    monthly_trigger_on_or_after,
    to_iso_date,
)

__all__ = [
    "IRREGULAR_HORIZON_DAYS",
    "ReminderEngine",
    "add_months",
    "clamp_day",
    "compute_next_trigger",
    "days_in_month",
    "monthly_trigger_on_or_after",
    "normalize_timestamp",
    "normalize_trigger_date",
    "parse_date",
    "to_iso_date",
]
