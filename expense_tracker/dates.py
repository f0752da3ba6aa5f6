"""
Date Parsing Helpers

Lenient parsing for dates and timestamps coming from callers or from a
stored snapshot. Nothing here raises: unparseable input resolves to a
fallback (today, a given timestamp, or None for optional fields).

Kept free of package imports so the models can use it.
"""

from datetime import date, datetime, time
from typing import Any, Optional


_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d")


def parse_date(value: str) -> Optional[date]:
    """Parse YYYY-MM-DD (or a full ISO timestamp), returning None on failure."""
    if not value:
        return None
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def parse_optional_date(value: Any) -> Optional[date]:
    """Like normalize_trigger_date, but unparseable input becomes None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date(value)
    return None


def normalize_trigger_date(value: Any, today: Optional[date] = None) -> date:
    """
    Turn any trigger input into a calendar date.

    Accepts a date, a datetime (time is dropped) or a string. Missing or
    unparseable input falls back to today.
    """
    return parse_optional_date(value) or today or date.today()


def normalize_timestamp(value: Any, fallback: Optional[datetime]) -> Optional[datetime]:
    """
    Turn a receipt time into a naive local datetime.

    Dates become midnight; aware datetimes are converted to local time.
    Unparseable input yields the fallback.
    """
    if value is None:
        return fallback
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        try:
            return normalize_timestamp(datetime.fromisoformat(text), fallback)
        except ValueError:
            parsed = parse_date(text)
            return datetime.combine(parsed, time.min) if parsed else fallback
    return fallback
