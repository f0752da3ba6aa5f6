"""Display formatting for amounts, dates and names."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from expense_tracker.models.profile import CurrencyCode, ProfileDetails, to_money


def format_currency(value: Union[Decimal, float, int, None], currency: Union[CurrencyCode, str]) -> str:
    """Format an amount as e.g. '1,200.00 AZN'. Invalid amounts render as zero."""
    code = currency.value if isinstance(currency, CurrencyCode) else str(currency)
    try:
        amount = to_money(value)
    except ValueError:
        amount = Decimal("0.00")
    return f"{amount:,.2f} {code}"


def format_date(value: Union[date, datetime, str, None], fallback: str = "-") -> str:
    """Format a date as e.g. '5 Mar 2026'."""
    if value is None or value == "":
        return fallback
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return fallback
    return f"{value.day} {value.strftime('%b %Y')}"


def format_full_name(profile: ProfileDetails, fallback: Optional[str] = "User") -> str:
    parts = [p for p in (profile.first_name.strip(), profile.last_name.strip()) if p]
    return " ".join(parts) if parts else fallback
