"""
Core Data Models for Expense Tracker

These models define the strict schemas for everything the tracker stores:
expenses, incomes, categories, income reminders and profile details.
They are designed to:
1. Enforce invariants at construction time (ranges, rounding, windows)
2. Be serializable for the persisted snapshot and the export document
3. Stay free of any I/O

DESIGN DECISION: Money is always a Decimal quantized to 2 places.
Rounding happens in a "before" validator so every stored amount is
already canonical, whatever the caller passed in.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from expense_tracker.dates import (
    normalize_timestamp,
    normalize_trigger_date,
    parse_optional_date,
)


MONEY_QUANTUM = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """
    Round a numeric value to 2 decimal places (half up).

    Floats go through str() so 0.1 stays 0.10 rather than its binary
    expansion. Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        if isinstance(value, float):
            value = Decimal(str(value))
        elif not isinstance(value, Decimal):
            value = Decimal(str(value).strip().replace(",", "."))
        return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")


def new_id(prefix: str) -> str:
    """Create a unique, namespaced identifier such as 'expense-3f2c...'."""
    return f"{prefix}-{uuid4().hex}"


def weekday_index(day: date) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6."""
    return day.isoweekday() % 7


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class UserType(str, Enum):
    """Profile archetypes; each has its own preset categories."""
    STUDENT = "student"
    WORKER = "worker"
    PARENT = "parent"


class CategoryGroup(str, Enum):
    """How often spending in a category typically happens."""
    DAILY = "daily"
    MONTHLY = "monthly"


class CurrencyCode(str, Enum):
    AZN = "AZN"
    USD = "USD"
    EUR = "EUR"


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class LanguageCode(str, Enum):
    AZ = "az"
    RU = "ru"
    EN = "en"


class StudentIncomePreference(str, Enum):
    """How a student profile is funded."""
    WORKING = "working"
    STIPEND = "stipend"
    MIXED = "mixed"


class IncomeSourceType(str, Enum):
    SALARY = "salary"
    PENSION = "pension"
    FREELANCE = "freelance"
    OTHER = "other"


class IncomeFrequency(str, Enum):
    """
    How often a reminder recurs.

    IRREGULAR reminders have no natural cycle; their next_trigger is the
    only thing that drives them.
    """
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    IRREGULAR = "irregular"


# =============================================================================
# CATEGORIES & LEDGER ENTRIES
# =============================================================================

class Category(BaseModel):
    """An expense category, either a preset or user-created."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique category ID (preset ids or 'custom-...')"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    description: str = Field(
        default="",
        max_length=300,
        description="Short explanation of what belongs here"
    )
    group: CategoryGroup = Field(
        default=CategoryGroup.DAILY,
        description="Daily or monthly spending"
    )
    is_custom: bool = Field(
        default=False,
        description="Was this created by the user?"
    )


class Expense(BaseModel):
    """
    A single recorded expense.

    Immutable once created; the ledger only drops expenses on a full reset.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=lambda: new_id("expense"),
        description="Unique expense ID"
    )
    category_id: str = Field(
        ...,
        min_length=1,
        description="Category this expense belongs to"
    )
    title: str = Field(
        default="",
        max_length=200,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount, rounded to 2 decimals"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the expense happened (local time)"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def round_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    @field_validator('created_at', mode='before')
    @classmethod
    def parse_created_at(cls, v: Any) -> datetime:
        return normalize_timestamp(v, datetime.now())


class Income(BaseModel):
    """
    A single recorded income.

    reminder_id is a plain back-reference to the reminder that produced
    this entry. The reminder may since have been removed.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=lambda: new_id("income"),
        description="Unique income ID"
    )
    source: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Where the money came from"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount, rounded to 2 decimals"
    )
    received_at: datetime = Field(
        default_factory=datetime.now,
        description="When the income was received (local time)"
    )
    reminder_id: Optional[str] = Field(
        default=None,
        description="Reminder this income was confirmed from, if any"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def round_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    @field_validator('received_at', mode='before')
    @classmethod
    def parse_received_at(cls, v: Any) -> datetime:
        return normalize_timestamp(v, datetime.now())


class ProfileDetails(BaseModel):
    """Personal details shown on the profile screen."""
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    birth_date: Optional[date] = None

    @field_validator('birth_date', mode='before')
    @classmethod
    def parse_birth_date(cls, v: Any) -> Optional[date]:
        return parse_optional_date(v)


# =============================================================================
# INCOME REMINDER
# =============================================================================

class IncomeReminder(BaseModel):
    """
    A recurring income event the user wants to be reminded about.

    The engine replaces reminders wholesale on every transition; each
    replacement is re-validated, so the invariants below hold for every
    stored reminder.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=lambda: new_id("income-reminder"),
        description="Unique reminder ID"
    )
    source_type: IncomeSourceType
    label: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Name used as the income source on confirm"
    )
    frequency: IncomeFrequency

    day_of_month: Optional[int] = Field(
        default=None,
        ge=1,
        le=28,
        description="Expected day for monthly reminders"
    )
    weekday: Optional[int] = Field(
        default=None,
        ge=0,
        le=6,
        description="Expected weekday for weekly reminders (Sunday = 0)"
    )
    next_trigger: date = Field(
        ...,
        description="Next expected occurrence"
    )
    auto_add_on_confirm: bool = False

    # Monthly auto-detection window (inclusive day-of-month bounds)
    window_start_day: Optional[int] = Field(default=None, ge=1, le=31)
    window_end_day: Optional[int] = Field(default=None, ge=1, le=31)

    auto_renew: bool = Field(
        default=False,
        description="Surface for confirmation without an explicit request"
    )
    default_amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Amount used to prefill the confirmation prompt"
    )

    remind_hour: int = Field(default=9, ge=0, le=23)
    remind_minute: int = Field(default=0, ge=0, le=59)

    last_triggered_at: Optional[date] = None
    last_received_at: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator('default_amount', mode='before')
    @classmethod
    def round_default_amount(cls, v: Any) -> Optional[Decimal]:
        if v is None:
            return None
        return to_money(v)

    @field_validator('next_trigger', mode='before')
    @classmethod
    def parse_next_trigger(cls, v: Any) -> date:
        """Unreadable dates fall back to today instead of failing."""
        return normalize_trigger_date(v)

    @field_validator('last_triggered_at', mode='before')
    @classmethod
    def parse_last_triggered_at(cls, v: Any) -> Optional[date]:
        return parse_optional_date(v)

    @field_validator('last_received_at', mode='before')
    @classmethod
    def parse_last_received_at(cls, v: Any) -> Optional[datetime]:
        return normalize_timestamp(v, None)

    @model_validator(mode='after')
    def validate_schedule(self) -> 'IncomeReminder':
        """Validate window bounds and frequency-specific fields."""
        if self.window_start_day is not None and self.window_end_day is not None:
            if self.window_start_day > self.window_end_day:
                raise ValueError("Window start day cannot be after window end day")

        if self.frequency == IncomeFrequency.MONTHLY and self.day_of_month is None:
            raise ValueError("Monthly reminders need a day of month")

        if self.frequency == IncomeFrequency.WEEKLY and self.weekday is None:
            raise ValueError("Weekly reminders need a weekday")

        return self
