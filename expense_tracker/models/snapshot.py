"""
Snapshot and Export Models

The ProfileSnapshot is the single persisted record: everything the
tracker knows about one user, written whole on every change.
The ExportDocument wraps a snapshot with computed totals for sharing.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from expense_tracker.models.profile import (
    Category,
    CurrencyCode,
    Expense,
    Income,
    IncomeReminder,
    LanguageCode,
    ProfileDetails,
    StudentIncomePreference,
    ThemeMode,
    UserType,
    to_money,
)


# List fields whose entries can be dropped one by one when unreadable
_ENTRY_MODELS = {
    "selected_categories": Category,
    "custom_categories": Category,
    "expenses": Expense,
    "incomes": Income,
    "income_reminders": IncomeReminder,
}


class ProfileSnapshot(BaseModel):
    """
    Serialized aggregate of all persisted application state.

    Every field has a default so a partially written or older snapshot
    still loads.
    """

    user_type: Optional[UserType] = None
    selected_categories: list[Category] = Field(default_factory=list)
    custom_categories: list[Category] = Field(default_factory=list)
    budget: Optional[Decimal] = Field(default=None, ge=0)
    expenses: list[Expense] = Field(default_factory=list)
    profile: ProfileDetails = Field(default_factory=ProfileDetails)
    incomes: list[Income] = Field(default_factory=list)
    income_reminders: list[IncomeReminder] = Field(default_factory=list)
    currency: CurrencyCode = CurrencyCode.AZN
    theme: ThemeMode = ThemeMode.LIGHT
    notifications_enabled: bool = False
    language: Optional[LanguageCode] = None
    language_selected: bool = False
    student_income_preference: Optional[StudentIncomePreference] = None

    @field_validator('budget', mode='before')
    @classmethod
    def round_budget(cls, v: Any) -> Optional[Decimal]:
        if v is None:
            return None
        return to_money(v)

    @classmethod
    def salvage_json(cls, payload: str) -> tuple["ProfileSnapshot", list[str]]:
        """
        Load a snapshot that failed validation, keeping what is readable.

        Invalid list entries are dropped one at a time; any other invalid
        top-level field falls back to its default. Returns the snapshot and
        the locations that were dropped.

        Raises ValueError if the payload is not a JSON object.
        """
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise ValueError("Snapshot payload is not a JSON object")

        dropped: list[str] = []
        for field, model in _ENTRY_MODELS.items():
            entries = data.get(field)
            if entries is None:
                continue
            if not isinstance(entries, list):
                del data[field]
                dropped.append(field)
                continue
            kept = []
            for index, entry in enumerate(entries):
                try:
                    model.model_validate(entry)
                except ValidationError:
                    dropped.append(f"{field}.{index}")
                else:
                    kept.append(entry)
            data[field] = kept

        try:
            return cls.model_validate(data), dropped
        except ValidationError as e:
            bad_fields = sorted({str(error["loc"][0]) for error in e.errors() if error["loc"]})
            for field in bad_fields:
                data.pop(field, None)
            dropped.extend(bad_fields)
            return cls.model_validate(data), dropped


class Totals(BaseModel):
    """Ledger totals at a point in time."""

    income: Decimal
    expenses: Decimal
    balance: Decimal


class ExportDocument(BaseModel):
    """Human-readable export of the full profile, for sharing or backup."""

    exported_at: datetime = Field(default_factory=datetime.now)
    snapshot: ProfileSnapshot
    totals: Totals
