"""
Data Models Package

This package contains all Pydantic models used by the expense tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.profile import (
    Category,
    CategoryGroup,
    CurrencyCode,
    Expense,
    Income,
    IncomeFrequency,
    IncomeReminder,
    IncomeSourceType,
    LanguageCode,
    ProfileDetails,
    StudentIncomePreference,
    ThemeMode,
    UserType,
    new_id,
    to_money,
    weekday_index,
)
from expense_tracker.models.snapshot import (
    ExportDocument,
    ProfileSnapshot,
    Totals,
)
from expense_tracker.models.intents import (
    Intent,
    IntentType,
    MutationResult,
)
from expense_tracker.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Profile models
    "Category",
    "CategoryGroup",
    "CurrencyCode",
    "Expense",
    "Income",
    "IncomeFrequency",
    "IncomeReminder",
    "IncomeSourceType",
    "LanguageCode",
    "ProfileDetails",
    "StudentIncomePreference",
    "ThemeMode",
    "UserType",
    "new_id",
    "to_money",
    "weekday_index",
    # Snapshot models
    "ExportDocument",
    "ProfileSnapshot",
    "Totals",
    # Intents
    "Intent",
    "IntentType",
    "MutationResult",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
