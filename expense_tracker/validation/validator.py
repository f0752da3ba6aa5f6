"""
Input Validation

DESIGN DECISION: Validation happens before any mutation, on the raw
values the user typed. It is separate from the models:

MODEL INVARIANTS (pydantic):
- Types, ranges and rounding
- Structural rules such as window start <= window end
- These raise and can never be bypassed

INPUT VALIDATION (this module):
- Business rules the models deliberately allow, e.g. a zero or negative
  expense amount
- Suspicious but legal values (huge amounts, far-future dates), reported
  as warnings
- User-facing messages with suggested fixes

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the caller decides whether to proceed.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

from expense_tracker.config import AppSettings, get_settings
from expense_tracker.models.profile import IncomeFrequency, to_money
from expense_tracker.models.validation import ValidationIssue, ValidationResult


class InputValidationError(ValueError):
    """Raised by callers when a ValidationResult contains errors."""

    def __init__(self, result: ValidationResult, message: Optional[str] = None):
        self.result = result
        super().__init__(message or get_user_friendly_summary(result))


def _error(field: str, issue_type: str, message: str, suggested_fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=suggested_fix,
    )


def _warning(field: str, issue_type: str, message: str, suggested_fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
        suggested_fix=suggested_fix,
    )


class InputValidator:
    """
    Validates user input for every mutating action.

    Each validate_* method returns a ValidationResult; none of them raise.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    # -------------------------------------------------------------------------
    # Shared checks
    # -------------------------------------------------------------------------

    def _check_amount(
        self,
        value: Any,
        field: str = "amount",
        allow_zero: bool = False,
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        """
        Parse and range-check an amount.

        Returns (parsed_amount_or_None, issues).
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            return None, [_error(field, "missing", "Amount is required", "Enter an amount")]

        try:
            amount = to_money(value)
        except ValueError:
            return None, [_error(
                field,
                "invalid_value",
                f"'{value}' is not a valid amount",
                "Use digits with an optional decimal point, e.g. 12.50",
            )]

        issues = []
        if amount < 0 or (amount == 0 and not allow_zero):
            issues.append(_error(
                field,
                "invalid_value",
                "Amount must be greater than zero" if not allow_zero
                else "Amount cannot be negative",
                "Enter a positive amount",
            ))
            return amount, issues

        max_amount = Decimal(str(self._settings.max_reasonable_amount))
        if amount > max_amount:
            issues.append(_warning(
                field,
                "suspicious_value",
                f"Amount ({amount:,.2f}) seems unusually high",
                "Please verify this amount is correct",
            ))

        return amount, issues

    def _check_required_text(self, value: Optional[str], field: str, label: str) -> list[ValidationIssue]:
        if value is None or not str(value).strip():
            return [_error(field, "missing", f"{label} is required", f"Enter a {label.lower()}")]
        return []

    def _check_timestamp(self, value: Any, field: str) -> list[ValidationIssue]:
        """Warn about dates too far in the future. Unparseable dates are not an error."""
        if value is None:
            return []
        if isinstance(value, datetime):
            day = value.date()
        elif isinstance(value, date):
            day = value
        else:
            return []

        max_future = date.today() + timedelta(days=self._settings.future_date_tolerance_days)
        if day > max_future:
            return [_warning(
                field,
                "future_date",
                f"Date ({day.isoformat()}) is in the future",
                "Please verify the date is correct",
            )]
        return []

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def validate_expense(
        self,
        category_id: Optional[str],
        amount: Any,
        title: str = "",
        created_at: Any = None,
    ) -> ValidationResult:
        issues = self._check_required_text(category_id, "category_id", "Category")
        _, amount_issues = self._check_amount(amount)
        issues.extend(amount_issues)
        issues.extend(self._check_timestamp(created_at, "created_at"))
        if title and len(title.strip()) > 200:
            issues.append(_error("title", "too_long", "Title must be at most 200 characters"))
        return ValidationResult(action="add_expense", issues=issues)

    def validate_income(
        self,
        source: Optional[str],
        amount: Any,
        received_at: Any = None,
    ) -> ValidationResult:
        issues = self._check_required_text(source, "source", "Source")
        _, amount_issues = self._check_amount(amount)
        issues.extend(amount_issues)
        issues.extend(self._check_timestamp(received_at, "received_at"))
        return ValidationResult(action="add_income", issues=issues)

    def validate_reminder(
        self,
        label: Optional[str],
        frequency: Any,
        window_start_day: Optional[int] = None,
        window_end_day: Optional[int] = None,
        day_of_month: Optional[int] = None,
        weekday: Optional[int] = None,
        remind_hour: Optional[int] = None,
        remind_minute: Optional[int] = None,
        default_amount: Any = None,
        action: str = "add_reminder",
    ) -> ValidationResult:
        """
        Validate the fields of a new or updated reminder.

        day_of_month above 28 is only a warning: it is clamped on save.
        """
        issues = []
        if action == "add_reminder" or label is not None:
            issues.extend(self._check_required_text(label, "label", "Label"))

        if frequency is not None:
            try:
                IncomeFrequency(frequency)
            except ValueError:
                issues.append(_error(
                    "frequency",
                    "invalid_value",
                    f"Unknown frequency '{frequency}'",
                    "Choose monthly, weekly or irregular",
                ))

        for field, value in (("window_start_day", window_start_day), ("window_end_day", window_end_day)):
            if value is not None and not 1 <= value <= 31:
                issues.append(_error(field, "out_of_range", "Window days must be between 1 and 31"))

        if (
            window_start_day is not None
            and window_end_day is not None
            and window_start_day > window_end_day
        ):
            issues.append(_error(
                "window_start_day",
                "inconsistent",
                "Window start day cannot be after window end day",
                "Swap the two days",
            ))

        if day_of_month is not None:
            if day_of_month < 1 or day_of_month > 31:
                issues.append(_error("day_of_month", "out_of_range", "Day of month must be between 1 and 31"))
            elif day_of_month > 28:
                issues.append(_warning(
                    "day_of_month",
                    "clamped",
                    f"Day {day_of_month} will be saved as day 28",
                    "Days after the 28th do not exist in every month",
                ))

        if weekday is not None and not 0 <= weekday <= 6:
            issues.append(_error("weekday", "out_of_range", "Weekday must be between 0 (Sunday) and 6 (Saturday)"))

        if remind_hour is not None and not 0 <= remind_hour <= 23:
            issues.append(_error("remind_hour", "out_of_range", "Hour must be between 0 and 23"))

        if remind_minute is not None and not 0 <= remind_minute <= 59:
            issues.append(_error("remind_minute", "out_of_range", "Minute must be between 0 and 59"))

        if default_amount is not None and default_amount != "":
            _, amount_issues = self._check_amount(default_amount, field="default_amount", allow_zero=True)
            issues.extend(amount_issues)

        return ValidationResult(action=action, issues=issues)

    def validate_confirm_amount(self, amount: Any) -> ValidationResult:
        _, issues = self._check_amount(amount)
        return ValidationResult(action="confirm_reminder", issues=issues)

    def validate_category_name(self, name: Optional[str]) -> ValidationResult:
        issues = self._check_required_text(name, "name", "Name")
        if not issues and len(name.strip()) > 100:
            issues.append(_error("name", "too_long", "Name must be at most 100 characters"))
        return ValidationResult(action="add_custom_category", issues=issues)

    def validate_budget(self, budget: Any) -> ValidationResult:
        _, issues = self._check_amount(budget, field="budget")
        return ValidationResult(action="set_budget", issues=issues)


def get_user_friendly_summary(result: ValidationResult) -> str:
    """
    Generate a user-friendly summary of validation results.

    This is what we show to non-technical users.
    """
    if result.is_valid and not result.warnings:
        return "✅ All checks passed!"

    lines = []

    if result.has_errors:
        lines.append("❌ Please fix the following:")
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

    if result.warnings:
        if lines:
            lines.append("")
        lines.append("⚠️ Please verify the following:")
        for warning in result.warnings:
            lines.append(f"   • {warning}")

    return "\n".join(lines)
