"""Caller-side input validation."""

from expense_tracker.validation.validator import (
    InputValidationError,
    InputValidator,
    get_user_friendly_summary,
)

__all__ = [
    "InputValidationError",
    "InputValidator",
    "get_user_friendly_summary",
]
