"""
Configuration Management for Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Each concern (storage, reminders, notifications, app defaults) has its own
settings class and environment prefix, so a deployment can override one
area without touching the others.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Snapshot and audit log storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    data_dir: str = Field(
        default="~/.expense_tracker",
        description="Directory holding the persisted snapshot and audit log"
    )
    storage_key: str = Field(
        default="expense-tracker/profile-state-v1",
        min_length=1,
        description="Fixed key the profile snapshot is stored under"
    )
    audit_log_filename: str = Field(
        default="audit.jsonl",
        description="Audit log file name inside data_dir"
    )

    @field_validator('data_dir')
    @classmethod
    def expand_data_dir(cls, v: str) -> str:
        """Expand ~ so the path is usable as-is."""
        return str(Path(v).expanduser())

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def audit_log_path(self) -> Path:
        return self.data_path / self.audit_log_filename


class ReminderSettings(BaseSettings):
    """Income reminder scheduling configuration."""

    model_config = SettingsConfigDict(
        env_prefix="REMINDER_",
        extra="ignore"
    )

    irregular_horizon_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Days until an irregular reminder is surfaced again"
    )
    default_remind_hour: int = Field(
        default=9,
        ge=0,
        le=23,
        description="Local hour reminders fire at when none is given"
    )
    default_remind_minute: int = Field(
        default=0,
        ge=0,
        le=59,
        description="Local minute reminders fire at when none is given"
    )
    window_lead_days: int = Field(
        default=2,
        ge=0,
        le=27,
        description="Days before day_of_month a default reminder window opens"
    )
    max_day_of_month: int = Field(
        default=28,
        ge=1,
        le=28,
        description="Upper bound for monthly day_of_month (valid in every month)"
    )


class NotificationSettings(BaseSettings):
    """Notification scheduling configuration."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATIONS_",
        extra="ignore"
    )

    platform_supported: bool = Field(
        default=True,
        description="Whether the host platform can deliver notifications"
    )
    budget_warning_ratio: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Share of the budget spent that triggers a warning"
    )
    past_due_delay_seconds: int = Field(
        default=60,
        ge=1,
        description="Delay used when a reminder's alert time is already past"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Profile defaults
    default_currency: str = Field(
        default="AZN",
        pattern="^(AZN|USD|EUR)$",
        description="Currency of a fresh profile"
    )
    default_theme: str = Field(
        default="light",
        pattern="^(light|dark)$",
        description="Theme of a fresh profile"
    )

    # Validation thresholds
    max_reasonable_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Amount above which input is flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future an entry date can be"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def reminders(self) -> ReminderSettings:
        return ReminderSettings()

    @property
    def notifications(self) -> NotificationSettings:
        return NotificationSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, Any]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry describing each failure.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "reminders", "notifications", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
