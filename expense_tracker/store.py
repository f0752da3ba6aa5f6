"""
Profile Store

Composes the Ledger, the CategoryRegistry, the ReminderEngine and the
user's preferences into one profile, and converts all of it to and from
the single persisted ProfileSnapshot.

Lifecycle:
1. load() once at startup (missing or broken snapshots fall back to
   defaults, never fatal)
2. Synchronous mutations return intents
3. save() rewrites the whole snapshot (failures are logged, never raised)

DESIGN DECISION: The store only performs I/O in load(), save() and
clear_persisted(). Every other method is plain in-memory Python so the
mutation layer stays testable without storage.
"""

import locale
import os
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from expense_tracker.audit import AuditLogger
from expense_tracker.categories import CategoryRegistry
from expense_tracker.config import Settings, get_settings
from expense_tracker.formatting import format_full_name
from expense_tracker.ledger import Ledger
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.intents import Intent, MutationResult
from expense_tracker.models.profile import (
    CurrencyCode,
    LanguageCode,
    ProfileDetails,
    StudentIncomePreference,
    ThemeMode,
    UserType,
    to_money,
)
from expense_tracker.models.snapshot import ExportDocument, ProfileSnapshot, Totals
from expense_tracker.reminders import ReminderEngine
from expense_tracker.services.storage import SnapshotStorageInterface


logger = structlog.get_logger(__name__)


def detect_initial_language(locale_name: Optional[str] = None) -> LanguageCode:
    """
    Pick the starting UI language from the process locale.

    Russian and English locales map to their language; everything else
    starts in Azerbaijani.
    """
    if locale_name is None:
        locale_name = locale.getlocale()[0] or os.environ.get("LANG", "")
    code = (locale_name or "").lower()
    if code.startswith("ru"):
        return LanguageCode.RU
    if code.startswith("en"):
        return LanguageCode.EN
    return LanguageCode.AZ


class ProfileStore:
    """
    All state for one user profile.

    Args:
        storage: Snapshot storage backend.
        settings: Application settings; defaults to get_settings().
        audit_logger: Optional audit logger for snapshot failures.
    """

    def __init__(
        self,
        storage: SnapshotStorageInterface,
        settings: Optional[Settings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._settings = settings or get_settings()
        self._storage_key = self._settings.storage.storage_key
        self._audit = audit_logger
        self.is_hydrated = False
        self._apply_defaults()

    # -------------------------------------------------------------------------
    # Defaults & snapshot conversion
    # -------------------------------------------------------------------------

    def _apply_defaults(self) -> None:
        app = self._settings.app
        self.ledger = Ledger()
        self.categories = CategoryRegistry()
        self.reminders = ReminderEngine(self.ledger, settings=self._settings.reminders)
        self.user_type: Optional[UserType] = None
        self.profile = ProfileDetails()
        self.budget: Optional[Decimal] = None
        self.currency = CurrencyCode(app.default_currency)
        self.theme = ThemeMode(app.default_theme)
        self.language = detect_initial_language()
        self.language_selected = False
        self.notifications_enabled = False
        self.student_income_preference: Optional[StudentIncomePreference] = None

    def snapshot(self) -> ProfileSnapshot:
        """Capture the live state as a ProfileSnapshot."""
        return ProfileSnapshot(
            user_type=self.user_type,
            selected_categories=self.categories.selected,
            custom_categories=self.categories.custom,
            budget=self.budget,
            expenses=self.ledger.expenses,
            profile=self.profile,
            incomes=self.ledger.incomes,
            income_reminders=self.reminders.reminders,
            currency=self.currency,
            theme=self.theme,
            notifications_enabled=self.notifications_enabled,
            language=self.language,
            language_selected=self.language_selected,
            student_income_preference=self.student_income_preference,
        )

    def apply_snapshot(self, snapshot: ProfileSnapshot) -> None:
        """Replace the live state with a snapshot."""
        self.ledger = Ledger(expenses=snapshot.expenses, incomes=snapshot.incomes)
        self.categories = CategoryRegistry(
            selected=snapshot.selected_categories,
            custom=snapshot.custom_categories,
        )
        self.reminders = ReminderEngine(
            self.ledger,
            reminders=snapshot.income_reminders,
            settings=self._settings.reminders,
        )
        self.user_type = snapshot.user_type
        self.profile = snapshot.profile
        self.budget = snapshot.budget
        self.currency = snapshot.currency
        self.theme = snapshot.theme
        self.language = snapshot.language or detect_initial_language()
        self.language_selected = snapshot.language_selected
        self.notifications_enabled = snapshot.notifications_enabled
        self.student_income_preference = snapshot.student_income_preference

        if self.user_type is not None:
            dropped = self.categories.reconcile(self.user_type)
            if dropped:
                logger.info("categories_reconciled", dropped=dropped)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def load(self) -> bool:
        """
        Hydrate from storage.

        Returns True if a stored snapshot was applied. Unreadable entries
        are dropped individually; a missing or unparseable snapshot leaves
        the defaults in place.
        """
        try:
            payload = await self._storage.load_snapshot(self._storage_key)
        except Exception as e:
            await self._report_failure(AuditEventType.SNAPSHOT_LOAD_FAILED, e)
            self._apply_defaults()
            self.is_hydrated = True
            return False

        if payload is None:
            logger.info("snapshot_missing", storage_key=self._storage_key)
            self._apply_defaults()
            self.is_hydrated = True
            return False

        try:
            snapshot = ProfileSnapshot.model_validate_json(payload)
        except ValidationError as e:
            await self._report_failure(AuditEventType.SNAPSHOT_LOAD_FAILED, e)
            try:
                snapshot, dropped = ProfileSnapshot.salvage_json(payload)
            except ValueError:
                self._apply_defaults()
                self.is_hydrated = True
                return False
            logger.warning(
                "snapshot_entries_dropped",
                storage_key=self._storage_key,
                dropped=dropped,
            )

        self.apply_snapshot(snapshot)
        self.is_hydrated = True
        logger.info(
            "snapshot_loaded",
            storage_key=self._storage_key,
            expenses=len(snapshot.expenses),
            incomes=len(snapshot.incomes),
            reminders=len(snapshot.income_reminders),
        )
        return True

    async def save(self) -> bool:
        """Overwrite the stored snapshot. Returns False on failure."""
        try:
            payload = self.snapshot().model_dump_json()
            return await self._storage.save_snapshot(self._storage_key, payload)
        except Exception as e:
            await self._report_failure(AuditEventType.SNAPSHOT_SAVE_FAILED, e)
            return False

    async def clear_persisted(self) -> bool:
        try:
            return await self._storage.delete_snapshot(self._storage_key)
        except Exception as e:
            await self._report_failure(AuditEventType.SNAPSHOT_SAVE_FAILED, e)
            return False

    async def _report_failure(self, event_type: AuditEventType, error: Exception) -> None:
        logger.warning(
            "snapshot_failed",
            event_type=event_type.value,
            storage_key=self._storage_key,
            error=str(error),
        )
        if self._audit:
            await self._audit.log_snapshot_failed(
                event_type=event_type,
                storage_key=self._storage_key,
                error_message=str(error),
            )

    # -------------------------------------------------------------------------
    # Profile-wide operations
    # -------------------------------------------------------------------------

    def reset(self) -> MutationResult[None]:
        """Return every component to its defaults."""
        self._apply_defaults()
        return MutationResult(
            value=None,
            intents=[Intent.cancel_all_notifications(), Intent.clear_persisted()],
        )

    def totals(self) -> Totals:
        return Totals(
            income=self.ledger.total_income,
            expenses=self.ledger.total_expenses,
            balance=self.ledger.balance,
        )

    def export(self, exported_at: Optional[datetime] = None) -> str:
        """Pretty-printed JSON export of the snapshot plus totals."""
        document = ExportDocument(
            exported_at=exported_at or datetime.now(),
            snapshot=self.snapshot(),
            totals=self.totals(),
        )
        return document.model_dump_json(indent=2)

    @property
    def display_name(self) -> str:
        return format_full_name(self.profile)

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    def set_user_type(self, user_type: UserType) -> MutationResult[UserType]:
        """
        Switch the profile archetype.

        Switching clears categories, budget, expenses and the student
        income preference, since they belong to the previous archetype.
        """
        user_type = UserType(user_type)
        if user_type == self.user_type:
            return MutationResult.noop()

        self.user_type = user_type
        self.categories.clear()
        self.budget = None
        self.ledger.clear_expenses()
        self.student_income_preference = None
        return MutationResult(
            value=user_type,
            intents=[Intent.persist(), Intent.refresh_expense_alerts()],
        )

    def update_profile(self, **changes: Any) -> MutationResult[ProfileDetails]:
        unknown = set(changes) - set(ProfileDetails.model_fields)
        if unknown:
            raise ValueError(f"Cannot update profile fields: {', '.join(sorted(unknown))}")
        data = self.profile.model_dump()
        data.update(changes)
        self.profile = ProfileDetails.model_validate(data)
        return MutationResult(value=self.profile, intents=[Intent.persist()])

    def set_budget(self, budget: Any) -> MutationResult[Optional[Decimal]]:
        """Set (rounded) or clear (None) the monthly budget."""
        self.budget = None if budget is None else abs(to_money(budget))
        return MutationResult(
            value=self.budget,
            intents=[Intent.persist(), Intent.refresh_expense_alerts()],
        )

    def set_currency(self, currency: CurrencyCode) -> MutationResult[CurrencyCode]:
        self.currency = CurrencyCode(currency)
        return MutationResult(
            value=self.currency,
            intents=[Intent.persist(), Intent.resync_notifications()],
        )

    def set_theme(self, theme: ThemeMode) -> MutationResult[ThemeMode]:
        self.theme = ThemeMode(theme)
        return MutationResult(value=self.theme, intents=[Intent.persist()])

    def set_language(self, language: LanguageCode) -> MutationResult[LanguageCode]:
        self.language = LanguageCode(language)
        self.language_selected = True
        return MutationResult(value=self.language, intents=[Intent.persist()])

    def set_student_income_preference(
        self,
        preference: Optional[StudentIncomePreference],
    ) -> MutationResult[Optional[StudentIncomePreference]]:
        self.student_income_preference = (
            None if preference is None else StudentIncomePreference(preference)
        )
        return MutationResult(value=self.student_income_preference, intents=[Intent.persist()])

    def set_notifications_enabled(self, enabled: bool) -> MutationResult[bool]:
        """
        Flip the notifications flag.

        Enabling asks for a resync of every alert; disabling cancels them.
        Permission handling belongs to the caller.
        """
        self.notifications_enabled = bool(enabled)
        follow_up = (
            Intent.resync_notifications() if self.notifications_enabled
            else Intent.cancel_all_notifications()
        )
        return MutationResult(value=self.notifications_enabled, intents=[Intent.persist(), follow_up])
