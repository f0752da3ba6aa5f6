"""
Main Orchestrator for the Expense Tracker

This module ties together all the components and defines the
end-to-end flow for every user action:

    input → validate → mutate (in memory) → audit → dispatch intents

DESIGN DECISION: The orchestrator enforces the boundaries:
- Invalid input never reaches a mutation
- Mutations never perform I/O; their intents do
- Side-effect failures (storage, notifications) never undo a mutation
- Every user action is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from datetime import date, datetime
from typing import Any, Iterable, Optional
from uuid import UUID

import structlog

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.config import Settings, get_settings
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.intents import Intent, IntentType, MutationResult
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
)
from expense_tracker.models.validation import ValidationResult
from expense_tracker.reminders import monthly_trigger_on_or_after, to_iso_date
from expense_tracker.services.notifications import (
    InMemoryNotificationAdapter,
    NotificationAdapter,
    NotificationScheduler,
)
from expense_tracker.services.storage import (
    InMemorySnapshotStorage,
    JsonLinesAuditStorage,
    LocalFileSnapshotStorage,
    SnapshotStorageInterface,
)
from expense_tracker.store import ProfileStore
from expense_tracker.validation import InputValidationError, InputValidator


logger = structlog.get_logger(__name__)


class IntentDispatcher:
    """
    Executes the side effects requested by mutations.

    Intents are de-duplicated (first occurrence wins) and run in order.
    dispatch() never raises: each failure is logged and the remaining
    intents still run.
    """

    def __init__(
        self,
        store: ProfileStore,
        scheduler: NotificationScheduler,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._scheduler = scheduler
        self._audit_logger = audit_logger

    @property
    def scheduler(self) -> NotificationScheduler:
        return self._scheduler

    @staticmethod
    def deduplicate(intents: Iterable[Intent]) -> list[Intent]:
        seen: set[Intent] = set()
        unique = []
        for intent in intents:
            if intent not in seen:
                seen.add(intent)
                unique.append(intent)
        return unique

    async def dispatch(self, intents: Iterable[Intent]) -> None:
        self._scheduler.enabled = self._store.notifications_enabled
        for intent in self.deduplicate(intents):
            try:
                await self._execute(intent)
            except Exception as e:
                logger.error(
                    "intent_failed",
                    intent_type=intent.intent_type.value,
                    reminder_id=intent.reminder_id,
                    error=str(e),
                )
                if self._audit_logger:
                    await self._audit_logger.log_error(
                        error_type="intent_failed",
                        error_message=str(e),
                        details={
                            "intent_type": intent.intent_type.value,
                            "reminder_id": intent.reminder_id,
                        },
                    )

    async def _execute(self, intent: Intent) -> None:
        store = self._store
        scheduler = self._scheduler

        if intent.intent_type == IntentType.PERSIST:
            await store.save()

        elif intent.intent_type == IntentType.CLEAR_PERSISTED:
            await store.clear_persisted()

        elif intent.intent_type == IntentType.SCHEDULE_REMINDER:
            reminder = store.reminders.get(intent.reminder_id)
            if reminder is not None:
                await scheduler.schedule_reminder(reminder, store.currency)

        elif intent.intent_type == IntentType.CANCEL_REMINDER:
            await scheduler.cancel_reminder(intent.reminder_id)

        elif intent.intent_type == IntentType.CANCEL_ALL_NOTIFICATIONS:
            await scheduler.cancel_all()

        elif intent.intent_type == IntentType.RESYNC_NOTIFICATIONS:
            await scheduler.resync(store.reminders.reminders, store.currency)
            await self._refresh_expense_alerts()

        elif intent.intent_type == IntentType.REFRESH_EXPENSE_ALERTS:
            await self._refresh_expense_alerts()

    async def _refresh_expense_alerts(self) -> None:
        store = self._store
        await self._scheduler.check_budget(
            store.ledger.total_expenses,
            store.budget,
            store.currency,
        )
        await self._scheduler.schedule_daily_summary(
            store.ledger.todays_expenses,
            store.currency,
        )


class ProfileFlow:
    """
    Orchestrates every user action on the profile.

    Flow for each action:
    1. Validate → InputValidator (raises InputValidationError on errors)
    2. Mutate → Ledger / CategoryRegistry / ReminderEngine / ProfileStore
    3. Audit → AuditLogger
    4. Dispatch → IntentDispatcher (persist, notifications)

    Unknown ids are silent no-ops: the action returns None (or False)
    and nothing is persisted.
    """

    def __init__(
        self,
        store: ProfileStore,
        dispatcher: IntentDispatcher,
        validator: Optional[InputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._validator = validator or InputValidator()
        self._audit_logger = audit_logger

    @property
    def store(self) -> ProfileStore:
        return self._store

    async def _require_valid(
        self,
        result: ValidationResult,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        if not result.has_errors:
            return
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                action=result.action,
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            )
        raise InputValidationError(result)

    async def _apply(self, result: MutationResult) -> MutationResult:
        if result.applied:
            await self._dispatcher.dispatch(result.intents)
        return result

    # -------------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------------

    async def startup(self) -> bool:
        """
        Load the stored profile and bring notifications in line with it.

        Returns True if a stored snapshot was found.
        """
        loaded = await self._store.load()
        if self._audit_logger and loaded:
            await self._audit_logger.log_profile_event(
                AuditEventType.SNAPSHOT_LOADED,
                "Profile loaded from storage",
            )
        await self._dispatcher.dispatch([Intent.resync_notifications()])
        return loaded

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    async def add_expense(
        self,
        category_id: str,
        title: str,
        amount: Any,
        created_at: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        correlation_id = correlation_id or create_correlation_id()
        await self._require_valid(
            self._validator.validate_expense(category_id, amount, title=title, created_at=created_at),
            correlation_id,
        )

        result = self._store.ledger.add_expense(category_id, title, amount, created_at=created_at)
        expense = result.value

        if self._audit_logger:
            await self._audit_logger.log_expense_added(
                expense_id=expense.id,
                category_id=expense.category_id,
                amount=str(expense.amount),
                correlation_id=correlation_id,
            )

        await self._apply(result)
        return expense

    async def add_income(
        self,
        source: str,
        amount: Any,
        received_at: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Income:
        correlation_id = correlation_id or create_correlation_id()
        await self._require_valid(
            self._validator.validate_income(source, amount, received_at=received_at),
            correlation_id,
        )

        result = self._store.ledger.add_income(source, amount, received_at=received_at)
        income = result.value

        if self._audit_logger:
            await self._audit_logger.log_income_added(
                income_id=income.id,
                source=income.source,
                amount=str(income.amount),
                correlation_id=correlation_id,
            )

        await self._apply(result)
        return income

    async def remove_income(self, income_id: str) -> bool:
        result = self._store.ledger.remove_income(income_id)
        if result.applied and self._audit_logger:
            await self._audit_logger.log_income_removed(income_id=income_id)
        await self._apply(result)
        return result.applied

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    async def add_reminder(
        self,
        source_type: IncomeSourceType,
        label: str,
        frequency: IncomeFrequency,
        next_trigger_seed: Any = None,
        auto_add_on_confirm: bool = False,
        correlation_id: Optional[UUID] = None,
        **options: Any,
    ) -> IncomeReminder:
        """
        Create a reminder.

        A monthly reminder given only a day_of_month is seeded on the next
        occurrence of that day after today.
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._require_valid(
            self._validator.validate_reminder(
                label,
                frequency,
                window_start_day=options.get("window_start_day"),
                window_end_day=options.get("window_end_day"),
                day_of_month=options.get("day_of_month"),
                weekday=options.get("weekday"),
                remind_hour=options.get("remind_hour"),
                remind_minute=options.get("remind_minute"),
                default_amount=options.get("default_amount"),
            ),
            correlation_id,
        )

        if (
            next_trigger_seed is None
            and IncomeFrequency(frequency) == IncomeFrequency.MONTHLY
            and options.get("day_of_month") is not None
        ):
            next_trigger_seed = monthly_trigger_on_or_after(
                options["day_of_month"],
                today=options.get("today"),
            )

        result = self._store.reminders.add_reminder(
            source_type,
            label,
            frequency,
            next_trigger_seed,
            auto_add_on_confirm,
            **options,
        )
        reminder = result.value

        if self._audit_logger:
            await self._audit_logger.log_reminder_changed(
                AuditEventType.REMINDER_CREATED,
                reminder.id,
                f"Reminder created: {reminder.label}",
                details={
                    "frequency": reminder.frequency.value,
                    "next_trigger": to_iso_date(reminder.next_trigger),
                },
                correlation_id=correlation_id,
            )

        await self._apply(result)
        return reminder

    async def update_reminder(
        self,
        reminder_id: str,
        correlation_id: Optional[UUID] = None,
        **updates: Any,
    ) -> Optional[IncomeReminder]:
        correlation_id = correlation_id or create_correlation_id()

        # Validate the reminder as it will look after the update
        current = self._store.reminders.get(reminder_id)
        fields = current.model_dump() if current is not None else {}
        fields.update(updates)
        await self._require_valid(
            self._validator.validate_reminder(
                updates.get("label"),
                fields.get("frequency"),
                window_start_day=fields.get("window_start_day"),
                window_end_day=fields.get("window_end_day"),
                day_of_month=updates.get("day_of_month"),
                weekday=fields.get("weekday"),
                remind_hour=fields.get("remind_hour"),
                remind_minute=fields.get("remind_minute"),
                default_amount=updates.get("default_amount"),
                action="update_reminder",
            ),
            correlation_id,
        )

        result = self._store.reminders.update_reminder(reminder_id, **updates)
        if result.applied and self._audit_logger:
            await self._audit_logger.log_reminder_changed(
                AuditEventType.REMINDER_UPDATED,
                reminder_id,
                f"Reminder updated: {', '.join(sorted(updates))}",
                correlation_id=correlation_id,
            )
        await self._apply(result)
        return result.value

    async def confirm_reminder(
        self,
        reminder_id: str,
        amount: Any,
        received_at: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[IncomeReminder]:
        """
        Log the income for a reminder and advance it.

        Returns the advanced reminder, or None for an unknown id.
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._require_valid(
            self._validator.validate_confirm_amount(amount),
            correlation_id,
        )

        result = self._store.reminders.confirm_reminder(reminder_id, amount, received_at=received_at)
        if not result.applied:
            return None

        reminder = result.value
        income = self._store.ledger.incomes[0]

        if self._audit_logger:
            await self._audit_logger.log_income_added(
                income_id=income.id,
                source=income.source,
                amount=str(income.amount),
                reminder_id=reminder_id,
                correlation_id=correlation_id,
            )
            await self._audit_logger.log_reminder_confirmed(
                reminder_id=reminder_id,
                income_id=income.id,
                amount=str(income.amount),
                next_trigger=to_iso_date(reminder.next_trigger),
                correlation_id=correlation_id,
            )

        await self._apply(result)
        return reminder

    async def skip_reminder(
        self,
        reminder_id: str,
        next_trigger_override: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[IncomeReminder]:
        result = self._store.reminders.skip_reminder(reminder_id, next_trigger_override)
        if not result.applied:
            return None

        if self._audit_logger:
            await self._audit_logger.log_reminder_skipped(
                reminder_id=reminder_id,
                next_trigger=to_iso_date(result.value.next_trigger),
                correlation_id=correlation_id,
            )

        await self._apply(result)
        return result.value

    async def remove_reminder(self, reminder_id: str) -> bool:
        result = self._store.reminders.remove_reminder(reminder_id)
        if result.applied and self._audit_logger:
            await self._audit_logger.log_reminder_changed(
                AuditEventType.REMINDER_REMOVED,
                reminder_id,
                f"Reminder removed: {result.value.label}",
            )
        await self._apply(result)
        return result.applied

    def pending_reminders(self, today: Optional[date] = None) -> list[IncomeReminder]:
        return self._store.reminders.pending_reminders(today=today)

    def next_reminder(self) -> Optional[IncomeReminder]:
        return self._store.reminders.next_reminder()

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def add_custom_category(
        self,
        name: str,
        description: str = "",
        group: CategoryGroup = CategoryGroup.DAILY,
    ) -> Category:
        await self._require_valid(self._validator.validate_category_name(name))

        result = self._store.categories.add_custom_category(name, description, group)
        category = result.value

        if self._audit_logger:
            await self._audit_logger.log_category_created(
                category_id=category.id,
                name=category.name,
            )

        await self._apply(result)
        return category

    async def set_selected_categories(self, categories: Iterable[Category]) -> list[Category]:
        result = self._store.categories.set_selected_categories(categories)
        await self._apply(result)
        return result.value

    def available_categories(self) -> list[Category]:
        return self._store.categories.available_categories(self._store.user_type)

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    async def _preference_changed(self, result: MutationResult, **changes: Any) -> MutationResult:
        if result.applied and self._audit_logger:
            await self._audit_logger.log_preferences_updated(
                changes={key: str(value) if value is not None else None for key, value in changes.items()},
            )
        return await self._apply(result)

    async def set_user_type(self, user_type: UserType) -> UserType:
        result = self._store.set_user_type(user_type)
        await self._preference_changed(result, user_type=getattr(result.value, "value", None))
        return self._store.user_type

    async def update_profile(self, **changes: Any) -> ProfileDetails:
        result = self._store.update_profile(**changes)
        await self._preference_changed(result, **changes)
        return result.value

    async def set_budget(self, budget: Any) -> Any:
        """Set the budget (validated, must be positive) or clear it with None."""
        if budget is not None:
            await self._require_valid(self._validator.validate_budget(budget))
        result = self._store.set_budget(budget)
        await self._preference_changed(result, budget=result.value)
        return result.value

    async def set_currency(self, currency: CurrencyCode) -> CurrencyCode:
        result = self._store.set_currency(currency)
        await self._preference_changed(result, currency=result.value.value)
        return result.value

    async def set_theme(self, theme: ThemeMode) -> ThemeMode:
        result = self._store.set_theme(theme)
        await self._preference_changed(result, theme=result.value.value)
        return result.value

    async def set_language(self, language: LanguageCode) -> LanguageCode:
        result = self._store.set_language(language)
        await self._preference_changed(result, language=result.value.value)
        return result.value

    async def set_student_income_preference(
        self,
        preference: Optional[StudentIncomePreference],
    ) -> Optional[StudentIncomePreference]:
        result = self._store.set_student_income_preference(preference)
        await self._preference_changed(
            result,
            student_income_preference=getattr(result.value, "value", None),
        )
        return result.value

    async def toggle_notifications(self, enabled: bool) -> bool:
        """
        Turn notifications on or off.

        Enabling asks for permission first; when it is refused the flag
        stays off. Returns the resulting state.
        """
        if enabled and not await self._dispatcher.scheduler.request_permission():
            logger.info("notification_permission_denied")
            return self._store.notifications_enabled

        result = self._store.set_notifications_enabled(enabled)
        await self._preference_changed(result, notifications_enabled=result.value)
        return self._store.notifications_enabled

    # -------------------------------------------------------------------------
    # Profile-wide
    # -------------------------------------------------------------------------

    async def reset(self) -> None:
        """Wipe the profile, its stored snapshot and every alert."""
        result = self._store.reset()
        if self._audit_logger:
            await self._audit_logger.log_profile_event(
                AuditEventType.PROFILE_RESET,
                "Profile reset to defaults",
            )
        await self._apply(result)

    async def export(self) -> str:
        document = self._store.export()
        if self._audit_logger:
            await self._audit_logger.log_profile_event(
                AuditEventType.PROFILE_EXPORTED,
                "Profile exported",
            )
        return document


def create_app_components(
    use_storage: bool = True,
    adapter: Optional[NotificationAdapter] = None,
    settings: Optional[Settings] = None,
) -> tuple[ProfileFlow, ProfileStore, NotificationScheduler]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to persist to the local data directory.
                    Set to False for testing without storage.
        adapter: Platform notification adapter; defaults to the
                 in-memory adapter.
        settings: Application settings; defaults to get_settings().

    Returns:
        (profile_flow, store, scheduler)
    """
    settings = settings or get_settings()
    snapshot_storage: SnapshotStorageInterface

    if use_storage:
        storage_settings = settings.storage
        try:
            snapshot_storage = LocalFileSnapshotStorage(storage_settings.data_path)
            audit_logger = AuditLogger(JsonLinesAuditStorage(storage_settings.audit_log_path))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_unavailable", error=str(e))
            snapshot_storage = InMemorySnapshotStorage()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        snapshot_storage = InMemorySnapshotStorage()
        audit_logger = AuditLogger()  # Local-only logging

    store = ProfileStore(snapshot_storage, settings=settings, audit_logger=audit_logger)
    scheduler = NotificationScheduler(
        adapter or InMemoryNotificationAdapter(),
        audit_logger=audit_logger,
        settings=settings.notifications,
    )
    dispatcher = IntentDispatcher(store, scheduler, audit_logger=audit_logger)
    profile_flow = ProfileFlow(
        store,
        dispatcher,
        validator=InputValidator(settings.app),
        audit_logger=audit_logger,
    )

    logger.info(
        "app_components_created",
        environment=settings.app.app_environment,
        debug=settings.app.debug_mode,
        use_storage=use_storage,
    )
    return profile_flow, store, scheduler
