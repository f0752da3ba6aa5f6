"""
Integration tests for the orchestrated flows.

Storage, audit and notifications use the in-memory implementations.
"""

import asyncio
import pytest
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

from expense_tracker.audit import AuditLogger
from expense_tracker.config import Settings, get_settings
from expense_tracker.models import (
    AuditEventType,
    CategoryGroup,
    IncomeFrequency,
    IncomeSourceType,
    Intent,
    UserType,
)
from expense_tracker.orchestrator import IntentDispatcher, ProfileFlow, create_app_components
from expense_tracker.services.notifications import (
    BUDGET_WARNING_KEY,
    DAILY_SUMMARY_KEY,
    InMemoryNotificationAdapter,
    NotificationScheduler,
)
from expense_tracker.services.storage import (
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
    LocalFileSnapshotStorage,
)
from expense_tracker.store import ProfileStore
from expense_tracker.validation import InputValidationError, InputValidator


STORAGE_KEY = "expense-tracker/profile-state-v1"


def _components(grant_permission=True, storage=None):
    settings = Settings()
    storage = storage if storage is not None else InMemorySnapshotStorage()
    audit_storage = InMemoryAuditStorage()
    audit_logger = AuditLogger(audit_storage)
    store = ProfileStore(storage, settings=settings, audit_logger=audit_logger)
    adapter = InMemoryNotificationAdapter(grant_permission=grant_permission)
    scheduler = NotificationScheduler(adapter, audit_logger=audit_logger, settings=settings.notifications)
    dispatcher = IntentDispatcher(store, scheduler, audit_logger=audit_logger)
    flow = ProfileFlow(store, dispatcher, validator=InputValidator(settings.app), audit_logger=audit_logger)
    return SimpleNamespace(
        flow=flow,
        store=store,
        storage=storage,
        audit=audit_storage,
        adapter=adapter,
        scheduler=scheduler,
        dispatcher=dispatcher,
    )


def _event_types(components):
    return [e.event_type for e in components.audit.events]


async def _add_salary(flow, **overrides):
    options = dict(
        source_type=IncomeSourceType.SALARY,
        label="Salary",
        frequency=IncomeFrequency.MONTHLY,
        next_trigger_seed=date(2026, 3, 5),
        auto_add_on_confirm=True,
        window_start_day=3,
        window_end_day=5,
        auto_renew=True,
    )
    options.update(overrides)
    return await flow.add_reminder(**options)


class TestLedgerFlows:
    """Tests for expense and income actions."""

    def test_add_expense_persists_and_audits(self):
        """Test a valid expense is stored, saved and audited."""
        c = _components()
        expense = asyncio.run(c.flow.add_expense("worker-food", "Lunch", "9.99"))

        assert c.store.ledger.expenses == [expense]
        assert c.storage.save_count == 1
        assert STORAGE_KEY in c.storage.items
        assert AuditEventType.EXPENSE_ADDED in _event_types(c)

    def test_negative_expense_rejected_before_mutation(self):
        """Test an expense of -5 never reaches the ledger."""
        c = _components()
        with pytest.raises(InputValidationError) as exc_info:
            asyncio.run(c.flow.add_expense("worker-food", "Oops", -5))

        assert exc_info.value.result.has_errors
        assert c.store.ledger.expenses == []
        assert c.storage.save_count == 0
        assert _event_types(c) == [AuditEventType.VALIDATION_FAILED]

    def test_add_and_remove_income(self):
        """Test income round trip through the flow."""
        c = _components()

        async def run():
            income = await c.flow.add_income("Gift", "25")
            removed = await c.flow.remove_income(income.id)
            missing = await c.flow.remove_income(income.id)
            return removed, missing

        assert asyncio.run(run()) == (True, False)
        assert c.store.ledger.incomes == []
        assert c.storage.save_count == 2


class TestReminderFlows:
    """Tests for reminder actions, including notifications."""

    def test_confirm_flow(self):
        """Test confirming logs the income, advances the reminder and reschedules its alert."""
        c = _components()

        async def run():
            await c.flow.toggle_notifications(True)
            reminder = await _add_salary(c.flow)
            first_handle = c.scheduler.handle_for(reminder.id)
            updated = await c.flow.confirm_reminder(reminder.id, "1200.00", received_at=datetime(2026, 3, 4, 9))
            return reminder, first_handle, updated

        reminder, first_handle, updated = asyncio.run(run())

        assert updated.next_trigger == date(2026, 4, 5)
        assert len(c.store.ledger.incomes) == 1
        assert c.store.ledger.incomes[0].reminder_id == reminder.id
        assert first_handle in c.adapter.cancelled
        active = c.adapter.active_for(reminder.id)
        assert len(active) == 1
        assert active[0].content.data["reminder_id"] == reminder.id
        assert AuditEventType.REMINDER_CONFIRMED in _event_types(c)
        assert c.flow.pending_reminders(today=date(2026, 3, 4)) == []

    def test_confirm_rejects_zero_amount(self):
        """Test a zero confirmation amount is rejected."""
        c = _components()

        async def run():
            reminder = await _add_salary(c.flow)
            with pytest.raises(InputValidationError):
                await c.flow.confirm_reminder(reminder.id, 0)

        asyncio.run(run())
        assert c.store.ledger.incomes == []

    def test_unknown_ids_are_silent(self):
        """Test confirm, skip and remove on unknown ids return nothing."""
        c = _components()

        async def run():
            return (
                await c.flow.confirm_reminder("nope", 10),
                await c.flow.skip_reminder("nope"),
                await c.flow.remove_reminder("nope"),
                await c.flow.update_reminder("nope", label="X"),
            )

        assert asyncio.run(run()) == (None, None, False, None)
        assert c.storage.save_count == 0

    def test_skip_and_remove(self):
        """Test skip advances without income and remove cancels the alert."""
        c = _components()

        async def run():
            await c.flow.toggle_notifications(True)
            reminder = await _add_salary(c.flow)
            skipped = await c.flow.skip_reminder(reminder.id)
            removed = await c.flow.remove_reminder(reminder.id)
            return reminder, skipped, removed

        reminder, skipped, removed = asyncio.run(run())

        assert skipped.next_trigger == date(2026, 4, 5)
        assert removed is True
        assert c.store.ledger.incomes == []
        assert c.adapter.active_for(reminder.id) == []
        assert c.flow.next_reminder() is None

    def test_monthly_reminder_seeded_from_day(self):
        """Test a monthly reminder given only a payday is seeded after today."""
        c = _components()
        reminder = asyncio.run(_add_salary(
            c.flow,
            next_trigger_seed=None,
            day_of_month=5,
            today=date(2026, 3, 5),
        ))
        assert reminder.next_trigger == date(2026, 4, 5)

    def test_invalid_reminder_rejected(self):
        """Test reminder validation runs before creation."""
        c = _components()
        with pytest.raises(InputValidationError):
            asyncio.run(_add_salary(c.flow, label="  "))
        assert c.store.reminders.reminders == []

    def test_update_window_checked_against_stored_bounds(self):
        """Test a new start day after the stored end day is a validation error."""
        c = _components()

        async def run():
            reminder = await _add_salary(c.flow)
            with pytest.raises(InputValidationError) as exc_info:
                await c.flow.update_reminder(reminder.id, window_start_day=10)
            return reminder, exc_info.value

        reminder, error = asyncio.run(run())

        assert "Window start day cannot be after window end day" in str(error)
        assert error.result.action == "update_reminder"
        assert c.store.reminders.get(reminder.id) == reminder
        assert AuditEventType.VALIDATION_FAILED in _event_types(c)

    def test_update_window_within_stored_bounds(self):
        """Test moving one bound inside the stored window is accepted."""
        c = _components()

        async def run():
            reminder = await _add_salary(c.flow)
            return await c.flow.update_reminder(reminder.id, window_start_day=4)

        updated = asyncio.run(run())
        assert (updated.window_start_day, updated.window_end_day) == (4, 5)

    def test_irregular_reminder_day_is_clamped(self):
        """Test a day above 28 on an irregular reminder is saved as 28."""
        c = _components()
        reminder = asyncio.run(_add_salary(
            c.flow,
            source_type=IncomeSourceType.FREELANCE,
            label="Gig",
            frequency=IncomeFrequency.IRREGULAR,
            day_of_month=30,
            window_start_day=None,
            window_end_day=None,
        ))
        assert reminder.day_of_month == 28
        assert reminder.next_trigger == date(2026, 3, 5)

    def test_update_reminder_reschedules(self):
        """Test updating the remind time moves the alert."""
        c = _components()

        async def run():
            await c.flow.toggle_notifications(True)
            reminder = await _add_salary(c.flow, next_trigger_seed=date(2099, 1, 5))
            await c.flow.update_reminder(reminder.id, remind_hour=7, remind_minute=15)
            return reminder

        reminder = asyncio.run(run())
        active = c.adapter.active_for(reminder.id)
        assert len(active) == 1
        assert active[0].when == datetime(2099, 1, 5, 7, 15)


class TestNotificationFlows:
    """Tests for toggling notifications and expense alerts."""

    def test_permission_refused_keeps_notifications_off(self):
        """Test enabling stays off when permission is refused."""
        c = _components(grant_permission=False)
        assert asyncio.run(c.flow.toggle_notifications(True)) is False
        assert c.store.notifications_enabled is False
        assert c.storage.save_count == 0

    def test_disable_cancels_everything(self):
        """Test disabling cancels all scheduled alerts."""
        c = _components()

        async def run():
            await c.flow.toggle_notifications(True)
            await _add_salary(c.flow)
            await c.flow.add_expense("worker-food", "Lunch", 5)
            return await c.flow.toggle_notifications(False)

        assert asyncio.run(run()) is False
        assert c.adapter.active == {}

    def test_expense_refreshes_alerts(self):
        """Test adding expenses schedules the daily summary and the budget warning."""
        c = _components()

        async def run():
            await c.flow.set_budget(100)
            await c.flow.toggle_notifications(True)
            await c.flow.add_expense("worker-food", "Groceries", 85)

        asyncio.run(run())
        assert len(c.adapter.active_for(DAILY_SUMMARY_KEY)) == 1
        assert [n for n in c.adapter.history if n.key == BUDGET_WARNING_KEY]

    def test_nothing_scheduled_while_disabled(self):
        """Test reminders created with notifications off schedule nothing."""
        c = _components()
        asyncio.run(_add_salary(c.flow))
        assert c.adapter.history == []


class TestProfileFlows:
    """Tests for preferences, reset and export."""

    def test_startup_loads_snapshot(self):
        """Test startup hydrates from a previously saved profile."""
        first = _components()
        asyncio.run(first.flow.add_expense("worker-food", "Lunch", 5))

        second = _components(storage=first.storage)
        assert asyncio.run(second.flow.startup()) is True
        assert len(second.store.ledger.expenses) == 1

    def test_reset_wipes_storage_and_alerts(self):
        """Test reset clears the snapshot and cancels every alert."""
        c = _components()

        async def run():
            await c.flow.toggle_notifications(True)
            await _add_salary(c.flow)
            await c.flow.reset()

        asyncio.run(run())
        assert c.adapter.active == {}
        assert c.storage.items == {}
        assert c.store.reminders.reminders == []
        assert AuditEventType.PROFILE_RESET in _event_types(c)

    def test_export_audited(self):
        """Test export returns JSON and records an audit event."""
        c = _components()
        document = asyncio.run(c.flow.export())
        assert '"totals"' in document
        assert AuditEventType.PROFILE_EXPORTED in _event_types(c)

    def test_preferences(self):
        """Test preference actions persist and audit."""
        c = _components()

        async def run():
            await c.flow.set_user_type(UserType.STUDENT)
            category = await c.flow.add_custom_category("Pets", group=CategoryGroup.MONTHLY)
            await c.flow.set_currency("EUR")
            await c.flow.set_theme("dark")
            await c.flow.set_language("en")
            await c.flow.set_student_income_preference("mixed")
            await c.flow.update_profile(first_name="Aysel")
            return category

        category = asyncio.run(run())
        assert category in c.flow.available_categories()
        assert c.store.currency.value == "EUR"
        assert c.store.display_name == "Aysel"
        assert _event_types(c).count(AuditEventType.PREFERENCES_UPDATED) == 6
        assert AuditEventType.CATEGORY_CREATED in _event_types(c)

    def test_budget_validation(self):
        """Test non-positive budgets are rejected, None clears."""
        c = _components()
        with pytest.raises(InputValidationError):
            asyncio.run(c.flow.set_budget(0))
        assert asyncio.run(c.flow.set_budget(None)) is None


class TestIntentDispatcher:
    """Tests for intent execution."""

    def test_deduplicates_in_order(self):
        """Test duplicates collapse and order is kept."""
        intents = [
            Intent.persist(),
            Intent.schedule_reminder("a"),
            Intent.persist(),
            Intent.schedule_reminder("b"),
        ]
        assert IntentDispatcher.deduplicate(intents) == [
            Intent.persist(),
            Intent.schedule_reminder("a"),
            Intent.schedule_reminder("b"),
        ]

    def test_failures_do_not_stop_dispatch(self):
        """Test one failing intent is logged and the rest still run."""
        c = _components()

        async def broken_save():
            raise RuntimeError("boom")

        c.store.save = broken_save

        async def run():
            c.store.set_notifications_enabled(True)
            await c.dispatcher.dispatch([Intent.persist(), Intent.refresh_expense_alerts()])

        asyncio.run(run())
        assert len(c.adapter.active_for(DAILY_SUMMARY_KEY)) == 1
        assert AuditEventType.SYSTEM_ERROR in _event_types(c)


class TestCreateAppComponents:
    """Tests for the composition root."""

    def test_without_storage(self):
        """Test in-memory composition."""
        flow, store, scheduler = create_app_components(use_storage=False)
        assert isinstance(flow, ProfileFlow)
        assert isinstance(store, ProfileStore)
        assert isinstance(scheduler, NotificationScheduler)
        asyncio.run(flow.add_income("Gift", 10))
        assert store.ledger.total_income == Decimal("10.00")

    def test_with_file_storage(self, tmp_path, monkeypatch):
        """Test the local data directory comes from settings."""
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
        get_settings.cache_clear()
        try:
            flow, store, _ = create_app_components(use_storage=True)
            asyncio.run(flow.add_expense("student-food", "Snack", 3))
        finally:
            get_settings.cache_clear()

        assert LocalFileSnapshotStorage(tmp_path).path_for(STORAGE_KEY).exists()
        assert (tmp_path / "audit.jsonl").exists()
