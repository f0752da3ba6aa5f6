"""Tests for the income reminder engine."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from expense_tracker.config import ReminderSettings
from expense_tracker.ledger import Ledger
from expense_tracker.models import (
    Income,
    IncomeFrequency,
    IncomeSourceType,
    Intent,
    IntentType,
)
from expense_tracker.reminders import ReminderEngine


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def engine(ledger):
    return ReminderEngine(ledger, settings=ReminderSettings())


def _salary(engine, **overrides):
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
    return engine.add_reminder(**options).value


class TestAddReminder:
    """Tests for reminder creation."""

    def test_monthly_takes_day_from_seed(self, engine):
        """Test day_of_month is derived from the seed date."""
        reminder = _salary(engine)
        assert reminder.day_of_month == 5
        assert reminder.next_trigger == date(2026, 3, 5)
        assert reminder.last_triggered_at is None
        assert reminder.last_received_at is None

    def test_monthly_day_is_clamped(self, engine):
        """Test an explicit day above 28 is clamped."""
        reminder = _salary(engine, day_of_month=31, window_start_day=None, window_end_day=None)
        assert reminder.day_of_month == 28

    @pytest.mark.parametrize("frequency", [IncomeFrequency.IRREGULAR, IncomeFrequency.WEEKLY])
    def test_day_is_clamped_for_every_frequency(self, engine, frequency):
        """Test a day above 28 is clamped for non-monthly reminders too."""
        reminder = _salary(
            engine,
            frequency=frequency,
            day_of_month=30,
            window_start_day=None,
            window_end_day=None,
        )
        assert reminder.day_of_month == 28
        assert reminder.frequency == frequency

    def test_weekly_takes_weekday_from_seed(self, engine):
        """Test weekday is derived from the seed (Monday = 1)."""
        reminder = _salary(
            engine,
            frequency=IncomeFrequency.WEEKLY,
            next_trigger_seed=date(2026, 3, 2),
            window_start_day=None,
            window_end_day=None,
        )
        assert reminder.weekday == 1
        assert reminder.day_of_month is None

    def test_invalid_seed_falls_back_to_today(self, engine):
        """Test an unparseable seed becomes today."""
        reminder = _salary(engine, next_trigger_seed="soon", today=date(2026, 6, 10))
        assert reminder.next_trigger == date(2026, 6, 10)
        assert reminder.day_of_month == 10

    def test_default_time_from_settings(self, engine):
        """Test remind hour and minute defaults."""
        reminder = _salary(engine)
        assert (reminder.remind_hour, reminder.remind_minute) == (9, 0)

    def test_requests_schedule_and_persist(self, engine):
        """Test add_reminder emits reschedule and persist intents."""
        result = engine.add_reminder(
            IncomeSourceType.PENSION,
            "Pension",
            IncomeFrequency.MONTHLY,
            "2026-03-10",
            False,
        )
        assert result.intents == [Intent.schedule_reminder(result.value.id), Intent.persist()]

    def test_window_start_after_end_rejected(self, engine):
        """Test an inverted window is rejected and nothing is stored."""
        with pytest.raises(ValueError):
            _salary(engine, window_start_day=6, window_end_day=2)
        assert engine.reminders == []


class TestConfirmReminder:
    """Tests for confirming a reminder."""

    def test_scenario_monthly_window(self, engine, ledger):
        """Test day 5 / window 3-5: pending on day 4, confirmed, advanced to next month."""
        reminder = _salary(engine)
        today = date(2026, 3, 4)

        assert [r.id for r in engine.pending_reminders(today=today)] == [reminder.id]

        result = engine.confirm_reminder(reminder.id, "1200.00", received_at=datetime(2026, 3, 4, 10))
        updated = result.value

        assert updated.next_trigger == date(2026, 4, 5)
        assert updated.default_amount == Decimal("1200.00")
        assert updated.last_triggered_at == date(2026, 3, 5)
        assert updated.last_received_at == datetime(2026, 3, 4, 10)
        assert engine.pending_reminders(today=today) == []
        assert engine.pending_reminders(today=date(2026, 3, 5)) == []

    def test_records_exactly_one_income(self, engine, ledger):
        """Test confirm adds one income with the reminder id and absolute amount."""
        reminder = _salary(engine)
        engine.confirm_reminder(reminder.id, "-1199.999")

        assert len(ledger.incomes) == 1
        income = ledger.incomes[0]
        assert income.source == "Salary"
        assert income.reminder_id == reminder.id
        assert income.amount == Decimal("1200.00")

    def test_receipt_defaults_to_due_date_midnight(self, engine, ledger):
        """Test received_at defaults to midnight of the due date."""
        reminder = _salary(engine)
        engine.confirm_reminder(reminder.id, 100)
        assert ledger.incomes[0].received_at == datetime(2026, 3, 5, 0, 0)

    def test_intents(self, engine):
        """Test confirm requests persist and a reschedule."""
        reminder = _salary(engine)
        result = engine.confirm_reminder(reminder.id, 100)
        types = [i.intent_type for i in result.intents]
        assert IntentType.PERSIST in types
        assert Intent.schedule_reminder(reminder.id) in result.intents

    def test_unknown_id_is_noop(self, engine, ledger):
        """Test confirming an unknown reminder changes nothing."""
        result = engine.confirm_reminder("income-reminder-missing", 100)
        assert not result.applied
        assert ledger.incomes == []


class TestSkipReminder:
    """Tests for skipping a reminder."""

    def test_skip_never_creates_income(self, engine, ledger):
        """Test skip advances the reminder without an income."""
        reminder = _salary(engine)
        updated = engine.skip_reminder(reminder.id).value

        assert ledger.incomes == []
        assert updated.next_trigger == date(2026, 4, 5)
        assert updated.last_triggered_at == date(2026, 3, 5)

    def test_skip_with_override(self, engine):
        """Test an override replaces the computed date."""
        reminder = _salary(engine)
        updated = engine.skip_reminder(reminder.id, "2026-04-10").value
        assert updated.next_trigger == date(2026, 4, 10)

    def test_skip_unknown_is_noop(self, engine):
        """Test skipping an unknown reminder."""
        assert not engine.skip_reminder("nope").applied


class TestUpdateAndRemove:
    """Tests for updating and removing reminders."""

    def test_update_normalizes_fields(self, engine):
        """Test update_reminder normalizes amount, day and trigger."""
        reminder = _salary(engine, window_start_day=None, window_end_day=None)
        updated = engine.update_reminder(
            reminder.id,
            default_amount="-30.555",
            day_of_month=31,
            next_trigger="2026/05/01",
            label="Main salary",
        ).value

        assert updated.default_amount == Decimal("30.56")
        assert updated.day_of_month == 28
        assert updated.next_trigger == date(2026, 5, 1)
        assert updated.label == "Main salary"
        assert engine.get(reminder.id) == updated

    def test_switch_to_weekly_derives_weekday(self, engine):
        """Test changing frequency fills the weekday from next_trigger."""
        reminder = _salary(engine, next_trigger_seed=date(2026, 3, 2))
        updated = engine.update_reminder(reminder.id, frequency=IncomeFrequency.WEEKLY).value
        assert updated.frequency == IncomeFrequency.WEEKLY
        assert updated.weekday == 1

    def test_update_unknown_field_rejected(self, engine):
        """Test engine-owned fields cannot be updated."""
        reminder = _salary(engine)
        with pytest.raises(ValueError, match="last_triggered_at"):
            engine.update_reminder(reminder.id, last_triggered_at=date(2026, 1, 1))

    def test_update_unknown_id_is_noop(self, engine):
        """Test updating an unknown reminder."""
        assert not engine.update_reminder("nope", label="X").applied

    def test_remove_keeps_incomes(self, engine, ledger):
        """Test removing a reminder does not cascade to incomes."""
        reminder = _salary(engine)
        engine.confirm_reminder(reminder.id, 100)
        result = engine.remove_reminder(reminder.id)

        assert result.intents == [Intent.cancel_reminder(reminder.id), Intent.persist()]
        assert engine.reminders == []
        assert ledger.incomes[0].reminder_id == reminder.id

    def test_remove_unknown_is_noop(self, engine):
        """Test removing an unknown reminder is silent."""
        result = engine.remove_reminder("nope")
        assert not result.applied
        assert result.intents == []


class TestPendingReminders:
    """Tests for auto-detection of reminders due for confirmation."""

    def test_default_window_is_two_days_before(self, engine):
        """Test the window defaults to [day - 2, day]."""
        reminder = _salary(
            engine,
            next_trigger_seed=date(2026, 3, 10),
            window_start_day=None,
            window_end_day=None,
        )
        assert engine.window_for(reminder) == (8, 10)
        assert engine.pending_reminders(today=date(2026, 3, 7)) == []
        assert len(engine.pending_reminders(today=date(2026, 3, 8))) == 1
        assert len(engine.pending_reminders(today=date(2026, 3, 10))) == 1
        assert engine.pending_reminders(today=date(2026, 3, 11)) == []

    def test_requires_auto_renew(self, engine):
        """Test reminders without auto_renew are never surfaced."""
        _salary(engine, auto_renew=False)
        assert engine.pending_reminders(today=date(2026, 3, 4)) == []

    def test_income_from_previous_month_does_not_count(self, engine):
        """Test only incomes in the current calendar month suppress a reminder."""
        reminder = _salary(engine)
        incomes = [Income(source="Salary", amount=1, received_at=datetime(2026, 2, 4), reminder_id=reminder.id)]
        assert len(engine.pending_reminders(incomes=incomes, today=date(2026, 3, 4))) == 1

    def test_weekly_never_pending(self, engine):
        """Test weekly reminders rely on notifications only."""
        _salary(
            engine,
            frequency=IncomeFrequency.WEEKLY,
            next_trigger_seed=date(2026, 3, 4),
            window_start_day=None,
            window_end_day=None,
        )
        assert engine.pending_reminders(today=date(2026, 3, 4)) == []

    def test_irregular_pending_only_on_exact_day(self, engine):
        """Test irregular reminders are due only on their next_trigger."""
        _salary(
            engine,
            frequency=IncomeFrequency.IRREGULAR,
            next_trigger_seed=date(2026, 3, 20),
            window_start_day=None,
            window_end_day=None,
        )
        assert engine.pending_reminders(today=date(2026, 3, 19)) == []
        assert len(engine.pending_reminders(today=date(2026, 3, 20))) == 1

    def test_never_flagged_twice_in_a_month(self, engine):
        """Test a confirmed monthly reminder stays quiet for the rest of the month."""
        reminder = _salary(engine, window_start_day=1, window_end_day=28)
        engine.confirm_reminder(reminder.id, 50, received_at=datetime(2026, 3, 2))
        for day in range(1, 29):
            assert engine.pending_reminders(today=date(2026, 3, day)) == []

    def test_next_reminder(self, engine):
        """Test the earliest next_trigger wins."""
        assert engine.next_reminder() is None
        later = _salary(engine, next_trigger_seed=date(2026, 4, 1), window_start_day=None, window_end_day=None)
        sooner = _salary(engine, next_trigger_seed=date(2026, 3, 15), window_start_day=None, window_end_day=None)
        assert engine.next_reminder().id == sooner.id
        assert later.id != sooner.id
