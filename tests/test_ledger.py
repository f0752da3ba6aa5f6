"""Tests for the Ledger and the Category Registry."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from expense_tracker.categories import CategoryRegistry, get_preset_categories
from expense_tracker.ledger import Ledger
from expense_tracker.models import Category, CategoryGroup, IntentType, UserType


class TestLedger:
    """Tests for expense and income bookkeeping."""

    def test_add_expense_appends_and_requests_persist(self):
        """Test add_expense stores a rounded expense and returns intents."""
        ledger = Ledger()
        result = ledger.add_expense("worker-food", "Lunch", "12.345")

        assert result.applied
        assert result.value.amount == Decimal("12.35")
        assert ledger.expenses == [result.value]
        types = [i.intent_type for i in result.intents]
        assert IntentType.PERSIST in types
        assert IntentType.REFRESH_EXPENSE_ALERTS in types

    def test_expenses_keep_insertion_order(self):
        """Test expenses are appended oldest first."""
        ledger = Ledger()
        first = ledger.add_expense("c", "a", 1).value
        second = ledger.add_expense("c", "b", 2).value
        assert [e.id for e in ledger.expenses] == [first.id, second.id]

    def test_add_income_prepends(self):
        """Test the latest recorded income comes first."""
        ledger = Ledger()
        first = ledger.add_income("Salary", 1000).value
        second = ledger.add_income("Bonus", 200).value
        assert [i.id for i in ledger.incomes] == [second.id, first.id]

    def test_remove_income(self):
        """Test an income can be removed by id."""
        ledger = Ledger()
        income = ledger.add_income("Salary", 1000).value
        result = ledger.remove_income(income.id)
        assert result.applied
        assert ledger.incomes == []

    def test_remove_unknown_income_is_noop(self):
        """Test removing an unknown id changes nothing."""
        ledger = Ledger()
        ledger.add_income("Salary", 1000)
        result = ledger.remove_income("income-missing")
        assert not result.applied
        assert result.intents == []
        assert len(ledger.incomes) == 1

    def test_totals_match_sums(self):
        """Test totals always equal the sums of current entries."""
        ledger = Ledger()
        ledger.add_expense("c", "a", "10.10")
        ledger.add_expense("c", "b", "5.05")
        income = ledger.add_income("Salary", "100").value
        ledger.add_income("Gift", "0.50")

        assert ledger.total_expenses == Decimal("15.15")
        assert ledger.total_income == Decimal("100.50")
        assert ledger.balance == Decimal("85.35")

        ledger.remove_income(income.id)
        assert ledger.total_income == Decimal("0.50")
        assert ledger.balance == Decimal("-14.65")

    def test_empty_totals_are_zero(self):
        """Test an empty ledger reports zero everywhere."""
        ledger = Ledger()
        assert ledger.total_expenses == Decimal("0.00")
        assert ledger.balance == Decimal("0.00")
        assert ledger.latest_income is None

    def test_expenses_on_day(self):
        """Test the per-day expense sum."""
        ledger = Ledger()
        ledger.add_expense("c", "a", 3, created_at=datetime(2026, 3, 5, 9))
        ledger.add_expense("c", "b", 4, created_at=datetime(2026, 3, 5, 21))
        ledger.add_expense("c", "c", 100, created_at=datetime(2026, 3, 6, 1))
        assert ledger.expenses_on(date(2026, 3, 5)) == Decimal("7.00")

    def test_incomes_newest_first_sorts_by_received_at(self):
        """Test presentation order follows received_at, not insertion."""
        ledger = Ledger()
        older = ledger.add_income("A", 1, received_at=datetime(2026, 1, 1)).value
        ledger.add_income("B", 1, received_at=datetime(2025, 12, 1))
        assert ledger.latest_income.id == older.id

    def test_clear(self):
        """Test a ledger-wide reset."""
        ledger = Ledger()
        ledger.add_expense("c", "a", 1)
        ledger.add_income("A", 1)
        ledger.clear()
        assert ledger.expenses == []
        assert ledger.incomes == []

    def test_returned_lists_are_copies(self):
        """Test callers cannot mutate the ledger through its properties."""
        ledger = Ledger()
        ledger.add_expense("c", "a", 1)
        ledger.expenses.clear()
        assert len(ledger.expenses) == 1


class TestCategoryRegistry:
    """Tests for preset and custom categories."""

    def test_presets_per_user_type(self):
        """Test every archetype has its own presets."""
        for user_type in UserType:
            presets = get_preset_categories(user_type)
            assert presets
            assert all(c.id.startswith(f"{user_type.value}-") for c in presets)

    def test_presets_are_immutable(self):
        """Test the preset collection is a tuple of frozen models."""
        presets = get_preset_categories(UserType.STUDENT)
        assert isinstance(presets, tuple)

    def test_add_custom_category(self):
        """Test a custom category is created and selected."""
        registry = CategoryRegistry()
        result = registry.add_custom_category("  Pets  ", "", CategoryGroup.MONTHLY)
        category = result.value

        assert category.name == "Pets"
        assert category.id.startswith("custom-")
        assert category.is_custom
        assert category.description == "Custom category"
        assert category.group == CategoryGroup.MONTHLY
        assert registry.custom == [category]
        assert registry.selected == [category]
        assert [i.intent_type for i in result.intents] == [IntentType.PERSIST]

    def test_empty_name_rejected(self):
        """Test whitespace-only names raise ValueError."""
        registry = CategoryRegistry()
        with pytest.raises(ValueError, match="cannot be empty"):
            registry.add_custom_category("   ")
        assert registry.custom == []

    def test_available_categories_custom_wins(self):
        """Test custom categories override presets with the same id."""
        override = Category(id="student-food", name="Meals", is_custom=True)
        extra = Category(id="custom-1", name="Pets", is_custom=True)
        registry = CategoryRegistry(custom=[override, extra])

        available = registry.available_categories(UserType.STUDENT)
        ids = [c.id for c in available]

        assert len(ids) == len(set(ids))
        assert ids[0] == "student-food"
        assert available[0].name == "Meals"
        assert ids[-1] == "custom-1"

    def test_set_selected_replaces_wholesale(self):
        """Test selection replacement."""
        presets = get_preset_categories(UserType.WORKER)
        registry = CategoryRegistry(selected=presets[:2])
        registry.set_selected_categories(presets[3:4])
        assert registry.selected == [presets[3]]

    def test_reconcile_drops_unavailable(self):
        """Test selected categories outside the available set are dropped."""
        student = get_preset_categories(UserType.STUDENT)
        worker = get_preset_categories(UserType.WORKER)
        registry = CategoryRegistry(selected=[student[0], worker[0]])

        dropped = registry.reconcile(UserType.STUDENT)

        assert dropped == [worker[0].id]
        assert registry.selected == [student[0]]
