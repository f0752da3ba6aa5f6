"""
Ledger

Holds the expense and income collections and derives running totals.

DESIGN DECISION: Totals are recomputed from the raw collections on every
access. Nothing derived is cached.

The ledger performs no I/O. Its mutators return a MutationResult whose
intents tell the caller what to persist and refresh.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from expense_tracker.models.intents import Intent, MutationResult
from expense_tracker.models.profile import Expense, Income, to_money


class Ledger:
    """
    Expense and income collections for one profile.

    Expenses are kept in insertion order (oldest first); incomes are
    prepended, so the most recently recorded income comes first.
    """

    def __init__(
        self,
        expenses: Optional[Iterable[Expense]] = None,
        incomes: Optional[Iterable[Income]] = None,
    ):
        self._expenses: list[Expense] = list(expenses or [])
        self._incomes: list[Income] = list(incomes or [])

    @property
    def expenses(self) -> list[Expense]:
        return list(self._expenses)

    @property
    def incomes(self) -> list[Income]:
        return list(self._incomes)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        category_id: str,
        title: str,
        amount: Any,
        created_at: Optional[datetime] = None,
    ) -> MutationResult[Expense]:
        """
        Append a new expense.

        The amount is rounded to 2 decimals. Only non-negative amounts are
        accepted here; rejecting zero is the caller's job.
        """
        expense = Expense(
            category_id=category_id,
            title=title,
            amount=amount,
            created_at=created_at or datetime.now(),
        )
        self._expenses.append(expense)
        return MutationResult(
            value=expense,
            intents=[Intent.persist(), Intent.refresh_expense_alerts()],
        )

    def add_income(
        self,
        source: str,
        amount: Any,
        received_at: Optional[datetime] = None,
        reminder_id: Optional[str] = None,
    ) -> MutationResult[Income]:
        """Prepend a new income entry."""
        income = Income(
            source=source,
            amount=amount,
            received_at=received_at or datetime.now(),
            reminder_id=reminder_id,
        )
        self._incomes.insert(0, income)
        return MutationResult(value=income, intents=[Intent.persist()])

    def remove_income(self, income_id: str) -> MutationResult[Income]:
        """Remove an income entry. Unknown ids are a silent no-op."""
        for index, income in enumerate(self._incomes):
            if income.id == income_id:
                del self._incomes[index]
                return MutationResult(value=income, intents=[Intent.persist()])
        return MutationResult.noop()

    def clear(self) -> None:
        """Drop every expense and income."""
        self._expenses.clear()
        self._incomes.clear()

    def clear_expenses(self) -> None:
        self._expenses.clear()

    # -------------------------------------------------------------------------
    # Derived reads
    # -------------------------------------------------------------------------

    @property
    def total_expenses(self) -> Decimal:
        return to_money(sum((e.amount for e in self._expenses), Decimal("0")))

    @property
    def total_income(self) -> Decimal:
        return to_money(sum((i.amount for i in self._incomes), Decimal("0")))

    @property
    def balance(self) -> Decimal:
        return to_money(self.total_income - self.total_expenses)

    def expenses_on(self, day: date) -> Decimal:
        """Sum of expenses created on the given calendar day."""
        return to_money(sum(
            (e.amount for e in self._expenses if e.created_at.date() == day),
            Decimal("0"),
        ))

    @property
    def todays_expenses(self) -> Decimal:
        return self.expenses_on(date.today())

    def incomes_newest_first(self) -> list[Income]:
        """Incomes ordered by received_at, most recent first."""
        return sorted(self._incomes, key=lambda i: i.received_at, reverse=True)

    @property
    def latest_income(self) -> Optional[Income]:
        ordered = self.incomes_newest_first()
        return ordered[0] if ordered else None
