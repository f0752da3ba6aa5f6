"""
Expense Tracker - Core Package

The engine behind a personal expense tracker: a ledger of expenses and
incomes, category presets per profile archetype, and recurring income
reminders that know when a salary or pension is next expected.

DESIGN PRINCIPLES:
1. Mutations are in-memory and return the side effects they need
2. Invalid input is rejected before anything changes
3. Storage and notification failures are logged, never fatal
4. Every user action is auditable
5. Storage and notification backends are swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
