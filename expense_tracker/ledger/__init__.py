"""Ledger package."""

from expense_tracker.ledger.ledger import Ledger

__all__ = ["Ledger"]
