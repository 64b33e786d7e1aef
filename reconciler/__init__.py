"""Expense/sale reconciliation backend."""

__version__ = "0.1.0"
