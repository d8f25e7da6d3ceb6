"""
Metadata aggregators: pure functions serving `data=<token>` views over an
already-scoped entity collection.
"""

from finance_control.aggregators import dashboard, goals, investments, reference, transactions

__all__ = ["dashboard", "goals", "investments", "reference", "transactions"]
