"""
Database models package.

All models are imported here so that Base.metadata knows
every table when the schema is created.
"""

from group_ledger.models.base import Base
from group_ledger.models.expense import Expense, ExpenseSplit
from group_ledger.models.settlement import Settlement

__all__ = [
    "Base",
    "Expense",
    "ExpenseSplit",
    "Settlement",
]
