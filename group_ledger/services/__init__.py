"""Business logic services."""

from group_ledger.services.expense_service import ExpenseService
from group_ledger.services.settlement_service import SettlementService
from group_ledger.services.balance_service import BalanceService

__all__ = ["ExpenseService", "SettlementService", "BalanceService"]
