"""
The ledger engine: pure functions over ledger snapshots.

Nothing in this package touches the database or the web layer.
"""

from group_ledger.engine.money import Money, sum_money
from group_ledger.engine.split_parser import ParsedSplits, SplitKind, parse_splits
from group_ledger.engine.balances import (
    Balances,
    balance_between,
    check_conservation,
    compute_balances,
    is_settled,
    ledger_nets,
    net_balances,
    scope_currencies,
)
from group_ledger.engine.simplifier import apply_plan, simplify
from group_ledger.engine.types import (
    ExpenseSnapshot,
    Scope,
    SettlementSnapshot,
    SimplifiedDebt,
    SplitSnapshot,
    UserPair,
)

__all__ = [
    "Money",
    "sum_money",
    "ParsedSplits",
    "SplitKind",
    "parse_splits",
    "Balances",
    "balance_between",
    "check_conservation",
    "compute_balances",
    "is_settled",
    "ledger_nets",
    "net_balances",
    "scope_currencies",
    "apply_plan",
    "simplify",
    "ExpenseSnapshot",
    "Scope",
    "SettlementSnapshot",
    "SimplifiedDebt",
    "SplitSnapshot",
    "UserPair",
]
