"""
Pydantic schemas for balance and settlement-plan responses.

Pairwise balances and simplified debts are deliberately
different response types. A balance is what actually happened
between two people; a simplified debt is a suggestion that may
route money between people who never shared an expense.
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel


class PairBalanceResponse(BaseModel):
    """What `debtor` owes `creditor` after netting both directions."""
    debtor: str
    creditor: str
    amount: Decimal
    currency: str
    settled: bool
    display: str


class NetBalanceResponse(BaseModel):
    """Positive: the user is owed money. Negative: the user owes."""
    user_id: str
    balance: Decimal
    currency: str
    display: str


class BalancesResponse(BaseModel):
    group_id: str
    trip_id: str | None
    balances: list[PairBalanceResponse]
    net: list[NetBalanceResponse]


class SimplifiedDebtResponse(BaseModel):
    from_user: str
    to_user: str
    amount: Decimal
    currency: str
    display: str


class SettlementPlanResponse(BaseModel):
    kind: Literal["optimized"] = "optimized"
    note: str = (
        "Optimized settlement: payments may go to someone other than "
        "the person you shared an expense with."
    )
    group_id: str
    trip_id: str | None
    debts: list[SimplifiedDebtResponse]


class AmountResponse(BaseModel):
    amount: Decimal
    currency: str
    display: str


class BalanceBetweenResponse(BaseModel):
    """Positive amount: `other` owes `user_id`."""
    user_id: str
    other: str
    amounts: list[AmountResponse]


class PersonalTotalResponse(BaseModel):
    user_id: str
    totals: list[AmountResponse]
