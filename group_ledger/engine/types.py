"""
Value types shared by the ledger engine.

Snapshots are what the persistence layer hands in: frozen
copies of stored rows, never the ORM objects themselves.
UserPair and SimplifiedDebt are what the engine hands out.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple

from group_ledger.engine.money import Money


UserId = str

PERSONAL = "personal"


@dataclass(frozen=True)
class Scope:
    """
    The boundary balances are computed in.

    A group, a trip inside a group, or one user's personal
    ledger. Scopes match only when both fields are equal, so a
    group-level scope does not pick up trip-tagged rows.
    """

    group_id: str
    trip_id: str | None = None

    @classmethod
    def personal(cls, user_id: UserId) -> "Scope":
        return cls(group_id=f"{PERSONAL}:{user_id}")

    @property
    def is_personal(self) -> bool:
        return self.group_id.startswith(f"{PERSONAL}:")


class UserPair(NamedTuple):
    """Unordered pair of users, stored lower id first."""

    low: UserId
    high: UserId

    @classmethod
    def of(cls, a: UserId, b: UserId) -> "UserPair":
        if a == b:
            raise ValueError(f"a pair needs two different users, got {a!r}")
        return cls(a, b) if a < b else cls(b, a)


@dataclass(frozen=True)
class SplitSnapshot:
    user_id: UserId
    amount: Money


@dataclass(frozen=True)
class ExpenseSnapshot:
    scope: Scope
    amount: Money
    payer: UserId
    splits: tuple[SplitSnapshot, ...] = ()
    deleted: bool = False
    created_at: datetime | None = None

    @property
    def currency(self) -> str:
        return self.amount.currency


@dataclass(frozen=True)
class SettlementSnapshot:
    scope: Scope
    from_user: UserId
    to_user: UserId
    amount: Money
    created_at: datetime | None = None

    @property
    def currency(self) -> str:
        return self.amount.currency


@dataclass(frozen=True)
class SimplifiedDebt:
    """
    One suggested payment in an optimized settlement plan.

    The payee may be someone the payer never shared an expense
    with. Present these as suggestions, never as a record of
    what was originally owed.
    """

    from_user: UserId
    to_user: UserId
    amount: Money
    kind: str = field(default="optimized", init=False)
