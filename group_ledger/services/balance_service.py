"""
Balance service: the bridge between stored rows and the
ledger engine.

Balances are never stored. Every call loads the scope's
expenses and settlements, turns them into immutable snapshots
and hands them to the engine. Each currency in a scope is
netted on its own; amounts in different currencies are never
combined.
"""

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from group_ledger.engine import (
    Balances,
    ExpenseSnapshot,
    Money,
    Scope,
    SettlementSnapshot,
    SimplifiedDebt,
    SplitSnapshot,
    balance_between,
    check_conservation,
    compute_balances,
    scope_currencies,
    simplify,
    sum_money,
)
from group_ledger.engine.errors import ConservationError
from group_ledger.models.expense import Expense
from group_ledger.models.settlement import Settlement


def to_expense_snapshot(expense: Expense) -> ExpenseSnapshot:
    """Freeze an expense row and its splits for the engine."""
    if expense.is_personal:
        scope = Scope.personal(expense.paid_by)
    else:
        scope = Scope(group_id=expense.group_id, trip_id=expense.trip_id)

    return ExpenseSnapshot(
        scope=scope,
        amount=Money.from_decimal(expense.amount, expense.currency),
        payer=expense.paid_by,
        splits=tuple(
            SplitSnapshot(
                user_id=split.user_id,
                amount=Money.from_decimal(split.amount, expense.currency),
            )
            for split in expense.splits
        ),
        deleted=expense.deleted,
        created_at=expense.created_at,
    )


def to_settlement_snapshot(settlement: Settlement) -> SettlementSnapshot:
    return SettlementSnapshot(
        scope=Scope(group_id=settlement.group_id, trip_id=settlement.trip_id),
        from_user=settlement.from_user,
        to_user=settlement.to_user,
        amount=Money.from_decimal(settlement.amount, settlement.currency),
        created_at=settlement.created_at,
    )


class BalanceService:

    def __init__(self, db: Session):
        self.db = db

    def load_snapshots(
        self, scope: Scope
    ) -> tuple[list[ExpenseSnapshot], list[SettlementSnapshot]]:
        """Read every live expense and settlement in a group scope."""
        expense_query = (
            select(Expense)
            .options(selectinload(Expense.splits))
            .where(
                Expense.group_id == scope.group_id,
                Expense.deleted.is_(False),
            )
        )
        settlement_query = select(Settlement).where(
            Settlement.group_id == scope.group_id
        )
        if scope.trip_id is None:
            expense_query = expense_query.where(Expense.trip_id.is_(None))
            settlement_query = settlement_query.where(
                Settlement.trip_id.is_(None)
            )
        else:
            expense_query = expense_query.where(
                Expense.trip_id == scope.trip_id
            )
            settlement_query = settlement_query.where(
                Settlement.trip_id == scope.trip_id
            )

        expenses = self.db.execute(
            expense_query.order_by(Expense.id)
        ).scalars().all()
        settlements = self.db.execute(
            settlement_query.order_by(Settlement.id)
        ).scalars().all()

        return (
            [to_expense_snapshot(e) for e in expenses],
            [to_settlement_snapshot(s) for s in settlements],
        )

    def get_balances(
        self, group_id: str, trip_id: str | None = None
    ) -> dict[str, Balances]:
        """
        Pairwise balances for a group or trip, one map per currency.

        Raises ConservationError if the stored rows do not net to
        zero, which means a split was written that does not add
        up to its expense.
        """
        scope = Scope(group_id=group_id, trip_id=trip_id)
        expenses, settlements = self.load_snapshots(scope)

        result: dict[str, Balances] = {}
        for currency in scope_currencies(scope, expenses, settlements):
            balances = compute_balances(
                scope, expenses, settlements, currency=currency
            )
            try:
                check_conservation(
                    balances, scope, expenses, settlements, currency
                )
            except ConservationError:
                logger.error(
                    "Balances in {} ({}) do not conserve money", scope, currency
                )
                raise
            result[currency] = balances
        return result

    def get_simplified_debts(
        self, group_id: str, trip_id: str | None = None
    ) -> dict[str, list[SimplifiedDebt]]:
        """Suggested payments per currency that clear the scope."""
        return {
            currency: simplify(balances)
            for currency, balances in self.get_balances(group_id, trip_id).items()
        }

    def get_balance_between(
        self,
        group_id: str,
        user_id: str,
        other: str,
        trip_id: str | None = None,
    ) -> dict[str, Money]:
        """
        What `other` owes `user_id`, per currency.

        Negative amounts mean `user_id` owes `other`. Currencies in
        which the two never transacted are left out.
        """
        if user_id == other:
            raise ValueError("Pick two different users")

        result: dict[str, Money] = {}
        for currency, balances in self.get_balances(group_id, trip_id).items():
            amount = balance_between(balances, user_id, other)
            if amount is not None:
                result[currency] = amount
        return result

    def get_personal_totals(self, user_id: str) -> dict[str, Money]:
        """Total personal spending of a user, per currency."""
        expenses = self.db.execute(
            select(Expense)
            .options(selectinload(Expense.splits))
            .where(
                Expense.paid_by == user_id,
                Expense.is_personal.is_(True),
                Expense.deleted.is_(False),
            )
        ).scalars().all()

        snapshots = [to_expense_snapshot(e) for e in expenses]
        currencies = sorted({s.currency for s in snapshots})
        return {
            currency: sum_money(
                (s.amount for s in snapshots if s.currency == currency),
                currency,
            )
            for currency in currencies
        }

