"""
Tests for the BalanceService.

These run the whole path: rows written by the expense and
settlement services, read back as snapshots, netted by the
engine.
"""

from decimal import Decimal

import pytest

from group_ledger.engine import Money, UserPair
from group_ledger.engine.errors import ConservationError
from group_ledger.models.expense import Expense, ExpenseSplit
from group_ledger.schemas.expense import ExpenseCreate
from group_ledger.schemas.settlement import SettlementCreate
from group_ledger.services.balance_service import BalanceService
from group_ledger.services.expense_service import ExpenseService
from group_ledger.services.settlement_service import SettlementService


GROUP = "trip-crew"


def usd(amount: str) -> Money:
    return Money.from_decimal(Decimal(amount), "USD")


def add_expense(db_session, paid_by, amount, tokens, currency="USD", **kwargs):
    expense = ExpenseService(db_session).create_expense(ExpenseCreate(
        group_id=kwargs.pop("group_id", GROUP),
        amount=Decimal(amount),
        currency=currency,
        description="Shared",
        paid_by=paid_by,
        split_tokens=tokens,
        **kwargs,
    ))
    db_session.commit()
    return expense


def settle(db_session, from_user, to_user, amount, **kwargs):
    settlement = SettlementService(db_session).record_settlement(SettlementCreate(
        group_id=kwargs.pop("group_id", GROUP),
        from_user=from_user,
        to_user=to_user,
        amount=Decimal(amount),
        **kwargs,
    ))
    db_session.commit()
    return settlement


class TestGetBalances:

    def test_empty_group(self, db_session):
        assert BalanceService(db_session).get_balances(GROUP) == {}

    def test_single_expense(self, db_session):
        add_expense(db_session, "alice", "90.00", ["@alice", "@bob", "@carol"])

        balances = BalanceService(db_session).get_balances(GROUP)
        assert balances == {"USD": {
            UserPair("alice", "bob"): usd("30.00"),
            UserPair("alice", "carol"): usd("30.00"),
        }}

    def test_netting_and_settlement(self, db_session):
        add_expense(db_session, "alice", "60.00", ["@alice", "@bob"])
        add_expense(db_session, "bob", "20.00", ["@alice", "@bob"])
        settle(db_session, "bob", "alice", "15.00")

        balances = BalanceService(db_session).get_balances(GROUP)["USD"]
        # bob owed 30, alice owed 10, bob paid 15 back
        assert balances[UserPair("alice", "bob")] == usd("5.00")

    def test_deleted_expense_no_longer_counts(self, db_session):
        expense = add_expense(db_session, "alice", "60.00", ["@alice", "@bob"])
        add_expense(db_session, "bob", "20.00", ["@alice", "@bob"])
        ExpenseService(db_session).delete_expense(expense.id)
        db_session.commit()

        balances = BalanceService(db_session).get_balances(GROUP)["USD"]
        assert balances[UserPair("alice", "bob")] == usd("10.00").negate()

    def test_trip_and_group_are_separate(self, db_session):
        add_expense(db_session, "alice", "40.00", ["@alice", "@bob"])
        add_expense(
            db_session, "bob", "100.00", ["@alice", "@bob"], trip_id="bali"
        )
        service = BalanceService(db_session)

        group = service.get_balances(GROUP)["USD"]
        trip = service.get_balances(GROUP, trip_id="bali")["USD"]
        assert group == {UserPair("alice", "bob"): usd("20.00")}
        assert trip == {UserPair("alice", "bob"): usd("50.00").negate()}

    def test_other_groups_ignored(self, db_session):
        add_expense(db_session, "alice", "40.00", ["@alice", "@bob"])
        add_expense(
            db_session, "alice", "40.00", ["@alice", "@bob"], group_id="flatmates"
        )

        balances = BalanceService(db_session).get_balances(GROUP)["USD"]
        assert balances == {UserPair("alice", "bob"): usd("20.00")}

    def test_currencies_netted_separately(self, db_session):
        add_expense(db_session, "alice", "40.00", ["@alice", "@bob"])
        add_expense(
            db_session, "bob", "3000", ["@alice", "@bob"], currency="JPY"
        )

        balances = BalanceService(db_session).get_balances(GROUP)
        assert sorted(balances) == ["JPY", "USD"]
        assert balances["JPY"][UserPair("alice", "bob")] == Money(-1500, "JPY")

    def test_fully_settled_pair_kept_at_zero(self, db_session):
        add_expense(db_session, "alice", "40.00", ["@alice", "@bob"])
        settle(db_session, "bob", "alice", "20.00")

        balances = BalanceService(db_session).get_balances(GROUP)["USD"]
        assert balances[UserPair("alice", "bob")].is_zero()

    def test_corrupted_splits_detected(self, db_session):
        # Written directly, bypassing the split parser
        expense = Expense(
            group_id=GROUP, amount=Decimal("50.00"), currency="USD",
            description="Broken", paid_by="alice", created_by="alice",
        )
        db_session.add(expense)
        db_session.flush()
        db_session.add(ExpenseSplit(
            expense_id=expense.id, user_id="bob", amount=Decimal("20.00"),
        ))
        db_session.commit()

        with pytest.raises(ConservationError):
            BalanceService(db_session).get_balances(GROUP)


class TestSimplifiedDebts:

    def test_cycle_collapses(self, db_session):
        add_expense(db_session, "bob", "30.00", ["@alice=30.00"])
        add_expense(db_session, "carol", "20.00", ["@bob=20.00"])
        add_expense(db_session, "alice", "10.00", ["@carol=10.00"])

        plans = BalanceService(db_session).get_simplified_debts(GROUP)
        plan = [(d.from_user, d.to_user, d.amount) for d in plans["USD"]]
        assert plan == [
            ("alice", "bob", usd("10.00")),
            ("alice", "carol", usd("10.00")),
        ]

    def test_settled_group_has_empty_plan(self, db_session):
        add_expense(db_session, "alice", "40.00", ["@alice", "@bob"])
        settle(db_session, "bob", "alice", "20.00")

        plans = BalanceService(db_session).get_simplified_debts(GROUP)
        assert plans == {"USD": []}


class TestBalanceBetween:

    def test_from_both_sides(self, db_session):
        add_expense(db_session, "alice", "40.00", ["@alice", "@bob"])
        service = BalanceService(db_session)

        assert service.get_balance_between(GROUP, "alice", "bob") == {
            "USD": usd("20.00")
        }
        assert service.get_balance_between(GROUP, "bob", "alice") == {
            "USD": usd("20.00").negate()
        }

    def test_strangers_have_no_balance(self, db_session):
        add_expense(db_session, "alice", "40.00", ["@alice", "@bob"])
        service = BalanceService(db_session)

        assert service.get_balance_between(GROUP, "alice", "zoe") == {}

    def test_same_user_rejected(self, db_session):
        with pytest.raises(ValueError, match="two different users"):
            BalanceService(db_session).get_balance_between(GROUP, "bob", "bob")


class TestPersonalTotals:

    def test_personal_expenses_summed(self, db_session):
        service = ExpenseService(db_session)
        for amount in ("12.50", "7.25"):
            service.create_expense(ExpenseCreate(
                amount=Decimal(amount), description="Lunch", paid_by="alice",
            ))
        db_session.commit()

        totals = BalanceService(db_session).get_personal_totals("alice")
        assert totals == {"USD": usd("19.75")}

    def test_group_expenses_not_counted(self, db_session):
        add_expense(db_session, "alice", "40.00", ["@alice", "@bob"])

        assert BalanceService(db_session).get_personal_totals("alice") == {}
