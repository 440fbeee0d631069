"""
Balance aggregator — folds expenses and settlements into
pairwise net balances.

This is the only place netting happens. Every view that shows
who owes whom (balance list, settle screen, trip summary) reads
the output of compute_balances().

Sign convention: for UserPair(low, high) a positive balance
means `high` owes `low`; negative means `low` owes `high`.
"""

from typing import Iterable

from group_ledger.engine.errors import ConservationError, CurrencyMismatch
from group_ledger.engine.money import Money, sum_money
from group_ledger.engine.types import (
    ExpenseSnapshot,
    Scope,
    SettlementSnapshot,
    UserId,
    UserPair,
)


Balances = dict[UserPair, Money]


def _record_debt(
    balances: Balances, debtor: UserId, creditor: UserId, amount: Money
) -> None:
    """Add `amount` to what `debtor` owes `creditor`."""
    pair = UserPair.of(debtor, creditor)
    signed = amount if creditor == pair.low else amount.negate()
    current = balances.get(pair)
    balances[pair] = signed if current is None else current + signed


def _pick_currency(
    expenses: list[ExpenseSnapshot],
    settlements: list[SettlementSnapshot],
) -> str | None:
    currencies = {e.currency for e in expenses} | {s.currency for s in settlements}
    if len(currencies) > 1:
        raise CurrencyMismatch(
            f"scope mixes currencies {sorted(currencies)}; "
            f"compute balances per currency"
        )
    return currencies.pop() if currencies else None


def compute_balances(
    scope: Scope,
    expenses: Iterable[ExpenseSnapshot],
    settlements: Iterable[SettlementSnapshot],
    currency: str | None = None,
) -> Balances:
    """
    Net every pair of users in `scope`.

    Rows from other scopes and deleted expenses are ignored.
    With `currency` set, rows in other currencies are ignored
    too; without it, all remaining rows must share a currency.

    Pairs that net to exactly zero are kept, so the result
    still shows who has transacted with whom.
    """
    in_scope_expenses = [
        e for e in expenses
        if e.scope == scope and not e.deleted
        and (currency is None or e.currency == currency)
    ]
    in_scope_settlements = [
        s for s in settlements
        if s.scope == scope
        and (currency is None or s.currency == currency)
    ]
    if currency is None:
        _pick_currency(in_scope_expenses, in_scope_settlements)

    balances: Balances = {}

    for expense in in_scope_expenses:
        for split in expense.splits:
            if split.user_id == expense.payer:
                continue
            _record_debt(balances, split.user_id, expense.payer, split.amount)

    for settlement in in_scope_settlements:
        if settlement.from_user == settlement.to_user:
            continue
        # Paying someone reduces what you owe them
        _record_debt(
            balances, settlement.to_user, settlement.from_user, settlement.amount
        )

    return balances


def scope_currencies(
    scope: Scope,
    expenses: Iterable[ExpenseSnapshot],
    settlements: Iterable[SettlementSnapshot],
) -> list[str]:
    """Currencies used by live rows in `scope`, sorted."""
    currencies = {
        e.currency for e in expenses if e.scope == scope and not e.deleted
    }
    currencies |= {s.currency for s in settlements if s.scope == scope}
    return sorted(currencies)


def is_settled(balance: Money) -> bool:
    """Display rule: anything under one minor unit counts as settled."""
    return abs(balance.minor) < 1


def net_balances(balances: Balances) -> dict[UserId, Money]:
    """
    Each user's overall position across all pairs.

    Positive means the user is owed money, negative means they
    owe money. Users are returned in id order.
    """
    nets: dict[UserId, Money] = {}
    for (low, high), amount in balances.items():
        nets[low] = nets[low] + amount if low in nets else amount
        nets[high] = (
            nets[high] - amount if high in nets else amount.negate()
        )
    return dict(sorted(nets.items()))


def balance_between(balances: Balances, user: UserId, other: UserId) -> Money | None:
    """
    Signed balance of `user` against `other`.

    Positive means `other` owes `user`. None when the two have
    never transacted in this set of balances.
    """
    pair = UserPair.of(user, other)
    amount = balances.get(pair)
    if amount is None:
        return None
    return amount if user == pair.low else amount.negate()


def ledger_nets(
    scope: Scope,
    expenses: Iterable[ExpenseSnapshot],
    settlements: Iterable[SettlementSnapshot],
    currency: str,
) -> dict[UserId, Money]:
    """
    Net positions straight from the rows, without pairing.

    paid - owed + settlements paid - settlements received.
    This sums to zero only if every expense's splits add up
    to the expense amount.
    """
    nets: dict[UserId, Money] = {}

    def credit(user: UserId, amount: Money) -> None:
        nets[user] = nets.get(user, Money.zero(currency)) + amount

    for expense in expenses:
        if expense.scope != scope or expense.deleted or expense.currency != currency:
            continue
        credit(expense.payer, expense.amount)
        for split in expense.splits:
            credit(split.user_id, split.amount.negate())

    for settlement in settlements:
        if settlement.scope != scope or settlement.currency != currency:
            continue
        credit(settlement.from_user, settlement.amount)
        credit(settlement.to_user, settlement.amount.negate())

    return dict(sorted(nets.items()))


def check_conservation(
    balances: Balances,
    scope: Scope,
    expenses: Iterable[ExpenseSnapshot],
    settlements: Iterable[SettlementSnapshot],
    currency: str,
) -> None:
    """
    Raise ConservationError unless money is conserved.

    The row-level nets must sum to zero, and each user's net
    from the pairwise balances must match their row-level net.
    """
    expected = ledger_nets(scope, expenses, settlements, currency)
    total = sum_money(expected.values(), currency)
    if not total.is_zero():
        raise ConservationError(
            f"net balances in {currency} sum to {total.format_plain()}, "
            f"expected 0; some expense splits do not add up"
        )

    actual = net_balances(balances)
    for user in set(expected) | set(actual):
        want = expected.get(user, Money.zero(currency))
        got = actual.get(user, Money.zero(currency))
        if want != got:
            raise ConservationError(
                f"pairwise net for {user} is {got.format_plain()}, "
                f"rows say {want.format_plain()}"
            )
