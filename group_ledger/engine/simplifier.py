"""
Debt simplifier: the fewest payments that clear a scope.

Pairwise balances are collapsed into one net position per user,
then the largest debtor repeatedly pays the largest creditor.
Each payment clears at least one side, so k users with a
non-zero position need at most k - 1 payments.

The plan only preserves each user's net position. Who pays
whom can differ from who actually shared expenses.
"""

from group_ledger.engine.balances import Balances, net_balances
from group_ledger.engine.money import Money
from group_ledger.engine.types import SimplifiedDebt, UserId


def _by_magnitude(side: list[tuple[UserId, int]]) -> list[tuple[UserId, int]]:
    # Largest first; equal amounts ordered by user id
    return sorted(side, key=lambda item: (-item[1], item[0]))


def simplify(balances: Balances) -> list[SimplifiedDebt]:
    """Suggest payments that bring every user's net balance to zero."""
    nets = net_balances(balances)
    if not nets:
        return []

    currency = next(iter(nets.values())).currency
    creditors = _by_magnitude(
        [(user, net.minor) for user, net in nets.items() if net.minor > 0]
    )
    debtors = _by_magnitude(
        [(user, -net.minor) for user, net in nets.items() if net.minor < 0]
    )

    plan: list[SimplifiedDebt] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, owes = debtors[i]
        creditor, owed = creditors[j]

        amount = min(owes, owed)
        plan.append(SimplifiedDebt(
            from_user=debtor,
            to_user=creditor,
            amount=Money(amount, currency),
        ))

        debtors[i] = (debtor, owes - amount)
        creditors[j] = (creditor, owed - amount)
        if debtors[i][1] == 0:
            i += 1
        if creditors[j][1] == 0:
            j += 1

    return plan


def apply_plan(balances: Balances, plan: list[SimplifiedDebt]) -> dict[UserId, Money]:
    """
    Net positions after every suggested payment is made.

    Each payment counts as a settlement from payer to payee.
    For a plan produced by simplify() every value is zero.
    """
    nets = net_balances(balances)
    for debt in plan:
        nets[debt.from_user] = nets.get(
            debt.from_user, Money.zero(debt.amount.currency)
        ) + debt.amount
        nets[debt.to_user] = nets.get(
            debt.to_user, Money.zero(debt.amount.currency)
        ) - debt.amount
    return nets
