"""
Balance API endpoints.

/balances shows what actually happened between pairs of users.
/balances/simplified shows a suggested plan that may route
payments differently. The two use separate response types so
they cannot be mistaken for each other.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from group_ledger.engine import Balances, is_settled, net_balances
from group_ledger.models.base import get_db
from group_ledger.services.balance_service import BalanceService
from group_ledger.schemas.balance import (
    AmountResponse,
    BalanceBetweenResponse,
    BalancesResponse,
    NetBalanceResponse,
    PairBalanceResponse,
    PersonalTotalResponse,
    SettlementPlanResponse,
    SimplifiedDebtResponse,
)

router = APIRouter(prefix="/balances", tags=["Balances"])


def _pair_responses(
    balances: Balances, include_settled: bool
) -> list[PairBalanceResponse]:
    responses = []
    for (low, high), amount in sorted(balances.items()):
        if is_settled(amount) and not include_settled:
            continue
        # Positive: high owes low
        debtor, creditor = (high, low) if amount.minor >= 0 else (low, high)
        responses.append(PairBalanceResponse(
            debtor=debtor,
            creditor=creditor,
            amount=amount.abs().to_decimal(),
            currency=amount.currency,
            settled=is_settled(amount),
            display=amount.abs().to_display_string(),
        ))
    return responses


def _net_responses(balances: Balances) -> list[NetBalanceResponse]:
    return [
        NetBalanceResponse(
            user_id=user_id,
            balance=net.to_decimal(),
            currency=net.currency,
            display=net.to_display_string(),
        )
        for user_id, net in net_balances(balances).items()
        if not is_settled(net)
    ]


@router.get("", response_model=BalancesResponse)
def get_balances(
    group_id: str,
    trip_id: str | None = None,
    include_settled: bool = False,
    db: Session = Depends(get_db),
):
    """
    Pairwise balances and each user's net position.

    Pairs that net to zero are hidden unless include_settled
    is set.
    """
    service = BalanceService(db)
    try:
        per_currency = service.get_balances(group_id, trip_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    pairs: list[PairBalanceResponse] = []
    net: list[NetBalanceResponse] = []
    for balances in per_currency.values():
        pairs.extend(_pair_responses(balances, include_settled))
        net.extend(_net_responses(balances))

    return BalancesResponse(
        group_id=group_id,
        trip_id=trip_id,
        balances=pairs,
        net=net,
    )


@router.get("/simplified", response_model=SettlementPlanResponse)
def get_simplified_debts(
    group_id: str,
    trip_id: str | None = None,
    db: Session = Depends(get_db),
):
    """The fewest payments that settle everyone up."""
    service = BalanceService(db)
    try:
        plans = service.get_simplified_debts(group_id, trip_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    debts = [
        SimplifiedDebtResponse(
            from_user=debt.from_user,
            to_user=debt.to_user,
            amount=debt.amount.to_decimal(),
            currency=debt.amount.currency,
            display=debt.amount.to_display_string(),
        )
        for plan in plans.values()
        for debt in plan
    ]
    return SettlementPlanResponse(
        group_id=group_id,
        trip_id=trip_id,
        debts=debts,
    )


@router.get("/between", response_model=BalanceBetweenResponse)
def get_balance_between(
    group_id: str,
    user_id: str,
    other: str,
    trip_id: str | None = None,
    db: Session = Depends(get_db),
):
    """What `other` owes `user_id` (negative: the reverse)."""
    service = BalanceService(db)
    try:
        amounts = service.get_balance_between(group_id, user_id, other, trip_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return BalanceBetweenResponse(
        user_id=user_id,
        other=other,
        amounts=[
            AmountResponse(
                amount=amount.to_decimal(),
                currency=currency,
                display=amount.to_display_string(),
            )
            for currency, amount in amounts.items()
        ],
    )


@router.get("/personal/{user_id}", response_model=PersonalTotalResponse)
def get_personal_totals(
    user_id: str,
    db: Session = Depends(get_db),
):
    """A user's total personal spending, per currency."""
    service = BalanceService(db)
    totals = service.get_personal_totals(user_id)
    return PersonalTotalResponse(
        user_id=user_id,
        totals=[
            AmountResponse(
                amount=total.to_decimal(),
                currency=currency,
                display=total.to_display_string(),
            )
            for currency, total in totals.items()
        ],
    )
