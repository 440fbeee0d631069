"""
Expense API endpoints.

Thin layer: HTTP status codes and response shapes only. All
validation and split parsing happens in ExpenseService.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from group_ledger.models.base import get_db
from group_ledger.services.expense_service import ExpenseService
from group_ledger.schemas.expense import (
    ExpenseCreate,
    ExpenseResponse,
    ExpenseSplitsReplace,
    ExpenseUpdate,
)

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.post("", response_model=ExpenseResponse, status_code=201)
def create_expense(
    request: ExpenseCreate,
    db: Session = Depends(get_db),
):
    """
    Record an expense.

    split_tokens are parsed into exact per-user amounts. A bad
    split (percentages over 100%, fixed amounts over the total,
    unknown token) returns 400 and nothing is saved.
    """
    service = ExpenseService(db)
    try:
        expense = service.create_expense(request)
        db.commit()
        return expense
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=list[ExpenseResponse])
def list_expenses(
    group_id: str | None = None,
    trip_id: str | None = None,
    paid_by: str | None = None,
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """List live expenses, newest first."""
    service = ExpenseService(db)
    return service.list_expenses(
        group_id=group_id, trip_id=trip_id, paid_by=paid_by, limit=limit
    )


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
):
    """Get one expense with its splits."""
    service = ExpenseService(db)
    try:
        return service.get_expense(expense_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    request: ExpenseUpdate,
    db: Session = Depends(get_db),
):
    """
    Edit an expense.

    A new amount rescales every split in proportion. Who owes
    what is changed through PUT /expenses/{id}/splits.
    """
    service = ExpenseService(db)
    try:
        expense = service.update_expense(expense_id, request)
        db.commit()
        return expense
    except ValueError as e:
        db.rollback()
        status = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status, detail=str(e))


@router.put("/{expense_id}/splits", response_model=ExpenseResponse)
def replace_expense_splits(
    expense_id: int,
    request: ExpenseSplitsReplace,
    db: Session = Depends(get_db),
):
    """Re-split an expense from new mention tokens."""
    service = ExpenseService(db)
    try:
        expense = service.replace_splits(expense_id, request)
        db.commit()
        return expense
    except ValueError as e:
        db.rollback()
        status = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status, detail=str(e))


@router.delete("/{expense_id}", response_model=ExpenseResponse)
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
):
    """
    Soft-delete an expense.

    It stops counting towards balances but stays stored.
    """
    service = ExpenseService(db)
    try:
        expense = service.delete_expense(expense_id)
        db.commit()
        return expense
    except ValueError as e:
        db.rollback()
        status = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status, detail=str(e))
