"""
Settlement API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from group_ledger.models.base import get_db
from group_ledger.services.settlement_service import SettlementService
from group_ledger.schemas.settlement import (
    SettlementCreate,
    SettlementResponse,
)

router = APIRouter(prefix="/settlements", tags=["Settlements"])


@router.post("", response_model=SettlementResponse, status_code=201)
def record_settlement(
    request: SettlementCreate,
    db: Session = Depends(get_db),
):
    """Record that one user paid another back."""
    service = SettlementService(db)
    try:
        settlement = service.record_settlement(request)
        db.commit()
        return settlement
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=list[SettlementResponse])
def list_settlements(
    group_id: str,
    trip_id: str | None = None,
    db: Session = Depends(get_db),
):
    """List settlements in a group or trip, newest first."""
    service = SettlementService(db)
    return service.list_settlements(group_id, trip_id)
