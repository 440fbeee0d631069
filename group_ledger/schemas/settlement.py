"""
Pydantic schemas for settlement operations.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from group_ledger.config import get_settings


class SettlementCreate(BaseModel):
    """from_user paid to_user `amount` outside the app."""
    group_id: str = Field(min_length=1, max_length=64)
    trip_id: str | None = Field(default=None, max_length=64)
    from_user: str = Field(min_length=1, max_length=64)
    to_user: str = Field(min_length=1, max_length=64)
    amount: Decimal = Field(gt=0)
    currency: str = Field(
        default_factory=lambda: get_settings().DEFAULT_CURRENCY,
        pattern=r"^[A-Z]{3}$",
    )
    created_by: str | None = Field(default=None, max_length=64)

    @model_validator(mode="after")
    def users_must_differ(self) -> "SettlementCreate":
        if self.from_user == self.to_user:
            raise ValueError("cannot settle with yourself")
        return self


class SettlementResponse(BaseModel):
    id: int
    group_id: str
    trip_id: str | None
    from_user: str
    to_user: str
    amount: Decimal
    currency: str
    created_by: str
    created_at: datetime

    model_config = {"from_attributes": True}
