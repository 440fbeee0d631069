"""
Pydantic schemas for expense operations.

These define the API contract. They are separate from the
database models because the API shape and the storage shape
differ: a request carries raw split tokens, storage carries
the resolved per-user amounts.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from group_ledger.config import get_settings


# --- Request Schemas ---

class ExpenseCreate(BaseModel):
    """
    A new expense, as typed by a user.

    split_tokens are the mention tokens after the amount, e.g.
    ["@john=60%", "@sarah", "paid:@mike"]. members is the
    population to split evenly when nobody is mentioned.
    group_id=None records a personal expense.
    """
    group_id: str | None = Field(default=None, max_length=64)
    trip_id: str | None = Field(default=None, max_length=64)
    amount: Decimal = Field(gt=0)
    currency: str = Field(
        default_factory=lambda: get_settings().DEFAULT_CURRENCY,
        pattern=r"^[A-Z]{3}$",
    )
    description: str = Field(min_length=1, max_length=500)
    category: str | None = Field(default=None, max_length=100)
    note: str | None = Field(default=None, max_length=1000)
    paid_by: str = Field(min_length=1, max_length=64)
    created_by: str | None = Field(default=None, max_length=64)
    split_tokens: list[str] = Field(default_factory=list)
    members: list[str] = Field(default_factory=list)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description must not be blank")
        return v.strip()


class ExpenseUpdate(BaseModel):
    """
    Edit an expense in place. Omitted fields are left alone.

    A new amount rescales the existing splits in proportion;
    use ExpenseSplitsReplace to change who owes what. Sending
    category or note as null clears it.
    """
    amount: Decimal | None = Field(default=None, gt=0)
    description: str | None = Field(default=None, min_length=1, max_length=500)
    category: str | None = Field(default=None, max_length=100)
    note: str | None = Field(default=None, max_length=1000)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("description must not be blank")
        return v.strip()


class ExpenseSplitsReplace(BaseModel):
    """New split tokens for an existing group expense."""
    split_tokens: list[str] = Field(default_factory=list)
    members: list[str] = Field(default_factory=list)


# --- Response Schemas ---

class ExpenseSplitResponse(BaseModel):
    user_id: str
    amount: Decimal

    model_config = {"from_attributes": True}


class ExpenseResponse(BaseModel):
    id: int
    group_id: str | None
    trip_id: str | None
    amount: Decimal
    currency: str
    description: str
    category: str | None
    note: str | None
    paid_by: str
    created_by: str
    is_personal: bool
    deleted: bool
    created_at: datetime
    splits: list[ExpenseSplitResponse]

    model_config = {"from_attributes": True}
