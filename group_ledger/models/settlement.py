"""
Settlement model.

A settlement records that one user paid another back.
Settlements are append-only facts: a mistake is corrected by
recording an offsetting settlement, never by editing a row.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column

from group_ledger.models.base import Base, utcnow


class Settlement(Base):

    __tablename__ = "settlements"
    __table_args__ = (
        Index("idx_settlements_group", "group_id", "trip_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    group_id: Mapped[str] = mapped_column(String(64), nullable=False)
    trip_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    from_user: Mapped[str] = mapped_column(String(64), nullable=False)
    to_user: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="USD"
    )
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<Settlement {self.from_user} -> {self.to_user} "
            f"{self.amount} {self.currency}>"
        )
