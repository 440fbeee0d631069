"""
Expense and expense split models.

An expense records who paid and how much. Its splits record
how much each participant owes. For every expense the split
amounts add up to the expense amount exactly; the split
parser guarantees it before anything is written.

Expenses are soft-deleted (deleted=True) and never removed,
so past balances can always be rebuilt.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, ForeignKey,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from group_ledger.models.base import Base, utcnow


class Expense(Base):
    """
    A shared (or personal) expense.

    group_id is NULL for personal expenses. trip_id narrows a
    group expense to one trip; group balances and trip
    balances are computed separately.
    """

    __tablename__ = "expenses"
    __table_args__ = (
        Index("idx_expenses_group", "group_id", "trip_id", "deleted"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    group_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    trip_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="USD"
    )
    description: Mapped[str] = mapped_column(
        String(500), nullable=False
    )
    category: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    note: Mapped[str | None] = mapped_column(
        String(1000), nullable=True
    )
    paid_by: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    created_by: Mapped[str] = mapped_column(
        String(64), nullable=False
    )
    is_personal: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    splits: Mapped[list["ExpenseSplit"]] = relationship(
        back_populates="expense",
        order_by="ExpenseSplit.id",
    )

    def __repr__(self) -> str:
        return (
            f"<Expense {self.id} {self.amount} {self.currency} "
            f"paid by {self.paid_by}>"
        )


class ExpenseSplit(Base):
    """One participant's share of an expense."""

    __tablename__ = "expense_splits"
    __table_args__ = (
        UniqueConstraint("expense_id", "user_id", name="uq_split_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    expense_id: Mapped[int] = mapped_column(
        ForeignKey("expenses.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(64), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )

    expense: Mapped["Expense"] = relationship(back_populates="splits")

    def __repr__(self) -> str:
        return f"<ExpenseSplit {self.user_id} owes {self.amount}>"
