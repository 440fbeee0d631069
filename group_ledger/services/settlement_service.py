"""
Settlement service — records repayments between users.

Settlements are append-only. Paying more than is owed is
allowed: the balance simply flips direction, the same as
if the extra had been lent.
"""

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from group_ledger.config import get_settings
from group_ledger.engine import Money
from group_ledger.models.settlement import Settlement
from group_ledger.schemas.settlement import SettlementCreate


class SettlementService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def record_settlement(self, request: SettlementCreate) -> Settlement:
        """
        Record that from_user paid to_user.

        Raises ValueError for self-settlement, amounts over the
        configured limit, or amounts the currency cannot express.
        """
        if request.from_user == request.to_user:
            raise ValueError("Cannot settle with yourself")
        if request.amount > self.settings.MAX_AMOUNT:
            raise ValueError(
                f"Amount cannot exceed {self.settings.MAX_AMOUNT}"
            )

        amount = Money.from_decimal(request.amount, request.currency)

        settlement = Settlement(
            group_id=request.group_id,
            trip_id=request.trip_id,
            from_user=request.from_user,
            to_user=request.to_user,
            amount=amount.to_decimal(),
            currency=amount.currency,
            created_by=request.created_by or request.from_user,
        )
        self.db.add(settlement)
        self.db.flush()

        logger.info(
            "Settlement {} recorded: {} paid {} {}",
            settlement.id, request.from_user, request.to_user,
            amount.to_display_string(),
        )
        return settlement

    def list_settlements(
        self, group_id: str, trip_id: str | None = None
    ) -> list[Settlement]:
        """Settlements in a group (or one of its trips), newest first."""
        query = select(Settlement).where(Settlement.group_id == group_id)
        if trip_id is None:
            query = query.where(Settlement.trip_id.is_(None))
        else:
            query = query.where(Settlement.trip_id == trip_id)

        settlements = self.db.execute(
            query.order_by(Settlement.created_at.desc(), Settlement.id.desc())
        ).scalars().all()
        return list(settlements)
