"""
Expense service — records expenses and their splits.

Each create:
1. Validates the request against the ledger limits
2. Builds the total as exact Money
3. Runs the split parser over the mention tokens
4. Writes the expense and one split row per participant

Edits keep the same guarantee. A new amount is spread over
the existing splits in proportion to what each owed, and
replacing the splits runs the parser again. The split rows of
an expense always add up to its amount, so nothing that
reaches the database can create or lose money. The caller
controls the commit.
"""

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from group_ledger.config import get_settings
from group_ledger.engine import Money, SplitKind, parse_splits
from group_ledger.engine.errors import SplitError
from group_ledger.models.expense import Expense, ExpenseSplit
from group_ledger.schemas.expense import (
    ExpenseCreate,
    ExpenseSplitsReplace,
    ExpenseUpdate,
)


class ExpenseService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def _check_text(
        self,
        description: str | None = None,
        category: str | None = None,
        note: str | None = None,
    ) -> None:
        limits = (
            ("Description", description, self.settings.MAX_DESCRIPTION_LENGTH),
            ("Category", category, self.settings.MAX_CATEGORY_LENGTH),
            ("Note", note, self.settings.MAX_NOTE_LENGTH),
        )
        for label, text, limit in limits:
            if text is not None and len(text) > limit:
                raise ValueError(f"{label} too long (max {limit} characters)")

    def _check_amount(self, amount) -> None:
        if amount > self.settings.MAX_AMOUNT:
            raise ValueError(
                f"Amount cannot exceed {self.settings.MAX_AMOUNT}"
            )

    def _validate(self, request: ExpenseCreate) -> None:
        self._check_amount(request.amount)
        self._check_text(request.description, request.category, request.note)
        if request.group_id is None and request.split_tokens:
            raise ValueError("Personal expenses cannot be split")
        if request.trip_id is not None and request.group_id is None:
            raise ValueError("A trip expense must belong to a group")

    def _resolve_splits(
        self,
        tokens: list[str],
        members: list[str],
        paid_by: str,
        total: Money,
    ) -> tuple[str, dict[str, Money]]:
        """
        Return (payer, per-user amounts) for a group expense.

        When only plain @user mentions are given, the payer joins
        the equal split: "30 @bob" paid by alice is 15 each.
        """
        try:
            parsed = parse_splits(tokens, total, fallback=members)
            payer = parsed.payer_override or paid_by

            mentioned = any(t.strip().startswith("@") for t in tokens)
            all_equal = all(k == SplitKind.EQUAL for k in parsed.kinds.values())
            if mentioned and all_equal and payer not in parsed.participants:
                parsed = parse_splits([*tokens, f"@{payer}"], total)
        except SplitError as e:
            logger.debug("Rejected split {}: {}", tokens, e)
            raise

        if len(parsed.per_user) > self.settings.MAX_SPLITS:
            raise ValueError(
                f"Too many splits (max {self.settings.MAX_SPLITS})"
            )
        return payer, parsed.per_user

    def _write_splits(self, expense: Expense, per_user: dict[str, Money]) -> None:
        for user_id, owed in per_user.items():
            self.db.add(ExpenseSplit(
                expense_id=expense.id,
                user_id=user_id,
                amount=owed.to_decimal(),
            ))
        self.db.flush()

    def create_expense(self, request: ExpenseCreate) -> Expense:
        """
        Record an expense with its splits.

        Raises ValueError (including SplitError and MoneyError)
        if the request is invalid. Nothing is written in that case.
        """
        self._validate(request)
        total = Money.from_decimal(request.amount, request.currency)
        if request.group_id is None:
            payer, per_user = request.paid_by, {request.paid_by: total}
        else:
            payer, per_user = self._resolve_splits(
                request.split_tokens, request.members, request.paid_by, total
            )

        expense = Expense(
            group_id=request.group_id,
            trip_id=request.trip_id,
            amount=total.to_decimal(),
            currency=total.currency,
            description=request.description,
            category=request.category,
            note=request.note,
            paid_by=payer,
            created_by=request.created_by or request.paid_by,
            is_personal=request.group_id is None,
            deleted=False,
        )
        self.db.add(expense)
        self.db.flush()

        self._write_splits(expense, per_user)
        self.db.refresh(expense)

        logger.info(
            "Expense {} created: {} paid by {} split {} ways",
            expense.id, total.to_display_string(), payer, len(per_user),
        )
        return expense

    def get_expense(self, expense_id: int) -> Expense:
        """Return a live expense. Raises ValueError if missing or deleted."""
        expense = self.db.execute(
            select(Expense)
            .options(selectinload(Expense.splits))
            .where(Expense.id == expense_id, Expense.deleted.is_(False))
        ).scalar_one_or_none()

        if not expense:
            raise ValueError(f"Expense {expense_id} not found")
        return expense

    def list_expenses(
        self,
        group_id: str | None = None,
        trip_id: str | None = None,
        paid_by: str | None = None,
        limit: int = 20,
    ) -> list[Expense]:
        """Live expenses matching the filters, newest first."""
        query = (
            select(Expense)
            .options(selectinload(Expense.splits))
            .where(Expense.deleted.is_(False))
        )
        if group_id is not None:
            query = query.where(Expense.group_id == group_id)
        if trip_id is not None:
            query = query.where(Expense.trip_id == trip_id)
        if paid_by is not None:
            query = query.where(Expense.paid_by == paid_by)

        expenses = self.db.execute(
            query.order_by(Expense.created_at.desc(), Expense.id.desc())
            .limit(limit)
        ).scalars().all()
        return list(expenses)

    def update_expense(self, expense_id: int, request: ExpenseUpdate) -> Expense:
        """
        Change the amount, description, category or note.

        A new amount is allocated over the current splits in
        proportion to their old amounts, so the splits still add
        up to the new total exactly.
        """
        expense = self.get_expense(expense_id)
        changes = request.model_dump(exclude_unset=True)
        self._check_text(
            changes.get("description"), changes.get("category"), changes.get("note")
        )

        if request.amount is not None:
            self._check_amount(request.amount)
            total = Money.from_decimal(request.amount, expense.currency)
            old = [
                Money.from_decimal(s.amount, expense.currency).minor
                for s in expense.splits
            ]
            for split, part in zip(expense.splits, total.allocate(old)):
                split.amount = part.to_decimal()
            expense.amount = total.to_decimal()

        if request.description is not None:
            expense.description = request.description
        for field in ("category", "note"):
            if field in changes:
                setattr(expense, field, changes[field])

        self.db.flush()
        logger.info("Expense {} updated: {}", expense_id, sorted(changes))
        return expense

    def replace_splits(
        self, expense_id: int, request: ExpenseSplitsReplace
    ) -> Expense:
        """
        Re-split a group expense from new mention tokens.

        The old split rows are deleted and the parser's result
        written in their place. A paid:@user token changes the
        payer. Personal expenses have no splits to change.
        """
        expense = self.get_expense(expense_id)
        if expense.is_personal:
            raise ValueError("Cannot update splits for personal expenses")

        total = Money.from_decimal(expense.amount, expense.currency)
        payer, per_user = self._resolve_splits(
            request.split_tokens, request.members, expense.paid_by, total
        )

        for split in list(expense.splits):
            self.db.delete(split)
        self.db.flush()

        expense.paid_by = payer
        self._write_splits(expense, per_user)
        self.db.expire(expense, ["splits"])

        logger.info(
            "Expense {} re-split {} ways, paid by {}",
            expense_id, len(per_user), payer,
        )
        return expense

    def delete_expense(self, expense_id: int) -> Expense:
        """
        Soft-delete an expense.

        The row and its splits stay in place with deleted=True,
        so balances before the deletion can still be rebuilt.
        """
        expense = self.db.get(Expense, expense_id)
        if not expense:
            raise ValueError(f"Expense {expense_id} not found")
        if expense.deleted:
            raise ValueError(f"Expense {expense_id} is already deleted")

        expense.deleted = True
        self.db.flush()
        logger.info("Expense {} deleted", expense_id)
        return expense
