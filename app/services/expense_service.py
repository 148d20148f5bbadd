import logging
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from datetime import datetime
from typing import List, Optional
from app.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.expenses import Expense, ExpenseSplit
from app.models.settlements import Settlement, SettlementExpense
from app.schemas.expense_schema import ExpenseCreate, DeleteResult
from app.services.user_service import require_user
from app.utils.ledger import amounts_match, to_cents

logger = logging.getLogger(__name__)


def validate_splits(expense_data: ExpenseCreate) -> None:
    """Splits must sum to the declared amount within tolerance"""
    if not expense_data.splits:
        raise ValidationError("An expense needs at least one split")

    total_split = sum(split.amount for split in expense_data.splits)
    if not amounts_match(total_split, expense_data.amount):
        difference = to_cents(total_split - expense_data.amount)
        raise ValidationError(
            f"Split amounts must equal total expense: splits sum to {to_cents(total_split)}, "
            f"expense is {expense_data.amount} (difference {difference})"
        )

    participants = [split.user_id for split in expense_data.splits]
    if len(set(participants)) != len(participants):
        raise ValidationError("Each participant may only appear once in the splits")


def create_expense(db: Session, expense_data: ExpenseCreate, user_id: str) -> Expense:
    """Create a new expense with splits"""
    from app.services.group_service import require_group

    if expense_data.group_id:
        group = require_group(db, expense_data.group_id)
        member_ids = {member.user_id for member in group.members}
        if user_id not in member_ids:
            logger.warning(f"User {user_id} tried to add an expense to group {group.id} without membership")
            raise AuthorizationError("You are not a member of this group")
        if expense_data.paid_by not in member_ids:
            raise AuthorizationError("Payer is not a member of this group")
        for split in expense_data.splits:
            if split.user_id not in member_ids:
                raise ValidationError(f"User {split.user_id} is not a member of this group")
    else:
        require_user(db, expense_data.paid_by)
        for split in expense_data.splits:
            require_user(db, split.user_id)

    validate_splits(expense_data)

    expense = Expense(
        description=expense_data.description,
        amount=expense_data.amount,
        category=expense_data.category or "Other",
        date=expense_data.date,
        paid_by=expense_data.paid_by,
        split_type=expense_data.split_type,
        group_id=expense_data.group_id,
        created_by=user_id,
    )
    for position, split_data in enumerate(expense_data.splits):
        expense.splits.append(ExpenseSplit(
            user_id=split_data.user_id,
            amount=split_data.amount,
            paid=split_data.paid,
            position=position,
        ))

    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info(f"Created expense {expense.id} of {expense.amount} paid by {expense.paid_by}")
    return expense


def get_expense(db: Session, expense_id: str) -> Optional[Expense]:
    """Get an expense by ID"""
    return db.query(Expense).filter(Expense.id == expense_id).first()


def get_visible_expense(db: Session, expense_id: str, user_id: str) -> Expense:
    """Get an expense the user may see: group members, or the parties of a 1-to-1 expense"""
    from app.services.group_service import require_group_member

    expense = get_expense(db, expense_id)
    if not expense:
        raise NotFoundError("Expense not found")
    if expense.group_id:
        require_group_member(db, expense.group_id, user_id)
    elif not expense.involves(user_id):
        raise AuthorizationError("You are not part of this expense")
    return expense


def delete_expense(db: Session, expense_id: str, user_id: str) -> DeleteResult:
    """
    Delete an expense (creator or payer only) and unwind settlements that cover it.

    Each settlement linked to the expense loses that link; a settlement left
    with no linked expenses is deleted. Everything commits together or not at
    all.
    """
    expense = get_expense(db, expense_id)
    if not expense:
        raise NotFoundError("Expense not found")

    if expense.created_by != user_id and expense.paid_by != user_id:
        logger.warning(f"User {user_id} is not allowed to delete expense {expense_id}")
        raise AuthorizationError("Not authorized to delete this expense")

    deleted_settlements: List[str] = []
    updated_settlements: List[str] = []
    try:
        related = (
            db.query(Settlement)
            .join(SettlementExpense, SettlementExpense.settlement_id == Settlement.id)
            .filter(SettlementExpense.expense_id == expense_id)
            .with_for_update()
            .all()
        )

        for settlement in related:
            remaining = [link for link in settlement.expense_links if link.expense_id != expense_id]
            if not remaining:
                db.delete(settlement)
                deleted_settlements.append(settlement.id)
            else:
                settlement.expense_links = remaining
                updated_settlements.append(settlement.id)

        # Links must be gone before the expense row, which they reference
        db.flush()
        db.delete(expense)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Rolled back deletion of expense {expense_id}")
        raise

    logger.info(
        f"Deleted expense {expense_id}; removed {len(deleted_settlements)} settlements, "
        f"updated {len(updated_settlements)}"
    )
    return DeleteResult(
        success=True,
        deleted_settlements=deleted_settlements,
        updated_settlements=updated_settlements,
    )


def get_group_expenses(db: Session, group_id: str) -> List[Expense]:
    """Get all expenses for a group"""
    return db.query(Expense).filter(Expense.group_id == group_id).all()


def get_direct_expenses(db: Session, user_id: Optional[str] = None) -> List[Expense]:
    """
    Get 1-to-1 (non-group) expenses.

    With a user, only those the user paid or has a split in.
    """
    query = db.query(Expense).filter(Expense.group_id.is_(None))
    if user_id is not None:
        query = query.filter(or_(
            Expense.paid_by == user_id,
            Expense.splits.any(ExpenseSplit.user_id == user_id),
        ))
    return query.all()


def get_expenses_between_users(db: Session, user_id: str, other_user_id: str) -> List[Expense]:
    """1-to-1 expenses paid by either user that involve both, newest first"""
    candidates = (
        db.query(Expense)
        .filter(and_(
            Expense.group_id.is_(None),
            Expense.paid_by.in_([user_id, other_user_id]),
        ))
        .order_by(Expense.date.desc())
        .all()
    )
    return [e for e in candidates if e.involves(user_id) and e.involves(other_user_id)]


def get_user_expenses_between(db: Session, user_id: str, start: datetime, end: datetime) -> List[Expense]:
    """Expenses dated in [start, end) that the user paid or has a split in"""
    return (
        db.query(Expense)
        .filter(and_(
            Expense.date >= start,
            Expense.date < end,
            or_(
                Expense.paid_by == user_id,
                Expense.splits.any(ExpenseSplit.user_id == user_id),
            ),
        ))
        .all()
    )
