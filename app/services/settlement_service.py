import logging
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from typing import List, Optional
from app.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.expenses import Expense
from app.models.settlements import Settlement, SettlementExpense
from app.schemas.settlement_schema import SettlementCreate
from app.services.user_service import require_user

logger = logging.getLogger(__name__)


def create_settlement(db: Session, settlement_data: SettlementCreate, user_id: str) -> Settlement:
    """Record a payment from one user to another"""
    from app.services.group_service import require_group

    if settlement_data.paid_by == settlement_data.received_by:
        raise ValidationError("A settlement needs two different users")

    # Users can only create settlements they're involved in
    if user_id not in (settlement_data.paid_by, settlement_data.received_by):
        raise AuthorizationError("You can only create settlements you're involved in")

    require_user(db, settlement_data.paid_by)
    require_user(db, settlement_data.received_by)

    if settlement_data.group_id:
        group = require_group(db, settlement_data.group_id)
        member_ids = {member.user_id for member in group.members}
        for party in (settlement_data.paid_by, settlement_data.received_by):
            if party not in member_ids:
                raise AuthorizationError(f"User {party} is not a member of this group")

    related_ids = list(dict.fromkeys(settlement_data.related_expense_ids))
    try:
        # Lock the covered expenses so they cannot be deleted before this commits
        expenses = (
            db.query(Expense).filter(Expense.id.in_(related_ids)).with_for_update().all()
            if related_ids else []
        )
        found = {expense.id: expense for expense in expenses}
        for expense_id in related_ids:
            expense = found.get(expense_id)
            if expense is None:
                raise NotFoundError(f"Expense {expense_id} not found")
            if expense.group_id != settlement_data.group_id:
                raise ValidationError(f"Expense {expense_id} belongs to a different scope than this settlement")

        settlement = Settlement(
            paid_by=settlement_data.paid_by,
            received_by=settlement_data.received_by,
            amount=settlement_data.amount,
            note=settlement_data.note,
            date=settlement_data.date,
            group_id=settlement_data.group_id,
            created_by=user_id,
            expense_links=[SettlementExpense(expense_id=expense_id) for expense_id in related_ids],
        )
        db.add(settlement)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(settlement)
    logger.info(
        f"Recorded settlement {settlement.id}: {settlement.paid_by} paid "
        f"{settlement.amount} to {settlement.received_by}"
    )
    return settlement


def get_group_settlements(db: Session, group_id: str) -> List[Settlement]:
    """Get all settlements for a group"""
    return db.query(Settlement).filter(Settlement.group_id == group_id).all()


def get_direct_settlements(db: Session, user_id: Optional[str] = None) -> List[Settlement]:
    """1-to-1 settlements, optionally only those the user paid or received"""
    query = db.query(Settlement).filter(Settlement.group_id.is_(None))
    if user_id is not None:
        query = query.filter(or_(Settlement.paid_by == user_id, Settlement.received_by == user_id))
    return query.all()


def get_settlements_between_users(db: Session, user_id: str, other_user_id: str) -> List[Settlement]:
    """1-to-1 settlements between two users, newest first"""
    return (
        db.query(Settlement)
        .filter(and_(
            Settlement.group_id.is_(None),
            or_(
                and_(Settlement.paid_by == user_id, Settlement.received_by == other_user_id),
                and_(Settlement.paid_by == other_user_id, Settlement.received_by == user_id),
            ),
        ))
        .order_by(Settlement.date.desc())
        .all()
    )


def get_user_group_settlements(db: Session, group_id: str, user_id: str) -> List[Settlement]:
    """Settlements inside a group that the user paid or received"""
    return (
        db.query(Settlement)
        .filter(and_(
            Settlement.group_id == group_id,
            or_(Settlement.paid_by == user_id, Settlement.received_by == user_id),
        ))
        .all()
    )
