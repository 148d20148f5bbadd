from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.api.deps import get_current_user_id
from app.db.database import get_db
from app.schemas.ledger_schema import (
    PairwiseLedger, GroupLedger, BalanceSummary, GroupBalance, SpendReport, MonthlySpend
)
from app.services.balance_service import (
    get_pairwise_ledger, get_group_ledger, get_user_balance_summary,
    get_user_groups_with_balances, get_spend_report, get_monthly_spend
)

router = APIRouter(tags=["ledger"])


@router.get("/ledger/users/{counterparty_id}", response_model=PairwiseLedger)
def read_pairwise_ledger(
    counterparty_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Expenses, settlements and balance between the caller and another user"""
    return get_pairwise_ledger(db, user_id, counterparty_id)


@router.get("/ledger/groups", response_model=List[GroupBalance])
def read_group_balances(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """The caller's groups with the caller's balance in each"""
    return get_user_groups_with_balances(db, user_id)


@router.get("/ledger/groups/{group_id}", response_model=GroupLedger)
def read_group_ledger(
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Per-member balance breakdown for a group"""
    return get_group_ledger(db, group_id, user_id)


@router.get("/ledger/summary", response_model=BalanceSummary)
def read_balance_summary(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Totals and per-counterparty balances across the caller's 1-to-1 relationships"""
    return get_user_balance_summary(db, user_id)


@router.get("/reports/spend", response_model=SpendReport)
def read_spend_report(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Year-to-date total of the caller's own shares"""
    return get_spend_report(db, user_id)


@router.get("/reports/monthly", response_model=List[MonthlySpend])
def read_monthly_spend(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """The caller's own shares by month for the current year"""
    return get_monthly_spend(db, user_id)
