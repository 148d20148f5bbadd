from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import get_current_user_id
from app.db.database import get_db
from app.schemas.expense_schema import ExpenseCreate, ExpenseCreated, ExpenseOut, DeleteResult
from app.services.expense_service import create_expense, get_visible_expense, delete_expense

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("/", response_model=ExpenseCreated)
def create_new_expense(
    expense_data: ExpenseCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a new expense with splits"""
    expense = create_expense(db, expense_data, user_id)
    return ExpenseCreated(id=expense.id)


@router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense_details(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get expense details with splits"""
    return get_visible_expense(db, expense_id, user_id)


@router.delete("/{expense_id}", response_model=DeleteResult)
def delete_existing_expense(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete an expense (creator or payer only)"""
    return delete_expense(db, expense_id, user_id)
