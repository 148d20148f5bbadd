from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import get_current_user_id
from app.db.database import get_db
from app.schemas.settlement_schema import SettlementCreate, SettlementOut
from app.services.settlement_service import create_settlement

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post("/", response_model=SettlementOut)
def create_new_settlement(
    settlement_data: SettlementCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Record a settlement between two users"""
    return create_settlement(db, settlement_data, user_id)
