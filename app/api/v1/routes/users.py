from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import get_caller_identity, get_current_caller
from app.db.database import get_db
from app.models.users import User
from app.schemas.user_schema import Identity, UserOut
from app.services.user_service import store_user

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/store", response_model=UserOut)
def store_current_user(
    identity: Identity = Depends(get_caller_identity),
    db: Session = Depends(get_db)
):
    """Create or sync the caller's user record from their token"""
    return store_user(db, identity)


@router.get("/me", response_model=UserOut)
def read_current_user(user: User = Depends(get_current_caller)):
    """Get the authenticated user"""
    return user
