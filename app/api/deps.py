from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session
from app.db.database import get_db
from app.exceptions import AuthenticationError
from app.models.users import User
from app.schemas.user_schema import Identity
from app.services.auth.jwt_handler import get_identity
from app.services.user_service import get_current_user


def _strip_bearer(access_token: Optional[str]) -> Optional[str]:
    if access_token and access_token.startswith("Bearer "):
        return access_token.replace("Bearer ", "", 1)
    return access_token


def get_caller_identity(
    access_token: Optional[str] = Header(None, description="Access token (Bearer prefix optional)")
) -> Identity:
    """Decode the token without requiring a stored user"""
    token = _strip_bearer(access_token)
    identity = get_identity(token) if token else None
    if identity is None:
        raise AuthenticationError("Invalid token")
    return identity


def get_current_caller(
    access_token: Optional[str] = Header(None, description="Access token (Bearer prefix optional)"),
    db: Session = Depends(get_db)
) -> User:
    return get_current_user(db, _strip_bearer(access_token))


def get_current_user_id(user: User = Depends(get_current_caller)) -> str:
    """Extract current user ID from the resolved caller"""
    return user.id
