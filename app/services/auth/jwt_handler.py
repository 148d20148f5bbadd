import jwt
import os
from datetime import datetime, timedelta, timezone
from typing import Optional
from app.schemas.user_schema import Identity

SECRET_KEY = os.getenv("SECRET_KEY", "your_secret_key")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = 60


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token; tokens normally come from the identity provider"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str):
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_identity(token: str) -> Optional[Identity]:
    """Extract identity claims from JWT token"""
    payload = decode_access_token(token)
    if not payload:
        return None
    token_identifier = payload.get("sub") or payload.get("user_id")
    if not token_identifier:
        return None
    return Identity(
        token_identifier=str(token_identifier),
        name=payload.get("name"),
        email=payload.get("email"),
        picture=payload.get("picture"),
    )
