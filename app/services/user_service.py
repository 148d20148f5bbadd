import logging
from sqlalchemy.orm import Session
from typing import Dict, Iterable, Optional
from app.exceptions import AuthenticationError, NotFoundError
from app.models.users import User
from app.schemas.user_schema import Identity, UserProfile
from app.services.auth.jwt_handler import get_identity

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get a user by ID"""
    return db.query(User).filter(User.id == user_id).first()


def require_user(db: Session, user_id: str) -> User:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def get_user_by_token(db: Session, token_identifier: str) -> Optional[User]:
    return db.query(User).filter(User.token_identifier == token_identifier).first()


def get_all_users(db: Session):
    return db.query(User).all()


def store_user(db: Session, identity: Identity) -> User:
    """Create the caller's user record, or sync name/email from the identity provider"""
    user = get_user_by_token(db, identity.token_identifier)
    if user is not None:
        changed = False
        if identity.name and user.name != identity.name:
            user.name = identity.name
            changed = True
        if identity.email and user.email != identity.email:
            user.email = identity.email
            changed = True
        if changed:
            db.commit()
            db.refresh(user)
            logger.info(f"Synced profile for user {user.id}")
        return user

    user = User(
        name=identity.name or "Anonymous",
        email=identity.email,
        token_identifier=identity.token_identifier,
        image_url=identity.picture,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Stored new user {user.id}")
    return user


def get_current_user(db: Session, token: Optional[str]) -> User:
    """Resolve the authenticated caller or fail with AuthenticationError"""
    if not token:
        raise AuthenticationError("Not authenticated")
    identity = get_identity(token)
    if identity is None:
        raise AuthenticationError("Invalid token")
    user = get_user_by_token(db, identity.token_identifier)
    if user is None:
        raise AuthenticationError("User not found")
    return user


class UserCache:
    """
    Memoized user lookups for a single aggregation call.

    Create one per call and let it go out of scope with the call; it must
    never be shared between requests.
    """

    def __init__(self, db: Session, preload: Iterable[User] = ()):
        self.db = db
        self._users: Dict[str, Optional[User]] = {user.id: user for user in preload}

    def get(self, user_id: str) -> Optional[User]:
        if user_id not in self._users:
            self._users[user_id] = get_user(self.db, user_id)
        return self._users[user_id]

    def name_of(self, user_id: str) -> str:
        user = self.get(user_id)
        return user.name if user else "Unknown"

    def profile(self, user_id: str) -> Optional[UserProfile]:
        user = self.get(user_id)
        return UserProfile.model_validate(user) if user else None
