import uuid
from sqlalchemy.sql import func
from sqlalchemy import Column, String, DateTime
from app.db.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=True, index=True)
    token_identifier = Column(String, nullable=False, unique=True, index=True)  # Subject from the identity provider
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
