from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class Identity(BaseModel):
    """Claims taken from the caller's access token"""
    token_identifier: str
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: Optional[str] = None
    image_url: Optional[str] = None


class UserOut(UserProfile):
    created_at: datetime
