from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from app.models.groups import MemberRole


class GroupBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class GroupCreate(GroupBase):
    member_ids: List[str] = []


class GroupOut(GroupBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_by: str
    created_at: datetime


class GroupMemberCreate(BaseModel):
    user_id: str
    role: MemberRole = MemberRole.member


class GroupMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    role: MemberRole
    joined_at: datetime


class MemberProfile(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    image_url: Optional[str] = None
    role: MemberRole


class GroupSummary(GroupBase):
    id: str
    member_count: int


class GroupDetails(GroupBase):
    id: str
    created_by: str
    members: List[MemberProfile] = []


class GroupsOverview(BaseModel):
    selected_group: Optional[GroupDetails] = None
    groups: List[GroupSummary] = []
