import logging
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import List, Optional
from app.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.groups import Group, GroupMember, MemberRole
from app.schemas.group_schema import (
    GroupCreate, GroupMemberCreate, GroupSummary, GroupDetails, GroupsOverview, MemberProfile
)
from app.services.user_service import UserCache, require_user

logger = logging.getLogger(__name__)


def create_group(db: Session, group_data: GroupCreate, created_by: str) -> Group:
    """Create a new group; the creator joins as admin"""
    require_user(db, created_by)
    member_ids = [uid for uid in dict.fromkeys(group_data.member_ids) if uid != created_by]
    for user_id in member_ids:
        require_user(db, user_id)

    group = Group(
        name=group_data.name,
        description=group_data.description,
        created_by=created_by,
    )
    group.members.append(GroupMember(user_id=created_by, role=MemberRole.admin, position=0))
    for position, user_id in enumerate(member_ids, start=1):
        group.members.append(GroupMember(user_id=user_id, role=MemberRole.member, position=position))

    db.add(group)
    db.commit()
    db.refresh(group)
    logger.info(f"Created group {group.id} with {len(group.members)} members")
    return group


def get_group(db: Session, group_id: str) -> Optional[Group]:
    """Get a group by ID"""
    return db.query(Group).filter(Group.id == group_id).first()


def require_group(db: Session, group_id: str) -> Group:
    group = get_group(db, group_id)
    if not group:
        raise NotFoundError("Group not found")
    return group


def get_user_groups(db: Session, user_id: str) -> List[Group]:
    """Get all groups for a user"""
    return (
        db.query(Group)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .filter(GroupMember.user_id == user_id)
        .order_by(Group.created_at)
        .all()
    )


def add_member_to_group(db: Session, group_id: str, member_data: GroupMemberCreate, admin_user_id: str) -> GroupMember:
    """Add a member to a group (admin only)"""
    group = require_group(db, group_id)
    if not is_group_admin(db, group_id, admin_user_id):
        raise AuthorizationError("Only group admins can add members")

    require_user(db, member_data.user_id)
    if is_group_member(db, group_id, member_data.user_id):
        raise ValidationError("User is already a member of this group")

    member = GroupMember(
        group_id=group.id,
        user_id=member_data.user_id,
        role=member_data.role,
        position=len(group.members),
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info(f"Added user {member.user_id} to group {group_id}")
    return member


def get_membership(db: Session, group_id: str, user_id: str) -> Optional[GroupMember]:
    return db.query(GroupMember).filter(
        and_(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
    ).first()


def is_group_admin(db: Session, group_id: str, user_id: str) -> bool:
    """Check if user is admin of the group"""
    member = get_membership(db, group_id, user_id)
    return member is not None and member.role == MemberRole.admin


def is_group_member(db: Session, group_id: str, user_id: str) -> bool:
    """Check if user is member of the group"""
    return get_membership(db, group_id, user_id) is not None


def require_group_member(db: Session, group_id: str, user_id: str) -> Group:
    """Load a group and fail unless the user belongs to it"""
    group = require_group(db, group_id)
    if not any(member.user_id == user_id for member in group.members):
        logger.warning(f"User {user_id} denied access to group {group_id}")
        raise AuthorizationError("You are not a member of this group")
    return group


def member_profiles(group: Group, users: UserCache) -> List[MemberProfile]:
    """Member details in membership order; members without a user record are skipped"""
    profiles = []
    for member in group.members:
        user = users.get(member.user_id)
        if user is None:
            continue
        profiles.append(MemberProfile(
            id=user.id,
            name=user.name,
            email=user.email,
            image_url=user.image_url,
            role=member.role,
        ))
    return profiles


def get_group_details(db: Session, user_id: str, group_id: Optional[str] = None) -> GroupsOverview:
    """List the caller's groups, plus the member details of one selected group"""
    groups = get_user_groups(db, user_id)
    summaries = [
        GroupSummary(id=g.id, name=g.name, description=g.description, member_count=len(g.members))
        for g in groups
    ]
    if group_id is None:
        return GroupsOverview(selected_group=None, groups=summaries)

    selected = next((g for g in groups if g.id == group_id), None)
    if selected is None:
        raise NotFoundError("Group not found or not a member")

    return GroupsOverview(
        selected_group=GroupDetails(
            id=selected.id,
            name=selected.name,
            description=selected.description,
            created_by=selected.created_by,
            members=member_profiles(selected, UserCache(db)),
        ),
        groups=summaries,
    )
