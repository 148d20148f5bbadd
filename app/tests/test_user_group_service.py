"""
Integration tests for identity and group membership.
"""
import pytest
from datetime import timedelta
from app.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from app.models.groups import MemberRole
from app.schemas.group_schema import GroupCreate, GroupMemberCreate
from app.schemas.user_schema import Identity
from app.services.auth.jwt_handler import create_access_token, get_identity
from app.services.group_service import (
    add_member_to_group,
    create_group,
    get_group_details,
    get_user_groups,
    is_group_admin,
    require_group_member,
)
from app.services.user_service import UserCache, get_current_user, store_user


@pytest.mark.unit
class TestTokens:
    """Test identity extraction from tokens."""

    def test_identity_from_sub(self):
        token = create_access_token({"sub": "oauth|42", "name": "Dana", "email": "dana@example.com"})
        identity = get_identity(token)
        assert identity.token_identifier == "oauth|42"
        assert identity.name == "Dana"

    def test_falls_back_to_user_id_claim(self):
        token = create_access_token({"user_id": 7})
        assert get_identity(token).token_identifier == "7"

    def test_expired_token(self):
        token = create_access_token({"sub": "oauth|42"}, expires_delta=timedelta(minutes=-1))
        assert get_identity(token) is None

    def test_garbage_token(self):
        assert get_identity("not-a-token") is None


@pytest.mark.integration
class TestUsers:
    """Test storing and resolving the caller."""

    def test_store_creates_user(self, db):
        user = store_user(db, Identity(token_identifier="oauth|1", name="Dana", email="dana@example.com"))
        assert user.id
        assert user.name == "Dana"

    def test_store_defaults_name(self, db):
        assert store_user(db, Identity(token_identifier="oauth|2")).name == "Anonymous"

    def test_store_syncs_existing(self, db):
        first = store_user(db, Identity(token_identifier="oauth|1", name="Dana", email="old@example.com"))
        second = store_user(db, Identity(token_identifier="oauth|1", name="Dana B", email="new@example.com"))

        assert second.id == first.id
        assert second.name == "Dana B"
        assert second.email == "new@example.com"

    def test_current_user_from_token(self, db, users):
        alice, _, _ = users
        token = create_access_token({"sub": alice.token_identifier})
        assert get_current_user(db, token).id == alice.id

    def test_current_user_errors(self, db, users):
        with pytest.raises(AuthenticationError):
            get_current_user(db, None)
        with pytest.raises(AuthenticationError):
            get_current_user(db, "not-a-token")
        with pytest.raises(AuthenticationError):
            get_current_user(db, create_access_token({"sub": "oauth|nobody"}))

    def test_user_cache(self, db, users):
        alice, _, _ = users
        cache = UserCache(db)
        assert cache.get(alice.id) is cache.get(alice.id)
        assert cache.name_of("missing") == "Unknown"
        assert cache.profile(alice.id).email == "alice@example.com"
        assert cache.profile("missing") is None


@pytest.mark.integration
class TestGroups:
    """Test group creation and membership rules."""

    def test_creator_is_admin(self, db, users):
        alice, bob, carol = users

        group = create_group(db, GroupCreate(name="Trip", member_ids=[bob.id, carol.id, bob.id, alice.id]), alice.id)

        assert [(m.user_id, m.role) for m in group.members] == [
            (alice.id, MemberRole.admin), (bob.id, MemberRole.member), (carol.id, MemberRole.member)
        ]
        assert is_group_admin(db, group.id, alice.id)
        assert not is_group_admin(db, group.id, bob.id)

    def test_create_with_unknown_member(self, db, users):
        alice, _, _ = users
        with pytest.raises(NotFoundError):
            create_group(db, GroupCreate(name="Trip", member_ids=["ghost"]), alice.id)

    def test_admin_adds_member(self, db, users, make_group):
        alice, bob, carol = users
        group = make_group("Trip", [alice, bob])

        member = add_member_to_group(db, group.id, GroupMemberCreate(user_id=carol.id), alice.id)

        assert member.role == MemberRole.member
        assert member.position == 2
        assert require_group_member(db, group.id, carol.id).id == group.id

    def test_non_admin_cannot_add(self, db, users, make_group):
        alice, bob, carol = users
        group = make_group("Trip", [alice, bob])

        with pytest.raises(AuthorizationError):
            add_member_to_group(db, group.id, GroupMemberCreate(user_id=carol.id), bob.id)

    def test_existing_member_rejected(self, db, users, make_group):
        alice, bob, _ = users
        group = make_group("Trip", [alice, bob])

        with pytest.raises(ValidationError):
            add_member_to_group(db, group.id, GroupMemberCreate(user_id=bob.id), alice.id)

    def test_require_member(self, db, users, make_group):
        alice, bob, carol = users
        group = make_group("Trip", [alice, bob])

        with pytest.raises(AuthorizationError):
            require_group_member(db, group.id, carol.id)
        with pytest.raises(NotFoundError):
            require_group_member(db, "missing", alice.id)

    def test_user_groups(self, db, users, make_group):
        alice, bob, carol = users
        trip = make_group("Trip", [alice, bob])
        make_group("Other", [bob, carol])

        assert [g.id for g in get_user_groups(db, alice.id)] == [trip.id]

    def test_group_details(self, db, users, make_group):
        alice, bob, carol = users
        trip = make_group("Trip", [alice, bob])
        make_group("Flat", [carol, alice])

        overview = get_group_details(db, alice.id, trip.id)

        assert {g.name for g in overview.groups} == {"Trip", "Flat"}
        assert overview.selected_group.id == trip.id
        assert [(m.name, m.role) for m in overview.selected_group.members] == [
            ("Alice", MemberRole.admin), ("Bob", MemberRole.member)
        ]
        assert get_group_details(db, alice.id).selected_group is None

    def test_group_details_outside_membership(self, db, users, make_group):
        alice, bob, carol = users
        other = make_group("Other", [bob, carol])

        with pytest.raises(NotFoundError):
            get_group_details(db, alice.id, other.id)
