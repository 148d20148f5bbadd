"""
Pytest configuration and fixtures for ledger_service tests.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.database import Base, get_db, enable_sqlite_foreign_keys
from app.models.expenses import Expense, ExpenseSplit, SplitType
from app.models.groups import Group, GroupMember, MemberRole
from app.models.settlements import Settlement, SettlementExpense
from app.models.users import User
from app.services.auth.jwt_handler import create_access_token


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Factory for stored users."""
    def _make_user(name: str, email: Optional[str] = None) -> User:
        user = User(
            name=name,
            email=email or f"{name.lower()}@example.com",
            token_identifier=f"token|{name.lower()}",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def users(make_user):
    """Three users A, B and C."""
    return make_user("Alice"), make_user("Bob"), make_user("Carol")


@pytest.fixture
def make_group(db):
    """Factory for a stored group; the first member is the admin."""
    def _make_group(name: str, members: List[User]) -> Group:
        group = Group(name=name, created_by=members[0].id)
        for position, member in enumerate(members):
            group.members.append(GroupMember(
                user_id=member.id,
                role=MemberRole.admin if position == 0 else MemberRole.member,
                position=position,
            ))
        db.add(group)
        db.commit()
        db.refresh(group)
        return group
    return _make_group


def build_expense(
    paid_by: str,
    amount: float,
    splits: List[Tuple[str, float, bool]],
    date: Optional[datetime] = None,
    group_id: Optional[str] = None,
    created_by: Optional[str] = None,
    description: str = "Dinner",
) -> Expense:
    """Unsaved expense; each split is (user_id, amount, paid)."""
    expense = Expense(
        description=description,
        amount=amount,
        category="Food",
        date=date or datetime(2026, 3, 14, 19, 30),
        paid_by=paid_by,
        split_type=SplitType.exact,
        group_id=group_id,
        created_by=created_by or paid_by,
    )
    for position, (user_id, split_amount, paid) in enumerate(splits):
        expense.splits.append(ExpenseSplit(user_id=user_id, amount=split_amount, paid=paid, position=position))
    return expense


def build_settlement(
    paid_by: str,
    received_by: str,
    amount: float,
    date: Optional[datetime] = None,
    group_id: Optional[str] = None,
    related_expense_ids: Tuple[str, ...] = (),
) -> Settlement:
    """Unsaved settlement."""
    return Settlement(
        paid_by=paid_by,
        received_by=received_by,
        amount=amount,
        date=date or datetime(2026, 3, 20, 12, 0),
        group_id=group_id,
        created_by=paid_by,
        expense_links=[SettlementExpense(expense_id=expense_id) for expense_id in related_expense_ids],
    )


@pytest.fixture
def add_expense(db):
    """Store an expense built with build_expense."""
    def _add_expense(*args, **kwargs) -> Expense:
        expense = build_expense(*args, **kwargs)
        db.add(expense)
        db.commit()
        db.refresh(expense)
        return expense
    return _add_expense


@pytest.fixture
def add_settlement(db):
    """Store a settlement built with build_settlement."""
    def _add_settlement(*args, **kwargs) -> Settlement:
        settlement = build_settlement(*args, **kwargs)
        db.add(settlement)
        db.commit()
        db.refresh(settlement)
        return settlement
    return _add_settlement


def auth_headers(user: User) -> dict:
    """Headers carrying a token for a stored user."""
    token = create_access_token({"sub": user.token_identifier, "name": user.name, "email": user.email})
    return {"access-token": f"Bearer {token}"}


@pytest.fixture
def client(session_factory):
    """TestClient bound to the per-test database."""
    from fastapi.testclient import TestClient
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
