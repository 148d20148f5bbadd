import enum
import uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from sqlalchemy import Column, String, DateTime, Enum, Float, ForeignKey, Integer, Boolean, Index
from app.db.database import Base


class SplitType(str, enum.Enum):
    equal = "equal"
    percentage = "percentage"
    exact = "exact"


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (Index("ix_expenses_paid_by_group", "paid_by", "group_id"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True, index=True)  # NULL for 1-to-1 expenses
    description = Column(String(200), nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(String(100), nullable=False, default="Other")
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    paid_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    split_type = Column(Enum(SplitType), nullable=False, default=SplitType.equal)
    created_by = Column(String, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    splits = relationship(
        "ExpenseSplit",
        order_by="ExpenseSplit.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def split_for(self, user_id: str):
        return next((split for split in self.splits if split.user_id == user_id), None)

    def involves(self, user_id: str) -> bool:
        return self.paid_by == user_id or self.split_for(user_id) is not None


class ExpenseSplit(Base):
    __tablename__ = "expense_splits"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    expense_id = Column(String, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    paid = Column(Boolean, nullable=False, default=False)  # Share already settled when the expense was recorded
    position = Column(Integer, nullable=False, default=0)
