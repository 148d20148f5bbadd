import uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from sqlalchemy import Column, String, DateTime, Float, ForeignKey, Text
from app.db.database import Base


class Settlement(Base):
    __tablename__ = "settlements"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True, index=True)  # NULL for 1-to-1 settlements
    paid_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    received_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    note = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_by = Column(String, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    expense_links = relationship(
        "SettlementExpense",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def related_expense_ids(self):
        return [link.expense_id for link in self.expense_links]


class SettlementExpense(Base):
    """Links a settlement to an expense it is understood to cover"""
    __tablename__ = "settlement_expenses"

    settlement_id = Column(String, ForeignKey("settlements.id", ondelete="CASCADE"), primary_key=True)
    expense_id = Column(String, ForeignKey("expenses.id"), primary_key=True, index=True)
