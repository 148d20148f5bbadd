from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


class SettlementBase(BaseModel):
    paid_by: str
    received_by: str
    amount: float = Field(..., gt=0)
    note: Optional[str] = None
    date: datetime
    group_id: Optional[str] = None


class SettlementCreate(SettlementBase):
    related_expense_ids: List[str] = []


class SettlementOut(SettlementBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_by: str
    created_at: datetime
    related_expense_ids: List[str] = []
