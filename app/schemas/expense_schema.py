from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from app.models.expenses import SplitType


class SplitBase(BaseModel):
    user_id: str
    amount: float = Field(..., ge=0)
    paid: bool = False


class SplitCreate(SplitBase):
    pass


class SplitOut(SplitBase):
    model_config = ConfigDict(from_attributes=True)


class ExpenseBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., gt=0)
    category: Optional[str] = Field(None, max_length=100)
    date: datetime
    paid_by: str
    split_type: SplitType = SplitType.equal
    group_id: Optional[str] = None


class ExpenseCreate(ExpenseBase):
    splits: List[SplitCreate] = Field(..., min_length=1)


class ExpenseOut(ExpenseBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    category: str
    created_by: str
    created_at: datetime
    splits: List[SplitOut] = []


class ExpenseCreated(BaseModel):
    id: str


class DeleteResult(BaseModel):
    success: bool = True
    deleted_settlements: List[str] = []
    updated_settlements: List[str] = []
