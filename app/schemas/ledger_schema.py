from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime
from app.schemas.expense_schema import ExpenseOut
from app.schemas.group_schema import GroupBase, MemberProfile
from app.schemas.settlement_schema import SettlementOut
from app.schemas.user_schema import UserProfile


class PairwiseLedger(BaseModel):
    expenses: List[ExpenseOut] = []
    settlements: List[SettlementOut] = []
    other_user: UserProfile
    balance: float


class DebtLink(BaseModel):
    user_id: str
    amount: float


class MemberBalance(MemberProfile):
    total_balance: float
    owes: List[DebtLink] = []
    owed_by: List[DebtLink] = []


class GroupInfo(GroupBase):
    id: str


class GroupLedger(BaseModel):
    group: GroupInfo
    members: List[MemberProfile] = []
    expenses: List[ExpenseOut] = []
    settlements: List[SettlementOut] = []
    balances: List[MemberBalance] = []
    user_lookup: Dict[str, MemberProfile] = {}


class CounterpartyBalance(BaseModel):
    user_id: str
    name: str
    image_url: Optional[str] = None
    amount: float


class OweDetails(BaseModel):
    you_owe: List[CounterpartyBalance] = []
    you_are_owed_by: List[CounterpartyBalance] = []


class BalanceSummary(BaseModel):
    you_owe: float
    you_are_owed: float
    total_balance: float
    owe_details: OweDetails


class OutstandingDebt(BaseModel):
    user_id: str
    name: str
    amount: float
    since: Optional[datetime] = None


class UserDebts(BaseModel):
    user_id: str
    name: str
    email: Optional[str] = None
    debts: List[OutstandingDebt] = []


class GroupBalance(GroupBase):
    id: str
    member_count: int
    balance: float


class SpendReport(BaseModel):
    year: int
    total: float


class MonthlySpend(BaseModel):
    month: datetime
    total: float
