"""
Scope aggregators over the event reconciler.

Each aggregator loads the records of one scope through indexed queries, folds
them with ``reconcile`` and shapes the result into a read model. Nothing here
writes to the store, and nothing outlives the call: user lookups go through a
``UserCache`` created per call.
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from app.exceptions import ValidationError
from app.schemas.expense_schema import ExpenseOut
from app.schemas.ledger_schema import (
    PairwiseLedger, GroupLedger, GroupInfo, MemberBalance, DebtLink, BalanceSummary,
    OweDetails, CounterpartyBalance, UserDebts, OutstandingDebt, GroupBalance,
    SpendReport, MonthlySpend
)
from app.schemas.settlement_schema import SettlementOut
from app.schemas.user_schema import UserProfile
from app.services.expense_service import (
    get_expenses_between_users, get_group_expenses, get_direct_expenses, get_user_expenses_between
)
from app.services.group_service import require_group_member, member_profiles, get_user_groups
from app.services.settlement_service import (
    get_settlements_between_users, get_group_settlements, get_direct_settlements,
    get_user_group_settlements
)
from app.services.user_service import UserCache, require_user, get_all_users
from app.utils.ledger import to_cents
from app.utils.reconciler import reconcile, build_pair_matrix

logger = logging.getLogger(__name__)


def _newest_first(records):
    return sorted(records, key=lambda record: record.date, reverse=True)


def get_pairwise_ledger(db: Session, user_id: str, counterparty_id: str) -> PairwiseLedger:
    """Expenses, settlements and net balance between the caller and one other user, outside any group"""
    if user_id == counterparty_id:
        raise ValidationError("Cannot query yourself")
    other = require_user(db, counterparty_id)

    expenses = get_expenses_between_users(db, user_id, counterparty_id)
    settlements = get_settlements_between_users(db, user_id, counterparty_id)
    ledger = reconcile(user_id, expenses, settlements)

    return PairwiseLedger(
        expenses=[ExpenseOut.model_validate(e) for e in _newest_first(expenses)],
        settlements=[SettlementOut.model_validate(s) for s in _newest_first(settlements)],
        other_user=UserProfile.model_validate(other),
        balance=ledger.balance_with(counterparty_id),
    )


def get_group_ledger(db: Session, group_id: str, user_id: str) -> GroupLedger:
    """
    Full balance breakdown of a group.

    Every member's ledger is reconciled over the group's records, the
    directional amounts go into a member x member matrix, and each pair is
    netted once. Per member we report the total balance, whom they owe and
    who owes them.
    """
    group = require_group_member(db, group_id, user_id)

    expenses = get_group_expenses(db, group_id)
    settlements = get_group_settlements(db, group_id)

    users = UserCache(db)
    members = member_profiles(group, users)
    member_ids = [member.id for member in members]

    ledgers = {member_id: reconcile(member_id, expenses, settlements) for member_id in member_ids}
    matrix = build_pair_matrix(member_ids, ledgers)

    balances = []
    for member in members:
        owes = [
            DebtLink(user_id=creditor_id, amount=amount)
            for creditor_id, amount in matrix[member.id].items()
            if amount > 0
        ]
        owed_by = [
            DebtLink(user_id=debtor_id, amount=matrix[debtor_id][member.id])
            for debtor_id in member_ids
            if debtor_id != member.id and matrix[debtor_id][member.id] > 0
        ]
        balances.append(MemberBalance(
            **member.model_dump(),
            total_balance=ledgers[member.id].total_balance(),
            owes=owes,
            owed_by=owed_by,
        ))

    logger.info(f"Computed ledger for group {group_id}: {len(expenses)} expenses, {len(settlements)} settlements")
    return GroupLedger(
        group=GroupInfo(id=group.id, name=group.name, description=group.description),
        members=members,
        expenses=[ExpenseOut.model_validate(e) for e in _newest_first(expenses)],
        settlements=[SettlementOut.model_validate(s) for s in _newest_first(settlements)],
        balances=balances,
        user_lookup={member.id: member for member in members},
    )


def get_user_balance_summary(db: Session, user_id: str) -> BalanceSummary:
    """The caller against every counterparty across all 1-to-1 expenses and settlements"""
    expenses = get_direct_expenses(db, user_id)
    settlements = get_direct_settlements(db, user_id)
    ledger = reconcile(user_id, expenses, settlements)

    users = UserCache(db)
    you_owe: List[CounterpartyBalance] = []
    you_are_owed_by: List[CounterpartyBalance] = []
    for entry in ledger.entries():
        counterpart = users.get(entry.counterparty_id)
        item = CounterpartyBalance(
            user_id=entry.counterparty_id,
            name=counterpart.name if counterpart else "Unknown",
            image_url=counterpart.image_url if counterpart else None,
            amount=abs(entry.balance),
        )
        if entry.balance > 0:
            you_are_owed_by.append(item)
        else:
            you_owe.append(item)

    you_owe.sort(key=lambda item: item.amount, reverse=True)
    you_are_owed_by.sort(key=lambda item: item.amount, reverse=True)

    total_owing = ledger.total_owing()
    total_owed = ledger.total_owed_to_me()
    return BalanceSummary(
        you_owe=total_owing,
        you_are_owed=total_owed,
        total_balance=to_cents(total_owed - total_owing),
        owe_details=OweDetails(you_owe=you_owe, you_are_owed_by=you_are_owed_by),
    )


def _index_by_party(expenses, settlements) -> Tuple[Dict[str, list], Dict[str, list]]:
    """Group records under every user that takes part in them"""
    expenses_by_user = defaultdict(list)
    for expense in expenses:
        parties = {expense.paid_by, *(split.user_id for split in expense.splits)}
        for party in parties:
            expenses_by_user[party].append(expense)

    settlements_by_user = defaultdict(list)
    for settlement in settlements:
        settlements_by_user[settlement.paid_by].append(settlement)
        settlements_by_user[settlement.received_by].append(settlement)
    return expenses_by_user, settlements_by_user


def get_users_with_outstanding_debts(db: Session) -> List[UserDebts]:
    """
    Every user who owes money outside groups, with one entry per creditor.

    Each user's 1-to-1 relationships are netted together in a single
    counterparty ledger; only amounts the user still owes are kept. ``since``
    is the date of the earliest expense behind the pair's balance.
    """
    users = get_all_users(db)
    expenses_by_user, settlements_by_user = _index_by_party(
        get_direct_expenses(db), get_direct_settlements(db)
    )
    cache = UserCache(db, preload=users)

    result = []
    for user in users:
        ledger = reconcile(user.id, expenses_by_user.get(user.id, []), settlements_by_user.get(user.id, []))
        debts = [
            OutstandingDebt(
                user_id=entry.counterparty_id,
                name=cache.name_of(entry.counterparty_id),
                amount=-entry.balance,
                since=entry.since,
            )
            for entry in ledger.entries()
            if entry.balance < 0
        ]
        if debts:
            result.append(UserDebts(user_id=user.id, name=user.name, email=user.email, debts=debts))

    logger.info(f"Found {len(result)} users with outstanding debts")
    return result


def get_user_groups_with_balances(db: Session, user_id: str) -> List[GroupBalance]:
    """The caller's groups, each with the caller's net balance inside it"""
    result = []
    for group in get_user_groups(db, user_id):
        ledger = reconcile(
            user_id,
            get_group_expenses(db, group.id),
            get_user_group_settlements(db, group.id, user_id),
        )
        result.append(GroupBalance(
            id=group.id,
            name=group.name,
            description=group.description,
            member_count=len(group.members),
            balance=ledger.total_balance(),
        ))
    return result


def _current_year_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    year = (now or datetime.now(timezone.utc)).year
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


def _own_shares(db: Session, user_id: str, now: Optional[datetime]):
    """(expense date, caller's split amount) for this calendar year's expenses"""
    start, end = _current_year_bounds(now)
    for expense in get_user_expenses_between(db, user_id, start, end):
        split = expense.split_for(user_id)
        if split is not None:
            yield expense.date, split.amount


def get_spend_report(db: Session, user_id: str, now: Optional[datetime] = None) -> SpendReport:
    """Year-to-date total of the caller's own shares"""
    start, _ = _current_year_bounds(now)
    total = sum(amount for _, amount in _own_shares(db, user_id, now))
    return SpendReport(year=start.year, total=to_cents(total))


def get_monthly_spend(db: Session, user_id: str, now: Optional[datetime] = None) -> List[MonthlySpend]:
    """The caller's own shares bucketed by month for the current year, January first"""
    start, _ = _current_year_bounds(now)
    totals = {datetime(start.year, month, 1): 0.0 for month in range(1, 13)}
    for date, amount in _own_shares(db, user_id, now):
        totals[datetime(date.year, date.month, 1)] += amount

    return [MonthlySpend(month=month, total=to_cents(total)) for month, total in sorted(totals.items())]
