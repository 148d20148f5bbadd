"""
Event Reconciler

Folds expense and settlement records into a per-counterparty ledger for one
focal user. Every scope (pair, group, all 1-to-1 relationships) goes through
the same fold; callers only differ in which records they hand over.

Expense rules:
    - focal user paid: every other unpaid split is credited against its
      participant (they owe the focal user)
    - focal user is an unpaid participant: the split is debited against the
      payer (the focal user owes them)
    - splits flagged ``paid`` never enter the ledger

Settlement rules:
    - focal user paid: reduces what the focal user owes the receiver
    - focal user received: reduces what the payer owes the focal user

Both folds are plain addition over commutative accumulators and results are
rounded to cents, so the outcome does not depend on record order.

Records are duck-typed: expenses need ``paid_by``, ``date`` and ``splits``
(each with ``user_id``, ``amount``, ``paid``); settlements need ``paid_by``,
``received_by`` and ``amount``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from app.utils.ledger import accumulate, drop_settled, net, net_pair, to_cents

logger = logging.getLogger(__name__)


@dataclass
class LedgerEntry:
    """Netted position of the focal user against one counterparty."""
    counterparty_id: str
    balance: float
    owed_to_me: float
    owing: float
    since: Optional[datetime] = None


class Ledger:
    """
    Directional running totals of one focal user against every counterparty.

    ``owed_to_me[c]`` tracks "c owes me" and ``owing[c]`` tracks "I owe c";
    they are only netted on read, so the gross totals stay available.
    """

    def __init__(self, user_id: str):
        self.user_id = user_id
        self.owed_to_me: Dict[str, float] = {}
        self.owing: Dict[str, float] = {}
        self.since: Dict[str, datetime] = {}

    def credit(self, counterparty_id: str, amount: float, when: Optional[datetime] = None) -> None:
        accumulate(self.owed_to_me, counterparty_id, amount)
        self._touch(counterparty_id, when)

    def debit(self, counterparty_id: str, amount: float, when: Optional[datetime] = None) -> None:
        accumulate(self.owing, counterparty_id, amount)
        self._touch(counterparty_id, when)

    def _touch(self, counterparty_id: str, when: Optional[datetime]) -> None:
        if when is None:
            return
        current = self.since.get(counterparty_id)
        if current is None or when < current:
            self.since[counterparty_id] = when

    def apply_expense(self, expense) -> None:
        if expense.paid_by == self.user_id:
            for split in expense.splits:
                if split.user_id == self.user_id or split.paid:
                    continue
                self.credit(split.user_id, split.amount, expense.date)
            return

        own_split = next((s for s in expense.splits if s.user_id == self.user_id), None)
        if own_split is not None and not own_split.paid:
            self.debit(expense.paid_by, own_split.amount, expense.date)

    def apply_settlement(self, settlement) -> None:
        # Settlements lower the directional totals but never move "since"
        if settlement.paid_by == self.user_id:
            accumulate(self.owing, settlement.received_by, -settlement.amount)
        elif settlement.received_by == self.user_id:
            accumulate(self.owed_to_me, settlement.paid_by, -settlement.amount)

    def counterparties(self) -> List[str]:
        seen = dict.fromkeys(self.owed_to_me)
        seen.update(dict.fromkeys(self.owing))
        return list(seen)

    def balance_with(self, counterparty_id: str) -> float:
        """Signed net balance; positive means the counterparty owes the focal user."""
        return net(self.owed_to_me.get(counterparty_id, 0.0), self.owing.get(counterparty_id, 0.0))

    def balances(self) -> Dict[str, float]:
        """Counterparty -> net balance, with settled pairs removed."""
        return drop_settled({cp: self.balance_with(cp) for cp in self.counterparties()})

    def entries(self) -> List[LedgerEntry]:
        return [
            LedgerEntry(
                counterparty_id=cp,
                balance=balance,
                owed_to_me=to_cents(self.owed_to_me.get(cp, 0.0)),
                owing=to_cents(self.owing.get(cp, 0.0)),
                since=self.since.get(cp),
            )
            for cp, balance in self.balances().items()
        ]

    def total_owed_to_me(self) -> float:
        return to_cents(sum(self.owed_to_me.values()))

    def total_owing(self) -> float:
        return to_cents(sum(self.owing.values()))

    def total_balance(self) -> float:
        return to_cents(sum(self.balances().values()))


def reconcile(user_id: str, expenses: Iterable, settlements: Iterable) -> Ledger:
    """
    Fold one scope's records into a ledger for ``user_id``.

    Args:
        user_id: The focal user
        expenses: Expenses already restricted to the scope
        settlements: Settlements already restricted to the scope

    Returns:
        Ledger with directional totals for every counterparty touched
    """
    ledger = Ledger(user_id)
    for expense in expenses:
        ledger.apply_expense(expense)
    for settlement in settlements:
        ledger.apply_settlement(settlement)
    return ledger


def build_pair_matrix(member_ids: List[str], ledgers: Dict[str, Ledger]) -> Dict[str, Dict[str, float]]:
    """
    Build a netted debtor -> creditor matrix for a set of members.

    ``matrix[a][b]`` starts as what ``a`` owes ``b`` in ``a``'s own ledger;
    each unordered pair is then netted once, leaving at most one non-zero
    cell per pair.
    """
    matrix = {
        a: {b: ledgers[a].owing.get(b, 0.0) for b in member_ids if b != a}
        for a in member_ids
    }
    for i, a in enumerate(member_ids):
        for b in member_ids[i + 1:]:
            net_pair(matrix, a, b)

    logger.debug(f"Netted pair matrix for {len(member_ids)} members")
    return matrix
