"""
Unit Tests for the event reconciler

Records are built as unsaved ORM objects, so no database is needed.

Tests cover:
- Expense and settlement folding rules
- Netting symmetry between two focal users
- Order independence
- Zero-diff elimination
- "since" tracking
- Group pair matrix
"""

import itertools
import pytest
from datetime import datetime
from conftest import build_expense, build_settlement
from app.utils.reconciler import reconcile, build_pair_matrix

A, B, C = "user-a", "user-b", "user-c"


@pytest.mark.unit
class TestExpenseFolding:
    """Test how expenses enter a ledger."""

    def test_payer_is_owed_unpaid_splits(self):
        """Scenario: A pays 100 split 50/50, A's own share paid. B owes A 50."""
        expense = build_expense(A, 100.0, [(A, 50.0, True), (B, 50.0, False)])

        assert reconcile(A, [expense], []).balances() == {B: 50.0}
        assert reconcile(B, [expense], []).balances() == {A: -50.0}

    def test_paid_splits_are_ignored(self):
        expense = build_expense(A, 90.0, [(A, 30.0, True), (B, 30.0, True), (C, 30.0, False)])

        assert reconcile(A, [expense], []).balances() == {C: 30.0}
        assert reconcile(B, [expense], []).balances() == {}

    def test_payer_own_unpaid_split_is_ignored(self):
        expense = build_expense(A, 60.0, [(A, 30.0, False), (B, 30.0, False)])

        assert reconcile(A, [expense], []).balances() == {B: 30.0}

    def test_uninvolved_user_has_empty_ledger(self):
        expense = build_expense(A, 20.0, [(B, 20.0, False)])

        assert reconcile(C, [expense], []).balances() == {}

    def test_opposite_debts_net_out(self):
        """A owes B 30 and B owes A 10 collapse to A owes B 20."""
        b_paid = build_expense(B, 30.0, [(A, 30.0, False)])
        a_paid = build_expense(A, 10.0, [(B, 10.0, False)])

        ledger = reconcile(A, [b_paid, a_paid], [])
        assert ledger.balance_with(B) == -20.0
        assert ledger.owing == {B: 30.0}
        assert ledger.owed_to_me == {B: 10.0}


@pytest.mark.unit
class TestSettlementFolding:
    """Test how settlements reduce balances."""

    def test_settlement_clears_debt(self):
        """Scenario: after B settles 50 to A, nobody owes anything."""
        expense = build_expense(A, 100.0, [(A, 50.0, True), (B, 50.0, False)])
        settlement = build_settlement(B, A, 50.0)

        a_ledger = reconcile(A, [expense], [settlement])
        assert a_ledger.balance_with(B) == 0.0
        assert a_ledger.balances() == {}
        assert a_ledger.entries() == []
        assert reconcile(B, [expense], [settlement]).balances() == {}

    def test_partial_settlement(self):
        expense = build_expense(A, 100.0, [(A, 50.0, True), (B, 50.0, False)])
        settlement = build_settlement(B, A, 20.0)

        assert reconcile(A, [expense], [settlement]).balances() == {B: 30.0}
        assert reconcile(B, [expense], [settlement]).balances() == {A: -30.0}

    def test_overpayment_flips_the_balance(self):
        expense = build_expense(A, 10.0, [(B, 10.0, False)])
        settlement = build_settlement(B, A, 25.0)

        assert reconcile(B, [expense], [settlement]).balances() == {A: 15.0}

    def test_settlement_without_expenses(self):
        settlement = build_settlement(A, B, 12.0)

        assert reconcile(A, [], [settlement]).balances() == {B: 12.0}
        assert reconcile(B, [], [settlement]).balances() == {A: -12.0}

    def test_unrelated_settlement_ignored(self):
        settlement = build_settlement(B, C, 12.0)

        assert reconcile(A, [], [settlement]).balances() == {}


@pytest.mark.unit
class TestLedgerProperties:
    """Test symmetry, order independence and zero-diff elimination."""

    @pytest.fixture
    def records(self):
        expenses = [
            build_expense(A, 100.0, [(A, 33.34, True), (B, 33.33, False), (C, 33.33, False)]),
            build_expense(B, 45.1, [(A, 15.1, False), (B, 30.0, True)]),
            build_expense(C, 0.3, [(A, 0.1, False), (B, 0.2, False)]),
            build_expense(A, 19.99, [(C, 19.99, False)]),
        ]
        settlements = [
            build_settlement(B, A, 10.07),
            build_settlement(C, A, 0.2),
            build_settlement(A, C, 3.0),
        ]
        return expenses, settlements

    def test_netting_symmetry(self, records):
        expenses, settlements = records
        for left, right in itertools.permutations([A, B, C], 2):
            forward = reconcile(left, expenses, settlements).balance_with(right)
            backward = reconcile(right, expenses, settlements).balance_with(left)
            assert forward == -backward

    def test_order_independence(self, records):
        expenses, settlements = records
        expected = reconcile(A, expenses, settlements).balances()
        for expense_order in itertools.permutations(expenses):
            for settlement_order in itertools.permutations(settlements):
                assert reconcile(A, expense_order, settlement_order).balances() == expected

    def test_equal_directions_are_dropped(self):
        a_paid = build_expense(A, 40.0, [(B, 40.0, False)])
        b_paid = build_expense(B, 40.0, [(A, 40.0, False)])

        a_ledger = reconcile(A, [a_paid, b_paid], [])
        b_ledger = reconcile(B, [a_paid, b_paid], [])
        assert B not in a_ledger.balances()
        assert A not in b_ledger.balances()

    def test_gross_totals(self, records):
        expenses, settlements = records
        ledger = reconcile(A, expenses, settlements)
        # Owed: 33.33 + 33.33 + 19.99 - 10.07 - 0.2; owing: 15.1 + 0.1 - 3.0
        assert ledger.total_owed_to_me() == 76.38
        assert ledger.total_owing() == 12.2
        assert ledger.total_balance() == 64.18


@pytest.mark.unit
class TestSince:
    """Test earliest-contribution tracking."""

    def test_since_is_earliest_expense(self):
        early = build_expense(B, 10.0, [(A, 10.0, False)], date=datetime(2026, 1, 5))
        late = build_expense(B, 20.0, [(A, 20.0, False)], date=datetime(2026, 2, 5))

        entries = reconcile(A, [late, early], []).entries()
        assert len(entries) == 1
        assert entries[0].since == datetime(2026, 1, 5)
        assert entries[0].balance == -30.0

    def test_settlements_do_not_move_since(self):
        expense = build_expense(B, 10.0, [(A, 10.0, False)], date=datetime(2026, 2, 1))
        settlement = build_settlement(A, B, 4.0, date=datetime(2026, 1, 1))

        entry = reconcile(A, [expense], [settlement]).entries()[0]
        assert entry.since == datetime(2026, 2, 1)
        assert entry.balance == -6.0


@pytest.mark.unit
class TestPairMatrix:
    """Test the group pair matrix."""

    def test_three_member_group(self):
        """Scenario: A and B each pay 30 split three ways; C owes both 10."""
        expenses = [
            build_expense(A, 30.0, [(A, 10.0, True), (B, 10.0, False), (C, 10.0, False)]),
            build_expense(B, 30.0, [(A, 10.0, False), (B, 10.0, True), (C, 10.0, False)]),
        ]
        members = [A, B, C]
        ledgers = {member: reconcile(member, expenses, []) for member in members}

        matrix = build_pair_matrix(members, ledgers)
        assert matrix[C] == {A: 10.0, B: 10.0}
        assert matrix[A] == {B: 0.0, C: 0.0}
        assert matrix[B] == {A: 0.0, C: 0.0}

    def test_settlement_reduces_cell(self):
        expenses = [build_expense(A, 50.0, [(B, 50.0, False)])]
        settlements = [build_settlement(B, A, 20.0)]
        members = [A, B]
        ledgers = {member: reconcile(member, expenses, settlements) for member in members}

        matrix = build_pair_matrix(members, ledgers)
        assert matrix[B][A] == 30.0
        assert matrix[A][B] == 0.0
