"""
Ledger Primitives

Pure helpers for accumulating and netting signed balances between two parties.

Amounts are floats. Every comparison against zero or against a split total
uses an absolute tolerance of 0.01 currency units; values are first rounded
to NOISE_DIGITS places so binary float noise (e.g. 90 - 89.99 ==
0.010000000000005116) cannot push a value across the boundary.

Sign convention for a ledger keyed by counterparty:
    positive -> the counterparty owes the ledger's owner
    negative -> the owner owes the counterparty
"""

from typing import Dict, Hashable

TOLERANCE = 0.01
NOISE_DIGITS = 6
CURRENCY_DIGITS = 2


def to_cents(value: float) -> float:
    """
    Round a float amount to currency precision.

    Example:
        >>> to_cents(43.333333)
        43.33
    """
    return round(value, CURRENCY_DIGITS) + 0.0  # + 0.0 turns -0.0 into 0.0


def is_zero(value: float, tolerance: float = TOLERANCE) -> bool:
    """True when the value is below the tolerance, i.e. no residual debt."""
    return round(abs(value), NOISE_DIGITS) < tolerance


def amounts_match(left: float, right: float, tolerance: float = TOLERANCE) -> bool:
    """
    Check two amounts agree within tolerance, boundary inclusive.

    Example:
        >>> amounts_match(89.99, 90)
        True
        >>> amounts_match(89.98, 90)
        False
    """
    return round(abs(left - right), NOISE_DIGITS) <= tolerance


def accumulate(ledger: Dict[Hashable, float], counterparty_id: Hashable, delta: float) -> Dict[Hashable, float]:
    """
    Add a signed delta to the counterparty's running balance.

    The entry is created at 0.0 if absent. The ledger is mutated and
    returned so calls can be chained.
    """
    ledger[counterparty_id] = ledger.get(counterparty_id, 0.0) + delta
    return ledger


def net(a_owes_b: float, b_owes_a: float) -> float:
    """
    Collapse two one-directional totals between the same pair into one value.

    Positive result: A still owes B that much. Negative result: B owes A.
    A difference within tolerance of zero is exactly 0.0.

    Example:
        >>> net(30, 10)
        20.0
        >>> net(10, 30)
        -20.0
    """
    diff = a_owes_b - b_owes_a
    if is_zero(diff):
        return 0.0
    return to_cents(diff)


def net_pair(matrix: Dict[Hashable, Dict[Hashable, float]], a: Hashable, b: Hashable) -> float:
    """
    Net the two directional cells of a pair inside a debtor -> creditor matrix.

    After netting, the debtor's cell holds the difference and the other cell
    is 0.0. Both cells are 0.0 when the directions cancel out.

    Returns:
        The signed amount A owes B after netting.
    """
    diff = net(matrix[a].get(b, 0.0), matrix[b].get(a, 0.0))
    if diff > 0:
        matrix[a][b], matrix[b][a] = diff, 0.0
    elif diff < 0:
        matrix[a][b], matrix[b][a] = 0.0, -diff
    else:
        matrix[a][b] = matrix[b][a] = 0.0
    return diff


def drop_settled(ledger: Dict[Hashable, float]) -> Dict[Hashable, float]:
    """Return a copy of the ledger without entries that net to zero."""
    return {
        counterparty_id: to_cents(balance)
        for counterparty_id, balance in ledger.items()
        if not is_zero(balance)
    }
