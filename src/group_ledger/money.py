"""Fixed-point currency helpers.

Every amount in the ledger is a ``Decimal`` with two fractional digits.
Rounding is ``ROUND_HALF_UP``, which in the decimal module rounds ties away
from zero for both signs.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Amount = Decimal | int | float | str


def to_decimal(value: Amount) -> Decimal:
    """
    Convert a user-supplied amount to Decimal.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Amount) -> Decimal:
    """Round to two decimal places, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Amount) -> int:
    """
    Convert an amount to an integer count of cents.

    Args:
        value: Amount in currency units

    Returns:
        Amount in cents, rounded half away from zero
    """
    return int(round2(value) * 100)


def from_cents(cents: int) -> Decimal:
    """Convert an integer count of cents back to a two-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


def has_excess_precision(value: Amount) -> bool:
    """True when the amount carries more than two fractional digits."""
    exponent = to_decimal(value).normalize().as_tuple().exponent
    return isinstance(exponent, int) and exponent < -2


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Sum amounts, rounding after every addition."""
    total = ZERO
    for amount in amounts:
        total = round2(total + amount)
    return total


def split_total_matches(
    amount: Amount, split_amounts: Iterable[Decimal], tolerance: Amount = CENT
) -> bool:
    """
    Check that split amounts add up to the expense amount.

    Args:
        amount: The expense total
        split_amounts: Amounts owed by each participant
        tolerance: Largest accepted absolute difference (one cent by default)

    Returns:
        True if |amount - sum(split_amounts)| <= tolerance
    """
    difference = round2(round2(amount) - sum_amounts(split_amounts))
    return abs(difference) <= to_decimal(tolerance)
