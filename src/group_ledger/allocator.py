"""Split allocation: turn an expense total and split rule into owed amounts."""

import logging
from collections.abc import Iterable, Mapping, Sequence

from .models import Split, SplitMode, SplitShare
from .money import Amount, from_cents, has_excess_precision, round2, to_cents, to_decimal

logger = logging.getLogger(__name__)

Shares = Mapping[int, Amount] | Sequence[SplitShare] | Sequence[int]


def equal_split(total_amount: Amount, participant_ids: Sequence[int]) -> list[Split]:
    """
    Split a total equally, distributing leftover cents in input order.

    Every participant gets ``floor(total * 100 / n)`` cents; the remaining
    cents go one each to the first participants in ``participant_ids``.
    The result always sums to ``round2(total_amount)`` exactly.

    Args:
        total_amount: The amount to split
        participant_ids: Participants in the order that decides who gets
            the odd cents

    Returns:
        One split per participant, in input order (empty if no participants)
    """
    count = len(participant_ids)
    if count == 0:
        return []

    total_cents = to_cents(total_amount)
    base_cents = total_cents // count
    remainder = total_cents - base_cents * count

    return [
        Split(
            participant_id=participant_id,
            amount=from_cents(base_cents + (1 if idx < remainder else 0)),
        )
        for idx, participant_id in enumerate(participant_ids)
    ]


def _share_items(shares: Shares) -> Iterable[tuple[int, Amount]]:
    if isinstance(shares, Mapping):
        return shares.items()
    # bare ids carry no value and allocate nothing
    return [
        (share.participant_id, share.value) if isinstance(share, SplitShare) else (share, 0)
        for share in shares
    ]


def _participant_ids(shares: Shares) -> list[int]:
    if isinstance(shares, Mapping):
        return list(shares.keys())
    return [
        share.participant_id if isinstance(share, SplitShare) else share
        for share in shares
    ]


def custom_split(shares: Shares) -> list[Split]:
    """Use each participant's explicit amount, rounded to the cent."""
    return [
        Split(participant_id=participant_id, amount=round2(value))
        for participant_id, value in _share_items(shares)
    ]


def percentage_split(total_amount: Amount, shares: Shares) -> list[Split]:
    """Allocate ``round2(percent / 100 * total)`` to each participant."""
    total = round2(total_amount)
    return [
        Split(
            participant_id=participant_id,
            amount=round2(to_decimal(percent) / 100 * total),
        )
        for participant_id, percent in _share_items(shares)
    ]


def allocate(mode: SplitMode, total_amount: Amount, shares: Shares) -> list[Split]:
    """
    Allocate an expense total among participants.

    Custom and percentage splits are not redistributed: callers must check
    the result with ``split_total_matches`` before accepting it. Bare
    participant ids given to those modes get a zero split.

    Args:
        mode: "equal", "custom" or "percentage"
        total_amount: Expense total (rounded to the cent before use)
        shares: Participant ids in order for "equal"; a mapping of
            participant id to value (or a sequence of SplitShare) otherwise

    Returns:
        The computed splits (empty if there are no shares)

    Raises:
        ValueError: If the mode is unknown
    """
    if has_excess_precision(total_amount):
        logger.debug(f"Rounding total {total_amount} to the nearest cent")

    if mode == "equal":
        return equal_split(total_amount, _participant_ids(shares))

    if not shares:
        return []

    if mode == "custom":
        return custom_split(shares)

    if mode == "percentage":
        return percentage_split(total_amount, shares)

    raise ValueError(f"Unknown split mode: {mode}")
