"""Balance computation and debt settlement.

Both steps are pure: they fold an immutable expense sequence into fresh
values and never touch the caller's objects, so they are safe to call
concurrently on independent snapshots.
"""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .models import Balance, Expense, LedgerSummary, Participant, Settlement
from .money import ZERO, round2, sum_amounts

logger = logging.getLogger(__name__)


def accumulate_nets(
    expenses: Iterable[Expense], participant_ids: Sequence[int]
) -> dict[int, Decimal]:
    """
    Fold expenses into net positions (paid minus owed).

    The payer is credited with the full amount and each split participant is
    debited with their share, rounding to the cent after every step. A payer
    who is also in the splits gets both operations.

    Ids that appear in expenses but not in ``participant_ids`` still
    accumulate here; ``compute_balances`` leaves them out of its output.

    Args:
        expenses: Expenses in scope, in any order
        participant_ids: Participants to seed with a zero balance

    Returns:
        Mapping of participant id to net amount
    """
    nets: dict[int, Decimal] = {participant_id: ZERO for participant_id in participant_ids}

    for expense in expenses:
        nets[expense.payer_id] = round2(nets.get(expense.payer_id, ZERO) + expense.amount)
        for split in expense.splits:
            nets[split.participant_id] = round2(
                nets.get(split.participant_id, ZERO) - split.amount
            )

    return nets


def generate_settlements(balances: Sequence[Balance]) -> list[Settlement]:
    """
    Greedily match debtors to creditors.

    Creditors (net > 0) and debtors (net < 0) keep their input order. Two
    cursors walk the lists; each step transfers the smaller of the two open
    amounts and moves past whichever side reached zero. This yields at most
    ``debtors + creditors - 1`` transfers but is not guaranteed to be the
    minimum possible count.

    Args:
        balances: Net balances, in participant order

    Returns:
        Ordered list of transfers
    """
    creditors = [[b.participant_id, round2(b.net)] for b in balances if b.net > 0]
    debtors = [[b.participant_id, round2(b.net)] for b in balances if b.net < 0]

    settlements: list[Settlement] = []
    i = 0
    j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]
        amount = round2(min(-debtor[1], creditor[1]))
        if amount > 0:
            settlements.append(
                Settlement(
                    from_participant_id=debtor[0],
                    to_participant_id=creditor[0],
                    amount=amount,
                )
            )
            debtor[1] = round2(debtor[1] + amount)
            creditor[1] = round2(creditor[1] - amount)
        if debtor[1] == 0:
            i += 1
        if creditor[1] == 0:
            j += 1

    return settlements


def compute_balances(
    expenses: Iterable[Expense], participants: Sequence[Participant]
) -> LedgerSummary:
    """
    Compute net balances and suggested settlements for a scope of expenses.

    Callers must make sure every payer and split participant is in
    ``participants``. If not, the totals won't cancel out and the
    settlement list will leave the dangling amount unmatched; this is
    logged, not raised.

    Args:
        expenses: Every expense in scope (one group or a union of groups)
        participants: Participants in scope, in display order

    Returns:
        One balance per participant (zero balances included), the
        settlements, and the total amount spent
    """
    expenses = list(expenses)
    participant_ids = [participant.id for participant in participants]
    nets = accumulate_nets(expenses, participant_ids)

    balances = [
        Balance(participant_id=participant_id, net=round2(nets[participant_id]))
        for participant_id in participant_ids
    ]

    residual = sum_amounts(balance.net for balance in balances)
    if residual != 0:
        logger.warning(
            f"Balances do not sum to zero (residual {residual}); "
            f"check that all expenses reference participants in scope"
        )

    settlements = generate_settlements(balances)
    total_spent = sum_amounts(expense.amount for expense in expenses)

    logger.debug(
        f"Computed {len(balances)} balances and {len(settlements)} settlements "
        f"from {len(expenses)} expenses"
    )

    return LedgerSummary(
        total_spent=total_spent, balances=balances, settlements=settlements
    )
