"""Custom exceptions for group-ledger."""

from decimal import Decimal


class GroupLedgerError(Exception):
    """Base exception for all group-ledger errors."""

    pass


class ConfigurationError(GroupLedgerError):
    """Raised when configuration is invalid or missing."""

    pass


class NotFoundError(GroupLedgerError):
    """Base class for missing records."""

    pass


class GroupNotFoundError(NotFoundError):
    """Raised when a group id does not exist."""

    def __init__(self, group_id: int):
        self.group_id = group_id
        super().__init__(f"Group {group_id} not found")


class ParticipantNotFoundError(NotFoundError):
    """Raised when a participant id does not exist."""

    def __init__(self, participant_id: int):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} not found")


class ExpenseNotFoundError(NotFoundError):
    """Raised when an expense id does not exist."""

    def __init__(self, expense_id: int):
        self.expense_id = expense_id
        super().__init__(f"Expense {expense_id} not found")


class InviteNotFoundError(NotFoundError):
    """Raised when an invite token is unknown."""

    pass


class LedgerValidationError(GroupLedgerError):
    """Base class for rejected requests."""

    pass


class InvalidPayerError(LedgerValidationError):
    """Raised when the payer is not a member of the expense's group."""

    def __init__(self, payer_id: int, group_id: int):
        self.payer_id = payer_id
        self.group_id = group_id
        super().__init__(f"Invalid payer: participant {payer_id} is not in group {group_id}")


class InvalidSplitParticipantError(LedgerValidationError):
    """Raised when a split references a participant outside the group."""

    def __init__(self, participant_id: int, group_id: int):
        self.participant_id = participant_id
        self.group_id = group_id
        super().__init__(
            f"Invalid split: participant {participant_id} is not in group {group_id}"
        )


class EmptySplitError(LedgerValidationError):
    """Raised when an expense would have no splits."""

    def __init__(self, message: str | None = None):
        super().__init__(message or "Expense must be split among at least one participant")


class SplitTotalMismatchError(LedgerValidationError):
    """Raised when splits don't add up to the expense amount within tolerance."""

    def __init__(self, amount: Decimal, split_total: Decimal):
        self.amount = amount
        self.split_total = split_total
        super().__init__(
            f"Split total must match amount: splits sum to {split_total}, "
            f"expense amount is {amount}"
        )


class ParticipantLimitError(LedgerValidationError):
    """Raised when a group is already at its participant limit."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            f"Group already has the maximum of {limit} participants "
            f"(primary user + {limit - 1})"
        )


class DuplicateParticipantError(LedgerValidationError):
    """Raised when an e-mail is already invited or linked in a group."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Participant {email} already invited or linked")


class UnsettledBalanceError(LedgerValidationError):
    """Raised when removing a participant whose balance is not settled."""

    def __init__(self, participant_id: int, net: Decimal):
        self.participant_id = participant_id
        self.net = net
        super().__init__(
            f"Participant {participant_id} has unsettled balance of {net}"
        )


class InviteEmailMismatchError(LedgerValidationError):
    """Raised when an invite is accepted by an account with another e-mail."""

    def __init__(self, message: str | None = None):
        super().__init__(message or "Invite email does not match")
