"""Service layer that validates requests and composes storage with the engine.

The allocator and engine are pure; this module is where the request-level
checks live (payer membership, split totals, participant limits) before
anything is written.
"""

import logging
import re
import secrets
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime

from .allocator import Shares, allocate
from .config import Settings
from .db import Database
from .engine import compute_balances
from .exceptions import (
    DuplicateParticipantError,
    EmptySplitError,
    ExpenseNotFoundError,
    GroupNotFoundError,
    InvalidPayerError,
    InvalidSplitParticipantError,
    InviteEmailMismatchError,
    InviteNotFoundError,
    LedgerValidationError,
    ParticipantLimitError,
    ParticipantNotFoundError,
    SplitTotalMismatchError,
    UnsettledBalanceError,
)
from .models import (
    Expense,
    ExpenseFilter,
    Group,
    Invite,
    LedgerSummary,
    MemberInput,
    Participant,
    Split,
    SplitMode,
    SplitShare,
)
from .money import Amount, round2, split_total_matches, sum_amounts

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")

DEFAULT_CATEGORIES = (
    "food",
    "groceries",
    "travel",
    "transport",
    "lodging",
    "entertainment",
    "utilities",
    "shopping",
    "uncategorized",
)


def derive_name(email: str, name: str | None = None) -> str:
    """
    Display name for a participant.

    Uses ``name`` when given, otherwise the e-mail local part with dots
    turned into spaces.
    """
    if name and name.strip():
        return name.strip()
    local = email.split("@")[0]
    return local.replace(".", " ") if local else "User"


def generate_invite_token() -> str:
    """Random 48-character hex invite token."""
    return secrets.token_hex(24)


def require_text(value: str | None, field: str) -> str:
    """Return ``value`` stripped, rejecting blanks."""
    text = (value or "").strip()
    if not text:
        raise LedgerValidationError(f"{field} is required")
    return text


def normalize_email(email: str | None) -> str:
    """Lowercased, stripped e-mail; rejects anything without user@domain.tld."""
    normalized = (email or "").strip().lower()
    if not EMAIL_PATTERN.fullmatch(normalized):
        raise LedgerValidationError(f"Invalid email: {email!r}")
    return normalized


def require_positive_amount(amount: Amount):
    if round2(amount) <= 0:
        raise LedgerValidationError(f"Amount must be positive: {amount}")


class LedgerService:
    """Service for managing groups, participants and expenses."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database

    # ========================================================================
    # Groups
    # ========================================================================

    def create_group(self, name: str, members: Sequence[MemberInput] = ()) -> Group:
        """
        Create a group owned by the configured account.

        The owner always becomes the first, active participant. Extra members
        without an account are added as pending and get an invite.

        Args:
            name: Group name
            members: Extra participants (at most max_participants - 1)

        Returns:
            The new group

        Raises:
            LedgerValidationError: If the name or a member is invalid; nothing
                is written in that case
        """
        name = require_text(name, "Group name")
        if len(members) > self.settings.max_participants - 1:
            raise ParticipantLimitError(self.settings.max_participants)

        seen = {self.settings.account_email.strip().lower()}
        for member in members:
            require_text(member.name, "Participant name")
            email = normalize_email(member.email)
            if email in seen:
                raise DuplicateParticipantError(email)
            seen.add(email)

        group = self.db.create_group(name, self.settings.account_id)
        self.db.create_participant(
            group_id=group.id,
            name=derive_name(self.settings.account_email, self.settings.account_name),
            email=self.settings.account_email,
            color=self.settings.owner_color,
            account_id=self.settings.account_id,
        )

        for member in members:
            self.add_participant(
                group.id,
                name=member.name,
                email=member.email,
                color=member.color,
                avatar=member.avatar,
                account_id=member.account_id,
            )

        logger.info(f"Created group {group.id} '{name}' with {len(members) + 1} participants")
        return group

    def get_group(self, group_id: int) -> Group:
        group = self.db.get_group(group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        return group

    def list_groups(self) -> list[Group]:
        """Groups owned by or shared with the configured account, newest first."""
        return self.db.get_groups_for_account(self.settings.account_id)

    def rename_group(self, group_id: int, name: str) -> Group:
        name = require_text(name, "Group name")
        self.get_group(group_id)
        self.db.update_group_name(group_id, name)
        logger.info(f"Renamed group {group_id} to '{name}'")
        return self.get_group(group_id)

    def delete_group(self, group_id: int):
        """Delete a group with all its participants, expenses and invites."""
        self.get_group(group_id)
        self.db.delete_group(group_id)
        logger.info(f"Deleted group {group_id}")

    # ========================================================================
    # Participants
    # ========================================================================

    def get_participant(self, participant_id: int) -> Participant:
        participant = self.db.get_participant(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(participant_id)
        return participant

    def add_participant(
        self,
        group_id: int,
        name: str,
        email: str,
        color: str | None = None,
        avatar: str | None = None,
        account_id: str | None = None,
    ) -> tuple[Participant, str | None]:
        """
        Add a participant to a group.

        Args:
            group_id: Target group
            name: Display name
            email: E-mail (unique within the group)
            color: Display color (settings default if omitted)
            avatar: Avatar URL or empty
            account_id: Linked account, if the person already has one

        Returns:
            Tuple of (participant, invite_token); the token is None when the
            participant was linked straight away
        """
        name = require_text(name, "Participant name")
        email = normalize_email(email)
        self.get_group(group_id)

        participants = self.db.get_participants(group_id)
        if len(participants) >= self.settings.max_participants:
            raise ParticipantLimitError(self.settings.max_participants)

        if self.db.find_participant_by_email(group_id, email):
            raise DuplicateParticipantError(email)

        participant = self.db.create_participant(
            group_id=group_id,
            name=name,
            email=email,
            color=color or self.settings.default_color,
            avatar=avatar or "",
            account_id=account_id,
        )

        invite_token = None
        if not participant.is_linked:
            invite = Invite(
                group_id=group_id,
                participant_id=participant.id,
                email=participant.email,
                token=generate_invite_token(),
                invited_by_account_id=self.settings.account_id,
            )
            invite.id = self.db.save_invite(invite)
            invite_token = invite.token

        logger.info(
            f"Added participant {participant.id} ({participant.email}) "
            f"to group {group_id} as {participant.status}"
        )
        return participant, invite_token

    def update_participant(
        self,
        participant_id: int,
        name: str | None = None,
        color: str | None = None,
        avatar: str | None = None,
    ) -> Participant:
        """
        Update a participant's display fields.

        Omitted (None) fields are kept; an empty avatar clears it.
        """
        participant = self.get_participant(participant_id)
        if name is not None:
            name = require_text(name, "Participant name")
        updated = participant.model_copy(
            update={
                "name": name or participant.name,
                "color": color or participant.color,
                "avatar": avatar.strip() if avatar is not None else participant.avatar,
            }
        )
        self.db.update_participant(updated)
        logger.info(f"Updated participant {participant_id}")
        return updated

    def remove_participant(self, participant_id: int):
        """
        Remove a participant whose balance is settled.

        Expenses the participant paid for or was split into are deleted with
        them, as are their invites.

        Raises:
            UnsettledBalanceError: If |net| exceeds the split tolerance
        """
        participant = self.get_participant(participant_id)
        participants = self.db.get_participants(participant.group_id)
        expenses = self.db.get_expenses([participant.group_id])

        net = compute_balances(expenses, participants).net_for(participant_id)
        if abs(net) > self.settings.split_tolerance:
            raise UnsettledBalanceError(participant_id, net)

        involved = [expense.id for expense in expenses if expense.involves(participant_id)]
        self.db.delete_expenses(involved)
        self.db.delete_participant(participant_id)

        logger.info(
            f"Removed participant {participant_id} and {len(involved)} related expenses"
        )

    def accept_invite(
        self, token: str, account_id: str, email: str, name: str | None = None
    ) -> Participant:
        """
        Link an invited participant to an account.

        Accepting an already accepted invite returns the participant unchanged.

        Raises:
            InviteNotFoundError: If the token is unknown
            InviteEmailMismatchError: If the account's e-mail differs
        """
        invite = self.db.get_invite_by_token(token)
        if invite is None:
            raise InviteNotFoundError("Invite not found")

        participant = self.get_participant(invite.participant_id)
        if invite.status == "accepted":
            return participant

        if invite.email != email.strip().lower():
            raise InviteEmailMismatchError()

        linked = participant.model_copy(
            update={
                "account_id": account_id,
                "status": "active",
                "name": name or participant.name,
            }
        )
        self.db.update_participant(linked)
        if invite.id is not None:
            self.db.mark_invite_accepted(invite.id)

        logger.info(f"Participant {participant.id} linked to account {account_id}")
        return linked

    # ========================================================================
    # Expenses
    # ========================================================================

    def build_splits(
        self,
        group_id: int,
        amount: Amount,
        payer_id: int,
        split_mode: SplitMode,
        shares: Shares | None,
    ) -> list[Split]:
        """
        Allocate an expense and check it against the group.

        Equal splits without explicit shares cover the whole group in
        membership order.

        Raises:
            LedgerValidationError: If the amount is not positive
            InvalidPayerError: If the payer is not in the group
            InvalidSplitParticipantError: If a split is for a non-member
            EmptySplitError: If nobody would owe anything
            SplitTotalMismatchError: If splits are off by more than tolerance
        """
        require_positive_amount(amount)

        member_ids = [p.id for p in self.db.get_participants(group_id)]
        if payer_id not in member_ids:
            raise InvalidPayerError(payer_id, group_id)

        if split_mode == "equal" and not shares:
            shares = member_ids
        elif split_mode != "equal" and shares and not _has_values(shares):
            raise LedgerValidationError(
                f"{split_mode.capitalize()} splits need a value for each participant"
            )

        splits = allocate(split_mode, amount, shares or [])
        if not splits:
            raise EmptySplitError()

        for split in splits:
            if split.participant_id not in member_ids:
                raise InvalidSplitParticipantError(split.participant_id, group_id)

        amounts = [split.amount for split in splits]
        if not split_total_matches(amount, amounts, self.settings.split_tolerance):
            raise SplitTotalMismatchError(round2(amount), sum_amounts(amounts))

        return splits

    def add_expense(
        self,
        group_id: int,
        description: str,
        amount: Amount,
        payer_id: int,
        split_mode: SplitMode = "equal",
        shares: Shares | None = None,
        category: str | None = None,
        expense_date: date | None = None,
    ) -> Expense:
        """
        Record a new expense.

        Args:
            group_id: Group the expense belongs to
            description: What was bought
            amount: Positive total, rounded to the cent before storing
            payer_id: Participant who paid
            split_mode: "equal", "custom" or "percentage"
            shares: Participant ids (equal) or id -> value mapping
            category: Category tag (settings default if omitted)
            expense_date: Date of the expense (today if omitted)

        Returns:
            The stored expense
        """
        description = require_text(description, "Description")
        self.get_group(group_id)
        splits = self.build_splits(group_id, amount, payer_id, split_mode, shares)

        expense = self.db.create_expense(
            group_id=group_id,
            description=description,
            category=category or self.settings.default_category,
            amount=round2(amount),
            expense_date=expense_date or date.today(),
            payer_id=payer_id,
            split_mode=split_mode,
            splits=splits,
        )

        logger.info(
            f"Added expense {expense.id} '{description}' for {expense.amount} "
            f"in group {group_id} ({split_mode}, {len(splits)} splits)"
        )
        return expense

    def get_expense(self, expense_id: int) -> Expense:
        expense = self.db.get_expense(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)
        return expense

    def update_expense(
        self,
        expense_id: int,
        description: str,
        amount: Amount,
        payer_id: int,
        split_mode: SplitMode = "equal",
        shares: Shares | None = None,
        category: str | None = None,
        expense_date: date | None = None,
    ) -> Expense:
        """Replace an expense's fields and re-allocate its splits."""
        description = require_text(description, "Description")
        existing = self.get_expense(expense_id)
        splits = self.build_splits(existing.group_id, amount, payer_id, split_mode, shares)

        updated = existing.model_copy(
            update={
                "description": description,
                "category": category or self.settings.default_category,
                "amount": round2(amount),
                "date": expense_date or existing.date,
                "payer_id": payer_id,
                "split_mode": split_mode,
                "splits": splits,
                "updated_at": datetime.now(),
            }
        )
        self.db.update_expense(updated)

        logger.info(f"Updated expense {expense_id}")
        return updated

    def delete_expense(self, expense_id: int):
        self.get_expense(expense_id)
        self.db.delete_expense(expense_id)
        logger.info(f"Deleted expense {expense_id}")

    def list_expenses(
        self, group_id: int, expense_filter: ExpenseFilter | None = None
    ) -> list[Expense]:
        """List a group's expenses, newest first, optionally filtered."""
        self.get_group(group_id)
        expenses = self.db.get_expenses([group_id])
        if expense_filter is None:
            return expenses
        return [expense for expense in expenses if expense_filter.matches(expense)]

    def list_categories(self, group_id: int) -> list[str]:
        """Default categories plus any already used in the group."""
        used = self.db.get_expense_categories(group_id)
        return list(DEFAULT_CATEGORIES) + [c for c in used if c not in DEFAULT_CATEGORIES]

    # ========================================================================
    # Balances
    # ========================================================================

    def get_group_summary(
        self, group_id: int
    ) -> tuple[Group, list[Participant], list[Expense], LedgerSummary]:
        """
        Load a group and compute its balances and settlements.

        Returns:
            Tuple of (group, participants, expenses, summary)
        """
        group = self.get_group(group_id)
        participants = self.db.get_participants(group_id)
        expenses = self.db.get_expenses([group_id])
        summary = compute_balances(expenses, participants)
        return group, participants, expenses, summary

    def get_all_groups_summary(
        self,
    ) -> tuple[list[Group], list[Participant], list[Expense], LedgerSummary]:
        """
        Balances across every group visible to the configured account.

        Participants stay distinct per group, so the same person in two
        groups shows up twice.
        """
        groups = self.list_groups()
        participants = _unique_participants(
            self.db.get_participants(group.id) for group in groups
        )
        expenses = self.db.get_expenses([group.id for group in groups])
        summary = compute_balances(expenses, participants)
        return groups, participants, expenses, summary


def _unique_participants(
    participant_lists: Iterable[list[Participant]],
) -> list[Participant]:
    seen: set[int] = set()
    result = []
    for participants in participant_lists:
        for participant in participants:
            if participant.id not in seen:
                seen.add(participant.id)
                result.append(participant)
    return result


def _has_values(shares: Shares) -> bool:
    if isinstance(shares, Mapping):
        return True
    return all(isinstance(share, SplitShare) for share in shares)
