"""Pydantic domain models for the group ledger."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .money import ZERO, round2, sum_amounts

SplitMode = Literal["equal", "custom", "percentage"]
ParticipantStatus = Literal["pending", "active"]
InviteStatus = Literal["pending", "accepted"]

SPLIT_MODES: tuple[str, ...] = ("equal", "custom", "percentage")

# ============================================================================
# Group Models
# ============================================================================


class Group(BaseModel):
    """A collection of participants sharing a pool of expenses."""

    id: int
    name: str
    owner_account_id: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class Participant(BaseModel):
    """A named party within one group.

    A person in two groups has two distinct participant records, optionally
    linked to the same external account.
    """

    id: int
    group_id: int
    name: str
    email: str
    status: ParticipantStatus = "pending"
    color: str = "#4b5563"
    avatar: str = ""
    account_id: str | None = None  # None while invited-but-unaccepted
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_linked(self) -> bool:
        return self.account_id is not None


class MemberInput(BaseModel):
    """A participant to add while creating a group."""

    name: str = Field(min_length=1)
    email: str
    color: str | None = None
    avatar: str | None = None
    account_id: str | None = None


class Invite(BaseModel):
    """A pending link between a participant and an external account."""

    id: int | None = None
    group_id: int
    participant_id: int
    email: str
    status: InviteStatus = "pending"
    token: str
    invited_by_account_id: str
    created_at: datetime = Field(default_factory=datetime.now)


# ============================================================================
# Expense Models
# ============================================================================


class Split(BaseModel):
    """The amount one participant owes for an expense."""

    participant_id: int
    amount: Decimal


class SplitShare(BaseModel):
    """Allocator input: an explicit amount (custom) or a percentage."""

    participant_id: int
    value: Decimal


class Expense(BaseModel):
    """A dated financial event with a payer and per-participant splits."""

    id: int
    group_id: int
    description: str = Field(min_length=1)
    category: str = "uncategorized"
    amount: Decimal = Field(gt=0)
    date: date
    payer_id: int
    split_mode: SplitMode
    splits: list[Split] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def split_total(self) -> Decimal:
        """Sum of all split amounts."""
        return sum_amounts(split.amount for split in self.splits)

    def involves(self, participant_id: int) -> bool:
        """True if the participant paid for or owes part of this expense."""
        return self.payer_id == participant_id or any(
            split.participant_id == participant_id for split in self.splits
        )


class ExpenseFilter(BaseModel):
    """Search criteria for listing expenses."""

    query: str | None = None  # case-insensitive substring of description
    participant_id: int | None = None  # payer or split member
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    start: date | None = None
    end: date | None = None

    def matches(self, expense: Expense) -> bool:
        if self.query and self.query.lower() not in expense.description.lower():
            return False
        if self.participant_id is not None and not expense.involves(
            self.participant_id
        ):
            return False
        if self.min_amount is not None and expense.amount < self.min_amount:
            return False
        if self.max_amount is not None and expense.amount > self.max_amount:
            return False
        if self.start is not None and expense.date < self.start:
            return False
        if self.end is not None and expense.date > self.end:
            return False
        return True


# ============================================================================
# Derived Models
# ============================================================================


class Balance(BaseModel):
    """A participant's net position: total paid minus total owed."""

    participant_id: int
    net: Decimal = ZERO


class Settlement(BaseModel):
    """A suggested transfer: ``from`` pays ``to`` this amount."""

    from_participant_id: int
    to_participant_id: int
    amount: Decimal = Field(gt=0)


class LedgerSummary(BaseModel):
    """Balances and suggested settlements for a scope of expenses."""

    total_spent: Decimal = ZERO
    balances: list[Balance] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)

    def net_for(self, participant_id: int) -> Decimal:
        """Net balance of one participant (zero if unknown)."""
        for balance in self.balances:
            if balance.participant_id == participant_id:
                return balance.net
        return ZERO

    def residual(self) -> Decimal:
        """Sum of all nets; zero when the expense data is consistent."""
        return round2(sum_amounts(balance.net for balance in self.balances))
