"""group-ledger - Shared expense tracking with balances and settlements."""

__version__ = "0.1.0"

from .allocator import allocate, equal_split
from .config import Settings, load_settings
from .db import Database
from .engine import accumulate_nets, compute_balances, generate_settlements
from .models import (
    Balance,
    Expense,
    ExpenseFilter,
    Group,
    LedgerSummary,
    Participant,
    Settlement,
    Split,
    SplitShare,
)
from .money import round2, split_total_matches
from .service import LedgerService

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "Balance",
    "Expense",
    "ExpenseFilter",
    "Group",
    "LedgerSummary",
    "Participant",
    "Settlement",
    "Split",
    "SplitShare",
    "allocate",
    "equal_split",
    "accumulate_nets",
    "compute_balances",
    "generate_settlements",
    "round2",
    "split_total_matches",
    "LedgerService",
]
