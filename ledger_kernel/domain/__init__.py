"""Pure domain layer: clock, DTOs and account-tree helpers (no I/O)."""

from ledger_kernel.domain.account_tree import build_account_tree, creates_cycle
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import (
    AccountInfo,
    AccountNode,
    AccountView,
    JournalEntryInfo,
    JournalLineInfo,
    LineSpec,
)

__all__ = [
    "build_account_tree",
    "creates_cycle",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "AccountInfo",
    "AccountNode",
    "AccountView",
    "JournalEntryInfo",
    "JournalLineInfo",
    "LineSpec",
]
