"""Persisted models for the ledger kernel."""

from ledger_kernel.models.account import (
    Account,
    AccountSubType,
    AccountType,
    NormalBalance,
    normal_balance_for,
)
from ledger_kernel.models.document import (
    OPEN_STATUSES,
    DocumentKind,
    DocumentStatus,
    SubledgerDocument,
)
from ledger_kernel.models.journal import JournalEntry, JournalLine, JournalSource
from ledger_kernel.models.sequence import SequenceCounter

__all__ = [
    "Account",
    "AccountSubType",
    "AccountType",
    "NormalBalance",
    "normal_balance_for",
    "OPEN_STATUSES",
    "DocumentKind",
    "DocumentStatus",
    "SubledgerDocument",
    "JournalEntry",
    "JournalLine",
    "JournalSource",
    "SequenceCounter",
]
