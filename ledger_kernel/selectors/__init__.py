"""Read-only selectors: balances, journal reads, accounts, open documents."""

from ledger_kernel.selectors.account_selector import AccountSelector, to_account_info
from ledger_kernel.selectors.balance_calculator import BalanceCalculator, natural_balance
from ledger_kernel.selectors.document_selector import DocumentSelector, OpenDocument
from ledger_kernel.selectors.journal_selector import (
    AccountActivity,
    ActivityLine,
    EntryPage,
    JournalSelector,
    LedgerLine,
    to_entry_info,
    with_running_balance,
)

__all__ = [
    "AccountSelector",
    "to_account_info",
    "BalanceCalculator",
    "natural_balance",
    "DocumentSelector",
    "OpenDocument",
    "AccountActivity",
    "ActivityLine",
    "EntryPage",
    "JournalSelector",
    "LedgerLine",
    "to_entry_info",
    "with_running_balance",
]
