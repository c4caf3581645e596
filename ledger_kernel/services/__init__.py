"""Write-side kernel services.  All of them flush; none of them commit."""

from ledger_kernel.services.chart_of_accounts import ChartOfAccounts
from ledger_kernel.services.entry_poster import LedgerEntryPoster
from ledger_kernel.services.reversal_engine import ReversalEngine, ReversalResult
from ledger_kernel.services.sequence_service import SequenceService

__all__ = [
    "ChartOfAccounts",
    "LedgerEntryPoster",
    "ReversalEngine",
    "ReversalResult",
    "SequenceService",
]
