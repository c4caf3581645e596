"""
Ledger Reporting (``ledger_reporting``).

Responsibility
--------------
Read-only package that generates reports from the ledger: trial balance,
profit and loss (with optional comparison period), balance sheet (with
derived retained earnings), general ledger with running balances, and
AR/AP aging.

Architecture position
---------------------
**Reporting layer** -- sits above the kernel selectors and the aging
engine.  Report assembly is implemented as pure functions in
``statements.py``; ``ReportEngine`` only loads data.

Invariants enforced
-------------------
* No journal entries are created by this package (read-only guarantee).
* Every figure derives from the posted line history; nothing is cached.
"""

from ledger_reporting.config import ReportingConfig
from ledger_reporting.models import (
    AgingBucketTotal,
    AgingCounterpartyRow,
    AgingDetailLine,
    AgingSummary,
    BalanceSheetReport,
    GeneralLedgerAccount,
    GeneralLedgerReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    StatementLine,
    StatementSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
)
from ledger_reporting.service import ReportEngine
from ledger_reporting.statements import render_to_dict, split_debit_credit

__all__ = [
    "AgingBucketTotal",
    "AgingCounterpartyRow",
    "AgingDetailLine",
    "AgingSummary",
    "BalanceSheetReport",
    "GeneralLedgerAccount",
    "GeneralLedgerReport",
    "ProfitAndLossReport",
    "ReportEngine",
    "ReportMetadata",
    "ReportType",
    "ReportingConfig",
    "StatementLine",
    "StatementSection",
    "TrialBalanceLineItem",
    "TrialBalanceReport",
    "render_to_dict",
    "split_debit_credit",
]
