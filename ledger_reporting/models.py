"""
Financial Reporting Domain Models (``ledger_reporting.models``).

Responsibility
--------------
Frozen dataclass value objects representing report outputs: trial
balance, profit and loss, balance sheet, general ledger and AR/AP aging.

Architecture position
---------------------
**Reporting layer** -- pure data definitions with ZERO I/O.  Built by the
functions in ``statements.py`` and returned by ``ReportEngine``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Sequences are tuples so a report can be hashed and compared.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.selectors.journal_selector import ActivityLine


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    """Types of ledger reports."""

    TRIAL_BALANCE = "trial_balance"
    PROFIT_AND_LOSS = "profit_and_loss"
    BALANCE_SHEET = "balance_sheet"
    GENERAL_LEDGER = "general_ledger"
    AR_AGING = "ar_aging"
    AP_AGING = "ap_aging"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    entity_name: str
    as_of_date: date
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    period_end: date | None = None
    comparative_start: date | None = None
    comparative_end: date | None = None
    comparative_date: date | None = None


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLineItem:
    """A single line in the trial balance."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: str
    debit_balance: Decimal
    credit_balance: Decimal
    net_balance: Decimal  # Natural-balance-adjusted


@dataclass(frozen=True)
class TrialBalanceReport:
    """Complete trial balance report."""

    metadata: ReportMetadata
    lines: tuple[TrialBalanceLineItem, ...]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool  # |total_debits - total_credits| within tolerance

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits


# =========================================================================
# Statement sections (P&L and balance sheet)
# =========================================================================


@dataclass(frozen=True)
class StatementLine:
    """One account on a statement, with its optional comparison amount."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: str
    amount: Decimal
    comparison_amount: Decimal | None = None


@dataclass(frozen=True)
class StatementSection:
    """Accounts of a single type and their total (e.g., Revenue)."""

    label: str
    lines: tuple[StatementLine, ...]
    total: Decimal
    comparison_total: Decimal | None = None


# =========================================================================
# Profit & Loss
# =========================================================================


@dataclass(frozen=True)
class ProfitAndLossReport:
    """
    Revenue and expense activity over a period.

    ``net_income == revenue.total - expenses.total``; the comparison
    fields are None unless a comparison period was requested.
    """

    metadata: ReportMetadata
    revenue: StatementSection
    expenses: StatementSection
    net_income: Decimal
    comparison_net_income: Decimal | None = None

    @property
    def total_revenue(self) -> Decimal:
        return self.revenue.total

    @property
    def total_expenses(self) -> Decimal:
        return self.expenses.total

    @property
    def has_comparison(self) -> bool:
        return self.comparison_net_income is not None


# =========================================================================
# Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Point-in-time balance sheet.

    ``total_equity`` includes the derived retained earnings, so the
    sheet balances when ``total_assets == total_liabilities_and_equity``.
    """

    metadata: ReportMetadata
    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    retained_earnings: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool
    comparison_retained_earnings: Decimal | None = None
    comparison_total_equity: Decimal | None = None
    comparison_total_liabilities_and_equity: Decimal | None = None

    @property
    def total_assets(self) -> Decimal:
        return self.assets.total

    @property
    def total_liabilities(self) -> Decimal:
        return self.liabilities.total


# =========================================================================
# General Ledger
# =========================================================================


@dataclass(frozen=True)
class GeneralLedgerAccount:
    """One account's opening balance, period activity and closing balance."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: str
    opening_balance: Decimal
    lines: tuple[ActivityLine, ...]
    closing_balance: Decimal

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class GeneralLedgerReport:
    """Per-account line history for a period."""

    metadata: ReportMetadata
    accounts: tuple[GeneralLedgerAccount, ...]

    def account(self, account_id: UUID) -> GeneralLedgerAccount | None:
        for item in self.accounts:
            if item.account_id == account_id:
                return item
        return None


# =========================================================================
# AR / AP Aging
# =========================================================================


@dataclass(frozen=True)
class AgingBucketTotal:
    """Amount and document count in one bucket."""

    label: str
    amount: Decimal
    count: int


@dataclass(frozen=True)
class AgingCounterpartyRow:
    """A customer's (AR) or vendor's (AP) amounts across buckets."""

    counterparty_id: UUID | None
    counterparty_name: str | None
    amounts: tuple[Decimal, ...]  # aligned with AgingSummary.buckets
    total: Decimal


@dataclass(frozen=True)
class AgingDetailLine:
    """One open document contributing to the aging."""

    document_id: UUID
    number: str
    counterparty_name: str | None
    document_date: date
    due_date: date
    total: Decimal
    amount_due: Decimal
    days_overdue: int
    bucket: str


@dataclass(frozen=True)
class AgingSummary:
    """
    AR or AP aging report.

    ``total`` equals the sum of bucket amounts, of counterparty totals,
    and of detail amounts due.
    """

    metadata: ReportMetadata
    periods: tuple[int, ...]
    buckets: tuple[AgingBucketTotal, ...]
    total: Decimal
    by_counterparty: tuple[AgingCounterpartyRow, ...]
    details: tuple[AgingDetailLine, ...]

    def bucket(self, label: str) -> AgingBucketTotal | None:
        for item in self.buckets:
            if item.label == label:
                return item
        return None
