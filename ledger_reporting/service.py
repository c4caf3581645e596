"""
Report Engine (``ledger_reporting.service``).

Responsibility
--------------
Orchestrates report generation -- trial balance, profit and loss, balance
sheet, general ledger, and AR/AP aging -- by bridging the kernel
selectors (``AccountSelector``, ``BalanceCalculator``, ``JournalSelector``,
``DocumentSelector``) to the pure transformation functions in
``statements.py`` and the aging engine.  This is a **read-only** service:
no journal entries are written.

Architecture position
---------------------
**Reporting layer** -- thin glue.  ``ReportEngine`` is the sole public
entry point for report generation.  Constructor: ``session`` +
``tenant_id`` + ``clock`` + ``config``.

Invariants enforced
-------------------
* Read-only -- no mutations to the journal.
* All monetary amounts use ``Decimal`` -- NEVER ``float``.
* Statements list active accounts plus inactive accounts that still
  carry an amount, so deactivating an account never unbalances them.
* Reports never degrade partially: any failing sub-query fails the call.

Failure modes
-------------
* ``InvalidDateRangeError`` -- start after end, or half a comparison
  period.
* ``InvalidAgingPeriodsError`` -- bad aging boundaries.
* ``AccountNotFoundError`` -- general ledger filtered to a foreign or
  unknown account.

Audit relevance
---------------
Structured log events are emitted for every report generation, carrying
report type, period and headline totals.  An out-of-balance trial
balance or balance sheet is logged at WARNING.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_engines.aging import AgingCalculator, build_buckets
from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.exceptions import AccountNotFoundError, InvalidDateRangeError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import AccountType
from ledger_kernel.models.document import DocumentKind
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.balance_calculator import BalanceCalculator, validate_range
from ledger_kernel.selectors.document_selector import DocumentSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_reporting.config import ReportingConfig
from ledger_reporting.models import (
    AgingSummary,
    BalanceSheetReport,
    GeneralLedgerReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from ledger_reporting.statements import (
    build_aging_summary,
    build_balance_sheet,
    build_general_ledger,
    build_profit_and_loss,
    build_trial_balance,
    render_to_dict,
)

logger = get_logger("reporting.service")

PROFIT_AND_LOSS_TYPES = (AccountType.REVENUE, AccountType.EXPENSE)
BALANCE_SHEET_TYPES = (AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY)


class ReportEngine:
    """
    Ledger report generation service.

    Contract
    --------
    * Every public method returns a typed, frozen report DTO.
    * All methods are **read-only** and run inside the caller's session,
      so one report reads through a single transaction.

    Guarantees
    ----------
    * Report assembly delegates to pure functions in ``statements.py``;
      this class only loads data.
    * Clock is injectable for deterministic ``generated_at`` stamps.
    """

    def __init__(
        self,
        session: Session,
        tenant_id: UUID,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._tenant_id = tenant_id
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._accounts = AccountSelector(session, tenant_id)
        self._balances = BalanceCalculator(session, tenant_id)
        self._journal = JournalSelector(session, tenant_id)
        self._documents = DocumentSelector(session, tenant_id)
        self._aging = AgingCalculator()

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _metadata(self, report_type: ReportType, as_of: date, **kwargs) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            entity_name=self._config.entity_name,
            as_of_date=as_of,
            generated_at=self._clock.now().isoformat(),
            **kwargs,
        )

    @staticmethod
    def _reportable(
        accounts: Sequence[AccountInfo],
        *amounts: dict[UUID, Decimal] | None,
    ) -> list[AccountInfo]:
        """Active accounts, plus inactive ones with a nonzero amount in any column."""
        return [
            account
            for account in accounts
            if account.is_active
            or any(
                column.get(account.account_id, ZERO) != ZERO
                for column in amounts
                if column is not None
            )
        ]

    # =========================================================================
    # Trial Balance
    # =========================================================================

    def trial_balance(self, as_of: date) -> TrialBalanceReport:
        """
        Every account balance as of ``as_of`` in debit/credit columns, active
        or not; zero balances are dropped.
        """
        accounts = self._accounts.accounts()
        balances = self._balances.balances_as_of(accounts, as_of)

        report = build_trial_balance(
            self._reportable(accounts, balances),
            balances,
            self._config,
            self._metadata(ReportType.TRIAL_BALANCE, as_of),
        )

        logger.info(
            "trial_balance_generated",
            extra={
                "as_of_date": as_of.isoformat(),
                "line_count": len(report.lines),
                "total_debits": str(report.total_debits),
                "total_credits": str(report.total_credits),
                "is_balanced": report.is_balanced,
            },
        )
        if not report.is_balanced:
            logger.warning(
                "trial_balance_out_of_balance",
                extra={
                    "as_of_date": as_of.isoformat(),
                    "difference": str(report.difference),
                },
            )
        return report

    # =========================================================================
    # Profit & Loss
    # =========================================================================

    def profit_and_loss(
        self,
        start: date,
        end: date,
        compare_start: date | None = None,
        compare_end: date | None = None,
    ) -> ProfitAndLossReport:
        """
        Revenue and expense activity over [start, end], with an optional
        comparison period merged per account.

        Raises:
            InvalidDateRangeError: start > end, or only one comparison
                bound given.
        """
        validate_range(start, end)
        has_comparison = compare_start is not None or compare_end is not None
        if has_comparison:
            if compare_start is None or compare_end is None:
                raise InvalidDateRangeError(
                    compare_start, compare_end,
                    "comparison period needs both start and end",
                )
            validate_range(compare_start, compare_end)

        accounts = self._accounts.accounts(PROFIT_AND_LOSS_TYPES)
        activity = self._balances.balances_over_range(accounts, start, end)
        comparison = None
        if has_comparison:
            comparison = self._balances.balances_over_range(
                accounts, compare_start, compare_end,
            )

        report = build_profit_and_loss(
            self._reportable(accounts, activity, comparison),
            activity,
            self._metadata(
                ReportType.PROFIT_AND_LOSS,
                end,
                period_start=start,
                period_end=end,
                comparative_start=compare_start,
                comparative_end=compare_end,
            ),
            comparison,
        )

        logger.info(
            "profit_and_loss_generated",
            extra={
                "period_start": start.isoformat(),
                "period_end": end.isoformat(),
                "total_revenue": str(report.total_revenue),
                "total_expenses": str(report.total_expenses),
                "net_income": str(report.net_income),
                "has_comparison": has_comparison,
            },
        )
        return report

    # =========================================================================
    # Balance Sheet
    # =========================================================================

    def balance_sheet(
        self,
        as_of: date,
        compare_as_of: date | None = None,
    ) -> BalanceSheetReport:
        """
        Asset, liability and equity balances as of ``as_of`` plus the
        derived retained earnings.
        """
        accounts = self._accounts.accounts(BALANCE_SHEET_TYPES)
        balances = self._balances.balances_as_of(accounts, as_of)
        retained = self._balances.retained_earnings(as_of)

        comparison = None
        comparison_retained = None
        if compare_as_of is not None:
            comparison = self._balances.balances_as_of(accounts, compare_as_of)
            comparison_retained = self._balances.retained_earnings(compare_as_of)

        report = build_balance_sheet(
            self._reportable(accounts, balances, comparison),
            balances,
            retained,
            self._config,
            self._metadata(
                ReportType.BALANCE_SHEET, as_of, comparative_date=compare_as_of,
            ),
            comparison,
            comparison_retained,
        )

        logger.info(
            "balance_sheet_generated",
            extra={
                "as_of_date": as_of.isoformat(),
                "total_assets": str(report.total_assets),
                "total_liabilities_and_equity": str(report.total_liabilities_and_equity),
                "retained_earnings": str(report.retained_earnings),
                "is_balanced": report.is_balanced,
            },
        )
        if not report.is_balanced:
            logger.warning(
                "balance_sheet_out_of_balance",
                extra={
                    "as_of_date": as_of.isoformat(),
                    "total_assets": str(report.total_assets),
                    "total_liabilities_and_equity": str(
                        report.total_liabilities_and_equity
                    ),
                },
            )
        return report

    # =========================================================================
    # General Ledger
    # =========================================================================

    def general_ledger(
        self,
        start: date,
        end: date,
        account_id: UUID | None = None,
    ) -> GeneralLedgerReport:
        """
        Per-account activity over [start, end] with running balances.

        The opening balance is the balance at the end of the day before
        ``start``, so each closing balance equals the balance as of
        ``end``.  Without ``account_id``, accounts with activity or a
        nonzero opening balance are listed, active or not.  A requested account is
        always listed, even when quiet.

        Raises:
            InvalidDateRangeError: start > end.
            AccountNotFoundError: ``account_id`` not in this tenant.
        """
        validate_range(start, end)

        if account_id is not None:
            account = self._accounts.get(account_id)
            if account is None:
                raise AccountNotFoundError(str(account_id))
            accounts = [account]
        else:
            accounts = self._accounts.accounts()

        openings = self._balances.balances_before(accounts, start)
        lines = self._journal.ledger_lines(
            [a.account_id for a in accounts], start=start, end=end,
        )

        report = build_general_ledger(
            accounts,
            openings,
            lines,
            self._metadata(
                ReportType.GENERAL_LEDGER, end, period_start=start, period_end=end,
            ),
            always_include=account_id,
        )

        logger.info(
            "general_ledger_generated",
            extra={
                "period_start": start.isoformat(),
                "period_end": end.isoformat(),
                "account_id": str(account_id) if account_id else None,
                "account_count": len(report.accounts),
                "line_count": len(lines),
            },
        )
        return report

    # =========================================================================
    # Aging
    # =========================================================================

    def ar_aging(self, as_of: date, periods: Sequence[int] | None = None) -> AgingSummary:
        """Open invoices aged by days past due."""
        return self._aging_summary(DocumentKind.INVOICE, as_of, periods)

    def ap_aging(self, as_of: date, periods: Sequence[int] | None = None) -> AgingSummary:
        """Open bills aged by days past due."""
        return self._aging_summary(DocumentKind.BILL, as_of, periods)

    def _aging_summary(
        self,
        kind: DocumentKind,
        as_of: date,
        periods: Sequence[int] | None,
    ) -> AgingSummary:
        periods = tuple(periods) if periods is not None else self._config.default_aging_periods
        buckets = build_buckets(periods)

        documents = self._documents.open_documents(kind, as_of)
        items = [
            self._aging.age_item(
                document_id=doc.document_id,
                document_type=kind.value,
                number=doc.number,
                document_date=doc.document_date,
                due_date=doc.due_date,
                amount=doc.amount_due,
                as_of_date=as_of,
                counterparty_id=doc.counterparty_id,
                counterparty_name=doc.counterparty_name,
                buckets=buckets,
            )
            for doc in documents
        ]

        is_receivable = kind == DocumentKind.INVOICE
        aging = self._aging.generate_report(
            items, as_of, buckets, report_type="AR" if is_receivable else "AP",
        )
        return build_aging_summary(
            aging,
            documents,
            self._metadata(
                ReportType.AR_AGING if is_receivable else ReportType.AP_AGING, as_of,
            ),
            periods,
        )

    # =========================================================================
    # Rendering
    # =========================================================================

    def to_dict(self, report: object) -> dict:
        """
        Convert any report to a JSON-serializable dict.

        Delegates to the pure render_to_dict function.
        """
        return render_to_dict(report)
