"""
ledger_services.ledger_orchestrator -- The ledger's boundary contract.

Responsibility:
    Creates every kernel service and the report engine exactly once per
    unit of work and exposes the single surface that invoice, bill,
    payment and bank-import collaborators call: posting, system-account
    resolution, balances, reports, and the correction operations.

Architecture position:
    Services -- stateful orchestration over kernel + reporting.
    This module sits at the top of the stack and is the only place where
    kernel services are constructed and composed.

Invariants enforced:
    - Single-instance lifecycle: all services share one Session, one
      tenant, one Clock and one configuration.
    - Transaction ownership: the orchestrator never commits;
      ``run_in_transaction`` is the only helper that does, through
      ``session_scope``.

Failure modes:
    - Kernel errors propagate unchanged (typed LedgerKernelError).
    - ``run_in_transaction`` wraps SQLAlchemyError in StorageError after
      the transaction has been rolled back.

Usage:
    from ledger_services.ledger_orchestrator import run_in_transaction

    entry = run_in_transaction(
        session_factory,
        tenant_id,
        lambda ledger: ledger.post(date(2024, 1, 10), lines, memo="Sale"),
    )
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from decimal import Decimal
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.config import LedgerConfig
from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import AccountInfo, JournalEntryInfo, LineSpec
from ledger_kernel.exceptions import StorageError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import AccountSubType
from ledger_kernel.models.journal import JournalSource
from ledger_kernel.selectors.balance_calculator import BalanceCalculator
from ledger_kernel.services.chart_of_accounts import ChartOfAccounts
from ledger_kernel.services.entry_poster import LedgerEntryPoster
from ledger_kernel.services.reversal_engine import ReversalEngine, ReversalResult
from ledger_reporting.config import ReportingConfig
from ledger_reporting.models import (
    AgingSummary,
    BalanceSheetReport,
    GeneralLedgerReport,
    ProfitAndLossReport,
    TrialBalanceReport,
)
from ledger_reporting.service import ReportEngine

logger = get_logger("services.ledger")

T = TypeVar("T")


class LedgerOrchestrator:
    """Facade over the ledger core for one tenant and one session.

    Contract:
        Receives a SQLAlchemy Session, the tenant id, and optional
        Clock/LedgerConfig.  Constructs ChartOfAccounts, LedgerEntryPoster,
        ReversalEngine, BalanceCalculator and ReportEngine once and
        delegates every operation to them.

    Non-goals:
        - Does NOT manage transaction boundaries (caller's responsibility).
        - Does NOT memoize system-account lookups; each call re-reads.
    """

    def __init__(
        self,
        session: Session,
        tenant_id: UUID,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ) -> None:
        self._session = session
        self._tenant_id = tenant_id
        self._clock = clock or SystemClock()
        self._config = config or LedgerConfig.with_defaults()

        self.chart = ChartOfAccounts(session, tenant_id)
        self.poster = LedgerEntryPoster(session, tenant_id, self._clock, self._config)
        self.reversals = ReversalEngine(
            session, tenant_id, poster=self.poster, clock=self._clock, config=self._config,
        )
        self.balances = BalanceCalculator(session, tenant_id)
        self.reports = ReportEngine(
            session,
            tenant_id,
            self._clock,
            ReportingConfig.from_ledger_config(self._config),
        )

    @property
    def tenant_id(self) -> UUID:
        return self._tenant_id

    # =========================================================================
    # Write surface
    # =========================================================================

    def post(
        self,
        entry_date: date,
        lines: Sequence[LineSpec],
        source: JournalSource = JournalSource.MANUAL,
        source_id: str | None = None,
        memo: str | None = None,
        reference: str | None = None,
        **kwargs: Any,
    ) -> JournalEntryInfo:
        """The sole write entry point; callers must pre-balance their lines."""
        return self.poster.post(
            entry_date,
            lines,
            source=source,
            source_id=source_id,
            memo=memo,
            reference=reference,
            **kwargs,
        )

    def get_system_account(self, sub_type: AccountSubType) -> AccountInfo:
        return self.chart.get_system_account(sub_type)

    # =========================================================================
    # Read surface
    # =========================================================================

    def balance_as_of(self, account_id: UUID, as_of: date) -> Decimal:
        return self.balances.balance_as_of(account_id, as_of)

    def balance_over_range(self, account_id: UUID, start: date, end: date) -> Decimal:
        return self.balances.balance_over_range(account_id, start, end)

    def get_general_ledger(
        self,
        start: date,
        end: date,
        account_id: UUID | None = None,
    ) -> GeneralLedgerReport:
        return self.reports.general_ledger(start, end, account_id)

    def get_trial_balance(self, as_of: date) -> TrialBalanceReport:
        return self.reports.trial_balance(as_of)

    def get_profit_and_loss(
        self,
        start: date,
        end: date,
        compare_start: date | None = None,
        compare_end: date | None = None,
    ) -> ProfitAndLossReport:
        return self.reports.profit_and_loss(start, end, compare_start, compare_end)

    def get_balance_sheet(
        self,
        as_of: date,
        compare_as_of: date | None = None,
    ) -> BalanceSheetReport:
        return self.reports.balance_sheet(as_of, compare_as_of)

    def get_ar_aging(self, as_of: date, periods: Sequence[int] | None = None) -> AgingSummary:
        return self.reports.ar_aging(as_of, periods)

    def get_ap_aging(self, as_of: date, periods: Sequence[int] | None = None) -> AgingSummary:
        return self.reports.ap_aging(as_of, periods)

    # =========================================================================
    # Correction surface
    # =========================================================================

    def update(
        self,
        entry_id: UUID,
        lines: Sequence[LineSpec] | None = None,
        **changes: Any,
    ) -> JournalEntryInfo:
        """Edit a manual entry; ``changes`` may carry entry_date, memo, reference."""
        return self.poster.update(entry_id, lines, **changes)

    def void(self, entry_id: UUID) -> JournalEntryInfo:
        return self.poster.void(entry_id)

    def reverse(
        self,
        entry_id: UUID,
        reverse_date: date | None = None,
        actor_id: UUID | None = None,
    ) -> ReversalResult:
        return self.reversals.reverse(entry_id, reverse_date, actor_id)


def build_ledger_orchestrator(
    session: Session,
    tenant_id: UUID,
    clock: Clock | None = None,
    config: LedgerConfig | None = None,
) -> LedgerOrchestrator:
    """Build a LedgerOrchestrator with the shared clock and configuration."""
    return LedgerOrchestrator(session, tenant_id, clock=clock, config=config)


def run_in_transaction(
    session_factory: sessionmaker[Session],
    tenant_id: UUID,
    fn: Callable[[LedgerOrchestrator], T],
    clock: Clock | None = None,
    config: LedgerConfig | None = None,
) -> T:
    """
    Execute one request-scoped unit of work.

    ``fn`` receives an orchestrator bound to a fresh session.  The
    session commits when ``fn`` returns and rolls back when it raises.
    Kernel errors propagate unchanged; database failures surface as
    StorageError.
    """
    with LogContext.bind(tenant_id=str(tenant_id)):
        try:
            with session_scope(session_factory) as session:
                ledger = build_ledger_orchestrator(session, tenant_id, clock, config)
                return fn(ledger)
        except SQLAlchemyError as exc:
            logger.error(
                "ledger_storage_failure",
                extra={"error_type": type(exc).__name__},
                exc_info=True,
            )
            raise StorageError(getattr(fn, "__name__", "unit_of_work"), str(exc)) from exc
