"""
LedgerEntryPoster -- validated, atomic journal posting for one tenant.

Responsibility:
    Validates a set of journal lines, allocates the tenant's next entry
    number and persists the entry together with all of its lines.  Also
    owns the two correction paths that touch an existing entry (update and
    void of MANUAL entries) and the mechanical write of reversing entries
    for ReversalEngine.

Architecture position:
    Kernel > Services -- imperative shell.  Delegates entry-number
    allocation to SequenceService.  Called by LedgerOrchestrator and
    ReversalEngine.

Invariants enforced:
    - Validation order: (a) every account exists in the tenant and is
      active, (b) every line carries exactly one non-negative side,
      (c) total debits equal total credits within the configured tolerance.
    - Entry and lines are flushed together inside one savepoint; a failed
      insert leaves nothing behind.
    - Entry numbers are unique per tenant.  A unique-constraint collision
      is retried with a fresh number, up to entry_number_max_attempts.
    - Only MANUAL entries may be updated or voided.  Entries are never
      deleted.

Failure modes:
    - InsufficientLinesError, InvalidAccountError, InvalidLineError,
      UnbalancedEntryError: rejected input, nothing persisted.
    - EntryNotFoundError: entry not in this tenant.
    - NonManualEntryError: update/void of an externally sourced entry.
    - EntryNumberAllocationError: collision retries exhausted.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.config import LedgerConfig
from ledger_kernel.db.types import ZERO, within_tolerance
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import JournalEntryInfo, LineSpec
from ledger_kernel.exceptions import (
    EntryNotFoundError,
    EntryNumberAllocationError,
    InsufficientLinesError,
    InvalidAccountError,
    InvalidLineError,
    NonManualEntryError,
    UnbalancedEntryError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalLine, JournalSource
from ledger_kernel.selectors.journal_selector import to_entry_info
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.entry_poster")

MINIMUM_LINES = 2

ENTRY_NUMBER_CONSTRAINT = "uq_journal_tenant_number"

# Distinguishes "leave unchanged" from "set to None"
_UNSET: Any = object()


def is_entry_number_collision(exc: IntegrityError) -> bool:
    """
    True when ``exc`` is a violation of the per-tenant entry-number key.

    PostgreSQL reports the constraint name through psycopg2's ``diag``;
    SQLite only names the columns in its message.
    """
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint is not None:
        return constraint == ENTRY_NUMBER_CONSTRAINT
    message = str(exc.orig)
    return (
        ENTRY_NUMBER_CONSTRAINT in message
        or "journal_entries.tenant_id, journal_entries.entry_number" in message
    )


class LedgerEntryPoster(BaseService):
    """
    The sole write path for journal entries.

    Contract:
        ``post()`` receives a pre-balanced list of LineSpec values from a
        collaborator (invoice, bill, payment, bank import, or a manual
        journal) and returns the persisted entry as a JournalEntryInfo.

    Guarantees:
        - An entry that fails validation persists nothing.
        - A returned entry is balanced within tolerance and numbered.

    Non-goals:
        - Does NOT commit; the caller owns the transaction.
        - Does NOT resolve system accounts; collaborators pass account ids.
    """

    def __init__(
        self,
        session: Session,
        tenant_id: UUID,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        super().__init__(session, tenant_id)
        self._clock = clock or SystemClock()
        self._config = config or LedgerConfig.with_defaults()
        self._sequence = SequenceService(session)

    # =========================================================================
    # Public API
    # =========================================================================

    def post(
        self,
        entry_date: date,
        lines: Sequence[LineSpec],
        source: JournalSource = JournalSource.MANUAL,
        source_id: str | None = None,
        memo: str | None = None,
        reference: str | None = None,
        is_adjusting: bool = False,
        actor_id: UUID | None = None,
    ) -> JournalEntryInfo:
        """
        Validate and persist a journal entry with all of its lines.

        Preconditions:
            - ``lines`` is balanced (callers pre-balance).
            - Every referenced account is active in this tenant.

        Postconditions:
            - The entry and all lines are flushed in one unit, numbered one
              above the tenant's highest entry number, with is_posted=True.

        Raises:
            InsufficientLinesError: Fewer than two lines.
            InvalidAccountError: Account missing from the tenant or inactive.
            InvalidLineError: A line with both, neither, or a negative side.
            UnbalancedEntryError: Debits and credits differ beyond tolerance.
            EntryNumberAllocationError: Numbering retries exhausted.
        """
        source = JournalSource(source)
        self._validate_lines(lines)

        def build(entry_number: int) -> JournalEntry:
            entry = JournalEntry(
                tenant_id=self.tenant_id,
                entry_number=entry_number,
                entry_date=entry_date,
                source=source.value,
                source_id=source_id,
                memo=memo,
                reference=reference,
                is_adjusting=is_adjusting,
                is_posted=True,
                is_reversing=False,
                created_by_id=actor_id,
            )
            entry.lines = self._build_lines(lines, actor_id)
            return entry

        entry = self._write_entry(build)

        with LogContext.bind(entry_id=str(entry.id)):
            logger.info(
                "journal_entry_posted",
                extra={
                    "entry_number": entry.entry_number,
                    "entry_date": entry_date,
                    "source": source.value,
                    "source_id": source_id,
                    "line_count": len(lines),
                    "total_debits": entry.total_debits,
                },
            )
        return to_entry_info(entry)

    def update(
        self,
        entry_id: UUID,
        lines: Sequence[LineSpec] | None = None,
        *,
        entry_date: date | None = None,
        memo: str | None = _UNSET,
        reference: str | None = _UNSET,
    ) -> JournalEntryInfo:
        """
        Edit a MANUAL entry.

        When ``lines`` is given, the whole previous line set is discarded
        and replaced by the new one, which goes through the same validation
        as ``post()``.  Header fields change only when passed.

        Raises:
            EntryNotFoundError: Entry not in this tenant.
            NonManualEntryError: The entry came from an external source.
            (plus every validation error of ``post()`` when lines are given)
        """
        entry = self._load_entry(entry_id)
        self._require_manual(entry, "edited")

        if lines is not None:
            self._validate_lines(lines)
            # delete-orphan cascade drops the old set in the same flush
            entry.lines = self._build_lines(lines, None)
        if entry_date is not None:
            entry.entry_date = entry_date
        if memo is not _UNSET:
            entry.memo = memo
        if reference is not _UNSET:
            entry.reference = reference

        self.session.flush()

        with LogContext.bind(entry_id=str(entry.id)):
            logger.info(
                "journal_entry_updated",
                extra={
                    "entry_number": entry.entry_number,
                    "lines_replaced": lines is not None,
                },
            )
        return to_entry_info(entry)

    def void(self, entry_id: UUID) -> JournalEntryInfo:
        """
        Void a MANUAL entry by flipping ``is_posted`` to False.

        The entry and its lines stay in place for history; they simply
        stop counting toward balances.  Voiding twice is a no-op.

        Raises:
            EntryNotFoundError: Entry not in this tenant.
            NonManualEntryError: The entry came from an external source and
                must be voided through the owning transaction.
        """
        entry = self._load_entry(entry_id)
        self._require_manual(entry, "voided")

        if entry.is_posted:
            entry.is_posted = False
            self.session.flush()

        with LogContext.bind(entry_id=str(entry.id)):
            logger.info(
                "journal_entry_voided",
                extra={"entry_number": entry.entry_number},
            )
        return to_entry_info(entry)

    def write_reversal(
        self,
        original: JournalEntry,
        reversal_date: date,
        actor_id: UUID | None = None,
    ) -> JournalEntry:
        """
        Persist the mechanical mirror of ``original``.

        Every line's debit and credit are swapped; line memo and
        customer/vendor tags are kept.  Accounts are not re-validated:
        a reversal must stay possible after an account is deactivated.

        Preconditions:
            - ``original`` belongs to this tenant (ReversalEngine loads it).
        """

        def build(entry_number: int) -> JournalEntry:
            entry = JournalEntry(
                tenant_id=self.tenant_id,
                entry_number=entry_number,
                entry_date=reversal_date,
                source=JournalSource.MANUAL.value,
                memo=f"Reversal of Entry #{original.entry_number}",
                reference=original.reference,
                is_adjusting=False,
                is_posted=True,
                is_reversing=True,
                reversed_entry_id=original.id,
                created_by_id=actor_id,
            )
            entry.lines = [
                JournalLine(
                    line_number=line.line_number,
                    account_id=line.account_id,
                    debit=line.credit,
                    credit=line.debit,
                    memo=line.memo,
                    customer_id=line.customer_id,
                    vendor_id=line.vendor_id,
                    created_by_id=actor_id,
                )
                for line in original.lines
            ]
            return entry

        return self._write_entry(build)

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate_lines(self, lines: Sequence[LineSpec]) -> None:
        if len(lines) < MINIMUM_LINES:
            logger.warning(
                "journal_entry_rejected",
                extra={"reason": "insufficient_lines", "line_count": len(lines)},
            )
            raise InsufficientLinesError(len(lines), MINIMUM_LINES)

        # (a) accounts
        accounts = self._load_accounts({line.account_id for line in lines})
        for line in lines:
            account = accounts.get(line.account_id)
            if account is None:
                logger.warning(
                    "journal_entry_rejected",
                    extra={"reason": "account_not_found", "account_id": str(line.account_id)},
                )
                raise InvalidAccountError(str(line.account_id), "not found")
            if not account.is_active:
                logger.warning(
                    "journal_entry_rejected",
                    extra={"reason": "account_inactive", "account_code": account.code},
                )
                raise InvalidAccountError(account.code, "is inactive")

        # (b) one side per line
        for index, line in enumerate(lines):
            reason = self._line_problem(line.debit, line.credit)
            if reason is not None:
                logger.warning(
                    "journal_entry_rejected",
                    extra={"reason": "invalid_line", "line_index": index},
                )
                raise InvalidLineError(index, reason)

        # (c) balance
        total_debits = sum((line.debit for line in lines), ZERO)
        total_credits = sum((line.credit for line in lines), ZERO)
        if not within_tolerance(total_debits, total_credits, self._config.balance_tolerance):
            logger.warning(
                "journal_entry_rejected",
                extra={
                    "reason": "unbalanced",
                    "total_debits": total_debits,
                    "total_credits": total_credits,
                },
            )
            raise UnbalancedEntryError(total_debits, total_credits)

    @staticmethod
    def _line_problem(debit: Decimal, credit: Decimal) -> str | None:
        if debit < ZERO or credit < ZERO:
            return "Amounts cannot be negative"
        if debit > ZERO and credit > ZERO:
            return "A line cannot have both debit and credit"
        if debit == ZERO and credit == ZERO:
            return "Each line must have either a debit or credit amount"
        return None

    def _load_accounts(self, account_ids: set[UUID]) -> dict[UUID, Account]:
        rows = self.session.execute(
            select(Account).where(
                Account.tenant_id == self.tenant_id,
                Account.id.in_(account_ids),
            )
        ).scalars()
        return {account.id: account for account in rows}

    # =========================================================================
    # Persistence
    # =========================================================================

    @staticmethod
    def _build_lines(
        lines: Sequence[LineSpec],
        actor_id: UUID | None,
    ) -> list[JournalLine]:
        return [
            JournalLine(
                line_number=index + 1,
                account_id=spec.account_id,
                debit=spec.debit,
                credit=spec.credit,
                memo=spec.memo,
                customer_id=spec.customer_id,
                vendor_id=spec.vendor_id,
                created_by_id=actor_id,
            )
            for index, spec in enumerate(lines)
        ]

    def _write_entry(self, build: Callable[[int], JournalEntry]) -> JournalEntry:
        """
        Insert the entry built for a freshly allocated number.

        Each attempt runs in its own savepoint so that a lost numbering
        race rolls back only the entry and its lines, never the caller's
        other work.
        """
        attempts = self._config.entry_number_max_attempts
        for attempt in range(1, attempts + 1):
            entry_number = self._sequence.next_entry_number(self.tenant_id)
            savepoint = self.session.begin_nested()
            try:
                entry = build(entry_number)
                self.session.add(entry)
                self.session.flush()
            except IntegrityError as exc:
                savepoint.rollback()
                if not is_entry_number_collision(exc):
                    raise
                logger.warning(
                    "entry_number_collision_retry",
                    extra={"entry_number": entry_number, "attempt": attempt},
                )
                continue
            savepoint.commit()
            return entry

        logger.error(
            "entry_number_allocation_exhausted",
            extra={"attempts": attempts},
        )
        raise EntryNumberAllocationError(str(self.tenant_id), attempts)

    def _load_entry(self, entry_id: UUID) -> JournalEntry:
        entry = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.id == entry_id,
                JournalEntry.tenant_id == self.tenant_id,
            )
        ).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    @staticmethod
    def _require_manual(entry: JournalEntry, operation: str) -> None:
        if not entry.is_manual:
            source = JournalSource(entry.source)
            logger.warning(
                "non_manual_entry_rejected",
                extra={
                    "entry_id": str(entry.id),
                    "source": source.value,
                    "operation": operation,
                },
            )
            raise NonManualEntryError(str(entry.id), source.value, operation)
