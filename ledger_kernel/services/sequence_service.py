"""
SequenceService -- per-tenant entry-number allocation via locked counter rows.

Responsibility:
    Hands out the next journal entry number for a tenant.  A named counter
    row (``journal_entry:<tenant>``) is locked with ``SELECT ... FOR UPDATE``
    so that concurrent posters for the same tenant serialize on it.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by LedgerEntryPoster for every new entry, reversals included.

Invariants enforced:
    - Entry numbers are strictly increasing per tenant and never reused.
      The next value is one above the larger of the counter and the highest
      stored entry number, so entries written before the counter existed
      (imports, restores) are never collided with.
    - Transactional: the increment is only visible after the caller's
      transaction commits.  Rollback returns the value.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and re-select).
    - On backends without row locks (SQLite) two writers may still pick the
      same number; the (tenant_id, entry_number) unique constraint catches
      it and LedgerEntryPoster retries.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Service for generating per-tenant journal entry numbers.

    Contract:
        ``next_entry_number(tenant_id)`` returns an integer strictly greater
        than every entry number already stored for the tenant.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT guarantee gap-free numbering: a savepoint that loses a
          collision race burns its number.
    """

    JOURNAL_ENTRY = "journal_entry"

    def __init__(self, session: Session):
        self._session = session

    @classmethod
    def counter_name(cls, tenant_id: UUID) -> str:
        return f"{cls.JOURNAL_ENTRY}:{tenant_id}"

    def next_entry_number(self, tenant_id: UUID) -> int:
        """
        Allocate the next entry number for a tenant.

        Preconditions:
            - The caller is within an active database transaction.

        Postconditions:
            - Returns an integer > 0 above every stored entry number for the
              tenant.
            - The counter row is locked until the transaction completes.
        """
        name = self.counter_name(tenant_id)
        counter = self._lock_counter(name)

        if counter is None:
            # First use for this tenant; another transaction may be creating
            # the same row, so isolate the insert in a savepoint
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=name, current_value=0)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": name},
                )
                savepoint.rollback()
                counter = self._lock_counter(name)
                if counter is None:
                    raise

        highest = self._session.execute(
            select(func.max(JournalEntry.entry_number)).where(
                JournalEntry.tenant_id == tenant_id
            )
        ).scalar()

        value = max(counter.current_value, highest or 0) + 1
        counter.current_value = value
        self._session.flush()

        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": name, "value": value},
        )
        return value

    def current_value(self, tenant_id: UUID) -> int | None:
        """Last allocated number for the tenant, or None if never allocated."""
        counter = self._session.execute(
            select(SequenceCounter).where(
                SequenceCounter.name == self.counter_name(tenant_id)
            )
        ).scalar_one_or_none()

        return counter.current_value if counter else None

    def _lock_counter(self, name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
