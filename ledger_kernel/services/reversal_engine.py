"""
ReversalEngine -- correcting entries that negate a prior entry.

Responsibility:
    Loads the target entry and delegates the mechanical line-flip to
    LedgerEntryPoster.write_reversal().  The original entry is left
    untouched; reports see the superposition of both.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes LedgerEntryPoster.

Invariants enforced:
    - The original entry is never mutated (not voided, not flagged).
    - The reversing entry is MANUAL-sourced, numbered by the normal
      allocation path, and points at the original via reversed_entry_id.

Failure modes:
    - EntryNotFoundError: target entry not in this tenant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.config import LedgerConfig
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import EntryNotFoundError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.entry_poster import LedgerEntryPoster

logger = get_logger("services.reversal")


@dataclass(frozen=True)
class ReversalResult:
    """Immutable result of a successful reversal."""

    original_entry_id: UUID
    reversal_entry_id: UUID
    reversal_entry_number: int
    entry_date: date


class ReversalEngine(BaseService):
    """
    Creates reversing entries.

    Contract:
        ``reverse(entry_id, reverse_date=None)`` writes a new entry with
        every debit and credit swapped, dated ``reverse_date`` or today by
        the injected clock.

    Non-goals:
        - Does NOT refuse voided or already-reversed targets; a reversal
          of a voided entry is itself a valid (if unusual) correction.
        - Does NOT do partial, line-level reversals.
    """

    def __init__(
        self,
        session: Session,
        tenant_id: UUID,
        poster: LedgerEntryPoster | None = None,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        super().__init__(session, tenant_id)
        self._clock = clock or SystemClock()
        self._poster = poster or LedgerEntryPoster(
            session, tenant_id, clock=self._clock, config=config
        )

    def reverse(
        self,
        entry_id: UUID,
        reverse_date: date | None = None,
        actor_id: UUID | None = None,
    ) -> ReversalResult:
        """
        Reverse an entry.

        Postconditions:
            - A new posted entry exists with is_reversing=True,
              reversed_entry_id=entry_id and memo
              ``"Reversal of Entry #<n>"``.

        Raises:
            EntryNotFoundError: Entry not in this tenant.
        """
        original = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.id == entry_id,
                JournalEntry.tenant_id == self.tenant_id,
            )
        ).scalar_one_or_none()
        if original is None:
            logger.warning("reversal_target_not_found", extra={"entry_id": str(entry_id)})
            raise EntryNotFoundError(str(entry_id))

        reversal_date = reverse_date or self._clock.today()
        reversal = self._poster.write_reversal(original, reversal_date, actor_id)

        with LogContext.bind(entry_id=str(reversal.id)):
            logger.info(
                "reversal_completed",
                extra={
                    "original_entry_id": str(original.id),
                    "original_entry_number": original.entry_number,
                    "reversal_entry_number": reversal.entry_number,
                    "entry_date": reversal_date,
                    "original_was_posted": original.is_posted,
                },
            )

        return ReversalResult(
            original_entry_id=original.id,
            reversal_entry_id=reversal.id,
            reversal_entry_number=reversal.entry_number,
            entry_date=reversal_date,
        )
