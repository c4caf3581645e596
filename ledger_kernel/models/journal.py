"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and journal lines -- the
    double-entry record from which every balance and report is derived.
Architecture position: Kernel > Models.  May import from db/base.py and
    models/account.py.  MUST NOT import from services/, selectors/, or
    outer layers.

Invariants enforced:
    - (tenant_id, entry_number) is unique (uq_journal_tenant_number).  The
      constraint is the backstop for the locked entry-number allocation.
    - debit >= 0 and credit >= 0 on every line (CHECK constraints).
    - Entries are never physically deleted: void flips is_posted to False.

Failure modes:
    - IntegrityError on duplicate (tenant_id, entry_number) under a lost
      allocation race; LedgerEntryPoster retries with a fresh number.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantScopedMixin, TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class JournalSource(str, Enum):
    """Closed set of producers that may post journal entries."""

    MANUAL = "manual"
    INVOICE = "invoice"
    BILL = "bill"
    CUSTOMER_PAYMENT = "customer_payment"
    BILL_PAYMENT = "bill_payment"
    BANK_IMPORT = "bank_import"


class JournalEntry(TenantScopedMixin, TrackedBase):
    """
    Journal entry header -- the atomic unit of double-entry accounting.

    Contract:
        Created only by LedgerEntryPoster, together with all of its lines,
        in one flush.  Mutated only by update (MANUAL entries) and void.

    Guarantees:
        - entry_number is unique per tenant and never reused.
        - A reversing entry points at its original via reversed_entry_id.

    Non-goals:
        - This model does NOT enforce balance at the ORM level; enforcement
          lives in LedgerEntryPoster.  is_balanced is a read-side check.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("tenant_id", "entry_number", name="uq_journal_tenant_number"),
        Index("idx_journal_tenant_date", "tenant_id", "entry_date"),
        Index("idx_journal_source", "tenant_id", "source", "source_id"),
    )

    entry_number: Mapped[int] = mapped_column(
        nullable=False,
    )

    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    source: Mapped[JournalSource] = mapped_column(
        String(20),
        nullable=False,
        default=JournalSource.MANUAL.value,
    )

    # Originating external record (invoice id, bill id, ...)
    source_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    memo: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    reference: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    is_adjusting: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # False means voided; lines stop counting toward balances
    is_posted: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    is_reversing: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    reversed_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalLine.line_number",
    )

    reversed_entry: Mapped["JournalEntry | None"] = relationship(
        remote_side="JournalEntry.id",
        foreign_keys=[reversed_entry_id],
    )

    def __repr__(self) -> str:
        return f"<JournalEntry #{self.entry_number} posted={self.is_posted}>"

    @property
    def is_manual(self) -> bool:
        return JournalSource(self.source) == JournalSource.MANUAL

    @property
    def total_debits(self) -> Decimal:
        """Sum of all line debits."""
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        """Sum of all line credits."""
        return sum((line.credit for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        """Read-side check: total_debits == total_credits."""
        return self.total_debits == self.total_credits


class JournalLine(TrackedBase):
    """
    Individual debit or credit line within a journal entry.

    Contract:
        Exactly one of debit/credit is nonzero; both are non-negative.
        Immutable once its entry is posted, except that a MANUAL entry's
        whole line set may be replaced by LedgerEntryPoster.update().
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_line_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_line_credit_non_negative"),
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    # Position within the entry (deterministic ordering)
    line_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    debit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    credit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    memo: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    # Subledger attribution
    customer_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    vendor_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    entry: Mapped["JournalEntry"] = relationship(
        back_populates="lines",
    )

    account: Mapped["Account"] = relationship(
        back_populates="journal_lines",
    )

    def __repr__(self) -> str:
        return f"<JournalLine dr={self.debit} cr={self.credit}>"
