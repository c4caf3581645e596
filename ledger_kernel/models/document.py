"""
Module: ledger_kernel.models.document
Responsibility: Read model for open receivable and payable documents
    (invoices and bills) -- the input of the AR/AP aging reports.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invoice issuance and bill entry are external collaborators: they own the
document lifecycle and keep status/amount_due current.  The core only
reads these rows.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TenantScopedMixin, TrackedBase, UUIDString


class DocumentKind(str, Enum):
    """Receivable (invoice) or payable (bill)."""

    INVOICE = "invoice"
    BILL = "bill"


class DocumentStatus(str, Enum):
    """Lifecycle status maintained by the owning module."""

    DRAFT = "draft"
    SENT = "sent"
    RECEIVED = "received"
    PARTIAL = "partial"
    OVERDUE = "overdue"
    PAID = "paid"
    VOID = "void"


OPEN_STATUSES: dict[DocumentKind, frozenset[DocumentStatus]] = {
    DocumentKind.INVOICE: frozenset(
        {DocumentStatus.SENT, DocumentStatus.PARTIAL, DocumentStatus.OVERDUE}
    ),
    DocumentKind.BILL: frozenset(
        {DocumentStatus.RECEIVED, DocumentStatus.PARTIAL, DocumentStatus.OVERDUE}
    ),
}


class SubledgerDocument(TenantScopedMixin, TrackedBase):
    """An invoice or bill with its outstanding amount."""

    __tablename__ = "subledger_documents"

    __table_args__ = (
        Index("idx_document_open", "tenant_id", "kind", "status", "due_date"),
    )

    kind: Mapped[DocumentKind] = mapped_column(
        String(10),
        nullable=False,
    )

    number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # Customer for invoices, vendor for bills
    counterparty_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    counterparty_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    document_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    due_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    status: Mapped[DocumentStatus] = mapped_column(
        String(10),
        nullable=False,
    )

    total: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    amount_due: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SubledgerDocument {self.kind} {self.number} due={self.amount_due}>"
