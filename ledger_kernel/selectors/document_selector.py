"""
Module: ledger_kernel.selectors.document_selector
Responsibility: Read the open receivable/payable documents that feed the
    AR and AP aging reports.
Architecture position: Kernel > Selectors.  Read-only over
    subledger_documents, which external collaborators maintain.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.models.document import OPEN_STATUSES, DocumentKind, SubledgerDocument
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class OpenDocument:
    """An invoice or bill with an outstanding amount."""

    document_id: UUID
    kind: str
    number: str
    counterparty_id: UUID
    counterparty_name: str
    document_date: date
    due_date: date
    status: str
    total: Decimal
    amount_due: Decimal


class DocumentSelector(BaseSelector):
    """Open-item queries for aging."""

    def open_documents(self, kind: DocumentKind, as_of: date) -> list[OpenDocument]:
        """
        Documents of ``kind`` in an open status, due on or before ``as_of``,
        with a positive amount due.  Ordered by due date, then number.
        """
        kind = DocumentKind(kind)
        statuses = sorted(s.value for s in OPEN_STATUSES[kind])

        rows = self.session.execute(
            select(SubledgerDocument)
            .where(
                SubledgerDocument.tenant_id == self.tenant_id,
                SubledgerDocument.kind == kind.value,
                SubledgerDocument.status.in_(statuses),
                SubledgerDocument.due_date <= as_of,
                SubledgerDocument.amount_due > 0,
            )
            .order_by(SubledgerDocument.due_date, SubledgerDocument.number)
        ).scalars()

        return [
            OpenDocument(
                document_id=doc.id,
                kind=kind,
                number=doc.number,
                counterparty_id=doc.counterparty_id,
                counterparty_name=doc.counterparty_name,
                document_date=doc.document_date,
                due_date=doc.due_date,
                status=doc.status,
                total=doc.total,
                amount_due=doc.amount_due,
            )
            for doc in rows
        ]
