"""
Module: ledger_kernel.models.sequence
Responsibility: Named counter rows locked with SELECT ... FOR UPDATE to
    serialize entry-number allocation per tenant.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its last allocated value.
    Row-level locking serializes concurrent allocations for one name.
    """

    __tablename__ = "sequence_counters"

    # e.g. "journal_entry:<tenant uuid>"
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )
