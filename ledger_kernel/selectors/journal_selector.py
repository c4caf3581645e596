"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only access to journal entries and to the per-account
    line history behind the general ledger.  Converts ORM rows to frozen
    DTOs.
Architecture position: Kernel > Selectors.  May import from models/,
    the domain DTOs and the other selectors.

Invariants enforced:
    - Read-only: no mutation of queried data.
    - Line history is ordered by (entry_date, entry_number, line_number) so
      running balances are deterministic when entries share a date.
    - Only posted entries contribute to line history and running balances.

Failure modes:
    - get_entry() returns None when the entry is absent or belongs to
      another tenant (never raises on absence of data).
    - account_activity() raises AccountNotFoundError for an unknown account.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import exists, func, or_, select
from sqlalchemy.orm import joinedload, selectinload

from ledger_kernel.domain.dtos import JournalEntryInfo, JournalLineInfo
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.journal import JournalEntry, JournalLine, JournalSource
from ledger_kernel.selectors.balance_calculator import (
    BalanceCalculator,
    natural_balance,
    validate_range,
)
from ledger_kernel.selectors.base import BaseSelector


def to_entry_info(entry: JournalEntry) -> JournalEntryInfo:
    """Convert an ORM JournalEntry (with its lines) to its DTO."""
    lines = tuple(
        JournalLineInfo(
            line_id=line.id,
            line_number=line.line_number,
            account_id=line.account_id,
            account_code=line.account.code,
            account_name=line.account.name,
            debit=line.debit,
            credit=line.credit,
            memo=line.memo,
            customer_id=line.customer_id,
            vendor_id=line.vendor_id,
        )
        for line in sorted(entry.lines, key=lambda x: x.line_number)
    )
    return JournalEntryInfo(
        entry_id=entry.id,
        entry_number=entry.entry_number,
        entry_date=entry.entry_date,
        source=JournalSource(entry.source),
        source_id=entry.source_id,
        memo=entry.memo,
        reference=entry.reference,
        is_adjusting=entry.is_adjusting,
        is_posted=entry.is_posted,
        is_reversing=entry.is_reversing,
        reversed_entry_id=entry.reversed_entry_id,
        lines=lines,
    )


@dataclass(frozen=True)
class LedgerLine:
    """One posted line as it appears in an account's history."""

    entry_id: UUID
    entry_number: int
    entry_date: date
    source: str
    reference: str | None
    line_id: UUID
    line_number: int
    account_id: UUID
    debit: Decimal
    credit: Decimal
    # Line memo, falling back to the entry memo
    memo: str | None
    customer_id: UUID | None
    vendor_id: UUID | None


@dataclass(frozen=True)
class ActivityLine:
    """A history line with the account's running balance after it."""

    entry_id: UUID
    entry_number: int
    entry_date: date
    reference: str | None
    memo: str | None
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class AccountActivity:
    """Opening balance, ordered activity, and closing balance of one account."""

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
class EntryPage:
    """One page of journal entries plus the unpaged total."""

    entries: tuple[JournalEntryInfo, ...]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


def with_running_balance(
    account_type: AccountType | str,
    opening_balance: Decimal,
    lines: Iterable[LedgerLine],
) -> tuple[ActivityLine, ...]:
    """Attach a running balance to already-ordered history lines."""
    balance = opening_balance
    result = []
    for line in lines:
        balance += natural_balance(account_type, line.debit, line.credit)
        result.append(
            ActivityLine(
                entry_id=line.entry_id,
                entry_number=line.entry_number,
                entry_date=line.entry_date,
                reference=line.reference,
                memo=line.memo,
                debit=line.debit,
                credit=line.credit,
                balance=balance,
            )
        )
    return tuple(result)


class JournalSelector(BaseSelector):
    """
    Selector for journal entry queries.

    Contract:
        Entry methods return JournalEntryInfo DTOs with lines sorted by
        line_number.  History methods return LedgerLine / AccountActivity.

    Non-goals:
        - Does NOT aggregate balances itself; BalanceCalculator does.
    """

    def get_entry(self, entry_id: UUID) -> JournalEntryInfo | None:
        """Entry with all of its lines, or None if not in this tenant."""
        entry = self.session.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines).joinedload(JournalLine.account))
            .where(
                JournalEntry.id == entry_id,
                JournalEntry.tenant_id == self.tenant_id,
            )
        ).scalar_one_or_none()
        return to_entry_info(entry) if entry is not None else None

    def list_entries(
        self,
        start: date | None = None,
        end: date | None = None,
        source: JournalSource | None = None,
        account_id: UUID | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> EntryPage:
        """
        Page through entries, newest first (date desc, entry number desc).

        Voided entries are included; check ``is_posted``.  ``search``
        matches memo or reference case-insensitively.
        """
        page = max(page, 1)
        limit = max(limit, 1)

        conditions = [JournalEntry.tenant_id == self.tenant_id]
        if start is not None:
            conditions.append(JournalEntry.entry_date >= start)
        if end is not None:
            conditions.append(JournalEntry.entry_date <= end)
        if source is not None:
            conditions.append(JournalEntry.source == JournalSource(source).value)
        if account_id is not None:
            conditions.append(
                exists().where(
                    JournalLine.journal_entry_id == JournalEntry.id,
                    JournalLine.account_id == account_id,
                )
            )
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(JournalEntry.memo).like(pattern),
                    func.lower(JournalEntry.reference).like(pattern),
                )
            )

        total = self.session.execute(
            select(func.count(JournalEntry.id)).where(*conditions)
        ).scalar_one()

        entries = self.session.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines).joinedload(JournalLine.account))
            .where(*conditions)
            .order_by(JournalEntry.entry_date.desc(), JournalEntry.entry_number.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()

        return EntryPage(
            entries=tuple(to_entry_info(e) for e in entries),
            total=total,
            page=page,
            limit=limit,
        )

    def ledger_lines(
        self,
        account_ids: Sequence[UUID] | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[LedgerLine]:
        """
        Posted lines within [start, end], ordered for running balances.

        ``account_ids=None`` returns lines for every account.
        """
        stmt = (
            select(JournalLine, JournalEntry)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.tenant_id == self.tenant_id,
                JournalEntry.is_posted == True,  # noqa: E712
            )
            .order_by(
                JournalEntry.entry_date,
                JournalEntry.entry_number,
                JournalLine.line_number,
            )
        )
        if account_ids is not None:
            if not account_ids:
                return []
            stmt = stmt.where(JournalLine.account_id.in_(list(account_ids)))
        if start is not None:
            stmt = stmt.where(JournalEntry.entry_date >= start)
        if end is not None:
            stmt = stmt.where(JournalEntry.entry_date <= end)

        return [
            LedgerLine(
                entry_id=entry.id,
                entry_number=entry.entry_number,
                entry_date=entry.entry_date,
                source=JournalSource(entry.source),
                reference=entry.reference,
                line_id=line.id,
                line_number=line.line_number,
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                memo=line.memo or entry.memo,
                customer_id=line.customer_id,
                vendor_id=line.vendor_id,
            )
            for line, entry in self.session.execute(stmt)
        ]

    def account_activity(
        self,
        account_id: UUID,
        start: date | None = None,
        end: date | None = None,
    ) -> AccountActivity:
        """
        Per-account ledger with a running balance.

        The opening balance is the balance at the end of the day before
        ``start``, or the account's stored opening balance when no start is
        given.

        Raises:
            AccountNotFoundError: Account not in this tenant.
            InvalidDateRangeError: start > end.
        """
        if start is not None and end is not None:
            validate_range(start, end)

        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.tenant_id == self.tenant_id,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))

        calculator = BalanceCalculator(self.session, self.tenant_id)

        if start is not None:
            opening = calculator.balance_before(account.id, start)
        else:
            opening = account.opening_balance

        lines = with_running_balance(
            account.account_type,
            opening,
            self.ledger_lines([account.id], start=start, end=end),
        )
        return AccountActivity(
            account_id=account.id,
            account_code=account.code,
            account_name=account.name,
            account_type=AccountType(account.account_type),
            opening_balance=opening,
            lines=lines,
            closing_balance=lines[-1].balance if lines else opening,
        )
