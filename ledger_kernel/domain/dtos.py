"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable structures that cross the posting boundary (LineSpec, the
    collaborator's description of one journal line) and everything the
    kernel hands back instead of ORM rows (AccountInfo, JournalEntryInfo,
    AccountView, AccountNode).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.db.types import as_money


@dataclass(frozen=True)
class LineSpec:
    """
    One journal line as supplied by a collaborator, before persistence.

    Contract:
        Carries an account id and a debit or a credit.  Amounts are coerced
        to Decimal on construction (floats are refused).

    Non-goals:
        - Does NOT enforce the one-sided rule or account validity; that is
          LedgerEntryPoster's job, so failures carry the line index.
    """

    account_id: UUID
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    memo: str | None = None
    customer_id: UUID | None = None
    vendor_id: UUID | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", as_money(self.debit))
        object.__setattr__(self, "credit", as_money(self.credit))

    @classmethod
    def debit_line(cls, account_id: UUID, amount, **kwargs) -> LineSpec:
        return cls(account_id=account_id, debit=amount, **kwargs)

    @classmethod
    def credit_line(cls, account_id: UUID, amount, **kwargs) -> LineSpec:
        return cls(account_id=account_id, credit=amount, **kwargs)


@dataclass(frozen=True)
class AccountNode:
    """One account in the chart tree, with its children."""

    account_id: UUID
    code: str
    name: str
    account_type: str
    sub_type: str
    parent_id: UUID | None
    is_active: bool
    is_system_account: bool
    balance: Decimal | None = None
    children: tuple[AccountNode, ...] = field(default=())

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class AccountView:
    """Flat, read-only projection of an account with its current balance."""

    account_id: UUID
    code: str
    name: str
    description: str | None
    account_type: str
    sub_type: str
    parent_id: UUID | None
    is_active: bool
    is_system_account: bool
    opening_balance: Decimal
    opening_balance_date: date | None
    balance: Decimal


@dataclass(frozen=True)
class AccountInfo:
    """
    Immutable DTO for account data returned by ChartOfAccounts.

    account_type and sub_type hold the enum values from the account model
    (both are ``str`` enums, so they compare equal to their raw values).
    """

    account_id: UUID
    code: str
    name: str
    description: str | None
    account_type: str
    sub_type: str
    parent_id: UUID | None
    is_active: bool
    is_system_account: bool
    opening_balance: Decimal
    opening_balance_date: date | None


@dataclass(frozen=True)
class JournalLineInfo:
    """One persisted journal line."""

    line_id: UUID
    line_number: int
    account_id: UUID
    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal
    memo: str | None
    customer_id: UUID | None
    vendor_id: UUID | None


@dataclass(frozen=True)
class JournalEntryInfo:
    """
    Immutable DTO for a journal entry and its full line set.

    Returned by LedgerEntryPoster and JournalSelector instead of the ORM
    row, so callers cannot mutate posted history by accident.
    """

    entry_id: UUID
    entry_number: int
    entry_date: date
    source: str
    source_id: str | None
    memo: str | None
    reference: str | None
    is_adjusting: bool
    is_posted: bool
    is_reversing: bool
    reversed_entry_id: UUID | None
    lines: tuple[JournalLineInfo, ...] = field(default=())

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))
