"""
Module: ledger_kernel.selectors.balance_calculator
Responsibility: Derive account balances -- point-in-time and over a date
    range -- from the opening balance plus posted journal lines.
Architecture position: Kernel > Selectors.  Read-only.  Used by
    ReportEngine, AccountSelector, JournalSelector and LedgerOrchestrator.

Invariants enforced:
    - Normal-balance sign convention: ASSET and EXPENSE accounts are
      ``debits - credits``; LIABILITY, EQUITY and REVENUE accounts are
      ``credits - debits``.
    - balance_as_of = opening_balance + signed sum of posted lines dated on
      or before the cutoff.  balance_over_range excludes the opening
      balance.
    - Voided entries (is_posted = False) never contribute.
    - Nothing is cached: every call re-aggregates the line history.

Failure modes:
    - AccountNotFoundError when the account is not in the tenant.
    - InvalidDateRangeError when a range starts after it ends.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy import func, select

from ledger_kernel.db.types import ZERO
from ledger_kernel.exceptions import AccountNotFoundError, InvalidDateRangeError
from ledger_kernel.models.account import (
    Account,
    AccountType,
    NormalBalance,
    normal_balance_for,
)
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.selectors.base import BaseSelector


class BalanceSubject(Protocol):
    """Anything carrying the account fields a balance needs."""

    account_id: UUID
    account_type: str
    opening_balance: Decimal


def natural_balance(account_type: AccountType | str, debits: Decimal, credits: Decimal) -> Decimal:
    """Signed amount on the account's normal side."""
    if normal_balance_for(account_type) == NormalBalance.DEBIT:
        return debits - credits
    return credits - debits


def validate_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidDateRangeError(start, end, "start is after end")


class BalanceCalculator(BaseSelector):
    """
    Balance computation over posted journal lines.

    Contract:
        Single-account methods take an account id and look the account up
        in the tenant.  Bulk methods take already-loaded account DTOs and
        aggregate every line in one grouped query.

    Guarantees:
        - A balance is a pure function of the opening balance and the
          currently posted lines up to the cutoff.
        - All amounts are Decimal.
    """

    # =========================================================================
    # Single account
    # =========================================================================

    def balance_as_of(self, account_id: UUID, as_of: date) -> Decimal:
        """
        Account balance at the end of ``as_of`` including its opening balance.

        Raises:
            AccountNotFoundError: Account not in this tenant.
        """
        account = self._get_account(account_id)
        debits, credits = self._line_sums([account.id], end=as_of).get(
            account.id, (ZERO, ZERO)
        )
        return account.opening_balance + natural_balance(
            account.account_type, debits, credits
        )

    def balance_over_range(self, account_id: UUID, start: date, end: date) -> Decimal:
        """
        Net activity on the account's normal side for lines in [start, end].

        Raises:
            AccountNotFoundError: Account not in this tenant.
            InvalidDateRangeError: start > end.
        """
        validate_range(start, end)
        account = self._get_account(account_id)
        debits, credits = self._line_sums([account.id], start=start, end=end).get(
            account.id, (ZERO, ZERO)
        )
        return natural_balance(account.account_type, debits, credits)

    def balance_before(self, account_id: UUID, day: date) -> Decimal:
        """
        Account balance at the end of the day before ``day``.

        No line can be dated before ``date.min``, so there the stored
        opening balance is returned.
        """
        if day == date.min:
            return self._get_account(account_id).opening_balance
        return self.balance_as_of(account_id, day - timedelta(days=1))

    # =========================================================================
    # Bulk
    # =========================================================================

    def balances_as_of(
        self,
        accounts: Sequence[BalanceSubject],
        as_of: date | None,
    ) -> dict[UUID, Decimal]:
        """
        Balance of every given account.  ``as_of=None`` means no cutoff.
        """
        sums = self._line_sums([a.account_id for a in accounts], end=as_of)
        result: dict[UUID, Decimal] = {}
        for account in accounts:
            debits, credits = sums.get(account.account_id, (ZERO, ZERO))
            result[account.account_id] = account.opening_balance + natural_balance(
                account.account_type, debits, credits
            )
        return result

    def balances_before(
        self,
        accounts: Sequence[BalanceSubject],
        day: date,
    ) -> dict[UUID, Decimal]:
        """Balances at the end of the day before ``day``; see balance_before."""
        if day == date.min:
            return {a.account_id: a.opening_balance for a in accounts}
        return self.balances_as_of(accounts, day - timedelta(days=1))

    def balances_over_range(
        self,
        accounts: Sequence[BalanceSubject],
        start: date,
        end: date,
    ) -> dict[UUID, Decimal]:
        """Activity of every given account over [start, end]."""
        validate_range(start, end)
        sums = self._line_sums([a.account_id for a in accounts], start=start, end=end)
        result: dict[UUID, Decimal] = {}
        for account in accounts:
            debits, credits = sums.get(account.account_id, (ZERO, ZERO))
            result[account.account_id] = natural_balance(
                account.account_type, debits, credits
            )
        return result

    def retained_earnings(self, as_of: date) -> Decimal:
        """
        Cumulative net income from inception through ``as_of``.

        (Σcredit - Σdebit) on REVENUE accounts minus (Σdebit - Σcredit) on
        EXPENSE accounts, over every posted line regardless of the
        account's activation state.  Opening balances are not included.
        """
        stmt = (
            select(
                Account.account_type,
                func.sum(JournalLine.debit),
                func.sum(JournalLine.credit),
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .join(Account, JournalLine.account_id == Account.id)
            .where(
                JournalEntry.tenant_id == self.tenant_id,
                JournalEntry.is_posted == True,  # noqa: E712
                JournalEntry.entry_date <= as_of,
                Account.account_type.in_(
                    [AccountType.REVENUE.value, AccountType.EXPENSE.value]
                ),
            )
            .group_by(Account.account_type)
        )

        revenue = ZERO
        expenses = ZERO
        for account_type, debits, credits in self.session.execute(stmt):
            amount = natural_balance(account_type, debits or ZERO, credits or ZERO)
            if AccountType(account_type) == AccountType.REVENUE:
                revenue += amount
            else:
                expenses += amount
        return revenue - expenses

    # =========================================================================
    # Internals
    # =========================================================================

    def _get_account(self, account_id: UUID) -> Account:
        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.tenant_id == self.tenant_id,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def _line_sums(
        self,
        account_ids: Iterable[UUID],
        start: date | None = None,
        end: date | None = None,
    ) -> dict[UUID, tuple[Decimal, Decimal]]:
        """(Σdebit, Σcredit) of posted lines per account within the window."""
        ids = list(account_ids)
        if not ids:
            return {}

        stmt = (
            select(
                JournalLine.account_id,
                func.sum(JournalLine.debit),
                func.sum(JournalLine.credit),
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.tenant_id == self.tenant_id,
                JournalEntry.is_posted == True,  # noqa: E712
                JournalLine.account_id.in_(ids),
            )
            .group_by(JournalLine.account_id)
        )
        if start is not None:
            stmt = stmt.where(JournalEntry.entry_date >= start)
        if end is not None:
            stmt = stmt.where(JournalEntry.entry_date <= end)

        return {
            account_id: (debits or ZERO, credits or ZERO)
            for account_id, debits, credits in self.session.execute(stmt)
        }
