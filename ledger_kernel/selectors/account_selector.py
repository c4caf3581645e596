"""
Module: ledger_kernel.selectors.account_selector
Responsibility: Read-only account listings -- flat with balances, or as a
    parent/child forest for the chart-of-accounts screen and the reports.
Architecture position: Kernel > Selectors.  Uses BalanceCalculator for the
    balance column and the pure account-tree builder for nesting.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import func, or_, select

from ledger_kernel.domain.account_tree import build_account_tree
from ledger_kernel.domain.dtos import AccountInfo, AccountNode, AccountView
from ledger_kernel.models.account import Account, AccountSubType, AccountType
from ledger_kernel.selectors.balance_calculator import BalanceCalculator
from ledger_kernel.selectors.base import BaseSelector


def to_account_info(account: Account) -> AccountInfo:
    """Convert an ORM Account to its immutable DTO."""
    return AccountInfo(
        account_id=account.id,
        code=account.code,
        name=account.name,
        description=account.description,
        account_type=AccountType(account.account_type),
        sub_type=AccountSubType(account.sub_type),
        parent_id=account.parent_id,
        is_active=account.is_active,
        is_system_account=account.is_system_account,
        opening_balance=account.opening_balance,
        opening_balance_date=account.opening_balance_date,
    )


class AccountSelector(BaseSelector):
    """Account queries; results are ordered by code."""

    def get(self, account_id: UUID) -> AccountInfo | None:
        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.tenant_id == self.tenant_id,
            )
        ).scalar_one_or_none()
        return to_account_info(account) if account is not None else None

    def accounts(
        self,
        account_types: Iterable[AccountType] | None = None,
        sub_type: AccountSubType | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[AccountInfo]:
        stmt = select(Account).where(Account.tenant_id == self.tenant_id)
        if account_types is not None:
            stmt = stmt.where(
                Account.account_type.in_([AccountType(t).value for t in account_types])
            )
        if sub_type is not None:
            stmt = stmt.where(Account.sub_type == AccountSubType(sub_type).value)
        if is_active is not None:
            stmt = stmt.where(Account.is_active == is_active)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Account.code).like(pattern),
                    func.lower(Account.name).like(pattern),
                )
            )
        stmt = stmt.order_by(Account.code)
        return [to_account_info(a) for a in self.session.execute(stmt).scalars()]

    def list_accounts_with_balances(
        self,
        as_of: date | None = None,
        account_types: Iterable[AccountType] | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[AccountView]:
        """
        Flat account list decorated with each account's balance.

        ``as_of=None`` counts every posted line.
        """
        infos = self.accounts(account_types, is_active=is_active, search=search)
        balances = BalanceCalculator(self.session, self.tenant_id).balances_as_of(
            infos, as_of
        )
        return [
            AccountView(
                account_id=info.account_id,
                code=info.code,
                name=info.name,
                description=info.description,
                account_type=info.account_type,
                sub_type=info.sub_type,
                parent_id=info.parent_id,
                is_active=info.is_active,
                is_system_account=info.is_system_account,
                opening_balance=info.opening_balance,
                opening_balance_date=info.opening_balance_date,
                balance=balances[info.account_id],
            )
            for info in infos
        ]

    def account_tree(
        self,
        as_of: date | None = None,
        account_types: Iterable[AccountType] | None = None,
        is_active: bool | None = None,
    ) -> tuple[AccountNode, ...]:
        """The chart as a forest; filtered-out parents promote their children."""
        return build_account_tree(
            self.list_accounts_with_balances(
                as_of=as_of, account_types=account_types, is_active=is_active
            )
        )
