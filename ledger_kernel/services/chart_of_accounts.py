"""
ChartOfAccounts -- account identity, hierarchy and activation for one tenant.

Responsibility:
    Creates, updates, deactivates and looks up accounts; resolves the
    tenant's system account for a sub-type; provisions a default chart
    from a YAML template.

Architecture position:
    Kernel > Services -- imperative shell.  Leaf component: depends only on
    the account model, AccountSelector and the pure account-tree helpers.

Invariants enforced:
    - Account code is unique within a tenant (checked here, backstopped by
      uq_account_tenant_code).
    - Parent and child share account_type; the parent chain stays acyclic.
    - System accounts keep their code and stay active.
    - At most one active system account per sub-type per tenant, so
      get_system_account() is deterministic.

Failure modes:
    - AccountNotFoundError: id unknown in this tenant.
    - DuplicateAccountCodeError / DuplicateSystemAccountError: conflicts.
    - ParentAccountError / AccountCycleError / SystemAccountProtectedError:
      rejected hierarchy or protection rule.
    - SystemAccountNotFoundError: no system account for the sub-type.
    - ChartAlreadyProvisionedError / ChartTemplateNotFoundError: template
      import into a non-empty chart, or unknown template name.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledger_kernel.config import load_yaml_file
from ledger_kernel.db.types import as_money
from ledger_kernel.domain.account_tree import creates_cycle
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.exceptions import (
    AccountCycleError,
    AccountNotFoundError,
    ChartAlreadyProvisionedError,
    ChartTemplateNotFoundError,
    DuplicateAccountCodeError,
    DuplicateSystemAccountError,
    ParentAccountError,
    SystemAccountNotFoundError,
    SystemAccountProtectedError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, AccountSubType, AccountType
from ledger_kernel.models.journal import JournalLine
from ledger_kernel.selectors.account_selector import AccountSelector, to_account_info
from ledger_kernel.services.base import BaseService

logger = get_logger("services.chart_of_accounts")

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

# Distinguishes "leave parent unchanged" from "clear the parent"
_UNSET: Any = object()


def load_chart_template(template: str) -> list[dict[str, Any]]:
    """
    Read the account list of a shipped chart template.

    Raises:
        ChartTemplateNotFoundError: No ``<template>.yaml`` in the template
            directory.
    """
    path = TEMPLATE_DIR / f"{template}.yaml"
    if not template or not path.is_file():
        raise ChartTemplateNotFoundError(template)
    return list(load_yaml_file(path).get("accounts", []))


class ChartOfAccounts(BaseService):
    """
    Service for managing a tenant's chart of accounts.

    Contract:
        All public methods return AccountInfo DTOs, not ORM Account rows.
        Changes are flushed, never committed.

    Guarantees:
        - Every lookup is tenant-filtered; another tenant's account is
          reported as not found.
        - System-account resolution is recomputed on every call.

    Non-goals:
        - Does NOT compute balances (BalanceCalculator does).
        - Does NOT validate accounts for posting (LedgerEntryPoster does).
    """

    def __init__(self, session: Session, tenant_id: UUID):
        super().__init__(session, tenant_id)

    # =========================================================================
    # Lookup
    # =========================================================================

    def _get_by_id(self, account_id: UUID) -> Account:
        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.tenant_id == self.tenant_id,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def _find_by_code(self, code: str) -> Account | None:
        return self.session.execute(
            select(Account).where(
                Account.tenant_id == self.tenant_id,
                Account.code == code,
            )
        ).scalar_one_or_none()

    def get_account(self, account_id: UUID) -> AccountInfo:
        """
        Get account by id.

        Raises:
            AccountNotFoundError: If the account is not in this tenant.
        """
        return to_account_info(self._get_by_id(account_id))

    def find_by_code(self, code: str) -> AccountInfo | None:
        account = self._find_by_code(code)
        return to_account_info(account) if account else None

    def list_accounts(
        self,
        account_type: AccountType | None = None,
        sub_type: AccountSubType | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[AccountInfo]:
        """
        List the tenant's accounts ordered by code.

        Args:
            account_type: Only accounts of this type.
            sub_type: Only accounts of this sub-type.
            is_active: Only active (True) or inactive (False) accounts.
            search: Case-insensitive substring of code or name.
        """
        return AccountSelector(self.session, self.tenant_id).accounts(
            account_types=[account_type] if account_type is not None else None,
            sub_type=sub_type,
            is_active=is_active,
            search=search,
        )

    def get_system_account(self, sub_type: AccountSubType) -> AccountInfo:
        """
        Resolve the tenant's designated system account for a role.

        Collaborators (invoice, bill, payment posting) call this to find
        control accounts instead of hardcoding ids.

        Raises:
            SystemAccountNotFoundError: None is provisioned.
            DuplicateSystemAccountError: More than one active system account
                exists for the sub-type (data written around this service).
        """
        sub_type = AccountSubType(sub_type)
        accounts = self.session.execute(
            select(Account)
            .where(
                Account.tenant_id == self.tenant_id,
                Account.sub_type == sub_type.value,
                Account.is_system_account == True,  # noqa: E712
                Account.is_active == True,  # noqa: E712
            )
            .order_by(Account.code)
        ).scalars().all()

        if not accounts:
            logger.warning(
                "system_account_not_found",
                extra={"sub_type": sub_type.value},
            )
            raise SystemAccountNotFoundError(sub_type.value)
        if len(accounts) > 1:
            logger.error(
                "system_account_ambiguous",
                extra={
                    "sub_type": sub_type.value,
                    "codes": [a.code for a in accounts],
                },
            )
            raise DuplicateSystemAccountError(sub_type.value, accounts[1].code)
        return to_account_info(accounts[0])

    # =========================================================================
    # Mutation
    # =========================================================================

    def create(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        sub_type: AccountSubType,
        parent_id: UUID | None = None,
        description: str | None = None,
        opening_balance: Decimal | int | str = Decimal("0"),
        opening_balance_date: date | None = None,
        is_system_account: bool = False,
        actor_id: UUID | None = None,
    ) -> AccountInfo:
        """
        Create an account.

        Preconditions:
            - ``code`` is not used by another account in the tenant.
            - ``parent_id``, if given, names an account of the same type.

        Raises:
            DuplicateAccountCodeError: Code already exists in the tenant.
            DuplicateSystemAccountError: A system account already holds the
                sub-type.
            ParentAccountError: Parent missing or of a different type.
        """
        account_type = AccountType(account_type)
        sub_type = AccountSubType(sub_type)

        if self._find_by_code(code) is not None:
            logger.warning("account_code_conflict", extra={"code": code})
            raise DuplicateAccountCodeError(code)

        if parent_id is not None:
            self._validate_parent(parent_id, account_type)

        if is_system_account:
            self._ensure_system_slot_free(sub_type)

        account = Account(
            tenant_id=self.tenant_id,
            code=code,
            name=name,
            description=description,
            account_type=account_type.value,
            sub_type=sub_type.value,
            parent_id=parent_id,
            is_system_account=is_system_account,
            is_active=True,
            opening_balance=as_money(opening_balance),
            opening_balance_date=opening_balance_date,
            created_by_id=actor_id,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "code": code,
                "account_type": account_type.value,
                "is_system_account": is_system_account,
            },
        )
        return to_account_info(account)

    def update(
        self,
        account_id: UUID,
        *,
        code: str | None = None,
        name: str | None = None,
        description: str | None = None,
        parent_id: UUID | None = _UNSET,
        is_active: bool | None = None,
    ) -> AccountInfo:
        """
        Update an account's editable fields.

        Only the keyword arguments that are passed change.  Pass
        ``parent_id=None`` to detach an account from its parent.

        Raises:
            AccountNotFoundError: Account not in this tenant.
            SystemAccountProtectedError: Recode or deactivation of a system
                account.
            DuplicateAccountCodeError: New code already used.
            ParentAccountError: Parent missing or of a different type.
            AccountCycleError: Self-parent, or the account is an ancestor of
                the proposed parent.
        """
        account = self._get_by_id(account_id)

        code_changes = code is not None and code != account.code
        if account.is_system_account:
            if code_changes:
                raise SystemAccountProtectedError(account.code, "change the code of")
            if is_active is False:
                raise SystemAccountProtectedError(account.code, "deactivate")

        if code_changes and self._find_by_code(code) is not None:
            logger.warning("account_code_conflict", extra={"code": code})
            raise DuplicateAccountCodeError(code)

        if parent_id is not _UNSET and parent_id is not None:
            if parent_id == account.id:
                raise AccountCycleError(str(account.id), str(parent_id))
            self._validate_parent(parent_id, AccountType(account.account_type))
            if creates_cycle(account.id, parent_id, self._parent_map()):
                logger.warning(
                    "account_cycle_rejected",
                    extra={"account_id": str(account.id), "parent_id": str(parent_id)},
                )
                raise AccountCycleError(str(account.id), str(parent_id))

        if code_changes:
            account.code = code
        if name is not None:
            account.name = name
        if description is not None:
            account.description = description
        if parent_id is not _UNSET:
            account.parent_id = parent_id
        if is_active is not None:
            account.is_active = is_active

        self.session.flush()
        logger.info(
            "account_updated",
            extra={"account_id": str(account.id), "code": account.code},
        )
        return to_account_info(account)

    def deactivate(self, account_id: UUID) -> bool:
        """
        Retire an account.

        Soft-deletes (``is_active = False``) when any journal line references
        the account, so history stays reportable; otherwise the row is
        deleted outright.

        Returns:
            True if the account was hard-deleted, False if deactivated.

        Raises:
            AccountNotFoundError: Account not in this tenant.
            SystemAccountProtectedError: The account is a system account.
        """
        account = self._get_by_id(account_id)
        if account.is_system_account:
            raise SystemAccountProtectedError(account.code, "deactivate")

        referenced = self.session.execute(
            select(JournalLine.id).where(JournalLine.account_id == account.id).limit(1)
        ).first() is not None

        if referenced:
            account.is_active = False
            self.session.flush()
        else:
            # Children would dangle; they become roots
            for child in self.session.execute(
                select(Account).where(
                    Account.tenant_id == self.tenant_id,
                    Account.parent_id == account.id,
                )
            ).scalars():
                child.parent_id = None
            self.session.delete(account)
            self.session.flush()

        logger.info(
            "account_deactivated",
            extra={
                "account_id": str(account_id),
                "code": account.code,
                "hard_deleted": not referenced,
            },
        )
        return not referenced

    def import_default_chart(self, template: str = "service") -> int:
        """
        Provision a fresh tenant from a shipped chart template.

        Returns:
            Number of accounts created.

        Raises:
            ChartTemplateNotFoundError: Unknown template name.
            ChartAlreadyProvisionedError: The tenant already has accounts.
        """
        entries = load_chart_template(template)

        existing = self.session.execute(
            select(func.count(Account.id)).where(Account.tenant_id == self.tenant_id)
        ).scalar_one()
        if existing:
            raise ChartAlreadyProvisionedError(str(self.tenant_id), existing)

        for item in entries:
            self.session.add(
                Account(
                    tenant_id=self.tenant_id,
                    code=str(item["code"]),
                    name=item["name"],
                    description=item.get("description"),
                    account_type=AccountType(item["type"]).value,
                    sub_type=AccountSubType(item["sub_type"]).value,
                    is_system_account=bool(item.get("system", False)),
                    is_active=True,
                    opening_balance=Decimal("0"),
                )
            )
        self.session.flush()

        logger.info(
            "chart_imported",
            extra={"template": template, "account_count": len(entries)},
        )
        return len(entries)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate_parent(self, parent_id: UUID, account_type: AccountType) -> Account:
        parent = self.session.execute(
            select(Account).where(
                Account.id == parent_id,
                Account.tenant_id == self.tenant_id,
            )
        ).scalar_one_or_none()
        if parent is None:
            raise ParentAccountError(str(parent_id), "parent account not found")
        if AccountType(parent.account_type) != account_type:
            raise ParentAccountError(
                str(parent_id),
                f"parent is {parent.account_type}, account is {account_type.value}",
            )
        return parent

    def _ensure_system_slot_free(self, sub_type: AccountSubType) -> None:
        holder = self.session.execute(
            select(Account).where(
                Account.tenant_id == self.tenant_id,
                Account.sub_type == sub_type.value,
                Account.is_system_account == True,  # noqa: E712
                Account.is_active == True,  # noqa: E712
            )
        ).scalars().first()
        if holder is not None:
            raise DuplicateSystemAccountError(sub_type.value, holder.code)

    def _parent_map(self) -> dict[UUID, UUID | None]:
        rows = self.session.execute(
            select(Account.id, Account.parent_id).where(
                Account.tenant_id == self.tenant_id
            )
        ).all()
        return {row.id: row.parent_id for row in rows}
