"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts -- one row per
    account node, tenant-scoped, with type/sub-type classification, an
    optional parent for the account tree, activation state and an opening
    balance.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - (tenant_id, code) is unique (uq_account_tenant_code).
    - Normal balance is derived from account_type, never stored
      separately, so the two cannot disagree.

Failure modes:
    - IntegrityError on duplicate (tenant_id, code).  ChartOfAccounts checks
      first and raises DuplicateAccountCodeError; the constraint catches
      races.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantScopedMixin, TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.journal import JournalLine


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class AccountSubType(str, Enum):
    """Finer classification; also the key for system-account roles."""

    CASH = "cash"
    BANK = "bank"
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    OTHER_ASSET = "other_asset"
    FIXED_ASSET = "fixed_asset"
    ACCOUNTS_PAYABLE = "accounts_payable"
    CREDIT_CARD = "credit_card"
    CURRENT_LIABILITY = "current_liability"
    LONG_TERM_LIABILITY = "long_term_liability"
    OWNERS_EQUITY = "owners_equity"
    OPENING_BALANCE_EQUITY = "opening_balance_equity"
    RETAINED_EARNINGS = "retained_earnings"
    INCOME = "income"
    OTHER_INCOME = "other_income"
    COST_OF_GOODS_SOLD = "cost_of_goods_sold"
    EXPENSE = "expense"
    OTHER_EXPENSE = "other_expense"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


DEBIT_NORMAL_TYPES: frozenset[AccountType] = frozenset(
    {AccountType.ASSET, AccountType.EXPENSE}
)


def normal_balance_for(account_type: AccountType | str) -> NormalBalance:
    """ASSET and EXPENSE increase on debit; everything else on credit."""
    if AccountType(account_type) in DEBIT_NORMAL_TYPES:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


class Account(TenantScopedMixin, TrackedBase):
    """
    Chart of Accounts entry -- a single node in the general ledger structure.

    Contract:
        Account.code is unique within a tenant.  Parent and child share
        account_type.  System accounts keep their code and stay active.

    Guarantees:
        - account_type is one of ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE.
        - normal_balance is consistent with account_type by construction.

    Non-goals:
        - This model does NOT enforce hierarchy rules; ChartOfAccounts does.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_account_tenant_code"),
        Index("idx_account_tenant_type", "tenant_id", "account_type"),
        Index("idx_account_tenant_subtype", "tenant_id", "sub_type"),
    )

    code: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        nullable=False,
    )

    sub_type: Mapped[AccountSubType] = mapped_column(
        String(40),
        nullable=False,
    )

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    is_system_account: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Inactive accounts reject new postings but keep their history
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    opening_balance: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    opening_balance_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    journal_lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="account",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def normal_balance(self) -> NormalBalance:
        """Side on which this account increases."""
        return normal_balance_for(self.account_type)

    @property
    def is_debit_normal(self) -> bool:
        """Check if account has debit normal balance."""
        return self.normal_balance == NormalBalance.DEBIT
