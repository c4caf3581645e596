"""
Pure report transformation functions.

These functions turn account snapshots, pre-computed balances and ledger
lines into structured reports. ZERO I/O. ZERO side effects.

All monetary values are Decimal. All inputs/outputs are frozen dataclasses.

Functions in this module follow the ledger_kernel/domain/ purity convention:
- No database access
- No clock access
- No file I/O
- Deterministic: same inputs always produce same outputs
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_engines.aging import AgingReport
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.models.account import AccountType, NormalBalance, normal_balance_for
from ledger_kernel.selectors.document_selector import OpenDocument
from ledger_kernel.selectors.journal_selector import LedgerLine, with_running_balance
from ledger_reporting.config import ReportingConfig
from ledger_reporting.models import (
    AgingBucketTotal,
    AgingCounterpartyRow,
    AgingDetailLine,
    AgingSummary,
    BalanceSheetReport,
    GeneralLedgerAccount,
    GeneralLedgerReport,
    ProfitAndLossReport,
    ReportMetadata,
    StatementLine,
    StatementSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
)

ZERO = Decimal("0")


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def split_debit_credit(account_type: AccountType | str, balance: Decimal) -> tuple[Decimal, Decimal]:
    """
    Place a natural balance in the debit or credit column.

    A debit-normal account with a negative balance shows its absolute
    value as a credit, and vice versa.
    """
    debit_normal = normal_balance_for(account_type) == NormalBalance.DEBIT
    if balance > 0:
        return (balance, ZERO) if debit_normal else (ZERO, balance)
    if balance < 0:
        return (ZERO, -balance) if debit_normal else (-balance, ZERO)
    return ZERO, ZERO


def build_trial_balance(
    accounts: Sequence[AccountInfo],
    balances: Mapping[UUID, Decimal],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> TrialBalanceReport:
    """Build the trial balance, dropping accounts with a zero balance."""
    items: list[TrialBalanceLineItem] = []
    for acct in accounts:
        balance = balances.get(acct.account_id, ZERO)
        debit, credit = split_debit_credit(acct.account_type, balance)
        if debit == ZERO and credit == ZERO:
            continue
        items.append(
            TrialBalanceLineItem(
                account_id=acct.account_id,
                account_code=acct.code,
                account_name=acct.name,
                account_type=acct.account_type,
                debit_balance=debit,
                credit_balance=credit,
                net_balance=balance,
            )
        )

    total_debits = sum((item.debit_balance for item in items), ZERO)
    total_credits = sum((item.credit_balance for item in items), ZERO)

    return TrialBalanceReport(
        metadata=metadata,
        lines=tuple(items),
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=config.is_within_tolerance(total_debits, total_credits),
    )


# =========================================================================
# 2. SECTIONS
# =========================================================================


def build_section(
    label: str,
    accounts: Sequence[AccountInfo],
    amounts: Mapping[UUID, Decimal],
    comparison_amounts: Mapping[UUID, Decimal] | None = None,
) -> StatementSection:
    """
    One statement section.  Every account is listed, zero or not; an
    account missing from ``comparison_amounts`` compares as zero.
    """
    lines = tuple(
        StatementLine(
            account_id=acct.account_id,
            account_code=acct.code,
            account_name=acct.name,
            account_type=acct.account_type,
            amount=amounts.get(acct.account_id, ZERO),
            comparison_amount=(
                comparison_amounts.get(acct.account_id, ZERO)
                if comparison_amounts is not None
                else None
            ),
        )
        for acct in accounts
    )
    total = sum((line.amount for line in lines), ZERO)
    comparison_total = None
    if comparison_amounts is not None:
        comparison_total = sum((line.comparison_amount for line in lines), ZERO)
    return StatementSection(
        label=label,
        lines=lines,
        total=total,
        comparison_total=comparison_total,
    )


def _of_type(accounts: Sequence[AccountInfo], account_type: AccountType) -> list[AccountInfo]:
    return [a for a in accounts if a.account_type == account_type]


# =========================================================================
# 3. PROFIT & LOSS
# =========================================================================


def build_profit_and_loss(
    accounts: Sequence[AccountInfo],
    activity: Mapping[UUID, Decimal],
    metadata: ReportMetadata,
    comparison_activity: Mapping[UUID, Decimal] | None = None,
) -> ProfitAndLossReport:
    """
    Net income = total revenue - total expenses over the period.

    ``activity`` holds each account's natural-side movement over the
    period (no opening balance).  Non-P&L accounts in ``accounts`` are
    ignored.
    """
    revenue = build_section(
        "Revenue",
        _of_type(accounts, AccountType.REVENUE),
        activity,
        comparison_activity,
    )
    expenses = build_section(
        "Expenses",
        _of_type(accounts, AccountType.EXPENSE),
        activity,
        comparison_activity,
    )

    comparison_net_income = None
    if comparison_activity is not None:
        comparison_net_income = revenue.comparison_total - expenses.comparison_total

    return ProfitAndLossReport(
        metadata=metadata,
        revenue=revenue,
        expenses=expenses,
        net_income=revenue.total - expenses.total,
        comparison_net_income=comparison_net_income,
    )


# =========================================================================
# 4. BALANCE SHEET
# =========================================================================


def build_balance_sheet(
    accounts: Sequence[AccountInfo],
    balances: Mapping[UUID, Decimal],
    retained_earnings: Decimal,
    config: ReportingConfig,
    metadata: ReportMetadata,
    comparison_balances: Mapping[UUID, Decimal] | None = None,
    comparison_retained_earnings: Decimal | None = None,
) -> BalanceSheetReport:
    """
    Build the balance sheet and verify A = L + E.

    Retained earnings is carried separately and added to equity; it is
    not an account line.  ``is_balanced`` is evaluated at the primary
    date only.
    """
    assets = build_section(
        "Assets", _of_type(accounts, AccountType.ASSET), balances, comparison_balances,
    )
    liabilities = build_section(
        "Liabilities",
        _of_type(accounts, AccountType.LIABILITY),
        balances,
        comparison_balances,
    )
    equity = build_section(
        "Equity", _of_type(accounts, AccountType.EQUITY), balances, comparison_balances,
    )

    total_equity = equity.total + retained_earnings
    total_liabilities_and_equity = liabilities.total + total_equity

    comparison_total_equity = None
    comparison_total_le = None
    if comparison_balances is not None:
        comparison_retained_earnings = comparison_retained_earnings or ZERO
        comparison_total_equity = equity.comparison_total + comparison_retained_earnings
        comparison_total_le = liabilities.comparison_total + comparison_total_equity

    return BalanceSheetReport(
        metadata=metadata,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        retained_earnings=retained_earnings,
        total_equity=total_equity,
        total_liabilities_and_equity=total_liabilities_and_equity,
        is_balanced=config.is_within_tolerance(
            assets.total, total_liabilities_and_equity,
        ),
        comparison_retained_earnings=(
            comparison_retained_earnings if comparison_balances is not None else None
        ),
        comparison_total_equity=comparison_total_equity,
        comparison_total_liabilities_and_equity=comparison_total_le,
    )


# =========================================================================
# 5. GENERAL LEDGER
# =========================================================================


def build_general_ledger_account(
    account: AccountInfo,
    opening_balance: Decimal,
    lines: Sequence[LedgerLine],
) -> GeneralLedgerAccount:
    """Attach running balances; ``lines`` must already be in posting order."""
    activity = with_running_balance(account.account_type, opening_balance, lines)
    return GeneralLedgerAccount(
        account_id=account.account_id,
        account_code=account.code,
        account_name=account.name,
        account_type=account.account_type,
        opening_balance=opening_balance,
        lines=activity,
        closing_balance=activity[-1].balance if activity else opening_balance,
    )


def build_general_ledger(
    accounts: Sequence[AccountInfo],
    openings: Mapping[UUID, Decimal],
    lines: Sequence[LedgerLine],
    metadata: ReportMetadata,
    always_include: UUID | None = None,
) -> GeneralLedgerReport:
    """
    Group ordered lines by account and build each account's ledger.

    Accounts with no activity and a zero opening balance are omitted,
    except ``always_include``.
    """
    by_account: dict[UUID, list[LedgerLine]] = {}
    for line in lines:
        by_account.setdefault(line.account_id, []).append(line)

    result = []
    for acct in accounts:
        account_lines = by_account.get(acct.account_id, [])
        opening = openings.get(acct.account_id, ZERO)
        if not account_lines and opening == ZERO and acct.account_id != always_include:
            continue
        result.append(build_general_ledger_account(acct, opening, account_lines))

    return GeneralLedgerReport(metadata=metadata, accounts=tuple(result))


# =========================================================================
# 6. AGING
# =========================================================================


def build_aging_summary(
    aging: AgingReport,
    documents: Sequence[OpenDocument],
    metadata: ReportMetadata,
    periods: tuple[int, ...],
) -> AgingSummary:
    """Flatten an engine aging report into the presentation summary."""
    totals = {doc.document_id: doc.total for doc in documents}

    buckets = tuple(
        AgingBucketTotal(label=bt.bucket.name, amount=bt.amount, count=bt.count)
        for bt in aging.total_by_bucket()
    )
    by_counterparty = tuple(
        AgingCounterpartyRow(
            counterparty_id=row.counterparty_id,
            counterparty_name=row.counterparty_name,
            amounts=tuple(amount for _, amount in row.amounts),
            total=row.total,
        )
        for row in aging.total_by_counterparty()
    )
    details = tuple(
        AgingDetailLine(
            document_id=item.document_id,
            number=item.number,
            counterparty_name=item.counterparty_name,
            document_date=item.document_date,
            due_date=item.due_date,
            total=totals.get(item.document_id, item.amount),
            amount_due=item.amount,
            days_overdue=item.age_days,
            bucket=item.bucket.name,
        )
        for item in aging.items
    )

    return AgingSummary(
        metadata=metadata,
        periods=periods,
        buckets=buckets,
        total=aging.total_amount(),
        by_counterparty=by_counterparty,
        details=details,
    )


# =========================================================================
# 7. RENDERER (dict/JSON output)
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
