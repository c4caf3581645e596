"""
Tests for BalanceCalculator.

Covers:
- Normal-balance sign conventions per account type
- Opening balances count toward point-in-time balances only
- Voided entries never contribute
- Retained earnings across revenue and expense accounts
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import LineSpec
from ledger_kernel.exceptions import AccountNotFoundError, InvalidDateRangeError
from ledger_kernel.models.account import AccountType
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.balance_calculator import BalanceCalculator, natural_balance
from ledger_kernel.services.entry_poster import LedgerEntryPoster


@pytest.fixture
def calculator(session, tenant_id):
    return BalanceCalculator(session, tenant_id)


class TestNaturalBalance:
    """Sign convention, independent of the database."""

    @pytest.mark.parametrize(
        "account_type,expected",
        [
            (AccountType.ASSET, Decimal("70")),
            (AccountType.EXPENSE, Decimal("70")),
            (AccountType.LIABILITY, Decimal("-70")),
            (AccountType.EQUITY, Decimal("-70")),
            (AccountType.REVENUE, Decimal("-70")),
        ],
    )
    def test_sign_by_type(self, account_type, expected):
        assert natural_balance(account_type, Decimal("100"), Decimal("30")) == expected

    def test_accepts_raw_value(self):
        assert natural_balance("revenue", Decimal("0"), Decimal("25")) == Decimal("25")


class TestBalanceAsOf:
    """Point-in-time balances."""

    def test_debit_increases_asset(self, calculator, basic_accounts, post_entry):
        post_entry(date(2024, 1, 10), basic_accounts["cash"], basic_accounts["sales"], "500")

        assert calculator.balance_as_of(basic_accounts["cash"].id, date(2024, 1, 31)) == Decimal("500")
        assert calculator.balance_as_of(basic_accounts["sales"].id, date(2024, 1, 31)) == Decimal("500")

    def test_liability_grows_with_credits(self, calculator, basic_accounts, post_entry):
        post_entry(date(2024, 1, 5), basic_accounts["rent"], basic_accounts["ap"], "1200")
        post_entry(date(2024, 1, 20), basic_accounts["ap"], basic_accounts["cash"], "200")

        assert calculator.balance_as_of(basic_accounts["ap"].id, date(2024, 1, 31)) == Decimal("1000")
        assert calculator.balance_as_of(basic_accounts["rent"].id, date(2024, 1, 31)) == Decimal("1200")
        assert calculator.balance_as_of(basic_accounts["cash"].id, date(2024, 1, 31)) == Decimal("-200")

    def test_opening_balance_included(self, calculator, create_account, basic_accounts, post_entry):
        bank = create_account("1010", "Bank", AccountType.ASSET, opening_balance="1000")
        post_entry(date(2024, 1, 10), bank, basic_accounts["sales"], "500")

        assert calculator.balance_as_of(bank.id, date(2024, 1, 31)) == Decimal("1500")
        assert calculator.balance_as_of(bank.id, date(2023, 12, 31)) == Decimal("1000")

    def test_cutoff_is_inclusive(self, calculator, basic_accounts, post_entry):
        post_entry(date(2024, 1, 10), basic_accounts["cash"], basic_accounts["sales"], "100")

        assert calculator.balance_as_of(basic_accounts["cash"].id, date(2024, 1, 10)) == Decimal("100")
        assert calculator.balance_as_of(basic_accounts["cash"].id, date(2024, 1, 9)) == Decimal("0")

    def test_voided_entry_excluded(self, calculator, poster, basic_accounts, post_entry):
        kept = post_entry(date(2024, 1, 10), basic_accounts["cash"], basic_accounts["sales"], "100")
        voided = post_entry(date(2024, 1, 11), basic_accounts["cash"], basic_accounts["sales"], "40")
        poster.void(voided.entry_id)

        assert kept.is_posted
        assert calculator.balance_as_of(basic_accounts["cash"].id, date(2024, 1, 31)) == Decimal("100")

    def test_unknown_account(self, calculator):
        with pytest.raises(AccountNotFoundError):
            calculator.balance_as_of(uuid4(), date(2024, 1, 31))

    def test_foreign_account_is_not_found(self, session, basic_accounts, other_tenant_id):
        with pytest.raises(AccountNotFoundError):
            BalanceCalculator(session, other_tenant_id).balance_as_of(
                basic_accounts["cash"].id, date(2024, 1, 31)
            )

    def test_other_tenant_lines_do_not_leak(
        self, session, calculator, basic_accounts, post_entry, create_account, other_tenant_id,
    ):
        post_entry(date(2024, 1, 10), basic_accounts["cash"], basic_accounts["sales"], "100")
        cash = create_account("1000", "Cash", AccountType.ASSET, tenant=other_tenant_id)
        sales = create_account("4000", "Sales", AccountType.REVENUE, tenant=other_tenant_id)
        LedgerEntryPoster(session, other_tenant_id).post(
            date(2024, 1, 10),
            [LineSpec.debit_line(cash.id, "999"), LineSpec.credit_line(sales.id, "999")],
        )

        assert calculator.balance_as_of(basic_accounts["cash"].id, date(2024, 1, 31)) == Decimal("100")
        assert calculator.retained_earnings(date(2024, 1, 31)) == Decimal("100")


class TestBalanceOverRange:
    """Net activity within a window."""

    def test_excludes_opening_and_outside_lines(self, calculator, create_account, basic_accounts, post_entry):
        bank = create_account("1010", "Bank", AccountType.ASSET, opening_balance="1000")
        post_entry(date(2023, 12, 31), bank, basic_accounts["sales"], "50")
        post_entry(date(2024, 1, 1), bank, basic_accounts["sales"], "100")
        post_entry(date(2024, 1, 31), basic_accounts["rent"], bank, "30")
        post_entry(date(2024, 2, 1), bank, basic_accounts["sales"], "7")

        assert calculator.balance_over_range(bank.id, date(2024, 1, 1), date(2024, 1, 31)) == Decimal("70")

    def test_single_day_range(self, calculator, basic_accounts, post_entry):
        post_entry(date(2024, 1, 10), basic_accounts["cash"], basic_accounts["sales"], "100")

        day = date(2024, 1, 10)
        assert calculator.balance_over_range(basic_accounts["sales"].id, day, day) == Decimal("100")

    def test_inverted_range_rejected(self, calculator, basic_accounts):
        with pytest.raises(InvalidDateRangeError):
            calculator.balance_over_range(
                basic_accounts["cash"].id, date(2024, 2, 1), date(2024, 1, 1)
            )


class TestBalanceBefore:
    """Balance at the close of the previous day."""

    def test_previous_day_close(self, calculator, create_account, basic_accounts, post_entry):
        bank = create_account("1010", "Bank", AccountType.ASSET, opening_balance="1000")
        post_entry(date(2024, 1, 9), bank, basic_accounts["sales"], "50")
        post_entry(date(2024, 1, 10), bank, basic_accounts["sales"], "100")

        assert calculator.balance_before(bank.id, date(2024, 1, 10)) == Decimal("1050")

    def test_earliest_date_is_stored_opening(self, calculator, create_account):
        bank = create_account("1010", "Bank", AccountType.ASSET, opening_balance="1000")

        assert calculator.balance_before(bank.id, date.min) == Decimal("1000")

    def test_bulk_earliest_date(self, session, tenant_id, calculator, create_account, basic_accounts):
        bank = create_account("1010", "Bank", AccountType.ASSET, opening_balance="1000")
        accounts = AccountSelector(session, tenant_id).accounts()

        balances = calculator.balances_before(accounts, date.min)

        assert balances[bank.id] == Decimal("1000")
        assert balances[basic_accounts["cash"].id] == Decimal("0")


class TestBulkBalances:
    """Grouped balance queries over loaded account DTOs."""

    def test_matches_single_account_results(self, session, tenant_id, calculator, basic_accounts, post_lines):
        post_lines(
            date(2024, 1, 15),
            [
                (basic_accounts["cash"], "300", "0"),
                (basic_accounts["ar"], "200", "0"),
                (basic_accounts["sales"], "0", "500"),
            ],
        )
        accounts = AccountSelector(session, tenant_id).accounts()

        balances = calculator.balances_as_of(accounts, date(2024, 1, 31))

        for account in accounts:
            assert balances[account.account_id] == calculator.balance_as_of(
                account.account_id, date(2024, 1, 31)
            )
        assert balances[basic_accounts["ar"].id] == Decimal("200")
        assert balances[basic_accounts["rent"].id] == Decimal("0")

    def test_no_cutoff(self, session, tenant_id, calculator, basic_accounts, post_entry):
        post_entry(date(2030, 1, 1), basic_accounts["cash"], basic_accounts["sales"], "5")
        accounts = AccountSelector(session, tenant_id).accounts()

        balances = calculator.balances_as_of(accounts, None)

        assert balances[basic_accounts["cash"].id] == Decimal("5")

    def test_empty_account_list(self, calculator):
        assert calculator.balances_as_of([], date(2024, 1, 1)) == {}

    def test_over_range(self, session, tenant_id, calculator, basic_accounts, post_entry):
        post_entry(date(2024, 1, 10), basic_accounts["cash"], basic_accounts["sales"], "100")
        post_entry(date(2024, 2, 10), basic_accounts["cash"], basic_accounts["sales"], "40")
        accounts = AccountSelector(session, tenant_id).accounts()

        activity = calculator.balances_over_range(accounts, date(2024, 2, 1), date(2024, 2, 29))

        assert activity[basic_accounts["sales"].id] == Decimal("40")


class TestRetainedEarnings:
    """Cumulative net income through a date."""

    def test_revenue_minus_expenses(self, calculator, basic_accounts, post_entry):
        post_entry(date(2023, 6, 1), basic_accounts["cash"], basic_accounts["sales"], "1000")
        post_entry(date(2024, 1, 5), basic_accounts["rent"], basic_accounts["cash"], "300")
        post_entry(date(2024, 2, 5), basic_accounts["cash"], basic_accounts["sales"], "50")

        assert calculator.retained_earnings(date(2024, 1, 31)) == Decimal("700")
        assert calculator.retained_earnings(date(2024, 2, 29)) == Decimal("750")

    def test_ignores_opening_balances(self, calculator, create_account):
        create_account("4100", "Other Income", AccountType.REVENUE, opening_balance="500")

        assert calculator.retained_earnings(date(2024, 1, 31)) == Decimal("0")

    def test_includes_inactive_accounts(self, session, calculator, basic_accounts, post_entry):
        post_entry(date(2024, 1, 5), basic_accounts["cash"], basic_accounts["sales"], "80")
        basic_accounts["sales"].is_active = False
        session.flush()

        assert calculator.retained_earnings(date(2024, 1, 31)) == Decimal("80")

    def test_no_activity(self, calculator):
        assert calculator.retained_earnings(date(2024, 1, 31)) == Decimal("0")
