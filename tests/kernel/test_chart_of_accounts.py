"""
Tests for ChartOfAccounts.

Covers:
- Creation with code uniqueness and parent validation
- Update rules: system-account protection, recode conflicts, cycles
- Deactivation: soft when referenced, hard otherwise
- System-account resolution
- Template import
- Tenant isolation
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

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
from ledger_kernel.models.account import Account, AccountSubType, AccountType
from ledger_kernel.services.chart_of_accounts import ChartOfAccounts, load_chart_template


@pytest.fixture
def chart(session, tenant_id):
    return ChartOfAccounts(session, tenant_id)


class TestCreate:
    """Tests for account creation."""

    def test_create_returns_dto(self, chart):
        info = chart.create(
            "1000", "Checking", AccountType.ASSET, AccountSubType.BANK,
            description="Main operating account",
            opening_balance="2500.00",
            opening_balance_date=date(2024, 1, 1),
        )

        assert info.code == "1000"
        assert info.account_type == AccountType.ASSET
        assert info.sub_type == AccountSubType.BANK
        assert info.is_active
        assert not info.is_system_account
        assert info.opening_balance == Decimal("2500.00")
        assert info.opening_balance_date == date(2024, 1, 1)
        assert chart.get_account(info.account_id).code == "1000"

    def test_duplicate_code_is_conflict(self, chart):
        chart.create("1000", "Cash", AccountType.ASSET, AccountSubType.CASH)

        with pytest.raises(DuplicateAccountCodeError) as exc_info:
            chart.create("1000", "Other Cash", AccountType.ASSET, AccountSubType.CASH)

        assert exc_info.value.account_code == "1000"
        assert exc_info.value.code == "DUPLICATE_ACCOUNT_CODE"

    def test_same_code_allowed_in_other_tenant(self, session, chart, other_tenant_id):
        chart.create("1000", "Cash", AccountType.ASSET, AccountSubType.CASH)
        other = ChartOfAccounts(session, other_tenant_id)

        info = other.create("1000", "Cash", AccountType.ASSET, AccountSubType.CASH)

        assert info.code == "1000"

    def test_parent_must_exist(self, chart):
        with pytest.raises(ParentAccountError):
            chart.create(
                "1010", "Petty Cash", AccountType.ASSET, AccountSubType.CASH,
                parent_id=uuid4(),
            )

    def test_parent_must_share_type(self, chart):
        parent = chart.create("2000", "Payables", AccountType.LIABILITY, AccountSubType.ACCOUNTS_PAYABLE)

        with pytest.raises(ParentAccountError) as exc_info:
            chart.create(
                "1010", "Petty Cash", AccountType.ASSET, AccountSubType.CASH,
                parent_id=parent.account_id,
            )

        assert "liability" in exc_info.value.reason

    def test_child_of_same_type(self, chart):
        parent = chart.create("1000", "Cash", AccountType.ASSET, AccountSubType.CASH)
        child = chart.create(
            "1010", "Petty Cash", AccountType.ASSET, AccountSubType.CASH,
            parent_id=parent.account_id,
        )

        assert child.parent_id == parent.account_id

    def test_second_system_account_for_sub_type_is_conflict(self, chart):
        chart.create(
            "1200", "Receivables", AccountType.ASSET,
            AccountSubType.ACCOUNTS_RECEIVABLE, is_system_account=True,
        )

        with pytest.raises(DuplicateSystemAccountError) as exc_info:
            chart.create(
                "1210", "More Receivables", AccountType.ASSET,
                AccountSubType.ACCOUNTS_RECEIVABLE, is_system_account=True,
            )

        assert exc_info.value.existing_code == "1200"

    def test_create_logs_event(self, chart, captured_logs):
        chart.create("1000", "Cash", AccountType.ASSET, AccountSubType.CASH)

        records = [r for r in captured_logs() if r["message"] == "account_created"]
        assert len(records) == 1
        assert records[0]["code"] == "1000"


class TestUpdate:
    """Tests for account updates."""

    def test_rename(self, chart):
        info = chart.create("6000", "Rent", AccountType.EXPENSE, AccountSubType.EXPENSE)

        updated = chart.update(info.account_id, name="Office Rent", description="HQ lease")

        assert updated.name == "Office Rent"
        assert updated.description == "HQ lease"
        assert updated.code == "6000"

    def test_recode_non_system_account(self, chart):
        info = chart.create("6000", "Rent", AccountType.EXPENSE, AccountSubType.EXPENSE)

        assert chart.update(info.account_id, code="6100").code == "6100"

    def test_recode_to_existing_code_is_conflict(self, chart):
        chart.create("6000", "Rent", AccountType.EXPENSE, AccountSubType.EXPENSE)
        other = chart.create("6100", "Utilities", AccountType.EXPENSE, AccountSubType.EXPENSE)

        with pytest.raises(DuplicateAccountCodeError):
            chart.update(other.account_id, code="6000")

    def test_recode_system_account_rejected(self, chart):
        info = chart.create(
            "2000", "Payables", AccountType.LIABILITY,
            AccountSubType.ACCOUNTS_PAYABLE, is_system_account=True,
        )

        with pytest.raises(SystemAccountProtectedError):
            chart.update(info.account_id, code="2001")

    def test_system_account_may_keep_its_code(self, chart):
        info = chart.create(
            "2000", "Payables", AccountType.LIABILITY,
            AccountSubType.ACCOUNTS_PAYABLE, is_system_account=True,
        )

        updated = chart.update(info.account_id, code="2000", name="Trade Payables")

        assert updated.name == "Trade Payables"

    def test_deactivate_system_account_via_update_rejected(self, chart):
        info = chart.create(
            "2000", "Payables", AccountType.LIABILITY,
            AccountSubType.ACCOUNTS_PAYABLE, is_system_account=True,
        )

        with pytest.raises(SystemAccountProtectedError):
            chart.update(info.account_id, is_active=False)

    def test_self_parent_rejected(self, chart):
        info = chart.create("1000", "Cash", AccountType.ASSET, AccountSubType.CASH)

        with pytest.raises(AccountCycleError):
            chart.update(info.account_id, parent_id=info.account_id)

    def test_cycle_through_descendant_rejected(self, chart):
        a = chart.create("1000", "A", AccountType.ASSET, AccountSubType.CASH)
        b = chart.create("1100", "B", AccountType.ASSET, AccountSubType.CASH, parent_id=a.account_id)
        c = chart.create("1110", "C", AccountType.ASSET, AccountSubType.CASH, parent_id=b.account_id)

        with pytest.raises(AccountCycleError):
            chart.update(a.account_id, parent_id=c.account_id)

        assert chart.get_account(a.account_id).parent_id is None

    def test_reparent_and_detach(self, chart):
        a = chart.create("1000", "A", AccountType.ASSET, AccountSubType.CASH)
        b = chart.create("1100", "B", AccountType.ASSET, AccountSubType.CASH)

        assert chart.update(b.account_id, parent_id=a.account_id).parent_id == a.account_id
        assert chart.update(b.account_id, parent_id=None).parent_id is None

    def test_reparent_to_other_type_rejected(self, chart):
        a = chart.create("1000", "A", AccountType.ASSET, AccountSubType.CASH)
        sales = chart.create("4000", "Sales", AccountType.REVENUE, AccountSubType.INCOME)

        with pytest.raises(ParentAccountError):
            chart.update(a.account_id, parent_id=sales.account_id)

    def test_foreign_account_not_found(self, session, chart, other_tenant_id):
        foreign = ChartOfAccounts(session, other_tenant_id).create(
            "1000", "Cash", AccountType.ASSET, AccountSubType.CASH,
        )

        with pytest.raises(AccountNotFoundError):
            chart.update(foreign.account_id, name="Mine now")


class TestDeactivate:
    """Tests for soft and hard deletion."""

    def test_unreferenced_account_is_hard_deleted(self, session, chart):
        info = chart.create("6000", "Rent", AccountType.EXPENSE, AccountSubType.EXPENSE)

        assert chart.deactivate(info.account_id) is True
        assert session.get(Account, info.account_id) is None

    def test_referenced_account_is_soft_deleted(self, chart, basic_accounts, post_entry):
        post_entry(date(2024, 1, 10), basic_accounts["rent"], basic_accounts["cash"], "100")

        assert chart.deactivate(basic_accounts["rent"].id) is False
        assert chart.get_account(basic_accounts["rent"].id).is_active is False

    def test_hard_delete_detaches_children(self, chart):
        parent = chart.create("1000", "Cash", AccountType.ASSET, AccountSubType.CASH)
        child = chart.create(
            "1010", "Petty Cash", AccountType.ASSET, AccountSubType.CASH,
            parent_id=parent.account_id,
        )

        chart.deactivate(parent.account_id)

        assert chart.get_account(child.account_id).parent_id is None

    def test_system_account_rejected(self, chart):
        info = chart.create(
            "1200", "Receivables", AccountType.ASSET,
            AccountSubType.ACCOUNTS_RECEIVABLE, is_system_account=True,
        )

        with pytest.raises(SystemAccountProtectedError):
            chart.deactivate(info.account_id)


class TestSystemAccounts:
    """Tests for get_system_account."""

    def test_resolves_designated_account(self, chart):
        created = chart.create(
            "1200", "Receivables", AccountType.ASSET,
            AccountSubType.ACCOUNTS_RECEIVABLE, is_system_account=True,
        )
        chart.create("1210", "Other Receivables", AccountType.ASSET, AccountSubType.ACCOUNTS_RECEIVABLE)

        found = chart.get_system_account(AccountSubType.ACCOUNTS_RECEIVABLE)

        assert found.account_id == created.account_id

    def test_missing_is_not_found(self, chart):
        with pytest.raises(SystemAccountNotFoundError) as exc_info:
            chart.get_system_account(AccountSubType.ACCOUNTS_PAYABLE)

        assert exc_info.value.sub_type == "accounts_payable"

    def test_other_tenant_system_account_not_visible(self, session, chart, other_tenant_id):
        ChartOfAccounts(session, other_tenant_id).create(
            "2000", "Payables", AccountType.LIABILITY,
            AccountSubType.ACCOUNTS_PAYABLE, is_system_account=True,
        )

        with pytest.raises(SystemAccountNotFoundError):
            chart.get_system_account(AccountSubType.ACCOUNTS_PAYABLE)

    def test_duplicates_written_around_service_are_reported(self, chart, create_account):
        create_account(
            "2000", "Payables", AccountType.LIABILITY,
            AccountSubType.ACCOUNTS_PAYABLE, is_system_account=True,
        )
        create_account(
            "2001", "Payables 2", AccountType.LIABILITY,
            AccountSubType.ACCOUNTS_PAYABLE, is_system_account=True,
        )

        with pytest.raises(DuplicateSystemAccountError):
            chart.get_system_account(AccountSubType.ACCOUNTS_PAYABLE)

    def test_lookup_is_not_cached(self, chart):
        with pytest.raises(SystemAccountNotFoundError):
            chart.get_system_account(AccountSubType.CASH)

        chart.create("1000", "Cash", AccountType.ASSET, AccountSubType.CASH, is_system_account=True)

        assert chart.get_system_account(AccountSubType.CASH).code == "1000"


class TestListAndImport:
    """Tests for listing and template provisioning."""

    def test_service_template_shape(self):
        accounts = load_chart_template("service")

        assert len(accounts) == 43
        codes = [str(a["code"]) for a in accounts]
        assert len(set(codes)) == len(codes)

    def test_import_default_chart(self, chart):
        count = chart.import_default_chart()

        assert count == 43
        assert len(chart.list_accounts()) == 43
        assert chart.get_system_account(AccountSubType.ACCOUNTS_RECEIVABLE).code == "1300"
        assert chart.get_system_account(AccountSubType.ACCOUNTS_PAYABLE).code == "2000"

    def test_import_into_populated_chart_rejected(self, chart):
        chart.create("9999", "Custom", AccountType.EXPENSE, AccountSubType.EXPENSE)

        with pytest.raises(ChartAlreadyProvisionedError):
            chart.import_default_chart()

    def test_unknown_template(self, chart):
        with pytest.raises(ChartTemplateNotFoundError):
            chart.import_default_chart("manufacturing")

    def test_list_filters_and_orders_by_code(self, chart):
        chart.import_default_chart()

        expenses = chart.list_accounts(account_type=AccountType.EXPENSE)
        codes = [a.code for a in expenses]

        assert codes == sorted(codes)
        assert all(a.account_type == AccountType.EXPENSE for a in expenses)

    def test_list_search_is_case_insensitive(self, chart):
        chart.create("1000", "Operating Cash", AccountType.ASSET, AccountSubType.CASH)
        chart.create("6000", "Rent", AccountType.EXPENSE, AccountSubType.EXPENSE)

        assert [a.code for a in chart.list_accounts(search="CASH")] == ["1000"]
        assert [a.code for a in chart.list_accounts(search="600")] == ["6000"]

    def test_list_by_activation(self, chart):
        keep = chart.create("1000", "Cash", AccountType.ASSET, AccountSubType.CASH)
        retired = chart.create("1100", "Old Bank", AccountType.ASSET, AccountSubType.BANK)
        chart.update(retired.account_id, is_active=False)

        assert [a.account_id for a in chart.list_accounts(is_active=True)] == [keep.account_id]
        assert [a.account_id for a in chart.list_accounts(is_active=False)] == [retired.account_id]
