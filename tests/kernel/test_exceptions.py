"""
Tests for the typed exception hierarchy: categories, codes and payloads.
"""

from decimal import Decimal

import pytest

from ledger_kernel import exceptions as exc


CATEGORY_OF = {
    exc.AccountNotFoundError: exc.NotFoundError,
    exc.EntryNotFoundError: exc.NotFoundError,
    exc.SystemAccountNotFoundError: exc.NotFoundError,
    exc.InvalidAccountError: exc.InvalidArgumentError,
    exc.InvalidLineError: exc.InvalidArgumentError,
    exc.InsufficientLinesError: exc.InvalidArgumentError,
    exc.UnbalancedEntryError: exc.InvalidArgumentError,
    exc.ParentAccountError: exc.InvalidArgumentError,
    exc.AccountCycleError: exc.InvalidArgumentError,
    exc.SystemAccountProtectedError: exc.InvalidArgumentError,
    exc.NonManualEntryError: exc.InvalidArgumentError,
    exc.ChartAlreadyProvisionedError: exc.InvalidArgumentError,
    exc.ChartTemplateNotFoundError: exc.InvalidArgumentError,
    exc.InvalidAgingPeriodsError: exc.InvalidArgumentError,
    exc.InvalidDateRangeError: exc.InvalidArgumentError,
    exc.DuplicateAccountCodeError: exc.ConflictError,
    exc.DuplicateSystemAccountError: exc.ConflictError,
    exc.EntryNumberAllocationError: exc.InternalError,
    exc.StorageError: exc.InternalError,
}


class TestHierarchy:

    @pytest.mark.parametrize("error_type,category", list(CATEGORY_OF.items()))
    def test_category(self, error_type, category):
        assert issubclass(error_type, category)
        assert issubclass(error_type, exc.LedgerKernelError)

    def test_codes_are_unique(self):
        codes = [t.code for t in CATEGORY_OF]

        assert len(codes) == len(set(codes))

    def test_category_codes(self):
        assert exc.NotFoundError.code == "NOT_FOUND"
        assert exc.InvalidArgumentError.code == "INVALID_ARGUMENT"
        assert exc.ConflictError.code == "CONFLICT"
        assert exc.InternalError.code == "INTERNAL"


class TestPayloads:

    def test_unbalanced(self):
        error = exc.UnbalancedEntryError(Decimal("100"), Decimal("90"))

        assert error.debits == Decimal("100")
        assert error.credits == Decimal("90")
        assert "debits=100" in str(error)

    def test_invalid_line_is_one_based_in_message(self):
        error = exc.InvalidLineError(0, "Amounts cannot be negative")

        assert error.line_index == 0
        assert str(error) == "Line 1: Amounts cannot be negative"

    def test_invalid_account(self):
        error = exc.InvalidAccountError("1900", "is inactive")

        assert str(error) == "Account 1900 is inactive"

    def test_storage_error(self):
        error = exc.StorageError("post", "connection lost")

        assert error.code == "STORAGE_ERROR"
        assert error.operation == "post"
        assert "connection lost" in str(error)
