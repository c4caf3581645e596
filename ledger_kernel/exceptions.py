"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A bookkeeping core must report failures precisely. Callers (invoice, bill,
payment and bank-import modules, or an HTTP layer) branch on the *kind* of
failure, never on message text:

    try:
        orchestrator.post(entry_date, lines, source=JournalSource.INVOICE)
    except UnbalancedEntryError as e:
        api_response(code=e.code, debits=e.debits, credits=e.credits)

Every exception:
  1. Is a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- NotFoundError                 entity absent OR outside the tenant
    |   +-- AccountNotFoundError
    |   +-- EntryNotFoundError
    |   +-- SystemAccountNotFoundError
    |
    +-- InvalidArgumentError          failed validation, never retried
    |   +-- InvalidAccountError
    |   +-- InvalidLineError
    |   +-- InsufficientLinesError
    |   +-- UnbalancedEntryError
    |   +-- ParentAccountError
    |   +-- AccountCycleError
    |   +-- SystemAccountProtectedError
    |   +-- NonManualEntryError
    |   +-- ChartAlreadyProvisionedError
    |   +-- ChartTemplateNotFoundError
    |   +-- InvalidAgingPeriodsError
    |   +-- InvalidDateRangeError
    |
    +-- ConflictError
    |   +-- DuplicateAccountCodeError
    |   +-- DuplicateSystemAccountError
    |
    +-- InternalError                 storage / transaction failure
        +-- EntryNumberAllocationError
        +-- StorageError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
NotFound        | ACCOUNT_NOT_FOUND           | Account id unknown in this tenant
                | ENTRY_NOT_FOUND             | Journal entry id unknown in this tenant
                | SYSTEM_ACCOUNT_NOT_FOUND    | No active system account for a sub-type
----------------|-----------------------------|-----------------------------------------
InvalidArgument | INVALID_ACCOUNT             | Line account missing or inactive
                | INVALID_LINE                | Both/neither/negative debit and credit
                | INSUFFICIENT_LINES          | Fewer than two lines on an entry
                | UNBALANCED_ENTRY            | Debits != Credits (beyond tolerance)
                | INVALID_PARENT_ACCOUNT      | Parent missing or of a different type
                | ACCOUNT_CYCLE               | Reparenting would create a cycle
                | SYSTEM_ACCOUNT_PROTECTED    | Recode / deactivate a system account
                | NON_MANUAL_ENTRY            | Update / void on a non-MANUAL entry
                | CHART_ALREADY_PROVISIONED   | Template import into non-empty chart
                | CHART_TEMPLATE_NOT_FOUND    | Unknown chart template name
                | INVALID_AGING_PERIODS       | Periods empty / non-increasing
                | INVALID_DATE_RANGE          | start > end, or half a comparison
----------------|-----------------------------|-----------------------------------------
Conflict        | DUPLICATE_ACCOUNT_CODE      | Code already used in the tenant
                | DUPLICATE_SYSTEM_ACCOUNT    | Second system account for a sub-type
----------------|-----------------------------|-----------------------------------------
Internal        | ENTRY_NUMBER_ALLOCATION     | Collision retries exhausted
                | STORAGE_ERROR               | Database / transaction failure

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY FOUR CATEGORY BASES?
   The boundary maps categories, not leaves: NotFound -> 404,
   InvalidArgument -> 400, Conflict -> 409, Internal -> 500.

2. WHY IS "OUTSIDE THE TENANT" A NotFoundError?
   Reporting a foreign row as forbidden would confirm that it exists.

3. WHY code CLASS ATTRIBUTE (not instance)?
   Codes are static per exception type and usable without instantiation.

===============================================================================
"""

from decimal import Decimal


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# =============================================================================
# NotFound
# =============================================================================


class NotFoundError(LedgerKernelError):
    """Entity absent, or present but owned by another tenant."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account with given ID was not found in the tenant."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class EntryNotFoundError(NotFoundError):
    """Journal entry with given ID was not found in the tenant."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class SystemAccountNotFoundError(NotFoundError):
    """No active system account is provisioned for the sub-type."""

    code: str = "SYSTEM_ACCOUNT_NOT_FOUND"

    def __init__(self, sub_type: str):
        self.sub_type = sub_type
        super().__init__(f"System account not found: {sub_type}")


# =============================================================================
# InvalidArgument
# =============================================================================


class InvalidArgumentError(LedgerKernelError):
    """Request failed validation. Retrying the same request cannot succeed."""

    code: str = "INVALID_ARGUMENT"


class InvalidAccountError(InvalidArgumentError):
    """A line references an account that cannot be posted to."""

    code: str = "INVALID_ACCOUNT"

    def __init__(self, account_code: str, reason: str):
        self.account_code = account_code
        self.reason = reason
        super().__init__(f"Account {account_code} {reason}")


class InvalidLineError(InvalidArgumentError):
    """A journal line violates the one-sided, non-negative amount rule."""

    code: str = "INVALID_LINE"

    def __init__(self, line_index: int, reason: str):
        self.line_index = line_index
        self.reason = reason
        super().__init__(f"Line {line_index + 1}: {reason}")


class InsufficientLinesError(InvalidArgumentError):
    """A journal entry needs at least two lines."""

    code: str = "INSUFFICIENT_LINES"

    def __init__(self, line_count: int, minimum: int = 2):
        self.line_count = line_count
        self.minimum = minimum
        super().__init__(
            f"At least {minimum} lines required, got {line_count}"
        )


class UnbalancedEntryError(InvalidArgumentError):
    """Total debits do not equal total credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: Decimal, credits: Decimal):
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Entry is unbalanced: debits={debits}, credits={credits}"
        )


class ParentAccountError(InvalidArgumentError):
    """Proposed parent is missing or of a different account type."""

    code: str = "INVALID_PARENT_ACCOUNT"

    def __init__(self, parent_id: str, reason: str):
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(f"Invalid parent account {parent_id}: {reason}")


class AccountCycleError(InvalidArgumentError):
    """Reparenting would make the account its own ancestor."""

    code: str = "ACCOUNT_CYCLE"

    def __init__(self, account_id: str, parent_id: str):
        self.account_id = account_id
        self.parent_id = parent_id
        super().__init__(
            f"Circular parent reference: {parent_id} descends from {account_id}"
        )


class SystemAccountProtectedError(InvalidArgumentError):
    """System accounts keep their code and stay active."""

    code: str = "SYSTEM_ACCOUNT_PROTECTED"

    def __init__(self, account_code: str, operation: str):
        self.account_code = account_code
        self.operation = operation
        super().__init__(
            f"Cannot {operation} system account {account_code}"
        )


class NonManualEntryError(InvalidArgumentError):
    """Only MANUAL entries may be edited or voided directly."""

    code: str = "NON_MANUAL_ENTRY"

    def __init__(self, entry_id: str, source: str, operation: str):
        self.entry_id = entry_id
        self.source = source
        self.operation = operation
        super().__init__(
            f"Only manual entries can be {operation}; "
            f"entry {entry_id} has source {source}"
        )


class ChartAlreadyProvisionedError(InvalidArgumentError):
    """Template import is only allowed into an empty chart."""

    code: str = "CHART_ALREADY_PROVISIONED"

    def __init__(self, tenant_id: str, account_count: int):
        self.tenant_id = tenant_id
        self.account_count = account_count
        super().__init__(
            f"Tenant {tenant_id} already has {account_count} accounts; "
            "cannot import default chart"
        )


class ChartTemplateNotFoundError(InvalidArgumentError):
    """No chart template with the given name is shipped."""

    code: str = "CHART_TEMPLATE_NOT_FOUND"

    def __init__(self, template: str):
        self.template = template
        super().__init__(f"Unknown chart template: {template}")


class InvalidAgingPeriodsError(InvalidArgumentError):
    """Aging periods must be positive and strictly increasing."""

    code: str = "INVALID_AGING_PERIODS"

    def __init__(self, periods: tuple[int, ...], reason: str):
        self.periods = periods
        self.reason = reason
        super().__init__(f"Invalid aging periods {list(periods)}: {reason}")


class InvalidDateRangeError(InvalidArgumentError):
    """Date range is inverted or only half-specified."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start: object, end: object, reason: str):
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(f"Invalid date range {start}..{end}: {reason}")


# =============================================================================
# Conflict
# =============================================================================


class ConflictError(LedgerKernelError):
    """Request conflicts with existing state."""

    code: str = "CONFLICT"


class DuplicateAccountCodeError(ConflictError):
    """Account code already exists in the tenant."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code already exists: {account_code}")


class DuplicateSystemAccountError(ConflictError):
    """The tenant already has an active system account for the sub-type."""

    code: str = "DUPLICATE_SYSTEM_ACCOUNT"

    def __init__(self, sub_type: str, existing_code: str):
        self.sub_type = sub_type
        self.existing_code = existing_code
        super().__init__(
            f"System account for {sub_type} already provisioned: {existing_code}"
        )


# =============================================================================
# Internal
# =============================================================================


class InternalError(LedgerKernelError):
    """Storage or transaction failure."""

    code: str = "INTERNAL"


class EntryNumberAllocationError(InternalError):
    """Concurrent posters kept colliding on the next entry number."""

    code: str = "ENTRY_NUMBER_ALLOCATION"

    def __init__(self, tenant_id: str, attempts: int):
        self.tenant_id = tenant_id
        self.attempts = attempts
        super().__init__(
            f"Could not allocate an entry number for tenant {tenant_id} "
            f"after {attempts} attempts"
        )


class StorageError(InternalError):
    """Wrapped database failure surfaced at the boundary."""

    code: str = "STORAGE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage failure during {operation}: {detail}")
