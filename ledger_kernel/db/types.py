"""
Module: ledger_kernel.db.types
Responsibility: Annotated type aliases and utility functions for money
    columns.  Centralizes precision and rounding so that every model and
    service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the ledger kernel.  All monetary amounts use
      Decimal with explicit precision; as_money() refuses float input.
    - round_money() is the ONLY sanctioned rounding function for display.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric, String

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Account codes, entry references
ShortCode = Annotated[str, String(20)]

# Memos and descriptions
LongText = Annotated[str, String(500)]

MONEY_DECIMAL_PLACES = 9
DISPLAY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def as_money(value: Decimal | int | str | None) -> Decimal:
    """
    Coerce an amount to Decimal.

    Preconditions: value is a Decimal, int, numeric string, or None.
    Postconditions: Returns a finite Decimal (None -> 0).

    Raises:
        TypeError: If value is a float (binary floating point is refused).
        ValueError: If value is not a finite number.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(
            f"Monetary amounts must be Decimal, int or str, not {type(value).__name__}"
        )
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(value)
        except InvalidOperation as exc:
            raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = DISPLAY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Preconditions: value is a Decimal.
    Postconditions: Returns value quantized with ROUND_HALF_UP by default.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def within_tolerance(a: Decimal, b: Decimal, tolerance: Decimal) -> bool:
    """
    Compare two amounts under the configured tolerance.

    Equal amounts always pass; otherwise the absolute difference must be
    strictly below tolerance.  A zero tolerance means exact equality.
    """
    diff = abs(a - b)
    return diff == ZERO or diff < tolerance
