"""
Fixed-point amount helpers.

Ledger amounts are stored as NUMERIC(15, 2) and shown to callers as strings
with exactly two decimal digits ("160.00", "-500.00").
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENTS = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Convert an int/float/str/Decimal amount to a Decimal rounded to cents.

    Floats go through ``str`` so that 0.1 stays 0.10 instead of its binary expansion.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def magnitude(value: Any) -> Decimal:
    """Unsigned amount, rounded to cents."""
    return abs(to_decimal(value))


def format_amount(value: Any) -> str:
    """Render an amount as a fixed-point string with two decimals."""
    return f"{to_decimal(value):.2f}"
