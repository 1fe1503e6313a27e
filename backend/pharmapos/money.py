# Overview: Integer-cents money helpers shared by validation, services and exports.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

# Maximum amount: $9,999,999.99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999


class MoneyError(ValueError):
    """Raised when a value cannot be read as a currency amount."""


def to_cents(value: Any, *, field: str = "amount") -> int:
    """
    Convert a currency-unit amount ("12.50", 12.5, 12) to integer cents.

    Booleans and non-finite values are rejected. Rounding is half-up at
    the cent.
    """
    if value is None:
        raise MoneyError(f"{field} is required")
    if isinstance(value, bool):
        raise MoneyError(f"{field} must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise MoneyError(f"{field} is required")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise MoneyError(f"{field} must be a number")
    if not amount.is_finite():
        raise MoneyError(f"{field} must be a finite number")
    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if abs(cents) > MAX_AMOUNT_CENTS:
        raise MoneyError(f"{field} cannot exceed {format_cents(MAX_AMOUNT_CENTS)}")
    return cents


def optional_cents(value: Any, *, field: str = "amount", default: int = 0) -> int:
    """Like to_cents, but None / "" fall back to default."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return to_cents(value, field=field)


def format_cents(cents: int) -> str:
    """12345 -> "123.45"; -5 -> "-0.05"."""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(int(cents)), 100)
    return f"{sign}{whole}.{frac:02d}"


def format_signed(cents: int) -> str:
    """Signed display used for balances: +$5.00, -$10.00, $0.00."""
    if cents == 0:
        return "$0.00"
    if cents > 0:
        return f"+${format_cents(cents)}"
    return f"-${format_cents(-cents)}"
