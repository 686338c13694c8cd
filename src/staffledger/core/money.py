"""Fixed-point helpers for money, hours and exchange rates."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")
RATE_PLACES = Decimal("0.0001")


def to_decimal(value: Decimal | int | str | float | None) -> Decimal:
    """Coerce a numeric input to Decimal without going through binary float."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places (persisted currency precision)."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def quantize_rate(value: Decimal) -> Decimal:
    """Round an exchange rate to 4 decimal places."""
    return value.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate_percent: Decimal) -> Decimal:
    """``amount * rate_percent / 100`` without intermediate rounding."""
    return amount * rate_percent / HUNDRED
