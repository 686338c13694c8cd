"""INR/USD conversion, GST and grand totals.

Rates are quoted as INR per 1 USD. This is the rounding boundary of the
pipeline: upstream amounts arrive exact and leave here in cents.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from staffledger.core.exceptions import InvalidConversionRateError
from staffledger.core.money import percent_of, quantize_money, to_decimal
from staffledger.models.invoice import ConversionResult, Currency
from staffledger.models.timesheet import WeeklyTimesheet

DEFAULT_GST_RATE = Decimal("18.0")


def _check_rate(conversion_rate: Decimal) -> Decimal:
    rate = to_decimal(conversion_rate)
    if rate <= 0:
        raise InvalidConversionRateError(f"Conversion rate must be positive, got {rate}")
    return rate


def convert_inr_to_usd(amount_inr: Decimal, conversion_rate: Decimal) -> Decimal:
    return quantize_money(to_decimal(amount_inr) / _check_rate(conversion_rate))


def convert_usd_to_inr(amount_usd: Decimal, conversion_rate: Decimal) -> Decimal:
    return quantize_money(to_decimal(amount_usd) * _check_rate(conversion_rate))


def to_inr(amount: Decimal, currency: str, conversion_rate: Decimal) -> Decimal:
    """Exact INR value of an amount billed in ``currency``."""
    if currency == Currency.INR:
        return amount
    if currency == Currency.USD:
        return amount * _check_rate(conversion_rate)
    raise ValueError(f"Unsupported billing currency {currency!r}")


def calculate_gst(amount: Decimal, gst_rate: Decimal = DEFAULT_GST_RATE) -> tuple[Decimal, Decimal]:
    """Return ``(gst_amount, total_with_gst)`` for an amount, both in cents."""
    base = quantize_money(to_decimal(amount))
    gst_amount = quantize_money(percent_of(base, to_decimal(gst_rate)))
    return gst_amount, base + gst_amount


def convert_and_tax(
    period_amount_inr: Decimal,
    conversion_rate: Decimal,
    gst_rate: Decimal = DEFAULT_GST_RATE,
    basis: Currency = Currency.INR,
) -> ConversionResult:
    """Convert a period's INR amount to USD and apply GST.

    With ``basis=INR`` GST is charged on the INR amount and the INR grand
    total is authoritative; USD figures are stated equivalents. With
    ``basis=USD`` GST is charged on the converted USD amount instead.

    Raises:
        InvalidConversionRateError: ``conversion_rate`` is not positive.
    """
    rate = _check_rate(conversion_rate)
    exact_inr = to_decimal(period_amount_inr)
    amount_inr = quantize_money(exact_inr)
    amount_usd = quantize_money(exact_inr / rate)

    if basis == Currency.INR:
        gst_amount, total_with_gst = calculate_gst(amount_inr, gst_rate)
        total_with_gst_usd = quantize_money(total_with_gst / rate)
    else:
        gst_amount, total_with_gst = calculate_gst(amount_usd, gst_rate)
        total_with_gst_usd = total_with_gst

    return ConversionResult(
        amount_inr=amount_inr,
        amount_usd=amount_usd,
        conversion_rate=rate,
        basis_currency=basis,
        gst_rate=to_decimal(gst_rate),
        gst_amount=gst_amount,
        total_with_gst=total_with_gst,
        total_with_gst_usd=total_with_gst_usd,
    )


def convert_weekly_to_inr(
    timesheet: WeeklyTimesheet, conversion_rate: Decimal, on: date | None = None
) -> WeeklyTimesheet:
    """Copy of ``timesheet`` carrying its total in INR and the rate used."""
    rate = _check_rate(conversion_rate)
    amount_inr = to_inr(timesheet.amounts.total_amount, timesheet.currency, rate)
    return timesheet.model_copy(update={
        "amount_inr": quantize_money(amount_inr),
        "conversion_rate": rate,
        "conversion_date": on or date.today(),
        "updated_at": datetime.now(timezone.utc),
    })
