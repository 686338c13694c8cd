"""Tests for INR/USD conversion and GST."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from staffledger.billing.amounts import build_weekly_timesheet
from staffledger.billing.currency_tax import (
    calculate_gst,
    convert_and_tax,
    convert_inr_to_usd,
    convert_usd_to_inr,
    convert_weekly_to_inr,
    to_inr,
)
from staffledger.core.exceptions import InvalidConversionRateError
from staffledger.models.invoice import Currency
from tests.fakes import make_profile, standard_week


class TestConvertAndTax:
    def test_inr_basis(self):
        result = convert_and_tax(Decimal("84500"), Decimal("84.5"))
        assert result.amount_inr == Decimal("84500.00")
        assert result.amount_usd == Decimal("1000.00")
        assert result.gst_amount == Decimal("15210.00")
        assert result.total_with_gst == Decimal("99710.00")
        assert result.total_with_gst_usd == Decimal("1180.00")
        assert result.basis_currency == Currency.INR
        assert result.basis_amount == Decimal("84500.00")

    def test_usd_basis(self):
        result = convert_and_tax(Decimal("84500"), Decimal("84.5"), basis=Currency.USD)
        assert result.gst_amount == Decimal("180.00")
        assert result.total_with_gst == Decimal("1180.00")
        assert result.total_with_gst_usd == Decimal("1180.00")
        assert result.basis_amount == Decimal("1000.00")

    def test_rounds_half_up_to_cents(self):
        result = convert_and_tax(Decimal("100"), Decimal("3"))
        assert result.amount_usd == Decimal("33.33")
        result = convert_and_tax(Decimal("0.125"), Decimal("1"))
        assert result.amount_inr == Decimal("0.13")

    def test_total_is_amount_plus_gst(self):
        result = convert_and_tax(Decimal("12345.678"), Decimal("83.1234"), Decimal("18"))
        assert result.total_with_gst == result.amount_inr + result.gst_amount

    @pytest.mark.parametrize("rate", [Decimal("0"), Decimal("-84.5")])
    def test_non_positive_rate_rejected(self, rate):
        with pytest.raises(InvalidConversionRateError):
            convert_and_tax(Decimal("1000"), rate)


def test_calculate_gst():
    assert calculate_gst(Decimal("1000"), Decimal("18")) == (Decimal("180.00"), Decimal("1180.00"))


def test_simple_conversions():
    assert convert_inr_to_usd(Decimal("8500"), Decimal("85")) == Decimal("100.00")
    assert convert_usd_to_inr(Decimal("100"), Decimal("84.5")) == Decimal("8450.00")


def test_to_inr():
    assert to_inr(Decimal("2250"), "INR", Decimal("85")) == Decimal("2250")
    assert to_inr(Decimal("10"), "USD", Decimal("85")) == Decimal("850")
    with pytest.raises(ValueError):
        to_inr(Decimal("10"), "EUR", Decimal("85"))


def test_convert_weekly_to_inr_stamps_rate():
    profile = make_profile(currency="USD", hourly_rate=Decimal("25"))
    week = build_weekly_timesheet(1001, date(2025, 1, 6), standard_week(), profile)
    converted = convert_weekly_to_inr(week, Decimal("84.5"), on=date(2025, 1, 13))
    assert converted.amount_inr == Decimal("84500.00")
    assert converted.conversion_rate == Decimal("84.5")
    assert converted.conversion_date == date(2025, 1, 13)
    assert week.amount_inr is None
