"""Tests for invoice numbering, generation and document assembly."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest

from staffledger.billing.amounts import build_weekly_timesheet
from staffledger.billing.invoicing import (
    build_invoice_document,
    format_invoice_number,
    generate_invoice,
    invoice_period_key,
)
from staffledger.billing.periods import aggregate_bi_weekly
from staffledger.core.exceptions import TimesheetNotApprovedError
from staffledger.models.invoice import (
    ClientCompany,
    Currency,
    CurrencyRateData,
    InvoiceStatus,
)
from staffledger.models.timesheet import PeriodStatus, TimesheetStatus
from tests.fakes import make_profile, standard_week

JAN_6 = date(2025, 1, 6)
RATES = CurrencyRateData(current_rate=Decimal("85.0"), six_month_average=Decimal("84.5"))


def _approved_week(start=JAN_6, profile=None):
    profile = profile or make_profile(client_company_id=3, supervisor_name="Jordan Lee")
    week = build_weekly_timesheet(1001, start, standard_week("8", "1"), profile)
    return week.model_copy(update={"status": TimesheetStatus.APPROVED})


class TestInvoiceNumber:
    def test_format(self):
        assert format_invoice_number(date(2025, 7, 20), 7) == "INV-202507-0007"
        assert format_invoice_number(date(2025, 7, 20), 12345, prefix="NDK") == "NDK-202507-12345"

    def test_sequence_must_be_positive(self):
        with pytest.raises(ValueError):
            format_invoice_number(date(2025, 7, 20), 0)

    def test_period_key(self):
        assert invoice_period_key(date(2025, 7, 20)) == "202507"


class TestGenerateInvoice:
    def test_weekly_invoice_inr_basis(self):
        week = _approved_week()
        invoice = generate_invoice(week, make_profile(), RATES, "INV-202501-0001", date(2025, 1, 20))
        assert invoice.timesheet_id == week.id
        assert invoice.bi_weekly_timesheet_id is None
        assert invoice.total_hours == Decimal("45")
        assert invoice.amount_inr == Decimal("2250.00")
        assert invoice.total_amount == Decimal("2250.00")
        assert invoice.gst_amount == Decimal("405.00")
        assert invoice.total_with_gst == Decimal("2655.00")
        assert invoice.amount_usd == Decimal("26.63")
        assert invoice.currency == Currency.USD
        assert invoice.basis_currency == Currency.INR
        assert invoice.currency_conversion_rate == Decimal("84.5000")
        assert invoice.six_month_average_rate == Decimal("84.5000")
        assert invoice.due_date == date(2025, 2, 19)
        assert invoice.status == InvoiceStatus.GENERATED

    def test_usd_basis(self):
        invoice = generate_invoice(
            _approved_week(), make_profile(), RATES, "INV-202501-0001", date(2025, 1, 20),
            basis=Currency.USD,
        )
        assert invoice.total_amount == Decimal("26.63")
        assert invoice.gst_amount == Decimal("4.79")
        assert invoice.total_with_gst == Decimal("31.42")

    def test_rate_override_wins_over_average(self):
        invoice = generate_invoice(
            _approved_week(), make_profile(), RATES, "INV-202501-0001", date(2025, 1, 20),
            rate_override=Decimal("90"),
        )
        assert invoice.amount_usd == Decimal("25.00")
        assert invoice.currency_conversion_rate == Decimal("90.0000")
        assert invoice.six_month_average_rate == Decimal("84.5000")

    def test_usd_billed_week_normalised_to_inr(self):
        profile = make_profile(currency="USD", hourly_rate=Decimal("10"))
        week = _approved_week(profile=profile)
        invoice = generate_invoice(week, profile, RATES, "INV-202501-0001", date(2025, 1, 20))
        assert invoice.amount_inr == Decimal("38025.00")
        assert invoice.amount_usd == Decimal("450.00")
        assert invoice.hourly_rate == Decimal("10.00")

    def test_hourly_rate_stated_in_usd(self):
        invoice = generate_invoice(
            _approved_week(), make_profile(hourly_rate=Decimal("845")), RATES,
            "INV-202501-0001", date(2025, 1, 20),
        )
        assert invoice.hourly_rate == Decimal("10.00")

    def test_notes_and_parties(self):
        profile = make_profile(client_company_id=3, end_user_id=4, company_settings_id=5)
        invoice = generate_invoice(_approved_week(), profile, RATES, "INV-202501-0001",
                                   date(2025, 1, 20), generated_by=9)
        assert "week 2025-01-06 to 2025-01-12" in invoice.notes
        assert invoice.client_company_id == 3
        assert invoice.end_user_id == 4
        assert invoice.company_settings_id == 5
        assert invoice.generated_by == 9

    def test_draft_week_rejected(self):
        week = _approved_week().model_copy(update={"status": TimesheetStatus.SUBMITTED})
        with pytest.raises(TimesheetNotApprovedError):
            generate_invoice(week, make_profile(), RATES, "INV-202501-0001", date(2025, 1, 20))

    def test_bi_weekly_invoice(self):
        period = aggregate_bi_weekly(_approved_week(), _approved_week(JAN_6 + timedelta(days=7)))
        period = period.model_copy(update={"status": PeriodStatus.APPROVED})
        invoice = generate_invoice(period, make_profile(), RATES, "INV-202501-0002", date(2025, 1, 20))
        assert invoice.bi_weekly_timesheet_id == period.id
        assert invoice.timesheet_id is None
        assert invoice.total_hours == Decimal("90")
        assert invoice.amount_inr == Decimal("4500.00")
        assert invoice.period_end_date == date(2025, 1, 19)
        assert "bi-weekly period" in invoice.notes

    def test_calculated_bi_weekly_rejected(self):
        period = aggregate_bi_weekly(_approved_week(), _approved_week(JAN_6 + timedelta(days=7)))
        with pytest.raises(TimesheetNotApprovedError):
            generate_invoice(period, make_profile(), RATES, "INV-202501-0002", date(2025, 1, 20))


class TestInvoiceDocument:
    def test_defaults_company_settings(self):
        week = _approved_week()
        profile = make_profile(supervisor_name="Jordan Lee")
        invoice = generate_invoice(week, profile, RATES, "INV-202501-0001", date(2025, 1, 20))
        doc = build_invoice_document(invoice, profile, source=week)
        assert doc.company.name == "NIDDIK"
        assert doc.company.city == "New Delhi"
        assert doc.supervisor_name == "Jordan Lee"
        assert doc.billing_currency == "INR"
        assert doc.employment_type == "subcontract"
        assert doc.timesheet.day_hours.monday == Decimal("8")
        assert doc.timesheet.overtime_hours == Decimal("5")

    def test_includes_client(self):
        week = _approved_week()
        profile = make_profile()
        invoice = generate_invoice(week, profile, RATES, "INV-202501-0001", date(2025, 1, 20))
        client = ClientCompany(id=3, name="Acme Consulting LLC")
        doc = build_invoice_document(invoice, profile, client=client)
        assert doc.client.name == "Acme Consulting LLC"
        assert doc.timesheet.regular_hours == Decimal("0")
