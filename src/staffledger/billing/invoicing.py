"""Invoice generation from approved weekly and bi-weekly timesheets."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Union

from staffledger.billing.currency_tax import DEFAULT_GST_RATE, convert_and_tax, to_inr
from staffledger.core.exceptions import TimesheetNotApprovedError
from staffledger.core.money import quantize_money, quantize_rate, to_decimal
from staffledger.models.billing import BillingProfile
from staffledger.models.invoice import (
    ClientCompany,
    CompanySettings,
    CurrencyRateData,
    Currency,
    EndUser,
    Invoice,
    InvoiceDocument,
    TimesheetDetails,
)
from staffledger.models.timesheet import (
    BiWeeklyTimesheet,
    PeriodStatus,
    TimesheetStatus,
    WeeklyTimesheet,
)

logger = logging.getLogger(__name__)

InvoiceSource = Union[WeeklyTimesheet, BiWeeklyTimesheet]

DEFAULT_COMPANY_SETTINGS_ID = 0


def format_invoice_number(issued: date, sequence: int, prefix: str = "INV") -> str:
    """``INV-YYYYMM-NNNN``; the sequence restarts every month."""
    if sequence < 1:
        raise ValueError(f"Invoice sequence must start at 1, got {sequence}")
    return f"{prefix}-{issued:%Y%m}-{sequence:04d}"


def invoice_period_key(issued: date) -> str:
    """Counter key shared by every invoice issued in the same month."""
    return f"{issued:%Y%m}"


def _source_fields(source: InvoiceSource) -> dict:
    if isinstance(source, WeeklyTimesheet):
        if source.status != TimesheetStatus.APPROVED:
            raise TimesheetNotApprovedError(
                f"Weekly timesheet {source.id} is {source.status}, not approved"
            )
        return {
            "timesheet_id": source.id,
            "period_start_date": source.week_start_date,
            "period_end_date": source.week_end_date,
            "total_hours": source.totals.total_weekly_hours,
            "amount": source.amounts.total_amount,
            "label": "week",
        }
    if source.status != PeriodStatus.APPROVED:
        raise TimesheetNotApprovedError(
            f"Bi-weekly timesheet {source.id} is {source.status}, not approved"
        )
    return {
        "bi_weekly_timesheet_id": source.id,
        "period_start_date": source.period_start_date,
        "period_end_date": source.period_end_date,
        "total_hours": source.totals.total_hours,
        "amount": source.totals.total_amount,
        "label": "bi-weekly period",
    }


def generate_invoice(
    source: InvoiceSource,
    profile: BillingProfile,
    rates: CurrencyRateData,
    invoice_number: str,
    issued_date: date,
    *,
    gst_rate: Decimal = DEFAULT_GST_RATE,
    basis: Currency = Currency.INR,
    due_days: int = 30,
    rate_override: Decimal | None = None,
    generated_by: int | None = None,
) -> Invoice:
    """Build the invoice for an approved timesheet.

    The period amount is first expressed in INR (from the currency it was
    billed in), then converted to USD at ``rate_override`` when given or
    the trailing six-month average otherwise, and taxed on ``basis``.

    Raises:
        TimesheetNotApprovedError: ``source`` is not approved.
        InvalidConversionRateError: the chosen rate is not positive.
    """
    fields = _source_fields(source)
    rate = to_decimal(rate_override) if rate_override is not None else rates.six_month_average

    amount_inr = to_inr(fields.pop("amount"), source.currency, rate)
    label = fields.pop("label")
    result = convert_and_tax(amount_inr, rate, gst_rate, basis)

    hourly_rate_inr = to_inr(profile.hourly_rate, profile.currency, rate)
    start, end = fields["period_start_date"], fields["period_end_date"]

    invoice = Invoice(
        invoice_number=invoice_number,
        candidate_id=source.candidate_id,
        hourly_rate=quantize_money(hourly_rate_inr / result.conversion_rate),
        currency=Currency.USD,
        basis_currency=basis,
        total_amount=result.basis_amount,
        gst_rate=result.gst_rate,
        gst_amount=result.gst_amount,
        total_with_gst=result.total_with_gst,
        amount_inr=result.amount_inr,
        amount_usd=result.amount_usd,
        total_with_gst_usd=result.total_with_gst_usd,
        currency_conversion_rate=quantize_rate(result.conversion_rate),
        six_month_average_rate=quantize_rate(rates.six_month_average),
        issued_date=issued_date,
        due_date=issued_date + timedelta(days=due_days),
        generated_by=generated_by,
        notes=(
            f"Invoice generated for {label} {start.isoformat()} to {end.isoformat()}. "
            f"Converted from INR {result.amount_inr} at rate {result.conversion_rate}"
        ),
        client_company_id=profile.client_company_id,
        end_user_id=profile.end_user_id,
        company_settings_id=profile.company_settings_id,
        **fields,
    )
    logger.info(
        "Generated invoice %s for candidate %s (%s..%s): %s %s incl. GST",
        invoice.invoice_number, invoice.candidate_id, start, end,
        invoice.total_with_gst, invoice.basis_currency,
    )
    return invoice


def timesheet_details(source: InvoiceSource) -> TimesheetDetails:
    """Day-by-day breakdown printed under the invoice lines."""
    if isinstance(source, WeeklyTimesheet):
        return TimesheetDetails(
            day_hours=source.totals.day_hours,
            day_overtime=source.totals.day_overtime,
            regular_hours=source.totals.total_regular_hours,
            overtime_hours=source.totals.total_overtime_hours,
            total_regular_amount=source.amounts.regular_amount,
            total_overtime_amount=source.amounts.overtime_amount,
        )
    return TimesheetDetails(
        day_hours=source.day_hours,
        day_overtime=source.day_overtime,
        regular_hours=source.totals.total_regular_hours,
        overtime_hours=source.totals.total_overtime_hours,
        total_regular_amount=source.totals.total_regular_amount,
        total_overtime_amount=source.totals.total_overtime_amount,
    )


def build_invoice_document(
    invoice: Invoice,
    profile: BillingProfile,
    *,
    company: CompanySettings | None = None,
    client: ClientCompany | None = None,
    end_user: EndUser | None = None,
    source: InvoiceSource | None = None,
) -> InvoiceDocument:
    """Assemble the data a renderer needs to print ``invoice``.

    Falls back to built-in company settings when none are configured.
    """
    if company is None:
        logger.warning("No company settings for invoice %s; using defaults", invoice.invoice_number)
        company = CompanySettings(id=DEFAULT_COMPANY_SETTINGS_ID, is_default=True)

    return InvoiceDocument(
        invoice=invoice,
        company=company,
        client=client,
        end_user=end_user,
        timesheet=timesheet_details(source) if source is not None else TimesheetDetails(),
        billing_currency=profile.currency,
        hourly_rate=profile.hourly_rate,
        employment_type=profile.employment_type.value,
        supervisor_name=profile.supervisor_name,
    )
