"""Invoice, currency and invoice-party models."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from staffledger.models.timesheet import WeekdayTotals

ZERO = Decimal("0")


class Currency(StrEnum):
    INR = "INR"
    USD = "USD"


class InvoiceStatus(StrEnum):
    GENERATED = "generated"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class RatePoint(BaseModel):
    """USD->INR rate observed on one day."""

    day: date
    rate: Decimal


class CurrencyRateData(BaseModel):
    """Rates handed to the engine by a rate supplier (INR per 1 USD)."""

    current_rate: Decimal
    six_month_average: Decimal
    rates_history: list[RatePoint] = Field(default_factory=list)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "static"


class ConversionResult(BaseModel):
    """Converted and taxed period amount.

    ``gst_amount`` and ``total_with_gst`` are denominated in
    ``basis_currency``; ``total_with_gst_usd`` is always the USD equivalent.
    """

    amount_inr: Decimal
    amount_usd: Decimal
    conversion_rate: Decimal
    basis_currency: Currency = Currency.INR
    gst_rate: Decimal = Decimal("18.0")
    gst_amount: Decimal = ZERO
    total_with_gst: Decimal = ZERO
    total_with_gst_usd: Decimal = ZERO

    @property
    def basis_amount(self) -> Decimal:
        return self.amount_inr if self.basis_currency == Currency.INR else self.amount_usd


class Invoice(BaseModel):
    """Invoice for one weekly or bi-weekly timesheet."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    invoice_number: str
    candidate_id: int
    timesheet_id: Optional[str] = None
    bi_weekly_timesheet_id: Optional[str] = None
    period_start_date: date
    period_end_date: date

    total_hours: Decimal = ZERO
    hourly_rate: Decimal = ZERO  # USD equivalent
    currency: Currency = Currency.USD
    basis_currency: Currency = Currency.INR
    total_amount: Decimal = ZERO
    gst_rate: Decimal = Decimal("18.0")
    gst_amount: Decimal = ZERO
    total_with_gst: Decimal = ZERO
    amount_inr: Decimal = ZERO
    amount_usd: Decimal = ZERO
    total_with_gst_usd: Decimal = ZERO
    currency_conversion_rate: Decimal = ZERO
    six_month_average_rate: Decimal = ZERO

    status: InvoiceStatus = InvoiceStatus.GENERATED
    issued_date: date
    due_date: date
    paid_date: Optional[date] = None
    generated_by: Optional[int] = None
    notes: str = ""

    client_company_id: Optional[int] = None
    end_user_id: Optional[int] = None
    company_settings_id: Optional[int] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_invoice(self) -> "Invoice":
        if (self.timesheet_id is None) == (self.bi_weekly_timesheet_id is None):
            raise ValueError("invoice must reference exactly one of timesheet_id / bi_weekly_timesheet_id")
        if self.total_with_gst != self.total_amount + self.gst_amount:
            raise ValueError("total_with_gst must equal total_amount + gst_amount")
        return self


# ---------------------------------------------------------------------------
# Reference data (display only)
# ---------------------------------------------------------------------------

class ClientCompany(BaseModel):
    """Bill-to party."""

    id: int
    name: str
    logo_url: str = ""
    bill_to_address: str = ""
    bill_to_city: str = ""
    bill_to_state: str = ""
    bill_to_country: str = ""
    bill_to_zip_code: str = ""
    contact_person: str = ""
    phone_numbers: list[str] = Field(default_factory=list)
    email_addresses: list[str] = Field(default_factory=list)
    is_active: bool = True


class EndUser(BaseModel):
    """Ship-to party: the client's end customer the candidate works for."""

    id: int
    client_company_id: int
    name: str
    ship_to_address: str = ""
    ship_to_city: str = ""
    ship_to_state: str = ""
    ship_to_country: str = ""
    ship_to_zip_code: str = ""


class CompanySettings(BaseModel):
    """From party: the staffing company issuing the invoice."""

    id: int
    name: str = "NIDDIK"
    logo_url: str = ""
    address: str = "3rd Floor, Flat No. C-11 Multistorey Apt."
    city: str = "New Delhi"
    state: str = "Delhi"
    country: str = "India"
    zip_code: str = "110025"
    phone_numbers: list[str] = Field(default_factory=list)
    email_addresses: list[str] = Field(default_factory=list)
    website: str = ""
    tax_id: str = ""
    gst_number: str = ""
    is_default: bool = False


class TimesheetDetails(BaseModel):
    """Hour breakdown printed on the invoice."""

    day_hours: WeekdayTotals = Field(default_factory=WeekdayTotals)
    day_overtime: WeekdayTotals = Field(default_factory=WeekdayTotals)
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    total_regular_amount: Decimal = ZERO
    total_overtime_amount: Decimal = ZERO


class InvoiceDocument(BaseModel):
    """Everything a document renderer needs for one invoice."""

    invoice: Invoice
    company: CompanySettings
    client: Optional[ClientCompany] = None
    end_user: Optional[EndUser] = None
    timesheet: TimesheetDetails = Field(default_factory=TimesheetDetails)
    billing_currency: str = "INR"
    hourly_rate: Decimal = ZERO
    employment_type: str = ""
    supervisor_name: str = ""
