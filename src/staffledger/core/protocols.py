"""Protocol interfaces for all StaffLedger abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from staffledger.models.billing import BillingProfile
from staffledger.models.invoice import (
    ClientCompany,
    CompanySettings,
    CurrencyRateData,
    EndUser,
    Invoice,
)
from staffledger.models.timesheet import (
    BiWeeklyTimesheet,
    MonthlyTimesheet,
    TimesheetStatus,
    WeeklyTimesheet,
)


# ---------------------------------------------------------------------------
# Persistence: Billing profiles
# ---------------------------------------------------------------------------

@runtime_checkable
class IBillingStore(Protocol):
    """All billing profile versions per candidate."""

    def list_profiles(self, candidate_id: int) -> list[BillingProfile]: ...

    def save_profile(self, profile: BillingProfile) -> BillingProfile: ...


# ---------------------------------------------------------------------------
# Persistence: Timesheets
# ---------------------------------------------------------------------------

@runtime_checkable
class ITimesheetStore(Protocol):
    """Weekly, bi-weekly and monthly timesheet records.

    ``add_weekly`` raises DuplicateTimesheetError when a non-rejected
    timesheet already exists for the candidate and week.
    """

    def add_weekly(self, timesheet: WeeklyTimesheet) -> WeeklyTimesheet: ...

    def update_weekly(self, timesheet: WeeklyTimesheet) -> WeeklyTimesheet: ...

    def get_weekly(self, candidate_id: int, week_start: date) -> WeeklyTimesheet | None: ...

    def list_weekly(
        self,
        candidate_id: int,
        status: TimesheetStatus | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[WeeklyTimesheet]: ...

    def save_bi_weekly(self, timesheet: BiWeeklyTimesheet) -> BiWeeklyTimesheet: ...

    def get_bi_weekly(self, candidate_id: int, period_start: date) -> BiWeeklyTimesheet | None: ...

    def list_bi_weekly(self, candidate_id: int) -> list[BiWeeklyTimesheet]: ...

    def save_monthly(self, timesheet: MonthlyTimesheet) -> MonthlyTimesheet: ...

    def get_monthly(self, candidate_id: int, year: int, month: int) -> MonthlyTimesheet | None: ...

    def list_monthly(self, candidate_id: int) -> list[MonthlyTimesheet]: ...


# ---------------------------------------------------------------------------
# Persistence: Invoices
# ---------------------------------------------------------------------------

@runtime_checkable
class IInvoiceStore(Protocol):
    """Invoice records.

    ``add_invoice`` raises DuplicateInvoiceNumberError for a reused number and
    InvoiceAlreadyExistsError for a second invoice over the same
    (candidate, period).
    """

    def next_invoice_sequence(self, period_key: str) -> int: ...

    def add_invoice(self, invoice: Invoice) -> Invoice: ...

    def update_invoice(self, invoice: Invoice) -> Invoice: ...

    def get_invoice(self, invoice_number: str) -> Invoice | None: ...

    def find_for_period(
        self, candidate_id: int, period_start: date, period_end: date
    ) -> Invoice | None: ...

    def list_invoices(self, candidate_id: int) -> list[Invoice]: ...


# ---------------------------------------------------------------------------
# Persistence: Invoice parties
# ---------------------------------------------------------------------------

@runtime_checkable
class IReferenceStore(Protocol):
    """Client companies, end users and company settings."""

    def get_client_company(self, company_id: int) -> ClientCompany | None: ...

    def get_end_user(self, end_user_id: int) -> EndUser | None: ...

    def get_company_settings(self, settings_id: int) -> CompanySettings | None: ...

    def get_default_company_settings(self) -> CompanySettings | None: ...


# ---------------------------------------------------------------------------
# Persistence: Cache Backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# Currency rates
# ---------------------------------------------------------------------------

@runtime_checkable
class IRateSupplier(Protocol):
    """Source of the USD->INR spot rate and its trailing six-month average."""

    def get_rates(self) -> CurrencyRateData: ...
