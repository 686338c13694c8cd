"""In-memory backends for unit tests and local development: dict-backed fakes."""

from __future__ import annotations

from datetime import date

from staffledger.core.exceptions import (
    DuplicateInvoiceNumberError,
    DuplicateTimesheetError,
    InvoiceAlreadyExistsError,
    InvoiceNotFoundError,
    TimesheetNotFoundError,
)
from staffledger.models.billing import BillingProfile
from staffledger.models.invoice import ClientCompany, CompanySettings, EndUser, Invoice
from staffledger.models.timesheet import (
    BiWeeklyTimesheet,
    MonthlyTimesheet,
    TimesheetStatus,
    WeeklyTimesheet,
)


class MemoryBillingStore:
    """Dict-backed IBillingStore."""

    def __init__(self) -> None:
        self._profiles: dict[int, dict[str, BillingProfile]] = {}

    def list_profiles(self, candidate_id: int) -> list[BillingProfile]:
        return list(self._profiles.get(candidate_id, {}).values())

    def save_profile(self, profile: BillingProfile) -> BillingProfile:
        self._profiles.setdefault(profile.candidate_id, {})[profile.id] = profile
        return profile


class MemoryTimesheetStore:
    """Dict-backed ITimesheetStore.

    Weekly timesheets are keyed by (candidate, week start); a rejected week
    may be replaced by a fresh entry, anything else is a duplicate.
    """

    def __init__(self) -> None:
        self._weekly: dict[tuple[int, date], WeeklyTimesheet] = {}
        self._bi_weekly: dict[tuple[int, date], BiWeeklyTimesheet] = {}
        self._monthly: dict[tuple[int, int, int], MonthlyTimesheet] = {}

    def add_weekly(self, timesheet: WeeklyTimesheet) -> WeeklyTimesheet:
        key = (timesheet.candidate_id, timesheet.week_start_date)
        existing = self._weekly.get(key)
        if existing is not None and existing.status != TimesheetStatus.REJECTED:
            raise DuplicateTimesheetError(*key)
        self._weekly[key] = timesheet
        return timesheet

    def update_weekly(self, timesheet: WeeklyTimesheet) -> WeeklyTimesheet:
        key = (timesheet.candidate_id, timesheet.week_start_date)
        existing = self._weekly.get(key)
        if existing is None or existing.id != timesheet.id:
            raise TimesheetNotFoundError(
                f"No weekly timesheet {timesheet.id} for candidate {key[0]} week {key[1]}"
            )
        self._weekly[key] = timesheet
        return timesheet

    def get_weekly(self, candidate_id: int, week_start: date) -> WeeklyTimesheet | None:
        return self._weekly.get((candidate_id, week_start))

    def list_weekly(
        self,
        candidate_id: int,
        status: TimesheetStatus | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[WeeklyTimesheet]:
        weeks = [
            ts for (cid, _), ts in self._weekly.items()
            if cid == candidate_id
            and (status is None or ts.status == status)
            and (start is None or ts.week_end_date >= start)
            and (end is None or ts.week_start_date <= end)
        ]
        return sorted(weeks, key=lambda ts: ts.week_start_date)

    def save_bi_weekly(self, timesheet: BiWeeklyTimesheet) -> BiWeeklyTimesheet:
        self._bi_weekly[(timesheet.candidate_id, timesheet.period_start_date)] = timesheet
        return timesheet

    def get_bi_weekly(self, candidate_id: int, period_start: date) -> BiWeeklyTimesheet | None:
        return self._bi_weekly.get((candidate_id, period_start))

    def list_bi_weekly(self, candidate_id: int) -> list[BiWeeklyTimesheet]:
        return sorted(
            (ts for (cid, _), ts in self._bi_weekly.items() if cid == candidate_id),
            key=lambda ts: ts.period_start_date,
        )

    def save_monthly(self, timesheet: MonthlyTimesheet) -> MonthlyTimesheet:
        self._monthly[(timesheet.candidate_id, timesheet.year, timesheet.month)] = timesheet
        return timesheet

    def get_monthly(self, candidate_id: int, year: int, month: int) -> MonthlyTimesheet | None:
        return self._monthly.get((candidate_id, year, month))

    def list_monthly(self, candidate_id: int) -> list[MonthlyTimesheet]:
        return sorted(
            (ts for (cid, _, _), ts in self._monthly.items() if cid == candidate_id),
            key=lambda ts: (ts.year, ts.month),
        )


class MemoryInvoiceStore:
    """Dict-backed IInvoiceStore with per-month sequence counters."""

    def __init__(self) -> None:
        self._invoices: dict[str, Invoice] = {}
        self._counters: dict[str, int] = {}

    def next_invoice_sequence(self, period_key: str) -> int:
        self._counters[period_key] = self._counters.get(period_key, 0) + 1
        return self._counters[period_key]

    def add_invoice(self, invoice: Invoice) -> Invoice:
        if invoice.invoice_number in self._invoices:
            raise DuplicateInvoiceNumberError(invoice.invoice_number)
        if self.find_for_period(
            invoice.candidate_id, invoice.period_start_date, invoice.period_end_date
        ) is not None:
            raise InvoiceAlreadyExistsError(
                invoice.candidate_id, invoice.period_start_date, invoice.period_end_date
            )
        self._invoices[invoice.invoice_number] = invoice
        return invoice

    def update_invoice(self, invoice: Invoice) -> Invoice:
        if invoice.invoice_number not in self._invoices:
            raise InvoiceNotFoundError(f"Invoice {invoice.invoice_number} not found")
        self._invoices[invoice.invoice_number] = invoice
        return invoice

    def get_invoice(self, invoice_number: str) -> Invoice | None:
        return self._invoices.get(invoice_number)

    def find_for_period(
        self, candidate_id: int, period_start: date, period_end: date
    ) -> Invoice | None:
        for inv in self._invoices.values():
            if (
                inv.candidate_id == candidate_id
                and inv.period_start_date == period_start
                and inv.period_end_date == period_end
            ):
                return inv
        return None

    def list_invoices(self, candidate_id: int) -> list[Invoice]:
        return sorted(
            (inv for inv in self._invoices.values() if inv.candidate_id == candidate_id),
            key=lambda inv: inv.invoice_number,
        )


class MemoryReferenceStore:
    """Dict-backed IReferenceStore, populated directly by tests."""

    def __init__(self) -> None:
        self.client_companies: dict[int, ClientCompany] = {}
        self.end_users: dict[int, EndUser] = {}
        self.company_settings: dict[int, CompanySettings] = {}

    def get_client_company(self, company_id: int) -> ClientCompany | None:
        return self.client_companies.get(company_id)

    def get_end_user(self, end_user_id: int) -> EndUser | None:
        return self.end_users.get(end_user_id)

    def get_company_settings(self, settings_id: int) -> CompanySettings | None:
        return self.company_settings.get(settings_id)

    def get_default_company_settings(self) -> CompanySettings | None:
        return next((s for s in self.company_settings.values() if s.is_default), None)

    def save_client_company(self, company: ClientCompany) -> ClientCompany:
        self.client_companies[company.id] = company
        return company

    def save_end_user(self, end_user: EndUser) -> EndUser:
        self.end_users[end_user.id] = end_user
        return end_user

    def save_company_settings(self, settings: CompanySettings) -> CompanySettings:
        self.company_settings[settings.id] = settings
        return settings


class MemoryCacheBackend:
    """Dict-backed ICacheBackend for unit tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)
