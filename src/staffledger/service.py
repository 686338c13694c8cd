"""TimesheetBillingService: the read / compute / persist facade over the engine.

Pure calculations live in ``staffledger.billing``; this module loads records
from the stores, calls the engine and saves what it returns.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal

from staffledger.billing import workflow
from staffledger.billing.amounts import build_weekly_timesheet
from staffledger.billing.currency_tax import convert_weekly_to_inr
from staffledger.billing.hours import leave_balance
from staffledger.billing.invoicing import (
    build_invoice_document,
    format_invoice_number,
    generate_invoice,
    invoice_period_key,
)
from staffledger.billing.periods import (
    aggregate_bi_weekly,
    aggregate_monthly,
    pair_contiguous_weeks,
)
from staffledger.billing.resolver import activate_billing_profile, resolve_active_billing
from staffledger.core.config import AppSettings
from staffledger.core.exceptions import (
    InvalidStatusTransitionError,
    InvoiceAlreadyExistsError,
    InvoiceNotFoundError,
    OverlappingPeriodError,
    TimesheetNotFoundError,
)
from staffledger.core.protocols import (
    IBillingStore,
    IInvoiceStore,
    IRateSupplier,
    IReferenceStore,
    ITimesheetStore,
)
from staffledger.core.types import ActorId, CandidateId, InvoiceNumber
from staffledger.models.billing import BillingProfile
from staffledger.models.invoice import (
    Currency,
    CurrencyRateData,
    Invoice,
    InvoiceDocument,
    InvoiceStatus,
)
from staffledger.models.timesheet import (
    BiWeeklyTimesheet,
    DayEntry,
    LeaveBalance,
    MonthBoundaryMode,
    MonthlyTimesheet,
    PeriodStatus,
    TimesheetStatus,
    WeeklyTimesheet,
)

logger = logging.getLogger(__name__)


class TimesheetBillingService:
    """Billing, timesheet and invoice operations for candidates."""

    def __init__(
        self,
        *,
        settings: AppSettings,
        billing_store: IBillingStore,
        timesheet_store: ITimesheetStore,
        invoice_store: IInvoiceStore,
        reference_store: IReferenceStore,
        rate_supplier: IRateSupplier,
    ) -> None:
        self._settings = settings
        self._billing = billing_store
        self._timesheets = timesheet_store
        self._invoices = invoice_store
        self._references = reference_store
        self._rates = rate_supplier

    # ---- Billing profiles ----

    def configure_billing(self, profile: BillingProfile) -> BillingProfile:
        """Activate new billing terms, closing the candidate's previous ones."""
        return activate_billing_profile(self._billing, profile)

    def get_active_billing(self, candidate_id: CandidateId, as_of: date | None = None) -> BillingProfile:
        return resolve_active_billing(self._billing, candidate_id, as_of)

    def billing_history(self, candidate_id: CandidateId) -> list[BillingProfile]:
        return sorted(
            self._billing.list_profiles(candidate_id),
            key=lambda p: (p.effective_from, p.created_at),
        )

    # ---- Weekly timesheets ----

    def get_weekly(self, candidate_id: CandidateId, week_start: date) -> WeeklyTimesheet:
        timesheet = self._timesheets.get_weekly(candidate_id, week_start)
        if timesheet is None:
            raise TimesheetNotFoundError(
                f"No weekly timesheet for candidate {candidate_id} week {week_start.isoformat()}"
            )
        return timesheet

    def list_weekly(
        self, candidate_id: CandidateId, status: TimesheetStatus | None = None
    ) -> list[WeeklyTimesheet]:
        return self._timesheets.list_weekly(candidate_id, status=status)

    def record_weekly_timesheet(
        self,
        candidate_id: CandidateId,
        week_start: date,
        entries: Sequence[DayEntry],
        created_by: ActorId | None = None,
    ) -> WeeklyTimesheet:
        """Price a new week at the terms in force on its Monday and store it as a draft.

        Raises:
            NoBillingConfiguredError: the candidate has no billing profile for ``week_start``.
            InvalidHoursError: an entry is negative or a day exceeds 24 hours.
            DuplicateTimesheetError: a non-rejected week already exists.
        """
        profile = self.get_active_billing(candidate_id, as_of=week_start)
        timesheet = build_weekly_timesheet(
            candidate_id,
            week_start,
            entries,
            profile,
            created_by=created_by,
            enforce_leave_policy=self._settings.billing.enforce_subcontract_leave_policy,
        )
        saved = self._timesheets.add_weekly(timesheet)
        logger.info(
            "Recorded week %s for candidate %s: %s hours, %s %s",
            week_start, candidate_id, saved.total_weekly_hours, saved.total_amount, saved.currency,
        )
        return saved

    def update_weekly_timesheet(
        self, candidate_id: CandidateId, week_start: date, entries: Sequence[DayEntry]
    ) -> WeeklyTimesheet:
        """Replace the hours of a draft week and recalculate it."""
        current = self.get_weekly(candidate_id, week_start)
        if current.status != TimesheetStatus.DRAFT:
            raise InvalidStatusTransitionError(
                "WeeklyTimesheet", current.status, current.status,
                reason="only draft timesheets can be edited",
            )
        profile = self.get_active_billing(candidate_id, as_of=week_start)
        updated = build_weekly_timesheet(
            candidate_id,
            week_start,
            entries,
            profile,
            enforce_leave_policy=self._settings.billing.enforce_subcontract_leave_policy,
            base=current,
        )
        return self._timesheets.update_weekly(updated)

    def submit_timesheet(self, candidate_id: CandidateId, week_start: date) -> WeeklyTimesheet:
        return self._timesheets.update_weekly(
            workflow.submit_timesheet(self.get_weekly(candidate_id, week_start))
        )

    def approve_timesheet(
        self, candidate_id: CandidateId, week_start: date, approved_by: ActorId | None = None
    ) -> WeeklyTimesheet:
        """Approve a submitted week and refresh the candidate's aggregates."""
        approved = self._timesheets.update_weekly(
            workflow.approve_timesheet(self.get_weekly(candidate_id, week_start), approved_by)
        )
        if self._settings.billing.auto_generate_aggregates:
            self.auto_generate_aggregates(candidate_id)
        return approved

    def reject_timesheet(self, candidate_id: CandidateId, week_start: date, reason: str) -> WeeklyTimesheet:
        return self._timesheets.update_weekly(
            workflow.reject_timesheet(self.get_weekly(candidate_id, week_start), reason)
        )

    def convert_weekly_to_inr(
        self, candidate_id: CandidateId, week_start: date, conversion_rate: Decimal | None = None
    ) -> WeeklyTimesheet:
        """Stamp a week with its INR amount at ``conversion_rate`` or today's rate."""
        rate = conversion_rate if conversion_rate is not None else self.current_rates().current_rate
        converted = convert_weekly_to_inr(self.get_weekly(candidate_id, week_start), rate)
        return self._timesheets.update_weekly(converted)

    def leave_balance(self, candidate_id: CandidateId) -> LeaveBalance:
        profile = self.get_active_billing(candidate_id)
        return leave_balance(profile, self._timesheets.list_weekly(candidate_id))

    # ---- Bi-weekly and monthly periods ----

    def get_bi_weekly(self, candidate_id: CandidateId, period_start: date) -> BiWeeklyTimesheet:
        period = self._timesheets.get_bi_weekly(candidate_id, period_start)
        if period is None:
            raise TimesheetNotFoundError(
                f"No bi-weekly timesheet for candidate {candidate_id} starting {period_start.isoformat()}"
            )
        return period

    def list_bi_weekly(self, candidate_id: CandidateId) -> list[BiWeeklyTimesheet]:
        return self._timesheets.list_bi_weekly(candidate_id)

    def get_monthly(self, candidate_id: CandidateId, year: int, month: int) -> MonthlyTimesheet:
        period = self._timesheets.get_monthly(candidate_id, year, month)
        if period is None:
            raise TimesheetNotFoundError(
                f"No monthly timesheet for candidate {candidate_id} {year}-{month:02d}"
            )
        return period

    def _claimed_weeks(self, candidate_id: CandidateId) -> dict[date, date]:
        """Map each week start already inside a live bi-weekly period to that period's start."""
        claimed: dict[date, date] = {}
        for period in self._timesheets.list_bi_weekly(candidate_id):
            if period.status == PeriodStatus.REJECTED:
                continue
            claimed[period.period_start_date] = period.period_start_date
            claimed[period.period_start_date + timedelta(days=7)] = period.period_start_date
        return claimed

    def generate_bi_weekly(self, candidate_id: CandidateId, week1_start: date) -> BiWeeklyTimesheet:
        """Aggregate two approved, consecutive weeks starting at ``week1_start``.

        An existing period that was already submitted, approved or rejected is
        returned unchanged; a merely calculated one is recalculated in place.

        Raises:
            OverlappingPeriodError: either week already belongs to another live period.
        """
        existing = self._timesheets.get_bi_weekly(candidate_id, week1_start)
        if existing is not None and existing.status != PeriodStatus.CALCULATED:
            return existing

        claimed = self._claimed_weeks(candidate_id)
        for start in (week1_start, week1_start + timedelta(days=7)):
            owner = claimed.get(start)
            if owner is not None and owner != week1_start:
                raise OverlappingPeriodError(candidate_id, week1_start, owner)

        week1 = self.get_weekly(candidate_id, week1_start)
        week2 = self.get_weekly(candidate_id, week1_start + timedelta(days=7))
        for week in (week1, week2):
            if week.status != TimesheetStatus.APPROVED:
                raise InvalidStatusTransitionError(
                    "WeeklyTimesheet", week.status, PeriodStatus.CALCULATED,
                    reason=f"week {week.week_start_date} must be approved before aggregation",
                )

        period = aggregate_bi_weekly(week1, week2)
        if existing is not None:
            period = period.model_copy(update={"id": existing.id, "created_at": existing.created_at})
        return self._timesheets.save_bi_weekly(period)

    def generate_monthly(
        self,
        candidate_id: CandidateId,
        year: int,
        month: int,
        mode: MonthBoundaryMode | None = None,
    ) -> MonthlyTimesheet:
        """Aggregate the approved weeks touching a calendar month."""
        existing = self._timesheets.get_monthly(candidate_id, year, month)
        if existing is not None and existing.status != PeriodStatus.CALCULATED:
            return existing

        mode = MonthBoundaryMode(mode or self._settings.billing.month_boundary_mode)
        weeks = self._timesheets.list_weekly(candidate_id, status=TimesheetStatus.APPROVED)
        period = aggregate_monthly(candidate_id, year, month, weeks, mode)
        if existing is not None:
            period = period.model_copy(update={"id": existing.id, "created_at": existing.created_at})
        return self._timesheets.save_monthly(period)

    def auto_generate_aggregates(
        self, candidate_id: CandidateId
    ) -> tuple[list[BiWeeklyTimesheet], list[MonthlyTimesheet]]:
        """Build every bi-weekly and monthly record the approved weeks allow."""
        approved = self._timesheets.list_weekly(candidate_id, status=TimesheetStatus.APPROVED)

        bi_weeklies = [
            self.generate_bi_weekly(candidate_id, first.week_start_date)
            for first, _ in pair_contiguous_weeks(approved, claimed=self._claimed_weeks(candidate_id))
        ]

        months: set[tuple[int, int]] = set()
        for week in approved:
            months.add((week.week_start_date.year, week.week_start_date.month))
            months.add((week.week_end_date.year, week.week_end_date.month))
        monthlies = [self.generate_monthly(candidate_id, y, m) for y, m in sorted(months)]

        logger.info(
            "Candidate %s aggregates refreshed: %d bi-weekly, %d monthly",
            candidate_id, len(bi_weeklies), len(monthlies),
        )
        return bi_weeklies, monthlies

    def approve_period(
        self, period: BiWeeklyTimesheet | MonthlyTimesheet, approved_by: ActorId | None = None
    ) -> BiWeeklyTimesheet | MonthlyTimesheet:
        return self._save_period(workflow.approve_period(period, approved_by))

    def reject_period(
        self, period: BiWeeklyTimesheet | MonthlyTimesheet, reason: str
    ) -> BiWeeklyTimesheet | MonthlyTimesheet:
        return self._save_period(workflow.reject_period(period, reason))

    def _save_period(
        self, period: BiWeeklyTimesheet | MonthlyTimesheet
    ) -> BiWeeklyTimesheet | MonthlyTimesheet:
        if isinstance(period, BiWeeklyTimesheet):
            return self._timesheets.save_bi_weekly(period)
        return self._timesheets.save_monthly(period)

    # ---- Currency ----

    def current_rates(self) -> CurrencyRateData:
        return self._rates.get_rates()

    # ---- Invoices ----

    def get_invoice(self, invoice_number: InvoiceNumber) -> Invoice:
        invoice = self._invoices.get_invoice(invoice_number)
        if invoice is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_number} not found")
        return invoice

    def list_invoices(self, candidate_id: CandidateId) -> list[Invoice]:
        return self._invoices.list_invoices(candidate_id)

    def generate_invoice_for_weekly(
        self,
        candidate_id: CandidateId,
        week_start: date,
        *,
        generated_by: ActorId | None = None,
        rate_override: Decimal | None = None,
        issued_date: date | None = None,
    ) -> Invoice:
        source = self.get_weekly(candidate_id, week_start)
        return self._issue_invoice(source, generated_by, rate_override, issued_date)

    def generate_invoice_for_bi_weekly(
        self,
        candidate_id: CandidateId,
        period_start: date,
        *,
        generated_by: ActorId | None = None,
        rate_override: Decimal | None = None,
        issued_date: date | None = None,
    ) -> Invoice:
        source = self.get_bi_weekly(candidate_id, period_start)
        return self._issue_invoice(source, generated_by, rate_override, issued_date)

    def _issue_invoice(
        self,
        source: WeeklyTimesheet | BiWeeklyTimesheet,
        generated_by: ActorId | None,
        rate_override: Decimal | None,
        issued_date: date | None,
    ) -> Invoice:
        if isinstance(source, WeeklyTimesheet):
            start, end = source.week_start_date, source.week_end_date
        else:
            start, end = source.period_start_date, source.period_end_date

        if self._invoices.find_for_period(source.candidate_id, start, end) is not None:
            raise InvoiceAlreadyExistsError(source.candidate_id, start, end)

        issued = issued_date or date.today()
        billing = self._settings.billing
        profile = self.get_active_billing(source.candidate_id, as_of=start)
        # Validate the source before consuming a sequence number.
        draft_number = format_invoice_number(issued, 1, billing.invoice_prefix)
        invoice = generate_invoice(
            source,
            profile,
            self.current_rates(),
            draft_number,
            issued,
            gst_rate=billing.gst_rate,
            basis=Currency(billing.gst_basis),
            due_days=billing.invoice_due_days,
            rate_override=rate_override,
            generated_by=generated_by,
        )

        sequence = self._invoices.next_invoice_sequence(invoice_period_key(issued))
        invoice = invoice.model_copy(update={
            "invoice_number": format_invoice_number(issued, sequence, billing.invoice_prefix),
        })
        return self._invoices.add_invoice(invoice)

    def update_invoice_status(
        self, invoice_number: InvoiceNumber, status: InvoiceStatus, on: date | None = None
    ) -> Invoice:
        invoice = workflow.transition_invoice(self.get_invoice(invoice_number), status, on)
        return self._invoices.update_invoice(invoice)

    def flag_overdue_invoices(self, candidate_id: CandidateId, today: date | None = None) -> list[Invoice]:
        overdue = workflow.mark_overdue(self.list_invoices(candidate_id), today or date.today())
        for invoice in overdue:
            self._invoices.update_invoice(invoice)
            logger.warning("Invoice %s is overdue (due %s)", invoice.invoice_number, invoice.due_date)
        return overdue

    def invoice_document(self, invoice_number: InvoiceNumber) -> InvoiceDocument:
        """Gather the invoice, its parties and the hour breakdown for rendering."""
        invoice = self.get_invoice(invoice_number)
        profile = self.get_active_billing(invoice.candidate_id, as_of=invoice.period_start_date)

        company = None
        if invoice.company_settings_id is not None:
            company = self._references.get_company_settings(invoice.company_settings_id)
        if company is None:
            company = self._references.get_default_company_settings()

        client = (
            self._references.get_client_company(invoice.client_company_id)
            if invoice.client_company_id is not None else None
        )
        end_user = (
            self._references.get_end_user(invoice.end_user_id)
            if invoice.end_user_id is not None else None
        )

        source: WeeklyTimesheet | BiWeeklyTimesheet | None
        if invoice.timesheet_id is not None:
            source = self._timesheets.get_weekly(invoice.candidate_id, invoice.period_start_date)
        else:
            source = self._timesheets.get_bi_weekly(invoice.candidate_id, invoice.period_start_date)

        return build_invoice_document(
            invoice, profile, company=company, client=client, end_user=end_user, source=source,
        )
