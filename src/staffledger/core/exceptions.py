"""StaffLedger exception hierarchy."""

from __future__ import annotations

from datetime import date


class StaffLedgerError(Exception):
    """Base exception for all StaffLedger errors."""


class NoBillingConfiguredError(StaffLedgerError):
    """Candidate has no billing profile covering the requested date."""

    def __init__(self, candidate_id: int, as_of: date | None = None) -> None:
        self.candidate_id = candidate_id
        self.as_of = as_of
        when = f" on {as_of.isoformat()}" if as_of else ""
        super().__init__(f"No billing configuration for candidate {candidate_id}{when}")


class InvalidHoursError(StaffLedgerError):
    """A day entry carries negative hours or more than 24 hours in total."""

    def __init__(self, message: str, day_index: int | None = None) -> None:
        self.day_index = day_index
        super().__init__(message)


class NonContiguousWeeksError(StaffLedgerError):
    """Bi-weekly aggregation was given weeks that are not back to back."""

    def __init__(self, week1_start: date, week2_start: date) -> None:
        self.week1_start = week1_start
        self.week2_start = week2_start
        super().__init__(
            f"Week starting {week2_start.isoformat()} does not follow "
            f"week starting {week1_start.isoformat()}"
        )


class CandidateMismatchError(StaffLedgerError):
    """Records belonging to different candidates were combined."""


class InvalidConversionRateError(StaffLedgerError):
    """Conversion rate is zero or negative."""


class InvalidStatusTransitionError(StaffLedgerError):
    """A record was moved to a status its state machine does not allow."""

    def __init__(self, record: str, current: str, target: str, reason: str = "") -> None:
        self.record = record
        self.current = current
        self.target = target
        detail = f": {reason}" if reason else ""
        super().__init__(f"{record} cannot move from {current!r} to {target!r}{detail}")


class TimesheetNotApprovedError(StaffLedgerError):
    """Invoice requested for a timesheet that has not been approved."""


class DuplicateTimesheetError(StaffLedgerError):
    """A non-rejected weekly timesheet already exists for the candidate and week."""

    def __init__(self, candidate_id: int, week_start: date) -> None:
        self.candidate_id = candidate_id
        self.week_start = week_start
        super().__init__(
            f"Timesheet for candidate {candidate_id} week {week_start.isoformat()} already exists"
        )


class DuplicateInvoiceNumberError(StaffLedgerError):
    """Invoice number is already taken."""

    def __init__(self, invoice_number: str) -> None:
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number {invoice_number} already exists")


class InvoiceAlreadyExistsError(StaffLedgerError):
    """An invoice was already generated for this candidate and period."""

    def __init__(self, candidate_id: int, period_start: date, period_end: date) -> None:
        self.candidate_id = candidate_id
        self.period_start = period_start
        self.period_end = period_end
        super().__init__(
            f"Invoice already exists for candidate {candidate_id} "
            f"period {period_start.isoformat()}..{period_end.isoformat()}"
        )



class OverlappingPeriodError(StaffLedgerError):
    """A bi-weekly period would share a week with an existing one."""

    def __init__(self, candidate_id: int, period_start: date, existing_start: date) -> None:
        self.candidate_id = candidate_id
        self.period_start = period_start
        self.existing_start = existing_start
        super().__init__(
            f"Bi-weekly period {period_start.isoformat()} for candidate {candidate_id} "
            f"overlaps the period starting {existing_start.isoformat()}"
        )


class NotFoundError(StaffLedgerError):
    """Requested record does not exist."""


class TimesheetNotFoundError(NotFoundError):
    """Timesheet (weekly, bi-weekly or monthly) not found."""


class InvoiceNotFoundError(NotFoundError):
    """Invoice not found."""


class CacheError(StaffLedgerError):
    """Redis cache operation failed."""


class CurrencyRateError(StaffLedgerError):
    """Exchange rate supplier returned no usable data."""


class StorageError(StaffLedgerError):
    """Persistence backend call failed."""


class MixedCurrencyError(StaffLedgerError):
    """Records billed in different currencies were combined into one period."""
