"""Status state machines for timesheets, periods and invoices."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel

from staffledger.core.exceptions import InvalidStatusTransitionError
from staffledger.models.invoice import Invoice, InvoiceStatus
from staffledger.models.timesheet import (
    BiWeeklyTimesheet,
    MonthlyTimesheet,
    PeriodStatus,
    TimesheetStatus,
    WeeklyTimesheet,
)

R = TypeVar("R", bound=BaseModel)

WEEKLY_TRANSITIONS: dict[TimesheetStatus, frozenset[TimesheetStatus]] = {
    TimesheetStatus.DRAFT: frozenset({TimesheetStatus.SUBMITTED}),
    TimesheetStatus.SUBMITTED: frozenset({TimesheetStatus.APPROVED, TimesheetStatus.REJECTED}),
    TimesheetStatus.APPROVED: frozenset(),
    TimesheetStatus.REJECTED: frozenset(),
}

PERIOD_TRANSITIONS: dict[PeriodStatus, frozenset[PeriodStatus]] = {
    PeriodStatus.CALCULATED: frozenset(
        {PeriodStatus.SUBMITTED, PeriodStatus.APPROVED, PeriodStatus.REJECTED}
    ),
    PeriodStatus.SUBMITTED: frozenset({PeriodStatus.APPROVED, PeriodStatus.REJECTED}),
    PeriodStatus.APPROVED: frozenset(),
    PeriodStatus.REJECTED: frozenset(),
}

INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.GENERATED: frozenset({InvoiceStatus.SENT}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.OVERDUE}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset(),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _move(record: R, table: dict[Any, frozenset[Any]], target: Any, **updates: Any) -> R:
    current = record.status  # type: ignore[attr-defined]
    if target not in table[current]:
        raise InvalidStatusTransitionError(type(record).__name__, current, target)
    return record.model_copy(update={"status": target, "updated_at": _now(), **updates})


def _require_reason(record: BaseModel, target: Any, reason: str) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise InvalidStatusTransitionError(
            type(record).__name__, record.status, target,  # type: ignore[attr-defined]
            reason="a rejection reason is required",
        )
    return reason


# ---------------------------------------------------------------------------
# Weekly
# ---------------------------------------------------------------------------

def submit_timesheet(timesheet: WeeklyTimesheet) -> WeeklyTimesheet:
    return _move(timesheet, WEEKLY_TRANSITIONS, TimesheetStatus.SUBMITTED, submitted_at=_now())


def approve_timesheet(timesheet: WeeklyTimesheet, approved_by: int | None = None) -> WeeklyTimesheet:
    return _move(
        timesheet, WEEKLY_TRANSITIONS, TimesheetStatus.APPROVED,
        approved_at=_now(), approved_by=approved_by,
    )


def reject_timesheet(timesheet: WeeklyTimesheet, reason: str) -> WeeklyTimesheet:
    reason = _require_reason(timesheet, TimesheetStatus.REJECTED, reason)
    return _move(timesheet, WEEKLY_TRANSITIONS, TimesheetStatus.REJECTED, rejection_reason=reason)


# ---------------------------------------------------------------------------
# Bi-weekly / monthly
# ---------------------------------------------------------------------------

P = TypeVar("P", BiWeeklyTimesheet, MonthlyTimesheet)


def submit_period(period: P) -> P:
    return _move(period, PERIOD_TRANSITIONS, PeriodStatus.SUBMITTED)


def approve_period(period: P, approved_by: int | None = None) -> P:
    return _move(
        period, PERIOD_TRANSITIONS, PeriodStatus.APPROVED,
        approved_at=_now(), approved_by=approved_by,
    )


def reject_period(period: P, reason: str) -> P:
    reason = _require_reason(period, PeriodStatus.REJECTED, reason)
    return _move(period, PERIOD_TRANSITIONS, PeriodStatus.REJECTED, rejection_reason=reason)


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------

def transition_invoice(invoice: Invoice, target: InvoiceStatus, on: date | None = None) -> Invoice:
    """Move an invoice along generated -> sent -> paid | overdue -> paid."""
    updates: dict[str, Any] = {}
    if target == InvoiceStatus.PAID:
        updates["paid_date"] = on or date.today()
    return _move(invoice, INVOICE_TRANSITIONS, InvoiceStatus(target), **updates)


def mark_overdue(invoices: Iterable[Invoice], today: date) -> list[Invoice]:
    """Overdue copies of every sent invoice whose due date has passed."""
    return [
        transition_invoice(inv, InvoiceStatus.OVERDUE)
        for inv in invoices
        if inv.status == InvoiceStatus.SENT and inv.due_date < today
    ]
