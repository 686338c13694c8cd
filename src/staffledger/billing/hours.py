"""Daily/weekly hours validation, overtime splitting and leave accounting."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from staffledger.core.exceptions import InvalidHoursError
from staffledger.models.billing import BillingProfile, EmploymentType
from staffledger.models.timesheet import (
    WEEKDAYS,
    DayEntry,
    LeaveBalance,
    TimesheetStatus,
    WeekdayTotals,
    WeeklyTimesheet,
    WeeklyTotals,
)

logger = logging.getLogger(__name__)

MAX_DAY_HOURS = Decimal("24")
HOUR_FIELDS = (
    "regular_hours",
    "overtime_hours",
    "sick_hours",
    "paid_leave_hours",
    "unpaid_leave_hours",
)
ZERO = Decimal("0")


def _check_day(index: int, entry: DayEntry) -> None:
    day = WEEKDAYS[index].value
    for name in HOUR_FIELDS:
        value = getattr(entry, name)
        if value < 0:
            raise InvalidHoursError(f"{day}: {name} is negative ({value})", day_index=index)
    if entry.total_hours > MAX_DAY_HOURS:
        raise InvalidHoursError(
            f"{day}: {entry.total_hours} hours booked, more than {MAX_DAY_HOURS}",
            day_index=index,
        )


def validate_and_sum(
    entries: Sequence[DayEntry],
    employment_type: EmploymentType | None = None,
    enforce_leave_policy: bool = False,
) -> WeeklyTotals:
    """Validate seven day entries (Monday first) and sum them into weekly totals.

    Worked hours are regular + overtime; sick, paid and unpaid leave are
    summed separately and never counted as worked.

    Subcontractors do not accrue sick or paid leave. Such hours are logged
    and kept unless ``enforce_leave_policy`` is set, in which case they are
    rejected.

    Raises:
        InvalidHoursError: wrong number of days, a negative field, or a day
            totalling more than 24 hours.
    """
    if len(entries) != 7:
        raise InvalidHoursError(f"A week needs 7 day entries, got {len(entries)}")

    for index, entry in enumerate(entries):
        _check_day(index, entry)
        if employment_type == EmploymentType.SUBCONTRACT and (
            entry.sick_hours > 0 or entry.paid_leave_hours > 0
        ):
            message = f"{WEEKDAYS[index].value}: subcontractors cannot book sick or paid leave"
            if enforce_leave_policy:
                raise InvalidHoursError(message, day_index=index)
            logger.warning("%s; hours kept as entered", message)

    regular = [e.regular_hours for e in entries]
    overtime = [e.overtime_hours for e in entries]
    return WeeklyTotals(
        total_weekly_hours=sum(regular, ZERO) + sum(overtime, ZERO),
        total_regular_hours=sum(regular, ZERO),
        total_overtime_hours=sum(overtime, ZERO),
        total_sick_hours=sum((e.sick_hours for e in entries), ZERO),
        total_paid_leave_hours=sum((e.paid_leave_hours for e in entries), ZERO),
        total_unpaid_leave_hours=sum((e.unpaid_leave_hours for e in entries), ZERO),
        day_hours=WeekdayTotals.from_values(regular),
        day_overtime=WeekdayTotals.from_values(overtime),
    )


def split_daily_overtime(entries: Sequence[DayEntry], daily_limit: Decimal) -> list[DayEntry]:
    """Re-split each day's worked hours at ``daily_limit``.

    Hours up to the limit are regular, the rest overtime. Leave hours are
    carried over unchanged.
    """
    if daily_limit <= 0:
        raise InvalidHoursError(f"Daily hour limit must be positive, got {daily_limit}")

    if len(entries) != 7:
        raise InvalidHoursError(f"A week needs 7 day entries, got {len(entries)}")

    split: list[DayEntry] = []
    for index, entry in enumerate(entries):
        _check_day(index, entry)
        worked = entry.worked_hours
        regular = min(worked, daily_limit)
        split.append(entry.model_copy(update={
            "regular_hours": regular,
            "overtime_hours": worked - regular,
        }))
    return split


def leave_balance(profile: BillingProfile, timesheets: Iterable[WeeklyTimesheet]) -> LeaveBalance:
    """Leave days used and remaining against the profile's allotments.

    Days are hours divided by the profile's daily hour limit. Rejected
    timesheets are ignored. Remaining days go negative when an allotment is
    overdrawn. Subcontract profiles have no allotment.
    """
    sick = paid = unpaid = ZERO
    for ts in timesheets:
        if ts.candidate_id != profile.candidate_id or ts.status == TimesheetStatus.REJECTED:
            continue
        sick += ts.totals.total_sick_hours
        paid += ts.totals.total_paid_leave_hours
        unpaid += ts.totals.total_unpaid_leave_hours

    per_day = profile.daily_hour_limit
    fulltime = profile.employment_type == EmploymentType.FULLTIME
    sick_allotted = Decimal(profile.sick_leave_days) if fulltime else ZERO
    paid_allotted = Decimal(profile.paid_leave_days) if fulltime else ZERO

    return LeaveBalance(
        candidate_id=profile.candidate_id,
        sick_days_allotted=sick_allotted,
        sick_days_used=sick / per_day,
        sick_days_remaining=sick_allotted - sick / per_day,
        paid_days_allotted=paid_allotted,
        paid_days_used=paid / per_day,
        paid_days_remaining=paid_allotted - paid / per_day,
        unpaid_days_used=unpaid / per_day,
    )
