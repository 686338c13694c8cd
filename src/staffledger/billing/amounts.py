"""Overtime and amount calculation for a weekly timesheet."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from staffledger.billing.hours import split_daily_overtime, validate_and_sum
from staffledger.core.money import ZERO, percent_of
from staffledger.models.billing import BillingProfile, EmploymentType, OvertimePolicy
from staffledger.models.timesheet import DayEntry, WeeklyAmounts, WeeklyTimesheet, WeeklyTotals


def week_bounds(day: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def price_hours(
    regular_hours: Decimal,
    overtime_hours: Decimal,
    hourly_rate: Decimal,
    overtime_multiplier: Decimal,
    employment_type: EmploymentType,
    tds_rate: Decimal,
) -> WeeklyAmounts:
    """Exact amounts for a number of regular and overtime hours."""
    regular_amount = regular_hours * hourly_rate
    overtime_amount = overtime_hours * hourly_rate * overtime_multiplier
    total_amount = regular_amount + overtime_amount

    if employment_type == EmploymentType.SUBCONTRACT:
        tds_amount = percent_of(total_amount, tds_rate)
    else:
        tds_amount = ZERO

    return WeeklyAmounts(
        regular_amount=regular_amount,
        overtime_amount=overtime_amount,
        total_amount=total_amount,
        tds_amount=tds_amount,
        net_amount=total_amount - tds_amount,
    )


def compute_amounts(totals: WeeklyTotals, profile: BillingProfile) -> WeeklyAmounts:
    """Price weekly hours at the profile's rate.

    Overtime is billed at ``hourly_rate * overtime_multiplier`` (1 unless a
    profile says otherwise). Subcontract profiles withhold TDS from the
    total; full-time profiles do not. No rounding is applied.
    """
    return price_hours(
        totals.total_regular_hours,
        totals.total_overtime_hours,
        profile.hourly_rate,
        profile.overtime_multiplier,
        profile.employment_type,
        profile.tds_rate,
    )


def build_weekly_timesheet(
    candidate_id: int,
    week_start_date: date,
    entries: Sequence[DayEntry],
    profile: BillingProfile,
    *,
    created_by: int | None = None,
    enforce_leave_policy: bool = False,
    base: WeeklyTimesheet | None = None,
) -> WeeklyTimesheet:
    """Validate, split, sum and price one week of day entries.

    When ``base`` is given its identity and workflow fields are kept and only
    the hours, totals, amounts and billing snapshot are replaced (used to
    recalculate a draft after an edit).
    """
    days = list(entries)
    if profile.overtime_policy == OvertimePolicy.DAILY_LIMIT:
        days = split_daily_overtime(days, profile.daily_hour_limit)

    totals = validate_and_sum(
        days,
        employment_type=profile.employment_type,
        enforce_leave_policy=enforce_leave_policy,
    )
    amounts = compute_amounts(totals, profile)

    computed = {
        "candidate_id": candidate_id,
        "week_start_date": week_start_date,
        "week_end_date": week_start_date + timedelta(days=6),
        "days": days,
        "totals": totals,
        "amounts": amounts,
        "billing_profile_id": profile.id,
        "hourly_rate": profile.hourly_rate,
        "currency": profile.currency,
        "employment_type": profile.employment_type,
        "tds_rate": profile.tds_rate,
        "overtime_multiplier": profile.overtime_multiplier,
    }

    if base is not None:
        data = base.model_dump()
        data.update(computed)
        data.update({
            "amount_inr": None,
            "conversion_rate": None,
            "conversion_date": None,
            "updated_at": datetime.now(timezone.utc),
        })
        return WeeklyTimesheet.model_validate(data)

    return WeeklyTimesheet(created_by=created_by, **computed)
