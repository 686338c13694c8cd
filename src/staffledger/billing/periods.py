"""Bi-weekly and monthly roll-ups of weekly timesheets.

Source weeks are read-only here: every function returns new records and
leaves its inputs untouched.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from staffledger.billing.amounts import price_hours
from staffledger.billing.hours import validate_and_sum
from staffledger.core.exceptions import (
    CandidateMismatchError,
    MixedCurrencyError,
    NonContiguousWeeksError,
)
from staffledger.models.timesheet import (
    BiWeeklyTimesheet,
    DayEntry,
    MonthBoundaryMode,
    MonthlyTimesheet,
    PeriodTotals,
    WeekBreakdown,
    WeekdayTotals,
    WeeklyTimesheet,
)

ONE_WEEK = timedelta(days=7)


def _check_same_currency(weeks: Sequence[WeeklyTimesheet]) -> str:
    currencies = {w.currency for w in weeks}
    if len(currencies) > 1:
        raise MixedCurrencyError(f"Weeks billed in several currencies: {sorted(currencies)}")
    return currencies.pop() if currencies else "INR"


def aggregate_bi_weekly(week1: WeeklyTimesheet, week2: WeeklyTimesheet) -> BiWeeklyTimesheet:
    """Combine two back-to-back weeks of one candidate.

    Raises:
        CandidateMismatchError: weeks belong to different candidates.
        NonContiguousWeeksError: ``week2`` does not start 7 days after ``week1``.
    """
    if week1.candidate_id != week2.candidate_id:
        raise CandidateMismatchError(
            f"Weeks belong to candidates {week1.candidate_id} and {week2.candidate_id}"
        )
    if week2.week_start_date != week1.week_start_date + ONE_WEEK:
        raise NonContiguousWeeksError(week1.week_start_date, week2.week_start_date)
    currency = _check_same_currency([week1, week2])

    return BiWeeklyTimesheet(
        candidate_id=week1.candidate_id,
        period_start_date=week1.week_start_date,
        period_end_date=week2.week_end_date,
        totals=PeriodTotals.from_weekly(week1) + PeriodTotals.from_weekly(week2),
        week1=WeekBreakdown.from_weekly(week1),
        week2=WeekBreakdown.from_weekly(week2),
        day_hours=week1.totals.day_hours + week2.totals.day_hours,
        day_overtime=week1.totals.day_overtime + week2.totals.day_overtime,
        currency=currency,
    )


def pair_contiguous_weeks(
    weeks: Iterable[WeeklyTimesheet],
    claimed: Iterable[date] = (),
) -> list[tuple[WeeklyTimesheet, WeeklyTimesheet]]:
    """Pair consecutive weeks, earliest first, without overlap.

    Weeks whose start date is in ``claimed`` already belong to a period and
    are never paired again. A week with no free neighbour stays unpaired
    until its partner arrives.
    """
    taken = set(claimed)
    ordered = sorted(
        (w for w in weeks if w.week_start_date not in taken), key=lambda w: w.week_start_date
    )
    pairs: list[tuple[WeeklyTimesheet, WeeklyTimesheet]] = []
    i = 0
    while i < len(ordered) - 1:
        first, second = ordered[i], ordered[i + 1]
        if second.week_start_date == first.week_start_date + ONE_WEEK:
            pairs.append((first, second))
            i += 2
        else:
            i += 1
    return pairs


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1..12, got {month}")
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def _prorated_week(
    week: WeeklyTimesheet, first: date, last: date
) -> tuple[PeriodTotals, WeekdayTotals, WeekdayTotals]:
    """Totals for the days of ``week`` that fall inside ``[first, last]``.

    Amounts are repriced from the week's billing snapshot.
    """
    inside = [
        entry if first <= day <= last else DayEntry()
        for entry, day in zip(week.days, week.day_dates())
    ]
    hours = validate_and_sum(inside)
    amounts = price_hours(
        hours.total_regular_hours,
        hours.total_overtime_hours,
        week.hourly_rate,
        week.overtime_multiplier,
        week.employment_type,
        week.tds_rate,
    )
    totals = PeriodTotals(
        total_hours=hours.total_weekly_hours,
        total_regular_hours=hours.total_regular_hours,
        total_overtime_hours=hours.total_overtime_hours,
        total_sick_hours=hours.total_sick_hours,
        total_paid_leave_hours=hours.total_paid_leave_hours,
        total_unpaid_leave_hours=hours.total_unpaid_leave_hours,
        total_amount=amounts.total_amount,
        total_regular_amount=amounts.regular_amount,
        total_overtime_amount=amounts.overtime_amount,
        total_tds_amount=amounts.tds_amount,
        total_net_amount=amounts.net_amount,
    )
    return totals, hours.day_hours, hours.day_overtime


def aggregate_monthly(
    candidate_id: int,
    year: int,
    month: int,
    weeks: Iterable[WeeklyTimesheet],
    mode: MonthBoundaryMode = MonthBoundaryMode.FULL,
) -> MonthlyTimesheet:
    """Roll up every week whose Monday..Sunday span touches the month.

    In ``full`` mode a week straddling two months contributes all of its
    hours to both, so boundary weeks are counted twice across consecutive
    monthly records. ``prorated`` mode counts only the days inside the month.

    Weeks that do not touch the month are ignored.

    Raises:
        CandidateMismatchError: a contributing week belongs to someone else.
    """
    first, last = month_bounds(year, month)
    contributing = sorted(
        (w for w in weeks if w.overlaps(first, last)),
        key=lambda w: w.week_start_date,
    )

    strangers = {w.candidate_id for w in contributing} - {candidate_id}
    if strangers:
        raise CandidateMismatchError(
            f"Monthly roll-up for candidate {candidate_id} got weeks of {sorted(strangers)}"
        )
    currency = _check_same_currency(contributing)

    totals = PeriodTotals()
    day_hours = WeekdayTotals()
    day_overtime = WeekdayTotals()
    for week in contributing:
        if mode == MonthBoundaryMode.PRORATED:
            week_totals, week_hours, week_overtime = _prorated_week(week, first, last)
        else:
            week_totals = PeriodTotals.from_weekly(week)
            week_hours, week_overtime = week.totals.day_hours, week.totals.day_overtime
        totals = totals + week_totals
        day_hours = day_hours + week_hours
        day_overtime = day_overtime + week_overtime

    return MonthlyTimesheet(
        candidate_id=candidate_id,
        year=year,
        month=month,
        month_name=f"{calendar.month_name[month]} {year}",
        period_start_date=first,
        period_end_date=last,
        total_weeks=len(contributing),
        week_start_dates=[w.week_start_date for w in contributing],
        mode=mode,
        totals=totals,
        day_hours=day_hours,
        day_overtime=day_overtime,
        currency=currency,
    )
