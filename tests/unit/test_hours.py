"""Tests for day-entry validation, weekly sums, overtime split and leave balance."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal

import pytest

from staffledger.billing.amounts import build_weekly_timesheet
from staffledger.billing.hours import leave_balance, split_daily_overtime, validate_and_sum
from staffledger.core.exceptions import InvalidHoursError
from staffledger.models.billing import EmploymentType
from staffledger.models.timesheet import DayEntry, TimesheetStatus
from tests.fakes import make_profile, standard_week, week_of

MONDAY = date(2025, 1, 6)


class TestValidateAndSum:
    def test_sums_regular_and_overtime(self):
        totals = validate_and_sum(standard_week("8", "1"))
        assert totals.total_regular_hours == Decimal("40")
        assert totals.total_overtime_hours == Decimal("5")
        assert totals.total_weekly_hours == Decimal("45")
        assert totals.day_hours.monday == Decimal("8")
        assert totals.day_overtime.friday == Decimal("1")
        assert totals.day_hours.saturday == Decimal("0")

    def test_leave_is_not_worked_time(self):
        entries = week_of(
            DayEntry(sick_hours=Decimal("8")),
            DayEntry(paid_leave_hours=Decimal("8")),
            DayEntry(unpaid_leave_hours=Decimal("4"), regular_hours=Decimal("4")),
        )
        totals = validate_and_sum(entries, EmploymentType.FULLTIME)
        assert totals.total_weekly_hours == Decimal("4")
        assert totals.total_sick_hours == Decimal("8")
        assert totals.total_paid_leave_hours == Decimal("8")
        assert totals.total_unpaid_leave_hours == Decimal("4")

    def test_all_zero_week(self):
        totals = validate_and_sum(week_of())
        assert totals.total_weekly_hours == Decimal("0")

    def test_day_over_24_hours_rejected(self):
        entries = week_of(DayEntry(regular_hours=Decimal("20"), overtime_hours=Decimal("5")))
        with pytest.raises(InvalidHoursError) as exc_info:
            validate_and_sum(entries)
        assert exc_info.value.day_index == 0

    def test_leave_counts_towards_24_hours(self):
        entries = week_of(DayEntry(), DayEntry(regular_hours=Decimal("16"), sick_hours=Decimal("9")))
        with pytest.raises(InvalidHoursError) as exc_info:
            validate_and_sum(entries, EmploymentType.FULLTIME)
        assert exc_info.value.day_index == 1

    def test_exactly_24_hours_allowed(self):
        entries = week_of(DayEntry(regular_hours=Decimal("16"), overtime_hours=Decimal("8")))
        assert validate_and_sum(entries).total_weekly_hours == Decimal("24")

    def test_negative_hours_rejected(self):
        entries = week_of(DayEntry(regular_hours=Decimal("-1")))
        with pytest.raises(InvalidHoursError):
            validate_and_sum(entries)

    def test_wrong_day_count_rejected(self):
        with pytest.raises(InvalidHoursError):
            validate_and_sum([DayEntry()] * 5)

    def test_subcontract_leave_warns_by_default(self, caplog):
        entries = week_of(DayEntry(sick_hours=Decimal("8")))
        with caplog.at_level(logging.WARNING, logger="staffledger"):
            totals = validate_and_sum(entries, EmploymentType.SUBCONTRACT)
        assert totals.total_sick_hours == Decimal("8")
        assert "subcontractors cannot book sick or paid leave" in caplog.text

    def test_subcontract_leave_rejected_when_enforced(self):
        entries = week_of(DayEntry(paid_leave_hours=Decimal("8")))
        with pytest.raises(InvalidHoursError):
            validate_and_sum(entries, EmploymentType.SUBCONTRACT, enforce_leave_policy=True)

    def test_subcontract_unpaid_leave_is_fine(self):
        entries = week_of(DayEntry(unpaid_leave_hours=Decimal("8")))
        totals = validate_and_sum(entries, EmploymentType.SUBCONTRACT, enforce_leave_policy=True)
        assert totals.total_unpaid_leave_hours == Decimal("8")


class TestSplitDailyOvertime:
    def test_hours_above_limit_become_overtime(self):
        entries = week_of(DayEntry(regular_hours=Decimal("10")), DayEntry(regular_hours=Decimal("6")))
        split = split_daily_overtime(entries, Decimal("8"))
        assert split[0].regular_hours == Decimal("8")
        assert split[0].overtime_hours == Decimal("2")
        assert split[1].regular_hours == Decimal("6")
        assert split[1].overtime_hours == Decimal("0")

    def test_entered_overtime_is_resplit(self):
        entries = week_of(DayEntry(regular_hours=Decimal("6"), overtime_hours=Decimal("1")))
        split = split_daily_overtime(entries, Decimal("8"))
        assert split[0].regular_hours == Decimal("7")
        assert split[0].overtime_hours == Decimal("0")

    def test_leave_hours_untouched(self):
        entries = week_of(DayEntry(regular_hours=Decimal("9"), unpaid_leave_hours=Decimal("1")))
        split = split_daily_overtime(entries, Decimal("8"))
        assert split[0].unpaid_leave_hours == Decimal("1")

    def test_non_positive_limit_rejected(self):
        with pytest.raises(InvalidHoursError):
            split_daily_overtime(week_of(), Decimal("0"))

    def test_negative_overtime_rejected_before_split(self):
        entries = week_of(DayEntry(regular_hours=Decimal("5"), overtime_hours=Decimal("-3")))
        with pytest.raises(InvalidHoursError):
            split_daily_overtime(entries, Decimal("8"))


class TestLeaveBalance:
    def _week(self, profile, start, entries, status=TimesheetStatus.APPROVED):
        ts = build_weekly_timesheet(profile.candidate_id, start, entries, profile)
        return ts.model_copy(update={"status": status})

    def test_fulltime_balance_in_days(self):
        profile = make_profile(
            employment_type=EmploymentType.FULLTIME, sick_leave_days=10, paid_leave_days=15,
        )
        weeks = [
            self._week(profile, MONDAY, week_of(DayEntry(sick_hours=Decimal("8")),
                                                DayEntry(paid_leave_hours=Decimal("4")))),
            self._week(profile, MONDAY + timedelta(days=7),
                       week_of(DayEntry(unpaid_leave_hours=Decimal("8")))),
        ]
        balance = leave_balance(profile, weeks)
        assert balance.sick_days_used == Decimal("1")
        assert balance.sick_days_remaining == Decimal("9")
        assert balance.paid_days_used == Decimal("0.5")
        assert balance.paid_days_remaining == Decimal("14.5")
        assert balance.unpaid_days_used == Decimal("1")

    def test_rejected_weeks_ignored(self):
        profile = make_profile(employment_type=EmploymentType.FULLTIME, sick_leave_days=5)
        weeks = [self._week(profile, MONDAY, week_of(DayEntry(sick_hours=Decimal("8"))),
                            status=TimesheetStatus.REJECTED)]
        assert leave_balance(profile, weeks).sick_days_used == Decimal("0")

    def test_subcontract_has_no_allotment(self):
        profile = make_profile(sick_leave_days=5)
        balance = leave_balance(profile, [])
        assert balance.sick_days_allotted == Decimal("0")
        assert balance.paid_days_allotted == Decimal("0")
