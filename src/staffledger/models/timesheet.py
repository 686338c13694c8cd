"""Weekly, bi-weekly and monthly timesheet models.

Hours and amounts are kept as exact Decimals on every record; rounding to
cents happens only when an invoice is produced or a value is displayed.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import StrEnum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from staffledger.models.billing import EmploymentType

ZERO = Decimal("0")


class DayOfWeek(StrEnum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


WEEKDAYS: tuple[DayOfWeek, ...] = tuple(DayOfWeek)


class TimesheetStatus(StrEnum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class PeriodStatus(StrEnum):
    CALCULATED = "calculated"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class MonthBoundaryMode(StrEnum):
    FULL = "full"  # boundary weeks count in full in both months
    PRORATED = "prorated"  # only days inside the month count


class DayEntry(BaseModel):
    """Hours booked against a single calendar day."""

    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    sick_hours: Decimal = ZERO
    paid_leave_hours: Decimal = ZERO
    unpaid_leave_hours: Decimal = ZERO

    @property
    def worked_hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours

    @property
    def leave_hours(self) -> Decimal:
        return self.sick_hours + self.paid_leave_hours + self.unpaid_leave_hours

    @property
    def total_hours(self) -> Decimal:
        return self.worked_hours + self.leave_hours


class WeekdayTotals(BaseModel):
    """One Decimal per weekday; adds element-wise."""

    monday: Decimal = ZERO
    tuesday: Decimal = ZERO
    wednesday: Decimal = ZERO
    thursday: Decimal = ZERO
    friday: Decimal = ZERO
    saturday: Decimal = ZERO
    sunday: Decimal = ZERO

    @classmethod
    def from_values(cls, values: list[Decimal]) -> "WeekdayTotals":
        return cls(**{day.value: value for day, value in zip(WEEKDAYS, values)})

    def values(self) -> list[Decimal]:
        return [getattr(self, day.value) for day in WEEKDAYS]

    def get(self, day: DayOfWeek) -> Decimal:
        return getattr(self, day.value)

    @property
    def total(self) -> Decimal:
        return sum(self.values(), ZERO)

    def __add__(self, other: "WeekdayTotals") -> "WeekdayTotals":
        return WeekdayTotals.from_values([a + b for a, b in zip(self.values(), other.values())])


class WeeklyTotals(BaseModel):
    """Hour sums for one week; leave is tracked but not counted as worked."""

    total_weekly_hours: Decimal = ZERO
    total_regular_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    total_sick_hours: Decimal = ZERO
    total_paid_leave_hours: Decimal = ZERO
    total_unpaid_leave_hours: Decimal = ZERO
    day_hours: WeekdayTotals = Field(default_factory=WeekdayTotals)
    day_overtime: WeekdayTotals = Field(default_factory=WeekdayTotals)


class WeeklyAmounts(BaseModel):
    """Billing amounts for one week, in the billing profile currency."""

    regular_amount: Decimal = ZERO
    overtime_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    tds_amount: Decimal = ZERO
    net_amount: Decimal = ZERO


class LeaveBalance(BaseModel):
    """Leave usage against a full-time candidate's allotment."""

    candidate_id: int
    sick_days_allotted: Decimal = ZERO
    sick_days_used: Decimal = ZERO
    sick_days_remaining: Decimal = ZERO
    paid_days_allotted: Decimal = ZERO
    paid_days_used: Decimal = ZERO
    paid_days_remaining: Decimal = ZERO
    unpaid_days_used: Decimal = ZERO


class WeeklyTimesheet(BaseModel):
    """One candidate's week, Monday through Sunday."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    candidate_id: int
    week_start_date: date
    week_end_date: date
    days: list[DayEntry]

    totals: WeeklyTotals = Field(default_factory=WeeklyTotals)
    amounts: WeeklyAmounts = Field(default_factory=WeeklyAmounts)

    # --- Billing snapshot at calculation time ---
    billing_profile_id: Optional[str] = None
    hourly_rate: Decimal = ZERO
    currency: str = "INR"
    employment_type: EmploymentType = EmploymentType.SUBCONTRACT
    tds_rate: Decimal = ZERO
    overtime_multiplier: Decimal = Decimal("1")

    # --- Optional INR conversion ---
    amount_inr: Optional[Decimal] = None
    conversion_rate: Optional[Decimal] = None
    conversion_date: Optional[date] = None

    # --- Workflow ---
    status: TimesheetStatus = TimesheetStatus.DRAFT
    rejection_reason: str = ""
    created_by: Optional[int] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_week(self) -> "WeeklyTimesheet":
        if self.week_start_date.weekday() != 0:
            raise ValueError(f"week_start_date {self.week_start_date} is not a Monday")
        if self.week_end_date != self.week_start_date + timedelta(days=6):
            raise ValueError("week_end_date must be week_start_date + 6 days")
        if len(self.days) != 7:
            raise ValueError(f"expected 7 day entries, got {len(self.days)}")
        return self

    @property
    def total_weekly_hours(self) -> Decimal:
        return self.totals.total_weekly_hours

    @property
    def total_amount(self) -> Decimal:
        return self.amounts.total_amount

    @property
    def net_amount(self) -> Decimal:
        return self.amounts.net_amount

    @property
    def tds_amount(self) -> Decimal:
        return self.amounts.tds_amount

    def day_dates(self) -> list[date]:
        return [self.week_start_date + timedelta(days=i) for i in range(7)]

    def overlaps(self, start: date, end: date) -> bool:
        return self.week_start_date <= end and self.week_end_date >= start


class PeriodTotals(BaseModel):
    """Hour and amount sums for any multi-week period."""

    total_hours: Decimal = ZERO
    total_regular_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    total_sick_hours: Decimal = ZERO
    total_paid_leave_hours: Decimal = ZERO
    total_unpaid_leave_hours: Decimal = ZERO
    total_amount: Decimal = ZERO
    total_regular_amount: Decimal = ZERO
    total_overtime_amount: Decimal = ZERO
    total_tds_amount: Decimal = ZERO
    total_net_amount: Decimal = ZERO

    @classmethod
    def from_weekly(cls, week: WeeklyTimesheet) -> "PeriodTotals":
        t, a = week.totals, week.amounts
        return cls(
            total_hours=t.total_weekly_hours,
            total_regular_hours=t.total_regular_hours,
            total_overtime_hours=t.total_overtime_hours,
            total_sick_hours=t.total_sick_hours,
            total_paid_leave_hours=t.total_paid_leave_hours,
            total_unpaid_leave_hours=t.total_unpaid_leave_hours,
            total_amount=a.total_amount,
            total_regular_amount=a.regular_amount,
            total_overtime_amount=a.overtime_amount,
            total_tds_amount=a.tds_amount,
            total_net_amount=a.net_amount,
        )

    def __add__(self, other: "PeriodTotals") -> "PeriodTotals":
        return PeriodTotals(**{
            name: getattr(self, name) + getattr(other, name)
            for name in PeriodTotals.model_fields
        })


class WeekBreakdown(BaseModel):
    """Verbatim copy of one constituent week, kept for audit."""

    timesheet_id: str
    week_start_date: date
    week_end_date: date
    total_hours: Decimal = ZERO
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    total_amount: Decimal = ZERO
    regular_amount: Decimal = ZERO
    overtime_amount: Decimal = ZERO
    tds_amount: Decimal = ZERO
    net_amount: Decimal = ZERO
    day_hours: WeekdayTotals = Field(default_factory=WeekdayTotals)
    day_overtime: WeekdayTotals = Field(default_factory=WeekdayTotals)

    @classmethod
    def from_weekly(cls, week: WeeklyTimesheet) -> "WeekBreakdown":
        return cls(
            timesheet_id=week.id,
            week_start_date=week.week_start_date,
            week_end_date=week.week_end_date,
            total_hours=week.totals.total_weekly_hours,
            regular_hours=week.totals.total_regular_hours,
            overtime_hours=week.totals.total_overtime_hours,
            total_amount=week.amounts.total_amount,
            regular_amount=week.amounts.regular_amount,
            overtime_amount=week.amounts.overtime_amount,
            tds_amount=week.amounts.tds_amount,
            net_amount=week.amounts.net_amount,
            day_hours=week.totals.day_hours.model_copy(),
            day_overtime=week.totals.day_overtime.model_copy(),
        )


class BiWeeklyTimesheet(BaseModel):
    """Two consecutive weeks rolled up for one billing cycle."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    candidate_id: int
    period_start_date: date
    period_end_date: date
    totals: PeriodTotals = Field(default_factory=PeriodTotals)
    week1: WeekBreakdown
    week2: WeekBreakdown
    day_hours: WeekdayTotals = Field(default_factory=WeekdayTotals)
    day_overtime: WeekdayTotals = Field(default_factory=WeekdayTotals)
    currency: str = "INR"

    status: PeriodStatus = PeriodStatus.CALCULATED
    rejection_reason: str = ""
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def total_hours(self) -> Decimal:
        return self.totals.total_hours

    @property
    def total_amount(self) -> Decimal:
        return self.totals.total_amount


class MonthlyTimesheet(BaseModel):
    """All weeks touching a calendar month, rolled up."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    candidate_id: int
    year: int
    month: int
    month_name: str
    period_start_date: date
    period_end_date: date
    total_weeks: int = 0
    week_start_dates: list[date] = Field(default_factory=list)
    mode: MonthBoundaryMode = MonthBoundaryMode.FULL
    totals: PeriodTotals = Field(default_factory=PeriodTotals)
    day_hours: WeekdayTotals = Field(default_factory=WeekdayTotals)
    day_overtime: WeekdayTotals = Field(default_factory=WeekdayTotals)
    currency: str = "INR"

    status: PeriodStatus = PeriodStatus.CALCULATED
    rejection_reason: str = ""
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def total_hours(self) -> Decimal:
        return self.totals.total_hours

    @property
    def total_amount(self) -> Decimal:
        return self.totals.total_amount
