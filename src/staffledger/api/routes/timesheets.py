"""Weekly, bi-weekly and monthly timesheet endpoints."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from staffledger.api.deps import get_service
from staffledger.api.schemas import (
    ApproveIn,
    BiWeeklyIn,
    ConvertIn,
    DaysIn,
    RejectIn,
    WeeklyTimesheetIn,
)
from staffledger.models.timesheet import (
    BiWeeklyTimesheet,
    LeaveBalance,
    MonthBoundaryMode,
    MonthlyTimesheet,
    TimesheetStatus,
    WeeklyTimesheet,
)
from staffledger.service import TimesheetBillingService

router = APIRouter(tags=["timesheets"])


# ---- Weekly ----

@router.post("/{candidate_id}/timesheets/weekly", status_code=201)
def record_weekly(
    candidate_id: int,
    body: WeeklyTimesheetIn,
    service: TimesheetBillingService = Depends(get_service),
) -> WeeklyTimesheet:
    return service.record_weekly_timesheet(
        candidate_id, body.week_start_date, body.days, created_by=body.created_by
    )


@router.get("/{candidate_id}/timesheets/weekly")
def list_weekly(
    candidate_id: int,
    status: Optional[TimesheetStatus] = None,
    service: TimesheetBillingService = Depends(get_service),
) -> list[WeeklyTimesheet]:
    return service.list_weekly(candidate_id, status)


@router.get("/{candidate_id}/timesheets/weekly/{week_start}")
def get_weekly(
    candidate_id: int, week_start: date, service: TimesheetBillingService = Depends(get_service)
) -> WeeklyTimesheet:
    return service.get_weekly(candidate_id, week_start)


@router.put("/{candidate_id}/timesheets/weekly/{week_start}")
def update_weekly(
    candidate_id: int,
    week_start: date,
    body: DaysIn,
    service: TimesheetBillingService = Depends(get_service),
) -> WeeklyTimesheet:
    return service.update_weekly_timesheet(candidate_id, week_start, body.days)


@router.post("/{candidate_id}/timesheets/weekly/{week_start}/submit")
def submit_weekly(
    candidate_id: int, week_start: date, service: TimesheetBillingService = Depends(get_service)
) -> WeeklyTimesheet:
    return service.submit_timesheet(candidate_id, week_start)


@router.post("/{candidate_id}/timesheets/weekly/{week_start}/approve")
def approve_weekly(
    candidate_id: int,
    week_start: date,
    body: ApproveIn,
    service: TimesheetBillingService = Depends(get_service),
) -> WeeklyTimesheet:
    return service.approve_timesheet(candidate_id, week_start, body.approved_by)


@router.post("/{candidate_id}/timesheets/weekly/{week_start}/reject")
def reject_weekly(
    candidate_id: int,
    week_start: date,
    body: RejectIn,
    service: TimesheetBillingService = Depends(get_service),
) -> WeeklyTimesheet:
    return service.reject_timesheet(candidate_id, week_start, body.reason)


@router.post("/{candidate_id}/timesheets/weekly/{week_start}/convert")
def convert_weekly(
    candidate_id: int,
    week_start: date,
    body: ConvertIn,
    service: TimesheetBillingService = Depends(get_service),
) -> WeeklyTimesheet:
    return service.convert_weekly_to_inr(candidate_id, week_start, body.conversion_rate)


@router.get("/{candidate_id}/leave-balance")
def leave_balance(
    candidate_id: int, service: TimesheetBillingService = Depends(get_service)
) -> LeaveBalance:
    return service.leave_balance(candidate_id)


# ---- Bi-weekly ----

@router.get("/{candidate_id}/timesheets/bi-weekly")
def list_bi_weekly(
    candidate_id: int, service: TimesheetBillingService = Depends(get_service)
) -> list[BiWeeklyTimesheet]:
    return service.list_bi_weekly(candidate_id)


@router.post("/{candidate_id}/timesheets/bi-weekly", status_code=201)
def generate_bi_weekly(
    candidate_id: int,
    body: BiWeeklyIn,
    service: TimesheetBillingService = Depends(get_service),
) -> BiWeeklyTimesheet:
    return service.generate_bi_weekly(candidate_id, body.week1_start)


@router.get("/{candidate_id}/timesheets/bi-weekly/{period_start}")
def get_bi_weekly(
    candidate_id: int, period_start: date, service: TimesheetBillingService = Depends(get_service)
) -> BiWeeklyTimesheet:
    return service.get_bi_weekly(candidate_id, period_start)


@router.post("/{candidate_id}/timesheets/bi-weekly/{period_start}/approve")
def approve_bi_weekly(
    candidate_id: int,
    period_start: date,
    body: ApproveIn,
    service: TimesheetBillingService = Depends(get_service),
) -> BiWeeklyTimesheet:
    return service.approve_period(service.get_bi_weekly(candidate_id, period_start), body.approved_by)


@router.post("/{candidate_id}/timesheets/bi-weekly/{period_start}/reject")
def reject_bi_weekly(
    candidate_id: int,
    period_start: date,
    body: RejectIn,
    service: TimesheetBillingService = Depends(get_service),
) -> BiWeeklyTimesheet:
    return service.reject_period(service.get_bi_weekly(candidate_id, period_start), body.reason)


# ---- Monthly ----

@router.post("/{candidate_id}/timesheets/monthly/{year}/{month}", status_code=201)
def generate_monthly(
    candidate_id: int,
    year: int,
    month: int,
    mode: Optional[MonthBoundaryMode] = None,
    service: TimesheetBillingService = Depends(get_service),
) -> MonthlyTimesheet:
    return service.generate_monthly(candidate_id, year, month, mode)


@router.get("/{candidate_id}/timesheets/monthly/{year}/{month}")
def get_monthly(
    candidate_id: int, year: int, month: int, service: TimesheetBillingService = Depends(get_service)
) -> MonthlyTimesheet:
    return service.get_monthly(candidate_id, year, month)


@router.post("/{candidate_id}/timesheets/monthly/{year}/{month}/approve")
def approve_monthly(
    candidate_id: int,
    year: int,
    month: int,
    body: ApproveIn,
    service: TimesheetBillingService = Depends(get_service),
) -> MonthlyTimesheet:
    return service.approve_period(service.get_monthly(candidate_id, year, month), body.approved_by)


@router.post("/{candidate_id}/timesheets/monthly/{year}/{month}/reject")
def reject_monthly(
    candidate_id: int,
    year: int,
    month: int,
    body: RejectIn,
    service: TimesheetBillingService = Depends(get_service),
) -> MonthlyTimesheet:
    return service.reject_period(service.get_monthly(candidate_id, year, month), body.reason)


@router.post("/{candidate_id}/timesheets/aggregate")
def auto_generate(
    candidate_id: int, service: TimesheetBillingService = Depends(get_service)
) -> dict:
    bi_weeklies, monthlies = service.auto_generate_aggregates(candidate_id)
    return {
        "bi_weekly": [p.model_dump(mode="json") for p in bi_weeklies],
        "monthly": [p.model_dump(mode="json") for p in monthlies],
    }
