"""Request bodies for the HTTP API."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from staffledger.models.billing import BillingProfile, EmploymentType, OvertimePolicy
from staffledger.models.invoice import InvoiceStatus
from staffledger.models.timesheet import DayEntry


class BillingProfileIn(BaseModel):
    hourly_rate: Decimal
    currency: str = "INR"
    overtime_multiplier: Decimal = Decimal("1")
    overtime_policy: OvertimePolicy = OvertimePolicy.AS_ENTERED
    working_hours_per_week: Decimal = Decimal("40")
    working_days_per_week: int = 5
    employment_type: EmploymentType = EmploymentType.SUBCONTRACT
    tds_rate: Decimal = Decimal("0")
    benefits: list[str] = Field(default_factory=list)
    sick_leave_days: int = 0
    paid_leave_days: int = 0
    supervisor_name: str = ""
    client_company_id: Optional[int] = None
    end_user_id: Optional[int] = None
    company_settings_id: Optional[int] = None
    effective_from: Optional[date] = None
    created_by: Optional[int] = None

    def to_profile(self, candidate_id: int) -> BillingProfile:
        data = self.model_dump(exclude_none=True)
        return BillingProfile(candidate_id=candidate_id, **data)


class WeeklyTimesheetIn(BaseModel):
    week_start_date: date
    days: list[DayEntry]
    created_by: Optional[int] = None


class DaysIn(BaseModel):
    days: list[DayEntry]


class ApproveIn(BaseModel):
    approved_by: Optional[int] = None


class RejectIn(BaseModel):
    reason: str


class ConvertIn(BaseModel):
    conversion_rate: Optional[Decimal] = None


class BiWeeklyIn(BaseModel):
    week1_start: date


class InvoiceIn(BaseModel):
    generated_by: Optional[int] = None
    rate_override: Optional[Decimal] = None
    issued_date: Optional[date] = None


class InvoiceStatusIn(BaseModel):
    status: InvoiceStatus
    on: Optional[date] = None


class ConversionIn(BaseModel):
    amount_inr: Decimal
    conversion_rate: Optional[Decimal] = None
