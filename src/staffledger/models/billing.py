"""Candidate billing profile: rate, currency and employment policy."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import StrEnum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

BILLING_CURRENCIES = ("INR", "USD")


class EmploymentType(StrEnum):
    SUBCONTRACT = "subcontract"
    FULLTIME = "fulltime"


class OvertimePolicy(StrEnum):
    AS_ENTERED = "as_entered"  # overtime hours taken from the timesheet
    DAILY_LIMIT = "daily_limit"  # hours above the daily limit become overtime


class BillingProfile(BaseModel):
    """Billing terms for one candidate over a validity interval.

    Profiles are versioned: a rate change creates a new profile and closes
    the previous one, so already-issued invoices can be recomputed from the
    terms in force at the time.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    candidate_id: int

    # --- Rate ---
    hourly_rate: Decimal
    currency: str = "INR"
    overtime_multiplier: Decimal = Decimal("1")
    overtime_policy: OvertimePolicy = OvertimePolicy.AS_ENTERED

    # --- Working pattern ---
    working_hours_per_week: Decimal = Decimal("40")
    working_days_per_week: int = 5

    # --- Employment terms ---
    employment_type: EmploymentType = EmploymentType.SUBCONTRACT
    tds_rate: Decimal = Decimal("0")  # percent, subcontract only
    benefits: list[str] = Field(default_factory=list)  # fulltime only
    sick_leave_days: int = 0  # fulltime only
    paid_leave_days: int = 0  # fulltime only

    # --- Invoice parties (display only) ---
    supervisor_name: str = ""
    client_company_id: Optional[int] = None
    end_user_id: Optional[int] = None
    company_settings_id: Optional[int] = None

    # --- Validity ---
    effective_from: date = Field(default_factory=date.today)
    effective_to: Optional[date] = None
    is_active: bool = True
    # Set when a successor starting on or before effective_from replaced this profile outright.
    voided: bool = False
    created_by: Optional[int] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_terms(self) -> "BillingProfile":
        if self.hourly_rate < 0:
            raise ValueError("hourly_rate must not be negative")
        if self.currency not in BILLING_CURRENCIES:
            raise ValueError(f"currency must be one of {BILLING_CURRENCIES}, got {self.currency!r}")
        if self.working_days_per_week <= 0 or self.working_days_per_week > 7:
            raise ValueError("working_days_per_week must be between 1 and 7")
        if self.working_hours_per_week <= 0:
            raise ValueError("working_hours_per_week must be positive")
        if not Decimal("0") <= self.tds_rate <= Decimal("100"):
            raise ValueError("tds_rate must be a percentage between 0 and 100")
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValueError("effective_to precedes effective_from")
        return self

    @property
    def daily_hour_limit(self) -> Decimal:
        """Regular hours allowed per working day (weekly hours / working days)."""
        return self.working_hours_per_week / Decimal(self.working_days_per_week)

    @property
    def is_subcontract(self) -> bool:
        return self.employment_type == EmploymentType.SUBCONTRACT

    def covers(self, day: date) -> bool:
        """True if ``day`` falls inside this profile's validity interval."""
        if self.voided or day < self.effective_from:
            return False
        return self.effective_to is None or day <= self.effective_to

    def superseded_by(self, successor: "BillingProfile") -> "BillingProfile":
        """Return an inactive copy that no longer overlaps ``successor``.

        The copy ends the day before ``successor`` starts. A successor starting
        on or before this profile's own start leaves no interval to keep, so the
        copy is voided and covers no day at all.
        """
        if successor.effective_from <= self.effective_from:
            return self.model_copy(
                update={"is_active": False, "effective_to": self.effective_from, "voided": True}
            )
        end = successor.effective_from - timedelta(days=1)
        if self.effective_to is not None:
            end = min(end, self.effective_to)
        return self.model_copy(update={"is_active": False, "effective_to": end})
