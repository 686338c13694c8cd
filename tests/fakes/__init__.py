"""Shared test doubles: memory backends plus record builders."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from staffledger.core.config import AppSettings
from staffledger.currency.rates import StaticRateSupplier
from staffledger.models.billing import BillingProfile, EmploymentType
from staffledger.models.timesheet import DayEntry
from staffledger.persistence.memory_backend import (
    MemoryBillingStore,
    MemoryCacheBackend,
    MemoryInvoiceStore,
    MemoryReferenceStore,
    MemoryTimesheetStore,
)
from staffledger.service import TimesheetBillingService

__all__ = [
    "MemoryBillingStore",
    "MemoryCacheBackend",
    "MemoryInvoiceStore",
    "MemoryReferenceStore",
    "MemoryTimesheetStore",
    "make_profile",
    "make_service",
    "standard_week",
    "week_of",
]


def make_profile(candidate_id: int = 1001, **overrides) -> BillingProfile:
    """Subcontract profile at 50/hour with 10% TDS, effective from 2025-01-01."""
    fields = {
        "candidate_id": candidate_id,
        "hourly_rate": Decimal("50"),
        "currency": "INR",
        "employment_type": EmploymentType.SUBCONTRACT,
        "tds_rate": Decimal("10"),
        "effective_from": date(2025, 1, 1),
    }
    fields.update(overrides)
    return BillingProfile(**fields)


def week_of(*days: DayEntry) -> list[DayEntry]:
    """Pad the given Monday-first entries to a full seven-day week."""
    return list(days) + [DayEntry() for _ in range(7 - len(days))]


def standard_week(regular: str = "8", overtime: str = "0") -> list[DayEntry]:
    """Five working days with the same hours, weekend off."""
    day = DayEntry(regular_hours=Decimal(regular), overtime_hours=Decimal(overtime))
    return week_of(*[day] * 5)


def make_service(settings: AppSettings | None = None, **stores) -> TimesheetBillingService:
    """Service over fresh memory stores; pass stores by keyword to share them."""
    settings = settings or AppSettings()
    return TimesheetBillingService(
        settings=settings,
        billing_store=stores.get("billing_store") or MemoryBillingStore(),
        timesheet_store=stores.get("timesheet_store") or MemoryTimesheetStore(),
        invoice_store=stores.get("invoice_store") or MemoryInvoiceStore(),
        reference_store=stores.get("reference_store") or MemoryReferenceStore(),
        rate_supplier=stores.get("rate_supplier") or StaticRateSupplier(settings.currency),
    )
