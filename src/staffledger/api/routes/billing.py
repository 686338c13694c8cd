"""Billing profile endpoints."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from staffledger.api.deps import get_service
from staffledger.api.schemas import BillingProfileIn
from staffledger.models.billing import BillingProfile
from staffledger.service import TimesheetBillingService

router = APIRouter(tags=["billing"])


@router.post("/{candidate_id}/billing", status_code=201)
def configure_billing(
    candidate_id: int,
    body: BillingProfileIn,
    service: TimesheetBillingService = Depends(get_service),
) -> BillingProfile:
    """Activate new billing terms; the previous profile is closed, not overwritten."""
    return service.configure_billing(body.to_profile(candidate_id))


@router.get("/{candidate_id}/billing")
def get_billing(
    candidate_id: int,
    as_of: Optional[date] = None,
    service: TimesheetBillingService = Depends(get_service),
) -> BillingProfile:
    return service.get_active_billing(candidate_id, as_of)


@router.get("/{candidate_id}/billing/history")
def billing_history(
    candidate_id: int, service: TimesheetBillingService = Depends(get_service)
) -> list[BillingProfile]:
    return service.billing_history(candidate_id)
