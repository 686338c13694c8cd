"""Exchange rate endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from staffledger.api.deps import get_service, get_settings
from staffledger.api.schemas import ConversionIn
from staffledger.billing.currency_tax import convert_and_tax
from staffledger.core.config import AppSettings
from staffledger.models.invoice import ConversionResult, Currency, CurrencyRateData
from staffledger.service import TimesheetBillingService

router = APIRouter(tags=["currency"])


@router.get("/rates")
def rates(service: TimesheetBillingService = Depends(get_service)) -> CurrencyRateData:
    return service.current_rates()


@router.post("/convert")
def convert(
    body: ConversionIn,
    service: TimesheetBillingService = Depends(get_service),
    settings: AppSettings = Depends(get_settings),
) -> ConversionResult:
    """Preview the USD amount and GST for an INR amount."""
    rate = body.conversion_rate
    if rate is None:
        rate = service.current_rates().six_month_average
    return convert_and_tax(
        body.amount_inr, rate, settings.billing.gst_rate, Currency(settings.billing.gst_basis)
    )
