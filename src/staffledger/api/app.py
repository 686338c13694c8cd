"""FastAPI application with lifespan, router mounting and error mapping."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from staffledger.api.routes import billing, currency, health, invoices, timesheets
from staffledger.core.config import AppSettings
from staffledger.core.exceptions import (
    CacheError,
    CandidateMismatchError,
    CurrencyRateError,
    DuplicateInvoiceNumberError,
    DuplicateTimesheetError,
    InvalidConversionRateError,
    InvalidHoursError,
    InvalidStatusTransitionError,
    InvoiceAlreadyExistsError,
    MixedCurrencyError,
    NoBillingConfiguredError,
    NonContiguousWeeksError,
    NotFoundError,
    OverlappingPeriodError,
    StaffLedgerError,
    StorageError,
    TimesheetNotApprovedError,
)
from staffledger.core.logging import configure_logging
from staffledger.currency.rates import create_rate_supplier
from staffledger.persistence import create_persistence
from staffledger.service import TimesheetBillingService

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[StaffLedgerError], int] = {
    NotFoundError: 404,
    NoBillingConfiguredError: 404,
    DuplicateTimesheetError: 409,
    DuplicateInvoiceNumberError: 409,
    InvoiceAlreadyExistsError: 409,
    OverlappingPeriodError: 409,
    InvalidStatusTransitionError: 409,
    InvalidHoursError: 422,
    NonContiguousWeeksError: 422,
    CandidateMismatchError: 422,
    MixedCurrencyError: 422,
    InvalidConversionRateError: 422,
    TimesheetNotApprovedError: 422,
    StorageError: 503,
    CacheError: 503,
    CurrencyRateError: 503,
    StaffLedgerError: 400,
}


def build_service(settings: AppSettings) -> TimesheetBillingService:
    """Wire persistence and the rate supplier for ``settings``."""
    persistence = create_persistence(settings)
    return TimesheetBillingService(
        settings=settings,
        billing_store=persistence.billing_store,
        timesheet_store=persistence.timesheet_store,
        invoice_store=persistence.invoice_store,
        reference_store=persistence.reference_store,
        rate_supplier=create_rate_supplier(settings.currency, cache=persistence.cache),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings = getattr(app.state, "settings", None) or AppSettings()
    app.state.settings = settings
    configure_logging(settings.log_level)
    if getattr(app.state, "service", None) is None:
        app.state.service = build_service(settings)
    logger.info(
        "StaffLedger started (environment=%s, storage=%s)",
        settings.environment, settings.storage_backend,
    )
    yield


async def _handle_domain_error(request: Request, exc: StaffLedgerError) -> JSONResponse:
    code = next(
        (ERROR_STATUS[cls] for cls in type(exc).__mro__ if cls in ERROR_STATUS),
        400,
    )
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


async def _handle_model_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": exc.title,
            "detail": exc.errors(include_url=False, include_context=False, include_input=False),
        },
    )


def create_app(
    settings: AppSettings | None = None,
    service: TimesheetBillingService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``settings`` and ``service`` override what the lifespan would build.
    """
    app = FastAPI(
        title="StaffLedger Timesheet Billing",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service
    app.add_exception_handler(StaffLedgerError, _handle_domain_error)
    app.add_exception_handler(ValidationError, _handle_model_error)
    app.include_router(health.router)
    app.include_router(billing.router, prefix="/candidates")
    app.include_router(timesheets.router, prefix="/candidates")
    app.include_router(invoices.router)
    app.include_router(currency.router, prefix="/currency")
    return app
