"""Invoice endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from staffledger.api.deps import get_service
from staffledger.api.schemas import InvoiceIn, InvoiceStatusIn
from staffledger.models.invoice import Invoice, InvoiceDocument
from staffledger.service import TimesheetBillingService

router = APIRouter(tags=["invoices"])


@router.post("/candidates/{candidate_id}/invoices/weekly/{week_start}", status_code=201)
def invoice_weekly(
    candidate_id: int,
    week_start: date,
    body: InvoiceIn,
    service: TimesheetBillingService = Depends(get_service),
) -> Invoice:
    return service.generate_invoice_for_weekly(
        candidate_id,
        week_start,
        generated_by=body.generated_by,
        rate_override=body.rate_override,
        issued_date=body.issued_date,
    )


@router.post("/candidates/{candidate_id}/invoices/bi-weekly/{period_start}", status_code=201)
def invoice_bi_weekly(
    candidate_id: int,
    period_start: date,
    body: InvoiceIn,
    service: TimesheetBillingService = Depends(get_service),
) -> Invoice:
    return service.generate_invoice_for_bi_weekly(
        candidate_id,
        period_start,
        generated_by=body.generated_by,
        rate_override=body.rate_override,
        issued_date=body.issued_date,
    )


@router.get("/candidates/{candidate_id}/invoices")
def list_invoices(
    candidate_id: int, service: TimesheetBillingService = Depends(get_service)
) -> list[Invoice]:
    return service.list_invoices(candidate_id)


@router.post("/candidates/{candidate_id}/invoices/flag-overdue")
def flag_overdue(
    candidate_id: int,
    today: date | None = None,
    service: TimesheetBillingService = Depends(get_service),
) -> list[Invoice]:
    return service.flag_overdue_invoices(candidate_id, today)


@router.get("/invoices/{invoice_number}")
def get_invoice(
    invoice_number: str, service: TimesheetBillingService = Depends(get_service)
) -> Invoice:
    return service.get_invoice(invoice_number)


@router.patch("/invoices/{invoice_number}/status")
def update_status(
    invoice_number: str,
    body: InvoiceStatusIn,
    service: TimesheetBillingService = Depends(get_service),
) -> Invoice:
    return service.update_invoice_status(invoice_number, body.status, body.on)


@router.get("/invoices/{invoice_number}/document")
def invoice_document(
    invoice_number: str, service: TimesheetBillingService = Depends(get_service)
) -> InvoiceDocument:
    """Invoice with company, client, end user and hour breakdown for rendering."""
    return service.invoice_document(invoice_number)
