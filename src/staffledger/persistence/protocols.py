"""Re-export persistence protocols from core for convenience."""

from __future__ import annotations

from staffledger.core.protocols import (
    IBillingStore,
    ICacheBackend,
    IInvoiceStore,
    IReferenceStore,
    ITimesheetStore,
)

__all__ = ["IBillingStore", "ICacheBackend", "IInvoiceStore", "IReferenceStore", "ITimesheetStore"]
