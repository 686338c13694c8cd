"""Type aliases used across StaffLedger."""

from __future__ import annotations

CandidateId = int
ActorId = int
InvoiceNumber = str
