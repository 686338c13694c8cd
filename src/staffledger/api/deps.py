"""Request-scoped dependencies."""

from __future__ import annotations

from fastapi import Request

from staffledger.core.config import AppSettings
from staffledger.service import TimesheetBillingService


def get_service(request: Request) -> TimesheetBillingService:
    return request.app.state.service


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings
