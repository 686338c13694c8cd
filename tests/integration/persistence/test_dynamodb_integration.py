"""Integration tests for the DynamoDB stores and the service against LocalStack."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from staffledger.core.config import AppSettings
from staffledger.core.exceptions import DuplicateTimesheetError, InvoiceAlreadyExistsError
from staffledger.currency.rates import StaticRateSupplier
from staffledger.persistence.dynamodb_backend import (
    DynamoDBBillingStore,
    DynamoDBInvoiceStore,
    DynamoDBReferenceStore,
    DynamoDBTimesheetStore,
)
from staffledger.persistence.redis_backend import RedisCacheBackend
from staffledger.service import TimesheetBillingService
from tests.fakes import make_profile, standard_week
from tests.integration.conftest import REDIS_HOST, skip_no_localstack, skip_no_redis

JAN_6 = date(2025, 1, 6)


@skip_no_localstack
class TestDynamoDBIntegration:
    @pytest.fixture
    def service(self, seeded_ledger):
        settings = AppSettings()
        return TimesheetBillingService(
            settings=settings,
            billing_store=DynamoDBBillingStore(seeded_ledger),
            timesheet_store=DynamoDBTimesheetStore(seeded_ledger),
            invoice_store=DynamoDBInvoiceStore(seeded_ledger),
            reference_store=DynamoDBReferenceStore(seeded_ledger),
            rate_supplier=StaticRateSupplier(settings.currency),
        )

    @pytest.fixture
    def candidate_id(self):
        # Fresh candidate per test; LocalStack tables outlive the session.
        return uuid4().int % 10**9

    def test_seeded_reference_data(self, seeded_ledger):
        references = DynamoDBReferenceStore(seeded_ledger)
        assert references.get_default_company_settings().name == "NIDDIK"
        assert references.get_client_company(1) is not None

    def test_week_to_invoice(self, service, candidate_id):
        service.configure_billing(make_profile(candidate_id, client_company_id=1))
        service.record_weekly_timesheet(candidate_id, JAN_6, standard_week())
        with pytest.raises(DuplicateTimesheetError):
            service.record_weekly_timesheet(candidate_id, JAN_6, standard_week())

        service.submit_timesheet(candidate_id, JAN_6)
        service.approve_timesheet(candidate_id, JAN_6)
        invoice = service.generate_invoice_for_weekly(candidate_id, JAN_6)

        assert invoice.total_with_gst == Decimal("2360.00")
        assert service.get_monthly(candidate_id, 2025, 1).total_weeks == 1
        with pytest.raises(InvoiceAlreadyExistsError):
            service.generate_invoice_for_weekly(candidate_id, JAN_6)

        document = service.invoice_document(invoice.invoice_number)
        assert document.client.name == "Acme Consulting LLC"


@skip_no_redis
def test_redis_round_trip():
    cache = RedisCacheBackend(host=REDIS_HOST)
    key = f"staffledger:inttest:{uuid4().hex}"
    cache.setex(key, 30, "84.5")
    assert cache.get(key) == "84.5"
    cache.delete(key)
    assert cache.get(key) is None
