"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple

from staffledger.core.config import AppSettings
from staffledger.core.protocols import (
    IBillingStore,
    ICacheBackend,
    IInvoiceStore,
    IReferenceStore,
    ITimesheetStore,
)
from staffledger.persistence.dynamodb_backend import (
    DynamoDBBillingStore,
    DynamoDBInvoiceStore,
    DynamoDBLedger,
    DynamoDBReferenceStore,
    DynamoDBTimesheetStore,
)
from staffledger.persistence.memory_backend import (
    MemoryBillingStore,
    MemoryCacheBackend,
    MemoryInvoiceStore,
    MemoryReferenceStore,
    MemoryTimesheetStore,
)
from staffledger.persistence.redis_backend import RedisCacheBackend


class Persistence(NamedTuple):
    billing_store: IBillingStore
    timesheet_store: ITimesheetStore
    invoice_store: IInvoiceStore
    reference_store: IReferenceStore
    cache: ICacheBackend | None


def create_persistence(settings: AppSettings | None = None) -> Persistence:
    """Create wired-up persistence backends from application settings.

    ``storage_backend`` picks DynamoDB or the in-memory stores; the Redis
    cache is created only when enabled.
    """
    if settings is None:
        settings = AppSettings()

    cache: ICacheBackend | None = None
    if settings.redis.enabled:
        cache = RedisCacheBackend(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
            decode_responses=settings.redis.decode_responses,
        )

    if settings.storage_backend == "dynamodb":
        ledger = DynamoDBLedger(
            table_suffix=settings.dynamodb.table_suffix,
            region=settings.dynamodb.region,
            endpoint_url=settings.dynamodb.endpoint_url,
        )
        return Persistence(
            billing_store=DynamoDBBillingStore(ledger),
            timesheet_store=DynamoDBTimesheetStore(ledger),
            invoice_store=DynamoDBInvoiceStore(ledger),
            reference_store=DynamoDBReferenceStore(ledger),
            cache=cache,
        )

    return Persistence(
        billing_store=MemoryBillingStore(),
        timesheet_store=MemoryTimesheetStore(),
        invoice_store=MemoryInvoiceStore(),
        reference_store=MemoryReferenceStore(),
        cache=cache or MemoryCacheBackend(),
    )
