"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic_settings import BaseSettings


class BillingConfig(BaseSettings):
    """Invoice and timesheet calculation policy."""

    model_config = {"env_prefix": "STAFFLEDGER_BILLING_"}

    gst_rate: Decimal = Decimal("18.0")
    gst_basis: Literal["INR", "USD"] = "INR"
    invoice_prefix: str = "INV"
    invoice_due_days: int = 30
    month_boundary_mode: Literal["full", "prorated"] = "full"
    enforce_subcontract_leave_policy: bool = False
    auto_generate_aggregates: bool = True


class CurrencyConfig(BaseSettings):
    """USD/INR rate supplier configuration."""

    model_config = {"env_prefix": "STAFFLEDGER_CURRENCY_"}

    supplier: Literal["static", "frankfurter"] = "static"
    frankfurter_base_url: str = "https://api.frankfurter.dev/v1"
    timeout: int = 10
    cache_ttl: int = 3600  # 1 hour
    history_months: int = 6
    fallback_current_rate: Decimal = Decimal("85.0")
    fallback_six_month_average: Decimal = Decimal("84.5")


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration."""

    model_config = {"env_prefix": "STAFFLEDGER_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis cache configuration."""

    model_config = {"env_prefix": "STAFFLEDGER_REDIS_"}

    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    decode_responses: bool = True


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "STAFFLEDGER_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    storage_backend: Literal["memory", "dynamodb"] = "memory"

    billing: BillingConfig = BillingConfig()
    currency: CurrencyConfig = CurrencyConfig()
    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
