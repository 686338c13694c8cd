"""Create the StaffLedger DynamoDB table and seed reference data.

Usage:
    python scripts/seed_dynamodb.py --endpoint-url http://localhost:4566
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import boto3

from staffledger.billing.resolver import activate_billing_profile
from staffledger.models.billing import BillingProfile
from staffledger.models.invoice import ClientCompany, CompanySettings, EndUser
from staffledger.persistence.dynamodb_backend import (
    LEDGER_TABLE,
    DynamoDBBillingStore,
    DynamoDBLedger,
    DynamoDBReferenceStore,
)

SEED_PATH = Path(__file__).resolve().parent.parent / "config" / "reference_seed.json"


def create_tables(ddb: Any, suffix: str = "") -> None:
    """Create the ledger table. Skips if it already exists."""
    client = ddb.meta.client
    table_name = f"{LEDGER_TABLE}{suffix}"
    if table_name in client.list_tables().get("TableNames", []):
        print(f"  Table {table_name} already exists, skipping")
        return
    client.create_table(
        TableName=table_name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    print(f"  Created table {table_name}")


def seed_reference_data(ledger: DynamoDBLedger, seed_path: Path = SEED_PATH) -> dict[str, int]:
    """Load company settings, clients, end users and sample billing profiles.

    Returns the number of records written per kind.
    """
    data = json.loads(seed_path.read_text())
    references = DynamoDBReferenceStore(ledger)
    billing = DynamoDBBillingStore(ledger)

    for item in data.get("company_settings", []):
        references.save_company_settings(CompanySettings.model_validate(item))
    for item in data.get("client_companies", []):
        references.save_client_company(ClientCompany.model_validate(item))
    for item in data.get("end_users", []):
        references.save_end_user(EndUser.model_validate(item))
    for item in data.get("billing_profiles", []):
        activate_billing_profile(billing, BillingProfile.model_validate(item))

    counts = {kind: len(data.get(kind, [])) for kind in (
        "company_settings", "client_companies", "end_users", "billing_profiles",
    )}
    for kind, count in counts.items():
        print(f"  Seeded {count} {kind.replace('_', ' ')}")
    return counts


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed DynamoDB for StaffLedger")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="us-east-1", help="AWS region")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    print("Seeding data...")
    seed_reference_data(DynamoDBLedger(
        table_suffix=args.table_suffix, region=args.region, endpoint_url=args.endpoint_url,
    ))

    print("Done!")


if __name__ == "__main__":
    main()
