"""DynamoDB single-table backend for billing profiles, timesheets and invoices.

Every record lives in ``staffledger-ledger{suffix}`` under a PK/SK pair and
is stored as its pydantic JSON in the ``payload`` attribute, so Decimal
precision survives the round trip:

    CANDIDATE#{id}    BILLING#{profile_id}     billing profile
    CANDIDATE#{id}    WEEK#{yyyy-mm-dd}        weekly timesheet
    CANDIDATE#{id}    BIWEEK#{yyyy-mm-dd}      bi-weekly timesheet
    CANDIDATE#{id}    MONTH#{yyyy-mm}          monthly timesheet
    CANDIDATE#{id}    INVOICE#{start}#{end}    invoice, one per period
    INVOICE#{number}  INVOICE                  invoice, one per number
    COUNTER#INVOICE   {yyyymm}                 invoice sequence (atomic ADD)
    CLIENT#{id}       PROFILE                  client company
    END_USER#{id}     PROFILE                  end user
    COMPANY#{id}      SETTINGS                 company settings
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, TypeVar

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from pydantic import BaseModel

from staffledger.core.exceptions import (
    DuplicateInvoiceNumberError,
    DuplicateTimesheetError,
    InvoiceAlreadyExistsError,
    InvoiceNotFoundError,
    StorageError,
    TimesheetNotFoundError,
)
from staffledger.models.billing import BillingProfile
from staffledger.models.invoice import ClientCompany, CompanySettings, EndUser, Invoice
from staffledger.models.timesheet import (
    BiWeeklyTimesheet,
    MonthlyTimesheet,
    TimesheetStatus,
    WeeklyTimesheet,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

LEDGER_TABLE = "staffledger-ledger"
DEFAULT_COMPANY_PK = "COMPANY#DEFAULT"

CONDITION_FAILED = "ConditionalCheckFailedException"


def _candidate_pk(candidate_id: int) -> str:
    return f"CANDIDATE#{candidate_id}"


def _is_condition_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == CONDITION_FAILED


class DynamoDBLedger:
    """Shared table access for the DynamoDB stores."""

    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._table_suffix = table_suffix
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)

    @property
    def table_name(self) -> str:
        return f"{LEDGER_TABLE}{self._table_suffix}"

    def table(self):
        return self._ddb.Table(self.table_name)

    def put(self, pk: str, sk: str, record: BaseModel, **kwargs: Any) -> None:
        """Write ``record``; ClientError other than a failed condition becomes StorageError."""
        item = {"PK": pk, "SK": sk, "record_id": getattr(record, "id", sk),
                "payload": record.model_dump_json()}
        status = getattr(record, "status", None)
        if status is not None:
            item["status"] = str(status)
        try:
            self.table().put_item(Item=item, **kwargs)
        except ClientError as exc:
            if _is_condition_failure(exc):
                raise
            raise StorageError(f"DynamoDB put failed for {pk}/{sk}: {exc}") from exc

    def get(self, pk: str, sk: str, model: type[M]) -> M | None:
        try:
            resp = self.table().get_item(Key={"PK": pk, "SK": sk})
        except ClientError as exc:
            raise StorageError(f"DynamoDB get failed for {pk}/{sk}: {exc}") from exc
        item = resp.get("Item")
        return model.model_validate_json(item["payload"]) if item else None

    def query_prefix(self, pk: str, sk_prefix: str, model: type[M]) -> list[M]:
        """All records under ``pk`` whose sort key starts with ``sk_prefix``, in key order."""
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key("PK").eq(pk) & Key("SK").begins_with(sk_prefix),
        }
        records: list[M] = []
        try:
            while True:
                resp = self.table().query(**kwargs)
                records.extend(model.model_validate_json(i["payload"]) for i in resp.get("Items", []))
                if "LastEvaluatedKey" not in resp:
                    return records
                kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]
        except ClientError as exc:
            raise StorageError(f"DynamoDB query failed for {pk}/{sk_prefix}*: {exc}") from exc

    def delete(self, pk: str, sk: str) -> None:
        try:
            self.table().delete_item(Key={"PK": pk, "SK": sk})
        except ClientError as exc:
            raise StorageError(f"DynamoDB delete failed for {pk}/{sk}: {exc}") from exc

    def increment(self, pk: str, sk: str) -> int:
        try:
            resp = self.table().update_item(
                Key={"PK": pk, "SK": sk},
                UpdateExpression="ADD seq :one",
                ExpressionAttributeValues={":one": 1},
                ReturnValues="UPDATED_NEW",
            )
        except ClientError as exc:
            raise StorageError(f"DynamoDB counter update failed for {pk}/{sk}: {exc}") from exc
        return int(resp["Attributes"]["seq"])


class DynamoDBBillingStore:
    """IBillingStore over the ledger table."""

    def __init__(self, ledger: DynamoDBLedger) -> None:
        self._ledger = ledger

    def list_profiles(self, candidate_id: int) -> list[BillingProfile]:
        return self._ledger.query_prefix(_candidate_pk(candidate_id), "BILLING#", BillingProfile)

    def save_profile(self, profile: BillingProfile) -> BillingProfile:
        self._ledger.put(_candidate_pk(profile.candidate_id), f"BILLING#{profile.id}", profile)
        return profile


class DynamoDBTimesheetStore:
    """ITimesheetStore over the ledger table.

    ``add_weekly`` is a conditional put: it succeeds only when no item exists
    for the week or the existing one was rejected.
    """

    def __init__(self, ledger: DynamoDBLedger) -> None:
        self._ledger = ledger

    def add_weekly(self, timesheet: WeeklyTimesheet) -> WeeklyTimesheet:
        try:
            self._ledger.put(
                _candidate_pk(timesheet.candidate_id),
                f"WEEK#{timesheet.week_start_date.isoformat()}",
                timesheet,
                ConditionExpression="attribute_not_exists(SK) OR #status = :rejected",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={":rejected": TimesheetStatus.REJECTED.value},
            )
        except ClientError as exc:
            raise DuplicateTimesheetError(timesheet.candidate_id, timesheet.week_start_date) from exc
        return timesheet

    def update_weekly(self, timesheet: WeeklyTimesheet) -> WeeklyTimesheet:
        try:
            self._ledger.put(
                _candidate_pk(timesheet.candidate_id),
                f"WEEK#{timesheet.week_start_date.isoformat()}",
                timesheet,
                ConditionExpression="record_id = :id",
                ExpressionAttributeValues={":id": timesheet.id},
            )
        except ClientError as exc:
            raise TimesheetNotFoundError(
                f"No weekly timesheet {timesheet.id} for candidate {timesheet.candidate_id} "
                f"week {timesheet.week_start_date}"
            ) from exc
        return timesheet

    def get_weekly(self, candidate_id: int, week_start: date) -> WeeklyTimesheet | None:
        return self._ledger.get(
            _candidate_pk(candidate_id), f"WEEK#{week_start.isoformat()}", WeeklyTimesheet
        )

    def list_weekly(
        self,
        candidate_id: int,
        status: TimesheetStatus | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[WeeklyTimesheet]:
        weeks = self._ledger.query_prefix(_candidate_pk(candidate_id), "WEEK#", WeeklyTimesheet)
        return [
            ts for ts in weeks
            if (status is None or ts.status == status)
            and (start is None or ts.week_end_date >= start)
            and (end is None or ts.week_start_date <= end)
        ]

    def save_bi_weekly(self, timesheet: BiWeeklyTimesheet) -> BiWeeklyTimesheet:
        self._ledger.put(
            _candidate_pk(timesheet.candidate_id),
            f"BIWEEK#{timesheet.period_start_date.isoformat()}",
            timesheet,
        )
        return timesheet

    def get_bi_weekly(self, candidate_id: int, period_start: date) -> BiWeeklyTimesheet | None:
        return self._ledger.get(
            _candidate_pk(candidate_id), f"BIWEEK#{period_start.isoformat()}", BiWeeklyTimesheet
        )

    def list_bi_weekly(self, candidate_id: int) -> list[BiWeeklyTimesheet]:
        return self._ledger.query_prefix(_candidate_pk(candidate_id), "BIWEEK#", BiWeeklyTimesheet)

    def save_monthly(self, timesheet: MonthlyTimesheet) -> MonthlyTimesheet:
        self._ledger.put(
            _candidate_pk(timesheet.candidate_id),
            f"MONTH#{timesheet.year:04d}-{timesheet.month:02d}",
            timesheet,
        )
        return timesheet

    def get_monthly(self, candidate_id: int, year: int, month: int) -> MonthlyTimesheet | None:
        return self._ledger.get(
            _candidate_pk(candidate_id), f"MONTH#{year:04d}-{month:02d}", MonthlyTimesheet
        )

    def list_monthly(self, candidate_id: int) -> list[MonthlyTimesheet]:
        return self._ledger.query_prefix(_candidate_pk(candidate_id), "MONTH#", MonthlyTimesheet)


class DynamoDBInvoiceStore:
    """IInvoiceStore over the ledger table.

    Each invoice is written twice: once under its number and once under its
    (candidate, period). Both puts are conditional, so a reused number and a
    second invoice for the same period are both rejected.
    """

    def __init__(self, ledger: DynamoDBLedger) -> None:
        self._ledger = ledger

    @staticmethod
    def _period_sk(invoice: Invoice) -> str:
        return f"INVOICE#{invoice.period_start_date.isoformat()}#{invoice.period_end_date.isoformat()}"

    def next_invoice_sequence(self, period_key: str) -> int:
        return self._ledger.increment("COUNTER#INVOICE", period_key)

    def add_invoice(self, invoice: Invoice) -> Invoice:
        number_pk = f"INVOICE#{invoice.invoice_number}"
        try:
            self._ledger.put(number_pk, "INVOICE", invoice,
                             ConditionExpression="attribute_not_exists(PK)")
        except ClientError as exc:
            raise DuplicateInvoiceNumberError(invoice.invoice_number) from exc

        try:
            self._ledger.put(_candidate_pk(invoice.candidate_id), self._period_sk(invoice), invoice,
                             ConditionExpression="attribute_not_exists(SK)")
        except ClientError as exc:
            self._ledger.delete(number_pk, "INVOICE")
            raise InvoiceAlreadyExistsError(
                invoice.candidate_id, invoice.period_start_date, invoice.period_end_date
            ) from exc
        return invoice

    def update_invoice(self, invoice: Invoice) -> Invoice:
        try:
            self._ledger.put(f"INVOICE#{invoice.invoice_number}", "INVOICE", invoice,
                             ConditionExpression="attribute_exists(PK)")
        except ClientError as exc:
            raise InvoiceNotFoundError(f"Invoice {invoice.invoice_number} not found") from exc
        self._ledger.put(_candidate_pk(invoice.candidate_id), self._period_sk(invoice), invoice)
        return invoice

    def get_invoice(self, invoice_number: str) -> Invoice | None:
        return self._ledger.get(f"INVOICE#{invoice_number}", "INVOICE", Invoice)

    def find_for_period(
        self, candidate_id: int, period_start: date, period_end: date
    ) -> Invoice | None:
        return self._ledger.get(
            _candidate_pk(candidate_id),
            f"INVOICE#{period_start.isoformat()}#{period_end.isoformat()}",
            Invoice,
        )

    def list_invoices(self, candidate_id: int) -> list[Invoice]:
        invoices = self._ledger.query_prefix(_candidate_pk(candidate_id), "INVOICE#", Invoice)
        return sorted(invoices, key=lambda inv: inv.invoice_number)


class DynamoDBReferenceStore:
    """IReferenceStore over the ledger table, plus writers used for seeding."""

    def __init__(self, ledger: DynamoDBLedger) -> None:
        self._ledger = ledger

    def get_client_company(self, company_id: int) -> ClientCompany | None:
        return self._ledger.get(f"CLIENT#{company_id}", "PROFILE", ClientCompany)

    def get_end_user(self, end_user_id: int) -> EndUser | None:
        return self._ledger.get(f"END_USER#{end_user_id}", "PROFILE", EndUser)

    def get_company_settings(self, settings_id: int) -> CompanySettings | None:
        return self._ledger.get(f"COMPANY#{settings_id}", "SETTINGS", CompanySettings)

    def get_default_company_settings(self) -> CompanySettings | None:
        return self._ledger.get(DEFAULT_COMPANY_PK, "SETTINGS", CompanySettings)

    def save_client_company(self, company: ClientCompany) -> ClientCompany:
        self._ledger.put(f"CLIENT#{company.id}", "PROFILE", company)
        return company

    def save_end_user(self, end_user: EndUser) -> EndUser:
        self._ledger.put(f"END_USER#{end_user.id}", "PROFILE", end_user)
        return end_user

    def save_company_settings(self, settings: CompanySettings) -> CompanySettings:
        self._ledger.put(f"COMPANY#{settings.id}", "SETTINGS", settings)
        if settings.is_default:
            self._ledger.put(DEFAULT_COMPANY_PK, "SETTINGS", settings)
            logger.info("Company settings %s marked as default", settings.id)
        return settings
