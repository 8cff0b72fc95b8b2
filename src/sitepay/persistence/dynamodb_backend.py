"""DynamoDB backends for the report store, directories, advance records and config.

Table layout (all tables PK/SK strings, camelCase attributes):

    sitepay-reports           PK=MONTH#<YYYY-MM>  SK=<YYYY-MM-DD>#<reportId>#<workerId>
    sitepay-directory         PK=WORKER|TEAM|COMPANY  SK=<id>
    sitepay-advance-payments  PK=YM#<YYYY-MM>  SK=<teamId>#<workerId>
    sitepay-config            PK=PAYROLL  SK=CONFIG

boto3 is blocking; every read runs in a worker thread via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from datetime import date
from decimal import Decimal
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sitepay.core.exceptions import StoreError
from sitepay.models.records import (
    AdvancePaymentRecord,
    CompanyRecord,
    PayrollConfig,
    ReportEntry,
    TeamRecord,
    WorkerRecord,
)

logger = logging.getLogger(__name__)

REPORTS_TABLE = "sitepay-reports"
DIRECTORY_TABLE = "sitepay-directory"
ADVANCES_TABLE = "sitepay-advance-payments"
CONFIG_TABLE = "sitepay-config"

TABLE_NAMES: tuple[str, ...] = (REPORTS_TABLE, DIRECTORY_TABLE, ADVANCES_TABLE, CONFIG_TABLE)

# Sorts after every character used in report sort keys.
_SK_HIGH = "~"


def _decode(value: Any) -> Any:
    """Convert DynamoDB Decimals (recursively) to int/float."""
    if isinstance(value, Decimal):
        return int(value) if value == int(value) else float(value)
    if isinstance(value, dict):
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def report_key(entry_date: str, report_id: str, worker_id: str) -> dict[str, str]:
    return {"PK": f"MONTH#{entry_date[:7]}", "SK": f"{entry_date}#{report_id}#{worker_id}"}


def directory_key(kind: str, record_id: str) -> dict[str, str]:
    return {"PK": kind, "SK": record_id}


def advance_key(year_month: str, team_id: str, worker_id: str) -> dict[str, str]:
    return {"PK": f"YM#{year_month}", "SK": f"{team_id}#{worker_id}"}


CONFIG_KEY = {"PK": "PAYROLL", "SK": "CONFIG"}


def _months(start: date, end: date) -> Iterator[str]:
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield f"{year:04d}-{month:02d}"
        month += 1
        if month > 12:
            month = 1
            year += 1


class DynamoDBTables:
    """Shared boto3 resource and query helpers for the sitepay tables."""

    def __init__(self, table_suffix: str = "", region: str = "ap-northeast-2",
                 endpoint_url: str | None = None) -> None:
        self._table_suffix = table_suffix
        kwargs: dict[str, Any] = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)

    def table(self, base: str):
        return self._ddb.Table(f"{base}{self._table_suffix}")

    def query(self, base: str, condition: str, values: dict[str, Any]) -> list[dict[str, Any]]:
        """All items matching a key condition, following pagination."""
        tbl = self.table(base)
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": condition,
            "ExpressionAttributeValues": values,
        }
        items: list[dict[str, Any]] = []
        try:
            while True:
                resp = tbl.query(**kwargs)
                items.extend(_decode(item) for item in resp.get("Items", []))
                last_key = resp.get("LastEvaluatedKey")
                if not last_key:
                    return items
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"DynamoDB query on {base}{self._table_suffix} failed: {exc}") from exc

    def get_item(self, base: str, key: dict[str, str]) -> dict[str, Any] | None:
        try:
            resp = self.table(base).get_item(Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"DynamoDB get_item on {base}{self._table_suffix} failed: {exc}") from exc
        item = resp.get("Item")
        return _decode(item) if item else None


class DynamoDBReportStore:
    """IReportStore over the month-partitioned reports table."""

    def __init__(self, tables: DynamoDBTables) -> None:
        self._tables = tables

    def _list(self, start_date: date, end_date: date, team_id: str | None, site_id: str | None) -> list[ReportEntry]:
        low = start_date.isoformat()
        high = f"{end_date.isoformat()}{_SK_HIGH}"
        entries: list[ReportEntry] = []
        for year_month in _months(start_date, end_date):
            items = self._tables.query(
                REPORTS_TABLE,
                "PK = :pk AND SK BETWEEN :low AND :high",
                {":pk": f"MONTH#{year_month}", ":low": low, ":high": high},
            )
            for item in items:
                entry = ReportEntry.model_validate(item)
                if team_id and entry.team_id != team_id:
                    continue
                if site_id and entry.site_id != site_id:
                    continue
                entries.append(entry)
        logger.debug("Loaded %d report entries for %s..%s", len(entries), start_date, end_date)
        return entries

    async def list_reports(
        self,
        start_date: date,
        end_date: date,
        team_id: str | None = None,
        site_id: str | None = None,
    ) -> list[ReportEntry]:
        return await asyncio.to_thread(self._list, start_date, end_date, team_id, site_id)


class DynamoDBDirectory:
    """Worker, team and company directories sharing one table."""

    def __init__(self, tables: DynamoDBTables) -> None:
        self._tables = tables

    def _kind(self, kind: str) -> list[dict[str, Any]]:
        return self._tables.query(DIRECTORY_TABLE, "PK = :pk", {":pk": kind})

    async def list_workers(self) -> list[WorkerRecord]:
        items = await asyncio.to_thread(self._kind, "WORKER")
        return [WorkerRecord.model_validate(item) for item in items]

    async def list_teams(self) -> list[TeamRecord]:
        items = await asyncio.to_thread(self._kind, "TEAM")
        return [TeamRecord.model_validate(item) for item in items]

    async def list_companies(self) -> list[CompanyRecord]:
        items = await asyncio.to_thread(self._kind, "COMPANY")
        return [CompanyRecord.model_validate(item) for item in items]


class DynamoDBAdvancePaymentStore:
    def __init__(self, tables: DynamoDBTables) -> None:
        self._tables = tables

    def _list(self, year: int, month: int, team_id: str | None) -> list[AdvancePaymentRecord]:
        pk = f"YM#{year:04d}-{month:02d}"
        if team_id:
            items = self._tables.query(
                ADVANCES_TABLE, "PK = :pk AND begins_with(SK, :team)", {":pk": pk, ":team": f"{team_id}#"},
            )
        else:
            items = self._tables.query(ADVANCES_TABLE, "PK = :pk", {":pk": pk})
        return [AdvancePaymentRecord.model_validate(item) for item in items]

    async def list_advance_payments(
        self, year: int, month: int, team_id: str | None = None
    ) -> list[AdvancePaymentRecord]:
        return await asyncio.to_thread(self._list, year, month, team_id)


class DynamoDBPayrollConfigStore:
    """Server copy of the payroll config. A missing item means built-in defaults."""

    def __init__(self, tables: DynamoDBTables) -> None:
        self._tables = tables

    def _get(self) -> PayrollConfig:
        item = self._tables.get_item(CONFIG_TABLE, CONFIG_KEY)
        if item is None:
            logger.info("No stored payroll config; using defaults")
            return PayrollConfig()
        return PayrollConfig.model_validate(item)

    async def get_config(self) -> PayrollConfig:
        return await asyncio.to_thread(self._get)
