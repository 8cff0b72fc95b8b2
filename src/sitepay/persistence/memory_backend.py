"""In-memory backends for unit tests and local runs: list-backed fakes."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sitepay.models.records import (
    AdvancePaymentRecord,
    CompanyRecord,
    PayrollConfig,
    ReportEntry,
    TeamRecord,
    WorkerRecord,
)


class MemoryReportStore:
    """List-backed IReportStore."""

    def __init__(self, entries: Iterable[ReportEntry] = ()) -> None:
        self._entries: list[ReportEntry] = list(entries)

    def add(self, *entries: ReportEntry) -> None:
        self._entries.extend(entries)

    async def list_reports(
        self,
        start_date: date,
        end_date: date,
        team_id: str | None = None,
        site_id: str | None = None,
    ) -> list[ReportEntry]:
        return [
            entry for entry in self._entries
            if start_date <= entry.date <= end_date
            and (not team_id or entry.team_id == team_id)
            and (not site_id or entry.site_id == site_id)
        ]


class MemoryWorkerDirectory:
    def __init__(self, workers: Iterable[WorkerRecord] = ()) -> None:
        self._workers = list(workers)

    async def list_workers(self) -> list[WorkerRecord]:
        return list(self._workers)


class MemoryTeamDirectory:
    def __init__(self, teams: Iterable[TeamRecord] = ()) -> None:
        self._teams = list(teams)

    async def list_teams(self) -> list[TeamRecord]:
        return list(self._teams)


class MemoryCompanyDirectory:
    def __init__(self, companies: Iterable[CompanyRecord] = ()) -> None:
        self._companies = list(companies)

    async def list_companies(self) -> list[CompanyRecord]:
        return list(self._companies)


class MemoryAdvancePaymentStore:
    """List-backed IAdvancePaymentStore; records are matched on ``year_month``."""

    def __init__(self, records: Iterable[AdvancePaymentRecord] = ()) -> None:
        self._records = list(records)
        self.calls: list[tuple[int, int, str | None]] = []

    async def list_advance_payments(
        self, year: int, month: int, team_id: str | None = None
    ) -> list[AdvancePaymentRecord]:
        self.calls.append((year, month, team_id))
        year_month = f"{year:04d}-{month:02d}"
        return [
            record for record in self._records
            if record.year_month == year_month and (not team_id or record.team_id == team_id)
        ]


class MemoryPayrollConfigStore:
    def __init__(self, config: PayrollConfig | None = None) -> None:
        self._config = config or PayrollConfig()

    async def get_config(self) -> PayrollConfig:
        return self._config


class MemoryCacheBackend:
    """Dict-backed ICacheBackend for unit tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def ping(self) -> bool:
        return True
