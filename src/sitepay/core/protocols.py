"""Protocol interfaces for all sitepay abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from sitepay.models.records import (
    AdvancePaymentRecord,
    CompanyRecord,
    PayrollConfig,
    ReportEntry,
    TeamRecord,
    WorkerRecord,
)


# ---------------------------------------------------------------------------
# Reference directories (read-only, async, may fail)
# ---------------------------------------------------------------------------

@runtime_checkable
class IReportStore(Protocol):
    """Daily attendance reports flattened to one entry per worker per day."""

    async def list_reports(
        self,
        start_date: date,
        end_date: date,
        team_id: str | None = None,
        site_id: str | None = None,
    ) -> list[ReportEntry]: ...


@runtime_checkable
class IWorkerDirectory(Protocol):
    async def list_workers(self) -> list[WorkerRecord]: ...


@runtime_checkable
class ITeamDirectory(Protocol):
    async def list_teams(self) -> list[TeamRecord]: ...


@runtime_checkable
class ICompanyDirectory(Protocol):
    async def list_companies(self) -> list[CompanyRecord]: ...


@runtime_checkable
class IAdvancePaymentStore(Protocol):
    """Advance / other deduction records, one per worker per team per month."""

    async def list_advance_payments(
        self, year: int, month: int, team_id: str | None = None
    ) -> list[AdvancePaymentRecord]: ...


@runtime_checkable
class IPayrollConfigStore(Protocol):
    """Statutory rates and deduction item catalog."""

    async def get_config(self) -> PayrollConfig: ...


# ---------------------------------------------------------------------------
# Persistence: Cache Backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def ping(self) -> bool:
        """Raise CacheError when the cache is unreachable."""
        ...
