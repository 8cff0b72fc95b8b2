"""Shared test doubles: re-exported memory backends, plus record builders."""

from __future__ import annotations

from datetime import date
from typing import Any

from sitepay.models.records import CompanyRecord, ReportEntry, TeamRecord, WorkerRecord
from sitepay.persistence.memory_backend import (
    MemoryAdvancePaymentStore,
    MemoryCacheBackend,
    MemoryCompanyDirectory,
    MemoryPayrollConfigStore,
    MemoryReportStore,
    MemoryTeamDirectory,
    MemoryWorkerDirectory,
)

__all__ = [
    "MemoryAdvancePaymentStore",
    "MemoryCacheBackend",
    "MemoryCompanyDirectory",
    "MemoryPayrollConfigStore",
    "MemoryReportStore",
    "MemoryTeamDirectory",
    "MemoryWorkerDirectory",
    "company",
    "entry",
    "team",
    "worker",
]


def worker(worker_id: str = "w1", **overrides: Any) -> WorkerRecord:
    data: dict[str, Any] = {
        "id": worker_id,
        "name": f"작업자{worker_id}",
        "team_id": "t1",
        "team_name": "본팀",
        "team_type": "construction",
        "company_id": "c1",
        "company_name": "한빛건설",
        "default_unit_price": 150000,
        "bank_name": "국민은행",
        "account_number": "123456789012",
        "account_holder": f"작업자{worker_id}",
    }
    data.update(overrides)
    return WorkerRecord(**data)


def team(team_id: str = "t1", **overrides: Any) -> TeamRecord:
    data: dict[str, Any] = {"id": team_id, "name": "본팀", "type": "construction", "company_id": "c1"}
    data.update(overrides)
    return TeamRecord(**data)


def company(company_id: str = "c1", **overrides: Any) -> CompanyRecord:
    data: dict[str, Any] = {"id": company_id, "name": "한빛건설", "type": "constructionClient"}
    data.update(overrides)
    return CompanyRecord(**data)


def entry(day: str = "2024-03-01", worker_id: str = "w1", **overrides: Any) -> ReportEntry:
    data: dict[str, Any] = {
        "date": date.fromisoformat(day),
        "site_id": "s1",
        "team_id": "t1",
        "worker_id": worker_id,
        "man_day": 1.0,
    }
    data.update(overrides)
    return ReportEntry(**data)
