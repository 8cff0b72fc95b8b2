"""Settlement run request, filter and result models."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from sitepay.models.outputs import TransferRow
from sitepay.models.records import AdvancePaymentRecord, PayrollConfig
from sitepay.models.taxonomy import SalaryModel


class RunStatus(StrEnum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class CompanyScope(StrEnum):
    ALL = "all"
    CONSTRUCTION = "construction"
    PARTNER = "partner"


class DropReason(StrEnum):
    UNKNOWN_WORKER = "unknown_worker"
    UNKNOWN_TEAM = "unknown_team"
    MISSING_WORKER_ID = "missing_worker_id"


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RowFilter(_Model):
    """Narrows an already-aggregated row set for display or export."""

    salary_model: Optional[SalaryModel] = None
    company_scope: CompanyScope = CompanyScope.ALL
    team_id: str = ""
    worker_id: str = ""


class SettlementQuery(_Model):
    """Date range (inclusive) plus optional store-side filters."""

    start_date: date
    end_date: date
    team_id: Optional[str] = None
    site_id: Optional[str] = None

    @model_validator(mode="after")
    def _ordered_range(self) -> "SettlementQuery":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RunDiagnostics(_Model):
    """Per-run counters for entries that did not reach a row as-is."""

    entries_seen: int = 0
    entries_aggregated: int = 0
    dropped: dict[DropReason, int] = Field(default_factory=dict)
    support_team_unresolved: int = 0

    @property
    def dropped_total(self) -> int:
        return sum(self.dropped.values())


class AggregationResult(_Model):
    rows: list[TransferRow] = Field(default_factory=list)
    diagnostics: RunDiagnostics = Field(default_factory=RunDiagnostics)

    @property
    def invalid_row_count(self) -> int:
        return sum(1 for row in self.rows if not row.is_valid)


class SettlementResult(_Model):
    """Everything a completed run hands to the payslip and export layers."""

    generation: int
    query: SettlementQuery
    rows: list[TransferRow] = Field(default_factory=list)
    diagnostics: RunDiagnostics = Field(default_factory=RunDiagnostics)
    payroll_config: PayrollConfig
    advance_records: list[AdvancePaymentRecord] = Field(default_factory=list)
    completed_at: Optional[datetime] = None

    @property
    def invalid_row_count(self) -> int:
        return sum(1 for row in self.rows if not row.is_valid)

    def row(self, row_key: str) -> TransferRow | None:
        return next((row for row in self.rows if row.row_key == row_key), None)
