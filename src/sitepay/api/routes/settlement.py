"""Settlement run, result, payslip and bank-export endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sitepay.models.settlement import CompanyScope, RowFilter, SettlementQuery
from sitepay.models.taxonomy import SalaryModel
from sitepay.settlement.orchestrator.settlement_run import SettlementRunner

router = APIRouter(tags=["settlement"])


class ExportRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    filter: RowFilter = Field(default_factory=RowFilter)
    withdrawal_overrides: dict[str, str] = Field(default_factory=dict)
    deposit_display: Optional[str] = None


def _runner(request: Request) -> SettlementRunner:
    return request.app.state.runner


@router.post("/runs")
async def start_run(query: SettlementQuery, request: Request) -> dict[str, Any]:
    """Run a settlement for the date range and make it the latest result."""
    result = await _runner(request).run(query)
    return {
        "generation": result.generation,
        "rowCount": len(result.rows),
        "invalidRowCount": result.invalid_row_count,
        "diagnostics": result.diagnostics.model_dump(mode="json", by_alias=True),
    }


@router.get("/latest")
async def latest(
    request: Request,
    salary_model: Optional[SalaryModel] = Query(None, alias="salaryModel"),
    company_scope: CompanyScope = Query(CompanyScope.ALL, alias="companyScope"),
    team_id: str = Query("", alias="teamId"),
    worker_id: str = Query("", alias="workerId"),
) -> dict[str, Any]:
    runner = _runner(request)
    row_filter = RowFilter(
        salary_model=salary_model, company_scope=company_scope, team_id=team_id, worker_id=worker_id,
    )
    rows = runner.rows(row_filter)
    result = runner.latest
    return {
        "generation": result.generation,
        "status": runner.status.value if runner.status else None,
        "lastError": runner.last_error,
        "query": result.query.model_dump(mode="json", by_alias=True),
        "rows": [row.model_dump(mode="json", by_alias=True) for row in rows],
        "invalidRowCount": sum(1 for row in rows if not row.is_valid),
        "diagnostics": result.diagnostics.model_dump(mode="json", by_alias=True),
    }


@router.get("/latest/rows/{row_key}/payslip/{year_month}")
async def payslip(row_key: str, year_month: str, request: Request) -> dict[str, Any]:
    return _runner(request).payslip(row_key, year_month).model_dump(by_alias=True)


@router.post("/latest/export")
async def export(body: ExportRequest, request: Request) -> list[dict[str, Any]]:
    rows = _runner(request).export(body.filter, body.withdrawal_overrides, body.deposit_display)
    return [row.model_dump(by_alias=True) for row in rows]
