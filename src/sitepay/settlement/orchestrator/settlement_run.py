"""Fetch-join-aggregate for one settlement query, guarded by a run generation.

Every ``run`` call takes a new generation number. After each await the run
checks that it is still the newest one; a superseded run raises
``StaleRunError`` and never touches ``latest``. A failed run also leaves the
previous result in place.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Mapping
from datetime import datetime, timezone
from typing import TypeVar

from sitepay.core.config import AppSettings
from sitepay.core.exceptions import (
    DirectoryFetchError,
    NoSettlementResultError,
    RowNotFoundError,
    SettlementRunError,
    StaleRunError,
)
from sitepay.core.protocols import (
    IAdvancePaymentStore,
    ICompanyDirectory,
    IPayrollConfigStore,
    IReportStore,
    ITeamDirectory,
    IWorkerDirectory,
)
from sitepay.models.outputs import ExportRow, PayslipMonth, TransferRow
from sitepay.models.records import AdvancePaymentRecord
from sitepay.models.settlement import RowFilter, RunStatus, SettlementQuery, SettlementResult
from sitepay.settlement.compliance.payslip import PayslipService
from sitepay.settlement.resolver.lookups import ReferenceIndex
from sitepay.settlement.transform.aggregator import aggregate, year_months_in_range
from sitepay.settlement.transform.export_rows import build_export_rows
from sitepay.settlement.transform.row_filter import filter_rows

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SettlementRunner:
    """Runs settlement queries against the injected stores and keeps the newest result."""

    def __init__(
        self,
        *,
        reports: IReportStore,
        workers: IWorkerDirectory,
        teams: ITeamDirectory,
        companies: ICompanyDirectory,
        advances: IAdvancePaymentStore,
        config_store: IPayrollConfigStore,
        settings: AppSettings | None = None,
    ) -> None:
        self._reports = reports
        self._workers = workers
        self._teams = teams
        self._companies = companies
        self._advances = advances
        self._config_store = config_store
        self._settings = settings or AppSettings()
        self._generation = 0
        self._latest: SettlementResult | None = None
        self._index: ReferenceIndex | None = None
        self._payslips: PayslipService | None = None
        self.status: RunStatus | None = None
        self.last_error: str | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def latest(self) -> SettlementResult | None:
        return self._latest

    def _ensure_current(self, generation: int) -> None:
        if generation != self._generation:
            raise StaleRunError(generation, self._generation)

    @staticmethod
    async def _fetch(directory: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except Exception as exc:
            raise DirectoryFetchError(directory, str(exc)) from exc

    async def run(self, query: SettlementQuery) -> SettlementResult:
        """Run one query end to end and publish it as ``latest`` if still current."""
        self._generation += 1
        generation = self._generation
        self.status = RunStatus.RUNNING
        logger.info("Run %d started for %s..%s", generation, query.start_date, query.end_date)

        try:
            result, index = await self._run(generation, query)
        except StaleRunError:
            logger.info("Run %d superseded by run %d; result discarded", generation, self._generation)
            raise
        except SettlementRunError as exc:
            if generation == self._generation:
                self.status = RunStatus.FAILED
                self.last_error = str(exc)
            logger.error("Run %d failed: %s", generation, exc)
            raise

        self._latest = result
        self._index = index
        self._payslips = None
        self.status = RunStatus.COMPLETED
        self.last_error = None
        logger.info(
            "Run %d completed: %d rows, %d invalid, %d entries dropped",
            generation, len(result.rows), result.invalid_row_count, result.diagnostics.dropped_total,
        )
        return result

    async def _run(self, generation: int, query: SettlementQuery) -> tuple[SettlementResult, ReferenceIndex]:
        # all reference data must be in hand before any entry is resolved
        workers, teams, companies, config = await asyncio.gather(
            self._fetch("workers", self._workers.list_workers()),
            self._fetch("teams", self._teams.list_teams()),
            self._fetch("companies", self._companies.list_companies()),
            self._fetch("payroll_config", self._config_store.get_config()),
        )
        self._ensure_current(generation)

        entries = await self._fetch(
            "reports",
            self._reports.list_reports(query.start_date, query.end_date, query.team_id, query.site_id),
        )
        self._ensure_current(generation)

        index = ReferenceIndex(workers, teams, companies)
        aggregation = aggregate(entries, index)

        advance_records: list[AdvancePaymentRecord] = []
        if any(row.is_monthly_wage for row in aggregation.rows):
            months = year_months_in_range(query.start_date, query.end_date)
            per_month = await asyncio.gather(*(
                self._fetch("advance_payments", self._advances.list_advance_payments(int(ym[:4]), int(ym[5:7])))
                for ym in months
            ))
            self._ensure_current(generation)
            advance_records = [record for records in per_month for record in records]

        result = SettlementResult(
            generation=generation,
            query=query,
            rows=aggregation.rows,
            diagnostics=aggregation.diagnostics,
            payroll_config=config,
            advance_records=advance_records,
            completed_at=datetime.now(timezone.utc),
        )
        return result, index

    def _require_latest(self) -> SettlementResult:
        if self._latest is None:
            raise NoSettlementResultError("No settlement run has completed")
        return self._latest

    def rows(self, row_filter: RowFilter | None = None) -> list[TransferRow]:
        """Rows of the latest result, optionally narrowed by ``row_filter``."""
        result = self._require_latest()
        if row_filter is None or self._index is None:
            return list(result.rows)
        return filter_rows(result.rows, row_filter, self._index)

    def payslip_service(self) -> PayslipService:
        result = self._require_latest()
        if self._payslips is None:
            self._payslips = PayslipService(
                result.rows,
                result.payroll_config,
                result.advance_records,
                other_deduction_label=self._settings.payroll.other_deduction_label,
            )
        return self._payslips

    def payslip(self, row_key: str, year_month: str) -> PayslipMonth:
        """Monthly payslip for a monthly-wage row of the latest result."""
        row = self._require_latest().row(row_key)
        if row is None or not row.is_monthly_wage or year_month not in row.amount_by_year_month:
            raise RowNotFoundError(row_key)
        return self.payslip_service().monthly_breakdown(row, year_month)

    def export(
        self,
        row_filter: RowFilter | None = None,
        withdrawal_overrides: Mapping[str, str] | None = None,
        deposit_display: str | None = None,
    ) -> list[ExportRow]:
        """Bank-file rows for the latest result's (optionally filtered) rows."""
        rows = self.rows(row_filter)
        payslips = self.payslip_service()
        return build_export_rows(
            rows,
            payslips.transfer_amount,
            self._settings.export,
            withdrawal_overrides,
            deposit_display,
        )
