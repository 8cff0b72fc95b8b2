"""Tests for the settlement run orchestrator against in-memory stores."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from sitepay.core.config import AppSettings, ExportConfig
from sitepay.core.exceptions import (
    DirectoryFetchError,
    NoSettlementResultError,
    RowNotFoundError,
    StaleRunError,
)
from sitepay.models.records import AdvancePaymentRecord
from sitepay.models.settlement import RowFilter, RunStatus, SettlementQuery
from sitepay.models.taxonomy import SalaryModel
from sitepay.settlement.orchestrator.settlement_run import SettlementRunner
from tests.fakes import (
    MemoryAdvancePaymentStore,
    MemoryCompanyDirectory,
    MemoryPayrollConfigStore,
    MemoryReportStore,
    MemoryTeamDirectory,
    MemoryWorkerDirectory,
    company,
    entry,
    team,
    worker,
)

MARCH = SettlementQuery(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))


class _FailingWorkers:
    async def list_workers(self):
        raise RuntimeError("directory offline")


class _ReentrantReportStore(MemoryReportStore):
    """Starts a second run the first time it is queried."""

    def __init__(self, entries) -> None:
        super().__init__(entries)
        self.runner: SettlementRunner | None = None
        self.inner_result = None

    async def list_reports(self, start_date, end_date, team_id=None, site_id=None):
        if self.runner is not None and self.inner_result is None:
            runner, self.runner = self.runner, None
            self.inner_result = await runner.run(MARCH)
        return await super().list_reports(start_date, end_date, team_id, site_id)


def _entries():
    return [
        entry("2024-03-01"),
        entry("2024-03-02"),
        entry("2024-03-04", worker_id="w-month", salary_model_hint="월급제"),
        entry("2024-03-05", worker_id="ghost"),
    ]


def _runner(reports=None, workers=None, advances=None, settings=None) -> SettlementRunner:
    return SettlementRunner(
        reports=reports or MemoryReportStore(_entries()),
        workers=workers or MemoryWorkerDirectory([worker("w1", name="김철수"), worker("w-month", name="이영희")]),
        teams=MemoryTeamDirectory([team("t1")]),
        companies=MemoryCompanyDirectory([company("c1")]),
        advances=advances or MemoryAdvancePaymentStore(),
        config_store=MemoryPayrollConfigStore(),
        settings=settings,
    )


class TestRun:
    def test_completed_run_becomes_latest(self):
        runner = _runner()
        result = asyncio.run(runner.run(MARCH))
        assert runner.latest is result
        assert runner.status is RunStatus.COMPLETED
        assert result.generation == 1
        assert {row.row_key for row in result.rows} == {"dailyWage_t1_w1", "monthlyWage_t1_w-month"}
        assert result.diagnostics.dropped_total == 1
        assert result.completed_at is not None

    def test_directory_failure_aborts_and_keeps_previous_result(self):
        runner = _runner()
        previous = asyncio.run(runner.run(MARCH))
        runner._workers = _FailingWorkers()

        with pytest.raises(DirectoryFetchError) as exc_info:
            asyncio.run(runner.run(MARCH))

        assert exc_info.value.directory == "workers"
        assert runner.latest is previous
        assert runner.status is RunStatus.FAILED
        assert "directory offline" in runner.last_error

    def test_superseded_run_is_discarded(self):
        reports = _ReentrantReportStore(_entries())
        runner = _runner(reports=reports)
        reports.runner = runner

        with pytest.raises(StaleRunError) as exc_info:
            asyncio.run(runner.run(MARCH))

        assert exc_info.value.generation == 1
        assert exc_info.value.current == 2
        assert runner.latest is reports.inner_result
        assert runner.latest.generation == 2
        assert runner.status is RunStatus.COMPLETED

    def test_advances_fetched_per_month_without_team_filter(self):
        advances = MemoryAdvancePaymentStore()
        runner = _runner(advances=advances)
        query = SettlementQuery(start_date=date(2024, 2, 15), end_date=date(2024, 4, 2), team_id="t1")
        asyncio.run(runner.run(query))
        assert sorted(advances.calls) == [(2024, 2, None), (2024, 3, None), (2024, 4, None)]

    def test_advances_skipped_without_monthly_rows(self):
        advances = MemoryAdvancePaymentStore()
        runner = _runner(reports=MemoryReportStore([entry("2024-03-01")]), advances=advances)
        asyncio.run(runner.run(MARCH))
        assert advances.calls == []

    def test_same_inputs_give_same_rows(self):
        runner = _runner()
        first = asyncio.run(runner.run(MARCH))
        second = asyncio.run(runner.run(MARCH))
        assert first.rows == second.rows
        assert second.generation == 2


class TestResultAccess:
    def test_nothing_before_first_run(self):
        runner = _runner()
        with pytest.raises(NoSettlementResultError):
            runner.rows()
        with pytest.raises(NoSettlementResultError):
            runner.export()

    def test_rows_with_filter(self):
        runner = _runner()
        asyncio.run(runner.run(MARCH))
        rows = runner.rows(RowFilter(salary_model=SalaryModel.MONTHLY_WAGE))
        assert [row.row_key for row in rows] == ["monthlyWage_t1_w-month"]

    def test_payslip_for_monthly_row(self):
        advances = MemoryAdvancePaymentStore([
            AdvancePaymentRecord(worker_id="w-month", team_id="t1", year_month="2024-03",
                                 per_item_amounts={"gloves": 5000}),
        ])
        runner = _runner(advances=advances)
        asyncio.run(runner.run(MARCH))
        slip = runner.payslip("monthlyWage_t1_w-month", "2024-03")
        assert slip.gross_pay == 150000
        assert slip.result.advance_deduction == 5000

    @pytest.mark.parametrize(
        ("row_key", "year_month"),
        [("dailyWage_t1_w1", "2024-03"), ("monthlyWage_t1_w-month", "2024-04"), ("missing", "2024-03")],
    )
    def test_payslip_rejects_non_monthly_or_unknown(self, row_key, year_month):
        runner = _runner()
        asyncio.run(runner.run(MARCH))
        with pytest.raises(RowNotFoundError):
            runner.payslip(row_key, year_month)

    def test_export_uses_net_pay_for_monthly_rows(self):
        settings = AppSettings(export=ExportConfig(withdrawal_suffix=" 노임"))
        runner = _runner(settings=settings)
        asyncio.run(runner.run(MARCH))
        exports = {row.row_key: row for row in runner.export()}
        daily = exports["dailyWage_t1_w1"]
        monthly = exports["monthlyWage_t1_w-month"]
        assert daily.transfer_amount == 300000
        assert daily.withdrawal_display == "김철수 노임"
        expected_net = runner.payslip("monthlyWage_t1_w-month", "2024-03").result.net_pay
        assert monthly.transfer_amount == expected_net
        assert monthly.transfer_amount < 150000
