"""Group report entries into one transfer row per payee.

``aggregate`` is synchronous and pure apart from logging: identical inputs
give identical rows. Entries are sorted by date before anything else because
pay-model carry-forward depends on order.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from datetime import date

from sitepay.models.outputs import TransferRow
from sitepay.models.records import ReportEntry, WorkerRecord, round_half_up
from sitepay.models.settlement import AggregationResult, DropReason, RunDiagnostics
from sitepay.models.taxonomy import SalaryModel, SupportModel
from sitepay.settlement.resolver.lookups import ReferenceIndex
from sitepay.settlement.resolver.salary_model import CarryForwardState, resolve_salary_model
from sitepay.settlement.resolver.support_team import SupportPayee, SupportTeamRedirector
from sitepay.settlement.validator import bank_validator

logger = logging.getLogger(__name__)

# Advance records are fetched per month; ranges longer than this are cut.
MAX_RANGE_MONTHS = 25


class _RowAccumulator:
    """Mutable row state while entries are folded in; frozen by ``freeze``."""

    def __init__(
        self,
        *,
        row_key: str,
        salary_model: SalaryModel,
        payee_team_id: str,
        payee_team_name: str,
        payee_worker_id: str,
        payee_name: str,
        unit_price: float,
        company_id: str,
        company_name: str,
        bank_name: str,
        bank_code: str,
        account_number: str,
        account_holder: str,
    ) -> None:
        self.row_key = row_key
        self.salary_model = salary_model
        self.payee_team_id = payee_team_id
        self.payee_team_name = payee_team_name
        self.payee_worker_id = payee_worker_id
        self.payee_name = payee_name
        self.unit_price = unit_price
        self.company_id = company_id
        self.company_name = company_name
        self.bank_name = bank_name
        self.bank_code = bank_code
        self.account_number = account_number
        self.account_holder = account_holder
        self.total_man_day = 0.0
        self.amount_by_year_month: dict[str, int] = {}

    def add(self, year_month: str, man_day: float, amount: int) -> None:
        self.total_man_day += man_day
        self.amount_by_year_month[year_month] = self.amount_by_year_month.get(year_month, 0) + amount

    def set_month(self, year_month: str, man_day: float, amount: int) -> None:
        self.total_man_day += man_day
        self.amount_by_year_month[year_month] = amount

    def freeze(self) -> TransferRow:
        validation = bank_validator.validate(
            bank_name=self.bank_name,
            bank_code=self.bank_code,
            account_number=self.account_number,
            account_holder=self.account_holder,
        )
        return TransferRow(
            row_key=self.row_key,
            payee_team_id=self.payee_team_id,
            payee_team_name=self.payee_team_name,
            payee_worker_id=self.payee_worker_id,
            payee_name=self.payee_name,
            salary_model=self.salary_model,
            total_man_day=self.total_man_day,
            unit_price=self.unit_price,
            amount_by_year_month=dict(self.amount_by_year_month),
            company_id=self.company_id,
            company_name=self.company_name,
            bank_name=self.bank_name,
            bank_code=self.bank_code,
            account_number=self.account_number,
            account_holder=self.account_holder,
            is_valid=validation.is_valid,
            field_errors=validation.field_errors,
        )


def _unit_price(entry: ReportEntry, worker: WorkerRecord) -> float:
    if entry.unit_price is not None:
        return entry.unit_price
    if worker.default_unit_price is not None:
        return worker.default_unit_price
    return 0.0


def _support_accumulator(payee: SupportPayee) -> _RowAccumulator:
    return _RowAccumulator(
        row_key=payee.row_key,
        salary_model=SalaryModel.SUPPORT_TEAM,
        payee_team_id=payee.team_id,
        payee_team_name=payee.team_name,
        payee_worker_id=payee.payee_worker_id,
        payee_name=payee.payee_name,
        unit_price=payee.support_rate,
        company_id=payee.company_id,
        company_name=payee.company_name,
        bank_name=payee.bank_name,
        bank_code=payee.bank_code,
        account_number=payee.account_number,
        account_holder=payee.account_holder,
    )


def _ordinary_accumulator(
    row_key: str,
    model: SalaryModel,
    team_id: str,
    entry: ReportEntry,
    worker: WorkerRecord,
    index: ReferenceIndex,
) -> _RowAccumulator:
    team = index.team(team_id)
    return _RowAccumulator(
        row_key=row_key,
        salary_model=model,
        payee_team_id=team_id,
        payee_team_name=entry.team_name or worker.team_name or (team.name if team else ""),
        payee_worker_id=worker.id,
        payee_name=entry.worker_name or worker.name,
        unit_price=_unit_price(entry, worker),
        company_id=worker.company_id or entry.company_id,
        company_name=worker.company_name or entry.company_name,
        bank_name=worker.bank_name,
        bank_code=bank_validator.resolve_bank_code(worker.bank_name),
        account_number=worker.account_number,
        account_holder=worker.account_holder,
    )


def aggregate(entries: Iterable[ReportEntry], index: ReferenceIndex) -> AggregationResult:
    """Fold entries into transfer rows sorted by (team name, payee name)."""
    ordered = sorted(entries, key=lambda entry: entry.date)
    state = CarryForwardState()
    redirector = SupportTeamRedirector(index)
    rows: dict[str, _RowAccumulator] = {}
    dropped: Counter[DropReason] = Counter()
    unresolved_support = 0
    aggregated = 0

    for entry in ordered:
        if not entry.worker_id:
            dropped[DropReason.MISSING_WORKER_ID] += 1
            continue
        worker = index.worker(entry.worker_id)
        if worker is None:
            dropped[DropReason.UNKNOWN_WORKER] += 1
            logger.debug("Dropping entry on %s: unknown worker %s", entry.date, entry.worker_id)
            continue
        if entry.team_id and index.team(entry.team_id) is None:
            dropped[DropReason.UNKNOWN_TEAM] += 1
            logger.debug("Dropping entry on %s: unknown team %s", entry.date, entry.team_id)
            continue

        resolution = resolve_salary_model(entry, worker, state)
        year_month = entry.year_month
        aggregated += 1

        if resolution.model is SalaryModel.SUPPORT_TEAM:
            payee = redirector.redirect(entry, worker)
            if payee is not None:
                row = rows.get(payee.row_key)
                if row is None:
                    row = rows[payee.row_key] = _support_accumulator(payee)
                amount = payee.contribution(entry.man_day)
                if payee.support_model is SupportModel.FIXED:
                    row.set_month(year_month, entry.man_day, amount)
                else:
                    row.add(year_month, entry.man_day, amount)
                continue
            unresolved_support += 1

        team_id = entry.team_id or worker.team_id
        row_key = f"{resolution.model}_{team_id}_{worker.id}"
        row = rows.get(row_key)
        if row is None:
            row = rows[row_key] = _ordinary_accumulator(row_key, resolution.model, team_id, entry, worker, index)
        gross_pay = round_half_up(entry.man_day * _unit_price(entry, worker))
        row.add(year_month, entry.man_day, gross_pay)

    frozen = sorted(
        (row.freeze() for row in rows.values()),
        key=lambda row: (row.payee_team_name, row.payee_name),
    )
    diagnostics = RunDiagnostics(
        entries_seen=len(ordered),
        entries_aggregated=aggregated,
        dropped=dict(dropped),
        support_team_unresolved=unresolved_support,
    )
    if diagnostics.dropped_total or unresolved_support:
        logger.warning(
            "Aggregated %d of %d entries: %d dropped %s, %d support entries without a support team",
            aggregated, len(ordered), diagnostics.dropped_total, dict(dropped), unresolved_support,
        )
    return AggregationResult(rows=frozen, diagnostics=diagnostics)


def year_months_in_range(start: date, end: date, limit: int = MAX_RANGE_MONTHS) -> list[str]:
    """``YYYY-MM`` for every calendar month touched by ``[start, end]``, at most ``limit``."""
    months: list[str] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month) and len(months) < limit:
        months.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            month = 1
            year += 1
    return months
