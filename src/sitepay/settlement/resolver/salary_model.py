"""Decide which pay model governs each report entry.

A worker's model is sticky within a calendar month: once an entry resolves
(from a hint or a default), later hint-less entries for the same worker and
month reuse it. Entries therefore have to be fed in date order.
"""

from __future__ import annotations

from typing import NamedTuple

from sitepay.models.records import ReportEntry, WorkerRecord
from sitepay.models.taxonomy import SalaryModel, team_type_salary_model


class ModelResolution(NamedTuple):
    model: SalaryModel
    source: str  # hint, carry_forward, team_type, fallback


class CarryForwardState:
    """Per-run memory of the last resolved model per (worker, year-month).

    Create one per aggregation run and drop it afterwards.
    """

    def __init__(self) -> None:
        self._models: dict[tuple[str, str], SalaryModel] = {}

    def get(self, worker_id: str, year_month: str) -> SalaryModel | None:
        return self._models.get((worker_id, year_month))

    def set(self, worker_id: str, year_month: str, model: SalaryModel) -> None:
        self._models[(worker_id, year_month)] = model

    def __len__(self) -> int:
        return len(self._models)


def resolve_salary_model(
    entry: ReportEntry, worker: WorkerRecord, state: CarryForwardState
) -> ModelResolution:
    """Resolve the entry's pay model and record it in ``state``."""
    worker_id = entry.worker_id
    year_month = entry.year_month

    if entry.salary_model_hint is not None:
        state.set(worker_id, year_month, entry.salary_model_hint)
        return ModelResolution(entry.salary_model_hint, "hint")

    previous = state.get(worker_id, year_month)
    if previous is not None:
        return ModelResolution(previous, "carry_forward")

    by_team_type = team_type_salary_model(worker.team_type)
    if by_team_type is not None:
        state.set(worker_id, year_month, by_team_type)
        return ModelResolution(by_team_type, "team_type")

    state.set(worker_id, year_month, SalaryModel.DAILY_WAGE)
    return ModelResolution(SalaryModel.DAILY_WAGE, "fallback")
