"""Lookup tables over one run's reference snapshot, plus named fallback chains."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import NamedTuple

from sitepay.models.records import CompanyRecord, TeamRecord, WorkerRecord
from sitepay.models.taxonomy import TeamType, normalize_name


class Resolved(NamedTuple):
    """Outcome of an ordered fallback: the value and the step that produced it."""

    value: str
    source: str

    def __bool__(self) -> bool:
        return bool(self.value)


UNRESOLVED = Resolved("", "")

FallbackStep = tuple[str, Callable[[], str | None]]


def first_resolved(steps: Sequence[FallbackStep]) -> Resolved:
    """Run steps in order; the first non-empty value wins."""
    for name, step in steps:
        value = (step() or "").strip()
        if value:
            return Resolved(value, name)
    return UNRESOLVED


class ReferenceIndex:
    """Read-only indexes over workers, teams and companies for one run."""

    def __init__(
        self,
        workers: Iterable[WorkerRecord],
        teams: Iterable[TeamRecord],
        companies: Iterable[CompanyRecord],
    ) -> None:
        self.workers_by_id: dict[str, WorkerRecord] = {}
        self.workers_by_name: dict[str, WorkerRecord] = {}
        for worker in workers:
            if not worker.id:
                continue
            self.workers_by_id[worker.id] = worker
            name_key = normalize_name(worker.name)
            if name_key:
                # last writer wins, matching the directory's own name index
                self.workers_by_name[name_key] = worker

        self.companies_by_id: dict[str, CompanyRecord] = {}
        self.company_id_by_name: dict[str, str] = {}
        for company in companies:
            if not company.id:
                continue
            self.companies_by_id[company.id] = company
            name_key = normalize_name(company.name)
            if name_key and name_key not in self.company_id_by_name:
                self.company_id_by_name[name_key] = company.id

        self.teams_by_id: dict[str, TeamRecord] = {}
        self.support_team_by_company_id: dict[str, TeamRecord] = {}
        self.support_team_by_company_name: dict[str, TeamRecord] = {}
        for team in teams:
            if not team.id:
                continue
            self.teams_by_id[team.id] = team
            if team.type is not TeamType.SUPPORT:
                continue
            company_name_key = normalize_name(team.company_name)
            company_id = team.company_id or self.company_id_by_name.get(company_name_key, "")
            if company_id:
                self.support_team_by_company_id[company_id] = team
            if company_name_key and company_name_key not in self.support_team_by_company_name:
                self.support_team_by_company_name[company_name_key] = team

    def worker(self, worker_id: str) -> WorkerRecord | None:
        return self.workers_by_id.get(worker_id) if worker_id else None

    def worker_by_name(self, name: str) -> WorkerRecord | None:
        key = normalize_name(name)
        return self.workers_by_name.get(key) if key else None

    def team(self, team_id: str) -> TeamRecord | None:
        return self.teams_by_id.get(team_id) if team_id else None

    def company(self, company_id: str) -> CompanyRecord | None:
        return self.companies_by_id.get(company_id) if company_id else None

    def company_id_for_name(self, name: str) -> str:
        key = normalize_name(name)
        return self.company_id_by_name.get(key, "") if key else ""

    def support_team_for(self, company_id: str, company_name: str) -> TeamRecord | None:
        if company_id and company_id in self.support_team_by_company_id:
            return self.support_team_by_company_id[company_id]
        key = normalize_name(company_name)
        return self.support_team_by_company_name.get(key) if key else None

    def team_scope(self, team_id: str) -> tuple[set[str], set[str]]:
        """Team ids and normalized names covered by a team: itself and its direct children."""
        ids: set[str] = set()
        names: set[str] = set()
        if not team_id:
            return ids, names
        ids.add(team_id)
        selected = self.team(team_id)
        selected_name = normalize_name(selected.name) if selected else ""
        for team in self.teams_by_id.values():
            if team.parent_team_id == team_id:
                ids.add(team.id)
            elif selected_name and normalize_name(team.parent_team_name) == selected_name:
                ids.add(team.id)
        for scoped_id in ids:
            scoped = self.team(scoped_id)
            name_key = normalize_name(scoped.name) if scoped else ""
            if name_key:
                names.add(name_key)
        return ids, names
