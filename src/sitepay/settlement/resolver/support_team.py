"""Redirect support-team attendance to the partner company's team leader.

Support-team workers are not paid individually: their company bills the
work and the money goes to the leader of that company's support team.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from sitepay.models.records import ReportEntry, TeamRecord, WorkerRecord, round_half_up
from sitepay.models.taxonomy import SupportModel
from sitepay.settlement.resolver.lookups import ReferenceIndex, Resolved, first_resolved
from sitepay.settlement.validator.bank_validator import resolve_bank_code

logger = logging.getLogger(__name__)

# Leader ids some team records carry when no leader was ever picked.
LEADER_ID_SENTINELS = frozenset({"", "0"})

SUPPORT_ROW_PREFIX = "support"


class SupportPayee(BaseModel):
    """Where a redirected entry's money goes and how much it contributes."""

    model_config = ConfigDict(frozen=True)

    row_key: str
    team_id: str
    team_name: str
    company_id: str
    company_name: str
    payee_worker_id: str
    payee_name: str
    bank_name: str = ""
    bank_code: str = ""
    account_number: str = ""
    account_holder: str = ""
    support_model: SupportModel
    support_rate: float

    def contribution(self, man_day: float) -> int:
        """Amount one entry adds (perManDay) or sets (fixed) for its month."""
        if self.support_model is SupportModel.FIXED:
            return round_half_up(self.support_rate)
        return round_half_up(man_day * self.support_rate)


class SupportTeamRedirector:
    """Resolve company, support team and leader for support-team entries."""

    def __init__(self, index: ReferenceIndex) -> None:
        self._index = index

    def resolve_company_id(self, entry: ReportEntry, worker: WorkerRecord) -> Resolved:
        worker_team = self._index.team(worker.team_id)
        entry_team = self._index.team(entry.team_id)
        return first_resolved([
            ("worker.company_id", lambda: worker.company_id),
            ("entry.company_id", lambda: entry.company_id),
            ("worker_team.company_id", lambda: worker_team.company_id if worker_team else ""),
            ("entry_team.company_id", lambda: entry_team.company_id if entry_team else ""),
            ("worker.company_name", lambda: self._index.company_id_for_name(worker.company_name)),
            ("entry.company_name", lambda: self._index.company_id_for_name(entry.company_name)),
            ("worker_team.company_name", lambda: self._index.company_id_for_name(
                worker_team.company_name if worker_team else "")),
            ("entry_team.company_name", lambda: self._index.company_id_for_name(
                entry_team.company_name if entry_team else "")),
        ])

    def resolve_company_name(self, entry: ReportEntry, worker: WorkerRecord, company_id: str) -> Resolved:
        worker_team = self._index.team(worker.team_id)
        entry_team = self._index.team(entry.team_id)
        company = self._index.company(company_id)
        return first_resolved([
            ("worker.company_name", lambda: worker.company_name),
            ("entry.company_name", lambda: entry.company_name),
            ("worker_team.company_name", lambda: worker_team.company_name if worker_team else ""),
            ("entry_team.company_name", lambda: entry_team.company_name if entry_team else ""),
            ("company_directory", lambda: company.name if company else ""),
        ])

    def resolve_leader(self, team: TeamRecord) -> WorkerRecord | None:
        leader_id = team.leader_id if team.leader_id not in LEADER_ID_SENTINELS else ""
        return self._index.worker(leader_id) or self._index.worker_by_name(team.leader_name)

    def redirect(self, entry: ReportEntry, worker: WorkerRecord) -> SupportPayee | None:
        """Payee for a support-team entry, or None when the company has no support team."""
        company_id = self.resolve_company_id(entry, worker).value
        company_name = self.resolve_company_name(entry, worker, company_id).value

        team = self._index.support_team_for(company_id, company_name)
        if team is None:
            logger.warning(
                "No support team for company id=%r name=%r (worker %s, %s); using the ordinary path",
                company_id, company_name, worker.id, entry.date,
            )
            return None

        leader = self.resolve_leader(team)
        leader_id = team.leader_id if team.leader_id not in LEADER_ID_SENTINELS else ""
        payee_worker_id = leader.id if leader else leader_id
        payee_name = (
            leader.name if leader
            else team.leader_name or f"{company_name or 'support'} team leader"
        )

        if leader is not None:
            bank_name = leader.bank_name
            account_number = leader.account_number
            account_holder = leader.account_holder
        else:
            bank_name = account_number = account_holder = ""

        row_key = "_".join((
            SUPPORT_ROW_PREFIX,
            team.id,
            company_id or company_name,
            payee_worker_id or payee_name,
        ))
        return SupportPayee(
            row_key=row_key,
            team_id=team.id,
            team_name=team.name or f"{company_name} support team",
            company_id=company_id,
            company_name=company_name,
            payee_worker_id=payee_worker_id,
            payee_name=payee_name,
            bank_name=bank_name,
            bank_code=resolve_bank_code(bank_name),
            account_number=account_number,
            account_holder=account_holder,
            support_model=team.support_model,
            support_rate=team.support_rate,
        )
