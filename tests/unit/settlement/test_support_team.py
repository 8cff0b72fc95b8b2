"""Tests for support-team payee redirection."""

from __future__ import annotations

import pytest

from sitepay.models.taxonomy import SupportModel
from sitepay.settlement.resolver.lookups import ReferenceIndex, first_resolved
from sitepay.settlement.resolver.support_team import SupportTeamRedirector
from tests.fakes import company, entry, team, worker


def _index(*, teams=None, workers=None, companies=None) -> ReferenceIndex:
    return ReferenceIndex(
        workers if workers is not None else [
            worker("w-sup", team_id="t-sup", team_type="지원팀", company_id="c-p", company_name="대성기공"),
            worker("w-lead", name="최반장", team_id="t-sup", company_id="c-p", bank_name="농협",
                   account_number="302000011112", account_holder="최반장"),
        ],
        teams if teams is not None else [
            team("t-sup", name="대성 지원팀", type="support", company_id="c-p", company_name="대성기공(주)",
                 support_rate=250000, support_model="perManDay", leader_id="w-lead"),
        ],
        companies if companies is not None else [company("c-p", name="대성기공(주)", type="partner")],
    )


class TestFirstResolved:
    def test_first_non_empty_step_wins_and_is_named(self):
        result = first_resolved([("a", lambda: ""), ("b", lambda: None), ("c", lambda: " x "), ("d", lambda: "y")])
        assert result.value == "x"
        assert result.source == "c"

    def test_all_empty_is_unresolved(self):
        result = first_resolved([("a", lambda: "")])
        assert not result
        assert result.source == ""


class TestCompanyResolution:
    def test_worker_company_id_first(self):
        redirector = SupportTeamRedirector(_index())
        resolved = redirector.resolve_company_id(entry(company_id="other"), worker(company_id="c-p"))
        assert resolved.value == "c-p"
        assert resolved.source == "worker.company_id"

    def test_falls_back_to_worker_team_company(self):
        index = _index()
        redirector = SupportTeamRedirector(index)
        w = worker("w-x", company_id="", team_id="t-sup")
        resolved = redirector.resolve_company_id(entry(team_id="", company_id=""), w)
        assert resolved.value == "c-p"
        assert resolved.source == "worker_team.company_id"

    def test_name_lookup_strips_parenthetical_suffix(self):
        index = _index(teams=[])
        redirector = SupportTeamRedirector(index)
        w = worker("w-x", company_id="", company_name="대성기공", team_id="")
        resolved = redirector.resolve_company_id(entry(team_id="", company_id=""), w)
        assert resolved.value == "c-p"
        assert resolved.source == "worker.company_name"


class TestRedirect:
    def test_redirects_to_leader_with_leader_bank_details(self):
        index = _index()
        payee = SupportTeamRedirector(index).redirect(entry(team_id="t-sup"), index.worker("w-sup"))
        assert payee is not None
        assert payee.payee_worker_id == "w-lead"
        assert payee.payee_name == "최반장"
        assert payee.bank_code == "011"
        assert payee.row_key == "support_t-sup_c-p_w-lead"

    def test_support_team_found_by_normalized_company_name(self):
        index = _index(
            teams=[team("t-sup", type="support", company_id="", company_name="대성 기공 (주)",
                        support_rate=100000, leader_id="w-lead")],
            companies=[],
        )
        w = worker("w-sup", company_id="", company_name="대성기공", team_id="")
        payee = SupportTeamRedirector(index).redirect(entry(team_id=""), w)
        assert payee is not None
        assert payee.team_id == "t-sup"
        assert payee.row_key == "support_t-sup_대성기공_w-lead"

    @pytest.mark.parametrize("leader_id", ["", "0"])
    def test_sentinel_leader_id_uses_leader_name(self, leader_id):
        index = _index(teams=[
            team("t-sup", type="support", company_id="c-p", support_rate=1, leader_id=leader_id, leader_name="최 반장"),
        ])
        payee = SupportTeamRedirector(index).redirect(entry(team_id="t-sup"), index.worker("w-sup"))
        assert payee.payee_worker_id == "w-lead"

    def test_unresolved_leader_gets_placeholder_payee_and_empty_bank(self):
        index = _index(teams=[team("t-sup", type="support", company_id="c-p", support_rate=1)])
        payee = SupportTeamRedirector(index).redirect(entry(team_id="t-sup"), index.worker("w-sup"))
        assert payee.payee_name == "대성기공 team leader"
        assert payee.payee_worker_id == ""
        assert payee.bank_name == payee.account_number == payee.account_holder == ""
        assert payee.row_key == "support_t-sup_c-p_대성기공 team leader"

    def test_no_support_team_returns_none(self):
        index = _index(teams=[])
        assert SupportTeamRedirector(index).redirect(entry(team_id=""), index.worker("w-sup")) is None


class TestContribution:
    def test_per_man_day_rounds_half_up(self):
        index = _index(teams=[
            team("t-sup", type="support", company_id="c-p", support_rate=100001, leader_id="w-lead"),
        ])
        payee = SupportTeamRedirector(index).redirect(entry(team_id="t-sup"), index.worker("w-sup"))
        assert payee.support_model is SupportModel.PER_MAN_DAY
        assert payee.contribution(0.5) == 50001  # 50000.5 -> 50001

    def test_fixed_ignores_man_day(self):
        index = _index(teams=[
            team("t-sup", type="support", company_id="c-p", support_rate=3000000, support_model="fixed",
                 leader_id="w-lead"),
        ])
        payee = SupportTeamRedirector(index).redirect(entry(team_id="t-sup"), index.worker("w-sup"))
        assert payee.contribution(1.0) == 3000000
        assert payee.contribution(0.5) == 3000000
