"""Tests for grouping report entries into transfer rows."""

from __future__ import annotations

from datetime import date

import pytest

from sitepay.models.settlement import DropReason
from sitepay.models.taxonomy import SalaryModel
from sitepay.settlement.resolver.lookups import ReferenceIndex
from sitepay.settlement.transform.aggregator import aggregate, year_months_in_range
from tests.fakes import company, entry, team, worker


@pytest.fixture
def index() -> ReferenceIndex:
    return ReferenceIndex(
        [
            worker("w1", name="김철수"),
            worker("w2", name="이영희", default_salary_model="월급제"),
            worker("w-sup", name="박지원", team_id="t-sup", team_type="지원팀", company_id="c-p",
                   company_name="대성기공", bank_name="", account_number=""),
            worker("w-lead", name="최반장", team_id="t-sup", company_id="c-p", bank_name="농협",
                   account_number="3020000111122", account_holder="최반장"),
        ],
        [
            team("t1", name="본팀"),
            team("t-sup", name="대성 지원팀", type="support", company_id="c-p", support_rate=250000,
                 leader_id="w-lead"),
        ],
        [company("c1"), company("c-p", name="대성기공(주)", type="partner")],
    )


def _support_index(support_model: str) -> ReferenceIndex:
    return ReferenceIndex(
        [worker("w-sup", team_id="t-sup", team_type="지원팀", company_id="c-p"),
         worker("w-lead", team_id="t-sup", company_id="c-p")],
        [team("t-sup", type="support", company_id="c-p", support_rate=3_000_000,
              support_model=support_model, leader_id="w-lead")],
        [company("c-p", type="partner")],
    )


class TestDailyWage:
    def test_two_days_same_month_accumulate(self, index):
        entries = [
            entry("2024-03-01", unit_price=150000),
            entry("2024-03-02", unit_price=150000),
        ]
        result = aggregate(entries, index)
        assert len(result.rows) == 1
        row = result.rows[0]
        assert row.row_key == "dailyWage_t1_w1"
        assert row.salary_model is SalaryModel.DAILY_WAGE
        assert row.total_amount == 300000
        assert row.total_man_day == 2.0
        assert row.amount_by_year_month == {"2024-03": 300000}

    def test_unit_price_falls_back_to_worker_default(self, index):
        row = aggregate([entry(man_day=0.5)], index).rows[0]
        assert row.total_amount == 75000

    def test_gross_pay_rounds_half_up_per_entry(self, index):
        row = aggregate([entry(man_day=0.5, unit_price=1001)], index).rows[0]
        assert row.total_amount == 501

    def test_months_are_bucketed(self, index):
        entries = [entry("2024-03-31"), entry("2024-04-01")]
        row = aggregate(entries, index).rows[0]
        assert row.amount_by_year_month == {"2024-03": 150000, "2024-04": 150000}
        assert row.total_amount == sum(row.amount_by_year_month.values())

    def test_bank_details_validated_once(self, index):
        row = aggregate([entry()], index).rows[0]
        assert row.bank_code == "004"
        assert row.is_valid


class TestCarryForward:
    def test_entries_are_processed_in_date_order(self, index):
        # the hinted entry is listed last but dated first
        entries = [entry("2024-03-10"), entry("2024-03-01", salary_model_hint="월급제")]
        result = aggregate(entries, index)
        assert [row.row_key for row in result.rows] == ["monthlyWage_t1_w1"]
        assert result.rows[0].total_man_day == 2.0

    def test_worker_record_model_is_not_used(self, index):
        row = aggregate([entry(worker_id="w2")], index).rows[0]
        assert row.salary_model is SalaryModel.DAILY_WAGE
        assert row.row_key == "dailyWage_t1_w2"


class TestSupportRedirect:
    def test_support_entries_pay_the_leader(self, index):
        entries = [entry("2024-03-01", worker_id="w-sup", team_id="t-sup"),
                   entry("2024-03-02", worker_id="w-sup", team_id="t-sup", man_day=0.5)]
        result = aggregate(entries, index)
        assert len(result.rows) == 1
        row = result.rows[0]
        assert row.row_key == "support_t-sup_c-p_w-lead"
        assert row.payee_name == "최반장"
        assert row.salary_model is SalaryModel.SUPPORT_TEAM
        assert row.total_amount == 250000 + 125000
        assert row.unit_price == 250000
        assert row.is_valid

    def test_fixed_model_sets_month_amount(self):
        entries = [entry("2024-03-01", worker_id="w-sup", team_id="t-sup"),
                   entry("2024-03-02", worker_id="w-sup", team_id="t-sup")]
        row = aggregate(entries, _support_index("fixed")).rows[0]
        assert row.amount_by_year_month == {"2024-03": 3_000_000}
        assert row.total_amount == 3_000_000
        assert row.total_man_day == 2.0

    def test_per_man_day_model_accumulates(self):
        entries = [entry("2024-03-01", worker_id="w-sup", team_id="t-sup"),
                   entry("2024-03-02", worker_id="w-sup", team_id="t-sup")]
        row = aggregate(entries, _support_index("perManDay")).rows[0]
        assert row.total_amount == 6_000_000

    def test_fixed_model_sets_each_month_separately(self):
        entries = [entry("2024-03-01", worker_id="w-sup", team_id="t-sup"),
                   entry("2024-04-01", worker_id="w-sup", team_id="t-sup")]
        row = aggregate(entries, _support_index("fixed")).rows[0]
        assert row.total_amount == 6_000_000

    def test_missing_support_team_falls_through_to_ordinary_row(self):
        index = ReferenceIndex(
            [worker("w-sup", team_id="t-x", team_type="지원팀", company_id="c-none", default_unit_price=100)],
            [team("t-x", type="construction")],
            [],
        )
        result = aggregate([entry(worker_id="w-sup", team_id="t-x")], index)
        assert [row.row_key for row in result.rows] == ["supportTeam_t-x_w-sup"]
        assert result.rows[0].total_amount == 100
        assert result.diagnostics.support_team_unresolved == 1
        assert result.diagnostics.dropped_total == 0


class TestDrops:
    def test_unknown_worker_is_dropped_without_error(self, index):
        result = aggregate([entry(worker_id="ghost"), entry()], index)
        assert [row.row_key for row in result.rows] == ["dailyWage_t1_w1"]
        assert result.diagnostics.dropped == {DropReason.UNKNOWN_WORKER: 1}
        assert result.diagnostics.entries_seen == 2
        assert result.diagnostics.entries_aggregated == 1

    def test_unknown_team_is_dropped(self, index):
        result = aggregate([entry(team_id="t-gone")], index)
        assert result.rows == []
        assert result.diagnostics.dropped == {DropReason.UNKNOWN_TEAM: 1}

    def test_missing_worker_id_is_dropped(self, index):
        result = aggregate([entry(worker_id="")], index)
        assert result.rows == []
        assert result.diagnostics.dropped == {DropReason.MISSING_WORKER_ID: 1}


class TestOutput:
    def test_rows_sorted_by_team_then_payee_name(self, index):
        entries = [
            entry(worker_id="w-sup", team_id="t-sup"),
            entry(worker_id="w2"),
            entry(worker_id="w1"),
        ]
        rows = aggregate(entries, index).rows
        assert [(row.payee_team_name, row.payee_name) for row in rows] == [
            ("대성 지원팀", "최반장"),
            ("본팀", "김철수"),
            ("본팀", "이영희"),
        ]

    def test_invalid_rows_are_kept_and_counted(self):
        index = ReferenceIndex([worker("w1", bank_name="", account_holder="")], [team("t1")], [])
        result = aggregate([entry()], index)
        assert len(result.rows) == 1
        assert result.invalid_row_count == 1
        assert result.rows[0].field_errors.bank_name
        assert result.rows[0].field_errors.account_holder

    def test_aggregation_is_idempotent(self, index):
        entries = [
            entry("2024-03-02", worker_id="w-sup", team_id="t-sup"),
            entry("2024-03-01", salary_model_hint="monthly"),
            entry("2024-03-03"),
            entry("2024-04-01", worker_id="w2"),
        ]
        assert aggregate(entries, index) == aggregate(list(entries), index)

    def test_sum_invariant_holds_for_every_row(self, index):
        entries = [entry(f"2024-0{m}-1{d}", worker_id=w, team_id=t)
                   for m in (3, 4, 5) for d in (1, 2)
                   for w, t in (("w1", "t1"), ("w2", "t1"), ("w-sup", "t-sup"))]
        for row in aggregate(entries, index).rows:
            assert row.total_amount == sum(row.amount_by_year_month.values())


class TestYearMonthsInRange:
    def test_spans_year_boundary(self):
        assert year_months_in_range(date(2023, 11, 15), date(2024, 2, 1)) == [
            "2023-11", "2023-12", "2024-01", "2024-02",
        ]

    def test_single_day(self):
        assert year_months_in_range(date(2024, 3, 5), date(2024, 3, 5)) == ["2024-03"]

    def test_capped_at_limit(self):
        months = year_months_in_range(date(2020, 1, 1), date(2024, 12, 31))
        assert len(months) == 25
        assert months[-1] == "2022-01"
