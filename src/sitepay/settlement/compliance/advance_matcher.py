"""Match advance / other-deduction records to monthly-wage rows.

A record is looked up by (team, worker, month) first. Records saved under a
different team still apply through the (worker, month) fallback, where the
team the worker visibly belongs to that month is preferred and ties go to the
most recently updated record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from sitepay.models.outputs import DeductionLine, TransferRow
from sitepay.models.records import DEFAULT_DEDUCTION_ITEMS, AdvancePaymentRecord, DeductionItem
from sitepay.models.taxonomy import normalize_token

logger = logging.getLogger(__name__)

EXACT_SCORE = 2
PREFERRED_TEAM_SCORE = 2
FALLBACK_SCORE = 1

UNMAPPED_LINE_ID = "__unmapped_totalDeduction"
OTHER_DEDUCTION_LABEL = "기타 공제"


def _build_item_aliases(items: Iterable[DeductionItem]) -> dict[str, str]:
    aliases: dict[str, str] = {}
    for item in items:
        for key in (item.id, item.label):
            token = normalize_token(key)
            if token:
                aliases.setdefault(token, item.id)
    return aliases


# Older screens saved amounts under the Korean label or a snake_case id.
# normalize_token folds case and separators, so one entry per item covers both.
DEDUCTION_ITEM_ALIASES: dict[str, str] = _build_item_aliases(DEFAULT_DEDUCTION_ITEMS)


class AdvanceMatch(NamedTuple):
    record: AdvancePaymentRecord
    source: str  # "exact" or "fallback"
    score: int


def _updated_ts(record: AdvancePaymentRecord) -> float:
    return record.updated_at.timestamp() if record.updated_at else 0.0


def _pick_latest(current: AdvancePaymentRecord, candidate: AdvancePaymentRecord) -> AdvancePaymentRecord:
    # strictly later wins; equal timestamps keep the earlier-seen record
    return candidate if _updated_ts(candidate) > _updated_ts(current) else current


class AdvanceDeductionMatcher:
    """Exact and fallback lookup tables over one run's advance records."""

    def __init__(self, records: Iterable[AdvancePaymentRecord], rows: Sequence[TransferRow]) -> None:
        monthly_rows = [row for row in rows if row.is_monthly_wage]
        self._visible_workers = {row.payee_worker_id for row in monthly_rows if row.payee_worker_id}

        self._preferred_team: dict[tuple[str, str], str] = {}
        for row in monthly_rows:
            team_id = row.payee_team_id.strip()
            if not row.payee_worker_id or not team_id:
                continue
            for year_month in row.amount_by_year_month:
                self._preferred_team.setdefault((row.payee_worker_id, year_month), team_id)

        self._exact: dict[tuple[str, str, str], AdvancePaymentRecord] = {}
        self._fallback: dict[tuple[str, str], AdvancePaymentRecord] = {}
        indexed = 0
        for record in records:
            if self._index(record):
                indexed += 1
        logger.debug(
            "Indexed %d advance records (%d exact keys, %d fallback keys)",
            indexed, len(self._exact), len(self._fallback),
        )

    def preferred_team(self, worker_id: str, year_month: str) -> str:
        return self._preferred_team.get((worker_id, year_month), "")

    def _fallback_score(self, record: AdvancePaymentRecord) -> int:
        preferred = self.preferred_team(record.worker_id, record.year_month)
        if preferred and record.team_id == preferred:
            return PREFERRED_TEAM_SCORE
        return FALLBACK_SCORE

    def _index(self, record: AdvancePaymentRecord) -> bool:
        if record.worker_id not in self._visible_workers or not record.year_month:
            return False

        if record.team_id:
            exact_key = (record.team_id, record.worker_id, record.year_month)
            current = self._exact.get(exact_key)
            self._exact[exact_key] = _pick_latest(current, record) if current else record

        fallback_key = (record.worker_id, record.year_month)
        current = self._fallback.get(fallback_key)
        if current is None:
            self._fallback[fallback_key] = record
            return True

        current_score = self._fallback_score(current)
        candidate_score = self._fallback_score(record)
        if candidate_score > current_score:
            self._fallback[fallback_key] = record
        elif candidate_score == current_score:
            self._fallback[fallback_key] = _pick_latest(current, record)
        return True

    def match(self, team_id: str, worker_id: str, year_month: str) -> AdvanceMatch | None:
        """Best record for a payee in one month, or None."""
        team_id = (team_id or "").strip()
        exact = self._exact.get((team_id, worker_id, year_month)) if team_id else None
        if exact is not None:
            return AdvanceMatch(exact, "exact", EXACT_SCORE)
        fallback = self._fallback.get((worker_id, year_month))
        if fallback is not None:
            return AdvanceMatch(fallback, "fallback", self._fallback_score(fallback))
        return None


def canonical_amounts(record: AdvancePaymentRecord, catalog: Sequence[DeductionItem]) -> dict[str, int]:
    """Item amounts keyed by catalog id, with aliased legacy keys folded in.

    A key already stored under the canonical id wins over its aliases.
    """
    aliases = dict(DEDUCTION_ITEM_ALIASES)
    aliases.update(_build_item_aliases(catalog))
    canonical_ids = set(aliases.values())

    amounts: dict[str, int] = {}
    direct: set[str] = set()
    for key, amount in record.per_item_amounts.items():
        if key in canonical_ids:
            amounts[key] = amount
            direct.add(key)
    for key, amount in record.per_item_amounts.items():
        if key in direct:
            continue
        canonical = aliases.get(normalize_token(key))
        if canonical is None or canonical in direct:
            continue
        amounts[canonical] = amounts.get(canonical, 0) + amount
    return amounts


def deduction_lines(
    record: AdvancePaymentRecord | None,
    catalog: Sequence[DeductionItem],
    other_label: str = OTHER_DEDUCTION_LABEL,
) -> list[DeductionLine]:
    """One line per active catalog item, plus a surplus line for an unitemized stored total.

    ``catalog`` must already be the active items in display order.
    """
    amounts = canonical_amounts(record, catalog) if record is not None else {}
    lines = [
        DeductionLine(id=item.id, label=item.label or item.id, amount=amounts.get(item.id, 0))
        for item in catalog
    ]

    itemized = sum(line.amount for line in lines)
    stored = record.total_deduction_override if record is not None else None
    if stored is not None and stored > itemized:
        lines.append(DeductionLine(id=UNMAPPED_LINE_ID, label=other_label, amount=stored - itemized))
    return lines


def deduction_total(lines: Iterable[DeductionLine]) -> int:
    return sum(line.amount for line in lines)
