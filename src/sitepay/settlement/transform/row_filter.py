"""Narrow an aggregated row set by pay model, company type, team and worker."""

from __future__ import annotations

from collections.abc import Sequence

from sitepay.models.outputs import TransferRow
from sitepay.models.settlement import CompanyScope, RowFilter
from sitepay.models.taxonomy import CompanyType, SalaryModel, normalize_name
from sitepay.settlement.resolver.lookups import ReferenceIndex

# Payroll models that only apply to one side of the contract.
_LOCKED_SCOPE: dict[SalaryModel, CompanyScope] = {
    SalaryModel.DAILY_WAGE: CompanyScope.CONSTRUCTION,
    SalaryModel.MONTHLY_WAGE: CompanyScope.CONSTRUCTION,
    SalaryModel.SUPPORT_TEAM: CompanyScope.PARTNER,
}

_SCOPE_COMPANY_TYPE: dict[CompanyScope, CompanyType] = {
    CompanyScope.CONSTRUCTION: CompanyType.CONSTRUCTION_CLIENT,
    CompanyScope.PARTNER: CompanyType.PARTNER,
}


def effective_company_scope(row_filter: RowFilter) -> CompanyScope:
    if row_filter.salary_model is not None and row_filter.salary_model in _LOCKED_SCOPE:
        return _LOCKED_SCOPE[row_filter.salary_model]
    return row_filter.company_scope


def filter_rows(rows: Sequence[TransferRow], row_filter: RowFilter, index: ReferenceIndex) -> list[TransferRow]:
    """Rows matching every set criterion, in their original order."""
    selected = list(rows)

    if row_filter.salary_model is not None:
        selected = [row for row in selected if row.salary_model is row_filter.salary_model]

    if row_filter.worker_id:
        selected = [row for row in selected if row.payee_worker_id == row_filter.worker_id]

    scope = effective_company_scope(row_filter)
    if scope is not CompanyScope.ALL:
        wanted = _SCOPE_COMPANY_TYPE[scope]
        allowed = {company.id for company in index.companies_by_id.values() if company.type is wanted}

        def _company_allowed(row: TransferRow) -> bool:
            company_id = row.company_id
            if not company_id:
                team = index.team(row.payee_team_id)
                company_id = team.company_id if team else ""
            return bool(company_id) and company_id in allowed

        selected = [row for row in selected if _company_allowed(row)]

    if not row_filter.team_id:
        return selected

    team_ids, team_names = index.team_scope(row_filter.team_id)
    return [
        row for row in selected
        if row.payee_team_id in team_ids or normalize_name(row.payee_team_name) in team_names
    ]
