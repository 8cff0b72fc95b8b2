"""Closed tag sets for pay models, team types and company types.

Source data carries these as free text (English ids and the Korean labels
site managers type in). Everything is normalized here, once, when records
are parsed; nothing downstream compares raw strings.
"""

from __future__ import annotations

import re
from enum import StrEnum

_STRIP = re.compile(r"[\s\W_]+")
_PARENTHETICAL = re.compile(r"\(.*?\)")


def normalize_token(value: object) -> str:
    """Drop whitespace and punctuation and casefold, e.g. ``" 월급 제 "`` -> ``"월급제"``."""
    if value is None:
        return ""
    return _STRIP.sub("", str(value)).casefold()


def normalize_name(value: object) -> str:
    """Name key for company/team/leader lookups: parenthetical suffixes and whitespace removed."""
    if value is None:
        return ""
    return re.sub(r"\s+", "", _PARENTHETICAL.sub("", str(value))).strip()


class SalaryModel(StrEnum):
    DAILY_WAGE = "dailyWage"
    MONTHLY_WAGE = "monthlyWage"
    SUPPORT_TEAM = "supportTeam"
    SERVICE_TEAM = "serviceTeam"


class TeamType(StrEnum):
    SUPPORT = "support"
    CONSTRUCTION = "construction"
    SERVICE = "service"
    OTHER = "other"


class CompanyType(StrEnum):
    CONSTRUCTION_CLIENT = "constructionClient"
    PARTNER = "partner"
    OTHER = "other"


class SupportModel(StrEnum):
    PER_MAN_DAY = "perManDay"
    FIXED = "fixed"


_SALARY_MODEL_ALIASES: dict[str, SalaryModel] = {
    "dailywage": SalaryModel.DAILY_WAGE,
    "daily": SalaryModel.DAILY_WAGE,
    "일급제": SalaryModel.DAILY_WAGE,
    "일급": SalaryModel.DAILY_WAGE,
    "일당": SalaryModel.DAILY_WAGE,
    "monthlywage": SalaryModel.MONTHLY_WAGE,
    "monthly": SalaryModel.MONTHLY_WAGE,
    "월급제": SalaryModel.MONTHLY_WAGE,
    "월급": SalaryModel.MONTHLY_WAGE,
    "supportteam": SalaryModel.SUPPORT_TEAM,
    "support": SalaryModel.SUPPORT_TEAM,
    "지원팀": SalaryModel.SUPPORT_TEAM,
    "지원": SalaryModel.SUPPORT_TEAM,
    "serviceteam": SalaryModel.SERVICE_TEAM,
    "service": SalaryModel.SERVICE_TEAM,
    "용역팀": SalaryModel.SERVICE_TEAM,
    "용역": SalaryModel.SERVICE_TEAM,
}

_TEAM_TYPE_ALIASES: dict[str, TeamType] = {
    "support": TeamType.SUPPORT,
    "supportteam": TeamType.SUPPORT,
    "지원팀": TeamType.SUPPORT,
    "지원": TeamType.SUPPORT,
    "service": TeamType.SERVICE,
    "serviceteam": TeamType.SERVICE,
    "용역팀": TeamType.SERVICE,
    "용역": TeamType.SERVICE,
    "construction": TeamType.CONSTRUCTION,
    "본팀": TeamType.CONSTRUCTION,
    "관리팀": TeamType.CONSTRUCTION,
    "새끼팀": TeamType.CONSTRUCTION,
    "직영팀": TeamType.CONSTRUCTION,
    "시공팀": TeamType.CONSTRUCTION,
}

_COMPANY_TYPE_ALIASES: dict[str, CompanyType] = {
    "constructionclient": CompanyType.CONSTRUCTION_CLIENT,
    "construction": CompanyType.CONSTRUCTION_CLIENT,
    "시공사": CompanyType.CONSTRUCTION_CLIENT,
    "partner": CompanyType.PARTNER,
    "협력사": CompanyType.PARTNER,
}


def parse_salary_model(value: object) -> SalaryModel | None:
    """Canonical salary model for a free-text hint, or None if unrecognized."""
    if isinstance(value, SalaryModel):
        return value
    return _SALARY_MODEL_ALIASES.get(normalize_token(value))


def parse_team_type(value: object) -> TeamType:
    if isinstance(value, TeamType):
        return value
    return _TEAM_TYPE_ALIASES.get(normalize_token(value), TeamType.OTHER)


def parse_company_type(value: object) -> CompanyType:
    if isinstance(value, CompanyType):
        return value
    return _COMPANY_TYPE_ALIASES.get(normalize_token(value), CompanyType.OTHER)


def parse_support_model(value: object) -> SupportModel:
    # Legacy records store "man_day"; anything that is not explicitly fixed is per man-day.
    if isinstance(value, SupportModel):
        return value
    token = normalize_token(value)
    return SupportModel.FIXED if token in ("fixed", "고정") else SupportModel.PER_MAN_DAY


def team_type_salary_model(team_type: TeamType) -> SalaryModel | None:
    """Pay model implied by a team type, for the team types that imply one."""
    if team_type is TeamType.SUPPORT:
        return SalaryModel.SUPPORT_TEAM
    if team_type is TeamType.SERVICE:
        return SalaryModel.SERVICE_TEAM
    return None
