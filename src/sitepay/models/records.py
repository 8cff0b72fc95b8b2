"""Reference-data snapshots consumed by a settlement run.

Every model here is a frozen, read-only snapshot: the engine never writes
back to the stores these come from. Field names are snake_case in Python and
camelCase on the wire (the stores keep camelCase documents).
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Annotated, Any, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from sitepay.models.taxonomy import (
    CompanyType,
    SalaryModel,
    SupportModel,
    TeamType,
    parse_company_type,
    parse_salary_model,
    parse_support_model,
    parse_team_type,
)


def finite_or_none(value: Any) -> float | None:
    """Coerce to a finite float, or None for missing / NaN / inf / junk."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def round_half_up(value: float) -> int:
    """Currency rounding used everywhere: floor(x + 0.5)."""
    return math.floor(value + 0.5)


def _finite_or_zero(value: Any) -> float:
    number = finite_or_none(value)
    return 0.0 if number is None else number


def _amount(value: Any) -> int:
    number = finite_or_none(value)
    return 0 if number is None else round_half_up(number)


def _optional_amount(value: Any) -> int | None:
    number = finite_or_none(value)
    return None if number is None else round_half_up(number)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


Text = Annotated[str, BeforeValidator(_text)]
FiniteFloat = Annotated[float, BeforeValidator(_finite_or_zero)]
OptionalFiniteFloat = Annotated[Optional[float], BeforeValidator(finite_or_none)]
Amount = Annotated[int, BeforeValidator(_amount)]
OptionalAmount = Annotated[Optional[int], BeforeValidator(_optional_amount)]


class SnapshotModel(BaseModel):
    """Frozen camelCase-on-the-wire base for all reference records."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


HINT_KEYS = ("salaryModelHint", "salaryModel", "payType", "salary_model_hint")
WORKER_MODEL_KEYS = ("defaultSalaryModel", "salaryModel", "payType", "default_salary_model")


def pick_salary_model(data: Any, keys: tuple[str, ...], target: str) -> Any:
    """Collapse the pay-model columns in ``keys`` into ``target``.

    The first column whose value parses wins, so a blank ``salaryModel``
    does not hide a usable ``payType``.
    """
    if not isinstance(data, dict):
        return data
    present = [key for key in keys if key in data]
    if not present:
        return data
    chosen = next((data[key] for key in present if parse_salary_model(data[key]) is not None), None)
    folded = {k: v for k, v in data.items() if k not in keys}
    folded[target] = chosen
    return folded


class ReportEntry(SnapshotModel):
    """One worker on one daily report."""

    date: dt.date
    site_id: Text = ""
    team_id: Text = ""
    worker_id: Text = ""
    man_day: FiniteFloat = Field(default=0.0, validation_alias=AliasChoices("manDay", "manDayCount", "man_day"))
    unit_price: OptionalFiniteFloat = None
    salary_model_hint: Optional[SalaryModel] = Field(
        default=None,
        validation_alias=AliasChoices(*HINT_KEYS),
    )

    # Report-level snapshot values used by the fallback chains.
    company_id: Text = ""
    company_name: Text = ""
    team_name: Text = ""
    worker_name: Text = ""

    @model_validator(mode="before")
    @classmethod
    def _pick_hint_column(cls, data: Any) -> Any:
        return pick_salary_model(data, HINT_KEYS, "salary_model_hint")

    @field_validator("salary_model_hint", mode="before")
    @classmethod
    def _normalize_hint(cls, value: Any) -> SalaryModel | None:
        return parse_salary_model(value)

    @property
    def year_month(self) -> str:
        return self.date.strftime("%Y-%m")


class WorkerRecord(SnapshotModel):
    """Worker master record (worker directory)."""

    id: Text
    name: Text = ""
    team_id: Text = ""
    team_name: Text = ""
    team_type: TeamType = TeamType.OTHER
    company_id: Text = ""
    company_name: Text = ""
    default_unit_price: OptionalFiniteFloat = Field(
        default=None, validation_alias=AliasChoices("defaultUnitPrice", "unitPrice", "default_unit_price")
    )
    default_salary_model: Optional[SalaryModel] = Field(
        default=None,
        validation_alias=AliasChoices(*WORKER_MODEL_KEYS),
    )
    bank_name: Text = ""
    account_number: Text = ""
    account_holder: Text = ""

    @model_validator(mode="before")
    @classmethod
    def _pick_model_column(cls, data: Any) -> Any:
        return pick_salary_model(data, WORKER_MODEL_KEYS, "default_salary_model")

    @field_validator("team_type", mode="before")
    @classmethod
    def _normalize_team_type(cls, value: Any) -> TeamType:
        return parse_team_type(value)

    @field_validator("default_salary_model", mode="before")
    @classmethod
    def _normalize_salary_model(cls, value: Any) -> SalaryModel | None:
        return parse_salary_model(value)


class TeamRecord(SnapshotModel):
    """Team directory record. Support teams carry the billing rate and leader."""

    id: Text
    name: Text = ""
    type: TeamType = TeamType.OTHER
    company_id: Text = ""
    company_name: Text = ""
    parent_team_id: Text = ""
    parent_team_name: Text = ""
    support_rate: FiniteFloat = 0.0
    support_model: SupportModel = SupportModel.PER_MAN_DAY
    leader_id: Text = ""
    leader_name: Text = ""

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> TeamType:
        return parse_team_type(value)

    @field_validator("support_model", mode="before")
    @classmethod
    def _normalize_support_model(cls, value: Any) -> SupportModel:
        return parse_support_model(value)


class CompanyRecord(SnapshotModel):
    id: Text
    name: Text = ""
    type: CompanyType = CompanyType.OTHER

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> CompanyType:
        return parse_company_type(value)


# Older advance records stored each standard item as a top-level column
# instead of inside ``items``.
LEGACY_ITEM_COLUMNS: tuple[str, ...] = (
    "prevMonthCarryover",
    "accommodation",
    "privateRoom",
    "gloves",
    "deposit",
    "fines",
    "electricity",
    "gas",
    "internet",
    "water",
)


class AdvancePaymentRecord(SnapshotModel):
    """Advance / other deductions recorded for one worker in one month."""

    worker_id: Text = ""
    team_id: Text = ""
    year_month: Text
    per_item_amounts: dict[str, Amount] = Field(
        default_factory=dict, validation_alias=AliasChoices("perItemAmounts", "items", "per_item_amounts")
    )
    total_deduction_override: OptionalAmount = Field(
        default=None,
        validation_alias=AliasChoices("totalDeductionOverride", "totalDeduction", "total_deduction_override"),
    )
    updated_at: Optional[dt.datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_columns(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        legacy = {key: data[key] for key in LEGACY_ITEM_COLUMNS if key in data}
        if not legacy:
            return data
        items_key = next((k for k in ("perItemAmounts", "items", "per_item_amounts") if k in data), "perItemAmounts")
        items = dict(data.get(items_key) or {})
        for key, value in legacy.items():
            items.setdefault(key, value)
        folded = {k: v for k, v in data.items() if k not in legacy}
        folded[items_key] = items
        return folded


# ---------------------------------------------------------------------------
# Payroll configuration
# ---------------------------------------------------------------------------

DEFAULT_PENSION_RATE = 0.045
DEFAULT_HEALTH_RATE = 0.03545
DEFAULT_CARE_RATE_OF_HEALTH = 0.1295
DEFAULT_EMPLOYMENT_RATE = 0.009
DEFAULT_TAX_RATE = 0.033
DEFAULT_THRESHOLD_DAYS = 8


class InsuranceRates(SnapshotModel):
    """Employee-side statutory insurance rates."""

    pension: float = Field(default=DEFAULT_PENSION_RATE, validation_alias=AliasChoices("pension", "pensionRate"))
    health: float = Field(default=DEFAULT_HEALTH_RATE, validation_alias=AliasChoices("health", "healthRate"))
    care_of_health: float = Field(
        default=DEFAULT_CARE_RATE_OF_HEALTH,
        validation_alias=AliasChoices("careOfHealth", "careRateOfHealth", "care_of_health"),
    )
    employment: float = Field(
        default=DEFAULT_EMPLOYMENT_RATE, validation_alias=AliasChoices("employment", "employmentRate")
    )
    threshold_days: int = DEFAULT_THRESHOLD_DAYS

    @field_validator("pension", "health", "care_of_health", "employment", mode="before")
    @classmethod
    def _sane_rate(cls, value: Any, info: Any) -> float:
        rate = finite_or_none(value)
        if rate is None or rate < 0:
            return cls.model_fields[info.field_name].default
        return rate

    @field_validator("threshold_days", mode="before")
    @classmethod
    def _sane_threshold(cls, value: Any) -> int:
        days = finite_or_none(value)
        if days is None or days <= 0:
            return DEFAULT_THRESHOLD_DAYS
        return math.floor(days)


class DeductionItem(SnapshotModel):
    id: Text
    label: Text
    order: int = 0
    active: bool = Field(default=True, validation_alias=AliasChoices("active", "isActive"))


DEFAULT_DEDUCTION_ITEMS: tuple[DeductionItem, ...] = (
    DeductionItem(id="prevMonthCarryover", label="전월이월", order=1),
    DeductionItem(id="accommodation", label="숙소비", order=2),
    DeductionItem(id="privateRoom", label="개인방", order=3),
    DeductionItem(id="gloves", label="장갑", order=4),
    DeductionItem(id="deposit", label="보증금", order=5),
    DeductionItem(id="fines", label="과태료", order=6),
    DeductionItem(id="electricity", label="전기료", order=7),
    DeductionItem(id="gas", label="도시가스", order=8),
    DeductionItem(id="internet", label="인터넷", order=9),
    DeductionItem(id="water", label="수도세", order=10),
)


class PayrollConfig(SnapshotModel):
    """Stored payroll settings, sanitized on load."""

    insurance_rates: InsuranceRates = Field(
        default_factory=InsuranceRates,
        validation_alias=AliasChoices("insuranceRates", "insuranceConfig", "insurance_rates"),
    )
    tax_rate: float = DEFAULT_TAX_RATE
    deduction_items: list[DeductionItem] = Field(
        default_factory=lambda: list(DEFAULT_DEDUCTION_ITEMS),
        validation_alias=AliasChoices("deductionItems", "deductionItemCatalog", "deduction_items"),
    )
    updated_at: Optional[dt.datetime] = None

    @field_validator("insurance_rates", mode="before")
    @classmethod
    def _rates_or_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("tax_rate", mode="before")
    @classmethod
    def _sane_tax_rate(cls, value: Any) -> float:
        rate = finite_or_none(value)
        return DEFAULT_TAX_RATE if rate is None or rate < 0 else rate

    @field_validator("deduction_items", mode="before")
    @classmethod
    def _drop_blank_items(cls, value: Any) -> Any:
        if value is None:
            return list(DEFAULT_DEDUCTION_ITEMS)
        if not isinstance(value, (list, tuple)):
            return list(DEFAULT_DEDUCTION_ITEMS)
        kept = []
        for item in value:
            if isinstance(item, DeductionItem):
                kept.append(item)
                continue
            if not isinstance(item, dict):
                continue
            if not _text(item.get("id")) or not _text(item.get("label")):
                continue
            kept.append(item)
        return kept

    def active_items(self) -> list[DeductionItem]:
        """Active catalog items in display order (stable for equal ``order``)."""
        return sorted((item for item in self.deduction_items if item.active), key=lambda item: item.order)
