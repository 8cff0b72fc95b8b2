"""Output models: transfer rows, deduction results, bank-file rows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from sitepay.models.taxonomy import SalaryModel


class OutputModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class FieldErrors(OutputModel):
    """Per-field data-quality flags for a payee's bank details."""

    bank_name: bool = False
    bank_code: bool = False
    account_number: bool = False
    account_holder: bool = False

    def any(self) -> bool:
        return self.bank_name or self.bank_code or self.account_number or self.account_holder


class ValidationResult(OutputModel):
    is_valid: bool
    field_errors: FieldErrors = Field(default_factory=FieldErrors)


class TransferRow(OutputModel):
    """One payee's aggregated amount for the requested date range."""

    row_key: str
    payee_team_id: str = ""
    payee_team_name: str = ""
    payee_worker_id: str = ""
    payee_name: str = ""
    salary_model: SalaryModel
    total_man_day: float = 0.0
    unit_price: float = 0.0
    amount_by_year_month: dict[str, int] = Field(default_factory=dict)
    company_id: str = ""
    company_name: str = ""
    bank_name: str = ""
    bank_code: str = ""
    account_number: str = ""
    account_holder: str = ""
    is_valid: bool = False
    field_errors: FieldErrors = Field(default_factory=FieldErrors)

    @computed_field(alias="totalAmount")  # type: ignore[prop-decorator]
    @property
    def total_amount(self) -> int:
        """Always the sum of the month buckets."""
        return sum(self.amount_by_year_month.values())

    @property
    def is_monthly_wage(self) -> bool:
        return self.salary_model is SalaryModel.MONTHLY_WAGE


class PayrollDeductionResult(OutputModel):
    """Statutory insurance, tax and advance deductions for one gross amount."""

    pension: int = 0
    health: int = 0
    care: int = 0
    employment: int = 0
    total_insurance: int = 0
    income_tax: int = 0
    advance_deduction: int = 0
    total_deduction: int = 0
    net_pay: int = 0


class DeductionLine(OutputModel):
    id: str
    label: str
    amount: int = 0


class PayslipMonth(OutputModel):
    """Monthly-wage payslip for one row and one year-month."""

    row_key: str
    year_month: str
    gross_pay: int
    advance_lines: list[DeductionLine] = Field(default_factory=list)
    result: PayrollDeductionResult


class NetPaySummary(OutputModel):
    total_deduction: int = 0
    net_pay: int = 0


class ExportRow(OutputModel):
    """Bank transfer file row; display fields already cut to the bank's widths."""

    row_key: str
    payee_name: str
    bank_code: str
    account_number: str
    masked_account_number: str = ""
    transfer_amount: int
    deposit_display: str
    withdrawal_display: str
    is_valid: bool
