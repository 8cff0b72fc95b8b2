"""Per-month payslips and net-pay totals for monthly-wage rows."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sitepay.models.outputs import DeductionLine, NetPaySummary, PayslipMonth, TransferRow
from sitepay.models.records import AdvancePaymentRecord, PayrollConfig
from sitepay.settlement.compliance import deductions
from sitepay.settlement.compliance.advance_matcher import (
    OTHER_DEDUCTION_LABEL,
    AdvanceDeductionMatcher,
    deduction_lines,
    deduction_total,
)


class PayslipService:
    """Deductions for one run's rows against its payroll config and advance records."""

    def __init__(
        self,
        rows: Sequence[TransferRow],
        config: PayrollConfig,
        advance_records: Iterable[AdvancePaymentRecord],
        other_deduction_label: str = OTHER_DEDUCTION_LABEL,
    ) -> None:
        self._config = config
        self._catalog = config.active_items()
        self._other_label = other_deduction_label
        self.matcher = AdvanceDeductionMatcher(advance_records, rows)

    def advance_lines(self, row: TransferRow, year_month: str) -> list[DeductionLine]:
        match = self.matcher.match(row.payee_team_id, row.payee_worker_id, year_month)
        return deduction_lines(match.record if match else None, self._catalog, self._other_label)

    def monthly_breakdown(self, row: TransferRow, year_month: str) -> PayslipMonth:
        """Gross pay, advance lines and statutory deductions for one month of a row."""
        gross_pay = row.amount_by_year_month.get(year_month, 0)
        lines = self.advance_lines(row, year_month)
        result = deductions.calculate(
            gross_pay,
            self._config.insurance_rates,
            self._config.tax_rate,
            deduction_total(lines),
        )
        return PayslipMonth(
            row_key=row.row_key,
            year_month=year_month,
            gross_pay=gross_pay,
            advance_lines=lines,
            result=result,
        )

    def net_pay_summary(self, row: TransferRow) -> NetPaySummary:
        """Deductions and net pay summed over the row's months.

        Rows on other pay models have no withholding: net pay is the total amount.
        """
        if not row.is_monthly_wage or not row.amount_by_year_month:
            return NetPaySummary(total_deduction=0, net_pay=row.total_amount)

        months = (
            (gross_pay, deduction_total(self.advance_lines(row, year_month)))
            for year_month, gross_pay in row.amount_by_year_month.items()
        )
        return deductions.total_net_pay(months, self._config.insurance_rates, self._config.tax_rate)

    def transfer_amount(self, row: TransferRow) -> int:
        """Amount to send to the payee's account."""
        return self.net_pay_summary(row).net_pay
