"""Statutory insurance, income tax and net pay for monthly-wage gross pay.

Every line is rounded half-up on its own before summing; the bank file and
the payslip must agree to the won.
"""

from __future__ import annotations

from collections.abc import Iterable

from sitepay.models.outputs import NetPaySummary, PayrollDeductionResult
from sitepay.models.records import DEFAULT_TAX_RATE, InsuranceRates, finite_or_none, round_half_up


def calculate(
    gross_pay: int,
    insurance_rates: InsuranceRates | None = None,
    tax_rate: float | None = None,
    advance_deduction: int = 0,
) -> PayrollDeductionResult:
    """Deductions and net pay for one gross amount.

    Long-term care is a share of the health premium, not of gross pay.
    Net pay is not clamped; a negative value is reported as is.
    """
    rates = insurance_rates or InsuranceRates()
    gross = round_half_up(finite_or_none(gross_pay) or 0)
    tax = finite_or_none(tax_rate)
    if tax is None or tax < 0:
        tax = DEFAULT_TAX_RATE
    advance = round_half_up(finite_or_none(advance_deduction) or 0)

    pension = round_half_up(gross * rates.pension)
    health = round_half_up(gross * rates.health)
    care = round_half_up(health * rates.care_of_health)
    employment = round_half_up(gross * rates.employment)
    total_insurance = pension + health + care + employment
    income_tax = round_half_up(gross * tax)
    total_deduction = total_insurance + income_tax + advance

    return PayrollDeductionResult(
        pension=pension,
        health=health,
        care=care,
        employment=employment,
        total_insurance=total_insurance,
        income_tax=income_tax,
        advance_deduction=advance,
        total_deduction=total_deduction,
        net_pay=gross - total_deduction,
    )


def total_net_pay(
    items: Iterable[tuple[int, int]],
    insurance_rates: InsuranceRates | None = None,
    tax_rate: float | None = None,
) -> NetPaySummary:
    """Sum deductions and net pay over ``(gross_pay, advance_deduction)`` pairs."""
    total_deduction = 0
    net_pay = 0
    for gross_pay, advance_deduction in items:
        result = calculate(gross_pay, insurance_rates, tax_rate, advance_deduction)
        total_deduction += result.total_deduction
        net_pay += result.net_pay
    return NetPaySummary(total_deduction=total_deduction, net_pay=net_pay)
