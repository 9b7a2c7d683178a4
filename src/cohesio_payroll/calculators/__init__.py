"""Payroll and leave calculation engine."""

from cohesio_payroll.calculators.accrual import (
    count_business_days,
    ensure_sufficient_balance,
    leave_balance,
)
from cohesio_payroll.calculators.money import format_money, parse_money, round_to_cents
from cohesio_payroll.calculators.payroll_calculator import (
    PayrollCalculator,
    aggregate,
    compute_row,
)
from cohesio_payroll.calculators.rates import StatutoryRateTable, default_rate_table
from cohesio_payroll.calculators.schedule import generate_pay_periods

__all__ = [
    "PayrollCalculator",
    "StatutoryRateTable",
    "aggregate",
    "compute_row",
    "count_business_days",
    "default_rate_table",
    "ensure_sufficient_balance",
    "format_money",
    "generate_pay_periods",
    "leave_balance",
    "parse_money",
    "round_to_cents",
]
