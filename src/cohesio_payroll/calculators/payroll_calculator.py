"""Statutory contributions, progressive IR and net pay for payroll rows."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from cohesio_payroll.calculators.money import ZERO, round_to_cents
from cohesio_payroll.calculators.rates import (
    ContributionRule,
    StatutoryRateTable,
    TaxBracket,
    default_rate_table,
)
from cohesio_payroll.calculators.types import ComputedRow, EmployeeInputs, PayrollTotals

logger = logging.getLogger(__name__)


class PayrollCalculator:
    """Computes one employee-period row at a time, plus company totals.

    Pipeline (stable order per employee):
    1) gross = base salary + bonuses
    2) CNSS on gross capped at the CNSS ceiling
    3) AMO on gross (capped only if the table sets a ceiling)
    4) taxable income = gross - CNSS - AMO, floored at zero
    5) IR = taxable * rate - quick deduction of the matching bracket
    6) net = gross - CNSS - AMO - IR - other deductions

    Each contribution is rounded to cents before it feeds the next step, so
    every figure on a row is exactly reproducible. Rows are never cached:
    totals are always summed from freshly computed rows.
    """

    def __init__(self, rates: StatutoryRateTable | None = None):
        self.rates = rates or default_rate_table()

    def compute_row(self, inputs: EmployeeInputs) -> ComputedRow:
        """Calculate gross-to-net for one employee."""
        gross = inputs.base_salary + inputs.bonuses
        cnss = self._calculate_contribution(gross, self.rates.cnss)
        amo = self._calculate_contribution(gross, self.rates.amo)
        taxable = max(ZERO, gross - cnss - amo)
        ir = self._calculate_progressive_tax(taxable)
        net = gross - cnss - amo - ir - inputs.other_deductions

        return ComputedRow(
            gross_pay=round_to_cents(gross),
            cnss=cnss,
            amo=amo,
            taxable_income=round_to_cents(taxable),
            ir=ir,
            other_deductions=inputs.other_deductions,
            net_pay=round_to_cents(net),
        )

    def compute_run(
        self, employee_data: Mapping[str, EmployeeInputs]
    ) -> dict[str, ComputedRow]:
        """Calculate every row of a run, keyed by employee id."""
        rows = {
            employee_id: self.compute_row(EmployeeInputs.from_dict(inputs))
            for employee_id, inputs in sorted(employee_data.items())
        }
        logger.debug("Computed %d payroll row(s)", len(rows))
        return rows

    @staticmethod
    def aggregate(rows: Iterable[ComputedRow]) -> PayrollTotals:
        """Element-wise sum of rows. There is no separate accumulation path."""
        rows = list(rows)
        return PayrollTotals(
            gross_pay=sum((r.gross_pay for r in rows), ZERO),
            cnss=sum((r.cnss for r in rows), ZERO),
            amo=sum((r.amo for r in rows), ZERO),
            ir=sum((r.ir for r in rows), ZERO),
            other_deductions=sum((r.other_deductions for r in rows), ZERO),
            net_pay=sum((r.net_pay for r in rows), ZERO),
            employee_count=len(rows),
        )

    def _calculate_contribution(self, wages: Decimal, rule: ContributionRule) -> Decimal:
        """Calculate a flat-rate contribution with an optional ceiling."""
        if wages <= 0:
            return ZERO

        base = wages if rule.monthly_ceiling is None else min(wages, rule.monthly_ceiling)
        return round_to_cents(base * rule.rate)

    def _calculate_progressive_tax(self, taxable_income: Decimal) -> Decimal:
        """Calculate IR in closed form from the matching bracket."""
        if taxable_income <= 0:
            return ZERO

        bracket = self.rates.bracket_for(taxable_income)
        return max(ZERO, round_to_cents(bracket.closed_form(taxable_income)))


def compute_row(
    inputs: EmployeeInputs, rates: StatutoryRateTable | None = None
) -> ComputedRow:
    """Pure gross-to-net computation for one employee."""
    return PayrollCalculator(rates).compute_row(inputs)


def aggregate(rows: Iterable[ComputedRow]) -> PayrollTotals:
    """Company totals for a set of rows."""
    return PayrollCalculator.aggregate(rows)


def marginal_tax(taxable_income: Decimal, brackets: Iterable[TaxBracket]) -> Decimal:
    """Cumulative marginal-bracket tax, the reference for the closed form.

    Each bracket taxes the slice of income between the previous bracket's
    upper bound and its own.
    """
    if taxable_income <= 0:
        return ZERO

    total = Decimal("0")
    lower = Decimal("0")
    for bracket in brackets:
        upper = bracket.max_amount
        if taxable_income <= lower:
            break
        top = taxable_income if upper is None else min(taxable_income, upper)
        total += (top - lower) * bracket.rate
        if upper is None:
            break
        lower = upper

    return round_to_cents(total)
