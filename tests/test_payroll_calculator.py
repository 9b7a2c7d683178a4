"""Unit tests for PayrollCalculator.

Covers the gross-to-net pipeline, contribution ceilings, the closed-form IR
against the cumulative marginal reference, and total aggregation.
"""

from decimal import Decimal

import pytest

from cohesio_payroll.calculators.payroll_calculator import (
    PayrollCalculator,
    aggregate,
    compute_row,
    marginal_tax,
)
from cohesio_payroll.calculators.rates import ContributionRule, StatutoryRateTable
from cohesio_payroll.calculators.types import EmployeeInputs


class TestComputeRow:
    """Gross-to-net for one employee."""

    def test_reference_salary(self, salaried_inputs, rates):
        """6000 MAD lands in the 30% bracket."""
        row = compute_row(salaried_inputs, rates)

        assert row.gross_pay == Decimal("6000.00")
        assert row.cnss == Decimal("268.80")
        assert row.amo == Decimal("135.60")
        assert row.taxable_income == Decimal("5595.60")
        # 5595.60 * 0.30 - 1166.67
        assert row.ir == Decimal("512.01")
        assert row.net_pay == Decimal("5083.59")

    def test_bonus_counts_toward_gross(self, rates):
        row = compute_row(
            EmployeeInputs(base_salary=Decimal("5000"), bonuses=Decimal("1000")), rates
        )
        assert row.gross_pay == Decimal("6000.00")
        assert row.ir == Decimal("512.01")

    def test_cnss_is_capped(self, rates):
        """CNSS stops growing at the 6000 ceiling; AMO does not."""
        row = compute_row(EmployeeInputs(base_salary=Decimal("20000")), rates)

        assert row.cnss == Decimal("268.80")
        assert row.amo == Decimal("452.00")
        assert row.taxable_income == Decimal("19279.20")
        # 19279.20 * 0.38 - 2033.33
        assert row.ir == Decimal("5292.77")

    def test_amo_ceiling_when_configured(self, rates):
        capped = StatutoryRateTable(
            cnss=rates.cnss,
            amo=ContributionRule(rate=Decimal("0.0226"), monthly_ceiling=Decimal("10000")),
            ir_brackets=rates.ir_brackets,
        )
        row = compute_row(EmployeeInputs(base_salary=Decimal("20000")), capped)
        assert row.amo == Decimal("226.00")

    def test_low_salary_pays_no_ir(self, rates):
        row = compute_row(EmployeeInputs(base_salary=Decimal("2000")), rates)
        assert row.ir == Decimal("0.00")
        assert row.net_pay == row.gross_pay - row.cnss - row.amo

    def test_zero_inputs(self, rates):
        row = compute_row(EmployeeInputs(), rates)
        assert row.gross_pay == Decimal("0.00")
        assert row.cnss == Decimal("0.00")
        assert row.ir == Decimal("0.00")
        assert row.net_pay == Decimal("0.00")

    def test_net_may_be_negative(self, rates):
        """Rows are computed even when deductions exceed pay."""
        row = compute_row(
            EmployeeInputs(base_salary=Decimal("1000"), other_deductions=Decimal("5000")),
            rates,
        )
        assert row.net_pay < 0

    def test_defaults_to_builtin_table(self, salaried_inputs):
        assert PayrollCalculator().compute_row(salaried_inputs).ir == Decimal("512.01")


class TestProgressiveTax:
    """Closed form agrees with the marginal computation."""

    @pytest.mark.parametrize(
        "taxable",
        [
            "0", "1", "2500", "2500.01", "3000", "4166.67", "4166.68", "5000",
            "5000.01", "5595.60", "6666.67", "6666.68", "10000", "15000",
            "15000.01", "50000",
        ],
    )
    def test_closed_form_matches_marginal(self, rates, taxable):
        amount = Decimal(taxable)
        closed = PayrollCalculator(rates)._calculate_progressive_tax(amount)
        reference = marginal_tax(amount, rates.ir_brackets)
        assert abs(closed - reference) <= Decimal("0.01")

    def test_tax_is_monotonic(self, rates):
        calculator = PayrollCalculator(rates)
        previous = Decimal("0")
        for cents in range(0, 2000001, 2500):
            tax = calculator._calculate_progressive_tax(Decimal(cents) / 100)
            assert tax >= previous
            previous = tax


class TestComputeRun:
    """Rows for a whole run."""

    def test_rows_keyed_and_sorted(self, rates):
        rows = PayrollCalculator(rates).compute_run(
            {
                "emp-b": EmployeeInputs(base_salary=Decimal("3000")),
                "emp-a": {"baseSalary": "6 000,00", "bonuses": 0},
            }
        )
        assert list(rows) == ["emp-a", "emp-b"]
        assert rows["emp-a"].net_pay == Decimal("5083.59")


class TestAggregate:
    """Totals are element-wise sums of rows."""

    def test_totals_equal_row_sums(self, rates):
        calculator = PayrollCalculator(rates)
        rows = calculator.compute_run(
            {
                "a": EmployeeInputs(base_salary=Decimal("6000")),
                "b": EmployeeInputs(base_salary=Decimal("3250.55"), bonuses=Decimal("120")),
                "c": EmployeeInputs(base_salary=Decimal("18000"), other_deductions=Decimal("300")),
            }
        )
        totals = aggregate(rows.values())

        assert totals.employee_count == 3
        assert totals.gross_pay == sum(r.gross_pay for r in rows.values())
        assert totals.net_pay == sum(r.net_pay for r in rows.values())
        assert totals.net_pay == (
            totals.gross_pay - totals.cnss - totals.amo - totals.ir - totals.other_deductions
        )

    def test_empty(self):
        totals = aggregate([])
        assert totals.employee_count == 0
        assert totals.gross_pay == Decimal("0.00")
