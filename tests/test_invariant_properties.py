"""Property-based tests for payroll, schedule and leave invariants.

hypothesis generates inputs across the whole bracket table, every cadence
and arbitrary leave histories; the invariants must hold for all of them.
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import given, settings, strategies as st

from cohesio_payroll.calculators.accrual import leave_balance
from cohesio_payroll.calculators.money import format_money, parse_money, round_to_cents
from cohesio_payroll.calculators.payroll_calculator import (
    aggregate,
    compute_row,
    marginal_tax,
)
from cohesio_payroll.calculators.rates import default_rate_table
from cohesio_payroll.calculators.schedule import (
    EXPECTED_PERIODS,
    build_schedule,
    generate_pay_periods,
)
from cohesio_payroll.calculators.types import (
    Cadence,
    EmployeeInputs,
    EmployeeProfile,
    TimeOffRequest,
)

CENT = Decimal("0.01")
RATES = default_rate_table()

amounts = st.decimals(min_value=0, max_value=200000, places=2, allow_nan=False, allow_infinity=False)
signed_amounts = st.decimals(
    min_value=-1000000, max_value=1000000, places=2, allow_nan=False, allow_infinity=False
)

employee_inputs = st.builds(
    EmployeeInputs,
    base_salary=amounts,
    bonuses=st.decimals(min_value=0, max_value=20000, places=2),
    other_deductions=st.decimals(min_value=0, max_value=5000, places=2),
)


class TestRowInvariants:
    """Every computed row is internally consistent."""

    @given(inputs=employee_inputs)
    @settings(max_examples=200)
    def test_net_identity(self, inputs):
        row = compute_row(inputs, RATES)

        assert row.gross_pay == inputs.base_salary + inputs.bonuses
        assert row.taxable_income == row.gross_pay - row.cnss - row.amo
        assert row.net_pay == (
            row.gross_pay - row.cnss - row.amo - row.ir - row.other_deductions
        )

    @given(inputs=employee_inputs)
    def test_amounts_are_cents(self, inputs):
        row = compute_row(inputs, RATES)
        for value in (row.gross_pay, row.cnss, row.amo, row.taxable_income, row.ir, row.net_pay):
            assert value == value.quantize(CENT)

    @given(inputs=employee_inputs)
    def test_contributions_and_tax_bounded(self, inputs):
        row = compute_row(inputs, RATES)

        assert Decimal("0") <= row.cnss <= Decimal("268.80")
        assert row.amo >= 0
        assert Decimal("0") <= row.ir <= row.taxable_income

    @given(taxable=st.decimals(min_value=0, max_value=500000, places=2))
    @settings(max_examples=300)
    def test_closed_form_matches_marginal(self, taxable):
        """Quick deductions are tabled to the cent, so a one-cent drift is allowed."""
        closed = max(Decimal("0"), round_to_cents(RATES.bracket_for(taxable).closed_form(taxable)))
        reference = marginal_tax(taxable, RATES.ir_brackets)

        assert abs(closed - reference) <= CENT


class TestAggregateInvariants:
    """Totals are the plain sum of the rows."""

    @given(batch=st.lists(employee_inputs, max_size=25))
    def test_totals_equal_row_sums(self, batch):
        rows = [compute_row(inputs, RATES) for inputs in batch]
        totals = aggregate(rows)

        assert totals.employee_count == len(rows)
        assert totals.gross_pay == sum((r.gross_pay for r in rows), Decimal("0"))
        assert totals.net_pay == sum((r.net_pay for r in rows), Decimal("0"))
        assert totals.ir == sum((r.ir for r in rows), Decimal("0"))

    @given(batch=st.lists(employee_inputs, min_size=1, max_size=10))
    def test_order_does_not_matter(self, batch):
        rows = [compute_row(inputs, RATES) for inputs in batch]
        assert aggregate(rows) == aggregate(list(reversed(rows)))


class TestMoneyInvariants:
    """Formatted amounts read back to the same value."""

    @given(amount=signed_amounts)
    def test_formatted_amount_parses_back(self, amount):
        assert parse_money(format_money(amount)) == amount

    @given(text=st.text(max_size=30))
    def test_parse_never_raises(self, text):
        value = parse_money(text)
        assert value == value.quantize(CENT)


class TestScheduleInvariants:
    """Generated periods tile the year without gaps or overlaps."""

    @given(
        cadence=st.sampled_from(list(Cadence)),
        anchor=st.dates(min_value=date(2023, 1, 1), max_value=date(2023, 12, 31)),
        year=st.integers(min_value=2024, max_value=2027),
    )
    @settings(max_examples=150)
    def test_periods_tile_the_year(self, cadence, anchor, year):
        periods = generate_pay_periods(build_schedule(cadence, anchor), year)

        expected = EXPECTED_PERIODS[cadence]
        assert expected <= len(periods) <= expected + 1
        assert [p.index for p in periods] == list(range(1, len(periods) + 1))
        assert all(p.payday.year == year for p in periods)
        for current, following in zip(periods, periods[1:]):
            assert current.period_start <= current.period_end
            assert current.payday < following.payday
            assert following.period_start == current.period_end + timedelta(days=1)


class TestLeaveInvariants:
    """Derived leave positions stay within their bounds."""

    @given(
        hire_date=st.dates(min_value=date(2015, 1, 1), max_value=date(2024, 12, 31)),
        elapsed=st.integers(min_value=0, max_value=3000),
        used=st.lists(st.decimals(min_value=0, max_value=10, places=1), max_size=8),
        initial=st.decimals(min_value=0, max_value=30, places=1),
    )
    @settings(max_examples=200)
    def test_balance_bounds(self, hire_date, elapsed, used, initial):
        employee = EmployeeProfile(
            employee_id="emp-001",
            name="Amina El Idrissi",
            hire_date=hire_date,
            initial_vacation_balance=initial,
        )
        requests = [
            TimeOffRequest(
                start_date=hire_date,
                end_date=hire_date,
                total_days=days,
            )
            for days in used
        ]
        as_of = hire_date + timedelta(days=elapsed)

        state = leave_balance(employee, requests, as_of=as_of)

        assert state.balance >= 0
        assert Decimal("0") <= state.expired <= state.accrued
        assert state.used == sum(used, Decimal("0"))
        assert state.balance == max(
            Decimal("0"), initial + state.accrued - state.used - state.expired
        )

    @given(
        hire_date=st.dates(min_value=date(2015, 1, 1), max_value=date(2024, 12, 31)),
        first=st.integers(min_value=0, max_value=2000),
        extra=st.integers(min_value=0, max_value=2000),
    )
    def test_accrual_never_shrinks(self, hire_date, first, extra):
        employee = EmployeeProfile(employee_id="emp-001", name="Amina", hire_date=hire_date)
        earlier = leave_balance(employee, as_of=hire_date + timedelta(days=first))
        later = leave_balance(employee, as_of=hire_date + timedelta(days=first + extra))

        assert earlier.accrued <= later.accrued
