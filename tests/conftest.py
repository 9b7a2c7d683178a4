"""Pytest fixtures for payroll engine tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from cohesio_payroll.calculators.rates import (
    ContributionRule,
    StatutoryRateTable,
    default_rate_table,
)
from cohesio_payroll.calculators.types import (
    CompanyInfo,
    EmployeeInputs,
    EmployeeProfile,
)


@pytest.fixture
def rates() -> StatutoryRateTable:
    """Built-in statutory rate table."""
    return default_rate_table()


@pytest.fixture
def revised_rates(rates) -> StatutoryRateTable:
    """Same table with CNSS raised to 5%, as if the schedule changed mid-year."""
    return replace(
        rates, cnss=ContributionRule(rate=Decimal("0.05"), monthly_ceiling=Decimal("6000"))
    )


@pytest.fixture
def salaried_inputs() -> EmployeeInputs:
    """6000 MAD base salary, no bonus, no other deduction."""
    return EmployeeInputs(base_salary=Decimal("6000.00"))


@pytest.fixture
def employee_profiles() -> dict[str, EmployeeProfile]:
    """Two employees with full statutory identifiers."""
    return {
        "emp-001": EmployeeProfile(
            employee_id="emp-001",
            name="Amina El Idrissi",
            hire_date=date(2022, 1, 15),
            national_id="BK123456",
            address="12 Rue Atlas, Rabat",
            cnss_number="112233445",
            date_of_birth=date(1990, 4, 2),
            compensation="72,000/year",
        ),
        "emp-002": EmployeeProfile(
            employee_id="emp-002",
            name="Youssef Benali",
            hire_date=date(2023, 6, 1),
            national_id="AB987654",
            address="5 Av. Hassan II & Co, Casablanca",
            cnss_number="998877665",
            date_of_birth=date(1985, 11, 20),
            compensation="40/hour",
        ),
    }


@pytest.fixture
def company() -> CompanyInfo:
    return CompanyInfo(fiscal_id="IF-001234", name="Cohesio SARL")
