"""TDS salaries XML export for finalized payroll runs."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from xml.sax.saxutils import escape

from cohesio_payroll.calculators.payroll_calculator import PayrollCalculator
from cohesio_payroll.calculators.rates import StatutoryRateTable, pinned_rates
from cohesio_payroll.calculators.types import CompanyInfo, EmployeeProfile, PayrollRun
from cohesio_payroll.exceptions import StateError, TotalsMismatchError, ValidationError

logger = logging.getLogger(__name__)

SCHEMA_LOCATION = "TdsSalaires.xsd"
PERIOD_DAYS = 30

_ENTITIES = {"'": "&apos;", '"': "&quot;"}


def escape_xml(value: object) -> str:
    """Escape ``< > & ' "``; ``None`` renders as an empty string."""
    if value is None:
        return ""
    if isinstance(value, date):
        value = value.isoformat()
    return escape(str(value), _ENTITIES)


def _fixed(amount: Decimal | None) -> str:
    return f"{(amount or Decimal('0')):.2f}"


def generate_statutory_xml(
    run: PayrollRun,
    employees: Mapping[str, EmployeeProfile],
    company: CompanyInfo | None = None,
    rates: StatutoryRateTable | None = None,
) -> str:
    """Render a finalized run as a ``TdsSalaries`` document.

    One ``<salarie>`` per employee in the run, ordered by employee id. Every
    employee must have a profile; the export never omits rows.

    Raises:
        StateError: the run is not finalized.
        ValidationError: an employee in the run has no profile.
        TotalsMismatchError: the rows do not sum to the frozen totals.
    """
    if not run.is_finalized:
        raise StateError(
            run.status.value, "exported", "Only finalized payroll runs can be exported"
        )

    missing = sorted(set(run.employee_data) - set(employees))
    if missing:
        raise ValidationError(
            f"No employee profile for {', '.join(missing)}", field="employees"
        )

    company = company or CompanyInfo()
    calculator = PayrollCalculator(pinned_rates(run.rate_snapshot, rates))
    rows = calculator.compute_run(run.employee_data)

    totals = calculator.aggregate(rows.values())
    for name, frozen, recomputed in (
        ("total_gross_pay", run.total_gross_pay, totals.gross_pay),
        ("total_net_pay", run.total_net_pay, totals.net_pay),
    ):
        if frozen != recomputed:
            logger.error(
                "Payroll run %s export aborted: %s frozen at %s, rows sum to %s",
                run.id,
                name,
                frozen,
                recomputed,
            )
            raise TotalsMismatchError(run.id, name, frozen, recomputed)

    salaries = []
    for employee_id, row in rows.items():
        employee = employees[employee_id]
        salaries.append(
            f"""
    <salarie>
      <identifiant>{escape_xml(employee.national_id)}</identifiant>
      <nom>{escape_xml(employee.last_name)}</nom>
      <prenom>{escape_xml(employee.first_name)}</prenom>
      <adresse>{escape_xml(employee.address)}</adresse>
      <cin>{escape_xml(employee.national_id)}</cin>
      <cnss>{escape_xml(employee.cnss_number)}</cnss>
      <dateNaissance>{escape_xml(employee.date_of_birth)}</dateNaissance>
      <dateRecrutement>{escape_xml(employee.hire_date)}</dateRecrutement>
      <remunerationBrute>{_fixed(row.gross_pay)}</remunerationBrute>
      <remunerationNette>{_fixed(row.net_pay)}</remunerationNette>
      <nombreJours>{PERIOD_DAYS}</nombreJours>
    </salarie>"""
        )

    body = "".join(salaries)
    logger.info("Exported payroll run %s with %d employee(s)", run.id, len(salaries))
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<TdsSalaries xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xsi:noNamespaceSchemaLocation="{SCHEMA_LOCATION}">
  <entete>
    <idFiscal>{escape_xml(company.fiscal_id)}</idFiscal>
    <exercice>{run.year}</exercice>
    <totalBrut>{_fixed(run.total_gross_pay)}</totalBrut>
    <totalNet>{_fixed(run.total_net_pay)}</totalNet>
    <totalSalaries>{len(run.employee_data)}</totalSalaries>
  </entete>
  <salaries>{body}
  </salaries>
</TdsSalaries>"""
