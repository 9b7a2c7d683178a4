"""Payroll run lifecycle: draft creation, draft edits and finalization.

Every operation takes a run value and returns a new one; nothing is mutated
in place, so a caller holding a finalized run can never observe it change.
Persistence is the caller's job (see ``PayrollRunService``).
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from collections.abc import Collection, Iterable, Mapping
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from cohesio_payroll.calculators.money import ZERO, parse_money, round_to_cents
from cohesio_payroll.calculators.payroll_calculator import PayrollCalculator
from cohesio_payroll.calculators.rates import StatutoryRateTable, pinned_rates
from cohesio_payroll.calculators.types import (
    EmployeeInputs,
    EmployeeProfile,
    PayrollRun,
    PayrollRunStatus,
    PayrollTotals,
)
from cohesio_payroll.exceptions import DuplicatePeriodError, InvalidNetPayError, ValidationError
from cohesio_payroll.services.state_machine import PayrollRunStateMachine

logger = logging.getLogger(__name__)

_PERIOD_KEY = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

# 2080 hours / 12 months
DEFAULT_HOURS_PER_MONTH = Decimal("173.33")

EmployeeDataInput = Mapping[str, EmployeeInputs | Mapping[str, Any]]


def validate_period(period: str) -> str:
    """Check a ``YYYY-MM`` period key."""
    if not isinstance(period, str) or not _PERIOD_KEY.match(period):
        raise ValidationError(f"period must be 'YYYY-MM', got {period!r}", field="period")
    return period


def period_label(period: str) -> str:
    """``"2024-03"`` -> ``"March 2024"``."""
    year, month = validate_period(period).split("-")
    return f"{date(int(year), int(month), 1):%B %Y}"


def normalize_employee_data(employee_data: EmployeeDataInput | None) -> dict[str, EmployeeInputs]:
    """Coerce raw per-employee inputs (numbers or formatted strings)."""
    if not employee_data:
        return {}
    return {
        str(employee_id): EmployeeInputs.from_dict(inputs)
        for employee_id, inputs in employee_data.items()
    }


def inputs_fingerprint(employee_data: Mapping[str, EmployeeInputs]) -> str:
    """Deterministic hash of the inputs a run was finalized from."""
    canonical = {
        employee_id: inputs.to_dict() for employee_id, inputs in sorted(employee_data.items())
    }
    json_str = json.dumps(canonical, sort_keys=True)
    return hashlib.sha256(json_str.encode()).hexdigest()[:32]


def default_employee_inputs(
    profile: EmployeeProfile,
    hours_per_month: Decimal = DEFAULT_HOURS_PER_MONTH,
) -> EmployeeInputs:
    """Monthly base salary from a profile compensation string.

    ``"120,000/year"`` is divided by 12, ``"50/hour"`` is multiplied by the
    monthly hours, anything else is taken as a monthly amount.
    """
    compensation = (profile.compensation or "").strip().lower()
    amount = parse_money(compensation.split("/")[0])

    if "/year" in compensation:
        amount = amount / 12
    elif "/hour" in compensation:
        amount = amount * hours_per_month

    return EmployeeInputs(base_salary=round_to_cents(amount), bonuses=ZERO, other_deductions=ZERO)


def default_employee_data(
    profiles: Iterable[EmployeeProfile],
    hours_per_month: Decimal = DEFAULT_HOURS_PER_MONTH,
) -> dict[str, EmployeeInputs]:
    """Draft defaults for every employee."""
    return {
        profile.employee_id: default_employee_inputs(profile, hours_per_month)
        for profile in profiles
    }


def create_draft(
    period: str,
    existing_periods: Collection[str] = (),
    company_id: str | None = None,
    employee_data: EmployeeDataInput | None = None,
    run_id: UUID | None = None,
) -> PayrollRun:
    """Create a draft run for ``period``.

    Raises:
        ValidationError: malformed period key.
        DuplicatePeriodError: a run already exists for the period.
    """
    validate_period(period)
    if period in existing_periods:
        raise DuplicatePeriodError(period)

    run = PayrollRun(
        id=run_id or uuid4(),
        period=period,
        period_label=period_label(period),
        status=PayrollRunStatus.DRAFT,
        employee_data=normalize_employee_data(employee_data),
        company_id=company_id,
    )
    logger.info("Created draft payroll run %s for %s", run.id, period)
    return run


def save_draft(run: PayrollRun, employee_data: EmployeeDataInput) -> PayrollRun:
    """Replace a draft's inputs. Computed rows are never stored."""
    PayrollRunStateMachine.ensure_inputs_mutable(run)
    return replace(run, employee_data=normalize_employee_data(employee_data))


def finalize(
    run: PayrollRun,
    employee_data: EmployeeDataInput | None,
    rates: StatutoryRateTable | None = None,
    finalized_at: datetime | None = None,
) -> PayrollRun:
    """Validate every row and freeze the run.

    All-or-nothing: if any employee's net pay is negative the whole call
    fails and the caller keeps the draft unchanged. The rate table used is
    recorded on the run; later reads and exports recompute with it.

    Raises:
        StateError: the run is already finalized.
        InvalidNetPayError: one or more rows have negative net pay.
    """
    PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.FINALIZED)

    data = normalize_employee_data(employee_data if employee_data is not None else run.employee_data)
    calculator = PayrollCalculator(rates)
    rows = calculator.compute_run(data)

    negative = [employee_id for employee_id, row in rows.items() if row.net_pay < 0]
    if negative:
        logger.warning(
            "Rejected finalization of payroll run %s: %d negative net pay row(s)",
            run.id,
            len(negative),
        )
        raise InvalidNetPayError(negative)

    totals = calculator.aggregate(rows.values())
    finalized = replace(
        run,
        status=PayrollRunStatus.FINALIZED,
        employee_data=data,
        total_gross_pay=totals.gross_pay,
        total_net_pay=totals.net_pay,
        finalized_at=finalized_at or datetime.now(timezone.utc),
        inputs_fingerprint=inputs_fingerprint(data),
        rate_snapshot=calculator.rates.to_dict(),
    )
    logger.info(
        "Finalized payroll run %s for %s (%d employee(s))",
        run.id,
        run.period,
        totals.employee_count,
    )
    return finalized


def summarize(run: PayrollRun, rates: StatutoryRateTable | None = None) -> PayrollTotals:
    """Totals derived from the run's current inputs.

    A finalized run is computed with the table it was frozen under, so its
    totals never move when the configured table changes.
    """
    calculator = PayrollCalculator(pinned_rates(run.rate_snapshot, rates))
    return calculator.aggregate(calculator.compute_run(run.employee_data).values())
