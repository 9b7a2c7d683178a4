"""Vacation accrual, usage and FIFO expiration ledger.

Pure computation helpers (no DB). The balance is always derived from the hire
date and the approved request history; nothing here is stored.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Iterator
from datetime import date, timedelta
from decimal import Decimal

from cohesio_payroll.calculators.types import (
    AccrualPolicy,
    EmployeeProfile,
    LeaveAccrualState,
    TimeOffRequest,
)
from cohesio_payroll.exceptions import InsufficientBalanceError, ValidationError

logger = logging.getLogger(__name__)

ZERO_DAYS = Decimal("0")

# date.weekday(): Monday == 0 ... Sunday == 6
DEFAULT_WEEKEND_DAYS = frozenset({5, 6})


def _days(value: Decimal | int | float | str) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 -> Feb 28
        return day.replace(year=day.year - years, day=28)


def accrual_months(hire_date: date, cutoff: date) -> Iterator[date]:
    """First-of-month dates after the hire month, strictly before ``cutoff``."""
    month = _first_of_next_month(hire_date)
    while month < cutoff:
        yield month
        month = _first_of_next_month(month)


def calculate_accrued(
    hire_date: date | None, as_of: date, policy: AccrualPolicy | None = None
) -> Decimal:
    """Days accrued since hire; the hire month itself earns nothing."""
    if hire_date is None:
        return ZERO_DAYS
    policy = policy or AccrualPolicy()
    return sum((policy.monthly_rate for _ in accrual_months(hire_date, as_of)), ZERO_DAYS)


def calculate_used(requests: Iterable[TimeOffRequest]) -> Decimal:
    """Total approved days, regardless of when they were taken."""
    return sum((_days(r.total_days) for r in requests if r.is_approved), ZERO_DAYS)


def calculate_expired(
    hire_date: date | None,
    requests: Iterable[TimeOffRequest],
    as_of: date,
    policy: AccrualPolicy | None = None,
) -> Decimal:
    """Days accrued before the retention cutoff and never consumed.

    Usage is a single running pool applied to the oldest accruals first, so
    the oldest unused days are the ones that expire.
    """
    if hire_date is None:
        return ZERO_DAYS
    policy = policy or AccrualPolicy()
    cutoff = _years_before(as_of, policy.retention_years)

    used_pool = calculate_used(requests)
    expired = ZERO_DAYS
    for _ in accrual_months(hire_date, cutoff):
        if used_pool >= policy.monthly_rate:
            used_pool -= policy.monthly_rate
        else:
            expired += policy.monthly_rate - used_pool
            used_pool = ZERO_DAYS
    return expired


def leave_balance(
    employee: EmployeeProfile | None,
    requests: Iterable[TimeOffRequest] = (),
    as_of: date | None = None,
    policy: AccrualPolicy | None = None,
) -> LeaveAccrualState:
    """Current vacation position for one employee.

    balance = max(0, initial + accrued - used - expired)
    """
    if employee is None or employee.hire_date is None:
        return LeaveAccrualState()

    as_of = as_of or date.today()
    policy = policy or AccrualPolicy()
    requests = list(requests)

    accrued = calculate_accrued(employee.hire_date, as_of, policy)
    used = calculate_used(requests)
    expired = calculate_expired(employee.hire_date, requests, as_of, policy)
    initial = _days(employee.initial_vacation_balance or 0)

    balance = max(ZERO_DAYS, initial + accrued - used - expired)
    logger.debug(
        "Leave balance for %s as of %s: accrued=%s used=%s expired=%s",
        employee.employee_id,
        as_of.isoformat(),
        accrued,
        used,
        expired,
    )
    return LeaveAccrualState(accrued=accrued, used=used, expired=expired, balance=balance)


def count_business_days(
    start_date: date,
    end_date: date,
    weekend_days: Collection[int] = DEFAULT_WEEKEND_DAYS,
    holidays: Collection[date] = (),
) -> int:
    """Working days in ``[start_date, end_date]``, skipping weekends and holidays."""
    if end_date < start_date:
        return 0

    holiday_set = set(holidays)
    count = 0
    day = start_date
    while day <= end_date:
        if day.weekday() not in weekend_days and day not in holiday_set:
            count += 1
        day += timedelta(days=1)
    return count


def ensure_sufficient_balance(state: LeaveAccrualState, requested_days: Decimal) -> None:
    """Reject a leave request that exceeds the available balance."""
    requested = _days(requested_days)
    if requested <= 0:
        raise ValidationError("A leave request must cover a positive number of days", field="total_days")
    if requested > state.balance:
        raise InsufficientBalanceError(requested, state.balance)
