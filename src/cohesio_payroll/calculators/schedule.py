"""Pay period schedule generation."""

from __future__ import annotations

import logging
from calendar import monthrange
from collections.abc import Callable
from datetime import date, datetime, timedelta

from cohesio_payroll.calculators.types import Cadence, PayPeriod, PaySchedule
from cohesio_payroll.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Used only to bound the walk, never to force a count
EXPECTED_PERIODS: dict[Cadence, int] = {
    Cadence.WEEKLY: 52,
    Cadence.BIWEEKLY: 26,
    Cadence.SEMIMONTHLY: 24,
    Cadence.MONTHLY: 12,
}

PeriodStep = Callable[[date, date], tuple[date, date, date]]


def parse_date(value: date | str | None, field: str = "date") -> date:
    """Coerce an ISO date string (or date) into a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field} is required", field=field)
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationError(f"{field} is not a valid date: {value!r}", field=field) from exc


def build_schedule(cadence: Cadence | str, anchor_payday: date | str | None) -> PaySchedule:
    """Validate raw schedule settings into a ``PaySchedule``."""
    try:
        resolved = Cadence(cadence.lower() if isinstance(cadence, str) else cadence)
    except ValueError as exc:
        valid = ", ".join(c.value for c in Cadence)
        raise ValidationError(
            f"cadence must be one of {valid}, got {cadence!r}", field="cadence"
        ) from exc
    return PaySchedule(cadence=resolved, anchor_payday=parse_date(anchor_payday, "anchor_payday"))


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, monthrange(year, month)[1])


def _add_months(day: date, months: int, day_of_month: int) -> date:
    """Move ``months`` ahead, landing on ``day_of_month`` clamped to month length."""
    month_index = day.month - 1 + months
    year, month = day.year + month_index // 12, month_index % 12 + 1
    return date(year, month, min(day_of_month, monthrange(year, month)[1]))


def _weekly(payday: date, anchor: date) -> tuple[date, date, date]:
    return payday - timedelta(days=6), payday, payday + timedelta(days=7)


def _biweekly(payday: date, anchor: date) -> tuple[date, date, date]:
    return payday - timedelta(days=13), payday, payday + timedelta(days=14)


def _monthly(payday: date, anchor: date) -> tuple[date, date, date]:
    start = payday.replace(day=1)
    end = last_day_of_month(payday.year, payday.month)
    return start, end, _add_months(payday, 1, anchor.day)


def _semimonthly(payday: date, anchor: date) -> tuple[date, date, date]:
    if payday.day < 20:
        start, end = payday.replace(day=1), payday.replace(day=15)
        return start, end, last_day_of_month(payday.year, payday.month)
    start = payday.replace(day=16)
    end = last_day_of_month(payday.year, payday.month)
    return start, end, _add_months(payday, 1, 15)


_STEPS: dict[Cadence, PeriodStep] = {
    Cadence.WEEKLY: _weekly,
    Cadence.BIWEEKLY: _biweekly,
    Cadence.SEMIMONTHLY: _semimonthly,
    Cadence.MONTHLY: _monthly,
}


def period_label(start: date, end: date) -> str:
    return f"{start:%b %d, %Y} – {end:%b %d, %Y}"


def generate_pay_periods(schedule: PaySchedule, year: int) -> list[PayPeriod]:
    """Generate the ordered pay periods whose payday falls in ``year``.

    The walk starts at the anchor payday (which is always a payday) and stops
    once a computed payday lands after ``year``. Periods are not clipped: a
    December period may end in January and a January period may start in
    December. The function keeps no state, so calling it twice returns the
    same list; deduplicating stored periods is the caller's concern.

    Raises:
        ValidationError: bad cadence, anchor or year. Nothing is returned
            partially.
    """
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9998:
        raise ValidationError(f"year must be a calendar year, got {year!r}", field="year")

    schedule = build_schedule(schedule.cadence, schedule.anchor_payday)
    anchor = schedule.anchor_payday
    if anchor.year > year:
        raise ValidationError(
            f"anchor payday {anchor.isoformat()} falls after {year}",
            field="anchor_payday",
        )

    step = _STEPS[schedule.cadence]
    bound = (EXPECTED_PERIODS[schedule.cadence] + 2) * (year - anchor.year + 1)

    periods: list[PayPeriod] = []
    payday = anchor
    for _ in range(bound):
        if payday.year > year:
            break
        start, end, next_payday = step(payday, anchor)
        if payday.year == year:
            periods.append(
                PayPeriod(
                    index=len(periods) + 1,
                    period_label=period_label(start, end),
                    period_start=start,
                    period_end=end,
                    payday=payday,
                )
            )
        payday = next_payday

    logger.info(
        "Generated %d %s pay period(s) for %d anchored on %s",
        len(periods),
        schedule.cadence.value,
        year,
        anchor.isoformat(),
    )
    return periods
