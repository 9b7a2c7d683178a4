"""Pay period persistence with keyed upsert."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cohesio_payroll.calculators.schedule import generate_pay_periods
from cohesio_payroll.calculators.types import PayPeriod, PaySchedule
from cohesio_payroll.models import PayPeriodRecord

logger = logging.getLogger(__name__)


@dataclass
class PeriodGenerationResult:
    """Outcome of a schedule generation for one (company, cadence, year)."""

    created: list[PayPeriod] = field(default_factory=list)
    skipped: list[PayPeriod] = field(default_factory=list)

    @property
    def periods(self) -> list[PayPeriod]:
        return sorted(self.created + self.skipped, key=lambda p: p.period_start)


class PayPeriodService:
    """Stores generated pay periods.

    Periods are keyed on (company_id, cadence, period_start). Regenerating a
    year inserts only the periods that are missing, so running the generator
    twice never duplicates rows.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def persist_periods(
        self,
        company_id: str,
        schedule: PaySchedule,
        year: int,
    ) -> PeriodGenerationResult:
        periods = generate_pay_periods(schedule, year)
        result = PeriodGenerationResult()
        if not periods:
            return result

        existing = await self.session.execute(
            select(PayPeriodRecord.period_start).where(
                PayPeriodRecord.company_id == company_id,
                PayPeriodRecord.cadence == schedule.cadence.value,
                PayPeriodRecord.period_start.in_([p.period_start for p in periods]),
            )
        )
        existing_starts = set(existing.scalars().all())

        for period in periods:
            if period.period_start in existing_starts:
                result.skipped.append(period)
                continue
            self.session.add(
                PayPeriodRecord(
                    company_id=company_id,
                    cadence=schedule.cadence.value,
                    year=year,
                    period_index=period.index,
                    period_label=period.period_label,
                    period_start=period.period_start,
                    period_end=period.period_end,
                    payday=period.payday,
                    state=period.state.value,
                    period_type=period.type,
                )
            )
            result.created.append(period)

        await self.session.flush()
        logger.info(
            "Stored %s pay periods for company %s, %d: %d created, %d skipped",
            schedule.cadence.value,
            company_id,
            year,
            len(result.created),
            len(result.skipped),
        )
        return result

    async def list_periods(
        self,
        company_id: str,
        year: int | None = None,
        cadence: str | None = None,
    ) -> list[PayPeriod]:
        query = select(PayPeriodRecord).where(PayPeriodRecord.company_id == company_id)
        if year is not None:
            query = query.where(PayPeriodRecord.year == year)
        if cadence is not None:
            query = query.where(PayPeriodRecord.cadence == cadence)
        query = query.order_by(PayPeriodRecord.period_start)

        records = await self.session.execute(query)
        return [record.to_domain() for record in records.scalars().all()]
