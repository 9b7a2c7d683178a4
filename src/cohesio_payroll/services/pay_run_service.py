"""Payroll run service: the lifecycle over stored runs."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cohesio_payroll.calculators.rates import StatutoryRateTable, default_rate_table
from cohesio_payroll.calculators.types import (
    CompanyInfo,
    EmployeeProfile,
    PayrollRun,
    PayrollRunStatus,
)
from cohesio_payroll.exceptions import DuplicatePeriodError, PayrollRunNotFoundError
from cohesio_payroll.exports.statutory_xml import generate_statutory_xml
from cohesio_payroll.models import PayrollRunRecord
from cohesio_payroll.services import lifecycle
from cohesio_payroll.services.lifecycle import EmployeeDataInput

logger = logging.getLogger(__name__)


class PayrollRunService:
    """Service for managing stored payroll runs.

    Operations:
    - create_draft: new draft for a (company, period), one run per period
    - save_draft: replace a draft's employee inputs
    - finalize: validate every row and freeze the run
    - export_xml: render a finalized run for the tax authority

    Mutating operations load the run with ``SELECT ... FOR UPDATE`` so two
    writers on the same run are serialised by the database and finalize
    freezes exactly the inputs it validated.
    """

    def __init__(self, session: AsyncSession, rates: StatutoryRateTable | None = None):
        self.session = session
        self.rates = rates or default_rate_table()

    async def _load(
        self,
        company_id: str,
        run_id: UUID,
        for_update: bool = False,
    ) -> PayrollRunRecord:
        query = select(PayrollRunRecord).where(
            PayrollRunRecord.payroll_run_id == run_id,
            PayrollRunRecord.company_id == company_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        record = result.scalar_one_or_none()
        if record is None:
            raise PayrollRunNotFoundError(run_id)
        return record

    async def create_draft(
        self,
        company_id: str,
        period: str,
        employee_data: EmployeeDataInput | None = None,
        profiles: Iterable[EmployeeProfile] | None = None,
    ) -> PayrollRun:
        """Create a draft run.

        When no employee data is given and profiles are, inputs default from
        each profile's compensation.

        Raises:
            ValidationError: malformed period key.
            DuplicatePeriodError: the company already has a run for the period.
        """
        existing = await self.session.execute(
            select(PayrollRunRecord.period).where(
                PayrollRunRecord.company_id == company_id,
                PayrollRunRecord.period == period,
            )
        )
        if employee_data is None and profiles is not None:
            employee_data = lifecycle.default_employee_data(profiles)

        run = lifecycle.create_draft(
            period,
            existing_periods=set(existing.scalars().all()),
            company_id=company_id,
            employee_data=employee_data,
        )

        record = PayrollRunRecord.from_domain(run)
        self.session.add(record)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # Lost a race with another writer for the same period
            await self.session.rollback()
            raise DuplicatePeriodError(period) from exc
        return record.to_domain()

    async def get_run(self, company_id: str, run_id: UUID) -> PayrollRun:
        record = await self._load(company_id, run_id)
        return record.to_domain()

    async def list_runs(
        self,
        company_id: str,
        status: PayrollRunStatus | str | None = None,
    ) -> list[PayrollRun]:
        """Runs for a company, most recent period first."""
        query = select(PayrollRunRecord).where(PayrollRunRecord.company_id == company_id)
        if status is not None:
            query = query.where(PayrollRunRecord.status == PayrollRunStatus(status).value)
        query = query.order_by(PayrollRunRecord.period.desc())

        result = await self.session.execute(query)
        return [record.to_domain() for record in result.scalars().all()]

    async def save_draft(
        self,
        company_id: str,
        run_id: UUID,
        employee_data: EmployeeDataInput,
    ) -> PayrollRun:
        """Replace a draft's inputs.

        Raises:
            PayrollRunNotFoundError: no such run for the company.
            StateError: the run is finalized.
        """
        record = await self._load(company_id, run_id, for_update=True)
        updated = lifecycle.save_draft(record.to_domain(), employee_data)
        record.apply(updated)
        await self.session.flush()
        logger.debug("Saved draft inputs for payroll run %s", run_id)
        return updated

    async def finalize(
        self,
        company_id: str,
        run_id: UUID,
        employee_data: EmployeeDataInput | None = None,
        finalized_at: datetime | None = None,
    ) -> PayrollRun:
        """Finalize a run, optionally with last-moment inputs.

        On failure the stored draft is left untouched.

        Raises:
            PayrollRunNotFoundError: no such run for the company.
            StateError: the run is already finalized.
            InvalidNetPayError: one or more rows have negative net pay.
        """
        record = await self._load(company_id, run_id, for_update=True)
        finalized = lifecycle.finalize(
            record.to_domain(),
            employee_data,
            rates=self.rates,
            finalized_at=finalized_at,
        )
        record.apply(finalized)
        await self.session.flush()
        return finalized

    async def export_xml(
        self,
        company_id: str,
        run_id: UUID,
        employees: Mapping[str, EmployeeProfile],
        company: CompanyInfo | None = None,
    ) -> str:
        """Statutory XML for a finalized run.

        Raises:
            PayrollRunNotFoundError: no such run for the company.
            StateError: the run is still a draft.
            ValidationError: an employee in the run has no profile.
            TotalsMismatchError: the rows do not sum to the frozen totals.
        """
        record = await self._load(company_id, run_id)
        return generate_statutory_xml(record.to_domain(), employees, company, self.rates)
