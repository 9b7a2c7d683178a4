"""Stored pay period endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from cohesio_payroll.api.dependencies import CompanyId, DbSession
from cohesio_payroll.api.schemas import (
    ErrorResponse,
    PayPeriodListResponse,
    PayPeriodResponse,
    PayScheduleRequest,
    PeriodGenerationResponse,
)
from cohesio_payroll.calculators.schedule import build_schedule
from cohesio_payroll.calculators.types import Cadence
from cohesio_payroll.services.pay_period_service import PayPeriodService

router = APIRouter(prefix="/pay-periods", tags=["pay-periods"])


@router.post(
    "",
    response_model=PeriodGenerationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def generate_periods(
    db: DbSession,
    company_id: CompanyId,
    payload: PayScheduleRequest,
) -> PeriodGenerationResponse:
    """Generate and store a year of periods. Safe to repeat."""
    schedule = build_schedule(payload.cadence, payload.anchor_payday)
    result = await PayPeriodService(db).persist_periods(company_id, schedule, payload.year)
    return PeriodGenerationResponse(
        created=len(result.created),
        skipped=len(result.skipped),
        items=[PayPeriodResponse.from_period(period) for period in result.periods],
    )


@router.get(
    "",
    response_model=PayPeriodListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_periods(
    db: DbSession,
    company_id: CompanyId,
    year: Annotated[int | None, Query(ge=1, le=9998)] = None,
    cadence: Cadence | None = None,
) -> PayPeriodListResponse:
    """List stored periods for a company."""
    periods = await PayPeriodService(db).list_periods(
        company_id,
        year=year,
        cadence=cadence.value if cadence else None,
    )
    return PayPeriodListResponse(
        items=[PayPeriodResponse.from_period(period) for period in periods],
        total=len(periods),
    )
