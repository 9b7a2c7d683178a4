"""Stateless calculation endpoints."""

from fastapi import APIRouter, status

from cohesio_payroll.api.dependencies import Policy, RateTable
from cohesio_payroll.api.schemas import (
    ComputedRowResponse,
    EmployeeInputsPayload,
    ErrorResponse,
    LeaveBalanceRequest,
    LeaveBalanceResponse,
    PayPeriodListResponse,
    PayPeriodResponse,
    PayScheduleRequest,
)
from cohesio_payroll.calculators.accrual import ensure_sufficient_balance, leave_balance
from cohesio_payroll.calculators.payroll_calculator import PayrollCalculator
from cohesio_payroll.calculators.schedule import build_schedule, generate_pay_periods

router = APIRouter(prefix="/calculations", tags=["calculations"])


@router.post(
    "/payroll-row",
    response_model=ComputedRowResponse,
    status_code=status.HTTP_200_OK,
)
async def compute_payroll_row(
    payload: EmployeeInputsPayload,
    rates: RateTable,
) -> ComputedRowResponse:
    """Compute one employee's payroll row."""
    row = PayrollCalculator(rates).compute_row(payload.to_domain())
    return ComputedRowResponse.from_row(row)


@router.post(
    "/leave-balance",
    response_model=LeaveBalanceResponse,
    responses={422: {"model": ErrorResponse}},
)
async def compute_leave_balance(
    payload: LeaveBalanceRequest,
    policy: Policy,
) -> LeaveBalanceResponse:
    """Accrued, used, expired and remaining vacation days.

    With ``requested_days`` set, also checks that a new request fits in the
    remaining balance.
    """
    state = leave_balance(
        payload.to_profile(),
        [request.to_domain() for request in payload.requests],
        as_of=payload.as_of,
        policy=policy,
    )
    if payload.requested_days is not None:
        ensure_sufficient_balance(state, payload.requested_days)
    return LeaveBalanceResponse.from_state(state)


@router.post(
    "/pay-periods",
    response_model=PayPeriodListResponse,
    responses={422: {"model": ErrorResponse}},
)
async def preview_pay_periods(payload: PayScheduleRequest) -> PayPeriodListResponse:
    """Generate a year of pay periods without storing them."""
    schedule = build_schedule(payload.cadence, payload.anchor_payday)
    periods = generate_pay_periods(schedule, payload.year)
    return PayPeriodListResponse(
        items=[PayPeriodResponse.from_period(period) for period in periods],
        total=len(periods),
    )
