"""Payroll run API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from cohesio_payroll.api.dependencies import CompanyId, DbSession, RateTable
from cohesio_payroll.api.schemas import (
    EmployeeDataUpdate,
    EmployeeInputsPayload,
    ErrorResponse,
    ExportRequest,
    FinalizeRequest,
    PayrollRunCreate,
    PayrollRunListResponse,
    PayrollRunResponse,
    PayrollRunSummary,
)
from cohesio_payroll.calculators.payroll_calculator import PayrollCalculator
from cohesio_payroll.calculators.rates import StatutoryRateTable, pinned_rates
from cohesio_payroll.calculators.types import (
    CompanyInfo,
    EmployeeInputs,
    PayrollRun,
    PayrollRunStatus,
)
from cohesio_payroll.services.pay_run_service import PayrollRunService

router = APIRouter(prefix="/pay-runs", tags=["pay-runs"])


def _run_response(run: PayrollRun, rates: StatutoryRateTable) -> PayrollRunResponse:
    """Rows are never stored; recompute them for every read.

    Finalized runs recompute with their pinned table so rows always sum to
    the frozen totals.
    """
    calculator = PayrollCalculator(pinned_rates(run.rate_snapshot, rates))
    rows = calculator.compute_run(run.employee_data)
    return PayrollRunResponse.from_run(run, rows, calculator.aggregate(rows.values()))


def _employee_data(
    payload: dict[str, EmployeeInputsPayload] | None,
) -> dict[str, EmployeeInputs] | None:
    if payload is None:
        return None
    return {employee_id: inputs.to_domain() for employee_id, inputs in payload.items()}


# ============================================================================
# Payroll Run CRUD
# ============================================================================


@router.post(
    "",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_pay_run(
    db: DbSession,
    company_id: CompanyId,
    rates: RateTable,
    payload: PayrollRunCreate,
) -> PayrollRunResponse:
    """Create a draft run for a period.

    Inputs default from the employees' compensation when only profiles are
    supplied.
    """
    service = PayrollRunService(db, rates)
    run = await service.create_draft(
        company_id,
        payload.period,
        employee_data=_employee_data(payload.employee_data),
        profiles=[employee.to_domain() for employee in payload.employees]
        if payload.employees is not None
        else None,
    )
    return _run_response(run, rates)


@router.get(
    "",
    response_model=PayrollRunListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_pay_runs(
    db: DbSession,
    company_id: CompanyId,
    status_filter: Annotated[PayrollRunStatus | None, Query(alias="status")] = None,
) -> PayrollRunListResponse:
    """List a company's payroll runs, most recent period first."""
    runs = await PayrollRunService(db).list_runs(company_id, status=status_filter)
    return PayrollRunListResponse(
        items=[PayrollRunSummary.from_run(run) for run in runs],
        total=len(runs),
    )


@router.get(
    "/{run_id}",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_pay_run(
    db: DbSession,
    company_id: CompanyId,
    rates: RateTable,
    run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Get a payroll run with its computed rows."""
    run = await PayrollRunService(db, rates).get_run(company_id, run_id)
    return _run_response(run, rates)


@router.put(
    "/{run_id}/employee-data",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def save_employee_data(
    db: DbSession,
    company_id: CompanyId,
    rates: RateTable,
    run_id: Annotated[UUID, Path()],
    payload: EmployeeDataUpdate,
) -> PayrollRunResponse:
    """Replace a draft's employee inputs."""
    run = await PayrollRunService(db, rates).save_draft(
        company_id, run_id, _employee_data(payload.employee_data)
    )
    return _run_response(run, rates)


# ============================================================================
# Payroll Run State Transitions
# ============================================================================


@router.post(
    "/{run_id}/finalize",
    response_model=PayrollRunResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def finalize_pay_run(
    db: DbSession,
    company_id: CompanyId,
    rates: RateTable,
    run_id: Annotated[UUID, Path()],
    payload: FinalizeRequest | None = None,
) -> PayrollRunResponse:
    """Validate every row and freeze the run. All-or-nothing."""
    run = await PayrollRunService(db, rates).finalize(
        company_id,
        run_id,
        employee_data=_employee_data(payload.employee_data) if payload else None,
    )
    return _run_response(run, rates)


@router.post(
    "/{run_id}/export",
    response_class=Response,
    responses={
        200: {"content": {"application/xml": {}}},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def export_pay_run(
    db: DbSession,
    company_id: CompanyId,
    rates: RateTable,
    run_id: Annotated[UUID, Path()],
    payload: ExportRequest,
) -> Response:
    """Statutory salaries XML for a finalized run."""
    company = CompanyInfo(**payload.company.model_dump()) if payload.company else None
    xml = await PayrollRunService(db, rates).export_xml(
        company_id,
        run_id,
        {employee.employee_id: employee.to_domain() for employee in payload.employees},
        company=company,
    )
    return Response(content=xml, media_type="application/xml")
