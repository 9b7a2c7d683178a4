"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cohesio_payroll.calculators.types import (
    Cadence,
    ComputedRow,
    EmployeeInputs,
    EmployeeProfile,
    LeaveAccrualState,
    PayPeriod,
    PayrollRun,
    PayrollTotals,
    TimeOffRequest,
)

# Amounts arrive as JSON numbers or locale-formatted strings ("1 234,50 MAD")
MoneyValue = Decimal | str | None


# ============================================================================
# Employee inputs and computed rows
# ============================================================================


class EmployeeInputsPayload(BaseModel):
    """Editable inputs for one employee."""

    base_salary: MoneyValue = None
    bonuses: MoneyValue = None
    other_deductions: MoneyValue = None

    def to_domain(self) -> EmployeeInputs:
        return EmployeeInputs.from_raw(self.base_salary, self.bonuses, self.other_deductions)


class EmployeeInputsResponse(BaseModel):
    """Stored inputs for one employee."""

    model_config = ConfigDict(from_attributes=True)

    base_salary: Decimal
    bonuses: Decimal
    other_deductions: Decimal


class ComputedRowResponse(BaseModel):
    """Derived payroll row."""

    model_config = ConfigDict(from_attributes=True)

    gross_pay: Decimal
    cnss: Decimal
    amo: Decimal
    taxable_income: Decimal
    ir: Decimal
    other_deductions: Decimal
    net_pay: Decimal

    @classmethod
    def from_row(cls, row: ComputedRow) -> "ComputedRowResponse":
        return cls.model_validate(row)


class PayrollTotalsResponse(BaseModel):
    """Totals derived from a run's rows."""

    model_config = ConfigDict(from_attributes=True)

    gross_pay: Decimal
    cnss: Decimal
    amo: Decimal
    ir: Decimal
    other_deductions: Decimal
    net_pay: Decimal
    employee_count: int

    @classmethod
    def from_totals(cls, totals: PayrollTotals) -> "PayrollTotalsResponse":
        return cls.model_validate(totals)


# ============================================================================
# Pay periods
# ============================================================================


class PayScheduleRequest(BaseModel):
    """Schedule definition for period generation."""

    cadence: Cadence
    anchor_payday: date
    year: int = Field(ge=1, le=9998)


class PayPeriodResponse(BaseModel):
    """Schema for a pay period."""

    model_config = ConfigDict(from_attributes=True)

    index: int
    period_label: str
    period_start: date
    period_end: date
    payday: date
    state: str
    type: str

    @classmethod
    def from_period(cls, period: PayPeriod) -> "PayPeriodResponse":
        return cls(
            index=period.index,
            period_label=period.period_label,
            period_start=period.period_start,
            period_end=period.period_end,
            payday=period.payday,
            state=period.state.value,
            type=period.type,
        )


class PayPeriodListResponse(BaseModel):
    """Schema for listing pay periods."""

    items: list[PayPeriodResponse]
    total: int


class PeriodGenerationResponse(BaseModel):
    """Schema for a stored schedule generation."""

    created: int
    skipped: int
    items: list[PayPeriodResponse]


# ============================================================================
# Leave balance
# ============================================================================


class TimeOffRequestPayload(BaseModel):
    """A time-off request as recorded by the leave workflow."""

    start_date: date
    end_date: date
    total_days: Decimal = Field(ge=0)
    status: str = "Approved"
    leave_type: str = "Vacation"

    def to_domain(self) -> TimeOffRequest:
        return TimeOffRequest(
            start_date=self.start_date,
            end_date=self.end_date,
            total_days=self.total_days,
            status=self.status,
            leave_type=self.leave_type,
        )


class LeaveBalanceRequest(BaseModel):
    """Inputs for a leave balance computation."""

    employee_id: str = "employee"
    hire_date: date | None = None
    initial_vacation_balance: Decimal = Decimal("0")
    requests: list[TimeOffRequestPayload] = Field(default_factory=list)
    as_of: date | None = None
    requested_days: Decimal | None = None

    def to_profile(self) -> EmployeeProfile:
        return EmployeeProfile(
            employee_id=self.employee_id,
            name=self.employee_id,
            hire_date=self.hire_date,
            initial_vacation_balance=self.initial_vacation_balance,
        )


class LeaveBalanceResponse(BaseModel):
    """Derived leave position."""

    model_config = ConfigDict(from_attributes=True)

    accrued: Decimal
    used: Decimal
    expired: Decimal
    balance: Decimal

    @classmethod
    def from_state(cls, state: LeaveAccrualState) -> "LeaveBalanceResponse":
        return cls.model_validate(state)


# ============================================================================
# Payroll runs
# ============================================================================


class EmployeeProfilePayload(BaseModel):
    """Employee record supplied by the HR collaborator."""

    employee_id: str
    name: str
    hire_date: date | None = None
    national_id: str | None = None
    address: str | None = None
    cnss_number: str | None = None
    date_of_birth: date | None = None
    compensation: str | None = None
    initial_vacation_balance: Decimal = Decimal("0")

    def to_domain(self) -> EmployeeProfile:
        return EmployeeProfile(**self.model_dump())


class CompanyInfoPayload(BaseModel):
    """Company identifiers for the statutory export."""

    fiscal_id: str | None = None
    name: str | None = None
    address: str | None = None
    rc_number: str | None = None
    cnss_number: str | None = None


class PayrollRunCreate(BaseModel):
    """Schema for creating a draft run."""

    period: str = Field(description="Pay period key, YYYY-MM")
    employee_data: dict[str, EmployeeInputsPayload] | None = None
    employees: list[EmployeeProfilePayload] | None = None


class EmployeeDataUpdate(BaseModel):
    """Schema for replacing a draft's inputs."""

    employee_data: dict[str, EmployeeInputsPayload]


class FinalizeRequest(BaseModel):
    """Schema for finalizing a run, optionally with last-moment inputs."""

    employee_data: dict[str, EmployeeInputsPayload] | None = None


class ExportRequest(BaseModel):
    """Schema for a statutory export."""

    employees: list[EmployeeProfilePayload]
    company: CompanyInfoPayload | None = None


class PayrollRunResponse(BaseModel):
    """Schema for a payroll run with rows recomputed from its inputs."""

    id: UUID
    company_id: str | None = None
    period: str
    period_label: str
    status: str
    employee_data: dict[str, EmployeeInputsResponse]
    rows: dict[str, ComputedRowResponse]
    totals: PayrollTotalsResponse
    total_gross_pay: Decimal | None = None
    total_net_pay: Decimal | None = None
    finalized_at: datetime | None = None
    inputs_fingerprint: str | None = None
    rate_snapshot: dict[str, Any] | None = None

    @classmethod
    def from_run(
        cls,
        run: PayrollRun,
        rows: dict[str, ComputedRow],
        totals: PayrollTotals,
    ) -> "PayrollRunResponse":
        return cls(
            id=run.id,
            company_id=run.company_id,
            period=run.period,
            period_label=run.period_label,
            status=run.status.value,
            employee_data={
                employee_id: EmployeeInputsResponse.model_validate(inputs)
                for employee_id, inputs in run.employee_data.items()
            },
            rows={employee_id: ComputedRowResponse.from_row(row) for employee_id, row in rows.items()},
            totals=PayrollTotalsResponse.from_totals(totals),
            total_gross_pay=run.total_gross_pay,
            total_net_pay=run.total_net_pay,
            finalized_at=run.finalized_at,
            inputs_fingerprint=run.inputs_fingerprint,
            rate_snapshot=run.rate_snapshot,
        )


class PayrollRunSummary(BaseModel):
    """Schema for a run in a listing."""

    id: UUID
    period: str
    period_label: str
    status: str
    employee_count: int
    total_gross_pay: Decimal | None = None
    total_net_pay: Decimal | None = None
    finalized_at: datetime | None = None

    @classmethod
    def from_run(cls, run: PayrollRun) -> "PayrollRunSummary":
        return cls(
            id=run.id,
            period=run.period,
            period_label=run.period_label,
            status=run.status.value,
            employee_count=len(run.employee_data),
            total_gross_pay=run.total_gross_pay,
            total_net_pay=run.total_net_pay,
            finalized_at=run.finalized_at,
        )


class PayrollRunListResponse(BaseModel):
    """Schema for listing payroll runs."""

    items: list[PayrollRunSummary]
    total: int


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
