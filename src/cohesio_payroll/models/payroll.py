"""Pay period and payroll run persistence models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from cohesio_payroll.calculators.types import (
    EmployeeInputs,
    PayPeriod,
    PayrollRun,
    PayrollRunStatus,
    PeriodState,
)
from cohesio_payroll.models.base import Base, TimestampMixin


# ===== Pay Periods =====


class PayPeriodRecord(Base, TimestampMixin):
    """Stored pay period; one row per (company, cadence, period start)."""

    __tablename__ = "pay_period"

    pay_period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[str] = mapped_column(String, nullable=False)
    cadence: Mapped[str] = mapped_column(String, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_index: Mapped[int] = mapped_column(Integer, nullable=False)
    period_label: Mapped[str] = mapped_column(String, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    payday: Mapped[date] = mapped_column(Date, nullable=False)
    state: Mapped[str] = mapped_column(String, nullable=False, default=PeriodState.OPEN.value)
    period_type: Mapped[str] = mapped_column(String, nullable=False, default="RECURRING")

    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "cadence",
            "period_start",
            name="pay_period_company_cadence_start_unique",
        ),
        CheckConstraint(
            "cadence IN ('weekly', 'biweekly', 'semimonthly', 'monthly')",
            name="pay_period_cadence_check",
        ),
        CheckConstraint("state IN ('OPEN', 'CLOSED')", name="pay_period_state_check"),
        CheckConstraint("period_end >= period_start", name="pay_period_dates_check"),
    )

    def to_domain(self) -> PayPeriod:
        return PayPeriod(
            index=self.period_index,
            period_label=self.period_label,
            period_start=self.period_start,
            period_end=self.period_end,
            payday=self.payday,
            state=PeriodState(self.state),
            type=self.period_type,
        )


# ===== Payroll Runs =====


class PayrollRunRecord(Base, TimestampMixin):
    """Stored payroll run document.

    Only inputs are stored; rows are recomputed on every read. Totals are
    written once, at finalization, together with the rate table they were
    computed under.
    """

    __tablename__ = "payroll_run"

    payroll_run_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[str] = mapped_column(String, nullable=False)
    period: Mapped[str] = mapped_column(String(7), nullable=False)
    period_label: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=PayrollRunStatus.DRAFT.value
    )
    employee_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    total_gross_pay: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    total_net_pay: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    inputs_fingerprint: Mapped[str | None] = mapped_column(String(32), nullable=True)
    rate_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "period", name="payroll_run_company_period_unique"),
        CheckConstraint(
            "status IN ('draft', 'finalized')",
            name="payroll_run_status_check",
        ),
    )

    def to_domain(self) -> PayrollRun:
        return PayrollRun(
            id=self.payroll_run_id,
            period=self.period,
            period_label=self.period_label,
            status=PayrollRunStatus(self.status),
            employee_data={
                employee_id: EmployeeInputs.from_dict(inputs)
                for employee_id, inputs in (self.employee_data or {}).items()
            },
            company_id=self.company_id,
            total_gross_pay=self.total_gross_pay,
            total_net_pay=self.total_net_pay,
            finalized_at=self.finalized_at,
            inputs_fingerprint=self.inputs_fingerprint,
            rate_snapshot=self.rate_snapshot,
        )

    def apply(self, run: PayrollRun) -> None:
        """Copy a lifecycle result back onto the stored document."""
        self.status = run.status.value
        self.employee_data = {
            employee_id: inputs.to_dict() for employee_id, inputs in run.employee_data.items()
        }
        self.total_gross_pay = run.total_gross_pay
        self.total_net_pay = run.total_net_pay
        self.finalized_at = run.finalized_at
        self.inputs_fingerprint = run.inputs_fingerprint
        self.rate_snapshot = run.rate_snapshot

    @classmethod
    def from_domain(cls, run: PayrollRun) -> PayrollRunRecord:
        record = cls(
            payroll_run_id=run.id,
            company_id=run.company_id,
            period=run.period,
            period_label=run.period_label,
        )
        record.apply(run)
        return record
