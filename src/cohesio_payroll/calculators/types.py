"""Type definitions for the payroll and leave calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from cohesio_payroll.calculators.money import ZERO, Money, MoneyInput, parse_money


class Cadence(str, Enum):
    """Payroll frequency."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"


class PeriodState(str, Enum):
    """Pay period state values."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    DRAFT = "draft"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class PaySchedule:
    """Company-wide pay schedule configuration."""

    cadence: Cadence
    anchor_payday: date


@dataclass(frozen=True)
class PayPeriod:
    """One generated pay period."""

    index: int
    period_label: str
    period_start: date
    period_end: date
    payday: date
    state: PeriodState = PeriodState.OPEN
    type: str = "RECURRING"

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "period_label": self.period_label,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "payday": self.payday.isoformat(),
            "state": self.state.value,
            "type": self.type,
        }


@dataclass(frozen=True)
class EmployeeInputs:
    """Editable per-employee inputs of a payroll run."""

    base_salary: Money = ZERO
    bonuses: Money = ZERO
    other_deductions: Money = ZERO

    @classmethod
    def from_raw(
        cls,
        base_salary: MoneyInput = None,
        bonuses: MoneyInput = None,
        other_deductions: MoneyInput = None,
    ) -> EmployeeInputs:
        """Build inputs from numbers or locale-formatted strings."""
        return cls(
            base_salary=parse_money(base_salary),
            bonuses=parse_money(bonuses),
            other_deductions=parse_money(other_deductions),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | EmployeeInputs) -> EmployeeInputs:
        """Accept both snake_case and the camelCase keys of stored run documents."""
        if isinstance(data, EmployeeInputs):
            return data
        return cls.from_raw(
            base_salary=data.get("base_salary", data.get("baseSalary")),
            bonuses=data.get("bonuses"),
            other_deductions=data.get("other_deductions", data.get("otherDeductions")),
        )

    def to_dict(self) -> dict[str, str]:
        """Canonical JSON-safe representation (amounts as strings)."""
        return {
            "base_salary": str(self.base_salary),
            "bonuses": str(self.bonuses),
            "other_deductions": str(self.other_deductions),
        }


@dataclass(frozen=True)
class ComputedRow:
    """Derived pay figures for one employee; never stored."""

    gross_pay: Money
    cnss: Money
    amo: Money
    taxable_income: Money
    ir: Money
    other_deductions: Money
    net_pay: Money


@dataclass(frozen=True)
class PayrollTotals:
    """Company totals, always summed from rows."""

    gross_pay: Money = ZERO
    cnss: Money = ZERO
    amo: Money = ZERO
    ir: Money = ZERO
    other_deductions: Money = ZERO
    net_pay: Money = ZERO
    employee_count: int = 0


@dataclass(frozen=True)
class PayrollRun:
    """Payroll run value. Lifecycle operations return new instances."""

    id: UUID
    period: str  # "YYYY-MM"
    period_label: str
    status: PayrollRunStatus = PayrollRunStatus.DRAFT
    employee_data: dict[str, EmployeeInputs] = field(default_factory=dict)
    company_id: str | None = None
    total_gross_pay: Money | None = None
    total_net_pay: Money | None = None
    finalized_at: datetime | None = None
    inputs_fingerprint: str | None = None
    # Rate table the totals were frozen under, as ``StatutoryRateTable.to_dict()``
    rate_snapshot: dict[str, Any] | None = None

    @property
    def is_finalized(self) -> bool:
        return self.status == PayrollRunStatus.FINALIZED

    @property
    def year(self) -> int:
        return int(self.period[:4])


@dataclass(frozen=True)
class EmployeeProfile:
    """Employee record as supplied by the people directory."""

    employee_id: str
    name: str
    hire_date: date | None = None
    national_id: str | None = None
    address: str | None = None
    cnss_number: str | None = None
    date_of_birth: date | None = None
    compensation: str | None = None
    initial_vacation_balance: Decimal = Decimal("0")

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0] if self.name else ""

    @property
    def last_name(self) -> str:
        return " ".join(self.name.split(" ")[1:]) if self.name else ""


@dataclass(frozen=True)
class CompanyInfo:
    """Company identifiers used on statutory documents."""

    fiscal_id: str | None = None
    name: str | None = None
    address: str | None = None
    rc_number: str | None = None
    cnss_number: str | None = None


@dataclass(frozen=True)
class TimeOffRequest:
    """Time-off request as recorded by the leave workflow."""

    start_date: date
    end_date: date
    total_days: Decimal
    status: str = "Approved"
    leave_type: str = "Vacation"

    @property
    def is_approved(self) -> bool:
        return self.status == "Approved"


@dataclass(frozen=True)
class AccrualPolicy:
    """Vacation accrual parameters."""

    monthly_rate: Decimal = Decimal("1.5")
    retention_years: int = 2


@dataclass(frozen=True)
class LeaveAccrualState:
    """Derived leave position for one employee."""

    accrued: Decimal = Decimal("0")
    used: Decimal = Decimal("0")
    expired: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
