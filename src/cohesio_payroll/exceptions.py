"""Errors raised by the payroll and leave engine."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID


class PayrollEngineError(Exception):
    """Base class for all engine errors."""


class ValidationError(PayrollEngineError):
    """Raised when a date, money or configuration input is malformed."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InsufficientBalanceError(ValidationError):
    """Raised when a leave request exceeds the available balance."""

    def __init__(self, requested: object, available: object):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient balance: requested {requested} day(s), "
            f"only {available} day(s) remaining",
            field="total_days",
        )


class DuplicatePeriodError(PayrollEngineError):
    """Raised when a payroll run already exists for a period."""

    def __init__(self, period: str):
        self.period = period
        super().__init__(
            f"A payroll run for period '{period}' already exists; "
            "continue the existing run instead"
        )


class InvalidNetPayError(PayrollEngineError):
    """Raised when finalize finds one or more rows with negative net pay."""

    def __init__(self, employee_ids: Iterable[str]):
        self.employee_ids = sorted(employee_ids)
        super().__init__(
            f"{len(self.employee_ids)} employee(s) have negative net pay: "
            + ", ".join(self.employee_ids)
        )


class StateError(PayrollEngineError):
    """Raised when an operation targets a run in the wrong lifecycle state."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayrollRunNotFoundError(PayrollEngineError):
    """Raised when a payroll run id does not resolve."""

    def __init__(self, run_id: UUID):
        self.run_id = run_id
        super().__init__(f"Payroll run {run_id} not found")


class TotalsMismatchError(PayrollEngineError):
    """Raised when recomputed rows of a finalized run disagree with its frozen totals."""

    def __init__(self, run_id: UUID, field: str, frozen: object, recomputed: object):
        self.run_id = run_id
        self.field = field
        self.frozen = frozen
        self.recomputed = recomputed
        super().__init__(
            f"Payroll run {run_id} froze {field}={frozen}, but its rows sum to "
            f"{recomputed}. Refusing to emit inconsistent figures."
        )
