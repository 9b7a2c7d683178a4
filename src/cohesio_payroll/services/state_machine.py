"""Payroll run state machine with transition validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cohesio_payroll.calculators.types import PayrollRunStatus
from cohesio_payroll.exceptions import StateError

if TYPE_CHECKING:
    from cohesio_payroll.calculators.types import PayrollRun


class PayrollRunStateMachine:
    """State machine for payroll run status transitions.

    Allowed transitions:
    - draft → finalized

    Finalized is terminal: no reopen, no edits, totals frozen.
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollRunStatus.DRAFT: [PayrollRunStatus.FINALIZED],
        PayrollRunStatus.FINALIZED: [],  # Terminal state
    }

    # Statuses where inputs can be modified
    INPUTS_MUTABLE = {
        PayrollRunStatus.DRAFT,
    }

    # Statuses where results are immutable
    RESULTS_IMMUTABLE = {
        PayrollRunStatus.FINALIZED,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising StateError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise StateError(_value(from_status), _value(to_status))

    @classmethod
    def can_modify_inputs(cls, status: str) -> bool:
        """Check if employee inputs can be edited in this status."""
        return status in cls.INPUTS_MUTABLE

    @classmethod
    def are_results_immutable(cls, status: str) -> bool:
        """Check if totals are frozen in this status."""
        return status in cls.RESULTS_IMMUTABLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @classmethod
    def ensure_inputs_mutable(cls, run: PayrollRun) -> None:
        """Raise StateError unless the run still accepts input edits."""
        if not cls.can_modify_inputs(run.status):
            raise StateError(
                _value(run.status),
                _value(run.status),
                f"Payroll run {run.period} is {_value(run.status)} and cannot be edited",
            )


def _value(status: str) -> str:
    return status.value if isinstance(status, PayrollRunStatus) else str(status)
