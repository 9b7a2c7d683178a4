"""Payroll run lifecycle and persistence services."""

from cohesio_payroll.services.pay_period_service import PayPeriodService, PeriodGenerationResult
from cohesio_payroll.services.pay_run_service import PayrollRunService
from cohesio_payroll.services.state_machine import PayrollRunStateMachine

__all__ = [
    "PayPeriodService",
    "PayrollRunService",
    "PayrollRunStateMachine",
    "PeriodGenerationResult",
]
