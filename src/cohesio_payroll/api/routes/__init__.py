"""API routes."""

from cohesio_payroll.api.routes.calculations import router as calculations_router
from cohesio_payroll.api.routes.health import router as health_router
from cohesio_payroll.api.routes.pay_periods import router as pay_periods_router
from cohesio_payroll.api.routes.pay_runs import router as pay_runs_router

__all__ = [
    "calculations_router",
    "health_router",
    "pay_periods_router",
    "pay_runs_router",
]
