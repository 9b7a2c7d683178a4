"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cohesio_payroll import __version__
from cohesio_payroll.api.routes import (
    calculations_router,
    health_router,
    pay_periods_router,
    pay_runs_router,
)
from cohesio_payroll.config import configure_logging
from cohesio_payroll.database import dispose_db, init_db
from cohesio_payroll.exceptions import (
    DuplicatePeriodError,
    InvalidNetPayError,
    PayrollEngineError,
    PayrollRunNotFoundError,
    StateError,
    TotalsMismatchError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    configure_logging()
    init_db()
    logger.info("Payroll engine API %s started", __version__)
    yield
    await dispose_db()


def _error(status_code: int, exc: Exception, code: str, context: dict | None = None) -> JSONResponse:
    content: dict = {"detail": str(exc), "code": code}
    if context:
        content["context"] = context
    return JSONResponse(status_code=status_code, content=content)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Cohesio Payroll Engine API",
        description="Payroll runs, pay period schedules and leave accrual",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(
            422,
            exc,
            "VALIDATION_ERROR",
            {"field": exc.field} if exc.field else None,
        )

    @app.exception_handler(InvalidNetPayError)
    async def invalid_net_pay_handler(request: Request, exc: InvalidNetPayError) -> JSONResponse:
        return _error(
            422,
            exc,
            "INVALID_NET_PAY",
            {"employee_ids": exc.employee_ids},
        )

    @app.exception_handler(DuplicatePeriodError)
    async def duplicate_period_handler(request: Request, exc: DuplicatePeriodError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, exc, "DUPLICATE_PERIOD", {"period": exc.period})

    @app.exception_handler(StateError)
    async def state_error_handler(request: Request, exc: StateError) -> JSONResponse:
        return _error(
            status.HTTP_409_CONFLICT,
            exc,
            "INVALID_STATE",
            {"from_status": exc.from_status, "to_status": exc.to_status},
        )

    @app.exception_handler(TotalsMismatchError)
    async def totals_mismatch_handler(request: Request, exc: TotalsMismatchError) -> JSONResponse:
        return _error(
            status.HTTP_409_CONFLICT,
            exc,
            "TOTALS_MISMATCH",
            {"field": exc.field, "frozen": str(exc.frozen), "recomputed": str(exc.recomputed)},
        )

    @app.exception_handler(PayrollRunNotFoundError)
    async def not_found_handler(request: Request, exc: PayrollRunNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, exc, "NOT_FOUND")

    @app.exception_handler(PayrollEngineError)
    async def engine_error_handler(request: Request, exc: PayrollEngineError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, exc, "ENGINE_ERROR")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    app.include_router(health_router)
    app.include_router(calculations_router, prefix="/api/v1")
    app.include_router(pay_periods_router, prefix="/api/v1")
    app.include_router(pay_runs_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
