"""Health check endpoints."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from cohesio_payroll import __version__
from cohesio_payroll.api.dependencies import DbSession
from cohesio_payroll.config import Settings, get_settings, load_rate_table
from cohesio_payroll.exceptions import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    database: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness response; the configured rate table must load."""

    status: str
    rate_table: str
    rates_source: str
    ir_brackets: int = 0
    detail: str | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession) -> HealthResponse:
    """Check API and database health."""
    db_status = "unhealthy"
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=db_status,
        version=__version__,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(
    response: Response,
    settings: Annotated[Settings, Depends(get_settings)],
) -> ReadinessResponse:
    """Readiness check: not ready until the statutory rate table validates."""
    source = settings.statutory_rates_file or "built-in"
    try:
        rates = load_rate_table(settings)
    except ValidationError as exc:
        logger.error("Statutory rate table %s is unusable: %s", source, exc)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(
            status="not_ready",
            rate_table="invalid",
            rates_source=source,
            detail=str(exc),
        )

    return ReadinessResponse(
        status="ready",
        rate_table="valid",
        rates_source=source,
        ir_brackets=len(rates.ir_brackets),
    )


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
