"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cohesio_payroll.calculators.rates import StatutoryRateTable
from cohesio_payroll.calculators.types import AccrualPolicy
from cohesio_payroll.config import get_settings, load_rate_table
from cohesio_payroll.database import init_db


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency; commits when the request succeeds."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_company_id(
    x_company_id: Annotated[str | None, Header()] = None
) -> str:
    """Extract company ID from header."""
    if not x_company_id or not x_company_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Company-ID header is required",
        )
    return x_company_id.strip()


def get_rate_table() -> StatutoryRateTable:
    """Statutory rates in force for this process."""
    return load_rate_table(get_settings())


def get_accrual_policy() -> AccrualPolicy:
    return get_settings().accrual_policy()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
CompanyId = Annotated[str, Depends(get_company_id)]
RateTable = Annotated[StatutoryRateTable, Depends(get_rate_table)]
Policy = Annotated[AccrualPolicy, Depends(get_accrual_policy)]
