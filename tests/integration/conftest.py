"""Integration test fixtures with an in-memory database."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cohesio_payroll.api.app import create_app
from cohesio_payroll.api.dependencies import get_accrual_policy, get_db_session, get_rate_table
from cohesio_payroll.calculators.rates import default_rate_table
from cohesio_payroll.calculators.types import AccrualPolicy
from cohesio_payroll.database import make_session_factory
from cohesio_payroll.models import Base

# Use in-memory SQLite for tests (with async support)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

COMPANY_ID = "acme-ma"
OTHER_COMPANY_ID = "globex-ma"


@pytest_asyncio.fixture
async def test_engine():
    """One fresh database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Database session for service-level tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def app(session_factory) -> FastAPI:
    """Application wired to the test database and the built-in rate table."""
    app = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_rate_table] = default_rate_table
    app.dependency_overrides[get_accrual_policy] = AccrualPolicy
    return app


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def company_headers() -> dict[str, str]:
    return {"X-Company-ID": COMPANY_ID}


@pytest.fixture
def other_company_headers() -> dict[str, str]:
    return {"X-Company-ID": OTHER_COMPANY_ID}
