"""Shared fixtures for greport tests.

Store tests run against an in-memory SQLite database (aiosqlite) created
fresh for each test, so no server is required.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from greport.core.database import create_all, create_session_factory


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def engine():
    """One in-memory database per test; StaticPool keeps it on a single connection."""
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return create_session_factory(engine)
