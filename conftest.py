import os
from typing import AsyncGenerator

# Settings are read at import time; point them at an in-memory database
# before anything from libs/ or services/ is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TIMEZONE", "UTC")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import get_current_user
from libs.common.config import get_settings
from libs.db.base import Base
from libs.db.session import get_async_db
from services.checkin_service.app.main import app

# Import the models so metadata includes the item table
from services.checkin_service.models import TableItem  # noqa: F401
from services.checkin_service.repositories import Repositories
from tests.factories import make_super_admin

get_settings.cache_clear()


@pytest_asyncio.fixture
async def test_engine():
    """
    A fresh in-memory database per test.

    StaticPool keeps every session on the one connection, so the schema
    created here is the one the app sees.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False
    )
    session = session_factory()

    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def repos(db_session) -> Repositories:
    return Repositories.from_session(db_session)


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the check-in app.

    Requests run as a super-admin unless a test swaps the user with
    ``override_auth``.
    """

    async def _db():
        yield db_session

    app.dependency_overrides[get_async_db] = _db
    app.dependency_overrides[get_current_user] = lambda: make_super_admin()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
