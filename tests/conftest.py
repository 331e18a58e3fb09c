"""
Test configuration and fixtures.

Provides:
- A fresh SQLite database per test (file-backed so separate sessions see commits)
- Owner / outsider / super admin users
- HTTPX AsyncClient over the ASGI app, with outbound dispatch captured by a MockTransport
"""
import os
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["INTERNAL_WEBHOOK_SECRET"] = "test-internal-secret"
os.environ["DISPATCH_URL"] = "http://dispatcher.test/api/internal/dispatch"

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import chatpad.models  # noqa: F401
from chatpad.main import app
from chatpad.database import get_session
from chatpad.api.deps import get_event_dispatcher
from chatpad.models.user import User
from chatpad.services.dispatch_service import EventDispatcher
from tests.factories import create_user, DispatchRecorder


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def engine(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'chatpad.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
async def owner(db) -> User:
    return await create_user(db, email="aaron@test.com")


@pytest.fixture
async def outsider(db) -> User:
    return await create_user(db, email="mallory@test.com")


@pytest.fixture
async def super_admin(db) -> User:
    return await create_user(db, email="root@pilot.test", owner=False, platform_role="super_admin")


# =============================================================================
# Dispatch capture
# =============================================================================

@pytest.fixture
def dispatch_recorder() -> DispatchRecorder:
    return DispatchRecorder()


@pytest.fixture
def dispatcher(session_factory, dispatch_recorder) -> EventDispatcher:
    return EventDispatcher(session_factory=session_factory, client=dispatch_recorder.client())


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(session_factory, dispatcher) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient against the app, sharing the test database."""
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_event_dispatcher] = lambda: dispatcher

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()
