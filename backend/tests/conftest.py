from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shiftpay.api.deps import get_now
from shiftpay.db import build_engine, get_session
from shiftpay.main import app
from shiftpay.models import SQLModel
from shiftpay.services.notifications import InMemoryNotificationService, set_notification_service
from shiftpay.services.workers import InMemoryWorkerService, set_worker_service

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

# Reference instant handed to every request through the get_now dependency.
NOW = datetime(2024, 3, 5, 12, 0, tzinfo=UTC)


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Create a fresh database per test.

    Defaults to a throwaway sqlite file; set TEST_DATABASE_URL to run the
    suite against Postgres instead.
    """
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    _engine = build_engine(url)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Session for inspecting what the API committed."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the session and clock dependencies overridden.

    Each request gets its own session and really commits, as in production.
    """

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_now] = lambda: NOW
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def worker_service() -> Iterator[InMemoryWorkerService]:
    """Fresh user directory for every test; tests seed the workers they need."""
    svc = InMemoryWorkerService()
    set_worker_service(svc)
    yield svc
    set_worker_service(InMemoryWorkerService())


@pytest.fixture(autouse=True)
def notifications() -> Iterator[InMemoryNotificationService]:
    """Record notifications instead of delivering them."""
    svc = InMemoryNotificationService()
    set_notification_service(svc)
    yield svc
    set_notification_service(InMemoryNotificationService())
