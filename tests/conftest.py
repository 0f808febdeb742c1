from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leave_engine.db import get_session
from leave_engine.main import app
from leave_engine.models import SQLModel
from leave_engine.services.attachment import StaticAttachmentStore, set_attachment_store
from leave_engine.services.clock import FixedClock, SystemClock, set_clock
from leave_engine.services.employee import InMemoryEmployeeDirectory, set_employee_directory
from leave_engine.services.notification import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    set_notification_sink,
)
from leave_engine.services.organization import InMemoryOrganizationDirectory, set_organization_directory

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

# Monday. Every test runs with the clock frozen here unless it moves it.
NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@dataclass
class Collaborators:
    employees: InMemoryEmployeeDirectory
    organizations: InMemoryOrganizationDirectory
    notifications: InMemoryNotificationSink
    clock: FixedClock


@pytest.fixture(autouse=True)
def collaborators() -> Iterator[Collaborators]:
    """Fresh in-memory directories, sink and a frozen clock for every test."""
    stubs = Collaborators(
        employees=InMemoryEmployeeDirectory(),
        organizations=InMemoryOrganizationDirectory(),
        notifications=InMemoryNotificationSink(),
        clock=FixedClock(NOW),
    )
    set_employee_directory(stubs.employees)
    set_organization_directory(stubs.organizations)
    set_notification_sink(stubs.notifications)
    set_clock(stubs.clock)
    set_attachment_store(StaticAttachmentStore("https://files.test"))
    yield stubs
    set_employee_directory(InMemoryEmployeeDirectory())
    set_organization_directory(InMemoryOrganizationDirectory())
    set_notification_sink(LoggingNotificationSink())
    set_clock(SystemClock())
    set_attachment_store(StaticAttachmentStore())


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """In-memory SQLite engine with the schema created fresh per test."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
