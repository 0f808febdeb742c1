"""Tests for the scheduled rollover worker."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from leave_engine import worker
from leave_engine.db import unit_of_work
from leave_engine.models.enums import Gender, Region
from leave_engine.models.rule import LeaveRule
from leave_engine.services import ledger
from leave_engine.services.employee import EmployeeInfo
from leave_engine.services.organization import OrganizationInfo

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

    from tests.conftest import Collaborators

ORG_ID = uuid.uuid4()


@pytest.fixture
async def seeded(db_session: AsyncSession, collaborators: Collaborators) -> EmployeeInfo:
    employee = EmployeeInfo(
        id=uuid.uuid4(),
        organization_id=ORG_ID,
        first_name="Omar",
        last_name="Haddad",
        email="omar@example.com",
        gender=Gender.MALE,
        joining_date=date(2021, 9, 1),
    )
    collaborators.employees.seed(employee)
    async with unit_of_work(db_session):
        db_session.add(LeaveRule(organization_id=ORG_ID, leave_type="ANNUAL", max_allowed=Decimal(21)))
    return employee


@pytest.fixture(autouse=True)
def _worker_sessions(engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch) -> None:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    monkeypatch.setattr(worker, "get_session_factory", lambda: factory)


def test_is_rollover_day() -> None:
    assert worker.is_rollover_day(date(2026, 12, 31)) is False
    assert worker.is_rollover_day(date(2027, 1, 1)) is True


async def test_runs_on_rollover_day(
    db_session: AsyncSession, collaborators: Collaborators, seeded: EmployeeInfo
) -> None:
    collaborators.clock.set(datetime(2027, 1, 1, 0, 1, tzinfo=UTC))

    await worker.run_scheduled_rollover()

    balance = await ledger.get_balance(db_session, seeded.id, "ANNUAL", 2027)
    assert balance is not None
    assert balance.total_allowed == 21


async def test_skips_other_days(db_session: AsyncSession, seeded: EmployeeInfo) -> None:
    await worker.run_scheduled_rollover()
    assert await ledger.get_balance(db_session, seeded.id, "ANNUAL", 2026) is None


async def test_rollover_day_follows_organization_timezone(
    db_session: AsyncSession, collaborators: Collaborators, seeded: EmployeeInfo
) -> None:
    collaborators.organizations.seed(
        OrganizationInfo(id=ORG_ID, name="Doha Works", region=Region.QATAR, timezone="Asia/Qatar")
    )
    # 22:30 UTC on Dec 31 is already 01:30 on Jan 1 in Doha.
    collaborators.clock.set(datetime(2026, 12, 31, 22, 30, tzinfo=UTC))

    await worker.run_scheduled_rollover()

    balance = await ledger.get_balance(db_session, seeded.id, "ANNUAL", 2027)
    assert balance is not None
    assert balance.total_allowed == 21


async def test_completed_organizations_are_not_rolled_twice(
    db_session: AsyncSession, collaborators: Collaborators, seeded: EmployeeInfo
) -> None:
    collaborators.clock.set(datetime(2027, 1, 1, 0, 1, tzinfo=UTC))
    completed: set[tuple[uuid.UUID, int]] = set()
    await worker.run_scheduled_rollover(completed)
    assert completed == {(ORG_ID, 2027)}

    async with unit_of_work(db_session):
        await ledger.debit(db_session, seeded.id, "ANNUAL", 2027, Decimal(2))
    await worker.run_scheduled_rollover(completed)

    balance = await ledger.require_balance(db_session, seeded.id, "ANNUAL", 2027)
    assert balance.used == 2


async def test_failed_run_is_logged_not_raised(
    collaborators: Collaborators,
    seeded: EmployeeInfo,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    def _broken_factory() -> async_sessionmaker[AsyncSession]:
        raise ConnectionError("database offline")

    monkeypatch.setattr(worker, "get_session_factory", _broken_factory)
    collaborators.clock.set(datetime(2027, 1, 1, 0, 1, tzinfo=UTC))

    await worker.run_scheduled_rollover()

    assert "Rollover run failed for 2027" in caplog.text


# ---------------------------------------------------------------------------
# Sleep scheduling
# ---------------------------------------------------------------------------


def test_sleeps_until_next_utc_midnight() -> None:
    now = datetime(2026, 12, 31, 23, 59, 30, tzinfo=UTC)
    assert worker.seconds_until_next_midnight(now, []) == 30


def test_sleeps_until_earliest_local_midnight() -> None:
    # 20:30 UTC is 23:30 in Doha and 02:00 the next day in Kolkata.
    now = datetime(2026, 12, 31, 20, 30, tzinfo=UTC)
    assert worker.seconds_until_next_midnight(now, ["UTC", "Asia/Qatar"]) == 1800
    assert worker.seconds_until_next_midnight(now, ["Asia/Kolkata"]) == 22 * 3600
