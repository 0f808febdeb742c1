"""Tests for the entitlement ledger: capacity, optimistic locking and retries."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import update
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.db import unit_of_work
from leave_engine.exceptions import ConcurrentUpdateConflict, InsufficientBalance, NoBalanceConfigured
from leave_engine.models.balance import LeaveBalance
from leave_engine.models.enums import LeaveType
from leave_engine.services import clock, ledger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

ORG_ID = uuid.uuid4()
EMPLOYEE_ID = uuid.uuid4()
ANNUAL = LeaveType.ANNUAL.value
YEAR = 2026


async def _seed(
    session: AsyncSession,
    total: int = 10,
    used: int = 0,
    *,
    year: int = YEAR,
    employee_id: uuid.UUID = EMPLOYEE_ID,
    organization_id: uuid.UUID = ORG_ID,
) -> LeaveBalance:
    async with unit_of_work(session):
        balance = await ledger.initialize(
            session,
            organization_id=organization_id,
            employee_id=employee_id,
            leave_type=ANNUAL,
            year=year,
            total_allowed=Decimal(total),
        )
        if used:
            balance = await ledger.debit(session, employee_id, ANNUAL, year, Decimal(used))
    return balance


# ---------------------------------------------------------------------------
# Debit / credit
# ---------------------------------------------------------------------------


async def test_initialize_starts_with_nothing_used(db_session: AsyncSession) -> None:
    balance = await _seed(db_session, total=12)
    assert balance.used == 0
    assert balance.total_allowed == 12
    assert balance.carry_forwarded == 0
    assert balance.version == 1


async def test_new_rows_are_stamped_with_the_service_clock(db_session: AsyncSession) -> None:
    await _seed(db_session)
    stored = await ledger.require_balance(db_session, EMPLOYEE_ID, ANNUAL, YEAR)
    # SQLite drops the offset; the wall time must still be the frozen clock's.
    assert stored.updated_at.replace(tzinfo=None) == clock.now().replace(tzinfo=None)


async def test_debit_increments_used_and_version(db_session: AsyncSession) -> None:
    await _seed(db_session)
    async with unit_of_work(db_session):
        balance = await ledger.debit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal("2.5"))
    assert balance.used == Decimal("2.5")
    assert balance.version == 2


async def test_debit_beyond_total_is_refused(db_session: AsyncSession) -> None:
    await _seed(db_session, total=5, used=4)
    with pytest.raises(InsufficientBalance):
        async with unit_of_work(db_session):
            await ledger.debit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(2))

    balance = await ledger.require_balance(db_session, EMPLOYEE_ID, ANNUAL, YEAR)
    assert balance.used == 4


async def test_debit_up_to_total_is_allowed(db_session: AsyncSession) -> None:
    await _seed(db_session, total=5, used=3)
    async with unit_of_work(db_session):
        balance = await ledger.debit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(2))
    assert balance.used == balance.total_allowed


async def test_second_debit_cannot_oversubscribe(db_session: AsyncSession) -> None:
    await _seed(db_session, total=10)
    async with unit_of_work(db_session):
        await ledger.debit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(6))
    with pytest.raises(InsufficientBalance):
        async with unit_of_work(db_session):
            await ledger.debit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(6))


async def test_credit_floors_at_zero(db_session: AsyncSession) -> None:
    await _seed(db_session, total=10, used=2)
    async with unit_of_work(db_session):
        balance = await ledger.credit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(5))
    assert balance.used == 0


async def test_missing_row_raises_no_balance_configured(db_session: AsyncSession) -> None:
    with pytest.raises(NoBalanceConfigured):
        async with unit_of_work(db_session):
            await ledger.debit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(1))


# ---------------------------------------------------------------------------
# Edit adjustment
# ---------------------------------------------------------------------------


async def test_adjust_for_edit_applies_difference(db_session: AsyncSession) -> None:
    await _seed(db_session, total=10, used=4)
    async with unit_of_work(db_session):
        balance = await ledger.adjust_for_edit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(4), Decimal(6))
    assert balance.used == 6

    async with unit_of_work(db_session):
        balance = await ledger.adjust_for_edit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(6), Decimal(1))
    assert balance.used == 1


async def test_adjust_for_edit_rejects_overflow(db_session: AsyncSession) -> None:
    await _seed(db_session, total=5, used=4)
    with pytest.raises(InsufficientBalance):
        async with unit_of_work(db_session):
            await ledger.adjust_for_edit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(4), Decimal(6))


async def test_adjust_for_edit_checks_reductions_too(db_session: AsyncSession) -> None:
    # Row says 1 day used but the request claims 3: reducing to 1 would go negative.
    await _seed(db_session, total=5, used=1)
    with pytest.raises(InsufficientBalance):
        async with unit_of_work(db_session):
            await ledger.adjust_for_edit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(3), Decimal(1))


# ---------------------------------------------------------------------------
# Optimistic locking
# ---------------------------------------------------------------------------


async def test_stale_version_raises_conflict(db_session: AsyncSession) -> None:
    stale = await _seed(db_session)

    async with unit_of_work(db_session):
        await db_session.execute(
            update(LeaveBalance)
            .where(col(LeaveBalance.id) == stale.id)
            .values(version=stale.version + 1)
            .execution_options(synchronize_session=False)
        )

    with pytest.raises(ConcurrentUpdateConflict):
        async with unit_of_work(db_session):
            await ledger._write_balance(db_session, stale, used=Decimal(1))


async def test_retry_on_conflict_retries_then_succeeds(db_session: AsyncSession) -> None:
    await _seed(db_session)
    calls = 0

    async def _operation() -> LeaveBalance:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise ConcurrentUpdateConflict("simulated")
        return await ledger.debit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(1))

    balance = await ledger.retry_on_conflict(db_session, _operation, description="test debit")
    assert calls == 2
    assert balance.used == 1


async def test_retry_on_conflict_gives_up(db_session: AsyncSession) -> None:
    calls = 0

    async def _operation() -> None:
        nonlocal calls
        calls += 1
        raise ConcurrentUpdateConflict("always stale")

    with pytest.raises(ConcurrentUpdateConflict):
        await ledger.retry_on_conflict(db_session, _operation, description="test")
    assert calls == get_settings().conflict_retry_attempts


async def test_retry_on_conflict_does_not_retry_other_errors(db_session: AsyncSession) -> None:
    await _seed(db_session, total=1)
    calls = 0

    async def _operation() -> LeaveBalance:
        nonlocal calls
        calls += 1
        return await ledger.debit(db_session, EMPLOYEE_ID, ANNUAL, YEAR, Decimal(2))

    with pytest.raises(InsufficientBalance):
        await ledger.retry_on_conflict(db_session, _operation, description="test")
    assert calls == 1


# ---------------------------------------------------------------------------
# Reset, removal and purge
# ---------------------------------------------------------------------------


async def test_reset_year_overwrites_and_clears_used(db_session: AsyncSession) -> None:
    await _seed(db_session, total=10, used=4)
    async with unit_of_work(db_session):
        balance = await ledger.reset_year(
            db_session,
            organization_id=ORG_ID,
            employee_id=EMPLOYEE_ID,
            leave_type=ANNUAL,
            year=YEAR,
            total_allowed=Decimal(15),
            carry_forwarded=Decimal(5),
        )
    assert (balance.total_allowed, balance.used, balance.carry_forwarded) == (15, 0, 5)


async def test_remove_balance(db_session: AsyncSession) -> None:
    await _seed(db_session)
    async with unit_of_work(db_session):
        removed = await ledger.remove_balance(db_session, EMPLOYEE_ID, ANNUAL, YEAR)
    assert removed == 1
    assert await ledger.get_balance(db_session, EMPLOYEE_ID, ANNUAL, YEAR) is None


async def test_purge_is_scoped_to_organization(db_session: AsyncSession) -> None:
    other_org = uuid.uuid4()
    other_employee = uuid.uuid4()
    await _seed(db_session, year=2021)
    await _seed(db_session, year=2023)
    await _seed(db_session, year=2021, employee_id=other_employee, organization_id=other_org)

    async with unit_of_work(db_session):
        purged = await ledger.purge_balances_before(db_session, 2023, ORG_ID)

    assert purged == 1
    assert await ledger.get_balance(db_session, EMPLOYEE_ID, ANNUAL, 2023) is not None
    assert await ledger.get_balance(db_session, other_employee, ANNUAL, 2021) is not None


async def test_list_employee_balances(db_session: AsyncSession) -> None:
    await _seed(db_session, total=10, used=3)
    await _seed(db_session, year=2025)

    result = await ledger.list_employee_balances(db_session, ORG_ID, EMPLOYEE_ID, YEAR)
    assert result.total == 1
    item = result.items[0]
    assert item.leave_type == LeaveType.ANNUAL
    assert item.available == 7.0
