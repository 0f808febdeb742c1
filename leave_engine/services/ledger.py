"""Entitlement ledger: the only writer of leave balance numbers.

Every mutation reads the row with ``FOR UPDATE`` and writes it back with a
conditional update on ``version``. A stale version raises
``ConcurrentUpdateConflict``; callers retry through ``retry_on_conflict``.
All functions run inside the caller's transaction.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import delete, select, update
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.db import unit_of_work
from leave_engine.exceptions import ConcurrentUpdateConflict, InsufficientBalance, NoBalanceConfigured
from leave_engine.models.balance import LeaveBalance
from leave_engine.models.enums import LeaveType
from leave_engine.schemas.balance import BalanceListResponse, BalanceResponse
from leave_engine.services import clock

if TYPE_CHECKING:
    import uuid
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ZERO = Decimal(0)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_balance_response(balance: LeaveBalance) -> BalanceResponse:
    return BalanceResponse(
        id=balance.id,
        employee_id=balance.employee_id,
        leave_type=LeaveType(balance.leave_type),
        year=balance.year,
        total_allowed=float(balance.total_allowed),
        used=float(balance.used),
        carry_forwarded=float(balance.carry_forwarded),
        available=float(balance.total_allowed - balance.used),
        updated_at=balance.updated_at,
    )


def _row_filter(employee_id: uuid.UUID, leave_type: str, year: int) -> list:
    return [
        col(LeaveBalance.employee_id) == employee_id,
        col(LeaveBalance.leave_type) == leave_type,
        col(LeaveBalance.year) == year,
    ]


async def _get_balance_for_update(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
) -> LeaveBalance:
    """Lock and reload the ledger row. Raises NoBalanceConfigured if absent."""
    result = await session.execute(
        select(LeaveBalance)
        .where(*_row_filter(employee_id, leave_type, year))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NoBalanceConfigured(f"No {leave_type} balance configured for {year}")
    return balance


async def _write_balance(session: AsyncSession, balance: LeaveBalance, **values: object) -> LeaveBalance:
    """Apply ``values`` only if the row still carries the version we read."""
    expected = balance.version
    result = await session.execute(
        update(LeaveBalance)
        .where(col(LeaveBalance.id) == balance.id, col(LeaveBalance.version) == expected)
        .values(**values, version=expected + 1, updated_at=clock.now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConcurrentUpdateConflict(f"Balance {balance.id} was modified concurrently")
    await session.refresh(balance)
    return balance


def _check_capacity(balance: LeaveBalance, new_used: Decimal) -> None:
    if new_used > balance.total_allowed:
        available = balance.total_allowed - balance.used
        raise InsufficientBalance(
            f"Insufficient {balance.leave_type} balance: {available} day(s) available for {balance.year}"
        )
    if new_used < _ZERO:
        raise InsufficientBalance(f"Ledger for {balance.leave_type} {balance.year} would drop below zero used days")


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
) -> LeaveBalance | None:
    result = await session.execute(
        select(LeaveBalance)
        .where(*_row_filter(employee_id, leave_type, year))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def require_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
) -> LeaveBalance:
    balance = await get_balance(session, employee_id, leave_type, year)
    if balance is None:
        raise NoBalanceConfigured(f"No {leave_type} balance configured for {year}")
    return balance


async def list_employee_balances(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    year: int,
) -> BalanceListResponse:
    """All ledger rows of an employee for a year, ordered by leave type."""
    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.organization_id) == organization_id,
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.year) == year,
        )
        .order_by(col(LeaveBalance.leave_type))
    )
    balances = list(result.scalars().all())
    return BalanceListResponse(items=[_build_balance_response(b) for b in balances], total=len(balances))


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def debit(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
    days: Decimal,
) -> LeaveBalance:
    """Consume ``days``. Raises InsufficientBalance if used would exceed total."""
    balance = await _get_balance_for_update(session, employee_id, leave_type, year)
    new_used = balance.used + days
    _check_capacity(balance, new_used)
    return await _write_balance(session, balance, used=new_used)


async def credit(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
    days: Decimal,
) -> LeaveBalance:
    """Give back ``days``, flooring used at zero."""
    balance = await _get_balance_for_update(session, employee_id, leave_type, year)
    return await _write_balance(session, balance, used=max(balance.used - days, _ZERO))


async def adjust_for_edit(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
    old_days: Decimal,
    new_days: Decimal,
) -> LeaveBalance:
    """Move an already-debited request from ``old_days`` to ``new_days``.

    Capacity is re-checked on reductions too, so a corrupted row surfaces
    instead of being written back.
    """
    balance = await _get_balance_for_update(session, employee_id, leave_type, year)
    new_used = balance.used + (new_days - old_days)
    _check_capacity(balance, new_used)
    if new_used == balance.used:
        return balance
    return await _write_balance(session, balance, used=new_used)


async def initialize(
    session: AsyncSession,
    *,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
    total_allowed: Decimal,
    carry_forwarded: Decimal = _ZERO,
) -> LeaveBalance:
    """Create a year row with nothing used."""
    balance = LeaveBalance(
        organization_id=organization_id,
        employee_id=employee_id,
        leave_type=leave_type,
        year=year,
        total_allowed=total_allowed,
        used=_ZERO,
        carry_forwarded=carry_forwarded,
        updated_at=clock.now(),
    )
    session.add(balance)
    await session.flush()
    return balance


async def reset_year(
    session: AsyncSession,
    *,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
    total_allowed: Decimal,
    carry_forwarded: Decimal,
) -> LeaveBalance:
    """Overwrite (or create) a year row with fresh allowance and zero used."""
    result = await session.execute(
        select(LeaveBalance)
        .where(*_row_filter(employee_id, leave_type, year))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    balance = result.scalar_one_or_none()
    if balance is None:
        return await initialize(
            session,
            organization_id=organization_id,
            employee_id=employee_id,
            leave_type=leave_type,
            year=year,
            total_allowed=total_allowed,
            carry_forwarded=carry_forwarded,
        )
    return await _write_balance(
        session,
        balance,
        total_allowed=total_allowed,
        carry_forwarded=carry_forwarded,
        used=_ZERO,
    )


async def remove_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: str,
    year: int,
) -> int:
    result = await session.execute(delete(LeaveBalance).where(*_row_filter(employee_id, leave_type, year)))
    return result.rowcount


async def purge_balances_before(
    session: AsyncSession,
    cutoff_year: int,
    organization_id: uuid.UUID | None = None,
) -> int:
    """Delete ledger rows for years strictly before ``cutoff_year``."""
    query = delete(LeaveBalance).where(col(LeaveBalance.year) < cutoff_year)
    if organization_id is not None:
        query = query.where(col(LeaveBalance.organization_id) == organization_id)
    result = await session.execute(query)
    return result.rowcount


# ---------------------------------------------------------------------------
# Conflict retry
# ---------------------------------------------------------------------------


async def retry_on_conflict(
    session: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    description: str,
) -> T:
    """Run ``operation`` in its own unit of work, retrying ledger conflicts.

    Each attempt starts from a rolled-back session, so the operation must
    re-read whatever it mutates.
    """
    attempts = max(get_settings().conflict_retry_attempts, 1)
    attempt = 1
    while True:
        try:
            async with unit_of_work(session):
                return await operation()
        except ConcurrentUpdateConflict:
            if attempt >= attempts:
                raise
            logger.warning("Ledger conflict during %s (attempt %d/%d), retrying", description, attempt, attempts)
            attempt += 1
