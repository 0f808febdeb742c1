"""Rollover reports: balance summary and carry-forward outcome per employee."""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_engine.defaults import CARRY_FORWARD_LEAVE_TYPE
from leave_engine.models.balance import LeaveBalance
from leave_engine.schemas.rollover import (
    BalanceSummaryResponse,
    CarryForwardReportItem,
    CarryForwardReportResponse,
)
from leave_engine.services.employee import get_employee_directory

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

_ZERO = Decimal(0)


async def _year_rows(
    session: AsyncSession,
    organization_id: uuid.UUID,
    year: int,
    leave_type: str | None = None,
) -> list[LeaveBalance]:
    filters = [col(LeaveBalance.organization_id) == organization_id, col(LeaveBalance.year) == year]
    if leave_type is not None:
        filters.append(col(LeaveBalance.leave_type) == leave_type)
    result = await session.execute(select(LeaveBalance).where(*filters))
    return list(result.scalars().all())


async def get_balance_summary(
    session: AsyncSession,
    organization_id: uuid.UUID,
    year: int,
) -> BalanceSummaryResponse:
    """Aggregate counts and totals over a year's ledger rows."""
    rows = await _year_rows(session, organization_id, year)

    annual = [r.total_allowed for r in rows if r.leave_type == CARRY_FORWARD_LEAVE_TYPE]
    average_annual = sum(annual, _ZERO) / len(annual) if annual else _ZERO

    return BalanceSummaryResponse(
        year=year,
        total_employees=len({r.employee_id for r in rows}),
        total_balances=len(rows),
        balances_by_leave_type=dict(Counter(r.leave_type for r in rows)),
        total_carry_forwarded=float(sum((r.carry_forwarded for r in rows), _ZERO)),
        average_annual_allowance=round(float(average_annual), 2),
    )


async def get_carry_forward_report(
    session: AsyncSession,
    organization_id: uuid.UUID,
    year: int,
) -> CarryForwardReportResponse:
    """Per employee: last year's annual usage against what was carried into ``year``."""
    current = await _year_rows(session, organization_id, year, CARRY_FORWARD_LEAVE_TYPE)
    previous = {
        r.employee_id: r for r in await _year_rows(session, organization_id, year - 1, CARRY_FORWARD_LEAVE_TYPE)
    }

    directory = get_employee_directory()
    items: list[CarryForwardReportItem] = []
    for row in sorted(current, key=lambda r: str(r.employee_id)):
        prev = previous.get(row.employee_id)
        prev_total = prev.total_allowed if prev is not None else _ZERO
        prev_used = prev.used if prev is not None else _ZERO
        employee = await directory.get_employee(organization_id, row.employee_id)
        items.append(
            CarryForwardReportItem(
                employee_id=row.employee_id,
                employee_name=employee.full_name if employee is not None else None,
                previous_total_allowed=float(prev_total),
                previous_used=float(prev_used),
                unused=float(max(prev_total - prev_used, _ZERO)),
                carry_forwarded=float(row.carry_forwarded),
                new_total_allowed=float(row.total_allowed),
            )
        )

    return CarryForwardReportResponse(year=year, items=items, total=len(items))
