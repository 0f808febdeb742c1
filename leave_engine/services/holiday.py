from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import extract, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_engine.db import unit_of_work
from leave_engine.exceptions import AppError, NotFound
from leave_engine.models.enums import AuditAction, AuditEntityType
from leave_engine.models.holiday import Holiday
from leave_engine.schemas.holiday import HolidayListResponse, HolidayResponse
from leave_engine.services.audit import audit_snapshot, write_audit_log

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.holiday import CreateHolidayRequest


def _build_holiday_response(holiday: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        organization_id=holiday.organization_id,
        date=holiday.date,
        name=holiday.name,
        description=holiday.description,
    )


async def fetch_holiday_map(
    session: AsyncSession,
    organization_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> dict[date, str]:
    """Fetch organization holidays in the inclusive range, keyed by date."""
    result = await session.execute(
        select(col(Holiday.date), col(Holiday.name)).where(
            col(Holiday.organization_id) == organization_id,
            col(Holiday.date) >= start_date,
            col(Holiday.date) <= end_date,
        )
    )
    return {row.date: row.name for row in result.all()}


async def create_holiday(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Create an organization holiday."""
    try:
        async with unit_of_work(session):
            holiday = Holiday(
                organization_id=auth.organization_id,
                date=payload.date,
                name=payload.name,
                description=payload.description,
            )
            session.add(holiday)
            await session.flush()

            await write_audit_log(
                session,
                organization_id=auth.organization_id,
                actor_id=auth.user_id,
                entity_type=AuditEntityType.HOLIDAY,
                entity_id=holiday.id,
                action=AuditAction.CREATE,
                after_json=audit_snapshot(holiday),
            )
    except IntegrityError:
        raise AppError("Holiday already exists for this date", status_code=409) from None

    return _build_holiday_response(holiday)


async def list_holidays(
    session: AsyncSession,
    organization_id: uuid.UUID,
    *,
    year: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> HolidayListResponse:
    """List organization holidays by calendar year and/or an inclusive date window."""
    filters = [col(Holiday.organization_id) == organization_id]
    if year is not None:
        filters.append(extract("year", col(Holiday.date)) == year)
    if start_date is not None:
        filters.append(col(Holiday.date) >= start_date)
    if end_date is not None:
        filters.append(col(Holiday.date) <= end_date)

    total = (await session.execute(select(func.count()).select_from(Holiday).where(*filters))).scalar_one()
    result = await session.execute(
        select(Holiday).where(*filters).order_by(col(Holiday.date)).offset(offset).limit(limit)
    )
    return HolidayListResponse(
        items=[_build_holiday_response(h) for h in result.scalars().all()],
        total=total,
    )


async def get_holiday(
    session: AsyncSession,
    organization_id: uuid.UUID,
    holiday_id: uuid.UUID,
) -> Holiday:
    """Get a single holiday or raise 404."""
    result = await session.execute(
        select(Holiday).where(
            col(Holiday.id) == holiday_id,
            col(Holiday.organization_id) == organization_id,
        )
    )
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise NotFound("Holiday not found")
    return holiday


async def get_holiday_response(
    session: AsyncSession,
    organization_id: uuid.UUID,
    holiday_id: uuid.UUID,
) -> HolidayResponse:
    return _build_holiday_response(await get_holiday(session, organization_id, holiday_id))


async def delete_holiday(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> None:
    """Delete an organization holiday."""
    async with unit_of_work(session):
        holiday = await get_holiday(session, auth.organization_id, holiday_id)

        await write_audit_log(
            session,
            organization_id=auth.organization_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.HOLIDAY,
            entity_id=holiday.id,
            action=AuditAction.DELETE,
            before_json=audit_snapshot(holiday),
        )

        await session.delete(holiday)
