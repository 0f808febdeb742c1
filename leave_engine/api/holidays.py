# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from leave_engine.api.deps import AdminDep, AuthDep, validate_organization_scope
from leave_engine.db import SessionDep
from leave_engine.exceptions import InvalidDateRange
from leave_engine.schemas.holiday import CreateHolidayRequest, HolidayListResponse, HolidayResponse
from leave_engine.services import holiday as holiday_service

holidays_router = APIRouter(
    prefix="/organizations/{organization_id}/holidays",
    tags=["holidays"],
    dependencies=[Depends(validate_organization_scope)],
)


@holidays_router.post("", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED)
async def create_holiday(
    payload: CreateHolidayRequest,
    session: SessionDep,
    auth: AdminDep,
) -> HolidayResponse:
    """Register a non-working day for the organization (admin only)."""
    return await holiday_service.create_holiday(session, auth, payload)


@holidays_router.get("", response_model=HolidayListResponse)
async def list_holidays(
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
    start_date: date | None = Query(default=None, alias="from"),
    end_date: date | None = Query(default=None, alias="to"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HolidayListResponse:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise InvalidDateRange("'to' must not be before 'from'")
    return await holiday_service.list_holidays(
        session,
        auth.organization_id,
        year=year,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )


@holidays_router.get("/{holiday_id}", response_model=HolidayResponse)
async def get_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> HolidayResponse:
    return await holiday_service.get_holiday_response(session, auth.organization_id, holiday_id)


@holidays_router.delete("/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    await holiday_service.delete_holiday(session, auth, holiday_id)
