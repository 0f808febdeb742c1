# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from leave_engine.api.deps import ApproverDep, AuthDep, validate_organization_scope
from leave_engine.db import SessionDep
from leave_engine.models.enums import LeaveStatus, LeaveType
from leave_engine.schemas.leave import (
    ApplyLeaveRequest,
    LeaveDateValidation,
    LeaveListResponse,
    LeaveResponse,
    LeaveStatusRequest,
    UpdateLeaveRequest,
    ValidateDatesRequest,
)
from leave_engine.services import leave as leave_service
from leave_engine.services.validation import validate_leave_dates

leaves_router = APIRouter(
    prefix="/organizations/{organization_id}/leaves",
    tags=["leaves"],
    dependencies=[Depends(validate_organization_scope)],
)


@leaves_router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def apply_leave(
    payload: ApplyLeaveRequest,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Apply for leave. The request starts out PENDING."""
    return await leave_service.apply_leave(session, auth, payload)


@leaves_router.post("/validate-dates", response_model=LeaveDateValidation)
async def validate_dates(
    payload: ValidateDatesRequest,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveDateValidation:
    """Check a leave window against weekends, holidays and sandwiching."""
    return await validate_leave_dates(session, auth.organization_id, payload.start_date, payload.end_date)


@leaves_router.get("", response_model=LeaveListResponse)
async def list_leaves(
    session: SessionDep,
    auth: ApproverDep,
    employee_id: uuid.UUID | None = Query(default=None),
    leave_type: LeaveType | None = Query(default=None),
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    start_from: date | None = Query(default=None),
    start_to: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveListResponse:
    """List the organization's leave requests (admin or manager)."""
    return await leave_service.list_leaves(
        session,
        auth.organization_id,
        employee_ids=[employee_id] if employee_id is not None else None,
        leave_type=leave_type,
        status_filter=status_filter,
        start_from=start_from,
        start_to=start_to,
        offset=offset,
        limit=limit,
    )


@leaves_router.get("/mine", response_model=LeaveListResponse)
async def list_my_leaves(
    session: SessionDep,
    auth: AuthDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveListResponse:
    return await leave_service.list_leaves(
        session,
        auth.organization_id,
        employee_ids=[auth.user_id],
        status_filter=status_filter,
        offset=offset,
        limit=limit,
    )


@leaves_router.get("/subordinates", response_model=LeaveListResponse)
async def list_subordinate_leaves(
    session: SessionDep,
    auth: ApproverDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveListResponse:
    """Leave requests of the caller's direct reports."""
    return await leave_service.list_subordinate_leaves(
        session, auth, status_filter=status_filter, offset=offset, limit=limit
    )


@leaves_router.get("/{leave_id}", response_model=LeaveResponse)
async def get_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    return await leave_service.get_leave(session, auth.organization_id, leave_id)


@leaves_router.patch("/{leave_id}", response_model=LeaveResponse)
async def update_leave(
    leave_id: uuid.UUID,
    payload: UpdateLeaveRequest,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Edit a leave request. Owners may edit their own pending requests."""
    return await leave_service.update_leave(session, auth, leave_id, payload)


@leaves_router.post("/{leave_id}/status", response_model=LeaveResponse)
async def set_leave_status(
    leave_id: uuid.UUID,
    payload: LeaveStatusRequest,
    session: SessionDep,
    auth: ApproverDep,
) -> LeaveResponse:
    """Approve or reject a leave request (admin or manager)."""
    return await leave_service.set_leave_status(
        session,
        auth,
        leave_id,
        payload.status,
        approver_id=auth.user_id,
        rejection_reason=payload.rejection_reason,
    )


@leaves_router.delete("/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> None:
    """Delete a leave request, crediting back any approved days."""
    await leave_service.delete_leave(session, auth, leave_id)
