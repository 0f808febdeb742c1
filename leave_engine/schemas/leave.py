# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from leave_engine.models.enums import HalfDayType, LeaveStatus, LeaveType

# ---------------------------------------------------------------------------
# Date validation
# ---------------------------------------------------------------------------


class HolidayDate(BaseModel):
    date: date
    name: str


class LeaveDateValidationDetails(BaseModel):
    """Machine-readable breakdown of a leave window check.

    Date lists are only populated when the matching flag is set.
    """

    has_weekends: bool
    has_holidays: bool
    is_sandwiching: bool
    weekend_dates: list[date] | None = None
    holiday_dates: list[HolidayDate] | None = None
    sandwiching_dates: list[date] | None = None


class LeaveDateValidation(BaseModel):
    is_valid: bool
    message: str
    details: LeaveDateValidationDetails


class ValidateDatesRequest(BaseModel):
    start_date: date
    end_date: date


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ApplyLeaveRequest(BaseModel):
    """Request body for applying for leave."""

    employee_id: uuid.UUID | None = Field(
        default=None,
        description="Defaults to the caller; approvers may apply on behalf of another employee",
    )
    leave_type: LeaveType
    start_date: date
    end_date: date
    is_half_day: bool = False
    half_day_type: HalfDayType | None = None
    reason: str | None = Field(default=None, max_length=2000)
    attachment_ref: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _validate_half_day(self) -> Self:
        if self.is_half_day and self.half_day_type is None:
            msg = "half_day_type is required for half-day leave"
            raise ValueError(msg)
        return self


class UpdateLeaveRequest(BaseModel):
    """Partial edit of a leave request. Omitted fields are left unchanged."""

    start_date: date | None = None
    end_date: date | None = None
    is_half_day: bool | None = None
    half_day_type: HalfDayType | None = None
    reason: str | None = Field(default=None, max_length=2000)
    attachment_ref: str | None = Field(default=None, max_length=255)


class LeaveStatusRequest(BaseModel):
    """Request body for approving or rejecting a leave request."""

    status: LeaveStatus = Field(description="APPROVED or REJECTED")
    rejection_reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    organization_id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    applied_days: float
    balance_year: int
    is_half_day: bool
    half_day_type: HalfDayType | None
    status: LeaveStatus
    approved_by: uuid.UUID | None
    reason: str | None
    rejection_reason: str | None
    attachment_ref: str | None
    attachment_url: str | None
    decided_at: datetime | None
    created_at: datetime


class LeaveListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveResponse]
    total: int
