# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.enums import LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """An employee's leave request with approval workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_organization_status", "organization_id", "status"),
        sa.Index("ix_leave_employee_type", "employee_id", "leave_type"),
    )

    organization_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(index=True)
    leave_type: str = Field(max_length=50)
    start_date: datetime.date
    end_date: datetime.date
    applied_days: Decimal = Field(max_digits=5, decimal_places=1)
    balance_year: int
    is_half_day: bool = Field(default=False)
    half_day_type: str | None = Field(default=None, max_length=20)
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    approved_by: uuid.UUID | None = None
    reason: str | None = None
    rejection_reason: str | None = None
    attachment_ref: str | None = Field(default=None, max_length=255)
    decided_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
