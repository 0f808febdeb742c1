# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from leave_engine.models.enums import LeaveType


class CreateAssignmentRequest(BaseModel):
    """Request body for assigning a leave rule to an employee."""

    employee_id: uuid.UUID
    rule_id: uuid.UUID
    custom_max_allowed: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)


class AssignmentResponse(BaseModel):
    """Response schema for an employee rule assignment."""

    id: uuid.UUID
    organization_id: uuid.UUID
    employee_id: uuid.UUID
    rule_id: uuid.UUID
    leave_type: LeaveType
    custom_max_allowed: float | None
    created_by: uuid.UUID
    created_at: datetime


class AssignmentListResponse(BaseModel):
    """List of rule assignments."""

    items: list[AssignmentResponse]
    total: int
