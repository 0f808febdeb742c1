# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from leave_engine.models.enums import LeaveType


class BalanceResponse(BaseModel):
    """Ledger row for one employee, leave type and year."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    year: int
    total_allowed: float
    used: float
    carry_forwarded: float
    available: float
    updated_at: datetime


class BalanceListResponse(BaseModel):
    """All ledger rows of an employee for a year."""

    items: list[BalanceResponse]
    total: int
