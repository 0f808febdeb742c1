# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from leave_engine.models.enums import Gender, LeaveType, Region

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateRuleRequest(BaseModel):
    """Request body for creating a leave rule."""

    leave_type: LeaveType
    max_allowed: Decimal = Field(ge=0, max_digits=6, decimal_places=2)
    carry_forward_max: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)
    accrual_rate: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)
    is_active: bool = True
    applicable_gender: Gender | None = None
    min_tenure_months: int = Field(default=0, ge=0)
    requires_document: bool = False


class UpdateRuleRequest(BaseModel):
    """Partial update of a leave rule. Omitted fields are left unchanged."""

    max_allowed: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)
    carry_forward_max: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)
    accrual_rate: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)
    is_active: bool | None = None
    applicable_gender: Gender | None = None
    min_tenure_months: int | None = Field(default=None, ge=0)
    requires_document: bool | None = None


class InitializeDefaultsRequest(BaseModel):
    region: Region


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RuleResponse(BaseModel):
    """Response schema for a leave rule."""

    id: uuid.UUID
    organization_id: uuid.UUID
    leave_type: LeaveType
    max_allowed: float
    carry_forward_max: float
    accrual_rate: float | None
    is_active: bool
    applicable_gender: Gender | None
    min_tenure_months: int
    requires_document: bool
    created_at: datetime


class RuleListResponse(BaseModel):
    items: list[RuleResponse]
    total: int
