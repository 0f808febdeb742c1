# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase


class LeaveRule(UUIDBase, TimestampMixin, table=True):
    """Organization-wide entitlement policy for one leave type."""

    __tablename__ = "leave_rule"
    __table_args__ = (sa.UniqueConstraint("organization_id", "leave_type", name="uq_rule_organization_type"),)

    organization_id: uuid.UUID = Field(index=True)
    leave_type: str = Field(max_length=50)
    max_allowed: Decimal = Field(max_digits=6, decimal_places=2)
    carry_forward_max: Decimal = Field(default=Decimal(0), max_digits=6, decimal_places=2)
    accrual_rate: Decimal | None = Field(default=None, max_digits=6, decimal_places=2)
    is_active: bool = Field(default=True)
    applicable_gender: str | None = Field(default=None, max_length=20)
    min_tenure_months: int = Field(default=0)
    requires_document: bool = Field(default=False)
