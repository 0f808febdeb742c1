# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase


class EmployeeLeaveRuleAssignment(UUIDBase, TimestampMixin, table=True):
    """Links an employee to a leave rule, optionally overriding its allowance."""

    __tablename__ = "employee_leave_rule_assignment"
    __table_args__ = (sa.UniqueConstraint("employee_id", "rule_id", name="uq_assignment_employee_rule"),)

    organization_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(index=True)
    rule_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_rule.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    custom_max_allowed: Decimal | None = Field(default=None, max_digits=6, decimal_places=2)
    created_by: uuid.UUID
