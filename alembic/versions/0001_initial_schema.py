"""Initial leave engine schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.current_timestamp(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "leave_rule",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("leave_type", sa.String(length=50), nullable=False),
        sa.Column("max_allowed", sa.Numeric(6, 2), nullable=False),
        sa.Column("carry_forward_max", sa.Numeric(6, 2), nullable=False),
        sa.Column("accrual_rate", sa.Numeric(6, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("applicable_gender", sa.String(length=20), nullable=True),
        sa.Column("min_tenure_months", sa.Integer(), nullable=False),
        sa.Column("requires_document", sa.Boolean(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("organization_id", "leave_type", name="uq_rule_organization_type"),
    )

    op.create_table(
        "employee_leave_rule_assignment",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("employee_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("rule_id", sa.Uuid(), sa.ForeignKey("leave_rule.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("custom_max_allowed", sa.Numeric(6, 2), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("employee_id", "rule_id", name="uq_assignment_employee_rule"),
    )

    op.create_table(
        "leave_balance",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("leave_type", sa.String(length=50), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("total_allowed", sa.Numeric(6, 2), nullable=False),
        sa.Column("used", sa.Numeric(6, 2), nullable=False),
        sa.Column("carry_forwarded", sa.Numeric(6, 2), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.current_timestamp(), nullable=False
        ),
        sa.UniqueConstraint("employee_id", "leave_type", "year", name="uq_balance_employee_type_year"),
    )
    op.create_index("ix_balance_organization_year", "leave_balance", ["organization_id", "year"])

    op.create_table(
        "leave_request",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("employee_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("leave_type", sa.String(length=50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("applied_days", sa.Numeric(5, 1), nullable=False),
        sa.Column("balance_year", sa.Integer(), nullable=False),
        sa.Column("is_half_day", sa.Boolean(), nullable=False),
        sa.Column("half_day_type", sa.String(length=20), nullable=True),
        sa.Column("status", sa.String(length=50), server_default="PENDING", nullable=False, index=True),
        sa.Column("approved_by", sa.Uuid(), nullable=True),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("rejection_reason", sa.String(), nullable=True),
        sa.Column("attachment_ref", sa.String(length=255), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_leave_organization_status", "leave_request", ["organization_id", "status"])
    op.create_index("ix_leave_employee_type", "leave_request", ["employee_id", "leave_type"])

    op.create_table(
        "holiday",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("organization_id", "date", name="uq_holiday_organization_date"),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.current_timestamp(),
            nullable=False,
            index=True,
        ),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("holiday")
    op.drop_table("leave_request")
    op.drop_table("leave_balance")
    op.drop_table("employee_leave_rule_assignment")
    op.drop_table("leave_rule")
