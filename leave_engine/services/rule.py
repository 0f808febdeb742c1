# ruff: noqa: TC003
"""Rule catalog: per-organization leave policy and the eligibility filter."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_engine.db import unit_of_work
from leave_engine.defaults import DEFAULT_CARRY_FORWARD_MAX, REGION_DEFAULT_RULES
from leave_engine.exceptions import DuplicateRule, NotFound, RuleInUse
from leave_engine.models.assignment import EmployeeLeaveRuleAssignment
from leave_engine.models.balance import LeaveBalance
from leave_engine.models.enums import AuditAction, AuditEntityType, Gender, LeaveType, Region
from leave_engine.models.rule import LeaveRule
from leave_engine.schemas.rule import RuleListResponse, RuleResponse
from leave_engine.services.audit import audit_snapshot, write_audit_log
from leave_engine.services.organization import get_organization_directory, organization_today

if TYPE_CHECKING:
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.rule import CreateRuleRequest, UpdateRuleRequest
    from leave_engine.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)

# Fields an update may touch. Everything else on a rule is fixed at creation.
_UPDATABLE_FIELDS = (
    "max_allowed",
    "carry_forward_max",
    "accrual_rate",
    "is_active",
    "applicable_gender",
    "min_tenure_months",
    "requires_document",
)
_NULLABLE_FIELDS = frozenset({"accrual_rate", "applicable_gender"})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_rule_response(rule: LeaveRule) -> RuleResponse:
    return RuleResponse(
        id=rule.id,
        organization_id=rule.organization_id,
        leave_type=LeaveType(rule.leave_type),
        max_allowed=float(rule.max_allowed),
        carry_forward_max=float(rule.carry_forward_max),
        accrual_rate=float(rule.accrual_rate) if rule.accrual_rate is not None else None,
        is_active=rule.is_active,
        applicable_gender=Gender(rule.applicable_gender) if rule.applicable_gender else None,
        min_tenure_months=rule.min_tenure_months,
        requires_document=rule.requires_document,
        created_at=rule.created_at,
    )


async def _get_rule_or_404(session: AsyncSession, organization_id: uuid.UUID, rule_id: uuid.UUID) -> LeaveRule:
    result = await session.execute(
        select(LeaveRule).where(
            col(LeaveRule.id) == rule_id,
            col(LeaveRule.organization_id) == organization_id,
        )
    )
    rule = result.scalar_one_or_none()
    if rule is None:
        raise NotFound("Leave rule not found")
    return rule


async def _find_rule(session: AsyncSession, organization_id: uuid.UUID, leave_type: str) -> LeaveRule | None:
    result = await session.execute(
        select(LeaveRule).where(
            col(LeaveRule.organization_id) == organization_id,
            col(LeaveRule.leave_type) == leave_type,
        )
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


def tenure_months(joining_date: date, today: date) -> int:
    """Whole calendar months from joining to today, never negative."""
    months = (today.year - joining_date.year) * 12 + (today.month - joining_date.month)
    return max(months, 0)


def is_rule_applicable(rule: LeaveRule, employee: EmployeeInfo, today: date) -> bool:
    """Gender restriction (if any) matches and tenure meets the minimum."""
    if rule.applicable_gender and employee.gender != rule.applicable_gender:
        return False
    if rule.leave_type == LeaveType.MATERNITY and employee.gender != Gender.FEMALE:
        return False
    return tenure_months(employee.joining_date, today) >= rule.min_tenure_months


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_rule(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateRuleRequest,
) -> RuleResponse:
    """Create the organization's rule for a leave type."""
    async with unit_of_work(session):
        if await _find_rule(session, auth.organization_id, payload.leave_type) is not None:
            raise DuplicateRule(f"A {payload.leave_type} rule already exists for this organization")

        carry_forward_max = payload.carry_forward_max
        if carry_forward_max is None:
            carry_forward_max = DEFAULT_CARRY_FORWARD_MAX[payload.leave_type]

        rule = LeaveRule(
            organization_id=auth.organization_id,
            leave_type=payload.leave_type.value,
            max_allowed=payload.max_allowed,
            carry_forward_max=carry_forward_max,
            accrual_rate=payload.accrual_rate,
            is_active=payload.is_active,
            applicable_gender=payload.applicable_gender.value if payload.applicable_gender else None,
            min_tenure_months=payload.min_tenure_months,
            requires_document=payload.requires_document,
        )
        session.add(rule)
        await session.flush()

        await write_audit_log(
            session,
            organization_id=auth.organization_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.RULE,
            entity_id=rule.id,
            action=AuditAction.CREATE,
            after_json=audit_snapshot(rule),
        )

    return _build_rule_response(rule)


async def update_rule(
    session: AsyncSession,
    auth: AuthContext,
    rule_id: uuid.UUID,
    payload: UpdateRuleRequest,
) -> RuleResponse:
    """Update a rule in place. Only fields present in the payload change."""
    async with unit_of_work(session):
        rule = await _get_rule_or_404(session, auth.organization_id, rule_id)
        before = audit_snapshot(rule)

        for field in _UPDATABLE_FIELDS:
            if field not in payload.model_fields_set:
                continue
            value = getattr(payload, field)
            if value is None and field not in _NULLABLE_FIELDS:
                continue
            setattr(rule, field, value)

        await session.flush()

        await write_audit_log(
            session,
            organization_id=auth.organization_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.RULE,
            entity_id=rule.id,
            action=AuditAction.UPDATE,
            before_json=before,
            after_json=audit_snapshot(rule),
        )

    await session.refresh(rule)
    return _build_rule_response(rule)


async def delete_rule(
    session: AsyncSession,
    auth: AuthContext,
    rule_id: uuid.UUID,
) -> None:
    """Delete a rule unless an assigned employee holds a current-year balance for it."""
    current_year = (await organization_today(auth.organization_id)).year
    async with unit_of_work(session):
        rule = await _get_rule_or_404(session, auth.organization_id, rule_id)

        in_use = await session.execute(
            select(func.count())
            .select_from(EmployeeLeaveRuleAssignment)
            .join(
                LeaveBalance,
                (col(LeaveBalance.employee_id) == col(EmployeeLeaveRuleAssignment.employee_id))
                & (col(LeaveBalance.leave_type) == rule.leave_type)
                & (col(LeaveBalance.year) == current_year),
            )
            .where(col(EmployeeLeaveRuleAssignment.rule_id) == rule.id)
        )
        if in_use.scalar_one() > 0:
            raise RuleInUse("Rule is assigned to employees with an active balance")

        await write_audit_log(
            session,
            organization_id=auth.organization_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.RULE,
            entity_id=rule.id,
            action=AuditAction.DELETE,
            before_json=audit_snapshot(rule),
        )
        await session.delete(rule)


async def get_rule_by_type(
    session: AsyncSession,
    organization_id: uuid.UUID,
    leave_type: LeaveType,
) -> RuleResponse:
    rule = await _find_rule(session, organization_id, leave_type)
    if rule is None:
        raise NotFound(f"No {leave_type} rule for this organization")
    return _build_rule_response(rule)


async def get_active_rule(session: AsyncSession, organization_id: uuid.UUID, leave_type: str) -> LeaveRule:
    """The active rule for a leave type, or NotFound."""
    rule = await _find_rule(session, organization_id, leave_type)
    if rule is None or not rule.is_active:
        raise NotFound(f"No active {leave_type} rule for this organization")
    return rule


async def list_active_rules(session: AsyncSession, organization_id: uuid.UUID) -> list[LeaveRule]:
    result = await session.execute(
        select(LeaveRule).where(
            col(LeaveRule.organization_id) == organization_id,
            col(LeaveRule.is_active).is_(True),
        )
    )
    return list(result.scalars().all())


async def list_rules(
    session: AsyncSession,
    organization_id: uuid.UUID,
    *,
    active_only: bool = False,
) -> RuleListResponse:
    query = select(LeaveRule).where(col(LeaveRule.organization_id) == organization_id)
    if active_only:
        query = query.where(col(LeaveRule.is_active).is_(True))
    result = await session.execute(query.order_by(col(LeaveRule.leave_type)))
    rules = list(result.scalars().all())
    return RuleListResponse(items=[_build_rule_response(r) for r in rules], total=len(rules))


async def initialize_default_rules(
    session: AsyncSession,
    auth: AuthContext,
    region: Region,
) -> RuleListResponse:
    """Seed the region's default rule table, skipping leave types that already have a rule."""
    organization = await get_organization_directory().get_organization(auth.organization_id)
    if organization is None:
        raise NotFound("Organization not found")

    created: list[LeaveRule] = []
    async with unit_of_work(session):
        for defaults in REGION_DEFAULT_RULES[region]:
            if await _find_rule(session, auth.organization_id, defaults.leave_type) is not None:
                continue
            rule = LeaveRule(
                organization_id=auth.organization_id,
                leave_type=defaults.leave_type.value,
                max_allowed=defaults.max_allowed,
                carry_forward_max=defaults.carry_forward_max,
                accrual_rate=defaults.accrual_rate,
                is_active=True,
                applicable_gender=defaults.applicable_gender.value if defaults.applicable_gender else None,
                min_tenure_months=defaults.min_tenure_months,
                requires_document=defaults.requires_document,
            )
            session.add(rule)
            await session.flush()
            await write_audit_log(
                session,
                organization_id=auth.organization_id,
                actor_id=auth.user_id,
                entity_type=AuditEntityType.RULE,
                entity_id=rule.id,
                action=AuditAction.CREATE,
                after_json=audit_snapshot(rule),
            )
            created.append(rule)

    logger.info("Initialized %d default %s rules for organization %s", len(created), region, auth.organization_id)
    return RuleListResponse(items=[_build_rule_response(r) for r in created], total=len(created))
