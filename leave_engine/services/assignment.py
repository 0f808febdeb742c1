# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_engine.db import unit_of_work
from leave_engine.exceptions import AssignmentInUse, DuplicateAssignment, NotFound
from leave_engine.models.assignment import EmployeeLeaveRuleAssignment
from leave_engine.models.enums import AuditAction, AuditEntityType, LeaveType
from leave_engine.models.leave import LeaveRequest
from leave_engine.models.rule import LeaveRule
from leave_engine.schemas.assignment import AssignmentListResponse, AssignmentResponse
from leave_engine.services import ledger
from leave_engine.services.audit import audit_snapshot, write_audit_log
from leave_engine.services.employee import get_employee_directory
from leave_engine.services.organization import organization_today

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.assignment import CreateAssignmentRequest
    from leave_engine.schemas.auth import AuthContext


def _build_assignment_response(assignment: EmployeeLeaveRuleAssignment, rule: LeaveRule) -> AssignmentResponse:
    """Build an AssignmentResponse from a DB model."""
    return AssignmentResponse(
        id=assignment.id,
        organization_id=assignment.organization_id,
        employee_id=assignment.employee_id,
        rule_id=assignment.rule_id,
        leave_type=LeaveType(rule.leave_type),
        custom_max_allowed=float(assignment.custom_max_allowed) if assignment.custom_max_allowed is not None else None,
        created_by=assignment.created_by,
        created_at=assignment.created_at,
    )


async def _verify_rule_exists(
    session: AsyncSession,
    organization_id: uuid.UUID,
    rule_id: uuid.UUID,
) -> LeaveRule:
    """Verify a rule exists and belongs to the organization. Raises 404 if not found."""
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


async def _find_assignment(
    session: AsyncSession,
    employee_id: uuid.UUID,
    rule_id: uuid.UUID,
) -> EmployeeLeaveRuleAssignment | None:
    result = await session.execute(
        select(EmployeeLeaveRuleAssignment).where(
            col(EmployeeLeaveRuleAssignment.employee_id) == employee_id,
            col(EmployeeLeaveRuleAssignment.rule_id) == rule_id,
        )
    )
    return result.scalar_one_or_none()


async def assign_rule(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateAssignmentRequest,
) -> AssignmentResponse:
    """Assign a rule to an employee and open their current-year balance.

    The assignment and its ledger row commit together or not at all.
    """
    employee = await get_employee_directory().get_employee(auth.organization_id, payload.employee_id)
    if employee is None:
        raise NotFound("Employee not found")

    try:
        async with unit_of_work(session):
            rule = await _verify_rule_exists(session, auth.organization_id, payload.rule_id)
            if await _find_assignment(session, payload.employee_id, rule.id) is not None:
                raise DuplicateAssignment("Rule is already assigned to this employee")

            assignment = EmployeeLeaveRuleAssignment(
                organization_id=auth.organization_id,
                employee_id=payload.employee_id,
                rule_id=rule.id,
                custom_max_allowed=payload.custom_max_allowed,
                created_by=auth.user_id,
            )
            session.add(assignment)
            await session.flush()

            year = (await organization_today(auth.organization_id)).year
            if await ledger.get_balance(session, payload.employee_id, rule.leave_type, year) is None:
                total_allowed = payload.custom_max_allowed
                if total_allowed is None:
                    total_allowed = rule.max_allowed
                await ledger.initialize(
                    session,
                    organization_id=auth.organization_id,
                    employee_id=payload.employee_id,
                    leave_type=rule.leave_type,
                    year=year,
                    total_allowed=total_allowed,
                )

            await write_audit_log(
                session,
                organization_id=auth.organization_id,
                actor_id=auth.user_id,
                entity_type=AuditEntityType.ASSIGNMENT,
                entity_id=assignment.id,
                action=AuditAction.CREATE,
                after_json=audit_snapshot(assignment),
            )
    except IntegrityError:
        raise DuplicateAssignment("Duplicate assignment") from None

    return _build_assignment_response(assignment, rule)


async def unassign_rule(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    rule_id: uuid.UUID,
) -> None:
    """Remove an assignment and its current-year balance.

    Refused while any leave request exists for the employee and leave type.
    """
    async with unit_of_work(session):
        rule = await _verify_rule_exists(session, auth.organization_id, rule_id)
        assignment = await _find_assignment(session, employee_id, rule_id)
        if assignment is None:
            raise NotFound("Assignment not found")

        history = await session.execute(
            select(func.count())
            .select_from(LeaveRequest)
            .where(
                col(LeaveRequest.employee_id) == employee_id,
                col(LeaveRequest.leave_type) == rule.leave_type,
            )
        )
        if history.scalar_one() > 0:
            raise AssignmentInUse(f"Employee has {rule.leave_type} leave requests; the rule cannot be unassigned")

        year = (await organization_today(auth.organization_id)).year
        await ledger.remove_balance(session, employee_id, rule.leave_type, year)

        await write_audit_log(
            session,
            organization_id=auth.organization_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.ASSIGNMENT,
            entity_id=assignment.id,
            action=AuditAction.DELETE,
            before_json=audit_snapshot(assignment),
        )
        await session.delete(assignment)


async def get_assigned_rules(
    session: AsyncSession,
    employee_id: uuid.UUID,
) -> list[tuple[EmployeeLeaveRuleAssignment, LeaveRule]]:
    """Assignments of an employee paired with their rules."""
    result = await session.execute(
        select(EmployeeLeaveRuleAssignment, LeaveRule)
        .join(LeaveRule, col(LeaveRule.id) == col(EmployeeLeaveRuleAssignment.rule_id))
        .where(col(EmployeeLeaveRuleAssignment.employee_id) == employee_id)
        .order_by(col(LeaveRule.leave_type))
    )
    return [(row[0], row[1]) for row in result.all()]


async def list_assignments_by_employee(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> AssignmentListResponse:
    """List all rule assignments for an employee."""
    pairs = await get_assigned_rules(session, employee_id)
    items = [_build_assignment_response(a, r) for a, r in pairs if a.organization_id == organization_id]
    return AssignmentListResponse(items=items, total=len(items))
