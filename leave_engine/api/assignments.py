# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from leave_engine.api.deps import ApproverDep, AuthDep, validate_organization_scope
from leave_engine.db import SessionDep
from leave_engine.schemas.assignment import AssignmentListResponse, AssignmentResponse, CreateAssignmentRequest
from leave_engine.services import assignment as assignment_service

assignments_router = APIRouter(
    prefix="/organizations/{organization_id}/assignments",
    tags=["assignments"],
    dependencies=[Depends(validate_organization_scope)],
)


@assignments_router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def assign_rule(
    payload: CreateAssignmentRequest,
    session: SessionDep,
    auth: ApproverDep,
) -> AssignmentResponse:
    """Assign a rule to an employee and open their current-year balance."""
    return await assignment_service.assign_rule(session, auth, payload)


@assignments_router.get("/employees/{employee_id}", response_model=AssignmentListResponse)
async def list_employee_assignments(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> AssignmentListResponse:
    return await assignment_service.list_assignments_by_employee(session, auth.organization_id, employee_id)


@assignments_router.delete("/employees/{employee_id}/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unassign_rule(
    employee_id: uuid.UUID,
    rule_id: uuid.UUID,
    session: SessionDep,
    auth: ApproverDep,
) -> None:
    """Remove an assignment; refused once leave history exists for its leave type."""
    await assignment_service.unassign_rule(session, auth, employee_id, rule_id)
