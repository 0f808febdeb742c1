# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from leave_engine.api.deps import AdminDep, AuthDep, validate_organization_scope
from leave_engine.db import SessionDep
from leave_engine.models.enums import LeaveType
from leave_engine.schemas.rule import (
    CreateRuleRequest,
    InitializeDefaultsRequest,
    RuleListResponse,
    RuleResponse,
    UpdateRuleRequest,
)
from leave_engine.services import rule as rule_service

rules_router = APIRouter(
    prefix="/organizations/{organization_id}/rules",
    tags=["rules"],
    dependencies=[Depends(validate_organization_scope)],
)


@rules_router.post("", response_model=RuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(
    payload: CreateRuleRequest,
    session: SessionDep,
    auth: AdminDep,
) -> RuleResponse:
    """Create the rule for a leave type (admin only)."""
    return await rule_service.create_rule(session, auth, payload)


@rules_router.get("", response_model=RuleListResponse)
async def list_rules(
    session: SessionDep,
    auth: AuthDep,
    active_only: bool = Query(default=False),
) -> RuleListResponse:
    return await rule_service.list_rules(session, auth.organization_id, active_only=active_only)


@rules_router.post("/defaults", response_model=RuleListResponse, status_code=status.HTTP_201_CREATED)
async def initialize_default_rules(
    payload: InitializeDefaultsRequest,
    session: SessionDep,
    auth: AdminDep,
) -> RuleListResponse:
    """Seed the region's default rules, skipping leave types that already have one."""
    return await rule_service.initialize_default_rules(session, auth, payload.region)


@rules_router.get("/by-type/{leave_type}", response_model=RuleResponse)
async def get_rule_by_type(
    leave_type: LeaveType,
    session: SessionDep,
    auth: AuthDep,
) -> RuleResponse:
    return await rule_service.get_rule_by_type(session, auth.organization_id, leave_type)


@rules_router.patch("/{rule_id}", response_model=RuleResponse)
async def update_rule(
    rule_id: uuid.UUID,
    payload: UpdateRuleRequest,
    session: SessionDep,
    auth: AdminDep,
) -> RuleResponse:
    """Update a rule in place (admin only)."""
    return await rule_service.update_rule(session, auth, rule_id, payload)


@rules_router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(
    rule_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    """Delete a rule no employee holds an active balance for (admin only)."""
    await rule_service.delete_rule(session, auth, rule_id)
