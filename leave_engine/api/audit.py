# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from leave_engine.api.deps import AdminDep, validate_organization_scope
from leave_engine.db import SessionDep
from leave_engine.models.enums import AuditAction, AuditEntityType
from leave_engine.schemas.audit import AuditLogListResponse
from leave_engine.services.audit import query_audit_log

audit_router = APIRouter(
    prefix="/organizations/{organization_id}/audit-log",
    tags=["audit"],
    dependencies=[Depends(validate_organization_scope)],
)


@audit_router.get("", response_model=AuditLogListResponse)
async def list_audit_entries(
    session: SessionDep,
    auth: AdminDep,
    entity_type: AuditEntityType | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    action: AuditAction | None = Query(default=None),
    actor_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query the organization's audit trail (admin only)."""
    return await query_audit_log(
        session,
        auth.organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_id=actor_id,
        offset=offset,
        limit=limit,
    )
