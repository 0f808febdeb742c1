# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

ADMIN = "admin"
MANAGER = "manager"
EMPLOYEE = "employee"

APPROVER_ROLES = frozenset({ADMIN, MANAGER})


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: str = EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN

    @property
    def is_approver(self) -> bool:
        return self.role in APPROVER_ROLES
