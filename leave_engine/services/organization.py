# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel

from leave_engine.models.enums import Region
from leave_engine.services import clock

if TYPE_CHECKING:
    from datetime import date

DEFAULT_TIMEZONE = "UTC"


class OrganizationInfo(BaseModel):
    """Organization metadata from the Organization Directory."""

    id: uuid.UUID
    name: str
    region: Region
    timezone: str  # e.g. "Asia/Qatar"


@runtime_checkable
class OrganizationDirectory(Protocol):
    """Interface for the Organization Directory."""

    async def get_organization(self, organization_id: uuid.UUID) -> OrganizationInfo | None:
        """Fetch organization metadata. Returns None if not found."""
        ...


class InMemoryOrganizationDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._organizations: dict[uuid.UUID, OrganizationInfo] = {}

    def seed(self, organization: OrganizationInfo) -> None:
        """Seed an organization for testing."""
        self._organizations[organization.id] = organization

    async def get_organization(self, organization_id: uuid.UUID) -> OrganizationInfo | None:
        return self._organizations.get(organization_id)


_organization_directory: OrganizationDirectory = InMemoryOrganizationDirectory()


def get_organization_directory() -> OrganizationDirectory:
    """FastAPI dependency for the Organization Directory."""
    return _organization_directory


def set_organization_directory(directory: OrganizationDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _organization_directory
    _organization_directory = directory


async def get_organization_timezone(organization_id: uuid.UUID) -> str:
    """The organization's IANA timezone, or UTC when it is not in the directory."""
    organization = await _organization_directory.get_organization(organization_id)
    return organization.timezone if organization else DEFAULT_TIMEZONE


async def organization_today(organization_id: uuid.UUID) -> date:
    """Today's date on the organization's local calendar."""
    return clock.today(await get_organization_timezone(organization_id))
