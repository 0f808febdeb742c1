# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from leave_engine.models.enums import EmployeeStatus, Gender


class EmployeeInfo(BaseModel):
    """Employee metadata from the Employee Directory."""

    id: uuid.UUID
    organization_id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    gender: Gender
    joining_date: date
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    manager_id: uuid.UUID | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@runtime_checkable
class EmployeeDirectory(Protocol):
    """Interface for the Employee Directory."""

    async def get_employee(self, organization_id: uuid.UUID, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        ...

    async def list_employees(self, organization_id: uuid.UUID | None = None) -> list[EmployeeInfo]:
        """List employees of one organization, or of every organization when None."""
        ...


class InMemoryEmployeeDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[tuple[uuid.UUID, uuid.UUID], EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[(employee.organization_id, employee.id)] = employee

    async def get_employee(self, organization_id: uuid.UUID, employee_id: uuid.UUID) -> EmployeeInfo | None:
        return self._employees.get((organization_id, employee_id))

    async def list_employees(self, organization_id: uuid.UUID | None = None) -> list[EmployeeInfo]:
        return [e for e in self._employees.values() if organization_id is None or e.organization_id == organization_id]


_employee_directory: EmployeeDirectory = InMemoryEmployeeDirectory()


def get_employee_directory() -> EmployeeDirectory:
    """FastAPI dependency for the Employee Directory."""
    return _employee_directory


def set_employee_directory(directory: EmployeeDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _employee_directory
    _employee_directory = directory


async def get_direct_reports(organization_id: uuid.UUID, manager_id: uuid.UUID) -> list[EmployeeInfo]:
    """Employees whose manager is ``manager_id``."""
    employees = await get_employee_directory().list_employees(organization_id)
    return [e for e in employees if e.manager_id == manager_id]
