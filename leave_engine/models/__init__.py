from sqlmodel import SQLModel

from leave_engine.models.assignment import EmployeeLeaveRuleAssignment
from leave_engine.models.audit import AuditLog
from leave_engine.models.balance import LeaveBalance
from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.enums import (
    AuditAction,
    AuditEntityType,
    EmployeeStatus,
    Gender,
    HalfDayType,
    LeaveStatus,
    LeaveType,
    NotificationEvent,
    Region,
)
from leave_engine.models.holiday import Holiday
from leave_engine.models.leave import LeaveRequest
from leave_engine.models.rule import LeaveRule

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "EmployeeLeaveRuleAssignment",
    "EmployeeStatus",
    "Gender",
    "HalfDayType",
    "Holiday",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveRule",
    "LeaveStatus",
    "LeaveType",
    "NotificationEvent",
    "Region",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
