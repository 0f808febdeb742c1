from __future__ import annotations

import enum


class LeaveType(enum.StrEnum):
    """Kinds of leave an organization can grant."""

    CASUAL = "CASUAL"
    SICK = "SICK"
    ANNUAL = "ANNUAL"
    MATERNITY = "MATERNITY"
    EMERGENCY = "EMERGENCY"
    LOSS_OF_PAY = "LOSS_OF_PAY"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class HalfDayType(enum.StrEnum):
    """Which half of the day a half-day leave covers."""

    FIRST_HALF = "FIRST_HALF"
    SECOND_HALF = "SECOND_HALF"


class Gender(enum.StrEnum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class EmployeeStatus(enum.StrEnum):
    """Employment status as reported by the employee directory."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ON_LEAVE = "ON_LEAVE"


class Region(enum.StrEnum):
    """Regions with a default rule table."""

    INDIA = "INDIA"
    QATAR = "QATAR"


class NotificationEvent(enum.StrEnum):
    LEAVE_APPLIED = "LEAVE_APPLIED"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    LEAVE_REJECTED = "LEAVE_REJECTED"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    RULE = "RULE"
    ASSIGNMENT = "ASSIGNMENT"
    LEAVE = "LEAVE"
    BALANCE = "BALANCE"
    HOLIDAY = "HOLIDAY"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    ROLLOVER = "ROLLOVER"
