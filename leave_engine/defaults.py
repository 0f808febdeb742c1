"""Static entitlement defaults.

Single source for the per-region default rule tables and the per-leave-type
fallbacks used by the rule catalog and the rollover job.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType

from leave_engine.models.enums import Gender, LeaveType, Region

# The only leave type whose unused days roll into the next year.
CARRY_FORWARD_LEAVE_TYPE = LeaveType.ANNUAL

# Leave types that must end within the current calendar year.
CURRENT_YEAR_ONLY_LEAVE_TYPES = frozenset({LeaveType.CASUAL, LeaveType.SICK})


@dataclass(frozen=True)
class RuleDefaults:
    """Default policy for one leave type."""

    leave_type: LeaveType
    max_allowed: Decimal
    carry_forward_max: Decimal = Decimal(0)
    accrual_rate: Decimal = Decimal(0)
    min_tenure_months: int = 0
    requires_document: bool = False
    applicable_gender: Gender | None = None


_BASE_RULES: tuple[RuleDefaults, ...] = (
    RuleDefaults(LeaveType.ANNUAL, Decimal(11), carry_forward_max=Decimal(10), accrual_rate=Decimal("0.92")),
    RuleDefaults(LeaveType.CASUAL, Decimal(11), accrual_rate=Decimal("0.92")),
    RuleDefaults(LeaveType.SICK, Decimal(2), accrual_rate=Decimal("0.17")),
    RuleDefaults(LeaveType.EMERGENCY, Decimal(3), accrual_rate=Decimal("0.25"), requires_document=True),
    RuleDefaults(LeaveType.LOSS_OF_PAY, Decimal(365)),
)

REGION_DEFAULT_RULES: MappingProxyType[Region, tuple[RuleDefaults, ...]] = MappingProxyType(
    {
        Region.INDIA: (
            *_BASE_RULES,
            RuleDefaults(LeaveType.MATERNITY, Decimal(182), applicable_gender=Gender.FEMALE),  # 26 weeks
        ),
        Region.QATAR: (
            *_BASE_RULES,
            RuleDefaults(LeaveType.MATERNITY, Decimal(50), applicable_gender=Gender.FEMALE),
        ),
    }
)

# Carry-forward ceiling applied when a rule is created without one.
DEFAULT_CARRY_FORWARD_MAX: MappingProxyType[LeaveType, Decimal] = MappingProxyType(
    {leave_type: Decimal(10) if leave_type == CARRY_FORWARD_LEAVE_TYPE else Decimal(0) for leave_type in LeaveType}
)
