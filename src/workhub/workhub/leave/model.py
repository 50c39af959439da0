from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import LeaveStatus
from ..core.exceptions import ValidationError

ZERO = Decimal("0")


@dataclass(frozen=True)
class LeaveType:
    """Organization-scoped leave policy."""

    leave_type_id: int
    organization_id: int
    name: str
    default_days: Decimal
    carry_forward: bool = False
    max_carry_forward: Decimal = ZERO
    paid: bool = True

    def carry_over_from(self, available: Decimal) -> Decimal:
        if not self.carry_forward:
            return ZERO
        return max(min(available, self.max_carry_forward), ZERO)

    def to_dict(self) -> dict:
        return {
            "id": self.leave_type_id,
            "name": self.name,
            "defaultDays": str(self.default_days),
            "carryForward": self.carry_forward,
            "maxCarryForward": str(self.max_carry_forward),
            "paid": self.paid,
        }


@dataclass(frozen=True)
class LeaveBalance:
    """Balance of one (user, leave type, year).

    Every transition returns a new balance and refuses to leave ``available``,
    ``used`` or ``pending`` negative.
    """

    balance_id: int
    user_id: int
    leave_type_id: int
    year: int
    entitled: Decimal
    used: Decimal = ZERO
    pending: Decimal = ZERO
    carried_over: Decimal = ZERO

    @property
    def available(self) -> Decimal:
        return self.entitled + self.carried_over - self.used - self.pending

    def _checked(self, **changes) -> "LeaveBalance":
        nxt = replace(self, **changes)
        if nxt.used < ZERO or nxt.pending < ZERO or nxt.available < ZERO:
            raise ValidationError("Leave balance would become inconsistent")
        return nxt

    def reserve(self, days: Decimal) -> "LeaveBalance":
        return self._checked(pending=self.pending + days)

    def consume(self, days: Decimal) -> "LeaveBalance":
        """Move reserved days from pending to used (approval)."""
        return self._checked(pending=self.pending - days, used=self.used + days)

    def release(self, days: Decimal) -> "LeaveBalance":
        """Drop reserved days (rejection or cancellation)."""
        return self._checked(pending=self.pending - days)

    def restore(self, days: Decimal) -> "LeaveBalance":
        """Give back consumed days (revocation of an approved request)."""
        return self._checked(used=self.used - days)

    def carry(self, days: Decimal) -> "LeaveBalance":
        """Replace the amount carried over from the previous year."""
        return self._checked(carried_over=days)

    def to_dict(self) -> dict:
        return {
            "id": self.balance_id,
            "leaveTypeId": self.leave_type_id,
            "year": self.year,
            "entitled": str(self.entitled),
            "used": str(self.used),
            "pending": str(self.pending),
            "carriedOver": str(self.carried_over),
            "available": str(self.available),
        }


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    half_day: bool
    days: Decimal
    status: LeaveStatus
    created_at: datetime
    reason: Optional[str] = None
    approver_id: Optional[int] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def year(self) -> int:
        return self.start_date.year

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "userId": self.user_id,
            "leaveTypeId": self.leave_type_id,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "halfDay": self.half_day,
            "days": str(self.days),
            "status": self.status.value,
            "reason": self.reason,
            "approverId": self.approver_id,
            "decidedAt": self.decided_at.isoformat() if self.decided_at else None,
            "rejectionReason": self.rejection_reason,
            "createdAt": self.created_at.isoformat(),
        }
