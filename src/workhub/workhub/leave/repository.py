from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import LeaveBalance, LeaveRequest, LeaveType


class LeaveRepository(Protocol):
    # Leave types
    def create_leave_type(
        self,
        *,
        organization_id: int,
        name: str,
        default_days: Decimal,
        carry_forward: bool,
        max_carry_forward: Decimal,
        paid: bool,
    ) -> int:
        raise NotImplementedError

    def get_leave_type(self, leave_type_id: int) -> Optional[LeaveType]:
        raise NotImplementedError

    def list_leave_types(self, organization_id: int) -> Sequence[LeaveType]:
        raise NotImplementedError

    # Balances
    def ensure_balance(self, *, user_id: int, leave_type_id: int, year: int, entitled: Decimal) -> None:
        """Insert the balance row if it does not exist yet (no-op otherwise)."""

        raise NotImplementedError

    def get_balance(
        self,
        *,
        user_id: int,
        leave_type_id: int,
        year: int,
        for_update: bool = False,
    ) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def save_balance(self, balance: LeaveBalance) -> None:
        raise NotImplementedError

    def list_balances(self, *, user_id: int, year: int) -> Sequence[LeaveBalance]:
        raise NotImplementedError

    def list_balances_for_year(
        self,
        *,
        organization_id: int,
        year: int,
        for_update: bool = False,
    ) -> Sequence[LeaveBalance]:
        raise NotImplementedError

    # Requests
    def create_request(
        self,
        *,
        user_id: int,
        leave_type_id: int,
        start_date: date,
        end_date: date,
        half_day: bool,
        days: Decimal,
        reason: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get_request(self, request_id: int, *, for_update: bool = False) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def update_request(self, request: LeaveRequest) -> None:
        raise NotImplementedError

    def has_overlapping_request(self, *, user_id: int, start_date: date, end_date: date) -> bool:
        """True if a pending or approved request of the user overlaps the range."""

        raise NotImplementedError

    def list_requests(
        self,
        *,
        organization_id: int,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[dict]:
        """Return UI rows (joined with user and leave type)."""

        raise NotImplementedError
