from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import InvalidTransition, NoActiveSession, RecordLocked


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance for one calendar date.

    The clock events (break start/end, clock-out) are modelled as methods that
    return a new record; clock-in creates the record in the service.
    """

    attendance_id: int
    user_id: int
    work_date: date
    status: AttendanceStatus
    clock_in: Optional[datetime]
    clock_out: Optional[datetime] = None
    on_break: bool = False
    break_started_at: Optional[datetime] = None
    break_seconds: int = 0
    work_hours: Optional[float] = None
    overtime_hours: Optional[float] = None
    locked: bool = False
    notes: Optional[str] = None

    @property
    def is_clocked_in(self) -> bool:
        return self.clock_in is not None and self.clock_out is None

    def _require_open(self) -> None:
        if self.locked:
            raise RecordLocked()
        if not self.is_clocked_in:
            raise NoActiveSession()

    def start_break(self, now: datetime) -> "AttendanceRecord":
        self._require_open()
        if self.on_break:
            raise InvalidTransition("You are already on a break")
        return replace(self, on_break=True, break_started_at=now)

    def end_break(self, now: datetime) -> "AttendanceRecord":
        self._require_open()
        if not self.on_break or self.break_started_at is None:
            raise InvalidTransition("You are not on a break")
        elapsed = max(int((now - self.break_started_at).total_seconds()), 0)
        return replace(self, on_break=False, break_started_at=None, break_seconds=self.break_seconds + elapsed)

    def clock_out_at(self, now: datetime, *, standard_hours: Optional[float]) -> "AttendanceRecord":
        self._require_open()
        record = self.end_break(now) if self.on_break else self
        if now < record.clock_in:
            raise InvalidTransition("Clock-out cannot be before clock-in")
        work_hours, overtime = compute_hours(record.clock_in, now, record.break_seconds, standard_hours)
        return replace(record, clock_out=now, work_hours=work_hours, overtime_hours=overtime)

    def can_finalize(self, today: date) -> bool:
        return not self.locked and self.clock_out is not None and self.work_date < today

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "clockIn": self.clock_in.isoformat() if self.clock_in else None,
            "clockOut": self.clock_out.isoformat() if self.clock_out else None,
            "onBreak": self.on_break,
            "breakSeconds": self.break_seconds,
            "workHours": self.work_hours,
            "overtimeHours": self.overtime_hours,
            "locked": self.locked,
            "notes": self.notes,
        }


def compute_hours(
    clock_in: datetime,
    clock_out: datetime,
    break_seconds: int,
    standard_hours: Optional[float],
) -> tuple[float, float]:
    """Return ``(work_hours, overtime_hours)`` rounded to two decimals."""
    seconds = (clock_out - clock_in).total_seconds() - int(break_seconds)
    work_hours = max(seconds, 0) / 3600
    overtime = 0.0
    if standard_hours is not None and work_hours > standard_hours:
        overtime = work_hours - standard_hours
    return round(work_hours, 2), round(overtime, 2)


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports/exports (query-optimized)."""

    user_id: int
    full_name: str
    email: str
    work_date: date
    status: AttendanceStatus
    clock_in: Optional[datetime]
    clock_out: Optional[datetime]
    work_hours: Optional[float]
    overtime_hours: Optional[float]
