from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...shifts.model import Shift
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Clock-in after the shift's grace window."""

    def decide_clock_in(self, *, now: datetime, today: date, shift: Optional[Shift]) -> StatusDecision:
        note = None
        if shift is not None:
            minutes = int((now - shift.start_on(today)).total_seconds() // 60)
            note = f"Late by {minutes} min"
        return StatusDecision(status=AttendanceStatus.LATE, note=note)

    def decide_clock_out(self, *, record: AttendanceRecord, shift: Optional[Shift]) -> StatusDecision:
        return StatusDecision(status=record.status, note=record.notes)
