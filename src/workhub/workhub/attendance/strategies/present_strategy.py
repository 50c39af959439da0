from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...shifts.model import Shift
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class PresentStrategy(AttendanceStrategy):
    """On-time clock-in; clock-out keeps the current status."""

    def decide_clock_in(self, *, now: datetime, today: date, shift: Optional[Shift]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_clock_out(self, *, record: AttendanceRecord, shift: Optional[Shift]) -> StatusDecision:
        return StatusDecision(status=record.status, note=record.notes)
