from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..shifts.model import Shift
from .model import AttendanceRecord
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_clock_in(self, *, now: datetime, today: date, shift: Optional[Shift]) -> AttendanceStrategy:
        if not shift:
            return PresentStrategy()
        if now <= shift.late_after(today):
            return PresentStrategy()
        return LateStrategy()

    def for_clock_out(self, *, record: AttendanceRecord, shift: Optional[Shift]) -> AttendanceStrategy:
        if not shift or record.work_hours is None:
            return PresentStrategy()
        if record.status == AttendanceStatus.PRESENT and record.work_hours < shift.standard_hours / 2:
            return HalfDayStrategy()
        return PresentStrategy()
