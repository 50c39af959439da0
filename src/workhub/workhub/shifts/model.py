from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.constants import DEFAULT_LATE_GRACE_MINUTES


@dataclass(frozen=True)
class Shift:
    """Domain entity: a work shift of an organization."""

    shift_id: int
    organization_id: Optional[int]
    shift_name: str
    start_time: time
    end_time: time
    break_minutes: int = 0
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES

    def start_on(self, day: date) -> datetime:
        return datetime.combine(day, self.start_time)

    def late_after(self, day: date) -> datetime:
        """Last on-time clock-in moment for ``day``."""
        return self.start_on(day) + timedelta(minutes=int(self.grace_minutes))

    @property
    def standard_hours(self) -> float:
        start = datetime.combine(date.min, self.start_time)
        end = datetime.combine(date.min, self.end_time)
        if end <= start:
            end += timedelta(days=1)
        seconds = (end - start).total_seconds() - int(self.break_minutes) * 60
        return max(seconds, 0) / 3600
