from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import TimeEntry


class TimeEntryRepository(Protocol):
    def create_entry(
        self,
        *,
        user_id: int,
        task_id: Optional[int],
        project_id: Optional[int],
        work_date: date,
        start_time: datetime,
        end_time: datetime,
        duration_seconds: int,
        billable: bool,
        description: Optional[str],
    ) -> int:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, start_date: date, end_date: date) -> Sequence[TimeEntry]:
        raise NotImplementedError
