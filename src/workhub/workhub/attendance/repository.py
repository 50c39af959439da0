from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceReportRow


class AttendanceRepository(Protocol):
    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(
        self,
        user_id: int,
        work_date: date,
        *,
        for_update: bool = False,
    ) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_user(self, user_id: int, *, for_update: bool = False) -> Optional[AttendanceRecord]:
        """Latest unlocked record with a clock-in and no clock-out, whatever its date."""

        raise NotImplementedError

    def get_by_id(self, attendance_id: int, *, for_update: bool = False) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_clock_in(
        self,
        *,
        user_id: int,
        work_date: date,
        clock_in: datetime,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> int:
        """Insert the day's record. (user, date) is unique; a duplicate raises."""

        raise NotImplementedError

    def save(self, record: AttendanceRecord) -> None:
        raise NotImplementedError

    def lock_finished_before(self, *, organization_id: int, day: date) -> int:
        """Lock every clocked-out record of the organization dated before ``day``."""

        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        organization_id: int,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
