from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

import pandas as pd

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import ValidationError
from ..core.rbac import has_minimum_role
from ..database.unit_of_work import UnitOfWork
from ..users.session import Session

REPORT_COLUMNS = [
    "user_id",
    "full_name",
    "email",
    "work_date",
    "status",
    "clock_in",
    "clock_out",
    "work_hours",
    "overtime_hours",
]

EXPORT_FORMATS = ("csv", "xlsx")
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class ReportData:
    start: date
    end: date
    rows: list[dict]
    summary: list[dict]

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "rows": self.rows,
            "summary": self.summary,
        }


class AttendanceReportService:
    def __init__(self, uow: UnitOfWork, *, clock: Callable = now_local):
        self._uow = uow
        self._clock = clock

    def build_attendance_report(
        self,
        actor: Session,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        user_id: Optional[int] = None,
    ) -> ReportData:
        """Rows for the range plus one summary line per user.

        Members below team lead only ever see their own rows.
        """
        end = end or self._clock().date()
        start = start or end - timedelta(days=DEFAULT_REPORT_DAYS - 1)
        if end < start:
            raise ValidationError("End date cannot be before start date")
        if not has_minimum_role(actor.role, Role.TEAM_LEAD):
            user_id = actor.user_id

        with self._uow() as repos:
            query_rows = repos.attendance.get_report_rows(
                organization_id=actor.organization_id, start_date=start, end_date=end, user_id=user_id
            )

        rows: list[dict] = []
        summary_map: dict[int, dict] = {}
        for r in query_rows:
            rows.append(
                {
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "email": r.email,
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "status": r.status.value,
                    "clock_in": r.clock_in.strftime("%H:%M") if r.clock_in else "",
                    "clock_out": r.clock_out.strftime("%H:%M") if r.clock_out else "",
                    "work_hours": r.work_hours or 0.0,
                    "overtime_hours": r.overtime_hours or 0.0,
                }
            )

            s = summary_map.get(r.user_id)
            if not s:
                s = {
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "days_present": 0,
                    "days_late": 0,
                    "total_hours": 0.0,
                    "overtime_hours": 0.0,
                }
                summary_map[r.user_id] = s
            if r.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.HALF_DAY):
                s["days_present"] += 1
            if r.status == AttendanceStatus.LATE:
                s["days_late"] += 1
            s["total_hours"] += r.work_hours or 0.0
            s["overtime_hours"] += r.overtime_hours or 0.0

        summary = []
        for s in summary_map.values():
            s["total_hours"] = round(s["total_hours"], 2)
            s["overtime_hours"] = round(s["overtime_hours"], 2)
            summary.append(s)
        summary.sort(key=lambda x: x["total_hours"], reverse=True)
        return ReportData(start=start, end=end, rows=rows, summary=summary)


def export_report(report: ReportData, fmt: str) -> tuple[io.BytesIO, str, str]:
    """Render the report rows; returns ``(buffer, mimetype, filename)``."""
    fmt = (fmt or "").lower()
    if fmt not in EXPORT_FORMATS:
        raise ValidationError("Format must be csv or xlsx")

    df = pd.DataFrame(report.rows, columns=REPORT_COLUMNS)
    filename = f"attendance_{report.start:%Y%m%d}_{report.end:%Y%m%d}.{fmt}"
    output = io.BytesIO()
    if fmt == "csv":
        output.write(df.to_csv(index=False).encode("utf-8"))
        mimetype = "text/csv"
    else:
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Attendance")
            pd.DataFrame(report.summary).to_excel(writer, index=False, sheet_name="Summary")
        mimetype = XLSX_MIMETYPE
    output.seek(0)
    return output, mimetype, filename
