from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyClockedIn
from ..database.mysql_base import db_cursor, fetchall, fetchone, for_update as lock_clause, is_duplicate_key
from .model import AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date, status, clock_in, clock_out, on_break,
    break_started_at, break_seconds, work_hours, overtime_hours, locked, notes
"""


def _opt_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        clock_in=r.get("clock_in"),
        clock_out=r.get("clock_out"),
        on_break=bool(r.get("on_break")),
        break_started_at=r.get("break_started_at"),
        break_seconds=int(r.get("break_seconds") or 0),
        work_hours=_opt_float(r.get("work_hours")),
        overtime_hours=_opt_float(r.get("overtime_hours")),
        locked=bool(r.get("locked")),
        notes=r.get("notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE user_id=%s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_for_user_and_date(
        self,
        user_id: int,
        work_date: date,
        *,
        for_update: bool = False,
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE user_id=%s AND work_date=%s" + lock_clause(for_update),
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_open_for_user(self, user_id: int, *, for_update: bool = False) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE user_id=%s AND clock_in IS NOT NULL AND clock_out IS NULL AND locked=0
                ORDER BY work_date DESC
                LIMIT 1
                """
                + lock_clause(for_update),
                (int(user_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_by_id(self, attendance_id: int, *, for_update: bool = False) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s" + lock_clause(for_update),
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create_clock_in(
        self,
        *,
        user_id: int,
        work_date: date,
        clock_in: datetime,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance(user_id, work_date, status, clock_in, notes)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(user_id), work_date, status.value, clock_in, notes),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise AlreadyClockedIn() from e
            raise

    def save(self, record: AttendanceRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET status=%s, clock_in=%s, clock_out=%s, on_break=%s, break_started_at=%s,
                    break_seconds=%s, work_hours=%s, overtime_hours=%s, locked=%s, notes=%s
                WHERE attendance_id=%s
                """,
                (
                    record.status.value,
                    record.clock_in,
                    record.clock_out,
                    int(record.on_break),
                    record.break_started_at,
                    int(record.break_seconds),
                    record.work_hours,
                    record.overtime_hours,
                    int(record.locked),
                    record.notes,
                    int(record.attendance_id),
                ),
            )

    def lock_finished_before(self, *, organization_id: int, day: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance a
                JOIN users u ON u.user_id = a.user_id
                SET a.locked=1
                WHERE u.organization_id=%s AND a.work_date < %s
                  AND a.clock_out IS NOT NULL AND a.locked=0
                """,
                (int(organization_id), day),
            )
            return cur.rowcount

    def get_report_rows(
        self,
        *,
        organization_id: int,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses = ["u.organization_id=%s", "a.work_date BETWEEN %s AND %s"]
        params: list[object] = [int(organization_id), start_date, end_date]
        if user_id is not None:
            clauses.append("a.user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.user_id, u.first_name, u.last_name, u.email,
                       a.work_date, a.status, a.clock_in, a.clock_out, a.work_hours, a.overtime_hours
                FROM attendance a
                JOIN users u ON u.user_id = a.user_id
                WHERE {where}
                ORDER BY a.work_date, u.first_name, u.last_name
                """,
                tuple(params),
            )
            return [
                AttendanceReportRow(
                    user_id=int(r["user_id"]),
                    full_name=f"{r['first_name']} {r['last_name']}".strip(),
                    email=r["email"],
                    work_date=r["work_date"],
                    status=AttendanceStatus(r["status"]),
                    clock_in=r.get("clock_in"),
                    clock_out=r.get("clock_out"),
                    work_hours=_opt_float(r.get("work_hours")),
                    overtime_hours=_opt_float(r.get("overtime_hours")),
                )
                for r in fetchall(cur)
            ]
