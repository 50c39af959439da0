from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..database.mysql_base import db_cursor, fetchall
from .model import TimeEntry
from .repository import TimeEntryRepository


class MySQLTimeEntryRepository(TimeEntryRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_entries(
                    user_id, task_id, project_id, work_date, start_time, end_time,
                    duration_seconds, billable, description
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    task_id,
                    project_id,
                    work_date,
                    start_time,
                    end_time,
                    int(duration_seconds),
                    int(billable),
                    description,
                ),
            )
            return int(cur.lastrowid)

    def list_for_user(self, user_id: int, *, start_date: date, end_date: date) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT entry_id, user_id, task_id, project_id, work_date, start_time, end_time,
                       duration_seconds, billable, description
                FROM time_entries
                WHERE user_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY start_time
                """,
                (int(user_id), start_date, end_date),
            )
            return [
                TimeEntry(
                    entry_id=int(r["entry_id"]),
                    user_id=int(r["user_id"]),
                    task_id=r.get("task_id"),
                    project_id=r.get("project_id"),
                    work_date=r["work_date"],
                    start_time=r["start_time"],
                    end_time=r["end_time"],
                    duration_seconds=int(r["duration_seconds"]),
                    billable=bool(r["billable"]),
                    description=r.get("description"),
                )
                for r in fetchall(cur)
            ]
