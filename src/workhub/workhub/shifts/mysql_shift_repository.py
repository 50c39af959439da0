from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Shift
from .repository import ShiftRepository

_SHIFT_COLUMNS = "shift_id, organization_id, shift_name, start_time, end_time, break_minutes, grace_minutes"


def _to_shift(r: dict) -> Shift:
    return Shift(
        shift_id=int(r["shift_id"]),
        organization_id=r.get("organization_id"),
        shift_name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        break_minutes=int(r.get("break_minutes") or 0),
        grace_minutes=int(r.get("grace_minutes") or 0),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

    def list_for_organization(self, organization_id: int) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SHIFT_COLUMNS} FROM shifts WHERE organization_id=%s ORDER BY shift_id",
                (int(organization_id),),
            )
            return [_to_shift(r) for r in fetchall(cur)]

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SHIFT_COLUMNS} FROM shifts WHERE shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def create_shift(
        self,
        *,
        organization_id: int,
        shift_name: str,
        start_time: time,
        end_time: time,
        break_minutes: int,
        grace_minutes: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(organization_id, shift_name, start_time, end_time, break_minutes, grace_minutes)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(organization_id), shift_name, start_time, end_time, int(break_minutes), int(grace_minutes)),
            )
            return int(cur.lastrowid)
