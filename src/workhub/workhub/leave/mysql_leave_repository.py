from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import LeaveStatus
from ..database.mysql_base import db_cursor, fetchall, fetchone, for_update as lock_clause, to_decimal
from .model import LeaveBalance, LeaveRequest, LeaveType
from .repository import LeaveRepository

_BALANCE_COLUMNS = "balance_id, user_id, leave_type_id, year, entitled, used, pending, carried_over"
_REQUEST_COLUMNS = """
    request_id, user_id, leave_type_id, start_date, end_date, half_day, days, status,
    reason, approver_id, decided_at, rejection_reason, created_at
"""


def _to_leave_type(r: dict) -> LeaveType:
    return LeaveType(
        leave_type_id=int(r["leave_type_id"]),
        organization_id=int(r["organization_id"]),
        name=r["name"],
        default_days=to_decimal(r["default_days"]),
        carry_forward=bool(r["carry_forward"]),
        max_carry_forward=to_decimal(r.get("max_carry_forward")),
        paid=bool(r["paid"]),
    )


def _to_balance(r: dict) -> LeaveBalance:
    return LeaveBalance(
        balance_id=int(r["balance_id"]),
        user_id=int(r["user_id"]),
        leave_type_id=int(r["leave_type_id"]),
        year=int(r["year"]),
        entitled=to_decimal(r["entitled"]),
        used=to_decimal(r["used"]),
        pending=to_decimal(r["pending"]),
        carried_over=to_decimal(r["carried_over"]),
    )


def _to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        leave_type_id=int(r["leave_type_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        half_day=bool(r["half_day"]),
        days=to_decimal(r["days"]),
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        reason=r.get("reason"),
        approver_id=r.get("approver_id"),
        decided_at=r.get("decided_at"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

    # -------- Leave types --------
    def create_leave_type(
        self,
        *,
        organization_id: int,
        name: str,
        default_days: Decimal,
        carry_forward: bool,
        max_carry_forward: Decimal,
        paid: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_types(organization_id, name, default_days, carry_forward, max_carry_forward, paid)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(organization_id), name, default_days, int(carry_forward), max_carry_forward, int(paid)),
            )
            return int(cur.lastrowid)

    def get_leave_type(self, leave_type_id: int) -> Optional[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_type_id, organization_id, name, default_days, carry_forward, max_carry_forward, paid
                FROM leave_types
                WHERE leave_type_id=%s
                """,
                (int(leave_type_id),),
            )
            r = fetchone(cur)
            return _to_leave_type(r) if r else None

    def list_leave_types(self, organization_id: int) -> Sequence[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_type_id, organization_id, name, default_days, carry_forward, max_carry_forward, paid
                FROM leave_types
                WHERE organization_id=%s
                ORDER BY leave_type_id
                """,
                (int(organization_id),),
            )
            return [_to_leave_type(r) for r in fetchall(cur)]

    # -------- Balances --------
    def ensure_balance(self, *, user_id: int, leave_type_id: int, year: int, entitled: Decimal) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO leave_balances(user_id, leave_type_id, year, entitled, used, pending, carried_over)
                VALUES(%s,%s,%s,%s,0,0,0)
                """,
                (int(user_id), int(leave_type_id), int(year), entitled),
            )

    def get_balance(
        self,
        *,
        user_id: int,
        leave_type_id: int,
        year: int,
        for_update: bool = False,
    ) -> Optional[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_BALANCE_COLUMNS}
                FROM leave_balances
                WHERE user_id=%s AND leave_type_id=%s AND year=%s
                """ + lock_clause(for_update),
                (int(user_id), int(leave_type_id), int(year)),
            )
            r = fetchone(cur)
            return _to_balance(r) if r else None

    def save_balance(self, balance: LeaveBalance) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_balances
                SET entitled=%s, used=%s, pending=%s, carried_over=%s
                WHERE balance_id=%s
                """,
                (balance.entitled, balance.used, balance.pending, balance.carried_over, int(balance.balance_id)),
            )

    def list_balances(self, *, user_id: int, year: int) -> Sequence[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_BALANCE_COLUMNS} FROM leave_balances WHERE user_id=%s AND year=%s ORDER BY leave_type_id",
                (int(user_id), int(year)),
            )
            return [_to_balance(r) for r in fetchall(cur)]

    def list_balances_for_year(
        self,
        *,
        organization_id: int,
        year: int,
        for_update: bool = False,
    ) -> Sequence[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT b.balance_id, b.user_id, b.leave_type_id, b.year,
                       b.entitled, b.used, b.pending, b.carried_over
                FROM leave_balances b
                JOIN leave_types t ON t.leave_type_id = b.leave_type_id
                WHERE t.organization_id=%s AND b.year=%s
                ORDER BY b.balance_id
                """ + lock_clause(for_update),
                (int(organization_id), int(year)),
            )
            return [_to_balance(r) for r in fetchall(cur)]

    # -------- Requests --------
    def create_request(
        self,
        *,
        user_id: int,
        leave_type_id: int,
        start_date: date,
        end_date: date,
        half_day: bool,
        days: Decimal,
        reason: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(user_id, leave_type_id, start_date, end_date, half_day, days, status, reason)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    int(leave_type_id),
                    start_date,
                    end_date,
                    int(half_day),
                    days,
                    LeaveStatus.PENDING.value,
                    reason,
                ),
            )
            return int(cur.lastrowid)

    def get_request(self, request_id: int, *, for_update: bool = False) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE request_id=%s" + lock_clause(for_update),
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def update_request(self, request: LeaveRequest) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approver_id=%s, decided_at=%s, rejection_reason=%s
                WHERE request_id=%s
                """,
                (
                    request.status.value,
                    request.approver_id,
                    request.decided_at,
                    request.rejection_reason,
                    int(request.request_id),
                ),
            )

    def has_overlapping_request(self, *, user_id: int, start_date: date, end_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found
                FROM leave_requests
                WHERE user_id=%s AND status IN (%s, %s)
                  AND start_date <= %s AND end_date >= %s
                LIMIT 1
                """,
                (int(user_id), LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value, end_date, start_date),
            )
            return fetchone(cur) is not None

    def list_requests(
        self,
        *,
        organization_id: int,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[dict]:
        clauses = ["u.organization_id=%s"]
        params: list[object] = [int(organization_id)]
        if user_id is not None:
            clauses.append("r.user_id=%s")
            params.append(int(user_id))
        if status is not None:
            clauses.append("r.status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT r.request_id, r.user_id, u.first_name, u.last_name, u.role,
                       r.leave_type_id, t.name AS leave_type_name,
                       r.start_date, r.end_date, r.half_day, r.days, r.status, r.reason,
                       r.approver_id, r.decided_at, r.rejection_reason, r.created_at
                FROM leave_requests r
                JOIN users u ON u.user_id = r.user_id
                JOIN leave_types t ON t.leave_type_id = r.leave_type_id
                WHERE {where}
                ORDER BY r.created_at DESC, r.request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                out.append(
                    {
                        "id": int(r["request_id"]),
                        "userId": int(r["user_id"]),
                        "userName": f"{r['first_name']} {r['last_name']}".strip(),
                        "userRole": r["role"],
                        "leaveTypeId": int(r["leave_type_id"]),
                        "leaveType": r["leave_type_name"],
                        "startDate": r["start_date"].strftime("%Y-%m-%d"),
                        "endDate": r["end_date"].strftime("%Y-%m-%d"),
                        "halfDay": bool(r["half_day"]),
                        "days": str(to_decimal(r["days"])),
                        "status": r["status"],
                        "reason": r.get("reason") or "",
                        "approverId": r.get("approver_id"),
                        "decidedAt": r["decided_at"].strftime("%Y-%m-%d %H:%M") if r.get("decided_at") else None,
                        "rejectionReason": r.get("rejection_reason") or "",
                        "createdAt": r["created_at"].strftime("%Y-%m-%d %H:%M"),
                    }
                )
            return out
