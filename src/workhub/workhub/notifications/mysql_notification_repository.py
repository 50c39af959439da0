from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import NotificationType
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import NewNotification, Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

    def create_many(self, items: Iterable[NewNotification]) -> int:
        rows = [(n.user_id, n.type.value, n.title, n.message, n.action_url) for n in items]
        if not rows:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO notifications(user_id, type, title, message, action_url)
                VALUES(%s,%s,%s,%s,%s)
                """,
                rows,
            )
            return len(rows)

    def list_for_user(self, user_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        where = "user_id=%s AND is_read=0" if unread_only else "user_id=%s"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT notification_id, user_id, type, title, message, action_url, is_read, created_at, read_at
                FROM notifications
                WHERE {where}
                ORDER BY created_at DESC, notification_id DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [
                Notification(
                    notification_id=int(r["notification_id"]),
                    user_id=int(r["user_id"]),
                    type=NotificationType(r["type"]),
                    title=r["title"],
                    message=r["message"],
                    action_url=r.get("action_url"),
                    read=bool(r["is_read"]),
                    created_at=r["created_at"],
                    read_at=r.get("read_at"),
                )
                for r in fetchall(cur)
            ]

    def count_unread(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM notifications WHERE user_id=%s AND is_read=0", (int(user_id),))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def mark_read(self, user_id: int, *, ids: Optional[Sequence[int]], at: datetime) -> int:
        params: list[object] = [at, int(user_id)]
        where = "user_id=%s AND is_read=0"
        if ids is not None:
            if not ids:
                return 0
            where += f" AND notification_id IN ({', '.join(['%s'] * len(ids))})"
            params.extend(int(i) for i in ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE notifications SET is_read=1, read_at=%s WHERE {where}", tuple(params))
            return cur.rowcount
