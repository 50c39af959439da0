from __future__ import annotations

from typing import Any, Optional, Sequence

from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditLogEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

    def add(
        self,
        *,
        user_id: Optional[int],
        action: str,
        entity: str,
        entity_id: Optional[int],
        changes: dict[str, Any],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(user_id, action, entity, entity_id, changes)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (user_id, action, entity, entity_id, to_json(changes)),
            )
            return int(cur.lastrowid)

    def list_for_entity(self, *, entity: str, entity_id: int, limit: int = 100) -> Sequence[AuditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT audit_id, user_id, action, entity, entity_id, changes, created_at
                FROM audit_logs
                WHERE entity=%s AND entity_id=%s
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                (entity, int(entity_id), int(limit)),
            )
            return [
                AuditLogEntry(
                    audit_id=int(r["audit_id"]),
                    user_id=r.get("user_id"),
                    action=r["action"],
                    entity=r["entity"],
                    entity_id=r.get("entity_id"),
                    changes=from_json(r.get("changes"), {}),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]
