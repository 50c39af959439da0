from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ChannelType
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import Channel, ChannelMember, ChatMessage
from .repository import ChatRepository

_MESSAGE_SELECT = """
    SELECT m.message_id, m.channel_id, m.sender_id, m.content, m.parent_id, m.mentions, m.created_at,
           u.first_name, u.last_name
    FROM chat_messages m
    JOIN users u ON u.user_id = m.sender_id
"""


def _to_message(r: dict) -> ChatMessage:
    return ChatMessage(
        message_id=int(r["message_id"]),
        channel_id=int(r["channel_id"]),
        sender_id=int(r["sender_id"]),
        content=r["content"],
        created_at=r["created_at"],
        parent_id=r.get("parent_id"),
        mentions=tuple(int(m) for m in from_json(r.get("mentions"), [])),
        sender_name=f"{r.get('first_name') or ''} {r.get('last_name') or ''}".strip(),
    )


class MySQLChatRepository(ChatRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

    def create_channel(
        self,
        *,
        organization_id: Optional[int],
        name: str,
        description: Optional[str],
        type: ChannelType,
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO channels(organization_id, name, description, type, created_by)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (organization_id, name, description, type.value, int(created_by)),
            )
            return int(cur.lastrowid)

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT channel_id, organization_id, name, description, type, created_by
                FROM channels
                WHERE channel_id=%s
                """,
                (int(channel_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Channel(
                channel_id=int(r["channel_id"]),
                organization_id=r.get("organization_id"),
                name=r["name"],
                type=ChannelType(r["type"]),
                created_by=int(r["created_by"]),
                description=r.get("description"),
            )

    def add_members(self, channel_id: int, user_ids: Sequence[int]) -> None:
        if not user_ids:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "INSERT IGNORE INTO channel_members(channel_id, user_id) VALUES(%s,%s)",
                [(int(channel_id), int(u)) for u in user_ids],
            )

    def get_member(self, channel_id: int, user_id: int) -> Optional[ChannelMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT channel_id, user_id, last_read FROM channel_members WHERE channel_id=%s AND user_id=%s",
                (int(channel_id), int(user_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ChannelMember(channel_id=int(r["channel_id"]), user_id=int(r["user_id"]), last_read=r.get("last_read"))

    def touch_last_read(self, channel_id: int, user_id: int, *, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE channel_members SET last_read=%s WHERE channel_id=%s AND user_id=%s",
                (at, int(channel_id), int(user_id)),
            )

    def list_channels_for_user(self, user_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.channel_id, c.name, c.description, c.type, cm.last_read,
                       (SELECT COUNT(*) FROM channel_members x WHERE x.channel_id = c.channel_id) AS member_count,
                       (SELECT MAX(m.message_id) FROM chat_messages m WHERE m.channel_id = c.channel_id) AS last_message_id
                FROM channel_members cm
                JOIN channels c ON c.channel_id = cm.channel_id
                WHERE cm.user_id=%s
                ORDER BY c.name
                """,
                (int(user_id),),
            )
            rows = fetchall(cur)
            out: list[dict] = []
            for r in rows:
                last_message = None
                if r.get("last_message_id"):
                    cur.execute(_MESSAGE_SELECT + " WHERE m.message_id=%s", (int(r["last_message_id"]),))
                    m = fetchone(cur)
                    last_message = _to_message(m).to_dict() if m else None
                out.append(
                    {
                        "id": int(r["channel_id"]),
                        "name": r["name"],
                        "description": r.get("description"),
                        "type": r["type"],
                        "memberCount": int(r["member_count"] or 0),
                        "lastRead": r["last_read"].isoformat() if r.get("last_read") else None,
                        "lastMessage": last_message,
                    }
                )
            return out

    def list_messages(self, channel_id: int, *, before_id: Optional[int], limit: int) -> Sequence[ChatMessage]:
        where = "m.channel_id=%s"
        params: list[object] = [int(channel_id)]
        if before_id is not None:
            where += " AND m.message_id < %s"
            params.append(int(before_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _MESSAGE_SELECT + f" WHERE {where} ORDER BY m.message_id DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_to_message(r) for r in fetchall(cur)]

    def create_message(
        self,
        *,
        channel_id: int,
        sender_id: int,
        content: str,
        parent_id: Optional[int],
        mentions: Sequence[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO chat_messages(channel_id, sender_id, content, parent_id, mentions)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(channel_id), int(sender_id), content, parent_id, to_json([int(m) for m in mentions])),
            )
            return int(cur.lastrowid)

    def get_message(self, message_id: int) -> Optional[ChatMessage]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_MESSAGE_SELECT + " WHERE m.message_id=%s", (int(message_id),))
            r = fetchone(cur)
            return _to_message(r) if r else None
