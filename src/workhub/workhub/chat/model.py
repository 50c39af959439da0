from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import ChannelType


@dataclass(frozen=True)
class Channel:
    channel_id: int
    organization_id: Optional[int]
    name: str
    type: ChannelType
    created_by: int
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.channel_id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class ChannelMember:
    channel_id: int
    user_id: int
    last_read: Optional[datetime] = None


@dataclass(frozen=True)
class ChatMessage:
    message_id: int
    channel_id: int
    sender_id: int
    content: str
    created_at: datetime
    parent_id: Optional[int] = None
    mentions: tuple[int, ...] = field(default_factory=tuple)
    sender_name: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.message_id,
            "channelId": self.channel_id,
            "content": self.content,
            "parentId": self.parent_id,
            "mentions": list(self.mentions),
            "createdAt": self.created_at.isoformat(),
            "sender": {"id": self.sender_id, "name": self.sender_name},
        }


@dataclass(frozen=True)
class MessagePage:
    """Messages oldest-first plus the cursor for the next (older) page."""

    messages: list[ChatMessage]
    next_cursor: Optional[str]

    def to_dict(self) -> dict:
        return {"messages": [m.to_dict() for m in self.messages], "nextCursor": self.next_cursor}
