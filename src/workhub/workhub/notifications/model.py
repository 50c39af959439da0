from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationType


@dataclass(frozen=True)
class NewNotification:
    user_id: int
    type: NotificationType
    title: str
    message: str
    action_url: Optional[str] = None


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    action_url: Optional[str]
    read: bool
    created_at: datetime
    read_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "actionUrl": self.action_url,
            "read": self.read,
            "createdAt": self.created_at.isoformat(),
            "readAt": self.read_at.isoformat() if self.read_at else None,
        }
