from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from .model import NewNotification, Notification


class NotificationRepository(Protocol):
    def create_many(self, items: Iterable[NewNotification]) -> int:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        raise NotImplementedError

    def count_unread(self, user_id: int) -> int:
        raise NotImplementedError

    def mark_read(self, user_id: int, *, ids: Optional[Sequence[int]], at: datetime) -> int:
        """Mark the given ids (or every unread one when ``ids`` is None) as read."""

        raise NotImplementedError
