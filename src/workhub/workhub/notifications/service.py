from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..database.unit_of_work import Repositories, UnitOfWork
from ..users.session import Session
from .model import NewNotification, Notification


def notify(repos: Repositories, items: Iterable[NewNotification]) -> int:
    """Queue notifications inside the caller's unit of work."""
    items = list(items)
    if not items:
        return 0
    return repos.notifications.create_many(items)


class NotificationService:
    def __init__(self, uow: UnitOfWork, *, clock: Callable = now_local):
        self._uow = uow
        self._clock = clock

    def list_for_user(self, actor: Session, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        limit = max(1, min(int(limit), 200))
        with self._uow() as repos:
            return repos.notifications.list_for_user(actor.user_id, unread_only=unread_only, limit=limit)

    def unread_count(self, actor: Session) -> int:
        with self._uow() as repos:
            return repos.notifications.count_unread(actor.user_id)

    def mark_read(self, actor: Session, ids: Optional[Sequence[int]] = None) -> int:
        """Mark some (or, without ids, all) of the actor's notifications as read."""
        if ids is not None:
            ids = [int(i) for i in ids]
            if not ids:
                return 0
        with self._uow() as repos:
            return repos.notifications.mark_read(actor.user_id, ids=ids, at=self._clock())
