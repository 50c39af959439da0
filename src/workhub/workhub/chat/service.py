from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, slugify
from ..core.constants import DEFAULT_MESSAGE_PAGE_SIZE, MAX_MESSAGE_PAGE_SIZE
from ..core.enums import ChannelType, NotificationType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..database.unit_of_work import Repositories, UnitOfWork
from ..notifications.model import NewNotification
from ..notifications.service import notify
from ..users.session import Session
from .model import Channel, ChatMessage, MessagePage

logger = logging.getLogger(__name__)


def parse_cursor(cursor: Optional[str]) -> Optional[int]:
    """Cursors are opaque to clients; internally the id of the oldest message seen."""
    if cursor in (None, ""):
        return None
    try:
        value = int(cursor)
    except (TypeError, ValueError):
        raise ValidationError("Invalid cursor")
    if value <= 0:
        raise ValidationError("Invalid cursor")
    return value


class ChatService:
    def __init__(self, uow: UnitOfWork, *, clock: Callable = now_local):
        self._uow = uow
        self._clock = clock

    @staticmethod
    def _require_member(repos: Repositories, actor: Session, channel_id: int) -> Channel:
        channel = repos.chat.get_channel(int(channel_id))
        if not channel:
            raise NotFoundError("Channel not found")
        if not repos.chat.get_member(channel.channel_id, actor.user_id):
            raise AuthorizationError("Not a member of this channel")
        return channel

    def list_channels(self, actor: Session) -> Sequence[dict]:
        with self._uow() as repos:
            return repos.chat.list_channels_for_user(actor.user_id)

    def create_channel(
        self,
        actor: Session,
        *,
        name: str,
        description: Optional[str] = None,
        type: ChannelType = ChannelType.PUBLIC,
        member_ids: Sequence[int] = (),
    ) -> Channel:
        name = slugify(require_non_empty(name, "Channel name"))
        if not name:
            raise ValidationError("Channel name is required")

        with self._uow() as repos:
            members = [actor.user_id]
            for uid in member_ids:
                user = repos.users.get_by_id(int(uid))
                if not user or user.organization_id != actor.organization_id:
                    raise ValidationError(f"User {uid} is not a member of this organization")
                if user.user_id not in members:
                    members.append(user.user_id)

            channel_id = repos.chat.create_channel(
                organization_id=actor.organization_id,
                name=name,
                description=(description or "").strip() or None,
                type=type,
                created_by=actor.user_id,
            )
            repos.chat.add_members(channel_id, members)
            channel = repos.chat.get_channel(channel_id)

        logger.info("Channel #%s (%s) created by user %s", name, channel_id, actor.user_id)
        return channel

    def list_messages(
        self,
        actor: Session,
        *,
        channel_id: int,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> MessagePage:
        """One page of history, oldest first; ``next_cursor`` fetches older messages."""
        before_id = parse_cursor(cursor)
        limit = DEFAULT_MESSAGE_PAGE_SIZE if limit is None else int(limit)
        limit = max(1, min(limit, MAX_MESSAGE_PAGE_SIZE))

        with self._uow() as repos:
            channel = self._require_member(repos, actor, channel_id)
            newest_first = list(repos.chat.list_messages(channel.channel_id, before_id=before_id, limit=limit))
            repos.chat.touch_last_read(channel.channel_id, actor.user_id, at=self._clock())

        next_cursor = str(newest_first[-1].message_id) if len(newest_first) == limit else None
        return MessagePage(messages=list(reversed(newest_first)), next_cursor=next_cursor)

    def post_message(
        self,
        actor: Session,
        *,
        channel_id: int,
        content: str,
        parent_id: Optional[int] = None,
        mentions: Sequence[int] = (),
    ) -> ChatMessage:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Content is required")

        with self._uow() as repos:
            channel = self._require_member(repos, actor, channel_id)
            if parent_id is not None:
                parent = repos.chat.get_message(int(parent_id))
                if not parent or parent.channel_id != channel.channel_id:
                    raise ValidationError("Parent message not found in this channel")

            mentioned = []
            for uid in dict.fromkeys(int(m) for m in mentions):
                user = repos.users.get_by_id(uid)
                if uid != actor.user_id and user and user.organization_id == actor.organization_id:
                    mentioned.append(uid)
            message_id = repos.chat.create_message(
                channel_id=channel.channel_id,
                sender_id=actor.user_id,
                content=content,
                parent_id=int(parent_id) if parent_id is not None else None,
                mentions=mentioned,
            )
            notify(
                repos,
                (
                    NewNotification(
                        user_id=uid,
                        type=NotificationType.MENTION,
                        title=f"{actor.full_name} mentioned you",
                        message=content[:100],
                        action_url=f"/chat?channel={channel.channel_id}",
                    )
                    for uid in mentioned
                ),
            )
            repos.chat.touch_last_read(channel.channel_id, actor.user_id, at=self._clock())
            return repos.chat.get_message(message_id)
