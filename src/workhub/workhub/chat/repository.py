from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ChannelType
from .model import Channel, ChannelMember, ChatMessage


class ChatRepository(Protocol):
    def create_channel(
        self,
        *,
        organization_id: Optional[int],
        name: str,
        description: Optional[str],
        type: ChannelType,
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        raise NotImplementedError

    def add_members(self, channel_id: int, user_ids: Sequence[int]) -> None:
        raise NotImplementedError

    def get_member(self, channel_id: int, user_id: int) -> Optional[ChannelMember]:
        raise NotImplementedError

    def touch_last_read(self, channel_id: int, user_id: int, *, at: datetime) -> None:
        raise NotImplementedError

    def list_channels_for_user(self, user_id: int) -> Sequence[dict]:
        """Channels the user belongs to, each with member count and last message."""

        raise NotImplementedError

    def list_messages(self, channel_id: int, *, before_id: Optional[int], limit: int) -> Sequence[ChatMessage]:
        """Newest first, strictly older than ``before_id`` when given."""

        raise NotImplementedError

    def create_message(
        self,
        *,
        channel_id: int,
        sender_id: int,
        content: str,
        parent_id: Optional[int],
        mentions: Sequence[int],
    ) -> int:
        raise NotImplementedError

    def get_message(self, message_id: int) -> Optional[ChatMessage]:
        raise NotImplementedError
