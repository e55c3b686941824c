"""Dataclasses representing support conversations and admin reply state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Sender(str, Enum):
    """Party that authored a logged message."""

    USER = "user"
    ADMIN = "admin"


@dataclass(slots=True)
class MessageEntry:
    """Single relayed message in a conversation log."""

    sender: Sender
    text: str
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class Conversation:
    """Support interaction of one end user, keyed by their user id."""

    user_id: int
    participant_handle: str
    topic: str
    origin_chat_id: int
    message_log: list[MessageEntry] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    closed_at: datetime | None = None

    @property
    def awaiting_rating(self) -> bool:
        return self.closed_at is not None

    @property
    def user_message_count(self) -> int:
        return sum(1 for entry in self.message_log if entry.sender is Sender.USER)


@dataclass(slots=True)
class AdminReplyState:
    """Conversation an admin is currently drafting a reply into."""

    admin_id: int
    target_user_id: int
    created_at: datetime = field(default_factory=utcnow)
