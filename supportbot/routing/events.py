"""Routing-related enums and data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from supportbot.routing.payloads import CallbackPayload


class EventKind(str, Enum):
    """Every inbound event is classified as exactly one of these."""

    START_COMMAND = "start_command"
    TOPIC_SELECTION = "topic_selection"
    ADMIN_REPLY_REQUEST = "admin_reply_request"
    ADMIN_CLOSE_REQUEST = "admin_close_request"
    USER_RATING = "user_rating"
    ADMIN_FREE_TEXT = "admin_free_text"
    USER_FREE_TEXT = "user_free_text"
    IGNORED = "ignored"


@dataclass(slots=True)
class Participant:
    """Sender of an update as reported by the platform."""

    user_id: int
    username: str | None = None
    first_name: str | None = None

    @property
    def handle(self) -> str:
        return self.username or self.first_name or "unknown"


@dataclass(slots=True)
class InboundEvent:
    """Normalized view of a single Telegram update."""

    kind: EventKind
    chat_id: int
    chat_type: str
    sender: Participant
    text: str | None = None
    callback_id: str | None = None
    payload: CallbackPayload | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_group_chat(self) -> bool:
        return self.chat_type in {"group", "supergroup"}
