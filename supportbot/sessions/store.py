"""Session store abstractions and the in-process implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from supportbot.core.errors import ConflictError, NotFoundError

from .models import AdminReplyState, Conversation, MessageEntry, Sender, utcnow


class SessionStore(ABC):
    """Abstract interface over per-user conversations and per-admin reply targets."""

    @abstractmethod
    def start_conversation(
        self,
        user_id: int,
        handle: str,
        topic: str,
        channel_id: int,
    ) -> Conversation:
        """Create a conversation; raise ConflictError if one already exists."""

    @abstractmethod
    def get_conversation(self, user_id: int) -> Conversation | None:
        """Return the conversation for a user, if any."""

    @abstractmethod
    def append_message(self, user_id: int, sender: Sender, text: str) -> MessageEntry:
        """Append to the conversation log; raise NotFoundError if absent."""

    @abstractmethod
    def mark_awaiting_rating(self, user_id: int) -> Conversation:
        """Flag the conversation as closed by the admin and awaiting a rating."""

    @abstractmethod
    def close_conversation(self, user_id: int) -> Conversation | None:
        """Remove the conversation. Removing a missing one is a no-op."""

    @abstractmethod
    def set_admin_reply_target(self, admin_id: int, user_id: int) -> AdminReplyState:
        """Remember which conversation the admin's next message answers."""

    @abstractmethod
    def consume_admin_reply_target(self, admin_id: int) -> int | None:
        """Return and forget the admin's pending reply target."""

    @abstractmethod
    def iter_conversations(self) -> Iterable[Conversation]:
        """Iterate over active conversations."""

    @abstractmethod
    def count(self) -> int:
        """Number of active conversations."""

    def has_conversation(self, user_id: int) -> bool:
        return self.get_conversation(user_id) is not None


class InMemorySessionStore(SessionStore):
    """Dictionary-backed store; state lives for the lifetime of the process."""

    def __init__(self) -> None:
        self._conversations: dict[int, Conversation] = {}
        self._admin_states: dict[int, AdminReplyState] = {}

    def start_conversation(
        self,
        user_id: int,
        handle: str,
        topic: str,
        channel_id: int,
    ) -> Conversation:
        if user_id in self._conversations:
            raise ConflictError(user_id)

        conversation = Conversation(
            user_id=user_id,
            participant_handle=handle,
            topic=topic,
            origin_chat_id=channel_id,
        )
        self._conversations[user_id] = conversation
        return conversation

    def get_conversation(self, user_id: int) -> Conversation | None:
        return self._conversations.get(user_id)

    def append_message(self, user_id: int, sender: Sender, text: str) -> MessageEntry:
        conversation = self._require(user_id)
        entry = MessageEntry(sender=Sender(sender), text=text)
        conversation.message_log.append(entry)
        return entry

    def mark_awaiting_rating(self, user_id: int) -> Conversation:
        conversation = self._require(user_id)
        if conversation.closed_at is None:
            conversation.closed_at = utcnow()
        return conversation

    def close_conversation(self, user_id: int) -> Conversation | None:
        return self._conversations.pop(user_id, None)

    def set_admin_reply_target(self, admin_id: int, user_id: int) -> AdminReplyState:
        state = AdminReplyState(admin_id=admin_id, target_user_id=user_id)
        self._admin_states[admin_id] = state
        return state

    def consume_admin_reply_target(self, admin_id: int) -> int | None:
        state = self._admin_states.pop(admin_id, None)
        return state.target_user_id if state else None

    def iter_conversations(self) -> Iterable[Conversation]:
        return list(self._conversations.values())

    def count(self) -> int:
        return len(self._conversations)

    def _require(self, user_id: int) -> Conversation:
        conversation = self._conversations.get(user_id)
        if conversation is None:
            raise NotFoundError(user_id)
        return conversation
