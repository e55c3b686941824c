"""Shape-based classification of Telegram updates."""

from __future__ import annotations

import re
from typing import Any, Mapping

from supportbot.core.errors import PayloadError
from supportbot.routing.events import EventKind, InboundEvent, Participant
from supportbot.routing.payloads import Close, Rate, Reply, SelectTopic, parse_callback_payload

COMMAND_PREFIX = "/"
_START_RE = re.compile(r"^/start(?:@\w+)?(?:\s|$)")

_PAYLOAD_KINDS = {
    SelectTopic: EventKind.TOPIC_SELECTION,
    Reply: EventKind.ADMIN_REPLY_REQUEST,
    Close: EventKind.ADMIN_CLOSE_REQUEST,
    Rate: EventKind.USER_RATING,
}


class UpdateClassifier:
    """Turn a raw update into an InboundEvent without looking at message meaning."""

    def classify(self, update: Mapping[str, Any], admin_chat_id: int | None) -> InboundEvent | None:
        """Return the classified event, or None when the update carries no usable chat.

        Raises PayloadError when a button press carries malformed data.
        """

        callback = update.get("callback_query")
        if callback:
            return self._classify_callback(callback)

        message = update.get("message")
        if message:
            return self._classify_message(message, admin_chat_id)

        return None

    def _classify_callback(self, callback: Mapping[str, Any]) -> InboundEvent | None:
        message = callback.get("message") or {}
        chat = message.get("chat") or {}
        sender = _participant(callback.get("from"))
        if "id" not in chat or sender is None:
            return None

        payload = parse_callback_payload(callback.get("data"))
        return InboundEvent(
            kind=_PAYLOAD_KINDS[type(payload)],
            chat_id=int(chat["id"]),
            chat_type=str(chat.get("type", "private")),
            sender=sender,
            callback_id=callback.get("id"),
            payload=payload,
            raw=callback,
        )

    def _classify_message(
        self,
        message: Mapping[str, Any],
        admin_chat_id: int | None,
    ) -> InboundEvent | None:
        chat = message.get("chat") or {}
        sender = _participant(message.get("from"))
        if "id" not in chat or sender is None:
            return None

        chat_id = int(chat["id"])
        text = message.get("text")
        kind = self._message_kind(text, chat_id, admin_chat_id)
        return InboundEvent(
            kind=kind,
            chat_id=chat_id,
            chat_type=str(chat.get("type", "private")),
            sender=sender,
            text=text,
            raw=message,
        )

    def _message_kind(self, text: str | None, chat_id: int, admin_chat_id: int | None) -> EventKind:
        if not text:
            return EventKind.IGNORED
        if _START_RE.match(text):
            return EventKind.START_COMMAND
        if text.startswith(COMMAND_PREFIX):
            return EventKind.IGNORED
        if admin_chat_id is not None and chat_id == admin_chat_id:
            return EventKind.ADMIN_FREE_TEXT
        return EventKind.USER_FREE_TEXT


def _participant(data: Mapping[str, Any] | None) -> Participant | None:
    if not data or "id" not in data:
        return None
    try:
        user_id = int(data["id"])
    except (TypeError, ValueError) as exc:
        raise PayloadError(f"invalid sender id: {data.get('id')!r}") from exc
    return Participant(
        user_id=user_id,
        username=data.get("username"),
        first_name=data.get("first_name"),
    )
