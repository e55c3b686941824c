"""User- and admin-facing texts and the keyboards attached to them."""

from __future__ import annotations

from typing import Mapping

from supportbot.routing.payloads import MAX_RATING, MIN_RATING, Close, Rate, Reply, SelectTopic
from supportbot.sessions.models import Conversation
from supportbot.telegram.dispatcher import InlineButton

UNKNOWN_HANDLE = "unknown"

ADMIN_REGISTERED = (
    "✅ This chat is now registered as the support admin chat.\n\n"
    "Chat ID: {chat_id}\n\n"
    "User questions will be delivered here."
)
ACTIVE_CONVERSATION = (
    "📞 You already have an active conversation.\n\n"
    "💬 Keep writing your question or wait for the admin's reply."
)
WELCOME = (
    "🎉 Hello, {name}!\n\n"
    "📞 Welcome to support.\n\n"
    "Choose one of the services below:"
)
TOPIC_SELECTED = (
    "✅ You selected {label}.\n\n"
    "📝 Write your question. You can send several messages during the conversation.\n\n"
    "You will be notified when the admin replies."
)
MESSAGE_RECEIVED = "✅ Your message has been received. An admin will reply soon."
NO_CONVERSATION = "📱 Press /start to begin a conversation."
REPLY_PROMPT = "📝 Write your reply to @{handle}:"
ADMIN_REPLY = "📬 Admin reply:\n\n{text}\n\n💬 Write again if you have more questions."
REPLY_DELIVERED = "✅ Reply sent to @{handle}!"
REPLY_FAILED = "❌ Error: the message could not be delivered to the user."
RATING_REQUEST = "✅ The conversation has been closed!\n\nPlease rate the service from 1 to 5:"
CLOSE_CONFIRMED = "✅ Conversation closed. A rating request was sent to the user."
ALREADY_CLOSED = "ℹ️ This conversation is no longer active."
RATING_TOAST = "Thank you! You rated {value} ⭐."
RATING_THANKS = "🙏 Thank you! Your rating: {value} ⭐\n\nPress /start for a new question."


def topic_label(topics: Mapping[str, str], topic: str) -> str:
    return topics.get(topic, topic)


def topic_keyboard(topics: Mapping[str, str]) -> list[list[InlineButton]]:
    """One row per configured topic."""

    return [
        [InlineButton(text=f"🤖 {label}", callback_data=SelectTopic(topic=key).serialize())]
        for key, label in topics.items()
    ]


def admin_actions_keyboard(user_id: int, *, follow_up: bool = False) -> list[list[InlineButton]]:
    reply_label = "✍️ Reply again" if follow_up else "✍️ Reply"
    return [
        [
            InlineButton(text=reply_label, callback_data=Reply(user_id=user_id).serialize()),
            InlineButton(text="🔚 Close conversation", callback_data=Close(user_id=user_id).serialize()),
        ]
    ]


def rating_keyboard(user_id: int) -> list[list[InlineButton]]:
    return [
        [
            InlineButton(text=f"⭐ {value}", callback_data=Rate(value=value, user_id=user_id).serialize())
            for value in range(MIN_RATING, MAX_RATING + 1)
        ]
    ]


def admin_relay_notice(conversation: Conversation, text: str, label: str) -> str:
    """Notice shown in the admin chat for each user message."""

    header = f"📩 Message #{conversation.user_message_count}"
    if conversation.awaiting_rating:
        header += " (closed, awaiting rating)"
    return (
        f"{header}\n\n"
        f"👤 User: @{conversation.participant_handle}\n"
        f"🆔 User ID: {conversation.user_id}\n"
        f"📱 Service: {label}\n\n"
        f"💬 Message:\n{text}"
    )


def admin_rating_notice(handle: str, user_id: int, value: int) -> str:
    return (
        "⭐ Rating received!\n\n"
        f"👤 User: @{handle}\n"
        f"🆔 User ID: {user_id}\n"
        f"⭐ Rating: {value}/{MAX_RATING}"
    )
