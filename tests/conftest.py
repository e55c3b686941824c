from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import pytest

from supportbot.core.config import Settings
from supportbot.core.errors import DeliveryError
from supportbot.core.metrics import MetricsCollector
from supportbot.routing.router import SupportRouter
from supportbot.sessions.store import InMemorySessionStore
from supportbot.telegram.dispatcher import OutboundDispatcher

ADMIN_CHAT_ID = -1001234
ADMIN_ID = 900
USER_ID = 4242
OTHER_USER_ID = 5151
TOPICS = {"infastai": "InFast AI"}


@dataclass
class SentMessage:
    chat_id: int
    text: str
    reply_markup: dict[str, Any] | None

    @property
    def callback_data(self) -> list[list[str]]:
        if not self.reply_markup:
            return []
        return [[button["callback_data"] for button in row] for row in self.reply_markup["inline_keyboard"]]


class FakeBotClient:
    """Records Bot API calls; chats listed in ``fail_chats`` reject deliveries."""

    def __init__(self) -> None:
        self.sent: list[SentMessage] = []
        self.answered: list[tuple[str, str | None]] = []
        self.fail_chats: set[int] = set()
        self.webhooks: list[tuple[str, str | None]] = []
        self.deleted_webhooks = 0
        self.fail_get_me = False
        self.pending_updates: list[dict[str, Any]] = []
        self.update_offsets: list[int | None] = []

    async def get_me(self) -> dict[str, Any]:
        if self.fail_get_me:
            raise DeliveryError("getMe", "Unauthorized", 401)
        return {"id": 1, "is_bot": True, "username": "support_test_bot"}

    async def send_message(self, chat_id, text, reply_markup=None):
        if chat_id in self.fail_chats:
            raise DeliveryError("sendMessage", "Forbidden: bot was blocked by the user", 403)
        self.sent.append(SentMessage(chat_id=chat_id, text=text, reply_markup=reply_markup))
        return {"message_id": len(self.sent)}

    async def answer_callback_query(self, callback_query_id, text=None, show_alert=False):
        self.answered.append((callback_query_id, text))
        return True

    async def set_webhook(self, url, secret_token=None):
        self.webhooks.append((url, secret_token))
        return True

    async def delete_webhook(self, drop_pending_updates=False):
        self.deleted_webhooks += 1
        return True

    async def get_updates(self, offset=None, timeout=0):
        self.update_offsets.append(offset)
        if self.pending_updates:
            batch, self.pending_updates = self.pending_updates, []
            return batch
        await asyncio.sleep(0.01)
        return []

    def messages_to(self, chat_id: int) -> list[SentMessage]:
        return [message for message in self.sent if message.chat_id == chat_id]


class Updates:
    """Builders for Telegram update payloads."""

    _next_id = 1

    @classmethod
    def _update_id(cls) -> int:
        cls._next_id += 1
        return cls._next_id

    @classmethod
    def message(
        cls,
        text: str | None,
        *,
        user_id: int = USER_ID,
        chat_id: int | None = None,
        chat_type: str = "private",
        username: str | None = "alice",
        first_name: str = "Alice",
    ) -> dict[str, Any]:
        message: dict[str, Any] = {
            "message_id": 10,
            "date": 1_700_000_000,
            "chat": {"id": chat_id if chat_id is not None else user_id, "type": chat_type},
            "from": {"id": user_id, "is_bot": False, "first_name": first_name},
        }
        if username:
            message["from"]["username"] = username
        if text is not None:
            message["text"] = text
        return {"update_id": cls._update_id(), "message": message}

    @classmethod
    def admin_message(cls, text: str, *, admin_id: int = ADMIN_ID) -> dict[str, Any]:
        return cls.message(
            text,
            user_id=admin_id,
            chat_id=ADMIN_CHAT_ID,
            chat_type="supergroup",
            username="support_admin",
            first_name="Admin",
        )

    @classmethod
    def callback(
        cls,
        data: str,
        *,
        user_id: int = USER_ID,
        chat_id: int | None = None,
        chat_type: str = "private",
        username: str | None = "alice",
    ) -> dict[str, Any]:
        sender: dict[str, Any] = {"id": user_id, "is_bot": False, "first_name": "Alice"}
        if username:
            sender["username"] = username
        return {
            "update_id": cls._update_id(),
            "callback_query": {
                "id": f"cb-{cls._next_id}",
                "from": sender,
                "data": data,
                "message": {
                    "message_id": 11,
                    "chat": {"id": chat_id if chat_id is not None else user_id, "type": chat_type},
                },
            },
        }

    @classmethod
    def admin_callback(cls, data: str, *, admin_id: int = ADMIN_ID) -> dict[str, Any]:
        return cls.callback(
            data,
            user_id=admin_id,
            chat_id=ADMIN_CHAT_ID,
            chat_type="supergroup",
            username="support_admin",
        )


@pytest.fixture
def updates() -> type[Updates]:
    return Updates


@pytest.fixture
def bot_client() -> FakeBotClient:
    return FakeBotClient()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def dispatcher(bot_client, metrics) -> OutboundDispatcher:
    return OutboundDispatcher(bot_client, metrics)


@pytest.fixture
def router(session_store, dispatcher, metrics) -> SupportRouter:
    return SupportRouter(
        session_store,
        dispatcher,
        topics=TOPICS,
        admin_chat_id=ADMIN_CHAT_ID,
        metrics=metrics,
    )


@pytest.fixture
def route(router):
    """Run one update through the router synchronously."""

    def _route(update: dict[str, Any]):
        return asyncio.run(router.route(update))

    return _route


@pytest.fixture
def webhook_settings() -> Settings:
    return Settings(
        _env_file=None,
        telegram_bot_token="123456:test-token",
        delivery_mode="webhook",
        public_base_url="https://support.example.com",
        support_admin_chat_id=ADMIN_CHAT_ID,
        telegram_webhook_secret=None,
    )
