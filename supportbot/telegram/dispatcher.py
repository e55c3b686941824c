"""Outbound message dispatch with per-call failure isolation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from supportbot.core.errors import DeliveryError
from supportbot.core.metrics import MetricsCollector

logger = logging.getLogger("supportbot.dispatcher")


@dataclass(frozen=True, slots=True)
class InlineButton:
    text: str
    callback_data: str

    def as_dict(self) -> dict[str, str]:
        return {"text": self.text, "callback_data": self.callback_data}


class BotClient(Protocol):
    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> Any: ...

    async def answer_callback_query(
        self,
        callback_query_id: str,
        text: str | None = None,
        show_alert: bool = False,
    ) -> Any: ...


def inline_keyboard(rows: Sequence[Sequence[InlineButton]]) -> dict[str, Any]:
    return {"inline_keyboard": [[button.as_dict() for button in row] for row in rows]}


class OutboundDispatcher:
    """Send plain texts, texts with buttons, and callback answers.

    Failures are logged and reported as ``False``; they never propagate, so
    one undeliverable chat cannot disturb anyone else's conversation.
    """

    def __init__(self, client: BotClient, metrics: MetricsCollector | None = None) -> None:
        self._client = client
        self._metrics = metrics

    async def send_text(self, chat_id: int, text: str) -> bool:
        return await self._deliver("sendMessage", chat_id, self._client.send_message(chat_id, text))

    async def send_buttons(
        self,
        chat_id: int,
        text: str,
        rows: Sequence[Sequence[InlineButton]],
    ) -> bool:
        markup = inline_keyboard(rows)
        return await self._deliver(
            "sendMessage",
            chat_id,
            self._client.send_message(chat_id, text, reply_markup=markup),
        )

    async def answer_callback(self, callback_id: str | None, text: str | None = None) -> bool:
        if not callback_id:
            return False
        return await self._deliver(
            "answerCallbackQuery",
            callback_id,
            self._client.answer_callback_query(callback_id, text=text),
        )

    async def _deliver(self, method: str, target: Any, call) -> bool:
        try:
            await call
        except DeliveryError as exc:
            logger.warning("Delivery via %s to %s failed: %s", method, target, exc.description)
            self._record(False)
            return False
        self._record(True)
        return True

    def _record(self, success: bool) -> None:
        if self._metrics is not None:
            self._metrics.record_delivery(success)
