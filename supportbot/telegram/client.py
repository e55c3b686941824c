"""Thin async wrapper over the Telegram Bot API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from supportbot.core.errors import DeliveryError

logger = logging.getLogger("supportbot.telegram")


class TelegramClient:
    """Encapsulates Bot API calls. Every failure surfaces as DeliveryError."""

    def __init__(
        self,
        token: str,
        *,
        api_base: str = "https://api.telegram.org",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = f"{api_base.rstrip('/')}/bot{token}/"
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    async def get_me(self) -> dict[str, Any]:
        return await self._call("getMe")

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self._call("sendMessage", payload)

    async def answer_callback_query(
        self,
        callback_query_id: str,
        text: str | None = None,
        show_alert: bool = False,
    ) -> bool:
        payload: dict[str, Any] = {"callback_query_id": callback_query_id, "show_alert": show_alert}
        if text:
            payload["text"] = text
        return await self._call("answerCallbackQuery", payload)

    async def set_webhook(self, url: str, secret_token: str | None = None) -> bool:
        payload: dict[str, Any] = {
            "url": url,
            "allowed_updates": ["message", "callback_query"],
        }
        if secret_token:
            payload["secret_token"] = secret_token
        return await self._call("setWebhook", payload)

    async def delete_webhook(self, drop_pending_updates: bool = False) -> bool:
        return await self._call("deleteWebhook", {"drop_pending_updates": drop_pending_updates})

    async def get_webhook_info(self) -> dict[str, Any]:
        return await self._call("getWebhookInfo")

    async def get_updates(self, offset: int | None = None, timeout: int = 0) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {
            "timeout": timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset
        # The HTTP timeout must outlast the long-poll window.
        return await self._call("getUpdates", payload, timeout=self._timeout + timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(
        self,
        method: str,
        payload: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        try:
            response = await self._client.post(
                method,
                json=payload or {},
                timeout=timeout if timeout is not None else self._timeout,
            )
        except httpx.HTTPError as exc:
            raise DeliveryError(method, str(exc) or exc.__class__.__name__) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise DeliveryError(method, response.text[:200], response.status_code) from exc
        if not isinstance(body, dict):
            raise DeliveryError(method, "unexpected response body", response.status_code)

        if response.is_error or not body.get("ok"):
            description = body.get("description") or f"HTTP {response.status_code}"
            logger.error("Bot API %s %s – %s", method, response.status_code, description)
            raise DeliveryError(method, description, response.status_code)

        return body.get("result")
