"""Support bot service: lifecycle, update intake and health reporting."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from supportbot.core.config import Settings
from supportbot.core.errors import DeliveryError, InitializationError
from supportbot.core.metrics import MetricsCollector
from supportbot.routing.events import EventKind
from supportbot.routing.router import SupportRouter
from supportbot.sessions.store import InMemorySessionStore, SessionStore
from supportbot.telegram.client import TelegramClient
from supportbot.telegram.dispatcher import OutboundDispatcher
from supportbot.telegram.poller import UpdatePoller

logger = logging.getLogger("supportbot.service")


class SupportBotService:
    """Owns the session store, the router and the Bot API client.

    Constructed once at process start and handed to the HTTP layer. ``init``
    connects to the platform and registers the delivery mode; ``shutdown``
    undoes it. Updates are processed one at a time.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        store: SessionStore | None = None,
        client: Any | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.settings = settings
        self.store = store or InMemorySessionStore()
        self.metrics = metrics or MetricsCollector()
        self.initialized = False
        self.bot_username: str | None = None

        if client is None and settings.configured:
            client = TelegramClient(
                settings.telegram_bot_token,
                api_base=str(settings.telegram_api_base),
                timeout=settings.request_timeout_seconds,
            )
        self._client = client
        self._poller: UpdatePoller | None = None
        self._lock = asyncio.Lock()

        self.router: SupportRouter | None = None
        if client is not None:
            self.router = SupportRouter(
                self.store,
                OutboundDispatcher(client, self.metrics),
                topics=settings.support_topics,
                admin_chat_id=settings.support_admin_chat_id,
                admin_registration_enabled=settings.admin_registration_enabled,
                metrics=self.metrics,
            )

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def init(self) -> None:
        if self.initialized:
            logger.info("Support bot already initialized, skipping")
            return
        if not self.configured:
            logger.warning("Support bot token not configured; bot disabled")
            return

        try:
            await self._connect()
        except InitializationError as exc:
            logger.error("Failed to initialize support bot: %s", exc)
            return

        self.initialized = True
        logger.info(
            "Support bot @%s ready (mode=%s, admin chat=%s)",
            self.bot_username,
            self.settings.delivery_mode,
            self.admin_chat_id or "NOT SET",
        )

    async def _connect(self) -> None:
        try:
            me = await self._client.get_me()
        except DeliveryError as exc:
            raise InitializationError(f"getMe failed: {exc.description}") from exc
        self.bot_username = (me or {}).get("username")

        if self.settings.delivery_mode == "webhook":
            url = self.settings.webhook_url
            if not url:
                raise InitializationError("public_base_url is required for webhook delivery")
            try:
                await self._client.delete_webhook()
                await self._client.set_webhook(url, self.settings.telegram_webhook_secret)
            except DeliveryError as exc:
                raise InitializationError(f"webhook registration failed: {exc.description}") from exc
            logger.info("Webhook set to %s", url)
            return

        try:
            # getUpdates is refused while a webhook is registered.
            await self._client.delete_webhook()
        except DeliveryError as exc:
            raise InitializationError(f"could not clear webhook: {exc.description}") from exc
        self._poller = UpdatePoller(
            self._client,
            self.process_update,
            timeout=self.settings.poll_timeout_seconds,
            retry_delay=self.settings.poll_retry_delay_seconds,
        )
        self._poller.start()

    async def shutdown(self) -> None:
        if self._poller is not None:
            await self._poller.stop()
            self._poller = None
        elif self.initialized and self.settings.delivery_mode == "webhook":
            try:
                await self._client.delete_webhook()
            except DeliveryError as exc:
                logger.warning("Could not delete webhook on shutdown: %s", exc.description)

        if self.initialized:
            logger.info("Support bot stopped")
        self.initialized = False

        close = getattr(self._client, "aclose", None)
        if close is not None:
            await close()

    async def process_update(self, update: Mapping[str, Any]) -> EventKind | None:
        if self.router is None:
            logger.error("Support bot not configured; dropping update %s", update.get("update_id"))
            return None
        async with self._lock:
            return await self.router.route(update)

    @property
    def admin_chat_id(self) -> int | None:
        if self.router is not None:
            return self.router.admin_chat_id
        return self.settings.support_admin_chat_id

    def health(self) -> dict[str, Any]:
        return {
            "service": "support-bot",
            "configured": self.configured,
            "initialized": self.initialized,
            "adminChatRegistered": self.admin_chat_id is not None,
            "activeConversationCount": self.store.count(),
        }
