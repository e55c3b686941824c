"""API routes for the support bot webhook and health report."""

from __future__ import annotations

import hmac
import logging
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Request

from supportbot.service import SupportBotService

logger = logging.getLogger("supportbot.api")


def create_support_router(service: SupportBotService) -> APIRouter:
    router = APIRouter(tags=["support"])

    async def webhook_endpoint(
        request: Request,
        secret_token: str | None = Header(default=None, alias="X-Telegram-Bot-Api-Secret-Token"),
    ) -> dict[str, Any]:
        expected = service.settings.telegram_webhook_secret
        if expected and not hmac.compare_digest(secret_token or "", expected):
            raise HTTPException(status_code=403, detail="invalid secret token")

        try:
            update = await request.json()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="body must be a JSON object") from exc
        if not isinstance(update, dict):
            raise HTTPException(status_code=400, detail="body must be a JSON object")

        logger.debug("Webhook update %s received", update.get("update_id"))
        await service.process_update(update)
        return {"ok": True}

    # Mounted where setWebhook points Telegram.
    router.add_api_route(
        service.settings.webhook_route,
        webhook_endpoint,
        methods=["POST"],
        name="webhook_endpoint",
    )

    @router.get("/support/health")
    async def health_endpoint() -> dict[str, Any]:
        """Return bot configuration and conversation counters."""

        return service.health()

    return router
