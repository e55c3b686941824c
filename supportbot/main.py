"""FastAPI application entry point for the support bot service."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI

from supportbot.api.support import create_support_router
from supportbot.core.config import Settings, get_settings
from supportbot.core.errors import unhandled_exception_handler
from supportbot.core.logging import configure_logging, request_id_middleware
from supportbot.service import SupportBotService

logger = logging.getLogger("supportbot.app")


def create_app(
    settings: Settings | None = None,
    service: SupportBotService | None = None,
) -> FastAPI:
    """Build the application around an explicitly owned bot service."""

    settings = settings or get_settings()
    service = service or SupportBotService(settings)

    app = FastAPI(title=settings.app_name, version="0.1.0", docs_url="/docs")
    app.state.support_service = service
    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(create_support_router(service))

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Return basic service status for monitoring."""

        return {"status": "ok"}

    @app.get("/metrics", tags=["metrics"])
    async def metrics_endpoint() -> dict[str, Any]:
        snapshot = service.metrics.snapshot()
        return {
            "total_updates": snapshot.total_updates,
            "event_kinds": snapshot.event_kinds,
            "deliveries": snapshot.deliveries,
        }

    @app.on_event("startup")
    async def start_service() -> None:
        level = configure_logging(settings.log_level)
        logger.info(
            "Logging configured at %s level for %s environment",
            logging.getLevelName(level),
            settings.environment,
        )
        await service.init()

    @app.on_event("shutdown")
    async def stop_service() -> None:
        await service.shutdown()

    return app


app = create_app()
