"""Error taxonomy and exception handling utilities."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("supportbot.errors")


class SupportBotError(Exception):
    """Base class for support bot failures."""


class ConflictError(SupportBotError):
    """A conversation already exists for the user."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"conversation already active for user {user_id}")
        self.user_id = user_id


class NotFoundError(SupportBotError):
    """No conversation exists for the user."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"no active conversation for user {user_id}")
        self.user_id = user_id


class DeliveryError(SupportBotError):
    """A Bot API call failed at the transport or platform level."""

    def __init__(self, method: str, description: str, status_code: int | None = None) -> None:
        super().__init__(f"{method} failed: {description}")
        self.method = method
        self.description = description
        self.status_code = status_code


class InitializationError(SupportBotError):
    """The bot client could not be started."""


class PayloadError(SupportBotError):
    """Button payload that does not match any known action."""


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    """Return a generic JSON error response while logging the exception."""

    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "Something unexpected happened. Please try again later.",
        },
    )
