"""Application settings and configuration helpers."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TOPIC_KEY_RE = re.compile(r"[a-z0-9]+")


class Settings(BaseSettings):
    """Strongly-typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(default="Support Bot", description="Human-readable service name.")
    environment: str = Field(default="local", description="Deployment environment identifier.")
    log_level: str = Field(default="INFO", description="Application log level.")

    telegram_bot_token: str | None = Field(
        default=None,
        description="Bot API credential. The bot stays unconfigured without it.",
    )
    telegram_api_base: AnyHttpUrl = Field(
        default="https://api.telegram.org",
        description="Bot API base URL.",
    )
    support_admin_chat_id: int | None = Field(
        default=None,
        description="Chat that receives relayed user messages. Can also be registered at runtime.",
    )
    admin_registration_enabled: bool = Field(
        default=True,
        description="Allow a group chat to register itself as the admin chat via /start.",
    )

    delivery_mode: Literal["webhook", "polling"] = Field(
        default="polling",
        description="How updates reach the service.",
    )
    public_base_url: AnyHttpUrl | None = Field(
        default=None,
        description="Externally reachable base URL, required for webhook delivery.",
    )
    webhook_path: str = Field(default="/support/webhook", description="Path of the webhook route.")
    telegram_webhook_secret: str | None = Field(
        default=None,
        description="Secret echoed by Telegram in X-Telegram-Bot-Api-Secret-Token.",
    )

    request_timeout_seconds: float = Field(default=10.0, gt=0, description="Bot API call timeout.")
    poll_timeout_seconds: int = Field(
        default=25,
        ge=0,
        description="Long-poll timeout passed to getUpdates.",
    )
    poll_retry_delay_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Pause after a failed getUpdates call.",
    )

    support_topics: dict[str, str] = Field(
        default_factory=lambda: {"infastai": "InFast AI"},
        description="Topic keys offered on /start mapped to their button labels.",
    )

    @field_validator("support_topics")
    @classmethod
    def check_topic_keys(cls, topics: dict[str, str]) -> dict[str, str]:
        if not topics:
            raise ValueError("at least one support topic is required")
        for key in topics:
            if not _TOPIC_KEY_RE.fullmatch(key):
                raise ValueError(f"topic key must be lowercase alphanumeric: {key!r}")
        return topics

    @property
    def configured(self) -> bool:
        return bool(self.telegram_bot_token)

    @property
    def webhook_route(self) -> str:
        return self.webhook_path if self.webhook_path.startswith("/") else f"/{self.webhook_path}"

    @property
    def webhook_url(self) -> str | None:
        """Return the full webhook URL, or None when no public base URL is set."""

        if not self.public_base_url:
            return None
        return f"{str(self.public_base_url).rstrip('/')}{self.webhook_route}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
