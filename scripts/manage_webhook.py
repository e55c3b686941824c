#!/usr/bin/env python
"""Inspect, register or remove the support bot webhook.

Reads the bot token and public URL from the same settings as the service,
so it can be run from the deployment environment before switching
``DELIVERY_MODE`` between ``webhook`` and ``polling``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from supportbot.core.config import get_settings  # noqa: E402
from supportbot.core.errors import DeliveryError  # noqa: E402
from supportbot.telegram.client import TelegramClient  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the Telegram webhook of the support bot")
    parser.add_argument("action", choices=["info", "set", "delete"], help="Operation to perform.")
    parser.add_argument(
        "--url",
        help="Webhook URL for 'set'. Defaults to PUBLIC_BASE_URL + WEBHOOK_PATH.",
    )
    parser.add_argument(
        "--drop-pending",
        action="store_true",
        help="Discard queued updates when deleting the webhook.",
    )
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    if not settings.configured:
        print("TELEGRAM_BOT_TOKEN is not set", file=sys.stderr)
        return 2

    client = TelegramClient(
        settings.telegram_bot_token,
        api_base=str(settings.telegram_api_base),
        timeout=settings.request_timeout_seconds,
    )
    try:
        if args.action == "info":
            info = await client.get_webhook_info()
            print(json.dumps(info, indent=2, ensure_ascii=False))
        elif args.action == "set":
            url = args.url or settings.webhook_url
            if not url:
                print("Provide --url or set PUBLIC_BASE_URL", file=sys.stderr)
                return 2
            await client.set_webhook(url, settings.telegram_webhook_secret)
            print(f"Webhook set to {url}")
        else:
            await client.delete_webhook(drop_pending_updates=args.drop_pending)
            print("Webhook deleted")
    except DeliveryError as exc:
        print(f"Bot API error: {exc.description}", file=sys.stderr)
        return 1
    finally:
        await client.aclose()
    return 0


def main() -> None:
    sys.exit(asyncio.run(run(parse_args())))


if __name__ == "__main__":
    main()
