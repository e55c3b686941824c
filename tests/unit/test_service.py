import asyncio

import pytest
from pydantic import ValidationError

from conftest import ADMIN_CHAT_ID, USER_ID
from supportbot.core.config import Settings
from supportbot.service import SupportBotService
from supportbot.telegram.poller import UpdatePoller


def test_webhook_mode_registers_webhook(webhook_settings, bot_client):
    service = SupportBotService(webhook_settings, client=bot_client)

    asyncio.run(service.init())

    assert service.initialized
    assert service.bot_username == "support_test_bot"
    assert bot_client.webhooks == [("https://support.example.com/support/webhook", None)]


def test_init_is_idempotent(webhook_settings, bot_client):
    service = SupportBotService(webhook_settings, client=bot_client)

    async def scenario():
        await service.init()
        await service.init()

    asyncio.run(scenario())

    assert len(bot_client.webhooks) == 1


def test_bad_credential_leaves_service_uninitialized(webhook_settings, bot_client):
    bot_client.fail_get_me = True
    service = SupportBotService(webhook_settings, client=bot_client)

    asyncio.run(service.init())

    assert service.configured
    assert not service.initialized
    assert service.health()["initialized"] is False


def test_webhook_mode_requires_public_url(bot_client):
    settings = Settings(_env_file=None, telegram_bot_token="1:t", delivery_mode="webhook", public_base_url=None)
    service = SupportBotService(settings, client=bot_client)

    asyncio.run(service.init())

    assert not service.initialized
    assert bot_client.webhooks == []


def test_missing_token_means_unconfigured():
    service = SupportBotService(Settings(_env_file=None, telegram_bot_token=None))

    asyncio.run(service.init())

    assert service.health() == {
        "service": "support-bot",
        "configured": False,
        "initialized": False,
        "adminChatRegistered": False,
        "activeConversationCount": 0,
    }
    assert asyncio.run(service.process_update({"update_id": 1})) is None


def test_health_counts_active_conversations(webhook_settings, bot_client, updates):
    service = SupportBotService(webhook_settings, client=bot_client)

    async def scenario():
        await service.process_update(updates.message("/start"))
        await service.process_update(updates.callback("service_infastai"))

    asyncio.run(scenario())

    health = service.health()
    assert health["activeConversationCount"] == 1
    assert health["adminChatRegistered"] is True
    assert service.admin_chat_id == ADMIN_CHAT_ID


def test_polling_mode_processes_updates_until_shutdown(bot_client, updates):
    settings = Settings(_env_file=None, telegram_bot_token="1:t", delivery_mode="polling", poll_timeout_seconds=0)
    service = SupportBotService(settings, client=bot_client)
    bot_client.pending_updates = [updates.message("/start")]

    async def scenario():
        await service.init()
        for _ in range(50):
            if bot_client.sent:
                break
            await asyncio.sleep(0.01)
        await service.shutdown()

    asyncio.run(scenario())

    assert bot_client.deleted_webhooks == 1
    assert bot_client.messages_to(USER_ID)
    assert not service.initialized


def test_poller_advances_offset(bot_client, updates):
    handled = []

    async def handler(update):
        handled.append(update["update_id"])

    first, second = updates.message("a"), updates.message("b")
    bot_client.pending_updates = [first, second]
    poller = UpdatePoller(bot_client, handler, timeout=0)

    async def scenario():
        await poller.poll_once()
        await poller.poll_once()

    asyncio.run(scenario())

    assert handled == [first["update_id"], second["update_id"]]
    assert bot_client.update_offsets == [None, second["update_id"] + 1]


@pytest.mark.parametrize("key", ["infastai\n", "InFast", "in-fast"])
def test_settings_reject_bad_topic_keys(key):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, support_topics={key: "Label"})


def test_webhook_url_normalises_path():
    settings = Settings(
        _env_file=None,
        public_base_url="https://support.example.com/",
        webhook_path="hooks/telegram",
    )

    assert settings.webhook_route == "/hooks/telegram"
    assert settings.webhook_url == "https://support.example.com/hooks/telegram"
