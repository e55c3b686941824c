"""Support conversation router mapping classified events to handlers."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from supportbot.core.errors import ConflictError, NotFoundError, PayloadError
from supportbot.core.metrics import MetricsCollector
from supportbot.routing import messages
from supportbot.routing.classifier import UpdateClassifier
from supportbot.routing.events import EventKind, InboundEvent
from supportbot.routing.payloads import Close, Rate, Reply, SelectTopic
from supportbot.sessions.models import Sender
from supportbot.sessions.store import SessionStore
from supportbot.telegram.dispatcher import OutboundDispatcher

logger = logging.getLogger("supportbot.router")

Handler = Callable[[InboundEvent], Awaitable[None]]
PayloadT = TypeVar("PayloadT", SelectTopic, Reply, Close, Rate)


class SupportRouter:
    """Classify each update and dispatch it to exactly one handler."""

    def __init__(
        self,
        store: SessionStore,
        dispatcher: OutboundDispatcher,
        *,
        topics: Mapping[str, str],
        admin_chat_id: int | None = None,
        admin_registration_enabled: bool = True,
        classifier: UpdateClassifier | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._topics = dict(topics)
        self._admin_registration_enabled = admin_registration_enabled
        self._classifier = classifier or UpdateClassifier()
        self._metrics = metrics
        self.admin_chat_id = admin_chat_id
        self._handlers: dict[EventKind, Handler] = {
            EventKind.START_COMMAND: self._on_start,
            EventKind.TOPIC_SELECTION: self._on_topic_selected,
            EventKind.ADMIN_REPLY_REQUEST: self._on_reply_request,
            EventKind.ADMIN_CLOSE_REQUEST: self._on_close_request,
            EventKind.USER_RATING: self._on_rating,
            EventKind.ADMIN_FREE_TEXT: self._on_admin_text,
            EventKind.USER_FREE_TEXT: self._on_user_text,
        }

    async def route(self, update: Mapping[str, Any]) -> EventKind | None:
        """Process one update. Never raises; returns the kind that was handled."""

        try:
            event = self._classifier.classify(update, self.admin_chat_id)
        except PayloadError as exc:
            logger.warning("Dropping update %s: %s", update.get("update_id"), exc)
            return None
        except Exception:  # noqa: BLE001
            logger.exception("Failed to classify update %s", update.get("update_id"))
            return None

        if event is None:
            logger.debug("Update %s has no routable shape", update.get("update_id"))
            return None

        if self._metrics is not None:
            self._metrics.record_update(event.kind.value)

        handler = self._handlers.get(event.kind)
        if handler is None:
            return event.kind

        try:
            await handler(event)
        except Exception:  # noqa: BLE001
            logger.exception("Handler for %s failed (chat=%s)", event.kind.value, event.chat_id)
        return event.kind

    async def _on_start(self, event: InboundEvent) -> None:
        if event.is_group_chat:
            if not self._admin_registration_enabled:
                logger.warning("Ignoring admin registration attempt from chat %s", event.chat_id)
                return
            self.admin_chat_id = event.chat_id
            logger.info("Admin chat registered: %s", event.chat_id)
            await self._dispatcher.send_text(
                event.chat_id,
                messages.ADMIN_REGISTERED.format(chat_id=event.chat_id),
            )
            return

        if self._store.has_conversation(event.sender.user_id):
            await self._dispatcher.send_text(event.chat_id, messages.ACTIVE_CONVERSATION)
            return

        name = event.sender.first_name or event.sender.handle
        await self._dispatcher.send_buttons(
            event.chat_id,
            messages.WELCOME.format(name=name),
            messages.topic_keyboard(self._topics),
        )

    async def _on_topic_selected(self, event: InboundEvent) -> None:
        topic = _payload(event, SelectTopic).topic
        await self._dispatcher.answer_callback(event.callback_id)

        if topic not in self._topics:
            logger.warning("Unknown topic %r selected by %s", topic, event.sender.user_id)
            return

        try:
            self._store.start_conversation(
                event.sender.user_id,
                event.sender.handle,
                topic,
                event.chat_id,
            )
        except ConflictError:
            await self._dispatcher.send_text(event.chat_id, messages.ACTIVE_CONVERSATION)
            return

        logger.info("Conversation started for %s (topic=%s)", event.sender.user_id, topic)
        await self._dispatcher.send_text(
            event.chat_id,
            messages.TOPIC_SELECTED.format(label=messages.topic_label(self._topics, topic)),
        )

    async def _on_reply_request(self, event: InboundEvent) -> None:
        target = _payload(event, Reply).user_id
        self._store.set_admin_reply_target(event.sender.user_id, target)
        await self._dispatcher.answer_callback(event.callback_id)

        conversation = self._store.get_conversation(target)
        handle = conversation.participant_handle if conversation else messages.UNKNOWN_HANDLE
        await self._dispatcher.send_text(event.chat_id, messages.REPLY_PROMPT.format(handle=handle))

    async def _on_close_request(self, event: InboundEvent) -> None:
        target = _payload(event, Close).user_id
        await self._dispatcher.answer_callback(event.callback_id)

        try:
            conversation = self._store.mark_awaiting_rating(target)
        except NotFoundError:
            await self._dispatcher.send_text(event.chat_id, messages.ALREADY_CLOSED)
            return

        await self._dispatcher.send_buttons(
            conversation.origin_chat_id,
            messages.RATING_REQUEST,
            messages.rating_keyboard(target),
        )
        await self._dispatcher.send_text(event.chat_id, messages.CLOSE_CONFIRMED)

    async def _on_rating(self, event: InboundEvent) -> None:
        payload = _payload(event, Rate)
        value, target = payload.value, payload.user_id
        if event.sender.user_id != target:
            logger.warning("User %s tried to rate conversation of %s", event.sender.user_id, target)
            return

        conversation = self._store.get_conversation(target)
        if conversation is not None and not conversation.awaiting_rating:
            # Button left over from an earlier conversation.
            logger.info("Ignoring stale rating from %s for an open conversation", target)
            await self._dispatcher.answer_callback(event.callback_id)
            return

        await self._dispatcher.answer_callback(
            event.callback_id,
            messages.RATING_TOAST.format(value=value),
        )

        handle = conversation.participant_handle if conversation else messages.UNKNOWN_HANDLE
        if self.admin_chat_id is not None:
            await self._dispatcher.send_text(
                self.admin_chat_id,
                messages.admin_rating_notice(handle, target, value),
            )

        await self._dispatcher.send_text(event.chat_id, messages.RATING_THANKS.format(value=value))
        self._store.close_conversation(target)
        logger.info("Conversation of %s rated %s/5 and closed", target, value)

    async def _on_admin_text(self, event: InboundEvent) -> None:
        target = self._store.consume_admin_reply_target(event.sender.user_id)
        if target is None:
            return

        text = event.text or ""
        conversation = self._store.get_conversation(target)
        if conversation is None:
            logger.info("Reply from admin %s targets closed conversation %s", event.sender.user_id, target)
            await self._dispatcher.send_text(event.chat_id, messages.REPLY_FAILED)
            return

        delivered = await self._dispatcher.send_text(
            conversation.origin_chat_id,
            messages.ADMIN_REPLY.format(text=text),
        )
        if not delivered:
            await self._dispatcher.send_text(event.chat_id, messages.REPLY_FAILED)
            return

        try:
            self._store.append_message(target, Sender.ADMIN, text)
        except NotFoundError:
            # Closed by a rating while the reply was in flight.
            logger.info("Conversation %s closed before admin reply was logged", target)

        await self._dispatcher.send_buttons(
            event.chat_id,
            messages.REPLY_DELIVERED.format(handle=conversation.participant_handle),
            messages.admin_actions_keyboard(target, follow_up=True),
        )

    async def _on_user_text(self, event: InboundEvent) -> None:
        user_id = event.sender.user_id
        text = event.text or ""
        try:
            self._store.append_message(user_id, Sender.USER, text)
        except NotFoundError:
            await self._dispatcher.send_text(event.chat_id, messages.NO_CONVERSATION)
            return

        conversation = self._store.get_conversation(user_id)
        if self.admin_chat_id is None:
            logger.warning("Admin chat not registered; message from %s not relayed", user_id)
        elif conversation is not None:
            await self._dispatcher.send_buttons(
                self.admin_chat_id,
                messages.admin_relay_notice(
                    conversation,
                    text,
                    messages.topic_label(self._topics, conversation.topic),
                ),
                messages.admin_actions_keyboard(user_id),
            )

        await self._dispatcher.send_text(event.chat_id, messages.MESSAGE_RECEIVED)


def _payload(event: InboundEvent, expected: type[PayloadT]) -> PayloadT:
    if not isinstance(event.payload, expected):
        raise PayloadError(f"{event.kind.value} event without {expected.__name__} payload")
    return event.payload
