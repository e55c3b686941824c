"""Long-poll update delivery."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping

from supportbot.core.errors import DeliveryError

logger = logging.getLogger("supportbot.poller")

UpdateHandler = Callable[[Mapping[str, Any]], Awaitable[Any]]


class UpdatePoller:
    """Background task that feeds getUpdates results to a handler in order."""

    def __init__(
        self,
        client,
        handler: UpdateHandler,
        *,
        timeout: int = 25,
        retry_delay: float = 3.0,
    ) -> None:
        self._client = client
        self._handler = handler
        self._timeout = timeout
        self._retry_delay = retry_delay
        self._offset: int | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="support-bot-poller")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def poll_once(self) -> int:
        """Fetch one batch and hand every update to the handler. Returns the batch size."""

        updates = await self._client.get_updates(offset=self._offset, timeout=self._timeout)
        for update in updates:
            update_id = update.get("update_id")
            if isinstance(update_id, int):
                self._offset = update_id + 1
            await self._handler(update)
        return len(updates)

    async def _run(self) -> None:
        logger.info("Polling for updates (timeout=%ss)", self._timeout)
        while True:
            try:
                await self.poll_once()
            except DeliveryError as exc:
                logger.error("getUpdates failed: %s", exc.description)
                await asyncio.sleep(self._retry_delay)
            except Exception:  # noqa: BLE001
                logger.exception("Unexpected polling failure")
                await asyncio.sleep(self._retry_delay)
