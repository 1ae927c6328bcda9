"""Host file events and the single worker that handles them in order."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeaderChanged:
    """The YAML header of a note was edited."""

    path: str


@dataclass(frozen=True)
class DocumentRenamed:
    """A note moved from ``old_path`` to ``new_path``."""

    new_path: str
    old_path: str


@dataclass(frozen=True)
class DocumentOpened:
    path: str


Event = Union[HeaderChanged, DocumentRenamed, DocumentOpened]
EventHandler = Callable[[Event], Awaitable[None]]


class EventDispatcher:
    """Queue host events and hand them to ``handler`` one at a time, in order."""

    def __init__(self, handler: EventHandler) -> None:
        self._handler = handler
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    def post(self, event: Event) -> None:
        """Enqueue an event. Safe to call from host callbacks."""
        self._queue.put_nowait(event)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())

    async def run(self) -> None:
        logger.debug("Event dispatcher started")
        while True:
            event = await self._queue.get()
            try:
                await self._handler(event)
            except Exception as e:
                logger.error("Event %s failed: %s", event, e)
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every posted event has been handled."""
        await self._queue.join()

    async def stop(self) -> None:
        """Finish queued events, then stop the worker."""
        if self._task is None:
            return
        await self._queue.join()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Event dispatcher stopped")
