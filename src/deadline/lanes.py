"""Write lane — serialize every read-modify-write of the tree document.

Create, time logging, header sync and rename handling all load the full
forest, change one node and save it back. Running them through one lane
keeps two writers from each saving a forest that lacks the other's change.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WriteLane:
    """FIFO async mutual exclusion for forest writers.

    ``asyncio.Lock`` wakes waiters in arrival order, so jobs run one at a
    time in the order they were submitted.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._pending = 0

    @property
    def pending(self) -> int:
        """Jobs submitted and not yet finished, including the running one."""
        return self._pending

    async def run(self, job: Callable[[], Awaitable[T]], label: str = "") -> T:
        """Wait for the lane, then run ``job`` alone."""
        self._pending += 1
        try:
            async with self._lock:
                logger.debug("Lane start: %s", label or job)
                result = await job()
                logger.debug("Lane done: %s", label or job)
                return result
        finally:
            self._pending -= 1
