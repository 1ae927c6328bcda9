"""Read-only snapshot of the forest, loaded on demand from the store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from deadline.errors import NotInitializedError

if TYPE_CHECKING:
    from deadline.models import ProjectNode
    from deadline.store import ProjectStore

logger = logging.getLogger(__name__)


class ProjectCache:
    """Holds the last loaded forest. Never written back to the store."""

    def __init__(self, store: ProjectStore) -> None:
        self._store = store
        self._projects: list[ProjectNode] | None = None

    async def load(self) -> None:
        self._projects = await self._store.load()
        logger.debug("Cache loaded (%d top-level projects)", len(self._projects))

    def get(self) -> list[ProjectNode]:
        """Return a copy of the top-level list. Raises if never loaded."""
        if self._projects is None:
            raise NotInitializedError("Project cache not initialized. Did you forget to call load()?")
        return list(self._projects)

    def clear(self) -> None:
        self._projects = None
        logger.debug("Cache cleared")

    @property
    def is_initialized(self) -> bool:
        return self._projects is not None

    async def reload(self) -> None:
        self.clear()
        await self.load()
