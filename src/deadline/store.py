"""Persisted tree document: ``{"projects": [ProjectRecord, ...]}`` in one JSON file.

Every write replaces the whole forest. File I/O runs in the default executor
so the event loop only suspends at the read and the write.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from deadline.errors import StorageError, StoreCorruptError
from deadline.models import ProjectNode

logger = logging.getLogger(__name__)


class ProjectStore:
    """Load and save the project forest."""

    def __init__(self, path: Path) -> None:
        self.path = path

    async def load(self) -> list[ProjectNode]:
        """Return the forest, creating an empty document if none exists.

        Raises StoreCorruptError when the document exists but is not a valid
        tree, so a damaged file is never mistaken for an empty one.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._load_sync)

    async def save(self, projects: list[ProjectNode]) -> None:
        """Overwrite the document with ``projects``. Raises StorageError."""
        text = self.dumps(projects)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, text)

    # ── Sync helpers ─────────────────────────────────────────

    def _load_sync(self) -> list[ProjectNode]:
        if not self.path.exists():
            logger.info("Tree document %s not found, creating it", self.path)
            self._write(self.dumps([]))
            return []

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Failed to read %s: %s", self.path, e)
            raise StorageError(f"Could not read {self.path}: {e}") from e

        return self.loads(text, source=str(self.path))

    def _write(self, text: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.error("Error saving %s: %s", self.path, e)
            raise StorageError(f"Could not write {self.path}: {e}") from e

    @staticmethod
    def dumps(projects: list[ProjectNode]) -> str:
        data = {"projects": [p.to_record() for p in projects]}
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    @staticmethod
    def loads(text: str, source: str = "<tree>") -> list[ProjectNode]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreCorruptError(f"{source} is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("projects"), list):
            raise StoreCorruptError(f'{source} has no "projects" list')

        try:
            return [ProjectNode.from_record(p) for p in data["projects"]]
        except (ValueError, TypeError, AttributeError) as e:
            raise StoreCorruptError(f"{source} contains an invalid project: {e}") from e
