"""Deadline app — wires the tree store to the host and exposes the commands.

Responsibilities:
1. Load the project cache on start, clear it on stop
2. Route host events (header edits, renames, opens) to ProjectSync
3. Commands: new project, new subproject, log time
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from deadline import header, tree
from deadline.cache import ProjectCache
from deadline.errors import DeadlineError
from deadline.events import DocumentOpened, DocumentRenamed, Event, EventDispatcher, HeaderChanged
from deadline.lanes import WriteLane
from deadline.manager import ProjectDraft, ProjectManager
from deadline.store import ProjectStore
from deadline.sync import ProjectSync
from deadline.vault import ConsoleNotifier, ConsoleWorkspace, LocalVault

if TYPE_CHECKING:
    from deadline.config import DeadlineConfig
    from deadline.models import ProjectNode
    from deadline.vault import Notifier, Vault, Workspace

logger = logging.getLogger(__name__)


class DeadlineApp:
    """Owns one store, cache and write lane shared by manager and sync."""

    def __init__(
        self,
        config: DeadlineConfig,
        vault: Vault | None = None,
        workspace: Workspace | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.config = config
        self.vault = vault or LocalVault(config.vault_dir)
        self.notifier = notifier or ConsoleNotifier()
        self.store = ProjectStore(config.data_file)
        self.cache = ProjectCache(self.store)
        self.lane = WriteLane()
        self.manager = ProjectManager(
            self.store,
            self.cache,
            self.vault,
            workspace or ConsoleWorkspace(),
            self.notifier,
            config.projects,
            self.lane,
        )
        self.sync = ProjectSync(
            self.store,
            self.cache,
            self.vault,
            self.notifier,
            self.lane,
            tag=config.projects.project_tag,
        )
        self.events = EventDispatcher(self.handle_event)

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Load the cache and begin handling host events."""
        await self.cache.load()
        self.events.start()
        logger.info("Deadline started (vault=%s, data=%s)", self.config.vault_dir, self.config.data_file)

    async def stop(self) -> None:
        await self.events.stop()
        self.cache.clear()
        logger.info("Deadline stopped.")

    # ── Host events ──────────────────────────────────────────

    def post(self, event: Event) -> None:
        self.events.post(event)

    async def handle_event(self, event: Event) -> None:
        if isinstance(event, HeaderChanged):
            await self.sync.sync_from_header(event.path)
        elif isinstance(event, DocumentRenamed):
            # Tracked under old_path, or tagged at new_path
            tracked = tree.find_by_external_file(self.cache.get(), event.old_path) is not None
            if tracked or await self._is_project_note(event.new_path):
                await self.sync.handle_rename(event.new_path, event.old_path)
        elif isinstance(event, DocumentOpened):
            meta = await self._read_meta(event.path)
            self.sync.cache_header(event.path, meta)

    async def _read_meta(self, path: str) -> dict:
        try:
            return header.parse_metadata(await self.vault.read_document(path))
        except DeadlineError as e:
            logger.warning("Could not read header of %s: %s", path, e)
            return {}

    async def _is_project_note(self, path: str) -> bool:
        return header.is_owned(await self._read_meta(path), self.config.projects.project_tag)

    # ── Commands ─────────────────────────────────────────────

    async def new_project(
        self,
        name: str,
        deadline: str | None = None,
        priority: str | None = None,
        workload: str | float | None = None,
        status: str | None = None,
        parent: str | None = None,
    ) -> ProjectNode | None:
        """Create a project, or a subproject when ``parent`` (id or listing line) is given."""
        try:
            draft = ProjectDraft.from_input(name, deadline, priority, workload, status)
        except DeadlineError as e:
            self.notifier.notify(f"Could not create project: {e}")
            return None
        parent_id = tree.parse_selection(parent) if parent else None
        return await self.manager.create_project(draft, parent_id)

    async def log_time(self, selection: str, hours: str | float, description: str | None = None) -> ProjectNode | None:
        """Log time against a project picked from ``all_project_list``."""
        return await self.manager.log_time(tree.parse_selection(selection), hours, description)
