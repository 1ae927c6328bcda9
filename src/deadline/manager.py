"""Project creation and time logging — the mutating entry points of the tree.

Each mutation runs in the write lane: load the forest from the store, change
it, save it, reload the cache. Errors stop the operation, are logged, and
reach the user as a notice; nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from deadline import header, tree
from deadline.errors import DeadlineError, InvalidInputError, NotInitializedError, ProjectNotFoundError
from deadline.models import Priority, ProjectNode, Status, parse_hours, parse_priority, parse_status
from deadline.vault import is_valid_name

if TYPE_CHECKING:
    from deadline.cache import ProjectCache
    from deadline.config import ProjectSettings
    from deadline.lanes import WriteLane
    from deadline.store import ProjectStore
    from deadline.vault import Notifier, Vault, Workspace

logger = logging.getLogger(__name__)


@dataclass
class ProjectDraft:
    """User input for a new project, before it has an id or a folder."""

    name: str
    deadline: str = ""
    priority: Priority = Priority.MEDIUM
    workload: float = 0
    status: Status = Status.OPEN

    @classmethod
    def from_input(
        cls,
        name: str,
        deadline: str | None = None,
        priority: Any = None,
        workload: Any = None,
        status: Any = None,
    ) -> ProjectDraft:
        """Validate raw form/command input. Raises InvalidInputError."""
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Project name must not be empty")
        if not is_valid_name(name):
            raise InvalidInputError(f"Project name is not a valid file name: {name!r}")

        draft = cls(name=name, deadline=(deadline or "").strip())
        if priority not in (None, ""):
            draft.priority = parse_priority(priority)
            if draft.priority is None:
                raise InvalidInputError(f"Unknown priority: {priority}")
        if workload not in (None, ""):
            draft.workload = parse_hours(workload)
            if draft.workload is None:
                raise InvalidInputError(f"Workload must be a non-negative number of hours: {workload}")
        if status not in (None, ""):
            draft.status = parse_status(status)
            if draft.status is None:
                raise InvalidInputError(f"Unknown status: {status}")
        return draft


def local_timestamp(now: datetime | None = None) -> str:
    """Local wall-clock time as ``YYYYMMDD HH:MM``."""
    return (now or datetime.now()).strftime("%Y%m%d %H:%M")


class ProjectManager:
    """Create projects/subprojects and append work-log entries."""

    def __init__(
        self,
        store: ProjectStore,
        cache: ProjectCache,
        vault: Vault,
        workspace: Workspace,
        notifier: Notifier,
        settings: ProjectSettings,
        lane: WriteLane,
    ) -> None:
        self.store = store
        self.cache = cache
        self.vault = vault
        self.workspace = workspace
        self.notifier = notifier
        self.settings = settings
        self.lane = lane

    # ── Listings ─────────────────────────────────────────────

    def project_list(self) -> list[str]:
        """Top-level projects as ``"<id> <name>"``, for picking a parent."""
        return tree.listing(self.cache.get(), nested=False)

    def all_project_list(self) -> list[str]:
        """Every project, indented by depth, for picking a time-log target."""
        return tree.listing(self.cache.get())

    # ── Create ───────────────────────────────────────────────

    async def create_project(self, draft: ProjectDraft, parent_id: str | None = None) -> ProjectNode | None:
        """Create a project (or a subproject of ``parent_id``) with its folder and note."""
        try:
            node = await self.lane.run(
                lambda: self._create(draft, parent_id or ""),
                label=f"create {draft.name}",
            )
        except NotInitializedError:
            raise
        except DeadlineError as e:
            self._report("Could not create project", e)
            return None

        await self.workspace.open_document(node.external_file)
        self.notifier.notify(f'Created project "{node.id} {node.name}".')
        return node

    async def _create(self, draft: ProjectDraft, parent_id: str) -> ProjectNode:
        if not is_valid_name(draft.name):
            raise InvalidInputError(f"Project name is not a valid file name: {draft.name!r}")
        projects = await self.store.load()

        parent: ProjectNode | None = None
        if parent_id:
            parent = tree.find_by_id(projects, parent_id)
            if parent is None:
                raise ProjectNotFoundError(f'Project with ID "{parent_id}" not found.')

        project_id = tree.next_id(projects, parent_id)
        folder_name = self.settings.folder_name(project_id, draft.name)
        if parent is not None:
            folder = f"{parent.external_path}/{folder_name}"
        elif self.settings.project_path:
            folder = f"{self.settings.project_path}/{folder_name}"
        else:
            folder = folder_name
        await self.vault.create_folder(folder)

        node = ProjectNode(
            id=project_id,
            name=draft.name,
            external_path=folder,
            external_file=f"{folder}/{project_id}-{draft.name}.md",
            deadline=draft.deadline,
            priority=draft.priority,
            workload=draft.workload,
            status=draft.status,
        )
        text = header.render(
            node,
            tag=self.settings.project_tag,
            parent_file=parent.external_file if parent else None,
        )
        await self.vault.create_document(node.external_file, text)

        (parent.subprojects if parent is not None else projects).append(node)
        await self.store.save(projects)
        await self.cache.reload()
        logger.info("Created project %s (%s) at %s", node.id, node.name, node.external_file)
        return node

    # ── Time log ─────────────────────────────────────────────

    async def log_time(self, project_id: str, hours: Any, description: str | None = None) -> ProjectNode | None:
        """Append a time-log entry stamped with the current local time."""
        try:
            spent = parse_hours(hours)
            if spent is None:
                raise InvalidInputError(f"Time spent must be a non-negative number of hours: {hours}")
            node = await self.lane.run(
                lambda: self._log_time(project_id, spent, description or None),
                label=f"log {project_id}",
            )
        except NotInitializedError:
            raise
        except DeadlineError as e:
            self._report("Could not log time", e)
            return None

        self.notifier.notify(f'Added timelog to project "{node.name}".')
        return node

    async def _log_time(self, project_id: str, hours: float, description: str | None) -> ProjectNode:
        projects = await self.store.load()
        node = tree.find_by_id(projects, project_id)
        if node is None:
            raise ProjectNotFoundError(f'Project with ID "{project_id}" not found.')

        node.add_timelog(local_timestamp(), hours, description)
        await self.store.save(projects)
        await self.cache.reload()
        logger.info("Logged %.2fh on project %s", hours, project_id)
        return node

    def _report(self, action: str, error: DeadlineError) -> None:
        logger.error("%s: %s", action, error)
        self.notifier.notify(f"{action}: {error}")
