"""Keep the tree in step with edits and renames of project notes.

Header states of a note:
- untracked: no header, or no project tag — ignored
- consistent: header fields equal the project's — nothing is written
- drifted: some fields differ — header values are copied into the tree
- id violated: header id differs — the id line is reset, nothing else applied
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

from deadline import header, tree
from deadline.errors import DeadlineError, IdentifierConflictError, NotInitializedError, ProjectNotFoundError

if TYPE_CHECKING:
    from deadline.cache import ProjectCache
    from deadline.lanes import WriteLane
    from deadline.models import ProjectNode
    from deadline.store import ProjectStore
    from deadline.vault import Notifier, Vault

logger = logging.getLogger(__name__)

SYNCED_FIELDS = ("name", "deadline", "priority", "workload", "status")


def changed_fields(node: ProjectNode, fields: header.HeaderFields) -> dict[str, Any]:
    """Header values that differ from the node. Absent/rejected values are skipped."""
    changes: dict[str, Any] = {}
    for name in SYNCED_FIELDS:
        value = getattr(fields, name)
        if value is not None and value != getattr(node, name):
            changes[name] = value
    return changes


def parent_dir(path: str) -> str:
    parent = str(PurePosixPath(path).parent)
    return "" if parent == "." else parent


class ProjectSync:
    """Apply note edits and renames to the persisted tree."""

    def __init__(
        self,
        store: ProjectStore,
        cache: ProjectCache,
        vault: Vault,
        notifier: Notifier,
        lane: WriteLane,
        tag: str = "deadline",
    ) -> None:
        self.store = store
        self.cache = cache
        self.vault = vault
        self.notifier = notifier
        self.lane = lane
        self.tag = tag
        self._headers: dict[str, dict[str, Any]] = {}

    # ── Header edits ─────────────────────────────────────────

    async def sync_from_header(self, path: str) -> ProjectNode | None:
        """Reconcile the header of the note at ``path`` into the tree.

        Returns the updated node, or None when nothing was written.
        """
        try:
            meta = header.parse_metadata(await self.vault.read_document(path))
            if not header.is_owned(meta, self.tag):
                return None
            if tree.find_by_external_file(self.cache.get(), path) is None:
                logger.debug("No project owns %s", path)
                return None

            fields = header.validate(meta)
            return await self.lane.run(lambda: self._reconcile(path, fields), label=f"sync {path}")
        except NotInitializedError:
            raise
        except DeadlineError as e:
            self._report(f"Could not sync {path}", e)
            return None

    async def _reconcile(self, path: str, fields: header.HeaderFields) -> ProjectNode | None:
        projects = await self.store.load()
        node = tree.find_by_external_file(projects, path)
        if node is None:
            logger.debug("Project for %s disappeared before sync", path)
            return None

        if fields.id != node.id:
            conflict = IdentifierConflictError(path, node.id, fields.id)
            logger.warning("%s", conflict)
            text = await self.vault.read_document(path)
            await self.vault.write_document(path, header.restore_id(text, node.id))
            self.notifier.notify(f"ID change not allowed. Resetting ID to {node.id}.")
            return None

        changes = changed_fields(node, fields)
        if not changes:
            return None

        for name, value in changes.items():
            setattr(node, name, value)
        await self.store.save(projects)
        await self.cache.reload()
        logger.info("Synced %s from %s: %s", node.id, path, ", ".join(changes))
        self.notifier.notify(f'Project "{node.name}" updated.')
        return node

    # ── Renames ──────────────────────────────────────────────

    async def handle_rename(self, new_path: str, old_path: str) -> ProjectNode | None:
        """Point the project that owned ``old_path`` at ``new_path``."""
        try:
            return await self.lane.run(
                lambda: self._rename(new_path, old_path),
                label=f"rename {old_path} -> {new_path}",
            )
        except DeadlineError as e:
            self._report(f"Could not track rename of {old_path}", e)
            return None

    async def _rename(self, new_path: str, old_path: str) -> ProjectNode:
        projects = await self.store.load()
        node = tree.find_by_external_file(projects, old_path)
        if node is None:
            raise ProjectNotFoundError(f'Project with path "{old_path}" not found.')

        node.external_file = new_path
        node.external_path = parent_dir(new_path)
        await self.store.save(projects)
        await self.cache.reload()
        if old_path in self._headers:
            self._headers[new_path] = self._headers.pop(old_path)
        logger.info("Project %s moved: %s -> %s", node.id, old_path, new_path)
        return node

    # ── Open snapshots ───────────────────────────────────────

    def cache_header(self, path: str, meta: dict[str, Any]) -> None:
        """Remember the header of an opened project note."""
        if header.is_owned(meta, self.tag):
            self._headers[path] = dict(meta)

    def cached_header(self, path: str) -> dict[str, Any] | None:
        return self._headers.get(path)

    def _report(self, action: str, error: DeadlineError) -> None:
        logger.error("%s: %s", action, error)
        self.notifier.notify(f"{action}: {error}")
