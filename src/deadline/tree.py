"""Pure lookups over an in-memory forest. All traversals are depth-first pre-order."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deadline.models import ProjectNode

INDENT = "  "


def walk(projects: list[ProjectNode], depth: int = 0) -> Iterator[tuple[ProjectNode, int]]:
    """Yield ``(node, depth)`` for every node, parents before children."""
    for project in projects:
        yield project, depth
        yield from walk(project.subprojects, depth + 1)


class DepthView:
    """Restartable ``(node, depth)`` sequence. Each iteration walks the forest again."""

    def __init__(self, projects: list[ProjectNode]) -> None:
        self._projects = projects

    def __iter__(self) -> Iterator[tuple[ProjectNode, int]]:
        return walk(self._projects)


def flatten_with_depth(projects: list[ProjectNode]) -> DepthView:
    return DepthView(projects)


def find_by_id(projects: list[ProjectNode], project_id: str) -> ProjectNode | None:
    for project, _ in walk(projects):
        if project.id == project_id:
            return project
    return None


def find_by_external_file(projects: list[ProjectNode], path: str) -> ProjectNode | None:
    """Find the node whose note lives at ``path``."""
    for project, _ in walk(projects):
        if project.external_file == path:
            return project
    return None


def count_direct_children(projects: list[ProjectNode], parent_id: str = "") -> int:
    """Top-level count for an empty ``parent_id``, else the parent's subproject count."""
    if not parent_id:
        return len(projects)
    parent = find_by_id(projects, parent_id)
    return len(parent.subprojects) if parent else 0


def next_id(projects: list[ProjectNode], parent_id: str = "") -> str:
    n = count_direct_children(projects, parent_id) + 1
    return f"{parent_id}-{n}" if parent_id else str(n)


def listing(projects: list[ProjectNode], nested: bool = True) -> list[str]:
    """``"<id> <name>"`` lines, indented two spaces per level when nested."""
    if not nested:
        return [f"{p.id} {p.name}" for p in projects]
    return [f"{INDENT * depth}{p.id} {p.name}" for p, depth in flatten_with_depth(projects)]


def parse_selection(line: str) -> str:
    """Recover the project id from a ``listing`` line."""
    return line.strip().split(" ", 1)[0]
