"""Project tree data model.

A forest is a plain ``list[ProjectNode]``. Each node owns its subprojects,
so the tree nests to any depth. ``to_record``/``from_record`` convert to and
from the JSON records kept in the tree document.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    NONE = "None"


class Status(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    DONE = "done"


def parse_priority(value: Any) -> Priority | None:
    """Match a priority case-insensitively. Returns None when unrecognized."""
    if isinstance(value, Priority):
        return value
    if value is None:
        return None
    text = str(value).strip().lower()
    for member in Priority:
        if member.value.lower() == text:
            return member
    return None


def parse_status(value: Any) -> Status | None:
    """Match a status by value or name ("in progress", "InProgress", ...)."""
    if isinstance(value, Status):
        return value
    if value is None:
        return None
    text = str(value).strip().lower().replace(" ", "_").replace("-", "_")
    if text == "inprogress":
        text = "in_progress"
    for member in Status:
        if member.value == text:
            return member
    return None


def parse_hours(value: Any) -> float | None:
    """Parse a non-negative hour count. Returns None for anything else."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return None
    if hours != hours or hours < 0 or hours == float("inf"):
        return None
    return hours


@dataclass
class TimelogEntry:
    """One work-log entry: local timestamp, hours spent, optional note."""

    date: str
    time: float
    info: str | None = None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"date": self.date, "time": self.time}
        if self.info is not None:
            record["info"] = self.info
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> TimelogEntry:
        return cls(
            date=str(record.get("date", "")),
            time=parse_hours(record.get("time")) or 0.0,
            info=record.get("info"),
        )


@dataclass
class ProjectNode:
    """A project (or subproject) in the tree.

    ``id`` is assigned once at creation and never changes. ``external_path`` is the
    folder that owns the project's note and ``external_file`` the note itself.
    """

    id: str
    name: str
    external_path: str = ""
    external_file: str = ""
    deadline: str = ""
    priority: Priority = Priority.MEDIUM
    workload: float = 0
    status: Status = Status.OPEN
    timelog: list[TimelogEntry] = field(default_factory=list)
    subprojects: list[ProjectNode] = field(default_factory=list)

    def total_time(self) -> float:
        """Hours logged on this project and, recursively, all subprojects."""
        own = sum(entry.time for entry in self.timelog)
        return own + sum(sub.total_time() for sub in self.subprojects)

    def add_timelog(self, date: str, time: float, info: str | None = None) -> TimelogEntry:
        entry = TimelogEntry(date=date, time=time, info=info)
        self.timelog.append(entry)
        return entry

    # ── Records ──────────────────────────────────────────────

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.external_path,
            "file": self.external_file,
            "deadline": self.deadline,
            "priority": self.priority.value,
            "workload": self.workload,
            "status": self.status.value,
            "timelog": [entry.to_record() for entry in self.timelog],
            "subprojects": [sub.to_record() for sub in self.subprojects],
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ProjectNode:
        """Restore a node and its subprojects from a persisted record.

        Missing ``timelog``/``subprojects`` are read as empty lists. Unknown
        priority/status values fall back to Medium/open.
        """
        if not isinstance(record, dict) or "id" not in record:
            raise ValueError(f"not a project record: {record!r}")

        priority = parse_priority(record.get("priority"))
        status = parse_status(record.get("status"))
        if record.get("priority") and priority is None:
            logger.warning("Project %s: unknown priority %r, using Medium", record["id"], record["priority"])
        if record.get("status") and status is None:
            logger.warning("Project %s: unknown status %r, using open", record["id"], record["status"])

        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            external_path=record.get("path") or "",
            external_file=record.get("file") or "",
            deadline=record.get("deadline") or "",
            priority=priority or Priority.MEDIUM,
            workload=parse_hours(record.get("workload")) or 0,
            status=status or Status.OPEN,
            timelog=[TimelogEntry.from_record(t) for t in record.get("timelog") or []],
            subprojects=[cls.from_record(s) for s in record.get("subprojects") or []],
        )
