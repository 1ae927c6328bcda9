"""YAML header of a project note: parse, validate, render, repair.

The header arrives as an untyped mapping from python-frontmatter. ``validate``
converts it into ``HeaderFields``; a field the header does not carry, or
carries with an unusable value, is left as ``None`` so it never overwrites
the tree.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import frontmatter
import yaml

from deadline.models import Priority, ProjectNode, Status, parse_hours, parse_priority, parse_status

logger = logging.getLogger(__name__)

_ID_LINE = re.compile(r"^id:.*$", re.MULTILINE)
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class HeaderFields:
    """Validated header values. ``None`` means absent or rejected."""

    id: str | None = None
    name: str | None = None
    deadline: str | None = None
    priority: Priority | None = None
    workload: float | None = None
    status: Status | None = None


def parse_metadata(text: str) -> dict[str, Any]:
    """Parse the leading YAML block of a note. Malformed YAML reads as empty."""
    try:
        post = frontmatter.loads(text)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        logger.debug("Unreadable header: %s", e)
        return {}
    return dict(post.metadata)


def tags_of(meta: dict[str, Any]) -> list[str]:
    tags = meta.get("tags") or []
    if isinstance(tags, str):
        return [t.strip() for t in tags.replace(",", " ").split() if t.strip()]
    if isinstance(tags, (list, tuple)):
        return [str(t) for t in tags]
    return []


def is_owned(meta: dict[str, Any], tag: str) -> bool:
    """True when the header carries the sentinel tag of tracked notes."""
    return tag in tags_of(meta)


def _as_text(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def validate(meta: dict[str, Any]) -> HeaderFields:
    """Convert a raw header mapping into typed project fields."""
    fields = HeaderFields()

    if meta.get("id") is not None:
        fields.id = _as_text(meta["id"])

    if "name" in meta:
        if meta["name"] is None or _as_text(meta["name"]).strip() == "":
            logger.warning("Ignoring empty name in header")
        else:
            fields.name = _as_text(meta["name"])

    if "deadline" in meta:
        fields.deadline = "" if meta["deadline"] is None else _as_text(meta["deadline"])

    if "priority" in meta:
        fields.priority = parse_priority(meta["priority"])
        if fields.priority is None:
            logger.warning("Ignoring unknown priority %r", meta["priority"])

    if "workload" in meta:
        workload = 0 if meta["workload"] is None else parse_hours(meta["workload"])
        if workload is None:
            logger.warning("Ignoring invalid workload %r", meta["workload"])
        fields.workload = workload

    if "status" in meta:
        fields.status = parse_status(meta["status"])
        if fields.status is None:
            logger.warning("Ignoring unknown status %r", meta["status"])

    return fields


def _scalar(value: str) -> str:
    """Quote a string only when plain YAML would read it back differently."""
    try:
        plain = yaml.safe_load(value)
    except yaml.YAMLError:
        plain = None
    if plain == value:
        return value
    return json.dumps(value, ensure_ascii=False)


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _deadline_line(deadline: str) -> str:
    if not deadline:
        return "deadline:"
    if _ISO_DATE.match(deadline):
        return f"deadline: {deadline}"
    return f"deadline: {_scalar(deadline)}"


def render(node: ProjectNode, tag: str, parent_file: str | None = None) -> str:
    """Render the header block a new project note starts with."""
    lines = [
        "---",
        f'id: "{node.id}"',
        f"name: {_scalar(node.name)}",
    ]
    if parent_file:
        lines.append(f'link: "[[{parent_file}]]"')
    lines += [
        _deadline_line(node.deadline),
        f"priority: {node.priority.value}",
        f"workload: {_number(node.workload)}",
        f"status: {node.status.value}",
        "tags:",
        f"  - {tag}",
        "---",
    ]
    return "\n".join(lines) + "\n"


def restore_id(text: str, correct_id: str) -> str:
    """Rewrite the ``id:`` line of a note back to ``correct_id``.

    A header that lost its id line gets one inserted after the opening ``---``.
    """
    if not text.startswith("---\n"):
        return text
    end = text.find("\n---", 3)
    end = len(text) if end == -1 else end + 1
    block, rest = text[4:end], text[end:]

    line = f'id: "{correct_id}"'
    if _ID_LINE.search(block):
        block = _ID_LINE.sub(line, block, count=1)
    else:
        block = f"{line}\n{block}"
    return f"---\n{block}{rest}"
