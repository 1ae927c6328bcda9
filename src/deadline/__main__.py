"""Entry point: python -m deadline <command>

- new NAME        Create a top-level project
- sub PARENT NAME Create a subproject of PARENT (an id)
- log ID HOURS    Log work time against a project
- list            Show the project tree with logged hours
- sync PATH       Re-read a note's header into the tree
- mv OLD NEW      Move a note and track the new location
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from deadline.app import DeadlineApp
from deadline.config import DeadlineConfig, load_config
from deadline.events import DocumentRenamed, HeaderChanged
from deadline.errors import DeadlineError
from deadline.tree import INDENT, flatten_with_depth


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="deadline", description="Project tree with synced notes")
    commands = parser.add_subparsers(dest="command", required=True)

    def project_options(p: argparse.ArgumentParser) -> None:
        p.add_argument("name")
        p.add_argument("--deadline")
        p.add_argument("--priority", help="High, Medium, Low or None")
        p.add_argument("--workload", help="estimated hours")
        p.add_argument("--status", help="open, in_progress or done")

    project_options(commands.add_parser("new", help="create a project"))
    sub = commands.add_parser("sub", help="create a subproject")
    sub.add_argument("parent")
    project_options(sub)

    log = commands.add_parser("log", help="log work time")
    log.add_argument("project")
    log.add_argument("hours")
    log.add_argument("description", nargs="?", default="")

    commands.add_parser("list", help="show all projects")

    sync = commands.add_parser("sync", help="sync a note header into the tree")
    sync.add_argument("path")

    mv = commands.add_parser("mv", help="move a note")
    mv.add_argument("old")
    mv.add_argument("new")
    return parser


async def _run(args: argparse.Namespace, config: DeadlineConfig) -> int:
    app = DeadlineApp(config)
    await app.start()
    try:
        if args.command in ("new", "sub"):
            node = await app.new_project(
                args.name,
                deadline=args.deadline,
                priority=args.priority,
                workload=args.workload,
                status=args.status,
                parent=getattr(args, "parent", None),
            )
            return 0 if node else 1
        if args.command == "log":
            node = await app.log_time(args.project, args.hours, args.description)
            return 0 if node else 1
        if args.command == "list":
            for project, depth in flatten_with_depth(app.cache.get()):
                print(
                    f"{INDENT * depth}{project.id} {project.name}"
                    f"  [{project.status.value}] {project.total_time():g}h"
                )
            return 0
        if args.command == "sync":
            app.post(HeaderChanged(args.path))
        elif args.command == "mv":
            await app.vault.move(args.old, args.new)
            app.post(DocumentRenamed(new_path=args.new, old_path=args.old))
        await app.events.join()
        return 0
    finally:
        await app.stop()


def main() -> None:
    args = _build_parser().parse_args()
    config = load_config()
    _setup_logging(config.log_level)
    try:
        sys.exit(asyncio.run(_run(args, config)))
    except DeadlineError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
