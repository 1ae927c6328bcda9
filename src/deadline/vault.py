"""Host collaborators: note storage, workspace and user notices.

``Vault`` addresses notes by vault-relative POSIX paths such as
``Projects/1-Website/1-Website.md``. ``LocalVault`` implements it on a
directory tree.
"""

from __future__ import annotations

import asyncio
import logging
import re
import sys
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

from deadline.errors import FilesystemError

logger = logging.getLogger(__name__)

_ILLEGAL = re.compile(r'[<>:"\\|?*\n\r\t]')


def is_valid_name(name: str) -> bool:
    """True when ``name`` is usable as one folder or file name."""
    return (
        bool(name)
        and name not in (".", "..")
        and "/" not in name
        and not _ILLEGAL.search(name)
        and name == name.strip()
    )


@runtime_checkable
class Vault(Protocol):
    """Hierarchical document storage for project notes."""

    async def exists(self, path: str) -> bool: ...

    async def create_folder(self, path: str) -> None:
        """Create a folder. Fails if it already exists or the path is invalid."""
        ...

    async def create_document(self, path: str, text: str) -> None: ...

    async def read_document(self, path: str) -> str: ...

    async def write_document(self, path: str, text: str) -> None: ...

    async def list_children(self, path: str) -> list[str]: ...


@runtime_checkable
class Workspace(Protocol):
    """The editor shell that shows notes to the user."""

    async def open_document(self, path: str) -> None: ...


@runtime_checkable
class Notifier(Protocol):
    """User-visible notices."""

    def notify(self, message: str) -> None: ...


class LocalVault:
    """``Vault`` on a local directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def resolve(self, path: str) -> Path:
        """Map a vault path to a filesystem path, rejecting unsafe names."""
        rel = PurePosixPath(path)
        if rel.is_absolute() or not rel.parts:
            raise FilesystemError(f"Invalid path: {path!r}")
        for part in rel.parts:
            if not is_valid_name(part):
                raise FilesystemError(f"Invalid path: {path!r}")
        return self.root.joinpath(*rel.parts)

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    async def exists(self, path: str) -> bool:
        return await self._run(self.resolve(path).exists)

    async def create_folder(self, path: str) -> None:
        target = self.resolve(path)

        def make() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.mkdir()

        try:
            await self._run(make)
        except FileExistsError as e:
            raise FilesystemError(f"Folder already exists: {path}") from e
        except OSError as e:
            raise FilesystemError(f"Could not create folder {path}: {e}") from e
        logger.debug("Created folder %s", path)

    async def create_document(self, path: str, text: str) -> None:
        target = self.resolve(path)

        def create() -> None:
            with target.open("x", encoding="utf-8") as f:
                f.write(text)

        try:
            await self._run(create)
        except FileExistsError as e:
            raise FilesystemError(f"Document already exists: {path}") from e
        except OSError as e:
            raise FilesystemError(f"Could not create document {path}: {e}") from e
        logger.debug("Created document %s", path)

    async def read_document(self, path: str) -> str:
        target = self.resolve(path)
        try:
            return await self._run(lambda: target.read_text(encoding="utf-8"))
        except OSError as e:
            raise FilesystemError(f"Could not read {path}: {e}") from e

    async def write_document(self, path: str, text: str) -> None:
        target = self.resolve(path)
        try:
            await self._run(lambda: target.write_text(text, encoding="utf-8"))
        except OSError as e:
            raise FilesystemError(f"Could not write {path}: {e}") from e

    async def list_children(self, path: str) -> list[str]:
        target = self.resolve(path)
        try:
            return await self._run(lambda: sorted(p.name for p in target.iterdir()))
        except OSError as e:
            raise FilesystemError(f"Could not list {path}: {e}") from e

    async def move(self, old_path: str, new_path: str) -> None:
        """Rename a note on disk. Callers then report the rename as an event."""
        source, target = self.resolve(old_path), self.resolve(new_path)
        if await self._run(target.exists):
            raise FilesystemError(f"Destination already exists: {new_path}")

        def move() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            source.rename(target)

        try:
            await self._run(move)
        except OSError as e:
            raise FilesystemError(f"Could not move {old_path} to {new_path}: {e}") from e


class ConsoleNotifier:
    """Print notices to stdout, like a toast in the editor."""

    def notify(self, message: str) -> None:
        logger.info("Notice: %s", message)
        print(message)


class ConsoleWorkspace:
    """Stand-in workspace for the command line: report the note to open."""

    async def open_document(self, path: str) -> None:
        print(f"Opened {path}", file=sys.stderr)
