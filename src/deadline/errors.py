"""Error types raised by the store, cache, vault and the mutating operations."""

from __future__ import annotations


class DeadlineError(Exception):
    """Base class for every error the project tree reports to the user."""


class NotInitializedError(DeadlineError):
    """The project cache was read before it was loaded."""


class ProjectNotFoundError(DeadlineError):
    """A referenced project id or document path is not in the tree."""


class IdentifierConflictError(DeadlineError):
    """A document header carries an id that differs from its project's id."""

    def __init__(self, path: str, expected: str, found: object) -> None:
        super().__init__(f"ID change not allowed in {path}: reset {found!r} to {expected!r}")
        self.path = path
        self.expected = expected
        self.found = found


class StorageError(DeadlineError):
    """Reading or writing the persisted tree document failed."""


class StoreCorruptError(StorageError):
    """The tree document exists but cannot be parsed."""


class FilesystemError(DeadlineError):
    """Creating or writing a project folder or document failed."""


class InvalidInputError(DeadlineError):
    """Command input could not be converted into project fields."""
