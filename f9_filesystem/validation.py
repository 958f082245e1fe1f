"""Pre-condition checks shared by the compound file operations.

Each helper queries the storage backend once and raises the typed error the
caller is expected to branch on. The checks are not atomic with the action
that follows them.

Example:
    >>> validate_entry_exists(backend, Path("/tmp/file.txt"))  # Raises if missing
    >>> validate_directory_empty(backend, Path("/tmp/dir"))  # Raises if populated

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .interfaces import (
    AlreadyExistsError,
    MissingParentFolderError,
    NotEmptyError,
    NotFoundError,
)

if TYPE_CHECKING:
    from pathlib import Path

    from .interfaces import StorageBackend


def validate_entry_exists(backend: StorageBackend, location: Path) -> None:
    """Validate that an item exists at ``location``.

    Raises:
        NotFoundError: If nothing exists at ``location``.

    """
    if not backend.exists(location):
        raise NotFoundError(location)


def validate_entry_not_exists(backend: StorageBackend, location: Path) -> None:
    """Validate that nothing exists at ``location`` yet.

    Raises:
        AlreadyExistsError: If an item exists at ``location``.

    """
    if backend.exists(location):
        raise AlreadyExistsError(location)


def validate_parent_exists(
    backend: StorageBackend,
    location: Path,
    *,
    include_intermediate_directories: bool,
) -> bool:
    """Validate that the parent of ``location`` exists or may be created.

    Returns:
        True if the parent already exists, False if it is missing and
        intermediate directories were requested.

    Raises:
        MissingParentFolderError: If the parent is missing and intermediate
            directories were not requested.

    """
    if backend.exists(location.parent):
        return True
    if not include_intermediate_directories:
        raise MissingParentFolderError(location)
    return False


def validate_directory_empty(backend: StorageBackend, location: Path) -> None:
    """Validate that the directory at ``location`` has no children.

    Raises:
        NotEmptyError: If the directory has at least one child.

    """
    if backend.list_directory(location):
        raise NotEmptyError(location)
