"""Local filesystem implementation of StorageBackend.

This module provides the storage primitives ``FileSystemManager`` composes,
implemented directly on the host filesystem with ``pathlib`` and ``shutil``.

Key Features:
    - Plain file handles for chunked reads and appends
    - Recursive removal and copy of directories
    - System directory lookup following the XDG base directory conventions
    - Raw metadata from ``os.stat`` with UTC timestamps

System Directories:
    Directory kinds resolve, in order, from the ``directories`` overrides
    passed to the constructor, then from the environment:

    - CACHE: ``$XDG_CACHE_HOME`` or ``~/.cache``
    - DOCUMENT: ``$XDG_DOCUMENTS_DIR`` or ``~/Documents``
    - LIBRARY: ``$XDG_DATA_HOME`` or ``~/.local/share``
    - NOT_SYNCED_LIBRARY: ``<library>/NoCloud``
    - TEMPORARY: ``tempfile.gettempdir()``

    Relative XDG values are ignored, as the XDG specification requires.

Move and Copy:
    Neither operation overwrites. An existing destination raises
    ``FileExistsError``; the manager deletes file destinations beforehand,
    so only directory destinations reach this error.

Example:

    >>> from f9_filesystem import LocalStorageBackend, DirectoryType
    >>> backend = LocalStorageBackend(directories={DirectoryType.CACHE: "/var/cache/app"})
    >>> backend.system_directory(DirectoryType.CACHE)
    PosixPath('/var/cache/app')

See Also:
    - StorageBackend: Abstract interface
    - InMemoryStorageBackend: Volatile alternative

"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO

from .attributes import DIRECTORY_TYPE_VALUE
from .interfaces import DirectoryType, StorageBackend

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .interfaces import PathLike

logger = logging.getLogger(__name__)

NOT_SYNCED_DIRECTORY_NAME = "NoCloud"

_XDG_DEFAULTS = {
    DirectoryType.CACHE: ("XDG_CACHE_HOME", (".cache",)),
    DirectoryType.DOCUMENT: ("XDG_DOCUMENTS_DIR", ("Documents",)),
    DirectoryType.LIBRARY: ("XDG_DATA_HOME", (".local", "share")),
}


class LocalStorageBackend(StorageBackend):
    """Storage backend backed by the local filesystem."""

    def __init__(
        self,
        *,
        directories: Mapping[DirectoryType, PathLike] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialise the backend.

        Args:
            directories: Explicit locations for system directory kinds.
            environ: Environment used for XDG lookups; defaults to
                ``os.environ``.

        """
        self._directories = {
            kind: Path(path).expanduser() for kind, path in (directories or {}).items()
        }
        self._environ = os.environ if environ is None else environ

    def open_read(self, location: Path) -> BinaryIO:
        """Open ``location`` for binary reading."""
        return location.open("rb")

    def open_write(self, location: Path, *, truncate: bool = False) -> BinaryIO:
        """Open ``location`` for binary writing."""
        mode = "wb" if truncate else "r+b"
        return location.open(mode)

    def exists(self, location: Path) -> bool:
        """Return True if anything exists at ``location``."""
        return location.exists()

    def exists_with_kind(self, location: Path) -> tuple[bool, bool]:
        """Return ``(exists, is_directory)`` for ``location``."""
        if not location.exists():
            return False, False
        return True, location.is_dir()

    def create_directory(self, location: Path, *, parents: bool) -> None:
        """Create a directory."""
        location.mkdir(parents=parents, exist_ok=False)

    def remove_item(self, location: Path) -> None:
        """Remove a file, or a directory and everything below it."""
        if location.is_dir() and not location.is_symlink():
            shutil.rmtree(location)
        else:
            location.unlink()

    def list_directory(self, location: Path) -> list[Path]:
        """Return the children of a directory in name order."""
        return sorted(location.iterdir())

    def move_item(self, source: Path, destination: Path) -> None:
        """Move ``source`` to ``destination``."""
        _ensure_destination_free(destination)
        shutil.move(os.fspath(source), os.fspath(destination))

    def copy_item(self, source: Path, destination: Path) -> None:
        """Copy ``source`` to ``destination``, recursively for directories."""
        _ensure_destination_free(destination)
        if source.is_dir():
            shutil.copytree(source, destination, symlinks=True)
        else:
            shutil.copy2(source, destination)

    def stat(self, location: Path) -> Mapping[str, Any]:
        """Return raw metadata from ``os.stat``."""
        stat_result = location.stat()
        created = getattr(stat_result, "st_birthtime", None)
        if created is None:
            created = stat_result.st_ctime
        return {
            "creation_date": _timestamp_to_datetime(created),
            "modification_date": _timestamp_to_datetime(stat_result.st_mtime),
            "size": stat_result.st_size,
            "type": DIRECTORY_TYPE_VALUE if location.is_dir() else "file",
        }

    def system_directory(self, kind: DirectoryType) -> Path | None:
        """Return the location of a system directory, or None if unknown."""
        if kind in self._directories:
            return self._directories[kind]
        if kind is DirectoryType.TEMPORARY:
            return Path(tempfile.gettempdir())
        if kind is DirectoryType.NOT_SYNCED_LIBRARY:
            library = self.system_directory(DirectoryType.LIBRARY)
            return library / NOT_SYNCED_DIRECTORY_NAME if library else None

        variable, fallback = _XDG_DEFAULTS[kind]
        configured = self._environ.get(variable, "")
        if configured and os.path.isabs(configured):
            return Path(configured)
        try:
            home = Path.home()
        except RuntimeError:
            logger.debug("No home directory available to resolve %s", kind.value)
            return None
        return home.joinpath(*fallback)


def _ensure_destination_free(destination: Path) -> None:
    """Raise FileExistsError if something already exists at ``destination``."""
    if destination.exists() or destination.is_symlink():
        raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(destination))


def _timestamp_to_datetime(timestamp: float) -> datetime:
    """Convert a POSIX timestamp to an aware datetime in UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
