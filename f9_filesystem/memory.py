"""In-memory implementation of StorageBackend.

All items live in a dictionary keyed by absolute location. The root ``/``
always exists. Failures are reported with the same builtin ``OSError``
subclasses the local filesystem raises, so the manager behaves identically
on both backends.

Read handles work on a snapshot of the file taken when they are opened.
Write handles modify the stored content in place.

Example:

    >>> from f9_filesystem import InMemoryStorageBackend, FileSystemManager
    >>> manager = FileSystemManager(InMemoryStorageBackend())
    >>> manager.create_directory("/data")
    >>> manager.list_directory("/")
    [PosixPath('/data')]

"""

from __future__ import annotations

import errno
import io
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .attributes import DIRECTORY_TYPE_VALUE
from .interfaces import StorageBackend

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .interfaces import DirectoryType, PathLike

ROOT = Path("/")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _os_error(cls: type[OSError], code: int, location: Path) -> OSError:
    return cls(code, os.strerror(code), str(location))


@dataclass
class _Entry:
    """Stored file or directory; directories carry no content."""

    content: bytearray | None
    created_at: datetime = field(default_factory=_now)
    modified_at: datetime = field(default_factory=_now)

    @property
    def is_dir(self) -> bool:
        return self.content is None

    def clone(self, *, keep_times: bool = False) -> _Entry:
        content = None if self.content is None else bytearray(self.content)
        if keep_times:
            return _Entry(content, self.created_at, self.modified_at)
        return _Entry(content)


class _MemoryWriteHandle:
    """Write handle editing a stored entry in place."""

    def __init__(self, entry: _Entry) -> None:
        self._entry = entry
        self._position = 0
        self._closed = False

    def write(self, data: bytes) -> int:
        self._check_closed()
        content = self._entry.content
        end = self._position + len(data)
        if self._position > len(content):
            content.extend(b"\x00" * (self._position - len(content)))
        content[self._position:end] = data
        self._position = end
        self._entry.modified_at = _now()
        return len(data)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_closed()
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = len(self._entry.content) + offset
        else:
            msg = f"Invalid whence value: {whence}"
            raise ValueError(msg)
        if position < 0:
            msg = f"Negative seek position {position}"
            raise ValueError(msg)
        self._position = position
        return position

    def close(self) -> None:
        self._closed = True

    def _check_closed(self) -> None:
        if self._closed:
            msg = "I/O operation on closed file"
            raise ValueError(msg)


class InMemoryStorageBackend(StorageBackend):
    """Volatile storage backend keeping every item in memory."""

    def __init__(
        self,
        *,
        directories: Mapping[DirectoryType, PathLike] | None = None,
    ) -> None:
        """Initialise an empty tree containing only the root directory.

        Args:
            directories: Locations reported for system directory kinds;
                kinds that are not listed are unavailable.

        """
        self._entries: dict[Path, _Entry] = {ROOT: _Entry(None)}
        self._directories = {
            kind: Path(path) for kind, path in (directories or {}).items()
        }

    def open_read(self, location: Path) -> io.BytesIO:
        """Open a snapshot of the file at ``location``."""
        entry = self._require(location)
        if entry.is_dir:
            raise _os_error(IsADirectoryError, errno.EISDIR, location)
        return io.BytesIO(bytes(entry.content))

    def open_write(self, location: Path, *, truncate: bool = False) -> _MemoryWriteHandle:
        """Open the file at ``location`` for writing."""
        entry = self._entries.get(location)
        if entry is not None and entry.is_dir:
            raise _os_error(IsADirectoryError, errno.EISDIR, location)
        if entry is None:
            if not truncate:
                raise _os_error(FileNotFoundError, errno.ENOENT, location)
            self._require_directory(location.parent)
            entry = _Entry(bytearray())
            self._entries[location] = entry
        elif truncate:
            entry.content.clear()
            entry.modified_at = _now()
        return _MemoryWriteHandle(entry)

    def exists(self, location: Path) -> bool:
        """Return True if anything exists at ``location``."""
        return location in self._entries

    def exists_with_kind(self, location: Path) -> tuple[bool, bool]:
        """Return ``(exists, is_directory)`` for ``location``."""
        entry = self._entries.get(location)
        if entry is None:
            return False, False
        return True, entry.is_dir

    def create_directory(self, location: Path, *, parents: bool) -> None:
        """Create a directory, with missing ancestors when ``parents``."""
        if location in self._entries:
            raise _os_error(FileExistsError, errno.EEXIST, location)
        missing = [location]
        for ancestor in location.parents:
            if ancestor in self._entries:
                self._require_directory(ancestor)
                break
            if not parents:
                raise _os_error(FileNotFoundError, errno.ENOENT, ancestor)
            missing.append(ancestor)
        for directory in reversed(missing):
            self._entries[directory] = _Entry(None)

    def remove_item(self, location: Path) -> None:
        """Remove a file, or a directory and everything below it."""
        entry = self._require(location)
        if location == ROOT:
            raise _os_error(PermissionError, errno.EPERM, location)
        if entry.is_dir:
            for descendant in self._descendants(location):
                del self._entries[descendant]
        del self._entries[location]

    def list_directory(self, location: Path) -> list[Path]:
        """Return the direct children of a directory in name order."""
        self._require_directory(location)
        return sorted(
            path for path in self._entries
            if path != ROOT and path.parent == location
        )

    def move_item(self, source: Path, destination: Path) -> None:
        """Move ``source`` and anything below it to ``destination``."""
        self._transfer(source, destination, keep_times=True)
        for path in [source, *self._descendants(source)]:
            del self._entries[path]

    def copy_item(self, source: Path, destination: Path) -> None:
        """Copy ``source`` and anything below it to ``destination``."""
        self._transfer(source, destination)

    def stat(self, location: Path) -> Mapping[str, Any]:
        """Return raw metadata for ``location``."""
        entry = self._require(location)
        return {
            "creation_date": entry.created_at,
            "modification_date": entry.modified_at,
            "size": 0 if entry.is_dir else len(entry.content),
            "type": DIRECTORY_TYPE_VALUE if entry.is_dir else "file",
        }

    def system_directory(self, kind: DirectoryType) -> Path | None:
        """Return the configured location for ``kind``, if any."""
        return self._directories.get(kind)

    def _transfer(
        self,
        source: Path,
        destination: Path,
        *,
        keep_times: bool = False,
    ) -> None:
        """Copy the subtree at ``source`` to ``destination``.

        Copies get fresh timestamps; moves pass ``keep_times`` to carry them.
        """
        entry = self._require(source)
        if destination in self._entries:
            raise _os_error(FileExistsError, errno.EEXIST, destination)
        self._require_directory(destination.parent)
        if entry.is_dir and (destination == source or source in destination.parents):
            raise _os_error(OSError, errno.EINVAL, destination)

        copies = {destination: entry.clone(keep_times=keep_times)}
        for path in self._descendants(source):
            copies[destination / path.relative_to(source)] = self._entries[path].clone(
                keep_times=keep_times,
            )
        self._entries.update(copies)

    def _descendants(self, location: Path) -> list[Path]:
        return [path for path in self._entries if location in path.parents]

    def _require(self, location: Path) -> _Entry:
        entry = self._entries.get(location)
        if entry is None:
            raise _os_error(FileNotFoundError, errno.ENOENT, location)
        return entry

    def _require_directory(self, location: Path) -> _Entry:
        entry = self._require(location)
        if not entry.is_dir:
            raise _os_error(NotADirectoryError, errno.ENOTDIR, location)
        return entry
