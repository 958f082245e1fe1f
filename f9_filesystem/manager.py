"""Directory and file operations composed from storage backend primitives.

``FileSystemManager`` implements both ``DirectoryOperations`` and
``FileOperations`` on top of any ``StorageBackend``. Each operation wraps the
backend calls it needs with consistency checks and raises a typed error from
``interfaces`` when a check fails. Lower-level ``OSError`` failures from the
backend are propagated unchanged.

Scoped Access:
    Every operation that touches a location first asks the backend for
    access to it and releases that access on every exit path, including
    errors. Rename and copy hold scopes on both locations.

Known Limitations:
    Checks and actions are not atomic. A directory can gain children between
    the emptiness check and the removal, and a destination can appear between
    reconciliation and a move. Partial effects are not rolled back: a parent
    directory created by ``save_file`` remains if the write fails.

Example:

    >>> from f9_filesystem import EncodedPayload, FileSystemManager, StringEncoding
    >>> manager = FileSystemManager()
    >>> payload = EncodedPayload.from_text("Hello, world!", StringEncoding.UTF8)
    >>> manager.save_file("/tmp/a.txt", payload)
    PosixPath('/tmp/a.txt')
    >>> manager.read_entire_file("/tmp/a.txt", StringEncoding.UTF8).data
    'Hello, world!'

"""

from __future__ import annotations

import io
import logging
from contextlib import closing, contextmanager
from typing import TYPE_CHECKING

from .attributes import ItemAttributes
from .chunks import ChunkRequest, ChunkSequence
from .interfaces import DEFAULT_CHUNK_SIZE, DirectoryNotFoundError
from .path_utils import parse_raw_location, resolve_relative, to_location
from .utils import coerce_to_bytes, payload_from_bytes
from .validation import (
    validate_directory_empty,
    validate_entry_exists,
    validate_entry_not_exists,
    validate_parent_exists,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from .interfaces import (
        EncodedPayload,
        PathLike,
        SearchPath,
        StorageBackend,
        StringEncoding,
    )

logger = logging.getLogger(__name__)


@contextmanager
def scoped_access(backend: StorageBackend, location: Path) -> Iterator[Path]:
    """Hold the backend's access scope on ``location`` for the block.

    The scope is released on every exit path, but only if acquiring it
    reported that a release is owed.
    """
    owes_release = backend.acquire_scope(location)
    try:
        yield location
    finally:
        if owes_release:
            backend.release_scope(location)


class FileSystemManager:
    """Directory and file operations over a storage backend."""

    def __init__(self, backend: StorageBackend | None = None) -> None:
        """Initialise the manager, defaulting to the local filesystem."""
        if backend is None:
            from .local import LocalStorageBackend

            backend = LocalStorageBackend()
        self._backend = backend

    @property
    def backend(self) -> StorageBackend:
        """Storage backend the operations run against."""
        return self._backend

    # Directory operations

    def create_directory(
        self,
        location: PathLike,
        *,
        include_intermediate_directories: bool = False,
    ) -> None:
        """Create a directory.

        Raises:
            MissingParentFolderError: If the parent is missing and
                intermediate directories were not requested.
            AlreadyExistsError: If something already exists at ``location``.

        """
        target = to_location(location)
        with scoped_access(self._backend, target):
            validate_parent_exists(
                self._backend,
                target,
                include_intermediate_directories=include_intermediate_directories,
            )
            validate_entry_not_exists(self._backend, target)
            self._backend.create_directory(
                target,
                parents=include_intermediate_directories,
            )
        logger.debug("Created directory %s", target)

    def remove_directory(
        self,
        location: PathLike,
        *,
        include_intermediate_directories: bool = False,
    ) -> None:
        """Remove a directory, recursively when intermediates are included.

        Raises:
            NotEmptyError: If the directory has children and intermediate
                directories were not included. Nothing is deleted.

        """
        target = to_location(location)
        with scoped_access(self._backend, target):
            if not include_intermediate_directories:
                validate_directory_empty(self._backend, target)
            self._backend.remove_item(target)
        logger.debug("Removed directory %s", target)

    def list_directory(self, location: PathLike) -> list[Path]:
        """Return the children of a directory; empty directories give []."""
        target = to_location(location)
        with scoped_access(self._backend, target):
            return list(self._backend.list_directory(target))

    # File operations

    def read_entire_file(
        self,
        location: PathLike,
        encoding: StringEncoding | None = None,
    ) -> EncodedPayload:
        """Read a whole file as raw bytes or as text.

        Raises:
            CannotDecodeDataError: If ``encoding`` is set and the content is
                not valid under it.

        """
        target = to_location(location)
        with scoped_access(self._backend, target):
            with closing(self._backend.open_read(target)) as handle:
                data = handle.read()
        return payload_from_bytes(data, encoding, path=target)

    def read_file_in_chunks(
        self,
        location: PathLike,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        encoding: StringEncoding | None = None,
        offset: int = 0,
        length: int | None = None,
        as_base64: bool = False,
    ) -> ChunkSequence:
        """Return a lazy sequence of chunks over ``[offset, offset + length)``.

        With ``as_base64`` every chunk is base64 text tagged as ASCII.

        Raises:
            InvalidOperationError: If ``chunk_size`` is not positive,
                ``offset`` or ``length`` is negative, or ``as_base64`` is
                combined with an ``encoding``.

        """
        target = to_location(location)
        request = ChunkRequest(
            location=target,
            chunk_size=chunk_size,
            encoding=encoding,
            offset=offset,
            length=length,
            as_base64=as_base64,
        )
        with scoped_access(self._backend, target):
            return ChunkSequence(self._backend, request)

    def get_file_location(self, path: str, search_path: SearchPath) -> Path:
        """Resolve ``path`` into an absolute location.

        Raises:
            DirectoryNotFoundError: If the backend cannot supply the
                requested system directory.
            CannotCreateLocationError: If a raw path cannot be parsed.

        """
        if search_path.is_raw:
            return parse_raw_location(path)

        base = self._backend.system_directory(search_path.directory)
        if base is None:
            raise DirectoryNotFoundError(search_path.directory, path=path or None)
        return resolve_relative(base, path)

    def delete_file(self, location: PathLike) -> None:
        """Delete a file.

        Raises:
            NotFoundError: If nothing exists at ``location``.

        """
        target = to_location(location)
        with scoped_access(self._backend, target):
            validate_entry_exists(self._backend, target)
            self._backend.remove_item(target)
        logger.debug("Deleted %s", target)

    def save_file(
        self,
        location: PathLike,
        payload: EncodedPayload,
        *,
        include_intermediate_directories: bool = False,
    ) -> Path:
        """Write ``payload`` to ``location``, replacing any existing file.

        Raises:
            MissingParentFolderError: If the parent is missing and
                intermediate directories were not requested.
            CannotDecodeDataError: If a text payload is not representable
                in its declared encoding.

        """
        target = to_location(location)
        data = coerce_to_bytes(payload, path=target)
        with scoped_access(self._backend, target):
            parent_exists = validate_parent_exists(
                self._backend,
                target,
                include_intermediate_directories=include_intermediate_directories,
            )
            if not parent_exists:
                self.create_directory(
                    target.parent,
                    include_intermediate_directories=True,
                )
            with closing(self._backend.open_write(target, truncate=True)) as handle:
                handle.write(data)
        logger.debug("Saved %d bytes to %s", len(data), target)
        return target

    def append_data(
        self,
        payload: EncodedPayload,
        location: PathLike,
        *,
        include_intermediate_directories: bool = False,
    ) -> None:
        """Append ``payload`` to a file, creating the file if it is missing.

        Raises:
            CannotDecodeDataError: If a text payload is not representable
                in its declared encoding. The file is left unmodified.
            MissingParentFolderError: If the file and its parent are missing
                and intermediate directories were not requested.

        """
        target = to_location(location)
        with scoped_access(self._backend, target):
            if not self._backend.exists(target):
                self.save_file(
                    target,
                    payload,
                    include_intermediate_directories=include_intermediate_directories,
                )
                return

            data = coerce_to_bytes(payload, path=target)
            with closing(self._backend.open_write(target)) as handle:
                handle.seek(0, io.SEEK_END)
                handle.write(data)
        logger.debug("Appended %d bytes to %s", len(data), target)

    def get_item_attributes(self, location: PathLike) -> ItemAttributes:
        """Return normalised metadata for ``location``."""
        target = to_location(location)
        with scoped_access(self._backend, target):
            metadata = self._backend.stat(target)
        return ItemAttributes.from_metadata(metadata)

    def rename_item(self, source: PathLike, destination: PathLike) -> None:
        """Move an item, replacing a file already at ``destination``."""
        self._transfer(source, destination, self._backend.move_item)

    def copy_item(self, source: PathLike, destination: PathLike) -> None:
        """Copy an item, replacing a file already at ``destination``."""
        self._transfer(source, destination, self._backend.copy_item)

    def _transfer(
        self,
        source: PathLike,
        destination: PathLike,
        operation: Callable[[Path, Path], None],
    ) -> None:
        """Reconcile the destination and run a two-location operation.

        Equal locations are a no-op. A non-directory at the destination is
        deleted first; a directory there is left to the backend.
        """
        origin = to_location(source)
        target = to_location(destination)
        if origin == target:
            return

        with scoped_access(self._backend, origin), scoped_access(self._backend, target):
            exists, is_directory = self._backend.exists_with_kind(target)
            if exists and not is_directory:
                self.delete_file(target)
            operation(origin, target)
        logger.debug("%s %s -> %s", operation.__name__, origin, target)
