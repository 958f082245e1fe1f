"""Filesystem access layer with chunked streaming reads and typed errors.

This package provides directory management, whole-file and chunked reads,
writes, appends, renames, copies and metadata queries over a pluggable
storage backend.

Core Components:
    - FileSystemManager: Directory and file operations over a backend
    - ChunkSequence: Lazy, demand-driven chunked reader
    - StorageBackend: Abstract interface all backends must implement
    - LocalStorageBackend: Host filesystem storage
    - InMemoryStorageBackend: Volatile in-memory storage

Quick Start:

    >>> from f9_filesystem import EncodedPayload, FileSystemManager, StringEncoding
    >>> manager = FileSystemManager()
    >>> manager.save_file(
    ...     "/tmp/a.txt",
    ...     EncodedPayload.from_text("Hello, world!", StringEncoding.UTF8),
    ... )
    PosixPath('/tmp/a.txt')
    >>> chunks = manager.read_file_in_chunks(
    ...     "/tmp/a.txt", chunk_size=3, encoding=StringEncoding.UTF8,
    ... )
    >>> "".join(chunk.data for chunk in chunks)
    'Hello, world!'

Exception Handling:

    >>> from f9_filesystem import NotFoundError
    >>> try:
    ...     manager.delete_file("/tmp/missing.txt")
    ... except NotFoundError:
    ...     print("File not found")

Supported Operations:
    - create_directory() / remove_directory() / list_directory()
    - read_entire_file() - Read a whole file as bytes or text
    - read_file_in_chunks() - Stream a byte window of a file
    - get_file_location() - Resolve system directories and raw paths
    - save_file() / append_data() / delete_file()
    - get_item_attributes() - Normalised metadata
    - rename_item() / copy_item()

"""

from .attributes import ItemAttributes, ItemType
from .chunks import ChunkRequest, ChunkSequence
from .compat import CompatibleFileSystem, translate_exception, translate_exceptions
from .factory import BackendFactory, register_backend_factory, resolve_backend
from .interfaces import (
    DEFAULT_CHUNK_SIZE,
    AlreadyExistsError,
    CannotCreateLocationError,
    CannotDecodeDataError,
    CannotEncodeDataError,
    CannotReadFileError,
    DirectoryNotFoundError,
    DirectoryOperationError,
    DirectoryOperations,
    DirectoryType,
    EncodedPayload,
    FileOperationError,
    FileOperations,
    FileSystemError,
    InvalidOperationError,
    MissingParentFolderError,
    NotEmptyError,
    NotFoundError,
    PathLike,
    PathResolutionError,
    ReadHandle,
    SearchPath,
    StorageBackend,
    StreamError,
    StringEncoding,
    WriteHandle,
)
from .local import LocalStorageBackend
from .manager import FileSystemManager, scoped_access
from .memory import InMemoryStorageBackend

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "AlreadyExistsError",
    "BackendFactory",
    "CannotCreateLocationError",
    "CannotDecodeDataError",
    "CannotEncodeDataError",
    "CannotReadFileError",
    "ChunkRequest",
    "ChunkSequence",
    "CompatibleFileSystem",
    "DirectoryNotFoundError",
    "DirectoryOperationError",
    "DirectoryOperations",
    "DirectoryType",
    "EncodedPayload",
    "FileOperationError",
    "FileOperations",
    "FileSystemError",
    "FileSystemManager",
    "InMemoryStorageBackend",
    "InvalidOperationError",
    "ItemAttributes",
    "ItemType",
    "LocalStorageBackend",
    "MissingParentFolderError",
    "NotEmptyError",
    "NotFoundError",
    "PathLike",
    "PathResolutionError",
    "ReadHandle",
    "SearchPath",
    "StorageBackend",
    "StreamError",
    "StringEncoding",
    "WriteHandle",
    "register_backend_factory",
    "resolve_backend",
    "scoped_access",
    "translate_exception",
    "translate_exceptions",
]
