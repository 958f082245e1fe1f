"""Core interfaces, error taxonomy and data structures for the filesystem layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, Union

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .attributes import ItemAttributes
    from .chunks import ChunkSequence

PathLike = Union[str, Path]

DEFAULT_CHUNK_SIZE = 64 * 1024


class FileSystemError(RuntimeError):
    """Base exception for filesystem operations."""

    def __init__(
        self,
        message: str,
        *,
        path: PathLike | None = None,
    ) -> None:
        """Initialise the base error with an optional filesystem path context."""
        path_obj = Path(path) if path is not None else None
        detail = message if path_obj is None else ": ".join((message, str(path_obj)))
        super().__init__(detail)
        self.message = message
        self.path = path_obj


class PathResolutionError(FileSystemError):
    """Raised when a location cannot be resolved."""


class CannotCreateLocationError(PathResolutionError):
    """Raised when a raw path string cannot be parsed into a location."""

    def __init__(self, raw: str, *, reason: str | None = None) -> None:
        """Create the error for the offending raw string."""
        super().__init__(reason or "Cannot create location")
        self.raw = raw


class DirectoryNotFoundError(PathResolutionError):
    """Raised when the backend cannot supply a system directory."""

    def __init__(self, kind: DirectoryType, *, path: PathLike | None = None) -> None:
        """Create the error for the unresolved directory kind."""
        super().__init__(f"System directory not available ({kind.value})", path=path)
        self.kind = kind


class DirectoryOperationError(FileSystemError):
    """Base class for directory management failures."""


class AlreadyExistsError(DirectoryOperationError):
    """Raised when attempting to create a directory that already exists."""

    def __init__(self, path: PathLike) -> None:
        """Create an already-exists error for the provided path."""
        super().__init__("Path already exists", path=path)


class NotEmptyError(DirectoryOperationError):
    """Raised when removing a non-empty directory without recursion."""

    def __init__(self, path: PathLike) -> None:
        """Create a not-empty error for the provided directory."""
        super().__init__(
            "Directory not empty (use include_intermediate_directories=True)",
            path=path,
        )


class FileOperationError(FileSystemError):
    """Base class for file operation failures."""


class NotFoundError(FileOperationError):
    """Raised when an expected file is missing."""

    def __init__(self, path: PathLike) -> None:
        """Create a not-found error for the provided path."""
        super().__init__("Path not found", path=path)


class MissingParentFolderError(FileOperationError):
    """Raised when the parent folder of a target is missing."""

    def __init__(self, path: PathLike) -> None:
        """Create the error for the target whose parent is missing."""
        super().__init__("Parent folder does not exist", path=path)


class CannotDecodeDataError(FileOperationError):
    """Raised when data cannot be converted under the declared encoding."""

    def __init__(
        self,
        encoding: StringEncoding,
        *,
        path: PathLike | None = None,
    ) -> None:
        """Create the error for the encoding that failed."""
        super().__init__(f"Cannot convert data using {encoding.value}", path=path)
        self.encoding = encoding


class StreamError(FileSystemError):
    """Base class for chunked read failures."""


class CannotReadFileError(StreamError):
    """Raised when a chunk sequence has no readable handle."""

    def __init__(self, path: PathLike | None = None) -> None:
        """Create the error for the unreadable location."""
        super().__init__("Not able to read file", path=path)


class CannotEncodeDataError(StreamError):
    """Raised when a chunk cannot be decoded as text mid-stream."""

    def __init__(
        self,
        encoding: StringEncoding,
        *,
        path: PathLike | None = None,
    ) -> None:
        """Create the error for the encoding that rejected the chunk."""
        super().__init__(f"Cannot encode chunk as {encoding.value}", path=path)
        self.encoding = encoding


class InvalidOperationError(FileSystemError, ValueError):
    """Raised when an operation is called with arguments it cannot accept."""

    def __init__(self, message: str, *, path: PathLike | None = None) -> None:
        """Initialise an invalid operation error scoped to a path."""
        super().__init__(message, path=path)

    @classmethod
    def non_positive_chunk_size(cls, chunk_size: int) -> InvalidOperationError:
        """Return an error describing an unusable chunk size."""
        return cls(f"Chunk size must be positive, got {chunk_size}")

    @classmethod
    def negative_offset(cls, offset: int) -> InvalidOperationError:
        """Return an error describing a negative read offset."""
        return cls(f"Offset must not be negative, got {offset}")

    @classmethod
    def negative_length(cls, length: int) -> InvalidOperationError:
        """Return an error describing a negative read length."""
        return cls(f"Length must not be negative, got {length}")

    @classmethod
    def negative_demand(cls, demand: int) -> InvalidOperationError:
        """Return an error describing a negative chunk demand."""
        return cls(f"Demand must not be negative, got {demand}")

    @classmethod
    def base64_with_encoding(cls, encoding: StringEncoding) -> InvalidOperationError:
        """Return an error for a chunked read asking for text and base64."""
        return cls(f"Base64 output cannot be combined with {encoding.value} text")

    @classmethod
    def mismatched_payload(
        cls,
        expected: str,
        data: object,
        *,
        path: PathLike | None = None,
    ) -> InvalidOperationError:
        """Return an error for payload data that does not match its tag."""
        return cls(
            f"Payload data must be {expected}, got {type(data).__name__}",
            path=path,
        )

    @classmethod
    def unsupported_backend_path(cls, scheme: str, path: str) -> InvalidOperationError:
        """Return an error for a backend URI carrying a path it cannot use."""
        return cls(f"Backend URI '{scheme}://' does not accept a path, got '{path}'")


class StringEncoding(Enum):
    """Text encodings supported for reads and writes."""

    ASCII = "ascii"
    UTF8 = "utf-8"
    UTF16 = "utf-16"

    @property
    def codec(self) -> str:
        """Name of the Python codec implementing this encoding."""
        return self.value

    @property
    def code_unit_size(self) -> int:
        """Smallest number of bytes a character can be encoded in."""
        return 2 if self is StringEncoding.UTF16 else 1


@dataclass(frozen=True)
class EncodedPayload:
    """Raw bytes, or text tagged with the encoding it belongs to.

    ``encoding`` is ``None`` for raw bytes. Payloads produced by reads are
    always valid under their encoding; payloads built by callers are checked
    when they are converted to bytes for writing.
    """

    data: bytes | str
    encoding: StringEncoding | None = None

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> EncodedPayload:
        """Wrap raw bytes."""
        return cls(bytes(data))

    @classmethod
    def from_text(
        cls,
        text: str,
        encoding: StringEncoding = StringEncoding.UTF8,
    ) -> EncodedPayload:
        """Wrap text declared under ``encoding``."""
        return cls(text, encoding)

    @property
    def is_text(self) -> bool:
        """Whether the payload carries decoded text."""
        return self.encoding is not None


class DirectoryType(Enum):
    """System-provided directories a location can be resolved against."""

    CACHE = "cache"
    DOCUMENT = "document"
    LIBRARY = "library"
    NOT_SYNCED_LIBRARY = "not_synced_library"
    TEMPORARY = "temporary"


@dataclass(frozen=True)
class SearchPath:
    """How ``get_file_location`` interprets its path argument.

    With ``directory`` set, the path is relative to that system directory;
    otherwise the path is parsed as a raw absolute location.
    """

    directory: DirectoryType | None = None

    @classmethod
    def raw(cls) -> SearchPath:
        """Interpret paths as raw absolute locations."""
        return cls()

    @classmethod
    def in_directory(cls, kind: DirectoryType) -> SearchPath:
        """Interpret paths relative to the given system directory."""
        return cls(kind)

    @property
    def is_raw(self) -> bool:
        """Whether paths are parsed as raw locations."""
        return self.directory is None


class ReadHandle(Protocol):
    """Open read handle returned by ``StorageBackend.open_read``."""

    def read(self, size: int = -1, /) -> bytes:
        """Read up to ``size`` bytes; an empty result means end of file."""
        ...

    def seek(self, offset: int, whence: int = 0, /) -> int:
        """Move the read position."""
        ...

    def close(self) -> None:
        """Release the handle."""
        ...


class WriteHandle(Protocol):
    """Open write handle returned by ``StorageBackend.open_write``."""

    def write(self, data: bytes, /) -> int:
        """Write ``data`` at the current position."""
        ...

    def seek(self, offset: int, whence: int = 0, /) -> int:
        """Move the write position."""
        ...

    def close(self) -> None:
        """Flush and release the handle."""
        ...


class StorageBackend(ABC):
    """Primitive storage operations consumed by ``FileSystemManager``.

    Implementations raise ``OSError`` for lower-level failures; those are
    propagated to callers unchanged.
    """

    @abstractmethod
    def open_read(self, location: Path) -> ReadHandle:
        """Open ``location`` for reading from its first byte."""

    @abstractmethod
    def open_write(self, location: Path, *, truncate: bool = False) -> WriteHandle:
        """Open ``location`` for writing.

        Args:
            location: Target file.
            truncate: Create the file, or empty an existing one, when True.
                Otherwise the file must already exist.

        """

    @abstractmethod
    def exists(self, location: Path) -> bool:
        """Return True if anything exists at ``location``."""

    @abstractmethod
    def exists_with_kind(self, location: Path) -> tuple[bool, bool]:
        """Return ``(exists, is_directory)`` for ``location``."""

    @abstractmethod
    def create_directory(self, location: Path, *, parents: bool) -> None:
        """Create a directory, with missing ancestors when ``parents``."""

    @abstractmethod
    def remove_item(self, location: Path) -> None:
        """Remove a file, or a directory together with its contents."""

    @abstractmethod
    def list_directory(self, location: Path) -> list[Path]:
        """Return the direct children of a directory."""

    @abstractmethod
    def move_item(self, source: Path, destination: Path) -> None:
        """Move an item to a new location."""

    @abstractmethod
    def copy_item(self, source: Path, destination: Path) -> None:
        """Copy an item to a new location."""

    @abstractmethod
    def stat(self, location: Path) -> Mapping[str, Any]:
        """Return raw metadata for ``location``.

        Recognised keys are ``creation_date`` and ``modification_date``
        (datetimes), ``size`` (int) and ``type`` (``"directory"`` or
        ``"file"``). Any of them may be missing.
        """

    @abstractmethod
    def system_directory(self, kind: DirectoryType) -> Path | None:
        """Return the location of a system directory, or None if unavailable."""

    def acquire_scope(self, location: Path) -> bool:
        """Acquire access to ``location``; return True if a release is owed."""
        return False

    def release_scope(self, location: Path) -> None:
        """Release access previously acquired with ``acquire_scope``."""


class DirectoryOperations(Protocol):
    """Directory management capabilities."""

    def create_directory(
        self,
        location: PathLike,
        *,
        include_intermediate_directories: bool = False,
    ) -> None: ...

    def remove_directory(
        self,
        location: PathLike,
        *,
        include_intermediate_directories: bool = False,
    ) -> None: ...

    def list_directory(self, location: PathLike) -> list[Path]: ...


class FileOperations(Protocol):
    """File reading, writing and metadata capabilities."""

    def read_entire_file(
        self,
        location: PathLike,
        encoding: StringEncoding | None = None,
    ) -> EncodedPayload: ...

    def read_file_in_chunks(
        self,
        location: PathLike,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        encoding: StringEncoding | None = None,
        offset: int = 0,
        length: int | None = None,
        as_base64: bool = False,
    ) -> ChunkSequence: ...

    def get_file_location(self, path: str, search_path: SearchPath) -> Path: ...

    def delete_file(self, location: PathLike) -> None: ...

    def save_file(
        self,
        location: PathLike,
        payload: EncodedPayload,
        *,
        include_intermediate_directories: bool = False,
    ) -> Path: ...

    def append_data(
        self,
        payload: EncodedPayload,
        location: PathLike,
        *,
        include_intermediate_directories: bool = False,
    ) -> None: ...

    def get_item_attributes(self, location: PathLike) -> ItemAttributes: ...

    def rename_item(self, source: PathLike, destination: PathLike) -> None: ...

    def copy_item(self, source: PathLike, destination: PathLike) -> None: ...
