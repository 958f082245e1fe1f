"""Exception translation for code expecting builtin ``OSError`` types.

The manager raises typed ``FileSystemError`` subclasses so callers can branch
on the failure kind. This module maps those onto the closest builtin
``OSError`` subclasses for callers written against the standard library.
"""

from __future__ import annotations

import errno
import functools
from contextlib import contextmanager
from typing import TYPE_CHECKING, TypeVar

from f9_filesystem.chunks import ChunkSequence
from f9_filesystem.interfaces import (
    AlreadyExistsError,
    CannotCreateLocationError,
    CannotDecodeDataError,
    CannotEncodeDataError,
    CannotReadFileError,
    DirectoryNotFoundError,
    FileSystemError,
    MissingParentFolderError,
    NotEmptyError,
    NotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from f9_filesystem.interfaces import EncodedPayload
    from f9_filesystem.manager import FileSystemManager

T = TypeVar("T")

_ERRNO_BY_TYPE: tuple[tuple[type[FileSystemError], type[OSError], int], ...] = (
    (NotFoundError, FileNotFoundError, errno.ENOENT),
    (MissingParentFolderError, FileNotFoundError, errno.ENOENT),
    (DirectoryNotFoundError, FileNotFoundError, errno.ENOENT),
    (AlreadyExistsError, FileExistsError, errno.EEXIST),
    (NotEmptyError, OSError, errno.ENOTEMPTY),
    (CannotReadFileError, OSError, errno.EIO),
    (CannotCreateLocationError, OSError, errno.EINVAL),
    (CannotDecodeDataError, OSError, errno.EILSEQ),
    (CannotEncodeDataError, OSError, errno.EILSEQ),
)


def translate_exception(exc: FileSystemError) -> OSError:
    """Convert a FileSystemError to a standard Python OSError.

    Maps:
    - NotFoundError, MissingParentFolderError, DirectoryNotFoundError
      → FileNotFoundError
    - AlreadyExistsError → FileExistsError
    - NotEmptyError → OSError(ENOTEMPTY)
    - CannotReadFileError → OSError(EIO)
    - CannotCreateLocationError → OSError(EINVAL)
    - CannotDecodeDataError, CannotEncodeDataError → OSError(EILSEQ)
    - anything else → OSError

    """
    filename = str(exc.path) if exc.path is not None else None
    for error_type, os_error_type, code in _ERRNO_BY_TYPE:
        if isinstance(exc, error_type):
            return os_error_type(code, exc.message, filename)
    return OSError(str(exc))


@contextmanager
def translate_exceptions() -> Iterator[None]:
    """Translate any FileSystemError raised in the block to an OSError.

    Example:
        ```python
        with translate_exceptions():
            manager.delete_file("/missing.txt")  # Raises FileNotFoundError
        ```

    """
    try:
        yield
    except FileSystemError as exc:
        raise translate_exception(exc) from exc


def translate_method(method: Callable[..., T]) -> Callable[..., T]:
    """Wrap a callable so it raises translated exceptions.

    Chunk sequences returned by the callable are wrapped as well, so errors
    raised while pulling chunks are translated too.
    """

    @functools.wraps(method)
    def wrapper(*args: object, **kwargs: object) -> T:
        with translate_exceptions():
            result = method(*args, **kwargs)
        if isinstance(result, ChunkSequence):
            return _wrap_sequence(result)  # type: ignore[return-value]
        return result

    return wrapper


def _wrap_sequence(sequence: ChunkSequence) -> Iterator[EncodedPayload]:
    """Iterate a chunk sequence, translating errors raised by pulls."""
    with sequence:
        while True:
            with translate_exceptions():
                try:
                    chunk = next(sequence)
                except StopIteration:
                    return
            yield chunk


class CompatibleFileSystem:
    """Wrapper that makes a FileSystemManager raise builtin OSError types.

    Example:
        ```python
        fs = CompatibleFileSystem(FileSystemManager())
        try:
            fs.delete_file("/missing.txt")
        except FileNotFoundError:
            print("File not found!")
        ```

    """

    def __init__(self, manager: FileSystemManager) -> None:
        """Initialize the wrapper around ``manager``."""
        self._manager = manager

    def __getattr__(self, name: str) -> object:
        """Delegate to the manager, translating errors of its methods."""
        attr = getattr(self._manager, name)
        if callable(attr):
            return translate_method(attr)
        return attr

    def __repr__(self) -> str:
        """Return string representation of the wrapper."""
        return f"CompatibleFileSystem({self._manager!r})"
