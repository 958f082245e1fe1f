"""Demand-driven chunked reads over a single backend read handle.

A ``ChunkSequence`` is a lazy, finite and non-restartable iterator of
``EncodedPayload`` values covering one byte window of a file. Nothing is read
until the consumer pulls, and each pull performs at most one seek and one
read on the handle.

Example:

    >>> sequence = manager.read_file_in_chunks("/data/big.log", chunk_size=4096)
    >>> with sequence:
    ...     for chunk in sequence.request(10):
    ...         process(chunk.data)

Text mode decodes every chunk on its own. UTF-16 chunks after the first use
the byte order announced by the leading byte order mark. For UTF-8 a chunk
boundary can land inside a multi-byte character; the sequence then fails
with ``CannotEncodeDataError`` rather than buffering the partial character.

With ``as_base64`` each raw chunk is rendered as base64 text; reads are
rounded up to whole three-byte groups so the chunks concatenate cleanly.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .interfaces import (
    DEFAULT_CHUNK_SIZE,
    CannotEncodeDataError,
    CannotReadFileError,
    EncodedPayload,
    FileSystemError,
    InvalidOperationError,
    StringEncoding,
)
from .utils import continuation_codec, decode_bytes, encode_base64, read_chunk_size

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path
    from types import TracebackType

    from .interfaces import ReadHandle, StorageBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkRequest:
    """Parameters of a chunked read.

    ``length`` bounds the total number of bytes read; ``None`` reads to the
    end of the file. ``as_base64`` renders raw chunks as base64 text and
    cannot be combined with an ``encoding``.
    """

    location: Path
    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: StringEncoding | None = None
    offset: int = 0
    length: int | None = None
    as_base64: bool = False

    def __post_init__(self) -> None:
        """Reject requests that cannot describe a byte window."""
        if self.chunk_size <= 0:
            raise InvalidOperationError.non_positive_chunk_size(self.chunk_size)
        if self.offset < 0:
            raise InvalidOperationError.negative_offset(self.offset)
        if self.length is not None and self.length < 0:
            raise InvalidOperationError.negative_length(self.length)
        if self.as_base64 and self.encoding is not None:
            raise InvalidOperationError.base64_with_encoding(self.encoding)


class _State(Enum):
    ACTIVE = "active"
    FINISHED = "finished"
    FAILED = "failed"
    CANCELLED = "cancelled"
    UNREADABLE = "unreadable"


class ChunkSequence:
    """Lazy sequence of chunks read from one byte window of a file.

    The sequence owns exactly one read handle. The handle is released when
    the sequence finishes, fails, is cancelled or is garbage-collected,
    whichever happens first.
    """

    def __init__(self, backend: StorageBackend, request: ChunkRequest) -> None:
        """Open the read handle for ``request``.

        A failure to open is not raised here; every pull on the sequence
        raises ``CannotReadFileError`` instead.
        """
        self._chunk_request = request
        self._read_size = read_chunk_size(
            request.chunk_size,
            request.encoding,
            as_base64=request.as_base64,
        )
        self._codec: str | None = None
        self._remaining = request.length
        self._offset_applied = request.offset == 0
        self._handle: ReadHandle | None = None
        self._open_error: Exception | None = None
        self._state = _State.ACTIVE

        try:
            self._handle = backend.open_read(request.location)
        except (OSError, FileSystemError) as exc:
            self._open_error = exc
            self._state = _State.UNREADABLE
            self._finalizer = None
            logger.debug("Cannot open %s for chunked read: %s", request.location, exc)
            return

        self._finalizer = weakref.finalize(
            self,
            _close_handle,
            self._handle,
            request.location,
        )
        logger.debug(
            "Opened chunk sequence on %s (chunk_size=%d, offset=%d, length=%s)",
            request.location,
            self._read_size,
            request.offset,
            request.length,
        )

    @property
    def chunk_request(self) -> ChunkRequest:
        """The request this sequence was created for."""
        return self._chunk_request

    @property
    def location(self) -> Path:
        """Location being read."""
        return self._chunk_request.location

    @property
    def closed(self) -> bool:
        """True once the read handle has been released."""
        return self._finalizer is None or not self._finalizer.alive

    @property
    def is_terminal(self) -> bool:
        """True once no further chunks will be produced."""
        return self._state is not _State.ACTIVE

    def __iter__(self) -> Iterator[EncodedPayload]:
        """Iterate with unbounded demand."""
        return self

    def __next__(self) -> EncodedPayload:
        """Produce the next chunk.

        Raises:
            StopIteration: When the window is exhausted, and on every pull
                after the sequence finished or failed.
            CannotReadFileError: If the handle could not be opened, or the
                sequence was cancelled.
            CannotEncodeDataError: If a chunk is not valid text under the
                requested encoding.

        """
        if self._state in (_State.UNREADABLE, _State.CANCELLED):
            raise CannotReadFileError(self.location) from self._open_error
        if self._state is not _State.ACTIVE:
            raise StopIteration

        try:
            payload = self._read_next()
        except Exception:
            self._complete(_State.FAILED)
            raise

        if payload is None:
            self._complete(_State.FINISHED)
            raise StopIteration
        return payload

    def request(self, demand: int | None = None) -> Iterator[EncodedPayload]:
        """Return an iterator yielding at most ``demand`` further chunks.

        Args:
            demand: Number of chunks wanted; ``None`` means unbounded.

        Raises:
            InvalidOperationError: If ``demand`` is negative.

        """
        if demand is not None and demand < 0:
            raise InvalidOperationError.negative_demand(demand)
        return self._drain(demand)

    def cancel(self) -> None:
        """Release the read handle and stop producing chunks.

        Cancelling is silent. A later pull raises ``CannotReadFileError``.
        """
        if self._state is not _State.UNREADABLE:
            self._state = _State.CANCELLED
        self._release()

    def __enter__(self) -> ChunkSequence:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Cancel the sequence on exit."""
        self.cancel()

    def _drain(self, demand: int | None) -> Iterator[EncodedPayload]:
        produced = 0
        while demand is None or produced < demand:
            try:
                payload = next(self)
            except StopIteration:
                return
            produced += 1
            yield payload

    def _read_next(self) -> EncodedPayload | None:
        """Perform one step of the read loop; None signals normal end."""
        handle = self._handle
        request = self._chunk_request

        if not self._offset_applied:
            handle.seek(request.offset)
            self._offset_applied = True

        if self._remaining is None:
            size = self._read_size
        else:
            size = min(self._read_size, self._remaining)
        if size <= 0:
            return None

        chunk = handle.read(size)
        if not chunk:
            return None
        if self._remaining is not None:
            self._remaining -= len(chunk)

        if request.as_base64:
            return EncodedPayload(encode_base64(chunk), StringEncoding.ASCII)
        if request.encoding is None:
            return EncodedPayload.from_bytes(chunk)
        try:
            text = decode_bytes(chunk, request.encoding, codec=self._codec)
        except UnicodeDecodeError as exc:
            raise CannotEncodeDataError(request.encoding, path=self.location) from exc
        if self._codec is None:
            self._codec = continuation_codec(chunk, request.encoding)
        return EncodedPayload(text, request.encoding)

    def _complete(self, state: _State) -> None:
        self._state = state
        self._release()

    def _release(self) -> None:
        if self._finalizer is not None:
            self._finalizer()


def _close_handle(handle: ReadHandle, location: Path) -> None:
    handle.close()
    logger.debug("Closed chunk sequence on %s", location)
