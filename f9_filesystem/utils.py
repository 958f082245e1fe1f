"""Conversions between raw bytes and text for the supported encodings.

Key utilities:
- Strict decoding of bytes into text payloads
- Encoding of caller payloads into bytes for writing
- Read-size adjustment and byte order tracking for chunked reads
- Base64 rendering of raw chunks

Example usage:
    >>> from f9_filesystem.interfaces import EncodedPayload, StringEncoding
    >>> coerce_to_bytes(EncodedPayload.from_text("Hello", StringEncoding.ASCII))
    b'Hello'
"""

from __future__ import annotations

import base64
import codecs
import sys
from typing import TYPE_CHECKING

from .interfaces import (
    CannotDecodeDataError,
    EncodedPayload,
    InvalidOperationError,
    StringEncoding,
)

if TYPE_CHECKING:
    from .interfaces import PathLike

BASE64_GROUP_SIZE = 3


def decode_bytes(
    data: bytes,
    encoding: StringEncoding,
    *,
    codec: str | None = None,
) -> str:
    """Decode ``data`` strictly under ``encoding``.

    Args:
        data: Raw bytes.
        encoding: Declared encoding of the bytes.
        codec: Python codec to use instead of ``encoding.codec``.

    Raises:
        UnicodeDecodeError: If any byte sequence is invalid for the encoding.

    """
    return data.decode(codec or encoding.codec, errors="strict")


def continuation_codec(first_chunk: bytes, encoding: StringEncoding) -> str:
    """Return the codec for the chunks that follow ``first_chunk``.

    A UTF-16 stream carries its byte order mark only in the first chunk.
    Later chunks are decoded with the byte order that mark announced, or
    the native order when there is none.
    """
    if encoding is not StringEncoding.UTF16:
        return encoding.codec
    if first_chunk.startswith(codecs.BOM_UTF16_BE):
        return "utf-16-be"
    if first_chunk.startswith(codecs.BOM_UTF16_LE):
        return "utf-16-le"
    return "utf-16-le" if sys.byteorder == "little" else "utf-16-be"


def encode_base64(data: bytes) -> str:
    """Return ``data`` as standard base64 text."""
    return base64.b64encode(data).decode("ascii")


def encode_text(text: str, encoding: StringEncoding) -> bytes:
    """Encode ``text`` strictly under ``encoding``.

    Raises:
        UnicodeEncodeError: If a character is not representable.

    """
    return text.encode(encoding.codec, errors="strict")


def payload_from_bytes(
    data: bytes,
    encoding: StringEncoding | None,
    *,
    path: PathLike | None = None,
) -> EncodedPayload:
    """Build a payload from bytes read from storage.

    Args:
        data: Raw bytes.
        encoding: ``None`` keeps the bytes as they are; otherwise the bytes
            are decoded in full.
        path: Location the bytes came from, for error messages.

    Raises:
        CannotDecodeDataError: If the bytes are not valid under ``encoding``.

    """
    if encoding is None:
        return EncodedPayload.from_bytes(data)
    try:
        text = decode_bytes(data, encoding)
    except UnicodeDecodeError as exc:
        raise CannotDecodeDataError(encoding, path=path) from exc
    return EncodedPayload(text, encoding)


def coerce_to_bytes(
    payload: EncodedPayload,
    *,
    path: PathLike | None = None,
) -> bytes:
    """Return the bytes to write for ``payload``.

    Raises:
        CannotDecodeDataError: If a text payload is not representable in its
            declared encoding.
        InvalidOperationError: If the payload data does not match its tag.

    """
    if payload.encoding is None:
        if isinstance(payload.data, (bytes, bytearray, memoryview)):
            return bytes(payload.data)
        raise InvalidOperationError.mismatched_payload("bytes", payload.data, path=path)

    if not isinstance(payload.data, str):
        raise InvalidOperationError.mismatched_payload("str", payload.data, path=path)
    try:
        return encode_text(payload.data, payload.encoding)
    except UnicodeEncodeError as exc:
        raise CannotDecodeDataError(payload.encoding, path=path) from exc


def read_chunk_size(
    chunk_size: int,
    encoding: StringEncoding | None,
    *,
    as_base64: bool = False,
) -> int:
    """Return the number of bytes to request per underlying read.

    Raw reads and single-byte encodings use ``chunk_size`` as given. UTF-16
    rounds down to whole code units so a read never ends mid-unit. UTF-8 is
    left alone: a read may still end inside a multi-byte character, in which
    case decoding that chunk fails.

    Base64 output rounds up to a multiple of three bytes, so only the last
    chunk of a window can carry ``=`` padding.
    """
    if as_base64:
        return chunk_size + (-chunk_size) % BASE64_GROUP_SIZE
    if encoding is None:
        return chunk_size
    unit = encoding.code_unit_size
    if unit == 1:
        return chunk_size
    return max(unit, chunk_size - chunk_size % unit)
