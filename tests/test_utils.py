"""Tests for byte and text conversion helpers."""

import sys
from pathlib import Path

import pytest

from f9_filesystem.interfaces import (
    CannotDecodeDataError,
    EncodedPayload,
    InvalidOperationError,
    StringEncoding,
)
from f9_filesystem.utils import (
    coerce_to_bytes,
    continuation_codec,
    decode_bytes,
    encode_base64,
    encode_text,
    payload_from_bytes,
    read_chunk_size,
)


class TestDecodeAndEncode:
    """Strict codec helpers."""

    @pytest.mark.parametrize("encoding", list(StringEncoding))
    def test_round_trip_ascii_text(self, encoding: StringEncoding) -> None:
        assert decode_bytes(encode_text("plain", encoding), encoding) == "plain"

    def test_decode_is_strict(self) -> None:
        with pytest.raises(UnicodeDecodeError):
            decode_bytes(b"\xc3", StringEncoding.UTF8)

    def test_encode_is_strict(self) -> None:
        with pytest.raises(UnicodeEncodeError):
            encode_text("é", StringEncoding.ASCII)

    def test_utf16_carries_bom(self) -> None:
        data = encode_text("a", StringEncoding.UTF16)
        assert len(data) == 4
        assert data[:2] in (b"\xff\xfe", b"\xfe\xff")

    def test_codec_override(self) -> None:
        assert decode_bytes(b"\x00h\x00i", StringEncoding.UTF16, codec="utf-16-be") == "hi"

    def test_base64(self) -> None:
        assert encode_base64(b"\x00\xffab") == "AP9hYg=="


class TestContinuationCodec:
    """Codec for chunks after the first."""

    @pytest.mark.parametrize(
        ("first_chunk", "expected"),
        [(b"\xfe\xff\x00h", "utf-16-be"), (b"\xff\xfeh\x00", "utf-16-le")],
    )
    def test_utf16_follows_byte_order_mark(
        self, first_chunk: bytes, expected: str,
    ) -> None:
        assert continuation_codec(first_chunk, StringEncoding.UTF16) == expected

    def test_utf16_without_mark_uses_native_order(self) -> None:
        expected = "utf-16-le" if sys.byteorder == "little" else "utf-16-be"
        assert continuation_codec(b"h\x00", StringEncoding.UTF16) == expected

    @pytest.mark.parametrize(
        "encoding", [StringEncoding.ASCII, StringEncoding.UTF8],
    )
    def test_other_encodings_unchanged(self, encoding: StringEncoding) -> None:
        assert continuation_codec(b"\xfe\xff", encoding) == encoding.codec


class TestPayloadFromBytes:
    """Building payloads from stored bytes."""

    def test_raw(self) -> None:
        assert payload_from_bytes(b"\xff", None) == EncodedPayload(b"\xff")

    def test_text(self) -> None:
        payload = payload_from_bytes("é".encode(), StringEncoding.UTF8)
        assert payload == EncodedPayload("é", StringEncoding.UTF8)
        assert payload.is_text

    def test_invalid_text(self) -> None:
        with pytest.raises(CannotDecodeDataError) as excinfo:
            payload_from_bytes(b"\x80", StringEncoding.ASCII, path="/a.txt")
        assert excinfo.value.path == Path("/a.txt")
        assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


class TestCoerceToBytes:
    """Converting caller payloads to bytes for writing."""

    def test_raw_bytes(self) -> None:
        assert coerce_to_bytes(EncodedPayload.from_bytes(bytearray(b"ab"))) == b"ab"

    def test_text(self) -> None:
        payload = EncodedPayload.from_text("Grüße", StringEncoding.UTF8)
        assert coerce_to_bytes(payload) == "Grüße".encode()

    def test_unrepresentable_text(self) -> None:
        payload = EncodedPayload.from_text("Grüße", StringEncoding.ASCII)
        with pytest.raises(CannotDecodeDataError) as excinfo:
            coerce_to_bytes(payload, path="/a.txt")
        assert excinfo.value.encoding is StringEncoding.ASCII

    def test_raw_payload_holding_text(self) -> None:
        with pytest.raises(InvalidOperationError, match="must be bytes") as excinfo:
            coerce_to_bytes(EncodedPayload("text"), path="/a.txt")
        assert excinfo.value.path == Path("/a.txt")

    def test_text_payload_holding_bytes(self) -> None:
        with pytest.raises(InvalidOperationError, match="must be str"):
            coerce_to_bytes(EncodedPayload(b"bytes", StringEncoding.UTF8))


class TestReadChunkSize:
    """Per-read size adjustment."""

    @pytest.mark.parametrize("chunk_size", [1, 3, 4096])
    def test_raw_and_single_byte_verbatim(self, chunk_size: int) -> None:
        assert read_chunk_size(chunk_size, None) == chunk_size
        assert read_chunk_size(chunk_size, StringEncoding.ASCII) == chunk_size
        assert read_chunk_size(chunk_size, StringEncoding.UTF8) == chunk_size

    @pytest.mark.parametrize(
        ("chunk_size", "expected"),
        [(1, 2), (2, 2), (3, 2), (4, 4), (4097, 4096)],
    )
    def test_utf16_whole_code_units(self, chunk_size: int, expected: int) -> None:
        assert read_chunk_size(chunk_size, StringEncoding.UTF16) == expected

    @pytest.mark.parametrize(
        ("chunk_size", "expected"),
        [(1, 3), (3, 3), (4, 6), (64, 66)],
    )
    def test_base64_whole_groups(self, chunk_size: int, expected: int) -> None:
        """Base64 reads round up to a multiple of three bytes."""
        assert read_chunk_size(chunk_size, None, as_base64=True) == expected
