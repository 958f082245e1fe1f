"""Tests for exception translation and compatibility module."""

import errno
from pathlib import Path

import pytest

from f9_filesystem import (
    AlreadyExistsError,
    CannotCreateLocationError,
    CannotDecodeDataError,
    CannotEncodeDataError,
    CannotReadFileError,
    DirectoryNotFoundError,
    DirectoryType,
    EncodedPayload,
    FileSystemError,
    FileSystemManager,
    InMemoryStorageBackend,
    MissingParentFolderError,
    NotEmptyError,
    NotFoundError,
    StringEncoding,
)
from f9_filesystem.compat import (
    CompatibleFileSystem,
    translate_exception,
    translate_exceptions,
    translate_method,
)
from tests.fakes import seed_file


class TestTranslateException:
    """Test translate_exception function."""

    @pytest.mark.parametrize(
        ("exc", "expected_type", "expected_errno"),
        [
            (NotFoundError(Path("/a")), FileNotFoundError, errno.ENOENT),
            (MissingParentFolderError(Path("/a/b")), FileNotFoundError, errno.ENOENT),
            (
                DirectoryNotFoundError(DirectoryType.CACHE),
                FileNotFoundError,
                errno.ENOENT,
            ),
            (AlreadyExistsError(Path("/a")), FileExistsError, errno.EEXIST),
            (NotEmptyError(Path("/a")), OSError, errno.ENOTEMPTY),
            (CannotReadFileError(Path("/a")), OSError, errno.EIO),
            (CannotCreateLocationError("rel"), OSError, errno.EINVAL),
            (CannotDecodeDataError(StringEncoding.ASCII), OSError, errno.EILSEQ),
            (CannotEncodeDataError(StringEncoding.UTF8), OSError, errno.EILSEQ),
        ],
    )
    def test_errno_mapping(
        self,
        exc: FileSystemError,
        expected_type: type,
        expected_errno: int,
    ) -> None:
        """Test each typed error maps to its OSError subclass and errno."""
        result = translate_exception(exc)
        assert type(result) is expected_type
        assert result.errno == expected_errno

    def test_filename_preserved(self) -> None:
        """Test the error path becomes the OSError filename."""
        result = translate_exception(NotFoundError(Path("my/important/file.txt")))
        assert result.filename == "my/important/file.txt"
        assert result.strerror == "Path not found"

    def test_generic_error(self) -> None:
        """Test an unmapped FileSystemError becomes a plain OSError."""
        result = translate_exception(FileSystemError("Something went wrong"))
        assert type(result) is OSError
        assert "Something went wrong" in str(result)


class TestTranslateExceptions:
    """Test the translate_exceptions context manager."""

    def test_translates_and_chains(self) -> None:
        """Test the original error is kept as the cause."""
        original = NotFoundError(Path("/a"))
        with pytest.raises(FileNotFoundError) as excinfo, translate_exceptions():
            raise original
        assert excinfo.value.__cause__ is original

    def test_other_errors_untouched(self) -> None:
        """Test non-FileSystemError exceptions pass through."""
        with pytest.raises(KeyError), translate_exceptions():
            raise KeyError("x")

    def test_translate_method(self) -> None:
        """Test decorated callables raise translated errors."""

        @translate_method
        def fail() -> None:
            raise AlreadyExistsError(Path("/a"))

        with pytest.raises(FileExistsError):
            fail()


class TestCompatibleFileSystem:
    """Test the CompatibleFileSystem wrapper."""

    @pytest.fixture
    def backend(self) -> InMemoryStorageBackend:
        """Provide an in-memory backend."""
        return InMemoryStorageBackend()

    @pytest.fixture
    def fs(self, backend: InMemoryStorageBackend) -> CompatibleFileSystem:
        """Provide a wrapped manager."""
        return CompatibleFileSystem(FileSystemManager(backend))

    def test_successful_calls_delegate(self, fs: CompatibleFileSystem) -> None:
        """Test results pass through unchanged."""
        fs.save_file("/a.txt", EncodedPayload.from_text("hi"))
        assert fs.read_entire_file("/a.txt", StringEncoding.UTF8).data == "hi"
        assert isinstance(fs.backend, InMemoryStorageBackend)

    def test_typed_errors_become_os_errors(self, fs: CompatibleFileSystem) -> None:
        """Test manager errors surface as builtin exceptions."""
        with pytest.raises(FileNotFoundError):
            fs.delete_file("/missing.txt")
        fs.create_directory("/dir")
        with pytest.raises(FileExistsError):
            fs.create_directory("/dir")

    def test_chunk_errors_translated(
        self, backend: InMemoryStorageBackend, fs: CompatibleFileSystem,
    ) -> None:
        """Test errors raised while pulling chunks are translated too."""
        with pytest.raises(OSError) as excinfo:
            list(fs.read_file_in_chunks("/missing.bin", chunk_size=4))
        assert excinfo.value.errno == errno.EIO

        seed_file(backend, "/accent.txt", "aé".encode())
        chunks = fs.read_file_in_chunks(
            "/accent.txt", chunk_size=2, encoding=StringEncoding.UTF8,
        )
        with pytest.raises(OSError) as excinfo:
            list(chunks)
        assert excinfo.value.errno == errno.EILSEQ

    def test_chunks_delivered(
        self, backend: InMemoryStorageBackend, fs: CompatibleFileSystem,
    ) -> None:
        """Test wrapped sequences still produce every chunk."""
        seed_file(backend, "/d.bin", b"0123456789")
        chunks = fs.read_file_in_chunks("/d.bin", chunk_size=4)
        assert [chunk.data for chunk in chunks] == [b"0123", b"4567", b"89"]

    def test_repr(self, fs: CompatibleFileSystem) -> None:
        """Test the wrapper names itself."""
        assert repr(fs).startswith("CompatibleFileSystem(")
