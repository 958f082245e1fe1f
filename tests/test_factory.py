"""Tests for the URI-based backend factory."""

from pathlib import Path
from typing import Any

import pytest

from f9_filesystem import (
    DirectoryType,
    InMemoryStorageBackend,
    InvalidOperationError,
    LocalStorageBackend,
)
from f9_filesystem.factory import (
    BackendFactory,
    register_backend_factory,
    resolve_backend,
)

# ruff: noqa: S101, PLR2004  # pytest assertions and magic numbers are ok in tests


class TestBackendFactory:
    """Test the BackendFactory class."""

    def test_factory_initialization(self) -> None:
        """Test factory initializes with built-in schemes."""
        factory = BackendFactory()
        assert set(factory._factories) == {"file", "memory"}

    def test_parse_uri(self) -> None:
        """Test parsing URIs with and without query parameters."""
        factory = BackendFactory()

        scheme, path, params = factory.parse_uri("file:///tmp/data")
        assert scheme == "file"
        assert path == "/tmp/data"
        assert params == {}

        scheme, path, params = factory.parse_uri("memory://?cache=/c&cache=/d")
        assert scheme == "memory"
        assert path == ""
        assert params == {"cache": "/c"}

    def test_parse_uri_missing_scheme(self) -> None:
        """Test a URI without a scheme is rejected."""
        with pytest.raises(InvalidOperationError, match="missing scheme"):
            BackendFactory().parse_uri("/just/a/path")

    def test_resolve_local(self) -> None:
        """Test file:// resolves to a local backend with directory overrides."""
        backend = BackendFactory().resolve("file://?document=/srv/docs")
        assert isinstance(backend, LocalStorageBackend)
        assert backend.system_directory(DirectoryType.DOCUMENT) == Path("/srv/docs")

    def test_resolve_memory(self) -> None:
        """Test memory:// resolves to an isolated in-memory backend."""
        factory = BackendFactory()
        first = factory.resolve("memory://?not_synced_library=/lib/nocloud")
        second = factory.resolve("memory://")
        assert isinstance(first, InMemoryStorageBackend)
        assert first is not second
        assert first.system_directory(DirectoryType.NOT_SYNCED_LIBRARY) == Path(
            "/lib/nocloud",
        )
        assert second.system_directory(DirectoryType.CACHE) is None

    def test_resolve_unsupported_scheme(self) -> None:
        """Test unsupported schemes list the supported ones."""
        with pytest.raises(InvalidOperationError, match="file, memory"):
            BackendFactory().resolve("s3://bucket/key")

    def test_resolve_unknown_parameter(self) -> None:
        """Test query parameters must name a directory kind."""
        with pytest.raises(InvalidOperationError, match="downloads"):
            BackendFactory().resolve("memory://?downloads=/dl")

    @pytest.mark.parametrize(
        ("uri", "scheme"),
        [
            ("file:///data", "file"),
            ("file://host/data?cache=/c", "file"),
            ("memory://area", "memory"),
        ],
    )
    def test_resolve_rejects_path(self, uri: str, scheme: str) -> None:
        """Test built-in schemes refuse a path instead of ignoring it."""
        with pytest.raises(InvalidOperationError, match="does not accept a path") as excinfo:
            BackendFactory().resolve(uri)
        assert f"'{scheme}://'" in str(excinfo.value)

    def test_register_custom_scheme(self) -> None:
        """Test custom factories receive the path and parameters."""
        factory = BackendFactory()
        received: list[tuple[str, dict[str, str]]] = []

        def create(path: str, params: dict[str, str]) -> Any:
            received.append((path, params))
            return InMemoryStorageBackend()

        factory.register("scratch", create)
        backend = factory.resolve("scratch://area/one?mode=fast")
        assert isinstance(backend, InMemoryStorageBackend)
        assert received == [("area/one", {"mode": "fast"})]

    def test_register_requires_callable(self) -> None:
        """Test registering a non-callable is rejected."""
        with pytest.raises(TypeError):
            BackendFactory().register("bad", "not callable")  # type: ignore[arg-type]


class TestGlobalFactory:
    """Test the module-level helpers."""

    def test_resolve_backend(self) -> None:
        """Test the default factory resolves built-in schemes."""
        assert isinstance(resolve_backend("memory://"), InMemoryStorageBackend)

    def test_register_backend_factory(self) -> None:
        """Test schemes registered globally become resolvable."""
        sentinel = InMemoryStorageBackend()
        register_backend_factory("sentinel-test", lambda path, params: sentinel)
        assert resolve_backend("sentinel-test://") is sentinel
