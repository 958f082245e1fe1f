"""Backend factory for URI-based backend configuration.

This module builds ``StorageBackend`` instances from URI strings, so the
storage a ``FileSystemManager`` runs against can be chosen from
configuration. Custom schemes can be registered.

Supported URI Schemes:
    - file:// - LocalStorageBackend on the host filesystem
    - memory:// - InMemoryStorageBackend

The built-in schemes take no path; ``file:///data`` raises
``InvalidOperationError``.

Query parameters named after a ``DirectoryType`` value (``cache``,
``document``, ``library``, ``not_synced_library``, ``temporary``) set the
location reported for that system directory.

Example:
    >>> from f9_filesystem.factory import resolve_backend
    >>> backend = resolve_backend("file://?cache=/var/cache/app")
    >>> backend = resolve_backend("memory://?temporary=/tmp")

"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable
from urllib.parse import parse_qs, urlparse

from .interfaces import DirectoryType, InvalidOperationError

if TYPE_CHECKING:
    from .interfaces import StorageBackend

logger = logging.getLogger(__name__)


class BackendFactory:
    """Factory for creating storage backends from URI strings."""

    def __init__(self) -> None:
        """Initialize the factory with built-in URI scheme handlers."""
        self._factories: dict[str, Callable[[str, dict[str, str]], Any]] = {
            "file": self._create_local_backend,
            "memory": self._create_memory_backend,
        }

    def parse_uri(self, uri: str) -> tuple[str, str, dict[str, str]]:
        """Parse a URI into scheme, path, and query parameters.

        Args:
            uri: URI string to parse

        Returns:
            Tuple of (scheme, path, params) where params maps each query
            parameter to its first value

        Raises:
            InvalidOperationError: If the URI has no scheme

        """
        parsed = urlparse(uri)

        if not parsed.scheme:
            msg = f"Invalid URI: missing scheme in '{uri}'"
            raise InvalidOperationError(msg)

        path = parsed.netloc + parsed.path

        params: dict[str, str] = {}
        if parsed.query:
            params = {k: v[0] for k, v in parse_qs(parsed.query).items()}

        return parsed.scheme, path, params

    def resolve(self, uri: str) -> StorageBackend:
        """Create a backend instance from a URI string.

        Raises:
            InvalidOperationError: If the URI scheme is unsupported, a
                query parameter is not recognised, or a built-in scheme
                is given a path

        """
        scheme, path, params = self.parse_uri(uri)

        if scheme not in self._factories:
            supported = ", ".join(sorted(self._factories.keys()))
            msg = (
                f"Unsupported URI scheme: '{scheme}'. "
                f"Supported schemes: {supported}"
            )
            raise InvalidOperationError(msg)

        backend = self._factories[scheme](path, params)
        logger.debug("Resolved %s backend from %s", scheme, uri)
        return backend

    def register(
        self,
        scheme: str,
        factory_func: Callable[[str, dict[str, str]], Any],
    ) -> None:
        """Register a custom backend factory for a URI scheme.

        Args:
            scheme: URI scheme to register (e.g., "s3", "sftp")
            factory_func: Callable that takes (path, params) and returns a
                StorageBackend

        """
        if not callable(factory_func):
            msg = "factory_func must be callable"
            raise TypeError(msg)
        self._factories[scheme] = factory_func

    def _create_local_backend(
        self,
        path: str,
        params: dict[str, str],
    ) -> StorageBackend:
        """Create a LocalStorageBackend from URI components."""
        from .local import LocalStorageBackend

        _reject_path("file", path)
        return LocalStorageBackend(directories=_directories_from_params(params))

    def _create_memory_backend(
        self,
        path: str,
        params: dict[str, str],
    ) -> StorageBackend:
        """Create an InMemoryStorageBackend from URI components."""
        from .memory import InMemoryStorageBackend

        _reject_path("memory", path)
        return InMemoryStorageBackend(directories=_directories_from_params(params))


def _reject_path(scheme: str, path: str) -> None:
    """Raise if a built-in scheme was given a path."""
    if path:
        raise InvalidOperationError.unsupported_backend_path(scheme, path)


def _directories_from_params(params: dict[str, str]) -> dict[DirectoryType, Path]:
    """Map query parameters onto system directory overrides."""
    directories: dict[DirectoryType, Path] = {}
    for name, value in params.items():
        try:
            kind = DirectoryType(name)
        except ValueError as exc:
            msg = f"Unknown directory parameter '{name}'"
            raise InvalidOperationError(msg) from exc
        directories[kind] = Path(value)
    return directories


# Global default factory instance
_default_factory = BackendFactory()


def resolve_backend(uri: str) -> StorageBackend:
    """Resolve a backend from a URI using the default factory.

    Example:
        >>> backend = resolve_backend("file://")
        >>> backend = resolve_backend("memory://?cache=/cache")

    """
    return _default_factory.resolve(uri)


def register_backend_factory(
    scheme: str,
    factory_func: Callable[[str, dict[str, str]], Any],
) -> None:
    """Register a custom backend factory on the default factory.

    Example:
        >>> def my_sftp_factory(path: str, params: dict) -> StorageBackend:
        ...     return SFTPStorageBackend(host=path, **params)
        >>> register_backend_factory("sftp", my_sftp_factory)

    """
    _default_factory.register(scheme, factory_func)
