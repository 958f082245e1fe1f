"""Location parsing and resolution utilities.

This module turns caller-supplied strings into absolute locations, either by
parsing a raw path or ``file://`` URL, or by appending a relative path onto a
system directory supplied by the storage backend.

Key utilities:
- Raw path and ``file://`` URL parsing
- Relative path resolution against a base directory
- Path traversal detection
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

from .interfaces import CannotCreateLocationError

if TYPE_CHECKING:
    from .interfaces import PathLike

FILE_SCHEME = "file"


def to_location(path: PathLike) -> Path:
    """Normalise a caller-supplied location to an absolute ``Path``.

    Raises:
        CannotCreateLocationError: If ``path`` is empty, blank or relative.

    """
    raw = str(path) if isinstance(path, Path) else path
    if not raw or raw.strip() == "":
        raise CannotCreateLocationError(raw, reason="Location cannot be empty")
    if "\x00" in raw:
        raise CannotCreateLocationError(raw, reason="Location contains NUL byte")
    location = path if isinstance(path, Path) else Path(path)
    if not location.is_absolute():
        raise CannotCreateLocationError(raw, reason="Location must be absolute")
    return location


def parse_raw_location(raw: str) -> Path:
    """Parse a raw absolute path or ``file://`` URL into a location.

    Both ``file:///a/b`` and ``file://a/b`` resolve to ``/a/b``.

    Args:
        raw: String supplied by the caller.

    Returns:
        Absolute location.

    Raises:
        CannotCreateLocationError: If the string is empty, uses another URL
            scheme, contains NUL bytes or is not absolute.

    Example:

        >>> parse_raw_location("file:///tmp/a.txt")
        PosixPath('/tmp/a.txt')

    """
    if not raw or raw.strip() == "":
        raise CannotCreateLocationError(raw, reason="Location cannot be empty")
    if "\x00" in raw:
        raise CannotCreateLocationError(raw, reason="Location contains NUL byte")

    path_str = raw
    parsed = urlparse(raw)
    if parsed.scheme == FILE_SCHEME:
        # file://host/path keeps the host as the first path segment
        path_str = "/" + parsed.netloc + parsed.path if parsed.netloc else parsed.path
        path_str = unquote(path_str)
    elif len(parsed.scheme) > 1:
        message = f"Unsupported location scheme '{parsed.scheme}'"
        raise CannotCreateLocationError(raw, reason=message)

    if not path_str or not path_str.startswith("/"):
        raise CannotCreateLocationError(raw, reason="Location must be absolute")
    return Path(path_str)


def resolve_relative(base: Path, path: str) -> Path:
    """Append ``path`` onto ``base``; an empty path returns ``base`` unchanged.

    Raises:
        CannotCreateLocationError: If ``path`` climbs out of ``base``.

    """
    if not path:
        return base
    relative = PurePosixPath(path.lstrip("/"))
    if detect_path_traversal_posix(relative.parts):
        raise CannotCreateLocationError(path, reason="Path escapes base directory")
    return base / relative


def detect_path_traversal_posix(path_parts: tuple[str, ...]) -> bool:
    """Detect path traversal attempts in path components.

    A path traversal attempt is detected when any component is "..",
    which would escape to a parent directory.

    Example:

        >>> detect_path_traversal_posix(PurePosixPath("../../etc/passwd").parts)
        True
        >>> detect_path_traversal_posix(PurePosixPath("valid/relative/path").parts)
        False

    """
    return any(part == ".." for part in path_parts)
