"""Normalised item metadata built from backend-native attribute maps."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

DIRECTORY_TYPE_VALUE = "directory"


class ItemType(Enum):
    """Kind of filesystem item."""

    DIRECTORY = "directory"
    FILE = "file"

    @classmethod
    def from_raw(cls, raw: Any) -> ItemType:
        """Map a raw backend type value; anything but a directory is a file."""
        return cls.DIRECTORY if raw == DIRECTORY_TYPE_VALUE else cls.FILE


@dataclass(frozen=True)
class ItemAttributes:
    """Snapshot of metadata for a filesystem item.

    Timestamps are milliseconds since the Unix epoch.
    """

    creation_timestamp: float
    modification_timestamp: float
    size: int
    type: ItemType

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> ItemAttributes:
        """Build attributes from a raw metadata map.

        Fields the backend does not supply default to zero, and the type
        defaults to ``ItemType.FILE``.
        """
        size = metadata.get("size")
        return cls(
            creation_timestamp=_milliseconds(metadata.get("creation_date")),
            modification_timestamp=_milliseconds(metadata.get("modification_date")),
            size=size if isinstance(size, int) and size >= 0 else 0,
            type=ItemType.from_raw(metadata.get("type")),
        )

    @property
    def is_dir(self) -> bool:
        """Whether the item is a directory."""
        return self.type is ItemType.DIRECTORY

    def as_dict(self) -> dict:
        """Return a JSON-serialisable representation."""
        return {
            "creation_timestamp": self.creation_timestamp,
            "modification_timestamp": self.modification_timestamp,
            "size": self.size,
            "type": self.type.value,
        }


def _milliseconds(value: datetime | None) -> float:
    """Convert an optional datetime to milliseconds since the epoch."""
    if value is None or not hasattr(value, "timestamp"):
        return 0.0
    return value.timestamp() * 1000
