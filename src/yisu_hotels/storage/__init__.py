"""Repository and snapshot stores."""

from .json_store import JsonSnapshotStore
from .repository import (
    CorruptSnapshotError,
    HotelRepository,
    InMemoryHotelRepository,
    Snapshot,
    SnapshotStore,
)
from .seed import default_snapshot
from .sqlite_store import SqliteSnapshotStore

__all__ = [
    "CorruptSnapshotError",
    "HotelRepository",
    "InMemoryHotelRepository",
    "JsonSnapshotStore",
    "Snapshot",
    "SnapshotStore",
    "SqliteSnapshotStore",
    "default_snapshot",
]
