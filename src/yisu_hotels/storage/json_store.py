"""JSON snapshot persistence."""
from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from yisu_hotels.hotels.models import Hotel, User

from .repository import CorruptSnapshotError, Snapshot

logger = logging.getLogger(__name__)


class JsonSnapshotStore:
    """Keeps the whole dataset in one JSON document.

    Writes go to a sibling temp file that replaces the target in one step, so a
    reader never observes a half-written snapshot.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = asyncio.Lock()

    async def load(self) -> Snapshot:
        async with self._lock:
            return await asyncio.to_thread(self._read)

    async def persist(self, users: Sequence[User], hotels: Sequence[Hotel]) -> None:
        snapshot = Snapshot(users=list(users), hotels=list(hotels))
        async with self._lock:
            await asyncio.to_thread(self._write, snapshot)

    def _read(self) -> Snapshot:
        if not self.path.exists():
            raise FileNotFoundError(f"Snapshot not found at {self.path}")
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise CorruptSnapshotError(f"Snapshot at {self.path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise CorruptSnapshotError(f"Snapshot at {self.path} must be a JSON object")
        return Snapshot.from_dict(data)

    def _write(self, snapshot: Snapshot) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        serialisable = {
            "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            **snapshot.to_dict(),
        }
        temp_path = self.path.with_name(f".{self.path.name}.tmp")
        temp_path.write_text(json.dumps(serialisable, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(temp_path, self.path)
        logger.debug(
            "Wrote snapshot with %s users and %s hotels to %s",
            len(snapshot.users),
            len(snapshot.hotels),
            self.path,
        )
        return self.path
