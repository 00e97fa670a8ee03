"""SQLite-backed snapshot persistence for users and hotels."""
from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from yisu_hotels.hotels.models import Hotel, User, UserRole

from .repository import CorruptSnapshotError, Snapshot

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
SCHEMA_VERSION = 2

VALID_JOURNAL_MODES = frozenset({"delete", "truncate", "persist", "memory", "wal", "off"})
VALID_SYNCHRONOUS_MODES = frozenset({"off", "normal", "full", "extra"})

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime(ISO_FORMAT)


def _json_dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _normalize_pragma(name: str, value: str | None, allowed: frozenset[str]) -> str | None:
    mode = (value or "").strip().lower()
    if not mode:
        return None
    if mode not in allowed:
        raise ValueError(f"Unsupported SQLite {name} '{value}'. Expected one of: {sorted(allowed)}")
    return mode


class SqliteSnapshotStore:
    """Thin async wrapper over sqlite3 that stores whole snapshots.

    ``persist`` replaces every row inside one transaction; ``load`` raises
    ``FileNotFoundError`` until a snapshot has been written.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        busy_timeout_ms: int = 2000,
        journal_mode: str | None = "wal",
        synchronous: str | None = "normal",
    ) -> None:
        self._path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self._journal_mode = _normalize_pragma("journal_mode", journal_mode, VALID_JOURNAL_MODES)
        self._synchronous = _normalize_pragma("synchronous", synchronous, VALID_SYNCHRONOUS_MODES)
        self._connection: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # lifecycle

    async def initialize(self) -> None:
        if self._connection is not None:
            return
        async with self._lock:
            if self._connection is None:
                self._connection = await asyncio.to_thread(self._open_connection)

    async def close(self) -> None:
        if self._connection is None:
            return
        conn = self._connection
        self._connection = None
        await asyncio.to_thread(conn.close)

    def _open_connection(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self._path, check_same_thread=False)
        try:
            conn.execute("PRAGMA foreign_keys = ON;")
            conn.execute(f"PRAGMA busy_timeout = {int(max(self._busy_timeout_ms, 0))};")
            if self._journal_mode:
                conn.execute(f"PRAGMA journal_mode = {self._journal_mode.upper()};")
            if self._synchronous:
                conn.execute(f"PRAGMA synchronous = {self._synchronous.upper()};")
            self._apply_migrations(conn)
        except sqlite3.DatabaseError as exc:
            conn.close()
            logger.error(
                "SQLite setup failed (path=%s, timeout_ms=%s): %s",
                self._path,
                self._busy_timeout_ms,
                exc,
            )
            raise
        return conn

    def _apply_migrations(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        stored = self._get_meta(conn, "schema_version")
        current = int(stored) if stored and stored.isdigit() else 0
        if current >= SCHEMA_VERSION:
            return
        for version in range(current + 1, SCHEMA_VERSION + 1):
            script = MIGRATIONS.get(version)
            if not script:
                raise RuntimeError(f"Missing migration script for version {version}")
            conn.executescript(script)
            self._set_meta(conn, "schema_version", str(version))
        conn.commit()

    @staticmethod
    def _get_meta(conn: sqlite3.Connection, key: str) -> str | None:
        row = conn.execute("SELECT value FROM meta WHERE key=?", (key,)).fetchone()
        return row[0] if row else None

    @staticmethod
    def _set_meta(conn: sqlite3.Connection, key: str, value: str) -> None:
        conn.execute(
            "INSERT INTO meta(key, value) VALUES(?, ?)\n"
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )

    def _require_connection(self) -> sqlite3.Connection:
        if not self._connection:
            raise RuntimeError("SQLite store has not been initialised")
        return self._connection

    def _quarantine(self) -> Path:
        """Move an undecodable database aside so a fresh one can be created."""
        target = self._path.with_name(f"{self._path.name}.corrupt-{datetime.now(timezone.utc):%Y%m%d%H%M%S}")
        self._path.replace(target)
        for suffix in ("-wal", "-shm"):
            sidecar = self._path.with_name(self._path.name + suffix)
            if sidecar.exists():
                sidecar.unlink()
        return target

    # ------------------------------------------------------------------
    # snapshot I/O

    async def load(self) -> Snapshot:
        if not self._path.exists():
            raise FileNotFoundError(f"Snapshot database not found at {self._path}")
        try:
            await self.initialize()
        except sqlite3.DatabaseError as exc:
            async with self._lock:
                moved = await asyncio.to_thread(self._quarantine)
            raise CorruptSnapshotError(f"SQLite snapshot unreadable; moved to {moved}") from exc

        def _op() -> Snapshot:
            conn = self._require_connection()
            if self._get_meta(conn, "snapshot_written_at") is None:
                raise FileNotFoundError(f"No snapshot has been written to {self._path}")
            users = [
                User(id=row[0], username=row[1], password=row[2], role=UserRole(row[3]))
                for row in conn.execute("SELECT id, username, password, role FROM users ORDER BY position")
            ]
            rooms_by_hotel: dict[str, list[dict[str, Any]]] = {}
            for row in conn.execute(
                "SELECT hotel_id, id, name, price FROM room_options ORDER BY hotel_id, position"
            ):
                rooms_by_hotel.setdefault(row[0], []).append({"id": row[1], "name": row[2], "price": row[3]})
            cursor = conn.execute(
                """
                SELECT id, owner_id, display_name, display_name_alt, address, star_rating,
                       opened_on, status, rejection_note, amenity_tags, images, created_at, updated_at
                FROM hotels
                ORDER BY position
                """
            )
            columns = [column[0] for column in cursor.description]
            hotels: list[Hotel] = []
            for row in cursor:
                record = dict(zip(columns, row))
                record["images"] = json.loads(record["images"] or "[]")
                record["room_options"] = rooms_by_hotel.get(record["id"], [])
                # from_dict clamps the rating and drops notes on non-rejected hotels.
                hotels.append(Hotel.from_dict(record))
            return Snapshot(users=users, hotels=hotels)

        async with self._lock:
            try:
                return await asyncio.to_thread(_op)
            except sqlite3.DatabaseError as exc:
                raise CorruptSnapshotError(f"SQLite snapshot at {self._path} could not be read") from exc

    async def persist(self, users: Sequence[User], hotels: Sequence[Hotel]) -> None:
        await self.initialize()

        def _op() -> None:
            conn = self._require_connection()
            with conn:
                conn.execute("DELETE FROM room_options")
                conn.execute("DELETE FROM hotels")
                conn.execute("DELETE FROM users")
                conn.executemany(
                    "INSERT INTO users(id, position, username, password, role) VALUES(?, ?, ?, ?, ?)",
                    [
                        (user.id, position, user.username, user.password, user.role.value)
                        for position, user in enumerate(users)
                    ],
                )
                conn.executemany(
                    """
                    INSERT INTO hotels(
                        id, position, owner_id, display_name, display_name_alt, address, star_rating,
                        opened_on, status, rejection_note, amenity_tags, images, created_at, updated_at
                    ) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            hotel.id,
                            position,
                            hotel.owner_id,
                            hotel.display_name,
                            hotel.display_name_alt,
                            hotel.address,
                            hotel.star_rating,
                            hotel.opened_on,
                            hotel.status.value,
                            hotel.rejection_note,
                            hotel.amenity_tags,
                            _json_dumps(hotel.images),
                            hotel.created_at,
                            hotel.updated_at,
                        )
                        for position, hotel in enumerate(hotels)
                    ],
                )
                conn.executemany(
                    "INSERT INTO room_options(hotel_id, position, id, name, price) VALUES(?, ?, ?, ?, ?)",
                    [
                        (hotel.id, position, room.id, room.name, room.base_price)
                        for hotel in hotels
                        for position, room in enumerate(hotel.room_options)
                    ],
                )
                self._set_meta(conn, "snapshot_written_at", _utc_now())

        async with self._lock:
            await asyncio.to_thread(_op)
        logger.debug("Persisted %s users and %s hotels to %s", len(users), len(hotels), self._path)


MIGRATIONS: dict[int, str] = {
    1: """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            position INTEGER NOT NULL,
            username TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            role TEXT NOT NULL CHECK (role IN ('merchant', 'admin'))
        );
        CREATE TABLE IF NOT EXISTS hotels (
            id TEXT PRIMARY KEY,
            position INTEGER NOT NULL,
            owner_id TEXT NOT NULL,
            display_name TEXT NOT NULL,
            display_name_alt TEXT,
            address TEXT NOT NULL,
            star_rating INTEGER NOT NULL CHECK (star_rating BETWEEN 1 AND 5),
            opened_on TEXT NOT NULL,
            status TEXT NOT NULL,
            rejection_note TEXT,
            amenity_tags TEXT NOT NULL DEFAULT '',
            images TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_hotels_owner ON hotels(owner_id);
    """,
    2: """
        CREATE TABLE IF NOT EXISTS room_options (
            hotel_id TEXT NOT NULL REFERENCES hotels(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            id TEXT NOT NULL,
            name TEXT NOT NULL,
            price INTEGER NOT NULL CHECK (price >= 0),
            PRIMARY KEY (hotel_id, position)
        );
        CREATE INDEX IF NOT EXISTS idx_hotels_status ON hotels(status);
    """,
}
