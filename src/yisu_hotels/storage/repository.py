"""In-memory repository of users and hotels backed by a snapshot store."""
from __future__ import annotations

import copy
import logging
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncContextManager, AsyncIterator, Callable, Iterable, List, Optional, Protocol, Sequence

from yisu_hotels.hotels.models import Hotel, User

logger = logging.getLogger(__name__)

_ID_SUFFIX = re.compile(r"^[a-z](\d+)$")


class CorruptSnapshotError(ValueError):
    """Raised by a store whose backing data cannot be decoded."""


@dataclass
class Snapshot:
    """Whole-dataset image exchanged with a backing store."""

    users: List[User] = field(default_factory=list)
    hotels: List[Hotel] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "users": [user.to_dict() for user in self.users],
            "hotels": Hotel.to_dicts(self.hotels),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Snapshot":
        users = data.get("users") or []
        hotels = data.get("hotels") or []
        if not isinstance(users, list) or not isinstance(hotels, list):
            raise CorruptSnapshotError("Snapshot users and hotels must be lists")
        return cls(
            users=[User.from_dict(entry) for entry in users],
            hotels=[Hotel.from_dict(entry) for entry in hotels],
        )


class SnapshotStore(Protocol):
    async def load(self) -> Snapshot:
        ...

    async def persist(self, users: Sequence[User], hotels: Sequence[Hotel]) -> None:
        ...


class HotelRepository(Protocol):
    async def load(self) -> None:
        ...

    async def persist(self) -> None:
        ...

    def transaction(self) -> AsyncContextManager[None]:
        ...

    def find_by_id(self, hotel_id: str) -> Optional[Hotel]:
        ...

    def list(self) -> List[Hotel]:
        ...

    def upsert(self, hotel: Hotel) -> Hotel:
        ...

    def next_hotel_id(self) -> str:
        ...

    def find_user(self, user_id: str) -> Optional[User]:
        ...

    def find_user_by_username(self, username: str) -> Optional[User]:
        ...

    def add_user(self, user: User) -> User:
        ...

    def next_user_id(self) -> str:
        ...


def _next_id(prefix: str, existing: Iterable[str]) -> str:
    highest = 0
    for identifier in existing:
        match = _ID_SUFFIX.match(identifier)
        if match and identifier.startswith(prefix):
            highest = max(highest, int(match.group(1)))
    return f"{prefix}{highest + 1}"


class InMemoryHotelRepository:
    """Holds the working dataset; ``load``/``persist`` exchange whole snapshots.

    Without a store the repository is purely in-memory, which is what the
    engine tests use.
    """

    def __init__(
        self,
        store: SnapshotStore | None = None,
        *,
        seed: Callable[[], Snapshot] | None = None,
        users: Iterable[User] = (),
        hotels: Iterable[Hotel] = (),
    ) -> None:
        self._store = store
        self._seed = seed
        self._users: List[User] = list(users)
        self._hotels: List[Hotel] = list(hotels)

    # ------------------------------------------------------------------
    # snapshot I/O

    async def load(self) -> None:
        """Replace the working set with the stored snapshot.

        An unreadable or corrupt store falls back to the seed dataset, which is
        then written back.
        """
        if self._store is None:
            return
        try:
            snapshot = await self._store.load()
        except FileNotFoundError:
            logger.info("No stored snapshot found; starting from the seed dataset")
            await self._reseed()
            return
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Stored snapshot unusable (%s); regenerating the seed dataset", exc)
            await self._reseed()
            return
        self._users = list(snapshot.users)
        self._hotels = list(snapshot.hotels)
        logger.info("Loaded %s users and %s hotels", len(self._users), len(self._hotels))

    async def persist(self) -> None:
        if self._store is None:
            return
        await self._store.persist(list(self._users), list(self._hotels))

    async def _reseed(self) -> None:
        await self.replace(self._seed() if self._seed else Snapshot())

    async def replace(self, snapshot: Snapshot) -> None:
        """Swap in ``snapshot`` wholesale and write it to the store."""
        self._users = list(snapshot.users)
        self._hotels = list(snapshot.hotels)
        await self.persist()

    def snapshot(self) -> Snapshot:
        return Snapshot(users=list(self._users), hotels=list(self._hotels))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Persist the changes made inside the block, or undo them if anything fails.

        Records are mutated in place by the domain services, so the rollback
        image is a deep copy taken on entry.
        """
        users = copy.deepcopy(self._users)
        hotels = copy.deepcopy(self._hotels)
        try:
            yield
            await self.persist()
        except BaseException:
            self._users = users
            self._hotels = hotels
            raise

    # ------------------------------------------------------------------
    # hotels

    def find_by_id(self, hotel_id: str) -> Optional[Hotel]:
        return next((hotel for hotel in self._hotels if hotel.id == hotel_id), None)

    def list(self) -> List[Hotel]:
        return list(self._hotels)

    def upsert(self, hotel: Hotel) -> Hotel:
        for index, existing in enumerate(self._hotels):
            if existing.id == hotel.id:
                self._hotels[index] = hotel
                return hotel
        self._hotels.append(hotel)
        return hotel

    def next_hotel_id(self) -> str:
        return _next_id("h", (hotel.id for hotel in self._hotels))

    # ------------------------------------------------------------------
    # users

    def find_user(self, user_id: str) -> Optional[User]:
        return next((user for user in self._users if user.id == user_id), None)

    def find_user_by_username(self, username: str) -> Optional[User]:
        return next((user for user in self._users if user.username == username), None)

    def add_user(self, user: User) -> User:
        self._users.append(user)
        return user

    def next_user_id(self) -> str:
        return _next_id("u", (user.id for user in self._users))
