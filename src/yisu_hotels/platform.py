"""Application facade: one coroutine per platform operation.

Each operation resolves the caller through the session gate, runs the
synchronous domain logic and returns an ``OperationResult`` envelope. Writes
run inside ``repository.transaction()``, so a failed persist leaves the
in-memory data as it was. Failures never escape: platform errors map to their
envelope code and anything else is logged and reported as an internal error.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from yisu_hotels.auth.passwords import PasswordHasher
from yisu_hotels.auth.sessions import AccountService, AuthGate, InMemorySessionStore, SessionStore
from yisu_hotels.config.settings import Settings
from yisu_hotels.core.envelope import INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE, OperationResult
from yisu_hotels.core.errors import HotelPlatformError
from yisu_hotels.hotels.models import UserRole, utc_now
from yisu_hotels.listings.service import ListingService
from yisu_hotels.moderation.state_machine import ModerationService
from yisu_hotels.pricing.calculator import PricingCalculator
from yisu_hotels.search.criteria import SearchCriteria
from yisu_hotels.search.engine import HotelSearchEngine
from yisu_hotels.storage.json_store import JsonSnapshotStore
from yisu_hotels.storage.repository import InMemoryHotelRepository, SnapshotStore
from yisu_hotels.storage.seed import default_snapshot
from yisu_hotels.storage.sqlite_store import SqliteSnapshotStore

logger = logging.getLogger(__name__)

Operation = Callable[..., Awaitable[OperationResult]]


def enveloped(func: Operation) -> Operation:
    """Convert exceptions raised by an operation into failure envelopes."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> OperationResult:
        try:
            return await func(*args, **kwargs)
        except HotelPlatformError as exc:
            logger.debug("%s failed: %s", func.__name__, exc.message)
            return OperationResult.failure(exc.message, exc.code)
        except Exception:
            logger.exception("Unhandled error in %s", func.__name__)
            return OperationResult.failure(INTERNAL_ERROR_MESSAGE, INTERNAL_ERROR_CODE)

    return wrapper


def build_store(settings: Settings) -> SnapshotStore:
    if settings.storage_backend == "sqlite":
        return SqliteSnapshotStore(
            settings.sqlite_storage_path,
            busy_timeout_ms=settings.sqlite_busy_timeout_ms,
            journal_mode=settings.sqlite_journal_mode,
            synchronous=settings.sqlite_synchronous,
        )
    return JsonSnapshotStore(settings.json_storage_path)


class HotelPlatform:
    """Wires repository, gate and domain services together."""

    def __init__(
        self,
        repository: InMemoryHotelRepository,
        *,
        settings: Settings | None = None,
        sessions: SessionStore | None = None,
        hasher: PasswordHasher | None = None,
        clock: Callable[[], str] = utc_now,
    ) -> None:
        self.settings = settings or Settings()
        self.repository = repository
        self.sessions = sessions or InMemorySessionStore()
        self.hasher = hasher or PasswordHasher(self.settings.password_salt)
        self.gate = AuthGate(self.sessions)
        self.accounts = AccountService(repository, self.sessions, self.hasher)
        self.engine = HotelSearchEngine(repository, PricingCalculator.from_settings(self.settings))
        self.listings = ListingService(repository, clock=clock)
        self.moderation = ModerationService(repository, clock=clock)

    @classmethod
    async def start(cls, settings: Settings | None = None, **kwargs: Any) -> "HotelPlatform":
        """Build the platform from settings and load the stored snapshot."""
        settings = settings or Settings()
        settings.ensure_directories()
        hasher = kwargs.pop("hasher", None) or PasswordHasher(settings.password_salt)
        repository = InMemoryHotelRepository(
            build_store(settings),
            seed=lambda: default_snapshot(hasher.hash),
        )
        await repository.load()
        logger.info("Platform started with %s storage at %s", settings.storage_backend, settings.storage_path())
        return cls(repository, settings=settings, hasher=hasher, **kwargs)

    def _criteria(self, query: Mapping[str, Any] | None, *, default_page_size: int) -> SearchCriteria:
        return SearchCriteria.from_query(
            query,
            default_page_size=default_page_size,
            max_page_size=self.settings.max_page_size,
        )

    # ------------------------------------------------------------------
    # public

    @enveloped
    async def health(self) -> OperationResult:
        return OperationResult.success({"ok": True, "hotels": len(self.repository.list())})

    @enveloped
    async def search(self, query: Mapping[str, Any] | None = None, token: Optional[str] = None) -> OperationResult:
        criteria = self._criteria(query, default_page_size=self.settings.default_page_size)
        result = self.engine.search(criteria, self.gate.resolve(token))
        return OperationResult.success(result.to_dict())

    @enveloped
    async def detail(
        self,
        hotel_id: str,
        query: Mapping[str, Any] | None = None,
        token: Optional[str] = None,
    ) -> OperationResult:
        query = query or {}
        priced = self.engine.detail(
            hotel_id,
            self.gate.resolve(token),
            check_in=query.get("check_in"),
            check_out=query.get("check_out"),
        )
        return OperationResult.success(priced.to_dict())

    # ------------------------------------------------------------------
    # accounts

    @enveloped
    async def register(self, username: str | None, password: str | None, role: str | None) -> OperationResult:
        async with self.repository.transaction():
            user = self.accounts.register(username, password, role)
        return OperationResult.success(user.to_public_dict(), "Registered")

    @enveloped
    async def login(self, username: str | None, password: str | None) -> OperationResult:
        token = None
        try:
            async with self.repository.transaction():
                token, user = self.accounts.login(username, password)
        except Exception:
            self.accounts.logout(token)
            raise
        return OperationResult.success({"token": token, "user": user.to_public_dict()}, "Logged in")

    @enveloped
    async def logout(self, token: Optional[str]) -> OperationResult:
        self.accounts.logout(token)
        return OperationResult.success(None, "Logged out")

    # ------------------------------------------------------------------
    # merchant

    @enveloped
    async def create_listing(self, fields: Mapping[str, Any], token: Optional[str]) -> OperationResult:
        session = self.gate.require(token, UserRole.MERCHANT)
        async with self.repository.transaction():
            hotel = self.listings.create(fields, session.user_id)
        return OperationResult.success(hotel.to_dict(), "Created")

    @enveloped
    async def edit_listing(self, hotel_id: str, fields: Mapping[str, Any], token: Optional[str]) -> OperationResult:
        session = self.gate.require(token, UserRole.MERCHANT)
        async with self.repository.transaction():
            hotel = self.listings.edit(hotel_id, fields, session.user_id)
        payload = hotel.to_dict()
        payload["room_options"] = [
            room.to_dict() for room in sorted(hotel.room_options, key=lambda room: room.base_price)
        ]
        return OperationResult.success(payload, "Updated")

    # ------------------------------------------------------------------
    # admin

    @enveloped
    async def review_list(self, query: Mapping[str, Any] | None, token: Optional[str]) -> OperationResult:
        self.gate.require(token, UserRole.ADMIN)
        criteria = self._criteria(query, default_page_size=self.settings.review_page_size)
        return OperationResult.success(self.moderation.review_list(criteria).to_dict())

    @enveloped
    async def approve(self, hotel_id: str, token: Optional[str]) -> OperationResult:
        self.gate.require(token, UserRole.ADMIN)
        async with self.repository.transaction():
            hotel = self.moderation.approve(hotel_id)
        return OperationResult.success(hotel.to_dict(), "Approved and published")

    @enveloped
    async def reject(self, hotel_id: str, reason: str | None, token: Optional[str]) -> OperationResult:
        self.gate.require(token, UserRole.ADMIN)
        async with self.repository.transaction():
            hotel = self.moderation.reject(hotel_id, reason)
        return OperationResult.success(hotel.to_dict(), "Rejected")

    @enveloped
    async def offline(self, hotel_id: str, token: Optional[str]) -> OperationResult:
        self.gate.require(token, UserRole.ADMIN)
        async with self.repository.transaction():
            hotel = self.moderation.offline(hotel_id)
        return OperationResult.success(hotel.to_dict(), "Taken offline")

    @enveloped
    async def restore(self, hotel_id: str, token: Optional[str]) -> OperationResult:
        self.gate.require(token, UserRole.ADMIN)
        async with self.repository.transaction():
            hotel = self.moderation.restore(hotel_id)
        return OperationResult.success(hotel.to_dict(), "Restored")
