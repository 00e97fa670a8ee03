"""Admin moderation of hotel listings.

    pending  -> approved | rejected
    approved -> offline
    offline  -> approved  (restore)
    rejected -> approved  (re-approval)

``approve``, ``reject`` and ``offline`` are accepted from any status; only
``restore`` checks where it starts from. Role checks happen in the session
gate before these methods are reached.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from yisu_hotels.core.errors import InvalidTransition, NotFound
from yisu_hotels.hotels.models import Hotel, HotelStatus, utc_now
from yisu_hotels.search.criteria import SearchCriteria
from yisu_hotels.search.engine import filter_keyword
from yisu_hotels.storage.repository import HotelRepository

logger = logging.getLogger(__name__)

UNSPECIFIED_REASON = "unspecified"


@dataclass(slots=True)
class ReviewPage:
    items: List[Hotel]
    total: int
    page: int
    page_size: int

    def to_dict(self) -> dict[str, object]:
        return {
            "list": Hotel.to_dicts(self.items),
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
        }


class ModerationService:
    """Moves hotels between moderation statuses."""

    def __init__(self, repository: HotelRepository, *, clock: Callable[[], str] = utc_now) -> None:
        self._repository = repository
        self._clock = clock

    def _get(self, hotel_id: str) -> Hotel:
        hotel = self._repository.find_by_id(hotel_id)
        if hotel is None:
            raise NotFound("Hotel not found")
        return hotel

    def _transition(self, hotel: Hotel, target: HotelStatus, note: Optional[str] = None) -> Hotel:
        previous = hotel.status
        hotel.status = target
        hotel.rejection_note = note if target is HotelStatus.REJECTED else None
        hotel.touch(self._clock())
        self._repository.upsert(hotel)
        logger.info("Hotel %s moved %s -> %s", hotel.id, previous.value, target.value)
        return hotel

    def approve(self, hotel_id: str) -> Hotel:
        return self._transition(self._get(hotel_id), HotelStatus.APPROVED)

    def reject(self, hotel_id: str, reason: str | None = None) -> Hotel:
        hotel = self._get(hotel_id)
        note = (reason or "").strip() or UNSPECIFIED_REASON
        return self._transition(hotel, HotelStatus.REJECTED, note)

    def offline(self, hotel_id: str) -> Hotel:
        # Accepted from every status, pending and rejected included.
        return self._transition(self._get(hotel_id), HotelStatus.OFFLINE)

    def restore(self, hotel_id: str) -> Hotel:
        hotel = self._get(hotel_id)
        if hotel.status is not HotelStatus.OFFLINE:
            raise InvalidTransition(
                "Only offline hotels can be restored",
                current=hotel.status.value,
                target=HotelStatus.APPROVED.value,
            )
        return self._transition(hotel, HotelStatus.APPROVED)

    def review_list(self, criteria: SearchCriteria) -> ReviewPage:
        """Every hotel regardless of status, for the admin review screen."""
        hotels = self._repository.list()
        if criteria.status:
            hotels = [hotel for hotel in hotels if hotel.status.value == criteria.status]
        hotels = filter_keyword(hotels, criteria.keyword)
        total = len(hotels)
        start = (criteria.page - 1) * criteria.page_size
        return ReviewPage(
            items=hotels[start:start + criteria.page_size],
            total=total,
            page=criteria.page,
            page_size=criteria.page_size,
        )
