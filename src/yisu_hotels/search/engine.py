"""Role-scoped hotel search with dynamic pricing and pagination."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from yisu_hotels.core.errors import NotFound
from yisu_hotels.hotels.models import Hotel, HotelStatus, PricedHotel, PricingQuote, Session, UserRole
from yisu_hotels.pricing.calculator import PricingCalculator, apply_pricing
from yisu_hotels.storage.repository import HotelRepository

from .criteria import SearchCriteria

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SearchResult:
    """One page of priced hotels plus the pre-pagination total."""

    items: List[PricedHotel]
    total: int
    page: int
    page_size: int
    pricing: PricingQuote

    def to_dict(self) -> dict[str, object]:
        return {
            "list": [item.to_dict() for item in self.items],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "pricing": self.pricing.to_dict(),
        }


def matches_keyword(hotel: Hotel, keyword: str) -> bool:
    return any(
        keyword in (text or "").lower()
        for text in (hotel.display_name, hotel.display_name_alt, hotel.address)
    )


def filter_keyword(hotels: Iterable[Hotel], keyword: Optional[str]) -> List[Hotel]:
    if not keyword:
        return list(hotels)
    return [hotel for hotel in hotels if matches_keyword(hotel, keyword)]


def filter_star_level(hotels: Iterable[Hotel], stars: Iterable[int]) -> List[Hotel]:
    wanted = set(stars)
    if not wanted:
        return list(hotels)
    return [hotel for hotel in hotels if hotel.star_rating in wanted]


def filter_city(hotels: Iterable[Hotel], city: Optional[str]) -> List[Hotel]:
    if not city:
        return list(hotels)
    return [hotel for hotel in hotels if city in (hotel.address or "").lower()]


def filter_tags(hotels: Iterable[Hotel], tags: Iterable[str]) -> List[Hotel]:
    wanted = [tag for tag in tags if tag]
    if not wanted:
        return list(hotels)
    return [
        hotel
        for hotel in hotels
        if any(tag in (hotel.amenity_tags or "").lower() for tag in wanted)
    ]


def filter_price(
    priced: Iterable[PricedHotel],
    min_price: Optional[float],
    max_price: Optional[float],
) -> List[PricedHotel]:
    survivors: List[PricedHotel] = []
    for item in priced:
        cheapest = item.min_price
        if min_price is not None and cheapest < min_price:
            continue
        if max_price is not None and cheapest > max_price:
            continue
        survivors.append(item)
    return survivors


class HotelSearchEngine:
    """Applies visibility, filters, pricing and pagination over the repository."""

    def __init__(self, repository: HotelRepository, pricing: PricingCalculator | None = None) -> None:
        self._repository = repository
        self._pricing = pricing or PricingCalculator()

    def visible_hotels(self, session: Optional[Session], *, manage: bool) -> List[Hotel]:
        hotels = self._repository.list()
        if not manage or session is None:
            return [hotel for hotel in hotels if hotel.status is HotelStatus.APPROVED]
        if session.role is UserRole.MERCHANT:
            return [hotel for hotel in hotels if hotel.is_owned_by(session.user_id)]
        if session.role is UserRole.ADMIN:
            return hotels
        raise AssertionError(f"Unhandled role {session.role!r}")

    def can_view(self, hotel: Hotel, session: Optional[Session]) -> bool:
        if hotel.status is HotelStatus.APPROVED:
            return True
        if session is None:
            return False
        if session.role is UserRole.ADMIN:
            return True
        if session.role is UserRole.MERCHANT:
            return hotel.is_owned_by(session.user_id)
        raise AssertionError(f"Unhandled role {session.role!r}")

    def search(self, criteria: SearchCriteria, session: Optional[Session] = None) -> SearchResult:
        hotels = self.visible_hotels(session, manage=criteria.manage)
        hotels = filter_keyword(hotels, criteria.keyword)
        hotels = filter_star_level(hotels, criteria.star_level)
        hotels = filter_city(hotels, criteria.city)
        hotels = filter_tags(hotels, criteria.tags)

        quote = self._pricing.quote(criteria.check_in, criteria.check_out)
        priced = [apply_pricing(hotel, quote.multiplier, quote=quote) for hotel in hotels]
        priced = filter_price(priced, criteria.min_price, criteria.max_price)

        total = len(priced)
        start = (criteria.page - 1) * criteria.page_size
        page_items = priced[start:start + criteria.page_size]
        logger.debug(
            "Search matched %s hotels (page %s, size %s, multiplier %s)",
            total,
            criteria.page,
            criteria.page_size,
            quote.multiplier,
        )
        return SearchResult(
            items=page_items,
            total=total,
            page=criteria.page,
            page_size=criteria.page_size,
            pricing=quote,
        )

    def detail(
        self,
        hotel_id: str,
        session: Optional[Session] = None,
        *,
        check_in: str | None = None,
        check_out: str | None = None,
    ) -> PricedHotel:
        """Priced hotel with room options sorted by ascending price.

        Hotels that are not approved only resolve for their owner or an admin;
        everyone else gets ``NotFound`` as if the id did not exist.
        """
        hotel = self._repository.find_by_id(hotel_id)
        if hotel is None:
            raise NotFound("Hotel not found")
        if not self.can_view(hotel, session):
            raise NotFound("Hotel not found or not published")
        quote = self._pricing.quote(check_in, check_out)
        return apply_pricing(hotel, quote.multiplier, quote=quote).sorted_by_price()
