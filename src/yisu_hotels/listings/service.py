"""Merchant-facing listing creation and editing."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from yisu_hotels.core.errors import Forbidden, NotFound, ValidationError
from yisu_hotels.hotels.models import Hotel, HotelStatus, utc_now
from yisu_hotels.hotels.normalizer import (
    DEFAULT_STAR_RATING,
    build_room_options,
    clamp_star_rating,
    clean_text,
    normalize_images,
)
from yisu_hotels.storage.repository import HotelRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("display_name", "address", "opened_on")


class ListingPayload(BaseModel):
    """Raw listing fields as submitted by a merchant.

    Only the keys present in the submission count as supplied
    (``model_fields_set``), which is what gives edits their partial-update
    behaviour.
    """

    model_config = ConfigDict(extra="ignore")

    display_name: Optional[str] = None
    display_name_alt: Optional[str] = None
    address: Optional[str] = None
    opened_on: Optional[str] = None
    star_rating: Any = None
    room_options: Optional[List[dict[str, Any]]] = None
    amenity_tags: Optional[str] = None
    images: Optional[List[Any]] = None

    @field_validator("display_name", "display_name_alt", "address", "opened_on", "amenity_tags", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        return clean_text(value)

    @field_validator("room_options", mode="before")
    @classmethod
    def _coerce_rooms(cls, value: object) -> Optional[List[dict[str, Any]]]:
        if not isinstance(value, (list, tuple)):
            return None
        return [dict(entry) if isinstance(entry, Mapping) else {} for entry in value]

    @field_validator("images", mode="before")
    @classmethod
    def _coerce_images(cls, value: object) -> Optional[List[Any]]:
        if not isinstance(value, (list, tuple)):
            return None
        return list(value)

    def supplied(self, name: str) -> bool:
        return name in self.model_fields_set and getattr(self, name) is not None


def _parse_payload(fields: object) -> ListingPayload:
    try:
        return ListingPayload.model_validate(fields if fields is not None else {})
    except PydanticValidationError as exc:
        names = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
        raise ValidationError(f"Malformed listing fields: {', '.join(names) or 'payload'}", names) from exc


class ListingService:
    """Creates listings for merchants and applies their partial edits."""

    def __init__(self, repository: HotelRepository, *, clock: Callable[[], str] = utc_now) -> None:
        self._repository = repository
        self._clock = clock

    def create(self, fields: Mapping[str, Any], owner_id: str) -> Hotel:
        payload = _parse_payload(fields)
        missing = [name for name in REQUIRED_FIELDS if not getattr(payload, name)]
        if missing:
            raise ValidationError.missing(missing)
        if not payload.room_options:
            raise ValidationError("At least one room option is required", ["room_options"])

        hotel_id = self._repository.next_hotel_id()
        now = self._clock()
        hotel = Hotel(
            id=hotel_id,
            owner_id=owner_id,
            display_name=payload.display_name,
            display_name_alt=payload.display_name_alt or payload.display_name,
            address=payload.address,
            star_rating=clamp_star_rating(payload.star_rating, DEFAULT_STAR_RATING),
            opened_on=payload.opened_on,
            room_options=build_room_options(hotel_id, payload.room_options),
            status=HotelStatus.PENDING,
            rejection_note=None,
            amenity_tags=payload.amenity_tags or "",
            images=normalize_images(payload.images),
            created_at=now,
            updated_at=now,
        )
        self._repository.upsert(hotel)
        logger.info("Merchant %s created hotel %s (%s)", owner_id, hotel.id, hotel.display_name)
        return hotel

    def edit(self, hotel_id: str, fields: Mapping[str, Any], caller_id: str) -> Hotel:
        hotel = self._repository.find_by_id(hotel_id)
        if hotel is None:
            raise NotFound("Hotel not found")
        if not hotel.is_owned_by(caller_id):
            raise Forbidden("No permission to edit this hotel")

        payload = _parse_payload(fields)
        blank = [name for name in REQUIRED_FIELDS if payload.supplied(name) and not getattr(payload, name)]
        if blank:
            raise ValidationError.missing(blank)
        if payload.supplied("room_options") and not payload.room_options:
            raise ValidationError("At least one room option is required", ["room_options"])

        display_name = payload.display_name if payload.supplied("display_name") else hotel.display_name
        if payload.supplied("display_name_alt"):
            display_name_alt = payload.display_name_alt or display_name
        else:
            display_name_alt = hotel.display_name_alt
        updated = replace(
            hotel,
            display_name=display_name,
            display_name_alt=display_name_alt,
            address=payload.address if payload.supplied("address") else hotel.address,
            opened_on=payload.opened_on if payload.supplied("opened_on") else hotel.opened_on,
            star_rating=(
                clamp_star_rating(payload.star_rating, hotel.star_rating)
                if "star_rating" in payload.model_fields_set
                else hotel.star_rating
            ),
            room_options=(
                build_room_options(hotel.id, payload.room_options, reuse_ids=True)
                if payload.supplied("room_options")
                else list(hotel.room_options)
            ),
            amenity_tags=payload.amenity_tags if payload.supplied("amenity_tags") else hotel.amenity_tags,
            images=normalize_images(payload.images) if payload.supplied("images") else list(hotel.images),
            updated_at=self._clock(),
        )
        self._repository.upsert(updated)
        logger.info("Merchant %s edited hotel %s", caller_id, hotel.id)
        return updated
