"""Dataclasses for hotel listings, accounts and sessions."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, List, Optional


def utc_now() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


MIN_STAR_RATING = 1
MAX_STAR_RATING = 5


def bounded_star_rating(value: int) -> int:
    return min(MAX_STAR_RATING, max(MIN_STAR_RATING, value))


class HotelStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    OFFLINE = "offline"


class UserRole(str, Enum):
    MERCHANT = "merchant"
    ADMIN = "admin"


@dataclass(slots=True)
class RoomOption:
    """A bookable room type and its stored nightly price."""

    id: str
    name: str
    base_price: int

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name, "price": self.base_price}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoomOption":
        return cls(id=str(data["id"]), name=str(data.get("name", "")), base_price=int(data.get("price", 0)))


@dataclass(slots=True)
class Hotel:
    """One listing as stored by the repository."""

    id: str
    owner_id: str
    display_name: str
    display_name_alt: str
    address: str
    star_rating: int
    opened_on: str
    room_options: List[RoomOption] = field(default_factory=list)
    status: HotelStatus = HotelStatus.PENDING
    rejection_note: Optional[str] = None
    amenity_tags: str = ""
    images: List[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    def is_owned_by(self, user_id: str | None) -> bool:
        return user_id is not None and self.owner_id == user_id

    def touch(self, timestamp: str | None = None) -> None:
        self.updated_at = timestamp or utc_now()

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "display_name": self.display_name,
            "display_name_alt": self.display_name_alt,
            "address": self.address,
            "star_rating": self.star_rating,
            "room_options": [room.to_dict() for room in self.room_options],
            "opened_on": self.opened_on,
            "status": self.status.value,
            "rejection_note": self.rejection_note,
            "amenity_tags": self.amenity_tags,
            "images": list(self.images),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Hotel":
        display_name = str(data["display_name"])
        status = HotelStatus(data.get("status", HotelStatus.PENDING.value))
        return cls(
            id=str(data["id"]),
            owner_id=str(data["owner_id"]),
            display_name=display_name,
            display_name_alt=str(data.get("display_name_alt") or display_name),
            address=str(data.get("address", "")),
            star_rating=bounded_star_rating(int(data.get("star_rating", 3))),
            opened_on=str(data.get("opened_on", "")),
            room_options=[RoomOption.from_dict(room) for room in data.get("room_options") or []],
            status=status,
            rejection_note=data.get("rejection_note") if status is HotelStatus.REJECTED else None,
            amenity_tags=str(data.get("amenity_tags") or ""),
            images=[str(image) for image in data.get("images") or []],
            created_at=str(data.get("created_at", "")),
            updated_at=str(data.get("updated_at", "")),
        )

    @staticmethod
    def to_dicts(records: Iterable["Hotel"]) -> List[dict[str, object]]:
        return [record.to_dict() for record in records]


@dataclass(slots=True)
class User:
    id: str
    username: str
    password: str
    role: UserRole

    def to_public_dict(self) -> dict[str, object]:
        return {"id": self.id, "username": self.username, "role": self.role.value}

    def to_dict(self) -> dict[str, object]:
        return {**self.to_public_dict(), "password": self.password}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            username=str(data["username"]),
            password=str(data.get("password", "")),
            role=UserRole(data["role"]),
        )


@dataclass(frozen=True, slots=True)
class Session:
    """Identity bound to a login token."""

    user_id: str
    role: UserRole


@dataclass(frozen=True, slots=True)
class PricingQuote:
    """Stay dates and the multiplier applied to room prices."""

    check_in: Optional[str]
    check_out: Optional[str]
    multiplier: float

    def to_dict(self) -> dict[str, object]:
        return {"check_in": self.check_in, "check_out": self.check_out, "multiplier": self.multiplier}


@dataclass(slots=True)
class PricedHotel:
    """A hotel paired with room options priced for a particular stay."""

    hotel: Hotel
    room_options: List[RoomOption]
    pricing: PricingQuote

    @property
    def id(self) -> str:
        return self.hotel.id

    @property
    def min_price(self) -> int:
        if not self.room_options:
            return 0
        return min(room.base_price for room in self.room_options)

    def sorted_by_price(self) -> "PricedHotel":
        rooms = sorted(self.room_options, key=lambda room: room.base_price)
        return PricedHotel(hotel=self.hotel, room_options=rooms, pricing=self.pricing)

    def to_dict(self) -> dict[str, object]:
        payload = self.hotel.to_dict()
        payload["room_options"] = [room.to_dict() for room in self.room_options]
        payload["pricing"] = self.pricing.to_dict()
        return payload
