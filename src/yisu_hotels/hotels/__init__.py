"""Hotel domain models and normalization helpers."""

from .models import (
    Hotel,
    HotelStatus,
    PricedHotel,
    PricingQuote,
    RoomOption,
    Session,
    User,
    UserRole,
    utc_now,
)
from .normalizer import (
    build_room_options,
    clamp_star_rating,
    coerce_price,
    round_half_up,
)

__all__ = [
    "Hotel",
    "HotelStatus",
    "PricedHotel",
    "PricingQuote",
    "RoomOption",
    "Session",
    "User",
    "UserRole",
    "build_room_options",
    "clamp_star_rating",
    "coerce_price",
    "round_half_up",
    "utc_now",
]
