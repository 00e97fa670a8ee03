"""Utilities to coerce raw listing payload values into record fields."""
from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional

from .models import RoomOption, bounded_star_rating

DEFAULT_ROOM_NAME = "Standard Room"
DEFAULT_STAR_RATING = 3
# Largest value a SQLite INTEGER column holds.
MAX_PRICE = 2**63 - 1

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def round_half_up(value: float | Decimal, places: int = 0) -> Decimal:
    """Round like a price tag would: halves always go up."""
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def parse_leading_int(value: Any) -> Optional[int]:
    """Return the integer a value starts with, or ``None`` when there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def clamp_star_rating(value: Any, fallback: int) -> int:
    """Clamp ``value`` to 1..5, using ``fallback`` when it is unusable or zero."""
    parsed = parse_leading_int(value)
    return bounded_star_rating(parsed if parsed else fallback)


def coerce_price(value: Any) -> int:
    """Integer price in ``0..MAX_PRICE``; anything that is not a number becomes 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        amount = Decimal(str(value).strip() or "0")
        if not amount.is_finite() or amount <= 0:
            return 0
        if amount >= MAX_PRICE:
            return MAX_PRICE
        return int(round_half_up(amount))
    except InvalidOperation:
        return 0


def clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def synthesize_room_id(hotel_id: str, position: int) -> str:
    return f"r_{hotel_id}_{position}"


def build_room_options(
    hotel_id: str,
    raw_rooms: Iterable[Mapping[str, Any]],
    *,
    reuse_ids: bool = False,
) -> List[RoomOption]:
    """Build ordered room options from raw mappings.

    Ids are ``r_<hotel>_<position>``; with ``reuse_ids`` an incoming non-empty id
    is kept instead.
    """
    rooms: List[RoomOption] = []
    for position, raw in enumerate(raw_rooms, start=1):
        incoming_id = clean_text(raw.get("id")) if reuse_ids else ""
        rooms.append(
            RoomOption(
                id=incoming_id or synthesize_room_id(hotel_id, position),
                name=clean_text(raw.get("name")) or DEFAULT_ROOM_NAME,
                base_price=coerce_price(raw.get("price")),
            )
        )
    return rooms


def normalize_images(values: Optional[Iterable[Any]]) -> List[str]:
    if not values:
        return []
    return [str(value).strip() for value in values if value is not None and str(value).strip()]
