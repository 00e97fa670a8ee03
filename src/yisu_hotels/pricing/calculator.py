"""Date-driven dynamic pricing.

Every night of a stay starts at a rate of 1.0. Friday and Saturday nights add
the weekend surcharge, nights on a fixed month-day holiday add the holiday
surcharge, and both stack. The stay multiplier is the mean nightly rate
rounded half-up to two decimals; room prices are ``round(base * multiplier)``.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, List, Optional

from yisu_hotels.hotels.models import Hotel, PricedHotel, PricingQuote, RoomOption
from yisu_hotels.hotels.normalizer import round_half_up

if TYPE_CHECKING:  # pragma: no cover
    from yisu_hotels.config.settings import Settings

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

FRIDAY = 4
SATURDAY = 5
DEFAULT_WEEKEND_SURCHARGE = 0.2
DEFAULT_HOLIDAY_SURCHARGE = 0.3
DEFAULT_HOLIDAYS: frozenset[str] = frozenset({"01-01", "05-01", "10-01"})


def parse_stay_date(value: object) -> Optional[date]:
    """Parse a canonical ``YYYY-MM-DD`` string; anything else yields ``None``."""
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def stay_nights(check_in: object, check_out: object) -> List[date]:
    """Every night in ``[check_in, check_out)``; empty when the range is unusable."""
    start = parse_stay_date(check_in)
    end = parse_stay_date(check_out)
    if start is None or end is None or end <= start:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days)]


def _usable_multiplier(multiplier: object) -> float:
    if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)):
        return 1.0
    if not math.isfinite(multiplier) or multiplier <= 0:
        return 1.0
    return float(multiplier)


@dataclass(frozen=True)
class PricingCalculator:
    """Computes stay multipliers and applies them to room options."""

    weekend_surcharge: float = DEFAULT_WEEKEND_SURCHARGE
    holiday_surcharge: float = DEFAULT_HOLIDAY_SURCHARGE
    holidays: frozenset[str] = field(default_factory=lambda: DEFAULT_HOLIDAYS)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PricingCalculator":
        return cls(
            weekend_surcharge=settings.weekend_surcharge,
            holiday_surcharge=settings.holiday_surcharge,
            holidays=frozenset(settings.holiday_dates),
        )

    def nightly_rate(self, night: date) -> Decimal:
        rate = Decimal(1)
        if night.weekday() in (FRIDAY, SATURDAY):
            rate += Decimal(str(self.weekend_surcharge))
        if night.strftime("%m-%d") in self.holidays:
            rate += Decimal(str(self.holiday_surcharge))
        return rate

    def nightly_rates(self, nights: Iterable[date]) -> List[Decimal]:
        return [self.nightly_rate(night) for night in nights]

    def compute_multiplier(self, check_in: object, check_out: object) -> float:
        nights = stay_nights(check_in, check_out)
        if not nights:
            return 1.0
        rates = self.nightly_rates(nights)
        mean = sum(rates, Decimal(0)) / len(rates)
        return float(round_half_up(mean, 2))

    def quote(self, check_in: object, check_out: object) -> PricingQuote:
        multiplier = self.compute_multiplier(check_in, check_out)
        logger.debug("Stay %s -> %s priced at multiplier %s", check_in, check_out, multiplier)
        return PricingQuote(
            check_in=check_in if isinstance(check_in, str) and check_in else None,
            check_out=check_out if isinstance(check_out, str) and check_out else None,
            multiplier=multiplier,
        )


def apply_pricing(hotel: Hotel, multiplier: object, *, quote: PricingQuote | None = None) -> PricedHotel:
    """Return ``hotel`` with room prices scaled by ``multiplier``.

    The stored room options are left untouched; a multiplier that is not a
    positive finite number is treated as 1.
    """
    rate = _usable_multiplier(multiplier)
    rooms = [
        RoomOption(id=room.id, name=room.name, base_price=int(round_half_up(room.base_price * rate)))
        for room in hotel.room_options
    ]
    pricing = quote or PricingQuote(check_in=None, check_out=None, multiplier=rate)
    return PricedHotel(hotel=hotel, room_options=rooms, pricing=pricing)


_default_calculator = PricingCalculator()


def compute_multiplier(check_in: object, check_out: object) -> float:
    """Multiplier for a stay using the default surcharges and holidays."""
    return _default_calculator.compute_multiplier(check_in, check_out)
