"""Dynamic room pricing."""

from .calculator import (
    PricingCalculator,
    apply_pricing,
    compute_multiplier,
    parse_stay_date,
    stay_nights,
)

__all__ = [
    "PricingCalculator",
    "apply_pricing",
    "compute_multiplier",
    "parse_stay_date",
    "stay_nights",
]
