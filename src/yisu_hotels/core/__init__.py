"""Cross-cutting helpers: errors, result envelope and logging."""

from .envelope import OperationResult
from .errors import (
    Forbidden,
    HotelPlatformError,
    InvalidTransition,
    NotFound,
    Unauthenticated,
    ValidationError,
)

__all__ = [
    "Forbidden",
    "HotelPlatformError",
    "InvalidTransition",
    "NotFound",
    "OperationResult",
    "Unauthenticated",
    "ValidationError",
]
