"""Error hierarchy shared by the platform components."""
from __future__ import annotations

from typing import Sequence


class HotelPlatformError(RuntimeError):
    """Base class for failures reported back to the caller."""

    code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(HotelPlatformError):
    """Raised when required fields are missing or malformed."""

    code = 1

    def __init__(self, message: str, fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.fields = tuple(fields)

    @classmethod
    def missing(cls, fields: Sequence[str]) -> "ValidationError":
        return cls(f"Missing required fields: {', '.join(fields)}", fields)


class Unauthenticated(HotelPlatformError):
    """Raised when a gated operation is called without a live session."""

    code = 401


class Forbidden(HotelPlatformError):
    """Raised when the caller lacks ownership or role."""

    code = 403


class NotFound(HotelPlatformError):
    """Raised when an identifier does not resolve to a visible record."""

    code = 404


class InvalidTransition(HotelPlatformError):
    """Raised when a moderation action is not allowed from the current status."""

    code = 409

    def __init__(self, message: str, *, current: str | None = None, target: str | None = None) -> None:
        super().__init__(message)
        self.current = current
        self.target = target
