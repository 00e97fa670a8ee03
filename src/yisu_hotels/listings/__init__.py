"""Merchant listing management."""

from .service import ListingPayload, ListingService

__all__ = ["ListingPayload", "ListingService"]
