"""Search criteria decoded from loosely-typed query parameters."""
from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from yisu_hotels.hotels.normalizer import parse_leading_int

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _split_csv(value: object) -> list[str]:
    if value in (None, "", ()):
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, Iterable):
        result: list[str] = []
        for item in value:
            result.extend(_split_csv(item) if isinstance(item, str) else [str(item).strip()])
        return [item for item in result if item]
    return [str(value).strip()]


def _blank_to_none(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class SearchCriteria(BaseModel):
    """Filters, stay dates and pagination for a hotel search.

    Every filter is optional. Values arrive as query-string text, so the
    validators accept strings and drop anything unusable instead of failing.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    keyword: Optional[str] = None
    star_level: Tuple[int, ...] = ()
    city: Optional[str] = None
    tags: Tuple[str, ...] = ()
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    manage: bool = False
    status: Optional[str] = Field(default=None, description="Exact status filter (admin review list only)")

    @field_validator("keyword", "city", "check_in", "check_out", "status", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> Optional[str]:
        return _blank_to_none(value)

    @field_validator("keyword", "city")
    @classmethod
    def _lower_text(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else None

    @field_validator("star_level", mode="before")
    @classmethod
    def _parse_star_level(cls, value: object) -> Tuple[int, ...]:
        stars: list[int] = []
        for item in _split_csv(value):
            try:
                stars.append(int(item))
            except ValueError:
                continue
        return tuple(stars)

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, value: object) -> Tuple[str, ...]:
        return tuple(item.lower() for item in _split_csv(value))

    @field_validator("min_price", "max_price", mode="before")
    @classmethod
    def _parse_price(cls, value: object) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            amount = float(str(value).strip()) if isinstance(value, str) else float(value)
        except (TypeError, ValueError):
            return None
        return amount if not math.isnan(amount) else None

    @field_validator("page", mode="before")
    @classmethod
    def _parse_page(cls, value: object) -> int:
        return max(1, parse_leading_int(value) or 1)

    @field_validator("page_size", mode="before")
    @classmethod
    def _parse_page_size(cls, value: object, info: ValidationInfo) -> int:
        context = info.context or {}
        default = int(context.get("default_page_size", DEFAULT_PAGE_SIZE))
        ceiling = int(context.get("max_page_size", MAX_PAGE_SIZE))
        return min(ceiling, max(1, parse_leading_int(value) or default))

    @field_validator("manage", mode="before")
    @classmethod
    def _parse_flag(cls, value: object) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in _TRUTHY

    @classmethod
    def from_query(
        cls,
        query: Mapping[str, Any] | None,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> "SearchCriteria":
        """Build criteria from a query mapping, applying the page-size policy."""
        data = dict(query or {})
        data.setdefault("page_size", None)
        return cls.model_validate(
            data,
            context={"default_page_size": default_page_size, "max_page_size": max_page_size},
        )
