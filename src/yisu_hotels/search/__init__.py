"""Hotel search: criteria parsing and the filter engine."""

from .criteria import SearchCriteria
from .engine import HotelSearchEngine, SearchResult

__all__ = ["HotelSearchEngine", "SearchCriteria", "SearchResult"]
