"""r2r-research data models for collections, searches and settings."""

from .base import ResearchBaseModel
from .collection import TIER_PREFIXES, Collection, classify_tier
from .enums import LogFormat, OutputFormat, Tier
from .search import SearchQuery, SearchResponse, SearchResult
from .settings import LoggingSettings, ResearchSettings, RetrySettings, SearchSettings

__all__ = [
    # Base
    "ResearchBaseModel",
    # Enums
    "Tier",
    "OutputFormat",
    "LogFormat",
    # Collections
    "Collection",
    "classify_tier",
    "TIER_PREFIXES",
    # Search
    "SearchQuery",
    "SearchResult",
    "SearchResponse",
    # Settings
    "ResearchSettings",
    "RetrySettings",
    "SearchSettings",
    "LoggingSettings",
]
