"""RSS ingestion: fetch, normalize and store feed entries."""

from ..models import FeedEntry
from .models import FeedResult
from .rss_fetcher import RSSFetcher, parse_entries

__all__ = [
    "FeedEntry",
    "FeedResult",
    "RSSFetcher",
    "parse_entries",
]
