"""Feed freshness cache and article reference lifecycle."""

from .aggregator import ARTICLE_LIMIT, aggregate_articles
from .deletion import delete_feed
from .freshness import CACHE_WINDOW, FreshnessOracle
from .ownership import validate_feed_ownership
from .refresh import FetchFunc, RefreshCoordinator

__all__ = [
    "ARTICLE_LIMIT",
    "CACHE_WINDOW",
    "FetchFunc",
    "FreshnessOracle",
    "RefreshCoordinator",
    "aggregate_articles",
    "delete_feed",
    "validate_feed_ownership",
]
