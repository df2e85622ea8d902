"""Request-level flows on top of the feed engine."""

from .newsletter import NewsletterPipeline, build_provider
from .requests import normalize_feed_ids, parse_request_dates

__all__ = [
    "NewsletterPipeline",
    "build_provider",
    "normalize_feed_ids",
    "parse_request_dates",
]
