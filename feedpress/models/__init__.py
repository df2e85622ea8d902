"""Data models for feedpress."""

from .article import Article, ArticleRef
from .entry import FeedEntry
from .feed import Feed, FeedSummary
from .newsletter import Newsletter, NewsletterDocument
from .reports import (
    DeletionReport,
    FetchOutcome,
    PreparedArticles,
    PreparePreview,
    RefreshReport,
)

__all__ = [
    "Article",
    "ArticleRef",
    "DeletionReport",
    "Feed",
    "FeedEntry",
    "FeedSummary",
    "FetchOutcome",
    "Newsletter",
    "NewsletterDocument",
    "PreparedArticles",
    "PreparePreview",
    "RefreshReport",
]
