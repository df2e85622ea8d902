"""Storage for feed registrations, articles, the URL fetch cache and newsletter history."""

from .base import DETACH_DELETED, DETACH_MISSING, DETACH_UPDATED, FeedStore
from .connection import close_connection_pool, get_connection, get_connection_pool
from .init import init_database, validate_connection
from .memory import MemoryFeedStore
from .newsletters import MemoryNewsletterStore, NewsletterStore, PostgresNewsletterStore
from .postgres import PostgresFeedStore

__all__ = [
    "DETACH_DELETED",
    "DETACH_MISSING",
    "DETACH_UPDATED",
    "FeedStore",
    "MemoryFeedStore",
    "MemoryNewsletterStore",
    "NewsletterStore",
    "PostgresFeedStore",
    "PostgresNewsletterStore",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
