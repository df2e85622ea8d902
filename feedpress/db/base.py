"""Storage interface used by the feed engine."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..models import Article, Feed, FeedEntry, FeedSummary

# Outcomes of detaching one feed from one article
DETACH_UPDATED = "updated"
DETACH_DELETED = "deleted"
DETACH_MISSING = "missing"


class FeedStore(ABC):
    """Transactional store for feed registrations, articles and the URL fetch cache.

    Every method is a single logical operation; implementations must keep each
    one self-consistent without relying on a lock held by the caller.
    """

    # Feed registrations

    @abstractmethod
    async def get_feed(self, feed_id: int) -> Optional[Feed]:
        """Get a feed registration by ID."""

    @abstractmethod
    async def get_feeds(
        self, feed_ids: Iterable[int], tenant_id: Optional[str] = None
    ) -> List[Feed]:
        """Get the registrations that exist among the IDs, limited to the tenant's if given."""

    @abstractmethod
    async def find_owned_feed_ids(self, tenant_id: str, feed_ids: Iterable[int]) -> Set[int]:
        """Return the subset of IDs that are registrations owned by the tenant."""

    @abstractmethod
    async def list_feeds(self, tenant_id: str) -> List[FeedSummary]:
        """List a tenant's feeds with article counts, newest first."""

    @abstractmethod
    async def create_feed(self, tenant_id: str, url: str, name: str = "") -> Feed:
        """
        Register a feed URL for a tenant.

        Articles already stored for the URL are attached to the new registration,
        so the shared cache serves it without another fetch.
        """

    # URL fetch cache

    @abstractmethod
    async def get_url_fetch_times(
        self, urls: Iterable[str], threshold: datetime
    ) -> Dict[str, datetime]:
        """
        Latest fetch time per URL, limited to fetches at or after the threshold.

        Only URLs that still have at least one registration count: once the last
        registration of a URL is deleted its articles are gone too, so its old
        fetch time must not make a new subscriber look fresh.
        """

    @abstractmethod
    async def record_fetch(self, feed_id: int, fetched_at: datetime) -> None:
        """Bump a registration's last fetch and the shared cache entry for its URL."""

    # Articles

    @abstractmethod
    async def upsert_articles(self, feed: Feed, entries: Sequence[FeedEntry]) -> Tuple[int, int]:
        """
        Store fetched entries, deduplicated on (feed URL, guid).

        Each article is attached to every registration currently sharing the feed's URL.
        Safe to run concurrently for the same URL.

        Returns:
            Tuple of (articles written, articles that were new)
        """

    @abstractmethod
    async def query_articles(
        self,
        feed_ids: Iterable[int],
        start: datetime,
        end: datetime,
        limit: int,
    ) -> List[Article]:
        """Articles referenced by any of the feeds, published in [start, end], newest first."""

    @abstractmethod
    async def count_articles(self, feed_ids: Iterable[int], start: datetime, end: datetime) -> int:
        """Count what query_articles would match without a limit."""

    # Reference counting

    @abstractmethod
    async def find_article_ids_for_feed(self, feed_id: int) -> List[int]:
        """IDs of all articles whose source set includes the feed."""

    @abstractmethod
    async def detach_feed_from_article(self, article_id: int, feed_id: int) -> str:
        """
        Atomically remove one feed from one article's source set.

        Returns:
            DETACH_UPDATED when the article survives (primary reassigned if needed),
            DETACH_DELETED when its source set emptied, DETACH_MISSING when it no
            longer exists.
        """

    @abstractmethod
    async def sweep_feed_references(self, feed_id: int) -> int:
        """
        Remove the feed from any source set still listing it and delete orphaned articles.

        Returns:
            Number of articles deleted
        """

    @abstractmethod
    async def delete_feed(self, feed_id: int) -> None:
        """
        Delete the registration.

        When it was the last registration of its URL, the URL's fetch cache entry
        goes too.

        Raises:
            FeedNotFoundError: if it does not exist
        """

    async def close(self) -> None:
        """Release resources held by the store."""
