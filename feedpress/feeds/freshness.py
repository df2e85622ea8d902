"""Decide which feeds are stale, using the URL-keyed fetch cache."""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

import pendulum

from ..db.base import FeedStore
from ..errors import wrap_operation

# Cache window for RSS feeds. A URL fetched by any tenant within this window
# is fresh for every tenant subscribed to it.
CACHE_WINDOW = timedelta(hours=3)


class FreshnessOracle:
    """Answer "does this feed need a refresh?" for a batch of registrations.

    Freshness belongs to the URL, not the registration: a feed whose own
    last fetch is stale or missing is still fresh if a sibling registration
    fetched the same URL within the window.
    """

    def __init__(self, store: FeedStore, window: timedelta = CACHE_WINDOW) -> None:
        self.store = store
        self.window = window

    def threshold(self, now: Optional[datetime] = None) -> datetime:
        """Oldest fetch time still considered fresh (inclusive)."""
        if now is None:
            now = pendulum.now("UTC")
        return now - self.window

    async def feeds_to_refresh(
        self,
        feed_ids: Iterable[int],
        now: Optional[datetime] = None,
        tenant_id: Optional[str] = None,
    ) -> List[int]:
        """
        Return the feeds whose URL has no fetch at or after now - window.

        Args:
            feed_ids: Validated feed IDs
            now: Reference time (defaults to the current UTC time)
            tenant_id: When given, feeds owned by anyone else are ignored

        Returns:
            Stale feed IDs, in input order
        """
        requested = list(dict.fromkeys(feed_ids))
        if not requested:
            return []

        threshold = self.threshold(now)

        with wrap_operation("check feed freshness"):
            feeds = await self.store.get_feeds(requested, tenant_id=tenant_id)
            urls = {feed.url for feed in feeds}
            recent = await self.store.get_url_fetch_times(urls, threshold)

        url_by_feed = {feed.id: feed.url for feed in feeds}
        return [
            feed_id
            for feed_id in requested
            if feed_id in url_by_feed and url_by_feed[feed_id] not in recent
        ]
