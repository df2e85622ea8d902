"""Fetch-and-store primitive for a single feed registration."""

import calendar
import logging
from datetime import datetime
from typing import Any, List, Optional

import feedparser
import httpx
import pendulum

from ..db.base import FeedStore
from ..errors import FeedNotFoundError, UpstreamFetchError, wrap_operation
from ..models import FeedEntry, FetchOutcome
from .models import FeedResult

logger = logging.getLogger(__name__)


def _parse_time(entry: Any) -> Optional[datetime]:
    """Publication time from feedparser's UTC struct_time fields."""
    for field in ("published_parsed", "updated_parsed"):
        parsed = entry.get(field)
        if parsed:
            try:
                return pendulum.from_timestamp(calendar.timegm(parsed), tz="UTC")
            except (OverflowError, ValueError, TypeError):
                continue
    return None


def parse_entries(feed: Any, fetched_at: datetime) -> List[FeedEntry]:
    """Normalize feedparser entries. Entries with no usable key are skipped."""
    entries = []
    for entry in feed.entries:
        link = entry.get("link") or ""
        title = entry.get("title") or ""
        guid = entry.get("id") or link or title
        if not guid:
            continue

        content = None
        if entry.get("content"):
            content = entry.content[0].get("value")

        entries.append(
            FeedEntry(
                guid=guid,
                title=title or link or "(untitled)",
                link=link,
                summary=entry.get("summary") or entry.get("description"),
                content=content,
                author=entry.get("author"),
                published_at=_parse_time(entry) or fetched_at,
            )
        )
    return entries


class RSSFetcher:
    """Fetch RSS feeds and store their entries against a feed registration."""

    def __init__(
        self,
        store: FeedStore,
        timeout: float = 30.0,
        user_agent: str = "feedpress/0.1 (+newsletter preparation)",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize RSS fetcher."""
        self.store = store
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    async def fetch_feed(self, url: str) -> FeedResult:
        """Fetch and parse a single RSS feed URL."""
        fetched_at = pendulum.now("UTC")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return FeedResult(
                url=url,
                success=False,
                error=f"HTTP {e.response.status_code}",
            )
        except httpx.TimeoutException:
            return FeedResult(url=url, success=False, error="Request timed out")
        except httpx.HTTPError as e:
            return FeedResult(url=url, success=False, error=f"HTTP error: {e}")

        feed = feedparser.parse(response.content)

        # bozo is also set for recoverable issues, so only fail when nothing parsed
        if feed.bozo and not feed.entries:
            return FeedResult(
                url=url,
                success=False,
                error=f"Invalid RSS feed: {feed.get('bozo_exception')}",
            )

        entries = parse_entries(feed, fetched_at)
        return FeedResult(
            url=url,
            success=True,
            entries=entries,
            entry_count=len(entries),
        )

    async def fetch_and_store(self, feed_id: int) -> FetchOutcome:
        """
        Refresh one feed registration.

        Stores and deduplicates its entries, then bumps the registration's last
        fetch time (and with it the shared URL cache).

        Raises:
            FeedNotFoundError: if the registration does not exist
            UpstreamFetchError: if the URL could not be fetched or parsed
            StorageError: if storing the entries failed
        """
        with wrap_operation("load feed for refresh"):
            feed = await self.store.get_feed(feed_id)
        if feed is None:
            raise FeedNotFoundError(feed_id)

        result = await self.fetch_feed(feed.url)
        if not result.success:
            logger.debug("Feed %s (%s) fetch failed: %s", feed_id, feed.url, result.error)
            raise UpstreamFetchError(feed_id, result.error or "unknown error")

        with wrap_operation("store fetched articles"):
            written, new = await self.store.upsert_articles(feed, result.entries)
        with wrap_operation("update feed last fetched"):
            await self.store.record_fetch(feed_id, pendulum.now("UTC"))

        logger.debug("Feed %s stored %d articles (%d new)", feed_id, written, new)
        return FetchOutcome(
            feed_id=feed_id,
            success=True,
            articles_written=written,
            new_articles=new,
        )
