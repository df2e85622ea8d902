"""In-process feed store."""

import asyncio
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import pendulum

from ..errors import FeedNotFoundError
from ..models import Article, ArticleRef, Feed, FeedEntry, FeedSummary
from .base import DETACH_DELETED, DETACH_MISSING, DETACH_UPDATED, FeedStore


class MemoryFeedStore(FeedStore):
    """Feed store kept in dictionaries.

    Article <-> feed edges live in two indexes (article -> feeds, feed -> articles)
    that are always updated together. Deleting a feed that still has edges fails,
    mirroring the foreign keys of the Postgres schema.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._feeds: Dict[int, Feed] = {}
        self._articles: Dict[int, Article] = {}
        self._article_keys: Dict[Tuple[str, str], int] = {}
        self._sources: Dict[int, Set[int]] = defaultdict(set)
        self._articles_by_feed: Dict[int, Set[int]] = defaultdict(set)
        self._url_fetches: Dict[str, datetime] = {}
        self._next_feed_id = 1
        self._next_article_id = 1

    # Internal helpers, called with the lock held

    def _link(self, article_id: int, feed_id: int) -> None:
        self._sources[article_id].add(feed_id)
        self._articles_by_feed[feed_id].add(article_id)

    def _unlink(self, article_id: int, feed_id: int) -> None:
        self._sources[article_id].discard(feed_id)
        self._articles_by_feed[feed_id].discard(article_id)

    def _drop_article(self, article_id: int) -> None:
        article = self._articles.pop(article_id)
        self._article_keys.pop((article.feed_url, article.guid), None)
        for feed_id in self._sources.pop(article_id, set()):
            self._articles_by_feed[feed_id].discard(article_id)

    def _materialize(self, article_id: int) -> Article:
        return self._articles[article_id].model_copy(
            update={"source_feed_ids": sorted(self._sources[article_id])}
        )

    def _matching(self, feed_ids: Iterable[int], start: datetime, end: datetime) -> List[int]:
        candidates: Set[int] = set()
        for feed_id in set(feed_ids):
            candidates |= self._articles_by_feed.get(feed_id, set())
        return [
            article_id
            for article_id in candidates
            if start <= self._articles[article_id].published_at <= end
        ]

    # Feed registrations

    async def get_feed(self, feed_id: int) -> Optional[Feed]:
        async with self._lock:
            feed = self._feeds.get(feed_id)
            return feed.model_copy() if feed else None

    async def get_feeds(
        self, feed_ids: Iterable[int], tenant_id: Optional[str] = None
    ) -> List[Feed]:
        async with self._lock:
            return [
                self._feeds[feed_id].model_copy()
                for feed_id in sorted(set(feed_ids))
                if feed_id in self._feeds
                and (tenant_id is None or self._feeds[feed_id].tenant_id == tenant_id)
            ]

    async def find_owned_feed_ids(self, tenant_id: str, feed_ids: Iterable[int]) -> Set[int]:
        async with self._lock:
            return {
                feed_id
                for feed_id in feed_ids
                if feed_id in self._feeds and self._feeds[feed_id].tenant_id == tenant_id
            }

    async def list_feeds(self, tenant_id: str) -> List[FeedSummary]:
        async with self._lock:
            feeds = [feed for feed in self._feeds.values() if feed.tenant_id == tenant_id]
            feeds.sort(key=lambda f: f.id, reverse=True)
            return [
                FeedSummary(
                    **feed.model_dump(),
                    article_count=len(self._articles_by_feed.get(feed.id, set())),
                )
                for feed in feeds
            ]

    async def create_feed(self, tenant_id: str, url: str, name: str = "") -> Feed:
        async with self._lock:
            for feed in self._feeds.values():
                if feed.tenant_id == tenant_id and feed.url == url:
                    raise ValueError(f"Tenant {tenant_id} already subscribes to {url}")

            now = pendulum.now("UTC")
            feed = Feed(
                id=self._next_feed_id,
                tenant_id=tenant_id,
                url=url,
                name=name,
                created_at=now,
                updated_at=now,
            )
            self._feeds[feed.id] = feed
            self._next_feed_id += 1

            for (article_url, _guid), article_id in self._article_keys.items():
                if article_url == url:
                    self._link(article_id, feed.id)

            return feed.model_copy()

    # URL fetch cache

    async def get_url_fetch_times(
        self, urls: Iterable[str], threshold: datetime
    ) -> Dict[str, datetime]:
        async with self._lock:
            registered = {feed.url for feed in self._feeds.values()}
            return {
                url: self._url_fetches[url]
                for url in set(urls) & registered
                if url in self._url_fetches and self._url_fetches[url] >= threshold
            }

    async def record_fetch(self, feed_id: int, fetched_at: datetime) -> None:
        async with self._lock:
            feed = self._feeds.get(feed_id)
            if feed is None:
                raise FeedNotFoundError(feed_id)

            feed.last_fetched_at = fetched_at
            previous = self._url_fetches.get(feed.url)
            if previous is None or fetched_at > previous:
                self._url_fetches[feed.url] = fetched_at

    # Articles

    async def upsert_articles(self, feed: Feed, entries: Sequence[FeedEntry]) -> Tuple[int, int]:
        written = 0
        new = 0

        async with self._lock:
            sharing = [f.id for f in self._feeds.values() if f.url == feed.url]

            for entry in entries:
                key = (feed.url, entry.guid)
                article_id = self._article_keys.get(key)

                if article_id is None:
                    article_id = self._next_article_id
                    self._next_article_id += 1
                    self._articles[article_id] = Article(
                        id=article_id,
                        primary_feed_id=feed.id,
                        feed_url=feed.url,
                        guid=entry.guid,
                        title=entry.title,
                        link=entry.link,
                        summary=entry.summary,
                        content=entry.content,
                        author=entry.author,
                        published_at=entry.published_at,
                        created_at=pendulum.now("UTC"),
                    )
                    self._article_keys[key] = article_id
                    new += 1
                else:
                    self._articles[article_id] = self._articles[article_id].model_copy(
                        update={
                            "title": entry.title,
                            "link": entry.link,
                            "summary": entry.summary,
                            "content": entry.content,
                            "author": entry.author,
                        }
                    )

                for feed_id in sharing:
                    self._link(article_id, feed_id)
                written += 1

        return written, new

    async def query_articles(
        self,
        feed_ids: Iterable[int],
        start: datetime,
        end: datetime,
        limit: int,
    ) -> List[Article]:
        async with self._lock:
            matching = self._matching(feed_ids, start, end)
            matching.sort(
                key=lambda article_id: (self._articles[article_id].published_at, article_id),
                reverse=True,
            )
            return [self._materialize(article_id) for article_id in matching[:limit]]

    async def count_articles(self, feed_ids: Iterable[int], start: datetime, end: datetime) -> int:
        async with self._lock:
            return len(self._matching(feed_ids, start, end))

    # Reference counting

    async def find_article_ids_for_feed(self, feed_id: int) -> List[int]:
        async with self._lock:
            return sorted(self._articles_by_feed.get(feed_id, set()))

    async def detach_feed_from_article(self, article_id: int, feed_id: int) -> str:
        async with self._lock:
            article = self._articles.get(article_id)
            if article is None:
                return DETACH_MISSING

            ref = ArticleRef(
                article_id=article_id,
                primary_feed_id=article.primary_feed_id,
                source_feed_ids=frozenset(self._sources[article_id]),
            )
            updated = ref.detach(feed_id)

            if updated is None:
                self._drop_article(article_id)
                return DETACH_DELETED

            self._unlink(article_id, feed_id)
            if updated.primary_feed_id != ref.primary_feed_id:
                article.primary_feed_id = updated.primary_feed_id
            return DETACH_UPDATED

    async def sweep_feed_references(self, feed_id: int) -> int:
        async with self._lock:
            for article_id in list(self._articles_by_feed.get(feed_id, set())):
                self._unlink(article_id, feed_id)

            orphans = [
                article_id for article_id in self._articles if not self._sources.get(article_id)
            ]
            for article_id in orphans:
                self._drop_article(article_id)

            for article_id, article in self._articles.items():
                if article.primary_feed_id == feed_id:
                    article.primary_feed_id = min(self._sources[article_id])

            return len(orphans)

    async def delete_feed(self, feed_id: int) -> None:
        async with self._lock:
            if feed_id not in self._feeds:
                raise FeedNotFoundError(feed_id)

            referenced = self._articles_by_feed.get(feed_id, set())
            primary_of = [a.id for a in self._articles.values() if a.primary_feed_id == feed_id]
            if referenced or primary_of:
                raise ValueError(
                    f"Feed {feed_id} is still referenced by "
                    f"{len(referenced | set(primary_of))} article(s)"
                )

            url = self._feeds.pop(feed_id).url
            self._articles_by_feed.pop(feed_id, None)

            # The URL's articles went with its last registration
            if not any(feed.url == url for feed in self._feeds.values()):
                self._url_fetches.pop(url, None)
