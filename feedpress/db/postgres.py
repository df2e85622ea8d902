"""Postgres-backed feed store."""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..errors import FeedNotFoundError
from ..models import Article, ArticleRef, Feed, FeedEntry, FeedSummary
from .base import DETACH_DELETED, DETACH_MISSING, DETACH_UPDATED, FeedStore
from .connection import close_connection_pool, get_connection

ARTICLE_COLUMNS = """
    a.id, a.primary_feed_id, a.feed_url, a.guid, a.title, a.link,
    a.summary, a.content, a.author, a.published_at, a.created_at, a.updated_at,
    ARRAY(
        SELECT s2.feed_id FROM article_sources s2
        WHERE s2.article_id = a.id
        ORDER BY s2.feed_id
    ) AS source_feed_ids
"""

ARTICLE_FILTER = """
    WHERE EXISTS (
        SELECT 1 FROM article_sources s
        WHERE s.article_id = a.id AND s.feed_id = ANY(%s)
    )
    AND a.published_at >= %s
    AND a.published_at <= %s
"""


class PostgresFeedStore(FeedStore):
    """Feed store on top of the shared psycopg connection pool.

    Each public method runs in its own transaction. Reference-count changes lock
    the article row, so a deletion and a concurrent refresh of the same URL
    serialize per article rather than on a global lock.
    """

    def __init__(self, db_config: Dict[str, Any]) -> None:
        """Initialize store with a database configuration dict."""
        self.db_config = db_config

    async def get_feed(self, feed_id: int) -> Optional[Feed]:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT * FROM feeds WHERE id = %s", (feed_id,))
                row = await cur.fetchone()
        return Feed(**row) if row else None

    async def get_feeds(
        self, feed_ids: Iterable[int], tenant_id: Optional[str] = None
    ) -> List[Feed]:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT * FROM feeds
                    WHERE id = ANY(%s) AND (%s::text IS NULL OR tenant_id = %s)
                    ORDER BY id
                    """,
                    (list(feed_ids), tenant_id, tenant_id),
                )
                rows = await cur.fetchall()
        return [Feed(**row) for row in rows]

    async def find_owned_feed_ids(self, tenant_id: str, feed_ids: Iterable[int]) -> Set[int]:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT id FROM feeds WHERE tenant_id = %s AND id = ANY(%s)",
                    (tenant_id, list(feed_ids)),
                )
                rows = await cur.fetchall()
        return {row["id"] for row in rows}

    async def list_feeds(self, tenant_id: str) -> List[FeedSummary]:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT f.*, COUNT(s.article_id) AS article_count
                    FROM feeds f
                    LEFT JOIN article_sources s ON s.feed_id = f.id
                    WHERE f.tenant_id = %s
                    GROUP BY f.id
                    ORDER BY f.created_at DESC, f.id DESC
                    """,
                    (tenant_id,),
                )
                rows = await cur.fetchall()
        return [FeedSummary(**row) for row in rows]

    async def create_feed(self, tenant_id: str, url: str, name: str = "") -> Feed:
        async with get_connection(self.db_config) as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        """
                        INSERT INTO feeds (tenant_id, url, name)
                        VALUES (%s, %s, %s)
                        RETURNING *
                        """,
                        (tenant_id, url, name),
                    )
                    row = await cur.fetchone()

                    await cur.execute(
                        """
                        INSERT INTO article_sources (article_id, feed_id)
                        SELECT id, %s FROM articles WHERE feed_url = %s
                        ON CONFLICT (article_id, feed_id) DO NOTHING
                        """,
                        (row["id"], url),
                    )
        return Feed(**row)

    async def get_url_fetch_times(
        self, urls: Iterable[str], threshold: datetime
    ) -> Dict[str, datetime]:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT u.url, u.last_fetched_at
                    FROM url_fetches u
                    WHERE u.url = ANY(%s)
                    AND u.last_fetched_at >= %s
                    AND EXISTS (SELECT 1 FROM feeds f WHERE f.url = u.url)
                    """,
                    (list(urls), threshold),
                )
                rows = await cur.fetchall()
        return {row["url"]: row["last_fetched_at"] for row in rows}

    async def record_fetch(self, feed_id: int, fetched_at: datetime) -> None:
        async with get_connection(self.db_config) as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        """
                        UPDATE feeds
                        SET last_fetched_at = %s
                        WHERE id = %s
                        RETURNING url
                        """,
                        (fetched_at, feed_id),
                    )
                    row = await cur.fetchone()
                    if row is None:
                        raise FeedNotFoundError(feed_id)

                    # Keep the newest fetch when two tenants refresh the same URL
                    await cur.execute(
                        """
                        INSERT INTO url_fetches (url, last_fetched_at)
                        VALUES (%s, %s)
                        ON CONFLICT (url) DO UPDATE SET
                            last_fetched_at = GREATEST(
                                url_fetches.last_fetched_at, EXCLUDED.last_fetched_at
                            )
                        """,
                        (row["url"], fetched_at),
                    )

    async def upsert_articles(self, feed: Feed, entries: Sequence[FeedEntry]) -> Tuple[int, int]:
        written = 0
        new = 0
        # Stable order keeps concurrent upserts of the same URL from deadlocking
        ordered = sorted(entries, key=lambda e: e.guid)

        async with get_connection(self.db_config) as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    for entry in ordered:
                        await cur.execute(
                            """
                            INSERT INTO articles (
                                primary_feed_id, feed_url, guid, title, link,
                                summary, content, author, published_at
                            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                            ON CONFLICT (feed_url, guid) DO UPDATE SET
                                title = EXCLUDED.title,
                                link = EXCLUDED.link,
                                summary = EXCLUDED.summary,
                                content = EXCLUDED.content,
                                author = EXCLUDED.author
                            RETURNING id, (xmax = 0) AS inserted
                            """,
                            (
                                feed.id,
                                feed.url,
                                entry.guid,
                                entry.title,
                                entry.link,
                                entry.summary,
                                entry.content,
                                entry.author,
                                entry.published_at,
                            ),
                        )
                        row = await cur.fetchone()

                        await cur.execute(
                            """
                            INSERT INTO article_sources (article_id, feed_id)
                            SELECT %s, id FROM feeds WHERE url = %s
                            ON CONFLICT (article_id, feed_id) DO NOTHING
                            """,
                            (row["id"], feed.url),
                        )

                        written += 1
                        if row["inserted"]:
                            new += 1

        return written, new

    async def query_articles(
        self,
        feed_ids: Iterable[int],
        start: datetime,
        end: datetime,
        limit: int,
    ) -> List[Article]:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    SELECT {ARTICLE_COLUMNS}
                    FROM articles a
                    {ARTICLE_FILTER}
                    ORDER BY a.published_at DESC, a.id DESC
                    LIMIT %s
                    """,
                    (list(feed_ids), start, end, limit),
                )
                rows = await cur.fetchall()
        return [Article(**row) for row in rows]

    async def count_articles(self, feed_ids: Iterable[int], start: datetime, end: datetime) -> int:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    SELECT COUNT(*) AS total
                    FROM articles a
                    {ARTICLE_FILTER}
                    """,
                    (list(feed_ids), start, end),
                )
                row = await cur.fetchone()
        return row["total"]

    async def find_article_ids_for_feed(self, feed_id: int) -> List[int]:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT article_id FROM article_sources
                    WHERE feed_id = %s
                    ORDER BY article_id
                    """,
                    (feed_id,),
                )
                rows = await cur.fetchall()
        return [row["article_id"] for row in rows]

    async def detach_feed_from_article(self, article_id: int, feed_id: int) -> str:
        async with get_connection(self.db_config) as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        "SELECT id, primary_feed_id FROM articles WHERE id = %s FOR UPDATE",
                        (article_id,),
                    )
                    article = await cur.fetchone()
                    if article is None:
                        return DETACH_MISSING

                    await cur.execute(
                        "SELECT feed_id FROM article_sources WHERE article_id = %s",
                        (article_id,),
                    )
                    sources = await cur.fetchall()

                    ref = ArticleRef(
                        article_id=article_id,
                        primary_feed_id=article["primary_feed_id"],
                        source_feed_ids=frozenset(row["feed_id"] for row in sources),
                    )
                    updated = ref.detach(feed_id)

                    if updated is None:
                        await cur.execute("DELETE FROM articles WHERE id = %s", (article_id,))
                        return DETACH_DELETED

                    await cur.execute(
                        "DELETE FROM article_sources WHERE article_id = %s AND feed_id = %s",
                        (article_id, feed_id),
                    )
                    if updated.primary_feed_id != ref.primary_feed_id:
                        await cur.execute(
                            "UPDATE articles SET primary_feed_id = %s WHERE id = %s",
                            (updated.primary_feed_id, article_id),
                        )
                    return DETACH_UPDATED

    async def sweep_feed_references(self, feed_id: int) -> int:
        async with get_connection(self.db_config) as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        "DELETE FROM article_sources WHERE feed_id = %s",
                        (feed_id,),
                    )
                    await cur.execute(
                        """
                        DELETE FROM articles a
                        WHERE NOT EXISTS (
                            SELECT 1 FROM article_sources s WHERE s.article_id = a.id
                        )
                        RETURNING a.id
                        """
                    )
                    deleted = len(await cur.fetchall())

                    # Every survivor still has at least one edge, so MIN is never NULL
                    await cur.execute(
                        """
                        UPDATE articles a
                        SET primary_feed_id = (
                            SELECT MIN(s.feed_id) FROM article_sources s
                            WHERE s.article_id = a.id
                        )
                        WHERE a.primary_feed_id = %s
                        """,
                        (feed_id,),
                    )
        return deleted

    async def delete_feed(self, feed_id: int) -> None:
        async with get_connection(self.db_config) as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        "DELETE FROM feeds WHERE id = %s RETURNING url",
                        (feed_id,),
                    )
                    row = await cur.fetchone()
                    if row is None:
                        raise FeedNotFoundError(feed_id)

                    # The URL's articles went with its last registration
                    await cur.execute(
                        """
                        DELETE FROM url_fetches u
                        WHERE u.url = %s
                        AND NOT EXISTS (SELECT 1 FROM feeds f WHERE f.url = u.url)
                        """,
                        (row["url"],),
                    )

    async def close(self) -> None:
        await close_connection_pool()
