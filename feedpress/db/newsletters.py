"""Newsletter history storage."""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pendulum

from ..models import Newsletter, NewsletterDocument
from .connection import close_connection_pool, get_connection


class NewsletterStore(ABC):
    """Tenant-scoped history of generated newsletters."""

    @abstractmethod
    async def save_newsletter(
        self,
        tenant_id: str,
        document: NewsletterDocument,
        start: datetime,
        end: datetime,
        user_input: Optional[str],
        feed_ids: Iterable[int],
    ) -> Newsletter:
        """Store a generated newsletter."""

    @abstractmethod
    async def list_newsletters(
        self, tenant_id: str, limit: Optional[int] = None, skip: int = 0
    ) -> List[Newsletter]:
        """A tenant's newsletters, most recent first."""

    @abstractmethod
    async def count_newsletters(self, tenant_id: str) -> int:
        """Total newsletters stored for a tenant."""

    @abstractmethod
    async def get_newsletter(self, newsletter_id: int) -> Optional[Newsletter]:
        """Get a newsletter by ID, whoever owns it."""

    @abstractmethod
    async def delete_newsletter(self, newsletter_id: int) -> bool:
        """Delete a newsletter. Returns False if it did not exist."""

    async def close(self) -> None:
        """Release resources held by the store."""


class MemoryNewsletterStore(NewsletterStore):
    """Newsletter history kept in a dictionary."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._newsletters: Dict[int, Newsletter] = {}
        self._next_id = 1

    async def save_newsletter(
        self,
        tenant_id: str,
        document: NewsletterDocument,
        start: datetime,
        end: datetime,
        user_input: Optional[str],
        feed_ids: Iterable[int],
    ) -> Newsletter:
        async with self._lock:
            now = pendulum.now("UTC")
            newsletter = Newsletter(
                id=self._next_id,
                tenant_id=tenant_id,
                document=document,
                start=start,
                end=end,
                user_input=user_input,
                feed_ids=list(feed_ids),
                created_at=now,
                updated_at=now,
            )
            self._newsletters[newsletter.id] = newsletter
            self._next_id += 1
            return newsletter.model_copy()

    async def list_newsletters(
        self, tenant_id: str, limit: Optional[int] = None, skip: int = 0
    ) -> List[Newsletter]:
        async with self._lock:
            owned = [n for n in self._newsletters.values() if n.tenant_id == tenant_id]
            owned.sort(key=lambda n: n.id, reverse=True)
            end = None if limit is None else skip + limit
            return [n.model_copy() for n in owned[skip:end]]

    async def count_newsletters(self, tenant_id: str) -> int:
        async with self._lock:
            return sum(1 for n in self._newsletters.values() if n.tenant_id == tenant_id)

    async def get_newsletter(self, newsletter_id: int) -> Optional[Newsletter]:
        async with self._lock:
            newsletter = self._newsletters.get(newsletter_id)
            return newsletter.model_copy() if newsletter else None

    async def delete_newsletter(self, newsletter_id: int) -> bool:
        async with self._lock:
            return self._newsletters.pop(newsletter_id, None) is not None


def _row_to_newsletter(row: Dict[str, Any]) -> Newsletter:
    return Newsletter(
        id=row["id"],
        tenant_id=row["tenant_id"],
        document=NewsletterDocument(
            suggested_titles=row["suggested_titles"],
            suggested_subject_lines=row["suggested_subject_lines"],
            body=row["body"],
            top_announcements=row["top_announcements"],
            additional_info=row["additional_info"],
        ),
        start=row["start_date"],
        end=row["end_date"],
        user_input=row["user_input"],
        feed_ids=row["feed_ids"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresNewsletterStore(NewsletterStore):
    """Newsletter history in the `newsletters` table."""

    def __init__(self, db_config: Dict[str, Any]) -> None:
        """Initialize store with a database configuration dict."""
        self.db_config = db_config

    async def save_newsletter(
        self,
        tenant_id: str,
        document: NewsletterDocument,
        start: datetime,
        end: datetime,
        user_input: Optional[str],
        feed_ids: Iterable[int],
    ) -> Newsletter:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO newsletters (
                        tenant_id, suggested_titles, suggested_subject_lines, body,
                        top_announcements, additional_info, start_date, end_date,
                        user_input, feed_ids
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING *
                    """,
                    (
                        tenant_id,
                        document.suggested_titles,
                        document.suggested_subject_lines,
                        document.body,
                        document.top_announcements,
                        document.additional_info,
                        start,
                        end,
                        user_input,
                        list(feed_ids),
                    ),
                )
                row = await cur.fetchone()
        return _row_to_newsletter(row)

    async def list_newsletters(
        self, tenant_id: str, limit: Optional[int] = None, skip: int = 0
    ) -> List[Newsletter]:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                # LIMIT NULL means no limit
                await cur.execute(
                    """
                    SELECT * FROM newsletters
                    WHERE tenant_id = %s
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s OFFSET %s
                    """,
                    (tenant_id, limit, skip),
                )
                rows = await cur.fetchall()
        return [_row_to_newsletter(row) for row in rows]

    async def count_newsletters(self, tenant_id: str) -> int:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT COUNT(*) AS total FROM newsletters WHERE tenant_id = %s",
                    (tenant_id,),
                )
                row = await cur.fetchone()
        return row["total"]

    async def get_newsletter(self, newsletter_id: int) -> Optional[Newsletter]:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT * FROM newsletters WHERE id = %s", (newsletter_id,))
                row = await cur.fetchone()
        return _row_to_newsletter(row) if row else None

    async def delete_newsletter(self, newsletter_id: int) -> bool:
        async with get_connection(self.db_config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "DELETE FROM newsletters WHERE id = %s RETURNING id",
                    (newsletter_id,),
                )
                row = await cur.fetchone()
        return row is not None

    async def close(self) -> None:
        await close_connection_pool()
