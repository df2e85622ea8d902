"""Article model and its reference-counting view."""

from datetime import datetime
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import DBModel


class Article(DBModel):
    """Article shared by every feed registration in its source set."""

    primary_feed_id: int = Field(..., description="Designated owner, always in source_feed_ids")
    source_feed_ids: List[int] = Field(
        default_factory=list, description="Feed registrations referencing this article"
    )
    feed_url: str = Field(..., description="URL of the feed the article was fetched from")
    guid: str = Field(..., description="Natural key of the entry within its feed URL")
    title: str = Field(..., description="Article title")
    link: str = Field("", description="Article URL")
    summary: Optional[str] = Field(None, description="Feed-provided summary")
    content: Optional[str] = Field(None, description="Feed-provided content payload")
    author: Optional[str] = Field(None, description="Author, if the feed names one")
    published_at: datetime = Field(..., description="Publication timestamp")


class ArticleRef(BaseModel):
    """The edges that keep an article alive."""

    model_config = ConfigDict(frozen=True)

    article_id: int
    primary_feed_id: int
    source_feed_ids: FrozenSet[int]

    def detach(self, feed_id: int) -> Optional["ArticleRef"]:
        """
        Drop one feed from the source set.

        Returns:
            The updated reference, or None when no feed references the article any more
            and it must be deleted.
        """
        remaining = self.source_feed_ids - {feed_id}
        if not remaining:
            return None

        primary = self.primary_feed_id
        if primary not in remaining:
            # Primary is display-only; any surviving member will do.
            primary = min(remaining)

        return ArticleRef(
            article_id=self.article_id,
            primary_feed_id=primary,
            source_feed_ids=frozenset(remaining),
        )
