"""Article aggregation for a validated feed set and date range."""

from datetime import datetime
from typing import Iterable, List

from ..db.base import FeedStore
from ..errors import NoContentError, RequestValidationError, wrap_operation
from ..models import Article

# Keeps generation prompts manageable
ARTICLE_LIMIT = 100


async def aggregate_articles(
    store: FeedStore,
    feed_ids: Iterable[int],
    start: datetime,
    end: datetime,
    limit: int = ARTICLE_LIMIT,
) -> List[Article]:
    """
    Collect articles referenced by the feeds and published within [start, end].

    An article matches when any requested feed is in its source set, not only when
    it is the article's primary feed. A tenant that subscribed to a URL after
    another tenant fetched it shares those articles without being their primary
    feed, and filtering on the primary feed would hide them.

    Returns:
        At most ``limit`` articles, most recent first

    Raises:
        RequestValidationError: if end is before start or limit is not positive
        NoContentError: if nothing matched
    """
    if end < start:
        raise RequestValidationError("End date must not be before start date")
    if limit < 1:
        raise RequestValidationError("Article limit must be at least 1")

    with wrap_operation("fetch articles by feeds and date range"):
        articles = await store.query_articles(list(feed_ids), start, end, limit)

    if not articles:
        raise NoContentError(start, end)

    return articles
