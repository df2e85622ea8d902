"""Reference-counted teardown of a feed registration."""

import logging
from contextlib import contextmanager
from typing import Generator

from ..db.base import DETACH_DELETED, DETACH_UPDATED, FeedStore
from ..errors import (
    CleanupError,
    FeedNotFoundError,
    UnauthorizedFeedError,
    wrap_operation,
)
from ..models import DeletionReport

logger = logging.getLogger(__name__)


@contextmanager
def _cleanup_step(feed_id: int, step: str) -> Generator[None, None, None]:
    try:
        yield
    except FeedNotFoundError:
        raise
    except Exception as e:
        logger.error("Cleanup of feed %s failed during '%s': %s", feed_id, step, e)
        raise CleanupError(feed_id, step, e) from e


async def delete_feed(store: FeedStore, feed_id: int, tenant_id: str) -> DeletionReport:
    """
    Delete a feed registration without losing articles other feeds still need.

    Articles referenced only by this feed are deleted; shared articles lose this
    feed from their source set (and get a new primary feed if it was this one).
    The registration itself goes last, so any failure leaves it in place and the
    whole operation can be retried.

    Raises:
        FeedNotFoundError: if the feed does not exist
        UnauthorizedFeedError: if the tenant does not own it
        CleanupError: if a cleanup step failed; the feed is still registered
    """
    with wrap_operation("load feed for deletion"):
        feed = await store.get_feed(feed_id)
    if feed is None:
        raise FeedNotFoundError(feed_id)
    if feed.tenant_id != tenant_id:
        raise UnauthorizedFeedError([feed_id])

    report = DeletionReport(feed_id=feed_id)

    with _cleanup_step(feed_id, "find referencing articles"):
        article_ids = await store.find_article_ids_for_feed(feed_id)

    for article_id in article_ids:
        with _cleanup_step(feed_id, f"detach article {article_id}"):
            result = await store.detach_feed_from_article(article_id, feed_id)
        if result == DETACH_UPDATED:
            report.detached += 1
        elif result == DETACH_DELETED:
            report.deleted += 1

    # Catches references added by a refresh that raced with the loop above
    with _cleanup_step(feed_id, "sweep remaining references"):
        report.swept = await store.sweep_feed_references(feed_id)

    with _cleanup_step(feed_id, "delete feed registration"):
        await store.delete_feed(feed_id)

    logger.info(
        "Deleted feed %s: %d articles kept by other feeds, %d deleted, %d swept",
        feed_id,
        report.detached,
        report.deleted,
        report.swept,
    )
    return report
