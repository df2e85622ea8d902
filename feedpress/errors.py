"""Error taxonomy shared by the feed engine, storage and CLI."""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Generator, Iterable, Optional

logger = logging.getLogger(__name__)


class FeedPressError(Exception):
    """Base class for all feedpress errors."""


class AuthenticationError(FeedPressError):
    """No tenant identity could be resolved for the caller."""


class RequestValidationError(FeedPressError):
    """Malformed request input. Client-fixable, never retried."""


class UnauthorizedFeedError(FeedPressError):
    """One or more requested feeds are not owned by the caller."""

    def __init__(self, feed_ids: Iterable[int]) -> None:
        self.feed_ids = list(feed_ids)
        joined = ", ".join(str(feed_id) for feed_id in self.feed_ids)
        super().__init__(
            f"Unauthorized: you don't have access to the following feed(s): {joined}"
        )


class FeedNotFoundError(FeedPressError):
    """The feed registration does not exist."""

    def __init__(self, feed_id: int) -> None:
        self.feed_id = feed_id
        super().__init__(f"Feed {feed_id} not found")


class NewsletterNotFoundError(FeedPressError):
    """The newsletter does not exist."""

    def __init__(self, newsletter_id: int) -> None:
        self.newsletter_id = newsletter_id
        super().__init__(f"Newsletter {newsletter_id} not found")


class UnauthorizedNewsletterError(FeedPressError):
    """The newsletter belongs to another tenant."""

    def __init__(self, newsletter_id: int) -> None:
        self.newsletter_id = newsletter_id
        super().__init__(f"Unauthorized: newsletter {newsletter_id} does not belong to you")


class UpstreamFetchError(FeedPressError):
    """A single feed refresh failed."""

    def __init__(self, feed_id: int, reason: str) -> None:
        self.feed_id = feed_id
        self.reason = reason
        super().__init__(f"Failed to refresh feed {feed_id}: {reason}")


class NoContentError(FeedPressError):
    """Aggregation produced zero articles for the requested range."""

    def __init__(self, start: datetime, end: datetime) -> None:
        self.start = start
        self.end = end
        super().__init__(
            "No articles found for the selected feeds between "
            f"{start.isoformat()} and {end.isoformat()}"
        )


class CleanupError(FeedPressError):
    """Reference-counted deletion failed part way; the feed is still registered."""

    def __init__(self, feed_id: int, step: str, cause: Optional[BaseException] = None) -> None:
        self.feed_id = feed_id
        self.step = step
        self.cause = cause
        message = f"Cleanup of feed {feed_id} failed during '{step}'"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class StorageError(FeedPressError):
    """A storage collaborator failed while running a named operation."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"Failed to {operation}: {cause}")


class GenerationError(FeedPressError):
    """The downstream newsletter generator failed."""


class OperationTimeoutError(FeedPressError):
    """A request-shaped operation ran past its wall-clock budget."""

    def __init__(self, operation: str, seconds: float) -> None:
        self.operation = operation
        self.seconds = seconds
        super().__init__(f"{operation} did not finish within {seconds:g}s")


@contextmanager
def wrap_operation(operation: str) -> Generator[None, None, None]:
    """Re-raise collaborator failures as StorageError tagged with the operation name."""
    try:
        yield
    except FeedPressError:
        raise
    except Exception as e:
        logger.error("Storage operation '%s' failed: %s", operation, e)
        raise StorageError(operation, e) from e
