"""Concurrent, failure-tolerant refresh of stale feeds."""

import asyncio
import logging
from typing import Awaitable, Callable, List

from ..errors import UpstreamFetchError
from ..models import FetchOutcome, RefreshReport

logger = logging.getLogger(__name__)

FetchFunc = Callable[[int], Awaitable[FetchOutcome]]


class RefreshCoordinator:
    """Fan out one fetch per feed and wait for all of them to settle.

    A failing or hung fetch never cancels its siblings; it just shows up as a
    failed outcome in the report.
    """

    def __init__(
        self,
        fetch: FetchFunc,
        timeout: float = 30.0,
        max_concurrent: int = 5,
    ) -> None:
        """
        Initialize refresh coordinator.

        Args:
            fetch: Fetch-and-store primitive, one call per feed ID
            timeout: Per-fetch timeout in seconds
            max_concurrent: Fetches allowed in flight at once
        """
        self.fetch = fetch
        self.timeout = timeout
        self.max_concurrent = max_concurrent

    def _failed(self, feed_id: int, error: BaseException) -> FetchOutcome:
        if isinstance(error, asyncio.TimeoutError):
            message = f"Timed out after {self.timeout:g}s"
        elif isinstance(error, UpstreamFetchError):
            message = error.reason
        else:
            message = str(error) or type(error).__name__
        return FetchOutcome(feed_id=feed_id, success=False, error=message)

    async def refresh(self, feed_ids: List[int]) -> RefreshReport:
        """Refresh all feeds concurrently and tally the outcomes."""
        if not feed_ids:
            return RefreshReport()

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def fetch_with_semaphore(feed_id: int) -> FetchOutcome:
            async with semaphore:
                return await asyncio.wait_for(self.fetch(feed_id), timeout=self.timeout)

        tasks = [fetch_with_semaphore(feed_id) for feed_id in feed_ids]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes = []
        for feed_id, result in zip(feed_ids, results):
            if isinstance(result, FetchOutcome):
                outcome = result
            else:
                outcome = self._failed(feed_id, result)
            if not outcome.success:
                logger.warning("Refresh of feed %s failed: %s", feed_id, outcome.error)
            outcomes.append(outcome)

        successful = sum(1 for o in outcomes if o.success)
        return RefreshReport(
            requested=len(feed_ids),
            successful=successful,
            failed=len(outcomes) - successful,
            outcomes=outcomes,
        )
