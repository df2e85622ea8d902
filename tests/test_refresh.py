"""Tests for the concurrent refresh coordinator."""

import asyncio

from feedpress.errors import UpstreamFetchError
from feedpress.feeds import RefreshCoordinator
from feedpress.models import FetchOutcome


def test_partial_failure_does_not_cancel_siblings():
    """One error and one hang still leave the healthy fetch succeeded"""

    async def fetch(feed_id):
        if feed_id == 2:
            raise RuntimeError("connection reset")
        if feed_id == 3:
            await asyncio.sleep(10)
        return FetchOutcome(feed_id=feed_id, success=True, articles_written=4)

    coordinator = RefreshCoordinator(fetch, timeout=0.05)
    report = asyncio.run(coordinator.refresh([1, 2, 3]))

    assert report.requested == 3
    assert report.successful == 1
    assert report.failed == 2
    assert [o.feed_id for o in report.outcomes] == [1, 2, 3]
    assert report.outcomes[0].articles_written == 4
    assert report.outcomes[1].error == "connection reset"
    assert report.outcomes[2].error == "Timed out after 0.05s"


def test_unsuccessful_outcome_counts_as_failure():
    async def fetch(feed_id):
        return FetchOutcome(feed_id=feed_id, success=False, error="HTTP 503")

    report = asyncio.run(RefreshCoordinator(fetch).refresh([5]))

    assert report.failed == 1
    assert report.outcomes[0].error == "HTTP 503"


def test_empty_batch_does_nothing():
    calls = []

    async def fetch(feed_id):
        calls.append(feed_id)
        return FetchOutcome(feed_id=feed_id, success=True)

    report = asyncio.run(RefreshCoordinator(fetch).refresh([]))

    assert report.requested == 0
    assert calls == []


def test_concurrency_is_bounded():
    in_flight = 0
    peak = 0

    async def fetch(feed_id):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return FetchOutcome(feed_id=feed_id, success=True)

    report = asyncio.run(RefreshCoordinator(fetch, max_concurrent=2).refresh(list(range(6))))

    assert report.successful == 6
    assert peak == 2


def test_upstream_error_reports_its_reason():
    async def fetch(feed_id):
        raise UpstreamFetchError(feed_id, "HTTP 503")

    report = asyncio.run(RefreshCoordinator(fetch).refresh([5]))

    assert report.failed == 1
    assert report.outcomes[0].error == "HTTP 503"
