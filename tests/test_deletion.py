"""Tests for reference-counted feed deletion."""

import asyncio

import pendulum
import pytest

from feedpress.db import MemoryFeedStore
from feedpress.errors import CleanupError, FeedNotFoundError, UnauthorizedFeedError
from feedpress.feeds import delete_feed

START = pendulum.datetime(2000, 1, 1, tz="UTC")
END = pendulum.datetime(2100, 1, 1, tz="UTC")

SHARED_URL = "https://shared.example.com/rss"


async def _seed_shared(store, make_entry):
    """F and G share a URL. M is referenced by both, N only by F."""
    f = await store.create_feed("acme", SHARED_URL)
    g = await store.create_feed("globex", SHARED_URL)
    await store.upsert_articles(f, [make_entry("M"), make_entry("N")])

    articles = {a.guid: a for a in await store.query_articles([f.id], START, END, 10)}
    # G never saw N
    await store.detach_feed_from_article(articles["N"].id, g.id)
    return f, g, articles


def test_shared_article_survives_exclusive_one_goes(store, make_entry):
    async def run():
        f, g, seeded = await _seed_shared(store, make_entry)
        report = await delete_feed(store, f.id, "acme")
        remaining = await store.query_articles([g.id], START, END, 10)
        return f, g, report, remaining, await store.get_feed(f.id)

    f, g, report, remaining, deleted = asyncio.run(run())

    assert deleted is None
    assert report.detached == 1
    assert report.deleted == 1
    assert [a.guid for a in remaining] == ["M"]
    assert remaining[0].source_feed_ids == [g.id]
    assert remaining[0].primary_feed_id == g.id


def test_no_reference_to_deleted_feed_remains(store, make_entry):
    async def run():
        f, g, _ = await _seed_shared(store, make_entry)
        await delete_feed(store, f.id, "acme")
        return (
            f,
            await store.find_article_ids_for_feed(f.id),
            await store.query_articles([g.id], START, END, 10),
        )

    f, referencing, remaining = asyncio.run(run())

    assert referencing == []
    for article in remaining:
        assert f.id not in article.source_feed_ids
        assert article.primary_feed_id in article.source_feed_ids


def test_second_delete_reports_not_found(store, make_entry):
    async def run():
        f, _, _ = await _seed_shared(store, make_entry)
        await delete_feed(store, f.id, "acme")
        await delete_feed(store, f.id, "acme")

    with pytest.raises(FeedNotFoundError):
        asyncio.run(run())


def test_other_tenant_cannot_delete(store, make_entry):
    async def run():
        f, _, _ = await _seed_shared(store, make_entry)
        with pytest.raises(UnauthorizedFeedError):
            await delete_feed(store, f.id, "globex")
        return await store.get_feed(f.id), await store.find_article_ids_for_feed(f.id)

    feed, referencing = asyncio.run(run())

    assert feed is not None
    assert len(referencing) == 2


def test_feed_without_articles(store):
    async def run():
        feed = await store.create_feed("acme", "https://a.example.com/rss")
        return await delete_feed(store, feed.id, "acme")

    report = asyncio.run(run())

    assert (report.detached, report.deleted, report.swept) == (0, 0, 0)


class FailingSweepStore(MemoryFeedStore):
    async def sweep_feed_references(self, feed_id):
        raise RuntimeError("connection lost")


def test_failed_step_leaves_feed_registered(make_entry):
    """A failure before the final step keeps the feed so the call can be retried"""
    store = FailingSweepStore()

    async def run():
        f, _, _ = await _seed_shared(store, make_entry)
        with pytest.raises(CleanupError) as exc:
            await delete_feed(store, f.id, "acme")
        return exc.value, await store.get_feed(f.id)

    error, feed = asyncio.run(run())

    assert feed is not None
    assert error.step == "sweep remaining references"
    assert isinstance(error.cause, RuntimeError)


def test_sweep_catches_late_references(store, make_entry):
    """References the detach loop missed are removed before the feed goes"""

    class LateRefStore(MemoryFeedStore):
        async def find_article_ids_for_feed(self, feed_id):
            return []

    late = LateRefStore()

    async def run():
        f = await late.create_feed("acme", "https://a.example.com/rss")
        await late.upsert_articles(f, [make_entry("late")])
        report = await delete_feed(late, f.id, "acme")
        return report, await late.count_articles([f.id], START, END)

    report, count = asyncio.run(run())

    assert report.swept == 1
    assert count == 0
