"""Tests for article aggregation."""

import asyncio
from datetime import timedelta

import pendulum
import pytest

from feedpress.errors import NoContentError, RequestValidationError
from feedpress.feeds import ARTICLE_LIMIT, aggregate_articles

START = pendulum.datetime(2024, 1, 1, tz="UTC")
END = pendulum.datetime(2024, 1, 31, 23, 59, 59, tz="UTC")


def test_limit_keeps_most_recent(store, make_entry):
    """150 matches come back as the newest 100, newest first"""

    async def run():
        feed = await store.create_feed("acme", "https://a.example.com/rss")
        entries = [
            make_entry(f"post-{i}", published_at=START + timedelta(hours=i)) for i in range(150)
        ]
        await store.upsert_articles(feed, entries)
        return await aggregate_articles(store, [feed.id], START, END)

    articles = asyncio.run(run())

    assert len(articles) == ARTICLE_LIMIT
    assert articles[0].guid == "post-149"
    assert articles[-1].guid == "post-50"
    published = [a.published_at for a in articles]
    assert published == sorted(published, reverse=True)


def test_range_is_inclusive_and_filters(store, make_entry):
    async def run():
        feed = await store.create_feed("acme", "https://a.example.com/rss")
        await store.upsert_articles(
            feed,
            [
                make_entry("before", published_at=START - timedelta(seconds=1)),
                make_entry("at-start", published_at=START),
                make_entry("at-end", published_at=END),
                make_entry("after", published_at=END + timedelta(seconds=1)),
            ],
        )
        return await aggregate_articles(store, [feed.id], START, END)

    articles = asyncio.run(run())

    assert [a.guid for a in articles] == ["at-end", "at-start"]


def test_only_requested_feeds_contribute(store, make_entry):
    async def run():
        mine = await store.create_feed("acme", "https://a.example.com/rss")
        other = await store.create_feed("acme", "https://b.example.com/rss")
        await store.upsert_articles(mine, [make_entry("mine", published_at=START)])
        await store.upsert_articles(other, [make_entry("other", published_at=START)])
        return await aggregate_articles(store, [mine.id], START, END)

    articles = asyncio.run(run())

    assert [a.guid for a in articles] == ["mine"]


def test_shared_article_reaches_secondary_subscriber(store, make_entry):
    """An article first stored under tenant A is visible to tenant B"""

    async def run():
        a = await store.create_feed("acme", "https://shared.example.com/rss")
        await store.upsert_articles(a, [make_entry("shared", published_at=START)])
        b = await store.create_feed("globex", "https://shared.example.com/rss")
        return a, b, await aggregate_articles(store, [b.id], START, END)

    a, b, articles = asyncio.run(run())

    assert len(articles) == 1
    assert articles[0].primary_feed_id == a.id
    assert set(articles[0].source_feed_ids) == {a.id, b.id}


def test_no_articles_raises_no_content(store):
    async def run():
        feed = await store.create_feed("acme", "https://a.example.com/rss")
        await aggregate_articles(store, [feed.id], START, END)

    with pytest.raises(NoContentError):
        asyncio.run(run())


def test_end_before_start_is_invalid(store):
    with pytest.raises(RequestValidationError):
        asyncio.run(aggregate_articles(store, [1], END, START))


def test_non_positive_limit_is_invalid(store):
    with pytest.raises(RequestValidationError):
        asyncio.run(aggregate_articles(store, [1], START, END, limit=0))
