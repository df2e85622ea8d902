"""Tests for saving and browsing generated newsletters."""

import asyncio

import pendulum
import pytest

from feedpress.db import MemoryNewsletterStore
from feedpress.errors import (
    NewsletterNotFoundError,
    RequestValidationError,
    UnauthorizedNewsletterError,
)
from feedpress.models import FetchOutcome, NewsletterDocument
from feedpress.pipeline import NewsletterPipeline

START = pendulum.datetime(2024, 1, 1, tz="UTC")
END = pendulum.datetime(2024, 1, 31, 23, 59, 59, tz="UTC")


async def _no_fetch(feed_id):
    return FetchOutcome(feed_id=feed_id, success=True)


def _document(title="Weekly digest"):
    return NewsletterDocument(
        suggested_titles=[f"{title} {i}" for i in range(5)],
        suggested_subject_lines=[f"Subject {i}" for i in range(5)],
        body="Body",
        top_announcements=[f"News {i}" for i in range(5)],
    )


def _pipeline(store):
    return NewsletterPipeline(store, _no_fetch, newsletters=MemoryNewsletterStore())


def test_generate_saves_to_history(store, make_entry):
    pipeline = _pipeline(store)

    async def run():
        feed = await store.create_feed("acme", "https://a.example.com/rss")
        await store.upsert_articles(feed, [make_entry("jan", published_at=START)])
        _, newsletter = await pipeline.generate(
            "acme", [feed.id], "2024-01-01", "2024-01-31", user_input="Be brief"
        )
        stored = await pipeline.get_newsletter("acme", newsletter.id)
        return feed, newsletter, stored

    feed, newsletter, stored = asyncio.run(run())

    assert newsletter.id is not None
    assert stored.tenant_id == "acme"
    assert stored.feed_ids == [feed.id]
    assert stored.user_input == "Be brief"
    assert stored.start == START
    assert stored.document == newsletter.document


def test_list_is_paged_newest_first_and_scoped(store):
    pipeline = _pipeline(store)

    async def run():
        for i in range(3):
            await pipeline.newsletters.save_newsletter(
                "acme", _document(f"acme-{i}"), START, END, None, [1]
            )
        await pipeline.newsletters.save_newsletter("globex", _document(), START, END, None, [2])
        return (
            await pipeline.list_newsletters("acme", limit=2),
            await pipeline.list_newsletters("acme", limit=2, skip=2),
        )

    (first_page, total), (second_page, _) = asyncio.run(run())

    assert total == 3
    assert [n.document.suggested_titles[0] for n in first_page] == ["acme-2 0", "acme-1 0"]
    assert [n.document.suggested_titles[0] for n in second_page] == ["acme-0 0"]


def test_bad_paging_is_rejected(store):
    pipeline = _pipeline(store)

    with pytest.raises(RequestValidationError):
        asyncio.run(pipeline.list_newsletters("acme", limit=0))
    with pytest.raises(RequestValidationError):
        asyncio.run(pipeline.list_newsletters("acme", skip=-1))


def test_other_tenant_cannot_read_or_delete(store):
    pipeline = _pipeline(store)

    async def run():
        newsletter = await pipeline.newsletters.save_newsletter(
            "acme", _document(), START, END, None, [1]
        )
        with pytest.raises(UnauthorizedNewsletterError):
            await pipeline.get_newsletter("globex", newsletter.id)
        with pytest.raises(UnauthorizedNewsletterError):
            await pipeline.delete_newsletter("globex", newsletter.id)
        return await pipeline.get_newsletter("acme", newsletter.id)

    assert asyncio.run(run()).tenant_id == "acme"


def test_delete_then_missing(store):
    pipeline = _pipeline(store)

    async def run():
        newsletter = await pipeline.newsletters.save_newsletter(
            "acme", _document(), START, END, None, [1]
        )
        await pipeline.delete_newsletter("acme", newsletter.id)
        with pytest.raises(NewsletterNotFoundError):
            await pipeline.get_newsletter("acme", newsletter.id)
        with pytest.raises(NewsletterNotFoundError):
            await pipeline.delete_newsletter("acme", newsletter.id)
        return await pipeline.list_newsletters("acme")

    assert asyncio.run(run()) == ([], 0)
