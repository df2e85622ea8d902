"""Tests for the fetch-and-store primitive."""

import asyncio

import httpx
import pendulum
import pytest

from feedpress.errors import FeedNotFoundError, UpstreamFetchError
from feedpress.ingestion import RSSFetcher

FEED_URL = "https://news.example.com/rss"

RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example News</title>
    <link>https://news.example.com/</link>
    <description>Example feed</description>
    <item>
      <title>First story</title>
      <link>https://news.example.com/first</link>
      <guid>story-1</guid>
      <description>The first story.</description>
      <pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Second story</title>
      <link>https://news.example.com/second</link>
      <description>The second story.</description>
      <pubDate>Tue, 16 Jan 2024 08:30:00 +0100</pubDate>
    </item>
  </channel>
</rss>
"""


def _transport(status=200, body=RSS_XML, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, text=body)

    return httpx.MockTransport(handler)


def test_fetch_and_store_writes_articles(store):
    seen = []
    fetcher = RSSFetcher(store, transport=_transport(seen=seen), user_agent="test-agent")

    async def run():
        feed = await store.create_feed("acme", FEED_URL)
        outcome = await fetcher.fetch_and_store(feed.id)
        articles = await store.query_articles(
            [feed.id],
            pendulum.datetime(2024, 1, 1, tz="UTC"),
            pendulum.datetime(2024, 2, 1, tz="UTC"),
            10,
        )
        return feed, outcome, articles, await store.get_feed(feed.id)

    feed, outcome, articles, refreshed = asyncio.run(run())

    assert outcome.success
    assert outcome.articles_written == 2
    assert outcome.new_articles == 2
    assert refreshed.last_fetched_at is not None
    assert seen[0].headers["User-Agent"] == "test-agent"

    by_guid = {a.guid: a for a in articles}
    assert set(by_guid) == {"story-1", "https://news.example.com/second"}
    assert by_guid["story-1"].published_at == pendulum.datetime(2024, 1, 15, 10, tz="UTC")
    assert by_guid["https://news.example.com/second"].published_at == pendulum.datetime(
        2024, 1, 16, 7, 30, tz="UTC"
    )
    assert by_guid["story-1"].summary == "The first story."


def test_refetch_deduplicates(store):
    fetcher = RSSFetcher(store, transport=_transport())

    async def run():
        feed = await store.create_feed("acme", FEED_URL)
        await fetcher.fetch_and_store(feed.id)
        return await fetcher.fetch_and_store(feed.id)

    outcome = asyncio.run(run())

    assert outcome.articles_written == 2
    assert outcome.new_articles == 0


def test_fetch_attaches_articles_to_every_registration_of_the_url(store):
    fetcher = RSSFetcher(store, transport=_transport())

    async def run():
        a = await store.create_feed("acme", FEED_URL)
        b = await store.create_feed("globex", FEED_URL)
        await fetcher.fetch_and_store(a.id)
        return await store.find_article_ids_for_feed(b.id)

    assert len(asyncio.run(run())) == 2


def test_http_error_raises_upstream_error(store):
    """A failed fetch leaves the URL cache untouched"""
    fetcher = RSSFetcher(store, transport=_transport(status=503))

    async def run():
        feed = await store.create_feed("acme", FEED_URL)
        with pytest.raises(UpstreamFetchError) as exc:
            await fetcher.fetch_and_store(feed.id)
        fetches = await store.get_url_fetch_times([FEED_URL], pendulum.datetime(2000, 1, 1))
        return feed, exc.value, fetches

    feed, error, fetches = asyncio.run(run())

    assert error.feed_id == feed.id
    assert error.reason == "HTTP 503"
    assert fetches == {}


def test_garbage_body_is_an_unsuccessful_outcome(store):
    fetcher = RSSFetcher(store, transport=_transport(body="<html><body>nope"))

    result = asyncio.run(fetcher.fetch_feed(FEED_URL))

    assert not result.success
    assert result.error.startswith("Invalid RSS feed")


def test_unknown_feed_raises(store):
    fetcher = RSSFetcher(store, transport=_transport())

    with pytest.raises(FeedNotFoundError):
        asyncio.run(fetcher.fetch_and_store(99))
