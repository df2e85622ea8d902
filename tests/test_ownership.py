"""Tests for tenant ownership validation."""

import asyncio

import pytest

from feedpress.errors import RequestValidationError, UnauthorizedFeedError
from feedpress.feeds import validate_feed_ownership


def test_all_owned_returns_deduplicated_ids(store):
    """Duplicates collapse and request order is kept"""

    async def run():
        a = await store.create_feed("acme", "https://a.example.com/rss")
        b = await store.create_feed("acme", "https://b.example.com/rss")
        return a, b, await validate_feed_ownership(store, [b.id, a.id, b.id], "acme")

    a, b, validated = asyncio.run(run())

    assert validated == [b.id, a.id]


def test_foreign_feed_rejects_whole_request(store):
    """One foreign feed fails the request and names the offender"""

    async def run():
        mine = await store.create_feed("acme", "https://a.example.com/rss")
        theirs = await store.create_feed("globex", "https://a.example.com/rss")
        with pytest.raises(UnauthorizedFeedError) as exc:
            await validate_feed_ownership(store, [mine.id, theirs.id], "acme")
        return theirs, exc.value

    theirs, error = asyncio.run(run())

    assert error.feed_ids == [theirs.id]
    assert str(theirs.id) in str(error)


def test_unknown_feed_is_unauthorized(store):
    """Nonexistent IDs are indistinguishable from foreign ones"""
    with pytest.raises(UnauthorizedFeedError) as exc:
        asyncio.run(validate_feed_ownership(store, [404], "acme"))

    assert exc.value.feed_ids == [404]


def test_empty_request_is_invalid(store):
    with pytest.raises(RequestValidationError):
        asyncio.run(validate_feed_ownership(store, [], "acme"))
