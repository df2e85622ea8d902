"""Shared fixtures: an in-memory store and entry factories."""

from datetime import timedelta

import pendulum
import pytest

from feedpress.db import MemoryFeedStore
from feedpress.models import FeedEntry

NOW = pendulum.datetime(2024, 6, 1, 12, 0, 0, tz="UTC")


@pytest.fixture
def store():
    return MemoryFeedStore()


@pytest.fixture
def make_entry():
    """Build FeedEntry objects with a predictable guid and publication time."""

    def _make(guid, published_at=None, title=None):
        return FeedEntry(
            guid=guid,
            title=title or f"Article {guid}",
            link=f"https://example.com/{guid}",
            summary=f"Summary of {guid}",
            published_at=published_at or NOW - timedelta(days=1),
        )

    return _make
