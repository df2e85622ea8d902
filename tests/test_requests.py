"""Tests for request date and feed ID parsing."""

from datetime import date, datetime

import pendulum
import pytest

from feedpress.auth import resolve_current_tenant
from feedpress.errors import AuthenticationError, RequestValidationError
from feedpress.pipeline import normalize_feed_ids, parse_request_dates


def test_bare_dates_cover_whole_days():
    start, end = parse_request_dates("2024-01-01", "2024-01-31")

    assert start == pendulum.datetime(2024, 1, 1, tz="UTC")
    assert end.date() == date(2024, 1, 31)
    assert (end.hour, end.minute, end.second) == (23, 59, 59)


def test_same_day_range_is_valid():
    start, end = parse_request_dates("2024-03-05", "2024-03-05")

    assert start < end


def test_iso_datetimes_keep_their_offset():
    start, end = parse_request_dates("2024-01-01T08:00:00+02:00", "2024-01-01T12:00:00Z")

    assert start == pendulum.datetime(2024, 1, 1, 6, tz="UTC")
    assert end == pendulum.datetime(2024, 1, 1, 12, tz="UTC")


def test_naive_datetime_is_utc():
    start, _ = parse_request_dates(datetime(2024, 1, 1, 9), "2024-01-02")

    assert start == pendulum.datetime(2024, 1, 1, 9, tz="UTC")
    assert start.utcoffset().total_seconds() == 0


def test_date_objects():
    start, end = parse_request_dates(date(2024, 1, 1), date(2024, 1, 1))

    assert start.date() == end.date() == date(2024, 1, 1)


def test_end_before_start():
    with pytest.raises(RequestValidationError, match="before"):
        parse_request_dates("2024-02-01", "2024-01-01")


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", None])
def test_invalid_start(value):
    with pytest.raises(RequestValidationError, match="startDate"):
        parse_request_dates(value, "2024-01-01")


def test_feed_ids_are_coerced():
    assert normalize_feed_ids(["3", 4, "3"]) == [3, 4, 3]


@pytest.mark.parametrize("feed_ids", [[], ["abc"], [True], [None]])
def test_bad_feed_ids(feed_ids):
    with pytest.raises(RequestValidationError):
        normalize_feed_ids(feed_ids)


def test_tenant_from_environment(monkeypatch):
    monkeypatch.setenv("FEEDPRESS_TENANT", " acme ")

    assert resolve_current_tenant() == "acme"
    assert resolve_current_tenant("globex") == "globex"


def test_missing_tenant(monkeypatch):
    monkeypatch.delenv("FEEDPRESS_TENANT", raising=False)

    with pytest.raises(AuthenticationError):
        resolve_current_tenant()
