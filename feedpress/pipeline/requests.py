"""Validation of request-shaped input."""

from datetime import date, datetime
from typing import Iterable, List, Tuple, Union

import pendulum

from ..errors import RequestValidationError

DateInput = Union[str, date, datetime]


def _to_datetime(value: DateInput, name: str, end_of_day: bool) -> datetime:
    if isinstance(value, datetime):
        return pendulum.instance(value, tz="UTC")

    if isinstance(value, date):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = pendulum.parse(value.strip(), exact=True, tz="UTC")
        except (ValueError, TypeError) as e:
            raise RequestValidationError(f"{name} is not a valid date: {value!r}") from e
    else:
        raise RequestValidationError(f"{name} is required")

    if isinstance(parsed, datetime):
        if parsed.tzinfo is None:
            return pendulum.instance(parsed, tz="UTC")
        return parsed
    if isinstance(parsed, date):
        # A bare date covers the whole day
        day = pendulum.datetime(parsed.year, parsed.month, parsed.day, tz="UTC")
        return day.end_of("day") if end_of_day else day

    raise RequestValidationError(f"{name} is not a valid date: {value!r}")


def parse_request_dates(start: DateInput, end: DateInput) -> Tuple[datetime, datetime]:
    """
    Parse and check a request's date range.

    Bare dates are whole days: the start is midnight, the end is the last
    instant of that day. Naive datetimes are taken as UTC.

    Raises:
        RequestValidationError: if either value is missing or unparseable, or end < start
    """
    start_at = _to_datetime(start, "startDate", end_of_day=False)
    end_at = _to_datetime(end, "endDate", end_of_day=True)
    if end_at < start_at:
        raise RequestValidationError("endDate must not be before startDate")
    return start_at, end_at


def normalize_feed_ids(feed_ids: Iterable[Union[int, str]]) -> List[int]:
    """Coerce feed IDs to integers. The list must not be empty."""
    normalized = []
    for feed_id in feed_ids:
        if isinstance(feed_id, bool):
            raise RequestValidationError(f"Invalid feed id: {feed_id!r}")
        try:
            normalized.append(int(feed_id))
        except (TypeError, ValueError) as e:
            raise RequestValidationError(f"Invalid feed id: {feed_id!r}") from e

    if not normalized:
        raise RequestValidationError("feedIds is required and must be a non-empty list")
    return normalized
