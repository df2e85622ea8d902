"""Tenant ownership checks for feed registrations."""

from typing import Iterable, List

from ..db.base import FeedStore
from ..errors import RequestValidationError, UnauthorizedFeedError, wrap_operation


async def validate_feed_ownership(
    store: FeedStore,
    feed_ids: Iterable[int],
    tenant_id: str,
) -> List[int]:
    """
    Check that every requested feed belongs to the tenant.

    Args:
        store: Feed store
        feed_ids: Requested feed IDs, possibly with duplicates
        tenant_id: Caller's tenant

    Returns:
        De-duplicated feed IDs in request order

    Raises:
        RequestValidationError: if no feed IDs were given
        UnauthorizedFeedError: if any ID is unknown or owned by someone else
    """
    requested = list(dict.fromkeys(feed_ids))
    if not requested:
        raise RequestValidationError("At least one feed id is required")

    with wrap_operation("validate feed ownership"):
        owned = await store.find_owned_feed_ids(tenant_id, requested)

    unauthorized = [feed_id for feed_id in requested if feed_id not in owned]
    if unauthorized:
        raise UnauthorizedFeedError(unauthorized)

    return requested
