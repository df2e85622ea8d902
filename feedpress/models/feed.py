"""Feed registration model."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import DBModel


class Feed(DBModel):
    """A tenant's subscription to an RSS source URL."""

    tenant_id: str = Field(..., description="Owning tenant")
    name: str = Field("", description="Display name")
    url: str = Field(..., description="RSS feed URL, shared across tenants")
    last_fetched_at: Optional[datetime] = Field(
        None, description="Last successful fetch through this registration"
    )


class FeedSummary(Feed):
    """Feed registration with the number of articles it currently references."""

    article_count: int = Field(0, description="Articles whose source set includes this feed")
