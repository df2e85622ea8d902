"""Result models returned by the feed engine."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .article import Article


class FetchOutcome(BaseModel):
    """Outcome of refreshing a single feed registration."""

    feed_id: int = Field(..., description="Refreshed feed registration")
    success: bool = Field(..., description="Whether the fetch and store succeeded")
    articles_written: int = Field(0, description="Articles inserted or re-attached")
    new_articles: int = Field(0, description="Articles that did not exist before")
    error: Optional[str] = Field(None, description="Error message if failed")


class RefreshReport(BaseModel):
    """Tally of one refresh fan-out."""

    requested: int = Field(0, description="Feeds that needed refresh")
    successful: int = Field(0, description="Feeds refreshed successfully")
    failed: int = Field(0, description="Feeds whose refresh failed or timed out")
    outcomes: List[FetchOutcome] = Field(default_factory=list)


class DeletionReport(BaseModel):
    """Result of a reference-counted feed deletion."""

    feed_id: int
    detached: int = Field(0, description="Articles kept alive by another feed")
    deleted: int = Field(0, description="Articles deleted because no feed referenced them")
    swept: int = Field(0, description="Orphans removed by the consistency sweep")


class PreparedArticles(BaseModel):
    """Authorized, in-range, non-empty article set ready for generation."""

    tenant_id: str
    feed_ids: List[int]
    start: datetime
    end: datetime
    articles: List[Article]
    refresh: RefreshReport = Field(default_factory=RefreshReport)


class PreparePreview(BaseModel):
    """What a prepare call would work with, without refreshing anything."""

    feeds_to_refresh: int = Field(0, description="Feeds whose URL is stale")
    articles_found: int = Field(0, description="Articles currently in range")
