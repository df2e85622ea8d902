"""Data models for ingestion."""

from typing import Optional

from pydantic import BaseModel, Field

from ..models import FeedEntry


class FeedResult(BaseModel):
    """Result of fetching and parsing an RSS feed URL."""

    url: str = Field(..., description="RSS feed URL")
    success: bool = Field(..., description="Whether fetch was successful")
    entries: list[FeedEntry] = Field(default_factory=list, description="Parsed entries")
    error: Optional[str] = Field(None, description="Error message if failed")
    entry_count: int = Field(0, description="Number of entries parsed")
