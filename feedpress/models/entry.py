"""Normalized feed entry produced by the fetch primitive."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class FeedEntry(BaseModel):
    """Normalized RSS/Atom entry, ready to store."""

    guid: str = Field(..., description="Natural key within the feed URL")
    title: str = Field(..., description="Entry title")
    link: str = Field("", description="Entry URL")
    summary: Optional[str] = Field(None, description="Entry summary/description")
    content: Optional[str] = Field(None, description="Full content, if the feed carries it")
    author: Optional[str] = Field(None, description="Author name")
    published_at: datetime = Field(..., description="Publication timestamp (UTC)")
