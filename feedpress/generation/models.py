"""Data models for newsletter generation."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models import Article, NewsletterDocument


class NewsletterRequest(BaseModel):
    """Everything the generator receives: an ordered, non-empty article set."""

    articles: List[Article] = Field(..., min_length=1, description="Most recent first")
    start: datetime = Field(..., description="Start of the covered date range")
    end: datetime = Field(..., description="End of the covered date range")
    user_input: Optional[str] = Field(None, description="Free-text instructions from the user")


__all__ = ["NewsletterDocument", "NewsletterRequest"]
