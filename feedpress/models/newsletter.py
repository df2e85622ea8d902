"""Generated newsletter document and its stored history record."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .base import DBModel


class NewsletterDocument(BaseModel):
    """Structured newsletter returned by the generator."""

    suggested_titles: List[str] = Field(..., min_length=5, max_length=5)
    suggested_subject_lines: List[str] = Field(..., min_length=5, max_length=5)
    body: str = Field(..., min_length=1, description="Newsletter body in Markdown")
    top_announcements: List[str] = Field(..., min_length=5, max_length=5)
    additional_info: Optional[str] = Field(None, description="Optional closing notes")


class Newsletter(DBModel):
    """A generated newsletter kept in the tenant's history."""

    tenant_id: str = Field(..., description="Owning tenant")
    document: NewsletterDocument
    start: datetime = Field(..., description="Start of the covered date range")
    end: datetime = Field(..., description="End of the covered date range")
    user_input: Optional[str] = Field(None, description="Instructions given at generation time")
    feed_ids: List[int] = Field(default_factory=list, description="Feeds the articles came from")
