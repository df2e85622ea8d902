"""Newsletter generation from a prepared article set."""

from .llm_provider import (
    MockNewsletterProvider,
    NewsletterProvider,
    OpenAIProvider,
    build_article_summaries,
    build_newsletter_prompt,
)
from .models import NewsletterDocument, NewsletterRequest

__all__ = [
    "MockNewsletterProvider",
    "NewsletterDocument",
    "NewsletterProvider",
    "NewsletterRequest",
    "OpenAIProvider",
    "build_article_summaries",
    "build_newsletter_prompt",
]
