"""Newsletter provider interface and implementations."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from ..errors import GenerationError
from ..models import Article
from .models import NewsletterDocument, NewsletterRequest

# Rough token budget per article summary (1 token ~= 4 chars)
MAX_SUMMARY_CHARS = 600

SYSTEM_PROMPT = """You write email newsletters from a list of recent articles.
Reply with a single JSON object with these keys:
- "suggested_titles": exactly 5 strings
- "suggested_subject_lines": exactly 5 strings
- "body": the newsletter body in Markdown
- "top_announcements": exactly 5 strings
- "additional_info": optional string"""


def build_article_summaries(articles: List[Article]) -> str:
    """Compact, numbered digest of the articles for the prompt."""
    lines = []
    for index, article in enumerate(articles, start=1):
        summary = (article.summary or article.content or "").strip()
        if len(summary) > MAX_SUMMARY_CHARS:
            summary = summary[:MAX_SUMMARY_CHARS] + "..."
        lines.append(
            f"{index}. {article.title}\n"
            f"   Published: {article.published_at.date().isoformat()}\n"
            f"   Link: {article.link}\n"
            f"   {summary}"
        )
    return "\n\n".join(lines)


def build_newsletter_prompt(request: NewsletterRequest) -> str:
    """User prompt for one newsletter."""
    prompt = (
        f"Write a newsletter covering {request.start.date().isoformat()} to "
        f"{request.end.date().isoformat()} based on these {len(request.articles)} articles.\n\n"
        f"{build_article_summaries(request.articles)}"
    )
    if request.user_input:
        prompt += f"\n\nAdditional instructions from the author:\n{request.user_input}"
    return prompt


class NewsletterProvider(ABC):
    """Abstract base class for newsletter generators."""

    @abstractmethod
    async def generate(self, request: NewsletterRequest) -> NewsletterDocument:
        """
        Generate a newsletter from an ordered article set.

        Raises:
            GenerationError: if generation failed or returned an invalid document
        """

    @abstractmethod
    def get_usage_stats(self) -> Dict[str, Any]:
        """Get usage statistics."""


class OpenAIProvider(NewsletterProvider):
    """OpenAI implementation of the newsletter provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model name to use
            base_url: Custom base URL (for compatible servers)
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.total_tokens = 0
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self.api_calls = 0

        # Token cost estimates (per 1K tokens)
        self.cost_per_1k_tokens = {
            "gpt-4o": {"input": 0.005, "output": 0.015},
            "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
            "gpt-4.1-mini": {"input": 0.0004, "output": 0.0016},
        }

    async def generate(self, request: NewsletterRequest) -> NewsletterDocument:
        """Generate a newsletter using OpenAI JSON mode."""
        try:
            self.api_calls += 1
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_newsletter_prompt(request)},
                ],
                response_format={"type": "json_object"},
                temperature=0.7,
            )
        except openai.OpenAIError as e:
            raise GenerationError(f"Newsletter generation failed: {e}") from e

        if response.usage:
            self.total_tokens += response.usage.total_tokens
            self.prompt_tokens += response.usage.prompt_tokens
            self.completion_tokens += response.usage.completion_tokens

        content = response.choices[0].message.content or ""
        try:
            return NewsletterDocument.model_validate_json(content)
        except ValidationError as e:
            raise GenerationError(f"Generator returned an invalid newsletter: {e}") from e

    def get_usage_stats(self) -> Dict[str, Any]:
        """Get usage statistics."""
        estimated_cost = 0.0
        if self.model in self.cost_per_1k_tokens:
            rates = self.cost_per_1k_tokens[self.model]
            estimated_cost = (
                (self.prompt_tokens / 1000) * rates["input"]
                + (self.completion_tokens / 1000) * rates["output"]
            )

        return {
            "total_tokens": self.total_tokens,
            "api_calls": self.api_calls,
            "estimated_cost": estimated_cost,
            "model": self.model,
        }


class MockNewsletterProvider(NewsletterProvider):
    """Deterministic provider for tests and runs without an API key."""

    def __init__(self) -> None:
        """Initialize mock provider."""
        self.calls: List[NewsletterRequest] = []

    async def generate(self, request: NewsletterRequest) -> NewsletterDocument:
        """Build a newsletter straight from the article titles."""
        self.calls.append(request)

        titles = [article.title for article in request.articles]
        padded = (titles * 5)[:5]
        period = f"{request.start.date().isoformat()} - {request.end.date().isoformat()}"

        return NewsletterDocument(
            suggested_titles=[f"Digest {period} #{i}" for i in range(1, 6)],
            suggested_subject_lines=[f"This week: {title}" for title in padded],
            body="\n".join(f"- {title}" for title in titles),
            top_announcements=padded,
            additional_info=request.user_input,
        )

    def get_usage_stats(self) -> Dict[str, Any]:
        """Get mock usage statistics."""
        return {
            "total_tokens": 0,
            "api_calls": len(self.calls),
            "estimated_cost": 0.0,
            "model": "mock",
        }
