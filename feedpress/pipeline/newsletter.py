"""Request-level flows: prepare articles, preview, generate, manage feeds."""

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Iterable, List, Optional, Tuple, TypeVar, Union

import httpx

from ..config import Config, ConfigModel
from ..db import (
    FeedStore,
    MemoryNewsletterStore,
    NewsletterStore,
    PostgresFeedStore,
    PostgresNewsletterStore,
)
from ..errors import (
    NewsletterNotFoundError,
    OperationTimeoutError,
    RequestValidationError,
    UnauthorizedNewsletterError,
    wrap_operation,
)
from ..feeds import (
    FetchFunc,
    FreshnessOracle,
    RefreshCoordinator,
    aggregate_articles,
    delete_feed,
    validate_feed_ownership,
)
from ..generation import (
    MockNewsletterProvider,
    NewsletterProvider,
    NewsletterRequest,
    OpenAIProvider,
)
from ..ingestion import RSSFetcher
from ..models import (
    DeletionReport,
    Feed,
    FeedSummary,
    Newsletter,
    PreparedArticles,
    PreparePreview,
    RefreshReport,
)
from .requests import DateInput, normalize_feed_ids, parse_request_dates

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_provider(llm_config: dict) -> NewsletterProvider:
    """Get the configured newsletter provider."""
    if llm_config.get("provider") == "openai":
        api_key = llm_config.get("api_key")
        if not api_key:
            logger.warning("No OpenAI API key found. Using mock newsletter provider.")
            return MockNewsletterProvider()

        return OpenAIProvider(
            api_key=api_key,
            model=llm_config.get("model", "gpt-4o-mini"),
            base_url=llm_config.get("base_url"),
        )

    if llm_config.get("provider") != "mock":
        logger.warning("Unknown LLM provider %r. Using mock provider.", llm_config.get("provider"))
    return MockNewsletterProvider()


class NewsletterPipeline:
    """Entry point for everything a tenant request can do.

    Preparation runs strictly in order: ownership check, freshness check,
    refresh of stale feeds, aggregation. Only the refresh step fans out.
    """

    def __init__(
        self,
        store: FeedStore,
        fetch: FetchFunc,
        config: Optional[ConfigModel] = None,
        provider: Optional[NewsletterProvider] = None,
        newsletters: Optional[NewsletterStore] = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            store: Feed store shared by all tenants
            fetch: Fetch-and-store primitive used to refresh stale feeds
            config: Cache, refresh and timeout settings (defaults if omitted)
            provider: Newsletter generator (mock if omitted)
            newsletters: Newsletter history (in-memory if omitted)
        """
        self.config = config or ConfigModel()
        self.store = store
        self.provider = provider or MockNewsletterProvider()
        self.newsletters = newsletters or MemoryNewsletterStore()
        self.oracle = FreshnessOracle(
            store, window=timedelta(hours=self.config.cache.window_hours)
        )
        self.coordinator = RefreshCoordinator(
            fetch,
            timeout=self.config.refresh.fetch_timeout,
            max_concurrent=self.config.refresh.max_concurrent,
        )
        self.article_limit = self.config.cache.article_limit

    @classmethod
    def from_config(cls, config: Config) -> "NewsletterPipeline":
        """Wire the Postgres stores, RSS fetcher and LLM provider from configuration."""
        settings = config.config
        db_config = config.get_db_config()
        store = PostgresFeedStore(db_config)
        fetcher = RSSFetcher(
            store,
            timeout=settings.refresh.fetch_timeout,
            user_agent=settings.refresh.user_agent,
        )
        return cls(
            store,
            fetcher.fetch_and_store,
            config=settings,
            provider=build_provider(config.get_llm_config()),
            newsletters=PostgresNewsletterStore(db_config),
        )

    async def close(self) -> None:
        """Release the stores' resources."""
        await self.store.close()
        await self.newsletters.close()

    async def _within(self, operation: str, seconds: float, coro: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(coro, timeout=seconds)
        except asyncio.TimeoutError as e:
            logger.error("%s exceeded its %gs budget", operation, seconds)
            raise OperationTimeoutError(operation, seconds) from e

    async def _refresh_stale(self, tenant_id: str, validated: List[int]) -> RefreshReport:
        stale = await self.oracle.feeds_to_refresh(validated, tenant_id=tenant_id)
        if not stale:
            logger.info("All %d feeds are fresh, skipping refresh", len(validated))
            return RefreshReport()

        logger.info(
            "Refreshing %d stale feeds (out of %d total)...", len(stale), len(validated)
        )
        report = await self.coordinator.refresh(stale)
        logger.info(
            "Feed refresh complete: %d successful, %d failed",
            report.successful,
            report.failed,
        )
        return report

    async def _prepare(
        self,
        tenant_id: str,
        feed_ids: List[int],
        start: DateInput,
        end: DateInput,
    ) -> PreparedArticles:
        start_at, end_at = parse_request_dates(start, end)
        validated = await validate_feed_ownership(self.store, feed_ids, tenant_id)
        report = await self._refresh_stale(tenant_id, validated)

        # Stale or partially refreshed data is acceptable as long as something matches
        articles = await aggregate_articles(
            self.store, validated, start_at, end_at, self.article_limit
        )
        return PreparedArticles(
            tenant_id=tenant_id,
            feed_ids=validated,
            start=start_at,
            end=end_at,
            articles=articles,
            refresh=report,
        )

    async def prepare(
        self,
        tenant_id: str,
        feed_ids: Iterable[Union[int, str]],
        start: DateInput,
        end: DateInput,
    ) -> PreparedArticles:
        """
        Validate, refresh what's stale and collect the article set.

        Raises:
            RequestValidationError: malformed feed IDs or dates
            UnauthorizedFeedError: a feed isn't owned by the tenant (nothing is refreshed)
            NoContentError: no article matched the range
            OperationTimeoutError: the preparation budget ran out
        """
        ids = normalize_feed_ids(feed_ids)
        return await self._within(
            "prepare",
            self.config.timeouts.generate_seconds,
            self._prepare(tenant_id, ids, start, end),
        )

    async def preview(
        self,
        tenant_id: str,
        feed_ids: Iterable[Union[int, str]],
        start: DateInput,
        end: DateInput,
    ) -> PreparePreview:
        """Report stale feeds and matching articles without refreshing anything."""
        ids = normalize_feed_ids(feed_ids)

        async def _preview() -> PreparePreview:
            start_at, end_at = parse_request_dates(start, end)
            validated = await validate_feed_ownership(self.store, ids, tenant_id)
            stale = await self.oracle.feeds_to_refresh(validated, tenant_id=tenant_id)
            with wrap_operation("count articles by feeds and date range"):
                found = await self.store.count_articles(validated, start_at, end_at)
            return PreparePreview(
                feeds_to_refresh=len(stale),
                articles_found=min(found, self.article_limit),
            )

        return await self._within("preview", self.config.timeouts.preview_seconds, _preview())

    async def generate(
        self,
        tenant_id: str,
        feed_ids: Iterable[Union[int, str]],
        start: DateInput,
        end: DateInput,
        user_input: Optional[str] = None,
    ) -> Tuple[PreparedArticles, Newsletter]:
        """Prepare the article set, generate a newsletter from it and save it to history."""
        ids = normalize_feed_ids(feed_ids)

        async def _generate() -> Tuple[PreparedArticles, Newsletter]:
            prepared = await self._prepare(tenant_id, ids, start, end)
            request = NewsletterRequest(
                articles=prepared.articles,
                start=prepared.start,
                end=prepared.end,
                user_input=user_input,
            )
            document = await self.provider.generate(request)
            logger.info(
                "Generated newsletter from %d articles (%s)",
                len(prepared.articles),
                self.provider.get_usage_stats(),
            )
            with wrap_operation("create newsletter"):
                newsletter = await self.newsletters.save_newsletter(
                    tenant_id,
                    document,
                    prepared.start,
                    prepared.end,
                    user_input,
                    prepared.feed_ids,
                )
            return prepared, newsletter

        return await self._within(
            "generate", self.config.timeouts.generate_seconds, _generate()
        )

    async def delete_feed(self, tenant_id: str, feed_id: int) -> DeletionReport:
        """Unsubscribe a tenant from a feed, keeping articles other feeds still need."""
        return await delete_feed(self.store, feed_id, tenant_id)

    async def subscribe(self, tenant_id: str, url: str, name: str = "") -> Feed:
        """Register a feed URL for the tenant."""
        url = url.strip()
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as e:
            raise RequestValidationError(f"Invalid feed URL: {url!r}") from e
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise RequestValidationError(f"Feed URL must be http(s): {url!r}")

        with wrap_operation("create RSS feed"):
            existing = await self.store.list_feeds(tenant_id)
            if any(feed.url == url for feed in existing):
                raise RequestValidationError(f"Already subscribed to {url}")
            return await self.store.create_feed(tenant_id, url, name)

    async def list_feeds(self, tenant_id: str) -> List[FeedSummary]:
        """List the tenant's feeds with article counts."""
        with wrap_operation("fetch RSS feeds"):
            return await self.store.list_feeds(tenant_id)

    async def list_newsletters(
        self, tenant_id: str, limit: Optional[int] = None, skip: int = 0
    ) -> Tuple[List[Newsletter], int]:
        """A page of the tenant's newsletter history, most recent first, and the total."""
        if limit is not None and limit < 1:
            raise RequestValidationError("limit must be at least 1")
        if skip < 0:
            raise RequestValidationError("skip must not be negative")

        with wrap_operation("fetch newsletters by tenant"):
            newsletters = await self.newsletters.list_newsletters(tenant_id, limit, skip)
        with wrap_operation("count newsletters by tenant"):
            total = await self.newsletters.count_newsletters(tenant_id)
        return newsletters, total

    async def _owned_newsletter(self, tenant_id: str, newsletter_id: int) -> Newsletter:
        with wrap_operation("fetch newsletter by ID"):
            newsletter = await self.newsletters.get_newsletter(newsletter_id)
        if newsletter is None:
            raise NewsletterNotFoundError(newsletter_id)
        if newsletter.tenant_id != tenant_id:
            raise UnauthorizedNewsletterError(newsletter_id)
        return newsletter

    async def get_newsletter(self, tenant_id: str, newsletter_id: int) -> Newsletter:
        """
        Get one of the tenant's newsletters.

        Raises:
            NewsletterNotFoundError: if it does not exist
            UnauthorizedNewsletterError: if another tenant owns it
        """
        return await self._owned_newsletter(tenant_id, newsletter_id)

    async def delete_newsletter(self, tenant_id: str, newsletter_id: int) -> None:
        """Delete one of the tenant's newsletters, after the same checks as get_newsletter."""
        await self._owned_newsletter(tenant_id, newsletter_id)
        with wrap_operation("delete newsletter"):
            deleted = await self.newsletters.delete_newsletter(newsletter_id)
        if not deleted:
            raise NewsletterNotFoundError(newsletter_id)
        logger.info("Deleted newsletter %s", newsletter_id)
