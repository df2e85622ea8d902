"""Shared helpers for CLI commands."""

import asyncio
from typing import Awaitable, Callable, NoReturn, Optional, TypeVar

import typer
from rich.console import Console

from ..auth import resolve_current_tenant
from ..config import Config
from ..errors import FeedPressError, NoContentError, RequestValidationError
from ..logging_utils import setup_logging
from ..pipeline import NewsletterPipeline

console = Console()

T = TypeVar("T")

TENANT_OPTION_HELP = "Tenant to act as (default: $FEEDPRESS_TENANT)"


def open_pipeline() -> NewsletterPipeline:
    """Load configuration and build the pipeline for one command."""
    config = Config()
    setup_logging(config.config.logging.level)
    return NewsletterPipeline.from_config(config)


def run_with_pipeline(call: Callable[[NewsletterPipeline], Awaitable[T]]) -> T:
    """Run one async pipeline call and release the store afterwards."""
    pipeline = open_pipeline()

    async def _run() -> T:
        try:
            return await call(pipeline)
        finally:
            await pipeline.close()

    return asyncio.run(_run())


def tenant_or_exit(tenant: Optional[str]) -> str:
    """Resolve the tenant or stop with a message."""
    try:
        return resolve_current_tenant(tenant)
    except FeedPressError as e:
        fail(e)


def fail(error: Exception) -> NoReturn:
    """Print an error the way a user can act on it and exit with status 1."""
    if isinstance(error, NoContentError):
        console.print(f"[yellow]{error}[/yellow]")
        console.print("Try a different date range or add more feeds.")
    elif isinstance(error, RequestValidationError):
        console.print(f"[red]Invalid request: {error}[/red]")
    elif isinstance(error, FileNotFoundError):
        console.print(f"[red]{error}. Run 'feedpress init' first.[/red]")
    else:
        console.print(f"[red]{error}[/red]")
    raise typer.Exit(1)
