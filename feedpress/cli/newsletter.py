"""Newsletter preparation and generation commands."""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..errors import FeedPressError
from ..models import PreparedArticles
from .common import TENANT_OPTION_HELP, console, fail, run_with_pipeline, tenant_or_exit
from .history import history_app

newsletter_app = typer.Typer(help="Prepare articles and generate newsletters")
newsletter_app.add_typer(history_app, name="history", help="Browse generated newsletters")

FEED_OPTION_HELP = "Feed ID to include (repeat for several)"


def _print_refresh(prepared: PreparedArticles) -> None:
    report = prepared.refresh
    if report.requested == 0:
        console.print(f"[dim]All {len(prepared.feed_ids)} feeds are fresh, skipped refresh[/dim]")
    else:
        console.print(
            f"[dim]Refreshed {report.requested} stale feeds: "
            f"[green]{report.successful} ok[/green], [red]{report.failed} failed[/red][/dim]"
        )


@newsletter_app.command("preview")
def newsletter_preview(
    feeds: List[int] = typer.Option(..., "--feed", "-f", help=FEED_OPTION_HELP),
    start: str = typer.Option(..., "--start", help="Start date (YYYY-MM-DD or ISO 8601)"),
    end: str = typer.Option(..., "--end", help="End date (YYYY-MM-DD or ISO 8601)"),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """Show how many feeds are stale and how many articles are available."""
    tenant_id = tenant_or_exit(tenant)
    try:
        preview = run_with_pipeline(lambda p: p.preview(tenant_id, feeds, start, end))
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    console.print(f"Feeds to refresh: [yellow]{preview.feeds_to_refresh}[/yellow]")
    console.print(f"Articles found: [green]{preview.articles_found}[/green]")


@newsletter_app.command("prepare")
def newsletter_prepare(
    feeds: List[int] = typer.Option(..., "--feed", "-f", help=FEED_OPTION_HELP),
    start: str = typer.Option(..., "--start", help="Start date (YYYY-MM-DD or ISO 8601)"),
    end: str = typer.Option(..., "--end", help="End date (YYYY-MM-DD or ISO 8601)"),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """Refresh stale feeds and list the articles a newsletter would use."""
    tenant_id = tenant_or_exit(tenant)
    try:
        prepared = run_with_pipeline(lambda p: p.prepare(tenant_id, feeds, start, end))
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    _print_refresh(prepared)

    table = Table(title=f"{len(prepared.articles)} articles")
    table.add_column("Published", style="yellow")
    table.add_column("Title", style="cyan")
    table.add_column("Feeds", style="dim")

    for article in prepared.articles:
        table.add_row(
            article.published_at.strftime("%Y-%m-%d %H:%M"),
            article.title,
            ", ".join(str(feed_id) for feed_id in article.source_feed_ids),
        )

    console.print(table)


@newsletter_app.command("generate")
def newsletter_generate(
    feeds: List[int] = typer.Option(..., "--feed", "-f", help=FEED_OPTION_HELP),
    start: str = typer.Option(..., "--start", help="Start date (YYYY-MM-DD or ISO 8601)"),
    end: str = typer.Option(..., "--end", help="End date (YYYY-MM-DD or ISO 8601)"),
    user_input: Optional[str] = typer.Option(
        None, "--input", "-i", help="Extra instructions for the newsletter"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the newsletter as JSON to this file"
    ),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """Generate a newsletter from the tenant's feeds."""
    tenant_id = tenant_or_exit(tenant)
    try:
        prepared, newsletter = run_with_pipeline(
            lambda p: p.generate(tenant_id, feeds, start, end, user_input=user_input)
        )
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    _print_refresh(prepared)
    document = newsletter.document

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(
            json.dumps(document.model_dump(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        console.print(f"✅ Saved newsletter: {output}")

    console.print(Panel(document.body, title=document.suggested_titles[0], style="green"))
    console.print("[bold]Subject lines:[/bold]")
    for line in document.suggested_subject_lines:
        console.print(f"  • {line}")
    console.print(f"[dim]Saved to history as newsletter {newsletter.id}[/dim]")
