"""Feed subscription commands."""

from typing import Optional

import httpx
import typer
from rich.table import Table

from ..errors import FeedPressError
from .common import TENANT_OPTION_HELP, console, fail, run_with_pipeline, tenant_or_exit

feeds_app = typer.Typer(help="Manage RSS feed subscriptions")


@feeds_app.command("list")
def feeds_list(
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """List the tenant's feeds."""
    tenant_id = tenant_or_exit(tenant)
    try:
        feeds = run_with_pipeline(lambda p: p.list_feeds(tenant_id))
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    if not feeds:
        console.print("[yellow]No feeds configured.[/yellow]")
        return

    table = Table(title=f"Feeds for {tenant_id}")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Articles", style="green")
    table.add_column("Last fetched", style="yellow")
    table.add_column("URL", style="blue")

    for feed in feeds:
        table.add_row(
            str(feed.id),
            feed.name,
            str(feed.article_count),
            feed.last_fetched_at.strftime("%Y-%m-%d %H:%M") if feed.last_fetched_at else "never",
            feed.url,
        )

    console.print(table)


@feeds_app.command("add")
def feeds_add(
    url: str = typer.Option(..., "--url", "-u", help="RSS feed URL"),
    name: str = typer.Option("", "--name", "-n", help="Display name"),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """Subscribe the tenant to a feed URL."""
    tenant_id = tenant_or_exit(tenant)
    try:
        feed = run_with_pipeline(lambda p: p.subscribe(tenant_id, url, name))
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    console.print(f"[green]✅ Added feed {feed.id}: {feed.name or feed.url}[/green]")


@feeds_app.command("remove")
def feeds_remove(
    feed_id: int = typer.Argument(..., help="Feed ID to remove"),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """Remove a feed and the articles no other feed references."""
    tenant_id = tenant_or_exit(tenant)
    try:
        report = run_with_pipeline(lambda p: p.delete_feed(tenant_id, feed_id))
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    console.print(
        f"[green]✅ Removed feed {feed_id}[/green] "
        f"({report.deleted + report.swept} articles deleted, "
        f"{report.detached} kept for other feeds)"
    )


@feeds_app.command("test")
def feeds_test(
    feed_id: Optional[int] = typer.Argument(None, help="Feed ID to test (or test all)"),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """Test RSS feed connectivity."""
    tenant_id = tenant_or_exit(tenant)
    try:
        feeds = run_with_pipeline(lambda p: p.list_feeds(tenant_id))
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    if feed_id is not None:
        feeds = [f for f in feeds if f.id == feed_id]
        if not feeds:
            console.print(f"[red]Feed {feed_id} not found.[/red]")
            raise typer.Exit(1)

    with httpx.Client(timeout=10.0, follow_redirects=True) as client:
        for feed in feeds:
            label = feed.name or feed.url
            try:
                response = client.get(feed.url)
                response.raise_for_status()
                console.print(f"[green]✅ {label}: OK ({response.status_code})[/green]")
            except httpx.HTTPError as e:
                console.print(f"[red]❌ {label}: Failed - {e}[/red]")
