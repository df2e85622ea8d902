"""Newsletter history commands."""

from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..errors import FeedPressError
from .common import TENANT_OPTION_HELP, console, fail, run_with_pipeline, tenant_or_exit

history_app = typer.Typer(help="Browse generated newsletters")


@history_app.command("list")
def history_list(
    limit: int = typer.Option(20, "--limit", "-l", help="Newsletters per page"),
    skip: int = typer.Option(0, "--skip", help="Newsletters to skip"),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """List generated newsletters, most recent first."""
    tenant_id = tenant_or_exit(tenant)
    try:
        newsletters, total = run_with_pipeline(
            lambda p: p.list_newsletters(tenant_id, limit=limit, skip=skip)
        )
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    if not newsletters:
        console.print("[yellow]No newsletters yet.[/yellow]")
        return

    table = Table(title=f"Newsletters ({len(newsletters)} of {total})")
    table.add_column("ID", style="cyan")
    table.add_column("Created", style="yellow")
    table.add_column("Range", style="green")
    table.add_column("Title", style="magenta")

    for newsletter in newsletters:
        table.add_row(
            str(newsletter.id),
            newsletter.created_at.strftime("%Y-%m-%d %H:%M") if newsletter.created_at else "",
            f"{newsletter.start:%Y-%m-%d} - {newsletter.end:%Y-%m-%d}",
            newsletter.document.suggested_titles[0],
        )

    console.print(table)


@history_app.command("show")
def history_show(
    newsletter_id: int = typer.Argument(..., help="Newsletter ID"),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """Show a generated newsletter."""
    tenant_id = tenant_or_exit(tenant)
    try:
        newsletter = run_with_pipeline(lambda p: p.get_newsletter(tenant_id, newsletter_id))
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    document = newsletter.document
    console.print(Panel(document.body, title=document.suggested_titles[0], style="green"))

    console.print("[bold]Subject lines:[/bold]")
    for line in document.suggested_subject_lines:
        console.print(f"  • {line}")

    console.print("[bold]Top announcements:[/bold]")
    for item in document.top_announcements:
        console.print(f"  • {item}")

    if document.additional_info:
        console.print(f"\n{document.additional_info}")


@history_app.command("delete")
def history_delete(
    newsletter_id: int = typer.Argument(..., help="Newsletter ID"),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help=TENANT_OPTION_HELP),
) -> None:
    """Delete a generated newsletter."""
    tenant_id = tenant_or_exit(tenant)
    try:
        run_with_pipeline(lambda p: p.delete_newsletter(tenant_id, newsletter_id))
    except (FeedPressError, FileNotFoundError, ValueError) as e:
        fail(e)

    console.print(f"[green]✅ Deleted newsletter {newsletter_id}[/green]")
