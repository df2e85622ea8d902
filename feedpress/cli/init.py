"""Init command implementation."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, save_config
from ..config.loader import DEFAULT_CONFIG_PATH
from ..db import close_connection_pool, init_database, validate_connection

console = Console()


async def _check_and_init(db_config: dict) -> bool:
    try:
        if not await validate_connection(db_config):
            return False
        await init_database(db_config)
        return True
    finally:
        await close_connection_pool()


def init_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Configuration file to write",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("feedpress", "--db-name", help="Database name"),
    db_user: str = typer.Option("feedpress", "--db-user", help="Database user"),
    skip_db: bool = typer.Option(
        False, "--skip-db", help="Only write the configuration file"
    ),
) -> None:
    """Initialize feedpress configuration and database."""
    console.print(Panel.fit("📰 feedpress - Initialization", style="bold blue"))

    config = ConfigModel(
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "FEEDPRESS_DB_PASSWORD",
        },
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    if skip_db:
        return

    console.print("\n[bold]Initializing database...[/bold]")
    try:
        ok = asyncio.run(_check_and_init(config.postgres.model_dump()))
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    if not ok:
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: "
            "[bold]export FEEDPRESS_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ feedpress initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Pick a tenant: [bold]export FEEDPRESS_TENANT=acme[/bold]\n"
            f"2. Add a feed: [bold]feedpress feeds add --url https://example.com/feed[/bold]\n"
            f"3. Run: [bold]feedpress newsletter generate -f 1 --start 2024-01-01 --end 2024-01-31[/bold]",
            style="green",
        )
    )
