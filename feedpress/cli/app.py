"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .feeds import feeds_app
from .init import init_command
from .newsletter import newsletter_app

app = typer.Typer(
    name="feedpress",
    help="feedpress - shared RSS cache and newsletter article preparation",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.add_typer(feeds_app, name="feeds", help="Manage RSS feed subscriptions")
app.add_typer(newsletter_app, name="newsletter", help="Prepare and generate newsletters")


if __name__ == "__main__":
    app()
