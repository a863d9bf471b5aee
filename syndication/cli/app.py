"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from ..store import close_connection_pool
from .endpoints import endpoints_app
from .init import init_command
from .schedule import jobs_app, schedule_app
from .sync import delete_command, pull_command, push_command

app = typer.Typer(
    name="syndicate",
    help="Content syndication engine - pull and push content between endpoints",
    no_args_is_help=True,
)


@app.callback()
def main(ctx: typer.Context) -> None:
    """Content syndication engine - pull and push content between endpoints."""
    ctx.call_on_close(close_connection_pool)


# Register commands
app.command("init")(init_command)
app.command("pull")(pull_command)
app.command("push")(push_command)
app.command("delete")(delete_command)
app.add_typer(endpoints_app, name="endpoints", help="Manage syndication endpoints")
app.add_typer(schedule_app, name="schedule", help="Manage the pull schedule")
app.add_typer(jobs_app, name="jobs", help="Inspect and run scheduled jobs")


if __name__ == "__main__":
    app()
