"""Init command implementation."""

import os
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, save_config, save_endpoints
from ..crypto import FernetEncryptor
from ..store import init_database, validate_connection

console = Console()


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "syndication",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("syndication", "--db-name", help="Database name"),
    db_user: str = typer.Option("syndication", "--db-user", help="Database user"),
    groups: str = typer.Option(
        "default",
        "--groups",
        "-g",
        help="Comma-separated endpoint groups pulled on schedule",
    ),
) -> None:
    """Initialize syndication configuration and database."""
    console.print(Panel.fit("Syndication Engine - Initialization", style="bold blue"))

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"
    endpoints_path = config_dir / "endpoints.yaml"

    config = ConfigModel(
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "SYNDICATION_DB_PASSWORD",
        },
        pull={"selected_groups": [g.strip() for g in groups.split(",") if g.strip()]},
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    if not endpoints_path.exists():
        save_endpoints([], endpoints_path)
        console.print(f"✅ Created endpoints: {endpoints_path} (empty)")

    key_hint = ""
    if not os.environ.get(config.encryption.key_env or ""):
        key_hint = (
            f"\nEncryption key (keep it safe): [bold]export {config.encryption.key_env}="
            f"{FernetEncryptor.generate_key()}[/bold]\n"
        )

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()
    db_config["password"] = os.environ.get("SYNDICATION_DB_PASSWORD", "")

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: [bold]export SYNDICATION_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        console.print("✅ Database schema initialized")
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ Syndication engine initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Endpoints: {endpoints_path}\n"
            f"{key_hint}\n"
            f"Next steps:\n"
            f"1. Add an endpoint: [bold]syndicate endpoints add --name blog --kind rss_pull "
            f"--set feed_url=https://example.com/feed --group default[/bold]\n"
            f"2. Pull: [bold]syndicate pull[/bold]\n"
            f"3. Run scheduled jobs: [bold]syndicate jobs run-due[/bold]",
            style="green",
        )
    )
