"""Helpers shared by CLI commands."""

from pathlib import Path
from typing import Dict, List

import typer
from rich.console import Console

from ..config import Config
from ..engine import SyncEngine, build_engine
from ..logging_config import setup_logging
from ..store import PostgresEndpointStore, validate_connection

console = Console()


def load_context() -> Config:
    """Load configuration and set up logging, exiting on configuration errors."""
    config = Config()
    try:
        settings = config.config
    except FileNotFoundError:
        console.print("[red]Config file not found. Run 'syndicate init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    log_dir = Path(settings.logging.log_dir).expanduser() if settings.logging.log_dir else None
    setup_logging(settings.logging.level, log_dir, settings.logging.retention_days)
    return config


def require_database(config: Config) -> None:
    """Exit unless the database is reachable."""
    if not validate_connection(config.get_db_config()):
        console.print("[red]❌ Database connection failed![/red]")
        console.print("Please check your database configuration and ensure Postgres is running.")
        raise typer.Exit(1)


def get_engine(config: Config) -> SyncEngine:
    require_database(config)
    return build_engine(config)


def endpoint_ids_by_name(config: Config, names: List[str]) -> List[int]:
    """Resolve endpoint names to database IDs, exiting on unknown names."""
    store = PostgresEndpointStore(config.get_db_config())
    known: Dict[str, int] = {e.name: e.id for e in store.enumerate_endpoints()}
    missing = [name for name in names if name not in known]
    if missing:
        console.print(f"[red]Unknown endpoint(s): {', '.join(missing)}[/red]")
        raise typer.Exit(1)
    return [known[name] for name in names]
