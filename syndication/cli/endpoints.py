"""Endpoint management commands."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ..config import Config, EndpointConfig, load_endpoints, save_endpoints
from ..engine import build_encryptor, build_engine
from ..store import PostgresEndpointStore, get_connection, validate_connection
from ..transports import TransportFactory
from .common import load_context, require_database

console = Console()
endpoints_app = typer.Typer(help="Manage syndication endpoints")


def parse_pairs(pairs: List[str], option: str) -> Dict[str, str]:
    """Parse KEY=VALUE options."""
    result = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            console.print(f"[red]Invalid {option} value '{pair}' (expected KEY=VALUE)[/red]")
            raise typer.Exit(1)
        result[key.strip()] = value
    return result


def read_endpoints(config: Config) -> List[EndpointConfig]:
    try:
        return load_endpoints(config.endpoints_path)
    except FileNotFoundError:
        return []


def sync_to_database(config: Config, endpoints: List[EndpointConfig]) -> None:
    """Write endpoints to the database and request a pull schedule refresh."""
    db_config = config.get_db_config()
    if not validate_connection(db_config):
        console.print(
            "[yellow]⚠️  Database unreachable; changes saved to file only. "
            "Run 'syndicate endpoints sync' later.[/yellow]"
        )
        return

    store = PostgresEndpointStore(db_config)
    with get_connection(db_config) as conn:
        endpoint_map = store.sync_endpoints(conn, endpoints)
    console.print(f"✅ Synced {len(endpoint_map)} endpoint(s) to the database")

    if build_engine(config).request_schedule_refresh():
        console.print("✅ Pull schedule refresh requested")


@endpoints_app.command("list")
def endpoints_list() -> None:
    """List all configured endpoints."""
    config = load_context()
    endpoints = read_endpoints(config)

    if not endpoints:
        console.print("[yellow]No endpoints configured.[/yellow]")
        return

    table = Table(title="Configured Endpoints")
    table.add_column("Name", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Groups", style="green")
    table.add_column("Enabled", style="yellow")
    table.add_column("Target", style="blue")

    for endpoint in endpoints:
        settings = endpoint.settings
        target = settings.get("url") or settings.get("feed_url") or settings.get("blog_id") or ""
        table.add_row(
            endpoint.name,
            endpoint.transport_kind,
            ", ".join(endpoint.groups),
            "✓" if endpoint.enabled else "✗",
            str(target),
        )

    console.print(table)


@endpoints_app.command("add")
def endpoints_add(
    name: str = typer.Option(..., "--name", "-n", help="Endpoint name"),
    kind: str = typer.Option(..., "--kind", "-k", help="Transport kind"),
    groups: List[str] = typer.Option([], "--group", "-g", help="Group slug (repeatable)"),
    settings: List[str] = typer.Option([], "--set", "-s", help="Setting KEY=VALUE (repeatable)"),
    secrets: List[str] = typer.Option([], "--secret", help="Secret setting KEY=VALUE, stored encrypted (repeatable)"),
    mapping_file: Optional[Path] = typer.Option(None, "--mapping", "-m", help="YAML feed mapping for xml_pull"),
) -> None:
    """Add a new endpoint."""
    config = load_context()
    endpoints = read_endpoints(config)

    if any(e.name == name for e in endpoints):
        console.print(f"[red]Endpoint '{name}' already exists.[/red]")
        raise typer.Exit(1)

    values: Dict[str, Any] = parse_pairs(settings, "--set")
    secret_values = parse_pairs(secrets, "--secret")
    if secret_values:
        encryptor = build_encryptor(config)
        if encryptor is None:
            console.print("[red]No encryption key configured; cannot store secrets.[/red]")
            raise typer.Exit(1)
        values.update({key: encryptor.encrypt(value) for key, value in secret_values.items()})

    if mapping_file is not None:
        try:
            with open(mapping_file) as f:
                values["mapping"] = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            console.print(f"[red]Could not read mapping file: {e}[/red]")
            raise typer.Exit(1)

    try:
        endpoint = EndpointConfig(name=name, transport_kind=kind, groups=groups, settings=values)
    except ValidationError as e:
        console.print(f"[red]Invalid endpoint: {e}[/red]")
        raise typer.Exit(1)

    endpoints.append(endpoint)
    save_endpoints(endpoints, config.endpoints_path)
    console.print(f"[green]✅ Added endpoint: {name}[/green]")

    sync_to_database(config, endpoints)


@endpoints_app.command("remove")
def endpoints_remove(
    name: str = typer.Argument(..., help="Endpoint name to remove"),
) -> None:
    """Remove an endpoint."""
    config = load_context()
    endpoints = read_endpoints(config)

    remaining = [e for e in endpoints if e.name != name]
    if len(remaining) == len(endpoints):
        console.print(f"[red]Endpoint '{name}' not found.[/red]")
        raise typer.Exit(1)

    save_endpoints(remaining, config.endpoints_path)
    console.print(f"[green]✅ Removed endpoint: {name}[/green]")

    if validate_connection(config.get_db_config()):
        store = PostgresEndpointStore(config.get_db_config())
        for endpoint in store.enumerate_endpoints():
            if endpoint.name == name:
                store.remove_endpoint(endpoint.id)
        build_engine(config).request_schedule_refresh()


def _set_enabled(name: str, enabled: bool) -> None:
    config = load_context()
    endpoints = read_endpoints(config)

    matches = [e for e in endpoints if e.name == name]
    if not matches:
        console.print(f"[red]Endpoint '{name}' not found.[/red]")
        raise typer.Exit(1)

    matches[0].enabled = enabled
    save_endpoints(endpoints, config.endpoints_path)

    if validate_connection(config.get_db_config()):
        store = PostgresEndpointStore(config.get_db_config())
        for endpoint in store.enumerate_endpoints():
            if endpoint.name == name:
                store.set_enabled(endpoint.id, enabled)
        build_engine(config).request_schedule_refresh()

    state = "enabled" if enabled else "disabled"
    console.print(f"[green]✅ Endpoint '{name}' {state}[/green]")


@endpoints_app.command("enable")
def endpoints_enable(name: str = typer.Argument(..., help="Endpoint name")) -> None:
    """Enable an endpoint (also clears its failure counter)."""
    _set_enabled(name, True)


@endpoints_app.command("disable")
def endpoints_disable(name: str = typer.Argument(..., help="Endpoint name")) -> None:
    """Disable an endpoint."""
    _set_enabled(name, False)


@endpoints_app.command("sync")
def endpoints_sync() -> None:
    """Write endpoints.yaml to the database."""
    config = load_context()
    require_database(config)
    sync_to_database(config, read_endpoints(config))


@endpoints_app.command("test")
def endpoints_test(
    name: Optional[str] = typer.Argument(None, help="Endpoint name to test (or test all)"),
) -> None:
    """Test endpoint connectivity with the configured credentials."""
    config = load_context()
    require_database(config)
    engine = build_engine(config)

    endpoints = engine.endpoints.enumerate_endpoints()
    if name:
        endpoints = [e for e in endpoints if e.name == name]
        if not endpoints:
            console.print(f"[red]Endpoint '{name}' not found.[/red]")
            raise typer.Exit(1)

    for endpoint in endpoints:
        if not endpoint.enabled:
            console.print(f"[yellow]⚠️  {endpoint.name}: Disabled[/yellow]")
            continue

        transport = engine.factory.create(endpoint.id)
        if transport is None:
            console.print(f"[red]❌ {endpoint.name}: Misconfigured (see log)[/red]")
        elif transport.test_connection():
            console.print(f"[green]✅ {endpoint.name}: OK[/green]")
        else:
            console.print(f"[red]❌ {endpoint.name}: Connection failed[/red]")


@endpoints_app.command("transports")
def endpoints_transports() -> None:
    """List available transport kinds."""
    factory = TransportFactory(endpoints=None)

    table = Table(title="Available Transports")
    table.add_column("Kind", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Modes", style="green")

    for transport in factory.get_available_transports():
        table.add_row(transport["id"], transport["name"], ", ".join(transport["modes"]))

    console.print(table)
