"""Pull, push and delete commands."""

from typing import List

import typer
from rich.console import Console
from rich.table import Table

from ..engine import PullReport, PushReport
from .common import endpoint_ids_by_name, get_engine, load_context

console = Console()


def print_pull_report(report: PullReport) -> None:
    """Print summary of a pull cycle."""
    if not report.results:
        console.print("[yellow]No endpoints due for pull.[/yellow]")
        return

    table = Table(title="Pull Results")
    table.add_column("Endpoint", style="cyan")
    table.add_column("Created", style="green")
    table.add_column("Updated", style="green")
    table.add_column("Unchanged")
    table.add_column("Rejected", style="yellow")
    table.add_column("Status")

    for result in report.results:
        if result.success:
            status = "[green]OK[/green]"
        elif result.skipped:
            status = f"[yellow]Skipped: {result.error}[/yellow]"
        else:
            status = f"[red]Failed ({result.failures}): {result.error}[/red]"
            if result.disabled:
                status += " [bold red]disabled[/bold red]"
        table.add_row(
            result.endpoint_name,
            str(result.created),
            str(result.updated),
            str(result.unchanged),
            str(result.rejected),
            status,
        )

    console.print(table)


def print_push_report(report: PushReport) -> None:
    """Print summary of a push cycle."""
    if not report.success:
        console.print(f"[red]❌ Content {report.content_id}: {report.error}[/red]")
        return

    table = Table(title=f"Content {report.content_id}")
    table.add_column("Endpoint", style="cyan")
    table.add_column("Action", style="magenta")
    table.add_column("State")
    table.add_column("Remote ID", style="blue")
    table.add_column("Error", style="red")

    for result in report.results:
        table.add_row(
            str(result.endpoint_id),
            result.action,
            result.status.value if result.status else "-",
            str(result.remote_id) if result.remote_id is not None else "-",
            result.error or "",
        )

    console.print(table)


def pull_command(
    endpoints: List[str] = typer.Option([], "--endpoint", "-e", help="Endpoint name (repeatable). Default: all due"),
) -> None:
    """Pull content from endpoints into the local store."""
    config = load_context()
    engine = get_engine(config)

    endpoint_ids = endpoint_ids_by_name(config, endpoints) if endpoints else None
    report = engine.run_pull_cycle(endpoint_ids)
    print_pull_report(report)

    if report.failed:
        raise typer.Exit(1)


def push_command(
    content_id: int = typer.Argument(..., help="Local content ID"),
    to: List[str] = typer.Option([], "--to", "-t", help="Endpoint to push to (repeatable)"),
    remove: List[str] = typer.Option([], "--remove", "-r", help="Endpoint to remove the item from (repeatable)"),
    groups: List[str] = typer.Option([], "--group", "-g", help="Push to every enabled member of a group"),
    previous_groups: List[str] = typer.Option(
        [], "--previous-group", help="Group the item was pushed to before; members not selected now are removed"
    ),
    defer: bool = typer.Option(False, "--defer", help="Schedule the push instead of running it now"),
) -> None:
    """Push a content item to endpoints."""
    config = load_context()
    engine = get_engine(config)

    selected = endpoint_ids_by_name(config, to)
    removed = endpoint_ids_by_name(config, remove)
    if groups or previous_groups:
        group_selected, group_removed = engine.resolve_push_targets(groups, previous_groups)
        selected += [i for i in group_selected if i not in selected]
        removed += [i for i in group_removed if i not in removed and i not in selected]

    if not selected and not removed:
        console.print("[yellow]No endpoints selected.[/yellow]")
        return

    if defer:
        engine.schedule_push_content(content_id, selected, removed)
        console.print(f"✅ Push of content {content_id} scheduled")
        return

    report = engine.push_content(content_id, selected, removed)
    print_push_report(report)

    if not report.success or report.failed:
        raise typer.Exit(1)


def delete_command(
    content_id: int = typer.Argument(..., help="Local content ID"),
) -> None:
    """Delete every remote copy of a content item."""
    config = load_context()
    engine = get_engine(config)

    if not config.config.push.delete_pushed_content:
        console.print("[yellow]Deleting pushed content is disabled (push.delete_pushed_content).[/yellow]")
        return

    report = engine.delete_content_everywhere(content_id)
    print_push_report(report)

    if not report.success or report.failed:
        raise typer.Exit(1)
