"""Schedule and job commands."""

import typer
from rich.console import Console
from rich.table import Table

from .common import get_engine, load_context

console = Console()
schedule_app = typer.Typer(help="Manage the pull schedule")
jobs_app = typer.Typer(help="Inspect and run scheduled jobs")


@schedule_app.command("refresh")
def schedule_refresh() -> None:
    """Rebuild the pull jobs now."""
    engine = get_engine(load_context())
    endpoint_ids = engine.refresh_schedules()
    console.print(f"✅ Scheduled pull jobs for {len(endpoint_ids)} endpoint(s)")


@schedule_app.command("request")
def schedule_request() -> None:
    """Request a debounced rebuild of the pull jobs."""
    engine = get_engine(load_context())
    if engine.request_schedule_refresh():
        console.print("✅ Pull schedule refresh requested")
    else:
        console.print("[yellow]A refresh is already pending.[/yellow]")


@jobs_app.command("list")
def jobs_list() -> None:
    """List scheduled jobs."""
    engine = get_engine(load_context())
    jobs = engine.scheduler.jobs()

    if not jobs:
        console.print("[yellow]No jobs scheduled.[/yellow]")
        return

    table = Table(title="Scheduled Jobs")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Next Run", style="green")
    table.add_column("Every", style="magenta")
    table.add_column("Args", style="blue")

    for job in jobs:
        table.add_row(
            str(job.id),
            job.name,
            job.run_at.isoformat(timespec="seconds"),
            f"{job.interval_seconds}s" if job.recurring else "once",
            str(job.args),
        )

    console.print(table)


@jobs_app.command("run-due")
def jobs_run_due() -> None:
    """Run every job that is due (call from cron)."""
    engine = get_engine(load_context())
    runs = engine.run_due_jobs()

    if not runs:
        console.print("[dim]No jobs due.[/dim]")
        return

    for run in runs:
        if run.success:
            console.print(f"[green]✅ {run.name}[/green]")
        else:
            console.print(f"[red]❌ {run.name}: {run.error}[/red]")

    if any(not run.success for run in runs):
        raise typer.Exit(1)
