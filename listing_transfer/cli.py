"""listing-transfer CLI."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from .config import settings

T = TypeVar("T")

app = typer.Typer(
    name="listing-transfer",
    help="Transfer property listings from the source system to the target system",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _with_runtime(fn: Callable[[Any], Awaitable[T]]) -> T:
    from .database import create_tables, engine
    from .runtime import Runtime

    async def _go() -> T:
        await create_tables()
        runtime = await Runtime.create()
        try:
            return await fn(runtime)
        finally:
            await runtime.close()
            await engine.dispose()

    return asyncio.run(_go())


def _output_json(result: Any) -> None:
    console.print_json(json.dumps(result, default=str))


@app.command("probe")
def probe(
    system: str = typer.Argument(..., help="System to check: source or target"),
    no_credentials: bool = typer.Option(False, "--no-credentials", help="Reachability only"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Check reachability and stored credentials for a system."""

    async def _probe(runtime):
        credentials = None if no_credentials else await runtime.store.get_credentials(system)
        return await runtime.prober.probe(system, credentials)

    result = _with_runtime(_probe)
    if json_output:
        _output_json(result.to_dict())
    else:
        color = "green" if result.success else "red"
        console.print(f"[bold {color}]{result.outcome.value}[/bold {color}] {result.message}")
        if result.recommendation:
            console.print(f"[dim]Recommendation: {result.recommendation.value}[/dim]")
    if not result.success:
        raise typer.Exit(1)


@app.command("run")
def run(
    source_code: str = typer.Argument(None, help="Listing code on the source system"),
    target_code: str = typer.Argument(None, help="Listing reference on the target system"),
    broker_id: int = typer.Option(None, "--broker", "-b", help="Broker owning the target codes"),
    job_id: int = typer.Option(None, "--job", "-j", help="Run an existing job instead"),
    video_url: str = typer.Option(None, "--video-url"),
    tour_url: str = typer.Option(None, "--tour-url"),
):
    """Create (or resume) a transfer job and run it to completion."""
    if job_id is None and not (source_code and target_code):
        console.print("[red]Provide SOURCE_CODE and TARGET_CODE, or --job[/red]")
        raise typer.Exit(2)

    async def _run(runtime):
        nonlocal job_id
        if job_id is None:
            job = await runtime.store.create_job(
                source_code, target_code, broker_id, video_url=video_url, tour_url=tour_url
            )
            job_id = job.id
            console.print(f"Created automation {job_id}")
        await runtime.orchestrator.run(job_id)
        await runtime.orchestrator.wait_idle()
        return await runtime.store.list_jobs(limit=10)

    jobs = _with_runtime(_run)
    table = Table(title="Recent automations")
    table.add_column("ID", justify="right")
    table.add_column("Source")
    table.add_column("Target")
    table.add_column("Status")
    table.add_column("Step")
    table.add_column("Progress", justify="right")
    table.add_column("Error")
    for job in jobs:
        table.add_row(
            str(job.id),
            job.source_code,
            job.target_code,
            job.status,
            job.current_step or "-",
            f"{job.progress}%",
            job.error_message or "",
        )
    console.print(table)
    mine = next((j for j in jobs if j.id == job_id), None)
    if mine is None or mine.status != "completed":
        raise typer.Exit(1)


@app.command("purge-logs")
def purge_logs(
    days: int = typer.Option(None, "--days", "-d", help="Delete entries older than N days"),
    all_logs: bool = typer.Option(False, "--all", help="Delete every log entry"),
):
    """Retention sweep for the activity log."""
    if all_logs and days is not None:
        console.print("[red]Use either --days or --all[/red]")
        raise typer.Exit(2)
    cutoff = None
    if not all_logs:
        cutoff = datetime.now(timezone.utc) - timedelta(days=days or settings.log_retention_days)

    async def _purge(runtime):
        return await runtime.store.purge_logs(cutoff)

    deleted = _with_runtime(_purge)
    console.print(f"[green]Deleted {deleted} log entries[/green]")


@app.command("stats")
def stats(json_output: bool = typer.Option(False, "--json", help="Output as JSON")):
    """Show dashboard totals."""

    async def _stats(runtime):
        return await runtime.store.dashboard_stats()

    data = _with_runtime(_stats)
    if json_output:
        _output_json(data)
        return
    table = Table(title="Automation stats")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total automations", str(data["total_automations"]))
    table.add_row("Completed", str(data["completed"]))
    table.add_row("Failed", str(data["failed"]))
    table.add_row("Success rate", f"{data['success_rate']}%")
    table.add_row("Time saved", data["time_saved"])
    console.print(table)


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Setting key, e.g. source_username or auto_retry"),
    value: str = typer.Argument(..., help="Value (JSON literals like true/3 are decoded)"),
):
    """Store a credential or behaviour toggle."""
    try:
        decoded = json.loads(value)
    except ValueError:
        decoded = value

    async def _set(runtime):
        await runtime.store.set_setting(key, decoded)

    _with_runtime(_set)
    shown = "***" if "password" in key else decoded
    console.print(f"[green]{key} = {shown}[/green]")


@app.command("add-broker")
def add_broker(
    name: str = typer.Argument(..., help="Broker name"),
    prefix: str = typer.Option(None, "--prefix", help="Code prefix (default: first letters of name)"),
    count: int = typer.Option(40, "--count", "-n", help="How many codes to create"),
    email: str = typer.Option(None, "--email"),
):
    """Create a broker and fill its pool of target codes."""
    from .services import broker_svc

    async def _add(runtime):
        async with runtime.store.session_factory() as db:
            broker = await broker_svc.create_broker(db, name, email)
            created = await broker_svc.seed_broker_codes(
                db, broker.id, prefix or name[:3].upper(), count
            )
            return broker, created

    try:
        broker, created = _with_runtime(_add)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Broker {broker.id} ({broker.name}) created with {created} codes[/green]")


@app.command("serve")
def serve(
    port: int = typer.Option(8030, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
):
    """Launch the web API (health, websocket events, start/stop)."""
    import uvicorn

    console.print(f"[bold cyan]Starting listing transfer at http://{host}:{port}[/bold cyan]")
    uvicorn.run("listing_transfer.app:app", host=host, port=port)


if __name__ == "__main__":
    app()
