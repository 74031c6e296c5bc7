"""
Offline Results CLI

Inspect and drive the offline result queue from the terminal.

Usage:
    offline-results status          # Show sync status
    offline-results list            # List queued results
    offline-results submit FILE     # Submit a result, queue it on failure
    offline-results enqueue FILE    # Queue a result without submitting
    offline-results sync            # Retry delivery of queued results now
    offline-results sync --startup  # Run the startup sync (with settle delay)
    offline-results clear --yes     # Drop all queued results
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .exceptions import ResultQueueError
from .logging_setup import configure_logging
from .pipeline import create_pipeline, create_queue
from .trigger import NoticeState, SyncNotice

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="offline-results",
    help="Offline quiz result queue and delivery",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

NOTICE_STYLES = {
    NoticeState.SYNCING: "cyan",
    NoticeState.SUCCESS: "green",
    NoticeState.ERROR: "red",
    NoticeState.IDLE: "dim",
}


def _format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


def _read_payload(path: Path) -> dict[str, Any]:
    if not path.exists():
        console.print(f"[red]File not found: {path}[/]")
        raise typer.Exit(1)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/]")
        raise typer.Exit(1)
    if not isinstance(payload, dict):
        console.print("[red]Result payload must be a JSON object[/]")
        raise typer.Exit(1)
    return payload


def _print_notice(notice: SyncNotice) -> None:
    if notice.state == NoticeState.IDLE:
        return
    style = NOTICE_STYLES[notice.state]
    body = notice.message
    if notice.can_retry:
        body += "\n[dim]Run 'offline-results sync' to retry.[/]"
    console.print(Panel(body, border_style=style))


# =============================================================================
# Queue Commands
# =============================================================================


@app.command()
def status() -> None:
    """Show the sync status summary."""
    current = create_queue().tracker.get()

    table = Table(title="Offline Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Pending", str(current.pending_count))
    table.add_row("Syncing", "yes" if current.is_syncing else "no")
    table.add_row("Last Sync Attempt", _format_time(current.last_sync_attempt_at))
    table.add_row("Last Error", current.last_error or "-")
    console.print(table)


@app.command("list")
def list_results() -> None:
    """List queued results, oldest first."""
    records = create_queue().pending()

    if not records:
        console.print("[green]All results are synced.[/]")
        return

    table = Table(title=f"Queued Results ({len(records)})")
    table.add_column("ID", style="cyan")
    table.add_column("Client Result ID")
    table.add_column("Queued")
    table.add_column("Attempts", justify="right")
    table.add_column("Last Attempt")

    for record in records:
        table.add_row(
            record.id,
            record.client_result_id,
            _format_time(record.created_at),
            str(record.attempts),
            _format_time(record.last_attempt_at),
        )
    console.print(table)


@app.command()
def enqueue(
    payload_file: Annotated[Path, typer.Argument(help="JSON file with the result payload")],
) -> None:
    """Queue a result for later delivery without submitting it."""
    payload = _read_payload(payload_file)

    try:
        local_id = create_queue().enqueue(payload)
    except ResultQueueError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Queued result {local_id}[/]")


@app.command()
def submit(
    payload_file: Annotated[Path, typer.Argument(help="JSON file with the result payload")],
) -> None:
    """Submit a result now; queue it if the endpoint is unreachable."""
    payload = _read_payload(payload_file)
    asyncio.run(_run_submit(payload))


async def _run_submit(payload: dict[str, Any]) -> None:
    async with create_pipeline() as pipeline:
        try:
            outcome = await pipeline.submitter.submit(payload)
        except ResultQueueError as e:
            console.print(f"[red]Result was not delivered and could not be saved: {e}[/]")
            raise typer.Exit(1)

    if outcome.delivered:
        console.print(f"[green]✓ Result {outcome.client_result_id} delivered[/]")
    else:
        console.print(
            f"[yellow]Result {outcome.client_result_id} saved offline "
            f"as {outcome.local_id}; it will be synced later.[/]"
        )


@app.command()
def sync(
    startup: Annotated[
        bool, typer.Option("--startup", help="Use the startup path with its settle delay")
    ] = False,
) -> None:
    """Deliver queued results now."""
    asyncio.run(_run_sync(startup))


async def _run_sync(startup: bool) -> None:
    async with create_pipeline(on_notice=_print_notice) as pipeline:
        if startup:
            result = await pipeline.trigger.trigger_initial_sync()
        else:
            result = await pipeline.trigger.retry_sync()

    if result is None or result.total == 0:
        console.print("[green]No results waiting to be synced.[/]")
        return

    table = Table(title="Sync Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Synced", str(result.synced))
    table.add_row("Failed", str(result.failed))
    table.add_row("Held Back (cool-down)", str(result.skipped))
    table.add_row("Discarded", str(len(result.evicted)))
    table.add_row("Total", str(result.total))
    console.print(table)


@app.command()
def clear(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
) -> None:
    """Drop all queued results and the sync status."""
    queue = create_queue()
    count = len(queue.pending())

    if not yes and not typer.confirm(f"Discard {count} queued results?"):
        raise typer.Abort()

    queue.clear()
    console.print(f"[yellow]Cleared {count} queued results.[/]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
