"""Command-line interface for the pushlog tracker."""
from __future__ import annotations

from typing import Optional

import typer
from rich import print as rprint
from rich.table import Table

from . import server, state
from .aggregates import DAILY_GOAL
from .ledger import JsonFileLedger
from .tracker import HttpLedgerClient, LocalLedgerClient, TrackerView

app = typer.Typer(help="Record pushups and review progress toward the daily goal")

BAR_WIDTH = 30


def _tracker(url: Optional[str]) -> TrackerView:
    client = HttpLedgerClient(url) if url else LocalLedgerClient(JsonFileLedger(state.ledger_path()))
    view = TrackerView(client)
    view.load()
    return view


@app.command("add")
def add_pushups(
    count: int = typer.Argument(..., help="Number of pushups to record"),
    url: Optional[str] = typer.Option(None, "--url", help="Record through a running server instead of the local ledger"),
) -> None:
    """Record a set of pushups for today."""

    if count <= 0:
        raise typer.BadParameter("Count must be a positive integer.")
    view = _tracker(url)
    view.set_input(count)
    if not view.submit():
        typer.echo("Failed to save pushups.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Recorded {count} pushups. Today: {view.today_total} / {DAILY_GOAL}")


@app.command("today")
def show_today(
    url: Optional[str] = typer.Option(None, "--url", help="Read from a running server"),
) -> None:
    """Show today's total against the daily goal."""

    view = _tracker(url)
    percent = round(view.progress * 100, 1)
    typer.echo(f"Today: {view.today_total} / {DAILY_GOAL} ({percent}%)")


@app.command("chart")
def show_chart(
    url: Optional[str] = typer.Option(None, "--url", help="Read from a running server"),
) -> None:
    """Show pushup totals for the last 30 days."""

    series = _tracker(url).last_30_days
    peak = max(day.total for day in series) or 1
    table = Table(title="30 Day Overview")
    table.add_column("Day", style="cyan")
    table.add_column("Pushups", justify="right")
    table.add_column("")
    for day in series:
        bar = "█" * round(day.total / peak * BAR_WIDTH)
        table.add_row(day.label, str(day.total), f"[blue]{bar}[/blue]")
    rprint(table)


@app.command("history")
def show_history(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=0, help="Only show the most recent N entries"),
    url: Optional[str] = typer.Option(None, "--url", help="Read from a running server"),
) -> None:
    """List recorded entries, most recent first."""

    entries = _tracker(url).history
    if not entries:
        typer.echo("No pushups recorded yet. Start your journey!")
        return
    if limit is not None:
        entries = entries[:limit]

    table = Table(title="History")
    table.add_column("Date", style="cyan")
    table.add_column("Time")
    table.add_column("Pushups", justify="right")
    for entry in entries:
        table.add_row(entry.date, entry.time, str(entry.count))
    rprint(table)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind"),
    port: int = typer.Option(server.DEFAULT_PORT, "--port", help="Port to bind"),
) -> None:
    """Run the web dashboard in the foreground."""

    server.main(["--host", host, "--port", str(port)])


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
