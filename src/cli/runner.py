# src/cli/runner.py

"""Headless CLI runner: wraps the price tracker and maps errors to exit codes."""

import logging

from rich.console import Console
from rich.table import Table

from src.config.settings import TrackerConfig
from src.exceptions import FlightTrackerError, ParseYieldedNothing
from src.models.price_snapshot import PriceSnapshot
from src.report.renderer import build_rows
from src.services.price_tracker import CheckResult, PriceTracker
from src.storage.history_store import HistoryStore

logger = logging.getLogger("flight_tracker.cli")

# Stderr console for status messages so stdout stays clean
_err = Console(stderr=True)


def _report_failure(exc: FlightTrackerError) -> int:
    """Log and print a fatal error; always returns exit code 1."""
    logger.error("Flight check failed: %s", exc, exc_info=exc)
    _err.print(f"[red]❌ {type(exc).__name__}: {exc}[/red]")
    if isinstance(exc, ParseYieldedNothing):
        _err.print("[dim]Raw agent report:[/dim]")
        _err.print(exc.raw_message or "<empty>", markup=False)
    return 1


def _print_found(result: CheckResult) -> None:
    _err.print("\n[bold]📊 Found prices:[/bold]")
    for record in result.snapshot.current:
        _err.print(f"   {record.destination}: {record.display_price}")


def _print_table(snapshot: PriceSnapshot) -> None:
    """Render a Rich table of the snapshot to stdout."""
    table = Table(
        title=f"Flight Prices — {snapshot.checked_at:%Y-%m-%d %H:%M}",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Destination", style="bold")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Change", justify="center")

    for idx, row in enumerate(build_rows(snapshot), 1):
        table.add_row(
            str(idx),
            row.record.destination,
            row.record.display_price,
            row.change_cell or "—",
        )

    Console().print(table)


async def run_check(config: TrackerConfig) -> int:
    """Run a full agent check and return an exit code (0=ok, 1=fail)."""
    mode = "Kernel cloud browser" if config.use_cloud_browser else "local browser"
    _err.print(
        f"[bold]🚀 Checking flights:[/bold] {config.route}  "
        f"[dim]{config.travel_dates} · {mode}[/dim]"
    )

    tracker = PriceTracker(config)
    try:
        result = await tracker.check()
    except FlightTrackerError as exc:
        return _report_failure(exc)

    _print_found(result)
    _err.print(
        f"\n[green]✅ Flight check complete "
        f"({result.agent_steps} agent steps)[/green]"
    )
    _err.print(f"[dim]History → {result.history_path}[/dim]")
    _err.print(f"[dim]README  → {result.readme_path}[/dim]")
    _err.print("\n[bold]Next steps:[/bold]")
    _err.print("1. Review the updated README.md")
    _err.print(
        "2. Commit changes: git add . && git commit -m 'Update flight prices'"
    )
    _err.print("3. Push to GitHub: git push")
    return 0


def run_render_only(config: TrackerConfig) -> int:
    """Re-render the README from stored history without the agent."""
    tracker = PriceTracker(config)
    try:
        result = tracker.rerender()
    except FlightTrackerError as exc:
        return _report_failure(exc)

    _err.print(f"[green]✅ README re-rendered → {result.readme_path}[/green]")
    return 0


def run_show_history(config: TrackerConfig) -> int:
    """Print the latest stored prices as a table."""
    store = HistoryStore(config.history_path)
    try:
        snapshot = store.load()
    except FlightTrackerError as exc:
        return _report_failure(exc)

    if snapshot is None or not snapshot.current:
        _err.print("[yellow]No price history yet.[/yellow]")
        return 1

    _print_table(snapshot)
    return 0
