"""Exchange board CLI.

Usage:
    tc-clock board --config configs/base.yaml
    tc-clock board --all --at 2024-03-05T15:00:00Z
    tc-clock watch
    tc-clock exchanges
    tc-clock select tse / tc-clock deselect moex
    tc-clock move 3 0
"""

from __future__ import annotations

import asyncio
import datetime as dt
from pathlib import Path

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from tradeclock.core.clocks import FixedClock, SystemClock, parse_instant, resolve_zone
from tradeclock.core.config import AppConfig, load_config
from tradeclock.core.errors import TradeClockError
from tradeclock.core.logging_utils import get_logger, setup_logging
from tradeclock.data.exchanges import ExchangeStore

app = typer.Typer(name="tc-clock", help="World exchange trading hours board.")
console = Console()
logger = get_logger("cli.clock")

CONFIG_OPTION = typer.Option(Path("configs/base.yaml"), help="Config file")


def _setup(config: Path) -> tuple[AppConfig, ExchangeStore]:
    cfg = load_config(config)
    setup_logging(cfg.log_level, cfg.log_dir)
    try:
        store = ExchangeStore(cfg.exchanges_file, strict=cfg.strict_schedules)
    except TradeClockError as e:
        console.print(f"[bold red]✗[/] {e}")
        raise typer.Exit(1)
    for exchange_id, reason in store.load_errors.items():
        console.print(f"[bold yellow]⚠[/] Skipped {exchange_id}: {reason}")
    return cfg, store


def render_board(frame: pd.DataFrame, instant: dt.datetime, cfg: AppConfig) -> Table:
    """Build the rich table for one board snapshot."""
    try:
        local_now = instant.astimezone(resolve_zone(cfg.timezone))
    except TradeClockError:
        local_now = instant
    table = Table(title=f"Exchanges at {local_now:%a %Y-%m-%d %H:%M %Z}")
    table.add_column("", no_wrap=True)
    table.add_column("Exchange", style="cyan")
    table.add_column("City")
    table.add_column("Hours", style="dim")
    table.add_column("Local", justify="right")
    table.add_column("Status")

    for row in frame.itertuples(index=False):
        if row.error:
            status = f"[yellow]⚠ {row.error}[/]"
            local = "--:--"
        else:
            color = cfg.board.open_color if row.is_open else cfg.board.closed_color
            status = f"[{color}]{row.status}[/]"
            local = f"{row.weekday[:3]} {row.local_time}"
        table.add_row("🟢" if row.is_open else "🔴", row.name, row.city, row.hours, local, status)
    return table


@app.command()
def board(
    config: Path = CONFIG_OPTION,
    show_all: bool = typer.Option(False, "--all", help="Include deselected exchanges"),
    at: str | None = typer.Option(None, help="Evaluate at an ISO-8601 instant instead of now"),
):
    """Show which exchanges are open right now."""
    from tradeclock.live.board import board_frame, take_snapshot

    cfg, store = _setup(config)
    try:
        clock = FixedClock(parse_instant(at)) if at else SystemClock()
    except ValueError as e:
        console.print(f"[bold red]✗[/] Invalid --at value: {e}")
        raise typer.Exit(1)

    exchanges, snapshot = take_snapshot(store, clock, selected_only=not (show_all or cfg.board.show_all))
    console.print(render_board(board_frame(exchanges, snapshot), snapshot.instant, cfg))
    if not snapshot.ok:
        console.print(f"[bold yellow]⚠[/] {len(snapshot.failures)} exchange(s) could not be evaluated")


@app.command()
def watch(
    config: Path = CONFIG_OPTION,
    show_all: bool = typer.Option(False, "--all", help="Include deselected exchanges"),
    ticks: int | None = typer.Option(None, help="Stop after this many refreshes"),
):
    """Re-render the board on every minute boundary."""
    from tradeclock.live.board import board_frame, take_snapshot
    from tradeclock.live.ticker import MinuteTicker

    cfg, store = _setup(config)
    selected_only = not (show_all or cfg.board.show_all)

    def refresh(instant: dt.datetime) -> None:
        exchanges, snapshot = take_snapshot(store, selected_only=selected_only, instant=instant)
        console.clear()
        console.print(render_board(board_frame(exchanges, snapshot), snapshot.instant, cfg))

    ticker = MinuteTicker(
        refresh,
        refresh_seconds=cfg.ticker.refresh_seconds,
        align_to_minute=cfg.ticker.align_to_minute,
    )
    try:
        asyncio.run(ticker.run(max_ticks=ticks))
    except KeyboardInterrupt:
        console.print("\n[bold yellow]⚠ Stopped by user[/]")


@app.command()
def exchanges(config: Path = CONFIG_OPTION):
    """List stored exchanges with selection and display order."""
    _, store = _setup(config)

    table = Table(title="Exchanges")
    table.add_column("#", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Schedule", style="dim")
    table.add_column("Selected")

    for i, e in enumerate(store.all_exchanges()):
        table.add_row(str(i), e.id, f"{e.flag} {e.name}", e.schedule.describe(), "✓" if e.is_selected else "")
    console.print(table)


def _set_selected(config: Path, exchange_ids: list[str], selected: bool) -> None:
    _, store = _setup(config)
    for exchange_id in exchange_ids:
        try:
            store.set_selection(exchange_id, selected)
        except KeyError:
            console.print(f"[bold red]✗[/] Unknown exchange: {exchange_id}")
            raise typer.Exit(1)
        console.print(f"[bold green]✓[/] {exchange_id} {'selected' if selected else 'deselected'}")


@app.command()
def select(
    exchange_ids: list[str] = typer.Argument(..., help="Exchange ids"),
    config: Path = CONFIG_OPTION,
):
    """Show exchanges on the board."""
    _set_selected(config, exchange_ids, True)


@app.command()
def deselect(
    exchange_ids: list[str] = typer.Argument(..., help="Exchange ids"),
    config: Path = CONFIG_OPTION,
):
    """Hide exchanges from the board."""
    _set_selected(config, exchange_ids, False)


@app.command()
def move(
    from_index: int = typer.Argument(..., help="Current position (see `exchanges`)"),
    to_index: int = typer.Argument(..., help="New position"),
    config: Path = CONFIG_OPTION,
):
    """Reorder the board by moving one exchange."""
    _, store = _setup(config)
    try:
        ordered = store.move(from_index, to_index)
    except IndexError as e:
        console.print(f"[bold red]✗[/] {e}")
        raise typer.Exit(1)
    console.print(f"[bold green]✓[/] {ordered[to_index].name} moved to position {to_index}")


def main():
    app()


if __name__ == "__main__":
    main()
