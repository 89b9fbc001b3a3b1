"""Command line interface for the Sheets to Shopify sync."""

import logging
import time
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from .config import SyncConfig, load_config_from_env
from .reporting import Reporter
from .sync import SheetSync
from .tracker import SyncInProgressError

app = typer.Typer(
    name="shopify-sheet-sync",
    help="Push new Google Sheet rows to Shopify as products",
    rich_markup_mode="rich"
)

console = Console()
logger = logging.getLogger("shopify_sheet_sync")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True
    )


def _load(csv_path: Optional[Path], verbose: bool) -> SyncConfig:
    try:
        config = load_config_from_env()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)

    _configure_logging("DEBUG" if verbose else config.log_level)
    if csv_path and not csv_path.exists():
        raise typer.BadParameter(f"Input file not found: {csv_path}")
    return config


def _build_sync(config: SyncConfig, csv_path: Optional[Path]) -> SheetSync:
    return SheetSync.from_config(config, csv_path=csv_path, console=console)


CSV_OPTION = typer.Option(None, "--csv", help="Use a local CSV export instead of Google Sheets")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


@app.command()
def setup(csv_path: Optional[Path] = CSV_OPTION, verbose: bool = VERBOSE_OPTION):
    """Initialize tracking so only rows added from now on are synced."""
    config = _load(csv_path, verbose)

    try:
        sync = _build_sync(config, csv_path)
        try:
            state = sync.setup(config.check_frequency)
        finally:
            sync.close()
    except Exception as e:
        console.print(f"[red]Setup failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Tracking starts after row {state.last_processed_row}[/green]")
    console.print(
        f"Schedule [bold]shopify-sheet-sync sync[/bold] every {config.check_frequency} minutes, "
        f"for example with cron: [cyan]*/{config.check_frequency} * * * * shopify-sheet-sync sync[/cyan]"
    )


@app.command("sync")
def sync_now(csv_path: Optional[Path] = CSV_OPTION, verbose: bool = VERBOSE_OPTION):
    """Check for new products now and push them to Shopify."""
    config = _load(csv_path, verbose)
    if not config.has_credentials:
        console.print("[red]Error: SHOPIFY_SYNC_ACCESS_TOKEN environment variable required[/red]")
        raise typer.Exit(1)

    try:
        sync = _build_sync(config, csv_path)
        try:
            result = sync.run()
        finally:
            sync.close()
    except SyncInProgressError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Sync pass failed")
        console.print(f"[red]Sync failed: {e}[/red]")
        raise typer.Exit(1)

    Reporter(console).print_summary(result)


@app.command()
def watch(csv_path: Optional[Path] = CSV_OPTION, verbose: bool = VERBOSE_OPTION):
    """Run a sync pass every check interval until interrupted."""
    config = _load(csv_path, verbose)
    if not config.has_credentials:
        console.print("[red]Error: SHOPIFY_SYNC_ACCESS_TOKEN environment variable required[/red]")
        raise typer.Exit(1)

    sync = _build_sync(config, csv_path)
    reporter = Reporter(console)
    interval = config.check_frequency * 60
    console.print(f"[bold cyan]Checking for new products every {config.check_frequency} minutes[/bold cyan]")

    try:
        while True:
            try:
                reporter.print_summary(sync.run())
            except SyncInProgressError as e:
                logger.warning("%s", e)
            except Exception:
                logger.exception("Sync pass failed")
            time.sleep(interval)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped watching[/yellow]")
    finally:
        sync.close()


@app.command()
def reset(csv_path: Optional[Path] = CSV_OPTION, verbose: bool = VERBOSE_OPTION):
    """Reset tracking to the current end of the table (ignore existing rows)."""
    config = _load(csv_path, verbose)

    try:
        sync = _build_sync(config, csv_path)
        try:
            state = sync.reset()
        finally:
            sync.close()
    except Exception as e:
        console.print(f"[red]Reset failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Tracking reset. Will only process rows after row {state.last_processed_row}[/green]")


@app.command()
def status(csv_path: Optional[Path] = CSV_OPTION, verbose: bool = VERBOSE_OPTION):
    """Show the watermark and pending rows."""
    config = _load(csv_path, verbose)

    try:
        sync = _build_sync(config, csv_path)
        try:
            info = sync.status()
        finally:
            sync.close()
    except Exception as e:
        console.print(f"[red]Status failed: {e}[/red]")
        raise typer.Exit(1)

    Reporter(console).print_status(info)


if __name__ == "__main__":
    app()
