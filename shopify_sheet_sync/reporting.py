"""Console reporting for sync passes."""

from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import PassResult


class Reporter:
    """Prints pass summaries and tracking status."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_summary(self, result: PassResult) -> None:
        """Print a summary of one sync pass."""
        if result.idle:
            self.console.print(
                f"[dim]No new rows to process (last processed row: "
                f"{result.state.last_processed_row})[/dim]"
            )
            return

        stats = result.stats
        table = Table(title="SYNC SUMMARY", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Count", justify="right", style="green")

        table.add_row("New Rows", str(stats.new_rows))
        table.add_row("Synced", str(stats.synced))
        table.add_row("Errors", str(stats.errors))
        table.add_row("Skipped (empty)", str(stats.skipped))
        table.add_row("Last Processed Row", str(result.state.last_processed_row))

        self.console.print(table)

        failures = [outcome for outcome in result.outcomes if outcome.is_error]
        if not failures:
            return

        self.console.print(f"\n[red]Found {len(failures)} errors:[/red]")
        error_table = Table(show_header=True, header_style="bold red")
        error_table.add_column("Row", style="yellow", justify="right")
        error_table.add_column("Kind", style="cyan")
        error_table.add_column("Error", style="red")

        for outcome in failures[:10]:
            message = outcome.message or ""
            error_table.add_row(
                str(outcome.row),
                outcome.kind.value if outcome.kind else "",
                message[:80] + "..." if len(message) > 80 else message
            )

        if len(failures) > 10:
            error_table.add_row("...", "...", f"and {len(failures) - 10} more errors")

        self.console.print(error_table)

    def print_status(self, status: Dict[str, Any]) -> None:
        """Print tracking status."""
        lease = status.get("lease")
        lease_text = f"held by {lease.get('owner')}" if lease else "free"
        watermark = status["last_processed_row"]

        panel = Panel.fit(
            f"[bold]Tracking[/bold]\n\n"
            f"Initialized: {'yes' if status['initialized'] else 'no'}\n"
            f"Last processed row: {watermark if watermark is not None else '-'}\n"
            f"Last data row: {status['last_data_row']}\n"
            f"Pending rows: {status['pending_rows']}\n"
            f"Lease: {lease_text}",
            title="Sync Status",
            border_style="blue"
        )
        self.console.print(panel)
