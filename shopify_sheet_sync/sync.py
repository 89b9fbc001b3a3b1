"""Incremental sync of new sheet rows to Shopify."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from rich.console import Console

from .clients import ShopifyClient
from .config import SyncConfig
from .mapper import MappingError, safe_map_row, unknown_headers
from .models import (
    CreateResult,
    PassResult,
    PassStats,
    Product,
    RowErrorKind,
    RowOutcome,
    SyncState,
)
from .sources import SheetSource, is_empty_row, open_source
from .tracker import JsonStateStore, StateStore, SyncTracker
from .validator import ProductValidationError, validate_product


logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
HEADER_ROW = 1


def success_text(product_id: str, when: datetime) -> str:
    return f"Synced: {when.strftime(TIMESTAMP_FORMAT)} (ID: {product_id})"


def error_text(message: str) -> str:
    return f"ERROR: {message}"


def _error_outcome(row: int, kind: RowErrorKind, message: str) -> RowOutcome:
    return RowOutcome(
        row=row,
        status="error",
        kind=kind,
        message=message,
        status_text=error_text(message)
    )


def process_row(
    headers: Sequence[Any],
    values: Sequence[Any],
    row: int,
    client: ShopifyClient,
    clock: Callable[[], datetime] = datetime.now
) -> RowOutcome:
    """Map, validate and create one row. Every failure becomes an error outcome."""
    try:
        product: Product = safe_map_row(headers, values, row)
        validate_product(product, row)
    except ProductValidationError as e:
        return _error_outcome(row, RowErrorKind.VALIDATION, str(e))
    except MappingError as e:
        return _error_outcome(row, RowErrorKind.MAPPING, str(e))

    try:
        result: CreateResult = client.create_product(product)
    except Exception as e:
        logger.exception("Unexpected error creating product from row %d", row)
        return _error_outcome(row, RowErrorKind.TRANSPORT, str(e) or e.__class__.__name__)

    if not result.success:
        return _error_outcome(row, result.kind or RowErrorKind.REMOTE, result.error or "Unknown error")

    return RowOutcome(
        row=row,
        status="success",
        product_id=result.id,
        message=product.title,
        status_text=success_text(result.id, clock())
    )


def _write_outcome(source: SheetSource, outcome: RowOutcome) -> None:
    try:
        source.write_status(outcome.row, outcome.status_text)
    except Exception:
        logger.exception("Could not write status for row %d", outcome.row)


def run_sync_pass(
    source: SheetSource,
    client: ShopifyClient,
    state: SyncState,
    console: Optional[Console] = None,
    clock: Callable[[], datetime] = datetime.now
) -> PassResult:
    """Run one scan over rows added since the watermark.

    Returns the new state. The watermark in the result covers every row up to
    the table's last row at the start of the pass, whatever the individual
    outcomes were. Reading the table is not guarded: a read failure aborts the
    pass and leaves the state untouched.
    """
    console = console or Console()

    data: List[List[Any]] = source.read_all()
    headers = data[0] if data else []
    current_last_row = len(data)
    last_processed = state.last_processed_row

    if current_last_row <= last_processed:
        logger.info("No new rows to process")
        return PassResult(state=state)

    first_row = max(last_processed, HEADER_ROW) + 1
    stats = PassStats(new_rows=current_last_row - first_row + 1)
    outcomes: List[RowOutcome] = []
    logger.info("Found %d new rows to process", stats.new_rows)

    ignored = unknown_headers(headers)
    if ignored:
        logger.info("Ignoring columns with no product field: %s", ", ".join(ignored))

    for row in range(first_row, current_last_row + 1):
        values = data[row - 1]

        if is_empty_row(values):
            outcome = RowOutcome(row=row, status="skipped")
        else:
            outcome = process_row(headers, values, row, client, clock)
            _write_outcome(source, outcome)

        if outcome.status == "success":
            logger.info("Successfully created product from row %d (Shopify ID: %s)", row, outcome.product_id)
            console.print(f"[green]✓ Row {row}: {outcome.message} (ID: {outcome.product_id})[/green]")
        elif outcome.is_error:
            logger.warning("Failed to create product from row %d: %s", row, outcome.message)
            console.print(f"[red]✗ Row {row}: {outcome.message}[/red]")

        stats.add_outcome(outcome)
        outcomes.append(outcome)

    return PassResult(
        state=SyncState(last_processed_row=current_last_row),
        outcomes=outcomes,
        stats=stats
    )


class SheetSync:
    """Operator entry points: setup, one-shot sync, reset and status."""

    def __init__(
        self,
        source: SheetSource,
        client: ShopifyClient,
        store: StateStore,
        lease_ttl: int = 900,
        console: Optional[Console] = None
    ):
        self.source = source
        self.client = client
        self.console = console or Console()
        self.tracker = SyncTracker(store, source, lease_ttl=lease_ttl)

    @classmethod
    def from_config(
        cls,
        config: SyncConfig,
        csv_path: Optional[Path] = None,
        console: Optional[Console] = None
    ) -> "SheetSync":
        """Wire the configured source, Shopify client and state file."""
        return cls(
            source=open_source(config, csv_path),
            client=ShopifyClient.from_config(config),
            store=JsonStateStore(config.state_file),
            lease_ttl=config.lease_ttl,
            console=console
        )

    def setup(self, check_frequency: int) -> SyncState:
        """Initialize tracking so only rows added from now on are synced."""
        state = self.tracker.initialize()
        logger.info(
            "Setup complete. Run 'shopify-sheet-sync sync' every %d minutes to check for new products.",
            check_frequency
        )
        return state

    def run(self) -> PassResult:
        """Run one guarded pass and persist the advanced watermark."""
        with self.tracker.lease():
            state = self.tracker.load()
            if state is None:
                state = self.tracker.initialize()
                return PassResult(state=state)

            result = run_sync_pass(self.source, self.client, state, self.console)
            if result.state.last_processed_row > state.last_processed_row:
                self.tracker.advance(result.state.last_processed_row)
            return result

    def reset(self) -> SyncState:
        """Ignore existing rows by moving the watermark to the end of the table."""
        return self.tracker.reset()

    def status(self) -> Dict[str, Any]:
        """Watermark, table size and lease information."""
        state = self.tracker.load()
        last_row = self.source.last_data_row()
        watermark = state.last_processed_row if state else None
        pending = max(0, last_row - max(watermark, HEADER_ROW)) if watermark is not None else 0

        return {
            "initialized": state is not None,
            "last_processed_row": watermark,
            "last_data_row": last_row,
            "pending_rows": pending,
            "lease": self.tracker.current_lease(),
        }

    def close(self) -> None:
        self.client.close()
