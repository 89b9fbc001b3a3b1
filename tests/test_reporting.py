from __future__ import annotations

from rich.console import Console

from shopify_sheet_sync.models import PassResult, PassStats, RowErrorKind, RowOutcome, SyncState
from shopify_sheet_sync.reporting import Reporter


def _reporter() -> tuple:
    console = Console(record=True, width=120)
    return Reporter(console), console


def test_idle_pass_summary():
    reporter, console = _reporter()

    reporter.print_summary(PassResult(state=SyncState(last_processed_row=7)))

    assert "No new rows to process (last processed row: 7)" in console.export_text()


def test_summary_lists_errors():
    reporter, console = _reporter()
    outcomes = [
        RowOutcome(row=2, status="success", product_id="1"),
        RowOutcome(row=3, status="error", kind=RowErrorKind.REMOTE, message="API Error (422): {}"),
    ]
    stats = PassStats(new_rows=2)
    for outcome in outcomes:
        stats.add_outcome(outcome)

    reporter.print_summary(PassResult(state=SyncState(last_processed_row=3), outcomes=outcomes, stats=stats))

    text = console.export_text()
    assert "SYNC SUMMARY" in text
    assert "Found 1 errors" in text
    assert "API Error (422)" in text
    assert "remote" in text


def test_status_panel():
    reporter, console = _reporter()

    reporter.print_status({
        "initialized": True,
        "last_processed_row": 4,
        "last_data_row": 6,
        "pending_rows": 2,
        "lease": None,
    })

    text = console.export_text()
    assert "Pending rows: 2" in text
    assert "Lease: free" in text
