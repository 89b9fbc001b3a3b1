from __future__ import annotations

import csv
import json
from pathlib import Path
from unittest.mock import MagicMock

import gspread
import httpx
import pytest
from rich.console import Console

from conftest import FIXED_NOW, PRODUCTS_URL
from gspread.utils import ValueRenderOption
from shopify_sheet_sync.clients import ShopifyClient
from shopify_sheet_sync.config import SyncConfig
from shopify_sheet_sync.models import SyncState
from shopify_sheet_sync.sync import run_sync_pass
from shopify_sheet_sync.sources import (
    CSVSheetSource,
    GoogleSheetSource,
    column_index,
    is_empty_row,
    open_source,
    trim_trailing_empty_rows,
)


def _write_csv(path: Path, rows) -> Path:
    with open(path, "w", newline="", encoding="utf-8") as f:
        csv.writer(f).writerows(rows)
    return path


def _read_csv(path: Path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


@pytest.mark.parametrize("letter, index", [("A", 0), ("C", 2), ("K", 10), ("Z", 25), ("AA", 26), ("AZ", 51)])
def test_column_index(letter, index):
    assert column_index(letter) == index


def test_column_index_rejects_garbage():
    with pytest.raises(ValueError):
        column_index("K1")


def test_empty_row_detection():
    assert is_empty_row(["", "  ", None])
    assert not is_empty_row(["", 0])
    assert trim_trailing_empty_rows([["a"], [""], ["b"], ["", ""], []]) == [["a"], [""], ["b"]]


def test_csv_source_reads_strings_and_keeps_leading_zeros(tmp_path):
    path = _write_csv(tmp_path / "products.csv", [
        ["Title", "Barcode", "Price"],
        ["Widget", "012345", "9.90"],
    ])
    source = CSVSheetSource(path, status_column="D")

    assert source.read_all() == [["Title", "Barcode", "Price"], ["Widget", "012345", "9.90"]]
    assert source.last_data_row() == 2


def test_csv_source_keeps_blank_lines_in_row_numbering(tmp_path):
    path = tmp_path / "products.csv"
    path.write_text("Title,SKU\nA,1\n\nB,2\n", encoding="utf-8")
    source = CSVSheetSource(path, status_column="C")

    rows = source.read_all()

    assert len(rows) == 4
    assert is_empty_row(rows[2])
    assert rows[3] == ["B", "2"]


def test_csv_source_writes_status_into_column(tmp_path):
    path = _write_csv(tmp_path / "products.csv", [
        ["Title", "SKU"],
        ["Widget", "W-1"],
        ["Gadget", "G-1"],
    ])
    source = CSVSheetSource(path, status_column="D")

    source.write_status(3, "Synced: now (ID: 7)")

    assert _read_csv(path) == [
        ["Title", "SKU", "", ""],
        ["Widget", "W-1", "", ""],
        ["Gadget", "G-1", "", "Synced: now (ID: 7)"],
    ]


def test_csv_source_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        CSVSheetSource(tmp_path / "missing.csv").read_all()


def test_csv_source_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")

    assert CSVSheetSource(path).read_all() == []


def test_google_source_uses_worksheet():
    worksheet = MagicMock(spec=gspread.Worksheet)
    worksheet.get_all_values.return_value = [["Title"], ["Widget"], ["", ""]]
    source = GoogleSheetSource(worksheet, status_column="k")

    assert source.read_all() == [["Title"], ["Widget"]]
    worksheet.get_all_values.assert_called_with(value_render_option=ValueRenderOption.unformatted)
    assert source.last_data_row() == 2

    source.write_status(2, "ERROR: nope")
    worksheet.update_acell.assert_called_once_with("K2", "ERROR: nope")


def test_open_source_csv(tmp_path):
    config = SyncConfig(source="csv", csv_path=tmp_path / "in.csv", timestamp_column="m")

    source = open_source(config)

    assert isinstance(source, CSVSheetSource)
    assert source.status_column == "M"
    assert source.status_index == 12


def test_open_source_requires_spreadsheet_id():
    with pytest.raises(ValueError):
        open_source(SyncConfig(source="sheets", spreadsheet_id=None))


def test_google_source_typed_cells_reach_payload():
    worksheet = MagicMock(spec=gspread.Worksheet)
    worksheet.get_all_values.return_value = [
        ["Title", "Published", "Stock", "Price", "Barcode"],
        ["Shirt", True, 1200, 9.99, "012345"],
    ]
    source = GoogleSheetSource(worksheet, status_column="K")
    payloads = []

    def respond(request):
        payloads.append(json.loads(request.content))
        return httpx.Response(201, json={"product": {"id": 42}})

    client = ShopifyClient(PRODUCTS_URL, "tok", transport=httpx.MockTransport(respond))
    try:
        result = run_sync_pass(
            source, client, SyncState(last_processed_row=1),
            Console(quiet=True), lambda: FIXED_NOW
        )
    finally:
        client.close()

    worksheet.get_all_values.assert_called_with(value_render_option=ValueRenderOption.unformatted)
    assert payloads == [{
        "product": {
            "title": "Shirt",
            "published": True,
            "variants": [{"inventory_quantity": 1200, "price": "9.99", "barcode": "012345"}],
        }
    }]
    assert result.state.last_processed_row == 2
    worksheet.update_acell.assert_called_once_with("K2", "Synced: 2024-03-01 12:30:00 (ID: 42)")
