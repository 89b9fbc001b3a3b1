from __future__ import annotations

import csv
import json
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from shopify_sheet_sync import cli
from shopify_sheet_sync.clients import ShopifyClient
from shopify_sheet_sync.sync import SheetSync
from shopify_sheet_sync.tracker import JsonStateStore, WATERMARK_KEY

runner = CliRunner()


@pytest.fixture
def env(tmp_path, monkeypatch):
    state_file = tmp_path / "state.json"
    monkeypatch.setenv("SHOPIFY_SYNC_STORE", "test-store.myshopify.com")
    monkeypatch.setenv("SHOPIFY_SYNC_ACCESS_TOKEN", "shpat_test")
    monkeypatch.setenv("SHOPIFY_SYNC_STATE_FILE", str(state_file))
    monkeypatch.setenv("SHOPIFY_SYNC_TIMESTAMP_COLUMN", "D")
    monkeypatch.chdir(tmp_path)
    return state_file


@pytest.fixture
def sheet(tmp_path) -> Path:
    path = tmp_path / "products.csv"
    with open(path, "w", newline="", encoding="utf-8") as f:
        csv.writer(f).writerows([["Title", "SKU", "Price"], ["Old", "O-1", "1.00"]])
    return path


@pytest.fixture
def requests(monkeypatch):
    seen = []

    def respond(request):
        seen.append(json.loads(request.content))
        return httpx.Response(201, json={"product": {"id": 555}})

    original = SheetSync.from_config.__func__

    def from_config(cls, config, csv_path=None, console=None):
        sync = original(cls, config, csv_path=csv_path, console=console)
        sync.client.close()
        sync.client =ShopifyClient(
            config.products_url, config.access_token, transport=httpx.MockTransport(respond)
        )
        return sync

    monkeypatch.setattr(SheetSync, "from_config", classmethod(from_config))
    return seen


def test_setup_then_sync_csv(env, sheet, requests):
    result = runner.invoke(cli.app, ["setup", "--csv", str(sheet)])
    assert result.exit_code == 0, result.output
    assert JsonStateStore(env).get(WATERMARK_KEY) == 2

    with open(sheet, "a", newline="", encoding="utf-8") as f:
        csv.writer(f).writerow(["Widget", "W-1", "9.99"])

    result = runner.invoke(cli.app, ["sync", "--csv", str(sheet)])

    assert result.exit_code == 0, result.output
    assert requests == [{"product": {"title": "Widget", "variants": [{"sku": "W-1", "price": "9.99"}]}}]
    assert JsonStateStore(env).get(WATERMARK_KEY) == 3

    with open(sheet, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[2][3].startswith("Synced: ")
    assert rows[2][3].endswith("(ID: 555)")


def test_reset_and_status(env, sheet, requests):
    JsonStateStore(env).set(WATERMARK_KEY, 1)

    result = runner.invoke(cli.app, ["reset", "--csv", str(sheet)])
    assert result.exit_code == 0, result.output
    assert JsonStateStore(env).get(WATERMARK_KEY) == 2

    result = runner.invoke(cli.app, ["status", "--csv", str(sheet)])
    assert result.exit_code == 0, result.output
    assert "Pending rows: 0" in result.output


def test_sync_requires_token(env, sheet, monkeypatch):
    monkeypatch.setenv("SHOPIFY_SYNC_ACCESS_TOKEN", "")

    result = runner.invoke(cli.app, ["sync", "--csv", str(sheet)])

    assert result.exit_code == 1


def test_sync_reports_held_lease(env, sheet, requests):
    JsonStateStore(env).set("syncLease", {"owner": "other", "expires_at": 9999999999})

    result = runner.invoke(cli.app, ["sync", "--csv", str(sheet)])

    assert result.exit_code == 1
    assert "already in progress" in result.output
