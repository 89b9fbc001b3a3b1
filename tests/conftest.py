from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from shopify_sheet_sync.clients import ShopifyClient
from shopify_sheet_sync.sources import SheetSource, trim_trailing_empty_rows
from shopify_sheet_sync.tracker import MemoryStateStore

PRODUCTS_URL = "https://test-store.myshopify.com/admin/api/2023-07/products.json"
FIXED_NOW = datetime(2024, 3, 1, 12, 30, 0)


class MemorySheetSource(SheetSource):
    """In-memory table that records status writes."""

    def __init__(self, rows: List[List[Any]], status_column: str = "K"):
        super().__init__(status_column)
        self.rows = rows
        self.statuses: Dict[int, str] = {}
        self.fail_writes = False

    def read_all(self) -> List[List[Any]]:
        return trim_trailing_empty_rows([list(row) for row in self.rows])

    def write_status(self, row: int, text: str) -> None:
        if self.fail_writes:
            raise RuntimeError("sheet is read-only")
        self.statuses[row] = text


class RecordingHandler:
    """httpx MockTransport handler that returns queued responses."""

    def __init__(self, responder: Optional[Callable[[httpx.Request], httpx.Response]] = None):
        self.requests: List[httpx.Request] = []
        self.responder = responder or self._created
        self._next_id = 1000

    def _created(self, request: httpx.Request) -> httpx.Response:
        self._next_id += 1
        body = json.loads(request.content)
        product = dict(body["product"], id=self._next_id)
        return httpx.Response(201, json={"product": product})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def client(handler: RecordingHandler):
    shopify = ShopifyClient(PRODUCTS_URL, "shpat_test", transport=httpx.MockTransport(handler))
    yield shopify
    shopify.close()


@pytest.fixture
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW
