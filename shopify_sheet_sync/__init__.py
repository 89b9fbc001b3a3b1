"""
Google Sheets to Shopify Product Sync

Watches a Google Sheet (or a CSV export of one) for newly appended rows,
maps each row to a Shopify product and creates it through the Admin API.
The outcome of each row is written back to a status column, and a persisted
watermark makes sure every row is attempted exactly once.
"""

__version__ = "1.0.0"
__author__ = "Shopify Sheet Sync"

from .config import SyncConfig
from .mapper import map_row_to_product
from .models import Product, SyncState, Variant
from .sync import SheetSync, run_sync_pass
from .validator import is_valid_product

__all__ = [
    "SyncConfig",
    "Product",
    "Variant",
    "SyncState",
    "SheetSync",
    "map_row_to_product",
    "is_valid_product",
    "run_sync_pass",
]
