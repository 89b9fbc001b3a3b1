"""Pydantic models for products, sync state and row outcomes."""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class Variant(BaseModel):
    """A purchasable configuration of a product."""

    sku: Optional[str] = None
    barcode: Optional[str] = None
    price: Optional[str] = None
    compare_at_price: Optional[str] = None
    cost: Optional[str] = None
    inventory_quantity: Optional[int] = None
    weight: Optional[float] = None
    weight_unit: Optional[str] = None
    option1: Optional[str] = None
    option2: Optional[str] = None


class ProductOption(BaseModel):
    """Named option group such as Size or Color."""

    name: str
    values: List[str] = Field(default_factory=list)


class ProductImage(BaseModel):
    """Product image referenced by URL."""

    src: str


class Product(BaseModel):
    """Shopify product built from one sheet row."""

    title: Optional[str] = None
    body_html: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    tags: Optional[str] = None
    published: Optional[bool] = None
    options: Optional[List[ProductOption]] = None
    images: Optional[List[ProductImage]] = None
    variants: List[Variant] = Field(default_factory=lambda: [Variant()])

    @property
    def variant(self) -> Variant:
        """The single variant populated from the row."""
        return self.variants[0]

    def to_payload(self) -> Dict[str, Any]:
        """Build the request body for the products endpoint."""
        return {"product": self.model_dump(exclude_none=True)}


class SyncState(BaseModel):
    """Watermark carried into and out of a sync pass."""

    last_processed_row: int = Field(default=0, ge=0)


class RowErrorKind(str, Enum):
    """Failure path for a row that could not be synced."""

    VALIDATION = "validation"
    REMOTE = "remote"
    TRANSPORT = "transport"
    MAPPING = "mapping"


class RowOutcome(BaseModel):
    """Result of attempting to sync one row."""

    row: int
    status: Literal["success", "error", "skipped"]
    kind: Optional[RowErrorKind] = None
    message: Optional[str] = None
    product_id: Optional[str] = None
    status_text: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.status == "error"


class CreateResult(BaseModel):
    """Result of a create-product call."""

    success: bool
    id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    kind: Optional[RowErrorKind] = None
    status_code: Optional[int] = None


class PassStats(BaseModel):
    """Counts for a single sync pass."""

    new_rows: int = 0
    synced: int = 0
    errors: int = 0
    skipped: int = 0

    def add_outcome(self, outcome: RowOutcome) -> None:
        """Add a row outcome to the statistics."""
        if outcome.status == "success":
            self.synced += 1
        elif outcome.status == "error":
            self.errors += 1
        else:
            self.skipped += 1


class PassResult(BaseModel):
    """Everything a sync pass produced."""

    state: SyncState
    outcomes: List[RowOutcome] = Field(default_factory=list)
    stats: PassStats = Field(default_factory=PassStats)

    @property
    def idle(self) -> bool:
        """True when the pass found no new rows."""
        return self.stats.new_rows == 0
