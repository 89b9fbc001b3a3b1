"""Header-driven mapping of sheet rows to Shopify products."""

import math
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

from .models import Product, ProductImage, ProductOption


class MappingError(Exception):
    """Unexpected failure while mapping a row."""
    pass


# Normalized header -> canonical field
HEADER_ALIASES: Dict[str, str] = {
    # Basic product fields
    "title": "title",
    "product name": "title",
    "name": "title",
    "description": "body_html",
    "body": "body_html",
    "body_html": "body_html",
    "vendor": "vendor",
    "brand": "vendor",
    "manufacturer": "vendor",
    "product type": "product_type",
    "type": "product_type",
    "category": "product_type",
    "tags": "tags",
    "keywords": "tags",
    "published": "published",
    "status": "published",
    # Variant fields
    "sku": "sku",
    "product code": "sku",
    "barcode": "barcode",
    "upc": "barcode",
    "ean": "barcode",
    "isbn": "barcode",
    "gtin": "barcode",
    "price": "price",
    "retail price": "price",
    "compare at price": "compare_at_price",
    "compare price": "compare_at_price",
    "msrp": "compare_at_price",
    "cost": "cost",
    "cost price": "cost",
    "inventory": "inventory_quantity",
    "quantity": "inventory_quantity",
    "stock": "inventory_quantity",
    "weight": "weight",
    "weight unit": "weight_unit",
    "option1": "option1",
    "size": "option1",
    "option2": "option2",
    "color": "option2",
    # Images
    "image": "image",
    "image url": "image",
    "product image": "image",
}

PUBLISHED_VALUES = ("true", "yes", "published")

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def normalize_header(header: Any) -> str:
    """Lowercase and trim a header cell for alias lookup."""
    if header is None:
        return ""
    return str(header).lower().strip()


def is_blank(value: Any) -> bool:
    """Whether a cell counts as empty. The number 0 is a real value."""
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def to_text(value: Any) -> str:
    """Render a cell the way the sheet displays it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_int(value: Any) -> int:
    """Parse the leading integer of a cell, 0 when there is none."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return 0 if math.isnan(value) or math.isinf(value) else int(value)
    match = _INT_PREFIX.match(str(value))
    return int(match.group(1)) if match else 0


def parse_float(value: Any) -> float:
    """Parse the leading number of a cell, 0.0 when there is none."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return 0.0 if math.isnan(number) else number
    match = _FLOAT_PREFIX.match(str(value))
    return float(match.group(1)) if match else 0.0


def is_published(value: Any) -> bool:
    """Exact, case-sensitive published check."""
    return value is True or value in PUBLISHED_VALUES


def _set_option1(product: Product, value: Any) -> None:
    text = to_text(value)
    product.variant.option1 = text
    if product.options is None:
        product.options = [ProductOption(name="Size", values=[text])]


def _set_option2(product: Product, value: Any) -> None:
    # Order dependent: when option2 is seen before any option1, the Size group
    # is seeded with a "Default" placeholder and a later option1 column only
    # sets variant.option1, leaving the placeholder in place.
    text = to_text(value)
    product.variant.option2 = text
    if product.options is None:
        product.options = [ProductOption(name="Size", values=["Default"])]
    if len(product.options) < 2:
        product.options.append(ProductOption(name="Color", values=[text]))


def _title_text(value: Any) -> str:
    # A numeric 0 title is kept falsy so the product fails validation
    return to_text(value) if value else ""


def _set_image(product: Product, value: Any) -> None:
    src = to_text(value).strip()
    if src:
        product.images = [ProductImage(src=src)]


def _product_setter(attr: str, convert: Callable[[Any], Any]) -> Callable[[Product, Any], None]:
    def setter(product: Product, value: Any) -> None:
        setattr(product, attr, convert(value))
    return setter


def _variant_setter(attr: str, convert: Callable[[Any], Any]) -> Callable[[Product, Any], None]:
    def setter(product: Product, value: Any) -> None:
        setattr(product.variant, attr, convert(value))
    return setter


FIELD_SETTERS: Dict[str, Callable[[Product, Any], None]] = {
    "title": _product_setter("title", _title_text),
    "body_html": _product_setter("body_html", to_text),
    "vendor": _product_setter("vendor", to_text),
    "product_type": _product_setter("product_type", to_text),
    "tags": _product_setter("tags", to_text),
    "published": _product_setter("published", is_published),
    "sku": _variant_setter("sku", to_text),
    "barcode": _variant_setter("barcode", to_text),
    "price": _variant_setter("price", to_text),
    "compare_at_price": _variant_setter("compare_at_price", to_text),
    "cost": _variant_setter("cost", to_text),
    "inventory_quantity": _variant_setter("inventory_quantity", parse_int),
    "weight": _variant_setter("weight", parse_float),
    "weight_unit": _variant_setter("weight_unit", to_text),
    "option1": _set_option1,
    "option2": _set_option2,
    "image": _set_image,
}


def canonical_field(header: Any) -> Optional[str]:
    """Resolve a header cell to its canonical field, if any."""
    return HEADER_ALIASES.get(normalize_header(header))


def map_row_to_product(headers: Sequence[Any], row: Sequence[Any]) -> Product:
    """Map one data row to a Product using the header row.

    Columns are applied in order, so when two alias columns address the same
    field the later one wins. Unknown headers are ignored.
    """
    product = Product()

    for index, header in enumerate(headers):
        value = row[index] if index < len(row) else None
        if is_blank(value):
            continue

        field = canonical_field(header)
        if field is None:
            continue

        FIELD_SETTERS[field](product, value)

    return product


def safe_map_row(headers: Sequence[Any], row: Sequence[Any], row_number: int) -> Product:
    """Map a row, converting unexpected failures into MappingError."""
    try:
        return map_row_to_product(headers, row)
    except Exception as e:
        raise MappingError(f"Row {row_number}: {e}") from e


def unknown_headers(headers: List[Any]) -> List[str]:
    """Headers that do not map to any product field."""
    return [
        str(header) for header in headers
        if not is_blank(header) and canonical_field(header) is None
    ]
