"""Minimum-viable product validation."""

from .models import Product


class ProductValidationError(Exception):
    """Product is missing required fields."""

    def __init__(self, row: int):
        self.row = row
        super().__init__(f"Row {row}: Invalid product data (missing required fields)")


def is_valid_product(product: Product) -> bool:
    """A product needs at least a title."""
    return bool(product.title)


def validate_product(product: Product, row: int) -> None:
    """Raise ProductValidationError if the product cannot be created."""
    if not is_valid_product(product):
        raise ProductValidationError(row)
