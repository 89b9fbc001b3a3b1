"""HTTP clients for the Shopify Admin API."""

from .base import APIError, TransportError
from .shopify import ShopifyClient

__all__ = ["ShopifyClient", "APIError", "TransportError"]
