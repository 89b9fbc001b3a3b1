"""Shopify Admin API client for creating products."""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from ..config import SyncConfig
from ..models import CreateResult, Product, RowErrorKind
from .base import APIError, BaseClient, TransportError


logger = logging.getLogger(__name__)


def compact_json(body: Any) -> str:
    """Serialize a response body without whitespace."""
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


class ShopifyClient(BaseClient):
    """HTTP client for the Shopify products endpoint."""

    def __init__(
        self,
        products_url: str,
        access_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        super().__init__(access_token, timeout=timeout, transport=transport)
        self.products_url = products_url

    @classmethod
    def from_config(cls, config: SyncConfig, transport: Optional[httpx.BaseTransport] = None) -> "ShopifyClient":
        """Build a client from application settings."""
        return cls(
            config.products_url,
            config.access_token,
            timeout=config.request_timeout,
            transport=transport
        )

    def _create(self, product: Product) -> Dict[str, Any]:
        """Create a product and return the product object from the response."""
        response = self.post_json(self.products_url, product.to_payload())
        body = self.decode_json(response)

        created = body.get("product") if isinstance(body, dict) else None
        if not response.is_success or not isinstance(created, dict) or "id" not in created:
            raise APIError(response.status_code, compact_json(body))

        return created

    def create_product(self, product: Product) -> CreateResult:
        """Create a product, returning a structured result instead of raising."""
        try:
            created = self._create(product)
        except APIError as e:
            return CreateResult(
                success=False,
                error=str(e),
                kind=RowErrorKind.REMOTE,
                status_code=e.status_code
            )
        except TransportError as e:
            return CreateResult(success=False, error=str(e), kind=RowErrorKind.TRANSPORT)

        logger.debug("Created product %s (%s)", created["id"], product.title)
        return CreateResult(success=True, id=str(created["id"]), data=created)
