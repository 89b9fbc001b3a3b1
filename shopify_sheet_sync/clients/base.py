"""Base HTTP client for the Shopify Admin API."""

import logging
from typing import Any, Dict, Optional

import httpx


logger = logging.getLogger(__name__)


class APIError(Exception):
    """Non-2xx or malformed API response."""

    def __init__(self, status_code: int, body: Any):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API Error ({status_code}): {body}")


class TransportError(Exception):
    """Network or decoding failure during a request."""
    pass


class BaseClient:
    """Synchronous JSON client with token header authentication."""

    def __init__(
        self,
        access_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.access_token = access_token
        self.client = httpx.Client(timeout=httpx.Timeout(timeout), transport=transport)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests."""
        return {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
            "User-Agent": "Shopify-Sheet-Sync/1.0.0"
        }

    def post_json(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        """POST a JSON body once. Transport failures raise TransportError."""
        try:
            response = self.client.post(url, json=payload, headers=self._get_headers())
        except httpx.HTTPError as e:
            logger.warning("POST %s failed: %s", url, e)
            raise TransportError(str(e) or e.__class__.__name__) from e

        logger.debug("POST %s -> %s", url, response.status_code)
        return response

    @staticmethod
    def decode_json(response: httpx.Response) -> Any:
        """Decode a JSON response body."""
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON response ({response.status_code}): {response.text[:200]}"
            ) from e
