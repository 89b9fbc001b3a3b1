"""Configuration settings for the Sheets to Shopify sync."""

import re
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


COLUMN_PATTERN = re.compile(r"^[A-Z]+$")


class SyncConfig(BaseSettings):
    """Application configuration loaded from environment variables."""

    # Shopify store
    store: str = Field(default="your-store.myshopify.com", description="Shopify store domain")
    access_token: str = Field(default="", description="Shopify Admin API access token")
    api_version: str = "2023-07"
    request_timeout: float = Field(default=30.0, gt=0)

    # Polling
    check_frequency: int = Field(default=5, ge=1, description="Minutes between sync passes")

    # Sheet layout
    timestamp_column: str = "K"
    barcode_column: str = "C"

    # Source table
    source: Literal["sheets", "csv"] = "sheets"
    spreadsheet_id: Optional[str] = None
    worksheet: Optional[str] = None
    google_credentials: Optional[Path] = None
    csv_path: Optional[Path] = None

    # Persisted state
    state_file: Path = Field(default_factory=lambda: Path(".cache") / "sync_state.json")
    lease_ttl: int = Field(default=900, ge=1, description="Seconds before a run lease expires")

    log_level: str = "INFO"

    model_config = {
        "env_prefix": "SHOPIFY_SYNC_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("timestamp_column", "barcode_column")
    @classmethod
    def _validate_column(cls, value: str) -> str:
        value = value.strip().upper()
        if not COLUMN_PATTERN.match(value):
            raise ValueError(f"Invalid column letter: {value!r}")
        return value

    @property
    def products_url(self) -> str:
        """Endpoint for creating products."""
        store = re.sub(r"^https?://", "", self.store.strip()).rstrip("/")
        return f"https://{store}/admin/api/{self.api_version}/products.json"

    @property
    def has_credentials(self) -> bool:
        """Check if a Shopify token has been configured."""
        return bool(self.access_token)


def load_config_from_env(**overrides) -> SyncConfig:
    """Load configuration from environment variables and an optional .env file."""
    from dotenv import load_dotenv
    load_dotenv()
    return SyncConfig(**overrides)
