"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SHOPIFY
    # ===================
    shopify_store_domain: Optional[str] = Field(
        None,
        description="Store domain, e.g. my-store.myshopify.com"
    )
    shopify_access_token: Optional[str] = Field(
        None,
        description="Admin API access token"
    )
    shopify_api_version: str = Field(
        default="2025-01",
        pattern=r"^\d{4}-\d{2}$",
        description="Admin API version"
    )
    gateway_timeout_seconds: float = Field(
        default=30,
        gt=0,
        le=300,
        description="Timeout for a single catalog gateway request"
    )

    # ===================
    # MARGINS
    # ===================
    default_margin_threshold: float = Field(
        default=5.0,
        ge=0,
        le=1000,
        description="Margin % at or above which an item counts as good"
    )
    display_currency: str = Field(
        default="AUD",
        min_length=3,
        max_length=3,
        description="Currency code used when formatting report prices"
    )

    # ===================
    # BATCHING
    # ===================
    lookup_batch_size: int = Field(
        default=50,
        ge=1,
        le=250,
        description="SKUs per catalog lookup query (query string length limit)"
    )
    progress_batch_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Items per user-visible commit batch"
    )
    write_batch_size: int = Field(
        default=100,
        ge=1,
        le=250,
        description="Max variants or inventory changes per write call"
    )

    # ===================
    # WORKFLOW
    # ===================
    require_stock_mapping: bool = Field(
        default=True,
        description="Stock column must be mapped or set to 'none' before lookup"
    )
    merge_stock_outcomes: bool = Field(
        default=True,
        description="Fold the stock pass of a stock & pricing run into pricing outcomes"
    )
    session_ttl_minutes: int = Field(
        default=60,
        ge=1,
        le=1440,
        description="Minutes an idle workflow session is kept in memory"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def shopify_configured(self) -> bool:
        """Check if the Shopify gateway can be constructed."""
        return bool(self.shopify_store_domain and self.shopify_access_token)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
