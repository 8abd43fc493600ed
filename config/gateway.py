"""
Catalog gateway construction.

The gateway is built once by the caller (the FastAPI app at startup, or a
script) and passed explicitly into the services that need it.
"""

from typing import Optional
import structlog

from config.settings import Settings
from exceptions import ExternalServiceError
from integrations.catalog_gateway import CatalogGateway
from integrations.shopify_gateway import ShopifyCatalogGateway

logger = structlog.get_logger(__name__)


def create_catalog_gateway(settings: Settings) -> CatalogGateway:
    """
    Build a Shopify catalog gateway from settings.

    Args:
        settings: Application settings

    Returns:
        CatalogGateway: Ready-to-use gateway

    Raises:
        ExternalServiceError: If Shopify credentials are not configured
    """
    if not settings.shopify_configured:
        logger.warning("catalog_gateway_not_configured")
        raise ExternalServiceError(
            "shopify",
            "Shopify store domain and access token must be configured"
        )

    logger.info(
        "creating_catalog_gateway",
        store=settings.shopify_store_domain,
        api_version=settings.shopify_api_version
    )

    return ShopifyCatalogGateway(
        store_domain=settings.shopify_store_domain,
        access_token=settings.shopify_access_token,
        api_version=settings.shopify_api_version,
        timeout=settings.gateway_timeout_seconds,
    )


def try_create_catalog_gateway(settings: Settings) -> Optional[CatalogGateway]:
    """
    Build the gateway if configured, otherwise return None.

    Used at application startup so the API can boot without credentials.
    """
    if not settings.shopify_configured:
        logger.warning("catalog_gateway_skipped", reason="credentials_missing")
        return None
    return create_catalog_gateway(settings)
