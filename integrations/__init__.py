"""
External integrations.
"""

from integrations.catalog_gateway import CatalogGateway
from integrations.shopify_gateway import ShopifyCatalogGateway

__all__ = [
    "CatalogGateway",
    "ShopifyCatalogGateway",
]
