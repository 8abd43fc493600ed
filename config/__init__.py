"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    create_catalog_gateway: Build a caller-owned catalog gateway
    try_create_catalog_gateway: Same, returning None when unconfigured
"""

from config.settings import settings, get_settings, Settings
from config.gateway import create_catalog_gateway, try_create_catalog_gateway

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Gateway
    "create_catalog_gateway",
    "try_create_catalog_gateway",
]
