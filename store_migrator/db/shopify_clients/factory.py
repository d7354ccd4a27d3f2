"""
Factory functions for source and target store clients.
"""

from store_migrator.core.config import get_settings, validate_required_settings

from .unified_client import ShopifyStoreClient


def create_source_client() -> ShopifyStoreClient:
    """
    Build the client of the source store from settings.

    Raises:
        ConfigurationException: If SOURCE_SHOP / SOURCE_ACCESS_TOKEN are missing
    """
    validate_required_settings("source")
    settings = get_settings()
    return ShopifyStoreClient(
        shop_url=settings.SOURCE_SHOP,
        access_token=settings.SOURCE_ACCESS_TOKEN,
        api_version=settings.SHOPIFY_API_VERSION,
        label="source",
    )


def create_target_client() -> ShopifyStoreClient:
    """
    Build the client of the target store from settings.

    Raises:
        ConfigurationException: If TARGET_SHOP / TARGET_ACCESS_TOKEN are missing
    """
    validate_required_settings("target")
    settings = get_settings()
    return ShopifyStoreClient(
        shop_url=settings.TARGET_SHOP,
        access_token=settings.TARGET_ACCESS_TOKEN,
        api_version=settings.SHOPIFY_API_VERSION,
        label="target",
    )
