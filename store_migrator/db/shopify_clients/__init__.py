"""
Shopify GraphQL clients organized by responsibility.

This module contains specialized GraphQL clients for different Shopify resources,
following the single responsibility principle, plus the unified store client.
"""

from .base_client import BaseShopifyGraphQLClient
from .collection_client import ShopifyCollectionClient
from .company_client import ShopifyCompanyClient
from .content_client import ShopifyContentClient
from .customer_client import ShopifyCustomerClient
from .discount_client import ShopifyDiscountClient
from .factory import create_source_client, create_target_client
from .file_client import ShopifyFileClient
from .metafield_client import ShopifyMetafieldClient
from .order_client import ShopifyOrderClient
from .product_client import ShopifyProductClient
from .unified_client import ShopifyStoreClient

__all__ = [
    "BaseShopifyGraphQLClient",
    "ShopifyCollectionClient",
    "ShopifyCompanyClient",
    "ShopifyContentClient",
    "ShopifyCustomerClient",
    "ShopifyDiscountClient",
    "ShopifyFileClient",
    "ShopifyMetafieldClient",
    "ShopifyOrderClient",
    "ShopifyProductClient",
    "ShopifyStoreClient",
    "create_source_client",
    "create_target_client",
]
