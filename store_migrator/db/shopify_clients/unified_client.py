"""
Unified Shopify store client that combines all specialized clients.

One ShopifyStoreClient talks to one store. Specialized clients share its
HTTP session and configuration and are reached as attributes
(client.orders, client.products, ...).
"""

import logging
from typing import Optional

from .base_client import BaseShopifyGraphQLClient
from .collection_client import ShopifyCollectionClient
from .company_client import ShopifyCompanyClient
from .content_client import ShopifyContentClient
from .customer_client import ShopifyCustomerClient
from .discount_client import ShopifyDiscountClient
from .file_client import ShopifyFileClient
from .metafield_client import ShopifyMetafieldClient
from .order_client import ShopifyOrderClient
from .product_client import ShopifyProductClient

logger = logging.getLogger(__name__)


class ShopifyStoreClient(BaseShopifyGraphQLClient):
    """
    Unified client for a single Shopify store.

    Keeps the base operations (connection test, locations, publications,
    publishing) and gives access to the specialized clients.
    """

    def __init__(
        self,
        shop_url: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: Optional[str] = None,
        label: str = "store",
    ):
        """Initialize the unified client with all specialized clients."""
        super().__init__(shop_url, access_token, api_version, label)

        args = (shop_url, access_token, api_version, label)
        self.orders = ShopifyOrderClient(*args)
        self.customers = ShopifyCustomerClient(*args)
        self.discounts = ShopifyDiscountClient(*args)
        self.products = ShopifyProductClient(*args)
        self.collections = ShopifyCollectionClient(*args)
        self.content = ShopifyContentClient(*args)
        self.companies = ShopifyCompanyClient(*args)
        self.metafields = ShopifyMetafieldClient(*args)
        self.files = ShopifyFileClient(*args)

    @property
    def specialized_clients(self):
        return [
            self.orders,
            self.customers,
            self.discounts,
            self.products,
            self.collections,
            self.content,
            self.companies,
            self.metafields,
            self.files,
        ]

    async def initialize(self, test_connection: bool = True):
        """
        Initialize the unified client and all specialized clients.
        """
        await super().initialize(test_connection=test_connection)
        self._initialize_specialized_clients()
        logger.info(f"✅ Unified Shopify client ready for {self.label} store")

    def _initialize_specialized_clients(self):
        """Share configuration, session and retry policy with the specialized clients."""
        for client in self.specialized_clients:
            client.settings = self.settings
            client.shop_url = self.shop_url
            client.access_token = self.access_token
            client.api_version = self.api_version
            client.graphql_url = self.graphql_url
            client.rest_base_url = self.rest_base_url
            client.label = self.label

            client.session = self.session
            client.retry_policy = self.retry_policy
            client._last_request_time = self._last_request_time
            client._min_request_interval = self._min_request_interval

    async def close(self):
        """Close the unified client and all specialized clients."""
        # The specialized clients share the same session, so we only need to close once
        await super().close()

        for client in self.specialized_clients:
            client.session = None
