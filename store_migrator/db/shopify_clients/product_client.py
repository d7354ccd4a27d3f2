"""
Shopify GraphQL client for product operations.

This module handles reading products from the source store, looking them up
on the target store (by handle, SKU) and upserting them with productSet.
"""

import logging
from typing import Any, AsyncIterator, Dict, Optional

from store_migrator.db.queries import (
    PRODUCT_BY_HANDLE_QUERY,
    PRODUCT_SEARCH_QUERY,
    PRODUCT_SET_MUTATION,
    SOURCE_PRODUCTS_QUERY,
    VARIANT_SEARCH_QUERY,
)
from store_migrator.utils.error_handler import ShopifyAPIException

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)


class ShopifyProductClient(BaseShopifyGraphQLClient):
    """
    Specialized client for Shopify product operations.
    """

    def iter_products(
        self,
        page_size: int = 10,
        query: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Iterate over products with options, variants, media and metafields.

        Args:
            page_size: Products per page
            query: Optional Shopify search filter
            limit: Stop after this many products
        """
        variables = {"query": query} if query else {}
        return self._paginate(
            SOURCE_PRODUCTS_QUERY, "products", variables, page_size=page_size, label="products", limit=limit
        )

    async def get_product_by_handle(self, handle: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a product (with its variants) by handle.

        Args:
            handle: Product handle to fetch

        Returns:
            Product dict (variants flattened to a list) or None if not found
        """
        try:
            result = await self._execute_query(PRODUCT_BY_HANDLE_QUERY, {"handle": handle}, "productByHandle")
            product = result.get("productByHandle")
            if not product:
                logger.debug(f"No product found with handle: {handle}")
                return None

            product = dict(product)
            product["variants"] = (product.get("variants") or {}).get("nodes") or []
            return product

        except Exception as e:
            logger.error(f"Error fetching product by handle '{handle}': {e}")
            raise ShopifyAPIException(f"Failed to fetch product by handle: {str(e)}") from e

    async def get_product_id_by_handle(self, handle: str) -> Optional[str]:
        """Resolve a product handle to its GID."""
        result = await self._execute_query(PRODUCT_SEARCH_QUERY, {"query": f"handle:{handle}"}, "productSearch")
        for node in (result.get("products") or {}).get("nodes") or []:
            if node.get("handle") == handle:
                return node.get("id")
        return None

    async def get_variant_id_by_sku(self, sku: str) -> Optional[str]:
        """Resolve a variant SKU to its GID."""
        result = await self._execute_query(VARIANT_SEARCH_QUERY, {"query": f'sku:"{sku}"'}, "variantSearch")
        nodes = (result.get("productVariants") or {}).get("nodes") or []
        return nodes[0].get("id") if nodes else None

    async def set_product(
        self,
        product_input: Dict[str, Any],
        identifier: Optional[Dict[str, Any]] = None,
        synchronous: bool = True,
    ) -> Dict[str, Any]:
        """
        Create or update a product with productSet.

        Args:
            product_input: ProductSetInput
            identifier: ProductSetIdentifiers (e.g. {"handle": "..."}); None creates
            synchronous: Wait for the operation to finish

        Returns:
            Dict: productSet payload (product, productSetOperation)

        Raises:
            ShopifyAPIException: On userErrors (user_errors keeps their codes)
        """
        variables = {"input": product_input, "synchronous": synchronous}
        if identifier:
            variables["identifier"] = identifier

        result = await self._execute_query(PRODUCT_SET_MUTATION, variables, "productSet")
        payload = result.get("productSet")
        self._handle_user_errors(payload, "productSet")
        return payload
