"""
Shopify GraphQL client for collection operations.

This module handles reading source collections, resolving collections on the
target store, creating custom and smart collections and assigning products.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from store_migrator.db.queries import (
    COLLECTION_ADD_PRODUCTS_MUTATION,
    COLLECTION_BY_HANDLE_QUERY,
    COLLECTION_HANDLES_QUERY,
    COLLECTION_SEARCH_QUERY,
    CREATE_COLLECTION_MUTATION,
    SOURCE_COLLECTIONS_QUERY,
)
from store_migrator.utils.error_handler import ShopifyAPIException

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)


class ShopifyCollectionClient(BaseShopifyGraphQLClient):
    """
    Specialized client for Shopify collection operations.
    """

    def iter_collections(self, page_size: int = 50) -> AsyncIterator[Dict[str, Any]]:
        """Iterate over collections with rules, SEO, metafields and publications."""
        return self._paginate(SOURCE_COLLECTIONS_QUERY, "collections", page_size=page_size, label="collections")

    async def get_collection_handles(self) -> Dict[str, str]:
        """
        Fetch every collection handle of the store.

        Returns:
            Dict: handle -> collection id
        """
        try:
            handles = {}
            async for node in self._paginate(COLLECTION_HANDLES_QUERY, "collections", label="collectionHandles"):
                handles[node.get("handle")] = node.get("id")
            logger.info(f"📊 Loaded {len(handles)} collection handles from {self.label} store")
            return handles

        except Exception as e:
            logger.error(f"Error fetching collection handles: {e}")
            raise ShopifyAPIException(f"Failed to fetch collection handles: {str(e)}") from e

    async def get_collection_by_handle(self, handle: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a collection by its handle.

        Returns:
            Collection dict or None if not found
        """
        try:
            result = await self._execute_query(COLLECTION_BY_HANDLE_QUERY, {"handle": handle}, "collectionByHandle")
            collection = result.get("collectionByHandle")
            if collection:
                logger.debug(f"Found collection by handle '{handle}': {collection.get('title', 'Unknown')}")
            return collection

        except Exception as e:
            logger.error(f"Error fetching collection by handle '{handle}': {e}")
            raise ShopifyAPIException(f"Failed to fetch collection by handle: {str(e)}") from e

    async def get_collection_id_by_handle(self, handle: str) -> Optional[str]:
        """Resolve a collection handle to its GID."""
        result = await self._execute_query(COLLECTION_SEARCH_QUERY, {"query": f"handle:{handle}"}, "collectionSearch")
        for node in (result.get("collections") or {}).get("nodes") or []:
            if node.get("handle") == handle:
                return node.get("id")
        return None

    async def create_collection(self, collection_input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a collection (custom, or smart when the input has a ruleSet).

        Returns:
            Dict: Created collection (id, title, handle)
        """
        result = await self._execute_query(CREATE_COLLECTION_MUTATION, {"input": collection_input}, "collectionCreate")
        payload = result.get("collectionCreate")
        self._handle_user_errors(payload, "collectionCreate")

        collection = payload.get("collection") or {}
        logger.info(f"✅ Created collection {collection.get('handle')} ({collection.get('id')})")
        return collection

    async def add_products(self, collection_id: str, product_ids: List[str]) -> Dict[str, Any]:
        """Add products to a custom collection."""
        variables = {"id": collection_id, "productIds": product_ids}
        result = await self._execute_query(COLLECTION_ADD_PRODUCTS_MUTATION, variables, "collectionAddProducts")
        payload = result.get("collectionAddProducts")
        self._handle_user_errors(payload, "collectionAddProducts")
        return payload.get("collection") or {}
