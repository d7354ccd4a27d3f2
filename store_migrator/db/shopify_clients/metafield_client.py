"""
Shopify GraphQL client for metafield definitions and metafield values.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from store_migrator.db.queries import (
    METAFIELD_DEFINITION_CREATE_MUTATION,
    METAFIELD_DEFINITION_DELETE_MUTATION,
    METAFIELD_DEFINITION_LOOKUP_QUERY,
    METAFIELD_DEFINITIONS_QUERY,
    METAFIELDS_SET_MUTATION,
)
from store_migrator.utils.error_handler import ShopifyAPIException

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)


class ShopifyMetafieldClient(BaseShopifyGraphQLClient):
    """
    Specialized client for metafield definitions and metafieldsSet.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._definition_id_cache: Dict[str, Optional[str]] = {}

    def iter_definitions(self, owner_type: str, page_size: int = 250) -> AsyncIterator[Dict[str, Any]]:
        """
        Iterate over metafield definitions of an owner type.

        Args:
            owner_type: MetafieldOwnerType (PRODUCT, PRODUCTVARIANT, COLLECTION, ...)
        """
        return self._paginate(
            METAFIELD_DEFINITIONS_QUERY,
            "metafieldDefinitions",
            {"ownerType": owner_type},
            page_size=page_size,
            label=f"{owner_type}MetafieldDefinitions",
        )

    async def get_definition_types(self, owner_type: str) -> Dict[str, str]:
        """
        Fetch existing definitions of an owner type.

        Returns:
            Dict: "namespace.key" -> type name
        """
        try:
            existing = {}
            async for definition in self.iter_definitions(owner_type):
                key = f"{definition.get('namespace')}.{definition.get('key')}"
                existing[key] = (definition.get("type") or {}).get("name")
            return existing

        except Exception as e:
            logger.error(f"Error fetching {owner_type} metafield definitions: {e}")
            raise ShopifyAPIException(f"Failed to fetch metafield definitions: {str(e)}") from e

    async def get_definition_id(self, owner_type: str, namespace: str, key: str) -> Optional[str]:
        """Resolve a metafield definition id (cached)."""
        cache_key = f"{owner_type}:{namespace}.{key}"
        if cache_key in self._definition_id_cache:
            return self._definition_id_cache[cache_key]

        variables = {"ownerType": owner_type, "namespace": namespace, "key": key}
        result = await self._execute_query(METAFIELD_DEFINITION_LOOKUP_QUERY, variables, "metafieldDefinitionLookup")
        nodes = (result.get("metafieldDefinitions") or {}).get("nodes") or []
        definition_id = nodes[0].get("id") if nodes else None
        self._definition_id_cache[cache_key] = definition_id
        return definition_id

    async def create_definition(self, definition: Dict[str, Any]) -> Dict[str, Any]:
        """Create a metafield definition (MetafieldDefinitionInput)."""
        result = await self._execute_query(
            METAFIELD_DEFINITION_CREATE_MUTATION, {"definition": definition}, "metafieldDefinitionCreate"
        )
        payload = result.get("metafieldDefinitionCreate")
        self._handle_user_errors(payload, "metafieldDefinitionCreate")
        return payload.get("createdDefinition") or {}

    async def delete_definition(self, definition_id: str, delete_values: bool = True) -> Dict[str, Any]:
        """
        Delete a metafield definition.

        Returns:
            Dict: deletedDefinitionId and userErrors (not raised)
        """
        variables = {"id": definition_id, "deleteAllAssociatedMetafields": delete_values}
        result = await self._execute_query(METAFIELD_DEFINITION_DELETE_MUTATION, variables, "metafieldDefinitionDelete")
        payload = result.get("metafieldDefinitionDelete") or {}
        return {
            "deletedDefinitionId": payload.get("deletedDefinitionId"),
            "userErrors": payload.get("userErrors") or [],
        }

    async def set_metafields(self, metafields: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Set metafield values (MetafieldsSetInput with ownerId)."""
        result = await self._execute_query(METAFIELDS_SET_MUTATION, {"metafields": metafields}, "metafieldsSet")
        payload = result.get("metafieldsSet")
        self._handle_user_errors(payload, "metafieldsSet")
        return payload.get("metafields") or []
