"""
Shopify GraphQL client for discount operations.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from store_migrator.db.queries import (
    AUTOMATIC_DISCOUNTS_BY_TITLE_QUERY,
    CODE_DISCOUNT_BY_CODE_QUERY,
    CODE_DISCOUNTS_QUERY,
    DISCOUNT_CREATE_MUTATIONS,
)
from store_migrator.utils.error_handler import ShopifyAPIException

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)


class ShopifyDiscountClient(BaseShopifyGraphQLClient):
    """
    Specialized client for code and automatic discounts.
    """

    def iter_code_discounts(self, page_size: int = 250) -> AsyncIterator[Dict[str, Any]]:
        """Iterate over code discount nodes (basic discounts expose their first code)."""
        return self._paginate(CODE_DISCOUNTS_QUERY, "codeDiscountNodes", page_size=page_size, label="codeDiscounts")

    async def get_code_discount_id(self, code: str) -> Optional[str]:
        """
        Look up a code discount by its code.

        Returns:
            Discount node id or None if the code does not exist
        """
        try:
            result = await self._execute_query(CODE_DISCOUNT_BY_CODE_QUERY, {"code": code}, "codeDiscountNodeByCode")
            node = result.get("codeDiscountNodeByCode")
            return node.get("id") if node else None

        except Exception as e:
            logger.error(f"Error looking up discount code '{code}': {e}")
            raise ShopifyAPIException(f"Failed to look up discount code: {str(e)}") from e

    async def find_automatic_discounts(self, title: str) -> List[Dict[str, Any]]:
        """
        Search automatic discounts by title.

        Returns:
            List of {id, title}; Shopify search is fuzzy, callers compare titles exactly
        """
        query = f'title:"{title}"'
        result = await self._execute_query(AUTOMATIC_DISCOUNTS_BY_TITLE_QUERY, {"query": query}, "automaticDiscounts")
        nodes = (result.get("automaticDiscountNodes") or {}).get("nodes") or []
        return [
            {"id": node.get("id"), "title": (node.get("automaticDiscount") or {}).get("title")} for node in nodes
        ]

    async def create_discount(self, mutation_name: str, discount_input: Dict[str, Any]) -> str:
        """
        Create a discount with one of the discount*Create mutations.

        Args:
            mutation_name: e.g. "discountCodeBasicCreate", "discountAutomaticBxgyCreate"
            discount_input: Mutation input object

        Returns:
            str: Created discount node id

        Raises:
            ShopifyAPIException: On unknown mutation, userErrors or request failure
        """
        if mutation_name not in DISCOUNT_CREATE_MUTATIONS:
            raise ShopifyAPIException(f"Unsupported discount mutation: {mutation_name}", endpoint=mutation_name)

        document, variable_name, node_key = DISCOUNT_CREATE_MUTATIONS[mutation_name]
        result = await self._execute_query(document, {variable_name: discount_input}, mutation_name)
        payload = result.get(mutation_name)
        self._handle_user_errors(payload, mutation_name)

        node = payload.get(node_key) or {}
        if not node.get("id"):
            raise ShopifyAPIException(f"{mutation_name} returned no discount id", endpoint=mutation_name)
        return node["id"]
