"""
Shopify GraphQL client for order operations.

Reads source orders and rebuilds them on the target store through draft
orders, then mirrors holds, fulfillments and refunds.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from store_migrator.db.queries import (
    COMPLETE_DRAFT_ORDER_MUTATION,
    CREATE_DRAFT_ORDER_MUTATION,
    CREATE_FULFILLMENT_MUTATION,
    DELETE_DRAFT_ORDER_MUTATION,
    DELETE_ORDER_MUTATION,
    FULFILLMENT_ORDER_HOLD_MUTATION,
    FULFILLMENT_ORDERS_QUERY,
    ORDER_IDS_QUERY,
    ORDER_LINE_ITEMS_QUERY,
    REFUND_CREATE_MUTATION,
    SOURCE_ORDERS_QUERY,
)
from store_migrator.utils.error_handler import ShopifyAPIException

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)


class ShopifyOrderClient(BaseShopifyGraphQLClient):
    """
    Specialized client for Shopify order operations.
    """

    def iter_orders(
        self,
        page_size: int = 10,
        query: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Iterate over orders (oldest first) with everything needed to migrate them.

        Args:
            page_size: Orders per page
            query: Optional Shopify search filter
            limit: Stop after this many orders
        """
        variables = {"query": query} if query else {}
        return self._paginate(
            SOURCE_ORDERS_QUERY, "orders", variables, page_size=page_size, label="orders", limit=limit
        )

    def iter_order_ids(self, page_size: int = 50) -> AsyncIterator[Dict[str, Any]]:
        """Iterate over order ids and names (oldest first)."""
        return self._paginate(ORDER_IDS_QUERY, "orders", page_size=page_size, label="listOrderIds")

    async def create_draft_order(self, draft_input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a draft order.

        Returns:
            Dict: Draft order (id, name)

        Raises:
            ShopifyAPIException: On userErrors or request failure
        """
        result = await self._execute_query(CREATE_DRAFT_ORDER_MUTATION, {"input": draft_input}, "draftOrderCreate")
        payload = result.get("draftOrderCreate")
        self._handle_user_errors(payload, "draftOrderCreate")
        return payload.get("draftOrder") or {}

    async def complete_draft_order(self, draft_order_id: str, payment_pending: bool) -> Dict[str, Any]:
        """
        Complete a draft order, turning it into a real order.

        Args:
            draft_order_id: Draft order GID
            payment_pending: Leave the order payment pending (source not fully paid)

        Returns:
            Dict: Created order (id, name)
        """
        variables = {"id": draft_order_id, "paymentPending": payment_pending}
        result = await self._execute_query(COMPLETE_DRAFT_ORDER_MUTATION, variables, "draftOrderComplete")
        payload = result.get("draftOrderComplete")
        self._handle_user_errors(payload, "draftOrderComplete")

        order = ((payload.get("draftOrder") or {}).get("order")) or {}
        if not order.get("id"):
            raise ShopifyAPIException("draftOrderComplete returned no order", endpoint="draftOrderComplete")
        return order

    async def delete_draft_order(self, draft_order_id: str) -> Optional[str]:
        """Delete a draft order. Returns the deleted id."""
        result = await self._execute_query(
            DELETE_DRAFT_ORDER_MUTATION, {"input": {"id": draft_order_id}}, "draftOrderDelete"
        )
        payload = result.get("draftOrderDelete")
        self._handle_user_errors(payload, "draftOrderDelete")
        return payload.get("deletedId")

    async def get_fulfillment_orders(self, order_id: str) -> List[Dict[str, Any]]:
        """
        Fetch the fulfillment orders of an order with their line items.

        Returns:
            List of fulfillment orders; "lineItems" flattened to a list of nodes
        """
        try:
            result = await self._execute_query(FULFILLMENT_ORDERS_QUERY, {"orderId": order_id}, "fulfillmentOrders")
            order = result.get("order") or {}
            fulfillment_orders = []
            for edge in (order.get("fulfillmentOrders") or {}).get("edges") or []:
                node = dict(edge.get("node") or {})
                node["lineItems"] = [
                    li_edge.get("node") for li_edge in (node.get("lineItems") or {}).get("edges") or []
                ]
                fulfillment_orders.append(node)
            return fulfillment_orders

        except Exception as e:
            logger.error(f"Error fetching fulfillment orders for {order_id}: {e}")
            raise ShopifyAPIException(f"Failed to fetch fulfillment orders: {str(e)}") from e

    async def create_fulfillment(self, fulfillment: Dict[str, Any], message: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a fulfillment covering one or more fulfillment orders.

        Args:
            fulfillment: FulfillmentV2Input
            message: Optional fulfillment message
        """
        variables = {"fulfillment": fulfillment, "message": message}
        result = await self._execute_query(CREATE_FULFILLMENT_MUTATION, variables, "fulfillmentCreateV2")
        payload = result.get("fulfillmentCreateV2")
        self._handle_user_errors(payload, "fulfillmentCreateV2")
        return payload.get("fulfillment") or {}

    async def hold_fulfillment_order(self, fulfillment_order_id: str, hold: Dict[str, Any]) -> Dict[str, Any]:
        """
        Put a fulfillment order on hold.

        Args:
            fulfillment_order_id: Fulfillment order GID
            hold: FulfillmentOrderHoldInput (reason, reasonNotes, notifyMerchant)
        """
        variables = {"id": fulfillment_order_id, "fulfillmentHold": hold}
        result = await self._execute_query(FULFILLMENT_ORDER_HOLD_MUTATION, variables, "fulfillmentOrderHold")
        payload = result.get("fulfillmentOrderHold")
        self._handle_user_errors(payload, "fulfillmentOrderHold")
        return payload.get("fulfillmentOrder") or {}

    async def get_order_line_items(self, order_id: str) -> List[Dict[str, Any]]:
        """Fetch the line items of an order with their refundable quantities."""
        try:
            result = await self._execute_query(ORDER_LINE_ITEMS_QUERY, {"orderId": order_id}, "orderLineItems")
            order = result.get("order") or {}
            return (order.get("lineItems") or {}).get("nodes") or []

        except Exception as e:
            logger.error(f"Error fetching line items for {order_id}: {e}")
            raise ShopifyAPIException(f"Failed to fetch order line items: {str(e)}") from e

    async def create_refund(self, refund_input: Dict[str, Any]) -> Dict[str, Any]:
        """Create a refund (RefundInput)."""
        result = await self._execute_query(REFUND_CREATE_MUTATION, {"input": refund_input}, "refundCreate")
        payload = result.get("refundCreate")
        self._handle_user_errors(payload, "refundCreate")
        return payload.get("refund") or {}

    async def delete_order(self, order_id: str) -> Optional[str]:
        """Delete an order. Returns the deleted id."""
        result = await self._execute_query(DELETE_ORDER_MUTATION, {"orderId": order_id}, "orderDelete")
        payload = result.get("orderDelete")
        self._handle_user_errors(payload, "orderDelete")
        return payload.get("deletedId")
