"""LineItemResolver - variantes de destino para las líneas del pedido origen."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from store_migrator.utils.error_handler import ShopifyAPIException

logger = logging.getLogger(__name__)


def select_variant(
    variants: List[Dict[str, Any]], sku: Optional[str], variant_title: Optional[str]
) -> Tuple[Optional[str], Optional[str]]:
    """
    Elige la variante de destino: SKU, luego título / displayName, luego la primera.

    Returns:
        Tuple: (variant id, método de match) o (None, None)
    """
    if sku:
        for variant in variants:
            if variant.get("sku") == sku:
                return variant.get("id"), "SKU"

    if variant_title:
        for variant in variants:
            if variant.get("title") == variant_title or variant.get("displayName") == variant_title:
                return variant.get("id"), "Title"

    if variants:
        return variants[0].get("id"), "First variant (fallback)"

    return None, None


def _money_amount(price_set: Optional[Dict[str, Any]]) -> str:
    price_set = price_set or {}
    return (
        (price_set.get("presentmentMoney") or {}).get("amount")
        or (price_set.get("shopMoney") or {}).get("amount")
        or "0"
    )


class LineItemResolver:
    """Traduce las líneas del pedido origen a DraftOrderLineItemInput."""

    def __init__(self, product_client):
        """
        Args:
            product_client: ShopifyProductClient de la tienda destino
        """
        self.product_client = product_client
        self.products_cache: Dict[str, Dict[str, Any]] = {}

    async def get_target_product(self, handle: str) -> Optional[Dict[str, Any]]:
        """Producto de destino por handle (cacheado; un fallo de consulta cuenta como no encontrado)."""
        if handle in self.products_cache:
            return self.products_cache[handle]

        try:
            product = await self.product_client.get_product_by_handle(handle)
        except ShopifyAPIException as e:
            logger.debug(f"Product lookup failed for {handle}: {e.message}")
            return None

        if product:
            self.products_cache[handle] = product
        return product

    async def resolve(self, order: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], List[str]]:
        """
        Resuelve todas las líneas del pedido.

        Args:
            order: Pedido origen

        Returns:
            Tuple: (line item inputs, handles/títulos no encontrados)
        """
        line_items: List[Dict[str, Any]] = []
        missing: List[str] = []

        for line_item in (order.get("lineItems") or {}).get("nodes") or []:
            variant = line_item.get("variant") or {}
            handle = (variant.get("product") or {}).get("handle")

            if not handle:
                logger.warning(f"⚠️ Line item missing product: {line_item.get('title')}")
                missing.append(line_item.get("title"))
                continue

            product = await self.get_target_product(handle)
            if not product:
                logger.warning(f"⚠️ Product not found: {handle}")
                missing.append(handle)
                continue

            variant_id, method = select_variant(
                product.get("variants") or [],
                variant.get("sku"),
                variant.get("title") or variant.get("displayName"),
            )
            if not variant_id:
                logger.warning(f"⚠️ No variant found for: {handle}")
                missing.append(handle)
                continue
            if method == "First variant (fallback)":
                logger.warning(f"⚠️ No exact match for {handle}, using first variant")

            price = _money_amount(line_item.get("originalUnitPriceSet"))
            line_input: Dict[str, Any] = {
                "variantId": variant_id,
                "quantity": line_item.get("quantity"),
                "originalUnitPrice": price,
            }
            if line_item.get("customAttributes"):
                line_input["customAttributes"] = [
                    {"key": attr.get("key"), "value": attr.get("value")} for attr in line_item["customAttributes"]
                ]

            line_items.append(line_input)
            logger.info(
                f"✅ Mapped [{method}]: {line_item.get('title')} "
                f"({price} {order.get('currencyCode')}) → {variant_id}"
            )

        return line_items, missing
