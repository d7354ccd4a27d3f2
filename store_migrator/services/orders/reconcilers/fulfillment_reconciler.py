"""
FulfillmentReconciler - retenciones y fulfillments del pedido migrado.

Los fulfillment orders de origen y destino se crean de forma independiente,
así que se emparejan por contenido:

- Retenciones: firma del fulfillment order (identificador:cantidad ordenado).
- Fulfillments: cantidades deseadas por SKU y por título de variante,
  repartidas sobre las líneas pendientes de los fulfillment orders destino.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from store_migrator.utils.error_handler import ShopifyAPIException

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def fulfillment_order_signature(fulfillment_order: Dict[str, Any]) -> Optional[str]:
    """
    Firma canónica de un fulfillment order.

    Identificador por línea: SKU, si no título de variante, si no título.
    Suma remainingQuantity por identificador y ordena por identificador.

    Returns:
        str: "id:qty|id:qty" o None si ninguna línea tiene identificador
    """
    quantities: Dict[str, int] = {}
    for fo_line_item in fulfillment_order.get("lineItems") or []:
        line_item = fo_line_item.get("lineItem") or {}
        identifier = _clean(line_item.get("sku")) or _clean(line_item.get("variantTitle")) or _clean(
            line_item.get("title")
        )
        if not identifier:
            continue
        quantities[identifier] = quantities.get(identifier, 0) + (fo_line_item.get("remainingQuantity") or 0)

    if not quantities:
        return None

    return "|".join(f"{identifier}:{quantities[identifier]}" for identifier in sorted(quantities))


def build_desired_quantities(fulfillments: List[Dict[str, Any]]) -> Tuple[Dict[str, int], Dict[str, int]]:
    """
    Cantidades cumplidas en origen, por SKU y por título de variante.

    Args:
        fulfillments: order.fulfillments del pedido origen

    Returns:
        Tuple: (por SKU, por título de variante)
    """
    by_sku: Dict[str, int] = {}
    by_title: Dict[str, int] = {}

    for fulfillment in fulfillments:
        for fulfillment_line in (fulfillment.get("fulfillmentLineItems") or {}).get("nodes") or []:
            quantity = fulfillment_line.get("quantity") or 0
            if not quantity:
                continue

            line_item = fulfillment_line.get("lineItem") or {}
            variant = line_item.get("variant") or {}
            sku = variant.get("sku") or line_item.get("sku")
            title = variant.get("title") or line_item.get("title")

            if sku:
                by_sku[sku] = by_sku.get(sku, 0) + quantity
            if title:
                by_title[title] = by_title.get(title, 0) + quantity

    return by_sku, by_title


def allocate_fulfillment_line_items(
    fulfillment_orders: List[Dict[str, Any]],
    by_sku: Dict[str, int],
    by_title: Dict[str, int],
) -> List[Dict[str, Any]]:
    """
    Reparte las cantidades deseadas sobre las líneas pendientes del destino.

    Modifica by_sku / by_title en sitio (se descuenta lo asignado y se
    elimina la clave al llegar a cero).

    Returns:
        List: lineItemsByFulfillmentOrder para fulfillmentCreateV2
    """
    groups: List[Dict[str, Any]] = []

    for fulfillment_order in fulfillment_orders:
        items: List[Dict[str, Any]] = []

        for fo_line_item in fulfillment_order.get("lineItems") or []:
            remaining = fo_line_item.get("remainingQuantity") or 0
            if remaining <= 0:
                continue

            line_item = fo_line_item.get("lineItem") or {}
            sku = line_item.get("sku")
            title = line_item.get("variantTitle") or line_item.get("title")

            if sku and sku in by_sku:
                bucket, key = by_sku, sku
            elif title and title in by_title:
                bucket, key = by_title, title
            else:
                continue

            desired = bucket[key]
            quantity = min(desired, remaining)
            if quantity <= 0:
                continue

            items.append({"id": fo_line_item.get("id"), "quantity": quantity})
            if desired - quantity > 0:
                bucket[key] = desired - quantity
            else:
                del bucket[key]

            logger.debug(
                f"Match for FO {fulfillment_order.get('id')}: FOLI={fo_line_item.get('id')}, "
                f"qty={quantity}, sku={sku}, variantTitle={title}"
            )

        if items:
            groups.append({"fulfillmentOrderId": fulfillment_order.get("id"), "fulfillmentOrderLineItems": items})

    return groups


class FulfillmentReconciler:
    """Replica retenciones y fulfillments del pedido origen en el pedido destino."""

    def __init__(self, source_orders, target_orders):
        """
        Args:
            source_orders: ShopifyOrderClient de la tienda origen
            target_orders: ShopifyOrderClient de la tienda destino
        """
        self.source_orders = source_orders
        self.target_orders = target_orders

    async def mirror_holds(self, source_order: Dict[str, Any], target_order: Dict[str, Any]) -> int:
        """
        Aplica en destino las retenciones de los fulfillment orders de origen.

        Los errores se registran y no hacen fallar el pedido.

        Returns:
            int: Retenciones aplicadas
        """
        applied = 0
        try:
            source_holds = []
            for fulfillment_order in await self.source_orders.get_fulfillment_orders(source_order["id"]):
                holds = fulfillment_order.get("fulfillmentHolds") or []
                if not holds:
                    continue
                signature = fulfillment_order_signature(fulfillment_order)
                if not signature:
                    continue
                last_hold = holds[-1]
                source_holds.append(
                    {
                        "signature": signature,
                        "reason": last_hold.get("reason") or "OTHER",
                        "reasonNotes": last_hold.get("reasonNotes")
                        or f"Migrated hold from {source_order.get('name')}",
                    }
                )

            if not source_holds:
                logger.info("📌 No holds found on source fulfillment orders")
                return 0

            logger.info(f"📌 Found {len(source_holds)} source fulfillment order(s) with holds")

            # Gana el primer fulfillment order destino con cada firma
            target_by_signature: Dict[str, Dict[str, Any]] = {}
            for fulfillment_order in await self.target_orders.get_fulfillment_orders(target_order["id"]):
                signature = fulfillment_order_signature(fulfillment_order)
                if signature and signature not in target_by_signature:
                    target_by_signature[signature] = fulfillment_order

            for hold in source_holds:
                target_fo = target_by_signature.get(hold["signature"])
                if not target_fo:
                    logger.warning(f"⚠️ No matching target fulfillment order for hold signature: {hold['signature']}")
                    continue

                logger.info(f"⏸️ Applying hold to target FO {target_fo['id']} (reason={hold['reason']})")
                try:
                    await self.target_orders.hold_fulfillment_order(
                        target_fo["id"], {"reason": hold["reason"], "reasonNotes": hold["reasonNotes"]}
                    )
                    applied += 1
                    logger.info("✅ Hold applied on target fulfillment order")
                except ShopifyAPIException as e:
                    logger.error(f"❌ Hold errors: {e.message}")

        except ShopifyAPIException as e:
            logger.error(f"❌ Failed to mirror fulfillment holds: {e.message}")

        return applied

    async def mirror_fulfillments(self, source_order: Dict[str, Any], target_order: Dict[str, Any]) -> int:
        """
        Cumple en destino las cantidades cumplidas en origen.

        Un único fulfillmentCreateV2 cubre todos los fulfillment orders.
        Los errores se registran y no hacen fallar el pedido.

        Returns:
            int: Unidades enviadas a fulfillmentCreateV2 (0 si no hubo fulfillment)
        """
        fulfillments = source_order.get("fulfillments") or []
        if not fulfillments:
            return 0

        logger.info(f"📦 Source has {len(fulfillments)} fulfillment(s); mirroring in target...")
        by_sku, by_title = build_desired_quantities(fulfillments)
        logger.info(f"📊 Desired quantities by SKU: {by_sku} | by variant title: {by_title}")

        try:
            fulfillment_orders = await self.target_orders.get_fulfillment_orders(target_order["id"])
            if not fulfillment_orders:
                logger.warning("⚠️ No fulfillment orders found for target order")
                return 0

            logger.info(f"📋 Found {len(fulfillment_orders)} fulfillment order(s) in target")
            groups = allocate_fulfillment_line_items(fulfillment_orders, by_sku, by_title)
            if not groups:
                logger.warning("⚠️ No fulfillable items found in target for desired quantities")
                return 0

            logger.info(f"🚀 Creating fulfillment with {len(groups)} fulfillment order group(s)...")
            fulfillment = await self.target_orders.create_fulfillment(
                {"notifyCustomer": False, "lineItemsByFulfillmentOrder": groups},
                message=f"Migrated fulfillment for {source_order.get('name')}",
            )
            status = fulfillment.get("displayStatus") or fulfillment.get("status") or "UNKNOWN"
            logger.info(f"✅ Fulfillment created: {status}")

            return sum(item["quantity"] for group in groups for item in group["fulfillmentOrderLineItems"])

        except ShopifyAPIException as e:
            logger.error(f"❌ Failed to fulfill target order: {e.message}")
            return 0
