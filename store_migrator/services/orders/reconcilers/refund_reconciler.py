"""
RefundReconciler - reembolsos del pedido origen sobre el pedido destino.

Cada reembolso de origen se convierte en un refundCreate sin transacciones
(sólo líneas, NO_RESTOCK). Las líneas se emparejan con las del pedido
destino por SKU, luego título de variante, luego título de producto, sin
superar la cantidad reembolsable de cada línea destino.
"""

import logging
from typing import Any, Dict, List, Optional

from store_migrator.utils.error_handler import ShopifyAPIException

logger = logging.getLogger(__name__)


def _line_keys(line_item: Dict[str, Any]) -> Dict[str, Optional[str]]:
    variant = line_item.get("variant") or {}
    return {
        "sku": variant.get("sku") or line_item.get("sku"),
        "variant_title": variant.get("title"),
        "title": line_item.get("title"),
    }


def _find_target_line(
    source_line: Dict[str, Any],
    target_lines: List[Dict[str, Any]],
    used: Dict[str, int],
) -> Optional[Dict[str, Any]]:
    source_keys = _line_keys(source_line)

    for key in ("sku", "variant_title", "title"):
        wanted = source_keys[key]
        if not wanted:
            continue
        for target_line in target_lines:
            available = (target_line.get("refundableQuantity") or 0) - used.get(target_line.get("id"), 0)
            if available > 0 and _line_keys(target_line)[key] == wanted:
                return target_line
    return None


def build_refund_line_items(
    refund: Dict[str, Any],
    target_lines: List[Dict[str, Any]],
    used: Dict[str, int],
) -> List[Dict[str, Any]]:
    """
    Traduce las líneas de un reembolso origen a RefundLineItemInput del destino.

    Args:
        refund: Reembolso del pedido origen
        target_lines: Líneas del pedido destino (con refundableQuantity)
        used: Cantidad ya reembolsada por línea destino; se actualiza en sitio

    Returns:
        List[Dict]: [{lineItemId, quantity, restockType}]
    """
    refund_lines: Dict[str, int] = {}

    for refund_line in (refund.get("refundLineItems") or {}).get("nodes") or []:
        pending = refund_line.get("quantity") or 0
        source_line = refund_line.get("lineItem") or {}

        # Una línea origen puede repartirse entre varias líneas destino
        while pending > 0:
            target_line = _find_target_line(source_line, target_lines, used)
            if not target_line:
                logger.warning(
                    f"⚠️ No refundable target line for {source_line.get('sku') or source_line.get('title')} "
                    f"({pending} unit(s) left)"
                )
                break

            line_id = target_line["id"]
            available = (target_line.get("refundableQuantity") or 0) - used.get(line_id, 0)
            quantity = min(pending, available)
            used[line_id] = used.get(line_id, 0) + quantity
            refund_lines[line_id] = refund_lines.get(line_id, 0) + quantity
            pending -= quantity

    return [
        {"lineItemId": line_id, "quantity": quantity, "restockType": "NO_RESTOCK"}
        for line_id, quantity in refund_lines.items()
    ]


class RefundReconciler:
    """Replica los reembolsos de origen en el pedido destino."""

    def __init__(self, target_orders):
        self.target_orders = target_orders

    async def mirror_refunds(self, source_order: Dict[str, Any], target_order: Dict[str, Any]) -> int:
        """
        Crea en destino un reembolso por cada reembolso de origen con líneas emparejadas.

        Los errores se registran y no hacen fallar el pedido.

        Returns:
            int: Reembolsos creados
        """
        refunds = [refund for refund in source_order.get("refunds") or [] if refund]
        if not refunds:
            return 0

        logger.info(f"💸 Source has {len(refunds)} refund(s); mirroring in target...")
        created = 0
        try:
            target_lines = await self.target_orders.get_order_line_items(target_order["id"])
        except ShopifyAPIException as e:
            logger.error(f"❌ Failed to load target line items for refunds: {e.message}")
            return 0

        used: Dict[str, int] = {}
        for refund in refunds:
            # La capacidad sólo se consume si refundCreate tiene éxito
            attempt_used = dict(used)
            refund_lines = build_refund_line_items(refund, target_lines, attempt_used)
            if not refund_lines:
                logger.warning(f"⚠️ Refund {refund.get('id')} has no line items matching the target order")
                continue

            refund_input = {
                "orderId": target_order["id"],
                "note": refund.get("note") or f"Migrated refund from {source_order.get('name')}",
                "notify": False,
                "refundLineItems": refund_lines,
            }
            try:
                result = await self.target_orders.create_refund(refund_input)
                used = attempt_used
                created += 1
                logger.info(f"✅ Refund created: {result.get('id')} ({len(refund_lines)} line(s))")
            except ShopifyAPIException as e:
                logger.error(f"❌ Refund errors: {e.message}")

        return created
