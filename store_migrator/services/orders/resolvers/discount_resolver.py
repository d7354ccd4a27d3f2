"""DiscountCodeResolver - códigos de descuento de los pedidos migrados."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from store_migrator.utils.error_handler import ShopifyAPIException

logger = logging.getLogger(__name__)


def build_basic_code_discount(code: str, value: float, is_percentage: bool) -> Dict[str, Any]:
    """
    Construye el DiscountCodeBasicInput para un código migrado.

    Args:
        code: Código de descuento
        value: Porcentaje (0-100) o importe fijo
        is_percentage: Si el valor es porcentaje

    Returns:
        Dict: Input para discountCodeBasicCreate
    """
    if is_percentage:
        discount_value: Dict[str, Any] = {"percentage": value / 100}
    else:
        discount_value = {"discountAmount": {"amount": value, "appliesOnEachItem": False}}

    return {
        "title": f"Migrated: {code}",
        "code": code,
        "startsAt": datetime.now(timezone.utc).isoformat(),
        "customerSelection": {"all": True},
        "customerGets": {"value": discount_value, "items": {"all": True}},
    }


class DiscountCodeResolver:
    """Mantiene el mapa de códigos de destino y crea los que faltan."""

    def __init__(self, discount_client):
        self.discount_client = discount_client
        self.discounts: Dict[str, str] = {}

    async def load(self) -> Dict[str, str]:
        """
        Carga los códigos de descuento de destino.

        Returns:
            Dict: código en minúsculas -> id del discount node
        """
        discounts: Dict[str, str] = {}
        async for node in self.discount_client.iter_code_discounts(page_size=250):
            codes = ((node.get("codeDiscount") or {}).get("codes") or {}).get("nodes") or []
            code = codes[0].get("code") if codes else None
            if code:
                discounts[code.lower()] = node.get("id")

        self.discounts = discounts
        logger.info(f"✅ Loaded {len(discounts)} target discount codes")
        return discounts

    async def create_code(self, code: str, value: float, is_percentage: bool) -> Optional[str]:
        """Crea un descuento básico. Devuelve el id o None si falla."""
        label = f"{value}%" if is_percentage else f"${value}"
        logger.info(f"🎟️ Creating discount: {code} ({label})")
        try:
            return await self.discount_client.create_discount(
                "discountCodeBasicCreate", build_basic_code_discount(code, value, is_percentage)
            )
        except ShopifyAPIException as e:
            logger.error(f"⚠️ Failed to create discount {code}: {e.message}")
            return None

    async def ensure_order_codes(self, order: Dict[str, Any]) -> List[str]:
        """
        Asegura que los códigos aplicados al pedido existan en destino.

        Returns:
            List[str]: Códigos que existen o se crearon
        """
        applied: List[str] = []
        for application in (order.get("discountApplications") or {}).get("nodes") or []:
            code = (application or {}).get("code")
            if not code:
                continue

            exists = code.lower() in self.discounts
            if not exists:
                value = application.get("value") or {}
                is_percentage = value.get("percentage") is not None
                amount = value["percentage"] if is_percentage else float(value.get("amount") or 0)
                discount_id = await self.create_code(code, amount, is_percentage)
                if discount_id:
                    self.discounts[code.lower()] = discount_id
                    exists = True

            if exists:
                applied.append(code)
                logger.info(f"🎟️ Discount applied: {code}")

        return applied
