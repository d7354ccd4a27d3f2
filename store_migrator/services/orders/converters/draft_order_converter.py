"""
Conversión de un pedido origen a DraftOrderInput.

Los nombres de las direcciones salen siempre del pedido; sólo si faltan se
usan los del cliente. El teléfono cae al del cliente de la misma forma.
"""

from typing import Any, Dict, List, Optional

ADDRESS_FIELDS = ("address1", "address2", "city", "province", "country", "zip", "company")


def build_address_input(address: Dict[str, Any], customer: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Construye un MailingAddressInput a partir de una dirección del pedido.

    Args:
        address: billingAddress / shippingAddress del pedido origen
        customer: Cliente del pedido origen (para nombres y teléfono)
    """
    customer = customer or {}
    result = {field: address.get(field) for field in ADDRESS_FIELDS}

    first_name = address.get("firstName")
    last_name = address.get("lastName")
    result["firstName"] = first_name if first_name is not None else (customer.get("firstName") or "")
    result["lastName"] = last_name if last_name is not None else (customer.get("lastName") or "")
    result["phone"] = address.get("phone") or customer.get("phone")
    return result


def build_applied_discount(codes: List[str]) -> Optional[Dict[str, Any]]:
    """Descuento informativo con los códigos aplicados (valor 0)."""
    if not codes:
        return None
    return {
        "description": f"Migrated discount: {', '.join(codes)}",
        "value": 0,
        "valueType": "PERCENTAGE",
    }


def build_draft_order_input(
    order: Dict[str, Any],
    target_customer: Optional[Dict[str, Any]],
    line_items: List[Dict[str, Any]],
    discount_codes: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Construye el DraftOrderInput del pedido a migrar.

    Args:
        order: Pedido origen
        target_customer: {customerId, companyId} en destino
        line_items: Líneas ya resueltas
        discount_codes: Códigos de descuento existentes en destino

    Returns:
        Dict: DraftOrderInput
    """
    draft_input: Dict[str, Any] = {
        "email": order.get("email"),
        "note": order.get("note") or f"Migrated from {order.get('name')}",
        "tags": list(order.get("tags") or []) + ["migrated"],
    }

    if order.get("customAttributes"):
        draft_input["customAttributes"] = [
            {"key": attr.get("key"), "value": attr.get("value")} for attr in order["customAttributes"]
        ]

    # B2B necesita purchasingEntity con la empresa
    if target_customer:
        if target_customer.get("companyId"):
            draft_input["purchasingEntity"] = {
                "customerId": target_customer["customerId"],
                "companyId": target_customer["companyId"],
            }
        else:
            draft_input["customerId"] = target_customer["customerId"]

    draft_input["lineItems"] = line_items

    customer = order.get("customer")
    if order.get("billingAddress"):
        draft_input["billingAddress"] = build_address_input(order["billingAddress"], customer)
    if order.get("shippingAddress"):
        draft_input["shippingAddress"] = build_address_input(order["shippingAddress"], customer)

    shipping_lines = (order.get("shippingLines") or {}).get("nodes") or []
    if shipping_lines:
        shipping_line = shipping_lines[0]
        price_set = shipping_line.get("originalPriceSet") or {}
        draft_input["shippingLine"] = {
            "title": shipping_line.get("title"),
            "price": (price_set.get("presentmentMoney") or {}).get("amount")
            or (price_set.get("shopMoney") or {}).get("amount")
            or "0",
        }

    applied_discount = build_applied_discount(discount_codes or [])
    if applied_discount:
        draft_input["appliedDiscount"] = applied_discount

    return draft_input
