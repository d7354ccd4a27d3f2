"""
Lectura de la hoja de descuentos de Matrixify.

Un descuento puede ocupar varias filas: la fila con "Top Row" abre el grupo
y las siguientes lo continúan (más clientes, productos o países). Aquí se
fusionan los grupos y se traducen los campos escalares a sus inputs GraphQL.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from store_migrator.utils.error_handler import ValidationException
from store_migrator.utils.sheet_utils import is_empty, to_bool, to_float, to_int, to_str, unique

logger = logging.getLogger(__name__)

LIST_FIELDS = (
    "Eligibility: Customer Values",
    "Applies To: Values",
    "Buy X Get Y: Customer Buys Values",
    "Free Shipping: Country Codes",
)
CONSISTENT_FIELDS = ("Applies To: Type", "Eligibility: Customer Type")

METHODS = {"code": "Code", "automatic": "Automatic"}
TYPES = {
    "amount off products": "Amount off Products",
    "amount off order": "Amount off Order",
    "buy x get y": "Buy X Get Y",
    "free shipping": "Free Shipping",
    "app": "App",
}
VALUE_TYPES = {
    "percentage": "Percentage",
    "fixed amount": "Fixed Amount",
    "amount off each": "Amount Off Each",
    "free": "Free",
}

_SPEND_AMOUNT = re.compile(r"spend\s*\$?\s*(\d+(?:\.\d+)?)", re.IGNORECASE)


def split_values(value: Any) -> List[str]:
    """Lista de valores separados por coma o barra vertical."""
    if is_empty(value):
        return []
    return [part.strip() for part in re.split(r"[,|]", to_str(value)) if part.strip()]


def normalize_method(value: Any) -> Optional[str]:
    return METHODS.get(to_str(value).lower())


def normalize_type(value: Any) -> Optional[str]:
    text = to_str(value)
    return TYPES.get(text.lower(), text or None)


def normalize_value_type(value: Any) -> Optional[str]:
    text = to_str(value)
    return VALUE_TYPES.get(text.lower(), text or None)


def to_money(value: Any) -> Optional[str]:
    """Importe como string decimal, o None si no es numérico."""
    if to_float(value) is None:
        return None
    return to_str(value)


def merge_discount_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Fusiona las filas de cada descuento.

    Los campos vacíos de la fila principal se completan con las filas de
    continuación y los campos de lista se unen sin duplicados. Si un grupo
    mezcla distintos "Applies To: Type" o "Eligibility: Customer Type" se
    marca con "__mergeError".

    Returns:
        List[Dict]: Una fila por descuento, con "__mergedRows" (1-based)
    """
    groups: List[Dict[str, Any]] = []
    for index, row in enumerate(rows, start=1):
        if to_bool(row.get("Top Row")) is True or not groups:
            groups.append({"rows": [row], "indexes": [index]})
        else:
            groups[-1]["rows"].append(row)
            groups[-1]["indexes"].append(index)

    merged = []
    for group in groups:
        base = dict(group["rows"][0])
        for continuation in group["rows"][1:]:
            for column, value in continuation.items():
                if is_empty(base.get(column)) and not is_empty(value):
                    base[column] = value

        for field in LIST_FIELDS:
            values = unique(value for row in group["rows"] for value in split_values(row.get(field)))
            if values:
                base[field] = ", ".join(values)

        for field in CONSISTENT_FIELDS:
            kinds = unique(to_str(row.get(field)) for row in group["rows"] if not is_empty(row.get(field)))
            if len(kinds) > 1:
                base["__mergeError"] = f"{field} differs across merged rows: {kinds}"

        base["__mergedRows"] = ",".join(str(index) for index in group["indexes"])
        merged.append(base)

    return merged


def build_combines_with(row: Dict[str, Any]) -> Optional[Dict[str, bool]]:
    product = to_bool(row.get("Combines with Product Discounts"))
    order = to_bool(row.get("Combines with Order Discounts"))
    shipping = to_bool(row.get("Combines with Shipping Discounts"))
    if product is None and order is None and shipping is None:
        return None
    return {
        "productDiscounts": bool(product),
        "orderDiscounts": bool(order),
        "shippingDiscounts": bool(shipping),
    }


def build_purchase_type_flags(row: Dict[str, Any]) -> Dict[str, bool]:
    """
    Purchase Type → appliesOnOneTimePurchase / appliesOnSubscription.

    Un valor no reconocido aplica a ambos tipos de compra.
    """
    text = re.sub(r"\s+", " ", to_str(row.get("Purchase Type")).lower())
    if not text:
        return {}
    one_time = "one-time" in text or "one time" in text
    subscription = "subscription" in text
    if one_time and not subscription:
        return {"appliesOnOneTimePurchase": True, "appliesOnSubscription": False}
    if subscription and not one_time and "both" not in text:
        return {"appliesOnOneTimePurchase": False, "appliesOnSubscription": True}
    return {"appliesOnOneTimePurchase": True, "appliesOnSubscription": True}


def build_minimum_requirement(row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    requirement = to_str(row.get("Minimum Requirement")).lower()
    if not requirement or requirement == "none":
        return None

    if "amount" in requirement or "subtotal" in requirement:
        amount = to_money(row.get("Minimum Value"))
        return {"subtotal": {"greaterThanOrEqualToSubtotal": amount}} if amount else None

    if "quantity" in requirement:
        quantity = to_int(row.get("Minimum Value"))
        return {"quantity": {"greaterThanOrEqualToQuantity": str(quantity)}} if quantity is not None else None

    return None


def build_usage_fields(row: Dict[str, Any]) -> Dict[str, Any]:
    """Límites de uso; recurringCycleLimit solo para compras con suscripción."""
    usage: Dict[str, Any] = {}
    usage_limit = to_int(row.get("Limit Total Times"))
    if usage_limit and usage_limit > 0:
        usage["usageLimit"] = usage_limit

    once_per_customer = to_bool(row.get("Limit One Use Per Customer"))
    if once_per_customer is not None:
        usage["appliesOncePerCustomer"] = once_per_customer

    uses_per_order = to_int(row.get("Limit Uses Per Order"))
    if uses_per_order and uses_per_order > 0:
        usage["usesPerOrderLimit"] = str(uses_per_order)

    purchase_type = to_str(row.get("Purchase Type")).lower()
    if "subscription" in purchase_type or "both" in purchase_type:
        recurring = to_int(row.get("Purchase Type: Recurring Subscription Limit"))
        if recurring and recurring > 0:
            usage["recurringCycleLimit"] = recurring

    return usage


def build_basic_value(row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Valor de un descuento básico.

    Matrixify exporta porcentajes en puntos (20.00 = 20%) y a veces con
    signo negativo; se usa el valor absoluto.

    Raises:
        ValidationException: Porcentaje mayor a 100
    """
    value_type = normalize_value_type(row.get("Value Type"))
    if value_type == "Percentage":
        points = to_float(row.get("Value"))
        if points is None:
            return None
        points = abs(points)
        if points > 100:
            raise ValidationException(
                f"Invalid percentage value \"{points}\" (must be 0-100 in sheet)", field="Value", invalid_value=points
            )
        return {"percentage": points / 100}

    if value_type == "Fixed Amount":
        amount = to_money(row.get("Value"))
        if not amount:
            return None
        return {"discountAmount": {"amount": amount.lstrip("-"), "appliesOnEachItem": False}}

    return None


def parse_spend_amount(row: Dict[str, Any]) -> Optional[str]:
    """Importe "Spend $X" del Summary de un BXGY."""
    match = _SPEND_AMOUNT.search(to_str(row.get("Summary")))
    return to_money(match.group(1)) if match else None


def build_free_shipping_destination(row: Dict[str, Any]) -> Dict[str, Any]:
    codes = [code.upper() for code in split_values(row.get("Free Shipping: Country Codes"))]
    if not codes:
        return {"all": True}
    return {"countries": {"add": codes}}
