"""
Construcción de inputs de descuentos a partir de una fila fusionada.

Resuelve handles, SKUs, segmentos y emails contra la tienda destino y elige
la mutación discount*Create que corresponde a cada combinación de
Method (Code / Automatic) y Type (Amount off / Buy X Get Y / Free Shipping).
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from store_migrator.core.config import get_settings
from store_migrator.db.shopify_clients import ShopifyStoreClient
from store_migrator.utils.error_handler import ValidationException
from store_migrator.utils.sheet_utils import is_empty, to_datetime_iso, to_float, to_int, to_str

from .sheet_parser import (
    build_basic_value,
    build_combines_with,
    build_free_shipping_destination,
    build_minimum_requirement,
    build_purchase_type_flags,
    build_usage_fields,
    normalize_method,
    normalize_type,
    normalize_value_type,
    parse_spend_amount,
    split_values,
    to_money,
)

logger = logging.getLogger(__name__)

BASIC_TYPES = ("Amount off Products", "Amount off Order")

MUTATIONS = {
    ("Code", "Basic"): ("discountCodeBasicCreate", "basicCodeDiscount"),
    ("Code", "Buy X Get Y"): ("discountCodeBxgyCreate", "bxgyCodeDiscount"),
    ("Code", "Free Shipping"): ("discountCodeFreeShippingCreate", "freeShippingCodeDiscount"),
    ("Automatic", "Basic"): ("discountAutomaticBasicCreate", "automaticBasicDiscount"),
    ("Automatic", "Buy X Get Y"): ("discountAutomaticBxgyCreate", "automaticBxgyDiscount"),
    ("Automatic", "Free Shipping"): ("discountAutomaticFreeShippingCreate", "freeShippingAutomaticDiscount"),
}


def looks_like_gid(value: str) -> bool:
    return value.startswith("gid://shopify/")


class DiscountInputBuilder:
    """
    Traduce filas de descuentos a (mutación, input) para la tienda destino.

    Las resoluciones se cachean durante toda la importación: un mismo
    handle o SKU suele repetirse en muchos descuentos.
    """

    def __init__(self, target_client: ShopifyStoreClient):
        self.target_client = target_client
        self.settings = get_settings()
        self._cache: Dict[Tuple[str, str], Optional[str]] = {}

    async def _resolve(self, kind: str, value: str, lookup: Callable[[str], Awaitable[Any]]) -> Optional[str]:
        value = value.strip()
        if not value:
            return None
        if looks_like_gid(value):
            return value

        cache_key = (kind, value.lower())
        if cache_key not in self._cache:
            result = await lookup(value)
            if isinstance(result, dict):
                result = result.get("id")
            self._cache[cache_key] = result
            if not result:
                logger.warning(f"⚠️ Could not resolve {kind} '{value}' in target store")
            await asyncio.sleep(self.settings.LOOKUP_DELAY)
        return self._cache[cache_key]

    async def resolve_product(self, handle: str) -> Optional[str]:
        return await self._resolve("product", handle, self.target_client.products.get_product_id_by_handle)

    async def resolve_collection(self, handle: str) -> Optional[str]:
        return await self._resolve("collection", handle, self.target_client.collections.get_collection_id_by_handle)

    async def resolve_variant(self, sku: str) -> Optional[str]:
        return await self._resolve("variant", sku, self.target_client.products.get_variant_id_by_sku)

    async def resolve_segment(self, name: str) -> Optional[str]:
        return await self._resolve("segment", name, self.target_client.customers.find_segment_id)

    async def resolve_customer(self, email: str) -> Optional[str]:
        return await self._resolve("customer", email, self.target_client.customers.find_customer_by_email)

    async def _resolve_all(self, values: List[str], resolver: Callable[[str], Awaitable[Optional[str]]]) -> List[str]:
        ids = []
        for value in values:
            resolved = await resolver(value)
            if resolved:
                ids.append(resolved)
        return ids

    async def build_context(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Eligibility → context.

        Un segmento que no se resuelve deja el descuento para todos; un
        descuento por cliente sin clientes resueltos no se puede crear.
        """
        kind = to_str(row.get("Eligibility: Customer Type")).lower()
        values = split_values(row.get("Eligibility: Customer Values"))

        if not kind or kind == "all":
            return {"all": "ALL"}

        if "segment" in kind:
            ids = await self._resolve_all(values, self.resolve_segment)
            return {"customerSegments": {"add": ids}} if ids else {"all": "ALL"}

        if "customer" in kind:
            ids = await self._resolve_all(values, self.resolve_customer)
            if not ids:
                raise ValidationException(
                    "No valid customers resolved for Eligibility: Customer Values",
                    field="Eligibility: Customer Values",
                    invalid_value=values,
                )
            return {"customers": {"add": ids}}

        return {"all": "ALL"}

    async def build_items(self, kind: str, values: List[str], label: str, default_all: bool = True) -> Dict[str, Any]:
        """
        Items de un descuento (colecciones, variantes por SKU o productos por handle).

        Raises:
            ValidationException: Hay valores pero ninguno se resolvió
        """
        kind = kind.lower()
        if default_all and (not kind or kind == "all"):
            return {"all": True}

        if "collection" in kind:
            ids = await self._resolve_all(values, self.resolve_collection)
            items = {"collections": {"add": ids}}
        elif "variant" in kind:
            ids = await self._resolve_all(values, self.resolve_variant)
            items = {"products": {"productVariantsToAdd": ids}}
        elif "product" in kind or not default_all:
            ids = await self._resolve_all(values, self.resolve_product)
            items = {"products": {"productsToAdd": ids}}
        else:
            return {"all": True}

        if values and not ids:
            raise ValidationException(f"{label} but none resolved", field=label, invalid_value=values)
        return items

    async def build_bxgy_customer_buys(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """customerBuys: "Spend $X" del Summary como importe, si no cantidad 1."""
        spend_amount = parse_spend_amount(row)
        value = {"amount": spend_amount} if spend_amount else {"quantity": "1"}
        kind = to_str(row.get("Buy X Get Y: Customer Buys Type"))
        values = split_values(row.get("Buy X Get Y: Customer Buys Values"))
        items = await self.build_items(kind, values, f"BXGY customerBuys={kind or 'Products'}", default_all=False)
        return {"items": items, "value": value}

    async def build_bxgy_customer_gets(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        customerGets de un BXGY: items de "Applies To" y efecto sobre la cantidad.

        Raises:
            ValidationException: Sin Applies To: Type o con Value Type no soportado
        """
        kind = to_str(row.get("Applies To: Type"))
        if not kind:
            raise ValidationException(
                "BXGY missing Applies To: Type/Values (needed for customerGets items)", field="Applies To: Type"
            )
        values = split_values(row.get("Applies To: Values"))
        items = await self.build_items(kind, values, f"BXGY customerGets={kind}", default_all=False)

        quantity = to_int(row.get("Buy X Get Y: Customer Gets Quantity")) or 1
        value_type = normalize_value_type(row.get("Value Type"))
        raw_value = row.get("Value")

        if value_type == "Free":
            effect: Dict[str, Any] = {"percentage": 1}
        elif value_type == "Percentage":
            number = to_float(raw_value)
            if number is None:
                raise ValidationException(
                    f"BXGY Value Type=Percentage but Value is invalid: {raw_value}",
                    field="Value",
                    invalid_value=raw_value,
                )
            number = abs(number)
            effect = {"percentage": number / 100 if number > 1 else number}
        elif value_type in ("Amount Off Each", "Fixed Amount"):
            amount = to_money(raw_value)
            if not amount:
                raise ValidationException(
                    f"BXGY Value Type={value_type} but Value is invalid: {raw_value}",
                    field="Value",
                    invalid_value=raw_value,
                )
            effect = {"amount": amount.lstrip("-")}
        else:
            raise ValidationException(
                f'BXGY unsupported Value Type="{row.get("Value Type")}". Use Percentage / Amount Off Each / Free',
                field="Value Type",
                invalid_value=row.get("Value Type"),
            )

        return {"items": items, "value": {"discountOnQuantity": {"quantity": str(quantity), "effect": effect}}}

    async def build(self, row: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """
        Construye la mutación y su input para una fila fusionada.

        Returns:
            Tuple[str, Dict]: (nombre de la mutación, {variable: input})

        Raises:
            ValidationException: Method/Type no soportado o faltan campos obligatorios
        """
        method = normalize_method(row.get("Method"))
        discount_type = normalize_type(row.get("Type"))
        if not method:
            raise ValidationException(f'Invalid Method="{row.get("Method")}"', field="Method")
        if not discount_type:
            raise ValidationException(f'Invalid Type="{row.get("Type")}"', field="Type")
        if discount_type == "App":
            raise ValidationException("Sheet Type=App not supported by this mapping", field="Type")

        family = "Basic" if discount_type in BASIC_TYPES else discount_type
        if (method, family) not in MUTATIONS:
            raise ValidationException(
                f'Unsupported sheet Type="{row.get("Type")}" for Method={method}', field="Type"
            )
        mutation_name, variable_name = MUTATIONS[(method, family)]

        title = to_str(row.get("Title"))
        code = to_str(row.get("Code"))
        starts_at = to_datetime_iso(row.get("Starts At"))
        value = build_basic_value(row) if family == "Basic" else None

        missing = [
            name
            for name, present in (
                ("title", title),
                ("code", code or method != "Code"),
                ("startsAt", starts_at),
                ("value", value or family != "Basic"),
            )
            if not present
        ]
        if missing:
            raise ValidationException(
                f"Missing required fields for {method} + {discount_type}: {'/'.join(missing)}", field=missing[0]
            )

        discount_input: Dict[str, Any] = {"title": title}
        if method == "Code":
            discount_input["code"] = code
        discount_input.update(
            {
                "startsAt": starts_at,
                "endsAt": to_datetime_iso(row.get("Ends At")),
                "context": await self.build_context(row),
            }
        )

        purchase_flags = build_purchase_type_flags(row)
        minimum = build_minimum_requirement(row)
        usage = build_usage_fields(row)

        if family == "Basic":
            applies_to = to_str(row.get("Applies To: Type"))
            values = split_values(row.get("Applies To: Values"))
            items = await self.build_items(applies_to, values, f"Applies To={applies_to}")
            discount_input["customerGets"] = {"items": items, "value": value, **purchase_flags}
            if minimum:
                discount_input["minimumRequirement"] = minimum
        elif family == "Buy X Get Y":
            discount_input["customerBuys"] = await self.build_bxgy_customer_buys(row)
            customer_gets = await self.build_bxgy_customer_gets(row)
            if method == "Automatic" and purchase_flags:
                logger.warning(
                    f"⚠️ [{title}] Purchase Type (\"{row.get('Purchase Type')}\") is not supported for "
                    f"automatic BXGY discounts, dropping it"
                )
            elif purchase_flags:
                customer_gets.update(purchase_flags)
            discount_input["customerGets"] = customer_gets
        else:
            discount_input["destination"] = build_free_shipping_destination(row)
            if minimum:
                discount_input["minimumRequirement"] = minimum
            max_shipping_price = to_money(row.get("Free Shipping: Over Amount"))
            if max_shipping_price:
                discount_input["maximumShippingPrice"] = max_shipping_price
            discount_input.update(purchase_flags)

        combines_with = build_combines_with(row)
        if combines_with:
            discount_input["combinesWith"] = combines_with

        discount_input.update(self._usage_for(method, family, usage))
        return mutation_name, {variable_name: discount_input}

    @staticmethod
    def _usage_for(method: str, family: str, usage: Dict[str, Any]) -> Dict[str, Any]:
        """Límites de uso que acepta cada mutación."""
        if method == "Code" and family == "Buy X Get Y":
            allowed = ("usageLimit", "appliesOncePerCustomer", "usesPerOrderLimit", "recurringCycleLimit")
        elif method == "Code":
            allowed = ("usageLimit", "appliesOncePerCustomer", "recurringCycleLimit")
        elif family == "Buy X Get Y":
            allowed = ("usesPerOrderLimit", "recurringCycleLimit")
        else:
            allowed = ("recurringCycleLimit",)
        return {key: usage[key] for key in allowed if key in usage}


def discount_label(row: Dict[str, Any]) -> str:
    code = to_str(row.get("Code"))
    title = to_str(row.get("Title"))
    if code and title and code != title:
        return f"{title} ({code})"
    return code or title or "untitled"


def is_delete_command(row: Dict[str, Any]) -> bool:
    return not is_empty(row.get("Command")) and to_str(row.get("Command")).upper() == "DELETE"
