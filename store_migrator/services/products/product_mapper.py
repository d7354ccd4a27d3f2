"""
Construcción de ProductSetInput.

- Desde la hoja: producto agrupado por ProductSheetParser
- Desde la tienda origen: nodo de SOURCE_PRODUCTS_QUERY
"""

import logging
from typing import Any, Dict, List, Optional

from store_migrator.utils.metafield_utils import sanitize_metafields

logger = logging.getLogger(__name__)

# Claves de metafield que Shopify gestiona en el inventory item
BLOCKED_METAFIELD_KEYS = frozenset({"harmonized_system_code", "hs_code", "country_harmonized_system_codes"})


def _nodes(connection: Any) -> List[Dict[str, Any]]:
    """Acepta tanto una conexión {nodes: [...]} como una lista ya aplanada."""
    if isinstance(connection, list):
        return connection
    return (connection or {}).get("nodes") or []


def _drop_empty(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def map_source_metafields(metafields: Any) -> List[Dict[str, str]]:
    """Metafields de origen → MetafieldInput, sin claves bloqueadas ni valores nulos."""
    mapped = []
    for metafield in _nodes(metafields):
        if metafield.get("key") in BLOCKED_METAFIELD_KEYS or metafield.get("value") is None:
            continue
        mapped.append(
            {
                "namespace": metafield.get("namespace"),
                "key": metafield.get("key"),
                "type": metafield.get("type"),
                "value": str(metafield.get("value")),
            }
        )
    return mapped


def build_product_set_input(
    product: Dict[str, Any],
    collection_ids: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Construye el ProductSetInput de un producto agrupado desde la hoja.

    Args:
        product: Producto de ProductSheetParser.parse
        collection_ids: handle de colección destino -> id

    Returns:
        Dict: ProductSetInput
    """
    handle = product["handle"]
    collection_ids = collection_ids or {}

    collections = []
    for collection_handle in product.get("collections") or []:
        collection_id = collection_ids.get(collection_handle)
        if collection_id:
            collections.append(collection_id)
        else:
            logger.warning(f"⚠️ Collection '{collection_handle}' not found in target for product {handle}")

    variants = []
    for variant in product.get("variants") or []:
        variant = dict(variant)
        if variant.get("metafields"):
            variant["metafields"] = sanitize_metafields(variant["metafields"], "VARIANT", f"{handle}:{variant.get('sku')}")
            if not variant["metafields"]:
                variant.pop("metafields")
        variants.append(variant)

    seo = _drop_empty(product.get("seo") or {})
    files = [
        _drop_empty({"contentType": "IMAGE", "originalSource": media["src"], "alt": media.get("alt")})
        for media in product.get("media") or []
    ]

    product_input = {
        "title": product.get("title"),
        "handle": handle,
        "descriptionHtml": product.get("descriptionHtml"),
        "productType": product.get("productType"),
        "vendor": product.get("vendor"),
        "tags": product.get("tags") or None,
        "status": product.get("status"),
        "templateSuffix": product.get("templateSuffix"),
        "giftCard": product.get("giftCard"),
        "category": product.get("category"),
        "seo": seo or None,
        "files": files or None,
        "productOptions": [
            {
                "name": option["name"],
                "position": option["position"],
                "values": [{"name": value} for value in option["values"]],
            }
            for option in product.get("options") or []
        ]
        or None,
        "variants": variants or None,
        "collections": collections or None,
        "metafields": sanitize_metafields(product.get("metafields") or [], "PRODUCT", handle) or None,
    }
    return _drop_empty(product_input)


def build_product_set_input_from_source(product: Dict[str, Any]) -> Dict[str, Any]:
    """
    Construye el ProductSetInput de un producto de la tienda origen.

    Los precios viajan como strings; las imágenes se recrean desde su URL original.
    """
    options = []
    for option in product.get("options") or []:
        options.append(
            {
                "name": option.get("name"),
                "position": option.get("position"),
                "values": [{"name": value} for value in option.get("values") or []],
            }
        )

    variants = []
    for index, variant in enumerate(_nodes(product.get("variants"))):
        variant_input = {
            "sku": variant.get("sku"),
            "barcode": variant.get("barcode"),
            "taxable": variant.get("taxable"),
            "position": variant.get("position") or index + 1,
            "optionValues": [
                {"optionName": selected.get("name"), "name": selected.get("value")}
                for selected in variant.get("selectedOptions") or []
            ],
            "price": str(variant["price"]) if variant.get("price") is not None else None,
            "compareAtPrice": str(variant["compareAtPrice"]) if variant.get("compareAtPrice") is not None else None,
        }
        metafields = map_source_metafields(variant.get("metafields"))
        if metafields:
            variant_input["metafields"] = metafields
        variants.append(_drop_empty(variant_input))

    files = []
    for media in _nodes(product.get("media")):
        if media.get("mediaContentType") != "IMAGE":
            continue
        url = (media.get("originalSource") or {}).get("url")
        if not url:
            continue
        files.append({"originalSource": url, "alt": media.get("alt") or product.get("title"), "contentType": "IMAGE"})

    seo = _drop_empty(product.get("seo") or {})
    product_input = {
        "title": product.get("title"),
        "descriptionHtml": product.get("descriptionHtml"),
        "handle": product.get("handle"),
        "productType": product.get("productType"),
        "vendor": product.get("vendor"),
        "tags": product.get("tags") or None,
        "templateSuffix": product.get("templateSuffix"),
        "status": product.get("status") or "ACTIVE",
        "giftCard": product.get("isGiftCard"),
        "seo": seo or None,
        "metafields": map_source_metafields(product.get("metafields")) or None,
        "productOptions": options or None,
        "variants": variants or None,
        "files": files or None,
    }
    return _drop_empty(product_input)
