"""
Agrupación de filas de una hoja de productos (Matrixify) en productos.

La hoja trae una fila por variante o imagen. Las filas se agrupan por
Handle; los campos de producto se toman de la primera fila que los tenga,
las imágenes se deduplican por (src, alt, posición) y las opciones se
reconstruyen a partir de Option{n} Name / Option{n} Value.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from store_migrator.utils.metafield_utils import (
    SEO_METAFIELD_KEYS,
    normalize_metafield_value,
    parse_metafield_header,
    parse_variant_metafield_header,
)
from store_migrator.utils.sheet_utils import (
    first_value,
    is_empty,
    sheet_headers,
    split_list,
    to_bool,
    to_float,
    to_int,
    to_optional_str,
    to_str,
)

logger = logging.getLogger(__name__)

_INVENTORY_HEADER = re.compile(r"^Inventory\s+(Available|On Hand):\s*(.+)$", re.IGNORECASE)

BLOCKED_SHEET_METAFIELD_KEYS = frozenset({"harmonized_system_code"})

WEIGHT_UNITS = {
    "g": "GRAMS",
    "gram": "GRAMS",
    "grams": "GRAMS",
    "kg": "KILOGRAMS",
    "kilogram": "KILOGRAMS",
    "kilograms": "KILOGRAMS",
    "lb": "POUNDS",
    "lbs": "POUNDS",
    "pound": "POUNDS",
    "pounds": "POUNDS",
    "oz": "OUNCES",
    "ounce": "OUNCES",
    "ounces": "OUNCES",
}


def normalize_category_id(raw_id: Any) -> Optional[str]:
    """ID de categoría de la hoja → gid://shopify/TaxonomyCategory/..."""
    value = to_str(raw_id)
    if not value:
        return None
    if value.startswith("gid://"):
        return value
    return f"gid://shopify/TaxonomyCategory/{value}"


def normalize_weight_unit(unit: Any) -> Optional[str]:
    """Unidad de peso → WeightUnit (GRAMS, KILOGRAMS, POUNDS, OUNCES) o None."""
    return WEIGHT_UNITS.get(to_str(unit).lower())


def normalize_status(value: Any) -> Optional[str]:
    status = to_str(value).upper()
    if not status:
        return None
    if status == "LIVE":
        return "ACTIVE"
    return status


def normalize_inventory_policy(value: Any) -> Optional[str]:
    policy = to_str(value).upper()
    if not policy:
        return None
    if policy in ("DENIED", "NO"):
        return "DENY"
    if policy in ("ALLOW", "YES"):
        return "CONTINUE"
    return policy


def detect_inventory_columns(headers: List[str]) -> Dict[str, Dict[str, str]]:
    """
    Detecta columnas "Inventory Available: <ubicación>" / "Inventory On Hand: <ubicación>".

    Returns:
        Dict: nombre de ubicación -> {"available": columna, "on_hand": columna}
    """
    columns: Dict[str, Dict[str, str]] = {}
    for header in headers:
        match = _INVENTORY_HEADER.match(str(header))
        if not match:
            continue
        quantity_name = "available" if match.group(1).lower() == "available" else "on_hand"
        columns.setdefault(match.group(2).strip(), {})[quantity_name] = header
    return columns


class ProductSheetParser:
    """Convierte las filas de la hoja en productos agrupados por handle."""

    def __init__(self, location_ids: Optional[Dict[str, str]] = None):
        """
        Args:
            location_ids: Nombre de ubicación destino -> location id
        """
        self.location_ids = location_ids or {}
        self._unknown_locations: set = set()

    def parse(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Agrupa las filas en productos.

        Returns:
            List[Dict]: Productos en el orden de aparición del handle
        """
        inventory_columns = detect_inventory_columns(sheet_headers(rows))
        products: Dict[str, Dict[str, Any]] = {}

        for row in rows:
            handle = to_str(first_value(row, "Handle", "Product: Handle"))
            if not handle:
                continue

            if handle not in products:
                products[handle] = self._new_product(handle, row)
            product = products[handle]

            self._merge_product_fields(product, row)
            self._add_media(product, row)
            selected_options = self._collect_options(product, row)
            variant = self._build_variant(product, row, selected_options, inventory_columns)
            if variant:
                product["variants"].append(variant)

        result = []
        for product in products.values():
            product["options"] = [
                {"name": name, "position": index + 1, "values": values}
                for index, (name, values) in enumerate(product.pop("_option_values").items())
            ]
            product.pop("_media_keys")
            product.pop("_variant_ids")
            product.pop("_option_names")
            result.append(product)
        return result

    def _new_product(self, handle: str, row: Dict[str, Any]) -> Dict[str, Any]:
        category = first_value(row, "Category: ID")
        return {
            "handle": handle,
            "title": None,
            "descriptionHtml": None,
            "productType": None,
            "vendor": None,
            "status": None,
            "seo": {"title": None, "description": None},
            "collections": split_list(row.get("Custom Collections")),
            "tags": split_list(first_value(row, "Tags", "Product: Tags")),
            "templateSuffix": to_optional_str(first_value(row, "Template Suffix", "Product: Template Suffix")),
            "giftCard": to_bool(first_value(row, "Gift Card", "Product: Gift Card")),
            "category": normalize_category_id(category) if category else None,
            "published": None,
            "publishedScope": None,
            "media": [],
            "metafields": [],
            "variants": [],
            "_option_values": {},
            "_media_keys": set(),
            "_variant_ids": set(),
            "_option_names": {},
        }

    def _merge_product_fields(self, product: Dict[str, Any], row: Dict[str, Any]):
        fields = {
            "title": ("Title", "Product: Title"),
            "descriptionHtml": ("Body HTML", "Product: Description HTML"),
            "productType": ("Type", "Product Type", "Product: Type"),
            "vendor": ("Vendor", "Product: Vendor"),
        }
        for field, columns in fields.items():
            if not product[field]:
                product[field] = to_optional_str(first_value(row, *columns))

        if not product["status"]:
            product["status"] = normalize_status(first_value(row, "Status", "Product: Status"))

        seo = product["seo"]
        if not seo["title"]:
            seo["title"] = to_optional_str(first_value(row, "Metafield: title_tag [string]", "SEO: Title"))
        if not seo["description"]:
            seo["description"] = to_optional_str(
                first_value(row, "Metafield: description_tag [string]", "SEO: Description")
            )

        if not is_empty(row.get("Published")):
            product["published"] = to_bool(row.get("Published"))
        if not is_empty(row.get("Published Scope")):
            product["publishedScope"] = to_str(row.get("Published Scope")).lower()

        known = {(metafield["namespace"], metafield["key"]) for metafield in product["metafields"]}
        for column, value in row.items():
            metafield = parse_metafield_header(column)
            if not metafield or is_empty(value):
                continue
            if metafield["key"] in SEO_METAFIELD_KEYS or metafield["key"] in BLOCKED_SHEET_METAFIELD_KEYS:
                continue
            if "metaobject_reference" in (metafield["type"] or ""):
                continue
            if (metafield["namespace"], metafield["key"]) in known:
                continue
            normalized = normalize_metafield_value(metafield["type"], value)
            if normalized is None:
                continue
            product["metafields"].append(
                {
                    "namespace": metafield["namespace"],
                    "key": metafield["key"],
                    "type": metafield["type"],
                    "value": normalized,
                }
            )

    def _add_media(self, product: Dict[str, Any], row: Dict[str, Any]):
        src = to_str(first_value(row, "Image Src", "Image: Src", "Image URL", "Image"))
        if not src:
            return

        alt = to_optional_str(first_value(row, "Image Alt Text", "Image: Alt Text")) or product["title"]
        position = to_str(first_value(row, "Image Position", "Image: Position"))
        key = (src, alt or "", position)
        if key in product["_media_keys"]:
            return
        product["_media_keys"].add(key)
        product["media"].append({"src": src, "alt": alt})

    def _collect_options(self, product: Dict[str, Any], row: Dict[str, Any]) -> List[Dict[str, str]]:
        selected = []
        for index in range(1, 4):
            name = to_str(first_value(row, f"Option{index} Name", f"Variant Option{index} Name"))
            value = to_str(first_value(row, f"Option{index} Value", f"Variant Option{index} Value"))
            # Las exportaciones sólo repiten el nombre de la opción en la primera fila
            if name:
                product["_option_names"][index] = name
            else:
                name = product["_option_names"].get(index, "")
            if not name or not value:
                continue
            selected.append({"name": name, "value": value})
            values = product["_option_values"].setdefault(name, [])
            if value not in values:
                values.append(value)
        return selected

    def _inventory_quantities(
        self, row: Dict[str, Any], inventory_columns: Dict[str, Dict[str, str]]
    ) -> List[Dict[str, Any]]:
        quantities = []
        for location_name, columns in inventory_columns.items():
            location_id = self.location_ids.get(location_name)
            if not location_id:
                if location_name not in self._unknown_locations:
                    self._unknown_locations.add(location_name)
                    logger.warning(f"⚠️ Unknown target location: {location_name}")
                continue

            quantity = None
            quantity_name = None
            if columns.get("on_hand") and not is_empty(row.get(columns["on_hand"])):
                quantity, quantity_name = to_float(row.get(columns["on_hand"])), "on_hand"
            elif columns.get("available") and not is_empty(row.get(columns["available"])):
                quantity, quantity_name = to_float(row.get(columns["available"])), "available"

            if quantity is None or not quantity.is_integer():
                continue
            quantities.append({"locationId": location_id, "name": quantity_name, "quantity": int(quantity)})
        return quantities

    def _build_variant(
        self,
        product: Dict[str, Any],
        row: Dict[str, Any],
        selected_options: List[Dict[str, str]],
        inventory_columns: Dict[str, Dict[str, str]],
    ) -> Optional[Dict[str, Any]]:
        # Un producto "Default Title" sólo puede tener una variante
        is_default_title = (
            len(selected_options) == 1
            and selected_options[0]["name"] == "Title"
            and selected_options[0]["value"] == "Default Title"
        )
        if is_default_title and product["variants"]:
            return None
        if not selected_options:
            return None

        variant_id = to_optional_str(first_value(row, "Variant ID", "Variant: ID"))
        if variant_id:
            if variant_id in product["_variant_ids"]:
                return None
            product["_variant_ids"].add(variant_id)

        sku = to_optional_str(first_value(row, "Variant SKU", "Variant: SKU", "SKU"))
        position = first_value(row, "Variant Position", "Variant: Position", "Position")

        variant: Dict[str, Any] = {
            "optionValues": [{"optionName": option["name"], "name": option["value"]} for option in selected_options],
            "position": to_int(position) or len(product["variants"]) + 1,
        }

        optional_fields = {
            "sku": sku,
            "barcode": to_optional_str(first_value(row, "Variant Barcode", "Variant: Barcode")),
            "price": to_optional_str(first_value(row, "Variant Price", "Variant: Price", "Price")),
            "compareAtPrice": to_optional_str(
                first_value(row, "Variant Compare At Price", "Variant: Compare At Price")
            ),
            "taxable": to_bool(first_value(row, "Variant Taxable", "Variant: Taxable")),
            "inventoryPolicy": normalize_inventory_policy(
                first_value(row, "Variant Inventory Policy", "Variant: Inventory Policy")
            ),
        }
        variant.update({key: value for key, value in optional_fields.items() if value is not None})

        variant_image = to_str(row.get("Variant Image"))
        if variant_image:
            variant["file"] = {"contentType": "IMAGE", "originalSource": variant_image}

        inventory_item: Dict[str, Any] = {"tracked": not is_empty(row.get("Variant Inventory Tracker"))}
        if sku:
            inventory_item["sku"] = sku
        for field, column in (
            ("harmonizedSystemCode", "Variant HS Code"),
            ("countryCodeOfOrigin", "Variant Country of Origin"),
            ("provinceCodeOfOrigin", "Variant Province of Origin"),
        ):
            value = to_optional_str(row.get(column))
            if value:
                inventory_item[field] = value

        requires_shipping = to_bool(first_value(row, "Variant Requires Shipping", "Variant: Requires Shipping"))
        if requires_shipping is not None:
            inventory_item["requiresShipping"] = requires_shipping

        weight = to_float(first_value(row, "Variant Weight", "Weight Value"))
        weight_unit = normalize_weight_unit(first_value(row, "Variant Weight Unit", "Variant: Weight Unit", "Weight Unit"))
        if weight is not None and weight_unit:
            inventory_item["measurement"] = {"weight": {"value": weight, "unit": weight_unit}}
        variant["inventoryItem"] = inventory_item

        quantities = self._inventory_quantities(row, inventory_columns)
        if quantities:
            variant["inventoryQuantities"] = quantities

        metafields = []
        for column, value in row.items():
            metafield = parse_variant_metafield_header(column)
            if not metafield or metafield["key"] in BLOCKED_SHEET_METAFIELD_KEYS:
                continue
            normalized = normalize_metafield_value(metafield["type"], value) if metafield["type"] else None
            if normalized is None:
                continue
            metafields.append(
                {
                    "namespace": metafield["namespace"],
                    "key": metafield["key"],
                    "type": metafield["type"],
                    "value": normalized,
                }
            )
        if metafields:
            variant["metafields"] = metafields

        return variant
