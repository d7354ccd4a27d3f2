"""
Agrupación de filas Matrixify de colecciones (Smart Collections / Custom Collections).

Una colección ocupa varias filas con el mismo Handle: una regla por fila en
las inteligentes y un producto por fila en las manuales. Los campos básicos
se toman de la primera fila que los traiga.
"""

import logging
from typing import Any, Dict, List

from store_migrator.utils.metafield_utils import build_metafields_from_row, detect_metafield_columns
from store_migrator.utils.sheet_utils import (
    first_value,
    is_empty,
    normalize_handle,
    sheet_headers,
    to_bool,
    to_int,
    to_optional_str,
    to_str,
)

from .rules import normalize_must_match, normalize_sort_order

logger = logging.getLogger(__name__)

SEO_TITLE_COLUMNS = ("Metafield: title_tag [string]", "SEO: Title")
SEO_DESCRIPTION_COLUMNS = ("Metafield: description_tag [string]", "SEO: Description")

# Campo de la colección -> columnas de la hoja
_BASIC_FIELDS = {
    "title": ("Title",),
    "descriptionHtml": ("Body HTML",),
    "templateSuffix": ("Template Suffix",),
    "publishedScope": ("Published Scope",),
    "imageSrc": ("Image Src",),
    "imageAlt": ("Image Alt Text",),
    "seoTitle": SEO_TITLE_COLUMNS,
    "seoDescription": SEO_DESCRIPTION_COLUMNS,
}


class CollectionSheetParser:
    """Agrupa las filas por Handle y acumula reglas, productos y metafields."""

    def __init__(self, headers: List[str]):
        self.metafield_columns = detect_metafield_columns(headers)

    @classmethod
    def from_rows(cls, rows: List[Dict[str, Any]]) -> "CollectionSheetParser":
        return cls(sheet_headers(rows))

    def _new_collection(self, handle: str) -> Dict[str, Any]:
        collection: Dict[str, Any] = {field: None for field in _BASIC_FIELDS}
        collection.update(
            {
                "handle": handle,
                "sortOrder": None,
                "published": None,
                "appliedDisjunctively": None,
                "mustMatchRaw": None,
                "rules": [],
                "products": [],
                "metafields": {},
                "_rule_keys": set(),
                "_product_keys": set(),
            }
        )
        return collection

    def _merge_basics(self, collection: Dict[str, Any], row: Dict[str, Any]):
        for field, columns in _BASIC_FIELDS.items():
            if collection[field] is None:
                collection[field] = to_optional_str(first_value(row, *columns))

        if collection["sortOrder"] is None and not is_empty(row.get("Sort Order")):
            collection["sortOrder"] = normalize_sort_order(row.get("Sort Order"))
        if collection["published"] is None:
            collection["published"] = to_bool(row.get("Published"))
        if collection["mustMatchRaw"] is None and not is_empty(row.get("Must Match")):
            collection["mustMatchRaw"] = to_str(row.get("Must Match"))

    @staticmethod
    def _add_rule(collection: Dict[str, Any], row: Dict[str, Any]):
        rule = {
            "column": to_optional_str(row.get("Rule: Product Column")),
            "relation": to_optional_str(row.get("Rule: Relation")),
            "condition": to_optional_str(row.get("Rule: Condition")),
        }
        if not any(rule.values()):
            return
        rule_key = (rule["column"], rule["relation"], rule["condition"])
        if rule_key in collection["_rule_keys"]:
            return
        collection["_rule_keys"].add(rule_key)
        collection["rules"].append(rule)

    @staticmethod
    def _add_product(collection: Dict[str, Any], row: Dict[str, Any]):
        product_handle = normalize_handle(row.get("Product: Handle"))
        if not product_handle:
            return
        position = to_int(row.get("Product: Position"))
        product_key = (product_handle, position)
        if product_key in collection["_product_keys"]:
            return
        collection["_product_keys"].add(product_key)
        collection["products"].append({"handle": product_handle, "position": position})

    def parse(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Agrupa las filas de la hoja en colecciones.

        Returns:
            List[Dict]: Colecciones en orden de aparición
        """
        collections: Dict[str, Dict[str, Any]] = {}

        for row in rows:
            handle = normalize_handle(row.get("Handle"))
            if not handle:
                continue
            collection = collections.get(handle)
            if collection is None:
                collection = collections[handle] = self._new_collection(handle)

            self._merge_basics(collection, row)
            self._add_rule(collection, row)
            self._add_product(collection, row)
            for metafield in build_metafields_from_row(row, self.metafield_columns):
                collection["metafields"][f"{metafield['namespace']}.{metafield['key']}"] = metafield

        result = []
        for collection in collections.values():
            collection["appliedDisjunctively"] = normalize_must_match(collection["mustMatchRaw"])
            collection["metafields"] = list(collection["metafields"].values())
            collection["products"].sort(
                key=lambda product: product["position"] if product["position"] is not None else float("inf")
            )
            del collection["_rule_keys"]
            del collection["_product_keys"]
            result.append(collection)

        logger.info(f"📊 Parsed {len(result)} collection(s) from {len(rows)} row(s)")
        return result
