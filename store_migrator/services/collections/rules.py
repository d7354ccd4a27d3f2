"""
Traducción de columnas Matrixify de colecciones a enums de Shopify.

Cubre el orden de la colección (Sort Order), "Must Match" y las reglas
de colecciones inteligentes (Rule: Product Column / Relation / Condition).
"""

import logging
import re
from typing import Any, Dict, Optional

from store_migrator.utils.sheet_utils import is_empty, to_str

logger = logging.getLogger(__name__)

SORT_ORDER_MAP = {
    "alphabet": "ALPHA_ASC",
    "alphabet descending": "ALPHA_DESC",
    "best selling": "BEST_SELLING",
    "created": "CREATED",
    "created descending": "CREATED_DESC",
    "manual": "MANUAL",
    "price": "PRICE_ASC",
    "price descending": "PRICE_DESC",
}

RULE_RELATION_MAP = {
    "greater than": "GREATER_THAN",
    "less than": "LESS_THAN",
    "equals": "EQUALS",
    "not equals": "NOT_EQUALS",
    "starts with": "STARTS_WITH",
    "ends with": "ENDS_WITH",
    "contains": "CONTAINS",
    "not contains": "NOT_CONTAINS",
    "is empty": "IS_NOT_SET",
    "is not empty": "IS_SET",
}

RULE_COLUMN_MAP = {
    "title": "TITLE",
    "type": "TYPE",
    "category": "PRODUCT_CATEGORY_ID",
    "category with subcategories": "PRODUCT_CATEGORY_ID_WITH_DESCENDANTS",
    "vendor": "VENDOR",
    "variant title": "VARIANT_TITLE",
    "variant compare at price": "VARIANT_COMPARE_AT_PRICE",
    "variant weight": "VARIANT_WEIGHT",
    "variant inventory": "VARIANT_INVENTORY",
    "variant price": "VARIANT_PRICE",
    "tag": "TAG",
}

CATEGORY_COLUMNS = frozenset({"PRODUCT_CATEGORY_ID", "PRODUCT_CATEGORY_ID_WITH_DESCENDANTS"})

# Relaciones que no llevan condición
VALUELESS_RELATIONS = frozenset({"IS_SET", "IS_NOT_SET"})

_METAFIELD_RULE = re.compile(r"^(variant\s+)?metafield:\s*(.+)$", re.IGNORECASE)


def normalize_sort_order(value: Any) -> Optional[str]:
    """"best selling" → BEST_SELLING; None si está vacío o es desconocido."""
    if is_empty(value):
        return None
    text = to_str(value)
    if text.upper() in SORT_ORDER_MAP.values():
        return text.upper()
    sort_order = SORT_ORDER_MAP.get(text.lower())
    if not sort_order:
        logger.warning(f"⚠️ Unknown collection sort order '{value}', skipping")
    return sort_order


def normalize_must_match(value: Any) -> Optional[bool]:
    """
    "all conditions" → False, "any condition" → True (appliedDisjunctively).
    """
    if is_empty(value):
        return None
    text = to_str(value).lower()
    if text == "all conditions":
        return False
    if text == "any condition":
        return True
    logger.warning(f"⚠️ Unknown Must Match '{value}'")
    return None


def normalize_rule_relation(value: Any) -> Optional[str]:
    if is_empty(value):
        return None
    relation = RULE_RELATION_MAP.get(to_str(value).lower())
    if not relation:
        logger.warning(f"⚠️ Unknown Rule: Relation '{value}', skipping rule")
    return relation


def parse_rule_column(value: Any) -> Optional[Dict[str, str]]:
    """
    Interpreta "Rule: Product Column".

    Returns:
        {"kind": "STANDARD", "column": ...} o
        {"kind": "PRODUCT_METAFIELD" | "VARIANT_METAFIELD", "namespace": ..., "key": ...}
    """
    if is_empty(value):
        return None
    text = to_str(value)

    match = _METAFIELD_RULE.match(text)
    if match:
        namespace, _, key = match.group(2).strip().partition(".")
        if not namespace.strip() or not key.strip():
            logger.warning(f"⚠️ Bad metafield rule column '{value}' (expected 'Metafield: namespace.key')")
            return None
        kind = "VARIANT_METAFIELD" if match.group(1) else "PRODUCT_METAFIELD"
        return {"kind": kind, "namespace": namespace.strip(), "key": key.strip()}

    column = RULE_COLUMN_MAP.get(text.lower())
    if not column:
        logger.warning(f"⚠️ Unknown Rule: Product Column '{value}', skipping rule")
        return None
    return {"kind": "STANDARD", "column": column}


def normalize_category_condition(condition: Any) -> str:
    """
    Condición de categoría → GID de taxonomía.

    Matrixify exporta "aa-1-13 | Apparel & Accessories > ..."; se usa el id.
    """
    text = to_str(condition)
    if not text or text.startswith("gid://"):
        return text
    taxonomy_id = text.split("|")[0].strip()
    return f"gid://shopify/TaxonomyCategory/{taxonomy_id}"
