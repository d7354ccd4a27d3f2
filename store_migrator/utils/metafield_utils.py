"""
Utilidades de metafields compartidas por las migraciones.

Incluye:
- Tipos de metafield aceptados por Shopify
- Parseo de encabezados de exportación ("Metafield: ns.key [type]")
- Saneamiento de metafields antes de enviarlos (namespace shopify, referencias)
- Normalización de valores (booleanos, listas)
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from store_migrator.utils.sheet_utils import is_empty, to_bool, to_str

logger = logging.getLogger(__name__)

ALLOWED_METAFIELD_TYPES = frozenset(
    {
        "boolean",
        "color",
        "date",
        "date_time",
        "dimension",
        "id",
        "json",
        "link",
        "money",
        "multi_line_text_field",
        "number_decimal",
        "number_integer",
        "rating",
        "rich_text_field",
        "single_line_text_field",
        "url",
        "volume",
        "weight",
        "article_reference",
        "collection_reference",
        "company_reference",
        "customer_reference",
        "file_reference",
        "metaobject_reference",
        "mixed_reference",
        "page_reference",
        "product_reference",
        "product_taxonomy_value_reference",
        "variant_reference",
        "list.article_reference",
        "list.collection_reference",
        "list.color",
        "list.customer_reference",
        "list.date",
        "list.date_time",
        "list.dimension",
        "list.file_reference",
        "list.id",
        "list.link",
        "list.metaobject_reference",
        "list.mixed_reference",
        "list.number_decimal",
        "list.number_integer",
        "list.page_reference",
        "list.product_reference",
        "list.product_taxonomy_value_reference",
        "list.rating",
        "list.single_line_text_field",
        "list.url",
        "list.variant_reference",
        "list.volume",
        "list.weight",
    }
)

SEO_METAFIELD_KEYS = frozenset({"title_tag", "description_tag"})
RESERVED_NAMESPACE = "shopify"

# Tipos "cortos" usados por exportaciones de Shopify/Matrixify
_EXPORT_TYPE_ALIASES = {
    "string": "single_line_text_field",
    "text": "multi_line_text_field",
    "integer": "number_integer",
    "int": "number_integer",
    "decimal": "number_decimal",
    "float": "number_decimal",
    "number": "number_decimal",
    "bool": "boolean",
    "datetime": "date_time",
}

_METAFIELD_HEADER = re.compile(r"^Metafield:\s*(.+?)\.(.+?)\s*\[(.+?)\]\s*$", re.IGNORECASE)
_GLOBAL_METAFIELD_HEADER = re.compile(r"^Metafield:\s*([\w-]+)\s*\[([^\]]+)\]\s*$", re.IGNORECASE)
_VARIANT_METAFIELD_HEADER = re.compile(r"^Variant\s+Metafield:\s*(.+?)\.(.+?)\s*\[(.+?)\]\s*$", re.IGNORECASE)


def map_export_type(export_type: Optional[str]) -> Optional[str]:
    """
    Traduce el tipo de la exportación al tipo de metafield de Shopify.

    Args:
        export_type: Tipo tal como aparece en el encabezado ("string", "integer", ...)

    Returns:
        str: Tipo Shopify (los tipos ya válidos se devuelven tal cual)
    """
    if is_empty(export_type):
        return None
    text = to_str(export_type).lower()
    return _EXPORT_TYPE_ALIASES.get(text, text)


def is_reference_type(metafield_type: Optional[str]) -> bool:
    """True para tipos *_reference y list.*_reference."""
    return isinstance(metafield_type, str) and metafield_type.endswith("_reference")


def parse_metafield_header(header: str, allow_global: bool = False) -> Optional[Dict[str, str]]:
    """
    Parsea un encabezado "Metafield: namespace.key [type]".

    Args:
        header: Encabezado de columna
        allow_global: Acepta también "Metafield: key [type]" (namespace global)

    Returns:
        Dict con namespace, key, type, column o None
    """
    text = str(header or "").strip()
    match = _METAFIELD_HEADER.match(text)
    if match:
        return {
            "namespace": match.group(1).strip(),
            "key": match.group(2).strip(),
            "type": map_export_type(match.group(3)),
            "column": header,
        }

    if allow_global:
        match = _GLOBAL_METAFIELD_HEADER.match(text)
        if match:
            return {
                "namespace": "global",
                "key": match.group(1).strip(),
                "type": map_export_type(match.group(2)),
                "column": header,
            }

    return None


def parse_variant_metafield_header(header: str) -> Optional[Dict[str, str]]:
    """Parsea "Variant Metafield: namespace.key [type]"."""
    match = _VARIANT_METAFIELD_HEADER.match(str(header or "").strip())
    if not match:
        return None
    return {
        "namespace": match.group(1).strip(),
        "key": match.group(2).strip(),
        "type": map_export_type(match.group(3)),
        "column": header,
    }


def detect_metafield_columns(
    headers: Iterable[str],
    allow_global: bool = False,
    variant: bool = False,
    skip_seo: bool = True,
) -> List[Dict[str, str]]:
    """
    Detecta columnas de metafields migrables en los encabezados de una hoja.

    Se descartan el namespace "shopify", los tipos no soportados y
    (por defecto) las claves SEO title_tag/description_tag.

    Returns:
        List[Dict]: Definiciones únicas (namespace, key, type, column)
    """
    parser = parse_variant_metafield_header if variant else None
    detected: Dict[str, Dict[str, str]] = {}

    for header in headers:
        parsed = parser(header) if parser else parse_metafield_header(header, allow_global=allow_global)
        if not parsed:
            continue
        if parsed["namespace"].lower() == RESERVED_NAMESPACE:
            continue
        if skip_seo and parsed["key"].lower() in SEO_METAFIELD_KEYS:
            continue
        if parsed["type"] not in ALLOWED_METAFIELD_TYPES:
            logger.debug(f"Skipping metafield column with unsupported type: {header}")
            continue
        detected.setdefault(f"{parsed['namespace']}.{parsed['key']}", parsed)

    return list(detected.values())


def normalize_boolean_value(value: Any) -> Optional[str]:
    """Valor booleano como "true"/"false" (formato de metafieldsSet)."""
    parsed = to_bool(value)
    if parsed is None:
        return None
    return "true" if parsed else "false"


def normalize_list_value(value: Any) -> Optional[str]:
    """
    Valor de metafield list.* como arreglo JSON.

    Acepta un arreglo JSON ya formado o una lista separada por comas.
    """
    if is_empty(value):
        return None
    raw = to_str(value)

    if raw.startswith("[") and raw.endswith("]"):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return json.dumps(parsed)

    parts = [part.strip() for part in raw.split(",") if part.strip()]
    return json.dumps(parts or [raw])


def normalize_metafield_value(metafield_type: str, value: Any) -> Optional[str]:
    """
    Normaliza un valor de celda según el tipo del metafield.

    Returns:
        str o None si el valor está vacío o no es válido para el tipo
    """
    if is_empty(value):
        return None
    if metafield_type == "boolean":
        return normalize_boolean_value(value)
    if metafield_type.startswith("list."):
        return normalize_list_value(value)
    return to_str(value)


def build_metafields_from_row(
    row: Dict[str, Any],
    columns: List[Dict[str, str]],
) -> List[Dict[str, str]]:
    """
    Construye MetafieldInput a partir de una fila y las columnas detectadas.

    Returns:
        List[Dict]: namespace, key, type, value (celdas vacías omitidas)
    """
    metafields = []
    for column in columns:
        value = normalize_metafield_value(column["type"], row.get(column["column"]))
        if value is None:
            continue
        metafields.append(
            {
                "namespace": column["namespace"],
                "key": column["key"],
                "type": column["type"],
                "value": value,
            }
        )
    return metafields


def sanitize_metafields(
    metafields: Iterable[Dict[str, Any]],
    owner_label: str,
    entity_label: str,
    allow_references: bool = False,
) -> List[Dict[str, Any]]:
    """
    Filtra metafields que Shopify rechazaría en el destino.

    Se omiten los que no tienen namespace/key/type, los del namespace
    reservado "shopify" y (salvo allow_references) los de tipo referencia,
    cuyos GIDs pertenecen a la tienda origen.

    Args:
        metafields: Metafields candidatos
        owner_label: Tipo de dueño para el log (PRODUCT, VARIANT, ...)
        entity_label: Identificador de la entidad para el log
        allow_references: Conserva referencias ya resueltas en destino

    Returns:
        List[Dict]: Metafields seguros
    """
    safe = []
    for metafield in metafields or []:
        namespace = metafield.get("namespace")
        key = metafield.get("key")
        metafield_type = metafield.get("type")
        if not namespace or not key or not metafield_type:
            continue

        if namespace == RESERVED_NAMESPACE:
            logger.debug(f"ℹ️ [{owner_label}] Skipping shopify namespace → {entity_label} :: {namespace}.{key}")
            continue

        if is_reference_type(metafield_type) and not allow_references:
            logger.debug(
                f"ℹ️ [{owner_label}] Skipping reference metafield → {entity_label} :: "
                f"{namespace}.{key} [{metafield_type}]"
            )
            continue

        safe.append(metafield)

    return safe
