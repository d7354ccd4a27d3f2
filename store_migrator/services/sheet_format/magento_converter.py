"""
Conversión de una exportación de productos Magento a una hoja Matrixify.

- Productos simples sin padre: una fila con variante "Default Title".
- Productos configurables: una fila por hijo (agrupados por parent_sku),
  opciones desde configurable_variation_labels / configurable_variations.
- Configurables sin hijos: una fila "Default Title" con el SKU del padre.

Las columnas de metafields salen de config/magento_metafield_specs.json.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from store_migrator.core.config import get_settings
from store_migrator.services.common import report_timestamp
from store_migrator.utils.mapping_loader import load_magento_metafield_specs
from store_migrator.utils.metafield_utils import normalize_boolean_value
from store_migrator.utils.sheet_utils import SheetSource, is_empty, load_sheet_rows, to_float, to_str, unique

logger = logging.getLogger(__name__)

OUTPUT_SHEET_NAME = "Shopify Products"
SHOP_LOCATION_COLUMN = "Inventory Available: Shop location"

SHOPIFY_COLUMNS = [
    "ID", "Handle", "Command", "Title", "Body HTML", "Vendor", "Type", "Tags", "Tags Command",
    "Created At", "Updated At", "Status", "Published", "Published At", "Published Scope",
    "Template Suffix", "Gift Card", "URL", "Total Inventory Qty", "Row #", "Top Row",
    "Category: ID", "Category: Name", "Category", "Custom Collections", "Smart Collections",
    "Image Type", "Image Src", "Image Command", "Image Position", "Image Width", "Image Height", "Image Alt Text",
    "Variant Inventory Item ID", "Variant ID", "Variant Command",
    "Option1 Name", "Option1 Value", "Option2 Name", "Option2 Value", "Option3 Name", "Option3 Value",
    "Variant Position", "Variant SKU", "Variant Barcode", "Variant Image", "Variant Weight", "Variant Weight Unit",
    "Variant Price", "Variant Compare At Price", "Variant Taxable", "Variant Tax Code",
    "Variant Inventory Tracker", "Variant Inventory Policy", "Variant Fulfillment Service",
    "Variant Requires Shipping", "Variant Shipping Profile", "Variant Inventory Qty", "Variant Inventory Adjust",
    "Variant Cost", "Variant HS Code", "Variant Country of Origin", "Variant Province of Origin",
    SHOP_LOCATION_COLUMN,
    "Metafield: title_tag [string]", "Metafield: description_tag [string]",
]

_SKU_SEGMENT = re.compile(r"(?:^|,)sku=([^,|]+)")
_NEXT_PAIR = re.compile(r",(?=\s*[A-Za-z0-9_]+\s*=)")


# === NORMALIZACIÓN ===


def slugify(text: Any) -> str:
    """Texto → handle en minúsculas con guiones."""
    value = to_str(text).lower().strip()
    value = re.sub(r"['\"]", "", value)
    value = re.sub(r"[^a-z0-9]+", "-", value)
    return value.strip("-")


def normalize_header(header: Any) -> str:
    """Encabezado Magento → clave snake_case (ej. "Parent SKU" → "parent_sku")."""
    return slugify(header).replace("-", "_")


def to_metafield_key(name: str) -> str:
    """Clave de metafield (snake_case, máximo 30 caracteres)."""
    key = re.sub(r"[^a-z0-9]+", "_", to_str(name).lower().strip()).strip("_")
    return key[:30] or "field"


def safe_number(value: Any) -> float:
    number = to_float(value)
    return number if number is not None else 0.0


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def normalize_image_url(src: Any, base_url: str) -> str:
    """Prefija base_url a rutas de imagen relativas."""
    path = to_str(src)
    if not path:
        return ""
    if re.match(r"^https?://", path, re.IGNORECASE):
        return path
    base = (base_url or "").strip()
    if not base:
        return path
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def normalize_parent_sku(raw: Any) -> str:
    """parent_sku puede traer "VIEJO,NUEVO": se usa el último valor no vacío."""
    parts = [part.strip() for part in to_str(raw).split(",") if part.strip()]
    return parts[-1] if parts else ""


def normalize_list_text(value: Any) -> str:
    """Lista separada por | o , → arreglo JSON sin duplicados."""
    parts = [part.strip() for part in re.split(r"[|,]", to_str(value)) if part.strip()]
    if not parts:
        return ""
    return json.dumps(unique(parts))


def as_tags(categories: Any, store_categories: Any) -> str:
    """Categorías Magento → tags únicos separados por coma."""
    tags: List[str] = []
    for value in (categories, store_categories):
        for part in to_str(value).split(","):
            tag = re.sub(r"\s+", " ", part.strip())
            if tag and tag not in tags:
                tags.append(tag)
    return ", ".join(tags)


def parse_configurable_variations(value: Any) -> Dict[str, Dict[str, str]]:
    """
    Parsea configurable_variations.

    Formato: "sku=A,color=Red,size=S|sku=B,color=Blue,size=M". Los valores
    pueden contener comas; una coma sólo inicia un par nuevo si le sigue "clave=".

    Returns:
        Dict: SKU hijo -> {código de atributo: valor}
    """
    variations: Dict[str, Dict[str, str]] = {}
    for part in (segment.strip() for segment in to_str(value).split("|")):
        match = _SKU_SEGMENT.search(part)
        if not part or not match:
            continue
        sku = match.group(1).strip()
        rest = _SKU_SEGMENT.sub("", part, count=1)

        attributes = {}
        for pair in _NEXT_PAIR.split(rest):
            key, separator, attribute_value = pair.strip(" ,").partition("=")
            if separator and key.strip():
                attributes[key.strip()] = attribute_value.strip()
        variations[sku] = attributes
    return variations


def parse_configurable_labels(value: Any) -> List[Dict[str, str]]:
    """configurable_variation_labels ("color=Color,size=Size") → [{code, name}]."""
    labels = []
    for part in to_str(value).split(","):
        code, separator, name = part.strip().partition("=")
        if separator and code.strip() and name.strip():
            labels.append({"code": code.strip(), "name": name.strip()})
    return labels


def get_status(row: Dict[str, Any]) -> str:
    online = to_str(row.get("product_online")).lower()
    return "active" if online in ("1", "yes", "true") else "draft"


# === CONVERSOR ===


class MagentoSheetConverter:
    """Construye las filas Matrixify a partir de las filas Magento."""

    def __init__(
        self,
        specs: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        image_base_url: Optional[str] = None,
        namespace: Optional[str] = None,
    ):
        settings = get_settings()
        specs = specs if specs is not None else load_magento_metafield_specs()
        self.product_specs = specs.get("product") or []
        self.variant_specs = specs.get("variant") or []
        self.image_base_url = settings.MAGENTO_IMAGE_BASE_URL if image_base_url is None else image_base_url
        self.namespace = namespace or settings.MAGENTO_METAFIELD_NAMESPACE

        self.product_columns = [
            f"Metafield: {self.namespace}.{to_metafield_key(spec['key'])} [{spec['type']}]"
            for spec in self.product_specs
        ]
        self.variant_columns = [
            f"Variant Metafield: {self.namespace}.{to_metafield_key(spec['key'])} [{spec['type']}]"
            for spec in self.variant_specs
        ]
        self.header = SHOPIFY_COLUMNS + self.product_columns + self.variant_columns

        self.logs: List[str] = []
        self.rows: List[Dict[str, Any]] = []
        self.stats = {"simple": 0, "parents": 0, "children": 0}

    # --- helpers de fila ---

    def _pick_first_image(self, row: Dict[str, Any]) -> str:
        raw = to_str(
            row.get("base_image") or row.get("small_image") or row.get("thumbnail_image") or row.get("swatch_image")
        )
        if not raw:
            return ""
        fixed = normalize_image_url(raw, self.image_base_url)
        if fixed != raw:
            self.logs.append(
                f'WARN: Image was not absolute URL. Prefixed base domain. Raw="{raw}", Fixed="{fixed}" '
                f"(SKU={to_str(row.get('sku')) or '?'})"
            )
        return fixed

    @staticmethod
    def _format_value(spec_type: str, raw: Any) -> str:
        if spec_type == "boolean":
            value = normalize_boolean_value(raw)
            return value.upper() if value else ""
        if spec_type == "list.single_line_text_field":
            return normalize_list_text(raw)
        return to_str(raw)

    def _attach_product_metafields(self, out: Dict[str, Any], source: Dict[str, Any]):
        is_configurable = to_str(source.get("product_type")).lower() == "configurable"
        for spec, column in zip(self.product_specs, self.product_columns):
            if spec.get("onlyForConfigurable") and not is_configurable:
                continue
            raw = source.get(spec["source"])
            if is_empty(raw):
                continue
            value = self._format_value(spec["type"], raw)
            if value:
                out[column] = value

    def _attach_variant_metafields(self, out: Dict[str, Any], source: Dict[str, Any]):
        for spec, column in zip(self.variant_specs, self.variant_columns):
            raw = source.get(spec["source"])
            if is_empty(raw) and spec.get("fallbackSource"):
                raw = source.get(spec["fallbackSource"])
            if is_empty(raw):
                continue
            value = self._format_value(spec["type"], raw)
            if value:
                out[column] = value

    def _new_row(self, handle: str) -> Dict[str, Any]:
        row = {column: "" for column in self.header}
        row["Row #"] = len(self.rows) + 1
        row["Handle"] = handle
        return row

    def _handle_for(self, row: Dict[str, Any], fallback_sku: str) -> str:
        url_key = to_str(row.get("url_key"))
        handle = slugify(url_key) if url_key else slugify(row.get("name") or fallback_sku)
        return handle or slugify(fallback_sku or f"product-{len(self.rows) + 1}")

    def _fill_product_fields(self, out: Dict[str, Any], source: Dict[str, Any], product_type: str):
        out["Title"] = to_str(source.get("name"))
        out["Body HTML"] = to_str(source.get("description") or source.get("short_description"))
        out["Vendor"] = to_str(source.get("manufacturer"))
        out["Type"] = product_type
        out["Gift Card"] = "FALSE"
        out["Status"] = get_status(source)
        out["Published"] = "TRUE" if out["Status"] == "active" else "FALSE"
        out["Created At"] = to_str(source.get("created_at"))
        out["Updated At"] = to_str(source.get("updated_at"))
        out["Tags"] = as_tags(source.get("categories"), source.get("categories_store_name"))
        out["Metafield: title_tag [string]"] = to_str(source.get("meta_title"))
        out["Metafield: description_tag [string]"] = to_str(source.get("meta_description"))

    @staticmethod
    def _fill_variant_fields(out: Dict[str, Any], source: Dict[str, Any], sku: str):
        special_price = safe_number(source.get("special_price"))
        msrp_price = safe_number(source.get("msrp_price"))
        quantity = safe_number(source.get("qty"))
        weight = safe_number(source.get("weight"))

        out["Variant SKU"] = sku
        out["Variant Price"] = format_number(special_price) if special_price > 0 else ""
        out["Variant Compare At Price"] = format_number(msrp_price) if msrp_price > 0 else ""
        out["Variant Inventory Qty"] = format_number(quantity)
        out[SHOP_LOCATION_COLUMN] = format_number(quantity)
        if weight > 0:
            out["Variant Weight"] = format_number(weight)
            out["Variant Weight Unit"] = "lb"
        out["Variant Inventory Tracker"] = "shopify"
        out["Variant Inventory Policy"] = "deny"
        out["Variant Requires Shipping"] = "TRUE"
        out["Variant Taxable"] = "TRUE"

    # --- tipos de producto ---

    def _write_single_variant(self, source: Dict[str, Any], sku: str, product_type: str):
        out = self._new_row(self._handle_for(source, sku))
        out["Top Row"] = 1
        self._fill_product_fields(out, source, product_type)

        image = self._pick_first_image(source)
        if image:
            out["Image Src"] = image
            out["Image Position"] = 1

        out["Option1 Name"] = "Title"
        out["Option1 Value"] = "Default Title"
        self._fill_variant_fields(out, source, sku)
        self._attach_product_metafields(out, source)
        self._attach_variant_metafields(out, source)
        self.rows.append(out)

    def _write_configurable(self, parent: Dict[str, Any], parent_sku: str, children: List[Dict[str, Any]]):
        handle = self._handle_for(parent, parent_sku)
        option_defs = parse_configurable_labels(parent.get("configurable_variation_labels"))
        variations = parse_configurable_variations(parent.get("configurable_variations"))

        if not option_defs and variations:
            first = next(iter(variations.values()))
            option_defs = [{"code": code, "name": code} for code in list(first)[:3]]
            self.logs.append(
                f"WARN: No configurable_variation_labels for parent SKU={parent_sku}. "
                "Inferred options from variations keys."
            )

        parent_image = self._pick_first_image(parent)
        image_position = 0

        for index, child in enumerate(sorted(children, key=lambda row: to_str(row.get("sku")))):
            child_sku = to_str(child.get("sku"))
            is_top = index == 0

            out = self._new_row(handle)
            out["Variant Position"] = str(index + 1)
            out["Top Row"] = 1 if is_top else ""

            if is_top:
                self._fill_product_fields(out, parent, "configurable")
                if parent_image:
                    image_position = 1
                    out["Image Src"] = parent_image
                    out["Image Position"] = image_position
                self._attach_product_metafields(out, parent)

            self._fill_variant_fields(out, child, child_sku)

            variant_image = self._pick_first_image(child)
            if variant_image:
                out["Variant Image"] = variant_image
                if not is_top or not out["Image Src"]:
                    image_position = image_position + 1 if (image_position and not is_top) else 1
                    out["Image Src"] = variant_image
                    out["Image Position"] = image_position

            attributes = variations.get(child_sku)
            if attributes is None and option_defs:
                self.logs.append(
                    f"WARN: Could not find option values for child SKU={child_sku} under parent SKU={parent_sku}."
                )
            if option_defs:
                for option_index, option in enumerate(option_defs[:3], start=1):
                    out[f"Option{option_index} Name"] = option["name"]
                    out[f"Option{option_index} Value"] = to_str((attributes or {}).get(option["code"]))
            else:
                out["Option1 Name"] = "Title"
                out["Option1 Value"] = "Default Title"

            self._attach_variant_metafields(out, child)
            self.rows.append(out)

            # La imagen del primer hijo también entra en la lista de imágenes
            if is_top and parent_image and variant_image and variant_image != parent_image:
                image_position += 1
                image_row = self._new_row(handle)
                image_row["Image Src"] = variant_image
                image_row["Image Position"] = image_position
                self.rows.append(image_row)

    def convert(self, magento_rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Convierte las filas Magento (encabezados ya normalizados).

        Returns:
            List[Dict]: Filas Matrixify en el orden del encabezado
        """
        parents: Dict[str, Dict[str, Any]] = {}
        parent_order: List[str] = []
        children: Dict[str, List[Dict[str, Any]]] = {}

        for row in magento_rows:
            product_type = to_str(row.get("product_type")).lower()
            sku = to_str(row.get("sku"))
            parent_raw = to_str(row.get("parent_sku"))
            if not sku and not product_type:
                continue

            if product_type == "simple" and not parent_raw:
                self.stats["simple"] += 1
                self._write_single_variant(row, sku, "simple")
            elif product_type == "configurable":
                self.stats["parents"] += 1
                if sku not in parents:
                    parent_order.append(sku)
                parents[sku] = row
            elif product_type == "simple":
                self.stats["children"] += 1
                parent_sku = normalize_parent_sku(parent_raw)
                if parent_sku != parent_raw:
                    self.logs.append(
                        f'INFO: parent_sku had multiple values. Using resolved parent_sku="{parent_sku}" '
                        f'(raw="{parent_raw}") for child SKU={sku}'
                    )
                children.setdefault(parent_sku, []).append(row)
            else:
                self.logs.append(f'WARN: Unhandled product_type="{product_type}" for SKU={sku}')

        for parent_sku in parent_order:
            parent = parents[parent_sku]
            parent_children = children.pop(parent_sku, [])
            if parent_children:
                self._write_configurable(parent, parent_sku, parent_children)
            else:
                self.logs.append(
                    f"INFO: Configurable parent has NO children rows. SKU={parent_sku} "
                    "(will create Default Title variant)"
                )
                self._write_single_variant(parent, parent_sku, "configurable")

        for parent_sku, orphans in children.items():
            self.logs.append(
                f"WARN: Orphan children for parent SKU={parent_sku}: {len(orphans)} rows (parent missing in sheet)."
            )

        return self.rows


def _normalize_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{normalize_header(column): value for column, value in row.items()} for row in rows]


def write_shopify_sheet(
    converter: MagentoSheetConverter, output_dir: Optional[Path] = None
) -> Tuple[Path, Path]:
    """
    Escribe la hoja Matrixify y el archivo de logs de la conversión.

    Returns:
        Tuple: (ruta xlsx, ruta logs)
    """
    directory = Path(output_dir or get_settings().reports_path / "shopify_exports")
    directory.mkdir(parents=True, exist_ok=True)
    stamp = report_timestamp()
    out_path = directory / f"shopify_products_{stamp}.xlsx"
    log_path = directory / f"shopify_products_{stamp}_logs.txt"

    df = pd.DataFrame(converter.rows, columns=converter.header)
    df.to_excel(out_path, sheet_name=OUTPUT_SHEET_NAME, index=False, engine="openpyxl")
    log_path.write_text("\n".join(converter.logs), encoding="utf-8")
    return out_path, log_path


def convert_magento_sheet(
    source: SheetSource,
    filename: Optional[str] = None,
    output_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Punto de entrada: convierte una exportación Magento en una hoja de productos Shopify.

    Returns:
        Dict: shopifySheetPath, logsPath y estadísticas
    """
    logger.info("🔄 Converting Magento export to Shopify product sheet...")
    magento_rows = _normalize_rows(load_sheet_rows(source, filename=filename))
    logger.info(f"📊 Input rows read: {len(magento_rows)}")

    converter = MagentoSheetConverter()
    converter.convert(magento_rows)
    out_path, log_path = write_shopify_sheet(converter, output_dir)

    logger.info(
        f"✅ Conversion complete: {len(converter.rows)} rows written "
        f"(simple={converter.stats['simple']}, parents={converter.stats['parents']}, "
        f"children={converter.stats['children']}) → {out_path}"
    )
    return {
        "shopifySheetPath": str(out_path),
        "logsPath": str(log_path),
        "stats": {
            "inputRowsRead": len(magento_rows),
            "outputRowsWritten": len(converter.rows),
            "logsCount": len(converter.logs),
            **converter.stats,
        },
    }
