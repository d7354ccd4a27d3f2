"""
Utilidad para cargar tablas de mapeo desde archivos JSON en config/.

Las tablas se cachean en memoria para evitar lecturas repetidas del disco.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from store_migrator.core.config import get_settings

logger = logging.getLogger(__name__)

# Ruta base del proyecto
BASE_DIR = Path(__file__).resolve().parent.parent.parent
CONFIG_DIR = BASE_DIR / "config"


def _dedupe_specs(specs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    seen = set()
    result = []
    for spec in specs:
        spec_key = (spec["key"], spec["type"])
        if spec_key in seen:
            continue
        seen.add(spec_key)
        result.append(spec)
    return result


@lru_cache(maxsize=4)
def load_magento_metafield_specs(filename: str = "") -> Dict[str, List[Dict[str, Any]]]:
    """
    Carga la tabla de metafields de la conversión Magento → Shopify.

    El formato esperado del JSON es:
    {
        "product": [{"key": "...", "type": "...", "source": "...", "onlyForConfigurable": true}],
        "variant": [{"key": "...", "type": "...", "source": "...", "fallbackSource": "..."}]
    }

    Las especificaciones de variante incluyen además todas las de producto
    que no son exclusivas de productos configurables (sin duplicar key+type).

    Returns:
        Dict con "product" y "variant"; listas vacías si el archivo no existe
    """
    path = Path(filename or get_settings().MAGENTO_SPECS_FILE)
    if not path.is_absolute():
        path = CONFIG_DIR / path

    if not path.is_file():
        logger.warning(f"Archivo de metafields Magento no encontrado en: {path}")
        return {"product": [], "variant": []}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.error(f"Error cargando el archivo de metafields Magento: {e}")
        return {"product": [], "variant": []}

    product_specs = list(data.get("product") or [])
    variant_specs = list(data.get("variant") or [])
    variant_specs.extend(
        {"key": spec["key"], "type": spec["type"], "source": spec["source"]}
        for spec in product_specs
        if not spec.get("onlyForConfigurable")
    )

    specs = {"product": product_specs, "variant": _dedupe_specs(variant_specs)}
    logger.info(
        f"Metafields Magento cargados: {len(specs['product'])} de producto, {len(specs['variant'])} de variante."
    )
    return specs
